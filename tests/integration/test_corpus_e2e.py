"""End-to-end runs over the shipped fixture corpus."""

from __future__ import annotations

from pathlib import Path

import pytest

from proofbench.compiler.world import PrintConfig, TestWorld
from proofbench.harness.runner import RunOptions, TestRunner, discover
from proofbench.settings import Settings
from tests.conftest import FIXTURES_DIR


@pytest.fixture
def corpus_settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        update_expect=False,
        fixture_dir=FIXTURES_DIR / "typ",
        ref_dir=tmp_path / "ref",
        png_dir=tmp_path / "png",
        pdf_dir=tmp_path / "pdf",
        asset_dir=FIXTURES_DIR,
        workers=4,
    )


class TestCorpus:
    def test_discovers_all_files(self, corpus_settings: Settings) -> None:
        paths = discover(corpus_settings.fixture_dir, corpus_settings.fixture_suffix)
        names = [p.relative_to(corpus_settings.fixture_dir).as_posix() for p in paths]
        assert names == [
            "code/include.pbt",
            "code/let.pbt",
            "layout/page.pbt",
            "markup/basic.pbt",
            "markup/errors.pbt",
        ]

    def test_every_fixture_passes(self, corpus_settings: Settings) -> None:
        world = TestWorld.new(corpus_settings, PrintConfig())
        paths = discover(corpus_settings.fixture_dir, corpus_settings.fixture_suffix)
        reports = TestRunner(corpus_settings, RunOptions()).run_all(world, paths)
        failed = [report.render() for report in reports if not report.ok]
        assert failed == []

    @pytest.mark.parametrize("subtest", [0, 1, -1])
    def test_single_subtest(self, corpus_settings: Settings, subtest: int) -> None:
        world = TestWorld.new(corpus_settings, PrintConfig())
        path = corpus_settings.fixture_dir / "markup" / "errors.pbt"
        report = TestRunner(corpus_settings, RunOptions(subtest=subtest)).run_file(world, path)
        assert report.ok, report.render()
        assert sum(line.startswith("  Skipped subtest") for line in report.output) == 5
