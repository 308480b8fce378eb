"""Shared test fixtures for proofbench."""

from __future__ import annotations

from pathlib import Path

import pytest

from proofbench.compiler.world import PrintConfig, TestWorld
from proofbench.harness.runner import RunOptions, TestRunner
from proofbench.settings import Settings

SAMPLE_FIXTURE = """\
// Ref: false
---
Hello *World*
---
// Error: 1:1-1:23 page too small
#set page(width: 10pt)
Hello
"""

FIXTURES_DIR = Path(__file__).parent / "fixtures"

PAGE_TOO_SMALL = "// Error: 1:1-1:23 page too small\n#set page(width: 10pt)\nHello"


def write_fixture(settings: Settings, name: str, text: str) -> Path:
    """Write a fixture file below the settings' fixture directory."""
    path = settings.fixture_dir / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing every directory into a temporary tree."""
    for name in ("typ", "ref", "png", "pdf", "assets"):
        (tmp_path / name).mkdir()
    return Settings(
        _env_file=None,
        update_expect=False,
        fixture_dir=tmp_path / "typ",
        ref_dir=tmp_path / "ref",
        png_dir=tmp_path / "png",
        pdf_dir=tmp_path / "pdf",
        asset_dir=tmp_path / "assets",
        font_dir=None,
        workers=2,
    )


@pytest.fixture
def world(settings: Settings) -> TestWorld:
    return TestWorld.new(settings, PrintConfig())


@pytest.fixture
def runner(settings: Settings) -> TestRunner:
    return TestRunner(settings, RunOptions())
