"""Tests for the test orchestrator."""

from __future__ import annotations

from pathlib import Path

from proofbench.compiler.world import PrintConfig, TestWorld
from proofbench.harness.runner import (
    UPDATE_HINT,
    FileReport,
    RunOptions,
    TestRunner,
    discover,
    summarize,
)
from proofbench.settings import Settings
from tests.conftest import SAMPLE_FIXTURE, write_fixture


class TestRunFile:
    def test_passing_file(self, runner: TestRunner, world: TestWorld, settings: Settings) -> None:
        path = write_fixture(settings, "sample.pbt", SAMPLE_FIXTURE)
        report = runner.run_file(world, path)
        assert report.ok, report.output
        assert report.output == []
        assert report.render() == "sample.pbt ✔"

    def test_unannotated_error(self, runner: TestRunner, world: TestWorld, settings: Settings) -> None:
        path = write_fixture(settings, "err.pbt", "// Ref: false\n---\n#foo")
        report = runner.run_file(world, path)
        assert not report.ok
        assert report.output == [
            "  Subtest 1 does not match expected errors.",
            "    Not annotated | Error: 4:2-4:5: unknown variable: foo",
        ]
        assert report.render().startswith("err.pbt ❌\n")

    def test_not_emitted(self, runner: TestRunner, world: TestWorld, settings: Settings) -> None:
        path = write_fixture(settings, "missing.pbt", "// Ref: false\n// Error: 1-2 never\nab")
        report = runner.run_file(world, path)
        assert not report.ok
        assert report.output[-1] == "    Not emitted   | Error: 3:1-3:2: never"

    def test_invalid_annotation(
        self, runner: TestRunner, world: TestWorld, settings: Settings
    ) -> None:
        path = write_fixture(settings, "bad.pbt", "// Ref: false\n---\n// Error: x oops\nHello")
        report = runner.run_file(world, path)
        assert not report.ok
        assert report.output[0].startswith("  Subtest 1 has an invalid annotation: ")

    def test_invalid_annotation_still_reports_errors(
        self, runner: TestRunner, world: TestWorld, settings: Settings
    ) -> None:
        path = write_fixture(settings, "bad2.pbt", "// Ref: false\n---\n// Error: x oops\n#foo")
        report = runner.run_file(world, path)
        assert not report.ok
        assert report.output[0].startswith("  Subtest 1 has an invalid annotation: ")
        assert "  Subtest 1 does not match expected errors." in report.output
        assert report.output[-1].startswith("    Not annotated | ")
        assert report.output[-1].endswith("unknown variable: foo")

    def test_subtest_selection(self, runner: TestRunner, world: TestWorld, settings: Settings) -> None:
        text = "// Ref: false\na\n---\n// Ref: false\n#foo\n---\n// Ref: false\nc"
        path = write_fixture(settings, "select.pbt", text)
        selecting = TestRunner(settings, RunOptions(subtest=-1))
        report = selecting.run_file(world, path)
        assert report.ok
        assert report.output == ["  Skipped subtest 0.", "  Skipped subtest 1."]

    def test_panic_is_isolated(self, runner: TestRunner, world: TestWorld, settings: Settings) -> None:
        path = settings.fixture_dir / "broken.pbt"
        path.write_bytes(b"\xff\xfe")
        report = runner.run_file(world, path)
        assert not report.ok
        assert report.panicked
        assert report.output[0] == "Panicked in broken.pbt"
        assert report.output[1].startswith("  FixtureError: ")

    def test_print_syntax(self, settings: Settings) -> None:
        world = TestWorld.new(settings, PrintConfig(syntax=True))
        path = write_fixture(settings, "tree.pbt", "// Ref: false\nHello")
        report = TestRunner(settings).run_file(world, path)
        assert report.output[0].startswith("Syntax Tree:\n")


class TestGolden:
    def test_missing_reference_fails(
        self, runner: TestRunner, world: TestWorld, settings: Settings
    ) -> None:
        path = write_fixture(settings, "page.pbt", "Hello")
        report = runner.run_file(world, path)
        assert not report.ok
        assert report.output == ["  Failed to open reference image."]
        assert (settings.png_dir / "page.png").exists()

    def test_update_creates_reference(self, world: TestWorld, settings: Settings) -> None:
        path = write_fixture(settings, "dir/page.pbt", "#rect(fill: blue)")
        runner = TestRunner(settings, RunOptions(update=True, pdf=True))

        first = runner.run_file(world, path)
        assert first.ok and first.updated
        assert first.render() == "dir/page.pbt ✔\n  Updated reference image."
        assert (settings.ref_dir / "dir" / "page.png").exists()
        assert (settings.pdf_dir / "dir" / "page.pdf").exists()

        second = runner.run_file(world, path)
        assert second.ok and not second.updated

    def test_without_pages_nothing_is_compared(
        self, runner: TestRunner, world: TestWorld, settings: Settings
    ) -> None:
        path = write_fixture(settings, "fails.pbt", "// Error: 2-5 unknown variable: foo\n#foo")
        report = runner.run_file(world, path)
        assert report.ok, report.output
        assert not (settings.ref_dir / "fails.png").exists()

    def test_print_frames(self, settings: Settings) -> None:
        world = TestWorld.new(settings, PrintConfig(frames=True))
        path = write_fixture(settings, "frames.pbt", "Hello")
        report = TestRunner(settings, RunOptions(update=True)).run_file(world, path)
        assert report.output[0].startswith("Frame 120pt x ")


class TestRunAll:
    def test_reports_in_order(self, runner: TestRunner, world: TestWorld, settings: Settings) -> None:
        paths = [
            write_fixture(settings, f"t{i}.pbt", f"// Ref: false\nTest {i}") for i in range(5)
        ]
        seen: list[FileReport] = []
        reports = runner.run_all(world, paths, on_report=seen.append)
        assert [r.name for r in reports] == [f"t{i}.pbt" for i in range(5)]
        assert seen == reports
        assert all(r.ok for r in reports)


class TestDiscover:
    def _tree(self, root: Path) -> None:
        for name in ("a.pbt", "sub/b.pbt", "benches/c.pbt", "notes.txt"):
            path = root / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("x", encoding="utf-8")

    def test_skips_benches(self, tmp_path: Path) -> None:
        self._tree(tmp_path)
        assert discover(tmp_path, ".pbt") == [tmp_path / "a.pbt", tmp_path / "sub" / "b.pbt"]

    def test_substring_filter(self, tmp_path: Path) -> None:
        self._tree(tmp_path)
        assert discover(tmp_path, ".pbt", ["sub"]) == [tmp_path / "sub" / "b.pbt"]

    def test_filter_ignores_fixture_dir_itself(self, tmp_path: Path) -> None:
        root = tmp_path / "typ"
        self._tree(root)
        assert discover(root, ".pbt", ["typ"]) == []
        assert discover(root, ".pbt", ["a.pbt"]) == [root / "a.pbt"]

    def test_exact_filter(self, tmp_path: Path) -> None:
        self._tree(tmp_path)
        assert discover(tmp_path, ".pbt", ["b.pbt"], exact=True) == [tmp_path / "sub" / "b.pbt"]
        assert discover(tmp_path, ".pbt", ["sub"], exact=True) == []


class TestSummarize:
    def test_single_passing(self) -> None:
        assert summarize([FileReport("a", ok=True)]) == []

    def test_counts_and_hint(self) -> None:
        reports = [FileReport("a", ok=True), FileReport("b", ok=False)]
        assert summarize(reports) == ["1 / 2 tests passed.", UPDATE_HINT]
