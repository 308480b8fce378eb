"""Test orchestration: runs fixture files and collects their reports."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from proofbench.compiler.eval import evaluate
from proofbench.compiler.layout import Frame
from proofbench.compiler.pipeline import CompilationPipeline
from proofbench.compiler.world import PrintConfig, TestWorld
from proofbench.harness.annotations import (
    AnnotationError,
    collect_diagnostics,
    format_annotation,
    match_annotations,
    parse_metadata,
)
from proofbench.harness.fixtures import load_test_file
from proofbench.harness.golden import check_reference, export_pdf, render_pages
from proofbench.harness.pool import WorldPool
from proofbench.harness.reparse import format_failure, fuzz_reparse
from proofbench.harness.rng import LinearShift
from proofbench.harness.spans import check_spans
from proofbench.models.fixture import Subtest
from proofbench.settings import Settings

logger = logging.getLogger("proofbench.runner")

UPDATE_HINT = (
    "Set the UPDATE_EXPECT environment variable or pass the "
    "--update flag to update the reference image(s)."
)


@dataclass(frozen=True)
class RunOptions:
    """Per-run switches from the command line."""

    update: bool = False
    pdf: bool = False
    subtest: int | None = None
    print: PrintConfig = field(default_factory=PrintConfig)


@dataclass
class FileReport:
    """Everything one test file produced."""

    name: str
    ok: bool = True
    updated: bool = False
    panicked: bool = False
    output: list[str] = field(default_factory=list)

    def render(self) -> str:
        lines = [f"{self.name} {'✔' if self.ok else '❌'}"]
        if self.updated:
            lines.append("  Updated reference image.")
        lines.extend(self.output)
        return "\n".join(lines)


@dataclass
class _SubtestResult:
    ok: bool = True
    compare_ref: bool = False
    frames: list[Frame] = field(default_factory=list)


def discover(
    fixture_dir: Path,
    suffix: str,
    filters: Iterable[str] = (),
    exact: bool = False,
) -> list[Path]:
    """Find fixture files below ``fixture_dir``, skipping benchmarks.

    With ``exact`` a filter must equal the file name, otherwise it only has
    to occur somewhere in the path below ``fixture_dir``.
    """
    filters = list(filters)
    paths: list[Path] = []
    for path in sorted(fixture_dir.rglob(f"*{suffix}")):
        if not path.is_file():
            continue
        relative = path.relative_to(fixture_dir)
        if relative.parts[0] == "benches":
            continue
        if exact:
            if path.name not in filters:
                continue
        elif filters and not any(f in relative.as_posix() for f in filters):
            continue
        paths.append(path)
    return paths


class TestRunner:
    """Runs fixture files against the compiler."""

    __test__ = False

    def __init__(self, settings: Settings, options: RunOptions | None = None) -> None:
        self.settings = settings
        self.options = options or RunOptions()
        self._pipeline = CompilationPipeline()

    # -- public API ----------------------------------------------------------

    def run_all(
        self,
        world: TestWorld,
        paths: list[Path],
        on_report: Callable[[FileReport], None] | None = None,
    ) -> list[FileReport]:
        """Run all ``paths`` on a thread pool, one cloned world per thread.

        Reports come back in the order of ``paths``.
        """
        pool = WorldPool(world)
        reports: list[FileReport] = []
        with ThreadPoolExecutor(max_workers=self.settings.workers) as executor:
            for report in executor.map(lambda path: self.run_file(pool.get(), path), paths):
                if on_report is not None:
                    on_report(report)
                reports.append(report)
        return reports

    def run_file(self, world: TestWorld, src_path: Path) -> FileReport:
        """Run every subtest of one file. Never raises."""
        report = FileReport(name=self.display_name(src_path))
        try:
            self._run_file(world, src_path, report)
        except Exception as err:
            logger.exception("Panicked in %s", report.name)
            report.ok = False
            report.panicked = True
            report.output.append(f"Panicked in {report.name}")
            report.output.append(f"  {type(err).__name__}: {err}")
        return report

    def display_name(self, src_path: Path) -> str:
        try:
            return src_path.relative_to(self.settings.fixture_dir).as_posix()
        except ValueError:
            return src_path.as_posix()

    def output_paths(self, src_path: Path) -> tuple[Path, Path, Path | None]:
        """PNG output, reference and optional PDF path for a fixture."""
        try:
            relative = src_path.relative_to(self.settings.fixture_dir)
        except ValueError:
            relative = Path(src_path.name)
        png_path = self.settings.png_dir / relative.with_suffix(".png")
        ref_path = self.settings.ref_dir / relative.with_suffix(".png")
        pdf_path = self.settings.pdf_dir / relative.with_suffix(".pdf") if self.options.pdf else None
        return png_path, ref_path, pdf_path

    # -- internal ------------------------------------------------------------

    def _run_file(self, world: TestWorld, src_path: Path, report: FileReport) -> None:
        test_file = load_test_file(src_path)
        rng = LinearShift()
        frames: list[Frame] = []
        compare_ever = False

        selected = None
        if self.options.subtest is not None:
            selected = self.options.subtest % len(test_file.parts)

        subtests = {subtest.index: subtest for subtest in test_file.subtests()}
        for i in range(len(test_file.parts)):
            if selected is not None and i != selected:
                report.output.append(f"  Skipped subtest {i}.")
                continue
            subtest = subtests.get(i)
            if subtest is None:
                continue
            logger.debug("Running subtest %d of %s", subtest.index, report.name)
            result = self._run_subtest(world, src_path, subtest, rng, report.output)
            report.ok &= result.ok
            compare_ever |= result.compare_ref
            frames.extend(result.frames)

        if not compare_ever:
            return

        png_path, ref_path, pdf_path = self.output_paths(src_path)
        if pdf_path is not None:
            export_pdf(frames, pdf_path, world.book)

        if world.print.frames:
            report.output.extend(f"{frame.dump()}\n" for frame in frames)

        canvas = render_pages(frames, world.book)
        outcome = check_reference(canvas, png_path, ref_path, self.options.update, bool(frames))
        report.updated |= outcome.updated
        if not outcome.ok:
            report.ok = False
            if outcome.message:
                report.output.append(outcome.message)

    def _run_subtest(
        self,
        world: TestWorld,
        src_path: Path,
        subtest: Subtest,
        rng: LinearShift,
        output: list[str],
    ) -> _SubtestResult:
        i = subtest.index
        id = world.set(src_path, subtest.text)
        source = world.source(id)
        if world.print.syntax:
            output.append(f"Syntax Tree:\n{source.root.dump()}\n")

        annotations_ok = True
        try:
            local_ref, expected = parse_metadata(source)
        except AnnotationError as err:
            # Keep checking the subtest with nothing expected.
            output.append(f"  Subtest {i} has an invalid annotation: {err}")
            annotations_ok = False
            local_ref, expected = None, []
        compare_ref = local_ref if local_ref is not None else subtest.compare_ref
        result = _SubtestResult(ok=annotations_ok, compare_ref=compare_ref)

        violation = check_spans(source.root)
        if violation is not None:
            output.extend(violation.describe())
            result.ok = False

        fuzz = fuzz_reparse(source.text, rng)
        for failure in fuzz.failures:
            output.extend(format_failure(i, failure))
        result.ok &= fuzz.ok

        if world.print.model:
            module = evaluate(world, source)
            output.append(f"Model:\n{module.content}\n")

        compiled = self._pipeline.compile(world)
        if compare_ref:
            result.frames = compiled.pages

        emitted = collect_diagnostics(world, id, compiled.diagnostics)
        matched = match_annotations(expected, emitted)
        if not matched.ok:
            output.append(f"  Subtest {i} does not match expected errors.")
            result.ok = False
            for annotation in matched.not_annotated:
                output.append("    Not annotated | " + format_annotation(source, subtest.line, annotation))
            for annotation in matched.not_emitted:
                output.append("    Not emitted   | " + format_annotation(source, subtest.line, annotation))
        return result


def summarize(reports: list[FileReport]) -> list[str]:
    """Closing lines: the pass count and, on failure, the update hint."""
    lines: list[str] = []
    passed = sum(report.ok for report in reports)
    if len(reports) > 1:
        lines.append(f"{passed} / {len(reports)} tests passed.")
    if passed < len(reports):
        lines.append(UPDATE_HINT)
    return lines
