"""Tests for error annotations and their matching against diagnostics."""

from __future__ import annotations

import pytest

from proofbench.compiler.errors import SourceDiagnostic
from proofbench.compiler.pipeline import CompilationPipeline
from proofbench.compiler.world import TestWorld
from proofbench.harness.annotations import (
    AnnotationError,
    collect_diagnostics,
    format_annotation,
    match_annotations,
    parse_metadata,
)
from proofbench.models.errors import Annotation
from proofbench.settings import Settings
from proofbench.syntax import ByteRange, Source
from tests.conftest import PAGE_TOO_SMALL


def ann(start: int, end: int, message: str) -> Annotation:
    return Annotation(range=ByteRange(start, end), message=message)


class TestParseMetadata:
    def test_line_column_range(self) -> None:
        compare_ref, annotations = parse_metadata(Source.detached(PAGE_TOO_SMALL))
        assert compare_ref is None
        assert annotations == [ann(34, 56, "page too small")]

    def test_bare_column_is_on_target_line(self) -> None:
        text = "// Error: 2-4 unknown variable: ab\n#ab"
        _, annotations = parse_metadata(Source.detached(text))
        # line 1 starts at byte 35
        assert annotations == [ann(36, 38, "unknown variable: ab")]

    def test_comment_run_shifts_target_line(self) -> None:
        text = "// Error: 1:1 first\n// Error: 1:1 second\nx"
        _, annotations = parse_metadata(Source.detached(text))
        target = text.index("x")
        assert annotations == [ann(target, target, "first"), ann(target, target, "second")]

    def test_line_delta(self) -> None:
        text = "// Error: 2:1-2:2 msg\na\nb"
        _, annotations = parse_metadata(Source.detached(text))
        start = text.index("b")
        assert annotations == [ann(start, start + 1, "msg")]

    def test_ref_override(self) -> None:
        assert parse_metadata(Source.detached("// Ref: false\nx"))[0] is False
        assert parse_metadata(Source.detached("// Ref: true\nx"))[0] is True

    def test_lines_are_trimmed(self) -> None:
        text = "   // Error: 1:1-1:2 msg   \nx"
        _, annotations = parse_metadata(Source.detached(text))
        assert annotations[0].message == "msg"

    @pytest.mark.parametrize(
        "text",
        [
            "// Error: x message\nab",
            "// Error: 0:1 message\nab",
            "// Error: 9:1 message\nab",
        ],
    )
    def test_malformed(self, text: str) -> None:
        with pytest.raises(AnnotationError):
            parse_metadata(Source.detached(text))


class TestMatch:
    def test_equal_sets_in_any_order(self) -> None:
        a, b = ann(1, 2, "a"), ann(5, 6, "b")
        report = match_annotations([b, a], [a, b])
        assert report.ok
        assert report.not_annotated == [] and report.not_emitted == []

    def test_message_difference(self) -> None:
        report = match_annotations([ann(1, 2, "expected")], [ann(1, 2, "found")])
        assert not report.ok
        assert report.not_annotated == [ann(1, 2, "found")]
        assert report.not_emitted == [ann(1, 2, "expected")]

    def test_duplicate_counts_differ(self) -> None:
        a = ann(1, 2, "a")
        report = match_annotations([a], [a, a])
        assert not report.ok


class TestCollectDiagnostics:
    def test_filters_other_sources_and_normalizes_slashes(self, world: TestWorld, settings: Settings) -> None:
        id = world.set(settings.fixture_dir / "a.pbt", "abc")
        other = world.set(settings.fixture_dir / "b.pbt", "xyz")
        root_span = world.source(id).root.children[0].span
        diagnostics = [
            SourceDiagnostic(id, root_span, "file not found (searched at a\\b.pbt)"),
            SourceDiagnostic(other, world.source(other).root.span, "elsewhere"),
        ]
        emitted = collect_diagnostics(world, id, diagnostics)
        assert emitted == [ann(0, 3, "file not found (searched at a/b.pbt)")]


class TestPageTooSmall:
    def test_annotation_matches_emitted_error(self, world: TestWorld, settings: Settings) -> None:
        id = world.set(settings.fixture_dir / "page.pbt", PAGE_TOO_SMALL)
        _, expected = parse_metadata(world.source(id))
        result = CompilationPipeline().compile(world)
        assert result.pages == []
        emitted = collect_diagnostics(world, id, result.diagnostics)
        assert match_annotations(expected, emitted).ok


class TestFormat:
    def test_one_based_with_line_offset(self) -> None:
        source = Source.detached(PAGE_TOO_SMALL)
        line = format_annotation(source, 3, ann(34, 56, "page too small"))
        assert line == "Error: 5:1-5:23: page too small"
