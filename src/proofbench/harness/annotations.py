"""Expected-error annotations and their comparison with emitted diagnostics.

A subtest declares the errors it expects with comment lines::

    // Error: 1:2-1:5 expected expression
    #set page(..)

Positions are one-based ``line:column`` pairs counted from the first line
after the run of comments, or a bare ``column`` on that line.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from proofbench.compiler.errors import SourceDiagnostic
from proofbench.compiler.world import World
from proofbench.harness.fixtures import lines_of
from proofbench.models.errors import Annotation
from proofbench.syntax.scanner import Scanner
from proofbench.syntax.source import ByteRange, Source, SourceId

logger = logging.getLogger("proofbench.annotations")

ERROR_PREFIX = "// Error: "


class AnnotationError(ValueError):
    """Raised for a malformed ``// Error:`` line."""

    def __init__(self, line: int, text: str, reason: str) -> None:
        self.line = line
        self.text = text
        super().__init__(f"Invalid annotation on line {line + 1} ({reason}): {text}")


@dataclass
class AnnotationReport:
    """Result of matching expected against emitted errors."""

    matches: bool = True
    not_annotated: list[Annotation] = field(default_factory=list)
    not_emitted: list[Annotation] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.matches


def parse_metadata(source: Source) -> tuple[bool | None, list[Annotation]]:
    """Read the ``// Ref:`` override and the ``// Error:`` annotations."""
    compare_ref: bool | None = None
    annotations: list[Annotation] = []

    lines = [line.strip() for line in lines_of(source.text)]
    for i, line in enumerate(lines):
        if line.startswith("// Ref: false"):
            compare_ref = False
        if line.startswith("// Ref: true"):
            compare_ref = True

        if not line.startswith(ERROR_PREFIX):
            continue

        comments = 0
        for following in lines[i:]:
            if not following.startswith("//"):
                break
            comments += 1

        s = Scanner(line[len(ERROR_PREFIX) :])
        start = _position(source, s, i, comments, line)
        end = _position(source, s, i, comments, line) if s.eat_if("-") else start
        annotations.append(Annotation(range=ByteRange(start, end), message=s.after().strip()))

    return compare_ref, annotations


def _number(s: Scanner, i: int, line: str) -> int:
    digits = s.eat_while(str.isdigit)
    if not digits:
        raise AnnotationError(i, line, "expected a number")
    value = int(digits)
    if value < 1:
        raise AnnotationError(i, line, "positions are one-based")
    return value - 1


def _position(source: Source, s: Scanner, i: int, comments: int, line: str) -> int:
    first = _number(s, i, line)
    if s.eat_if(":"):
        delta, column = first, _number(s, i, line)
    else:
        delta, column = 0, first
    offset = source.line_column_to_byte(i + comments + delta, column)
    if offset is None:
        raise AnnotationError(i, line, "position out of range")
    return offset


def collect_diagnostics(
    world: World,
    source_id: SourceId,
    diagnostics: Iterable[SourceDiagnostic],
) -> list[Annotation]:
    """Turn the diagnostics reported for ``source_id`` into annotations.

    Diagnostics of other sources are dropped. Backslashes become forward
    slashes so that paths in messages do not depend on the platform.
    """
    emitted: list[Annotation] = []
    for diagnostic in diagnostics:
        if diagnostic.source != source_id:
            continue
        range_ = diagnostic.range(world)
        if range_ is None:
            logger.warning("Diagnostic %r has no resolvable span", diagnostic.message)
            range_ = ByteRange(0, 0)
        emitted.append(Annotation(range=range_, message=diagnostic.message.replace("\\", "/")))
    return emitted


def match_annotations(expected: list[Annotation], emitted: list[Annotation]) -> AnnotationReport:
    """Compare both sets after a stable sort by start offset."""
    expected = sorted(expected, key=lambda a: a.start)
    emitted = sorted(emitted, key=lambda a: a.start)
    report = AnnotationReport()
    if expected == emitted:
        return report
    report.matches = False
    report.not_annotated = [a for a in emitted if a not in expected]
    report.not_emitted = [a for a in expected if a not in emitted]
    return report


def format_annotation(source: Source, line_offset: int, annotation: Annotation) -> str:
    """Render ``Error: L:C-L:C: message`` in one-based file coordinates."""
    start, end = annotation.range
    start_line = 1 + line_offset + (source.byte_to_line(start) or 0)
    start_col = 1 + (source.byte_to_column(start) or 0)
    end_line = 1 + line_offset + (source.byte_to_line(end) or 0)
    end_col = 1 + (source.byte_to_column(end) or 0)
    return f"Error: {start_line}:{start_col}-{end_line}:{end_col}: {annotation.message}"
