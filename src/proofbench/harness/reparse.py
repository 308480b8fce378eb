"""Differential fuzzing of the incremental reparser.

Each trial applies one mutation twice: incrementally to a parsed source and
by parsing the edited text from scratch. Both trees must agree once span
numbers are erased, and both must satisfy the span ordering invariants.
"""

from __future__ import annotations

import copy
import logging
import math
from dataclasses import dataclass, field
from enum import StrEnum

from proofbench.harness.rng import LinearShift
from proofbench.harness.spans import SpanViolation, check_spans
from proofbench.harness.treediff import TreeMismatch, diff_trees
from proofbench.syntax.node import DETACHED
from proofbench.syntax.source import ByteRange, Source, is_char_boundary

logger = logging.getLogger("proofbench.reparse")

# Fragments chosen to open, close or break syntactic constructs.
FRAGMENTS: tuple[str, ...] = (
    "[",
    "]",
    "{",
    "}",
    "(",
    ")",
    "#rect()",
    "a word",
    ", a: 1",
    "10.0",
    ":",
    "if i == 0 {true}",
    "for",
    "* hello *",
    "//",
    "/*",
    "\\u{12e4}",
    "```typst",
    " ",
    "trees",
    "\\",
    "$ a $",
    "2.",
    "-",
    "5",
)

# One bulk trial per this many bytes of input, rounded up.
BYTES_PER_TRIAL = 400


@dataclass(frozen=True)
class Mutation:
    """Replace ``range`` (UTF-8 byte offsets) with ``replacement``."""

    range: ByteRange
    replacement: str


class FailureKind(StrEnum):
    TREE_LENGTH = "tree-length"
    SPAN_ORDER = "span-order"
    REPARSE_DIVERGENCE = "reparse-divergence"


@dataclass(frozen=True)
class TrialFailure:
    kind: FailureKind
    mutation: Mutation
    tree_len: int = 0
    text_len: int = 0
    violation: SpanViolation | None = None
    expected_dump: str = ""
    found_dump: str = ""
    mismatches: tuple[TreeMismatch, ...] = ()
    edited_text: str = ""


@dataclass
class ReparseReport:
    """Outcome of fuzzing one subtest."""

    trials: int = 0
    skipped: int = 0
    mutations: list[Mutation] = field(default_factory=list)
    failures: list[TrialFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def run_trial(text: str, mutation: Mutation) -> list[TrialFailure]:
    """Apply ``mutation`` incrementally and from scratch and compare."""
    failures: list[TrialFailure] = []

    incremental = Source.detached(text)
    expected_len = len(text.encode("utf-8"))
    if incremental.root.byte_len != expected_len:
        return [
            TrialFailure(
                FailureKind.TREE_LENGTH,
                mutation,
                tree_len=incremental.root.byte_len,
                text_len=expected_len,
            )
        ]

    incremental.edit(mutation.range, mutation.replacement)
    edited = incremental.text
    edited_len = len(edited.encode("utf-8"))
    if incremental.root.byte_len != edited_len:
        return [
            TrialFailure(
                FailureKind.TREE_LENGTH,
                mutation,
                tree_len=incremental.root.byte_len,
                text_len=edited_len,
            )
        ]

    reference = Source.detached(edited)
    ref_root = copy.deepcopy(reference.root)
    incr_root = copy.deepcopy(incremental.root)

    for root in (ref_root, incr_root):
        violation = check_spans(root)
        if violation is not None:
            failures.append(TrialFailure(FailureKind.SPAN_ORDER, mutation, violation=violation))
            break

    ref_root.synthesize(DETACHED)
    incr_root.synthesize(DETACHED)
    if ref_root != incr_root:
        failures.append(
            TrialFailure(
                FailureKind.REPARSE_DIVERGENCE,
                mutation,
                expected_dump=ref_root.dump(),
                found_dump=incr_root.dump(),
                mismatches=tuple(diff_trees(ref_root, incr_root)),
                edited_text=edited,
            )
        )
    return failures


def fuzz_reparse(text: str, rng: LinearShift) -> ReparseReport:
    """Run the bulk trials and the targeted leaf-boundary trial on ``text``."""
    report = ReparseReport()
    data = text.encode("utf-8")
    length = len(data)

    for _ in range(math.ceil(length / BYTES_PER_TRIAL)):
        fragment = FRAGMENTS[rng.pick(0, len(FRAGMENTS))]
        start = rng.pick(0, length)
        end = rng.pick(start, length)
        if not (is_char_boundary(data, start) and is_char_boundary(data, end)):
            logger.debug("Skipping trial at %d-%d: not a character boundary", start, end)
            report.skipped += 1
            continue
        mutation = Mutation(ByteRange(start, end), fragment)
        report.trials += 1
        report.mutations.append(mutation)
        report.failures.extend(run_trial(text, mutation))

    # Insert right at the start of a random leaf, where token boundaries
    # are most likely to shift.
    source = Source.detached(text)
    leaves = source.root.leaves()
    leaf = leaves[rng.pick(0, len(leaves))]
    leaf_range = source.range(leaf.span)
    start = leaf_range.start if leaf_range is not None else 0
    fragment = FRAGMENTS[rng.pick(0, len(FRAGMENTS))]
    mutation = Mutation(ByteRange(start, start), fragment)
    report.trials += 1
    report.mutations.append(mutation)
    report.failures.extend(run_trial(text, mutation))
    return report


def format_failure(index: int, failure: TrialFailure) -> list[str]:
    """Render one failure as report lines for subtest ``index``."""
    if failure.kind == FailureKind.TREE_LENGTH:
        return [
            f"    Subtest {index} tree length {failure.tree_len} does not match "
            f"string length {failure.text_len} ❌"
        ]
    if failure.kind == FailureKind.SPAN_ORDER:
        assert failure.violation is not None
        return failure.violation.describe()

    start, end = failure.mutation.range
    lines = [
        f"    Subtest {index} reparse differs from clean parse when inserting "
        f"'{failure.mutation.replacement}' at {start}-{end} ❌",
        "",
        "    Expected reference tree:",
        failure.expected_dump,
        "",
        "    Found incremental tree:",
        failure.found_dump,
    ]
    if failure.mismatches:
        lines.append("    Differences:")
        lines.extend(f"      {mismatch}" for mismatch in failure.mismatches)
    lines.append(f"    Full source ({len(failure.edited_text.encode('utf-8'))}):")
    lines.append(repr(failure.edited_text))
    return lines
