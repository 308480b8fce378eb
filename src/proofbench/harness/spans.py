"""Checks that span numbers are ordered the way incremental reparsing
relies on: every node's span lies within the range its parent hands down,
children are numbered after their parent and before their next sibling.
"""

from __future__ import annotations

from dataclasses import dataclass

from proofbench.syntax.node import SyntaxNode

FULL_RANGE = (0, (1 << 64) - 1)


@dataclass(frozen=True)
class SpanViolation:
    """The first node found outside its permitted span range."""

    node: SyntaxNode
    span: int
    within: tuple[int, int]

    def describe(self) -> list[str]:
        lo, hi = self.within
        lines = [f"    Node: {self.node.dump()}"]
        lines.append(f"    Wrong span order: {self.span} not in {lo}..{hi} ❌")
        return lines


def check_spans(root: SyntaxNode, within: tuple[int, int] = FULL_RANGE) -> SpanViolation | None:
    """Return the first span violation below ``root``, or ``None``."""
    lo, hi = within
    if not lo <= root.span < hi:
        return SpanViolation(root, root.span, within)

    start = root.span + 1
    children = root.children
    for i, child in enumerate(children):
        end = children[i + 1].span if i + 1 < len(children) else hi
        violation = check_spans(child, (start, end))
        if violation is not None:
            return violation
        start = end
    return None
