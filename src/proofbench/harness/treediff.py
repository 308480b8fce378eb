"""Structural comparison of syntax trees, ignoring span numbers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from proofbench.syntax.node import SyntaxNode


@dataclass(frozen=True)
class TreeMismatch:
    """One difference between two trees, addressed by child-index path."""

    path: str
    message: str
    expected: Any = None
    found: Any = None

    def __str__(self) -> str:
        where = self.path or "<root>"
        return f"{where}: {self.message} (expected {self.expected!r}, found {self.found!r})"


def diff_trees(expected: SyntaxNode, found: SyntaxNode, path: str = "") -> list[TreeMismatch]:
    """Compare two trees node by node and return all mismatches.

    Children are compared pairwise up to the shorter list, so a single
    insertion shows up as a length mismatch followed by shifted nodes.
    """
    diffs: list[TreeMismatch] = []

    if expected.kind != found.kind:
        diffs.append(TreeMismatch(path, "Kind mismatch", str(expected.kind), str(found.kind)))
        return diffs

    if expected.text != found.text:
        diffs.append(TreeMismatch(path, "Text mismatch", expected.text, found.text))
    if expected.message != found.message:
        diffs.append(TreeMismatch(path, "Message mismatch", expected.message, found.message))

    if len(expected.children) != len(found.children):
        diffs.append(
            TreeMismatch(
                path,
                "Child count mismatch",
                len(expected.children),
                len(found.children),
            )
        )

    for i, (left, right) in enumerate(zip(expected.children, found.children, strict=False)):
        diffs.extend(diff_trees(left, right, f"{path}/{i}"))
    return diffs
