"""Syntax tree nodes and span numbering.

Every node carries a span number. Numbers are assigned in pre-order and
spread over the available numeric range, so a subtree always occupies a
contiguous block that an incremental reparse can renumber in place without
touching its siblings.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

from proofbench.syntax.kind import SyntaxKind

# Span number that marks a node as not belonging to any numbered tree.
DETACHED = 1

# Numbers handed out to a freshly parsed root live in [FIRST, UPPER).
FIRST = 2
UPPER = 1 << 47


@dataclass
class SyntaxNode:
    """A node in the markup syntax tree.

    Leaves own text; inner nodes own children. Error nodes are leaves with a
    ``message`` (their text may be empty).
    """

    kind: SyntaxKind
    text: str = ""
    children: list[SyntaxNode] = field(default_factory=list)
    span: int = DETACHED
    message: str | None = None

    @classmethod
    def leaf(cls, kind: SyntaxKind, text: str) -> SyntaxNode:
        return cls(kind=kind, text=text)

    @classmethod
    def inner(cls, kind: SyntaxKind, children: list[SyntaxNode]) -> SyntaxNode:
        return cls(kind=kind, children=children)

    @classmethod
    def error(cls, text: str, message: str) -> SyntaxNode:
        return cls(kind=SyntaxKind.ERROR, text=text, message=message)

    @property
    def byte_len(self) -> int:
        """Length of the covered source text in UTF-8 bytes."""
        if not self.children:
            return len(self.text.encode("utf-8"))
        return sum(child.byte_len for child in self.children)

    @property
    def char_len(self) -> int:
        if not self.children:
            return len(self.text)
        return sum(child.char_len for child in self.children)

    def full_text(self) -> str:
        if not self.children:
            return self.text
        return "".join(child.full_text() for child in self.children)

    def descendants(self) -> int:
        """Number of nodes in this subtree, including the node itself."""
        return 1 + sum(child.descendants() for child in self.children)

    def errors(self) -> list[SyntaxNode]:
        """All error nodes of the subtree in document order."""
        if self.kind == SyntaxKind.ERROR:
            return [self]
        found: list[SyntaxNode] = []
        for child in self.children:
            found.extend(child.errors())
        return found

    def leaves(self) -> list[SyntaxNode]:
        """All leaf descendants in document order (may be the node itself)."""
        if not self.children:
            return [self]
        found: list[SyntaxNode] = []
        for child in self.children:
            found.extend(child.leaves())
        return found

    def synthesize(self, span: int) -> None:
        """Assign ``span`` to every node of the subtree."""
        for node in preorder([self]):
            node.span = span

    def dump(self, indent: int = 0) -> str:
        """Indented multi-line representation used in failure reports."""
        pad = "  " * indent
        head = f"{pad}{self.kind}"
        if self.span != DETACHED:
            head += f" @{self.span}"
        if self.kind == SyntaxKind.ERROR:
            head += f" ({self.message})"
        if not self.children:
            return f"{head}: {self.text!r}"
        lines = [f"{head}: {self.byte_len}"]
        lines.extend(child.dump(indent + 1) for child in self.children)
        return "\n".join(lines)


def preorder(nodes: Sequence[SyntaxNode]) -> Iterator[SyntaxNode]:
    """Iterate over the given subtrees in pre-order."""
    stack = list(reversed(nodes))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def numberize(nodes: Sequence[SyntaxNode], lo: int, hi: int) -> bool:
    """Number ``nodes`` (a run of siblings) within ``[lo, hi)``.

    Returns ``False`` without touching anything if the range is too small to
    give every node of the run its own number.
    """
    count = sum(node.descendants() for node in nodes)
    if count == 0:
        return True
    stride = (hi - lo) // count
    if stride < 1:
        return False
    number = lo
    for node in preorder(nodes):
        node.span = number
        number += stride
    return True
