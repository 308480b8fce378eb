"""Incremental reparsing of top-level markup."""

from __future__ import annotations

from proofbench.syntax.node import FIRST, UPPER, SyntaxNode, numberize
from proofbench.syntax.parser import Parser

# How many untouched top-level nodes in front of an edit are reparsed as
# well. A node may look up to three characters past its own end, and every
# top-level node is at least one character long.
_LOOKBEHIND = 3


def reparse(root: SyntaxNode, text: str, start: int, old_end: int, new_end: int) -> bool:
    """Update ``root`` in place after ``text[start:new_end]`` replaced the old
    ``[start, old_end)`` range. Offsets are in characters.

    Only the affected run of top-level nodes is reparsed; parsing stops as
    soon as it lands on the (shifted) start of an old node that lies behind
    the edit, and every node from there on is kept together with its span.
    Returns ``False`` when the tree cannot be patched and needs a full parse.
    """
    children = root.children
    if not children:
        return False

    offsets: list[int] = []
    position = 0
    for child in children:
        offsets.append(position)
        position += child.char_len

    touched = next(
        (i for i, child in enumerate(children) if offsets[i] + child.char_len >= start),
        len(children) - 1,
    )
    first = max(touched - _LOOKBEHIND, 0)

    delta = new_end - old_end
    anchors = {
        offsets[j] + delta: j
        for j in range(first + 1, len(children))
        if offsets[j] >= old_end
    }

    parser = Parser(text, offsets[first])
    replacement: list[SyntaxNode] = []
    end = len(children)
    while True:
        if parser.cursor in anchors:
            end = anchors[parser.cursor]
            break
        if parser.done:
            break
        replacement.append(parser.markup_node(frozenset()))

    lo = children[first].span
    hi = children[end].span if end < len(children) else UPPER
    children[first:end] = replacement
    if not numberize(replacement, lo, hi):
        numberize([root], FIRST, UPPER)
    return True
