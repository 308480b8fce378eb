"""Source files: text, syntax tree and line/column bookkeeping."""

from __future__ import annotations

from bisect import bisect_right
from pathlib import Path
from typing import NamedTuple

from proofbench.syntax.node import SyntaxNode
from proofbench.syntax.parser import parse
from proofbench.syntax.reparser import reparse

SourceId = int

# Id of sources that are not registered in any world.
DETACHED_SOURCE: SourceId = 0xFFFF


class ByteRange(NamedTuple):
    """Half-open range of UTF-8 byte offsets."""

    start: int
    end: int


def is_char_boundary(data: bytes, index: int) -> bool:
    """Whether ``index`` does not point into the middle of a UTF-8 sequence."""
    if index == 0 or index == len(data):
        return True
    if not 0 < index < len(data):
        return False
    return (data[index] & 0xC0) != 0x80


class Source:
    """A parsed source file that supports incremental edits."""

    def __init__(self, id: SourceId, path: Path, text: str) -> None:
        self.id = id
        self.path = path
        self._text = text
        self._bytes = text.encode("utf-8")
        self._root = parse(text)
        self._lines = _line_starts(self._bytes)

    @classmethod
    def detached(cls, text: str) -> Source:
        return cls(DETACHED_SOURCE, Path("<detached>"), text)

    @property
    def text(self) -> str:
        return self._text

    @property
    def root(self) -> SyntaxNode:
        return self._root

    @property
    def byte_len(self) -> int:
        return len(self._bytes)

    def replace(self, text: str) -> None:
        """Replace the whole text and parse it from scratch."""
        self._text = text
        self._bytes = text.encode("utf-8")
        self._root = parse(text)
        self._lines = _line_starts(self._bytes)

    def edit(self, replace: tuple[int, int], with_: str) -> None:
        """Replace the byte range ``replace`` with ``with_``, reparsing
        incrementally where possible.

        Raises ``ValueError`` if the range is out of bounds or splits a
        character.
        """
        start_byte, end_byte = replace
        if not 0 <= start_byte <= end_byte <= len(self._bytes):
            raise ValueError(f"edit range {start_byte}..{end_byte} out of bounds")
        if not (
            is_char_boundary(self._bytes, start_byte)
            and is_char_boundary(self._bytes, end_byte)
        ):
            raise ValueError(f"edit range {start_byte}..{end_byte} splits a character")

        start = len(self._bytes[:start_byte].decode("utf-8"))
        old_end = len(self._bytes[:end_byte].decode("utf-8"))
        text = self._text[:start] + with_ + self._text[old_end:]

        self._text = text
        self._bytes = text.encode("utf-8")
        self._lines = _line_starts(self._bytes)
        if not reparse(self._root, text, start, old_end, start + len(with_)):
            self._root = parse(text)

    # -- positions -----------------------------------------------------------

    def line_column_to_byte(self, line: int, column: int) -> int | None:
        """Byte offset of a zero-based ``(line, column)`` pair, columns
        counted in characters. The line's terminating newline is addressable.
        """
        if not 0 <= line < len(self._lines) or column < 0:
            return None
        start = self._lines[line]
        end = self._lines[line + 1] if line + 1 < len(self._lines) else len(self._bytes)
        chars = self._bytes[start:end].decode("utf-8")
        if column > len(chars):
            return None
        return start + len(chars[:column].encode("utf-8"))

    def byte_to_line(self, index: int) -> int | None:
        if not 0 <= index <= len(self._bytes):
            return None
        return bisect_right(self._lines, index) - 1

    def byte_to_column(self, index: int) -> int | None:
        line = self.byte_to_line(index)
        if line is None:
            return None
        try:
            return len(self._bytes[self._lines[line] : index].decode("utf-8"))
        except UnicodeDecodeError:
            return None

    def range(self, span: int) -> ByteRange | None:
        """Byte range of the node numbered ``span``."""
        return _find(self._root, span, 0)


def _line_starts(data: bytes) -> list[int]:
    return [0] + [i + 1 for i, byte in enumerate(data) if byte == 0x0A]


def _find(node: SyntaxNode, span: int, offset: int) -> ByteRange | None:
    if node.span == span:
        return ByteRange(offset, offset + node.byte_len)
    children = node.children
    for i, child in enumerate(children):
        following = children[i + 1].span if i + 1 < len(children) else None
        if child.span <= span and (following is None or span < following):
            return _find(child, span, offset)
        offset += child.byte_len
    return None
