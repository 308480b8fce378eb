"""Test files and the subtests they are split into."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict


class Subtest(BaseModel):
    """One independently compiled fragment of a test file."""

    model_config = ConfigDict(frozen=True)

    index: int
    text: str
    line: int  # zero-based line of the fragment's first line within the file
    compare_ref: bool = True  # file default; a local ``// Ref:`` overrides it


class TestFile(BaseModel):
    """A fixture file: optional header plus ``---``-separated subtests."""

    __test__ = False
    model_config = ConfigDict(frozen=True)

    path: Path
    text: str
    parts: tuple[str, ...]
    has_header: bool = False
    compare_ref: bool = True
    lines: tuple[int, ...] = ()  # line offset of every part

    @property
    def name(self) -> str:
        return self.path.name

    def subtests(self) -> list[Subtest]:
        """All non-header parts, in file order."""
        return [
            Subtest(index=i, text=part, line=self.lines[i], compare_ref=self.compare_ref)
            for i, part in enumerate(self.parts)
            if not (i == 0 and self.has_header)
        ]
