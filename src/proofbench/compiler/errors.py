"""Compiler diagnostics and failure types."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from proofbench.syntax.source import ByteRange, SourceId

if TYPE_CHECKING:
    from proofbench.compiler.world import World


@dataclass(frozen=True)
class SourceDiagnostic:
    """An error reported by the compiler, attached to a span of a source."""

    source: SourceId
    span: int
    message: str

    def range(self, world: World) -> ByteRange | None:
        """Resolve the span to a byte range within its source."""
        return world.source(self.source).range(self.span)


class EvalError(Exception):
    """Raised while evaluating an expression; becomes a diagnostic."""

    def __init__(self, span: int, message: str) -> None:
        self.span = span
        self.message = message
        super().__init__(message)


class FileError(Exception):
    """Raised when a world cannot provide a file."""

    @classmethod
    def not_found(cls, path: Path) -> FileError:
        return cls(f"file not found (searched at {path})")

    @classmethod
    def is_directory(cls) -> FileError:
        return cls("failed to load file (is a directory)")

    @classmethod
    def invalid_utf8(cls) -> FileError:
        return cls("file is not valid utf-8")

    @classmethod
    def other(cls, path: Path, reason: str) -> FileError:
        return cls(f"failed to load file {path} ({reason})")


class OverlargeFrameError(Exception):
    """Raised when a page exceeds the physical size ceiling.

    Signals runaway layout rather than a cosmetic difference; never treated
    as a soft image mismatch.
    """

    def __init__(self, width: float, height: float) -> None:
        self.width = width
        self.height = height
        super().__init__(f"overlarge frame: {width:g}pt x {height:g}pt")
