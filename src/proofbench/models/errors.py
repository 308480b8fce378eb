"""Error annotations, expected or emitted, as comparable records."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from proofbench.syntax.source import ByteRange


class Annotation(BaseModel):
    """An error message attached to a byte range of a source.

    Expected annotations (from ``// Error:`` comments) and emitted compiler
    diagnostics share this type so the two compare by value.
    """

    model_config = ConfigDict(frozen=True)

    range: ByteRange
    message: str

    @property
    def start(self) -> int:
        return self.range.start
