"""Loading fixture files and splitting them into subtests."""

from __future__ import annotations

from pathlib import Path

from proofbench.models.fixture import TestFile

SEPARATOR = "\n---"


class FixtureError(Exception):
    """Raised when a fixture file cannot be read as UTF-8 text."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Failed to read {path}: {reason}")


def line_count(text: str) -> int:
    """Number of lines, where a trailing newline does not start a new line."""
    if not text:
        return 0
    newlines = text.count("\n")
    return newlines if text.endswith("\n") else newlines + 1


def lines_of(text: str) -> list[str]:
    """Split into lines, dropping one trailing carriage return per line."""
    return [line.removesuffix("\r") for line in text.split("\n")[: line_count(text)]]


def split_parts(text: str) -> list[str]:
    """Split on ``\\n---``, dropping one trailing carriage return per part."""
    return [part.removesuffix("\r") for part in text.split(SEPARATOR)]


def is_header(index: int, parts: list[str]) -> bool:
    """The first part is a header if more parts follow and it is all comments."""
    return (
        index == 0
        and len(parts) > 1
        and all(line.startswith("//") or line.isspace() or not line for line in lines_of(parts[0]))
    )


def parse_test_file(path: Path, text: str) -> TestFile:
    """Split ``text`` into parts and read the header directives."""
    parts = split_parts(text)
    has_header = is_header(0, parts)

    compare_ref = True
    if has_header:
        for line in lines_of(parts[0]):
            if line.startswith("// Ref: false"):
                compare_ref = False

    offsets: list[int] = []
    line = 0
    for part in parts:
        offsets.append(line)
        line += line_count(part) + 1

    return TestFile(
        path=path,
        text=text,
        parts=tuple(parts),
        has_header=has_header,
        compare_ref=compare_ref,
        lines=tuple(offsets),
    )


def load_test_file(path: Path) -> TestFile:
    """Read ``path`` as UTF-8 and parse it. Raises :class:`FixtureError`."""
    try:
        text = path.read_bytes().decode("utf-8")
    except UnicodeDecodeError as err:
        raise FixtureError(path, "file is not valid utf-8") from err
    except OSError as err:
        raise FixtureError(path, err.strerror or str(err)) from err
    return parse_test_file(path, text)
