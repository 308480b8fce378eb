"""The compilation environment: sources, files, library and fonts."""

from __future__ import annotations

import copy
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING

from PIL import ImageFont

from proofbench.compiler.errors import FileError
from proofbench.compiler.library import Library
from proofbench.syntax.source import DETACHED_SOURCE, Source, SourceId

if TYPE_CHECKING:
    from proofbench.settings import Settings

logger = logging.getLogger("proofbench.world")

_FONT_SUFFIXES = (".ttf", ".otf")

TEST_DATE = date(1970, 1, 1)

Font = ImageFont.FreeTypeFont | ImageFont.ImageFont


@dataclass(frozen=True)
class PrintConfig:
    """Which debug dumps to print for each subtest."""

    syntax: bool = False
    model: bool = False
    frames: bool = False


@dataclass(frozen=True)
class FontBook:
    """The fonts available to the renderer.

    Without any font files, Pillow's bundled default font is used.
    """

    paths: tuple[Path, ...] = ()

    @classmethod
    def search(cls, directory: Path | None) -> FontBook:
        if directory is None or not directory.is_dir():
            return cls()
        paths = sorted(p for p in directory.rglob("*") if p.suffix.lower() in _FONT_SUFFIXES)
        logger.debug("Found %d font(s) in %s", len(paths), directory)
        return cls(paths=tuple(paths))

    def font(self, size: int) -> Font:
        """A font at ``size`` pixels."""
        return _load_font(self.paths[0] if self.paths else None, max(size, 1))


@lru_cache(maxsize=64)
def _load_font(path: Path | None, size: int) -> Font:
    if path is None:
        return ImageFont.load_default(size)
    return ImageFont.truetype(str(path), size)


class World(ABC):
    """Everything the compiler may access while compiling a document."""

    @property
    @abstractmethod
    def root(self) -> Path:
        """Directory that relative paths are resolved against."""
        ...

    @property
    @abstractmethod
    def library(self) -> Library: ...

    @property
    @abstractmethod
    def book(self) -> FontBook: ...

    @abstractmethod
    def main(self) -> Source:
        """The source being compiled."""
        ...

    @abstractmethod
    def source(self, id: SourceId) -> Source: ...

    @abstractmethod
    def resolve(self, path: Path) -> SourceId:
        """Load the file at ``path`` as a source. Raises :class:`FileError`."""
        ...

    def today(self) -> date:
        """The current date as seen by the document."""
        return date.today()


@dataclass
class _PathSlot:
    """Cached outcome of loading one path."""

    source: SourceId | None = None
    error: FileError | None = None


class TestWorld(World):
    """A world backed by the file system, reused across test files.

    Cloning produces an independent world that shares only the immutable
    library and font book.
    """

    __test__ = False

    def __init__(
        self,
        root: Path,
        library: Library,
        book: FontBook,
        print: PrintConfig | None = None,
    ) -> None:
        self._root = root
        self._library = library
        self._book = book
        self.print = print or PrintConfig()
        self._slots: dict[Path, _PathSlot] = {}
        self._sources: list[Source] = []
        self._main: SourceId = DETACHED_SOURCE

    @classmethod
    def new(cls, settings: Settings, print: PrintConfig | None = None) -> TestWorld:
        return cls(
            root=settings.asset_dir,
            library=Library.build(),
            book=FontBook.search(settings.font_dir),
            print=print,
        )

    @property
    def root(self) -> Path:
        return self._root

    @property
    def library(self) -> Library:
        return self._library

    @property
    def book(self) -> FontBook:
        return self._book

    def main(self) -> Source:
        if self._main == DETACHED_SOURCE:
            raise LookupError("no main source set")
        return self._sources[self._main]

    def source(self, id: SourceId) -> Source:
        return self._sources[id]

    def set(self, path: Path, text: str) -> SourceId:
        """Make ``text`` the main source under ``path``."""
        slot = self._slots.setdefault(self._normalize(path), _PathSlot())
        if slot.source is not None:
            self._sources[slot.source].replace(text)
        else:
            slot.source = self._insert(path, text)
            slot.error = None
        self._main = slot.source
        return slot.source

    def resolve(self, path: Path) -> SourceId:
        path = self._normalize(path)
        slot = self._slots.get(path)
        if slot is None:
            slot = self._slots[path] = _PathSlot()
            try:
                slot.source = self._insert(path, self._read(path))
            except FileError as err:
                slot.error = err
        if slot.error is not None:
            raise slot.error
        assert slot.source is not None
        return slot.source

    def today(self) -> date:
        # Pinned so rendered output does not depend on the run date.
        return TEST_DATE

    def clone(self) -> TestWorld:
        world = TestWorld(self._root, self._library, self._book, self.print)
        world._slots = {path: copy.copy(slot) for path, slot in self._slots.items()}
        world._sources = copy.deepcopy(self._sources)
        world._main = self._main
        return world

    def _normalize(self, path: Path) -> Path:
        if not path.is_absolute():
            path = self._root / path
        return Path(os.path.normpath(path))

    def _insert(self, path: Path, text: str) -> SourceId:
        id = len(self._sources)
        self._sources.append(Source(id, path, text))
        return id

    def _read(self, path: Path) -> str:
        if path.is_dir():
            raise FileError.is_directory()
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            raise FileError.not_found(self._display(path)) from None
        except OSError as err:
            raise FileError.other(self._display(path), err.strerror or str(err)) from err
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            raise FileError.invalid_utf8() from None

    def _display(self, path: Path) -> Path:
        """Show paths inside the root as rooted paths, independent of checkout."""
        try:
            return Path("/") / path.relative_to(os.path.normpath(self._root))
        except ValueError:
            return path
