"""Per-thread compilation worlds for parallel test execution."""

from __future__ import annotations

import threading

from proofbench.compiler.world import TestWorld


class WorldPool:
    """Hands every worker thread its own clone of a base world.

    Thread-safe.  Clones are made lazily on a thread's first request and
    reused for all files that thread runs afterwards, so sources edited by
    one file never leak into a file running concurrently.
    """

    def __init__(self, base: TestWorld) -> None:
        self._base = base
        self._lock = threading.Lock()
        self._local = threading.local()
        self._worlds: dict[int, TestWorld] = {}

    def get(self) -> TestWorld:
        """The calling thread's world."""
        world: TestWorld | None = getattr(self._local, "world", None)
        if world is not None:
            return world
        with self._lock:
            world = self._base.clone()
            self._worlds[threading.get_ident()] = world
        self._local.world = world
        return world

    @property
    def size(self) -> int:
        """Number of worlds handed out so far."""
        with self._lock:
            return len(self._worlds)
