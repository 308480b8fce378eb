"""Unit tests for WorldPool."""

from __future__ import annotations

import threading

from proofbench.compiler.world import TestWorld
from proofbench.harness.pool import WorldPool
from proofbench.settings import Settings


class TestWorldPool:
    def test_same_thread_reuses_world(self, world: TestWorld) -> None:
        pool = WorldPool(world)
        assert pool.get() is pool.get()
        assert pool.size == 1

    def test_world_is_a_clone(self, world: TestWorld) -> None:
        pool = WorldPool(world)
        assert pool.get() is not world
        assert pool.get().library is world.library


class TestThreadSafety:
    def test_one_world_per_thread(self, world: TestWorld) -> None:
        pool = WorldPool(world)
        barrier = threading.Barrier(8)
        seen: list[TestWorld] = []
        lock = threading.Lock()

        def work() -> None:
            got = pool.get()
            barrier.wait()
            with lock:
                seen.append(got)

        threads = [threading.Thread(target=work) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len({id(w) for w in seen}) == 8
        assert pool.size == 8


class TestIsolation:
    def test_sources_are_independent(self, world: TestWorld, settings: Settings) -> None:
        """Sources set in one thread's world are not visible in another."""
        path = settings.fixture_dir / "a.pbt"
        pool = WorldPool(world)
        mine = pool.get()
        mine.set(path, "mine")

        result: list[TestWorld] = []
        thread = threading.Thread(target=lambda: result.append(pool.get()))
        thread.start()
        thread.join()

        other = result[0]
        other.set(path, "theirs")
        assert mine.main().text == "mine"
        assert other.main().text == "theirs"
