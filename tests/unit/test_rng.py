"""Tests for the deterministic sequence generator."""

from __future__ import annotations

import pytest

from proofbench.harness.rng import SEED, LinearShift


class TestLinearShift:
    def test_default_seed(self) -> None:
        assert LinearShift().state == SEED == 0xACE5

    def test_first_state(self) -> None:
        rng = LinearShift()
        rng.next()
        assert rng.state == 0xE5EF97B02E5EF725

    def test_sequences_are_reproducible(self) -> None:
        a, b = LinearShift(), LinearShift()
        assert [a.next() for _ in range(50)] == [b.next() for _ in range(50)]

    def test_values_in_unit_interval(self) -> None:
        rng = LinearShift()
        values = [rng.next() for _ in range(1000)]
        assert all(0.0 <= v <= 1.0 for v in values)
        assert len(set(values)) > 990

    def test_state_stays_within_64_bits(self) -> None:
        rng = LinearShift()
        for _ in range(1000):
            rng.next()
            assert 0 <= rng.state < 1 << 64

    def test_pick_range(self) -> None:
        rng = LinearShift()
        picks = [rng.pick(3, 7) for _ in range(200)]
        assert set(picks) <= {3, 4, 5, 6}
        assert rng.pick(5, 5) == 5

    def test_pick_never_reaches_end(self, monkeypatch: pytest.MonkeyPatch) -> None:
        rng = LinearShift()
        monkeypatch.setattr(rng, "next", lambda: 1.0)
        assert rng.pick(0, 5) == 4
        assert rng.pick(7, 8) == 7
        assert rng.pick(3, 3) == 3
