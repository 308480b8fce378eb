"""Deterministic pseudo-random sequence for reproducible fuzzing."""

from __future__ import annotations

SEED = 0xACE5
_MASK = (1 << 64) - 1


class LinearShift:
    """A xorshift generator over a 64-bit state.

    Two instances produce the same sequence, so every run mutates the same
    way. Not suitable for anything but test input generation.
    """

    def __init__(self, seed: int = SEED) -> None:
        self.state = seed & _MASK

    def next(self) -> float:
        """The next value in ``[0, 1]``.

        The all-ones state maps to exactly ``1.0``; :meth:`pick` clamps it.
        """
        state = self.state
        state ^= state >> 3
        state ^= (state << 14) & _MASK
        state ^= state >> 28
        state ^= (state << 36) & _MASK
        state ^= state >> 52
        self.state = state
        return state / _MASK

    def pick(self, start: int, end: int) -> int:
        """An integer in ``[start, end)``, or ``start`` if the range is empty."""
        value = int(start + self.next() * (end - start))
        return min(value, end - 1) if end > start else start
