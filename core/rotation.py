"""
Explicit counter state for the desk's round-robin and alternation policies.

Services take these as constructor arguments so the rotation can be seeded,
shared or inspected from tests instead of living in hidden instance fields.
"""

from __future__ import annotations

from typing import Generic, Sequence, Tuple, TypeVar

T = TypeVar("T")


class SequenceCounter:
    """Monotonic integer counter; ``advance`` returns the value before bumping."""

    def __init__(self, start: int = 0) -> None:
        self.value = int(start)

    def advance(self) -> int:
        current = self.value
        self.value += 1
        return current

    def __repr__(self) -> str:
        return f"SequenceCounter(value={self.value})"


class RoundRobin(Generic[T]):
    """Cycle through a fixed list; the index wraps modulo the list length."""

    def __init__(self, items: Sequence[T], start: int = 0) -> None:
        if not items:
            raise ValueError("RoundRobin needs at least one item")
        self.items: Tuple[T, ...] = tuple(items)
        self.index = int(start) % len(self.items)

    def next(self) -> Tuple[int, T]:
        """Return (index, item) for the current slot and move to the next one."""
        index = self.index
        item = self.items[index]
        self.index = (index + 1) % len(self.items)
        return index, item

    def __len__(self) -> int:
        return len(self.items)
