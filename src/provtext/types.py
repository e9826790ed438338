"""Value types shared by every based sequence.

``Range`` is the index/offset pair returned by range lookups. ``BaseSlot`` and
``SyntheticSlot`` are the decoded form of one offset table entry: the table
itself stores synthetic references as negative integers, ``slot_at`` hands
callers the explicit variant instead.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Range:
    """Half-open integer range ``[start, end)``.

    Invariants (enforced in __post_init__):
        - end >= start
    """

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(
                f"Range.end ({self.end}) must be >= start ({self.start})"
            )

    @classmethod
    def of(cls, start: int, end: int) -> Range:
        return cls(start, end)

    @property
    def span(self) -> int:
        return self.end - self.start

    @property
    def is_empty(self) -> bool:
        return self.end == self.start

    def contains(self, index: int) -> bool:
        return self.start <= index < self.end


@dataclass(frozen=True, slots=True)
class BaseSlot:
    """Character copied verbatim from the base text at ``offset``."""

    offset: int


@dataclass(frozen=True, slots=True)
class SyntheticSlot:
    """Character with no base position, stored in the synthetic buffer."""

    index: int
    char: str


type Slot = BaseSlot | SyntheticSlot
