"""Exception types for based sequences.

Two families, deliberately distinct:

- ``SequenceIndexError``: an index or offset argument outside its documented
  bound. Raised at the call, never clamped.
- ``SegmentInvariantError``: a caller handed the merge builder segments that
  break its contract (different base texts, or out of source order). These
  are programming errors and subclass ``AssertionError`` so they are never
  mistaken for recoverable conditions.

A character without a source position is NOT an error: offset lookups return
``-1`` for it.
"""
from __future__ import annotations


class SequenceIndexError(IndexError):
    """Raised when an index is outside the bounds of a sequence."""

    @classmethod
    def for_index(cls, index: int, length: int) -> SequenceIndexError:
        return cls(f"String index: {index} out of range: 0, {length}")


class SegmentInvariantError(AssertionError):
    """Raised when segments supplied to a merge violate its preconditions."""


class SegmentBaseMismatchError(SegmentInvariantError):
    """Segments do not all come from the same base text."""


class SegmentOrderError(SegmentInvariantError):
    """Segments are not in increasing base offset order."""


class SettingsError(ValueError):
    """Raised when view settings hold an unsupported value."""


class SegmentFormatError(ValueError):
    """Raised when a serialized segment description is malformed."""
