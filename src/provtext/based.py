"""Based sequences: text views that remember where each character came from.

A based sequence is an immutable run of characters taken from one base text.
Every character either maps to an offset in that base text or is synthetic
(manufactured by processing, e.g. a replacement for an escape). Offsets are
always absolute positions in the base text, never relative to the view.

Classes:
  BasedSequence   : abstract interface shared by every view
  CharSubSequence : contiguous slice ``[start, end)`` of a base text
  PrefixedSequence: synthetic prefix followed by a real slice
  NullSequence    : the distinguished "no content" marker (``NULL_SEQUENCE``)

The flat multi-segment view lives in ``provtext.segmented``.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import TYPE_CHECKING, overload

import numpy as np
import numpy.typing as npt

from provtext.errors import SequenceIndexError
from provtext.types import Range

if TYPE_CHECKING:
    from provtext.segments import SegmentConsumer


type IndexOffsets = npt.NDArray[np.int64]


def check_sub_range(start: int, end: int, length: int) -> None:
    """Raise SequenceIndexError unless ``0 <= start <= end <= length``."""
    if start < 0 or start > length:
        raise SequenceIndexError(f"String index out of range: {start}")
    if end < 0 or end > length:
        raise SequenceIndexError(f"String index out of range: {end}")
    if end < start:
        raise SequenceIndexError(f"String index out of range: {end - start}")


class BasedSequence(ABC):
    """Read-only character sequence with per-character base offsets."""

    __slots__ = ()

    # A replaced sequence was assembled from non-contiguous pieces or carries
    # synthetic text. The merge builder never coalesces it with neighbours.
    is_replaced: bool = False
    is_null: bool = False

    @staticmethod
    def of(text: str) -> CharSubSequence:
        """Wrap *text* as the root base sequence of a new base."""
        return CharSubSequence.of_text(text)

    # -- abstract interface ------------------------------------------------

    @abstractmethod
    def __len__(self) -> int: ...

    @abstractmethod
    def char_at(self, index: int) -> str: ...

    @property
    @abstractmethod
    def start_offset(self) -> int:
        """First base offset covered, synthetic edge characters skipped."""

    @property
    @abstractmethod
    def end_offset(self) -> int:
        """Last base offset covered + 1, synthetic edge characters skipped."""

    @property
    @abstractmethod
    def base(self) -> object:
        """Identity object of the base text. Compare with ``is``."""

    @property
    @abstractmethod
    def base_sequence(self) -> BasedSequence:
        """The root sequence spanning the whole base text."""

    @abstractmethod
    def get_index_offset(self, index: int) -> int:
        """Base offset of the character at *index*, or -1 if synthetic."""

    @abstractmethod
    def sub_sequence(self, start: int, end: int) -> BasedSequence: ...

    @abstractmethod
    def base_sub_sequence(self, start: int, end: int) -> BasedSequence:
        """Contiguous slice of the base text in base-absolute coordinates."""

    @abstractmethod
    def add_segments(self, builder: SegmentConsumer) -> bool:
        """Describe this sequence to *builder*; return whether anything was emitted."""

    # -- derived behaviour ---------------------------------------------------

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    @property
    def source_range(self) -> Range:
        return Range.of(self.start_offset, self.end_offset)

    def index_offsets(self) -> IndexOffsets:
        """Forward offsets of every index, ``-1`` where synthetic."""
        length = len(self)
        return np.fromiter(
            (self.get_index_offset(i) for i in range(length)),
            dtype=np.int64,
            count=length,
        )

    @overload
    def __getitem__(self, key: int) -> str: ...

    @overload
    def __getitem__(self, key: slice) -> BasedSequence: ...

    def __getitem__(self, key: int | slice) -> str | BasedSequence:
        if isinstance(key, slice):
            if key.step is not None:
                raise TypeError("based sequences do not support slice steps")
            start = 0 if key.start is None else key.start
            end = len(self) if key.stop is None else key.stop
            return self.sub_sequence(start, end)
        return self.char_at(key)

    def __iter__(self) -> Iterator[str]:
        for i in range(len(self)):
            yield self.char_at(i)

    def __str__(self) -> str:
        return "".join(self.char_at(i) for i in range(len(self)))

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({str(self)!r}, "
            f"source_range=[{self.start_offset}, {self.end_offset}))"
        )

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (str, BasedSequence)):
            return str(self) == str(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(str(self))


class CharSubSequence(BasedSequence):
    """Contiguous slice of a base text.

    The root of a base (``BasedSequence.of(text)``) is the slice covering the
    whole text; every slice holds a reference to it.
    """

    __slots__ = ("_root", "_text", "_start", "_end")

    def __init__(
        self,
        root: CharSubSequence | None,
        text: str,
        start: int,
        end: int,
    ) -> None:
        if not 0 <= start <= end <= len(text):
            raise SequenceIndexError(
                f"String index out of range: [{start}, {end}) of 0, {len(text)}"
            )
        self._root = self if root is None else root
        self._text = text
        self._start = start
        self._end = end

    @classmethod
    def of_text(cls, text: str) -> CharSubSequence:
        return cls(None, text, 0, len(text))

    def __len__(self) -> int:
        return self._end - self._start

    def __str__(self) -> str:
        return self._text[self._start:self._end]

    def char_at(self, index: int) -> str:
        if index < 0 or index >= self._end - self._start:
            raise SequenceIndexError.for_index(index, len(self))
        return self._text[self._start + index]

    @property
    def start_offset(self) -> int:
        return self._start

    @property
    def end_offset(self) -> int:
        return self._end

    @property
    def base(self) -> object:
        return self._text

    @property
    def base_sequence(self) -> CharSubSequence:
        return self._root

    def get_index_offset(self, index: int) -> int:
        if index < 0 or index > len(self):
            raise SequenceIndexError.for_index(index, len(self))
        return self._start + index

    def index_offsets(self) -> IndexOffsets:
        return np.arange(self._start, self._end, dtype=np.int64)

    def sub_sequence(self, start: int, end: int) -> CharSubSequence:
        check_sub_range(start, end, len(self))
        if start == 0 and end == len(self):
            return self
        return CharSubSequence(
            self._root, self._text, self._start + start, self._start + end,
        )

    def base_sub_sequence(self, start: int, end: int) -> CharSubSequence:
        check_sub_range(start, end, len(self._text))
        if start == self._start and end == self._end:
            return self
        return CharSubSequence(self._root, self._text, start, end)

    def add_segments(self, builder: SegmentConsumer) -> bool:
        if self._start == self._end:
            return False
        builder.append_base(self._start, self._end)
        return True


class PrefixedSequence(BasedSequence):
    """Synthetic prefix text followed by a real sequence.

    The prefix has no base position. The real part (often an empty slice)
    anchors the prefix in the base text: start and end offsets are its own.
    """

    __slots__ = ("_prefix", "_anchor")

    is_replaced = True

    def __init__(self, prefix: str, anchor: BasedSequence) -> None:
        self._prefix = prefix
        self._anchor = anchor

    @classmethod
    def prefix_of(cls, prefix: str, anchor: BasedSequence) -> BasedSequence:
        if not prefix:
            return anchor
        return cls(prefix, anchor)

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def anchor(self) -> BasedSequence:
        return self._anchor

    def __len__(self) -> int:
        return len(self._prefix) + len(self._anchor)

    def __str__(self) -> str:
        return self._prefix + str(self._anchor)

    def char_at(self, index: int) -> str:
        if index < 0 or index >= len(self):
            raise SequenceIndexError.for_index(index, len(self))
        prefix_length = len(self._prefix)
        if index < prefix_length:
            return self._prefix[index]
        return self._anchor.char_at(index - prefix_length)

    @property
    def start_offset(self) -> int:
        return self._anchor.start_offset

    @property
    def end_offset(self) -> int:
        return self._anchor.end_offset

    @property
    def base(self) -> object:
        return self._anchor.base

    @property
    def base_sequence(self) -> BasedSequence:
        return self._anchor.base_sequence

    def get_index_offset(self, index: int) -> int:
        if index < 0 or index > len(self):
            raise SequenceIndexError.for_index(index, len(self))
        prefix_length = len(self._prefix)
        if index < prefix_length:
            return -1
        return self._anchor.get_index_offset(index - prefix_length)

    def index_offsets(self) -> IndexOffsets:
        return np.concatenate((
            np.full(len(self._prefix), -1, dtype=np.int64),
            self._anchor.index_offsets(),
        ))

    def sub_sequence(self, start: int, end: int) -> BasedSequence:
        check_sub_range(start, end, len(self))
        if start == 0 and end == len(self):
            return self
        prefix_length = len(self._prefix)
        if start >= prefix_length:
            return self._anchor.sub_sequence(start - prefix_length, end - prefix_length)
        if end <= prefix_length:
            return PrefixedSequence.prefix_of(
                self._prefix[start:end], self._anchor.sub_sequence(0, 0),
            )
        return PrefixedSequence.prefix_of(
            self._prefix[start:], self._anchor.sub_sequence(0, end - prefix_length),
        )

    def base_sub_sequence(self, start: int, end: int) -> BasedSequence:
        return self._anchor.base_sub_sequence(start, end)

    def add_segments(self, builder: SegmentConsumer) -> bool:
        builder.append_text(self._prefix)
        self._anchor.add_segments(builder)
        return True


_NULL_BASE = object()


class NullSequence(BasedSequence):
    """Absent content. Distinct from a zero-length slice of a real base."""

    __slots__ = ()

    is_null = True

    def __len__(self) -> int:
        return 0

    def __str__(self) -> str:
        return ""

    def __repr__(self) -> str:
        return "NULL_SEQUENCE"

    def char_at(self, index: int) -> str:
        raise SequenceIndexError.for_index(index, 0)

    @property
    def start_offset(self) -> int:
        return 0

    @property
    def end_offset(self) -> int:
        return 0

    @property
    def base(self) -> object:
        return _NULL_BASE

    @property
    def base_sequence(self) -> NullSequence:
        return self

    def get_index_offset(self, index: int) -> int:
        if index != 0:
            raise SequenceIndexError.for_index(index, 0)
        return 0

    def index_offsets(self) -> IndexOffsets:
        return np.empty(0, dtype=np.int64)

    def sub_sequence(self, start: int, end: int) -> NullSequence:
        check_sub_range(start, end, 0)
        return self

    def base_sub_sequence(self, start: int, end: int) -> NullSequence:
        check_sub_range(start, end, 0)
        return self

    def add_segments(self, builder: SegmentConsumer) -> bool:
        return False


NULL_SEQUENCE = NullSequence()
