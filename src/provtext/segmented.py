"""Segmented sequences: many segments of one base text merged into one view.

``SegmentedSequence.of`` takes an ordered list of based sequences from the
same base text and builds a single flat view over their concatenation:

1. Skip ``None``/null entries; check every entry shares the first one's base.
2. Coalesce runs of non-replaced segments that are adjacent in the base
   (``prev.end_offset == next.start_offset``) into one slice.
3. One unit left: return it unchanged. None left: return ``NULL_SEQUENCE``.
4. Otherwise build one offset table for all units. A slot holds the base
   offset of its character; characters with no base offset are appended to
   a shared synthetic buffer and their slot holds ``~buffer_index`` (always
   negative).

The offset table and synthetic buffer are written once here and never again.
``sub_sequence`` creates windows over the same table without copying.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable

import numpy as np
import numpy.typing as npt

from provtext.based import (
    NULL_SEQUENCE,
    BasedSequence,
    IndexOffsets,
    check_sub_range,
)
from provtext.errors import (
    SegmentBaseMismatchError,
    SegmentOrderError,
    SequenceIndexError,
)
from provtext.segments import SegmentConsumer, generate_segments
from provtext.settings import ViewSettings, default_settings
from provtext.types import BaseSlot, Range, Slot, SyntheticSlot

log = logging.getLogger(__name__)

type OffsetTable = npt.NDArray[np.signedinteger]


class SegmentedSequence(BasedSequence):
    """Window over a shared offset table and synthetic buffer."""

    __slots__ = (
        "_base_seq",
        "_offsets",
        "_window_start",
        "_synthetic",
        "_length",
        "_source_range",
        "_settings",
        "_real_index",
    )

    is_replaced = True

    def __init__(
        self,
        base_seq: BasedSequence,
        offsets: OffsetTable,
        window_start: int,
        synthetic: str,
        length: int,
        settings: ViewSettings,
        *,
        source_range: tuple[int, int] | None = None,
    ) -> None:
        table_length = len(offsets)
        if window_start < 0 or length < 0 or window_start + length > table_length:
            raise ValueError(
                f"Window [{window_start}, {window_start + length}) exceeds "
                f"offset table length {table_length}"
            )

        self._base_seq = base_seq
        self._offsets = offsets
        self._window_start = window_start
        self._synthetic = synthetic
        self._length = length
        self._settings = settings
        self._real_index: tuple[npt.NDArray[np.intp], OffsetTable] | None = None
        # Windows resolve their source range on first access.
        self._source_range = source_range

    def _window_source_range(self) -> tuple[int, int]:
        """First real offset at or after the window start, last real + 1.

        The start search may run past the window end: an all-synthetic
        window is positioned at the next real character of the table.
        Both searches stop at the first real slot they meet.
        """
        offsets = self._offsets
        table_length = len(offsets)

        first = self._window_start
        while first < table_length and offsets[first] < 0:
            first += 1
        if first == table_length:
            end_of_base = self._base_seq.end_offset
            return end_of_base, end_of_base
        start = int(offsets[first])

        last = self._window_start + self._length - 1
        while last >= first and offsets[last] < 0:
            last -= 1
        if last < first:
            return start, start
        return start, int(offsets[last]) + 1

    def _resolved_source_range(self) -> tuple[int, int]:
        if self._source_range is None:
            self._source_range = self._window_source_range()
        return self._source_range

    # -- merge builder -------------------------------------------------------

    @classmethod
    def of(
        cls,
        segments: Iterable[BasedSequence | None],
        *,
        settings: ViewSettings | None = None,
    ) -> BasedSequence:
        """Merge *segments* into one based sequence.

        Returns the single remaining unit unchanged when coalescing leaves
        exactly one, and ``NULL_SEQUENCE`` when nothing has content.

        Raises:
            SegmentBaseMismatchError: segments come from different base texts.
            SegmentOrderError: segments are not in increasing base order.
        """
        units: list[BasedSequence] = []
        pending: BasedSequence | None = None
        base: object | None = None
        start_offset: int | None = None
        end_offset = 0

        for segment in segments:
            if segment is None or segment.is_null:
                continue

            if base is None:
                base = segment.base
            elif segment.base is not base:
                raise SegmentBaseMismatchError(
                    "all segments must come from the same base sequence"
                )

            if start_offset is None:
                start_offset = segment.start_offset
            end_offset = segment.end_offset

            if segment.is_empty:
                continue

            if segment.is_replaced:
                if pending is not None:
                    units.append(pending)
                units.append(segment)
                pending = None
            elif pending is None:
                pending = segment
            elif pending.end_offset != segment.start_offset:
                units.append(pending)
                pending = segment
            else:
                pending = pending.base_sub_sequence(
                    pending.start_offset, segment.end_offset,
                )

        if pending is not None:
            units.append(pending)

        if not units:
            return NULL_SEQUENCE
        if len(units) == 1:
            return units[0]

        assert start_offset is not None
        return cls._from_units(
            units,
            (start_offset, end_offset),
            settings if settings is not None else default_settings(),
        )

    @classmethod
    def _from_units(
        cls,
        units: list[BasedSequence],
        source_range: tuple[int, int],
        settings: ViewSettings,
    ) -> SegmentedSequence:
        base_seq = units[0].base_sequence

        length = 0
        last_end = base_seq.start_offset
        for index, unit in enumerate(units):
            if unit.base is not base_seq.base:
                raise SegmentBaseMismatchError(
                    f"all segments must come from the same base sequence, "
                    f"segments[{index}], length so far: {length}"
                )
            if unit.start_offset < last_end:
                raise SegmentOrderError(
                    f"segments must be in increasing index order from base sequence "
                    f"start={unit.start_offset} lastEnd={last_end}, "
                    f"length={length} at index: {index}"
                )
            last_end = unit.end_offset
            length += len(unit)

        dtype = np.dtype(settings.offset_dtype)
        offsets = np.empty(length, dtype=dtype)
        synthetic: list[str] = []
        pos = 0
        for unit in units:
            unit_offsets = unit.index_offsets().astype(dtype, copy=True)
            missing = np.flatnonzero(unit_offsets < 0)
            if missing.size:
                first = len(synthetic)
                synthetic.extend(unit.char_at(int(i)) for i in missing)
                unit_offsets[missing] = ~np.arange(
                    first, first + missing.size, dtype=dtype,
                )
            offsets[pos:pos + len(unit_offsets)] = unit_offsets
            pos += len(unit_offsets)
        offsets.flags.writeable = False

        log.debug(
            "Merged %d units into %d chars (%d synthetic)",
            len(units), length, len(synthetic),
        )
        return cls(
            base_seq,
            offsets,
            0,
            "".join(synthetic),
            length,
            settings,
            source_range=source_range,
        )

    # -- sequence interface --------------------------------------------------

    def __len__(self) -> int:
        return self._length

    def __str__(self) -> str:
        base_text = str(self._base_seq)
        synthetic = self._synthetic
        return "".join(
            synthetic[~offset] if offset < 0 else base_text[offset]
            for offset in self._window().tolist()
        )

    def char_at(self, index: int) -> str:
        if index < 0 or index >= self._length:
            raise SequenceIndexError.for_index(index, self._length)
        offset = int(self._offsets[self._window_start + index])
        if offset < 0:
            return self._synthetic[~offset]
        return self._base_seq.char_at(offset)

    def slot_at(self, index: int) -> Slot:
        """Decoded offset table entry for *index*."""
        if index < 0 or index >= self._length:
            raise SequenceIndexError.for_index(index, self._length)
        offset = int(self._offsets[self._window_start + index])
        if offset < 0:
            return SyntheticSlot(~offset, self._synthetic[~offset])
        return BaseSlot(offset)

    @property
    def start_offset(self) -> int:
        return self._resolved_source_range()[0]

    @property
    def end_offset(self) -> int:
        return self._resolved_source_range()[1]

    @property
    def source_range(self) -> Range:
        return Range.of(*self._resolved_source_range())

    @property
    def base(self) -> object:
        return self._base_seq.base

    @property
    def base_sequence(self) -> BasedSequence:
        return self._base_seq

    @property
    def offset_table(self) -> OffsetTable:
        """The whole shared table (read-only), not just this window."""
        return self._offsets

    @property
    def window_start(self) -> int:
        return self._window_start

    @property
    def synthetic_chars(self) -> str:
        return self._synthetic

    @property
    def settings(self) -> ViewSettings:
        return self._settings

    def _window(self) -> OffsetTable:
        return self._offsets[self._window_start:self._window_start + self._length]

    # -- forward mapping -----------------------------------------------------

    def get_index_offset(self, index: int) -> int:
        """Base offset for *index*, ``-1`` for synthetic characters.

        ``index == len(self)`` maps to one past the last character's offset
        (``-1`` when that character is synthetic). An empty window has no
        such position: index 0 raises.
        """
        length = self._length
        if index < 0 or index > length:
            raise SequenceIndexError.for_index(index, length)

        if index == length:
            if length == 0:
                raise SequenceIndexError.for_index(index, length)
            offset = int(self._offsets[self._window_start + index - 1])
            return -1 if offset < 0 else offset + 1

        offset = int(self._offsets[self._window_start + index])
        return -1 if offset < 0 else offset

    def index_offsets(self) -> IndexOffsets:
        window = self._window()
        return np.where(window < 0, -1, window).astype(np.int64)

    # -- reverse mapping -----------------------------------------------------

    def get_index_range(self, base_start: int, base_end: int) -> Range:
        """Index range covering base offsets ``[base_start, base_end)``.

        Offsets are assumed to lie within this view. A *base_start* that is
        not found maps to index 0; an end before the start is clamped to it.
        """
        if self._settings.reverse_lookup == "bisect":
            start, end = self._bisect_index_range(base_start, base_end)
        else:
            start, end = self._scan_index_range(base_start, base_end)

        if start is None:
            start = 0
        if end is None or end < start:
            end = start
        return Range.of(start, end)

    def _scan_index_range(
        self, base_start: int, base_end: int,
    ) -> tuple[int | None, int | None]:
        start: int | None = None
        end: int | None = None
        end_after: int | None = None
        for i, offset in enumerate(self._window().tolist()):
            if offset < 0:
                continue
            if start is None and offset == base_start:
                start = i
            if end is None and offset == base_end:
                end = i
            if end_after is None and offset == base_end - 1:
                end_after = i + 1
            if start is not None and end is not None:
                break
        return start, end if end is not None else end_after

    def _real_positions(self) -> tuple[npt.NDArray[np.intp], OffsetTable]:
        if self._real_index is None:
            window = self._window()
            positions = np.flatnonzero(window >= 0)
            self._real_index = (positions, window[positions])
            log.debug(
                "Built reverse lookup index: %d real slots of %d",
                positions.size, self._length,
            )
        return self._real_index

    def _bisect_index_range(
        self, base_start: int, base_end: int,
    ) -> tuple[int | None, int | None]:
        positions, values = self._real_positions()

        def find(offset: int) -> int | None:
            k = int(np.searchsorted(values, offset))
            if k < values.size and int(values[k]) == offset:
                return int(positions[k])
            return None

        start = find(base_start)
        end = find(base_end)
        if end is None:
            before = find(base_end - 1) if base_end > 0 else None
            end = None if before is None else before + 1
        return start, end

    # -- windowing -----------------------------------------------------------

    def sub_sequence(self, start: int, end: int) -> SegmentedSequence:
        check_sub_range(start, end, self._length)
        if start == 0 and end == self._length:
            return self
        return SegmentedSequence(
            self._base_seq,
            self._offsets,
            self._window_start + start,
            self._synthetic,
            end - start,
            self._settings,
        )

    def base_sub_sequence(self, start: int, end: int) -> BasedSequence:
        check_sub_range(start, end, len(self._base_seq))
        return self._base_seq.base_sub_sequence(start, end)

    # -- segment re-emission -------------------------------------------------

    def add_segments(self, builder: SegmentConsumer) -> bool:
        if self._length == 0:
            return False
        return generate_segments(
            builder,
            self._length,
            self.get_index_offset,
            lambda start, end: str(self.sub_sequence(start, end)),
        )


def merge(
    *segments: BasedSequence | None,
    settings: ViewSettings | None = None,
) -> BasedSequence:
    """Shorthand for ``SegmentedSequence.of(segments)``."""
    return SegmentedSequence.of(segments, settings=settings)
