"""Flattened segment descriptions of based sequences.

A view can be described as an ordered list of runs: ``BaseSegment(start, end)``
for characters copied from base offsets ``[start, end)`` and
``TextSegment(text)`` for literal text with no base position. Views emit this
description through ``add_segments``; ``SegmentBuilder`` collects it, can
persist it as JSON and can rebuild an equivalent view with the merge builder.

JSON form (also the input format of ``scripts/segment_report.py``)::

    {"segments": [[0, 5], "-", [6, 11]]}
"""
from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, cast

from provtext.based import BasedSequence, PrefixedSequence
from provtext.errors import SegmentFormatError
from provtext.io_utils import load_json, save_json

if TYPE_CHECKING:
    from provtext.settings import ViewSettings


class SegmentConsumer(Protocol):
    """Receives segment runs in emission order."""

    def append_base(self, start: int, end: int) -> None: ...

    def append_text(self, text: str) -> None: ...


@dataclass(frozen=True, slots=True)
class BaseSegment:
    """Run copied from base offsets ``[start, end)``."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0:
            raise SegmentFormatError(f"BaseSegment.start must be >= 0, got {self.start}")
        if self.end < self.start:
            raise SegmentFormatError(
                f"BaseSegment.end ({self.end}) must be >= start ({self.start})"
            )

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass(frozen=True, slots=True)
class TextSegment:
    """Literal run with no base position."""

    text: str

    @property
    def length(self) -> int:
        return len(self.text)


type Segment = BaseSegment | TextSegment


class SegmentBuilder:
    """Collects segment runs, joining runs that continue one another.

    Empty runs are dropped. A base run starting where the previous base run
    ended extends it; consecutive text runs are concatenated.
    """

    def __init__(self) -> None:
        self._segments: list[Segment] = []

    def append_base(self, start: int, end: int) -> None:
        if end == start:
            return
        segment = BaseSegment(start, end)
        if self._segments:
            last = self._segments[-1]
            if isinstance(last, BaseSegment) and last.end == start:
                self._segments[-1] = BaseSegment(last.start, end)
                return
        self._segments.append(segment)

    def append_text(self, text: str) -> None:
        if not text:
            return
        if self._segments:
            last = self._segments[-1]
            if isinstance(last, TextSegment):
                self._segments[-1] = TextSegment(last.text + text)
                return
        self._segments.append(TextSegment(text))

    @property
    def segments(self) -> tuple[Segment, ...]:
        return tuple(self._segments)

    @property
    def length(self) -> int:
        """Character count of the described sequence."""
        return sum(segment.length for segment in self._segments)

    def __iter__(self) -> Iterator[Segment]:
        return iter(self._segments)

    def to_sequence(
        self,
        base: BasedSequence,
        *,
        settings: ViewSettings | None = None,
    ) -> BasedSequence:
        """Rebuild a view over *base* from the collected runs.

        Text runs are anchored at the end of the preceding base run (or the
        start of the first base run when they lead).
        """
        from provtext.segmented import SegmentedSequence

        root = base.base_sequence
        position = next(
            (s.start for s in self._segments if isinstance(s, BaseSegment)),
            root.start_offset,
        )
        parts: list[BasedSequence] = []
        for segment in self._segments:
            match segment:
                case BaseSegment(start=start, end=end):
                    parts.append(root.base_sub_sequence(start, end))
                    position = end
                case TextSegment(text=text):
                    anchor = root.base_sub_sequence(position, position)
                    parts.append(PrefixedSequence.prefix_of(text, anchor))
        return SegmentedSequence.of(parts, settings=settings)

    def to_dict(self) -> dict[str, list[Any]]:
        payload: list[Any] = []
        for segment in self._segments:
            match segment:
                case BaseSegment(start=start, end=end):
                    payload.append([start, end])
                case TextSegment(text=text):
                    payload.append(text)
        return {"segments": payload}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SegmentBuilder:
        raw = data.get("segments")
        if not isinstance(raw, list):
            raise SegmentFormatError("'segments' must be a list")
        builder = cls()
        for position, item in enumerate(cast(list[Any], raw)):
            if isinstance(item, str):
                builder.append_text(item)
            elif (
                isinstance(item, list)
                and len(cast(list[Any], item)) == 2
                and all(
                    isinstance(v, int) and not isinstance(v, bool)
                    for v in cast(list[Any], item)
                )
            ):
                start, end = cast(list[int], item)
                builder.append_base(start, end)
            else:
                raise SegmentFormatError(
                    f"segments[{position}] must be a string or [start, end] pair, "
                    f"got {item!r}"
                )
        return builder

    def __repr__(self) -> str:
        return f"SegmentBuilder({self._segments!r})"


def generate_segments(
    builder: SegmentConsumer,
    length: int,
    index_offset: Callable[[int], int],
    text_of: Callable[[int, int], str],
) -> bool:
    """Emit runs for indexes ``[0, length)`` of a view.

    Consecutive indexes whose offsets are consecutive integers form one base
    run; consecutive indexes mapping to ``-1`` form one text run rendered by
    ``text_of(start_index, end_index)``.

    Returns:
        False when *length* is 0, True otherwise.
    """
    i = 0
    while i < length:
        offset = index_offset(i)
        j = i + 1
        if offset < 0:
            while j < length and index_offset(j) < 0:
                j += 1
            builder.append_text(text_of(i, j))
        else:
            while j < length and index_offset(j) == offset + (j - i):
                j += 1
            builder.append_base(offset, offset + (j - i))
        i = j
    return length > 0


def save_segments(builder: SegmentBuilder, path: Path) -> None:
    save_json(builder.to_dict(), path)


def load_segments(path: Path) -> SegmentBuilder:
    payload = load_json(path)
    if not isinstance(payload, dict):
        raise SegmentFormatError(f"Segment file {path} must hold a JSON object")
    return SegmentBuilder.from_dict(cast(dict[str, Any], payload))
