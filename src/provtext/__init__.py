"""Provenance-preserving text views: merged segments that keep base offsets."""

from provtext.based import (
    NULL_SEQUENCE,
    BasedSequence,
    CharSubSequence,
    NullSequence,
    PrefixedSequence,
)
from provtext.errors import (
    SegmentBaseMismatchError,
    SegmentFormatError,
    SegmentInvariantError,
    SegmentOrderError,
    SequenceIndexError,
    SettingsError,
)
from provtext.segmented import SegmentedSequence, merge
from provtext.segments import (
    BaseSegment,
    Segment,
    SegmentBuilder,
    SegmentConsumer,
    TextSegment,
    generate_segments,
    load_segments,
    save_segments,
)
from provtext.settings import ViewSettings, default_settings
from provtext.types import BaseSlot, Range, Slot, SyntheticSlot

__all__ = [
    "NULL_SEQUENCE",
    "BaseSegment",
    "BaseSlot",
    "BasedSequence",
    "CharSubSequence",
    "NullSequence",
    "PrefixedSequence",
    "Range",
    "Segment",
    "SegmentBaseMismatchError",
    "SegmentBuilder",
    "SegmentConsumer",
    "SegmentFormatError",
    "SegmentInvariantError",
    "SegmentOrderError",
    "SegmentedSequence",
    "SequenceIndexError",
    "SettingsError",
    "Slot",
    "SyntheticSlot",
    "TextSegment",
    "ViewSettings",
    "default_settings",
    "generate_segments",
    "load_segments",
    "merge",
    "save_segments",
]
