"""Settings for segmented views.

Two knobs, both behaviour-preserving:

- ``reverse_lookup``: ``"scan"`` walks the offset table for
  ``get_index_range``; ``"bisect"`` builds a sorted index of real slots on
  first use and searches it. Both return the same range.
- ``offset_dtype``: numpy integer type of newly built offset tables.

Settings come from the environment (``PROVTEXT_REVERSE_LOOKUP``,
``PROVTEXT_OFFSET_DTYPE``), from a JSON file, or are passed explicitly to
``SegmentedSequence.of``.
"""
from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, cast

from provtext.errors import SettingsError
from provtext.io_utils import load_json

log = logging.getLogger(__name__)

type ReverseLookup = Literal["scan", "bisect"]
type OffsetDtype = Literal["int32", "int64"]

REVERSE_LOOKUPS: tuple[str, ...] = ("scan", "bisect")
OFFSET_DTYPES: tuple[str, ...] = ("int32", "int64")

ENV_REVERSE_LOOKUP = "PROVTEXT_REVERSE_LOOKUP"
ENV_OFFSET_DTYPE = "PROVTEXT_OFFSET_DTYPE"


@dataclass(frozen=True, slots=True)
class ViewSettings:
    """Construction and lookup settings shared by a view and its windows."""

    reverse_lookup: ReverseLookup = "scan"
    offset_dtype: OffsetDtype = "int64"

    def __post_init__(self) -> None:
        if self.reverse_lookup not in REVERSE_LOOKUPS:
            raise SettingsError(
                f"reverse_lookup must be one of {REVERSE_LOOKUPS}, "
                f"got {self.reverse_lookup!r}"
            )
        if self.offset_dtype not in OFFSET_DTYPES:
            raise SettingsError(
                f"offset_dtype must be one of {OFFSET_DTYPES}, "
                f"got {self.offset_dtype!r}"
            )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ViewSettings:
        unknown = sorted(set(data) - {"reverse_lookup", "offset_dtype"})
        if unknown:
            raise SettingsError(f"Unknown view settings: {', '.join(unknown)}")
        return cls(
            reverse_lookup=cast(ReverseLookup, data.get("reverse_lookup", "scan")),
            offset_dtype=cast(OffsetDtype, data.get("offset_dtype", "int64")),
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ViewSettings:
        env = os.environ if environ is None else environ
        data: dict[str, str] = {}
        if env.get(ENV_REVERSE_LOOKUP):
            data["reverse_lookup"] = env[ENV_REVERSE_LOOKUP].strip().lower()
        if env.get(ENV_OFFSET_DTYPE):
            data["offset_dtype"] = env[ENV_OFFSET_DTYPE].strip().lower()
        return cls.from_mapping(data)

    @classmethod
    def from_json(cls, path: Path) -> ViewSettings:
        payload = load_json(path)
        if not isinstance(payload, dict):
            raise SettingsError(f"View settings in {path} must be a JSON object")
        return cls.from_mapping(cast(dict[str, Any], payload))

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@lru_cache(maxsize=1)
def default_settings() -> ViewSettings:
    """Environment-derived settings, resolved once per process."""
    settings = ViewSettings.from_env()
    log.debug(
        "Resolved view settings: reverse_lookup=%s offset_dtype=%s",
        settings.reverse_lookup, settings.offset_dtype,
    )
    return settings
