"""Tests for provtext.io_utils."""
from __future__ import annotations

from pathlib import Path

import numpy as np
import orjson
import pytest

from provtext.io_utils import convert_numpy, load_json, save_json


class TestConvertNumpy:
    def test_offset_arrays_become_lists(self) -> None:
        report = {
            "offsets": np.array([0, 1, -1, 3], dtype=np.int64),
            "nested": {"table": np.arange(2, dtype=np.int32)},
            "segments": [[0, 2], "-"],
        }
        converted = convert_numpy(report)
        assert converted == {
            "offsets": [0, 1, -1, 3],
            "nested": {"table": [0, 1]},
            "segments": [[0, 2], "-"],
        }
        assert type(converted["offsets"][0]) is int

    def test_plain_values_untouched(self) -> None:
        assert convert_numpy("text") == "text"
        assert convert_numpy(None) is None


class TestJsonFiles:
    def test_save_creates_parents_and_loads_back(self, tmp_path: Path) -> None:
        path = tmp_path / "out" / "segments.json"
        save_json({"segments": [[0, 5], "-"]}, path)
        assert load_json(path) == {"segments": [[0, 5], "-"]}
        assert path.read_text().startswith("{\n")

    def test_invalid_json_raises_decode_error(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(orjson.JSONDecodeError):
            load_json(path)
