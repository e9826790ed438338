"""Tests for provtext.settings: view settings sources and validation."""
from __future__ import annotations

from pathlib import Path

import pytest

from provtext.errors import SettingsError
from provtext.settings import (
    ENV_OFFSET_DTYPE,
    ENV_REVERSE_LOOKUP,
    ViewSettings,
    default_settings,
)


class TestViewSettings:
    def test_defaults(self) -> None:
        settings = ViewSettings()
        assert settings.reverse_lookup == "scan"
        assert settings.offset_dtype == "int64"
        assert settings.to_dict() == {"reverse_lookup": "scan", "offset_dtype": "int64"}

    def test_invalid_values_raise(self) -> None:
        with pytest.raises(SettingsError):
            ViewSettings(reverse_lookup="binary")  # type: ignore[arg-type]
        with pytest.raises(SettingsError):
            ViewSettings(offset_dtype="float32")  # type: ignore[arg-type]

    def test_settings_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            ViewSettings.from_mapping({"reverse_lookup": "nope"})

    def test_unknown_keys_raise(self) -> None:
        with pytest.raises(SettingsError, match="window_size"):
            ViewSettings.from_mapping({"window_size": 3})

    def test_from_env(self) -> None:
        settings = ViewSettings.from_env({
            ENV_REVERSE_LOOKUP: " Bisect ",
            ENV_OFFSET_DTYPE: "int32",
        })
        assert settings == ViewSettings(reverse_lookup="bisect", offset_dtype="int32")

    def test_from_env_ignores_blank(self) -> None:
        assert ViewSettings.from_env({ENV_REVERSE_LOOKUP: ""}) == ViewSettings()

    def test_from_json(self, tmp_path: Path) -> None:
        path = tmp_path / "view.json"
        path.write_text('{"reverse_lookup": "bisect"}')
        assert ViewSettings.from_json(path).reverse_lookup == "bisect"

    def test_from_json_requires_object(self, tmp_path: Path) -> None:
        path = tmp_path / "view.json"
        path.write_text('["bisect"]')
        with pytest.raises(SettingsError):
            ViewSettings.from_json(path)


class TestDefaultSettings:
    def test_reads_environment_once(self, monkeypatch: pytest.MonkeyPatch) -> None:
        default_settings.cache_clear()
        monkeypatch.setenv(ENV_REVERSE_LOOKUP, "bisect")
        try:
            first = default_settings()
            monkeypatch.setenv(ENV_REVERSE_LOOKUP, "scan")
            assert default_settings() is first
            assert first.reverse_lookup == "bisect"
        finally:
            default_settings.cache_clear()
