"""Tests for scripts/segment_report.py."""
from __future__ import annotations

import importlib.util
from pathlib import Path
from typing import Any

import orjson
import pytest

from provtext.errors import SegmentFormatError, SegmentOrderError
from provtext.settings import ViewSettings


def _load_segment_report_module() -> Any:
    root = Path(__file__).resolve().parents[1]
    script_path = root / "scripts" / "segment_report.py"
    spec = importlib.util.spec_from_file_location("segment_report", script_path)
    assert spec is not None
    module = importlib.util.module_from_spec(spec)
    assert spec.loader is not None
    spec.loader.exec_module(module)
    return module


@pytest.fixture(scope="module")
def segment_report() -> Any:
    return _load_segment_report_module()


class TestBuildReport:
    def test_merged_report(self, segment_report: Any) -> None:
        report = segment_report.build_report({
            "text": "hello world",
            "segments": [[0, 5], "-", [6, 11]],
        })
        assert report["text"] == "hello-world"
        assert report["length"] == 11
        assert report["null"] is False
        assert report["source_range"] == [0, 11]
        assert report["offsets"] == [0, 1, 2, 3, 4, -1, 6, 7, 8, 9, 10]
        assert report["synthetic_count"] == 1
        assert report["segments"] == [[0, 5], "-", [6, 11]]

    @pytest.mark.parametrize(
        ("query", "expected"),
        [
            ([1, 6], [1, 6]),
            ([3, 5], [3, 5]),
            ([2, 9], [2, 9]),
        ],
    )
    def test_query_index_range_scan_and_bisect_agree(
        self, segment_report: Any, query: list[int], expected: list[int],
    ) -> None:
        request = {
            "text": "hello world",
            "segments": [[0, 5], "-", [6, 11]],
            "query": query,
        }
        scan = segment_report.build_report(request, ViewSettings(reverse_lookup="scan"))
        bisect = segment_report.build_report(request, ViewSettings(reverse_lookup="bisect"))
        assert scan["index_range"] == expected
        assert bisect["index_range"] == expected

    def test_no_query_no_index_range(self, segment_report: Any) -> None:
        report = segment_report.build_report({"text": "abc", "segments": [[0, 3]]})
        assert "index_range" not in report

    def test_query_on_plain_slice_is_null(self, segment_report: Any) -> None:
        report = segment_report.build_report(
            {"text": "abcdef", "segments": [[1, 4]], "query": [1, 3]},
        )
        assert report["index_range"] is None

    @pytest.mark.parametrize("query", [[1], "1-3", [1, "3"], [True, 3]])
    def test_malformed_query(self, segment_report: Any, query: Any) -> None:
        with pytest.raises(SegmentFormatError):
            segment_report.build_report(
                {"text": "hello world", "segments": [[0, 5], "-", [6, 11]], "query": query},
            )

    def test_empty_request_is_null(self, segment_report: Any) -> None:
        report = segment_report.build_report({"text": "abc", "segments": []})
        assert report["null"] is True
        assert report["length"] == 0
        assert report["segments"] == []

    def test_out_of_order_faults(self, segment_report: Any) -> None:
        with pytest.raises(SegmentOrderError):
            segment_report.build_report({"text": "abcdef", "segments": [[4, 6], [0, 2]]})


class TestMain:
    def test_writes_json_report(
        self, segment_report: Any, tmp_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        request = tmp_path / "request.json"
        request.write_bytes(orjson.dumps({"text": "abcdef", "segments": [[1, 3]]}))
        segment_report.main(["--input", str(request)])
        report = orjson.loads(capsys.readouterr().out)
        assert report["text"] == "bc"
        assert report["source_range"] == [1, 3]

    def test_missing_input_exits(self, segment_report: Any, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            segment_report.main(["--input", str(tmp_path / "missing.json")])
        assert exc_info.value.code == 1

    def test_invalid_json_exits(
        self, segment_report: Any, tmp_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        request = tmp_path / "request.json"
        request.write_text('{"text": "abc", "segments": [[0, 3]')
        with pytest.raises(SystemExit) as exc_info:
            segment_report.main(["--input", str(request)])
        assert exc_info.value.code == 1
        assert "invalid JSON" in capsys.readouterr().err

    def test_reverse_lookup_flag_reaches_report(
        self, segment_report: Any, tmp_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        request = tmp_path / "request.json"
        request.write_bytes(orjson.dumps({
            "text": "hello world",
            "segments": [[0, 5], "-", [6, 11]],
            "query": [3, 5],
        }))
        segment_report.main(["--input", str(request), "--reverse-lookup", "bisect"])
        report = orjson.loads(capsys.readouterr().out)
        assert report["index_range"] == [3, 5]

    def test_invariant_fault_exits(self, segment_report: Any, tmp_path: Path) -> None:
        request = tmp_path / "request.json"
        request.write_bytes(orjson.dumps({"text": "abcdef", "segments": [[4, 6], [0, 2]]}))
        with pytest.raises(SystemExit) as exc_info:
            segment_report.main(["--input", str(request)])
        assert exc_info.value.code == 1
