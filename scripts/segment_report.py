#!/usr/bin/env python3
"""Merge segments of a text and report where every character came from.

Usage:
    python3 scripts/segment_report.py --input request.json --verbose

Input JSON::

    {"text": "hello world", "segments": [[0, 5], "-", [6, 11]], "query": [3, 8]}

Each segment is either a ``[start, end]`` base offset pair or a literal
string with no base position. The optional ``query`` is a base offset range;
the report then carries the view's ``index_range`` for it, found with the
``--reverse-lookup`` strategy. Structured JSON output goes to stdout; human
messages go to stderr.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

import orjson

from provtext.based import BasedSequence
from provtext.errors import SegmentFormatError, SegmentInvariantError, SequenceIndexError
from provtext.io_utils import convert_numpy, load_json
from provtext.segmented import SegmentedSequence
from provtext.segments import SegmentBuilder
from provtext.settings import ViewSettings

log = logging.getLogger("segment_report")


def dump_json(obj: Any) -> None:
    sys.stdout.buffer.write(orjson.dumps(obj, option=orjson.OPT_INDENT_2))
    sys.stdout.buffer.write(b"\n")


def build_report(
    payload: dict[str, Any],
    settings: ViewSettings | None = None,
) -> dict[str, Any]:
    """Merge the requested segments and describe the resulting view."""
    text = payload.get("text")
    if not isinstance(text, str):
        raise SegmentFormatError("'text' must be a string")

    base = BasedSequence.of(text)
    requested = SegmentBuilder.from_dict(payload)
    log.debug("Merging %d segments over %d chars", len(requested.segments), len(text))
    view = requested.to_sequence(base, settings=settings)

    emitted = SegmentBuilder()
    view.add_segments(emitted)

    report: dict[str, Any] = {
        "null": view.is_null,
        "text": str(view),
        "length": len(view),
        "source_range": [view.start_offset, view.end_offset],
        "offsets": view.index_offsets(),
        "synthetic_count": int((view.index_offsets() < 0).sum()),
        "segments": emitted.to_dict()["segments"],
    }

    query = payload.get("query")
    if query is not None:
        base_start, base_end = _parse_query(query)
        # Plain slices and prefixed text have no offset table to search.
        if isinstance(view, SegmentedSequence):
            found = view.get_index_range(base_start, base_end)
            report["index_range"] = [found.start, found.end]
        else:
            report["index_range"] = None

    return convert_numpy(report)


def _parse_query(query: Any) -> tuple[int, int]:
    if (
        not isinstance(query, list)
        or len(query) != 2
        or not all(isinstance(v, int) and not isinstance(v, bool) for v in query)
    ):
        raise SegmentFormatError(f"'query' must be a [start, end] pair: {query!r}")
    return query[0], query[1]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Merge text segments and report per-character base offsets.",
    )
    parser.add_argument("--input", type=Path, required=True, help="Request JSON file")
    parser.add_argument(
        "--reverse-lookup",
        choices=["scan", "bisect"],
        default=None,
        help="Reverse lookup strategy (default: environment)",
    )
    parser.add_argument("--verbose", action="store_true", help="Verbose logging")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if not args.input.exists():
        print(f"Error: input not found: {args.input}", file=sys.stderr)
        sys.exit(1)

    try:
        payload = load_json(args.input)
    except orjson.JSONDecodeError as exc:
        print(f"Error: invalid JSON in {args.input}: {exc}", file=sys.stderr)
        sys.exit(1)
    if not isinstance(payload, dict):
        print(f"Error: {args.input} must hold a JSON object", file=sys.stderr)
        sys.exit(1)

    settings = (
        ViewSettings(reverse_lookup=args.reverse_lookup)
        if args.reverse_lookup
        else None
    )
    try:
        report = build_report(payload, settings)
    except (SegmentFormatError, SegmentInvariantError, SequenceIndexError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    dump_json(report)


if __name__ == "__main__":
    main()
