"""orjson file I/O for segment lists, view settings and reports."""
from __future__ import annotations

from pathlib import Path
from typing import Any

import numpy as np
import orjson


def load_json(path: Path) -> Any:
    """Load JSON from a file. Malformed input raises ``orjson.JSONDecodeError``."""
    return orjson.loads(path.read_bytes())


def save_json(obj: Any, path: Path) -> None:
    """Write *obj* as indented JSON, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(orjson.dumps(obj, option=orjson.OPT_INDENT_2))


def convert_numpy(obj: Any) -> Any:
    """Turn offset arrays in a report mapping into plain lists."""
    if isinstance(obj, dict):
        return {key: convert_numpy(value) for key, value in obj.items()}
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    return obj
