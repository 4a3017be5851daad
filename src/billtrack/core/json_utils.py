#!/usr/bin/env python3
"""
JSON Utilities Module

Reading and writing of the JSON files backing the local stores. Writes go
through a temporary sibling file so a failed write never truncates data.
"""

import json
from datetime import date, datetime
from pathlib import Path
from typing import Any


def _default(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    # numpy scalars coming out of pandas frames
    if hasattr(value, "item"):
        return value.item()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def write_json(filepath: str | Path, data: Any) -> None:
    """
    Write data to a JSON file with standard pretty-printing.

    Dates and datetimes are serialized as ISO strings.
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    tmp_path = filepath.with_suffix(filepath.suffix + ".tmp")
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False, default=_default)
    tmp_path.replace(filepath)


def read_json(filepath: str | Path, default: Any = None) -> Any:
    """
    Read data from a JSON file.

    Returns ``default`` when the file does not exist.
    """
    filepath = Path(filepath)
    if not filepath.exists():
        return default
    with open(filepath, encoding="utf-8") as f:
        return json.load(f)
