# legends_store.py
# -------------------------------------------------------------------
# JSON array files for the raw worklist and the enriched result set.
# The result file is rewritten whole every time it is saved.
# -------------------------------------------------------------------

import json
import os
from typing import Any, Dict, List


class LegendError(Exception):
    """Base class for everything the enricher raises on purpose."""


class MalformedInput(LegendError):
    pass


def _read_array(path: str) -> List[Dict[str, Any]]:
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise MalformedInput(f"{path}: not valid JSON ({e})") from e
    if not isinstance(data, list):
        raise MalformedInput(f"{path}: expected a JSON array, got {type(data).__name__}")
    return data


def load_worklist(path: str) -> List[Dict[str, Any]]:
    rows = _read_array(path)
    for i, row in enumerate(rows):
        if not isinstance(row, dict):
            raise MalformedInput(f"{path}: item {i} is not an object: {row!r}")
        if not isinstance(row.get("name"), str) or not row["name"]:
            raise MalformedInput(f"{path}: item {i} has no string 'name': {row!r}")
    return rows


def load_results(path: str) -> List[Dict[str, Any]]:
    """Missing file means nothing has been enriched yet."""
    if not os.path.exists(path):
        print(f"[skip] {path} not found; starting with an empty result set")
        return []
    return _read_array(path)


def save_results(path: str, rows: List[Dict[str, Any]]) -> None:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    # write beside the target, then swap, so a failed write leaves the old file
    tmp = path + ".tmp"
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(rows, f, indent=2, ensure_ascii=False)
    os.replace(tmp, path)
