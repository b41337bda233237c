from __future__ import annotations

"""Shared helpers for reading and writing JSON payloads on disk."""

import json
from pathlib import Path
from typing import Any, Mapping

import numpy as np

__all__ = ["load_json_file", "dump_json_file", "to_jsonable"]


def load_json_file(path: Path | str, *, encoding: str = "utf-8") -> Any:
    """Read and decode JSON from ``path`` with a helpful error message."""

    json_path = Path(path)
    text = json_path.read_text(encoding=encoding)
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise json.JSONDecodeError(
            f"{exc.msg} (file: {json_path})", exc.doc, exc.pos
        ) from exc


def to_jsonable(value: Any) -> Any:
    """Convert numpy scalars/arrays (possibly nested) to plain Python types."""

    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, Mapping):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def dump_json_file(
    payload: Mapping[str, Any], path: Path | str, *, encoding: str = "utf-8"
) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(to_jsonable(payload), indent=2), encoding=encoding)
    return out
