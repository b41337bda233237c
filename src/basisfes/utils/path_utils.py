from __future__ import annotations

import os
from pathlib import Path

StrPath = str | os.PathLike[str]

__all__ = ["ensure_directory"]


def ensure_directory(path: StrPath) -> Path:
    """Create ``path`` (and parents) if missing and return it as a Path."""
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory
