from __future__ import annotations

import os
from pathlib import Path
from typing import List


def ensure_dir(path: Path) -> Path:
    """Create a single directory level, tolerating only "already exists".

    Any other filesystem error (missing parent, permissions) propagates.
    """
    try:
        os.mkdir(path)
    except FileExistsError:
        if not path.is_dir():
            raise
    return path


def list_files(path: Path) -> List[str]:
    return sorted(p.name for p in path.iterdir())
