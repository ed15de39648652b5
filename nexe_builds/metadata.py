from __future__ import annotations

import json
from pathlib import Path

from .errors import MetadataError


def read_package_version(path: Path) -> str:
    """Return the "version" field of a package.json file."""
    p = Path(path)
    if not p.exists():
        raise MetadataError(f"Package metadata not found: {p}")
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise MetadataError(f"Package metadata is not valid JSON: {p}: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise MetadataError(f"Package metadata unreadable: {p}: {e}") from e

    version = data.get("version") if isinstance(data, dict) else None
    if not isinstance(version, str) or not version.strip():
        raise MetadataError(f"Package metadata has no version: {p}")
    return version.strip()
