#!/usr/bin/env python3
"""CI entry point: build this runner's nexe binary and attach it to the release.

Usage (from the Node project root):
  GH_TOKEN=... python scripts/build_release_asset.py [--skip-upload]

Exit codes:
  0 = asset uploaded, already present, or built with --skip-upload
  1 = missing token, missing release, build or upload failure
"""

from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from nexe_builds.cli import main  # noqa: E402


if __name__ == "__main__":
    raise SystemExit(main())
