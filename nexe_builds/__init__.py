"""Build nexe binaries of a Node CLI and publish them as GitHub Release assets."""

from __future__ import annotations

__all__ = ["__version__"]
__version__ = "0.1.0"
