"""Target identifiers for nexe builds.

A target is ``{platform}-{arch}-{runtime_version}``, e.g. ``mac-x64-20.11.0``.
The same string names the compiled binary in ``dist/`` and the release asset,
so it must follow the naming nexe uses for its targets: platform is one of
'windows', 'mac', 'alpine' or 'linux', and arch is Node's ``process.arch``.
"""

from __future__ import annotations

import platform as _stdlib_platform
import sys
from dataclasses import dataclass
from typing import Dict, Optional


# Node's process.platform values that nexe names differently.
OS_BY_PLATFORM: Dict[str, str] = {
    "darwin": "mac",
    "win32": "windows",
}

# Python reports the machine name; nexe targets use Node's process.arch names.
ARCH_BY_MACHINE: Dict[str, str] = {
    "x86_64": "x64",
    "amd64": "x64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "ia32",
    "i686": "ia32",
    "x86": "ia32",
    "armv7l": "arm",
}

WINDOWS = "windows"


def normalize_platform(name: str) -> str:
    return OS_BY_PLATFORM.get(name, name)


def node_arch(machine: str) -> str:
    m = str(machine).strip().lower()
    return ARCH_BY_MACHINE.get(m, m)


def runtime_version(raw: str) -> str:
    """Strip the leading 'v' from a Node version string ('v20.11.0' -> '20.11.0')."""
    v = str(raw).strip()
    if v.startswith("v"):
        v = v[1:]
    if not v:
        raise ValueError(f"Invalid runtime version: {raw!r}")
    return v


@dataclass(frozen=True)
class Target:
    os_name: str
    arch: str
    runtime_version: str

    @property
    def identifier(self) -> str:
        return f"{self.os_name}-{self.arch}-{self.runtime_version}"

    @property
    def executable_suffix(self) -> str:
        return ".exe" if self.os_name == WINDOWS else ""

    def __str__(self) -> str:
        return self.identifier


def resolve_target(
    version: str,
    *,
    platform_name: Optional[str] = None,
    arch: Optional[str] = None,
) -> Target:
    """Build the Target for this machine, or for explicit platform/arch overrides.

    Overrides are taken verbatim (after platform normalization); only values
    read from the interpreter are mapped to Node arch names.
    """
    raw_platform = platform_name if platform_name else sys.platform
    resolved_arch = arch if arch else node_arch(_stdlib_platform.machine())
    return Target(
        os_name=normalize_platform(raw_platform),
        arch=resolved_arch,
        runtime_version=runtime_version(version),
    )
