from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional

from .errors import ToolchainError
from .target import runtime_version


Runner = Callable[[List[str]], subprocess.CompletedProcess]

LLVM_FORMULA = "llvm@18"


def _run(cmd: List[str]) -> subprocess.CompletedProcess:
    return subprocess.run(cmd, check=False, text=True, capture_output=True)


def _check_output(runner: Runner, cmd: List[str]) -> str:
    try:
        cp = runner(cmd)
    except FileNotFoundError as e:
        raise ToolchainError(f"Command not found: {cmd[0]}") from e
    if cp.returncode != 0:
        stderr = (cp.stderr or "").strip()
        raise ToolchainError(f"Command failed ({cp.returncode}): {' '.join(cmd)}: {stderr}")
    return (cp.stdout or "").strip()


@dataclass(frozen=True)
class ToolchainConfig:
    """Environment overrides handed to the compiler process only."""

    env_overrides: Dict[str, str] = field(default_factory=dict)

    def environ(self, base: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        env = dict(os.environ if base is None else base)
        env.update(self.env_overrides)
        return env


def _llvm_env(llvm: str, sdk_root: str) -> Dict[str, str]:
    cc = f"{llvm}/bin/clang"
    cxx = f"{llvm}/bin/clang++"
    return {
        "LLVM": llvm,
        "CC": cc,
        "CXX": cxx,
        "AR": f"{llvm}/bin/llvm-ar",
        "NM": f"{llvm}/bin/llvm-nm",
        "RANLIB": f"{llvm}/bin/llvm-ranlib",
        "CPPFLAGS": f"-I{llvm}/include/c++/v1",
        "CFLAGS": "-arch x86_64",
        "CXXFLAGS": f"-std=c++20 -stdlib=libc++ -arch x86_64 -nostdinc++ -isystem {llvm}/include/c++/v1",
        "LDFLAGS": (
            f"-stdlib=libc++ -arch x86_64 -L{llvm}/lib -Wl,-rpath,{llvm}/lib "
            f"-Wl,-rpath,{llvm}/lib/c++ -lc++ -lc++abi"
        ),
        "SDKROOT": sdk_root,
        "GYP_DEFINES": "clang=1 use_xcode_clang=0",
        "CC_host": cc,
        "CXX_host": cxx,
        "CC_target": cc,
        "CXX_target": cxx,
    }


def resolve_toolchain(os_name: str, arch: str, runner: Runner = _run) -> ToolchainConfig:
    """Return compiler env overrides for the given normalized platform/arch.

    Intel macs need LLVM from Homebrew instead of the Xcode clang; every other
    combination builds with the ambient toolchain.
    """
    if not (os_name == "mac" and arch == "x64"):
        return ToolchainConfig()

    print(f"[toolchain] installing {LLVM_FORMULA} for mac-x64")
    _check_output(runner, ["brew", "install", LLVM_FORMULA])
    llvm = _check_output(runner, ["brew", "--prefix", LLVM_FORMULA])
    if not llvm:
        raise ToolchainError(f"brew --prefix {LLVM_FORMULA} returned an empty path")
    sdk_root = _check_output(runner, ["xcrun", "--show-sdk-path"])
    print(f"[toolchain] LLVM={llvm} SDKROOT={sdk_root}")
    return ToolchainConfig(env_overrides=_llvm_env(llvm, sdk_root))


def detect_runtime_version(runner: Runner = _run, node: str = "node") -> str:
    """Version of the local Node runtime without the leading 'v'."""
    raw = _check_output(runner, [node, "--version"])
    try:
        return runtime_version(raw)
    except ValueError as e:
        raise ToolchainError(str(e)) from e
