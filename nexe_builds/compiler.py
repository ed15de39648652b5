from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Callable, List, Optional, Protocol

from .config import BuildSettings
from .errors import CompilerError
from .target import Target
from .toolchain import ToolchainConfig


class Compiler(Protocol):
    def compile(self, *, entry_point: str, target: Target, output: Path) -> Path:
        raise NotImplementedError


def _stream(cmd: List[str], cwd: Path, env: dict) -> int:
    # Output goes straight to the console; nexe builds are long and verbose.
    return subprocess.run(cmd, cwd=str(cwd), env=env, check=False).returncode


class NexeCompiler:
    """Compiles a Node entry point into a native binary with the nexe CLI."""

    def __init__(
        self,
        *,
        settings: BuildSettings,
        project_root: Path,
        toolchain: Optional[ToolchainConfig] = None,
        runner: Callable[[List[str], Path, dict], int] = _stream,
    ):
        self.settings = settings
        self.project_root = project_root
        self.toolchain = toolchain if toolchain is not None else ToolchainConfig()
        self.runner = runner

    def command(self, *, entry_point: str, target: Target, output: Path) -> List[str]:
        cmd = list(self.settings.compiler_command)
        cmd += [
            "--input", entry_point,
            "--output", str(output),
            "--target", target.identifier,
            "--build",
            "--python", self.settings.python,
        ]
        if self.settings.verbose:
            cmd.append("--verbose")
        if not self.settings.mangle:
            cmd.append("--no-mangle")
        return cmd

    def compile(self, *, entry_point: str, target: Target, output: Path) -> Path:
        cmd = self.command(entry_point=entry_point, target=target, output=output)
        env = self.toolchain.environ()
        # Windows installs npx as npx.cmd, which list-form subprocess calls do not find.
        cmd[0] = shutil.which(cmd[0], path=env.get("PATH")) or cmd[0]
        print(f"[compiler] {' '.join(cmd)}")
        try:
            rc = self.runner(cmd, self.project_root, env)
        except FileNotFoundError as e:
            raise CompilerError(f"Compiler not found: {cmd[0]}") from e
        if rc != 0:
            raise CompilerError(f"Compiler exited with code {rc}: {' '.join(cmd)}")

        binary = output.with_name(output.name + target.executable_suffix)
        if not binary.is_file():
            raise CompilerError(f"Compiler reported success but produced no binary at {binary}")
        return binary
