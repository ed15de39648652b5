from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

from .compiler import NexeCompiler
from .config import load_publisher_config
from .errors import MissingCredentialError, PublisherError
from .github.releases import GitHubReleasesClient
from .publisher import PublisherSettings, publish
from .target import resolve_target
from .toolchain import detect_runtime_version, resolve_toolchain


RUNTIME_VERSION_ENV_VAR = "NEXE_BUILDS_RUNTIME_VERSION"


def _runtime_version(args: argparse.Namespace) -> str:
    if args.runtime_version:
        return str(args.runtime_version)
    env_version = str(os.environ.get(RUNTIME_VERSION_ENV_VAR, "") or "").strip()
    if env_version:
        return env_version
    return detect_runtime_version()


def cmd_publish(args: argparse.Namespace) -> int:
    project_root = Path(args.project_root).resolve()
    config = load_publisher_config(args.config)
    if args.repository:
        config = config.with_repository(args.repository)

    target = resolve_target(_runtime_version(args), platform_name=args.platform, arch=args.arch)
    settings = PublisherSettings(
        project_root=project_root,
        config=config,
        target=target,
        skip_upload=bool(args.skip_upload),
    )

    clients: List[GitHubReleasesClient] = []

    def _client(token: str) -> GitHubReleasesClient:
        client = GitHubReleasesClient(settings=config.github, token=token)
        clients.append(client)
        return client

    def _compiler() -> NexeCompiler:
        toolchain = resolve_toolchain(target.os_name, target.arch)
        return NexeCompiler(settings=config.build, project_root=project_root, toolchain=toolchain)

    try:
        publish(settings, client_factory=_client, compiler_factory=_compiler)
    finally:
        for client in clients:
            client.close()
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="nexe-builds",
        description="Build a nexe binary for this machine and attach it to the matching GitHub Release.",
    )
    p.add_argument("--skip-upload", action="store_true", help="Build only; do not upload the binary")
    p.add_argument("--project-root", default=".", help="Directory holding package.json and the entry point")
    p.add_argument("--config", default=None, help="Publisher config YAML (default: NEXE_BUILDS_CONFIG or packaged)")
    p.add_argument("--repository", default=None, help="Override the release repository as owner/repo")
    p.add_argument("--platform", default=None, help="Override the platform (darwin, win32, linux, ...)")
    p.add_argument("--arch", default=None, help="Override the Node arch (x64, arm64, ...)")
    p.add_argument("--runtime-version", default=None, help="Override the Node version (default: node --version)")
    p.set_defaults(func=cmd_publish)
    return p


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return int(args.func(args) or 0)
    except MissingCredentialError as e:
        print(str(e), file=sys.stderr)
        return 1
    except PublisherError as e:
        print(f"[nexe-builds][FAILED] {type(e).__name__}: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
