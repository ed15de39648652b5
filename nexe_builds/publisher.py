"""Build-or-skip, then upload-or-skip, for exactly one target per run.

Steps:
  1. log the build banner and make sure dist/ exists
  2. require a GitHub token (before any network call)
  3. find the release tagged with the local package version
  4. stop if it already has an asset named after the target
  5. compile dist/<target> with nexe
  6. upload the binary unless uploads are suppressed

Every failure is terminal and nothing is retried.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Mapping, Optional, Protocol

from .compiler import Compiler
from .config import PublisherConfig
from .errors import MissingCredentialError, ReleaseNotFoundError
from .github.releases import Release, find_asset, find_release
from .metadata import read_package_version
from .target import Target
from .utils.fs import ensure_dir, list_files


OUTCOME_SKIPPED_EXISTING = "skipped_existing"
OUTCOME_BUILT = "built"
OUTCOME_UPLOADED = "uploaded"

MISSING_TOKEN_MESSAGE = "Did not get github token. Missing secret?"


class ReleasesClient(Protocol):
    def list_releases(self) -> List[Release]:
        raise NotImplementedError

    def upload_asset(self, *, release_id: int, name: str, data: bytes, content_type: str = ...) -> object:
        raise NotImplementedError


@dataclass(frozen=True)
class PublisherSettings:
    project_root: Path
    config: PublisherConfig
    target: Target
    skip_upload: bool = False

    @property
    def dist_dir(self) -> Path:
        return self.project_root / self.config.build.dist_dir

    @property
    def output_path(self) -> Path:
        return self.dist_dir / self.target.identifier

    @property
    def package_metadata_path(self) -> Path:
        return self.project_root / self.config.build.package_metadata


@dataclass(frozen=True)
class PublishResult:
    target: str
    outcome: str
    release_id: Optional[int] = None
    output_path: Optional[Path] = None
    uploaded_bytes: int = 0


def read_credential(env_vars: Iterable[str], environ: Optional[Mapping[str, str]] = None) -> str:
    env = os.environ if environ is None else environ
    for name in env_vars:
        token = str(env.get(name, "") or "").strip()
        if token:
            return token
    raise MissingCredentialError(MISSING_TOKEN_MESSAGE)


def publish(
    settings: PublisherSettings,
    *,
    client_factory: Callable[[str], ReleasesClient],
    compiler_factory: Callable[[], Compiler],
    environ: Optional[Mapping[str, str]] = None,
    log: Callable[[str], None] = print,
) -> PublishResult:
    target = settings.target
    log(f"[publisher] building {target.runtime_version}")
    log(f"[publisher] arch = [{target.arch}]")
    log(f"[publisher] platform = [{target.os_name}]")
    log(f"[publisher] target = {target.identifier}")

    ensure_dir(settings.dist_dir)

    token = read_credential(settings.config.github.token_env_vars, environ)

    release_version = read_package_version(settings.package_metadata_path)
    client = client_factory(token)
    release = find_release(client.list_releases(), release_version)
    if release is None:
        raise ReleaseNotFoundError(release_version)

    if find_asset(release, target.identifier) is not None:
        log("[publisher] Found asset already exists; skipping.")
        return PublishResult(target=target.identifier, outcome=OUTCOME_SKIPPED_EXISTING, release_id=release.id)

    output = settings.output_path
    log(f"[publisher] Building {output}.")
    binary = compiler_factory().compile(
        entry_point=settings.config.build.entry_point,
        target=target,
        output=output,
    )

    if settings.skip_upload:
        log("[publisher] Build finished; skipping upload.")
        return PublishResult(
            target=target.identifier,
            outcome=OUTCOME_BUILT,
            release_id=release.id,
            output_path=binary,
        )

    log("[publisher] Build finished; uploading asset.")
    log(f"[publisher] files in dist dir = {json.dumps(list_files(settings.dist_dir))}")
    data = binary.read_bytes()
    log(f"[publisher] read file containing {len(data)} bytes")
    client.upload_asset(
        release_id=release.id,
        name=target.identifier,
        data=data,
        content_type=settings.config.content_type,
    )
    log(f"[publisher] uploaded {target.identifier} to release {release.tag_name}")
    return PublishResult(
        target=target.identifier,
        outcome=OUTCOME_UPLOADED,
        release_id=release.id,
        output_path=binary,
        uploaded_bytes=len(data),
    )
