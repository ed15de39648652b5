from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import jsonschema
import yaml

from ..errors import ConfigError
from ..utils.yamlio import read_yaml


DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "publisher_config.yml"
CONFIG_ENV_VAR = "NEXE_BUILDS_CONFIG"


def _string_list(min_items: int = 1) -> Dict[str, Any]:
    return {"type": "array", "minItems": min_items, "items": {"type": "string", "minLength": 1}}


def _config_schema() -> Dict[str, Any]:
    non_empty = {"type": "string", "minLength": 1}
    positive = {"type": "number", "exclusiveMinimum": 0}
    return {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "type": "object",
        "required": ["repository", "github", "build", "upload"],
        "properties": {
            "repository": {
                "type": "object",
                "required": ["owner", "name"],
                "properties": {"owner": non_empty, "name": non_empty},
                "additionalProperties": False,
            },
            "github": {
                "type": "object",
                "required": ["api_base", "uploads_base", "token_env_vars"],
                "properties": {
                    "api_base": non_empty,
                    "uploads_base": non_empty,
                    "token_env_vars": _string_list(),
                    "timeout_seconds": positive,
                    "upload_timeout_seconds": positive,
                },
                "additionalProperties": False,
            },
            "build": {
                "type": "object",
                "required": ["entry_point", "dist_dir", "package_metadata", "compiler_command"],
                "properties": {
                    "entry_point": non_empty,
                    "dist_dir": non_empty,
                    "package_metadata": non_empty,
                    "compiler_command": _string_list(),
                    "python": non_empty,
                    "verbose": {"type": "boolean"},
                    "mangle": {"type": "boolean"},
                },
                "additionalProperties": False,
            },
            "upload": {
                "type": "object",
                "required": ["content_type"],
                "properties": {"content_type": non_empty},
                "additionalProperties": False,
            },
        },
        "additionalProperties": False,
    }


@dataclass(frozen=True)
class GitHubSettings:
    owner: str
    repo: str
    api_base: str
    uploads_base: str
    token_env_vars: Tuple[str, ...]
    timeout_seconds: float = 60
    upload_timeout_seconds: float = 600


@dataclass(frozen=True)
class BuildSettings:
    entry_point: str
    dist_dir: str
    package_metadata: str
    compiler_command: Tuple[str, ...]
    python: str = "python3"
    verbose: bool = True
    mangle: bool = False


@dataclass(frozen=True)
class PublisherConfig:
    github: GitHubSettings
    build: BuildSettings
    content_type: str
    source_path: Optional[Path] = None

    def with_repository(self, slug: str) -> "PublisherConfig":
        """Return a copy targeting another "owner/repo"."""
        owner, sep, repo = str(slug).strip().partition("/")
        if not sep or not owner.strip() or not repo.strip() or "/" in repo:
            raise ConfigError(f"Invalid repository {slug!r} (expected 'owner/repo')")
        return replace(self, github=replace(self.github, owner=owner.strip(), repo=repo.strip()))


def resolve_config_path(cli_path: Optional[str] = None) -> Path:
    """Resolve the publisher config YAML path.

    Precedence:
      1) CLI flag --config
      2) NEXE_BUILDS_CONFIG
      3) packaged nexe_builds/config/publisher_config.yml
    """
    if cli_path and str(cli_path).strip():
        return Path(str(cli_path).strip()).expanduser().resolve()

    env_path = str(os.environ.get(CONFIG_ENV_VAR, "") or "").strip()
    if env_path:
        return Path(env_path).expanduser().resolve()

    return DEFAULT_CONFIG_PATH


def parse_publisher_config(data: Dict[str, Any], source_path: Optional[Path] = None) -> PublisherConfig:
    try:
        jsonschema.validate(instance=data, schema=_config_schema())
    except jsonschema.ValidationError as e:
        where = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise ConfigError(f"publisher config schema validation failed at {where}: {e.message}") from e

    repo = data["repository"]
    gh = data["github"]
    build = data["build"]

    github = GitHubSettings(
        owner=str(repo["owner"]).strip(),
        repo=str(repo["name"]).strip(),
        api_base=str(gh["api_base"]).rstrip("/"),
        uploads_base=str(gh["uploads_base"]).rstrip("/"),
        token_env_vars=tuple(str(v) for v in gh["token_env_vars"]),
        timeout_seconds=float(gh.get("timeout_seconds", 60)),
        upload_timeout_seconds=float(gh.get("upload_timeout_seconds", 600)),
    )
    build_settings = BuildSettings(
        entry_point=str(build["entry_point"]),
        dist_dir=str(build["dist_dir"]),
        package_metadata=str(build["package_metadata"]),
        compiler_command=tuple(str(v) for v in build["compiler_command"]),
        python=str(build.get("python", "python3")),
        verbose=bool(build.get("verbose", True)),
        mangle=bool(build.get("mangle", False)),
    )
    return PublisherConfig(
        github=github,
        build=build_settings,
        content_type=str(data["upload"]["content_type"]),
        source_path=source_path,
    )


def load_publisher_config(cli_path: Optional[str] = None) -> PublisherConfig:
    """Load and validate the publisher config.

    Raises:
        ConfigError: if the file is missing, malformed or fails schema validation.
    """
    path = resolve_config_path(cli_path)
    if not path.exists():
        raise ConfigError(f"publisher config not found: {path}")

    try:
        data = read_yaml(path)
    except (ValueError, OSError, yaml.YAMLError) as e:
        raise ConfigError(f"publisher config unreadable: {path}: {e}") from e

    return parse_publisher_config(data, source_path=path)
