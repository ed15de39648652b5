from __future__ import annotations

from typing import Optional


class PublisherError(Exception):
    """Base class for publisher errors."""


class ConfigError(PublisherError):
    """Raised when the publisher config or its inputs fail validation."""


class MissingCredentialError(ConfigError):
    """Raised when no GitHub token is available in the environment."""


class MetadataError(PublisherError):
    """Raised when the local package metadata cannot provide a version."""


class ReleaseNotFoundError(PublisherError):
    """Raised when no release is tagged with the local package version."""

    def __init__(self, version: str):
        super().__init__(f"release not found for version {version}")
        self.version = version


class ToolchainError(PublisherError):
    """Raised when a toolchain discovery command fails."""


class CompilerError(PublisherError):
    """Raised when the external compiler fails or produces no binary."""


class GitHubApiError(PublisherError):
    """Raised when a GitHub API call returns an unexpected status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
