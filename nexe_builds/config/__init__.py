from .publisher_config import (
    BuildSettings,
    GitHubSettings,
    PublisherConfig,
    load_publisher_config,
    resolve_config_path,
)

__all__ = [
    "BuildSettings",
    "GitHubSettings",
    "PublisherConfig",
    "load_publisher_config",
    "resolve_config_path",
]
