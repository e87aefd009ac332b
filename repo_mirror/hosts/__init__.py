"""Hosting service clients used by the migrator."""

from repo_mirror.core.config import MigrationConfig
from repo_mirror.hosts.base import DestHostClient, SourceHostClient
from repo_mirror.hosts.bitbucket import BitbucketClient
from repo_mirror.hosts.github import GitHubClient
from repo_mirror.hosts.gitlab import GitLabSourceClient


def build_source_client(config: MigrationConfig) -> SourceHostClient:
    """Source client for the configured ``source_host``."""
    if config.source_host == "gitlab":
        return GitLabSourceClient(config.gitlab)
    return BitbucketClient(config.bitbucket)


def build_destination_client(config: MigrationConfig) -> DestHostClient:
    return GitHubClient(config.github)


__all__ = [
    "SourceHostClient",
    "DestHostClient",
    "BitbucketClient",
    "GitHubClient",
    "GitLabSourceClient",
    "build_source_client",
    "build_destination_client",
]
