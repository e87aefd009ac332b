"""Core functionality for the repository mirroring tool."""

from repo_mirror.core.config import (
    BitbucketConfig,
    GitHubConfig,
    GitLabConfig,
    MigrationConfig,
    TransferConfig,
    get_env_variable,
    load_config_from_env,
)
from repo_mirror.core.exceptions import (
    ApiError,
    CloneFailedError,
    ConfigError,
    MirrorError,
    PushFailedAfterRewriteError,
    PushRejectedError,
    PushRejectedLargeObjectError,
    RewriteError,
    ScanError,
    TransferError,
    WorkspaceError,
)
from repo_mirror.core.models import LargeObjectRecord, MigrationOutcome, RepositoryDescriptor

__all__ = [
    "MirrorError",
    "ConfigError",
    "ApiError",
    "TransferError",
    "CloneFailedError",
    "PushRejectedError",
    "PushRejectedLargeObjectError",
    "PushFailedAfterRewriteError",
    "ScanError",
    "RewriteError",
    "WorkspaceError",
    "BitbucketConfig",
    "GitHubConfig",
    "GitLabConfig",
    "MigrationConfig",
    "TransferConfig",
    "get_env_variable",
    "load_config_from_env",
    "LargeObjectRecord",
    "MigrationOutcome",
    "RepositoryDescriptor",
]
