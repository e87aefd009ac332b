"""
Custom exceptions for the repository mirroring project.

This module provides a hierarchy of exceptions used throughout the project.
"""

from typing import Iterable, Optional


class MirrorError(Exception):
    """Base exception for mirroring operations."""

class ConfigError(MirrorError):
    """Configuration related errors."""

class ApiError(MirrorError):
    """Hosting service API related errors."""

class HostApiError(ApiError):
    """Network or unexpected HTTP failure talking to a hosting service."""

class HostAuthError(HostApiError):
    """The hosting service rejected the supplied credentials."""

class RepositoryNotFoundError(ApiError):
    """The requested repository does not exist on the hosting service."""

class RepositoryExistsError(ApiError):
    """The repository already exists on the destination host."""

class GitCommandTimeout(MirrorError):
    """A git subprocess did not finish within its time bound."""

class WorkspaceError(MirrorError):
    """The local working directory could not be prepared."""

class ScanError(MirrorError):
    """Object enumeration of the local mirror could not run."""

class RewriteError(MirrorError):
    """Every history rewriting strategy failed."""


class TransferError(MirrorError):
    """Base exception for a failed repository transfer."""

class InvalidUrlError(TransferError):
    """A clone URL is malformed and cannot carry credentials."""

class CloneFailedError(TransferError):
    """The source repository could not be cloned."""

class PushRejectedLargeObjectError(TransferError):
    """The push was rejected for oversized objects that could not be located."""

class PushRejectedError(TransferError):
    """The push failed for a reason other than oversized objects."""


class PushFailedAfterRewriteError(TransferError):
    """The destination still rejected oversized objects after history was rewritten."""

    def __init__(self, message: str, paths: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.paths = sorted(set(paths or ()))
