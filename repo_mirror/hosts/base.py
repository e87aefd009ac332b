"""
Interfaces for the source and destination hosting services.

The migrator only talks to hosts through these classes, so new services can be
added without touching the transfer pipeline.
"""

import logging
from abc import ABC, abstractmethod
from typing import List

import requests

from repo_mirror.core.exceptions import HostApiError, HostAuthError, RepositoryNotFoundError
from repo_mirror.core.models import Credentials, RepositoryDescriptor, RepositoryLink

# Configure logging
logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 30


class SourceHostClient(ABC):
    """Read access to the repositories of the source host."""

    @property
    @abstractmethod
    def credentials(self) -> Credentials:
        """Credentials for cloning from this host."""

    @abstractmethod
    def list_repositories(self) -> List[RepositoryDescriptor]:
        """All repositories, following pagination."""

    @abstractmethod
    def get_repository(self, name: str) -> RepositoryDescriptor:
        """One repository by name, raising RepositoryNotFoundError if absent."""


class DestHostClient(ABC):
    """Repository management on the destination host."""

    @property
    @abstractmethod
    def credentials(self) -> Credentials:
        """Credentials for pushing to this host."""

    @abstractmethod
    def exists(self, name: str) -> bool:
        """Whether a repository with this name exists."""

    @abstractmethod
    def create(self, descriptor: RepositoryDescriptor) -> RepositoryLink:
        """Create an empty repository, raising RepositoryExistsError if taken."""

    @abstractmethod
    def get(self, name: str) -> RepositoryLink:
        """Addresses of an existing repository."""

    @abstractmethod
    def update(self, name: str, descriptor: RepositoryDescriptor) -> RepositoryLink:
        """Align an existing repository's settings with the descriptor."""


def raise_for_response(response: requests.Response, action: str) -> None:
    """
    Translate an unsuccessful HTTP response into the project's exceptions.

    Args:
        response: Response to inspect
        action: Description used in the error message, e.g. "fetch repository foo"

    Raises:
        HostAuthError: On 401 and 403
        RepositoryNotFoundError: On 404
        HostApiError: On any other unsuccessful status
    """
    if response.ok:
        return

    status = response.status_code
    detail = f"{status} {response.reason or ''}".strip()
    if status in (401, 403):
        logger.error("Authentication failed while trying to %s: %s", action, detail)
        raise HostAuthError(f"Failed to {action}: {detail}")
    if status == 404:
        raise RepositoryNotFoundError(f"Failed to {action}: {detail}")

    logger.error("API error while trying to %s: %s %s", action, detail, response.text[:500])
    raise HostApiError(f"Failed to {action}: {detail}")


def send(session: requests.Session, method: str, url: str, action: str, **kwargs) -> requests.Response:
    """Issue a request, wrapping transport failures in HostApiError."""
    kwargs.setdefault("timeout", DEFAULT_REQUEST_TIMEOUT)
    try:
        return session.request(method, url, **kwargs)
    except requests.RequestException as e:
        logger.error("Network error while trying to %s: %s", action, e)
        raise HostApiError(f"Failed to {action}: {e}") from e
