"""
GitHub destination client.
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from repo_mirror.core.config import GitHubConfig
from repo_mirror.core.exceptions import HostApiError, RepositoryExistsError, RepositoryNotFoundError
from repo_mirror.core.models import Credentials, RepositoryDescriptor, RepositoryLink
from repo_mirror.hosts.base import DestHostClient, raise_for_response, send

# Configure logging
logger = logging.getLogger(__name__)

PER_PAGE = 100


def link_from_payload(repo: Dict[str, Any]) -> RepositoryLink:
    return RepositoryLink(
        name=repo["name"],
        full_name=repo.get("full_name", ""),
        clone_url=repo["clone_url"],
        web_url=repo.get("html_url", ""),
        is_private=bool(repo.get("private", True)),
    )


def _already_exists(response: requests.Response) -> bool:
    if response.status_code != 422:
        return False
    try:
        errors = response.json().get("errors") or []
    except ValueError:
        return False
    return any("already exists" in (error.get("message") or "") for error in errors)


class GitHubClient(DestHostClient):
    """Creates and inspects repositories for a GitHub user or organization."""

    def __init__(self, config: GitHubConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"token {config.token.get_secret_value()}",
                "Accept": "application/vnd.github.v3+json",
            }
        )

    @property
    def credentials(self) -> Credentials:
        return self.config.credentials()

    def _repo_url(self, name: str) -> str:
        return f"{self.config.api_url}/repos/{quote(self.config.owner)}/{quote(name)}"

    def _collection_url(self) -> str:
        if self.config.organization:
            return f"{self.config.api_url}/orgs/{quote(self.config.organization)}/repos"
        return f"{self.config.api_url}/user/repos"

    def exists(self, name: str) -> bool:
        response = send(self.session, "GET", self._repo_url(name), f"check repository {name}")
        if response.status_code == 404:
            return False
        raise_for_response(response, f"check if repository {name} exists")
        return True

    def create(self, descriptor: RepositoryDescriptor) -> RepositoryLink:
        payload = {
            "name": descriptor.name,
            "description": descriptor.description or "",
            "private": descriptor.is_private,
            "has_issues": descriptor.has_issues,
            "has_wiki": descriptor.has_wiki,
            "auto_init": False,
        }
        response = send(
            self.session, "POST", self._collection_url(), f"create repository {descriptor.name}", json=payload
        )
        if _already_exists(response):
            raise RepositoryExistsError(f"Repository {descriptor.name} already exists on GitHub")
        raise_for_response(response, f"create repository {descriptor.name}")

        link = link_from_payload(response.json())
        logger.info("Created repository: %s", link.full_name)
        return link

    def get(self, name: str) -> RepositoryLink:
        response = send(self.session, "GET", self._repo_url(name), f"get repository {name}")
        raise_for_response(response, f"get repository {name}")
        return link_from_payload(response.json())

    def update(self, name: str, descriptor: RepositoryDescriptor) -> RepositoryLink:
        payload = {
            "description": descriptor.description or "",
            "private": descriptor.is_private,
            "has_issues": descriptor.has_issues,
            "has_wiki": descriptor.has_wiki,
        }
        response = send(self.session, "PATCH", self._repo_url(name), f"update repository {name}", json=payload)
        raise_for_response(response, f"update repository {name}")
        return link_from_payload(response.json())

    def list_repositories(self) -> List[RepositoryLink]:
        """All repositories of the owner, paging until an empty page."""
        repositories: List[RepositoryLink] = []
        page = 1
        while True:
            params: Dict[str, Any] = {"per_page": PER_PAGE, "page": page}
            if not self.config.organization:
                # /user/repos also returns collaborator and organization repositories by default
                params["affiliation"] = "owner"
            response = send(
                self.session,
                "GET",
                self._collection_url(),
                "fetch GitHub repositories",
                params=params,
            )
            try:
                raise_for_response(response, "fetch GitHub repositories")
            except RepositoryNotFoundError as e:
                raise HostApiError(str(e)) from e
            items = response.json()
            if not items:
                break
            repositories.extend(link_from_payload(repo) for repo in items)
            page += 1
        return repositories
