"""
Bitbucket Cloud source client.
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from repo_mirror.core.config import BitbucketConfig
from repo_mirror.core.exceptions import HostApiError
from repo_mirror.core.models import Credentials, RepositoryDescriptor
from repo_mirror.hosts.base import SourceHostClient, raise_for_response, send

# Configure logging
logger = logging.getLogger(__name__)

PAGE_LENGTH = 100


def descriptor_from_payload(repo: Dict[str, Any]) -> RepositoryDescriptor:
    """Build a RepositoryDescriptor from a Bitbucket repository object."""
    clone_links = repo.get("links", {}).get("clone", [])
    clone_url = next((link["href"] for link in clone_links if link.get("name") == "https"), None)
    if not clone_url:
        raise HostApiError(f"Repository {repo.get('full_name')} has no https clone link")

    return RepositoryDescriptor(
        name=repo["name"],
        slug=repo.get("slug") or repo["name"],
        full_name=repo.get("full_name", ""),
        description=repo.get("description") or "",
        is_private=bool(repo.get("is_private", True)),
        clone_url=clone_url,
        language=repo.get("language") or "Unknown",
        size=repo.get("size") or 0,
        updated_on=repo.get("updated_on"),
        has_issues=bool(repo.get("has_issues", False)),
        has_wiki=bool(repo.get("has_wiki", False)),
    )


class BitbucketClient(SourceHostClient):
    """Lists and fetches repositories of one Bitbucket workspace."""

    def __init__(self, config: BitbucketConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()
        self.session.auth = (config.username, config.app_password.get_secret_value())
        self.session.headers.update({"Accept": "application/json"})

    @property
    def credentials(self) -> Credentials:
        return self.config.credentials()

    def list_repositories(self) -> List[RepositoryDescriptor]:
        repositories = []
        url: Optional[str] = f"{self.config.api_url}/repositories/{quote(self.config.workspace)}"
        params: Optional[Dict[str, Any]] = {"pagelen": PAGE_LENGTH}

        while url:
            response = send(self.session, "GET", url, "fetch repositories from Bitbucket", params=params)
            raise_for_response(response, "fetch repositories from Bitbucket")
            data = response.json()
            repositories.extend(descriptor_from_payload(repo) for repo in data.get("values", []))
            # The next link already carries the query string
            url = data.get("next")
            params = None

        logger.info("Found %d repositories in Bitbucket workspace", len(repositories))
        return repositories

    def get_repository(self, name: str) -> RepositoryDescriptor:
        url = f"{self.config.api_url}/repositories/{quote(self.config.workspace)}/{quote(name)}"
        response = send(self.session, "GET", url, f"fetch repository {name}")
        raise_for_response(response, f"fetch repository {name}")
        return descriptor_from_payload(response.json())
