"""
GitLab source client built on python-gitlab.
"""

import logging
from typing import Any, Dict, List, Optional

import gitlab
from gitlab.exceptions import GitlabAuthenticationError, GitlabError, GitlabGetError, GitlabListError

from repo_mirror.core.config import GitLabConfig
from repo_mirror.core.exceptions import HostApiError, HostAuthError, RepositoryNotFoundError
from repo_mirror.core.models import Credentials, RepositoryDescriptor
from repo_mirror.hosts.base import SourceHostClient

# Configure logging
logger = logging.getLogger(__name__)


def destination_name(project: Any, group: Optional[str] = None) -> str:
    """
    Repository name for a project on a flat destination.

    Projects in subgroups are named by their path below ``group`` with ``/``
    replaced by ``-``, so ``grp/a/app`` becomes ``a-app`` and ``grp/app`` stays ``app``.
    """
    if group:
        prefix = group.strip("/").lower() + "/"
        if project.path_with_namespace.lower().startswith(prefix):
            return project.path_with_namespace[len(prefix):].replace("/", "-")
    return project.path


def descriptor_from_project(project: Any, group: Optional[str] = None) -> RepositoryDescriptor:
    """Build a RepositoryDescriptor from a python-gitlab project object."""
    return RepositoryDescriptor(
        name=destination_name(project, group),
        slug=project.path,
        full_name=project.path_with_namespace,
        description=getattr(project, "description", None) or "",
        is_private=getattr(project, "visibility", "private") != "public",
        clone_url=project.http_url_to_repo,
        updated_on=getattr(project, "last_activity_at", None),
        has_issues=bool(getattr(project, "issues_enabled", False)),
        has_wiki=bool(getattr(project, "wiki_enabled", False)),
    )


class GitLabSourceClient(SourceHostClient):
    """Lists and fetches projects of a GitLab group or of the token's user."""

    def __init__(self, config: GitLabConfig, client: Optional[gitlab.Gitlab] = None):
        self.config = config
        self.client = client or config.get_client()

    @property
    def credentials(self) -> Credentials:
        return self.config.credentials()

    def _project_path(self, name: str) -> str:
        if "/" in name or not self.config.group:
            return name
        return f"{self.config.group}/{name}"

    def list_repositories(self) -> List[RepositoryDescriptor]:
        try:
            if self.config.group:
                logger.debug("Listing projects of group %s", self.config.group)
                group = self.client.groups.get(self.config.group)
                group_projects = group.projects.list(iterator=True, include_subgroups=True, archived=False)
                # Group listings return lightweight objects without every attribute
                projects = [self.client.projects.get(p.id) for p in group_projects]
            else:
                projects = list(self.client.projects.list(iterator=True, membership=True, archived=False))
        except GitlabAuthenticationError as e:
            logger.error("GitLab rejected the token: %s", e)
            raise HostAuthError(f"Failed to fetch repositories from GitLab: {e}") from e
        except GitlabGetError as e:
            logger.error("Failed to get group %s: %s", self.config.group, e)
            raise RepositoryNotFoundError(f"Failed to get group {self.config.group}") from e
        except (GitlabListError, GitlabError) as e:
            logger.error("Failed to list projects: %s", e)
            raise HostApiError(f"Failed to fetch repositories from GitLab: {e}") from e

        repositories = [descriptor_from_project(project, self.config.group) for project in projects]

        seen: Dict[str, str] = {}
        for repo in repositories:
            if repo.name in seen:
                logger.error(
                    "Projects %s and %s both map to repository %s", seen[repo.name], repo.full_name, repo.name
                )
                raise HostApiError(
                    f"Projects {seen[repo.name]} and {repo.full_name} would both be migrated to {repo.name}"
                )
            seen[repo.name] = repo.full_name

        logger.info("Found %d repositories on GitLab", len(repositories))
        return repositories

    def get_repository(self, name: str) -> RepositoryDescriptor:
        path = self._project_path(name)
        try:
            project = self.client.projects.get(path)
        except GitlabAuthenticationError as e:
            raise HostAuthError(f"Failed to get project {path}: {e}") from e
        except GitlabGetError as e:
            if getattr(e, "response_code", None) == 404:
                raise RepositoryNotFoundError(f"Failed to get project {path}") from e
            logger.error("Failed to get project %s: %s", path, e)
            raise HostApiError(f"Failed to get project {path}: {e}") from e
        return descriptor_from_project(project, self.config.group)
