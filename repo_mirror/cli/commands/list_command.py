"""
Command-line implementation for listing repositories.
"""

import logging
from typing import List

from repo_mirror.cli.base_command import EXIT_OK
from repo_mirror.core.config import load_config_from_env
from repo_mirror.core.models import RepositoryDescriptor, RepositoryLink
from repo_mirror.hosts import GitHubClient, build_source_client

logger = logging.getLogger(__name__)


def format_repository(index: int, repo: RepositoryDescriptor) -> str:
    lines = [
        f"{index}. {repo.name}",
        f"   Description: {repo.description or 'No description'}",
        f"   Private: {'Yes' if repo.is_private else 'No'}",
        f"   Language: {repo.language}",
    ]
    if repo.updated_on:
        lines.append(f"   Updated: {repo.updated_on[:10]}")
    return "\n".join(lines) + "\n"


def list_command(destination: bool = False) -> int:
    """
    Print the repositories of the source host, or of the destination with ``destination``.

    Raises:
        ConfigError: If configuration is invalid
        MirrorError: If the listing fails
    """
    config = load_config_from_env()

    if destination:
        links: List[RepositoryLink] = GitHubClient(config.github).list_repositories()
        logger.info("Found %d repositories on destination", len(links))
        for index, link in enumerate(links, 1):
            print(f"{index}. {link.full_name or link.name}  {link.web_url}")
        return EXIT_OK

    repositories = build_source_client(config).list_repositories()
    logger.info("Found %d repositories", len(repositories))
    for index, repo in enumerate(repositories, 1):
        print(format_repository(index, repo))
    return EXIT_OK
