"""
Command-line implementation for the migrate commands.

This module provides the CLI commands for migrating every repository of the
source host, or a named subset of them, to the destination host. Each
repository is created on the destination when missing and its full history
is mirror-pushed. Files rejected for their size are stripped from history.
"""

import logging
from typing import Iterable, List, Optional

from repo_mirror.cli.base_command import EXIT_MIRROR_ERROR, EXIT_OK
from repo_mirror.core.config import load_config_from_env
from repo_mirror.core.exceptions import ConfigError
from repo_mirror.core.migrator import build_service, load_repository_names
from repo_mirror.core.models import MigrationStats

logger = logging.getLogger(__name__)


def print_summary(stats: MigrationStats) -> None:
    print("\n===== MIGRATION SUMMARY =====")
    print(f"Successfully migrated: {stats.success}")
    print(f"Skipped: {stats.skipped}")
    print(f"Failed: {stats.failed}")
    print(f"Total repositories: {stats.total}")

    if stats.failed > 0:
        print("\nCheck logs for details on failures.")


def migrate_command(
    dry_run: Optional[bool] = None,
    skip_existing: Optional[bool] = None,
    temp_dir: Optional[str] = None,
    log_dir: Optional[str] = None,
) -> int:
    """
    Migrate all repositories from the source host to the destination host.

    Args:
        dry_run: Only preview, overrides DRY_RUN when given
        skip_existing: Skip repositories already on the destination, overrides SKIP_EXISTING
        temp_dir: Working directory base, overrides TEMP_DIR
        log_dir: Log directory, overrides LOG_DIR

    Returns:
        0 when every repository was migrated or skipped, 2 when any failed

    Raises:
        ConfigError: If configuration is invalid
        MirrorError: If the source listing fails
    """
    config = load_config_from_env(
        dry_run=dry_run, skip_existing=skip_existing, temp_dir=temp_dir, log_dir=log_dir
    )
    service = build_service(config)
    stats = service.migrate_all()
    print_summary(stats)
    return EXIT_MIRROR_ERROR if stats.failed else EXIT_OK


def migrate_specific_command(
    repos: Iterable[str],
    repos_file: Optional[str] = None,
    dry_run: Optional[bool] = None,
    skip_existing: Optional[bool] = None,
    temp_dir: Optional[str] = None,
    log_dir: Optional[str] = None,
) -> int:
    """
    Migrate the named repositories.

    Args:
        repos: Repository names given on the command line
        repos_file: CSV file with one repository name per line, appended to ``repos``

    Returns:
        0 when every repository was migrated or skipped, 2 when any failed

    Raises:
        ConfigError: If configuration is invalid or no repository was named
    """
    names: List[str] = list(repos)
    if repos_file:
        names.extend(load_repository_names(repos_file))
    names = list(dict.fromkeys(names))
    if not names:
        raise ConfigError("No repositories given, pass names or --repos-file")

    config = load_config_from_env(
        dry_run=dry_run, skip_existing=skip_existing, temp_dir=temp_dir, log_dir=log_dir
    )
    service = build_service(config)
    stats = service.migrate_specific(names)
    print_summary(stats)
    return EXIT_MIRROR_ERROR if stats.failed else EXIT_OK
