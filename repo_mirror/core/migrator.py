"""
Core module for migrating repositories between hosting services.

Provides the per-repository driver around the transfer engine: existence checks,
destination creation, dry-run previews and failure isolation across a run.
"""

import csv
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import pandas as pd

from repo_mirror.core.config import MigrationConfig
from repo_mirror.core.exceptions import ConfigError, MirrorError, RepositoryExistsError
from repo_mirror.core.models import (
    MigrationOutcome,
    MigrationStats,
    RepositoryDescriptor,
    RepositoryLink,
    format_size,
)
from repo_mirror.hosts import build_destination_client, build_source_client
from repo_mirror.hosts.base import DestHostClient, SourceHostClient
from repo_mirror.utils.rewriter import HistoryRewriter
from repo_mirror.utils.runner import SubprocessRunner
from repo_mirror.utils.scanner import LargeObjectScanner
from repo_mirror.utils.transfer import TransferEngine
from repo_mirror.utils.workspace import WorkspaceManager

# Configure logging
logger = logging.getLogger(__name__)

SEPARATOR = "-" * 50


def load_repository_names(path: Union[str, Path]) -> List[str]:
    """
    Load repository names from a CSV file, one per row in the first column.

    Lines starting with ``#`` are ignored.

    Returns:
        List of repository names in file order, without duplicates

    Raises:
        ConfigError: If the file cannot be read
    """
    names: List[str] = []

    try:
        # First try reading with pandas
        try:
            df = pd.read_csv(path, header=None, comment="#", skip_blank_lines=True, dtype=str)
            for _, row in df.iterrows():
                if pd.notna(row[0]) and row[0].strip():
                    names.append(row[0].strip())

        # Fallback to manual CSV parsing if pandas fails
        except OSError as pandas_error:
            logger.warning("Pandas parsing failed, fallback to manual CSV: %s", pandas_error)
            with open(path, "r", encoding="utf-8") as file:
                reader = csv.reader(file)
                for row in reader:
                    if row and row[0].strip() and not row[0].startswith("#"):
                        names.append(row[0].strip())
        except pd.errors.EmptyDataError:
            logger.warning("No repository names found in %s", path)

    except Exception as e:
        logger.error("Failed to load repository names: %s", e)
        raise ConfigError(f"Failed to load repository names from {path}") from e

    return list(dict.fromkeys(names))


class MigrationService:
    """Migrates repositories from a source host to a destination host."""

    def __init__(
        self,
        config: MigrationConfig,
        source: SourceHostClient,
        destination: DestHostClient,
        engine: TransferEngine,
    ):
        """Initialize with migration configuration and collaborators."""
        self.config = config
        self.source = source
        self.destination = destination
        self.engine = engine
        self.stats = MigrationStats()
        self.errors: List[Dict[str, str]] = []

    def list_repositories(self) -> List[RepositoryDescriptor]:
        return self.source.list_repositories()

    def migrate_all(self) -> MigrationStats:
        """Migrate every repository of the source host."""
        logger.info("Starting migration...")
        if self.config.dry_run:
            logger.warning("DRY RUN MODE - No actual changes will be made")

        repositories = self.source.list_repositories()
        self.stats.total = len(repositories)

        for index, repo in enumerate(repositories, 1):
            logger.info("[%d/%d] Processing: %s", index, len(repositories), repo.name)
            self.stats.record(self.migrate_repository(repo))
            logger.info(SEPARATOR)

        self.finish()
        return self.stats

    def migrate_specific(self, names: Iterable[str]) -> MigrationStats:
        """Migrate the named repositories only."""
        names = list(names)
        logger.info("Migrating specific repositories: %s", ", ".join(names))
        if self.config.dry_run:
            logger.warning("DRY RUN MODE - No actual changes will be made")

        self.stats.total = len(names)
        for name in names:
            logger.info("Processing: %s", name)
            try:
                repo = self.source.get_repository(name)
            except MirrorError as e:
                self._record_error(name, e)
                self.stats.record(MigrationOutcome.FAILED)
                continue
            self.stats.record(self.migrate_repository(repo))
            logger.info(SEPARATOR)

        self.finish()
        return self.stats

    def migrate_repository(self, repo: RepositoryDescriptor) -> MigrationOutcome:
        """
        Migrate one repository, never raising.

        Returns:
            MigrationOutcome of this repository
        """
        try:
            exists = self.destination.exists(repo.name)

            if exists and self.config.skip_existing:
                logger.warning("Repository %s already exists on destination - skipping", repo.name)
                return MigrationOutcome.SKIPPED

            if self.config.dry_run:
                self._preview(repo)
                return MigrationOutcome.MIGRATED

            link = self._ensure_destination(repo, exists)
            repo = repo.with_destination(link.clone_url)

            result = self.engine.mirror(
                repo.clone_url,
                repo.destination_url,
                repo.name,
                self.source.credentials,
                self.destination.credentials,
            )
            if result.rewritten:
                logger.warning(
                    "Removed %d large files from the history of %s", len(result.removed), repo.name
                )
                for record in result.removed:
                    logger.warning("  - %s (%s)", record.path, format_size(record.size))

            logger.info("Migration completed: %s", link.web_url)
            return MigrationOutcome.MIGRATED

        except MirrorError as e:
            self._record_error(repo.name, e)
            return MigrationOutcome.FAILED
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.exception("Unexpected error migrating %s", repo.name)
            self._record_error(repo.name, e, error_type="UnexpectedError")
            return MigrationOutcome.FAILED

    def _ensure_destination(self, repo: RepositoryDescriptor, exists: bool) -> RepositoryLink:
        if exists:
            logger.info("Repository %s already exists, updating content...", repo.name)
            return self.destination.update(repo.name, repo)

        try:
            return self.destination.create(repo)
        except RepositoryExistsError:
            # Created between the existence check and now
            logger.info("Repository %s appeared on destination, reusing it", repo.name)
            return self.destination.get(repo.name)

    def _preview(self, repo: RepositoryDescriptor) -> None:
        logger.info("[DRY RUN] Would migrate: %s", repo.name)
        logger.info("  - Description: %s", repo.description or "No description")
        logger.info("  - Private: %s", "Yes" if repo.is_private else "No")
        logger.info("  - Language: %s", repo.language)

    def _record_error(self, name: str, error: Exception, error_type: Optional[str] = None) -> None:
        logger.error("Failed to migrate %s: %s", name, error)
        self.errors.append(
            {
                "repository": name,
                "error_type": error_type or type(error).__name__,
                "message": str(error),
            }
        )

    def finish(self) -> None:
        """Remove the working directory base and log the run summary."""
        self.engine.workspaces.cleanup()
        logger.info(
            "Migration Summary - Success: %d, Skipped: %d, Failed: %d, Total: %d",
            self.stats.success,
            self.stats.skipped,
            self.stats.failed,
            self.stats.total,
        )
        self._print_errors_summary()

    def _print_errors_summary(self) -> None:
        """Prints all collected errors in a formatted way."""
        if not self.errors:
            return

        print("\nMigration Errors Summary:")
        print("=" * 50)
        for idx, error in enumerate(self.errors, 1):
            print(f"Error #{idx}:")
            print(f"  Repository:  {error['repository']}")
            print(f"  Error Type:  {error['error_type']}")
            print(f"  Message:     {error['message']}")
            print("-" * 50)
        print(f"Total Errors: {len(self.errors)}")
        print("=" * 50 + "\n")


def build_service(config: MigrationConfig) -> MigrationService:
    """Wire up the real host clients and transfer pipeline for a configuration."""
    transfer = config.transfer
    runner = SubprocessRunner(default_timeout=transfer.command_timeout)
    engine = TransferEngine(
        runner,
        WorkspaceManager(transfer.temp_dir),
        scanner=LargeObjectScanner(runner, max_workers=transfer.scan_workers, timeout=transfer.command_timeout),
        rewriter=HistoryRewriter(
            runner, timeout=transfer.command_timeout, fallback_warn_paths=transfer.fallback_warn_paths
        ),
        size_threshold=transfer.size_threshold_bytes,
        timeout=transfer.command_timeout,
    )
    return MigrationService(config, build_source_client(config), build_destination_client(config), engine)
