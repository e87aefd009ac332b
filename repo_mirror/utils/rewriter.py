"""
Subtractive history rewriting for local mirrors.

Paths are removed from every revision with ``git filter-repo`` when it is
installed, otherwise with ``git filter-branch`` one path at a time. Either way
the pre-rewrite objects are purged afterwards so a mirror push cannot send
them again.
"""

import logging
import shlex
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Union

from repo_mirror.core.exceptions import GitCommandTimeout, RewriteError
from repo_mirror.utils.runner import ProcessRunner, run_git

# Configure logging
logger = logging.getLogger(__name__)

BACKUP_REF_NAMESPACE = "refs/original/"

# filter-branch otherwise prints a warning and sleeps before starting
FILTER_BRANCH_ENV = {"FILTER_BRANCH_SQUELCH_WARNING": "1"}


class FilterRepoProbe(Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


class RewriteStrategy(Enum):
    FILTER_REPO = "filter-repo"
    FILTER_BRANCH = "filter-branch"


@dataclass
class RewriteReport:
    """What a rewrite did to the local mirror."""

    strategy: Optional[RewriteStrategy]
    paths: List[str] = field(default_factory=list)
    deleted_backup_refs: List[str] = field(default_factory=list)


class HistoryRewriter:
    """Strips paths from all history of a local repository."""

    def __init__(
        self,
        runner: ProcessRunner,
        timeout: Optional[float] = None,
        fallback_warn_paths: int = 25,
    ):
        self.runner = runner
        self.timeout = timeout
        self.fallback_warn_paths = fallback_warn_paths

    def _git(self, args, repo_path, env=None):
        return run_git(self.runner, args, cwd=repo_path, env=env, timeout=self.timeout)

    def probe_filter_repo(self, repo_path: Union[str, Path]) -> FilterRepoProbe:
        """Check whether the ``git filter-repo`` plugin can be run."""
        result = self._git(["filter-repo", "--version"], repo_path)
        if result.ok:
            logger.debug("git filter-repo version: %s", result.stdout.strip())
            return FilterRepoProbe.AVAILABLE
        return FilterRepoProbe.UNAVAILABLE

    def strip_paths(self, repo_path: Union[str, Path], paths: Iterable[str]) -> RewriteReport:
        """
        Remove the given paths from every commit on every ref.

        Args:
            repo_path: Path of the local bare mirror
            paths: Repository-relative paths to remove

        Returns:
            RewriteReport describing the strategy used

        Raises:
            RewriteError: If neither strategy could rewrite the history
        """
        path_list = sorted(set(paths))
        if not path_list:
            return RewriteReport(strategy=None)

        logger.info("Removing %d large files from repository history...", len(path_list))

        try:
            strategy = self._rewrite(repo_path, path_list)
            report = RewriteReport(strategy=strategy, paths=path_list)
            report.deleted_backup_refs = self.delete_backup_refs(repo_path)
        except GitCommandTimeout as e:
            raise RewriteError(f"History rewrite timed out: {e}") from e

        self.reclaim_space(repo_path)
        return report

    def _rewrite(self, repo_path, path_list: List[str]) -> RewriteStrategy:
        if self.probe_filter_repo(repo_path) is FilterRepoProbe.AVAILABLE:
            if self.filter_repo(repo_path, path_list):
                logger.info("Successfully removed large files using git-filter-repo.")
                return RewriteStrategy.FILTER_REPO
            logger.warning("git-filter-repo failed, falling back to git-filter-branch.")
        else:
            logger.warning("git-filter-repo not found, falling back to git-filter-branch.")

        self.filter_branch(repo_path, path_list)
        return RewriteStrategy.FILTER_BRANCH

    def filter_repo(self, repo_path, path_list: List[str]) -> bool:
        """Single ``git filter-repo`` pass keeping everything except the given paths."""
        args = ["filter-repo", "--force", "--invert-paths", "--replace-refs", "delete-no-add"]
        for path in path_list:
            args.extend(["--path", path])

        result = self._git(args, repo_path)
        if not result.ok:
            logger.warning("git-filter-repo exited with %d: %s", result.returncode, result.stderr.strip())
        return result.ok

    def filter_branch(self, repo_path, path_list: List[str]) -> None:
        """
        One ``git filter-branch`` pass per path over all refs.

        Raises:
            RewriteError: If any pass fails
        """
        if len(path_list) > self.fallback_warn_paths:
            logger.warning(
                "git-filter-branch will rewrite the full history %d times, this may take a long time",
                len(path_list),
            )

        logger.info("Starting large file removal with git-filter-branch...")
        for path in path_list:
            index_filter = "git rm -r --cached --ignore-unmatch --quiet -- %s" % shlex.quote(path)
            args = [
                "filter-branch",
                "--force",
                "--index-filter",
                index_filter,
                "--prune-empty",
                "--tag-name-filter",
                "cat",
                "--",
                "--all",
            ]
            result = self._git(args, repo_path, env=FILTER_BRANCH_ENV)
            if not result.ok:
                logger.error("git-filter-branch failed for %s: %s", path, result.stderr.strip())
                raise RewriteError(
                    f"Failed to remove large files with filter-branch: {result.stderr.strip()}"
                )
            logger.debug("Removed %s from history", path)

        logger.info("Finished filter-branch. Now cleaning up %s", BACKUP_REF_NAMESPACE)

    def delete_backup_refs(self, repo_path) -> List[str]:
        """Delete the pre-rewrite refs under ``refs/original/``."""
        result = self._git(["for-each-ref", "--format=%(refname)", BACKUP_REF_NAMESPACE], repo_path)
        if not result.ok:
            logger.warning("Could not list backup refs: %s", result.stderr.strip())
            return []

        deleted = []
        for ref in (line.strip() for line in result.stdout.splitlines()):
            if not ref:
                continue
            delete = self._git(["update-ref", "-d", ref], repo_path)
            if delete.ok:
                deleted.append(ref)
            else:
                logger.warning("Could not delete original ref: %s", ref)
        return deleted

    def reclaim_space(self, repo_path) -> None:
        """Expire reflogs and garbage collect so stripped objects are gone."""
        logger.info("Cleaning up repository...")
        for args in (
            ["reflog", "expire", "--expire=now", "--all"],
            ["gc", "--prune=now", "--aggressive"],
        ):
            try:
                result = self._git(args, repo_path)
            except GitCommandTimeout as e:
                logger.warning("Git cleanup warning: %s", e)
                continue
            if not result.ok:
                logger.warning("Git cleanup warning: %s", result.stderr.strip())
        logger.info("Repository cleanup completed")
