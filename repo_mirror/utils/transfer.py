"""
Mirror transfer of a single repository from a source host to a destination host.

The transfer clones a bare mirror of the source, force-pushes every ref to the
destination and, when the destination rejects the push for oversized files,
strips those files from history and pushes exactly once more.
"""

import logging
import re
from enum import Enum
from typing import List, NoReturn, Optional, Set

from repo_mirror.core.exceptions import (
    CloneFailedError,
    GitCommandTimeout,
    PushFailedAfterRewriteError,
    PushRejectedError,
    PushRejectedLargeObjectError,
)
from repo_mirror.core.models import (
    DEFAULT_SIZE_THRESHOLD,
    Credentials,
    LargeObjectRecord,
    TransferAttempt,
    TransferResult,
    format_size,
    unique_paths,
)
from repo_mirror.utils.rewriter import HistoryRewriter
from repo_mirror.utils.runner import ProcessResult, ProcessRunner, run_git
from repo_mirror.utils.scanner import LargeObjectScanner
from repo_mirror.utils.urls import add_auth_to_url, mask_credentials
from repo_mirror.utils.workspace import WorkspaceManager

# Configure logging
logger = logging.getLogger(__name__)

DESTINATION_REMOTE = "destination"

# Hosts phrase these as "exceeds GitHub's file size limit" and "GH001: Large files detected"
LARGE_OBJECT_SIGNATURES = (
    re.compile(r"exceeds\b.*?\bfile size limit", re.IGNORECASE),
    re.compile(r"large files detected", re.IGNORECASE),
)
REJECTED_FILE_RE = re.compile(r"File (?P<path>.+?) is (?P<size>\d+(?:\.\d+)?) MB")


class PushFailureKind(Enum):
    LARGE_OBJECT = "large_object"
    OTHER = "other"


def classify_push_error(message: str) -> PushFailureKind:
    """Map the text of a failed push to the kind of failure it reports."""
    if any(signature.search(message or "") for signature in LARGE_OBJECT_SIGNATURES):
        return PushFailureKind.LARGE_OBJECT
    return PushFailureKind.OTHER


def rejected_paths(message: str) -> List[str]:
    """Paths the destination names in a large file rejection message."""
    return sorted({match.group("path") for match in REJECTED_FILE_RE.finditer(message or "")})


class TransferEngine:
    """Runs the clone, push, scan, rewrite and retry cycle for one repository."""

    def __init__(
        self,
        runner: ProcessRunner,
        workspaces: WorkspaceManager,
        scanner: Optional[LargeObjectScanner] = None,
        rewriter: Optional[HistoryRewriter] = None,
        size_threshold: int = DEFAULT_SIZE_THRESHOLD,
        timeout: Optional[float] = None,
    ):
        self.runner = runner
        self.workspaces = workspaces
        self.scanner = scanner if scanner is not None else LargeObjectScanner(runner, timeout=timeout)
        self.rewriter = rewriter if rewriter is not None else HistoryRewriter(runner, timeout=timeout)
        self.size_threshold = size_threshold
        self.timeout = timeout

    def mirror(
        self,
        source_url: str,
        destination_url: str,
        repo_name: str,
        source_credentials: Optional[Credentials] = None,
        destination_credentials: Optional[Credentials] = None,
    ) -> TransferResult:
        """
        Replace the destination's refs with an exact copy of the source's.

        Args:
            source_url: Clone URL on the source host
            destination_url: Clone URL on the destination host
            repo_name: Repository name, keys the working directory
            source_credentials: Credentials embedded into the source URL
            destination_credentials: Credentials embedded into the destination URL

        Returns:
            TransferResult describing any history rewrite that was needed

        Raises:
            InvalidUrlError: If either URL is malformed
            WorkspaceError: If the working directory could not be prepared
            CloneFailedError: If the source could not be cloned
            PushRejectedError: If the push failed for a reason other than large files
            PushRejectedLargeObjectError: If large files were reported but none were found
            PushFailedAfterRewriteError: If large files were still rejected after rewriting
            ScanError: If object enumeration failed
            RewriteError: If the history could not be rewritten
        """
        authenticated_source = add_auth_to_url(source_url, source_credentials)
        authenticated_destination = add_auth_to_url(destination_url, destination_credentials)

        with self.workspaces.session(repo_name) as workspace:
            attempt = TransferAttempt(
                workspace=workspace,
                source_url=authenticated_source,
                destination_url=authenticated_destination,
            )
            self.clone(attempt, repo_name)
            return self.push_with_recovery(attempt, repo_name)

    def clone(self, attempt: TransferAttempt, repo_name: str) -> None:
        """Bare clone of the source into the attempt's working directory."""
        logger.info("Cloning %s", repo_name)
        try:
            result = run_git(
                self.runner,
                ["clone", "--bare", attempt.source_url, str(attempt.workspace)],
                timeout=self.timeout,
            )
        except GitCommandTimeout as e:
            raise CloneFailedError(f"Failed to clone repository {repo_name}: {e}") from e

        if not result.ok:
            message = mask_credentials(result.stderr.strip())
            logger.error("Failed to clone repository %s: %s", repo_name, message)
            raise CloneFailedError(f"Failed to clone repository {repo_name}: {message}")

    def setup_destination_remote(self, attempt: TransferAttempt) -> ProcessResult:
        """Point the ``destination`` remote at the destination URL."""
        remotes = run_git(self.runner, ["remote"], cwd=attempt.workspace, timeout=self.timeout)
        existing = [r.strip() for r in remotes.stdout.splitlines() if r.strip()]

        if DESTINATION_REMOTE in existing:
            args = ["remote", "set-url", DESTINATION_REMOTE, attempt.destination_url]
        else:
            args = ["remote", "add", DESTINATION_REMOTE, attempt.destination_url]
        return run_git(self.runner, args, cwd=attempt.workspace, timeout=self.timeout)

    def attempt_push(self, attempt: TransferAttempt) -> ProcessResult:
        """Force the destination's full ref set to match the local mirror."""
        try:
            remote = self.setup_destination_remote(attempt)
            if not remote.ok:
                return remote
            return run_git(
                self.runner,
                ["push", "--mirror", "--force", DESTINATION_REMOTE],
                cwd=attempt.workspace,
                timeout=self.timeout,
            )
        except GitCommandTimeout as e:
            raise PushRejectedError(f"Failed to push: {e}") from e

    def push_with_recovery(self, attempt: TransferAttempt, repo_name: str) -> TransferResult:
        result = self.attempt_push(attempt)
        if result.ok:
            logger.info("Pushed %s", repo_name)
            return TransferResult(repo_name=repo_name)

        message = mask_credentials(result.output.strip())
        if classify_push_error(message) is PushFailureKind.OTHER:
            raise PushRejectedError(f"Failed to push {repo_name}: {message}")

        logger.info("Detected large file error, attempting to remove large files...")
        records = self.scanner.scan(attempt.workspace, self.size_threshold)
        if not records:
            raise PushRejectedLargeObjectError(
                f"Push of {repo_name} was rejected for large files but none of at least "
                f"{format_size(self.size_threshold)} were found: {message}"
            )

        logger.info("Found %d large files", len(records))
        self.rewriter.strip_paths(attempt.workspace, unique_paths(records))

        attempt.is_retry = True
        retry = self.attempt_push(attempt)
        if retry.ok:
            logger.info("Successfully pushed after removing large files!")
            return TransferResult(
                repo_name=repo_name,
                rewritten=True,
                removed=sorted(records, key=lambda r: (r.path, r.object_id)),
            )

        self._raise_retry_failure(repo_name, retry, records)

    def _raise_retry_failure(
        self, repo_name: str, retry: ProcessResult, records: Set[LargeObjectRecord]
    ) -> NoReturn:
        message = mask_credentials(retry.output.strip())
        if classify_push_error(message) is PushFailureKind.OTHER:
            raise PushRejectedError(f"Failed to push {repo_name} after rewrite: {message}")

        logger.warning("Large file error persists after cleanup. Extracting file names...")
        paths = rejected_paths(message)
        for match in REJECTED_FILE_RE.finditer(message):
            logger.warning("Still problematic: %s", match.group(0))
        raise PushFailedAfterRewriteError(
            f"Large files still present after cleanup in {repo_name}: {message}",
            paths=paths or unique_paths(records),
        )
