"""
Detection of oversized objects anywhere in a repository's history.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Set, Tuple, Union

from repo_mirror.core.exceptions import GitCommandTimeout, ScanError
from repo_mirror.core.models import DEFAULT_SIZE_THRESHOLD, LargeObjectRecord, format_size
from repo_mirror.utils.runner import ProcessRunner, run_git

# Configure logging
logger = logging.getLogger(__name__)


def parse_object_listing(output: str) -> List[Tuple[str, str]]:
    """
    Parse ``git rev-list --objects`` output into (object id, path) pairs.

    Commits and root trees are listed without a path and are dropped. Paths may
    contain spaces, so only the first space separates the id.
    """
    objects = []
    for line in output.splitlines():
        object_id, _, path = line.strip("\n").partition(" ")
        if not object_id or not path:
            continue
        objects.append((object_id, path))
    return objects


class LargeObjectScanner:
    """Finds objects at or above a size threshold in a local mirror."""

    def __init__(
        self,
        runner: ProcessRunner,
        max_workers: int = 8,
        timeout: Optional[float] = None,
    ):
        self.runner = runner
        self.max_workers = max_workers
        self.timeout = timeout

    def list_objects(self, repo_path: Union[str, Path]) -> List[Tuple[str, str]]:
        """
        List every object reachable from any ref, paired with its path.

        Raises:
            ScanError: If git could not enumerate the objects
        """
        try:
            result = run_git(
                self.runner, ["rev-list", "--objects", "--all"], cwd=repo_path, timeout=self.timeout
            )
        except GitCommandTimeout as e:
            raise ScanError(f"Failed to list git objects: {e}") from e

        if not result.ok:
            logger.error("Failed to list git objects: %s", result.stderr.strip())
            raise ScanError(f"Failed to list git objects: {result.stderr.strip()}")

        return parse_object_listing(result.stdout)

    def object_size(self, repo_path: Union[str, Path], object_id: str) -> Optional[int]:
        """Decompressed size of one object, or ``None`` if it could not be read."""
        try:
            result = run_git(
                self.runner, ["cat-file", "-s", object_id], cwd=repo_path, timeout=self.timeout
            )
        except GitCommandTimeout as e:
            logger.warning("Size lookup for %s timed out: %s", object_id, e)
            return None
        except Exception as e:
            logger.warning("Size lookup for %s raised %s: %s", object_id, type(e).__name__, e)
            return None

        if not result.ok:
            logger.warning("Size lookup for %s failed: %s", object_id, result.stderr.strip())
            return None
        try:
            return int(result.stdout.strip())
        except ValueError:
            logger.warning("Unexpected size output for %s: %r", object_id, result.stdout)
            return None

    def scan(
        self, repo_path: Union[str, Path], threshold: int = DEFAULT_SIZE_THRESHOLD
    ) -> Set[LargeObjectRecord]:
        """
        Find objects whose size is at least ``threshold`` bytes.

        Size lookups run concurrently on a bounded pool. An object whose lookup
        fails is left out of the result instead of aborting the scan.

        Args:
            repo_path: Path of the local bare mirror
            threshold: Size in bytes at or above which an object is reported

        Returns:
            Set of LargeObjectRecord

        Raises:
            ScanError: If object enumeration itself failed
        """
        objects = self.list_objects(repo_path)
        logger.info("Checking sizes of %d objects (threshold %s)", len(objects), format_size(threshold))

        if not objects:
            return set()

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = [
                (object_id, path, pool.submit(self.object_size, repo_path, object_id))
                for object_id, path in objects
            ]
            sizes = [(object_id, path, future.result()) for object_id, path, future in futures]

        failed = sum(1 for _, _, size in sizes if size is None)
        if failed:
            logger.warning("Could not determine the size of %d objects, excluding them", failed)

        records = {
            LargeObjectRecord(object_id=object_id, path=path, size=size)
            for object_id, path, size in sizes
            if size is not None and size >= threshold
        }

        for record in sorted(records, key=lambda r: r.path):
            logger.info("  - %s (%s)", record.path, format_size(record.size))

        return records
