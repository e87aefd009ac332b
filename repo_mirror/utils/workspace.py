"""
Scoped working directories for local mirror clones.

Each repository gets its own deterministic directory under a shared base
directory, so repositories can be processed in parallel without sharing a path.
"""

import hashlib
import logging
import re
import shutil
from pathlib import Path
from typing import Union

from repo_mirror.core.exceptions import WorkspaceError

# Configure logging
logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def workspace_name(repo_name: str) -> str:
    """
    Derive a directory name for a repository.

    Plain names are used as-is. Names that need sanitising get a short hash of
    the original appended, so ``group/app`` and ``group_app`` never collide.
    """
    safe_name = _UNSAFE_CHARS.sub("_", repo_name).strip(".")
    if safe_name == repo_name and safe_name:
        return safe_name
    digest = hashlib.sha1(repo_name.encode("utf-8")).hexdigest()[:8]
    return f"{safe_name or 'repo'}-{digest}"


class WorkspaceManager:
    """Creates and removes per-repository working directories."""

    def __init__(self, base_dir: Union[str, Path]):
        self.base_dir = Path(base_dir)

    def path_for(self, repo_name: str) -> Path:
        return self.base_dir / workspace_name(repo_name)

    def acquire(self, repo_name: str) -> Path:
        """
        Prepare an empty working directory for a repository.

        Any directory left behind by an interrupted run is removed first.

        Args:
            repo_name: Repository name the directory is keyed by

        Returns:
            Path of the freshly created directory

        Raises:
            WorkspaceError: If the directory could not be created
        """
        path = self.path_for(repo_name)
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            if path.exists():
                logger.info("Removing stale working directory: %s", path)
                shutil.rmtree(path)
            path.mkdir()
        except OSError as e:
            logger.error("Failed to prepare working directory %s: %s", path, e)
            raise WorkspaceError(f"Failed to prepare working directory {path}: {e}") from e

        logger.debug("Created working directory: %s", path)
        return path

    def release(self, path: Union[str, Path]) -> None:
        """Remove a working directory. Never raises."""
        path = Path(path)
        if not path.exists():
            return
        try:
            shutil.rmtree(path)
            logger.debug("Removed working directory: %s", path)
        except OSError as e:
            logger.warning("Failed to cleanup temp directory %s: %s", path, e)

    def session(self, repo_name: str) -> "WorkspaceSession":
        return WorkspaceSession(self, repo_name)

    def cleanup(self) -> None:
        """Remove the base directory if every working directory has been released."""
        try:
            self.base_dir.rmdir()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Leaving temp directory %s in place: %s", self.base_dir, e)


class WorkspaceSession:
    """Context manager holding one working directory for the duration of a block."""

    def __init__(self, manager: WorkspaceManager, repo_name: str):
        self.manager = manager
        self.repo_name = repo_name
        self.path = None

    def __enter__(self) -> Path:
        """Context manager entry point."""
        self.path = self.manager.acquire(self.repo_name)
        return self.path

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit point to clean up resources."""
        if self.path is not None:
            self.manager.release(self.path)
        return False
