"""
Data models shared by the host clients, the transfer engine and the migrator.
"""

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional

MIB = 1024 * 1024
DEFAULT_SIZE_THRESHOLD = 100 * MIB


@dataclass(frozen=True)
class Credentials:
    """Username and secret embedded into clone URLs."""

    username: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password='**********')"


@dataclass(frozen=True)
class RepositoryDescriptor:
    """Identity and policy metadata for one repository on the source host."""

    name: str
    clone_url: str
    is_private: bool = True
    has_issues: bool = False
    has_wiki: bool = False
    slug: str = ""
    full_name: str = ""
    description: str = ""
    language: str = "Unknown"
    size: int = 0
    updated_on: Optional[str] = None
    destination_url: Optional[str] = None

    def with_destination(self, destination_url: str) -> "RepositoryDescriptor":
        """Return a copy with the destination clone URL assigned."""
        return dataclasses.replace(self, destination_url=destination_url)


@dataclass(frozen=True)
class RepositoryLink:
    """Addresses of a repository on the destination host."""

    name: str
    clone_url: str
    web_url: str
    full_name: str = ""
    is_private: bool = True


@dataclass(frozen=True)
class LargeObjectRecord:
    """One oversized object found in the history of a local mirror."""

    object_id: str
    path: str
    size: int

    @property
    def size_mb(self) -> float:
        return self.size / MIB


def unique_paths(records: Iterable[LargeObjectRecord]) -> List[str]:
    """Collapse records to the sorted set of repository paths they live at."""
    return sorted({record.path for record in records})


def format_size(num_bytes: int) -> str:
    """Human readable byte count, e.g. ``150 MB``."""
    units = ["Bytes", "KB", "MB", "GB"]
    if num_bytes <= 0:
        return "0 Bytes"
    size = float(num_bytes)
    index = 0
    while size >= 1024 and index < len(units) - 1:
        size /= 1024
        index += 1
    return f"{round(size, 2):g} {units[index]}"


@dataclass
class TransferAttempt:
    """State of a single clone and push pass for one repository."""

    workspace: Path
    source_url: str
    destination_url: str
    is_retry: bool = False


@dataclass
class TransferResult:
    """Outcome of a successful mirror."""

    repo_name: str
    rewritten: bool = False
    removed: List[LargeObjectRecord] = field(default_factory=list)


class MigrationOutcome(Enum):
    MIGRATED = "migrated"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class MigrationStats:
    """Counters accumulated over a migration run."""

    total: int = 0
    success: int = 0
    skipped: int = 0
    failed: int = 0

    def record(self, outcome: MigrationOutcome) -> None:
        if outcome is MigrationOutcome.MIGRATED:
            self.success += 1
        elif outcome is MigrationOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1
