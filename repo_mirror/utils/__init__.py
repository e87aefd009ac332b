"""Git plumbing for the repository mirroring tool."""

from repo_mirror.utils.rewriter import HistoryRewriter
from repo_mirror.utils.runner import ProcessResult, ProcessRunner, SubprocessRunner
from repo_mirror.utils.scanner import LargeObjectScanner
from repo_mirror.utils.transfer import TransferEngine, classify_push_error
from repo_mirror.utils.workspace import WorkspaceManager

__all__ = [
    "ProcessResult",
    "ProcessRunner",
    "SubprocessRunner",
    "WorkspaceManager",
    "LargeObjectScanner",
    "HistoryRewriter",
    "TransferEngine",
    "classify_push_error",
]
