"""
Subprocess execution for git and its history rewriting plugins.

The transfer engine, scanner and rewriter only depend on :class:`ProcessRunner`,
so tests can substitute an in-memory fake for the real ``git`` executable.
"""

import logging
import os
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from repo_mirror.core.exceptions import GitCommandTimeout
from repo_mirror.utils.urls import mask_credentials

# Configure logging
logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass
class ProcessResult:
    """Exit status and captured output of a finished process."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Combined stderr and stdout, the way git reports push failures."""
        return "\n".join(part for part in (self.stderr, self.stdout) if part)


class ProcessRunner(ABC):
    """Runs a command to completion and reports its result."""

    @abstractmethod
    def run(
        self,
        command: Sequence[str],
        cwd: Optional[PathLike] = None,
        env: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> ProcessResult:
        """
        Run a command and wait for it.

        Args:
            command: Program and arguments
            cwd: Working directory for the command
            env: Extra environment variables layered over the process environment
            timeout: Seconds to wait before giving up, ``None`` waits forever

        Returns:
            ProcessResult with the exit code and decoded output

        Raises:
            GitCommandTimeout: If the command did not finish in time
        """


class SubprocessRunner(ProcessRunner):
    """ProcessRunner backed by :mod:`subprocess`."""

    def __init__(self, default_timeout: Optional[float] = None):
        self.default_timeout = default_timeout
        self.base_env = os.environ.copy()
        # Never block on a credential prompt
        self.base_env["GIT_TERMINAL_PROMPT"] = "0"

    def run(
        self,
        command: Sequence[str],
        cwd: Optional[PathLike] = None,
        env: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> ProcessResult:
        args: List[str] = [str(part) for part in command]
        bound = timeout if timeout is not None else self.default_timeout
        process_env = dict(self.base_env)
        if env:
            process_env.update(env)

        logger.debug("Running command: %s in %s", mask_credentials(" ".join(args)), cwd or ".")

        try:
            completed = subprocess.run(
                args,
                cwd=str(cwd) if cwd is not None else None,
                env=process_env,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                # Paths that are not valid UTF-8 survive the round trip back into argv
                encoding="utf-8",
                errors="surrogateescape",
                timeout=bound,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            logger.error("Command timed out after %ss: %s", bound, mask_credentials(" ".join(args[:3])))
            raise GitCommandTimeout(
                f"Command {' '.join(args[:2])} timed out after {bound} seconds"
            ) from e
        except OSError as e:
            # Executable missing or not runnable
            logger.error("Command could not be started: %s", e)
            return ProcessResult(127, "", str(e))

        return ProcessResult(completed.returncode, completed.stdout, completed.stderr)


def run_git(
    runner: ProcessRunner,
    args: Sequence[str],
    cwd: Optional[PathLike] = None,
    env: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
) -> ProcessResult:
    """Run ``git <args>`` through the given runner."""
    return runner.run(["git", *args], cwd=cwd, env=env, timeout=timeout)
