"""
Shared fixtures: an in-memory process runner and helpers for real git repositories.
"""

import shutil
import subprocess

import pytest

from repo_mirror.utils.runner import ProcessResult, ProcessRunner

GIT_IDENTITY = {
    "GIT_AUTHOR_NAME": "Mirror Test",
    "GIT_AUTHOR_EMAIL": "mirror@example.com",
    "GIT_COMMITTER_NAME": "Mirror Test",
    "GIT_COMMITTER_EMAIL": "mirror@example.com",
}


class FakeRunner(ProcessRunner):
    """
    ProcessRunner answering from a table keyed by git subcommand.

    A response is a ProcessResult, a list of them consumed in order (the last
    one repeats), or a callable taking the command and returning one.
    """

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []
        self.envs = []

    def run(self, command, cwd=None, env=None, timeout=None):
        command = [str(part) for part in command]
        self.calls.append(command)
        self.envs.append(env)

        key = command[1] if command[0] == "git" and len(command) > 1 else command[0]
        response = self.responses.get(key, ProcessResult(0))
        if callable(response):
            return response(command)
        if isinstance(response, list):
            return response.pop(0) if len(response) > 1 else response[0]
        return response

    def count(self, subcommand):
        return sum(1 for call in self.calls if len(call) > 1 and call[1] == subcommand)

    def commands(self, subcommand):
        return [call for call in self.calls if len(call) > 1 and call[1] == subcommand]


@pytest.fixture
def fake_runner():
    """Factory for FakeRunner instances."""
    return FakeRunner


@pytest.fixture
def git_env(tmp_path, monkeypatch):
    """Isolate git from the user's configuration and give it an identity."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    for name, value in GIT_IDENTITY.items():
        monkeypatch.setenv(name, value)


def git(*args, cwd=None):
    """Run git and return its stdout, failing the test on a non-zero exit."""
    completed = subprocess.run(
        ["git", *args],
        cwd=str(cwd) if cwd is not None else None,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        universal_newlines=True,
        check=False,
    )
    assert completed.returncode == 0, completed.stderr  # nosec B101
    return completed.stdout


@pytest.fixture
def run_git_cmd():
    return git
