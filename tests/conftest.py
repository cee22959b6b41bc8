"""Pytest configuration and fixtures for AI Code Tracker tests."""

import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Generator, List, Optional, Tuple, Union

import pytest


class FakeExecutor:
    """In-memory git executor returning scripted output.

    Responses are keyed by an argument prefix; the longest matching prefix
    wins. A response that is an exception instance is raised instead.
    Unscripted commands return an empty string.
    """

    def __init__(self):
        self.responses: List[Tuple[Tuple[str, ...], Union[str, Exception]]] = []
        self.calls: List[Tuple[List[str], Optional[str]]] = []

    def add(self, args_prefix: List[str], output: Union[str, Exception]) -> "FakeExecutor":
        self.responses.append((tuple(args_prefix), output))
        return self

    def run(self, args: List[str], input_text: Optional[str] = None) -> str:
        self.calls.append((list(args), input_text))
        best: Optional[Tuple[Tuple[str, ...], Union[str, Exception]]] = None
        for prefix, output in self.responses:
            if tuple(args[: len(prefix)]) == prefix:
                if best is None or len(prefix) > len(best[0]):
                    best = (prefix, output)
        if best is None:
            return ""
        if isinstance(best[1], Exception):
            raise best[1]
        return best[1]

    def commands(self) -> List[str]:
        """First argument of every recorded call."""
        return [args[0] for args, _ in self.calls]


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp(prefix="aict_test_"))
    try:
        yield temp_path
    finally:
        if temp_path.exists():
            shutil.rmtree(temp_path, ignore_errors=True)


def _git_env() -> dict:
    env = os.environ.copy()
    env.update({
        "GIT_AUTHOR_NAME": "Test User",
        "GIT_AUTHOR_EMAIL": "test@example.com",
        "GIT_COMMITTER_NAME": "Test User",
        "GIT_COMMITTER_EMAIL": "test@example.com",
    })
    return env


@pytest.fixture
def git_repo(temp_dir: Path) -> Generator[Path, None, None]:
    """Create an empty temporary git repository (no commits yet)."""
    repo_path = temp_dir / "test_repo"
    repo_path.mkdir()
    env = _git_env()

    def run_git(args: List[str]) -> subprocess.CompletedProcess:
        return subprocess.run(
            ["git"] + args,
            cwd=repo_path,
            env=env,
            check=True,
            capture_output=True,
            text=True,
        )

    run_git(["init"])
    run_git(["config", "user.name", "Test User"])
    run_git(["config", "user.email", "test@example.com"])
    run_git(["config", "commit.gpgsign", "false"])

    yield repo_path


class GitRepoHelper:
    """Helper class for git repository operations in tests."""

    def __init__(self, repo_path: Path):
        self.repo_path = repo_path
        self.env = _git_env()

    def run_git(self, args: List[str]) -> subprocess.CompletedProcess:
        """Run git command in the repository."""
        return subprocess.run(
            ["git"] + args,
            cwd=self.repo_path,
            env=self.env,
            check=True,
            capture_output=True,
            text=True,
        )

    def create_file(self, path: str, content: str) -> None:
        """Create a file with content."""
        file_path = self.repo_path / path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content)

    def append_lines(self, path: str, count: int, prefix: str = "line") -> None:
        """Append numbered lines to a file."""
        file_path = self.repo_path / path
        existing = file_path.read_text() if file_path.exists() else ""
        start = existing.count("\n") + 1
        extra = "".join(f"{prefix} {n}\n" for n in range(start, start + count))
        self.create_file(path, existing + extra)

    def append_bytes(self, path: str, data: bytes) -> None:
        """Append raw bytes to a file."""
        with open(self.repo_path / path, "ab") as f:
            f.write(data)

    def delete_file(self, path: str) -> None:
        """Delete a file."""
        file_path = self.repo_path / path
        if file_path.exists():
            file_path.unlink()

    def add_and_commit(self, message: str, files: Optional[List[str]] = None) -> str:
        """Add files and create a commit, return commit SHA."""
        if files:
            for file in files:
                self.run_git(["add", file])
        else:
            self.run_git(["add", "-A"])

        self.run_git(["commit", "-m", message])
        return self.get_current_sha()

    def get_current_sha(self) -> str:
        """Get current commit SHA."""
        result = self.run_git(["rev-parse", "HEAD"])
        return result.stdout.strip()


@pytest.fixture
def git_helper(git_repo: Path) -> GitRepoHelper:
    """Create a git repository helper."""
    return GitRepoHelper(git_repo)
