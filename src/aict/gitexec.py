"""Git subprocess execution for AI Code Tracker."""

import logging
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Union

from .errors import GitCommandError, GitUnavailableError, InvalidRevisionError

logger = logging.getLogger(__name__)


class Executor(Protocol):
    """Anything able to run one git subcommand and return its trimmed stdout."""

    def run(self, args: List[str], input_text: Optional[str] = None) -> str:
        ...


def validate_revision_arg(revision: str) -> None:
    """Reject revisions git would parse as an option."""
    if not revision or not revision.strip():
        raise InvalidRevisionError(revision, "revision cannot be empty")
    if revision.startswith("-"):
        raise InvalidRevisionError(revision, "revision cannot start with '-'")


class GitExecutor:
    """Runs git in a fixed repository directory."""

    def __init__(
        self,
        repo_path: Optional[Union[str, Path]] = None,
        env: Optional[Dict[str, str]] = None,
        timeout: int = 120,
    ):
        self.repo_path = Path(repo_path) if repo_path else None
        self.env = env
        self.timeout = timeout

    def run(self, args: List[str], input_text: Optional[str] = None) -> str:
        """Run git with proper environment and error handling."""
        # Enforce deterministic git behavior across platforms
        cmd = [
            "git",
            "-c",
            "core.autocrlf=false",
            "-c",
            "color.ui=false",
            "-c",
            "core.quotepath=false",
        ] + list(args)
        logger.debug("Running git command", extra={"git_args": args, "cwd": str(self.repo_path)})
        try:
            result = subprocess.run(
                cmd,
                cwd=self.repo_path,
                env=self.env,
                timeout=self.timeout,
                check=False,
                capture_output=True,
                # Tracked files may hold bytes that are not UTF-8
                encoding="utf-8",
                errors="replace",
                input=input_text,
            )
        except subprocess.TimeoutExpired as e:
            raise GitUnavailableError(f"git {args[0] if args else ''} timed out after {self.timeout}s") from e
        except OSError as e:
            raise GitUnavailableError(str(e)) from e

        if result.returncode != 0:
            logger.debug(
                "git command failed",
                extra={"git_args": args, "returncode": result.returncode, "stderr": result.stderr},
            )
            raise GitCommandError(list(args), result.returncode, result.stderr)

        return result.stdout.strip()
