"""Error definitions and handling for AI Code Tracker."""

from typing import Any, Dict, List, Optional


class AictError(Exception):
    """Base exception for AI Code Tracker errors."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize error with code, message, and optional details."""
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON serialization."""
        result = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class GitCommandError(AictError):
    """A git subcommand exited with a non-zero status."""

    # Longest stderr excerpt carried in the message
    STDERR_LIMIT = 500

    def __init__(self, args: List[str], returncode: int, stderr: str = ""):
        stderr = (stderr or "").strip()
        suffix = f": {stderr[: self.STDERR_LIMIT]}" if stderr else ""
        super().__init__(
            code="GIT_COMMAND_FAILED",
            message=f"git {' '.join(args)} failed with exit code {returncode}{suffix}",
            details={
                "args": list(args),
                "returncode": returncode,
                "stderr": stderr[: self.STDERR_LIMIT],
            },
        )
        self.args_list = list(args)
        self.returncode = returncode
        self.stderr = stderr


class GitUnavailableError(AictError):
    """The git binary could not be executed."""

    def __init__(self, reason: str):
        super().__init__(
            code="GIT_UNAVAILABLE",
            message=f"git is not available: {reason}",
            details={"reason": reason},
        )


class InvalidRevisionError(AictError):
    """A revision or range argument was rejected before reaching git."""

    def __init__(self, revision: str, reason: str):
        super().__init__(
            code="INVALID_REVISION",
            message=f"Invalid revision {revision!r}: {reason}",
            details={"revision": revision, "reason": reason},
        )


class AuthorshipValidationError(AictError):
    """An authorship log violates the schema invariants."""

    def __init__(self, reason: str, commit: Optional[str] = None):
        details: Dict[str, Any] = {"reason": reason}
        if commit:
            details["commit"] = commit
        super().__init__(
            code="AUTHORSHIP_INVALID",
            message=f"Invalid authorship log: {reason}",
            details=details,
        )


class StorageError(AictError):
    """Checkpoint or config storage could not be read or written."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            code="STORAGE_ERROR",
            message=f"Storage failure for {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class ConfigError(AictError):
    """Tracker configuration is missing or invalid."""

    def __init__(self, reason: str):
        super().__init__(
            code="CONFIG_INVALID",
            message=f"Invalid configuration: {reason}",
            details={"reason": reason},
        )


class StageError(AictError):
    """An orchestration stage failed; wraps the underlying error."""

    def __init__(self, stage: str, cause: AictError):
        super().__init__(
            code="STAGE_FAILED",
            message=f"{stage} failed: {cause.message}",
            details={"stage": stage, "cause": cause.to_dict()},
        )
        self.stage = stage
        self.cause = cause


class AuthorshipNotFoundError(AictError):
    """No authorship log is stored for a commit."""

    def __init__(self, commit: str):
        super().__init__(
            code="AUTHORSHIP_NOT_FOUND",
            message=f"No authorship log for commit {commit}",
            details={"commit": commit},
        )
