"""Authorship log persistence in git notes."""

import logging
from typing import Dict, List, Optional

from .errors import AictError, GitCommandError
from .gitexec import Executor, validate_revision_arg
from .models import AuthorshipLog
from .serialize import DeterministicSerializer
from .settings import DEFAULT_NOTES_REF

logger = logging.getLogger(__name__)

# Separates commits in the batched ``git log`` read
NOTE_MARKER = "__AICT_NOTE__"

_NO_NOTE_MESSAGES = ("no note found", "has no note")


def _is_missing_note(error: GitCommandError) -> bool:
    stderr = error.stderr.lower()
    return any(message in stderr for message in _NO_NOTE_MESSAGES)


class AuthorshipNotes:
    """Stores one authorship log per commit under a dedicated notes ref.

    A commit without a note simply has no log; that is never an error.
    """

    def __init__(self, executor: Executor, ref: str = DEFAULT_NOTES_REF):
        self.executor = executor
        self.ref = ref
        self.serializer = DeterministicSerializer()

    def put(self, commit: str, log: AuthorshipLog) -> None:
        """Attach a log to a commit, replacing any existing note."""
        validate_revision_arg(commit)
        self.executor.run(
            ["notes", f"--ref={self.ref}", "add", "-f", "-F", "-", commit],
            input_text=self.serializer.log_to_json(log) + "\n",
        )
        logger.info("Authorship log stored", extra={"commit": commit, "ref": self.ref})

    def get(self, commit: str) -> Optional[AuthorshipLog]:
        validate_revision_arg(commit)
        try:
            text = self.executor.run(["notes", f"--ref={self.ref}", "show", commit])
        except GitCommandError as exc:
            if _is_missing_note(exc):
                return None
            raise
        if not text.strip():
            return None
        return self.serializer.log_from_json(text, commit=commit)

    def remove(self, commit: str) -> bool:
        """Delete a commit's note; returns False when there was none."""
        validate_revision_arg(commit)
        try:
            self.executor.run(["notes", f"--ref={self.ref}", "remove", commit])
        except GitCommandError as exc:
            if _is_missing_note(exc):
                return False
            raise
        logger.info("Authorship log removed", extra={"commit": commit, "ref": self.ref})
        return True

    def list_for_range(self, range_spec: str) -> Dict[str, AuthorshipLog]:
        """Read the logs of every commit in a range with one ``git log`` call.

        Notes that cannot be parsed are skipped with a warning so that one
        damaged note does not hide the rest of the range.
        """
        validate_revision_arg(range_spec)
        output = self.executor.run(
            [
                "log",
                "--no-notes",
                f"--notes={self.ref}",
                f"--format={NOTE_MARKER}%H%n%N",
                "--end-of-options",
                range_spec,
            ]
        )

        bodies: Dict[str, List[str]] = {}
        current: Optional[str] = None
        for line in output.split("\n"):
            if line.startswith(NOTE_MARKER):
                current = line[len(NOTE_MARKER):].strip()
                bodies.setdefault(current, [])
                continue
            if current is not None:
                bodies[current].append(line)

        logs: Dict[str, AuthorshipLog] = {}
        for commit, lines in bodies.items():
            text = "\n".join(lines).strip()
            if not text:
                continue
            try:
                logs[commit] = self.serializer.log_from_json(text, commit=commit)
            except AictError as exc:
                logger.warning(
                    "Skipping unreadable authorship note",
                    extra={"commit": commit, "error": exc.message},
                )

        logger.debug(
            "Loaded authorship notes",
            extra={"range": range_spec, "commits": len(bodies), "logs": len(logs)},
        )
        return logs

    def push(self, remote: str = "origin") -> None:
        validate_revision_arg(remote)
        self.executor.run(["push", remote, f"{self.ref}:{self.ref}"])
        logger.info("Authorship notes pushed", extra={"remote": remote, "ref": self.ref})

    def fetch(self, remote: str = "origin") -> None:
        validate_revision_arg(remote)
        self.executor.run(["fetch", remote, f"{self.ref}:{self.ref}"])
        logger.info("Authorship notes fetched", extra={"remote": remote, "ref": self.ref})
