"""Construction and validation of per-commit authorship logs."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .diffparse import NumstatEntry
from .errors import AuthorshipValidationError
from .models import (
    AUTHORSHIP_LOG_VERSION,
    AuthorInfo,
    AuthorshipLog,
    Checkpoint,
    FileInfo,
    FileSnapshot,
    LineRange,
)
from .policies import AUTHOR_TYPES, AuthorTypePolicy, FilePolicy

logger = logging.getLogger(__name__)

NO_EVIDENCE_NOTE = "no checkpoint evidence"


def count_lines(ranges: Iterable[LineRange]) -> int:
    """Number of lines covered by ``[n]`` and ``[start, end]`` ranges."""
    total = 0
    for line_range in ranges:
        if len(line_range) == 1:
            total += 1
        elif len(line_range) >= 2:
            total += line_range[1] - line_range[0] + 1
    return total


def expand_ranges(ranges: Iterable[LineRange]) -> List[int]:
    """Flatten ranges into individual line numbers, in order."""
    lines: List[int] = []
    for line_range in ranges:
        if len(line_range) == 1:
            lines.append(line_range[0])
        elif len(line_range) >= 2:
            lines.extend(range(line_range[0], line_range[1] + 1))
    return lines


def compress_lines(lines: Iterable[int]) -> List[LineRange]:
    """Collapse line numbers into ranges; consecutive runs become ``[start, end]``."""
    ranges: List[LineRange] = []
    start: Optional[int] = None
    previous: Optional[int] = None

    for line in lines:
        if start is not None and line == previous + 1:
            previous = line
            continue
        if start is not None:
            ranges.append([start] if start == previous else [start, previous])
        start = previous = line

    if start is not None:
        ranges.append([start] if start == previous else [start, previous])
    return ranges


@dataclass
class _Touch:
    """Checkpoint evidence of one author on one file."""

    author: str
    type: str
    added: int = 0
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass
class _FileTouches:
    ordered: List[_Touch] = field(default_factory=list)
    latest: Optional[_Touch] = None


def _collect_touches(checkpoints: Iterable[Checkpoint]) -> Dict[str, _FileTouches]:
    """Group checkpoint changes by file, one entry per author in first-touch order.

    A precise change of a file already in the previous snapshot is diffed
    against the last commit, so its ``added`` includes every earlier
    checkpoint's additions. Each checkpoint is credited with the growth
    over the previous precise change only.
    """
    touches: Dict[str, _FileTouches] = {}
    committed_added: Dict[str, int] = {}
    previous: Dict[str, FileSnapshot] = {}
    for checkpoint in checkpoints:
        for file_path, change in checkpoint.changes.items():
            added = change.added
            if change.lines and file_path in previous:
                added = max(change.added - committed_added.get(file_path, 0), 0)
                committed_added[file_path] = change.added

            entry = touches.setdefault(file_path, _FileTouches())
            key = (checkpoint.author, checkpoint.type)
            touch = next((t for t in entry.ordered if (t.author, t.type) == key), None)
            if touch is None:
                touch = _Touch(author=checkpoint.author, type=checkpoint.type)
                entry.ordered.append(touch)
            touch.added += added
            touch.metadata = dict(checkpoint.metadata)
            entry.latest = touch
        previous = checkpoint.snapshot
    return touches


def _carve(
    ranges: List[LineRange],
    ordered: List[_Touch],
    latest: _Touch,
) -> List[AuthorInfo]:
    """Split the commit's added lines among authors in recorded proportions."""
    lines = expand_ranges(ranges)
    assigned: Dict[Tuple[str, str], List[int]] = {}
    cursor = 0

    for touch in ordered:
        chunk = lines[cursor:cursor + max(touch.added, 0)]
        cursor += len(chunk)
        assigned[(touch.author, touch.type)] = chunk

    latest_key = (latest.author, latest.type)
    assigned[latest_key] = assigned.get(latest_key, []) + lines[cursor:]

    authors = []
    for touch in ordered:
        key = (touch.author, touch.type)
        chunk = sorted(assigned[key])
        if not chunk and key != latest_key:
            continue
        authors.append(
            AuthorInfo(
                name=touch.author,
                type=touch.type,
                lines=compress_lines(chunk),
                metadata=dict(touch.metadata),
            )
        )
    return authors


def build_authorship_log(
    checkpoints: List[Checkpoint],
    commit_numstat: Mapping[str, NumstatEntry],
    commit_line_ranges: Mapping[str, List[LineRange]],
    commit_id: str,
    file_policy: FilePolicy,
    default_author: str,
    author_policy: Optional[AuthorTypePolicy] = None,
    timestamp: Optional[datetime] = None,
) -> AuthorshipLog:
    """Build a commit's authorship log reconciled against its full diff.

    Only files in the commit's numstat that pass ``file_policy`` are
    included. Line ranges always come from the commit diff. Checkpoints
    decide who gets which lines: a sole toucher gets every line, several
    touchers split the added lines in first-touch order by their recorded
    additions, and the last toucher keeps the remainder. Files no
    checkpoint touched go to ``default_author``.
    """
    author_policy = author_policy or AuthorTypePolicy()
    touches = _collect_touches(checkpoints)
    files: Dict[str, FileInfo] = {}

    for file_path in sorted(commit_numstat):
        if not file_policy.is_tracked(file_path):
            logger.debug("Skipping untracked file", extra={"path": file_path})
            continue

        ranges = [list(r) for r in commit_line_ranges.get(file_path, [])]
        file_touches = touches.get(file_path)

        if file_touches is None:
            files[file_path] = FileInfo(
                authors=[
                    AuthorInfo(
                        name=default_author,
                        type=author_policy.classify(default_author),
                        lines=ranges,
                        metadata={"note": NO_EVIDENCE_NOTE},
                    )
                ]
            )
            continue

        latest = file_touches.latest
        if len(file_touches.ordered) == 1:
            files[file_path] = FileInfo(
                authors=[
                    AuthorInfo(
                        name=latest.author,
                        type=latest.type,
                        lines=ranges,
                        metadata=dict(latest.metadata),
                    )
                ]
            )
            continue

        files[file_path] = FileInfo(authors=_carve(ranges, file_touches.ordered, latest))

    log = AuthorshipLog(
        commit=commit_id,
        timestamp=timestamp or datetime.now(timezone.utc),
        files=files,
    )
    logger.debug(
        "Built authorship log",
        extra={"commit": commit_id, "files": len(files), "checkpoints": len(checkpoints)},
    )
    return log


def build_authorship_log_from_checkpoints(
    checkpoints: List[Checkpoint],
    commit_id: str,
    file_policy: Optional[FilePolicy] = None,
    timestamp: Optional[datetime] = None,
) -> AuthorshipLog:
    """Build a log from the checkpoints' own changes, without a commit diff.

    Ranges recorded by the same (file, author, type) across several
    checkpoints are concatenated.
    """
    files: Dict[str, FileInfo] = {}
    index: Dict[Tuple[str, str, str], AuthorInfo] = {}

    for checkpoint in checkpoints:
        for file_path in sorted(checkpoint.changes):
            if file_policy is not None and not file_policy.is_tracked(file_path):
                continue
            change = checkpoint.changes[file_path]
            key = (file_path, checkpoint.author, checkpoint.type)
            info = index.get(key)
            if info is None:
                info = AuthorInfo(
                    name=checkpoint.author,
                    type=checkpoint.type,
                    metadata=dict(checkpoint.metadata),
                )
                index[key] = info
                files.setdefault(file_path, FileInfo()).authors.append(info)
            info.lines.extend(list(r) for r in change.lines)

    return AuthorshipLog(
        commit=commit_id,
        timestamp=timestamp or datetime.now(timezone.utc),
        files=files,
    )


def validate_authorship_log(log: AuthorshipLog) -> None:
    """Raise AuthorshipValidationError unless the log may be persisted."""
    if not log.version:
        raise AuthorshipValidationError("version is required", commit=log.commit)
    if log.version != AUTHORSHIP_LOG_VERSION:
        raise AuthorshipValidationError(
            f"unsupported version {log.version!r} (expected {AUTHORSHIP_LOG_VERSION!r})",
            commit=log.commit,
        )
    if not log.commit:
        raise AuthorshipValidationError("commit is required")

    for file_path, info in log.files.items():
        if not info.authors:
            raise AuthorshipValidationError(
                f"file {file_path!r} has no authors", commit=log.commit
            )
        for author in info.authors:
            if not author.name:
                raise AuthorshipValidationError(
                    f"file {file_path!r} has an author without a name", commit=log.commit
                )
            if author.type not in AUTHOR_TYPES:
                raise AuthorshipValidationError(
                    f"file {file_path!r} author {author.name!r} has invalid type {author.type!r}",
                    commit=log.commit,
                )
