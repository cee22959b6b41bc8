"""Working-tree snapshots and change detection between checkpoints."""

import hashlib
import logging
from pathlib import Path
from typing import Callable, Dict, Optional, Union

from .diffparse import count_diff_lines, parse_line_ranges_from_diff
from .errors import AictError
from .gitexec import Executor
from .models import Change, FileSnapshot
from .policies import FilePolicy

logger = logging.getLogger(__name__)

# Returns unified-diff text of one path against the last committed state
DiffProvider = Callable[[str], str]


def count_content_lines(content: bytes) -> int:
    """Count lines the way git does: a missing final newline still ends a line."""
    if not content:
        return 0
    newlines = content.count(b"\n")
    return newlines if content.endswith(b"\n") else newlines + 1


def snapshot_file(path: Union[str, Path]) -> FileSnapshot:
    content = Path(path).read_bytes()
    return FileSnapshot(
        hash=hashlib.sha256(content).hexdigest(),
        lines=count_content_lines(content),
    )


def capture_snapshot(
    executor: Executor,
    repo_root: Union[str, Path],
    file_policy: FilePolicy,
) -> Dict[str, FileSnapshot]:
    """Snapshot every tracked, non-ignored file of the working tree."""
    output = executor.run(["ls-files", "--cached", "--others", "--exclude-standard"])
    root = Path(repo_root)
    snapshot: Dict[str, FileSnapshot] = {}

    for file_path in sorted(set(output.split("\n"))):
        if not file_path or not file_policy.is_tracked(file_path):
            continue
        try:
            snapshot[file_path] = snapshot_file(root / file_path)
        except OSError as exc:
            # Listed by git but deleted or unreadable in the working tree
            logger.debug("Skipping unreadable file", extra={"path": file_path, "error": str(exc)})

    logger.debug("Captured snapshot", extra={"files": len(snapshot)})
    return snapshot


def head_diff_provider(executor: Executor) -> DiffProvider:
    """Diff provider comparing a working-tree file with HEAD."""

    def provide(file_path: str) -> str:
        return executor.run(["diff", "--unified=0", "--no-color", "HEAD", "--", file_path])

    return provide


def _line_count_fallback(last: FileSnapshot, current: FileSnapshot) -> Change:
    if current.lines > last.lines:
        return Change(added=current.lines - last.lines, deleted=0, lines=[])
    if current.lines < last.lines:
        return Change(added=0, deleted=last.lines - current.lines, lines=[])
    # Same length, different content: the file was touched but the extent is unknown
    return Change(added=0, deleted=0, lines=[])


def _precise_change(file_path: str, diff_provider: DiffProvider) -> Optional[Change]:
    try:
        diff_text = diff_provider(file_path)
    except AictError as exc:
        logger.debug(
            "Precise diff unavailable, using line counts",
            extra={"path": file_path, "error": exc.code},
        )
        return None

    if "@@" not in diff_text:
        # Untracked or unchanged relative to HEAD: no usable baseline
        return None

    counts = count_diff_lines(diff_text)
    return Change(
        added=counts.added,
        deleted=counts.deleted,
        lines=parse_line_ranges_from_diff(diff_text),
    )


def detect_changes(
    last_snapshot: Optional[Dict[str, FileSnapshot]],
    current_snapshot: Dict[str, FileSnapshot],
    diff_provider: Optional[DiffProvider] = None,
) -> Dict[str, Change]:
    """Compare two snapshots and return the change of every touched path.

    Without a previous snapshot the result is empty: the first checkpoint
    is a baseline. Unchanged paths are absent from the result.
    """
    changes: Dict[str, Change] = {}
    if last_snapshot is None:
        return changes

    for file_path in sorted(current_snapshot):
        current = current_snapshot[file_path]
        last = last_snapshot.get(file_path)

        if last is None:
            lines = [[1, current.lines]] if current.lines > 0 else []
            changes[file_path] = Change(added=current.lines, deleted=0, lines=lines)
            continue

        if current.hash == last.hash:
            continue

        change = _precise_change(file_path, diff_provider) if diff_provider else None
        changes[file_path] = change or _line_count_fallback(last, current)

    for file_path in sorted(set(last_snapshot) - set(current_snapshot)):
        changes[file_path] = Change(
            added=0, deleted=last_snapshot[file_path].lines, lines=[]
        )

    return changes
