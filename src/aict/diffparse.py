"""Parsing of git numstat and unified-diff text.

The parsers here are best-effort: binary entries, malformed lines and
unknown headers are dropped (and logged at DEBUG) instead of raising, so a
single odd line never aborts attribution for a whole commit.
"""

import logging
import re
from typing import Dict, List, NamedTuple, Optional, Tuple

from .gitexec import Executor, validate_revision_arg
from .models import LineRange

logger = logging.getLogger(__name__)

# Prefix of the per-commit separator line emitted by ``git log --format``
COMMIT_MARKER = "__AICT_COMMIT__"

HUNK_HEADER_PATTERN = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")

_BRACE_RENAME_PATTERN = re.compile(r"^(.*)\{(.*) => (.*)\}(.*)$")


class NumstatEntry(NamedTuple):
    """Added/deleted line counts of one file."""

    added: int
    deleted: int


def resolve_rename(path: str) -> str:
    """Return the destination path of numstat rename notation.

    Handles both ``old => new`` and git's compact ``dir/{old => new}/file``.
    """
    brace = _BRACE_RENAME_PATTERN.match(path)
    if brace:
        prefix, _, new, suffix = brace.groups()
        return re.sub("/{2,}", "/", f"{prefix}{new}{suffix}")
    if " => " in path:
        return path.split(" => ", 1)[1]
    return path


def parse_numstat_line(line: str) -> Optional[Tuple[str, NumstatEntry]]:
    """Parse ``added<TAB>deleted<TAB>path``; None for binary or malformed lines."""
    parts = line.split("\t", 2)
    if len(parts) < 3:
        parts = line.split(None, 2)
    if len(parts) < 3:
        logger.debug("Skipping malformed numstat line", extra={"line": line})
        return None

    added_text, deleted_text, path = parts
    try:
        added = int(added_text)
        deleted = int(deleted_text)
    except ValueError:
        # Binary files show "-" in place of counts
        logger.debug("Skipping binary numstat line", extra={"line": line})
        return None

    path = resolve_rename(path.strip())
    if not path:
        return None
    return path, NumstatEntry(added, deleted)


def parse_numstat(text: str) -> Dict[str, NumstatEntry]:
    """Parse ``git diff --numstat`` output into path -> (added, deleted)."""
    result: Dict[str, NumstatEntry] = {}
    for line in text.split("\n"):
        if not line.strip():
            continue
        parsed = parse_numstat_line(line)
        if parsed:
            path, entry = parsed
            result[path] = entry
    return result


def parse_range_numstat(
    text: str, marker: str = COMMIT_MARKER
) -> Tuple[List[str], Dict[str, Dict[str, NumstatEntry]]]:
    """Parse ``git log --numstat --format=<marker>%H`` output.

    Returns the commit ids in input order and the numstat table of each
    commit. Commits without file lines (merges, empty commits) are kept
    with an empty table.
    """
    commits: List[str] = []
    table: Dict[str, Dict[str, NumstatEntry]] = {}
    current: Optional[str] = None

    for line in text.split("\n"):
        if line.startswith(marker):
            current = line[len(marker):].strip()
            if current not in table:
                commits.append(current)
                table[current] = {}
            continue

        if current is None or not line.strip():
            continue

        parsed = parse_numstat_line(line)
        if parsed:
            path, entry = parsed
            table[current][path] = entry

    return commits, table


def hunk_added_range(header: str) -> Optional[LineRange]:
    """Return the new-side line range of a hunk header, or None for pure deletions."""
    match = HUNK_HEADER_PATTERN.match(header)
    if not match:
        return None

    new_start = int(match.group(3))
    new_lines = int(match.group(4)) if match.group(4) is not None else 1
    if new_lines <= 0 or new_start <= 0:
        return None
    if new_lines == 1:
        return [new_start]
    return [new_start, new_start + new_lines - 1]


def parse_line_ranges_from_diff(diff_text: str) -> List[LineRange]:
    """Collect the new-side ranges of every hunk header in a diff."""
    ranges: List[LineRange] = []
    for line in diff_text.split("\n"):
        if not line.startswith("@@"):
            continue
        line_range = hunk_added_range(line)
        if line_range:
            ranges.append(line_range)
    return ranges


def count_diff_lines(diff_text: str) -> NumstatEntry:
    """Count added and deleted body lines of a unified diff."""
    added = 0
    deleted = 0
    for line in diff_text.split("\n"):
        if line.startswith("+") and not line.startswith("+++"):
            added += 1
        elif line.startswith("-") and not line.startswith("---"):
            deleted += 1
    return NumstatEntry(added, deleted)


def _strip_diff_path(raw: str) -> Optional[str]:
    path = raw.strip()
    if path.startswith('"') and path.endswith('"') and len(path) >= 2:
        path = path[1:-1]
    if path == "/dev/null":
        return None
    if path.startswith(("a/", "b/")):
        path = path[2:]
    return path


def parse_file_line_ranges(diff_text: str) -> Dict[str, List[LineRange]]:
    """Split a multi-file unified diff into path -> new-side ranges.

    Paths come from the ``+++`` header. Deleted files are not reported;
    a file with only deletions maps to an empty list.
    """
    result: Dict[str, List[LineRange]] = {}
    current: Optional[str] = None

    for line in diff_text.split("\n"):
        if line.startswith("diff --git "):
            current = None
        elif line.startswith("+++ "):
            current = _strip_diff_path(line[4:])
            if current is not None:
                result.setdefault(current, [])
        elif line.startswith("@@") and current is not None:
            line_range = hunk_added_range(line)
            if line_range:
                result[current].append(line_range)

    return result


def get_first_parent(executor: Executor, commit: str) -> Optional[str]:
    """Return the first parent of a commit, or None for a root commit."""
    validate_revision_arg(commit)
    output = executor.run(["rev-list", "--parents", "-n", "1", "--end-of-options", commit])
    parts = output.split()
    return parts[1] if len(parts) > 1 else None


def _commit_diff_args(executor: Executor, commit: str, mode: List[str]) -> List[str]:
    parent = get_first_parent(executor, commit)
    if parent is None:
        return ["diff-tree", "--root", "-r", "-M", "--no-commit-id"] + mode + [commit]
    return ["diff", "-M"] + mode + [parent, commit]


def get_commit_numstat(executor: Executor, commit: str) -> Dict[str, NumstatEntry]:
    """Numstat of a commit against its first parent (or the empty tree)."""
    output = executor.run(_commit_diff_args(executor, commit, ["--numstat"]))
    return parse_numstat(output)


def get_commit_line_ranges(executor: Executor, commit: str) -> Dict[str, List[LineRange]]:
    """Added line ranges per file of a commit's zero-context patch."""
    output = executor.run(_commit_diff_args(executor, commit, ["-p", "--unified=0"]))
    return parse_file_line_ranges(output)


def get_range_numstat(
    executor: Executor, range_spec: str
) -> Tuple[List[str], Dict[str, Dict[str, NumstatEntry]]]:
    """Numstat of every commit in a range with a single ``git log`` call."""
    validate_revision_arg(range_spec)
    output = executor.run(
        [
            "log",
            "--numstat",
            "-M",
            f"--format={COMMIT_MARKER}%H",
            "--end-of-options",
            range_spec,
        ]
    )
    commits, table = parse_range_numstat(output)
    logger.debug(
        "Parsed range numstat",
        extra={"range": range_spec, "commits": len(commits)},
    )
    return commits, table
