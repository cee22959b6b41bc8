"""Aggregation of authorship logs over a commit range."""

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from .authorship import count_lines, validate_authorship_log
from .diffparse import NumstatEntry, get_first_parent, get_range_numstat
from .errors import AictError, InvalidRevisionError
from .gitexec import Executor
from .models import (
    AuthorInfo,
    AuthorStats,
    DetailedMetrics,
    FileInfo,
    FileStats,
    Report,
    SummaryStats,
)
from .notes import AuthorshipNotes
from .policies import AUTHOR_TYPE_AI

logger = logging.getLogger(__name__)

_SHORTHAND_DATE_PATTERN = re.compile(r"^(\d+)([dwmy])$")

_SHORTHAND_UNITS = {
    "d": "days",
    "w": "weeks",
    "m": "months",
    "y": "years",
}


def calculate_author_contribution(
    author_lines: int,
    total_author_lines: int,
    total_added: int,
    total_deleted: int,
    author_count: int,
) -> Tuple[int, int]:
    """Return the (added, deleted) share of one author of a file.

    A sole author gets the full numstat totals. Several authors split the
    totals in proportion to their recorded lines, truncating each share;
    with no recorded lines at all nobody is credited.
    """
    if author_count <= 1:
        return total_added, total_deleted
    if total_author_lines <= 0:
        return 0, 0
    return (
        total_added * author_lines // total_author_lines,
        total_deleted * author_lines // total_author_lines,
    )


@dataclass
class AuthorContribution:
    """An author's attributed share of one file in one commit."""

    author: AuthorInfo
    added: int
    deleted: int


def process_file_authors(info: FileInfo, numstat: NumstatEntry) -> List[AuthorContribution]:
    """Attribute a file's numstat among the authors recorded in its log entry."""
    counts = [count_lines(author.lines) for author in info.authors]
    total_author_lines = sum(counts)
    contributions = []
    for author, author_lines in zip(info.authors, counts):
        added, deleted = calculate_author_contribution(
            author_lines,
            total_author_lines,
            numstat.added,
            numstat.deleted,
            len(info.authors),
        )
        contributions.append(AuthorContribution(author=author, added=added, deleted=deleted))
    return contributions


def _percentage(part: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return part / total * 100


class RangeAggregator:
    """Builds a Report from the numstat and authorship notes of a commit range.

    Numstat and notes are each read with a single git call for the whole
    range.
    """

    def __init__(self, executor: Executor, notes: AuthorshipNotes):
        self.executor = executor
        self.notes = notes

    def aggregate(self, range_spec: str, label: Optional[str] = None) -> Report:
        commits, numstat = get_range_numstat(self.executor, range_spec)
        logs = self.notes.list_for_range(range_spec)

        by_author: Dict[str, AuthorStats] = {}
        by_file: Dict[str, FileStats] = {}
        metrics = DetailedMetrics()
        skipped = 0

        for commit in commits:
            log = logs.get(commit)
            if log is None:
                continue
            try:
                validate_authorship_log(log)
            except AictError as exc:
                skipped += 1
                logger.warning(
                    "Ignoring invalid authorship log",
                    extra={"commit": commit, "error": exc.message},
                )
                continue

            commit_numstat = numstat.get(commit, {})
            authors_in_commit: Set[str] = set()

            for file_path in sorted(log.files):
                entry = commit_numstat.get(file_path)
                if entry is None:
                    continue

                file_stats = by_file.setdefault(file_path, FileStats(path=file_path))
                for share in process_file_authors(log.files[file_path], entry):
                    author = share.author
                    stats = by_author.setdefault(
                        author.name, AuthorStats(name=author.name, type=author.type)
                    )
                    stats.lines += share.added
                    authors_in_commit.add(author.name)

                    metrics.accumulate(author.type, share.added, share.deleted)
                    file_stats.total_lines += share.added
                    if author.type == AUTHOR_TYPE_AI:
                        file_stats.ai_lines += share.added
                    else:
                        file_stats.human_lines += share.added

            for name in authors_in_commit:
                by_author[name].commits += 1

        ai_lines = metrics.ai_additions
        human_lines = metrics.human_additions
        total_lines = ai_lines + human_lines

        for stats in by_author.values():
            stats.percentage = _percentage(stats.lines, total_lines)

        report = Report(
            range=label or range_spec,
            commits=len(commits),
            summary=SummaryStats(
                total_lines=total_lines,
                ai_lines=ai_lines,
                human_lines=human_lines,
                ai_percentage=_percentage(ai_lines, total_lines),
            ),
            by_author=list(by_author.values()),
            by_file=list(by_file.values()),
            metrics=metrics,
        )
        logger.info(
            "Report built",
            extra={
                "range": report.range,
                "commits": report.commits,
                "logs": len(logs) - skipped,
                "total_lines": total_lines,
            },
        )
        return report


def expand_shorthand_date(since: str) -> str:
    """Expand ``7d``/``2w``/``1m``/``1y`` into git's ``N units ago`` form."""
    match = _SHORTHAND_DATE_PATTERN.match(since.strip())
    if not match:
        return since
    amount, unit = match.groups()
    return f"{amount} {_SHORTHAND_UNITS[unit]} ago"


def convert_since_to_range(executor: Executor, since: str) -> str:
    """Turn a ``--since`` date into a revision range ending at HEAD."""
    expanded = expand_shorthand_date(since)
    output = executor.run(["log", f"--since={expanded}", "--format=%H", "--reverse"])
    commits = [line.strip() for line in output.split("\n") if line.strip()]
    if not commits:
        raise InvalidRevisionError(since, f"no commits found since {since}")

    oldest = commits[0]
    if get_first_parent(executor, oldest) is None:
        # The oldest commit is the root: every commit up to HEAD is in range
        return "HEAD"
    return f"{oldest}^..HEAD"
