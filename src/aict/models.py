"""Data model for checkpoints, authorship logs and range reports."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .policies import AUTHOR_TYPE_AI, AUTHOR_TYPE_HUMAN

# A line range is either [line] or [start, end], both inclusive.
LineRange = List[int]

AUTHORSHIP_LOG_VERSION = "1.0"


def format_timestamp(value: datetime) -> str:
    """Render a timestamp as RFC 3339 text (UTC offsets preserved)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def parse_timestamp(value: Any) -> datetime:
    """Parse RFC 3339 text, including nanosecond fractions and a Z suffix."""
    if isinstance(value, datetime):
        return value
    text = str(value or "").strip()
    if not text:
        return datetime.fromtimestamp(0, tz=timezone.utc)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # Go writes nanoseconds; fromisoformat accepts at most microseconds.
    if "." in text:
        head, _, rest = text.partition(".")
        digits = ""
        while rest and rest[0].isdigit():
            digits, rest = digits + rest[0], rest[1:]
        text = f"{head}.{digits[:6].ljust(6, '0')}{rest}"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _ranges_from_wire(value: Any) -> List[LineRange]:
    if not value:
        return []
    return [[int(n) for n in item] for item in value]


@dataclass(frozen=True)
class FileSnapshot:
    """State of one file when a checkpoint was captured."""

    hash: str
    lines: int

    def to_dict(self) -> Dict[str, Any]:
        return {"hash": self.hash, "lines": self.lines}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileSnapshot":
        return cls(hash=str(data.get("hash", "")), lines=int(data.get("lines", 0)))


@dataclass
class Change:
    """Line-level change of one file.

    ``lines`` may be empty when only a line-count delta is known.
    """

    added: int = 0
    deleted: int = 0
    lines: List[LineRange] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "added": self.added,
            "deleted": self.deleted,
            "lines": [list(r) for r in self.lines],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Change":
        return cls(
            added=int(data.get("added", 0)),
            deleted=int(data.get("deleted", 0)),
            lines=_ranges_from_wire(data.get("lines")),
        )


@dataclass
class Checkpoint:
    """Author-tagged snapshot of tracked files plus changes since the previous one."""

    timestamp: datetime
    author: str
    type: str = AUTHOR_TYPE_HUMAN
    metadata: Dict[str, str] = field(default_factory=dict)
    changes: Dict[str, Change] = field(default_factory=dict)
    snapshot: Dict[str, FileSnapshot] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "timestamp": format_timestamp(self.timestamp),
            "author": self.author,
            "type": self.type,
            "changes": {path: c.to_dict() for path, c in self.changes.items()},
            "snapshot": {path: s.to_dict() for path, s in self.snapshot.items()},
        }
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Checkpoint":
        return cls(
            timestamp=parse_timestamp(data.get("timestamp")),
            author=str(data.get("author", "")),
            type=str(data.get("type", AUTHOR_TYPE_HUMAN)),
            metadata={str(k): str(v) for k, v in (data.get("metadata") or {}).items()},
            changes={
                path: Change.from_dict(c) for path, c in (data.get("changes") or {}).items()
            },
            snapshot={
                path: FileSnapshot.from_dict(s)
                for path, s in (data.get("snapshot") or {}).items()
            },
        )


@dataclass
class AuthorInfo:
    """One author's contribution to one file in one commit."""

    name: str
    type: str
    lines: List[LineRange] = field(default_factory=list)
    metadata: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "lines": [list(r) for r in self.lines],
        }
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuthorInfo":
        return cls(
            name=str(data.get("name", "")),
            type=str(data.get("type", "")),
            lines=_ranges_from_wire(data.get("lines")),
            metadata={str(k): str(v) for k, v in (data.get("metadata") or {}).items()},
        )


@dataclass
class FileInfo:
    """Authorship breakdown of one file in one commit."""

    authors: List[AuthorInfo] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"authors": [a.to_dict() for a in self.authors]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileInfo":
        return cls(authors=[AuthorInfo.from_dict(a) for a in (data.get("authors") or [])])


@dataclass
class AuthorshipLog:
    """Durable, commit-scoped attribution record."""

    commit: str
    timestamp: datetime
    files: Dict[str, FileInfo] = field(default_factory=dict)
    version: str = AUTHORSHIP_LOG_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "commit": self.commit,
            "timestamp": format_timestamp(self.timestamp),
            "files": {path: info.to_dict() for path, info in self.files.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuthorshipLog":
        return cls(
            version=str(data.get("version", "")),
            commit=str(data.get("commit", "")),
            timestamp=parse_timestamp(data.get("timestamp")),
            files={
                path: FileInfo.from_dict(info)
                for path, info in (data.get("files") or {}).items()
            },
        )


@dataclass
class AuthorStats:
    """Per-author totals over a commit range."""

    name: str
    type: str
    lines: int = 0
    commits: int = 0
    percentage: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "lines": self.lines,
            "commits": self.commits,
            "percentage": self.percentage,
        }


@dataclass
class FileStats:
    """Per-file totals over a commit range."""

    path: str
    total_lines: int = 0
    ai_lines: int = 0
    human_lines: int = 0

    @property
    def ai_percentage(self) -> float:
        if self.total_lines == 0:
            return 0.0
        return self.ai_lines / self.total_lines * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "total_lines": self.total_lines,
            "ai_lines": self.ai_lines,
            "human_lines": self.human_lines,
            "ai_percentage": self.ai_percentage,
        }


@dataclass
class SummaryStats:
    total_lines: int = 0
    ai_lines: int = 0
    human_lines: int = 0
    ai_percentage: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_lines": self.total_lines,
            "ai_lines": self.ai_lines,
            "human_lines": self.human_lines,
            "ai_percentage": self.ai_percentage,
        }


@dataclass
class DetailedMetrics:
    """Additions (contribution) and additions+deletions (work volume) per author type."""

    ai_added: int = 0
    ai_deleted: int = 0
    human_added: int = 0
    human_deleted: int = 0

    @property
    def ai_additions(self) -> int:
        return self.ai_added

    @property
    def human_additions(self) -> int:
        return self.human_added

    @property
    def ai_changes(self) -> int:
        return self.ai_added + self.ai_deleted

    @property
    def human_changes(self) -> int:
        return self.human_added + self.human_deleted

    def accumulate(self, author_type: str, added: int, deleted: int) -> None:
        if author_type == AUTHOR_TYPE_AI:
            self.ai_added += added
            self.ai_deleted += deleted
        else:
            self.human_added += added
            self.human_deleted += deleted

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contributions": {
                "ai_additions": self.ai_additions,
                "human_additions": self.human_additions,
            },
            "work_volume": {
                "ai_added": self.ai_added,
                "ai_deleted": self.ai_deleted,
                "ai_changes": self.ai_changes,
                "human_added": self.human_added,
                "human_deleted": self.human_deleted,
                "human_changes": self.human_changes,
            },
        }


@dataclass
class Report:
    """Aggregated attribution over a commit range."""

    range: str
    commits: int
    summary: SummaryStats = field(default_factory=SummaryStats)
    by_author: List[AuthorStats] = field(default_factory=list)
    by_file: List[FileStats] = field(default_factory=list)
    metrics: Optional[DetailedMetrics] = None
    target_ai_percentage: Optional[float] = None
