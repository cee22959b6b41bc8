"""Service layer: checkpoint recording, commit finalization and reporting."""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from .aggregate import RangeAggregator, convert_since_to_range
from .authorship import (
    build_authorship_log,
    build_authorship_log_from_checkpoints,
    validate_authorship_log,
)
from .checkpoints import AictStorage
from .config import TrackerConfig
from .diffparse import get_commit_line_ranges, get_commit_numstat
from .errors import AictError, InvalidRevisionError, StageError
from .gitexec import Executor, GitExecutor, validate_revision_arg
from .models import AuthorshipLog, Checkpoint, Report
from .notes import AuthorshipNotes
from .policies import AuthorTypePolicy, FilePolicy
from .settings import get_default_author_override, get_notes_ref
from .snapshot import capture_snapshot, detect_changes, head_diff_provider

logger = logging.getLogger(__name__)

STAGE_CAPTURE = "capture"
STAGE_DIFF = "diff"
STAGE_BUILD = "build"
STAGE_VALIDATE = "validate"
STAGE_PERSIST = "persist"
STAGE_REPORT = "report"

SYNC_PUSH = "push"
SYNC_FETCH = "fetch"


@contextmanager
def stage(name: str) -> Iterator[None]:
    """Tag any domain error raised inside the block with the stage that failed."""
    try:
        yield
    except StageError:
        raise
    except AictError as exc:
        logger.debug("Stage failed", extra={"stage": name, "code": exc.code})
        raise StageError(name, exc) from exc


class TrackerService:
    """Entry point shared by the CLI and the HTTP API."""

    def __init__(
        self,
        repo_path: Optional[Union[str, Path]] = None,
        executor: Optional[Executor] = None,
        notes_ref: Optional[str] = None,
    ):
        self.executor = executor or GitExecutor(repo_path, env=TrackerConfig().git_env)
        self.notes = AuthorshipNotes(self.executor, notes_ref or get_notes_ref())
        self._storage: Optional[AictStorage] = None

    @property
    def storage(self) -> AictStorage:
        if self._storage is None:
            self._storage = AictStorage.for_repository(self.executor)
        return self._storage

    def repo_root(self) -> Path:
        return Path(self.executor.run(["rev-parse", "--show-toplevel"]))

    def resolve_commit(self, revision: str) -> str:
        """Resolve a revision to a full commit id."""
        validate_revision_arg(revision)
        return self.executor.run(["rev-parse", "--verify", f"{revision}^{{commit}}"])

    def init(self, config: Optional[TrackerConfig] = None) -> TrackerConfig:
        """Write the tracker configuration for this repository."""
        if config is None:
            override = get_default_author_override()
            config = TrackerConfig(default_author=override) if override else TrackerConfig()
        self.storage.save_config(config)
        logger.info("Tracker initialized", extra={"path": str(self.storage.config_path)})
        return config

    def record_checkpoint(
        self,
        author: Optional[str] = None,
        model: Optional[str] = None,
        message: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> Checkpoint:
        """Snapshot the working tree and store the changes since the last checkpoint."""
        with stage(STAGE_CAPTURE):
            config = self.storage.load_config()
            author_policy = AuthorTypePolicy.from_config(config)
            author = (author or "").strip() or config.default_author

            snapshot = capture_snapshot(
                self.executor, self.repo_root(), FilePolicy.from_config(config)
            )
            last = self.storage.checkpoints.last()
            changes = detect_changes(
                last.snapshot if last else None,
                snapshot,
                head_diff_provider(self.executor),
            )

            metadata: Dict[str, str] = {}
            if model:
                metadata["model"] = model
            if message:
                metadata["message"] = message

            checkpoint = Checkpoint(
                timestamp=timestamp or datetime.now(timezone.utc),
                author=author,
                type=author_policy.classify(author),
                metadata=metadata,
                changes=changes,
                snapshot=snapshot,
            )
            self.storage.checkpoints.save(checkpoint)

        logger.info(
            "Checkpoint recorded",
            extra={
                "author": checkpoint.author,
                "type": checkpoint.type,
                "changed_files": len(changes),
                "baseline": last is None,
            },
        )
        return checkpoint

    def finalize_commit(self, commit: str = "HEAD", from_checkpoints: bool = False) -> AuthorshipLog:
        """Build, validate and store the authorship log of a commit.

        Checkpoints are cleared only after the log has been stored.
        """
        with stage(STAGE_DIFF):
            commit_id = self.resolve_commit(commit)

        with stage(STAGE_BUILD):
            config = self.storage.load_config()
            checkpoints = self.storage.checkpoints.load_all()

        file_policy = FilePolicy.from_config(config)

        if from_checkpoints:
            with stage(STAGE_BUILD):
                log = build_authorship_log_from_checkpoints(checkpoints, commit_id, file_policy)
        else:
            with stage(STAGE_DIFF):
                numstat = get_commit_numstat(self.executor, commit_id)
                line_ranges = get_commit_line_ranges(self.executor, commit_id)
            with stage(STAGE_BUILD):
                log = build_authorship_log(
                    checkpoints,
                    numstat,
                    line_ranges,
                    commit_id,
                    file_policy,
                    config.default_author,
                    AuthorTypePolicy.from_config(config),
                )

        with stage(STAGE_VALIDATE):
            validate_authorship_log(log)

        with stage(STAGE_PERSIST):
            self.notes.put(commit_id, log)
            self.storage.checkpoints.clear()

        logger.info(
            "Commit finalized",
            extra={
                "commit": commit_id,
                "files": len(log.files),
                "checkpoints": len(checkpoints),
                "from_checkpoints": from_checkpoints,
            },
        )
        return log

    def report(self, range_spec: Optional[str] = None, since: Optional[str] = None) -> Report:
        """Aggregate authorship over ``range_spec`` or over commits since a date."""
        with stage(STAGE_REPORT):
            if bool(range_spec) == bool(since):
                raise InvalidRevisionError(
                    range_spec or since or "", "exactly one of range or since is required"
                )
            label = None
            if since:
                range_spec = convert_since_to_range(self.executor, since)
                label = f"since {since}"
            report = RangeAggregator(self.executor, self.notes).aggregate(range_spec, label=label)
            # Reports work without init; the target only comes from a saved config
            if self.storage.config_exists():
                report.target_ai_percentage = self.storage.load_config().target_ai_percentage
        return report

    def reset(self, range_spec: Optional[str] = None) -> Dict[str, Any]:
        """Discard pending checkpoints and, given a range, the logs of its commits."""
        with stage(STAGE_PERSIST):
            removed: List[str] = []
            if range_spec:
                validate_revision_arg(range_spec)
                output = self.executor.run(["rev-list", "--end-of-options", range_spec])
                removed = [commit for commit in output.split() if self.notes.remove(commit)]

            pending = len(self.storage.checkpoints.load_all())
            self.storage.checkpoints.clear()

        logger.info(
            "Tracker reset",
            extra={"checkpoints_cleared": pending, "notes_removed": len(removed)},
        )
        return {"checkpoints_cleared": pending, "notes_removed": removed}

    def show(self, commit: str) -> Optional[AuthorshipLog]:
        with stage(STAGE_REPORT):
            return self.notes.get(self.resolve_commit(commit))

    def sync(self, direction: str, remote: str = "origin") -> None:
        """Push or fetch the authorship notes ref."""
        with stage(STAGE_PERSIST):
            if direction == SYNC_PUSH:
                self.notes.push(remote)
            elif direction == SYNC_FETCH:
                self.notes.fetch(remote)
            else:
                raise InvalidRevisionError(direction, "sync direction must be push or fetch")

