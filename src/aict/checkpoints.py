"""Checkpoint and configuration storage under ``<git-dir>/aict``."""

import json
import logging
import os
from pathlib import Path
from typing import List, Optional, Union

from .config import TrackerConfig
from .errors import ConfigError, StorageError
from .gitexec import Executor
from .models import Checkpoint

logger = logging.getLogger(__name__)

AICT_DIR_NAME = "aict"
CHECKPOINTS_DIR_NAME = "checkpoints"
LATEST_FILE_NAME = "latest.json"
CONFIG_FILE_NAME = "config.json"


class CheckpointStore:
    """Append-only checkpoint log, one JSON object per line.

    Files written as a single JSON array by older versions are still read,
    and are rewritten as JSON Lines before the next append.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read_text(self) -> str:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""
        except OSError as exc:
            raise StorageError(str(self.path), str(exc)) from exc

    def _parse(self, text: str) -> List[Checkpoint]:
        text = text.strip()
        if not text:
            return []

        if text.startswith("["):
            try:
                return [Checkpoint.from_dict(item) for item in json.loads(text)]
            except (json.JSONDecodeError, TypeError, ValueError, AttributeError) as exc:
                raise StorageError(str(self.path), f"corrupt checkpoint array: {exc}") from exc

        checkpoints = []
        for number, line in enumerate(text.split("\n"), start=1):
            line = line.strip()
            if not line:
                continue
            try:
                checkpoints.append(Checkpoint.from_dict(json.loads(line)))
            except (json.JSONDecodeError, TypeError, ValueError, AttributeError) as exc:
                # A torn write from a concurrent hook; the remaining lines are still valid
                logger.warning(
                    "Skipping invalid checkpoint line",
                    extra={"path": str(self.path), "line": number, "error": str(exc)},
                )
        return checkpoints

    def load_all(self) -> List[Checkpoint]:
        """Return every stored checkpoint in recording order."""
        return self._parse(self._read_text())

    def last(self) -> Optional[Checkpoint]:
        checkpoints = self.load_all()
        return checkpoints[-1] if checkpoints else None

    def _migrate_if_needed(self) -> None:
        text = self._read_text().strip()
        if not text.startswith("["):
            return
        checkpoints = self._parse(text)
        lines = "".join(json.dumps(cp.to_dict(), ensure_ascii=False) + "\n" for cp in checkpoints)
        try:
            self.path.write_text(lines, encoding="utf-8")
        except OSError as exc:
            raise StorageError(str(self.path), str(exc)) from exc
        logger.info(
            "Migrated checkpoint file to JSON Lines",
            extra={"path": str(self.path), "checkpoints": len(checkpoints)},
        )

    def save(self, checkpoint: Checkpoint) -> None:
        """Append one checkpoint."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(str(self.path.parent), str(exc)) from exc

        self._migrate_if_needed()

        line = json.dumps(checkpoint.to_dict(), ensure_ascii=False, separators=(",", ":"))
        data = (line + "\n").encode("utf-8")
        try:
            # A single O_APPEND write keeps concurrent appends from interleaving
            fd = os.open(self.path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o644)
            try:
                os.write(fd, data)
            finally:
                os.close(fd)
        except OSError as exc:
            raise StorageError(str(self.path), str(exc)) from exc

    def clear(self) -> None:
        """Remove all checkpoints; clearing an empty store is a no-op."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise StorageError(str(self.path), str(exc)) from exc


class AictStorage:
    """Tracker state kept inside the repository's git directory."""

    def __init__(self, base_dir: Union[str, Path]):
        self.base_dir = Path(base_dir)
        self.checkpoints = CheckpointStore(
            self.base_dir / CHECKPOINTS_DIR_NAME / LATEST_FILE_NAME
        )

    @classmethod
    def for_repository(cls, executor: Executor) -> "AictStorage":
        """Locate ``<git-dir>/aict`` for the repository the executor runs in."""
        git_dir = executor.run(["rev-parse", "--absolute-git-dir"])
        return cls(Path(git_dir) / AICT_DIR_NAME)

    @property
    def config_path(self) -> Path:
        return self.base_dir / CONFIG_FILE_NAME

    def config_exists(self) -> bool:
        return self.config_path.is_file()

    def save_config(self, config: TrackerConfig) -> None:
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            self.config_path.write_text(
                json.dumps(config.to_dict(), ensure_ascii=False, indent=2) + "\n",
                encoding="utf-8",
            )
        except OSError as exc:
            raise StorageError(str(self.config_path), str(exc)) from exc
        logger.info("Configuration saved", extra={"path": str(self.config_path)})

    def load_config(self) -> TrackerConfig:
        try:
            text = self.config_path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise ConfigError(
                f"{self.config_path} not found; run 'aict init' first"
            ) from exc
        except OSError as exc:
            raise StorageError(str(self.config_path), str(exc)) from exc

        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise StorageError(str(self.config_path), f"corrupt config: {exc}") from exc
        return TrackerConfig.from_dict(data)
