"""Tests for checkpoint and configuration storage."""

import json
import logging
from datetime import datetime, timezone

import pytest

from aict.checkpoints import AictStorage, CheckpointStore
from aict.config import TrackerConfig
from aict.errors import ConfigError, StorageError
from aict.models import Change, Checkpoint, FileSnapshot

TS = datetime(2026, 5, 6, 7, 8, 9, tzinfo=timezone.utc)


def make_checkpoint(author="Dev", author_type="human", added=1):
    return Checkpoint(
        timestamp=TS,
        author=author,
        type=author_type,
        changes={"a.py": Change(added, 0, [[1, added]] if added > 1 else [[1]])},
        snapshot={"a.py": FileSnapshot("h", added)},
    )


@pytest.fixture
def store(temp_dir):
    return CheckpointStore(temp_dir / "checkpoints" / "latest.json")


class TestCheckpointStore:
    """Test the JSON Lines checkpoint store."""

    def test_empty_store(self, store):
        assert store.load_all() == []
        assert store.last() is None

    def test_save_appends_lines(self, store):
        store.save(make_checkpoint("Dev"))
        store.save(make_checkpoint("Claude Code", "ai", 3))

        lines = store.path.read_text().splitlines()
        assert len(lines) == 2
        assert json.loads(lines[1])["author"] == "Claude Code"

        loaded = store.load_all()
        assert [c.author for c in loaded] == ["Dev", "Claude Code"]
        assert loaded[1].changes["a.py"] == Change(3, 0, [[1, 3]])
        assert loaded[1].snapshot["a.py"] == FileSnapshot("h", 3)
        assert store.last().author == "Claude Code"

    def test_legacy_json_array_is_read_and_migrated(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text(json.dumps([make_checkpoint("Old").to_dict()]))

        assert [c.author for c in store.load_all()] == ["Old"]

        store.save(make_checkpoint("New"))

        text = store.path.read_text()
        assert not text.startswith("[")
        assert [c.author for c in store.load_all()] == ["Old", "New"]

    def test_invalid_line_skipped_with_warning(self, store, caplog):
        store.save(make_checkpoint("Dev"))
        with open(store.path, "a", encoding="utf-8") as handle:
            handle.write('{"author": "torn\n')
        store.save(make_checkpoint("Claude Code", "ai"))

        with caplog.at_level(logging.WARNING, logger="aict.checkpoints"):
            loaded = store.load_all()

        assert [c.author for c in loaded] == ["Dev", "Claude Code"]
        assert "Skipping invalid checkpoint line" in caplog.text

    def test_null_and_badly_typed_lines_skipped(self, store):
        store.save(make_checkpoint("Dev"))
        with open(store.path, "a", encoding="utf-8") as handle:
            handle.write("null\n")
            handle.write('{"author": "x", "timestamp": "yesterday"}\n')
        store.save(make_checkpoint("Claude Code", "ai"))

        assert [c.author for c in store.load_all()] == ["Dev", "Claude Code"]

    @pytest.mark.parametrize("text", ["[{broken", "[null]"])
    def test_corrupt_legacy_array_raises(self, store, text):
        store.path.parent.mkdir(parents=True)
        store.path.write_text(text)

        with pytest.raises(StorageError):
            store.load_all()

    def test_clear(self, store):
        store.save(make_checkpoint())
        store.clear()

        assert store.load_all() == []
        store.clear()


class TestAictStorage:
    """Test repository storage layout and config persistence."""

    def test_locates_git_dir(self, fake_executor, temp_dir):
        fake_executor.add(["rev-parse", "--absolute-git-dir"], str(temp_dir / ".git"))

        storage = AictStorage.for_repository(fake_executor)

        assert storage.base_dir == temp_dir / ".git" / "aict"
        assert storage.checkpoints.path == temp_dir / ".git" / "aict" / "checkpoints" / "latest.json"

    def test_config_round_trip(self, temp_dir):
        storage = AictStorage(temp_dir / "aict")
        config = TrackerConfig(default_author="Alice", author_mappings={"cc": "Claude Code"})

        storage.save_config(config)

        assert storage.config_exists()
        assert storage.load_config() == config

    def test_missing_config_mentions_init(self, temp_dir):
        storage = AictStorage(temp_dir / "aict")

        with pytest.raises(ConfigError, match="aict init"):
            storage.load_config()

    def test_corrupt_config(self, temp_dir):
        storage = AictStorage(temp_dir / "aict")
        storage.base_dir.mkdir()
        storage.config_path.write_text("{nope")

        with pytest.raises(StorageError) as exc_info:
            storage.load_config()
        assert exc_info.value.code == "STORAGE_ERROR"
