"""Tests for snapshot capture and change detection."""

import hashlib

import pytest

from aict.errors import GitCommandError
from aict.models import Change, FileSnapshot
from aict.policies import FilePolicy
from aict.snapshot import (
    capture_snapshot,
    count_content_lines,
    detect_changes,
    head_diff_provider,
    snapshot_file,
)


def snap(hash_value: str, lines: int) -> FileSnapshot:
    return FileSnapshot(hash=hash_value, lines=lines)


class TestCountContentLines:
    """Test git-style line counting."""

    @pytest.mark.parametrize(
        "content, expected",
        [
            (b"", 0),
            (b"one\n", 1),
            (b"one\ntwo", 2),
            (b"one\ntwo\n", 2),
            (b"\n\n", 2),
        ],
    )
    def test_counts(self, content, expected):
        assert count_content_lines(content) == expected


class TestDetectChanges:
    """Test change detection between snapshots."""

    def test_no_previous_snapshot_is_baseline(self):
        current = {"a.py": snap("h1", 10), "b.py": snap("h2", 3)}

        assert detect_changes(None, current) == {}

    def test_empty_previous_snapshot_reports_new_files(self):
        changes = detect_changes({}, {"a.py": snap("h1", 10)})

        assert changes == {"a.py": Change(added=10, deleted=0, lines=[[1, 10]])}

    def test_unchanged_hash_is_absent(self):
        last = {"a.py": snap("h1", 10)}
        current = {"a.py": snap("h1", 10)}

        changes = detect_changes(last, current)

        assert "a.py" not in changes
        assert changes == {}

    def test_new_empty_file(self):
        changes = detect_changes({}, {"empty.py": snap("e", 0)})

        assert changes["empty.py"] == Change(added=0, deleted=0, lines=[])

    def test_deleted_file(self):
        changes = detect_changes({"gone.py": snap("h", 7)}, {})

        assert changes == {"gone.py": Change(added=0, deleted=7, lines=[])}

    def test_modified_file_uses_precise_diff(self):
        diff = "--- a/a.py\n+++ b/a.py\n@@ -3,1 +3,2 @@\n-old\n+new\n+more"

        changes = detect_changes(
            {"a.py": snap("h1", 5)},
            {"a.py": snap("h2", 6)},
            diff_provider=lambda path: diff,
        )

        assert changes["a.py"] == Change(added=2, deleted=1, lines=[[3, 4]])

    def test_grown_file_falls_back_to_line_delta(self):
        changes = detect_changes({"a.py": snap("h1", 10)}, {"a.py": snap("h2", 15)})

        assert changes["a.py"] == Change(added=5, deleted=0, lines=[])

    def test_shrunk_file_falls_back_to_line_delta(self):
        changes = detect_changes({"a.py": snap("h1", 10)}, {"a.py": snap("h2", 4)})

        assert changes["a.py"] == Change(added=0, deleted=6, lines=[])

    def test_same_length_rewrite_is_still_reported(self):
        changes = detect_changes({"a.py": snap("h1", 10)}, {"a.py": snap("h2", 10)})

        assert changes["a.py"] == Change(added=0, deleted=0, lines=[])

    def test_failing_diff_provider_falls_back(self):
        def failing(path):
            raise GitCommandError(["diff"], 128, "fatal: bad revision 'HEAD'")

        changes = detect_changes(
            {"a.py": snap("h1", 2)}, {"a.py": snap("h2", 5)}, diff_provider=failing
        )

        assert changes["a.py"] == Change(added=3, deleted=0, lines=[])

    def test_diff_without_hunks_falls_back(self):
        changes = detect_changes(
            {"a.py": snap("h1", 2)}, {"a.py": snap("h2", 5)}, diff_provider=lambda path: ""
        )

        assert changes["a.py"] == Change(added=3, deleted=0, lines=[])


class TestCapture:
    """Test working-tree snapshot capture."""

    def test_snapshot_file(self, temp_dir):
        path = temp_dir / "x.py"
        path.write_bytes(b"a\nb\n")

        result = snapshot_file(path)

        assert result == FileSnapshot(hash=hashlib.sha256(b"a\nb\n").hexdigest(), lines=2)

    def test_capture_applies_file_policy(self, temp_dir, fake_executor):
        (temp_dir / "app.py").write_text("x = 1\n")
        (temp_dir / "notes.txt").write_text("hello\n")
        (temp_dir / "vendor").mkdir()
        (temp_dir / "vendor" / "lib.py").write_text("y = 2\n")
        fake_executor.add(["ls-files"], "app.py\nnotes.txt\nvendor/lib.py\nmissing.py")

        snapshot = capture_snapshot(fake_executor, temp_dir, FilePolicy([".py"], ["vendor/*"]))

        assert list(snapshot) == ["app.py"]
        assert snapshot["app.py"].lines == 1

    def test_head_diff_provider_command(self, fake_executor):
        fake_executor.add(["diff"], "@@ -1 +1 @@")

        assert head_diff_provider(fake_executor)("a.py") == "@@ -1 +1 @@"
        assert fake_executor.calls[0][0] == ["diff", "--unified=0", "--no-color", "HEAD", "--", "a.py"]
