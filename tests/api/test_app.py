"""Tests for FastAPI application."""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from aict.api.app import app, error_status
from aict.api.routes.authorship import get_service
from aict.diffparse import COMMIT_MARKER
from aict.errors import AuthorshipNotFoundError, GitCommandError, StageError, StorageError
from aict.models import AuthorInfo, AuthorshipLog, FileInfo
from aict.notes import NOTE_MARKER
from aict.serialize import DeterministicSerializer
from aict.service import TrackerService

LOG = AuthorshipLog(
    commit="c1",
    timestamp=datetime(2026, 4, 1, tzinfo=timezone.utc),
    files={"a.py": FileInfo(authors=[
        AuthorInfo("Dev", "human", [[1, 3]]),
        AuthorInfo("Claude Code", "ai", [[4]]),
    ])},
)


@pytest.fixture
def client(fake_executor):
    """Create test client backed by a scripted executor."""
    app.dependency_overrides[get_service] = lambda: TrackerService(
        executor=fake_executor, notes_ref="refs/notes/test"
    )
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


class TestMetaEndpoints:
    """Test meta endpoints."""

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "AI Code Tracker API"
        assert "endpoints" in data

    def test_health_endpoint(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "git_available" in data

    def test_version_endpoint(self, client):
        response = client.get("/version")
        assert response.status_code == 200
        data = response.json()
        assert data["api_version"] == "v1"
        assert data["authorship_log_version"] == "1.0"


class TestAuthorshipEndpoint:
    """Test GET /authorship/{commit}."""

    def test_returns_log(self, client, fake_executor):
        fake_executor.add(["rev-parse"], "c1")
        fake_executor.add(["notes"], DeterministicSerializer().log_to_json(LOG))

        response = client.get("/authorship/c1")

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["data"]["files"]["a.py"]["authors"][1]["name"] == "Claude Code"

    def test_missing_note_is_404(self, client, fake_executor):
        fake_executor.add(["rev-parse"], "c1")
        fake_executor.add(["notes"], GitCommandError(["notes"], 1, "error: no note found for object c1."))

        response = client.get("/authorship/c1")

        assert response.status_code == 404
        body = response.json()
        assert body["ok"] is False
        assert body["error"]["code"] == "AUTHORSHIP_NOT_FOUND"

    def test_option_like_commit_rejected(self, client, fake_executor):
        response = client.get("/authorship/--all")

        assert response.status_code == 400
        assert response.json()["error"]["details"]["cause"]["code"] == "INVALID_REVISION"
        assert fake_executor.calls == []


class TestErrorStatus:
    """Test mapping of domain errors to HTTP status codes."""

    def test_mapping(self):
        assert error_status(AuthorshipNotFoundError("c1")) == 404
        assert error_status(StageError("report", GitCommandError(["log"], 128, "bad"))) == 400
        assert error_status(StageError("persist", StorageError("x", "disk full"))) == 500


class TestReportEndpoint:
    """Test POST /report."""

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"range": "a..b", "since": "7d"},
            {"range": "--all"},
            {"since": "  "},
        ],
    )
    def test_validation(self, client, payload):
        response = client.post("/report", json=payload)
        assert response.status_code == 422

    def test_range_report(self, client, fake_executor):
        fake_executor.add(["log", "--numstat"], f"{COMMIT_MARKER}c1\n\n8\t2\ta.py")
        fake_executor.add(
            ["log", "--no-notes"], f"{NOTE_MARKER}c1\n{DeterministicSerializer().log_to_json(LOG)}"
        )

        response = client.post("/report", json={"range": "c0..c1"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["range"] == "c0..c1"
        assert data["summary"]["total_lines"] == 8
        assert [a["name"] for a in data["by_author"]] == ["Dev", "Claude Code"]
        assert data["by_author"][0]["lines"] == 6

    def test_since_report_label(self, client, fake_executor):
        fake_executor.add(["log", "--since=7 days ago"], "c1")
        fake_executor.add(["rev-list"], "c1 c0")

        response = client.post("/report", json={"since": "7d"})

        assert response.status_code == 200
        assert response.json()["data"]["range"] == "since 7d"

    def test_git_failure_is_400(self, client, fake_executor):
        fake_executor.add(["log"], GitCommandError(["log"], 128, "fatal: bad revision 'x..y'"))

        response = client.post("/report", json={"range": "x..y"})

        assert response.status_code == 400
        body = response.json()
        assert body["ok"] is False
        assert body["error"]["details"]["stage"] == "report"
