"""Meta endpoints for AI Code Tracker API."""

import logging
import subprocess
from typing import Optional

from fastapi import APIRouter

from ...models import AUTHORSHIP_LOG_VERSION
from .. import __version__
from ..models import HealthResponse, VersionResponse

router = APIRouter(tags=["meta"])

logger = logging.getLogger(__name__)


def _get_git_version() -> Optional[str]:
    """Return the installed git version if available."""
    try:
        result = subprocess.run(
            ["git", "--version"],
            capture_output=True,
            text=True,
            timeout=5,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        logger.debug("git --version check failed", exc_info=exc)
        return None
    if result.returncode == 0:
        return result.stdout.strip().split()[-1]
    return None


@router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Health check endpoint."""
    git_version = _get_git_version()
    logger.info(
        "Health check invoked",
        extra={"git_available": git_version is not None, "git_version": git_version},
    )
    return HealthResponse(
        status="healthy",
        version=__version__,
        git_available=git_version is not None,
        git_version=git_version,
    )


@router.get("/version", response_model=VersionResponse)
def version_info() -> VersionResponse:
    """Version information endpoint."""
    git_version = _get_git_version()
    return VersionResponse(
        version=__version__,
        api_version="v1",
        authorship_log_version=AUTHORSHIP_LOG_VERSION,
        git_version=git_version,
    )


@router.get("/", include_in_schema=False)
def root() -> dict:
    """Root endpoint providing basic API metadata."""
    return {
        "name": "AI Code Tracker API",
        "version": __version__,
        "endpoints": {
            "authorship": "GET /authorship/{commit} - Authorship log of a commit",
            "report": "POST /report - Aggregate a commit range",
            "health": "GET /health - Health check",
            "version": "GET /version - Version information",
            "docs": "GET /docs - API documentation",
        },
    }
