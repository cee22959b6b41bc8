"""Authorship and report routes for AI Code Tracker API.

Domain errors propagate to the application's AictError handler, which
renders them as error envelopes.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends

from ...errors import AuthorshipNotFoundError
from ...serialize import DeterministicSerializer
from ...service import TrackerService
from ...settings import get_repo_path
from ..models import ReportRequest

router = APIRouter(tags=["authorship"])

logger = logging.getLogger(__name__)

serializer = DeterministicSerializer()


def get_service() -> TrackerService:
    """Service bound to the repository named by AICT_REPO_PATH."""
    return TrackerService(repo_path=get_repo_path())


@router.get("/authorship/{commit}")
def get_authorship(commit: str, service: TrackerService = Depends(get_service)) -> Any:
    """Return the stored authorship log of a commit."""
    log = service.show(commit)
    if log is None:
        raise AuthorshipNotFoundError(commit)
    return serializer.create_success_envelope(serializer.log_to_dict(log))


@router.post("/report")
def create_report(request: ReportRequest, service: TrackerService = Depends(get_service)) -> Any:
    """Aggregate authorship over a range or over commits since a date."""
    logger.info("Received report request", extra={"range": request.range, "since": request.since})
    report = service.report(range_spec=request.range, since=request.since)
    return serializer.create_success_envelope(serializer.serialize_report(report))
