"""API route registration for AI Code Tracker."""

from fastapi import APIRouter

from . import authorship, meta

router = APIRouter()
router.include_router(meta.router)
router.include_router(authorship.router)

__all__ = ["router"]
