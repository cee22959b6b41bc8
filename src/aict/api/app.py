"""FastAPI application instance for the AI Code Tracker API."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..errors import AictError, AuthorshipNotFoundError, StageError
from ..logging_utils import configure_logging
from ..serialize import DeterministicSerializer
from . import __version__
from .routes import router as api_router

configure_logging()

logger = logging.getLogger(__name__)

serializer = DeterministicSerializer()

# Error codes that describe a bad request rather than a server fault
CLIENT_ERROR_CODES = {"INVALID_REVISION", "GIT_COMMAND_FAILED"}

app = FastAPI(
    title="AI Code Tracker API",
    description="Read-only access to per-commit authorship logs and range reports",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Read-only API: no credentials, no mutating methods
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(api_router)


def error_status(exc: AictError) -> int:
    """HTTP status for a domain error, judged by the error a stage wrapped."""
    root = exc.cause if isinstance(exc, StageError) else exc
    if isinstance(root, AuthorshipNotFoundError):
        return 404
    if root.code in CLIENT_ERROR_CODES:
        return 400
    return 500


@app.exception_handler(AictError)
async def aict_error_handler(request: Request, exc: AictError):
    status_code = error_status(exc)
    logger.info(
        "Request failed",
        extra={"path": request.url.path, "code": exc.code, "status": status_code},
    )
    return JSONResponse(
        status_code=status_code,
        content=serializer.create_error_envelope(exc.code, exc.message, exc.details),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Return a consistent error envelope for uncaught exceptions."""
    logger.exception("Unhandled API error", extra={"path": request.url.path})
    return JSONResponse(
        status_code=500,
        content=serializer.create_error_envelope(
            "INTERNAL_ERROR",
            f"Internal server error: {exc}",
            {"exception_type": type(exc).__name__, "path": request.url.path},
        ),
    )
