"""Application-wide settings and environment loading."""

import logging
import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv()
logger.debug("Environment variables loaded from .env if present")

DEFAULT_NOTES_REF = "refs/notes/aict-authorship"


@lru_cache(maxsize=1)
def get_default_author_override() -> Optional[str]:
    """Return the author forced through AICT_DEFAULT_AUTHOR, if any."""
    author = os.getenv("AICT_DEFAULT_AUTHOR", "").strip()
    if author:
        logger.debug("Default author overridden from environment", extra={"author": author})
        return author
    return None


def get_notes_ref() -> str:
    """Return the git notes ref that holds authorship logs."""
    return os.getenv("AICT_NOTES_REF") or DEFAULT_NOTES_REF


def get_repo_path() -> str:
    """Return the repository served by the HTTP API."""
    return os.getenv("AICT_REPO_PATH") or os.getcwd()
