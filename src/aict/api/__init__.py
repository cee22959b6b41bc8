"""HTTP API for AI Code Tracker reports."""

from .. import __version__

__all__ = ["__version__"]
