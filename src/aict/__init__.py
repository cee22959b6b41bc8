"""AI Code Tracker.

Attributes source lines to human or AI authors by combining developer
checkpoints with each commit's diff, stores the result as git notes and
aggregates it over commit ranges.
"""

__version__ = "1.0.0"
__author__ = "AICT Team"
__email__ = "dev@aict.dev"

__all__ = []
