"""File selection and author classification policies for AI Code Tracker."""

from typing import Dict, Iterable, Optional

from .config import TrackerConfig

AUTHOR_TYPE_HUMAN = "human"
AUTHOR_TYPE_AI = "ai"
AUTHOR_TYPES = (AUTHOR_TYPE_HUMAN, AUTHOR_TYPE_AI)


def matches_pattern(file_path: str, pattern: str) -> bool:
    """Match a path against a ``*suffix``, ``prefix*`` or exact pattern."""
    if not pattern:
        return False
    if pattern.startswith("*"):
        return file_path.endswith(pattern[1:])
    if pattern.endswith("*"):
        return file_path.startswith(pattern[:-1])
    return file_path == pattern


class FilePolicy:
    """Decides which repository paths take part in attribution."""

    def __init__(self, tracked_extensions: Iterable[str], exclude_patterns: Iterable[str] = ()):
        self.tracked_extensions = tuple(tracked_extensions)
        self.exclude_patterns = tuple(exclude_patterns)

    @classmethod
    def from_config(cls, config: TrackerConfig) -> "FilePolicy":
        return cls(config.tracked_extensions, config.exclude_patterns)

    def has_tracked_extension(self, file_path: str) -> bool:
        return any(file_path.endswith(ext) for ext in self.tracked_extensions)

    def is_excluded(self, file_path: str) -> bool:
        return any(matches_pattern(file_path, pattern) for pattern in self.exclude_patterns)

    def is_tracked(self, file_path: str) -> bool:
        """A file is tracked when its extension is tracked and no exclude pattern matches."""
        return self.has_tracked_extension(file_path) and not self.is_excluded(file_path)


class AuthorTypePolicy:
    """Ordered rule table that classifies an author identity as ``ai`` or ``human``.

    Rules are evaluated in this order and the first hit wins:

    1. exact match of the raw name against ``exact_names``
    2. alias resolution through ``author_mappings``
    3. exact match of the resolved name against ``exact_names``
    4. case-insensitive substring match of the resolved name against
       ``substring_patterns``

    Anything else is ``human``.
    """

    def __init__(
        self,
        exact_names: Iterable[str] = (),
        substring_patterns: Iterable[str] = (),
        author_mappings: Optional[Dict[str, str]] = None,
    ):
        self.exact_names = tuple(exact_names)
        self.substring_patterns = tuple(p.lower() for p in substring_patterns if p)
        self.author_mappings = dict(author_mappings or {})

    @classmethod
    def from_config(cls, config: TrackerConfig) -> "AuthorTypePolicy":
        return cls(config.ai_agents, config.ai_name_patterns, config.author_mappings)

    def resolve(self, name: str) -> str:
        """Return the canonical name for an alias, or the name itself."""
        return self.author_mappings.get(name, name)

    def matching_rule(self, name: str) -> Optional[str]:
        """Return a description of the rule that marks ``name`` as AI, if any."""
        if name in self.exact_names:
            return f"exact:{name}"

        resolved = self.resolve(name)
        if resolved != name and resolved in self.exact_names:
            return f"alias:{name}->{resolved}"

        lowered = resolved.lower()
        for pattern in self.substring_patterns:
            if pattern in lowered:
                return f"substring:{pattern}"
        return None

    def classify(self, name: str) -> str:
        if self.matching_rule(name) is not None:
            return AUTHOR_TYPE_AI
        return AUTHOR_TYPE_HUMAN
