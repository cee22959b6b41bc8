"""Configuration management for AI Code Tracker."""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

from .errors import ConfigError

DEFAULT_TRACKED_EXTENSIONS = (
    ".go", ".py", ".js", ".ts", ".java",
    ".cpp", ".c", ".h", ".rs", ".rb",
    ".php", ".swift", ".kt", ".cs",
)

DEFAULT_EXCLUDE_PATTERNS = (
    "*_test.go",
    "*_generated.go",
    "vendor/*",
    "node_modules/*",
    "*.min.js",
)

DEFAULT_AI_AGENTS = (
    "Claude Code",
    "Claude",
    "GitHub Copilot",
    "ChatGPT",
    "Cursor",
)

DEFAULT_AI_NAME_PATTERNS = (
    "claude",
    "copilot",
    "chatgpt",
    "cursor",
    "assistant",
    "bot",
)


@dataclass(frozen=True)
class TrackerConfig:
    """Configuration for checkpoint capture and authorship attribution."""

    default_author: str = "Developer"

    # File selection
    tracked_extensions: Tuple[str, ...] = DEFAULT_TRACKED_EXTENSIONS
    exclude_patterns: Tuple[str, ...] = DEFAULT_EXCLUDE_PATTERNS

    # Author classification
    ai_agents: Tuple[str, ...] = DEFAULT_AI_AGENTS
    ai_name_patterns: Tuple[str, ...] = DEFAULT_AI_NAME_PATTERNS
    author_mappings: Dict[str, str] = field(default_factory=dict)

    # Reporting
    target_ai_percentage: float = 80.0

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.default_author.strip():
            raise ConfigError("default_author cannot be empty")
        if not self.tracked_extensions:
            raise ConfigError("tracked_extensions cannot be empty")
        for ext in self.tracked_extensions:
            if not ext.startswith("."):
                raise ConfigError(f"tracked extension {ext!r} must start with '.'")
        if not (0 <= self.target_ai_percentage <= 100):
            raise ConfigError("target_ai_percentage must be between 0 and 100")

    @property
    def git_env(self) -> Dict[str, str]:
        """Get Git environment variables for deterministic output."""
        env = os.environ.copy()
        env.update(
            {
                "LC_ALL": "C",
                "GIT_TERMINAL_PROMPT": "0",
                "GIT_PAGER": "cat",
            }
        )
        return env

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to the JSON shape stored in config.json."""
        return {
            "default_author": self.default_author,
            "tracked_extensions": list(self.tracked_extensions),
            "exclude_patterns": list(self.exclude_patterns),
            "ai_agents": list(self.ai_agents),
            "ai_name_patterns": list(self.ai_name_patterns),
            "author_mappings": dict(self.author_mappings),
            "target_ai_percentage": self.target_ai_percentage,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrackerConfig":
        """Build a config from config.json content, defaulting absent keys."""
        if not isinstance(data, dict):
            raise ConfigError("config must be a JSON object")

        kwargs: Dict[str, Any] = {}
        if data.get("default_author"):
            kwargs["default_author"] = str(data["default_author"])
        for key in ("tracked_extensions", "exclude_patterns", "ai_agents", "ai_name_patterns"):
            if data.get(key) is not None:
                value = data[key]
                if not isinstance(value, list):
                    raise ConfigError(f"{key} must be a list")
                kwargs[key] = tuple(str(item) for item in value)
        if data.get("author_mappings") is not None:
            if not isinstance(data["author_mappings"], dict):
                raise ConfigError("author_mappings must be an object")
            kwargs["author_mappings"] = {
                str(k): str(v) for k, v in data["author_mappings"].items()
            }
        if data.get("target_ai_percentage") is not None:
            try:
                kwargs["target_ai_percentage"] = float(data["target_ai_percentage"])
            except (TypeError, ValueError) as exc:
                raise ConfigError("target_ai_percentage must be a number") from exc

        return cls(**kwargs)
