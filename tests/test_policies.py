"""Tests for file selection and author classification policies."""

import pytest

from aict.config import TrackerConfig
from aict.policies import AuthorTypePolicy, FilePolicy, matches_pattern


class TestMatchesPattern:
    """Test exclude pattern matching."""

    @pytest.mark.parametrize(
        "path, pattern, expected",
        [
            ("pkg/x_test.go", "*_test.go", True),
            ("pkg/x.go", "*_test.go", False),
            ("vendor/lib/a.go", "vendor/*", True),
            ("src/vendor/a.go", "vendor/*", False),
            ("main.go", "main.go", True),
            ("cmd/main.go", "main.go", False),
            ("main.go", "", False),
        ],
    )
    def test_patterns(self, path, pattern, expected):
        assert matches_pattern(path, pattern) is expected


class TestFilePolicy:
    """Test FilePolicy class."""

    def test_from_default_config(self):
        policy = FilePolicy.from_config(TrackerConfig())

        assert policy.is_tracked("cmd/main.go") is True
        assert policy.is_tracked("pkg/util_test.go") is False
        assert policy.is_tracked("node_modules/x/index.js") is False
        assert policy.is_tracked("static/app.min.js") is False
        assert policy.is_tracked("README.md") is False

    def test_extension_check(self):
        policy = FilePolicy([".py"])

        assert policy.has_tracked_extension("a.py") is True
        assert policy.has_tracked_extension("a.pyc") is False


class TestAuthorTypePolicy:
    """Test author classification rules."""

    def test_exact_name(self):
        policy = AuthorTypePolicy(["Claude Code"])

        assert policy.classify("Claude Code") == "ai"
        assert policy.matching_rule("Claude Code") == "exact:Claude Code"

    def test_alias_resolves_to_exact_name(self):
        policy = AuthorTypePolicy(["Claude Code"], author_mappings={"cc": "Claude Code"})

        assert policy.resolve("cc") == "Claude Code"
        assert policy.matching_rule("cc") == "alias:cc->Claude Code"
        assert policy.classify("cc") == "ai"

    def test_case_insensitive_substring(self):
        policy = AuthorTypePolicy(substring_patterns=["Copilot"])

        assert policy.matching_rule("my-COPILOT-agent") == "substring:copilot"
        assert policy.classify("my-COPILOT-agent") == "ai"

    def test_substring_applies_to_resolved_name(self):
        policy = AuthorTypePolicy(substring_patterns=["bot"], author_mappings={"helper": "ReviewBot"})

        assert policy.classify("helper") == "ai"

    def test_everything_else_is_human(self):
        policy = AuthorTypePolicy.from_config(TrackerConfig())

        assert policy.classify("Alice") == "human"
        assert policy.matching_rule("Alice") is None

    def test_default_config_rules(self):
        policy = AuthorTypePolicy.from_config(TrackerConfig())

        assert policy.classify("Cursor") == "ai"
        assert policy.classify("claude-opus") == "ai"
        assert policy.classify("Developer") == "human"
