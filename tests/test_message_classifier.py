"""Tests for splitting diagnostics into user-facing and debug buckets."""

from codeassist.pipeline.message_classifier import (
    categorize,
    classify_suggestion,
    classify_warning,
    format_user_message,
    is_user_facing,
)
from codeassist.schemas.generation import Suggestion


class TestCategorize:
    def test_mixed_warnings(self):
        result = categorize([
            "SECURITY: potential XSS in input field",
            "Key Point: uses the observer pattern",
            "Content extracted via streaming parser due to JSON issues",
        ])

        assert result.warnings == ["Potential XSS in input field"]
        assert result.insights == ["Uses the observer pattern"]
        assert result.debug_info == ["Content extracted via streaming parser due to JSON issues"]
        assert result.suggestions == []

    def test_suggestions(self):
        result = categorize([], [
            "Consider memoizing the list",
            "This component follows the container pattern",
            "Response parsing failed - extracted code may be incomplete",
            "Add tests",
        ])

        assert result.suggestions == ["Consider memoizing the list", "Add tests"]
        assert result.insights == ["This component follows the container pattern"]
        assert result.debug_info == ["Response parsing failed - extracted code may be incomplete"]

    def test_structured_suggestions(self):
        result = categorize([], [
            Suggestion(description="Recommendation: use a Map"),
            {"description": "suggest caching the response"},
        ])

        assert result.suggestions == ["Use a Map", "Suggest caching the response"]

    def test_short_strings_are_dropped(self):
        result = categorize(["ok", "", "  "], ["no"])

        assert result.warnings == result.suggestions == result.insights == result.debug_info == []

    def test_partition_is_exhaustive_and_disjoint(self):
        warnings = [
            "HIGH: SQL injection in query builder (src/db.ts)",
            "This function follows the strategy pattern",
            "Response format was not recognized",
            "Something odd happened",
        ]
        suggestions = [
            "You should add an index",
            "The architecture is layered",
            "Fallback response used",
            "Rename the helper",
        ]

        result = categorize(warnings, suggestions)

        buckets = [result.warnings, result.suggestions, result.insights, result.debug_info]
        assert sum(len(b) for b in buckets) == len(warnings) + len(suggestions)
        assert result.debug_info == ["Response format was not recognized", "Fallback response used"]


class TestRules:
    def test_issue_checked_before_educational(self):
        assert classify_warning("Key Point: this has a bug: null deref") == "user-issue"

    def test_warning_categories(self):
        assert classify_warning("This function follows the strategy pattern") == "educational"
        assert classify_warning("Everything looks fine") == "user-issue"
        assert classify_warning("Streaming extraction was used") == "technical"

    def test_suggestion_categories(self):
        assert classify_suggestion("Please try again later") == "duplicate"
        assert classify_suggestion("Consider this design pattern") == "actionable"
        assert classify_suggestion("Design pattern: observer") == "informational"

    def test_user_facing(self):
        assert is_user_facing("Validate the input") is True
        assert is_user_facing("json parsing issues detected") is False
        assert is_user_facing("ab") is False

    def test_format(self):
        assert format_user_message("recommendation: add retries") == "Add retries"
        assert format_user_message("SUGGESTION: x y") == "X y"
        assert format_user_message("  plain text ") == "Plain text"
