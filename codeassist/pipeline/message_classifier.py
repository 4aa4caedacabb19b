"""Split diagnostic strings into what a user should see and what only developers need.

Every rule is a case-insensitive substring test and the first matching group
wins, so the order of the checks below is part of the behaviour.
"""

import re
from collections.abc import Iterable
from typing import Literal

from codeassist.schemas.generation import Suggestion
from codeassist.schemas.response import CategorizedContent

WarningCategory = Literal["technical", "user-issue", "educational"]
SuggestionCategory = Literal["actionable", "informational", "duplicate"]

MIN_MESSAGE_CHARS = 3

# Parser and pipeline noise, never shown to users
TECHNICAL_PATTERNS = [
    "content extracted via streaming parser",
    "json parsing issues",
    "response parsing failed",
    "response format was not recognized",
    "streaming extraction",
    "fallback response",
    "parser due to",
    "extracted from malformed response",
    "malformed response",
    "unable to extract code content",
    "please try again",
]

EDUCATIONAL_PATTERNS = [
    "key point:",
    "this component",
    "this function",
    "this code",
    "explanation:",
    "design pattern",
    "architecture",
    "follows",
]

ISSUE_PATTERNS = [
    "security:",
    "vulnerability",
    "critical:",
    "high:",
    "medium:",
    "low:",
    "error:",
    "warning:",
    "issue:",
    "problem:",
    "bug:",
    "performance:",
    "memory leak",
    "sql injection",
    "xss",
    "csrf",
]

RECOMMENDATION_PATTERNS = [
    "recommendation:",
    "suggest",
    "consider",
    "should",
    "could improve",
    "might want to",
    "try using",
    "best practice",
    "optimization:",
    "improvement:",
]

_LABEL_PREFIX = re.compile(r"^(?:Key Point:|Recommendation:|Suggestion:|Security:)\s*", re.IGNORECASE)


def _contains_any(message: str, patterns: list[str]) -> bool:
    lowered = message.lower().strip()
    return any(pattern in lowered for pattern in patterns)


def is_technical(message: str) -> bool:
    return _contains_any(message, TECHNICAL_PATTERNS)


def classify_warning(message: str) -> WarningCategory:
    if is_technical(message):
        return "technical"
    if _contains_any(message, ISSUE_PATTERNS):
        return "user-issue"
    if _contains_any(message, EDUCATIONAL_PATTERNS):
        return "educational"
    return "user-issue"


def classify_suggestion(message: str) -> SuggestionCategory:
    if is_technical(message):
        return "duplicate"
    if _contains_any(message, RECOMMENDATION_PATTERNS):
        return "actionable"
    if _contains_any(message, EDUCATIONAL_PATTERNS):
        return "informational"
    return "actionable"


def is_displayable(message: str) -> bool:
    return len(message.strip()) >= MIN_MESSAGE_CHARS


def is_user_facing(message: str) -> bool:
    return is_displayable(message) and not is_technical(message)


def format_user_message(message: str) -> str:
    """Drop a leading label such as ``Key Point:`` and capitalise the first letter."""
    formatted = _LABEL_PREFIX.sub("", message.strip()).strip()
    if formatted:
        formatted = formatted[0].upper() + formatted[1:]
    return formatted


def _description(suggestion: str | Suggestion | dict) -> str:
    if isinstance(suggestion, Suggestion):
        return suggestion.description
    if isinstance(suggestion, dict):
        description = suggestion.get("description")
        return description if isinstance(description, str) else ""
    return suggestion if isinstance(suggestion, str) else ""


def categorize(
    warnings: Iterable[str],
    suggestions: Iterable[str | Suggestion | dict] | None = None,
) -> CategorizedContent:
    result = CategorizedContent()

    for warning in warnings:
        if not isinstance(warning, str) or not is_displayable(warning):
            continue
        if not is_user_facing(warning):
            result.debug_info.append(warning)
        elif classify_warning(warning) == "educational":
            result.insights.append(format_user_message(warning))
        else:
            result.warnings.append(format_user_message(warning))

    for suggestion in suggestions or []:
        message = _description(suggestion)
        if not is_displayable(message):
            continue
        if not is_user_facing(message):
            result.debug_info.append(message)
        elif classify_suggestion(message) == "informational":
            result.insights.append(format_user_message(message))
        else:
            result.suggestions.append(format_user_message(message))

    return result
