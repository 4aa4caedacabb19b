import json
import math
import re

from loguru import logger

from codeassist.errors import ClassificationUnavailableError
from codeassist.pipeline.file_references import extract_file_references
from codeassist.pipeline.llm import CompletionClient
from codeassist.pipeline.prompts.intent_classifier import build_classification_prompt
from codeassist.schemas.intent import CONTEXT_LEVELS, INTENT_TYPES, ClassificationContext, QueryIntent

# Keyword groups, evaluated top-down; the first group with a match wins.
GENERATION_PATTERNS = [
    "create", "generate", "write", "build", "implement", "add new",
    "make a", "develop", "code for", "function that", "component that",
    "scaffold", "boilerplate", "template", "new file", "starter",
]
IMPROVEMENT_PATTERNS = [
    "improve", "optimize", "enhance", "better", "performance",
    "make faster", "more efficient", "cleaner", "simplify",
    "update", "modernize", "readme", "documentation", "docs",
]
REFACTOR_PATTERNS = [
    "refactor", "restructure", "reorganize", "move", "extract",
    "rename", "split", "combine", "merge",
]
DEBUG_PATTERNS = [
    "bug", "error", "fix", "issue", "problem", "not working",
    "broken", "debug", "troubleshoot",
]
REVIEW_PATTERNS = [
    "review", "check", "validate", "audit", "security",
    "best practices", "code quality",
]
EXPLAIN_PATTERNS = [
    "explain", "how does", "what is", "understand", "clarify",
    "walk through", "breakdown",
]

# (patterns, type, confidence, requires_code_gen, requires_file_modification, context_needed)
FALLBACK_RULES = [
    (GENERATION_PATTERNS, "code_generation", 0.7, True, True, "project"),
    (IMPROVEMENT_PATTERNS, "code_improvement", 0.7, True, True, "file"),
    (REFACTOR_PATTERNS, "refactor", 0.7, True, True, "function"),
    (DEBUG_PATTERNS, "debug", 0.8, False, False, "file"),
    (REVIEW_PATTERNS, "code_review", 0.7, False, False, "file"),
    (EXPLAIN_PATTERNS, "explain", 0.8, False, False, "function"),
]
DEFAULT_RULE = ("question", 0.5, False, False, "project")


def _pattern_regex(pattern: str) -> re.Pattern[str]:
    words = pattern.split()
    return re.compile(r"\b" + r"\s+".join(re.escape(w) for w in words) + r"\b", re.IGNORECASE)


_COMPILED_RULES = [
    ([(p, _pattern_regex(p)) for p in patterns], *rest) for patterns, *rest in FALLBACK_RULES
]


def _matches(text: str, compiled: list[tuple[str, re.Pattern[str]]]) -> bool:
    return any(regex.search(text) or pattern in text for pattern, regex in compiled)


def fallback_classify(query: str, available_files: list[str] | None = None) -> QueryIntent:
    """Deterministic keyword classification. Same input, same output."""
    lower_query = query.lower()
    target_files = extract_file_references(query, available_files or [])

    for compiled, intent_type, confidence, code_gen, modification, context_needed in _COMPILED_RULES:
        if _matches(lower_query, compiled):
            break
    else:
        intent_type, confidence, code_gen, modification, context_needed = DEFAULT_RULE

    logger.debug("Fallback classification: {} ({})", intent_type, confidence)
    return QueryIntent(
        type=intent_type,
        confidence=confidence,
        target_files=target_files,
        requires_code_gen=code_gen,
        requires_file_modification=modification,
        context_needed=context_needed,
    )


def extract_first_json_object(text: str) -> str | None:
    """First balanced ``{...}`` in ``text``, ignoring braces inside strings."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start:i + 1]
        start = text.find("{", start + 1)
    return None


def _coerce_confidence(value) -> float:
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return 0.5
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value) or not value:
        return 0.5
    return min(max(float(value), 0.0), 1.0)


def parse_classification(response: str) -> QueryIntent:
    payload = extract_first_json_object(response)
    if payload is None:
        raise ValueError("No JSON found in classification response")
    parsed = json.loads(payload)
    if not isinstance(parsed, dict):
        raise ValueError("Classification response is not a JSON object")

    intent_type = parsed.get("type")
    context_needed = parsed.get("contextNeeded")
    target_files = parsed.get("targetFiles")
    return QueryIntent(
        type=intent_type if intent_type in INTENT_TYPES else "question",
        confidence=_coerce_confidence(parsed.get("confidence")),
        target_files=[f for f in target_files if isinstance(f, str)] if isinstance(target_files, list) else [],
        requires_code_gen=bool(parsed.get("requiresCodeGen")),
        requires_file_modification=bool(parsed.get("requiresFileModification")),
        context_needed=context_needed if context_needed in CONTEXT_LEVELS else "project",
    )


def _describe_failure(error: Exception) -> str:
    message = str(error)
    lowered = message.lower()
    if "503" in message or "overloaded" in lowered:
        return "model temporarily overloaded"
    if "api key" in lowered or "api_key" in lowered or "401" in message:
        return "API key invalid or missing"
    if "429" in message or "quota" in lowered or "rate limit" in lowered:
        return "quota exceeded"
    if "network" in lowered or "connection" in lowered or "timeout" in lowered or "econnreset" in lowered:
        return "network error"
    return "unexpected error"


class AIClassifier:
    def __init__(self, client: CompletionClient | None):
        self.client = client

    def is_available(self) -> bool:
        return self.client is not None

    async def classify(self, query: str, available_files: list[str] | None = None) -> QueryIntent:
        if self.client is None:
            raise ClassificationUnavailableError("AI classifier is not configured")
        try:
            response = await self.client.complete(build_classification_prompt(query, available_files))
            return parse_classification(response)
        except Exception as e:
            raise ClassificationUnavailableError(f"{_describe_failure(e)}: {e}") from e


class IntentClassifier:
    """AI classification with a keyword fallback. ``classify`` never raises."""

    def __init__(self, client: CompletionClient | None = None):
        self.ai_classifier = AIClassifier(client)

    async def classify(self, query: str, context: ClassificationContext | None = None) -> QueryIntent:
        available_files = context.available_files if context else []

        if not self.ai_classifier.is_available():
            logger.debug("AI classifier not configured, using fallback classification")
            return fallback_classify(query, available_files)

        try:
            intent = await self.ai_classifier.classify(query, available_files)
        except ClassificationUnavailableError as e:
            logger.warning("Intent classification failed, using fallback: {}", e)
            return fallback_classify(query, available_files)

        if not intent.target_files and available_files:
            intent.target_files = extract_file_references(query, available_files)
        logger.info("Classified query as {} ({:.2f})", intent.type, intent.confidence)
        return intent

    def extract_file_references(self, query: str, available_files: list[str]) -> list[str]:
        return extract_file_references(query, available_files)
