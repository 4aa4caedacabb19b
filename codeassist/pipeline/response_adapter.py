"""Normalize strategy output into the single ``UnifiedResponse`` contract."""

import json
from typing import Any

from loguru import logger

from codeassist.pipeline.message_classifier import categorize, format_user_message
from codeassist.pipeline.response_parser import DEGRADED_STAGES
from codeassist.schemas.generation import CodeGenerationResult, GeneratedFile, Suggestion
from codeassist.schemas.response import CategorizedContent, ContentType, FileReference, UnifiedResponse

NO_CONTENT = "No content available"
LEGACY_CONFIDENCE = 0.8
FALLBACK_CONFIDENCE = 0.5

CODE_INTENTS = {"code_generation", "code_improvement", "refactor"}
TEXT_INTENTS = {"code_review", "debug"}


def determine_content_type(intent: str, has_generated_content: bool = False) -> ContentType:
    if intent in CODE_INTENTS:
        return "code"
    if intent == "explain":
        return "markdown"
    if intent in TEXT_INTENTS:
        return "text"
    return "code" if has_generated_content else "text"


def _first_non_empty(*candidates: Any) -> str:
    for candidate in candidates:
        if isinstance(candidate, str) and candidate.strip():
            return candidate
    return NO_CONTENT


def _string_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _list(value: Any) -> list:
    return value if isinstance(value, list) else []


def file_reference(file: GeneratedFile | dict) -> FileReference:
    """Accept either a ``GeneratedFile`` or a raw dict keyed by ``path`` or ``fileName``."""
    if isinstance(file, GeneratedFile):
        data = file.model_dump(by_alias=True)
    else:
        data = file
    path = _string_or_none(data.get("path")) or _string_or_none(data.get("fileName")) or ""
    file_name = _string_or_none(data.get("fileName")) or path
    change_type = data.get("changeType")
    return FileReference(
        path=path,
        file_name=file_name.rsplit("/", 1)[-1],
        content=_string_or_none(data.get("content")),
        language=_string_or_none(data.get("language")),
        change_type=change_type if change_type in ("create", "modify", "delete", "replace") else None,
    )


def _as_suggestion(value: Any) -> Suggestion | None:
    if isinstance(value, Suggestion):
        return value
    if isinstance(value, str):
        return Suggestion(description=value)
    if isinstance(value, dict) and isinstance(value.get("description"), str):
        try:
            return Suggestion.model_validate(value)
        except ValueError:
            return Suggestion(description=value["description"])
    return None


def _as_messages(values: Any) -> list[str]:
    messages = []
    for value in _list(values):
        if isinstance(value, str):
            messages.append(value)
        elif isinstance(value, dict) and isinstance(value.get("description"), str):
            severity = value.get("severity")
            prefix = f"{str(severity).upper()}: " if severity else ""
            messages.append(prefix + value["description"])
    return messages


def _user_suggestions(categorized: CategorizedContent, originals: list[Suggestion]) -> list[Suggestion]:
    by_message = {format_user_message(s.description): s for s in originals}
    suggestions = []
    for message in categorized.suggestions:
        original = by_message.get(message)
        if original is not None:
            suggestions.append(original.model_copy(update={"description": message}))
        else:
            suggestions.append(Suggestion(description=message))
    return suggestions


def _route_diagnostics(
    warnings: list[str], suggestions: list[Suggestion], intent: str
) -> tuple[CategorizedContent, list[Suggestion]]:
    categorized = categorize(warnings, suggestions)
    if categorized.debug_info:
        logger.debug("Debug info for {} response: {}", intent, categorized.debug_info)
    return categorized, _user_suggestions(categorized, suggestions)


def adapt(result: CodeGenerationResult, intent: str, confidence: float) -> UnifiedResponse:
    primary = result.files[0] if result.files else None
    primary_content = primary.content if primary else None
    categorized, suggestions = _route_diagnostics(result.warnings, result.suggestions, intent)

    return UnifiedResponse(
        content=_first_non_empty(result.explanation, primary_content),
        content_type=determine_content_type(intent, bool(primary_content)),
        intent=intent,
        confidence=confidence,
        files=[file_reference(f) for f in result.files],
        generated_code=primary_content,
        language=primary.language if primary else None,
        explanation=result.explanation or None,
        suggestions=suggestions,
        warnings=categorized.warnings,
        insights=categorized.insights,
        diff=primary.diff if primary else None,
        dependencies=result.dependencies,
        error=result.explanation if result.parse_stage == "diagnostic" else None,
        fallback_used=True if result.parse_stage in DEGRADED_STAGES else None,
    )


def adapt_legacy(payload: dict, intent: str, confidence: float = LEGACY_CONFIDENCE) -> UnifiedResponse:
    """Adapt the older dict shapes (``improvedCode``, ``files``, ``answer``, ``analysis``)."""
    explanation = payload.get("explanation")
    explanation = explanation if isinstance(explanation, str) and explanation else None
    suggestions = [s for s in map(_as_suggestion, _list(payload.get("suggestions"))) if s]

    if "improvedCode" in payload:
        categorized, user_suggestions = _route_diagnostics(_as_messages(payload.get("warnings")), suggestions, intent)
        return UnifiedResponse(
            content=_first_non_empty(explanation, payload.get("improvedCode")),
            content_type="code",
            intent=intent,
            confidence=confidence,
            generated_code=_string_or_none(payload.get("improvedCode")),
            language=_string_or_none(payload.get("language")) or "text",
            explanation=explanation,
            diff=_string_or_none(payload.get("diff")),
            suggestions=user_suggestions,
            warnings=categorized.warnings,
            insights=categorized.insights,
        )

    if isinstance(payload.get("files"), list):
        files = [f for f in payload["files"] if isinstance(f, dict)]
        primary = files[0] if files else {}
        categorized, user_suggestions = _route_diagnostics(_as_messages(payload.get("warnings")), suggestions, intent)
        return UnifiedResponse(
            content=_first_non_empty(explanation, primary.get("content")),
            content_type="code",
            intent=intent,
            confidence=confidence,
            files=[file_reference(f) for f in files],
            generated_code=_string_or_none(primary.get("content")),
            language=_string_or_none(primary.get("language")) or "text",
            explanation=explanation,
            suggestions=user_suggestions,
            warnings=categorized.warnings,
            insights=categorized.insights,
            dependencies=[d for d in _list(payload.get("dependencies")) if isinstance(d, str)],
        )

    if "answer" in payload:
        references = _list(payload.get("filesReferences"))
        return UnifiedResponse(
            content=_first_non_empty(payload.get("answer"), explanation),
            content_type="text",
            intent=intent,
            confidence=confidence,
            explanation=explanation,
            files=[file_reference(f) for f in references if isinstance(f, dict)],
        )

    if "analysis" in payload:
        categorized, user_suggestions = _route_diagnostics(_as_messages(payload.get("issues")), suggestions, intent)
        return UnifiedResponse(
            content=_first_non_empty(payload.get("analysis")),
            content_type="text",
            intent=intent,
            confidence=confidence,
            explanation=_string_or_none(payload.get("analysis")) or None,
            suggestions=user_suggestions,
            warnings=categorized.warnings,
            insights=categorized.insights,
        )

    logger.warning("Unrecognized response shape for {}: {}", intent, sorted(payload))
    content = payload.get("content") or payload.get("text") or payload.get("result")
    if not isinstance(content, str):
        content = json.dumps(payload, default=str)
    return UnifiedResponse(
        content=_first_non_empty(content),
        content_type="text",
        intent=intent,
        confidence=FALLBACK_CONFIDENCE,
        explanation="Response format not recognized, using fallback",
        fallback_used=True,
    )
