import json
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal

from loguru import logger

from codeassist.errors import GenerationError, NotFoundError, UnsupportedIntentError
from codeassist.pipeline.json_repair import extract_json_payload, light_clean_json, reescape_content_fields
from codeassist.pipeline.llm import CompletionClient
from codeassist.pipeline.prompts.analysis import build_debug_prompt, build_explain_prompt, build_review_prompt
from codeassist.pipeline.prompts.code_generation import (
    build_generation_prompt,
    build_improvement_prompt,
    build_refactor_prompt,
)
from codeassist.pipeline.response_parser import ResponseParser, normalize_files
from codeassist.schemas.generation import (
    CodeGenerationRequest,
    CodeGenerationResult,
    ProjectContext,
    Suggestion,
)
from codeassist.services.context_service import ProjectContextSource

ResponseShape = Literal["files", "review", "debug", "explain"]
# (path, current content) of the file an improvement rewrites
ResolvedFile = tuple[str, str]
PromptBuilder = Callable[[CodeGenerationRequest, ProjectContext, ResolvedFile | None], str]

_FOCUS_PATTERNS = [
    re.compile(r"focus on ([^.]+)", re.IGNORECASE),
    re.compile(r"pay attention to ([^.]+)", re.IGNORECASE),
    re.compile(r"especially ([^.]+)", re.IGNORECASE),
    re.compile(r"particularly ([^.]+)", re.IGNORECASE),
]


def extract_review_type(query: str) -> str:
    lowered = query.lower()
    if "security" in lowered or "vulnerable" in lowered or "auth" in lowered:
        return "security"
    if "performance" in lowered or "optimize" in lowered or "speed" in lowered:
        return "performance"
    return "comprehensive"


def extract_focus_areas(query: str) -> str | None:
    for pattern in _FOCUS_PATTERNS:
        match = pattern.search(query)
        if match:
            return match.group(1).strip()
    return None


def extract_detail_level(query: str) -> str:
    lowered = query.lower()
    if "brief" in lowered or "quick" in lowered or "summary" in lowered:
        return "brief"
    if "comprehensive" in lowered or "in-depth" in lowered or "detailed" in lowered:
        return "comprehensive"
    return "detailed"


def _new_code_prompt(request: CodeGenerationRequest, context: ProjectContext, _resolved: ResolvedFile | None) -> str:
    return build_generation_prompt(request, context)


def _improvement_prompt(request: CodeGenerationRequest, context: ProjectContext, resolved: ResolvedFile | None) -> str:
    path, content = resolved
    return build_improvement_prompt(request, context, content, path)


def _refactor_prompt(request: CodeGenerationRequest, context: ProjectContext, _resolved: ResolvedFile | None) -> str:
    return build_refactor_prompt(request, context)


def _debug_prompt(request: CodeGenerationRequest, context: ProjectContext, _resolved: ResolvedFile | None) -> str:
    return build_debug_prompt(request, context)


def _review_prompt(request: CodeGenerationRequest, context: ProjectContext, _resolved: ResolvedFile | None) -> str:
    return build_review_prompt(
        request, context, extract_review_type(request.query), extract_focus_areas(request.query)
    )


def _explain_prompt(request: CodeGenerationRequest, context: ProjectContext, _resolved: ResolvedFile | None) -> str:
    return build_explain_prompt(request, context, extract_detail_level(request.query))


@dataclass(frozen=True)
class StrategyProfile:
    intent: str
    label: str
    prompt_builder: PromptBuilder
    response_shape: ResponseShape = "files"
    requires_file_content: bool = False


NEW_CODE = StrategyProfile("code_generation", "Code generation", _new_code_prompt)
IMPROVEMENT = StrategyProfile(
    "code_improvement", "Code improvement", _improvement_prompt, requires_file_content=True
)
REFACTOR = StrategyProfile("refactor", "Code refactoring", _refactor_prompt)
DEBUG = StrategyProfile("debug", "Code debugging", _debug_prompt, response_shape="debug")
REVIEW = StrategyProfile("code_review", "Code review", _review_prompt, response_shape="review")
EXPLAIN = StrategyProfile("explain", "Code explanation", _explain_prompt, response_shape="explain")

STRATEGY_PROFILES = {profile.intent: profile for profile in (NEW_CODE, IMPROVEMENT, REFACTOR, DEBUG, REVIEW, EXPLAIN)}


# --- flat response shapes ----------------------------------------------------


def _strings(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if isinstance(v, (str, int, float)) and str(v).strip()]


def _items(value: Any) -> list:
    return value if isinstance(value, list) else []


def _text(value: Any, default: str) -> str:
    return value if isinstance(value, str) and value.strip() else default


def _suggestions(value: Any) -> list[Suggestion]:
    if not isinstance(value, list):
        return []
    suggestions = []
    for item in value:
        if isinstance(item, str) and item.strip():
            suggestions.append(Suggestion(description=item))
        elif isinstance(item, dict) and isinstance(item.get("description"), str):
            try:
                suggestions.append(Suggestion.model_validate(item))
            except ValueError:
                suggestions.append(Suggestion(description=item["description"]))
    return suggestions


def load_flat_payload(raw_text: str) -> dict | None:
    """Decode the flat JSON object of a review/debug/explain answer, or None."""
    payload = extract_json_payload(raw_text)
    if payload is None:
        return None
    for candidate in (payload, reescape_content_fields(light_clean_json(payload))):
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data
    return None


def review_result(data: dict) -> CodeGenerationResult:
    warnings = []
    for issue in _items(data.get("issues")):
        if not isinstance(issue, dict) or not issue.get("description"):
            continue
        severity = str(issue.get("severity") or "issue").upper()
        warnings.append(f"{severity}: {issue['description']} ({issue.get('file') or 'unknown file'})")
    warnings.extend(_strings(data.get("warnings")))

    return CodeGenerationResult(
        type="code_snippet",
        explanation=_text(data.get("summary"), _text(data.get("explanation"), "Code review completed")),
        warnings=warnings,
        suggestions=_suggestions(data.get("suggestions")),
    )


def debug_result(data: dict, target_file: str | None = None) -> CodeGenerationResult:
    explanation = _text(data.get("diagnosis"), _text(data.get("explanation"), "Debugging analysis completed"))
    if data.get("rootCause"):
        explanation += f"\n\n**Root Cause:** {data['rootCause']}"

    warnings = []
    for solution in _items(data.get("solutions")):
        if isinstance(solution, dict) and solution.get("title"):
            description = solution.get("description")
            warnings.append(
                f"Recommendation: {solution['title']} - {description}" if description
                else f"Recommendation: {solution['title']}"
            )
        elif isinstance(solution, str) and solution.strip():
            warnings.append(f"Recommendation: {solution}")
    warnings.extend(_strings(data.get("warnings")))

    files = normalize_files(data["files"], target_file) if isinstance(data.get("files"), list) else []
    return CodeGenerationResult(
        type="file_modification" if files else "code_snippet",
        files=files,
        explanation=explanation,
        warnings=warnings,
        suggestions=_suggestions(data.get("suggestions")),
    )


def _numbered(items: list[str]) -> str:
    return "\n".join(f"{i}. {item}" for i, item in enumerate(items, start=1))


def _bulleted(items: list[str]) -> str:
    return "\n".join(f"• {item}" for item in items)


def explain_result(data: dict) -> CodeGenerationResult:
    key_points = _strings(data.get("keyPoints"))
    code_flow = _strings(data.get("codeFlow"))
    patterns = _strings(data.get("patterns"))
    recommendations = _strings(data.get("recommendations"))

    explanation = _text(data.get("explanation"), "Code explanation:")
    if key_points:
        explanation += "\n\n**Key Points:**\n" + _numbered(key_points)
    if code_flow:
        explanation += "\n\n**Code Flow:**\n" + _numbered(code_flow)
    if patterns:
        explanation += "\n\n**Design Patterns & Techniques:**\n" + _bulleted(patterns)
    if recommendations:
        explanation += "\n\n**Recommendations:**\n" + _bulleted(recommendations)

    warnings = [f"Key Point: {point}" for point in key_points]
    warnings += [f"Recommendation: {rec}" for rec in recommendations]
    warnings += _strings(data.get("warnings"))

    return CodeGenerationResult(
        type="code_snippet",
        explanation=explanation,
        warnings=warnings,
        dependencies=_strings(data.get("dependencies")),
        suggestions=_suggestions(data.get("suggestions")),
    )


class GenerationStrategy:
    def __init__(
        self,
        profile: StrategyProfile,
        client: CompletionClient,
        context_source: ProjectContextSource,
        parser: ResponseParser | None = None,
    ):
        self.profile = profile
        self.client = client
        self.context_source = context_source
        self.parser = parser or ResponseParser()

    async def resolve_target_file(self, request: CodeGenerationRequest, context: ProjectContext) -> ResolvedFile:
        target = request.target_file or (request.context_files[0] if request.context_files else None)
        if not target:
            raise NotFoundError("No target file specified for improvement")
        for relevant in context.relevant_files:
            if relevant.file_name == target and relevant.source_code:
                return target, relevant.source_code
        content = await self.context_source.get_file_content(target, request.project_id)
        return target, content

    async def generate(self, request: CodeGenerationRequest, context: ProjectContext) -> CodeGenerationResult:
        resolved = None
        if self.profile.requires_file_content:
            resolved = await self.resolve_target_file(request, context)
            request = request.model_copy(update={"target_file": resolved[0]})

        prompt = self.profile.prompt_builder(request, context, resolved)
        try:
            raw_text = await self.client.complete(prompt)
        except Exception as e:
            logger.error("{} failed for project {}: {}", self.profile.label, request.project_id, e)
            raise GenerationError(self.profile.intent, f"{self.profile.label} failed: {e}") from e

        logger.debug("{} completion: {} chars", self.profile.label, len(raw_text))
        return self.parse(raw_text, request, context)

    def parse(
        self, raw_text: str, request: CodeGenerationRequest, context: ProjectContext
    ) -> CodeGenerationResult:
        if self.profile.response_shape == "files":
            return self.parser.parse(raw_text, request, context)

        data = load_flat_payload(raw_text)
        if data is None:
            logger.warning("{} response has no readable JSON, using the recovery ladder", self.profile.label)
            return self.parser.parse(raw_text, request, context)
        if self.profile.response_shape == "review":
            return review_result(data)
        if self.profile.response_shape == "debug":
            return debug_result(data, request.target_file)
        return explain_result(data)


class CodeGenerationEngine:
    """Fetches project context and dispatches a request to the strategy for its intent."""

    def __init__(
        self,
        client: CompletionClient,
        context_source: ProjectContextSource,
        parser: ResponseParser | None = None,
    ):
        self.context_source = context_source
        parser = parser or ResponseParser()
        self.strategies = {
            intent: GenerationStrategy(profile, client, context_source, parser)
            for intent, profile in STRATEGY_PROFILES.items()
        }

    def supports(self, intent: str) -> bool:
        return intent in self.strategies

    async def generate(self, request: CodeGenerationRequest) -> CodeGenerationResult:
        strategy = self.strategies.get(request.intent.type)
        if strategy is None:
            raise UnsupportedIntentError(request.intent.type)

        context = await self.context_source.get_project_context(
            request.project_id,
            request.intent.context_needed,
            request.context_files or request.intent.target_files,
        )
        logger.info(
            "Generating {} for project {} with {} context files",
            request.intent.type, request.project_id, len(context.relevant_files),
        )
        return await strategy.generate(request, context)
