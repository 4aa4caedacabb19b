"""Tests for per-intent strategies and the generation engine."""

import json

import pytest

from codeassist.errors import GenerationError, NotFoundError, UnsupportedIntentError
from codeassist.pipeline.response_parser import ParserLimits, ResponseParser
from codeassist.pipeline.strategies import (
    CodeGenerationEngine,
    extract_detail_level,
    extract_focus_areas,
    extract_review_type,
)
from codeassist.schemas.generation import CodeGenerationRequest
from codeassist.schemas.intent import QueryIntent

from conftest import StubCompletionClient


def make_request(intent_type: str, query: str = "Do the thing", **kwargs) -> CodeGenerationRequest:
    return CodeGenerationRequest(
        intent=QueryIntent(type=intent_type, confidence=0.7, context_needed="file"),
        query=query,
        project_id="p1",
        **kwargs,
    )


def make_engine(client, context_source) -> CodeGenerationEngine:
    return CodeGenerationEngine(client, context_source, ResponseParser(ParserLimits()))


def fenced(payload: dict) -> str:
    return "```json\n" + json.dumps(payload) + "\n```"


class TestQueryHints:
    def test_review_type(self):
        assert extract_review_type("Check for auth issues") == "security"
        assert extract_review_type("Speed up the page") == "performance"
        assert extract_review_type("Review this") == "comprehensive"

    def test_focus_areas(self):
        assert extract_focus_areas("Review the API, focus on error handling. Thanks") == "error handling"
        assert extract_focus_areas("Pay attention to naming") == "naming"
        assert extract_focus_areas("Review the API") is None

    def test_detail_level(self):
        assert extract_detail_level("Give me a quick overview") == "brief"
        assert extract_detail_level("An in-depth explanation please") == "comprehensive"
        assert extract_detail_level("Explain the hook") == "detailed"


class TestFileStrategies:
    @pytest.mark.asyncio
    async def test_new_code(self, context_source):
        client = StubCompletionClient(fenced({
            "type": "new_file",
            "files": [{"path": "src/components/Button.tsx", "content": "export const Button = () => null;"}],
            "explanation": "Adds a button",
        }))

        result = await make_engine(client, context_source).generate(
            make_request("code_generation", "Create a button component")
        )

        assert result.files[0].path == "src/components/Button.tsx"
        assert result.files[0].language == "typescript"
        assert result.explanation == "Adds a button"
        assert len(client.prompts) == 1
        assert "Create a button component" in client.prompts[0]

    @pytest.mark.asyncio
    async def test_improvement_includes_current_file(self, context_source):
        client = StubCompletionClient(fenced({
            "type": "file_modification",
            "files": [{"path": "src/utils/format.ts", "content": "export const formatDate = (d: Date) => d.toISOString();"}],
            "explanation": "Shorter",
        }))

        result = await make_engine(client, context_source).generate(
            make_request("code_improvement", "Improve formatDate", target_file="src/utils/format.ts")
        )

        assert "return d.toISOString();" in client.prompts[0]
        assert result.files[0].path == "src/utils/format.ts"

    @pytest.mark.asyncio
    async def test_improvement_falls_back_to_context_files(self, context_source):
        client = StubCompletionClient(fenced({"type": "file_modification", "files": [{"content": "x"}]}))

        result = await make_engine(client, context_source).generate(
            make_request("code_improvement", context_files=["src/utils/format.ts"])
        )

        assert result.files[0].path == "src/utils/format.ts"

    @pytest.mark.asyncio
    async def test_improvement_without_target_is_not_found(self, context_source):
        client = StubCompletionClient("unused")

        with pytest.raises(NotFoundError):
            await make_engine(client, context_source).generate(make_request("code_improvement"))
        assert client.prompts == []

    @pytest.mark.asyncio
    async def test_improvement_unknown_file_is_not_found(self, context_source):
        client = StubCompletionClient("unused")

        with pytest.raises(NotFoundError):
            await make_engine(client, context_source).generate(
                make_request("code_improvement", target_file="src/missing.ts")
            )

    @pytest.mark.asyncio
    async def test_model_failure_is_tagged_with_intent(self, context_source):
        cause = RuntimeError("429 quota exceeded")
        client = StubCompletionClient(error=cause)

        with pytest.raises(GenerationError) as exc_info:
            await make_engine(client, context_source).generate(make_request("refactor"))

        assert exc_info.value.intent == "refactor"
        assert exc_info.value.__cause__ is cause

    @pytest.mark.asyncio
    async def test_question_is_not_a_strategy(self, context_source):
        with pytest.raises(UnsupportedIntentError):
            await make_engine(StubCompletionClient("x"), context_source).generate(make_request("question"))

    @pytest.mark.asyncio
    async def test_context_request_uses_target_files(self, context_source):
        client = StubCompletionClient(fenced({"type": "new_file", "files": []}))

        await make_engine(client, context_source).generate(
            make_request("code_generation", context_files=["src/components/UserCard.tsx"])
        )

        assert context_source.requests == [("p1", "file", ["src/components/UserCard.tsx"])]


class TestFlatStrategies:
    @pytest.mark.asyncio
    async def test_review(self, context_source):
        client = StubCompletionClient(fenced({
            "summary": "Mostly fine",
            "issues": [{"severity": "high", "description": "Unsanitized HTML", "file": "src/a.ts"}],
            "suggestions": [{"type": "security", "description": "Escape user input", "priority": "high"}],
            "warnings": ["No tests found"],
        }))

        result = await make_engine(client, context_source).generate(
            make_request("code_review", "Review for security, focus on input handling")
        )

        assert result.explanation == "Mostly fine"
        assert result.warnings == ["HIGH: Unsanitized HTML (src/a.ts)", "No tests found"]
        assert result.suggestions[0].type == "security"
        assert result.files == []
        assert "Review Type: security" in client.prompts[0]
        assert "input handling" in client.prompts[0]

    @pytest.mark.asyncio
    async def test_debug(self, context_source):
        client = StubCompletionClient(fenced({
            "diagnosis": "user is undefined on first render",
            "rootCause": "Data loads asynchronously",
            "solutions": [{"title": "Guard access", "description": "Use optional chaining", "priority": "high"}],
            "warnings": [],
        }))

        result = await make_engine(client, context_source).generate(make_request("debug"))

        assert result.explanation == "user is undefined on first render\n\n**Root Cause:** Data loads asynchronously"
        assert result.warnings == ["Recommendation: Guard access - Use optional chaining"]
        assert result.type == "code_snippet"

    @pytest.mark.asyncio
    async def test_explain(self, context_source):
        client = StubCompletionClient(fenced({
            "explanation": "Renders a user card",
            "keyPoints": ["Uses hooks"],
            "codeFlow": ["Render", "Effect"],
            "patterns": ["Observer"],
            "recommendations": ["Memoize callbacks"],
        }))

        result = await make_engine(client, context_source).generate(make_request("explain"))

        assert result.explanation.startswith("Renders a user card")
        assert "**Key Points:**\n1. Uses hooks" in result.explanation
        assert "**Code Flow:**\n1. Render\n2. Effect" in result.explanation
        assert "• Observer" in result.explanation
        assert result.warnings == ["Key Point: Uses hooks", "Recommendation: Memoize callbacks"]

    @pytest.mark.asyncio
    async def test_unreadable_flat_answer_uses_recovery_ladder(self, context_source):
        client = StubCompletionClient("Sorry, I got confused.")

        result = await make_engine(client, context_source).generate(make_request("explain"))

        assert result.parse_stage == "diagnostic"
        assert result.files[0].path == "error-response.md"
