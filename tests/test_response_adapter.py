"""Tests for adapting strategy output into UnifiedResponse."""

import pytest

from codeassist.pipeline.response_adapter import (
    NO_CONTENT,
    adapt,
    adapt_legacy,
    determine_content_type,
    file_reference,
)
from codeassist.schemas.generation import CodeGenerationResult, GeneratedFile, Suggestion


def make_result(**overrides) -> CodeGenerationResult:
    data = {
        "type": "new_file",
        "files": [GeneratedFile(path="src/lib/a.ts", content="export const a = 1;", language="typescript")],
        "explanation": "",
    }
    data.update(overrides)
    return CodeGenerationResult(**data)


class TestAdapt:
    def test_content_falls_back_to_primary_file(self):
        response = adapt(make_result(), "code_generation", 0.7)

        assert response.content == "export const a = 1;"
        assert response.content_type == "code"
        assert response.generated_code == "export const a = 1;"
        assert response.language == "typescript"
        assert response.files[0].file_name == "a.ts"
        assert response.files[0].change_type == "create"

    def test_explanation_preferred(self):
        response = adapt(make_result(explanation="Adds a constant"), "code_generation", 0.7)

        assert response.content == "Adds a constant"

    def test_placeholder_when_nothing(self):
        response = adapt(make_result(files=[]), "explain", 0.8)

        assert response.content == NO_CONTENT
        assert response.content_type == "markdown"

    def test_diagnostics_are_routed(self):
        result = make_result(
            warnings=[
                "Content extracted via streaming parser due to JSON issues",
                "HIGH: SQL injection in query builder (src/db.ts)",
                "Key Point: uses a singleton",
            ],
            suggestions=[Suggestion(type="security", description="Consider parameterized queries", priority="high")],
        )

        response = adapt(result, "code_review", 0.7)

        assert response.warnings == ["HIGH: SQL injection in query builder (src/db.ts)"]
        assert response.insights == ["Uses a singleton"]
        assert response.suggestions[0].type == "security"
        assert response.suggestions[0].priority == "high"
        assert response.suggestions[0].description == "Consider parameterized queries"
        assert response.content_type == "text"

    def test_degraded_stage_sets_fallback(self):
        assert adapt(make_result(parse_stage="light_clean"), "code_generation", 0.7).fallback_used is True
        assert adapt(make_result(parse_stage="direct"), "code_generation", 0.7).fallback_used is None

    def test_diagnostic_stage_sets_error(self):
        result = make_result(explanation="AI response parsing failed", parse_stage="diagnostic")

        response = adapt(result, "code_generation", 0.7)

        assert response.error == "AI response parsing failed"
        assert response.fallback_used is True

    def test_confidence_is_clamped(self):
        assert adapt(make_result(), "code_generation", 3.0).confidence == 1.0

    @pytest.mark.parametrize("result", [
        make_result(files=[]),
        make_result(files=[], explanation="   "),
        make_result(files=[GeneratedFile(path="x", content="", language="text")]),
    ])
    def test_content_never_empty(self, result):
        assert adapt(result, "question", 0.5).content


class TestContentType:
    @pytest.mark.parametrize("intent, has_content, expected", [
        ("code_generation", False, "code"),
        ("code_improvement", False, "code"),
        ("refactor", False, "code"),
        ("explain", True, "markdown"),
        ("debug", True, "text"),
        ("code_review", True, "text"),
        ("question", True, "code"),
        ("question", False, "text"),
    ])
    def test_rules(self, intent, has_content, expected):
        assert determine_content_type(intent, has_content) == expected


class TestLegacyShapes:
    def test_improved_code_without_explanation(self):
        response = adapt_legacy({"improvedCode": "const x = 1;"}, "code_improvement")

        assert response.content == "const x = 1;"
        assert response.content_type == "code"
        assert response.generated_code == "const x = 1;"

    def test_improved_code_prefers_explanation(self):
        response = adapt_legacy({"improvedCode": "const x = 1;", "explanation": "Made x const"}, "code_improvement")

        assert response.content == "Made x const"

    def test_improved_code_empty(self):
        assert adapt_legacy({"improvedCode": ""}, "code_improvement").content == NO_CONTENT

    def test_files_shape_with_file_name(self):
        response = adapt_legacy({"files": [{"fileName": "src/x.py", "content": "print(1)"}]}, "code_generation")

        assert response.files[0].path == "src/x.py"
        assert response.files[0].file_name == "x.py"
        assert response.content == "print(1)"
        assert response.confidence == 0.8

    def test_files_shape_with_non_string_fields(self):
        response = adapt_legacy(
            {
                "files": [{"path": 3, "fileName": "src/y.ts", "content": {"body": "x"}, "language": 7}],
                "explanation": "Generated y",
                "dependencies": "react",
            },
            "code_generation",
        )

        assert response.files[0].path == "src/y.ts"
        assert response.files[0].file_name == "y.ts"
        assert response.files[0].content is None
        assert response.files[0].language is None
        assert response.generated_code is None
        assert response.language == "text"
        assert response.dependencies == []
        assert response.content == "Generated y"

    def test_file_reference_without_any_path(self):
        reference = file_reference({"path": 3, "content": "x"})

        assert reference.path == ""
        assert reference.file_name == ""
        assert reference.content == "x"

    def test_answer_shape(self):
        response = adapt_legacy(
            {"answer": "It works like this", "filesReferences": [{"path": "src/a.ts"}]}, "question", 0.5
        )

        assert response.content == "It works like this"
        assert response.content_type == "text"
        assert response.confidence == 0.5
        assert response.files[0].file_name == "a.ts"

    def test_analysis_shape(self):
        response = adapt_legacy(
            {"analysis": "Looks ok", "issues": ["Bug: off by one"], "suggestions": [{"description": "Consider a guard"}]},
            "code_review",
        )

        assert response.content == "Looks ok"
        assert response.warnings == ["Bug: off by one"]
        assert response.suggestions[0].description == "Consider a guard"

    def test_unknown_shape(self):
        response = adapt_legacy({"foo": 1}, "question")

        assert response.fallback_used is True
        assert response.confidence == 0.5
        assert response.content == '{"foo": 1}'

    def test_unknown_shape_with_text(self):
        assert adapt_legacy({"text": "hello"}, "question").content == "hello"
