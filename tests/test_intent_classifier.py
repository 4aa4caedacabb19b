"""Tests for intent classification: keyword fallback, AI path and file references."""

import pytest

from codeassist.errors import ClassificationUnavailableError
from codeassist.pipeline.file_references import camel_to_kebab, extract_file_references
from codeassist.pipeline.intent_classifier import (
    AIClassifier,
    IntentClassifier,
    extract_first_json_object,
    fallback_classify,
    parse_classification,
)
from codeassist.schemas.intent import ClassificationContext

from conftest import StubCompletionClient


class TestFallbackClassifier:
    def test_bug_report_is_debug(self):
        intent = fallback_classify("Fix the bug where user.name is undefined")

        assert intent.type == "debug"
        assert intent.confidence == 0.8
        assert intent.requires_code_gen is False
        assert intent.context_needed == "file"

    def test_improvement_wins_over_debug(self):
        # "fix" is a debug keyword, but the improvement group is checked first
        intent = fallback_classify("Fix and improve the login form")

        assert intent.type == "code_improvement"
        assert intent.confidence == 0.7

    def test_generation_wins_over_everything(self):
        intent = fallback_classify("Create a component that fixes the layout bug")

        assert intent.type == "code_generation"
        assert intent.requires_file_modification is True
        assert intent.context_needed == "project"

    @pytest.mark.parametrize("query, expected", [
        ("Refactor the auth module", "refactor"),
        ("Please audit my session handling", "code_review"),
        # "error" is a debug keyword and debug is checked before review
        ("Please review my error boundary", "debug"),
        ("How does the auth middleware work?", "explain"),
        ("Where are the tests located?", "question"),
    ])
    def test_keyword_groups(self, query, expected):
        assert fallback_classify(query).type == expected

    def test_default_is_question(self):
        intent = fallback_classify("Where are the tests located?")

        assert intent.confidence == 0.5
        assert intent.context_needed == "project"

    def test_is_deterministic(self):
        files = ["src/components/UserCard.tsx", "src/lib/db.ts"]
        first = fallback_classify("Review UserCard for XSS", files)
        second = fallback_classify("Review UserCard for XSS", files)

        assert first == second

    @pytest.mark.parametrize("query", [
        "", "create", "fix it", "what is this", "!!!", "make faster please", "x" * 500,
    ])
    def test_confidence_in_range(self, query):
        assert 0.0 <= fallback_classify(query).confidence <= 1.0


class TestFileReferences:
    def test_basename_in_query(self):
        files = ["src/components/UserCard.tsx", "src/lib/db.ts"]

        assert extract_file_references("Review src/components/UserCard.tsx", files) == ["src/components/UserCard.tsx"]

    def test_pascal_case_matches_kebab_file(self):
        files = ["src/components/user-profile.tsx", "src/app/page.tsx"]

        assert extract_file_references("Update the UserProfile component", files) == [
            "src/components/user-profile.tsx"
        ]

    def test_plain_words_do_not_match(self):
        assert extract_file_references("make the page nicer", ["src/app/home.tsx"]) == []

    def test_deduplicated(self):
        files = ["src/components/UserCard.tsx"]

        assert extract_file_references("UserCard.tsx and UserCard", files) == files

    def test_camel_to_kebab(self):
        assert camel_to_kebab("UserProfileCard") == "user-profile-card"
        assert camel_to_kebab("formatDate") == "format-date"


class TestClassificationParsing:
    def test_first_json_object_ignores_braces_in_strings(self):
        assert extract_first_json_object('x {"a": "}{"} y {"b": 1}') == '{"a": "}{"}'

    def test_no_json_raises(self):
        with pytest.raises(ValueError):
            parse_classification("I think this is a debugging request")

    def test_invalid_values_are_coerced(self):
        intent = parse_classification('{"type": "banana", "confidence": "high", "contextNeeded": "galaxy"}')

        assert intent.type == "question"
        assert intent.confidence == 0.5
        assert intent.context_needed == "project"
        assert intent.target_files == []
        assert intent.requires_code_gen is False

    @pytest.mark.parametrize("raw, expected", [
        ('"0.9"', 0.9),
        ('" 0.35 "', 0.35),
        ('"2"', 1.0),
        ('"NaN"', 0.5),
        ('"0"', 0.5),
    ])
    def test_numeric_string_confidence(self, raw, expected):
        intent = parse_classification('{"type": "debug", "confidence": ' + raw + "}")

        assert intent.confidence == expected

    def test_confidence_is_clamped(self):
        assert parse_classification('{"type": "debug", "confidence": 1.7}').confidence == 1.0
        assert parse_classification('{"type": "debug", "confidence": -2}').confidence == 0.0


class TestIntentClassifier:
    @pytest.mark.asyncio
    async def test_unconfigured_uses_fallback(self):
        classifier = IntentClassifier(None)

        intent = await classifier.classify("Fix the bug where user.name is undefined")

        assert intent.type == "debug"
        assert intent.confidence == 0.8

    @pytest.mark.asyncio
    async def test_ai_result_with_prose_around_json(self):
        client = StubCompletionClient(
            'Sure!\n{"type": "code_review", "confidence": 1.7, "targetFiles": [], "contextNeeded": "file"}\nDone.'
        )
        classifier = IntentClassifier(client)
        context = ClassificationContext(available_files=["src/components/UserCard.tsx"])

        intent = await classifier.classify("Look over UserCard please", context)

        assert intent.type == "code_review"
        assert intent.confidence == 1.0
        assert intent.context_needed == "file"
        assert intent.target_files == ["src/components/UserCard.tsx"]
        assert "src/components/UserCard.tsx" in client.prompts[0]

    @pytest.mark.asyncio
    async def test_ai_failure_falls_back(self):
        client = StubCompletionClient(error=RuntimeError("503 Service Unavailable: model overloaded"))
        classifier = IntentClassifier(client)

        intent = await classifier.classify("Fix the bug where user.name is undefined")

        assert intent.type == "debug"
        assert len(client.prompts) == 1

    @pytest.mark.asyncio
    async def test_unparseable_ai_answer_falls_back(self):
        classifier = IntentClassifier(StubCompletionClient("I cannot classify this"))

        intent = await classifier.classify("Refactor the auth module")

        assert intent.type == "refactor"

    @pytest.mark.asyncio
    async def test_ai_classifier_raises_typed_error(self):
        with pytest.raises(ClassificationUnavailableError):
            await AIClassifier(None).classify("anything")
