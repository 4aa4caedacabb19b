import pytest

from codeassist.errors import NotFoundError
from codeassist.pipeline.intent_classifier import IntentClassifier
from codeassist.pipeline.orchestrator import AssistantPipeline
from codeassist.pipeline.response_parser import ParserLimits, ResponseParser
from codeassist.pipeline.strategies import CodeGenerationEngine
from codeassist.schemas.generation import ProjectContext
from codeassist.services.context_service import build_project_context


class StubCompletionClient:
    """Returns canned completions in order (the last one repeats) and records prompts."""

    def __init__(self, *responses: str, error: Exception | None = None):
        self.responses = list(responses) or [""]
        self.error = error
        self.prompts: list[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]


class InMemoryContextSource:
    def __init__(self, files: dict[str, str] | None = None):
        self.files = files or {}
        self.requests: list[tuple[str, str, list[str] | None]] = []

    async def get_project_context(
        self, project_id: str, level: str, target_files: list[str] | None = None
    ) -> ProjectContext:
        self.requests.append((project_id, level, target_files))
        names = [f for f in self.files if f in target_files] if target_files else list(self.files)
        return build_project_context([(name, self.files[name], "") for name in names])

    async def get_file_content(self, file_name: str, project_id: str) -> str:
        if file_name not in self.files:
            raise NotFoundError(f"File not found: {file_name}")
        return self.files[file_name]


@pytest.fixture
def parser() -> ResponseParser:
    return ResponseParser(ParserLimits())


@pytest.fixture
def context_source() -> InMemoryContextSource:
    return InMemoryContextSource({
        "src/utils/format.ts": "export function formatDate(d: Date) {\n  return d.toISOString();\n}\n",
        "src/components/UserCard.tsx": "import React from 'react';\nexport default function UserCard() {\n  return null;\n}\n",
    })


@pytest.fixture
def make_pipeline(context_source):
    """Build a pipeline around a stub client; classification uses the keyword fallback."""

    def _make(*responses: str, error: Exception | None = None) -> tuple[AssistantPipeline, StubCompletionClient]:
        client = StubCompletionClient(*responses, error=error)
        pipeline = AssistantPipeline(
            classifier=IntentClassifier(None),
            engine=CodeGenerationEngine(client, context_source, ResponseParser(ParserLimits())),
            client=client,
            context_source=context_source,
        )
        return pipeline, client

    return _make
