from collections.abc import AsyncGenerator

from fastapi import Depends
from openai import AsyncOpenAI
from sqlalchemy.ext.asyncio import AsyncSession

from codeassist.db.engine import async_session_factory
from codeassist.pipeline.intent_classifier import IntentClassifier
from codeassist.pipeline.llm import build_classifier_client, build_generation_client, build_openai_client
from codeassist.pipeline.orchestrator import AssistantPipeline
from codeassist.pipeline.response_parser import ResponseParser
from codeassist.pipeline.strategies import CodeGenerationEngine
from codeassist.services.context_service import DatabaseContextSource, ProjectContextSource


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        yield session


def get_openai_client() -> AsyncOpenAI:
    return build_openai_client()


def get_context_source(db: AsyncSession = Depends(get_db)) -> ProjectContextSource:
    return DatabaseContextSource(db)


def get_pipeline(
    context_source: ProjectContextSource = Depends(get_context_source),
    client: AsyncOpenAI = Depends(get_openai_client),
) -> AssistantPipeline:
    generation_client = build_generation_client(client)
    return AssistantPipeline(
        classifier=IntentClassifier(build_classifier_client(client)),
        engine=CodeGenerationEngine(generation_client, context_source, ResponseParser()),
        client=generation_client,
        context_source=context_source,
    )
