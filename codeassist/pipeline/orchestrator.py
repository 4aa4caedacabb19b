from collections.abc import AsyncGenerator

from loguru import logger

from codeassist.errors import GenerationError, NotFoundError
from codeassist.pipeline.intent_classifier import IntentClassifier
from codeassist.pipeline.llm import CompletionClient
from codeassist.pipeline.prompts.question import build_question_prompt
from codeassist.pipeline.response_adapter import adapt, adapt_legacy
from codeassist.pipeline.strategies import CodeGenerationEngine
from codeassist.schemas.generation import CodeGenerationRequest
from codeassist.schemas.intent import ClassificationContext, QueryIntent
from codeassist.schemas.response import UnifiedResponse
from codeassist.services.context_service import ProjectContextSource
from codeassist.utils.sse import sse_done, sse_error, sse_intent, sse_response, sse_stage_change


class AssistantPipeline:
    """classify -> build request -> generate -> parse/repair -> adapt, one request at a time."""

    def __init__(
        self,
        classifier: IntentClassifier,
        engine: CodeGenerationEngine,
        client: CompletionClient,
        context_source: ProjectContextSource,
    ):
        self.classifier = classifier
        self.engine = engine
        self.client = client
        self.context_source = context_source

    async def classify(self, query: str, available_files: list[str] | None = None) -> QueryIntent:
        return await self.classifier.classify(query, ClassificationContext(available_files=available_files or []))

    async def run(
        self,
        project_id: str,
        query: str,
        available_files: list[str] | None = None,
        target_file: str | None = None,
    ) -> UnifiedResponse:
        intent = await self.classify(query, available_files)
        return await self.respond(project_id, query, intent, target_file)

    async def respond(
        self,
        project_id: str,
        query: str,
        intent: QueryIntent,
        target_file: str | None = None,
    ) -> UnifiedResponse:
        if not self.engine.supports(intent.type):
            return await self.answer_question(project_id, query, intent)

        if target_file is None and intent.requires_file_modification and intent.target_files:
            target_file = intent.target_files[0]
        request = CodeGenerationRequest(
            intent=intent,
            query=query,
            project_id=project_id,
            context_files=intent.target_files or None,
            target_file=target_file,
        )
        result = await self.engine.generate(request)
        return adapt(result, intent.type, intent.confidence)

    async def answer_question(self, project_id: str, query: str, intent: QueryIntent) -> UnifiedResponse:
        context = await self.context_source.get_project_context(
            project_id, intent.context_needed, intent.target_files
        )
        try:
            answer = await self.client.complete(build_question_prompt(query, context))
        except Exception as e:
            logger.error("Answering question failed for project {}: {}", project_id, e)
            raise GenerationError(intent.type, f"Answering failed: {e}") from e

        references = [
            {"path": f.file_name, "fileName": f.file_name.rsplit("/", 1)[-1]}
            for f in context.relevant_files
            if f.file_name in intent.target_files
        ]
        return adapt_legacy({"answer": answer, "filesReferences": references}, intent.type, intent.confidence)

    async def stream(
        self,
        project_id: str,
        query: str,
        available_files: list[str] | None = None,
        target_file: str | None = None,
    ) -> AsyncGenerator[str, None]:
        """Same flow as ``run``, as SSE-formatted events."""
        yield sse_stage_change("classifying")
        intent = await self.classify(query, available_files)
        yield sse_intent(intent)

        yield sse_stage_change("generating")
        try:
            response = await self.respond(project_id, query, intent, target_file)
        except GenerationError as e:
            yield sse_error(e.message, e.intent)
            yield sse_done()
            return
        except NotFoundError as e:
            yield sse_error(str(e), intent.type)
            yield sse_done()
            return

        yield sse_response(response)
        yield sse_done()
