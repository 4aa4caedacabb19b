from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from codeassist.dependencies import get_pipeline
from codeassist.errors import GenerationError, NotFoundError
from codeassist.pipeline.orchestrator import AssistantPipeline
from codeassist.schemas.assist import AssistRequest, ClassifyRequest
from codeassist.schemas.intent import QueryIntent
from codeassist.schemas.response import UnifiedResponse

router = APIRouter(prefix="/api/v1/projects/{project_id}/assist", tags=["assist"])


@router.post("/classify", response_model=QueryIntent)
async def classify_query(
    project_id: str,
    data: ClassifyRequest,
    pipeline: AssistantPipeline = Depends(get_pipeline),
):
    return await pipeline.classify(data.query, data.available_files)


@router.post("", response_model=UnifiedResponse, response_model_exclude_none=True)
async def assist(
    project_id: str,
    data: AssistRequest,
    pipeline: AssistantPipeline = Depends(get_pipeline),
):
    try:
        return await pipeline.run(project_id, data.query, data.available_files, data.target_file)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except GenerationError as e:
        raise HTTPException(status_code=502, detail={"message": e.message, "intent": e.intent})


@router.post("/stream")
async def assist_stream(
    project_id: str,
    data: AssistRequest,
    pipeline: AssistantPipeline = Depends(get_pipeline),
):
    return StreamingResponse(
        pipeline.stream(project_id, data.query, data.available_files, data.target_file),
        media_type="text/event-stream",
    )
