import json
from typing import Any

from codeassist.schemas.intent import QueryIntent
from codeassist.schemas.response import UnifiedResponse


def sse_event(event: str, data: Any) -> str:
    payload = json.dumps(data) if not isinstance(data, str) else data
    return f"event: {event}\ndata: {payload}\n\n"


def sse_stage_change(stage: str) -> str:
    return sse_event("stage_change", {"stage": stage})


def sse_intent(intent: QueryIntent) -> str:
    return sse_event("intent", intent.model_dump(mode="json", by_alias=True))


def sse_response(response: UnifiedResponse) -> str:
    return sse_event("response", response.model_dump(mode="json", by_alias=True, exclude_none=True))


def sse_error(message: str, intent: str | None = None) -> str:
    return sse_event("error", {"message": message, "intent": intent})


def sse_done() -> str:
    return sse_event("done", {})
