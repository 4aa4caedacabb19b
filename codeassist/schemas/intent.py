from typing import Literal, get_args

from pydantic import Field, field_validator

from codeassist.schemas.base import CamelModel

IntentType = Literal[
    "question",
    "code_generation",
    "code_improvement",
    "code_review",
    "refactor",
    "debug",
    "explain",
]
ContextLevel = Literal["file", "function", "project", "global"]

INTENT_TYPES: tuple[str, ...] = get_args(IntentType)
CONTEXT_LEVELS: tuple[str, ...] = get_args(ContextLevel)


def clamp_confidence(value: float) -> float:
    return min(max(float(value), 0.0), 1.0)


class QueryIntent(CamelModel):
    type: IntentType
    confidence: float
    target_files: list[str] = Field(default_factory=list)
    requires_code_gen: bool = False
    requires_file_modification: bool = False
    context_needed: ContextLevel = "project"

    @field_validator("confidence")
    @classmethod
    def _clamp(cls, v: float) -> float:
        return clamp_confidence(v)


class ClassificationContext(CamelModel):
    available_files: list[str] = Field(default_factory=list)
