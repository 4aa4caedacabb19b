from typing import Literal

from pydantic import Field, field_validator

from codeassist.schemas.base import CamelModel
from codeassist.schemas.generation import Suggestion
from codeassist.schemas.intent import clamp_confidence

ContentType = Literal["text", "code", "markdown", "json"]


class FileReference(CamelModel):
    path: str
    file_name: str
    content: str | None = None
    language: str | None = None
    change_type: Literal["create", "modify", "delete", "replace"] | None = None


class CategorizedContent(CamelModel):
    warnings: list[str] = Field(default_factory=list)  # actual code problems
    suggestions: list[str] = Field(default_factory=list)  # actionable improvements
    insights: list[str] = Field(default_factory=list)  # educational content
    debug_info: list[str] = Field(default_factory=list)  # dev-only


class UnifiedResponse(CamelModel):
    content: str = Field(min_length=1)
    content_type: ContentType
    intent: str
    confidence: float
    files: list[FileReference] | None = None
    generated_code: str | None = None
    language: str | None = None
    explanation: str | None = None
    suggestions: list[Suggestion] | None = None
    warnings: list[str] | None = None
    insights: list[str] | None = None
    diff: str | None = None
    dependencies: list[str] | None = None
    error: str | None = None
    fallback_used: bool | None = None

    @field_validator("confidence")
    @classmethod
    def _clamp(cls, v: float) -> float:
        return clamp_confidence(v)
