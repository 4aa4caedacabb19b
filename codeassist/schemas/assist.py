from pydantic import Field

from codeassist.schemas.base import CamelModel


class ClassifyRequest(CamelModel):
    query: str = Field(min_length=1)
    available_files: list[str] = Field(default_factory=list)


class AssistRequest(CamelModel):
    query: str = Field(min_length=1)
    available_files: list[str] = Field(default_factory=list)
    target_file: str | None = None
