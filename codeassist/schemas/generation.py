from typing import Any, Literal

from pydantic import Field

from codeassist.schemas.base import CamelModel
from codeassist.schemas.intent import QueryIntent

ResultType = Literal["new_file", "file_modification", "code_snippet", "multiple_files"]
ChangeType = Literal["create", "modify", "replace"]
SuggestionType = Literal["improvement", "bug_fix", "optimization", "security"]
Priority = Literal["high", "medium", "low"]


class InsertionPoint(CamelModel):
    line: int
    column: int = 0


class CodeGenerationRequest(CamelModel):
    model_config = {"frozen": True}

    intent: QueryIntent
    query: str
    project_id: str
    context_files: list[str] | None = None
    target_file: str | None = None
    insertion_point: InsertionPoint | None = None


class GeneratedFile(CamelModel):
    path: str
    content: str
    language: str
    change_type: ChangeType = "create"
    diff: str | None = None
    insertion_point: InsertionPoint | None = None


class Suggestion(CamelModel):
    type: SuggestionType = "improvement"
    description: str
    code: str | None = None
    priority: Priority | None = None


class CodeGenerationResult(CamelModel):
    type: ResultType
    files: list[GeneratedFile] = Field(default_factory=list)
    explanation: str = ""
    warnings: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    suggestions: list[Suggestion] = Field(default_factory=list)
    # Recovery-ladder stage that produced this result, None when built directly
    parse_stage: str | None = None


class CodingStandards(CamelModel):
    indentation: str = "2 spaces"
    quotes: str = "single"
    semicolons: bool = True
    trailing_commas: bool = True
    max_line_length: int = 100


class RelevantFile(CamelModel):
    file_name: str
    summary: str = ""
    source_code: str = ""
    type: str = "module"
    exports: list[str] = Field(default_factory=list)
    imports: list[str] = Field(default_factory=list)


class ProjectContext(CamelModel):
    relevant_files: list[RelevantFile] = Field(default_factory=list)
    tech_stack: list[str] = Field(default_factory=list)
    architecture_pattern: str = ""
    coding_standards: CodingStandards = Field(default_factory=CodingStandards)
    project_structure: str = ""

    def prompt_dict(self) -> dict[str, Any]:
        """Context as embedded in prompts, without full source bodies."""
        return {
            "techStack": self.tech_stack,
            "architecturePattern": self.architecture_pattern,
            "codingStandards": self.coding_standards.model_dump(by_alias=True),
            "projectStructure": self.project_structure,
            "relevantFiles": [
                f.model_dump(by_alias=True, exclude={"source_code"}) for f in self.relevant_files
            ],
        }
