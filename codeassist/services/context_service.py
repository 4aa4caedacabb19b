from typing import Protocol

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from codeassist.errors import NotFoundError
from codeassist.models.project_file import SourceCodeFile
from codeassist.schemas.generation import ProjectContext, RelevantFile
from codeassist.services.context_analysis import (
    build_project_structure,
    extract_exports,
    extract_imports,
    infer_architecture_pattern,
    infer_coding_standards,
    infer_file_type,
    infer_tech_stack,
    source_content,
)

# How many of the most recently indexed files each context level pulls in
CONTEXT_FILE_LIMITS = {"file": 10, "function": 10, "project": 20, "global": 50}


class ProjectContextSource(Protocol):
    async def get_project_context(
        self, project_id: str, level: str, target_files: list[str] | None = None
    ) -> ProjectContext: ...

    async def get_file_content(self, file_name: str, project_id: str) -> str: ...


def build_project_context(files: list[tuple[str, str, str]]) -> ProjectContext:
    """Assemble a context from ``(file_name, source_code, summary)`` rows."""
    return ProjectContext(
        relevant_files=[
            RelevantFile(
                file_name=file_name,
                summary=summary,
                source_code=source_content(source),
                type=infer_file_type(file_name),
                exports=extract_exports(source),
                imports=extract_imports(source),
            )
            for file_name, source, summary in files
        ],
        tech_stack=infer_tech_stack((file_name, source) for file_name, source, _ in files),
        architecture_pattern=infer_architecture_pattern(file_name for file_name, _, _ in files),
        coding_standards=infer_coding_standards(),
        project_structure=build_project_structure(file_name for file_name, _, _ in files),
    )


class DatabaseContextSource:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_project_context(
        self, project_id: str, level: str, target_files: list[str] | None = None
    ) -> ProjectContext:
        query = select(SourceCodeFile).where(SourceCodeFile.project_id == project_id)
        if target_files:
            query = query.where(SourceCodeFile.file_name.in_(target_files))
        else:
            query = query.order_by(SourceCodeFile.created_at.desc()).limit(CONTEXT_FILE_LIMITS.get(level, 10))

        result = await self.db.execute(query)
        rows = list(result.scalars().all())
        logger.debug("Loaded {} context files for project {} ({})", len(rows), project_id, level)
        return build_project_context([(row.file_name, row.source_code, row.summary) for row in rows])

    async def get_file_content(self, file_name: str, project_id: str) -> str:
        result = await self.db.execute(
            select(SourceCodeFile).where(
                SourceCodeFile.project_id == project_id,
                SourceCodeFile.file_name == file_name,
            ).limit(1)
        )
        row = result.scalar_one_or_none()
        if row is None:
            raise NotFoundError(f"File not found: {file_name}")
        return source_content(row.source_code)
