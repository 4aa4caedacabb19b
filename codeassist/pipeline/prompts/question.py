from codeassist.pipeline.prompts.context import format_relevant_files
from codeassist.schemas.generation import ProjectContext


def build_question_prompt(query: str, context: ProjectContext) -> str:
    return f"""You are a helpful assistant for a software project. Answer the user's question about their codebase.

Technology Stack: {', '.join(context.tech_stack) or 'unknown'}
Architecture Pattern: {context.architecture_pattern or 'unknown'}

Relevant Files:
{format_relevant_files(context)}

Question: {query}

Answer in Markdown. Reference files by path when relevant."""
