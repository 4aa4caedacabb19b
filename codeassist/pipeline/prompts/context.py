import json

from codeassist.schemas.generation import ProjectContext


def format_relevant_files(context: ProjectContext) -> str:
    return "\n".join(
        f"""
File: {f.file_name}
Type: {f.type}
Exports: {', '.join(f.exports)}
Summary: {f.summary}
"""
        for f in context.relevant_files
    )


def format_source_files(context: ProjectContext, max_chars_per_file: int = 8000) -> str:
    files_content = ""
    for f in context.relevant_files:
        files_content += f"\n--- {f.file_name} ---\n{f.source_code[:max_chars_per_file]}\n"
    return files_content


def format_context_json(context: ProjectContext) -> str:
    return json.dumps(context.prompt_dict(), indent=2)
