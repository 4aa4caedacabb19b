from codeassist.pipeline.prompts.context import format_context_json, format_relevant_files, format_source_files
from codeassist.schemas.generation import CodeGenerationRequest, ProjectContext

# Files above this size keep their head and tail only
MAX_FILE_CHARS_IN_PROMPT = 100_000
TRUNCATION_MARKER = "\n\n... (middle section truncated for processing) ...\n\n"


def truncate_for_prompt(content: str, limit: int = MAX_FILE_CHARS_IN_PROMPT) -> str:
    if len(content) <= limit:
        return content
    half = (limit - len(TRUNCATION_MARKER)) // 2
    return content[:half] + TRUNCATION_MARKER + content[-half:]


def build_generation_prompt(request: CodeGenerationRequest, context: ProjectContext) -> str:
    standards = context.coding_standards
    return f"""
You are a senior full-stack developer. Generate high-quality code based on the user's request.

User Request: "{request.query}"

Project Context:
- Technology Stack: {', '.join(context.tech_stack)}
- Architecture Pattern: {context.architecture_pattern}
- Coding Standards: indentation {standards.indentation}, {standards.quotes} quotes, semicolons {standards.semicolons}, max line length {standards.max_line_length}

Relevant Files and Dependencies:
{format_relevant_files(context)}

Project Structure:
{context.project_structure}

Generate code that:
1. Follows the existing project patterns and conventions
2. Uses the same technology stack and dependencies
3. Implements proper error handling and validation
4. Includes appropriate types (if applicable)
5. Follows the established file/folder structure
6. Includes proper imports and exports

CRITICAL: Respond with a JSON object wrapped in ```json code block. Use \\n for line breaks in code content.

```json
{{
  "type": "new_file",
  "files": [{{
    "path": "relative/path/to/file.ts",
    "content": "// Complete file content here\\nfunction example() {{\\n  return 'hello';\\n}}",
    "language": "typescript",
    "changeType": "create"
  }}],
  "explanation": "Detailed explanation of the generated code",
  "warnings": ["Any potential issues or considerations"],
  "dependencies": ["new packages needed"]
}}
```
"""


def build_improvement_prompt(
    request: CodeGenerationRequest,
    context: ProjectContext,
    file_content: str,
    target_file: str,
) -> str:
    return f"""
You are an expert software engineer. Improve the following code based on the user's request.

User Request: "{request.query}"

Current Code ({target_file}):
```
{truncate_for_prompt(file_content)}
```

Project Context:
{format_context_json(context)}

Provide improvements focusing on:
1. Performance optimization
2. Code readability and maintainability
3. Best practices adherence
4. Security considerations
5. Type safety (if applicable)

Return the COMPLETE improved file, not a fragment.

IMPORTANT: Respond with ONLY a valid JSON object. Do not use backticks in the JSON values. Use \\n for line breaks in code.

```json
{{
  "type": "file_modification",
  "files": [{{
    "path": "{target_file}",
    "content": "improved code here",
    "language": "typescript",
    "changeType": "modify",
    "diff": "unified diff format"
  }}],
  "explanation": "Detailed explanation of improvements made",
  "warnings": ["Any potential issues or considerations"],
  "dependencies": ["new dependencies if any"]
}}
```
"""


def build_refactor_prompt(request: CodeGenerationRequest, context: ProjectContext) -> str:
    return f"""
You are an expert software architect. Refactor the code according to the user's request while preserving functionality.

User Request: "{request.query}"

Current Code:
{format_source_files(context)}

Project Context:
{format_context_json(context)}

Refactoring Guidelines:
1. Preserve all existing functionality and behavior
2. Improve code organization and maintainability
3. Follow SOLID principles and clean architecture
4. Update imports/exports as needed
5. Maintain backward compatibility where possible
6. Update tests if they exist

CRITICAL: Respond with a JSON object wrapped in ```json code block. Use \\n for line breaks in code content.

```json
{{
  "type": "file_modification",
  "files": [{{"path": "...", "content": "...", "language": "...", "changeType": "modify"}}],
  "explanation": "...",
  "warnings": ["..."],
  "dependencies": ["..."]
}}
```
"""
