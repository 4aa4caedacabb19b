"""Prompts for the analysis intents: debug, code review and explanation.

These ask for a flat JSON payload rather than a list of files.
"""

from codeassist.pipeline.prompts.context import format_context_json, format_source_files
from codeassist.schemas.generation import CodeGenerationRequest, ProjectContext

REVIEW_FOCUS = {
    "security": "Focus on vulnerabilities: injection, XSS, CSRF, authentication and authorization flaws, secrets handling.",
    "performance": "Focus on performance: algorithmic complexity, unnecessary work, memory usage, I/O and rendering costs.",
    "comprehensive": "Cover correctness, security, performance, maintainability and adherence to project conventions.",
}

EXPLAIN_DEPTH = {
    "brief": "Keep it short: a one-paragraph overview and at most three key points.",
    "detailed": "Explain the purpose, the main flow and the important details.",
    "comprehensive": "Go in depth: purpose, full control flow, design patterns, edge cases and trade-offs.",
}


def build_debug_prompt(request: CodeGenerationRequest, context: ProjectContext) -> str:
    return f"""
You are an expert debugger. Analyze the code and provide solutions for the reported issue.

User Request: "{request.query}"

Code Context:
{format_source_files(context)}

Debugging Approach:
1. Identify the root cause of the issue
2. Provide step-by-step diagnosis
3. Suggest multiple solution approaches
4. Include logging/testing recommendations
5. Address potential edge cases

CRITICAL: Respond with a JSON object wrapped in ```json code block. Use \\n for line breaks in code.

```json
{{
  "diagnosis": "What is going wrong and why",
  "rootCause": "The underlying cause",
  "solutions": [{{"title": "Short title", "description": "How to fix it", "priority": "high|medium|low"}}],
  "suggestions": [{{"type": "bug_fix", "description": "Concrete change", "code": "optional fixed code", "priority": "high"}}],
  "warnings": ["Potential issues to watch"],
  "files": [{{"path": "path/to/fixed/file.ts", "content": "// Fixed code here", "language": "typescript", "changeType": "modify"}}]
}}
```
"""


def build_review_prompt(
    request: CodeGenerationRequest,
    context: ProjectContext,
    review_type: str,
    focus_areas: str | None = None,
) -> str:
    focus_section = f"\nPay particular attention to: {focus_areas}\n" if focus_areas else ""
    return f"""
You are a senior code reviewer. Review the code below.

User Request: "{request.query}"

Review Type: {review_type}
{REVIEW_FOCUS.get(review_type, REVIEW_FOCUS["comprehensive"])}
{focus_section}
Code Under Review:
{format_source_files(context)}

Project Context:
{format_context_json(context)}

CRITICAL: Respond with a JSON object wrapped in ```json code block.

```json
{{
  "summary": "Overall assessment",
  "issues": [{{"severity": "high|medium|low", "description": "What is wrong", "file": "path/to/file.ts", "line": 42}}],
  "suggestions": [{{"type": "improvement|bug_fix|optimization|security", "description": "Recommended change", "code": "optional code", "priority": "high|medium|low"}}],
  "warnings": ["Anything else the author should know"]
}}
```
"""


def build_explain_prompt(request: CodeGenerationRequest, context: ProjectContext, detail_level: str) -> str:
    return f"""
You are a patient senior engineer explaining code to a teammate.

User Request: "{request.query}"

Detail Level: {detail_level}
{EXPLAIN_DEPTH.get(detail_level, EXPLAIN_DEPTH["detailed"])}

Code:
{format_source_files(context)}

Project Context:
{format_context_json(context)}

CRITICAL: Respond with a JSON object wrapped in ```json code block.

```json
{{
  "explanation": "Overview of what the code does",
  "keyPoints": ["Important point"],
  "codeFlow": ["Step in the execution flow"],
  "patterns": ["Design pattern or technique used"],
  "recommendations": ["Optional improvement"],
  "suggestions": [],
  "warnings": [],
  "dependencies": []
}}
```
"""
