INTENT_CLASSIFIER_PROMPT = """Analyze this user query and classify the intent. Consider the context of a software development project.

Query: "{query}"
{files_section}
Classify the intent as one of:
1. question - User wants information about existing code
2. code_generation - User wants new code to be written
3. code_improvement - User wants existing code to be optimized or enhanced
4. code_review - User wants code to be reviewed for issues
5. refactor - User wants code structure to be changed while preserving functionality
6. debug - User wants help fixing bugs or errors
7. explain - User wants detailed explanation of how code works

Respond with ONLY a JSON object in this format:
{{
  "type": "intent_type",
  "confidence": 0.85,
  "targetFiles": ["file1.ts", "file2.ts"],
  "requiresCodeGen": true,
  "requiresFileModification": false,
  "contextNeeded": "file|function|project|global",
  "reasoning": "Brief explanation of classification"
}}
"""

_MAX_LISTED_FILES = 50


def build_classification_prompt(query: str, available_files: list[str] | None = None) -> str:
    files_section = ""
    if available_files:
        listed = "\n".join(f"- {f}" for f in available_files[:_MAX_LISTED_FILES])
        files_section = f"\nProject files (pick targetFiles from these):\n{listed}\n"
    return INTENT_CLASSIFIER_PROMPT.format(query=query, files_section=files_section)
