"""Recovery ladder turning raw model completions into ``CodeGenerationResult``.

Each stage is a plain function taking the shared :class:`ParseAttempt` and
either returning a result or raising :class:`ParseFailure`. The parser walks
the stages in order and stops at the first success, so ``parse`` never
raises and always returns a result with a list of files.

Stages, cheapest first:

1. ``streaming``: pull a ``"content"`` value straight out of the raw text.
2. ``direct``: locate the JSON payload and ``json.loads`` it.
3. ``light_clean``: strip trailing commas and backticks, re-escape content values.
4. ``unterminated_repair``: treat everything after ``"content": "`` as the file.
5. ``code_block``: take the largest non-JSON fenced block.
6. ``diagnostic``: explain the failure in a generated Markdown file.
"""

import json
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from codeassist.config import settings
from codeassist.errors import ParseFailure
from codeassist.pipeline.json_repair import (
    CONTENT_START,
    close_truncated_json,
    content_tail,
    content_value_is_unterminated,
    escape_json_string_body,
    extract_json_payload,
    find_content_end,
    light_clean_json,
    reescape_content_fields,
    unescape_json_string,
)
from codeassist.pipeline.language import clean_code_content, detect_language, extension_for
from codeassist.schemas.generation import (
    CodeGenerationRequest,
    CodeGenerationResult,
    GeneratedFile,
    InsertionPoint,
    ProjectContext,
)

RESULT_TYPES = {"new_file", "file_modification", "code_snippet", "multiple_files"}
CHANGE_TYPES = {"create", "modify", "replace"}

STREAMING_WARNING = "Content extracted via streaming parser due to JSON issues"
LIGHT_CLEAN_WARNING = "Recovered from JSON parsing issues in the model response"
INCOMPLETE_WARNING = "The generated content may be incomplete because the response was cut off or malformed"
CODE_BLOCK_WARNING = "Response parsing failed - extracted code may be incomplete"
TRUNCATED_WARNING = (
    "The response was truncated and only a fragment of the generated content was recovered. "
    "Try asking for a smaller change."
)

# Stages whose results count as degraded output
DEGRADED_STAGES = {"light_clean", "unterminated_repair", "code_block", "diagnostic"}

# Section headings that usually close a document; seeing one without the
# document's title suggests we only have its tail
TAIL_MARKERS = ("## Contributing", "## License", "## Acknowledgments", "## Acknowledgements")

_STREAM_CONTENT = re.compile(r'"content"\s*:\s*"((?:[^"\\]|\\.)*)', re.DOTALL)
_STREAM_LANGUAGE = re.compile(r'"language"\s*:\s*"([^"\\\n]*)"')
_STREAM_EXPLANATION = re.compile(r'"explanation"\s*:\s*"((?:[^"\\]|\\.)*)"', re.DOTALL)
_STREAM_PATH = re.compile(r'"path"\s*:\s*"([^"\\\n]+)"')
# A value the streaming regex stopped at must end the field, not sit inside it
_STREAM_VALUE_END = re.compile(r'"\s*(?:[,}\]]|(?:```\s*)?$)')
_STREAM_TYPE = re.compile(r'"type"\s*:\s*"(\w+)"')

_CODE_BLOCK = re.compile(r"```([\w+#.-]*)[^\n]*\n([\s\S]*?)```")
_IMPORT_STATEMENT = re.compile(r"import[\s\S]*?from[\s\S]*?;")
_LEADING_BLANK_LINE = re.compile(r"^[ \t]*\n")
_TITLE_LINE = re.compile(r"^# \S", re.MULTILINE)


@dataclass(frozen=True)
class ParserLimits:
    streaming_min_chars: int = 100
    truncated_tail_max_chars: int = 200
    scan_min_chars: int = 1000
    diagnostic_preview_chars: int = 500

    @classmethod
    def from_settings(cls) -> "ParserLimits":
        return cls(
            streaming_min_chars=settings.parser_streaming_min_chars,
            truncated_tail_max_chars=settings.parser_truncated_tail_max_chars,
            scan_min_chars=settings.parser_scan_min_chars,
            diagnostic_preview_chars=settings.parser_diagnostic_preview_chars,
        )


@dataclass
class ParseAttempt:
    raw: str
    request: CodeGenerationRequest | None = None
    context: ProjectContext | None = None
    limits: ParserLimits = field(default_factory=ParserLimits)
    payload: str | None = None
    last_error: Exception | None = None

    @property
    def target_file(self) -> str | None:
        return self.request.target_file if self.request else None


RecoveryStage = Callable[[ParseAttempt], CodeGenerationResult]


# --- validation and normalization -------------------------------------------


def _string_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [str(v) for v in value if isinstance(v, (str, int, float)) and str(v).strip()]
    return []


def _insertion_point(value: Any) -> InsertionPoint | None:
    if isinstance(value, dict) and isinstance(value.get("line"), int):
        column = value.get("column")
        return InsertionPoint(line=value["line"], column=column if isinstance(column, int) else 0)
    return None


def normalize_files(raw_files: list[Any], target_file: str | None = None) -> list[GeneratedFile]:
    files: list[GeneratedFile] = []
    for index, raw_file in enumerate(raw_files, start=1):
        if not isinstance(raw_file, dict):
            continue
        path = raw_file.get("path") or raw_file.get("fileName")
        if not isinstance(path, str) or not path.strip():
            path = target_file or f"generated-file-{index}.txt"
        content = raw_file.get("content")
        if content is None:
            content = ""
        elif not isinstance(content, str):
            content = json.dumps(content, indent=2)
        language = raw_file.get("language")
        change_type = raw_file.get("changeType")
        diff = raw_file.get("diff")
        files.append(
            GeneratedFile(
                path=path,
                content=clean_code_content(content),
                language=language if isinstance(language, str) and language else detect_language(path),
                change_type=change_type if change_type in CHANGE_TYPES else "create",
                diff=diff if isinstance(diff, str) else None,
                insertion_point=_insertion_point(raw_file.get("insertionPoint")),
            )
        )
    return files


def result_from_payload(data: Any, stage: str, target_file: str | None = None) -> CodeGenerationResult:
    """Validate a decoded payload (``type`` plus a ``files`` list) and normalize it."""
    if not isinstance(data, dict) or not data.get("type") or not isinstance(data.get("files"), list):
        raise ParseFailure(stage, "payload is missing 'type' or a 'files' list")

    files = normalize_files(data["files"], target_file)
    result_type = data["type"]
    if result_type not in RESULT_TYPES:
        result_type = "multiple_files" if len(files) > 1 else "code_snippet"
    explanation = data.get("explanation")

    return CodeGenerationResult(
        type=result_type,
        files=files,
        explanation=explanation if isinstance(explanation, str) and explanation else "Code generated successfully",
        warnings=_string_list(data.get("warnings")),
        dependencies=_string_list(data.get("dependencies")),
    )


# --- stages ------------------------------------------------------------------


def _stream_value_is_whole(raw: str, match: re.Match[str]) -> bool:
    end = match.end(1)
    if end == len(raw):
        return True
    if not _STREAM_VALUE_END.match(raw, end):
        return False
    closing = find_content_end(raw, match.start(1))
    return closing in (-1, end)


def streaming_stage(attempt: ParseAttempt) -> CodeGenerationResult:
    raw = attempt.raw
    if len(CONTENT_START.findall(raw)) > 1:
        raise ParseFailure("streaming", "several content fields, leaving it to the JSON stages")
    match = _STREAM_CONTENT.search(raw)
    if not match:
        raise ParseFailure("streaming", "no content field")
    if not _stream_value_is_whole(raw, match):
        raise ParseFailure("streaming", "content holds a raw quote, leaving it to the JSON stages")

    content = unescape_json_string(match.group(1))
    if len(content) < attempt.limits.streaming_min_chars:
        raise ParseFailure("streaming", f"content too short ({len(content)} chars)")

    language = _STREAM_LANGUAGE.search(raw)
    explanation = _STREAM_EXPLANATION.search(raw)
    path = _STREAM_PATH.search(raw)
    type_match = _STREAM_TYPE.search(raw)
    result_type = type_match.group(1) if type_match and type_match.group(1) in RESULT_TYPES else None
    if result_type is None:
        result_type = "file_modification" if attempt.target_file else "new_file"

    return CodeGenerationResult(
        type=result_type,
        files=[
            GeneratedFile(
                path=path.group(1) if path else attempt.target_file or "README.md",
                content=clean_code_content(content),
                language=language.group(1) if language and language.group(1) else "markdown",
                change_type="modify" if result_type == "file_modification" else "create",
            )
        ],
        explanation=(
            unescape_json_string(explanation.group(1))
            if explanation and explanation.group(1)
            else "Content extracted via streaming parser"
        ),
        warnings=[STREAMING_WARNING],
    )


def direct_stage(attempt: ParseAttempt) -> CodeGenerationResult:
    attempt.payload = extract_json_payload(attempt.raw)
    if attempt.payload is None:
        raise ParseFailure("direct", "no JSON payload found")
    try:
        data = json.loads(attempt.payload)
    except json.JSONDecodeError as e:
        attempt.last_error = e
        raise ParseFailure("direct", str(e)) from e
    return result_from_payload(data, "direct", attempt.target_file)


def light_clean_stage(attempt: ParseAttempt) -> CodeGenerationResult:
    if attempt.payload is None:
        raise ParseFailure("light_clean", "no JSON payload to clean")
    cleaned = reescape_content_fields(light_clean_json(attempt.payload))
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        attempt.last_error = e
        raise ParseFailure("light_clean", str(e)) from e
    result = result_from_payload(data, "light_clean", attempt.target_file)
    result.warnings.append(LIGHT_CLEAN_WARNING)
    return result


def _looks_truncated(attempt: ParseAttempt) -> bool:
    error = attempt.last_error
    if isinstance(error, json.JSONDecodeError):
        if "Unterminated string" in error.msg:
            return True
        # The document ended while the decoder still expected more
        if error.pos >= len(error.doc.rstrip()):
            return True
    return content_value_is_unterminated(attempt.raw)


def _reconstruct_with_regex(raw: str) -> str | None:
    tail = content_tail(raw)
    # Several files run together in the tail; only the scanner can split them
    if not tail or not tail.strip() or CONTENT_START.search(tail):
        return None
    try:
        return json.loads('{"content": "' + escape_json_string_body(tail) + '"}')["content"]
    except json.JSONDecodeError:
        return None


def _reconstruct_with_scanner(raw: str, min_chars: int) -> str | None:
    closed = close_truncated_json(raw, min_chars)
    if closed is None:
        return None
    try:
        data = json.loads(closed)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None
    files = data.get("files")
    if isinstance(files, list):
        candidates = [f.get("content") for f in files if isinstance(f, dict)]
    else:
        candidates = [data.get("content")]
    for content in candidates:
        if isinstance(content, str) and content.strip():
            return content
    return None


def unterminated_repair_stage(attempt: ParseAttempt) -> CodeGenerationResult:
    if not CONTENT_START.search(attempt.raw):
        raise ParseFailure("unterminated_repair", "no content field")
    if not _looks_truncated(attempt):
        raise ParseFailure("unterminated_repair", "response is not an unterminated string")

    content = _reconstruct_with_regex(attempt.raw)
    if content is None:
        logger.debug("Regex reconstruction failed, scanning response")
        content = _reconstruct_with_scanner(attempt.raw, attempt.limits.scan_min_chars)
    if not content:
        raise ParseFailure("unterminated_repair", "could not reconstruct content")

    return CodeGenerationResult(
        type="file_modification",
        files=[
            GeneratedFile(
                path=attempt.target_file or "README.md",
                content=content,
                language="markdown",
                change_type="modify",
            )
        ],
        explanation="The generated content was recovered from a response with broken JSON escaping. Review it before applying.",
        warnings=[INCOMPLETE_WARNING],
    )


def _largest_code_block(raw: str) -> tuple[str, str] | None:
    best: tuple[str, str] | None = None
    for match in _CODE_BLOCK.finditer(raw):
        tag = match.group(1).lower()
        body = match.group(2).rstrip()
        stripped = body.strip()
        if tag == "json" or (stripped.startswith("{") and ('"type"' in stripped or '"files"' in stripped)):
            continue
        if stripped and (best is None or len(stripped) > len(best[1].strip())):
            best = (tag, body)
    return best


def _import_span(raw: str) -> str | None:
    if not _IMPORT_STATEMENT.search(raw):
        return None
    lines = raw.split("\n")
    start = None
    end = len(lines)
    for i, line in enumerate(lines):
        if start is None and "import" in line:
            start = i
        if start is not None and "export" in line:
            end = i + 10
            break
    if start is None:
        return None
    return "\n".join(lines[start:end])


def looks_like_tail(text: str, max_chars: int) -> bool:
    """Whether recovered text is probably the end of a longer, cut-off string."""
    if len(text.strip()) < max_chars:
        return True
    if _LEADING_BLANK_LINE.match(text):
        return True
    return any(marker in text for marker in TAIL_MARKERS) and not _TITLE_LINE.search(text)


def _truncation_document(partial: str, target_file: str | None) -> CodeGenerationResult:
    content = f"""# Response Truncated

The model's response was cut off before it finished, and only the fragment below could be recovered.
It is not a complete file and should not be applied as-is.

## What you can do:
1. Ask for the change again, limited to a single file or section
2. Ask for the remaining part explicitly ("continue from ...")

## Recovered Fragment:
```
{partial.strip()}
```
"""
    return CodeGenerationResult(
        type="code_snippet",
        files=[
            GeneratedFile(
                path=target_file or "truncated-response.md",
                content=content,
                language="markdown",
                change_type="create",
            )
        ],
        explanation="The response was truncated; only a partial fragment of the generated content was recovered.",
        warnings=[TRUNCATED_WARNING],
    )


def code_block_stage(attempt: ParseAttempt) -> CodeGenerationResult:
    block = _largest_code_block(attempt.raw)
    if block is not None:
        tag, code = block
        language = tag or "text"
    else:
        code = _import_span(attempt.raw)
        language = "typescript"
    if not code or not code.strip():
        raise ParseFailure("code_block", "no usable code block")

    if looks_like_tail(code, attempt.limits.truncated_tail_max_chars):
        return _truncation_document(code, attempt.target_file)

    return CodeGenerationResult(
        type="code_snippet",
        files=[
            GeneratedFile(
                path=attempt.target_file or f"generated-code.{extension_for(language)}",
                content=code.strip(),
                language=language,
                change_type="create",
            )
        ],
        explanation="Generated code (extracted from malformed response)",
        warnings=[CODE_BLOCK_WARNING],
    )


def diagnostic_stage(attempt: ParseAttempt) -> CodeGenerationResult:
    context = attempt.context
    tech_stack_hint = ""
    if context and context.tech_stack:
        listed = "\n".join(f"- {tech}" for tech in context.tech_stack)
        tech_stack_hint = f"\n## Your project uses:\n{listed}\n\nConsider asking for code specific to these technologies.\n"
    architecture_hint = ""
    if context and context.architecture_pattern:
        architecture_hint = (
            f"\n## Your project follows {context.architecture_pattern} architecture\n"
            "Try asking for code that follows this pattern.\n"
        )

    limit = attempt.limits.diagnostic_preview_chars
    preview = attempt.raw[:limit] + ("..." if len(attempt.raw) > limit else "")
    content = f"""# AI Response Processing Error

The AI generated a response, but it couldn't be parsed properly.

## What happened:
- The AI response contained malformed JSON
- Automatic extraction failed
- This is likely due to the AI including special characters in the response

## What you can do:
1. Try rephrasing your request more specifically
2. Ask for simpler code generation tasks
3. Specify the exact file type and structure you want
{tech_stack_hint}{architecture_hint}
## Partial AI Response:
```
{preview}
```

Please try again with a more specific request.
"""
    return CodeGenerationResult(
        type="code_snippet",
        files=[GeneratedFile(path="error-response.md", content=content, language="markdown", change_type="create")],
        explanation="AI response parsing failed - see the generated file for details and suggestions",
        warnings=[
            "Response parsing failed due to malformed JSON",
            "Try rephrasing your request more specifically",
            "Consider asking for simpler code generation tasks",
        ],
    )


RECOVERY_STAGES: list[tuple[str, RecoveryStage]] = [
    ("streaming", streaming_stage),
    ("direct", direct_stage),
    ("light_clean", light_clean_stage),
    ("unterminated_repair", unterminated_repair_stage),
    ("code_block", code_block_stage),
    ("diagnostic", diagnostic_stage),
]


class ResponseParser:
    def __init__(
        self,
        limits: ParserLimits | None = None,
        stages: Sequence[tuple[str, RecoveryStage]] | None = None,
    ):
        self.limits = limits or ParserLimits.from_settings()
        self.stages = list(stages or RECOVERY_STAGES)

    def parse(
        self,
        raw_text: str,
        request: CodeGenerationRequest | None = None,
        context: ProjectContext | None = None,
    ) -> CodeGenerationResult:
        attempt = ParseAttempt(
            raw=raw_text if isinstance(raw_text, str) else "",
            request=request,
            context=context,
            limits=self.limits,
        )
        for name, stage in self.stages:
            try:
                result = stage(attempt)
            except ParseFailure as e:
                logger.debug("Recovery stage {} declined: {}", name, e.reason)
                continue
            except Exception as e:
                logger.warning("Recovery stage {} crashed: {!r}", name, e)
                continue
            result.parse_stage = name
            if name in DEGRADED_STAGES:
                logger.warning("Model response recovered by degraded stage {}", name)
            else:
                logger.debug("Model response parsed by stage {}", name)
            return result

        result = diagnostic_stage(attempt)
        result.parse_stage = "diagnostic"
        return result
