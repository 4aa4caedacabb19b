"""Text-level helpers for locating and repairing JSON in model completions.

Everything here is pure string manipulation; nothing raises except
``json.loads`` callers choose to make.
"""

import re

_JSON_FENCE = re.compile(r"```json\s*([\s\S]*?)\s*```")
_JSON_FENCE_GREEDY = re.compile(r"```json\s*([\s\S]*)\s*```")
_ANY_FENCE = re.compile(r"```[\w-]*\s*([\s\S]*?)\s*```")
_PAYLOAD_KEYS = ('"type"', '"files"', '"explanation"')

_TRAILING_COMMA = re.compile(r",(\s*[}\]])")
_BACKTICK_VALUE = re.compile(r":\s*`([^`]*)`")
_LEADING_FENCE = re.compile(r"^```json\s*")
_TRAILING_FENCE = re.compile(r"\s*```$")

CONTENT_START = re.compile(r'"content"\s*:\s*"')
_SIBLING_KEYS = r"(?:language|changeType|path|diff|insertionPoint|explanation|type|warnings|dependencies)"
_CONTENT_END_BEFORE_KEY = re.compile(r'"\s*,\s*"' + _SIBLING_KEYS + r'"\s*:')
_CONTENT_END_OF_FILE = re.compile(r'"\s*\}\s*[,\]]')
_CONTENT_END_OF_OBJECT = re.compile(r'"\s*\}')

# Closing structure a truncated completion may still carry after the content value
_TRAILING_ENVELOPE = re.compile(
    r'"\s*(?:,\s*"[A-Za-z_]+"\s*:\s*(?:"[^"\n]*"|\[[^\]]*\]|[\w.]+)\s*)*(?:[}\]]\s*)*(?:```\s*)?$'
)
_TRAILING_FENCE_ONLY = re.compile(r"\n?```\s*$")

_UNESCAPES = {"n": "\n", "r": "\r", "t": "\t", '"': '"', "\\": "\\"}
_SIMPLE_ESCAPE = re.compile(r'\\(["\\nrt])')
_HEX = set("0123456789abcdefABCDEF")


def unescape_json_string(value: str) -> str:
    """Undo the common escapes (``\\n \\r \\t \\" \\\\``) in one pass."""
    return _SIMPLE_ESCAPE.sub(lambda m: _UNESCAPES[m.group(1)], value)


def escape_json_string_body(raw: str) -> str:
    """Make ``raw`` safe between double quotes, keeping escapes that are already valid."""
    out: list[str] = []
    i = 0
    n = len(raw)
    while i < n:
        ch = raw[i]
        if ch == "\\":
            nxt = raw[i + 1] if i + 1 < n else ""
            if nxt and nxt in '"\\/bfnrt':
                out.append(ch + nxt)
                i += 2
                continue
            if nxt == "u" and i + 6 <= n and all(c in _HEX for c in raw[i + 2:i + 6]):
                out.append(raw[i:i + 6])
                i += 6
                continue
            out.append("\\\\")
        elif ch == '"':
            out.append('\\"')
        elif ch == "\n":
            out.append("\\n")
        elif ch == "\r":
            out.append("\\r")
        elif ch == "\t":
            out.append("\\t")
        elif ord(ch) < 0x20:
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(ch)
        i += 1
    return "".join(out)


def _is_escaped(text: str, index: int) -> bool:
    backslashes = 0
    j = index - 1
    while j >= 0 and text[j] == "\\":
        backslashes += 1
        j -= 1
    return backslashes % 2 == 1


def find_string_end(text: str, start: int) -> int:
    """Index of the quote closing a string whose body starts at ``start``, or -1."""
    i = start
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == '"':
            return i
        i += 1
    return -1


def _looks_like_payload(candidate: str) -> bool:
    return candidate.startswith("{") and candidate.rstrip().endswith("}")


def extract_json_payload(text: str) -> str | None:
    """Locate the JSON payload of a completion.

    Tries a ```json fence, then any fence whose body starts with ``{``, then
    the widest ``{...}`` span that mentions one of the payload keys.
    """
    match = _JSON_FENCE.search(text)
    if match:
        candidate = match.group(1).strip()
        if not _looks_like_payload(candidate):
            # File content with its own fences ends the lazy match early
            greedy = _JSON_FENCE_GREEDY.search(text)
            if greedy and _looks_like_payload(greedy.group(1).strip()):
                candidate = greedy.group(1).strip()
        if candidate:
            return candidate

    for match in _ANY_FENCE.finditer(text):
        candidate = match.group(1).strip()
        if candidate.startswith("{"):
            return candidate

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        candidate = text[start:end + 1]
        if any(key in candidate for key in _PAYLOAD_KEYS):
            return candidate
    return None


def light_clean_json(text: str) -> str:
    text = _TRAILING_COMMA.sub(r"\1", text)
    text = _BACKTICK_VALUE.sub(lambda m: ': "' + escape_json_string_body(m.group(1)) + '"', text)
    text = _LEADING_FENCE.sub("", text)
    return _TRAILING_FENCE.sub("", text)


def _first_unescaped(pattern: re.Pattern[str], text: str, pos: int) -> int:
    for match in pattern.finditer(text, pos):
        if not _is_escaped(text, match.start()):
            return match.start()
    return -1


def find_content_end(text: str, value_start: int) -> int:
    """Best guess at the quote closing a ``content`` value that may hold raw quotes."""
    candidates = [
        idx
        for idx in (
            _first_unescaped(_CONTENT_END_BEFORE_KEY, text, value_start),
            _first_unescaped(_CONTENT_END_OF_FILE, text, value_start),
        )
        if idx != -1
    ]
    if candidates:
        return min(candidates)
    return _first_unescaped(_CONTENT_END_OF_OBJECT, text, value_start)


def reescape_content_fields(text: str) -> str:
    """Re-escape the raw body of every ``"content": "..."`` value."""
    out: list[str] = []
    pos = 0
    while True:
        match = CONTENT_START.search(text, pos)
        if not match:
            break
        value_start = match.end()
        value_end = find_content_end(text, value_start)
        if value_end == -1:
            break
        out.append(text[pos:value_start])
        out.append(escape_json_string_body(text[value_start:value_end]))
        pos = value_end
    out.append(text[pos:])
    return "".join(out)


def content_value_is_unterminated(text: str) -> bool:
    match = CONTENT_START.search(text)
    return bool(match) and find_string_end(text, match.end()) == -1


def content_tail(text: str) -> str | None:
    """Everything after the first ``"content": "``, minus a trailing JSON envelope."""
    match = CONTENT_START.search(text)
    if not match:
        return None
    tail = text[match.end():]
    envelope = _TRAILING_ENVELOPE.search(tail)
    if envelope and not _is_escaped(tail, envelope.start()):
        return tail[:envelope.start()]
    return _TRAILING_FENCE_ONLY.sub("", tail)


def close_truncated_json(text: str, min_chars: int = 1000) -> str | None:
    """Scan ``text`` from its first ``{`` and return a structurally closed JSON document.

    Raw control characters inside strings are escaped on the way. A return
    to depth zero ends the scan only once ``min_chars`` characters have been
    consumed; an earlier one is kept as a fallback cut. If the text runs out
    first, the open string and all open brackets are closed.
    """
    start = text.find("{")
    if start == -1:
        return None

    out: list[str] = []
    stack: list[str] = []
    in_string = False
    escaped = False
    early_cut: str | None = None

    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
                out.append(ch)
            elif ch == "\\":
                escaped = True
                out.append(ch)
            elif ch == '"':
                in_string = False
                out.append(ch)
            elif ch == "\n":
                out.append("\\n")
            elif ch == "\r":
                out.append("\\r")
            elif ch == "\t":
                out.append("\\t")
            elif ord(ch) < 0x20:
                out.append(f"\\u{ord(ch):04x}")
            else:
                out.append(ch)
            continue

        out.append(ch)
        if ch == '"':
            in_string = True
        elif ch in "{[":
            stack.append("}" if ch == "{" else "]")
        elif ch in "}]":
            if stack and stack[-1] == ch:
                stack.pop()
            if not stack:
                if i - start + 1 >= min_chars:
                    return "".join(out)
                if early_cut is None:
                    early_cut = "".join(out)

    if not stack:
        return early_cut if early_cut is not None else "".join(out)

    suffix = ""
    if in_string:
        if escaped:
            out.pop()
        suffix += '"'
    body = "".join(out) + suffix
    stripped = body.rstrip()
    if stripped.endswith(","):
        body = stripped[:-1]
    elif stripped.endswith(":"):
        body = stripped + " null"
    return body + "".join(reversed(stack))
