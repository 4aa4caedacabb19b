"""Heuristics deriving project-level context from a handful of indexed files."""

import json
import re
from collections.abc import Iterable
from typing import Any

from codeassist.schemas.generation import CodingStandards

_EXPORT = re.compile(r"export\s+(?:default\s+)?(?:async\s+)?(?:function|class|const|let|var)\s+(\w+)")
_IMPORT = re.compile(r"import.*from\s+['\"]([^'\"]+)['\"]")

# (label, substring looked for in the lower-cased source)
_CONTENT_MARKERS = [
    ("React", "react"),
    ("Vue.js", "vue"),
    ("Angular", "angular"),
    ("Svelte", "svelte"),
    ("Prisma", "prisma"),
    ("MongoDB", "mongoose"),
    ("PostgreSQL", "postgres"),
    ("MySQL", "mysql"),
    ("Tailwind CSS", "tailwind"),
    ("Styled Components", "styled-components"),
    ("Emotion", "emotion"),
    ("Redux", "redux"),
    ("Zustand", "zustand"),
    ("Recoil", "recoil"),
    ("Jotai", "jotai"),
]
_EXTENSION_MARKERS = [
    ("TypeScript", (".ts", ".tsx")),
    ("JavaScript", (".js", ".jsx")),
    ("Python", (".py",)),
    ("Rust", (".rs",)),
    ("Go", (".go",)),
]

# Checked in order; ties go to the later pattern
_ARCHITECTURE_HINTS = {
    "mvc": ("controller", "model", "view"),
    "layered": ("service", "repository", "domain"),
    "clean": ("usecase", "entity", "adapter"),
    "microservices": (),
    "component": ("component", "hook"),
}

_FILE_TYPES = [
    ("component", "component"),
    ("hook", "hook"),
    ("util", "utility"),
    ("service", "service"),
    ("api", "api"),
    ("page", "page"),
]


def _source_text(source: Any) -> str:
    return source if isinstance(source, str) else json.dumps(source)


def _decoded(source: str) -> Any:
    try:
        return json.loads(source)
    except (json.JSONDecodeError, TypeError):
        return None


def source_content(source: str) -> str:
    """Plain file content of an indexed ``source_code`` value.

    The indexer stores either the raw text, a JSON string or a JSON object
    with a ``content`` key.
    """
    decoded = _decoded(source)
    if isinstance(decoded, str):
        return decoded
    if isinstance(decoded, dict):
        content = decoded.get("content")
        return content if isinstance(content, str) else ""
    return source


def infer_file_type(file_name: str) -> str:
    path = file_name.lower()
    for marker, file_type in _FILE_TYPES:
        if marker in path:
            return file_type
    return "module"


def extract_exports(source: str) -> list[str]:
    decoded = _decoded(source)
    if isinstance(decoded, dict):
        return [e for e in decoded.get("exports") or [] if isinstance(e, str)]
    return _EXPORT.findall(source)


def extract_imports(source: str) -> list[str]:
    decoded = _decoded(source)
    if isinstance(decoded, dict):
        return [i for i in decoded.get("imports") or [] if isinstance(i, str)]
    return _IMPORT.findall(source)


def infer_tech_stack(files: Iterable[tuple[str, str]]) -> list[str]:
    """Technologies mentioned across ``(file_name, source)`` pairs, in discovery order."""
    stack: dict[str, None] = {}
    for file_name, source in files:
        name = file_name.lower()
        content = _source_text(source).lower()
        if "next" in name or "next/" in content:
            stack["Next.js"] = None
        for label, marker in _CONTENT_MARKERS[:4]:
            if marker in content:
                stack[label] = None
        for label, extensions in _EXTENSION_MARKERS:
            if name.endswith(extensions):
                stack[label] = None
        for label, marker in _CONTENT_MARKERS[4:]:
            if marker in content:
                stack[label] = None
    return list(stack)


def infer_architecture_pattern(file_names: Iterable[str]) -> str:
    scores = dict.fromkeys(_ARCHITECTURE_HINTS, 0)
    for file_name in file_names:
        path = file_name.lower()
        for pattern, hints in _ARCHITECTURE_HINTS.items():
            if any(hint in path for hint in hints):
                scores[pattern] += 1
        if "api/" in path and "route" in path:
            scores["microservices"] += 1

    best, best_score = "", 0
    for pattern, score in scores.items():
        if score and score >= best_score:
            best, best_score = pattern, score
    return best


def infer_coding_standards() -> CodingStandards:
    return CodingStandards()


def build_project_structure(file_names: Iterable[str]) -> str:
    """Indented directory tree of the given paths."""
    tree: dict = {}
    for file_name in file_names:
        *dirs, leaf = file_name.split("/")
        node = tree
        for part in dirs:
            node = node.setdefault(part, {})
        node.setdefault("_files", []).append(leaf)

    lines: list[str] = []

    def walk(node: dict, depth: int) -> None:
        for key, value in node.items():
            if key == "_files":
                lines.extend("  " * depth + f for f in value)
            else:
                lines.append("  " * depth + f"{key}/")
                walk(value, depth + 1)

    walk(tree, 0)
    return "".join(line + "\n" for line in lines)
