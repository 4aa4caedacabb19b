import re

LANGUAGE_BY_EXTENSION = {
    "ts": "typescript",
    "tsx": "typescript",
    "js": "javascript",
    "jsx": "javascript",
    "mjs": "javascript",
    "py": "python",
    "rs": "rust",
    "go": "go",
    "md": "markdown",
    "markdown": "markdown",
    "json": "json",
    "yml": "yaml",
    "yaml": "yaml",
    "toml": "toml",
    "html": "html",
    "css": "css",
    "scss": "scss",
    "sass": "sass",
    "less": "less",
    "php": "php",
    "rb": "ruby",
    "java": "java",
    "kt": "kotlin",
    "swift": "swift",
    "scala": "scala",
    "cpp": "cpp",
    "c": "c",
    "cs": "csharp",
    "sh": "bash",
    "bash": "bash",
    "zsh": "bash",
    "env": "bash",
    "sql": "sql",
    "xml": "xml",
    "txt": "text",
}

EXTENSION_BY_LANGUAGE = {
    "typescript": "ts",
    "tsx": "tsx",
    "javascript": "js",
    "jsx": "jsx",
    "python": "py",
    "rust": "rs",
    "go": "go",
    "markdown": "md",
    "json": "json",
    "yaml": "yaml",
    "html": "html",
    "css": "css",
    "bash": "sh",
    "sql": "sql",
    "java": "java",
    "ruby": "rb",
}

_FENCE_LANGUAGE_LINE = re.compile(r"^(?:typescript|javascript|python|tsx|jsx|ts|js|py)\n")


def detect_language(path: str) -> str:
    file_name = path.rsplit("/", 1)[-1].lower()
    if file_name == "dockerfile":
        return "dockerfile"
    if "." not in file_name:
        return "text"
    return LANGUAGE_BY_EXTENSION.get(file_name.rsplit(".", 1)[-1], "text")


def extension_for(language: str) -> str:
    return EXTENSION_BY_LANGUAGE.get(language.lower(), "txt")


def clean_code_content(content: str) -> str:
    """Strip a fence the model wrapped around file content.

    Content that is not fence-wrapped is returned untouched.
    """
    if not content:
        return ""
    stripped = content.strip()
    if not (stripped.startswith("```") and stripped.endswith("```") and len(stripped) >= 6):
        return content
    lines = stripped.split("\n")
    if len(lines) >= 2:
        inner = "\n".join(lines[1:-1])
    else:
        inner = stripped[3:-3]
    return _FENCE_LANGUAGE_LINE.sub("", inner).strip()
