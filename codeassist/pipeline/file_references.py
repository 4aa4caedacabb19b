import re

_COMPONENT_PATTERN = re.compile(r"\b[A-Z][a-zA-Z]*(?:Component|Page|Hook|Provider)?\b")
_FUNCTION_PATTERN = re.compile(r"\b[a-z][a-zA-Z]*(?:Function|Handler|Util)?\b")
_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")


def camel_to_kebab(name: str) -> str:
    return _CAMEL_BOUNDARY.sub(r"\1-\2", name).lower()


def _is_identifier_like(name: str) -> bool:
    # PascalCase, or camelCase with at least one interior capital
    return name[0].isupper() or any(c.isupper() for c in name[1:])


def extract_file_references(query: str, available_files: list[str]) -> list[str]:
    """Files from ``available_files`` the query refers to, first discovery first.

    A file is referenced when its basename appears in the query, or when a
    PascalCase / camelCase identifier in the query matches its path directly
    or in kebab-case form (``UserProfile`` -> ``user-profile``).
    """
    references: list[str] = []
    lower_query = query.lower()

    for file in available_files:
        file_name = file.rsplit("/", 1)[-1] or file
        if file_name.lower() in lower_query:
            references.append(file)

    names = _COMPONENT_PATTERN.findall(query) + _FUNCTION_PATTERN.findall(query)
    for name in names:
        if not _is_identifier_like(name):
            continue
        lower_name = name.lower()
        kebab = camel_to_kebab(name)
        for file in available_files:
            lower_file = file.lower()
            if lower_name in lower_file or kebab in lower_file:
                references.append(file)

    return list(dict.fromkeys(references))
