import json

import pytest

from codeassist.services.context_analysis import (
    build_project_structure,
    extract_exports,
    extract_imports,
    infer_architecture_pattern,
    infer_file_type,
    infer_tech_stack,
    source_content,
)
from codeassist.services.context_service import build_project_context


@pytest.mark.parametrize(
    "file_name, expected",
    [
        ("src/components/UserCard.tsx", "component"),
        ("src/hooks/useAuth.ts", "hook"),
        ("src/utils/format.ts", "utility"),
        ("src/services/api.ts", "service"),
        ("src/index.ts", "module"),
    ],
)
def test_infer_file_type(file_name, expected):
    assert infer_file_type(file_name) == expected


def test_exports_and_imports_from_source():
    source = (
        "import React from 'react';\n"
        'import { a } from "./a";\n'
        "export default function UserCard() {}\n"
        "export const size = 1;\n"
        "export async function load() {}\n"
    )

    assert extract_exports(source) == ["UserCard", "size", "load"]
    assert extract_imports(source) == ["react", "./a"]


def test_exports_and_imports_from_indexed_json():
    source = json.dumps({"content": "x", "exports": ["A"], "imports": ["react"]})

    assert extract_exports(source) == ["A"]
    assert extract_imports(source) == ["react"]


def test_source_content():
    assert source_content("const a = 1;") == "const a = 1;"
    assert source_content(json.dumps("hello")) == "hello"
    assert source_content(json.dumps({"content": "x"})) == "x"
    assert source_content(json.dumps({"other": 1})) == ""


def test_tech_stack_in_discovery_order():
    files = [
        ("next.config.js", "module.exports = {}"),
        ("src/App.tsx", "import React from 'react';\nimport 'tailwindcss';"),
    ]

    assert infer_tech_stack(files) == ["Next.js", "JavaScript", "React", "TypeScript", "Tailwind CSS"]


def test_architecture_pattern():
    assert infer_architecture_pattern(
        ["src/components/Button.tsx", "src/hooks/useAuth.ts", "src/services/user.ts"]
    ) == "component"
    # ties go to the later pattern
    assert infer_architecture_pattern(["app/controllers/users.py", "app/services/user.py"]) == "layered"
    assert infer_architecture_pattern(["pages/api/users/route.ts"]) == "microservices"
    assert infer_architecture_pattern([]) == ""


def test_project_structure():
    assert build_project_structure(["src/a.ts", "src/lib/b.ts", "README.md"]) == (
        "src/\n  a.ts\n  lib/\n    b.ts\nREADME.md\n"
    )


def test_build_project_context():
    source = json.dumps({"content": "import React from 'react';", "exports": ["UserCard"]})

    context = build_project_context([("src/components/UserCard.tsx", source, "Card")])

    relevant = context.relevant_files[0]
    assert relevant.source_code == "import React from 'react';"
    assert relevant.exports == ["UserCard"]
    assert relevant.imports == []
    assert relevant.type == "component"
    assert relevant.summary == "Card"
    assert context.tech_stack == ["React", "TypeScript"]
    assert context.architecture_pattern == "component"
    assert context.project_structure == "src/\n  components/\n    UserCard.tsx\n"
