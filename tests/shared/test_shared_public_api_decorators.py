"""Static check that action-layer services instrument their public methods."""

from __future__ import annotations

import ast
from pathlib import Path

_REPO_ROOT = Path(__file__).resolve().parents[2]


def _abstract_methods(path: Path) -> set[str]:
    tree = ast.parse(path.read_text(encoding="utf-8"))
    names: set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.FunctionDef) and any(
            isinstance(item, ast.Name) and item.id == "abstractmethod"
            for item in node.decorator_list
        ):
            names.add(node.name)
    return names


def _decorated_methods(path: Path) -> set[str]:
    tree = ast.parse(path.read_text(encoding="utf-8"))
    names: set[str] = set()
    for node in ast.walk(tree):
        if not isinstance(node, ast.FunctionDef):
            continue
        for item in node.decorator_list:
            target = item.func if isinstance(item, ast.Call) else item
            if isinstance(target, ast.Name) and target.id == "public_api_instrumented":
                names.add(node.name)
    return names


def test_action_services_decorate_every_public_api_method() -> None:
    service_dirs = sorted(
        path.parent for path in (_REPO_ROOT / "services" / "action").glob("*/service.py")
    )
    assert service_dirs

    failures: list[str] = []
    for service_dir in service_dirs:
        missing = _abstract_methods(service_dir / "service.py") - _decorated_methods(
            service_dir / "implementation.py"
        )
        if missing:
            failures.append(f"{service_dir.name}: {sorted(missing)}")

    assert not failures, (
        "Missing @public_api_instrumented on public service methods:\n"
        + "\n".join(failures)
    )
