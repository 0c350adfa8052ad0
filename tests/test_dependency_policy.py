"""Tests enforcing dependency pinning policy for the distribution."""

from __future__ import annotations

from pathlib import Path

import tomllib

PYPROJECT = Path(__file__).resolve().parents[1] / "pyproject.toml"


def _load() -> dict:
    return tomllib.loads(PYPROJECT.read_text(encoding="utf-8"))["project"]


def test_all_dependencies_are_pinned() -> None:
    """Project dependencies must be pinned to exact versions."""

    project = _load()
    optional = project.get("optional-dependencies", {})

    for requirement in project["dependencies"]:
        assert "==" in requirement, f"Core dependency not pinned: {requirement}"

    for group, requirements in optional.items():
        for requirement in requirements:
            assert "==" in requirement, (
                f"Optional dependency '{group}' not pinned: {requirement}"
            )


def test_runtime_imports_are_declared() -> None:
    """Third-party packages imported by the library must be runtime deps."""

    names = {req.split("==")[0] for req in _load()["dependencies"]}

    assert {"pydantic", "pydantic-settings", "jcs"} <= names
