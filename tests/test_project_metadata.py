"""Vérifications du packaging (pyproject.toml).

- la description longue pointe vers le README du projet
- chaque bibliothèque tierce importée par le paquet est déclarée
"""

from __future__ import annotations

import re
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
PYPROJECT = ROOT / "pyproject.toml"


def _pyproject_text() -> str:
    return PYPROJECT.read_text(encoding="utf-8")


def _grep_imports(module: str) -> list[Path]:
    """Fichiers du paquet qui importent `module`."""
    pattern = re.compile(rf"^\s*(import|from) {module}\b", re.MULTILINE)
    return [path for path in (ROOT / "playertracker").rglob("*.py") if pattern.search(path.read_text(encoding="utf-8"))]


class TestPyproject:
    def test_readme_is_project_readme(self):
        match = re.search(r'^readme\s*=\s*"([^"]+)"', _pyproject_text(), re.MULTILINE)
        assert match is not None
        assert match.group(1) == "README.md"
        assert (ROOT / match.group(1)).is_file()

    @pytest.mark.parametrize("module, distribution", [("duckdb", "duckdb"), ("polars", "polars"), ("pydantic", "pydantic")])
    def test_imported_libraries_are_declared(self, module, distribution):
        assert _grep_imports(module), f"{module} n'est plus importé par playertracker"
        assert re.search(rf'^\s*"{distribution}[><=~!]', _pyproject_text(), re.MULTILINE)
