"""Tests for example scripts.

Verifies that the scripts in the examples/ directory have valid syntax,
follow the common layout and run to completion.
"""

import ast
import importlib.util
import sys
from pathlib import Path

import pytest

EXAMPLES_DIR = Path(__file__).resolve().parent.parent / "examples"

ALL_EXAMPLES = sorted(p.stem for p in EXAMPLES_DIR.glob("*.py"))


def _load(name: str):
    spec = importlib.util.spec_from_file_location(f"example_{name}", EXAMPLES_DIR / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = module
    spec.loader.exec_module(module)
    return module


class TestExampleSyntax:
    """Verify every example script has valid Python syntax."""

    @pytest.mark.parametrize("name", ALL_EXAMPLES)
    def test_syntax(self, name: str) -> None:
        source = (EXAMPLES_DIR / f"{name}.py").read_text()
        ast.parse(source, filename=f"{name}.py")

    @pytest.mark.parametrize("name", ALL_EXAMPLES)
    def test_has_module_docstring(self, name: str) -> None:
        tree = ast.parse((EXAMPLES_DIR / f"{name}.py").read_text())
        assert ast.get_docstring(tree), f"{name}.py is missing a module docstring"

    @pytest.mark.parametrize("name", ALL_EXAMPLES)
    def test_has_main_guard(self, name: str) -> None:
        source = (EXAMPLES_DIR / f"{name}.py").read_text()
        assert 'if __name__ == "__main__"' in source


class TestMapOrder:
    def test_runs(self, capsys) -> None:
        pytest.importorskip("orjson")
        _load("map_order").main()
        out = capsys.readouterr().out
        assert "Order SO-1001 placed 01 Mar 2024" in out
        assert "A-1 x2" in out
        assert "'placedOn': '2024-03-01'" in out
        assert "internal_note" not in out
