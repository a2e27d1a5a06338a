import ast
from pathlib import Path

import pytest

FORBIDDEN_PACKAGES = {"dal"}


def test_model_layer_has_no_dal_imports():
    """Ensure ddl_model/ stays usable without the data access layer."""
    model_src = Path(__file__).resolve().parents[3] / "src" / "ddl_model"

    violations = []

    for py_file in model_src.rglob("*.py"):
        tree = ast.parse(py_file.read_text(encoding="utf-8"), filename=str(py_file))

        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    if alias.name.split(".")[0] in FORBIDDEN_PACKAGES:
                        violations.append(f"{py_file.name}: import {alias.name}")
            elif isinstance(node, ast.ImportFrom) and node.module and node.level == 0:
                if node.module.split(".")[0] in FORBIDDEN_PACKAGES:
                    violations.append(f"{py_file.name}: from {node.module} import ...")

    if violations:
        pytest.fail("Forbidden dal imports found in ddl_model/:\n" + "\n".join(violations))
