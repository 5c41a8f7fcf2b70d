"""
test_alembic.py — Verify Alembic migration setup and structure.

Reads migration sources as text/AST and compares them with the model
metadata, so no database or Alembic runtime is needed.

Called by: pytest
Depends on: alembic/, app.models
"""

import ast
from pathlib import Path

from app.models import Base

ROOT = Path(__file__).parent.parent
MIGRATION_DIR = ROOT / "alembic" / "versions"


def _migrations() -> list[Path]:
    files = sorted(MIGRATION_DIR.glob("*.py"))
    assert files, "No migration files found"
    return files


def _module_assignments(path: Path) -> dict:
    tree = ast.parse(path.read_text())
    values = {}
    for node in tree.body:
        target = None
        if isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
            target, value = node.target.id, node.value
        elif isinstance(node, ast.Assign) and isinstance(node.targets[0], ast.Name):
            target, value = node.targets[0].id, node.value
        if target and isinstance(value, ast.Constant):
            values[target] = value.value
    return values


def _created_tables(path: Path) -> set[str]:
    tree = ast.parse(path.read_text())
    tables = set()
    for node in ast.walk(tree):
        if (
            isinstance(node, ast.Call)
            and isinstance(node.func, ast.Attribute)
            and node.func.attr == "create_table"
            and node.args
            and isinstance(node.args[0], ast.Constant)
        ):
            tables.add(node.args[0].value)
    return tables


def test_initial_migration_is_root():
    values = _module_assignments(_migrations()[0])
    assert values["revision"] == "001_initial"
    assert values["down_revision"] is None


def test_initial_migration_defines_upgrade_and_downgrade():
    tree = ast.parse(_migrations()[0].read_text())
    funcs = {n.name for n in tree.body if isinstance(n, ast.FunctionDef)}
    assert {"upgrade", "downgrade"} <= funcs


def test_migrations_cover_every_model_table():
    created = set()
    for path in _migrations():
        created |= _created_tables(path)
    assert created == set(Base.metadata.tables)


def test_env_py_imports_all_models():
    content = (ROOT / "alembic" / "env.py").read_text()
    assert "from app.models import Base" in content


def test_no_create_all_in_main():
    """Schema is owned by Alembic, not app startup."""
    content = (ROOT / "app" / "main.py").read_text()
    assert "create_all" not in content
