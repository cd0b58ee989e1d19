import ast
import pathlib

SRC = pathlib.Path(__file__).resolve().parents[2] / "src"


def test_no_infrastructure_imports_in_api():
    for api_py in (SRC / "tenancy" / "api").glob("**/*.py"):
        tree = ast.parse(api_py.read_text(encoding="utf-8"))
        for node in ast.walk(tree):
            if isinstance(node, ast.ImportFrom):
                if node.module and ".infrastructure" in node.module:
                    raise AssertionError(f"Infrastructure import in API file: {api_py} -> from {node.module} import ...")
            if isinstance(node, ast.Import):
                for n in node.names:
                    if "infrastructure" in n.name:
                        raise AssertionError(f"Infrastructure import in API file: {api_py} -> import {n.name}")


def test_domain_does_not_import_sqlalchemy():
    for domain_py in (SRC / "tenancy" / "domain").glob("**/*.py"):
        tree = ast.parse(domain_py.read_text(encoding="utf-8"))
        for node in ast.walk(tree):
            if isinstance(node, ast.ImportFrom) and node.module:
                assert not node.module.startswith("sqlalchemy"), f"{domain_py} imports {node.module}"
            if isinstance(node, ast.Import):
                assert not any(n.name.startswith("sqlalchemy") for n in node.names), domain_py
