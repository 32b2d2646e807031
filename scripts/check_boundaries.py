#!/usr/bin/env python3
from __future__ import annotations

import argparse
import ast
from dataclasses import dataclass
from pathlib import Path

DEFAULT_PACKAGE = "stock_insight"

DOMAIN_BANNED_EXTERNAL = {
    "fastapi",
    "httpx",
    "pydantic",
    "pydantic_settings",
    "uvicorn",
}

APP_BANNED_EXTERNAL = {
    "fastapi",
    "httpx",
    "pydantic",
    "pydantic_settings",
    "uvicorn",
}

API_BANNED_EXTERNAL = {
    "httpx",
}

INFRA_BANNED_EXTERNAL = {
    "fastapi",
    "pydantic",
    "uvicorn",
}

LAYER_NAMES = ("api", "application", "domain", "infrastructure")

NO_INTERFACE_IMPORT_RULES = {
    ("typing", "Protocol"),
    ("typing_extensions", "Protocol"),
    ("abc", "ABC"),
    ("abc", "ABCMeta"),
    ("abc", "abstractmethod"),
}
NO_INTERFACE_BASES = {"Protocol", "ABC", "ABCMeta"}


@dataclass(frozen=True)
class ImportRef:
    module: str
    lineno: int


def _classify_layer(py_file: Path, *, pkg_root: Path) -> str | None:
    rel = py_file.relative_to(pkg_root)
    if not rel.parts:
        return None
    top = rel.parts[0]
    return top if top in LAYER_NAMES else None


def _normalize_module(module: str, package: str) -> str:
    if module.startswith(package + "."):
        return module[len(package) + 1 :]
    return module


def _extract_imports(tree: ast.AST) -> list[ImportRef]:
    found: list[ImportRef] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                found.append(ImportRef(module=alias.name, lineno=node.lineno))
        elif isinstance(node, ast.ImportFrom):
            if node.module:
                found.append(ImportRef(module=node.module, lineno=node.lineno))
    return found


def _extract_no_interface_violations(tree: ast.AST, *, py_path: Path) -> list[str]:
    violations: list[str] = []
    banned_base_aliases = set(NO_INTERFACE_BASES)

    for node in ast.walk(tree):
        if isinstance(node, ast.ImportFrom) and node.module:
            for alias in node.names:
                if (node.module, alias.name) in NO_INTERFACE_IMPORT_RULES:
                    violations.append(
                        f"{py_path}:{node.lineno} no-interfaces rule: forbidden import "
                        f"'{node.module}.{alias.name}'"
                    )
                    if alias.name in NO_INTERFACE_BASES:
                        banned_base_aliases.add(alias.asname or alias.name)

    for node in ast.walk(tree):
        if not isinstance(node, ast.ClassDef):
            continue
        for base in node.bases:
            symbol = _base_symbol(base)
            if symbol is not None and symbol in banned_base_aliases:
                violations.append(
                    f"{py_path}:{node.lineno} no-interfaces rule: class '{node.name}' "
                    f"must not inherit from '{symbol}'"
                )

    return violations


def _base_symbol(node: ast.AST) -> str | None:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    if isinstance(node, ast.Subscript):
        return _base_symbol(node.value)
    return None


def _layer_violations(py_file: Path, *, layer: str, imp: ImportRef, package: str) -> list[str]:
    top = _normalize_module(imp.module, package).split(".", 1)[0]
    where = f"{py_file}:{imp.lineno}"
    violations: list[str] = []

    banned_by_layer = {
        "domain": DOMAIN_BANNED_EXTERNAL,
        "application": APP_BANNED_EXTERNAL,
        "api": API_BANNED_EXTERNAL,
        "infrastructure": INFRA_BANNED_EXTERNAL,
    }
    if top in banned_by_layer[layer]:
        violations.append(f"{where} {layer} imports banned external module: {imp.module}")

    if top not in LAYER_NAMES:
        return violations
    if layer == "domain" and top != "domain":
        violations.append(f"{where} domain must not depend on {top}: {imp.module}")
    if layer == "infrastructure" and top in {"api", "application"}:
        violations.append(f"{where} infrastructure must not depend on {top}: {imp.module}")
    if layer == "application" and top == "api":
        violations.append(f"{where} application must not depend on api: {imp.module}")
    if layer == "api" and top == "infrastructure":
        violations.append(f"{where} api must not depend on infrastructure: {imp.module}")
    return violations


def collect_violations(repo_root: Path, package: str = DEFAULT_PACKAGE) -> list[str]:
    pkg_root = repo_root / package
    if not pkg_root.is_dir():
        raise SystemExit(f"Package root not found: {pkg_root}")

    violations: list[str] = []
    for py_file in sorted(p for p in pkg_root.rglob("*.py") if p.is_file()):
        tree = ast.parse(py_file.read_text(encoding="utf-8"), filename=str(py_file))
        violations.extend(_extract_no_interface_violations(tree, py_path=py_file))

        layer = _classify_layer(py_file, pkg_root=pkg_root)
        if layer is None:
            continue
        for imp in _extract_imports(tree):
            violations.extend(_layer_violations(py_file, layer=layer, imp=imp, package=package))
    return violations


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Check layering/import boundaries for API→Application→Infrastructure→Domain."
    )
    parser.add_argument("--root", default=".", help="Repository root (default: current directory).")
    parser.add_argument("--package", default=DEFAULT_PACKAGE, help="Python package name.")
    args = parser.parse_args()

    repo_root = Path(args.root).resolve()
    violations = collect_violations(repo_root, args.package)
    if violations:
        print("Boundary violations found:\n")
        for v in violations:
            print("-", v)
        return 1

    print(f"No boundary violations under {repo_root / args.package} (package={args.package})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
