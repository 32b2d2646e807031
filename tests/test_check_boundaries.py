from __future__ import annotations

import importlib.util
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]


def _load_checker():
    spec = importlib.util.spec_from_file_location("check_boundaries", REPO_ROOT / "scripts" / "check_boundaries.py")
    module = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = module
    spec.loader.exec_module(module)
    return module


def test_package_respects_layer_boundaries() -> None:
    checker = _load_checker()

    assert checker.collect_violations(REPO_ROOT, "stock_insight") == []


def test_checker_flags_interfaces_and_upward_imports(tmp_path: Path) -> None:
    checker = _load_checker()
    domain = tmp_path / "pkg" / "domain"
    domain.mkdir(parents=True)
    (domain / "bad.py").write_text(
        "from typing import Protocol\n"
        "from pkg.application import service\n"
        "import httpx\n"
        "\n"
        "class Provider(Protocol):\n"
        "    pass\n",
        encoding="utf-8",
    )

    violations = checker.collect_violations(tmp_path, "pkg")

    assert any("forbidden import 'typing.Protocol'" in v for v in violations)
    assert any("must not inherit from 'Protocol'" in v for v in violations)
    assert any("domain must not depend on application" in v for v in violations)
    assert any("banned external module: httpx" in v for v in violations)
