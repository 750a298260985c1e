from __future__ import annotations

import sys
import textwrap
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))


import pytest

from deadshake.engine import Shaker
from deadshake.frontend.python_frontend import PythonFrontEnd
from deadshake.workspace import Workspace

SINGLE_PROJECT = """
[workspace]
name = "demo"

[[project]]
name = "app"
path = "app"
"""


@pytest.fixture
def write_workspace(tmp_path: Path):
    def _write(files: dict[str, str], *, descriptor: str = SINGLE_PROJECT) -> Path:
        for rel, content in files.items():
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(content).lstrip(), encoding="utf-8")
        target = tmp_path / "demo.workspace.toml"
        target.write_text(textwrap.dedent(descriptor).lstrip(), encoding="utf-8")
        return target

    return _write


@pytest.fixture
def run_shaker():
    def _run(descriptor: Path, **options):
        report: list[str] = []
        errors: list[str] = []
        shaker = Shaker(
            Workspace.load(descriptor),
            PythonFrontEnd(),
            echo=report.append,
            echo_err=errors.append,
            **options,
        )
        return shaker.run(), report, errors

    return _run
