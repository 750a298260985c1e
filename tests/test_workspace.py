from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from deadshake.exceptions import DescriptorError, MissingDescriptorError
from deadshake.workspace import Workspace, find_descriptor, matches_filter


def _write(tmp_path: Path, rel: str, content: str) -> Path:
    path = tmp_path / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content).lstrip(), encoding="utf-8")
    return path


def test_find_descriptor_requires_exactly_one(tmp_path: Path) -> None:
    with pytest.raises(MissingDescriptorError):
        find_descriptor(tmp_path)
    only = _write(tmp_path, "one.workspace.toml", "")
    assert find_descriptor(tmp_path) == only
    _write(tmp_path, "two.workspace.toml", "")
    with pytest.raises(MissingDescriptorError, match="Several"):
        find_descriptor(tmp_path)


def test_projects_follow_dependency_order(tmp_path: Path) -> None:
    descriptor = _write(
        tmp_path,
        "demo.workspace.toml",
        """
        [[project]]
        name = "web"
        path = "web"
        dependencies = ["core", "util"]

        [[project]]
        name = "core"
        path = "core"
        dependencies = ["util"]

        [[project]]
        name = "util"
        path = "util"
        """,
    )
    workspace = Workspace.load(descriptor)
    assert workspace.order == ("util", "core", "web")
    assert workspace.name == "demo"


def test_unknown_dependency_is_rejected(tmp_path: Path) -> None:
    descriptor = _write(
        tmp_path,
        "demo.workspace.toml",
        """
        [[project]]
        name = "web"
        dependencies = ["missing"]
        """,
    )
    with pytest.raises(DescriptorError, match="missing"):
        Workspace.load(descriptor)


def test_dependency_cycle_is_rejected(tmp_path: Path) -> None:
    descriptor = _write(
        tmp_path,
        "demo.workspace.toml",
        """
        [[project]]
        name = "a"
        dependencies = ["b"]

        [[project]]
        name = "b"
        dependencies = ["a"]
        """,
    )
    with pytest.raises(DescriptorError, match="cycle"):
        Workspace.load(descriptor)


def test_invalid_descriptor_payload_is_rejected(tmp_path: Path) -> None:
    descriptor = _write(tmp_path, "demo.workspace.toml", "[[project]]\npath = 'x'\n")
    with pytest.raises(DescriptorError):
        Workspace.load(descriptor)
    broken = _write(tmp_path, "broken.workspace.toml", "[[project]\n")
    with pytest.raises(DescriptorError):
        Workspace.load(broken)


def test_units_respect_include_and_exclude(tmp_path: Path) -> None:
    _write(tmp_path, "app/pkg/mod.py", "x = 1\n")
    _write(tmp_path, "app/build/gen.py", "y = 2\n")
    _write(tmp_path, "app/notes.txt", "skip\n")
    descriptor = _write(
        tmp_path,
        "demo.workspace.toml",
        """
        [workspace]
        name = "named"

        [[project]]
        name = "app"
        path = "app"
        exclude = ["build/*"]
        """,
    )
    workspace = Workspace.load(descriptor)
    (project,) = workspace.projects()
    assert [unit.path.name for unit in project.units] == ["mod.py"]
    assert project.units[0].project == "app"
    assert workspace.name == "named"


def test_filter_matches_name_or_root_case_insensitively(tmp_path: Path) -> None:
    _write(tmp_path, "Services/Api/handler.py", "x = 1\n")
    descriptor = _write(
        tmp_path,
        "demo.workspace.toml",
        """
        [[project]]
        name = "Api"
        path = "Services/Api"
        """,
    )
    (project,) = Workspace.load(descriptor).projects()
    assert matches_filter(project, ["api"])
    assert matches_filter(project, ["*/services/*"])
    assert not matches_filter(project, ["web*"])
    assert matches_filter(project, [])
