from __future__ import annotations

from pathlib import Path
import sys
import textwrap


def _load():
    repo_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(repo_root / "src"))
    from deadshake import config

    return config


def _write(tmp_path: Path, rel: str, content: str) -> Path:
    path = tmp_path / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content).lstrip())
    return path


def test_missing_or_invalid_config_is_empty(tmp_path: Path) -> None:
    config = _load()
    assert config.load_config(root=tmp_path) == {}
    broken = _write(tmp_path, "deadshake.toml", "[shake\n")
    assert config.load_config(config_path=broken) == {}


def test_sections_are_read_from_default_name(tmp_path: Path) -> None:
    config = _load()
    _write(
        tmp_path,
        "deadshake.toml",
        """
        [shake]
        action = "remove"
        keep_units = "*_generated.py, version.py"
        projects = ["core*"]

        [retention]
        entry_points = ["serve"]
        """,
    )
    shake = config.shake_defaults(root=tmp_path)
    assert shake["action"] == "remove"
    assert config.keep_unit_patterns(shake) == ["*_generated.py", "version.py"]
    assert config.project_filters(shake) == ["core*"]
    assert config.retention_defaults(root=tmp_path) == {"entry_points": ["serve"]}


def test_non_table_sections_are_ignored(tmp_path: Path) -> None:
    config = _load()
    _write(tmp_path, "deadshake.toml", 'shake = "remove"\n')
    assert config.shake_defaults(root=tmp_path) == {}
    assert config.keep_unit_patterns(None) == []
    assert config.project_filters("nope") == []


def test_merge_payload_skips_unset_values() -> None:
    config = _load()
    merged = config.merge_payload(
        {"projects": None, "order_imports": True},
        {"projects": ["core"], "order_imports": False},
    )
    assert merged == {"projects": ["core"], "order_imports": True}


def test_value_helpers() -> None:
    config = _load()
    assert config.normalize_name_list(["a, b", "c", 3]) == ["a", "b", "c"]
    assert config.normalize_name_list(None) == []
    assert config.as_bool("Yes")
    assert config.as_bool(1)
    assert not config.as_bool("off")
    assert not config.as_bool(None)
