from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from deadshake import cli

SOURCE = "def main():\n    return 0\n\n\ndef unused():\n    return 1\n"


def _invoke(args: list[str]):
    return CliRunner().invoke(cli.app, args)


def test_help_lists_options() -> None:
    result = _invoke(["-h"])
    assert result.exit_code == 0
    for option in ("--proj", "--sln", "--action", "--order-imports"):
        assert option in result.output


def test_missing_descriptor_exits_with_usage(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    result = _invoke([])
    assert result.exit_code == cli.EXIT_DESCRIPTOR
    assert "workspace.toml" in result.output
    assert "Usage" in result.output


def test_report_action_leaves_sources_alone(
    write_workspace, tmp_path: Path, monkeypatch
) -> None:
    write_workspace({"app/main.py": SOURCE})
    monkeypatch.chdir(tmp_path)
    result = _invoke(["-a", "report"])
    assert result.exit_code == cli.EXIT_OK
    assert "def unused():\n    return 1" in result.output
    assert "Converged after 1 pass(es)" in result.output
    assert (tmp_path / "app" / "main.py").read_text() == SOURCE


def test_default_action_annotates(write_workspace, tmp_path: Path) -> None:
    descriptor = write_workspace({"app/main.py": SOURCE})
    result = _invoke(["--sln", str(descriptor)])
    assert result.exit_code == cli.EXIT_OK
    assert "#if ZOMBIE\n#def unused():" in (tmp_path / "app" / "main.py").read_text()


def test_action_from_config(write_workspace, tmp_path: Path) -> None:
    descriptor = write_workspace(
        {"app/main.py": SOURCE, "deadshake.toml": '[shake]\naction = "remove"\n'}
    )
    result = _invoke(["-s", str(descriptor), "--config", str(tmp_path / "deadshake.toml")])
    assert result.exit_code == cli.EXIT_OK
    assert "unused" not in (tmp_path / "app" / "main.py").read_text()


def test_compile_diagnostics_exit_code(write_workspace, tmp_path: Path) -> None:
    descriptor = write_workspace({"app/main.py": SOURCE, "app/broken.py": "def broken(:\n"})
    result = _invoke(["-s", str(descriptor), "-a", "remove"])
    assert result.exit_code == cli.EXIT_DIAGNOSTICS
    assert "broken.py" in result.output
    assert (tmp_path / "app" / "main.py").read_text() == SOURCE


def test_invalid_descriptor_exit_code(tmp_path: Path) -> None:
    descriptor = tmp_path / "bad.workspace.toml"
    descriptor.write_text('[[project]]\nname = "a"\ndependencies = ["a"]\n')
    result = _invoke(["-s", str(descriptor)])
    assert result.exit_code == cli.EXIT_DESCRIPTOR


def test_project_filter_option(write_workspace, tmp_path: Path) -> None:
    descriptor = write_workspace(
        {"core/lib.py": "def lone():\n    return 1\n", "web/app.py": SOURCE},
        descriptor="""
        [[project]]
        name = "core"
        path = "core"

        [[project]]
        name = "web"
        path = "web"
        """,
    )
    result = _invoke(["-s", str(descriptor), "-p", "web", "-a", "remove"])
    assert result.exit_code == cli.EXIT_OK
    assert "def lone" in (tmp_path / "core" / "lib.py").read_text()
    assert "unused" not in (tmp_path / "web" / "app.py").read_text()
