from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from deadshake.config import (
    TomlTable,
    as_bool,
    keep_unit_patterns,
    merge_payload,
    project_filters,
    retention_defaults,
    shake_defaults,
)
from deadshake.engine import Shaker
from deadshake.exceptions import (
    CommitConflictError,
    CompileDiagnosticError,
    DescriptorError,
    MissingDescriptorError,
)
from deadshake.frontend.python_frontend import PythonFrontEnd
from deadshake.model import Action, RunResult
from deadshake.retention import RetentionPolicy
from deadshake.workspace import Workspace, find_descriptor

EXIT_OK = 0
EXIT_DIAGNOSTICS = 1
EXIT_DESCRIPTOR = 2
EXIT_CONFLICT = 3

app = typer.Typer(
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _resolve_action(value: Optional[Action], section: TomlTable) -> Action:
    if value is not None:
        return value
    raw = section.get("action")
    if isinstance(raw, str):
        try:
            return Action(raw.strip().lower())
        except ValueError:
            raise typer.BadParameter(
                f"Unknown action {raw!r} in configuration.", param_hint="--action"
            )
    return Action.ANNOTATE


def _render_summary(result: RunResult) -> str:
    deleted = sum(len(item.deleted) for item in result.passes)
    return (
        f"Converged after {len(result.passes)} pass(es): "
        f"{result.condemned} of {result.initial_declarations} declaration(s) condemned, "
        f"{deleted} unit(s) deleted."
    )


@app.command()
def shake(
    ctx: typer.Context,
    proj: Optional[List[str]] = typer.Option(
        None, "-p", "--proj", help="Glob over project names or paths; repeatable."
    ),
    sln: Optional[Path] = typer.Option(
        None, "-s", "--sln", help="Workspace descriptor (*.workspace.toml)."
    ),
    action: Optional[Action] = typer.Option(
        None, "-a", "--action", case_sensitive=False, help="What to do with unused code."
    ),
    config: Optional[Path] = typer.Option(None, "--config"),
    order_imports: Optional[bool] = typer.Option(
        None, "--order-imports/--no-order-imports"
    ),
) -> None:
    """Remove declarations nothing in the workspace uses."""
    shake_section = merge_payload(
        {"projects": proj or None, "order_imports": order_imports},
        shake_defaults(config_path=config),
    )
    chosen = _resolve_action(action, shake_section)
    try:
        descriptor = sln if sln is not None else find_descriptor()
        workspace = Workspace.load(descriptor)
    except (MissingDescriptorError, DescriptorError) as exc:
        typer.echo(str(exc), err=True)
        typer.echo(ctx.get_help(), err=True)
        raise typer.Exit(code=EXIT_DESCRIPTOR) from exc

    shaker = Shaker(
        workspace,
        PythonFrontEnd(),
        action=chosen,
        policy=RetentionPolicy.from_config(retention_defaults(config_path=config)),
        patterns=project_filters(shake_section),
        keep_units=keep_unit_patterns(shake_section),
        order_imports=as_bool(shake_section.get("order_imports")),
        echo=typer.echo,
        echo_err=lambda message: typer.echo(message, err=True),
    )
    try:
        result = shaker.run()
    except CompileDiagnosticError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=EXIT_DIAGNOSTICS) from exc
    except CommitConflictError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=EXIT_CONFLICT) from exc
    typer.echo(_render_summary(result))
    raise typer.Exit(code=EXIT_OK)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
