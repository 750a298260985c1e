from __future__ import annotations

import sys
from fnmatch import fnmatch
from pathlib import Path
from typing import Iterable, Sequence

from deadshake.engine.visitor import DeclarationVisitor
from deadshake.exceptions import CompileDiagnosticError
from deadshake.frontend.protocols import FrontEnd, ProgramSnapshot
from deadshake.model import Action, Declaration, PassResult, RunResult, UnitResult
from deadshake.retention import DEFAULT_POLICY, RetentionPolicy
from deadshake.rewrite.strategies import Echo, strategy_for
from deadshake.storage import commit, group_edits
from deadshake.workspace import Workspace, matches_filter

DEFAULT_KEEP_UNITS: tuple[str, ...] = (
    "__init__.py",
    "__main__.py",
    "conftest.py",
    "setup.py",
    "*_pb2.py",
)


def _stderr(message: str) -> None:
    print(message, file=sys.stderr)


def count_declarations(declarations: Iterable[Declaration]) -> int:
    return sum(1 + count_declarations(item.children) for item in declarations)


def is_kept_unit(path: Path, patterns: Sequence[str]) -> bool:
    return any(fnmatch(path.name, pattern) for pattern in patterns)


class Shaker:
    """Runs passes until a pass rewrites nothing.

    Every pass judges the program as it was committed by the previous pass,
    so a declaration whose last user was removed goes in the next pass.
    """

    def __init__(
        self,
        workspace: Workspace,
        front_end: FrontEnd,
        *,
        action: Action = Action.ANNOTATE,
        policy: RetentionPolicy = DEFAULT_POLICY,
        patterns: Sequence[str] = (),
        keep_units: Sequence[str] = (),
        order_imports: bool = False,
        echo: Echo = print,
        echo_err: Echo = _stderr,
    ) -> None:
        self.workspace = workspace
        self.front_end = front_end
        self.action = action
        self.policy = policy
        self.patterns = tuple(patterns)
        self.keep_units = DEFAULT_KEEP_UNITS + tuple(keep_units)
        self.order_imports = order_imports and action is not Action.REPORT
        self.echo = echo
        self.echo_err = echo_err
        self.strategy = strategy_for(action, echo)

    def run(self) -> RunResult:
        passes: list[PassResult] = []
        initial = 0
        while True:
            snapshot = self._snapshot()
            if not passes:
                initial = sum(
                    count_declarations(tree.declarations) for tree in snapshot.trees()
                )
            result = self._pass(len(passes) + 1, snapshot)
            passes.append(result)
            if not result.changed:
                break
        return RunResult(passes=tuple(passes), initial_declarations=initial)

    def _snapshot(self) -> ProgramSnapshot:
        snapshot = self.front_end.snapshot(self.workspace)
        diagnostics = snapshot.diagnostics()
        if diagnostics:
            for diagnostic in diagnostics:
                self.echo_err(diagnostic.render())
            raise CompileDiagnosticError(diagnostics)
        return snapshot

    def _pass(self, number: int, snapshot: ProgramSnapshot) -> PassResult:
        visitor = DeclarationVisitor(
            snapshot,
            self.strategy,
            policy=self.policy,
            order_imports=self.order_imports,
        )
        units: list[UnitResult] = []
        for project in snapshot.projects():
            if not matches_filter(project, self.patterns):
                continue
            for unit in project.units:
                units.append(visitor.visit(snapshot.tree(unit.path)))

        written: tuple[Path, ...] = ()
        deleted: tuple[Path, ...] = ()
        if self.strategy.changes_text:
            deletions: list[Path] = []
            if self.action is Action.REMOVE:
                for unit in units:
                    if unit.became_empty and not is_kept_unit(unit.path, self.keep_units):
                        self.echo(f"Removing unused file: {unit.path}")
                        deletions.append(unit.path)
            edits = group_edits(edit for unit in units for edit in unit.edits)
            if edits or deletions:
                originals = {tree.path: tree.text for tree in snapshot.trees()}
                committed = commit(originals, edits, deletions)
                written = committed.written
                deleted = committed.deleted

        result = PassResult(
            number=number,
            units=tuple(units),
            written=written,
            deleted=deleted,
        )
        self.echo(
            f"Pass {number}: {result.condemned} declaration(s) condemned, "
            f"{len(written)} unit(s) rewritten, {len(deleted)} unit(s) deleted."
        )
        return result
