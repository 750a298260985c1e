"""Ports through which the engine consumes a compiler front end."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Protocol, Sequence

from deadshake.model import Declaration, Diagnostic, Project, Reference, SourceTree, Symbol

if TYPE_CHECKING:
    from deadshake.workspace import Workspace


class CompilerService(Protocol):
    def projects(self) -> Sequence[Project]: ...

    def diagnostics(self) -> Sequence[Diagnostic]: ...

    def tree(self, path: Path) -> SourceTree: ...

    def trees(self) -> Sequence[SourceTree]: ...

    def resolve(self, tree: SourceTree, declaration: Declaration) -> Symbol | None: ...

    def members(self, symbol: Symbol) -> Sequence[Symbol]: ...


class ReferenceResolver(Protocol):
    def find_references(self, symbol: Symbol) -> Sequence[Reference]: ...

    def find_callers(self, symbol: Symbol) -> Sequence[Reference]: ...


class ProgramSnapshot(CompilerService, ReferenceResolver, Protocol):
    """One immutable view of the whole program, valid for a single pass."""


class FrontEnd(Protocol):
    def snapshot(self, workspace: Workspace) -> ProgramSnapshot: ...
