from __future__ import annotations

from typing import Sequence

from deadshake.frontend.lines import split_lines
from deadshake.frontend.protocols import ProgramSnapshot
from deadshake.model import (
    CheckMode,
    Declaration,
    DeclarationKind,
    SourceTree,
    Symbol,
    TextEdit,
    UnitResult,
    Verdict,
)
from deadshake.retention import DEFAULT_POLICY, RetentionPolicy, evaluate, type_is_container
from deadshake.rewrite.strategies import RewriteStrategy, newline_of

PLACEHOLDER = "pass"


class DeclarationVisitor:
    """Judges and rewrites the declarations of one unit against one snapshot.

    A condemned declaration is rewritten as a whole and its members are not
    visited, except under report-only where nothing is rewritten and members
    are still reported.
    """

    def __init__(
        self,
        snapshot: ProgramSnapshot,
        strategy: RewriteStrategy,
        policy: RetentionPolicy = DEFAULT_POLICY,
        order_imports: bool = False,
    ) -> None:
        self._snapshot = snapshot
        self._strategy = strategy
        self._policy = policy
        self._order_imports = order_imports

    def visit(self, tree: SourceTree) -> UnitResult:
        lines = split_lines(tree.text)
        edits: list[TextEdit] = []
        condemned: list[str] = []
        top_level = self._visit_body(tree, lines, tree.declarations, 0, edits, condemned)
        reordered = False
        if (
            self._order_imports
            and self._strategy.changes_text
            and tree.import_block is not None
        ):
            block = tree.import_block
            edits.append(
                TextEdit(
                    path=str(tree.path),
                    start=block.start,
                    end=block.end,
                    replacement=block.replacement,
                )
            )
            reordered = True
        live = tree.statements - tree.auxiliary
        return UnitResult(
            path=tree.path,
            changed=bool(condemned) and self._strategy.changes_text,
            became_empty=top_level > 0 and top_level == live,
            reordered=reordered,
            edits=tuple(sorted(edits, key=lambda edit: edit.start)),
            condemned=tuple(condemned),
        )

    def _visit_body(
        self,
        tree: SourceTree,
        lines: Sequence[str],
        declarations: Sequence[Declaration],
        statements: int,
        edits: list[TextEdit],
        condemned: list[str],
    ) -> int:
        """Visit sibling declarations and return how many were condemned.

        ``statements`` is the size of the enclosing type body, 0 at module
        level where no placeholder is ever needed.
        """
        count = 0
        last = len(declarations) - 1
        for position, declaration in enumerate(declarations):
            symbol = self._snapshot.resolve(tree, declaration)
            if symbol is None:
                continue
            if self._verdict(declaration, symbol) is not Verdict.REMOVE:
                self._visit_body(
                    tree,
                    lines,
                    declaration.children,
                    declaration.body_statements,
                    edits,
                    condemned,
                )
                continue
            condemned.append(symbol.key)
            placeholder = None
            if (
                position == last
                and count == last
                and len(declarations) == statements
            ):
                newline = newline_of(lines, declaration.start)
                placeholder = f"{declaration.indent}{PLACEHOLDER}{newline}"
            edit = self._strategy.rewrite(
                tree.path, lines, declaration.start, declaration.end, placeholder
            )
            count += 1
            if edit is not None:
                edits.append(edit)
            elif declaration.children:
                self._visit_body(
                    tree,
                    lines,
                    declaration.children,
                    declaration.body_statements,
                    edits,
                    condemned,
                )
        return count

    def _verdict(self, declaration: Declaration, symbol: Symbol) -> Verdict:
        match declaration.kind:
            case (
                DeclarationKind.CLASS
                | DeclarationKind.STRUCT
                | DeclarationKind.INTERFACE
                | DeclarationKind.RECORD
                | DeclarationKind.ENUM
            ):
                if type_is_container(self._snapshot.members(symbol), self._policy):
                    return Verdict.KEEP_EXEMPT
                decision = evaluate(symbol, self._policy)
            case _:
                decision = evaluate(symbol, self._policy)
        if decision.exempt:
            return Verdict.KEEP_EXEMPT
        if decision.mode is CheckMode.CALLED_THROUGH_INTERFACE:
            found = self._snapshot.find_callers(symbol)
        else:
            found = self._snapshot.find_references(symbol)
        return Verdict.KEEP_REFERENCED if found else Verdict.REMOVE
