"""Whole-program use-site index for Python sources.

Matching is by simple name, which over-approximates reachability: any use of
``name`` anywhere keeps every declaration called ``name`` alive. Uses located
inside a declaration do not count as references to that same declaration.
"""

from __future__ import annotations

import re
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping

import libcst as cst
from libcst.metadata import MetadataWrapper, PositionProvider

from deadshake.model import Reference

_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*")


@dataclass(frozen=True)
class UseSite:
    name: str
    path: Path
    line: int
    is_call: bool
    owners: frozenset[str]

    def as_reference(self) -> Reference:
        return Reference(path=self.path, line=self.line, name=self.name, is_call=self.is_call)


class _UseCollector(cst.CSTVisitor):
    METADATA_DEPENDENCIES = (PositionProvider,)

    def __init__(self, path: Path, owners: Mapping[int, str]) -> None:
        super().__init__()
        self.path = path
        self.owners = owners
        self.uses: list[UseSite] = []
        self._stack: list[str] = []
        self._skip: set[int] = set()

    def on_visit(self, node: cst.CSTNode) -> bool:
        key = self.owners.get(id(node))
        if key is not None:
            self._stack.append(key)
        return super().on_visit(node)

    def on_leave(self, original_node: cst.CSTNode) -> None:
        super().on_leave(original_node)
        if id(original_node) in self.owners:
            self._stack.pop()

    def _record(self, node: cst.CSTNode, name: str, *, is_call: bool = False) -> None:
        position = self.get_metadata(PositionProvider, node, None)
        line = position.start.line if position is not None else 0
        self.uses.append(
            UseSite(
                name=name,
                path=self.path,
                line=line,
                is_call=is_call,
                owners=frozenset(self._stack),
            )
        )

    def visit_ClassDef(self, node: cst.ClassDef) -> None:
        self._skip.add(id(node.name))

    def visit_FunctionDef(self, node: cst.FunctionDef) -> None:
        self._skip.add(id(node.name))

    def visit_Param(self, node: cst.Param) -> None:
        self._skip.add(id(node.name))

    def visit_AssignTarget(self, node: cst.AssignTarget) -> None:
        if isinstance(node.target, cst.Name):
            self._skip.add(id(node.target))

    def visit_AnnAssign(self, node: cst.AnnAssign) -> None:
        if isinstance(node.target, cst.Name):
            self._skip.add(id(node.target))

    def visit_TypeAlias(self, node: cst.TypeAlias) -> None:
        self._skip.add(id(node.name))

    def visit_Name(self, node: cst.Name) -> None:
        if id(node) in self._skip:
            return
        self._record(node, node.value)

    def visit_Attribute(self, node: cst.Attribute) -> None:
        self._skip.add(id(node.attr))
        self._record(node.attr, node.attr.value)

    def visit_Call(self, node: cst.Call) -> None:
        func = node.func
        if isinstance(func, cst.Name):
            self._record(func, func.value, is_call=True)
        elif isinstance(func, cst.Attribute):
            self._record(func.attr, func.attr.value, is_call=True)

    def visit_SimpleString(self, node: cst.SimpleString) -> None:
        try:
            value = node.evaluated_value
        except (SyntaxError, ValueError):
            return
        if not isinstance(value, str) or not _IDENTIFIER_RE.fullmatch(value):
            return
        for part in value.split("."):
            self._record(node, part)


def collect_uses(
    path: Path, module: cst.Module, owners: Mapping[int, str]
) -> list[UseSite]:
    collector = _UseCollector(path, owners)
    MetadataWrapper(module, unsafe_skip_copy=True).visit(collector)
    return collector.uses


class ReferenceIndex:
    def __init__(self) -> None:
        self._by_name: dict[str, list[UseSite]] = defaultdict(list)

    def add(self, uses: Iterable[UseSite]) -> None:
        for use in uses:
            self._by_name[use.name].append(use)

    def references(self, name: str, key: str) -> tuple[Reference, ...]:
        return tuple(
            use.as_reference() for use in self._by_name.get(name, ()) if key not in use.owners
        )

    def callers(self, name: str, group: frozenset[str]) -> tuple[Reference, ...]:
        # Attribute reads and bound-method references count as well as calls.
        return tuple(
            use.as_reference()
            for use in self._by_name.get(name, ())
            if not (use.owners & group)
        )
