"""LibCST-backed compiler service and reference resolver for Python programs."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Sequence

import libcst as cst

from deadshake.frontend.index import ReferenceIndex, collect_uses
from deadshake.frontend.lines import (
    StatementSpan,
    class_body_spans,
    indentation,
    module_spans,
    split_lines,
)
from deadshake.model import (
    Declaration,
    DeclarationKind,
    Diagnostic,
    Project,
    Reference,
    SourceTree,
    Symbol,
)
from deadshake.rewrite.imports import is_docstring, is_import, module_expr_to_str, plan_import_order
from deadshake.storage import read_unit

if TYPE_CHECKING:
    from deadshake.workspace import Workspace

_MODIFIER_DECORATORS = frozenset(
    {
        "staticmethod",
        "classmethod",
        "property",
        "cached_property",
        "abstractmethod",
        "abstractproperty",
        "override",
        "final",
        "setter",
        "getter",
        "deleter",
    }
)
_PROPERTY_DECORATORS = frozenset(
    {"property", "cached_property", "abstractproperty", "setter", "getter", "deleter"}
)
_STATIC_DECORATORS = frozenset({"staticmethod", "classmethod"})
_INTERFACE_BASES = frozenset({"Protocol", "ABC"})
_INTERFACE_METACLASSES = frozenset({"ABCMeta"})
_RECORD_BASES = frozenset({"NamedTuple", "TypedDict"})
_ENUM_BASES = frozenset({"Enum", "IntEnum", "StrEnum", "Flag", "IntFlag", "ReprEnum"})
_TRANSPARENT_BASES = (
    frozenset({"object", "Generic"}) | _INTERFACE_BASES | _RECORD_BASES | _ENUM_BASES
)
_STRUCTURAL_KINDS = frozenset({DeclarationKind.ENUM, DeclarationKind.RECORD})


def _last(name: str) -> str:
    return name.rsplit(".", 1)[-1]


def _is_dunder(name: str) -> bool:
    return len(name) > 4 and name.startswith("__") and name.endswith("__")


def _qualify(prefix: str, name: str) -> str:
    if prefix.endswith(":"):
        return prefix + name
    return f"{prefix}.{name}"


def module_name(path: Path, project_root: Path | None) -> str:
    rel = path.with_suffix("")
    if project_root is not None:
        try:
            rel = rel.relative_to(project_root)
        except ValueError:
            pass
    parts = list(rel.parts)
    if parts and parts[0] == "src":
        parts = parts[1:]
    if parts and parts[-1] == "__init__":
        parts = parts[:-1]
    return ".".join(parts)


def _expr_name(module: cst.Module, expr: cst.BaseExpression) -> str:
    if isinstance(expr, cst.Call):
        expr = expr.func
    if isinstance(expr, cst.Subscript):
        expr = expr.value
    name = module_expr_to_str(expr)
    if name is not None:
        return name
    return module.code_for_node(expr).strip()


def _is_auxiliary(stmt: cst.BaseStatement) -> bool:
    if is_import(stmt) or is_docstring(stmt):
        return True
    if isinstance(stmt, cst.SimpleStatementLine):
        return all(_is_auxiliary_small(item) for item in stmt.body)
    if isinstance(stmt, cst.If):
        return _last(module_expr_to_str(stmt.test) or "") == "TYPE_CHECKING"
    return False


def _is_auxiliary_small(item: cst.BaseSmallStatement) -> bool:
    if isinstance(item, cst.Pass):
        return True
    if isinstance(item, cst.Assign):
        return all(
            isinstance(target.target, cst.Name) and _is_dunder(target.target.value)
            for target in item.targets
        )
    if isinstance(item, cst.AnnAssign):
        return isinstance(item.target, cst.Name) and _is_dunder(item.target.value)
    return False


@dataclass(frozen=True)
class _RawDeclaration:
    key: str
    name: str
    module: str
    category: str
    owner: str | None
    decorators: tuple[str, ...] = ()
    bases: tuple[str, ...] = ()
    metaclass: str = ""
    first_param: str = ""
    resolvable: bool = True


@dataclass
class _RawNode:
    raw: _RawDeclaration
    span: StatementSpan
    indent: str
    children: list[_RawNode] = field(default_factory=list)
    body_statements: int = 0


@dataclass
class _UnitModel:
    path: Path
    text: str
    module_name: str
    package: str
    module: cst.Module
    spans: list[StatementSpan]
    nodes: list[_RawNode]
    owners: dict[int, str]


class _UnitReader:
    """Turns one parsed module into raw declarations with line spans."""

    def __init__(
        self, path: Path, text: str, module: cst.Module, name: str, project: str
    ) -> None:
        self.path = path
        self.module = module
        self.name = name
        self.scope = f"{project}:{name}"
        self.lines = split_lines(text)
        self.owners: dict[int, str] = {}
        self.raws: list[_RawDeclaration] = []

    def read(self, spans: Sequence[StatementSpan]) -> list[_RawNode]:
        return self._body(spans, owner=None)

    def _prefix(self, owner: _RawDeclaration | None) -> str:
        if owner is not None:
            return owner.key
        return self.scope

    def _body(
        self, spans: Sequence[StatementSpan], owner: _RawDeclaration | None
    ) -> list[_RawNode]:
        nodes: list[_RawNode] = []
        for span in spans:
            raw = self._declaration(span, owner)
            if raw is None:
                continue
            self.raws.append(raw)
            self.owners[id(span.node)] = raw.key
            node = _RawNode(
                raw=raw,
                span=span,
                indent=indentation(self.lines, span.first_code_line),
            )
            if isinstance(span.node, cst.ClassDef):
                inner = class_body_spans(self.module, span.node, span)
                node.children = self._body(inner, owner=raw)
                node.body_statements = len(inner)
            nodes.append(node)
        return nodes

    def _declaration(
        self, span: StatementSpan, owner: _RawDeclaration | None
    ) -> _RawDeclaration | None:
        stmt = span.node
        prefix = self._prefix(owner)
        if isinstance(stmt, cst.ClassDef):
            name = stmt.name.value
            if _is_dunder(name):
                return None
            bases = tuple(_expr_name(self.module, arg.value) for arg in stmt.bases)
            metaclass = ""
            for arg in stmt.keywords:
                if arg.keyword is not None and arg.keyword.value == "metaclass":
                    metaclass = _expr_name(self.module, arg.value)
            return _RawDeclaration(
                key=_qualify(prefix, name),
                name=name,
                module=self.name,
                category="class",
                owner=owner.key if owner else None,
                decorators=self._decorators(stmt.decorators),
                bases=bases,
                metaclass=metaclass,
            )
        if isinstance(stmt, cst.FunctionDef):
            name = stmt.name.value
            if _is_dunder(name):
                return None
            params = [*stmt.params.posonly_params, *stmt.params.params]
            return _RawDeclaration(
                key=_qualify(prefix, name),
                name=name,
                module=self.name,
                category="function",
                owner=owner.key if owner else None,
                decorators=self._decorators(stmt.decorators),
                first_param=params[0].name.value if params else "",
            )
        if isinstance(stmt, cst.SimpleStatementLine) and len(stmt.body) == 1:
            return self._assignment(stmt.body[0], span, owner)
        return None

    def _assignment(
        self,
        item: cst.BaseSmallStatement,
        span: StatementSpan,
        owner: _RawDeclaration | None,
    ) -> _RawDeclaration | None:
        prefix = self._prefix(owner)
        owner_key = owner.key if owner else None
        if isinstance(item, cst.TypeAlias):
            name = item.name.value
            return _RawDeclaration(
                key=_qualify(prefix, name), name=name, module=self.name, category="alias", owner=owner_key
            )
        if isinstance(item, cst.AnnAssign) and isinstance(item.target, cst.Name):
            name = item.target.value
            if _is_dunder(name):
                return None
            category = "field"
            if _last(_expr_name(self.module, item.annotation.annotation)) == "TypeAlias":
                category = "alias"
            return _RawDeclaration(
                key=_qualify(prefix, name), name=name, module=self.name, category=category, owner=owner_key
            )
        if not isinstance(item, cst.Assign):
            return None
        names = [target.target for target in item.targets]
        if len(names) == 1 and isinstance(names[0], cst.Name):
            name = names[0].value
            if _is_dunder(name):
                return None
            return _RawDeclaration(
                key=_qualify(prefix, name), name=name, module=self.name, category="field", owner=owner_key
            )
        if all(isinstance(target, (cst.Attribute, cst.Subscript)) for target in names):
            return None
        return _RawDeclaration(
            key=_qualify(prefix, f"<assignment:{span.first_code_line + 1}>"),
            name="",
            module=self.name,
            category="field",
            owner=owner_key,
            resolvable=False,
        )

    def _decorators(self, decorators: Sequence[cst.Decorator]) -> tuple[str, ...]:
        return tuple(_expr_name(self.module, item.decorator) for item in decorators)


class PythonSnapshot:
    """One pass's view of the whole program. Never reused across passes."""

    def __init__(self, projects: Sequence[Project], roots: dict[str, Path]) -> None:
        self._projects = tuple(projects)
        self._diagnostics: list[Diagnostic] = []
        self._units: dict[Path, _UnitModel] = {}
        self._trees: dict[Path, SourceTree] = {}
        self._raws: list[_RawDeclaration] = []
        self._classes: dict[str, _RawDeclaration] = {}
        self._classes_by_name: dict[str, list[_RawDeclaration]] = defaultdict(list)
        self._members: dict[str, list[_RawDeclaration]] = defaultdict(list)
        self._symbols: dict[int, Symbol] = {}
        self._implementations: dict[str, set[str]] = defaultdict(set)
        self._ancestry_cache: dict[str, tuple[tuple[_RawDeclaration, ...], bool]] = {}
        self._index = ReferenceIndex()

    @classmethod
    def build(cls, projects: Sequence[Project], roots: dict[str, Path]) -> PythonSnapshot:
        snapshot = cls(projects, roots)
        for project in projects:
            for unit in project.units:
                snapshot._load(unit.path, project.name, roots.get(project.name))
        if not snapshot._diagnostics:
            snapshot._link()
        return snapshot

    def _load(self, path: Path, project: str, root: Path | None) -> None:
        try:
            text = read_unit(path)
        except (OSError, UnicodeDecodeError) as exc:
            self._diagnostics.append(Diagnostic(path=path, line=0, message=str(exc)))
            return
        try:
            module = cst.parse_module(text)
        except cst.ParserSyntaxError as exc:
            self._diagnostics.append(
                Diagnostic(path=path, line=exc.raw_line, message=exc.message)
            )
            return
        try:
            compile(text, str(path), "exec", dont_inherit=True)
        except SyntaxError as exc:
            self._diagnostics.append(
                Diagnostic(path=path, line=exc.lineno or 0, message=exc.msg)
            )
            return
        except ValueError as exc:
            self._diagnostics.append(Diagnostic(path=path, line=0, message=str(exc)))
            return
        name = module_name(path, root)
        package = name if path.name == "__init__.py" else name.rpartition(".")[0]
        spans = module_spans(module)
        reader = _UnitReader(path, text, module, name, project)
        nodes = reader.read(spans)
        self._units[path] = _UnitModel(
            path=path,
            text=text,
            module_name=name,
            package=package,
            module=module,
            spans=spans,
            nodes=nodes,
            owners=reader.owners,
        )
        for raw in reader.raws:
            self._raws.append(raw)
            if raw.category == "class":
                self._classes[raw.key] = raw
                self._classes_by_name[raw.name].append(raw)
            if raw.owner is not None:
                self._members[raw.owner].append(raw)

    def _link(self) -> None:
        for raw in self._raws:
            symbol = self._symbol(raw)
            for member in symbol.implements:
                self._implementations[member].add(symbol.key)
        for path, unit in self._units.items():
            self._index.add(collect_uses(path, unit.module, unit.owners))
            self._trees[path] = SourceTree(
                path=path,
                text=unit.text,
                module=unit.module_name,
                declarations=tuple(self._declaration(node) for node in unit.nodes),
                statements=len(unit.spans),
                auxiliary=sum(1 for span in unit.spans if _is_auxiliary(span.node)),
                import_block=plan_import_order(unit.module, unit.spans, unit.package),
            )

    def _declaration(self, node: _RawNode) -> Declaration:
        symbol = self._symbols.get(id(node.raw))
        kind = symbol.kind if symbol is not None else DeclarationKind.FIELD
        children = [self._declaration(child) for child in node.children]
        if kind in _STRUCTURAL_KINDS:
            children = [
                child
                for child in children
                if child.kind not in {DeclarationKind.FIELD, DeclarationKind.DELEGATE}
            ]
        return Declaration(
            kind=kind,
            name=node.raw.name,
            start=node.span.decoration_start,
            end=node.span.end,
            indent=node.indent,
            children=tuple(children),
            body_statements=node.body_statements,
            handle=node.raw,
        )

    def _ancestry(self, raw: _RawDeclaration) -> tuple[tuple[_RawDeclaration, ...], bool]:
        cached = self._ancestry_cache.get(raw.key)
        if cached is not None:
            return cached
        seen = {raw.key}
        found: list[_RawDeclaration] = []
        external = False
        pending = list(raw.bases)
        while pending:
            short = _last(pending.pop(0))
            if short in _TRANSPARENT_BASES:
                continue
            candidates = self._classes_by_name.get(short, [])
            if not candidates:
                external = True
                continue
            for candidate in candidates:
                if candidate.key in seen:
                    continue
                seen.add(candidate.key)
                found.append(candidate)
                pending.extend(candidate.bases)
        result = (tuple(found), external)
        self._ancestry_cache[raw.key] = result
        return result

    def _class_kind(self, raw: _RawDeclaration) -> DeclarationKind:
        shorts = {_last(base) for base in raw.bases}
        if shorts & _INTERFACE_BASES or _last(raw.metaclass) in _INTERFACE_METACLASSES:
            return DeclarationKind.INTERFACE
        if shorts & _RECORD_BASES:
            return DeclarationKind.RECORD
        if shorts & _ENUM_BASES:
            return DeclarationKind.ENUM
        ancestors, _external = self._ancestry(raw)
        for ancestor in ancestors:
            if {_last(base) for base in ancestor.bases} & _ENUM_BASES:
                return DeclarationKind.ENUM
        return DeclarationKind.CLASS

    def _inherited(self, owner: _RawDeclaration, name: str) -> tuple[bool, tuple[str, ...]]:
        ancestors, external = self._ancestry(owner)
        overrides = external
        implements: list[str] = []
        for ancestor in ancestors:
            if not any(member.name == name for member in self._members.get(ancestor.key, ())):
                continue
            if self._class_kind(ancestor) is DeclarationKind.INTERFACE:
                implements.append(f"{ancestor.key}.{name}")
            else:
                overrides = True
        return overrides, tuple(implements)

    def _symbol(self, raw: _RawDeclaration) -> Symbol:
        cached = self._symbols.get(id(raw))
        if cached is not None:
            return cached
        owner_raw = self._classes.get(raw.owner) if raw.owner else None
        owner = self._symbol(owner_raw) if owner_raw is not None else None
        shorts = {_last(name) for name in raw.decorators}
        annotations = tuple(name for name in raw.decorators if _last(name) not in _MODIFIER_DECORATORS)
        overrides = "override" in shorts
        implements: tuple[str, ...] = ()
        if owner_raw is not None and raw.category != "class":
            inherited, implements = self._inherited(owner_raw, raw.name)
            overrides = overrides or inherited
        if raw.category == "class":
            kind = self._class_kind(raw)
        elif raw.category == "function":
            kind = DeclarationKind.PROPERTY if shorts & _PROPERTY_DECORATORS else DeclarationKind.METHOD
        elif raw.category == "alias":
            kind = DeclarationKind.DELEGATE
        else:
            kind = DeclarationKind.FIELD
        symbol = Symbol(
            key=raw.key,
            name=raw.name,
            kind=kind,
            module=raw.module,
            is_static=owner_raw is None or bool(shorts & _STATIC_DECORATORS),
            containing_type=owner,
            annotations=annotations,
            bases=raw.bases,
            is_override=overrides,
            implements=implements,
            is_extension=raw.category == "function" and owner_raw is None and raw.first_param == "self",
        )
        self._symbols[id(raw)] = symbol
        return symbol

    def projects(self) -> Sequence[Project]:
        return self._projects

    def diagnostics(self) -> Sequence[Diagnostic]:
        return tuple(self._diagnostics)

    def tree(self, path: Path) -> SourceTree:
        return self._trees[path]

    def trees(self) -> Sequence[SourceTree]:
        return tuple(self._trees.values())

    def resolve(self, tree: SourceTree, declaration: Declaration) -> Symbol | None:
        raw = declaration.handle
        if not isinstance(raw, _RawDeclaration) or not raw.resolvable:
            return None
        return self._symbols.get(id(raw))

    def members(self, symbol: Symbol) -> Sequence[Symbol]:
        return tuple(
            self._symbols[id(raw)]
            for raw in self._members.get(symbol.key, ())
            if raw.resolvable and id(raw) in self._symbols
        )

    def find_references(self, symbol: Symbol) -> Sequence[Reference]:
        return self._index.references(symbol.name, symbol.key)

    def find_callers(self, symbol: Symbol) -> Sequence[Reference]:
        roots = set(symbol.implements)
        owner = symbol.containing_type
        if owner is not None and owner.kind is DeclarationKind.INTERFACE:
            roots.add(symbol.key)
        group = set(roots) | {symbol.key}
        for root in roots:
            group |= self._implementations.get(root, set())
        return self._index.callers(symbol.name, frozenset(group))


class PythonFrontEnd:
    def snapshot(self, workspace: Workspace) -> PythonSnapshot:
        projects = workspace.projects()
        roots = {project.name: project.root for project in projects}
        return PythonSnapshot.build(projects, roots)
