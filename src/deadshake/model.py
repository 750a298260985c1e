from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path


ZOMBIE_SYMBOL = "ZOMBIE"
BEGIN_MARKER = f"#if {ZOMBIE_SYMBOL}"
END_MARKER = f"#endif {ZOMBIE_SYMBOL}"


class DeclarationKind(StrEnum):
    CLASS = "class"
    STRUCT = "struct"
    INTERFACE = "interface"
    RECORD = "record"
    ENUM = "enum"
    DELEGATE = "delegate"
    METHOD = "method"
    PROPERTY = "property"
    INDEXER = "indexer"
    FIELD = "field"
    EVENT = "event"


TYPE_KINDS: frozenset[DeclarationKind] = frozenset(
    {
        DeclarationKind.CLASS,
        DeclarationKind.STRUCT,
        DeclarationKind.INTERFACE,
        DeclarationKind.RECORD,
        DeclarationKind.ENUM,
    }
)


class Verdict(StrEnum):
    KEEP_EXEMPT = "keep-exempt"
    KEEP_REFERENCED = "keep-referenced"
    REMOVE = "remove"


class CheckMode(StrEnum):
    REFERENCED_ANYWHERE = "referenced-anywhere"
    CALLED_THROUGH_INTERFACE = "called-through-interface"


class Action(StrEnum):
    ANNOTATE = "annotate"
    REPORT = "report"
    REMOVE = "remove"


@dataclass(frozen=True)
class Symbol:
    """A semantically resolved declaration, compared by ``key``."""

    key: str
    name: str
    kind: DeclarationKind
    module: str = ""
    is_static: bool = False
    containing_type: Symbol | None = None
    annotations: tuple[str, ...] = ()
    bases: tuple[str, ...] = ()
    is_override: bool = False
    implements: tuple[str, ...] = ()
    is_extension: bool = False

    @property
    def is_type(self) -> bool:
        return self.kind in TYPE_KINDS


@dataclass(frozen=True)
class Declaration:
    kind: DeclarationKind
    name: str
    start: int
    end: int
    indent: str = ""
    children: tuple[Declaration, ...] = ()
    body_statements: int = 0
    handle: object = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class ImportBlock:
    start: int
    end: int
    replacement: str


@dataclass(frozen=True)
class SourceTree:
    path: Path
    text: str
    module: str
    declarations: tuple[Declaration, ...]
    statements: int
    auxiliary: int
    import_block: ImportBlock | None = None


@dataclass(frozen=True)
class SourceUnit:
    path: Path
    project: str


@dataclass(frozen=True)
class Project:
    name: str
    root: Path
    units: tuple[SourceUnit, ...]
    dependencies: tuple[str, ...] = ()


@dataclass(frozen=True)
class Reference:
    path: Path
    line: int
    name: str
    is_call: bool = False


@dataclass(frozen=True)
class Diagnostic:
    path: Path
    line: int
    message: str

    def render(self) -> str:
        return f"{self.path}:{self.line}: {self.message}"


@dataclass(frozen=True)
class RetentionDecision:
    exempt: bool
    rule: str
    mode: CheckMode | None = None


def exempt(rule: str) -> RetentionDecision:
    return RetentionDecision(exempt=True, rule=rule)


def needs_check(mode: CheckMode, rule: str) -> RetentionDecision:
    return RetentionDecision(exempt=False, rule=rule, mode=mode)


@dataclass(frozen=True)
class TextEdit:
    path: str
    start: int
    end: int
    replacement: str


@dataclass(frozen=True)
class UnitResult:
    path: Path
    changed: bool = False
    became_empty: bool = False
    reordered: bool = False
    edits: tuple[TextEdit, ...] = ()
    condemned: tuple[str, ...] = ()


@dataclass(frozen=True)
class PassResult:
    number: int
    units: tuple[UnitResult, ...] = ()
    written: tuple[Path, ...] = ()
    deleted: tuple[Path, ...] = ()

    @property
    def changed(self) -> bool:
        return any(unit.changed for unit in self.units)

    @property
    def empty_units(self) -> tuple[Path, ...]:
        return tuple(unit.path for unit in self.units if unit.became_empty)

    @property
    def condemned(self) -> int:
        return sum(len(unit.condemned) for unit in self.units)


@dataclass(frozen=True)
class RunResult:
    passes: tuple[PassResult, ...]
    initial_declarations: int = 0

    @property
    def condemned(self) -> int:
        return sum(item.condemned for item in self.passes)
