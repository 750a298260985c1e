"""Symbol classification predicates used by the retention policy."""

from __future__ import annotations

from dataclasses import dataclass, replace

from deadshake.config import TomlTable, normalize_name_list
from deadshake.model import DeclarationKind, Symbol

_MEMBER_KINDS = frozenset(
    {
        DeclarationKind.METHOD,
        DeclarationKind.PROPERTY,
        DeclarationKind.INDEXER,
        DeclarationKind.FIELD,
        DeclarationKind.EVENT,
    }
)


@dataclass(frozen=True)
class RetentionPolicy:
    entry_points: frozenset[str] = frozenset({"main", "Main", "MainAsync", "main_async"})
    test_prefixes: tuple[str, ...] = (
        "pytest.mark",
        "pytest.fixture",
        "fixture",
        "parametrize",
        "given",
        "Theory",
        "Fact",
        "SkippableFact",
        "SkippableTheory",
    )
    test_name_prefixes: tuple[str, ...] = ("test",)
    test_hooks: frozenset[str] = frozenset(
        {
            "setUp",
            "tearDown",
            "setUpClass",
            "tearDownClass",
            "setUpModule",
            "tearDownModule",
            "setup_module",
            "teardown_module",
            "setup_function",
            "teardown_function",
            "setup_method",
            "teardown_method",
            "setup_class",
            "teardown_class",
        }
    )
    test_hook_prefixes: tuple[str, ...] = ("pytest_",)
    entry_types: frozenset[str] = frozenset({"Startup"})
    entry_type_markers: tuple[str, ...] = ("Controller",)
    data_contracts: tuple[str, ...] = (
        "DataContract",
        "Serializable",
        "dataclass",
        "attr.s",
        "attrs.define",
        "attrs.frozen",
        "define",
    )

    @classmethod
    def from_config(cls, section: TomlTable | None) -> RetentionPolicy:
        policy = cls()
        if not section:
            return policy
        extra_entry = normalize_name_list(section.get("entry_points"))
        extra_tests = normalize_name_list(section.get("test_prefixes"))
        extra_types = normalize_name_list(section.get("entry_types"))
        extra_markers = normalize_name_list(section.get("entry_type_markers"))
        extra_contracts = normalize_name_list(section.get("data_contracts"))
        return replace(
            policy,
            entry_points=policy.entry_points | frozenset(extra_entry),
            test_prefixes=policy.test_prefixes + tuple(extra_tests),
            entry_types=policy.entry_types | frozenset(extra_types),
            entry_type_markers=policy.entry_type_markers + tuple(extra_markers),
            data_contracts=policy.data_contracts + tuple(extra_contracts),
        )


DEFAULT_POLICY = RetentionPolicy()


def _last_segment(name: str) -> str:
    return name.rsplit(".", 1)[-1]


def _matches_prefix(name: str, prefixes: tuple[str, ...]) -> bool:
    short = _last_segment(name)
    return any(name.startswith(prefix) or short.startswith(prefix) for prefix in prefixes)


def _is_test_module(module: str) -> bool:
    leaf = _last_segment(module)
    return leaf.startswith("test_") or leaf.endswith("_test") or leaf == "conftest"


def is_program_entry_point(symbol: Symbol, policy: RetentionPolicy = DEFAULT_POLICY) -> bool:
    if symbol.kind is not DeclarationKind.METHOD or not symbol.is_static:
        return False
    return symbol.name in policy.entry_points


def is_test_method(symbol: Symbol, policy: RetentionPolicy = DEFAULT_POLICY) -> bool:
    if symbol.kind is not DeclarationKind.METHOD:
        return False
    if any(_matches_prefix(name, policy.test_prefixes) for name in symbol.annotations):
        return True
    if symbol.name in policy.test_hooks:
        return True
    if any(symbol.name.startswith(prefix) for prefix in policy.test_hook_prefixes):
        return _is_test_module(symbol.module)
    if not any(symbol.name.startswith(prefix) for prefix in policy.test_name_prefixes):
        return False
    owner = symbol.containing_type
    if owner is not None and owner.name.startswith("Test"):
        return True
    return _is_test_module(symbol.module)


def is_extension_method(symbol: Symbol) -> bool:
    return symbol.kind is DeclarationKind.METHOD and symbol.is_extension


def is_web_entry_type(symbol: Symbol, policy: RetentionPolicy = DEFAULT_POLICY) -> bool:
    if not symbol.is_type:
        return False
    if symbol.name in policy.entry_types:
        return True
    names = symbol.annotations + symbol.bases
    return any(marker in _last_segment(name) for name in names for marker in policy.entry_type_markers)


def is_declared_in_web_entry_type(
    symbol: Symbol, policy: RetentionPolicy = DEFAULT_POLICY
) -> bool:
    if is_web_entry_type(symbol, policy):
        return True
    owner = symbol.containing_type
    while owner is not None:
        if is_web_entry_type(owner, policy):
            return True
        owner = owner.containing_type
    return False


def is_override(symbol: Symbol) -> bool:
    return symbol.is_override


def implements_interface_member(symbol: Symbol) -> bool:
    if symbol.kind not in _MEMBER_KINDS:
        return False
    return bool(symbol.implements)


def is_interface_member(symbol: Symbol) -> bool:
    owner = symbol.containing_type
    return owner is not None and owner.kind is DeclarationKind.INTERFACE


def is_part_of_data_contract(symbol: Symbol, policy: RetentionPolicy = DEFAULT_POLICY) -> bool:
    owner = symbol.containing_type
    if owner is None:
        return False
    return any(_matches_prefix(name, policy.data_contracts) for name in owner.annotations)
