from __future__ import annotations

from typing import Iterable

from deadshake.model import CheckMode, RetentionDecision, Symbol, exempt, needs_check
from deadshake.retention.predicates import (
    DEFAULT_POLICY,
    RetentionPolicy,
    implements_interface_member,
    is_declared_in_web_entry_type,
    is_extension_method,
    is_interface_member,
    is_override,
    is_part_of_data_contract,
    is_program_entry_point,
    is_test_method,
)


def evaluate(symbol: Symbol, policy: RetentionPolicy = DEFAULT_POLICY) -> RetentionDecision:
    """Map a classified symbol to an exemption or the reference check it needs.

    Rules are ordered; the first match wins.
    """
    if is_program_entry_point(symbol, policy):
        return exempt("entry-point")
    if is_test_method(symbol, policy):
        return exempt("test-method")
    if is_declared_in_web_entry_type(symbol, policy):
        return exempt("web-entry-type")
    if is_extension_method(symbol):
        return exempt("extension-method")
    if symbol.annotations:
        return exempt("annotated")
    if is_override(symbol):
        return exempt("override")
    if implements_interface_member(symbol):
        return needs_check(CheckMode.CALLED_THROUGH_INTERFACE, "interface-implementation")
    if is_interface_member(symbol):
        return needs_check(CheckMode.CALLED_THROUGH_INTERFACE, "interface-member")
    if is_part_of_data_contract(symbol, policy):
        return exempt("data-contract")
    return needs_check(CheckMode.REFERENCED_ANYWHERE, "default")


def type_is_container(
    members: Iterable[Symbol], policy: RetentionPolicy = DEFAULT_POLICY
) -> bool:
    """True when a member makes its type a program or utility container."""
    return any(
        is_program_entry_point(member, policy)
        or is_test_method(member, policy)
        or is_extension_method(member)
        for member in members
    )
