from __future__ import annotations

from typing import Callable, Sequence, TypeVar

import libcst as cst

from deadshake.frontend.lines import StatementSpan
from deadshake.model import ImportBlock

T = TypeVar("T")


def module_expr_to_str(expr: cst.BaseExpression | None) -> str | None:
    if expr is None:
        return None
    if isinstance(expr, cst.Name):
        return expr.value
    if isinstance(expr, cst.Attribute):
        parts = []
        current: cst.BaseExpression | None = expr
        while isinstance(current, cst.Attribute):
            parts.append(current.attr.value)
            current = current.value
        if isinstance(current, cst.Name):
            parts.append(current.value)
            return ".".join(reversed(parts))
    return None


def is_docstring(stmt: cst.CSTNode) -> bool:
    if not isinstance(stmt, cst.SimpleStatementLine) or not stmt.body:
        return False
    expr = stmt.body[0]
    return isinstance(expr, cst.Expr) and isinstance(
        expr.value, (cst.SimpleString, cst.ConcatenatedString)
    )


def is_import(stmt: cst.CSTNode) -> bool:
    if not isinstance(stmt, cst.SimpleStatementLine) or not stmt.body:
        return False
    return all(isinstance(item, (cst.Import, cst.ImportFrom)) for item in stmt.body)


def is_future_import(stmt: cst.CSTNode) -> bool:
    if not is_import(stmt):
        return False
    item = stmt.body[0]
    return isinstance(item, cst.ImportFrom) and module_expr_to_str(item.module) == "__future__"


def import_target(stmt: cst.SimpleStatementLine, package: str) -> str:
    item = stmt.body[0]
    if isinstance(item, cst.Import):
        return module_expr_to_str(item.names[0].name) or ""
    if not isinstance(item, cst.ImportFrom):
        return ""
    module = module_expr_to_str(item.module) or ""
    depth = len(item.relative)
    if depth == 0:
        return module
    parts = package.split(".") if package else []
    if depth > 1:
        parts = parts[: max(len(parts) - (depth - 1), 0)]
    if module:
        parts.append(module)
    return ".".join(parts)


def _within(name: str, namespace: str) -> bool:
    return name == namespace or name.startswith(namespace + ".")


def order_by_namespace(
    items: Sequence[T], namespace: str, key: Callable[[T], str]
) -> list[T]:
    """Order items so the ones nearest to ``namespace`` come first.

    Items under the namespace itself come first, then those under each parent
    namespace in turn, then the rest. Each group is sorted by key.
    """
    remaining = list(items)
    ordered: list[T] = []
    current = namespace
    while current:
        matched = [item for item in remaining if _within(key(item), current)]
        ordered.extend(sorted(matched, key=key))
        remaining = [item for item in remaining if not _within(key(item), current)]
        if "." not in current:
            break
        current = current.rsplit(".", 1)[0]
    ordered.extend(sorted(remaining, key=key))
    return ordered


def plan_import_order(
    module: cst.Module, spans: Sequence[StatementSpan], package: str
) -> ImportBlock | None:
    index = 0
    if spans and is_docstring(spans[0].node):
        index = 1
    while index < len(spans) and is_future_import(spans[index].node):
        index += 1
    block: list[StatementSpan] = []
    while index < len(spans) and is_import(spans[index].node):
        block.append(spans[index])
        index += 1
    if len(block) <= 1:
        return None
    ordered = order_by_namespace(
        block, package, key=lambda span: import_target(span.node, package)
    )
    if [span.start for span in ordered] == [span.start for span in block]:
        return None
    header = block[0].node.leading_lines
    nodes: list[cst.SimpleStatementLine] = []
    for position, span in enumerate(ordered):
        node = span.node
        comments = [line for line in node.leading_lines if line.comment is not None]
        if span is block[0]:
            comments = []
        if position == 0:
            node = node.with_changes(leading_lines=[*header, *comments])
        else:
            node = node.with_changes(leading_lines=comments)
        nodes.append(node)
    replacement = "".join(module.code_for_node(node) for node in nodes)
    return ImportBlock(start=block[0].start, end=block[-1].end, replacement=replacement)
