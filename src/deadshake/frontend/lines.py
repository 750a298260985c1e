"""Line arithmetic over LibCST trees.

LibCST round-trips source exactly, so the number of newlines a statement
generates is the number of physical lines it occupies regardless of how deep
it is indented. Spans are 0-based, half-open, and include a statement's
leading lines.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import libcst as cst

from deadshake.model import END_MARKER


def split_lines(text: str) -> list[str]:
    parts = text.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def line_count(module: cst.Module, node: cst.CSTNode) -> int:
    return module.code_for_node(node).count("\n")


def decoration_offset(stmt: cst.CSTNode) -> int:
    """Number of leading lines that are separators rather than decoration.

    Only the comment lines directly above a statement belong to it, and an
    annotated block above it never does.
    """
    leading = list(getattr(stmt, "leading_lines", ()))
    offset = 0
    for index, line in enumerate(leading):
        if line.comment is None or line.comment.value.startswith(END_MARKER):
            offset = index + 1
    return offset


def leading_line_total(stmt: cst.CSTNode) -> int:
    return len(getattr(stmt, "leading_lines", ()))


@dataclass(frozen=True)
class StatementSpan:
    node: cst.BaseStatement
    start: int
    end: int
    decoration_start: int
    first_code_line: int


def body_spans(
    module: cst.Module, body: Sequence[cst.BaseStatement], start: int
) -> list[StatementSpan]:
    spans: list[StatementSpan] = []
    cursor = start
    for stmt in body:
        count = line_count(module, stmt)
        spans.append(
            StatementSpan(
                node=stmt,
                start=cursor,
                end=cursor + count,
                decoration_start=cursor + decoration_offset(stmt),
                first_code_line=cursor + leading_line_total(stmt),
            )
        )
        cursor += count
    return spans


def module_spans(module: cst.Module) -> list[StatementSpan]:
    return body_spans(module, module.body, len(module.header))


def class_body_spans(
    module: cst.Module, node: cst.ClassDef, span: StatementSpan
) -> list[StatementSpan]:
    body = node.body
    if not isinstance(body, cst.IndentedBlock):
        return []
    inner = sum(line_count(module, stmt) for stmt in body.body)
    header = (span.end - span.start) - inner - len(body.footer)
    return body_spans(module, body.body, span.start + header)


def indentation(lines: Sequence[str], index: int) -> str:
    if index < 0 or index >= len(lines):
        return ""
    line = lines[index]
    return line[: len(line) - len(line.lstrip(" \t"))]
