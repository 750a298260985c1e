"""How a condemned declaration's text is transformed.

Every strategy works on the condemned line span only and writes the
declaration's literal text to the report stream.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

from deadshake.frontend.lines import split_lines
from deadshake.model import BEGIN_MARKER, END_MARKER, Action, TextEdit

Echo = Callable[[str], None]

LINE_PREFIX = "#"


def newline_of(lines: Sequence[str], index: int) -> str:
    for line in lines[index:]:
        if line.endswith("\r\n"):
            return "\r\n"
        if line.endswith("\n"):
            return "\n"
    return "\n"


def literal_text(lines: Sequence[str], start: int, end: int) -> str:
    return "".join(lines[start:end])


@dataclass(frozen=True)
class AnnotateStrategy:
    echo: Echo
    action: Action = Action.ANNOTATE
    changes_text: bool = True

    def rewrite(
        self,
        path: Path,
        lines: Sequence[str],
        start: int,
        end: int,
        placeholder: str | None = None,
    ) -> TextEdit | None:
        self.echo(literal_text(lines, start, end).rstrip("\r\n"))
        newline = newline_of(lines, start)
        commented = []
        for line in lines[start:end]:
            if not line.endswith("\n"):
                line += newline
            commented.append(LINE_PREFIX + line)
        replacement = (
            BEGIN_MARKER + newline + "".join(commented) + END_MARKER + newline + (placeholder or "")
        )
        return TextEdit(path=str(path), start=start, end=end, replacement=replacement)


@dataclass(frozen=True)
class RemoveStrategy:
    echo: Echo
    action: Action = Action.REMOVE
    changes_text: bool = True

    def rewrite(
        self,
        path: Path,
        lines: Sequence[str],
        start: int,
        end: int,
        placeholder: str | None = None,
    ) -> TextEdit | None:
        self.echo(literal_text(lines, start, end).rstrip("\r\n"))
        return TextEdit(path=str(path), start=start, end=end, replacement=placeholder or "")


@dataclass(frozen=True)
class ReportOnlyStrategy:
    echo: Echo
    action: Action = Action.REPORT
    changes_text: bool = False

    def rewrite(
        self,
        path: Path,
        lines: Sequence[str],
        start: int,
        end: int,
        placeholder: str | None = None,
    ) -> TextEdit | None:
        self.echo(literal_text(lines, start, end).rstrip("\r\n"))
        return None


RewriteStrategy = AnnotateStrategy | RemoveStrategy | ReportOnlyStrategy


def strategy_for(action: Action, echo: Echo) -> RewriteStrategy:
    if action is Action.ANNOTATE:
        return AnnotateStrategy(echo=echo)
    if action is Action.REMOVE:
        return RemoveStrategy(echo=echo)
    return ReportOnlyStrategy(echo=echo)


def apply_edits(text: str, edits: Sequence[TextEdit]) -> str:
    """Apply non-overlapping line edits to ``text``.

    Raises ``ValueError`` when two edits overlap or an edit falls outside the
    text.
    """
    lines = split_lines(text)
    ordered = sorted(edits, key=lambda edit: (edit.start, edit.end))
    out: list[str] = []
    cursor = 0
    for edit in ordered:
        if edit.start < cursor:
            raise ValueError(f"overlapping edits at line {edit.start + 1}")
        if edit.end > len(lines) or edit.start > edit.end:
            raise ValueError(f"edit outside text at line {edit.start + 1}")
        out.extend(lines[cursor : edit.start])
        out.append(edit.replacement)
        cursor = edit.end
    out.extend(lines[cursor:])
    return "".join(out)
