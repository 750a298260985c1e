from __future__ import annotations

from pathlib import Path

import pytest

from deadshake.frontend.lines import split_lines
from deadshake.model import Action, TextEdit
from deadshake.rewrite import (
    BEGIN_MARKER,
    END_MARKER,
    AnnotateStrategy,
    RemoveStrategy,
    ReportOnlyStrategy,
    apply_edits,
    strategy_for,
)

SOURCE = "def keep():\n    return 1\n\n\ndef drop():\n    return 2\n"


def test_annotate_comments_span_between_markers() -> None:
    report: list[str] = []
    lines = split_lines(SOURCE)
    edit = AnnotateStrategy(echo=report.append).rewrite(Path("m.py"), lines, 4, 6)
    assert edit == TextEdit(
        path="m.py",
        start=4,
        end=6,
        replacement=f"{BEGIN_MARKER}\n#def drop():\n#    return 2\n{END_MARKER}\n",
    )
    assert report == ["def drop():\n    return 2"]
    rewritten = apply_edits(SOURCE, [edit])
    assert rewritten.startswith("def keep():\n    return 1\n\n\n#if ZOMBIE\n")


def test_annotate_terminates_last_line_without_newline() -> None:
    text = "x = 1\ny = 2"
    edit = AnnotateStrategy(echo=lambda _: None).rewrite(Path("m.py"), split_lines(text), 1, 2)
    assert apply_edits(text, [edit]) == f"x = 1\n{BEGIN_MARKER}\n#y = 2\n{END_MARKER}\n"


def test_annotate_keeps_crlf_line_endings() -> None:
    text = "x = 1\r\ny = 2\r\n"
    edit = AnnotateStrategy(echo=lambda _: None).rewrite(Path("m.py"), split_lines(text), 1, 2)
    assert edit.replacement == f"{BEGIN_MARKER}\r\n#y = 2\r\n{END_MARKER}\r\n"


def test_remove_deletes_lines_and_appends_placeholder() -> None:
    report: list[str] = []
    lines = split_lines(SOURCE)
    strategy = RemoveStrategy(echo=report.append)
    edit = strategy.rewrite(Path("m.py"), lines, 4, 6)
    assert apply_edits(SOURCE, [edit]) == "def keep():\n    return 1\n\n\n"
    with_placeholder = strategy.rewrite(Path("m.py"), lines, 4, 6, "pass\n")
    assert with_placeholder.replacement == "pass\n"
    assert report == ["def drop():\n    return 2"] * 2


def test_report_only_produces_no_edit() -> None:
    report: list[str] = []
    strategy = ReportOnlyStrategy(echo=report.append)
    assert strategy.rewrite(Path("m.py"), split_lines(SOURCE), 0, 2) is None
    assert report == ["def keep():\n    return 1"]
    assert not strategy.changes_text


def test_strategy_for_action() -> None:
    assert isinstance(strategy_for(Action.ANNOTATE, print), AnnotateStrategy)
    assert isinstance(strategy_for(Action.REMOVE, print), RemoveStrategy)
    assert isinstance(strategy_for(Action.REPORT, print), ReportOnlyStrategy)


def test_apply_edits_rejects_overlap() -> None:
    edits = [
        TextEdit(path="m.py", start=0, end=2, replacement=""),
        TextEdit(path="m.py", start=1, end=3, replacement=""),
    ]
    with pytest.raises(ValueError):
        apply_edits(SOURCE, edits)
    with pytest.raises(ValueError):
        apply_edits(SOURCE, [TextEdit(path="m.py", start=5, end=9, replacement="")])
