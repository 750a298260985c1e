"""Source-unit storage: plain reads and the all-or-nothing pass commit."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Sequence

from deadshake.exceptions import CommitConflictError
from deadshake.model import TextEdit
from deadshake.rewrite.strategies import apply_edits


def read_unit(path: Path) -> str:
    with open(path, "r", encoding="utf-8", newline="") as handle:
        return handle.read()


def write_unit(path: Path, text: str) -> None:
    with open(path, "w", encoding="utf-8", newline="") as handle:
        handle.write(text)


@dataclass(frozen=True)
class CommitResult:
    written: tuple[Path, ...] = ()
    deleted: tuple[Path, ...] = ()


def group_edits(edits: Iterable[TextEdit]) -> dict[Path, list[TextEdit]]:
    grouped: dict[Path, list[TextEdit]] = defaultdict(list)
    for edit in edits:
        grouped[Path(edit.path)].append(edit)
    return dict(grouped)


def commit(
    originals: Mapping[Path, str],
    edits: Mapping[Path, Sequence[TextEdit]],
    deletions: Sequence[Path] = (),
) -> CommitResult:
    """Apply one pass's edits and deletions atomically.

    ``originals`` holds the text each unit had when the pass's snapshot was
    built. Every edit is applied in memory and every touched unit is checked
    against its snapshot text before anything is written; a failure while
    writing restores the units already touched.
    """
    doomed = set(deletions)
    planned: dict[Path, str] = {}
    for path, unit_edits in edits.items():
        if path in doomed or not unit_edits:
            continue
        if path not in originals:
            raise CommitConflictError(path, "unit is not part of the snapshot")
        try:
            planned[path] = apply_edits(originals[path], unit_edits)
        except ValueError as exc:
            raise CommitConflictError(path, str(exc)) from exc
    for path in [*planned, *sorted(doomed)]:
        try:
            current = read_unit(path)
        except OSError as exc:
            raise CommitConflictError(path, str(exc)) from exc
        if current != originals.get(path):
            raise CommitConflictError(path, "unit changed on disk since the pass began")

    written: list[Path] = []
    deleted: list[Path] = []
    try:
        for path, text in planned.items():
            # Opening truncates, so a failed write still needs restoring.
            written.append(path)
            write_unit(path, text)
        for path in sorted(doomed):
            path.unlink()
            deleted.append(path)
    except OSError as exc:
        for done in [*written, *deleted]:
            write_unit(done, originals[done])
        raise CommitConflictError(path, str(exc)) from exc
    return CommitResult(written=tuple(written), deleted=tuple(deleted))
