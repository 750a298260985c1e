"""Error protocol for deadshake runs."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from deadshake.model import Diagnostic


class DeadshakeError(RuntimeError):
    """Base class for fatal run errors."""


class CompileDiagnosticError(DeadshakeError):
    """The program does not compile cleanly; nothing was mutated."""

    def __init__(self, diagnostics: Sequence[Diagnostic]):
        self.diagnostics = tuple(diagnostics)
        super().__init__(
            f"Failed to compile program ({len(self.diagnostics)} diagnostic(s)). "
            "Fix issues and re-run."
        )


class CommitConflictError(DeadshakeError):
    """A pass's edits could not be applied atomically; nothing was written."""

    def __init__(self, path: Path | str, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to apply changes to {self.path}: {reason}")


class MissingDescriptorError(DeadshakeError):
    """No workspace descriptor could be resolved."""


class DescriptorError(DeadshakeError):
    """The workspace descriptor is malformed or its project graph is not a DAG."""
