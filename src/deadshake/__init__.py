"""Deadshake package root."""

from deadshake.exceptions import (
    CommitConflictError,
    CompileDiagnosticError,
    DeadshakeError,
    DescriptorError,
    MissingDescriptorError,
)

__all__ = [
    "__version__",
    "CommitConflictError",
    "CompileDiagnosticError",
    "DeadshakeError",
    "DescriptorError",
    "MissingDescriptorError",
]

__version__ = "0.1.0"
