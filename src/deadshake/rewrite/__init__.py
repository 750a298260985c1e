from deadshake.model import BEGIN_MARKER, END_MARKER, ZOMBIE_SYMBOL
from deadshake.rewrite.imports import order_by_namespace, plan_import_order
from deadshake.rewrite.strategies import (
    AnnotateStrategy,
    RemoveStrategy,
    ReportOnlyStrategy,
    RewriteStrategy,
    apply_edits,
    strategy_for,
)

__all__ = [
    "AnnotateStrategy",
    "BEGIN_MARKER",
    "END_MARKER",
    "RemoveStrategy",
    "ReportOnlyStrategy",
    "RewriteStrategy",
    "ZOMBIE_SYMBOL",
    "apply_edits",
    "order_by_namespace",
    "plan_import_order",
    "strategy_for",
]
