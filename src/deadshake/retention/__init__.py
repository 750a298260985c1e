from deadshake.retention.policy import evaluate, type_is_container
from deadshake.retention.predicates import DEFAULT_POLICY, RetentionPolicy

__all__ = [
    "DEFAULT_POLICY",
    "RetentionPolicy",
    "evaluate",
    "type_is_container",
]
