"""Query-construction state and its transitions."""

from .model import (
    JoinType,
    Operator,
    Logic,
    SortDirection,
    SelectedColumn,
    Join,
    Predicate,
    SortKey,
    QueryState,
    coerce_enum,
)
from . import mutations

__all__ = [
    "JoinType",
    "Operator",
    "Logic",
    "SortDirection",
    "SelectedColumn",
    "Join",
    "Predicate",
    "SortKey",
    "QueryState",
    "coerce_enum",
    "mutations",
]
