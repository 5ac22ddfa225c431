"""Query-construction state.

Every value here is immutable. Transitions live in ``mutations`` and return
a new ``QueryState`` instead of editing one in place.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Type, TypeVar


class JoinType(Enum):
    """Supported join types, rendered verbatim."""

    INNER = "INNER"
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    FULL_OUTER = "FULL OUTER"


class Operator(Enum):
    """Predicate comparison operators, rendered verbatim."""

    EQ = "="
    NEQ = "!="
    LT = "<"
    GT = ">"
    LTE = "<="
    GTE = ">="
    LIKE = "LIKE"
    IN = "IN"
    IS_NULL = "IS NULL"
    IS_NOT_NULL = "IS NOT NULL"


class Logic(Enum):
    """Connective joining a predicate to the one before it."""

    AND = "AND"
    OR = "OR"


class SortDirection(Enum):
    """Sort directions."""

    ASC = "ASC"
    DESC = "DESC"


E = TypeVar("E", bound=Enum)


def coerce_enum(enum_cls: Type[E], value: object) -> Optional[E]:
    """Map an enum member or its exact literal value to a member.

    Matching is case-sensitive. Returns None when the value is not one of
    the supported literals.
    """
    if isinstance(value, enum_cls):
        return value
    for member in enum_cls:
        if member.value == value:
            return member
    return None


@dataclass(frozen=True)
class SelectedColumn:
    """A projected column, unique by (table_id, column_id)."""

    table_id: str
    column_id: str
    alias: Optional[str] = None

    @property
    def key(self) -> Tuple[str, str]:
        return (self.table_id, self.column_id)


@dataclass(frozen=True)
class Join:
    """Explicit join between two selected tables."""

    id: str
    left_table: str = ""
    right_table: str = ""
    left_column: str = ""
    right_column: str = ""
    type: JoinType = JoinType.INNER


@dataclass(frozen=True)
class Predicate:
    """WHERE condition.

    ``logic`` connects this predicate to the previous one and is never
    rendered for the first predicate.
    """

    id: str
    column: str = ""
    operator: Operator = Operator.EQ
    value: str = ""
    logic: Logic = Logic.AND


@dataclass(frozen=True)
class SortKey:
    """ORDER BY entry."""

    column: str = ""
    direction: SortDirection = SortDirection.ASC


@dataclass(frozen=True)
class QueryState:
    """Complete state of one query-construction session."""

    selected_tables: Tuple[str, ...] = ()
    columns: Tuple[SelectedColumn, ...] = ()
    joins: Tuple[Join, ...] = ()
    predicates: Tuple[Predicate, ...] = ()
    sort_keys: Tuple[SortKey, ...] = ()
    group_by: Tuple[str, ...] = ()
    limit: Optional[int] = None
    next_id: int = field(default=1, compare=False)

    def is_table_selected(self, table_id: str) -> bool:
        return table_id in self.selected_tables

    def get_column(self, table_id: str, column_id: str) -> Optional[SelectedColumn]:
        for col in self.columns:
            if col.table_id == table_id and col.column_id == column_id:
                return col
        return None

    def get_join(self, join_id: str) -> Optional[Join]:
        for join in self.joins:
            if join.id == join_id:
                return join
        return None

    def get_predicate(self, predicate_id: str) -> Optional[Predicate]:
        for predicate in self.predicates:
            if predicate.id == predicate_id:
                return predicate
        return None

    def is_empty(self) -> bool:
        return self == QueryState()
