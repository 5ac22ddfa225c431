"""Transitions over ``QueryState``.

Each function takes a state and returns the next one. None of them raise on
bad input: a reference to something that does not exist, a duplicate add or
an out-of-range index returns the input state unchanged.
"""

import logging
from dataclasses import replace
from typing import Any, Dict, Optional, Type

from ..catalog import Catalog
from .model import (
    Join,
    JoinType,
    Logic,
    Operator,
    Predicate,
    QueryState,
    SelectedColumn,
    SortDirection,
    SortKey,
    coerce_enum,
)

logger = logging.getLogger(__name__)

# Editable fields per entity and, for enum-typed fields, the enum to coerce to
_JOIN_FIELDS: Dict[str, Optional[Type]] = {
    "left_table": None,
    "right_table": None,
    "left_column": None,
    "right_column": None,
    "type": JoinType,
}
_PREDICATE_FIELDS: Dict[str, Optional[Type]] = {
    "column": None,
    "operator": Operator,
    "value": None,
    "logic": Logic,
}
_SORT_KEY_FIELDS: Dict[str, Optional[Type]] = {
    "column": None,
    "direction": SortDirection,
}


def add_table(
    state: QueryState, table_id: str, catalog: Optional[Catalog] = None
) -> QueryState:
    """Select a table. Re-adding an already selected table is a no-op."""
    if state.is_table_selected(table_id):
        return state
    if catalog is not None and table_id not in catalog:
        logger.debug(f"add_table ignored: unknown table {table_id!r}")
        return state
    return replace(state, selected_tables=state.selected_tables + (table_id,))


def remove_table(state: QueryState, table_id: str) -> QueryState:
    """Deselect a table together with every column and join that uses it."""
    if not state.is_table_selected(table_id):
        return state

    tables = tuple(t for t in state.selected_tables if t != table_id)
    columns = tuple(c for c in state.columns if c.table_id != table_id)
    joins = tuple(
        j
        for j in state.joins
        if j.left_table != table_id and j.right_table != table_id
    )
    return replace(state, selected_tables=tables, columns=columns, joins=joins)


def add_column(
    state: QueryState,
    table_id: str,
    column_id: str,
    catalog: Optional[Catalog] = None,
) -> QueryState:
    """Project a column of a selected table."""
    if not state.is_table_selected(table_id):
        logger.debug(f"add_column ignored: table {table_id!r} is not selected")
        return state
    if state.get_column(table_id, column_id) is not None:
        return state
    if catalog is not None and catalog.get_column(table_id, column_id) is None:
        logger.debug(f"add_column ignored: unknown column {table_id}.{column_id}")
        return state
    column = SelectedColumn(table_id=table_id, column_id=column_id)
    return replace(state, columns=state.columns + (column,))


def remove_column(state: QueryState, table_id: str, column_id: str) -> QueryState:
    if state.get_column(table_id, column_id) is None:
        return state
    columns = tuple(
        c for c in state.columns if c.key != (table_id, column_id)
    )
    return replace(state, columns=columns)


def set_alias(
    state: QueryState, table_id: str, column_id: str, alias: Optional[str]
) -> QueryState:
    """Overwrite the alias of a selected column. Empty or None clears it."""
    if state.get_column(table_id, column_id) is None:
        return state
    alias = alias or None
    columns = tuple(
        replace(c, alias=alias) if c.key == (table_id, column_id) else c
        for c in state.columns
    )
    return replace(state, columns=columns)


def add_join(state: QueryState) -> QueryState:
    """Append an INNER join between the first two selected tables.

    Both sides are left empty unless at least two tables are selected.
    """
    tables = state.selected_tables
    left_table, right_table = tables[:2] if len(tables) >= 2 else ("", "")
    join = Join(
        id=f"join-{state.next_id}",
        left_table=left_table,
        right_table=right_table,
    )
    return replace(state, joins=state.joins + (join,), next_id=state.next_id + 1)


def update_join(state: QueryState, join_id: str, **changes: Any) -> QueryState:
    join = state.get_join(join_id)
    if join is None:
        return state
    updated = _apply_patch(join, changes, _JOIN_FIELDS)
    joins = tuple(updated if j.id == join_id else j for j in state.joins)
    return replace(state, joins=joins)


def remove_join(state: QueryState, join_id: str) -> QueryState:
    if state.get_join(join_id) is None:
        return state
    return replace(state, joins=tuple(j for j in state.joins if j.id != join_id))


def add_predicate(state: QueryState) -> QueryState:
    """Append an empty ``= ''`` predicate connected with AND."""
    predicate = Predicate(id=f"pred-{state.next_id}")
    return replace(
        state,
        predicates=state.predicates + (predicate,),
        next_id=state.next_id + 1,
    )


def update_predicate(
    state: QueryState, predicate_id: str, **changes: Any
) -> QueryState:
    predicate = state.get_predicate(predicate_id)
    if predicate is None:
        return state
    updated = _apply_patch(predicate, changes, _PREDICATE_FIELDS)
    predicates = tuple(
        updated if p.id == predicate_id else p for p in state.predicates
    )
    return replace(state, predicates=predicates)


def remove_predicate(state: QueryState, predicate_id: str) -> QueryState:
    if state.get_predicate(predicate_id) is None:
        return state
    predicates = tuple(p for p in state.predicates if p.id != predicate_id)
    return replace(state, predicates=predicates)


def move_predicate(state: QueryState, predicate_id: str, index: int) -> QueryState:
    """Move a predicate so that it ends up at ``index``.

    Only indexes of existing positions are accepted; anything else is a
    no-op.
    """
    predicate = state.get_predicate(predicate_id)
    if predicate is None or not _is_index(index, len(state.predicates)):
        return state
    remaining = [p for p in state.predicates if p.id != predicate_id]
    remaining.insert(index, predicate)
    return replace(state, predicates=tuple(remaining))


def add_sort_key(state: QueryState) -> QueryState:
    return replace(state, sort_keys=state.sort_keys + (SortKey(),))


def update_sort_key(state: QueryState, index: int, **changes: Any) -> QueryState:
    if not _is_index(index, len(state.sort_keys)):
        return state
    sort_keys = list(state.sort_keys)
    sort_keys[index] = _apply_patch(sort_keys[index], changes, _SORT_KEY_FIELDS)
    return replace(state, sort_keys=tuple(sort_keys))


def remove_sort_key(state: QueryState, index: int) -> QueryState:
    if not _is_index(index, len(state.sort_keys)):
        return state
    sort_keys = state.sort_keys[:index] + state.sort_keys[index + 1 :]
    return replace(state, sort_keys=sort_keys)


def set_limit(state: QueryState, limit: Optional[int]) -> QueryState:
    """Set the row limit. None clears it; non-positive values are ignored."""
    if limit is None:
        return replace(state, limit=None)
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        logger.debug(f"set_limit ignored: {limit!r} is not a positive integer")
        return state
    return replace(state, limit=limit)


def reset(state: Optional[QueryState] = None) -> QueryState:
    """Return an empty state."""
    return QueryState()


def prune_to_catalog(state: QueryState, catalog: Catalog) -> QueryState:
    """Drop references that the catalog can no longer resolve.

    Tables missing from the catalog are removed with their usual cascade;
    columns missing from an otherwise known table are removed on their own.
    """
    for table_id in state.selected_tables:
        if table_id not in catalog:
            state = remove_table(state, table_id)
    columns = tuple(
        c
        for c in state.columns
        if catalog.get_column(c.table_id, c.column_id) is not None
    )
    if columns != state.columns:
        state = replace(state, columns=columns)
    return state


def _is_index(index: Any, length: int) -> bool:
    if isinstance(index, bool) or not isinstance(index, int):
        return False
    return 0 <= index < length


def _apply_patch(entity, changes: Dict[str, Any], fields: Dict[str, Optional[Type]]):
    """Apply the editable subset of ``changes`` to a frozen entity."""
    accepted: Dict[str, Any] = {}
    for name, value in changes.items():
        if name not in fields:
            logger.debug(f"Ignoring unknown field {name!r} for {type(entity).__name__}")
            continue
        enum_cls = fields[name]
        if enum_cls is None:
            accepted[name] = "" if value is None else str(value)
            continue
        member = coerce_enum(enum_cls, value)
        if member is None:
            logger.debug(f"Ignoring unsupported {name} value {value!r}")
            continue
        accepted[name] = member
    if not accepted:
        return entity
    return replace(entity, **accepted)
