"""Render a ``QueryState`` into SQL text."""

import logging
from typing import List, Optional

import sqlglot
from sqlglot import errors as sqlglot_errors
from sqlglot.dialects.dialect import Dialect

from ..catalog import Catalog, Table
from ..state.model import Join, Predicate, QueryState, SelectedColumn

logger = logging.getLogger(__name__)

FALLBACK_SELECT = "SELECT * FROM table_name"
INDENT = "  "
LIST_SEPARATOR = ",\n" + INDENT


class QueryRenderer:
    """Builds SQL text clause by clause.

    Output depends only on the state value and the catalog, so rendering the
    same state twice yields identical text.
    """

    def __init__(self, catalog: Catalog, dialect: Optional[str] = None):
        """Initialize renderer.

        Args:
            catalog: Catalog used to resolve table and column names
            dialect: Optional sqlglot dialect to transpile the output into.
                Unknown dialect names raise ValueError.
        """
        if dialect:
            Dialect.get_or_raise(dialect)
        self.catalog = catalog
        self.dialect = dialect

    def render(self, state: QueryState) -> str:
        """Render state to SQL terminated by a single ``;``."""
        clauses: List[str] = []
        clauses.append(self._select_clause(state))
        self._append(clauses, self._from_clause(state))
        clauses.extend(self._join_lines(state))
        self._append(clauses, self._where_clause(state))
        self._append(clauses, self._group_by_clause(state))
        self._append(clauses, self._order_by_clause(state))
        self._append(clauses, self._limit_clause(state))

        sql = "\n".join(clauses).strip()
        if self.dialect:
            return self._transpile(sql)
        return sql + ";"

    def _append(self, clauses: List[str], clause: Optional[str]) -> None:
        if clause:
            clauses.append(clause)

    def _select_clause(self, state: QueryState) -> str:
        if not state.columns:
            return FALLBACK_SELECT

        qualify = len(state.selected_tables) > 1
        items: List[str] = []
        for selected in state.columns:
            item = self._select_item(selected, qualify)
            if item is not None:
                items.append(item)
        if not items:
            # Every selected column went stale after a catalog replacement
            return FALLBACK_SELECT
        return "SELECT\n" + INDENT + LIST_SEPARATOR.join(items)

    def _select_item(self, selected: SelectedColumn, qualify: bool) -> Optional[str]:
        table = self.catalog.get_table(selected.table_id)
        if table is None:
            return None
        column = table.get_column(selected.column_id)
        if column is None:
            return None

        item = column.name
        if qualify:
            item = f"{table.name}.{column.name}"
        if selected.alias:
            item += f" AS {selected.alias}"
        return item

    def _from_clause(self, state: QueryState) -> Optional[str]:
        names: List[str] = []
        for table_id in state.selected_tables:
            table = self.catalog.get_table(table_id)
            if table is not None:
                names.append(table.name)
        if not names:
            return None
        return "FROM\n" + INDENT + LIST_SEPARATOR.join(names)

    def _join_lines(self, state: QueryState) -> List[str]:
        lines: List[str] = []
        for join in state.joins:
            line = self._join_line(state, join)
            if line is not None:
                lines.append(line)
        return lines

    def _join_line(self, state: QueryState, join: Join) -> Optional[str]:
        left = self._selected_table(state, join.left_table)
        right = self._selected_table(state, join.right_table)
        if left is None or right is None:
            return None
        return (
            f"{join.type.value} JOIN {right.name} "
            f"ON {left.name}.{join.left_column} = {right.name}.{join.right_column}"
        )

    def _selected_table(self, state: QueryState, table_id: str) -> Optional[Table]:
        if not state.is_table_selected(table_id):
            return None
        return self.catalog.get_table(table_id)

    def _where_clause(self, state: QueryState) -> Optional[str]:
        if not state.predicates:
            return None
        conditions: List[str] = []
        for index, predicate in enumerate(state.predicates):
            conditions.append(self._condition(predicate, index == 0))
        return "WHERE\n" + INDENT + ("\n" + INDENT).join(conditions)

    def _condition(self, predicate: Predicate, first: bool) -> str:
        prefix = "" if first else f"{predicate.logic.value} "
        # Value is quoted as-is, null checks included
        return (
            f"{prefix}{predicate.column} {predicate.operator.value} "
            f"'{predicate.value}'"
        )

    def _group_by_clause(self, state: QueryState) -> Optional[str]:
        if not state.group_by:
            return None
        return "GROUP BY\n" + INDENT + LIST_SEPARATOR.join(state.group_by)

    def _order_by_clause(self, state: QueryState) -> Optional[str]:
        if not state.sort_keys:
            return None
        keys = [f"{key.column} {key.direction.value}" for key in state.sort_keys]
        return "ORDER BY\n" + INDENT + LIST_SEPARATOR.join(keys)

    def _limit_clause(self, state: QueryState) -> Optional[str]:
        if state.limit is None:
            return None
        return f"LIMIT {state.limit}"

    def _transpile(self, sql: str) -> str:
        """Rewrite generic SQL into the configured dialect.

        Incomplete states often produce text sqlglot cannot parse; those are
        returned in the generic form.
        """
        try:
            statements = sqlglot.transpile(sql, write=self.dialect, pretty=True)
        except sqlglot_errors.SqlglotError as exc:
            logger.warning(
                f"Could not transpile query to {self.dialect}, "
                f"keeping generic SQL: {exc}"
            )
            return sql + ";"
        return ";\n".join(statements) + ";"


def render(
    state: QueryState, catalog: Catalog, dialect: Optional[str] = None
) -> str:
    """Render state to SQL text.

    Args:
        state: Query state to render
        catalog: Catalog used to resolve names
        dialect: Optional sqlglot dialect name

    Returns:
        SQL text ending in ``;``
    """
    return QueryRenderer(catalog, dialect=dialect).render(state)
