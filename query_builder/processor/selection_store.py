"""Selection store: owner of the current query state."""

from dataclasses import dataclass
from typing import Any, Optional

from ..catalog import Catalog
from ..render import QueryRenderer, QueryStatistics, compute_statistics
from ..state import mutations
from ..state.model import QueryState
from ..utils.logging import get_session_logger


@dataclass(frozen=True)
class Snapshot:
    """SQL and statistics derived from one state value."""

    version: int
    state: QueryState
    sql: str
    statistics: QueryStatistics


class SelectionStore:
    """Holds the query state and applies mutations to it.

    Every mutation swaps in a new ``QueryState`` value. ``version`` is bumped
    whenever the state changes and keys the cached snapshot, so SQL and
    statistics are always derived from the same state.
    """

    def __init__(
        self,
        catalog: Catalog,
        dialect: Optional[str] = None,
        state: Optional[QueryState] = None,
        session: Optional[str] = None,
    ):
        """Initialize store.

        Args:
            catalog: Catalog of selectable tables
            dialect: Optional sqlglot dialect for rendered SQL
            state: Initial state, empty when omitted
            session: Session id stamped on log records, generated when omitted
        """
        self._log = get_session_logger(__name__, session)
        self._catalog = catalog
        self._renderer = QueryRenderer(catalog, dialect=dialect)
        self._state = state if state is not None else QueryState()
        self._version = 0
        self._snapshot: Optional[Snapshot] = None

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    @property
    def session(self) -> str:
        return self._log.session

    @property
    def dialect(self) -> Optional[str]:
        return self._renderer.dialect

    @property
    def state(self) -> QueryState:
        return self._state

    @property
    def version(self) -> int:
        return self._version

    @property
    def sql(self) -> str:
        return self.snapshot().sql

    @property
    def statistics(self) -> QueryStatistics:
        return self.snapshot().statistics

    def snapshot(self) -> Snapshot:
        """Return SQL and statistics for the current state."""
        if self._snapshot is None or self._snapshot.version != self._version:
            state = self._state
            self._snapshot = Snapshot(
                version=self._version,
                state=state,
                sql=self._renderer.render(state),
                statistics=compute_statistics(state),
            )
        return self._snapshot

    def replace_catalog(self, catalog: Catalog, prune: bool = False) -> None:
        """Swap the catalog wholesale.

        Selections referring to tables or columns the new catalog lacks are
        kept unless ``prune`` is set; the renderer skips them either way.
        """
        self._catalog = catalog
        self._renderer = QueryRenderer(catalog, dialect=self._renderer.dialect)
        self._version += 1
        self._log.debug(
            f"Replaced catalog ({len(catalog)} tables, prune={prune})",
            extra={"operation": "replace_catalog", "version": self._version},
        )
        if prune:
            self._commit(mutations.prune_to_catalog(self._state, catalog), "prune")

    # Table and column selection

    def add_table(self, table_id: str) -> bool:
        return self._commit(
            mutations.add_table(self._state, table_id, self._catalog), "add_table"
        )

    def remove_table(self, table_id: str) -> bool:
        return self._commit(mutations.remove_table(self._state, table_id), "remove_table")

    def add_column(self, table_id: str, column_id: str) -> bool:
        return self._commit(
            mutations.add_column(self._state, table_id, column_id, self._catalog),
            "add_column",
        )

    def remove_column(self, table_id: str, column_id: str) -> bool:
        return self._commit(
            mutations.remove_column(self._state, table_id, column_id), "remove_column"
        )

    def set_alias(self, table_id: str, column_id: str, alias: Optional[str]) -> bool:
        return self._commit(
            mutations.set_alias(self._state, table_id, column_id, alias), "set_alias"
        )

    # Joins

    def add_join(self) -> str:
        """Append a join and return its id."""
        self._commit(mutations.add_join(self._state), "add_join")
        return self._state.joins[-1].id

    def update_join(self, join_id: str, **changes: Any) -> bool:
        return self._commit(
            mutations.update_join(self._state, join_id, **changes), "update_join"
        )

    def remove_join(self, join_id: str) -> bool:
        return self._commit(mutations.remove_join(self._state, join_id), "remove_join")

    # Predicates

    def add_predicate(self) -> str:
        """Append a predicate and return its id."""
        self._commit(mutations.add_predicate(self._state), "add_predicate")
        return self._state.predicates[-1].id

    def update_predicate(self, predicate_id: str, **changes: Any) -> bool:
        return self._commit(
            mutations.update_predicate(self._state, predicate_id, **changes),
            "update_predicate",
        )

    def remove_predicate(self, predicate_id: str) -> bool:
        return self._commit(
            mutations.remove_predicate(self._state, predicate_id), "remove_predicate"
        )

    def move_predicate(self, predicate_id: str, index: int) -> bool:
        return self._commit(
            mutations.move_predicate(self._state, predicate_id, index),
            "move_predicate",
        )

    # Ordering and limit

    def add_sort_key(self) -> int:
        """Append a sort key and return its index."""
        self._commit(mutations.add_sort_key(self._state), "add_sort_key")
        return len(self._state.sort_keys) - 1

    def update_sort_key(self, index: int, **changes: Any) -> bool:
        return self._commit(
            mutations.update_sort_key(self._state, index, **changes),
            "update_sort_key",
        )

    def remove_sort_key(self, index: int) -> bool:
        return self._commit(
            mutations.remove_sort_key(self._state, index), "remove_sort_key"
        )

    def set_limit(self, limit: Optional[int]) -> bool:
        return self._commit(mutations.set_limit(self._state, limit), "set_limit")

    def reset(self) -> bool:
        return self._commit(mutations.reset(self._state), "reset")

    def _commit(self, new_state: QueryState, operation: str) -> bool:
        """Install ``new_state``; return whether anything changed."""
        if new_state is self._state or new_state == self._state:
            self._log.debug(
                f"{operation}: no change",
                extra={"operation": operation, "version": self._version},
            )
            # Equal states can still differ in next_id
            self._state = new_state
            return False
        self._state = new_state
        self._version += 1
        return True
