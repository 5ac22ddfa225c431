"""Summary counts displayed next to the rendered query."""

from dataclasses import dataclass
from typing import Dict

from ..state.model import QueryState


@dataclass(frozen=True)
class QueryStatistics:
    """Cardinalities of the state collections."""

    table_count: int = 0
    column_count: int = 0
    join_count: int = 0
    predicate_count: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {
            "tableCount": self.table_count,
            "columnCount": self.column_count,
            "joinCount": self.join_count,
            "predicateCount": self.predicate_count,
        }


def compute_statistics(state: QueryState) -> QueryStatistics:
    return QueryStatistics(
        table_count=len(state.selected_tables),
        column_count=len(state.columns),
        join_count=len(state.joins),
        predicate_count=len(state.predicates),
    )
