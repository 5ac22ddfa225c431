"""Schema metadata classes."""

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class Column:
    """Column metadata."""

    id: str
    name: str
    type: str = ""
    nullable: bool = True

    def __repr__(self) -> str:
        return f"Column({self.id}, {self.type or '?'})"


@dataclass(frozen=True)
class Table:
    """Table metadata.

    Columns keep the order the catalog supplied them in.
    """

    id: str
    name: str
    columns: Tuple[Column, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # Accept any iterable of columns but store an immutable tuple
        if not isinstance(self.columns, tuple):
            object.__setattr__(self, "columns", tuple(self.columns))

    def get_column(self, column_id: str) -> Optional[Column]:
        """Get column by id."""
        for col in self.columns:
            if col.id == column_id:
                return col
        return None

    def column_ids(self) -> Tuple[str, ...]:
        return tuple(col.id for col in self.columns)

    def __repr__(self) -> str:
        return f"Table({self.id}, cols={len(self.columns)})"
