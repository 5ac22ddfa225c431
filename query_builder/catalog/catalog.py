"""Catalog of tables available to the query builder."""

from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional

import yaml

from .schema import Column, Table


class CatalogError(ValueError):
    """Raised when a catalog document is malformed."""


class Catalog:
    """Read-only, ordered inventory of tables and their columns."""

    def __init__(self, tables: Optional[Iterable[Table]] = None):
        """Initialize catalog.

        Args:
            tables: Tables in display order. A later table with a duplicate
                id replaces the earlier one in place.
        """
        self._tables: Dict[str, Table] = {}
        for table in tables or []:
            self._tables[table.id] = table

    @property
    def tables(self) -> List[Table]:
        return list(self._tables.values())

    def table_ids(self) -> List[str]:
        return list(self._tables.keys())

    def get_table(self, table_id: str) -> Optional[Table]:
        """Get table by id.

        Args:
            table_id: Table identity

        Returns:
            Table if found, None otherwise
        """
        return self._tables.get(table_id)

    def get_column(self, table_id: str, column_id: str) -> Optional[Column]:
        """Get a column by table id and column id.

        Args:
            table_id: Table identity
            column_id: Column identity within the table

        Returns:
            Column if both table and column exist, None otherwise
        """
        table = self.get_table(table_id)
        if table:
            return table.get_column(column_id)
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Catalog":
        """Build a catalog from a parsed document.

        Expected shape::

            tables:
              - id: users
                name: users
                columns:
                  - {id: id, name: id, type: INTEGER, nullable: false}

        Args:
            data: Parsed YAML/JSON document

        Returns:
            Catalog with the tables in document order

        Raises:
            CatalogError: If the document does not have the expected shape
        """
        if not isinstance(data, dict):
            raise CatalogError("Catalog document must be a mapping")
        raw_tables = data.get("tables", [])
        if not isinstance(raw_tables, list):
            raise CatalogError("'tables' must be a list")

        tables = []
        for index, raw_table in enumerate(raw_tables):
            tables.append(_parse_table(raw_table, index))
        return cls(tables)

    def __contains__(self, table_id: object) -> bool:
        return table_id in self._tables

    def __iter__(self) -> Iterator[Table]:
        return iter(self._tables.values())

    def __len__(self) -> int:
        return len(self._tables)

    def __repr__(self) -> str:
        return f"Catalog(tables={len(self._tables)})"


def _parse_table(raw_table: Any, index: int) -> Table:
    if not isinstance(raw_table, dict) or "id" not in raw_table:
        raise CatalogError(f"Table entry #{index} must be a mapping with an 'id'")
    table_id = str(raw_table["id"])
    raw_columns = raw_table.get("columns", [])
    if not isinstance(raw_columns, list):
        raise CatalogError(f"Columns of table '{table_id}' must be a list")

    columns = []
    for raw_column in raw_columns:
        if isinstance(raw_column, str):
            # Shorthand: a bare column name
            columns.append(Column(id=raw_column, name=raw_column))
            continue
        if not isinstance(raw_column, dict) or "id" not in raw_column:
            raise CatalogError(
                f"Column entries of table '{table_id}' need an 'id'"
            )
        column_id = str(raw_column["id"])
        nullable = raw_column.get("nullable", True)
        if not isinstance(nullable, bool):
            raise CatalogError(
                f"'nullable' of column '{table_id}.{column_id}' must be true or false"
            )
        columns.append(
            Column(
                id=column_id,
                name=str(raw_column.get("name", column_id)),
                type=str(raw_column.get("type", "")),
                nullable=nullable,
            )
        )

    return Table(
        id=table_id,
        name=str(raw_table.get("name", table_id)),
        columns=columns,
    )


def load_catalog(catalog_path: str) -> Catalog:
    """Load a catalog from a YAML file.

    Args:
        catalog_path: Path to YAML catalog file

    Returns:
        Parsed catalog

    Raises:
        FileNotFoundError: If the file does not exist
        CatalogError: If the file is not valid YAML or not a catalog document
    """
    path = Path(catalog_path)
    if not path.exists():
        raise FileNotFoundError(f"Catalog file not found: {catalog_path}")

    with open(path, "r") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise CatalogError(f"Invalid YAML in {catalog_path}: {exc}") from exc

    if data is None:
        return Catalog()
    return Catalog.from_dict(data)


def default_catalog() -> Catalog:
    """Demo catalog used when no catalog file is configured."""
    return Catalog(
        [
            Table(
                id="users",
                name="users",
                columns=[
                    Column("id", "id", "INTEGER", nullable=False),
                    Column("name", "name", "VARCHAR", nullable=False),
                    Column("email", "email", "VARCHAR", nullable=False),
                    Column("age", "age", "INTEGER"),
                    Column("created_at", "created_at", "TIMESTAMP", nullable=False),
                ],
            ),
            Table(
                id="orders",
                name="orders",
                columns=[
                    Column("id", "id", "INTEGER", nullable=False),
                    Column("user_id", "user_id", "INTEGER", nullable=False),
                    Column("total", "total", "DECIMAL", nullable=False),
                    Column("status", "status", "VARCHAR", nullable=False),
                    Column("created_at", "created_at", "TIMESTAMP", nullable=False),
                ],
            ),
            Table(
                id="products",
                name="products",
                columns=[
                    Column("id", "id", "INTEGER", nullable=False),
                    Column("title", "title", "VARCHAR", nullable=False),
                    Column("price", "price", "DECIMAL", nullable=False),
                    Column("stock", "stock", "INTEGER"),
                    Column("category", "category", "VARCHAR"),
                ],
            ),
        ]
    )
