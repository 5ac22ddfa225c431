"""Catalog of tables and columns available for selection."""

from .catalog import Catalog, CatalogError, default_catalog, load_catalog
from .schema import Table, Column

__all__ = [
    "Catalog",
    "CatalogError",
    "Table",
    "Column",
    "default_catalog",
    "load_catalog",
]
