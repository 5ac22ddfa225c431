"""Shared fixtures for query builder tests."""

import pytest

from query_builder.catalog import Catalog, Column, Table
from query_builder.processor import SelectionStore


@pytest.fixture
def catalog():
    """Catalog with users, orders and a table whose display name differs from its id."""
    return Catalog(
        [
            Table(
                id="users",
                name="users",
                columns=[
                    Column("id", "id", "INTEGER", nullable=False),
                    Column("email", "email", "VARCHAR", nullable=False),
                    Column("name", "name", "VARCHAR"),
                ],
            ),
            Table(
                id="orders",
                name="orders",
                columns=[
                    Column("id", "id", "INTEGER", nullable=False),
                    Column("user_id", "user_id", "INTEGER", nullable=False),
                    Column("total", "total", "DECIMAL", nullable=False),
                    Column("status", "status", "VARCHAR"),
                ],
            ),
            Table(
                id="t_items",
                name="line_items",
                columns=[
                    Column("c_sku", "sku", "VARCHAR", nullable=False),
                    Column("c_qty", "quantity", "INTEGER"),
                ],
            ),
        ]
    )


@pytest.fixture
def store(catalog):
    return SelectionStore(catalog)


@pytest.fixture
def joined_store(store):
    """Store holding users and orders with an INNER join between them."""
    store.add_table("users")
    store.add_table("orders")
    store.add_column("users", "id")
    store.add_column("orders", "total")
    join_id = store.add_join()
    store.update_join(
        join_id,
        type="INNER",
        left_table="users",
        right_table="orders",
        left_column="id",
        right_column="user_id",
    )
    return store
