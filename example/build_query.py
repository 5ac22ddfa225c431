"""Example: assemble a query step by step and print the SQL after each step."""

from query_builder.catalog import default_catalog
from query_builder.processor import SelectionStore


def show(store: SelectionStore, title: str) -> None:
    snapshot = store.snapshot()
    print(f"-- {title} (version {snapshot.version})")
    print(snapshot.sql)
    print(f"-- {snapshot.statistics.as_dict()}")
    print()


def main():
    store = SelectionStore(default_catalog())
    show(store, "empty")

    store.add_table("users")
    store.add_column("users", "id")
    store.add_column("users", "email")
    show(store, "one table")

    store.add_table("orders")
    store.add_column("orders", "total")
    store.set_alias("orders", "total", "order_total")
    join_id = store.add_join()
    store.update_join(join_id, left_column="id", right_column="user_id")
    show(store, "joined")

    first = store.add_predicate()
    store.update_predicate(first, column="orders.status", value="active")
    second = store.add_predicate()
    store.update_predicate(second, column="orders.total", operator=">", value="100")
    index = store.add_sort_key()
    store.update_sort_key(index, column="orders.total", direction="DESC")
    store.set_limit(20)
    show(store, "filtered")

    store.remove_table("orders")
    show(store, "orders removed")

    postgres = SelectionStore(default_catalog(), dialect="postgres", state=store.state)
    show(postgres, "postgres dialect")


if __name__ == "__main__":
    main()
