"""Tests for the qb shell helpers."""

from pathlib import Path

import pytest
from click.testing import CliRunner

from query_builder.cli.qb import CommandDispatcher, CommandError, QbRepl, build_store, cli
from query_builder.config import CatalogConfig, Config, RenderConfig
from query_builder.processor import SelectionStore
from query_builder.state import Operator


@pytest.fixture
def output():
    return []


@pytest.fixture
def dispatcher(store, output):
    return CommandDispatcher(store, output.append)


def _run(dispatcher, *lines):
    for line in lines:
        dispatcher.execute(line)


def test_build_store_defaults_to_demo_catalog():
    store = build_store(Config())
    assert store.catalog.table_ids() == ["users", "orders", "products"]
    assert store.dialect is None


def test_build_store_arguments_override_config():
    catalog_path = Path(__file__).parent.parent / "config" / "sample_catalog.yaml"
    if not catalog_path.exists():
        pytest.skip("Sample catalog not found")

    config = Config(
        catalog=CatalogConfig(path="/nonexistent.yaml"),
        render=RenderConfig(dialect="duckdb"),
    )
    store = build_store(config, catalog_path=str(catalog_path), dialect="postgres")

    assert store.dialect == "postgres"
    assert store.catalog.get_table("products") is not None


def test_build_store_rejects_unknown_dialect():
    with pytest.raises(ValueError):
        build_store(Config(render=RenderConfig(dialect="not-a-real-dialect")))


def test_commands_build_query(dispatcher, store, output):
    _run(
        dispatcher,
        "table add users",
        "table add orders",
        "column add users id",
        "column add orders total",
        "alias orders total amount",
        "join add",
        "join set join-1 left_column=id right_column=user_id type=LEFT",
        "where add",
        'where set pred-2 column=status operator="IS NOT NULL"',
        "order add",
        "order set 0 column=total direction=DESC",
        "limit 10",
    )

    assert store.sql == (
        "SELECT\n  users.id,\n  orders.total AS amount\n"
        "FROM\n  users,\n  orders\n"
        "LEFT JOIN orders ON users.id = orders.user_id\n"
        "WHERE\n  status IS NOT NULL ''\n"
        "ORDER BY\n  total DESC\n"
        "LIMIT 10;"
    )
    assert store.state.get_predicate("pred-2").operator is Operator.IS_NOT_NULL
    assert "added join-1" in output
    assert output[-1] == "-- tables: 2, columns: 2, joins: 1, predicates: 1"


def test_noop_commands_report_no_change(dispatcher, output):
    _run(dispatcher, "table add ghosts", "column add users id", "limit 0")
    assert output == ["(no change)"] * 3


def test_limit_none_and_reset(dispatcher, store):
    _run(dispatcher, "table add users", "limit 5", "limit none")
    assert store.state.limit is None
    _run(dispatcher, "reset")
    assert store.sql == "SELECT * FROM table_name;"


def test_where_move_and_remove(dispatcher, store):
    _run(dispatcher, "where add", "where add", "where move pred-2 0")
    assert [p.id for p in store.state.predicates] == ["pred-2", "pred-1"]
    _run(dispatcher, "where rm pred-2")
    assert [p.id for p in store.state.predicates] == ["pred-1"]


def test_table_rm_cascades(dispatcher, store):
    _run(
        dispatcher,
        "table add users",
        "table add orders",
        "column add orders total",
        "join add",
        "table rm orders",
    )
    assert store.state.columns == ()
    assert store.state.joins == ()


def test_tables_lists_catalog(dispatcher, output):
    _run(dispatcher, "tables")
    assert "Table: users" in output
    assert "Table: line_items (id: t_items)" in output
    assert "    - c_qty: INTEGER NULL" in output


def test_state_and_show(dispatcher, output):
    _run(dispatcher, "table add users", "column add users id", "alias users id uid")
    output.clear()
    _run(dispatcher, "state", "show")
    assert output[0] == "tables: users"
    assert "  column users.id AS uid" in output
    assert "SELECT\n  id AS uid\nFROM\n  users;" in output


CATALOG_YAML = """
tables:
  - id: users
    columns: [id]
"""


@pytest.mark.parametrize(
    "prune, expected_tables", [(False, ("users", "orders")), (True, ("users",))]
)
def test_catalog_command_replaces_catalog(store, output, tmp_path, prune, expected_tables):
    path = tmp_path / "catalog.yaml"
    path.write_text(CATALOG_YAML)
    dispatcher = CommandDispatcher(store, output.append, prune_on_replace=prune)
    _run(dispatcher, "table add users", "table add orders", "column add orders total")

    _run(dispatcher, f"catalog {path}")

    assert store.catalog.table_ids() == ["users"]
    assert store.state.selected_tables == expected_tables
    assert f"Loaded 1 tables from {path}" in output
    assert output[-2] == "SELECT * FROM table_name\nFROM\n  users;"


def test_catalog_command_reports_load_errors(dispatcher, tmp_path):
    with pytest.raises(CommandError):
        dispatcher.execute(f"catalog {tmp_path / 'missing.yaml'}")

    broken = tmp_path / "broken.yaml"
    broken.write_text("tables: {users: 1}\n")
    with pytest.raises(CommandError):
        dispatcher.execute(f"catalog {broken}")


def test_blank_line_is_ignored(dispatcher, output):
    dispatcher.execute("   ")
    assert output == []


@pytest.mark.parametrize(
    "line",
    [
        "frobnicate",
        "table",
        "table drop users",
        "column add users",
        "alias users",
        "join set join-1",
        "join set join-1 type",
        "order rm first",
        "limit many",
        'where set pred-1 column="unterminated',
        "reset now",
    ],
)
def test_malformed_commands_raise(dispatcher, line):
    with pytest.raises(CommandError):
        dispatcher.execute(line)


def test_dispatcher_works_with_dialect(catalog, output):
    store = SelectionStore(catalog, dialect="postgres")
    dispatcher = CommandDispatcher(store, output.append)
    _run(dispatcher, "table add users", "column add users email")
    assert store.sql.endswith(";")
    assert store.sql in output


class ScriptedSession:
    """Stands in for the prompt session; raises EOFError when out of lines."""

    def __init__(self, lines):
        self.lines = list(lines)

    def prompt(self, message):
        if not self.lines:
            raise EOFError
        return self.lines.pop(0)


def _repl(dispatcher, monkeypatch, tmp_path, lines):
    monkeypatch.setattr(QbRepl, "_create_session", lambda self: ScriptedSession(lines))
    return QbRepl(dispatcher, history_path=tmp_path / "history")


def test_repl_survives_unexpected_errors(store, monkeypatch, tmp_path, capsys):
    executed = []

    def execute(line):
        executed.append(line)
        if line == "boom":
            raise RuntimeError("renderer exploded")
        if line == "bad":
            raise CommandError("Unknown command: bad")

    dispatcher = CommandDispatcher(store, lambda text: None)
    monkeypatch.setattr(dispatcher, "execute", execute)

    _repl(dispatcher, monkeypatch, tmp_path, ["boom", "bad", "show", "\\q", "never"]).run()

    out = capsys.readouterr().out
    assert "unexpected error: renderer exploded" in out
    assert "error: Unknown command: bad" in out
    assert executed == ["boom", "bad", "show"]


def test_build_store_passes_session():
    store = build_store(Config(), session="cafe0001")
    assert store.session == "cafe0001"


def test_cli_reports_malformed_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("render: postgres\n")

    result = CliRunner().invoke(cli, ["-c", str(path)])

    assert result.exit_code != 0
    assert "Config section 'render' must be a mapping" in result.output
    assert "Traceback" not in result.output
