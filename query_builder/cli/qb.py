"""Interactive shell for building queries from the terminal."""

from __future__ import annotations

import shlex
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import click
from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory

from ..catalog import Catalog, default_catalog, load_catalog
from ..config import Config, load_config
from ..processor import SelectionStore, Snapshot
from ..state.model import QueryState
from ..utils.logging import get_session_logger, setup_logging

HELP_TEXT = """\
Commands:
  tables                              list catalog tables
  catalog <path>                      replace the catalog from a YAML file
  table add|rm <table>
  column add|rm <table> <column>
  alias <table> <column> [alias]      omit alias to clear it
  join add
  join set <id> <field>=<value>...    fields: left_table right_table left_column right_column type
  join rm <id>
  where add
  where set <id> <field>=<value>...   fields: column operator value logic
  where move <id> <index>
  where rm <id>
  order add
  order set <index> <field>=<value>... fields: column direction
  order rm <index>
  limit <n>|none
  reset
  show                                print SQL and statistics
  state                               print current selections
  help
  \\q | quit | exit"""


class CommandError(Exception):
    """Raised for malformed shell commands."""


class CatalogPrinter:
    """Prints catalog metadata in a readable format."""

    def __init__(self, emit):
        self.emit = emit

    def display_catalog(self, catalog: Catalog) -> None:
        if len(catalog) == 0:
            self.emit("Catalog is empty.")
            return
        for table in catalog:
            header = f"Table: {table.name}"
            if table.id != table.name:
                header += f" (id: {table.id})"
            self.emit(header)
            self._print_columns(table)

    def _print_columns(self, table) -> None:
        for column in table.columns:
            nullable = "NULL" if column.nullable else "NOT NULL"
            type_label = column.type or "?"
            self.emit(f"    - {column.id}: {type_label} {nullable}")


class SnapshotPrinter:
    """Prints rendered SQL and the statistics line."""

    def __init__(self, emit):
        self.emit = emit

    def display(self, snapshot: Snapshot) -> None:
        self.emit(snapshot.sql)
        stats = snapshot.statistics
        self.emit(
            f"-- tables: {stats.table_count}, columns: {stats.column_count}, "
            f"joins: {stats.join_count}, predicates: {stats.predicate_count}"
        )

    def display_state(self, state: QueryState) -> None:
        self.emit(f"tables: {', '.join(state.selected_tables) or '(none)'}")
        for col in state.columns:
            alias = f" AS {col.alias}" if col.alias else ""
            self.emit(f"  column {col.table_id}.{col.column_id}{alias}")
        for join in state.joins:
            self.emit(
                f"  {join.id}: {join.type.value} {join.left_table}.{join.left_column}"
                f" = {join.right_table}.{join.right_column}"
            )
        for predicate in state.predicates:
            self.emit(
                f"  {predicate.id}: {predicate.logic.value} {predicate.column} "
                f"{predicate.operator.value} '{predicate.value}'"
            )
        for index, key in enumerate(state.sort_keys):
            self.emit(f"  order[{index}]: {key.column} {key.direction.value}")
        if state.limit is not None:
            self.emit(f"  limit: {state.limit}")


class CommandDispatcher:
    """Parses shell commands and applies them to a selection store."""

    def __init__(
        self,
        store: SelectionStore,
        emit: Callable[[str], None],
        prune_on_replace: bool = False,
    ):
        self.store = store
        self.emit = emit
        self.prune_on_replace = prune_on_replace
        self.catalog_printer = CatalogPrinter(emit)
        self.printer = SnapshotPrinter(emit)
        self._handlers: Dict[str, Callable[[List[str]], None]] = {
            "tables": self._cmd_tables,
            "catalog": self._cmd_catalog,
            "table": self._cmd_table,
            "column": self._cmd_column,
            "alias": self._cmd_alias,
            "join": self._cmd_join,
            "where": self._cmd_where,
            "order": self._cmd_order,
            "limit": self._cmd_limit,
            "reset": self._cmd_reset,
            "show": self._cmd_show,
            "state": self._cmd_state,
            "help": self._cmd_help,
        }

    def execute(self, line: str) -> None:
        """Run one command line.

        Raises:
            CommandError: If the command is unknown or malformed
        """
        try:
            tokens = shlex.split(line)
        except ValueError as exc:
            raise CommandError(str(exc)) from exc
        if not tokens:
            return
        name, args = tokens[0].lower(), tokens[1:]
        handler = self._handlers.get(name)
        if handler is None:
            raise CommandError(f"Unknown command: {name}. Type 'help' for commands.")
        handler(args)

    def _report(self, changed: bool) -> None:
        if changed:
            self.printer.display(self.store.snapshot())
        else:
            self.emit("(no change)")

    def _cmd_tables(self, args: List[str]) -> None:
        self._expect_count(args, 0, "tables")
        self.catalog_printer.display_catalog(self.store.catalog)

    def _cmd_catalog(self, args: List[str]) -> None:
        self._expect_count(args, 1, "catalog <path>")
        try:
            catalog = load_catalog(args[0])
        except (OSError, ValueError) as exc:
            raise CommandError(f"Could not load catalog: {exc}") from exc
        self.store.replace_catalog(catalog, prune=self.prune_on_replace)
        self.emit(f"Loaded {len(catalog)} tables from {args[0]}")
        self.printer.display(self.store.snapshot())

    def _cmd_table(self, args: List[str]) -> None:
        action, rest = self._split_action(args, "table", ("add", "rm"))
        self._expect_count(rest, 1, f"table {action} <table>")
        if action == "add":
            self._report(self.store.add_table(rest[0]))
        else:
            self._report(self.store.remove_table(rest[0]))

    def _cmd_column(self, args: List[str]) -> None:
        action, rest = self._split_action(args, "column", ("add", "rm"))
        self._expect_count(rest, 2, f"column {action} <table> <column>")
        if action == "add":
            self._report(self.store.add_column(rest[0], rest[1]))
        else:
            self._report(self.store.remove_column(rest[0], rest[1]))

    def _cmd_alias(self, args: List[str]) -> None:
        if len(args) not in (2, 3):
            raise CommandError("usage: alias <table> <column> [alias]")
        alias = args[2] if len(args) == 3 else None
        self._report(self.store.set_alias(args[0], args[1], alias))

    def _cmd_join(self, args: List[str]) -> None:
        action, rest = self._split_action(args, "join", ("add", "set", "rm"))
        if action == "add":
            self._expect_count(rest, 0, "join add")
            join_id = self.store.add_join()
            self.emit(f"added {join_id}")
            self._report(True)
        elif action == "set":
            join_id, changes = self._parse_patch(rest, "join set <id> <field>=<value>...")
            self._report(self.store.update_join(join_id, **changes))
        else:
            self._expect_count(rest, 1, "join rm <id>")
            self._report(self.store.remove_join(rest[0]))

    def _cmd_where(self, args: List[str]) -> None:
        action, rest = self._split_action(args, "where", ("add", "set", "move", "rm"))
        if action == "add":
            self._expect_count(rest, 0, "where add")
            predicate_id = self.store.add_predicate()
            self.emit(f"added {predicate_id}")
            self._report(True)
        elif action == "set":
            predicate_id, changes = self._parse_patch(
                rest, "where set <id> <field>=<value>..."
            )
            self._report(self.store.update_predicate(predicate_id, **changes))
        elif action == "move":
            self._expect_count(rest, 2, "where move <id> <index>")
            index = self._parse_int(rest[1])
            self._report(self.store.move_predicate(rest[0], index))
        else:
            self._expect_count(rest, 1, "where rm <id>")
            self._report(self.store.remove_predicate(rest[0]))

    def _cmd_order(self, args: List[str]) -> None:
        action, rest = self._split_action(args, "order", ("add", "set", "rm"))
        if action == "add":
            self._expect_count(rest, 0, "order add")
            index = self.store.add_sort_key()
            self.emit(f"added order[{index}]")
            self._report(True)
        elif action == "set":
            raw_index, changes = self._parse_patch(
                rest, "order set <index> <field>=<value>..."
            )
            index = self._parse_int(raw_index)
            self._report(self.store.update_sort_key(index, **changes))
        else:
            self._expect_count(rest, 1, "order rm <index>")
            self._report(self.store.remove_sort_key(self._parse_int(rest[0])))

    def _cmd_limit(self, args: List[str]) -> None:
        self._expect_count(args, 1, "limit <n>|none")
        if args[0].lower() == "none":
            self._report(self.store.set_limit(None))
            return
        self._report(self.store.set_limit(self._parse_int(args[0])))

    def _cmd_reset(self, args: List[str]) -> None:
        self._expect_count(args, 0, "reset")
        self._report(self.store.reset())

    def _cmd_show(self, args: List[str]) -> None:
        self._expect_count(args, 0, "show")
        self.printer.display(self.store.snapshot())

    def _cmd_state(self, args: List[str]) -> None:
        self._expect_count(args, 0, "state")
        self.printer.display_state(self.store.state)

    def _cmd_help(self, args: List[str]) -> None:
        self.emit(HELP_TEXT)

    def _split_action(
        self, args: List[str], command: str, actions: Tuple[str, ...]
    ) -> Tuple[str, List[str]]:
        if not args or args[0].lower() not in actions:
            raise CommandError(f"usage: {command} {'|'.join(actions)} ...")
        return args[0].lower(), args[1:]

    def _expect_count(self, args: List[str], count: int, usage: str) -> None:
        if len(args) != count:
            raise CommandError(f"usage: {usage}")

    def _parse_patch(self, args: List[str], usage: str) -> Tuple[str, Dict[str, str]]:
        if len(args) < 2:
            raise CommandError(f"usage: {usage}")
        changes: Dict[str, str] = {}
        for pair in args[1:]:
            field_name, sep, value = pair.partition("=")
            if not sep or not field_name:
                raise CommandError(f"Expected <field>=<value>, got: {pair}")
            changes[field_name] = value
        return args[0], changes

    def _parse_int(self, raw: str) -> int:
        try:
            return int(raw)
        except ValueError as exc:
            raise CommandError(f"Expected an integer, got: {raw}") from exc


class QbRepl:
    """Interactive loop with full terminal support."""

    def __init__(self, dispatcher: CommandDispatcher, history_path: Optional[Path] = None):
        self.dispatcher = dispatcher
        self.history_path = history_path or Path(".qb_history")
        self.session = self._create_session()

    def _create_session(self) -> PromptSession:
        """Create prompt session backed by persistent history."""
        if not self.history_path.exists():
            self.history_path.touch()
        history = FileHistory(str(self.history_path))
        return PromptSession(history=history, auto_suggest=AutoSuggestFromHistory())

    def run(self) -> None:
        while True:
            line, should_continue = self._read_line()
            if not should_continue:
                break
            if line is None:
                continue
            if self._is_exit_command(line):
                break
            self._execute(line)

    def _read_line(self) -> Tuple[Optional[str], bool]:
        try:
            return self.session.prompt("qb> "), True
        except EOFError:
            click.echo("")
            return None, False
        except KeyboardInterrupt:
            click.echo("")
            return None, True

    def _is_exit_command(self, line: str) -> bool:
        return line.strip().lower() in ("\\q", "quit", "exit")

    def _execute(self, line: str) -> None:
        try:
            self.dispatcher.execute(line)
        except CommandError as exc:
            click.echo(f"error: {exc}")
        except Exception as exc:
            click.echo(f"unexpected error: {exc}")


def build_store(
    config: Config,
    catalog_path: Optional[str] = None,
    dialect: Optional[str] = None,
    session: Optional[str] = None,
) -> SelectionStore:
    """Create a store from configuration; explicit arguments win."""
    path = catalog_path or config.catalog.path
    catalog = load_catalog(path) if path else default_catalog()
    return SelectionStore(
        catalog, dialect=dialect or config.render.dialect, session=session
    )


def _load_config_bundle(config_path: Optional[str]) -> Config:
    if config_path:
        return load_config(config_path)
    return Config()


@click.command()
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, readable=True),
    help="Path to YAML config file.",
)
@click.option(
    "--catalog",
    "catalog_path",
    type=click.Path(exists=True, dir_okay=False, readable=True),
    help="Path to YAML catalog file. Defaults to a demo catalog.",
)
@click.option("--dialect", default=None, help="sqlglot dialect for the rendered SQL.")
def cli(
    config_path: Optional[str], catalog_path: Optional[str], dialect: Optional[str]
) -> None:
    """Entry point for the qb shell."""
    try:
        config = _load_config_bundle(config_path)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    setup_logging(config.logging)
    try:
        store = build_store(config, catalog_path, dialect)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    session_logger = get_session_logger(__name__, store.session)
    session_logger.info(
        f"Session started with {len(store.catalog)} tables, dialect={store.dialect}"
    )
    click.echo("Type 'help' for commands. Use \\q to exit.")
    dispatcher = CommandDispatcher(
        store, click.echo, prune_on_replace=config.catalog.prune_on_replace
    )
    QbRepl(dispatcher).run()
    session_logger.info("Session ended", extra={"version": store.version})
