import io

import pytest

from boba.config import ConnectionConfig
from boba.executor import QueryResult, WriteOutcome
from boba.pagination import PaginationWindow
from boba.session import (
    Connecting,
    FreeQuery,
    HistoryView,
    MainMenu,
    TableBrowse,
    TableList,
)
from boba.terminal import TerminalApp, theme_for
from boba.terminal.screens import render_view
from boba.terminal.theme import DARK, LIGHT, PLAIN
from conftest import DriverError


@pytest.fixture
def terminal(controller):
    return TerminalApp(controller, PLAIN, output=io.StringIO())


def output_of(terminal):
    return terminal.output.getvalue()


# Screens

def test_connecting_masks_password():
    text = render_view(Connecting(ConnectionConfig(password="hunter2")), PLAIN)
    assert "Host:     localhost" in text
    assert "Password: ****" in text
    assert "hunter2" not in text
    assert "Database: (required)" in text


def test_empty_result_says_no_rows():
    view = FreeQuery(input_text="SELECT 1 WHERE 0",
                     outcome=QueryResult(("id",), ()))
    assert "No rows returned." in render_view(view, PLAIN)


def test_write_outcome_summary():
    view = FreeQuery(outcome=WriteOutcome(3, 17))
    text = render_view(view, PLAIN)
    assert "Query executed successfully. 3 rows affected. Last insert ID: 17" in text


def test_browse_shows_table_and_status():
    result = QueryResult(("id",), (("1",), ("2",)))
    view = TableBrowse("items", result=result, window=PaginationWindow.clamp(2, 20))
    text = render_view(view, PLAIN)
    assert "| id " in text
    assert "Rows 1-2 of 2 (Page 1 of 1)" in text


def test_table_list_numbers_tables():
    text = render_view(TableList(tables=("a", "b")), PLAIN)
    assert "  1  a" in text
    assert "  2  b" in text


def test_empty_history():
    text = render_view(HistoryView((), return_to=MainMenu()), PLAIN)
    assert "No queries in history." in text


def test_theme_selection():
    assert theme_for(True, environ={}) is DARK
    assert theme_for(False, environ={}) is LIGHT
    plain = theme_for(True, environ={"NO_COLOR": "1"})
    assert plain.paint("error", "x") == "x"
    assert DARK.paint("error", "x").endswith("x\033[0m")


# Input handling

def test_enter_connects_and_draws_menu(terminal, controller, runner):
    terminal.handle_line("")
    runner.run_next()
    assert isinstance(controller.view, MainMenu)
    assert "MySQL Database Interface" in output_of(terminal)


def test_field_edits(terminal, controller):
    terminal.handle_line("host=db.internal port=3307")
    assert controller.view.config.host == "db.internal"
    assert controller.view.config.port == 3307


def test_multiline_query_is_buffered(terminal, connected, runner, adapter):
    terminal.handle_line("1")
    assert isinstance(connected.view, FreeQuery)

    terminal.handle_line("SELECT a")
    assert runner.jobs == []
    assert terminal.prompt() == "    -> "

    terminal.handle_line("FROM t;")
    runner.run_next()
    assert adapter.statements[-1] == "SELECT a FROM t"
    assert terminal.prompt() == "mysql> "


def test_only_first_statement_runs(terminal, connected, runner, adapter):
    terminal.handle_line("1")
    terminal.handle_line("SELECT 1; SELECT 2;")
    assert len(runner.jobs) == 1
    runner.run_next()
    assert adapter.statements[-1] == "SELECT 1"


def test_clear_discards_buffer(terminal, connected, runner):
    terminal.handle_line("1")
    terminal.handle_line("SELECT a")
    terminal.handle_line("\\c")
    assert terminal.prompt() == "mysql> "
    assert "Query cleared." in output_of(terminal)
    assert runner.jobs == []


def test_browse_keys(terminal, connected, runner):
    terminal.handle_line("2")
    runner.run_next()
    terminal.handle_line("1")
    runner.run_next()
    assert connected.view.table == "items"

    terminal.handle_line("n")
    runner.run_next()
    assert connected.view.window.offset == 20

    terminal.handle_line("b")
    assert isinstance(connected.view, MainMenu)


def test_export_from_menu(terminal, connected, runner, settings, tmp_path):
    terminal.handle_line("1")
    terminal.handle_line("SELECT a FROM t;")
    runner.run_next()
    terminal.handle_line("\\e")
    terminal.handle_line("s md")

    assert list(tmp_path.glob("export_*.md"))
    assert "Exported 1 rows" in output_of(terminal)


def test_history_pick(terminal, connected, runner):
    terminal.handle_line("1")
    terminal.handle_line("SELECT 1;")
    runner.run_next()
    terminal.handle_line("\\g")
    assert isinstance(connected.view, HistoryView)
    terminal.handle_line("1")
    assert connected.view.input_text == "SELECT 1;"


def test_quit_says_goodbye(terminal, connected, runner):
    terminal.handle_line("q")
    assert not connected.running
    assert runner.shut_down
    assert "Goodbye!" in output_of(terminal)


@pytest.mark.parametrize("line", ["", ";"])
def test_recalled_query_runs_on_enter(terminal, connected, runner, adapter, line):
    terminal.handle_line("1")
    terminal.handle_line("SELECT 1;")
    runner.run_next()
    terminal.handle_line("\\g")
    terminal.handle_line("1")

    terminal.handle_line(line)
    assert len(runner.jobs) == 1
    runner.run_next()
    assert adapter.statements[-1] == "SELECT 1"
    assert connected.view.error is None


def test_enter_after_result_does_not_rerun(terminal, connected, runner):
    terminal.handle_line("1")
    terminal.handle_line("SELECT 1;")
    runner.run_next()
    terminal.handle_line("")
    assert runner.jobs == []


def test_failed_query_can_be_rerun(terminal, connected, runner, adapter):
    adapter.query_error = DriverError("Lost connection")
    terminal.handle_line("1")
    terminal.handle_line("SELECT 1;")
    runner.run_next()

    adapter.query_error = None
    terminal.handle_line("")
    runner.run_next()
    assert connected.view.outcome is not None


@pytest.mark.parametrize("line,statement", [
    ("\\l", "SHOW DATABASES"),
    ("\\s", "SELECT VERSION()"),
    ("status", "SELECT VERSION()"),
    ("\\dt", "SHOW TABLES"),
])
def test_free_query_shortcuts(terminal, connected, runner, adapter, line, statement):
    terminal.handle_line("1")
    terminal.handle_line(line)
    runner.run_next()
    assert adapter.statements[-1] == statement


def test_main_menu_lists_databases(terminal, connected, runner, adapter):
    terminal.handle_line("5")
    runner.run_next()
    assert isinstance(connected.view, FreeQuery)
    assert "information_schema" in output_of(terminal)
