"""Text for each session view."""

from ..executor import QueryResult, WriteOutcome
from ..formatter import render_table
from ..session.views import (
    Connecting,
    CopyExportMenu,
    FreeQuery,
    HelpView,
    HistoryView,
    MainMenu,
    TableBrowse,
    TableList,
)
from .theme import Theme

RULE_WIDTH = 50

MAIN_MENU_ITEMS = [
    ("1", "Run custom query"),
    ("2", "View tables"),
    ("3", "Query history"),
    ("4", "Server status"),
    ("5", "List databases"),
    ("h", "Help"),
    ("q", "Exit"),
]

EXPORT_FORMATS = ["csv", "json", "markdown", "table", "xlsx"]
COPY_FORMATS = ["csv", "json", "markdown", "table"]

HELP_TEXT = """\
Main menu
  1-5               choose an item, h for help, q to exit

Query mode
  Type SQL and end it with a semicolon (;). Multi-line input is supported.
  Enter             run a recalled or failed query again
  \\e                copy or export the last result
  \\g, history       show query history
  \\l                list databases
  \\s, status        server status
  \\dt               list tables
  \\c, clear         clear the current input
  \\b                back to the main menu
  \\h, help          show this help
  \\q, exit, quit    exit

Tables
  <n>               browse table n
  d <n>             describe table n
  b                 back

Browsing
  n / p             next / previous page
  f / l             first / last page
  r                 refresh the current page
  e                 copy or export this page
  b                 back

Copy / export
  c <format>        copy to clipboard (csv, json, markdown, table)
  s <format>        save to export_<time>.<ext> (csv, json, markdown, table, xlsx)
  b                 back

Press Enter to return."""


def _title(theme: Theme, text: str) -> str:
    return theme.paint("title", text) + "\n" + theme.paint("dim", "─" * RULE_WIDTH)


def _footer(view, theme: Theme):
    lines = []
    error = getattr(view, "error", None)
    if error is not None:
        lines.append(theme.paint("error", f"Error: {error}"))
    notice = getattr(view, "notice", None)
    if notice:
        lines.append(theme.paint("notice", notice))
    if getattr(view, "busy", False):
        lines.append(theme.paint("dim", "Running..."))
    return lines


def render_outcome(outcome, theme: Theme) -> str:
    if isinstance(outcome, WriteOutcome):
        return theme.paint("success", outcome.summary())
    if isinstance(outcome, QueryResult):
        table = render_table(outcome.columns, outcome.rows, theme.table_style)
        status = f"{outcome.row_count} rows returned ({outcome.elapsed:.3f}s)"
        return table + "\n" + theme.paint("dim", status)
    return ""


def render_connecting(view: Connecting, theme: Theme) -> str:
    config = view.config
    lines = [
        _title(theme, "Connect to MySQL"),
        f"Host:     {config.host}",
        f"Port:     {config.port}",
        f"User:     {config.user}",
        f"Password: {'****' if config.password else '(empty)'}",
        f"Database: {config.database or '(required)'}",
        "",
        theme.paint("dim", "Enter to connect, field=value to edit, p for password, q to exit"),
    ]
    return "\n".join(lines + _footer(view, theme))


def render_main_menu(view: MainMenu, theme: Theme) -> str:
    lines = [_title(theme, "MySQL Database Interface")]
    lines.extend(f"  {key}  {label}" for key, label in MAIN_MENU_ITEMS)
    if view.notice:
        lines.append(theme.paint("success", view.notice))
    return "\n".join(lines)


def render_free_query(view: FreeQuery, theme: Theme) -> str:
    lines = [_title(theme, "Query")]
    if view.input_text:
        lines.append(theme.paint("dim", view.input_text))
    if view.outcome is not None and view.error is None:
        lines.append(render_outcome(view.outcome, theme))
    lines.extend(_footer(view, theme))
    return "\n".join(lines)


def render_table_list(view: TableList, theme: Theme) -> str:
    lines = [_title(theme, "Tables")]
    width = len(str(len(view.tables)))
    for i, table in enumerate(view.tables, start=1):
        lines.append(f"  {str(i).rjust(width)}  {table}")
    lines.extend(_footer(view, theme))
    return "\n".join(lines)


def render_table_browse(view: TableBrowse, theme: Theme) -> str:
    lines = [_title(theme, f"Table: {view.table}")]
    if view.result is not None:
        lines.append(render_table(view.result.columns, view.result.rows, theme.table_style))
    lines.append(theme.paint("success", view.status_text()))
    lines.append(theme.paint("dim", "n next  p prev  f first  l last  r refresh  e export  b back"))
    lines.extend(_footer(view, theme))
    return "\n".join(lines)


def render_history(view: HistoryView, theme: Theme) -> str:
    lines = [_title(theme, "Query History")]
    if not view.entries:
        lines.append("No queries in history.")
    for entry in view.entries:
        lines.append(f"{entry.index + 1:3d}: {entry.text}")
    lines.append(theme.paint("dim", "Number to reuse a query, b to go back"))
    if view.notice:
        lines.append(theme.paint("notice", view.notice))
    return "\n".join(lines)


def render_copy_export(view: CopyExportMenu, theme: Theme) -> str:
    lines = [
        _title(theme, "Copy / Export"),
        f"{view.result.row_count} rows, {len(view.result.columns)} columns (last result, not re-queried)",
        f"  c <format>  copy to clipboard: {', '.join(COPY_FORMATS)}",
        f"  s <format>  save to file:      {', '.join(EXPORT_FORMATS)}",
        "  b           back",
    ]
    if view.message:
        lines.append(theme.paint("success", view.message))
    if view.error is not None:
        lines.append(theme.paint("error", f"Error: {view.error}"))
    return "\n".join(lines)


def render_help(view: HelpView, theme: Theme) -> str:
    return _title(theme, "Help") + "\n" + HELP_TEXT


RENDERERS = {
    Connecting: render_connecting,
    MainMenu: render_main_menu,
    FreeQuery: render_free_query,
    TableList: render_table_list,
    TableBrowse: render_table_browse,
    HistoryView: render_history,
    CopyExportMenu: render_copy_export,
    HelpView: render_help,
}


def render_view(view, theme: Theme) -> str:
    return RENDERERS[type(view)](view, theme)
