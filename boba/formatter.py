"""
Rendering of a ``(columns, rows)`` pair as table, CSV, JSON or Markdown text.

All renderers take the same normalized strings and keep row order.
"""

import json
from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence

PADDING = 2
MAX_COLUMN_WIDTH = 50
ELLIPSIS = "..."
NO_ROWS_TEXT = "No rows returned."

Columns = Sequence[str]
Rows = Sequence[Sequence[str]]


@dataclass(frozen=True)
class TableStyle:
    """Border characters for the table renderer."""

    horizontal: str = "─"
    vertical: str = "│"
    top_left: str = "┌"
    top_mid: str = "┬"
    top_right: str = "┐"
    mid_left: str = "├"
    mid_mid: str = "┼"
    mid_right: str = "┤"
    bottom_left: str = "└"
    bottom_mid: str = "┴"
    bottom_right: str = "┘"


BOX_STYLE = TableStyle()
ASCII_STYLE = TableStyle("-", "|", "+", "+", "+", "+", "+", "+", "+", "+", "+")


def column_widths(columns: Columns, rows: Rows, padding: int = PADDING,
                  max_width: int = MAX_COLUMN_WIDTH) -> List[int]:
    """Widest of header and cells plus padding, capped at ``max_width``."""
    widths = [len(col) for col in columns]
    for row in rows:
        for i, cell in enumerate(row):
            if len(cell) > widths[i]:
                widths[i] = len(cell)
    return [min(w + padding, max_width) for w in widths]


def fit_cell(cell: str, width: int) -> str:
    """Truncate ``cell`` with an ellipsis so it fits in ``width`` characters."""
    if len(cell) <= width:
        return cell
    if width <= len(ELLIPSIS):
        return cell[:width]
    return cell[:width - len(ELLIPSIS)] + ELLIPSIS


def render_table(columns: Columns, rows: Rows, style: TableStyle = BOX_STYLE,
                 padding: int = PADDING, max_width: int = MAX_COLUMN_WIDTH) -> str:
    if not rows:
        return NO_ROWS_TEXT

    widths = column_widths(columns, rows, padding, max_width)
    left_pad = padding // 2

    def border(left, mid, right):
        return left + mid.join(style.horizontal * w for w in widths) + right

    def line(cells):
        parts = []
        for cell, width in zip(cells, widths):
            content = fit_cell(cell, width - padding)
            parts.append(" " * left_pad + content.ljust(width - left_pad))
        return style.vertical + style.vertical.join(parts) + style.vertical

    out = [
        border(style.top_left, style.top_mid, style.top_right),
        line(columns),
        border(style.mid_left, style.mid_mid, style.mid_right),
    ]
    out.extend(line(row) for row in rows)
    out.append(border(style.bottom_left, style.bottom_mid, style.bottom_right))
    return "\n".join(out)


def csv_field(value: str) -> str:
    if "," in value or '"' in value:
        return '"' + value.replace('"', '""') + '"'
    return value


def render_csv(columns: Columns, rows: Rows) -> str:
    lines = [",".join(csv_field(c) for c in columns)]
    lines.extend(",".join(csv_field(cell) for cell in row) for row in rows)
    return "\n".join(lines) + "\n"


def render_json(columns: Columns, rows: Rows, indent=2) -> str:
    # Values stay text: NULL and numbers are not restored to JSON types.
    data = [dict(zip(columns, row)) for row in rows]
    return json.dumps(data, indent=indent, ensure_ascii=False)


def _md_cell(value: str) -> str:
    return value.replace("|", "\\|").replace("\n", " ")


def render_markdown(columns: Columns, rows: Rows) -> str:
    lines = [
        "| " + " | ".join(_md_cell(c) for c in columns) + " |",
        "| " + " | ".join("---" for _ in columns) + " |",
    ]
    lines.extend("| " + " | ".join(_md_cell(cell) for cell in row) + " |" for row in rows)
    return "\n".join(lines) + "\n"


RENDERERS: Dict[str, Callable[[Columns, Rows], str]] = {
    'table': render_table,
    'csv': render_csv,
    'json': render_json,
    'markdown': render_markdown,
}


def render(fmt: str, columns: Columns, rows: Rows) -> str:
    renderer = RENDERERS.get(fmt)
    if renderer is None:
        raise ValueError(f"Unknown format: {fmt}")
    return renderer(columns, rows)
