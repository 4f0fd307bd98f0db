"""Export of the cached last result to files and to the clipboard.

Both act on the result the session already holds; nothing is re-queried.
"""

import logging
import shutil
import subprocess
import time
from pathlib import Path

from .errors import ExportError, ExportErrorKind
from .formatter import render

logger = logging.getLogger(__name__)

EXTENSIONS = {
    'csv': 'csv',
    'json': 'json',
    'markdown': 'md',
    'table': 'txt',
    'xlsx': 'xlsx',
}

CLIPBOARD_COMMANDS = [
    ["pbcopy"],
    ["wl-copy"],
    ["xclip", "-selection", "clipboard"],
    ["xsel", "--clipboard", "--input"],
    ["clip.exe"],
]


def export_path(directory, fmt, timestamp=None):
    """``<directory>/export_<unixtime>.<ext>``"""
    ext = EXTENSIONS.get(fmt)
    if ext is None:
        raise ValueError(f"Unknown export format: {fmt}")
    if timestamp is None:
        timestamp = time.time()
    return Path(directory) / f"export_{int(timestamp)}.{ext}"


def export_result(result, fmt, directory=".", timestamp=None):
    """Write ``result`` to a timestamped file and return its path."""
    path = export_path(directory, fmt, timestamp)
    try:
        if fmt == 'xlsx':
            f = open(path, 'wb')
        else:
            f = open(path, 'w', encoding='utf-8', newline='')
    except OSError as e:
        raise ExportError(ExportErrorKind.FILE_CREATE_FAILED,
                          f"Failed to create {path}: {e}") from e

    try:
        with f:
            if fmt == 'xlsx':
                _write_xlsx(f, result)
            else:
                f.write(render(fmt, result.columns, result.rows))
    except Exception as e:
        # openpyxl rejects control characters with its own exception type
        path.unlink(missing_ok=True)
        raise ExportError(ExportErrorKind.WRITE_FAILED,
                          f"Failed to write {path}: {e}") from e

    logger.info("Exported %d rows to %s", result.row_count, path)
    return path


def _write_xlsx(f, result):
    import openpyxl
    from openpyxl.utils import get_column_letter

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.append(list(result.columns))
    for row in result.rows:
        ws.append(list(row))
    for i, col in enumerate(result.columns, start=1):
        width = max([len(col)] + [len(row[i - 1]) for row in result.rows])
        ws.column_dimensions[get_column_letter(i)].width = min(width + 2, 50)
    wb.save(f)


def clipboard_command():
    for cmd in CLIPBOARD_COMMANDS:
        if shutil.which(cmd[0]):
            return cmd
    return None


def copy_text(text):
    """Pipe ``text`` to the first clipboard tool found on PATH."""
    cmd = clipboard_command()
    if cmd is None:
        raise ExportError(ExportErrorKind.CLIPBOARD_UNAVAILABLE,
                          "No clipboard tool found (pbcopy, wl-copy, xclip, xsel, clip.exe)")
    try:
        subprocess.run(cmd, input=text.encode("utf-8"), check=True, timeout=5)
    except (OSError, subprocess.SubprocessError) as e:
        raise ExportError(ExportErrorKind.WRITE_FAILED,
                          f"Clipboard copy failed: {e}") from e
    logger.info("Copied %d characters to clipboard via %s", len(text), cmd[0])
