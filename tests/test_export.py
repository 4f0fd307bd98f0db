import csv
import json

import pytest

from boba import export
from boba.errors import ExportError, ExportErrorKind
from boba.executor import QueryResult

RESULT = QueryResult(("name", "val"), (("a,b", "5"), ('c"d', "6")))


def test_export_csv_uses_timestamped_name(tmp_path):
    path = export.export_result(RESULT, "csv", tmp_path, timestamp=1700000000.7)
    assert path.name == "export_1700000000.csv"
    with open(path, newline="", encoding="utf-8") as f:
        assert list(csv.reader(f)) == [["name", "val"], ["a,b", "5"], ['c"d', "6"]]


@pytest.mark.parametrize("fmt,ext", [("json", "json"), ("markdown", "md"), ("table", "txt")])
def test_export_text_formats(tmp_path, fmt, ext):
    path = export.export_result(RESULT, fmt, tmp_path, timestamp=1)
    assert path.suffix == "." + ext
    assert path.read_text(encoding="utf-8")


def test_export_json_content(tmp_path):
    path = export.export_result(RESULT, "json", tmp_path, timestamp=1)
    assert json.loads(path.read_text(encoding="utf-8")) == [
        {"name": "a,b", "val": "5"},
        {"name": 'c"d', "val": "6"},
    ]


def test_export_xlsx(tmp_path):
    import openpyxl

    path = export.export_result(RESULT, "xlsx", tmp_path, timestamp=1)
    ws = openpyxl.load_workbook(path).active
    assert [[c.value for c in row] for row in ws.iter_rows()] == [
        ["name", "val"], ["a,b", "5"], ['c"d', "6"]
    ]


def test_export_to_missing_directory_fails_to_create(tmp_path):
    with pytest.raises(ExportError) as exc:
        export.export_result(RESULT, "csv", tmp_path / "missing" / "dir")
    assert exc.value.kind is ExportErrorKind.FILE_CREATE_FAILED


def test_export_write_failure(tmp_path, monkeypatch):
    def broken_render(fmt, columns, rows):
        raise OSError("disk full")

    monkeypatch.setattr(export, "render", broken_render)
    with pytest.raises(ExportError) as exc:
        export.export_result(RESULT, "csv", tmp_path)
    assert exc.value.kind is ExportErrorKind.WRITE_FAILED
    assert list(tmp_path.iterdir()) == []


def test_export_xlsx_with_control_character_is_a_write_failure(tmp_path):
    result = QueryResult(("a",), (("bell\x07",),))
    with pytest.raises(ExportError) as exc:
        export.export_result(result, "xlsx", tmp_path, timestamp=1)
    assert exc.value.kind is ExportErrorKind.WRITE_FAILED
    assert not (tmp_path / "export_1.xlsx").exists()


def test_unknown_export_format(tmp_path):
    with pytest.raises(ValueError):
        export.export_result(RESULT, "yaml", tmp_path)


def test_copy_without_clipboard_tool(monkeypatch):
    monkeypatch.setattr(export.shutil, "which", lambda name: None)
    with pytest.raises(ExportError) as exc:
        export.copy_text("hello")
    assert exc.value.kind is ExportErrorKind.CLIPBOARD_UNAVAILABLE


def test_copy_pipes_to_first_available_tool(monkeypatch):
    calls = []
    monkeypatch.setattr(export.shutil, "which",
                        lambda name: "/usr/bin/xclip" if name == "xclip" else None)
    monkeypatch.setattr(export.subprocess, "run",
                        lambda cmd, **kwargs: calls.append((cmd, kwargs["input"])))
    export.copy_text("hello")
    assert calls == [(["xclip", "-selection", "clipboard"], b"hello")]
