import pytest

from boba.history import HistoryLog


def test_adjacent_duplicates_are_skipped():
    log = HistoryLog()
    log.append("A")
    log.append("A")
    log.append("B")
    assert [e.text for e in log.all()] == ["A", "B"]


def test_non_adjacent_repeats_are_kept():
    log = HistoryLog()
    for text in ["A", "B", "A"]:
        log.append(text)
    assert [e.text for e in log.all()] == ["A", "B", "A"]
    assert [e.index for e in log.all()] == [0, 1, 2]


def test_append_returns_entry_or_none():
    log = HistoryLog()
    entry = log.append("SELECT 1")
    assert entry.text == "SELECT 1"
    assert log.append("SELECT 1") is None
    assert log.last() == entry
    assert len(log) == 1


def test_get():
    log = HistoryLog()
    log.append("SELECT 1")
    log.append("SELECT 2")
    assert log.get(1).text == "SELECT 2"
    with pytest.raises(IndexError):
        log.get(2)
    with pytest.raises(IndexError):
        log.get(-1)
