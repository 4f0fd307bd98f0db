import itertools

import pytest

from boba.pagination import PaginationWindow


def test_clamp_keeps_offset_in_bounds():
    """Every clamped window satisfies 0 <= offset <= max(0, total - limit)"""
    for total, limit, offset in itertools.product(range(0, 30), range(1, 12), range(-5, 40)):
        window = PaginationWindow.clamp(total, limit, offset)
        assert 0 <= window.offset <= max(0, total - limit)


def test_next_and_prev_scenario():
    window = PaginationWindow.clamp(25, 20, 0)

    window = window.next()
    assert window.offset == 20

    window = window.next()
    assert window.offset == 5

    window = window.prev()
    assert window.offset == 0


def test_next_on_short_result_stays_at_zero():
    window = PaginationWindow.clamp(5, 20)
    assert window.next().offset == 0
    assert window.prev().offset == 0


def test_first_last_and_edges():
    window = PaginationWindow.clamp(100, 20, 40)
    assert window.first().offset == 0
    assert window.last().offset == 80
    assert window.last().at_end
    assert window.first().at_start
    assert not window.at_start and not window.at_end


def test_display_range():
    window = PaginationWindow.clamp(25, 20, 0).next()
    assert window.display_range(5) == (21, 25)
    assert PaginationWindow.clamp(25, 20).display_range(20) == (1, 20)
    assert PaginationWindow.clamp(25, 20, 20).display_range(20) == (6, 25)


def test_page_numbers():
    assert PaginationWindow.clamp(25, 20, 0).page == 1
    assert PaginationWindow.clamp(25, 20, 5).page == 2
    assert PaginationWindow(25, 20, 20).page == 2
    assert PaginationWindow.clamp(25, 20).pages == 2
    assert PaginationWindow.clamp(0, 20).pages == 1


def test_with_total_reclamps():
    window = PaginationWindow.clamp(100, 20, 80)
    assert window.with_total(30).offset == 10
    assert window.with_total(0).offset == 0


def test_with_total_keeps_partial_last_page():
    window = PaginationWindow(25, 20, 20)
    assert window.with_total(26).offset == 20
    assert window.with_total(20).offset == 0


@pytest.mark.parametrize("total,limit", [(-1, 20), (10, 0), (10, -3)])
def test_invalid_arguments(total, limit):
    with pytest.raises(ValueError):
        PaginationWindow.clamp(total, limit)


@pytest.mark.parametrize("offset", [-1, 25, 30])
def test_constructor_rejects_out_of_range_offset(offset):
    with pytest.raises(ValueError):
        PaginationWindow(25, 20, offset)
