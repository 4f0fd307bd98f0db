"""Offset/limit windows for browsing a result set page by page."""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class PaginationWindow:
    """A ``LIMIT limit OFFSET offset`` window over ``total`` rows.

    ``clamp`` always yields ``0 <= offset <= max(0, total - limit)``.
    Stepping forward with ``next`` may land on a partial last page
    (``offset < total``); stepping again from there snaps back to the
    clamped last window so a full page is shown.
    """

    total: int
    limit: int
    offset: int = 0

    def __post_init__(self):
        if self.total < 0:
            raise ValueError(f"total must be >= 0, got {self.total}")
        if self.limit <= 0:
            raise ValueError(f"limit must be > 0, got {self.limit}")
        if self.offset < 0 or (self.offset > 0 and self.offset >= self.total):
            raise ValueError(
                f"offset {self.offset} outside 0..{max(0, self.total - 1)}"
            )

    @classmethod
    def clamp(cls, total: int, limit: int, offset: int = 0) -> "PaginationWindow":
        if total < 0:
            raise ValueError(f"total must be >= 0, got {total}")
        if limit <= 0:
            raise ValueError(f"limit must be > 0, got {limit}")
        max_offset = max(0, total - limit)
        return cls(total, limit, min(max(offset, 0), max_offset))

    @property
    def max_offset(self) -> int:
        return max(0, self.total - self.limit)

    def next(self) -> "PaginationWindow":
        offset = self.offset + self.limit
        if offset >= self.total:
            offset = self.max_offset
        return PaginationWindow(self.total, self.limit, offset)

    def prev(self) -> "PaginationWindow":
        return PaginationWindow(self.total, self.limit, max(0, self.offset - self.limit))

    def first(self) -> "PaginationWindow":
        return PaginationWindow(self.total, self.limit, 0)

    def last(self) -> "PaginationWindow":
        return PaginationWindow(self.total, self.limit, self.max_offset)

    def with_total(self, total: int) -> "PaginationWindow":
        """Same position against a new row count (after a refresh).

        The offset is kept while it still points at a row, otherwise the
        window is clamped.
        """
        if self.offset == 0 or self.offset < total:
            return PaginationWindow(total, self.limit, self.offset)
        return PaginationWindow.clamp(total, self.limit, self.offset)

    @property
    def at_start(self) -> bool:
        return self.offset == 0

    @property
    def at_end(self) -> bool:
        return self.offset + self.limit >= self.total

    @property
    def page(self) -> int:
        # A clamped last page may start mid-page; it still counts as the next page.
        return -(-self.offset // self.limit) + 1

    @property
    def pages(self) -> int:
        return max(1, -(-self.total // self.limit))

    def display_range(self, rows_returned: int) -> Tuple[int, int]:
        """1-based ``(first, last)`` row numbers for status text."""
        return self.offset + 1, min(self.offset + rows_returned, self.total)
