"""Record of executed queries for recall from the history view."""

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class HistoryEntry:
    text: str
    index: int


class HistoryLog:
    """Insertion-ordered log that skips a query equal to the one just before it."""

    def __init__(self):
        self._entries: List[HistoryEntry] = []

    def append(self, text: str) -> Optional[HistoryEntry]:
        """Add ``text`` unless it repeats the last entry. Returns the new entry or None."""
        if self._entries and self._entries[-1].text == text:
            return None
        entry = HistoryEntry(text, len(self._entries))
        self._entries.append(entry)
        return entry

    def all(self) -> List[HistoryEntry]:
        return list(self._entries)

    def get(self, index: int) -> HistoryEntry:
        if not 0 <= index < len(self._entries):
            raise IndexError(f"No history entry {index}")
        return self._entries[index]

    def last(self) -> Optional[HistoryEntry]:
        return self._entries[-1] if self._entries else None

    def __len__(self):
        return len(self._entries)
