"""In-memory command history."""

from __future__ import annotations

from collections.abc import Iterator


class HistoryStore:
    """Append-only, ordered record of entered lines (1-based addressing)."""

    def __init__(self) -> None:
        self._entries: list[str] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._entries))

    def append(self, line: str) -> None:
        self._entries.append(line)

    def get(self, index: int) -> str | None:
        if index < 1 or index > len(self._entries):
            return None
        return self._entries[index - 1]

    def find_latest_with_prefix(self, prefix: str) -> str | None:
        for line in reversed(self._entries):
            if line.startswith(prefix):
                return line
        return None

    def clear(self) -> None:
        self._entries.clear()


__all__ = ["HistoryStore"]
