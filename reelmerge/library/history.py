"""File-backed search history, most recent query first."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

from reelmerge.library.events import SEARCH_HISTORY_UPDATED, EventBus, Handler
from reelmerge.library.storage import read_json, write_json

DEFAULT_MAX_ENTRIES = 20


class SearchHistoryStore:
    """
    Persist recent queries and publish ``searchHistoryUpdated`` after each change.

    Re-adding an existing query moves it to the front; the list is capped at
    ``max_entries``.
    """

    def __init__(
        self,
        path: Path,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        bus: EventBus | None = None,
    ) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be greater than 0")
        self.path = path
        self.max_entries = max_entries
        self.bus = bus or EventBus()
        self._entries = self._load()

    def _load(self) -> list[str]:
        payload = read_json(self.path, [])
        if not isinstance(payload, list):
            raise ValueError(f"Search history at {self.path} must be a JSON array")
        entries = [item for item in payload if isinstance(item, str) and item.strip()]
        return entries[: self.max_entries]

    def _commit(self, entries: list[str]) -> None:
        self._entries = entries
        write_json(self.path, entries)
        self.bus.publish(SEARCH_HISTORY_UPDATED, list(entries))

    def get(self) -> list[str]:
        return list(self._entries)

    def add(self, query: str) -> None:
        trimmed = query.strip()
        if not trimmed:
            return
        entries = [trimmed] + [item for item in self._entries if item != trimmed]
        self._commit(entries[: self.max_entries])

    def delete(self, query: str) -> None:
        trimmed = query.strip()
        if trimmed not in self._entries:
            return
        self._commit([item for item in self._entries if item != trimmed])

    def clear(self) -> None:
        self._commit([])

    def subscribe(self, event_name: str, handler: Handler) -> Callable[[], None]:
        return self.bus.subscribe(event_name, handler)
