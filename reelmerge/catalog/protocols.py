"""Protocol definitions for the search provider and history store."""

from __future__ import annotations

from typing import Any, Callable, Dict, Protocol, Sequence

Unsubscribe = Callable[[], None]


class SearchProvider(Protocol):
    """Minimal provider API used by the search session."""

    async def search(self, query: str) -> Dict[str, Any]:
        ...


class HistoryStore(Protocol):
    """Search history owned outside the session, with change notifications."""

    def get(self) -> Sequence[str]:
        ...

    def add(self, query: str) -> None:
        ...

    def delete(self, query: str) -> None:
        ...

    def clear(self) -> None:
        ...

    def subscribe(self, event_name: str, handler: Callable[[Any], None]) -> Unsubscribe:
        ...
