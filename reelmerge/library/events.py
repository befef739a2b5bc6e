"""Topic-keyed publish/subscribe used by the library stores."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable

Handler = Callable[[Any], None]

SEARCH_HISTORY_UPDATED = "searchHistoryUpdated"
FAVORITES_UPDATED = "favoritesUpdated"
PLAY_RECORDS_UPDATED = "playRecordsUpdated"


class EventBus:
    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, topic: str, handler: Handler) -> Callable[[], None]:
        """Register ``handler`` for ``topic``; the returned callable removes it."""
        self._handlers[topic].append(handler)

        def _unsubscribe() -> None:
            handlers = self._handlers.get(topic)
            if handlers and handler in handlers:
                handlers.remove(handler)

        return _unsubscribe

    def publish(self, topic: str, payload: Any) -> None:
        for handler in list(self._handlers.get(topic, ())):
            handler(payload)

    def subscriber_count(self, topic: str) -> int:
        return len(self._handlers.get(topic, ()))
