from __future__ import annotations

from reelmerge.library.events import FAVORITES_UPDATED, SEARCH_HISTORY_UPDATED, EventBus


def test_publish_reaches_only_matching_topic() -> None:
    bus = EventBus()
    received: list[object] = []
    bus.subscribe(SEARCH_HISTORY_UPDATED, received.append)

    bus.publish(SEARCH_HISTORY_UPDATED, ["a"])
    bus.publish(FAVORITES_UPDATED, {"k": 1})

    assert received == [["a"]]


def test_unsubscribe_stops_delivery_and_is_idempotent() -> None:
    bus = EventBus()
    received: list[object] = []
    unsubscribe = bus.subscribe(SEARCH_HISTORY_UPDATED, received.append)

    unsubscribe()
    unsubscribe()
    bus.publish(SEARCH_HISTORY_UPDATED, ["a"])

    assert received == []
    assert bus.subscriber_count(SEARCH_HISTORY_UPDATED) == 0


def test_handler_may_unsubscribe_during_publish() -> None:
    bus = EventBus()
    calls: list[str] = []
    unsubscribe_first = None

    def _first(_payload) -> None:
        calls.append("first")
        unsubscribe_first()

    unsubscribe_first = bus.subscribe(SEARCH_HISTORY_UPDATED, _first)
    bus.subscribe(SEARCH_HISTORY_UPDATED, lambda _payload: calls.append("second"))

    bus.publish(SEARCH_HISTORY_UPDATED, [])
    bus.publish(SEARCH_HISTORY_UPDATED, [])

    assert calls == ["first", "second", "second"]
