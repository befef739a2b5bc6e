"""Search history, favorites and play records with change notifications."""

from .events import (
    FAVORITES_UPDATED,
    PLAY_RECORDS_UPDATED,
    SEARCH_HISTORY_UPDATED,
    EventBus,
)
from .favorites import (
    FavoriteItem,
    FavoriteRecord,
    FavoritesStore,
    PlayRecord,
    PlayRecordStore,
    favorite_items,
    favorite_record_for,
    split_storage_key,
    storage_key,
)
from .history import SearchHistoryStore

__all__ = [
    "EventBus",
    "FAVORITES_UPDATED",
    "PLAY_RECORDS_UPDATED",
    "SEARCH_HISTORY_UPDATED",
    "FavoriteItem",
    "FavoriteRecord",
    "FavoritesStore",
    "PlayRecord",
    "PlayRecordStore",
    "favorite_items",
    "favorite_record_for",
    "split_storage_key",
    "storage_key",
    "SearchHistoryStore",
]
