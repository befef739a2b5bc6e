"""Favorites and play records keyed by ``source+id``."""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Callable, Generic, Mapping, TypeVar, Union

from reelmerge.catalog.aggregator import ResultGroup
from reelmerge.catalog.types import RawHit
from reelmerge.library.events import FAVORITES_UPDATED, PLAY_RECORDS_UPDATED, EventBus, Handler
from reelmerge.library.storage import read_json, write_json


def storage_key(source: str, content_id: str) -> str:
    return f"{source}+{content_id}"


def split_storage_key(key: str) -> tuple[str, str]:
    source, sep, content_id = key.partition("+")
    if not sep:
        raise ValueError(f"Storage key '{key}' has no '+' separator")
    return source, content_id


@dataclass(frozen=True)
class FavoriteRecord:
    title: str
    source_name: str
    year: str
    cover: str
    total_episodes: int
    save_time: int
    search_title: str = ""


@dataclass(frozen=True)
class PlayRecord:
    title: str
    source_name: str
    year: str
    cover: str
    index: int
    total_episodes: int
    play_time: int
    total_time: int
    save_time: int
    search_title: str = ""


@dataclass(frozen=True)
class FavoriteItem:
    """One row of the favorites view."""

    id: str
    source: str
    title: str
    year: str
    poster: str
    episodes: int
    source_name: str
    current_episode: int | None = None
    search_title: str = ""


_R = TypeVar("_R", FavoriteRecord, PlayRecord)


class _RecordStore(Generic[_R]):
    section: str = ""
    event_name: str = ""
    record_type: type

    def __init__(self, path: Path, bus: EventBus | None = None) -> None:
        self.path = path
        self.bus = bus or EventBus()
        self._records: dict[str, _R] = self._load()

    def _read_all_sections(self) -> dict:
        payload = read_json(self.path, {})
        if not isinstance(payload, dict):
            raise ValueError(f"Library file {self.path} must hold a JSON object")
        return payload

    def _load(self) -> dict[str, _R]:
        raw = self._read_all_sections().get(self.section, {})
        if not isinstance(raw, dict):
            raise ValueError(f"Library section '{self.section}' must be an object")
        known = {f.name for f in fields(self.record_type)}
        records: dict[str, _R] = {}
        for key, row in raw.items():
            if not isinstance(row, dict):
                raise ValueError(f"Library entry '{key}' must be an object")
            split_storage_key(key)
            try:
                records[key] = self.record_type(**{k: v for k, v in row.items() if k in known})
            except TypeError as exc:
                raise ValueError(f"Library entry '{key}' has unexpected schema") from exc
        return records

    def _commit(self) -> None:
        payload = self._read_all_sections()
        payload[self.section] = {key: asdict(record) for key, record in self._records.items()}
        write_json(self.path, payload)
        self.bus.publish(self.event_name, self.get_all())

    def get_all(self) -> dict[str, _R]:
        return dict(self._records)

    def get(self, source: str, content_id: str) -> _R | None:
        return self._records.get(storage_key(source, content_id))

    def is_saved(self, source: str, content_id: str) -> bool:
        return storage_key(source, content_id) in self._records

    def save(self, source: str, content_id: str, record: _R) -> None:
        self._records[storage_key(source, content_id)] = record
        self._commit()

    def delete(self, source: str, content_id: str) -> None:
        if self._records.pop(storage_key(source, content_id), None) is not None:
            self._commit()

    def clear(self) -> None:
        self._records = {}
        self._commit()

    def subscribe(self, event_name: str, handler: Handler) -> Callable[[], None]:
        return self.bus.subscribe(event_name, handler)


class FavoritesStore(_RecordStore[FavoriteRecord]):
    section = "favorites"
    event_name = FAVORITES_UPDATED
    record_type = FavoriteRecord


class PlayRecordStore(_RecordStore[PlayRecord]):
    section = "play_records"
    event_name = PLAY_RECORDS_UPDATED
    record_type = PlayRecord


def favorite_record_for(
    item: Union[RawHit, ResultGroup],
    now_ms: int | None = None,
    search_title: str = "",
) -> FavoriteRecord:
    """Build a favorite from a hit or group; groups use their majority episode count."""
    if isinstance(item, ResultGroup):
        total_episodes = item.episode_count or 1
    else:
        total_episodes = len(item.episodes) or 1
    return FavoriteRecord(
        title=item.title,
        source_name=item.source_name,
        year=item.year or "",
        cover=item.poster,
        total_episodes=total_episodes,
        save_time=now_ms if now_ms is not None else int(time.time() * 1000),
        search_title=search_title,
    )


def favorite_items(
    favorites: Mapping[str, FavoriteRecord],
    play_records: Mapping[str, PlayRecord],
) -> list[FavoriteItem]:
    """Favorites newest first, each carrying the current episode from its play record."""
    ordered = sorted(favorites.items(), key=lambda item: item[1].save_time, reverse=True)
    items: list[FavoriteItem] = []
    for key, favorite in ordered:
        source, content_id = split_storage_key(key)
        play_record = play_records.get(key)
        items.append(
            FavoriteItem(
                id=content_id,
                source=source,
                title=favorite.title,
                year=favorite.year,
                poster=favorite.cover,
                episodes=favorite.total_episodes,
                source_name=favorite.source_name,
                current_episode=play_record.index if play_record is not None else None,
                search_title=favorite.search_title,
            )
        )
    return items
