"""Shared data structures for the catalog pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union

SortMode = Literal["relevance", "year", "title"]
ViewMode = Literal["aggregated", "flat"]
Kind = Literal["movie", "tv"]

ALL = "all"
UNKNOWN_YEAR = "unknown"
SORT_MODES: tuple[SortMode, ...] = ("relevance", "year", "title")
VIEW_MODES: tuple[ViewMode, ...] = ("aggregated", "flat")
KIND_LABELS: dict[Kind, str] = {"movie": "Movie", "tv": "Series"}

DoubanId = Union[int, str]


@dataclass(frozen=True)
class RawHit:
    """One per-source search result as returned by the provider."""

    source: str
    id: str
    title: str
    year: str
    poster: str
    episodes: tuple[str, ...]
    source_name: str = ""
    type_name: str = ""
    douban_id: DoubanId | None = None

    @property
    def storage_key(self) -> str:
        return f"{self.source}+{self.id}"


@dataclass(frozen=True)
class AvailableFilters:
    """Filter values offered for the current result set."""

    years: list[str] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)
    types: list[Kind] = field(default_factory=list)


@dataclass
class FilterState:
    """User-selected constraints, sort order and view mode for one session."""

    year: str = ALL
    source: str = ALL
    type: str = ALL
    sort_by: SortMode = "relevance"
    view_mode: ViewMode = "aggregated"

    @classmethod
    def with_defaults(cls, aggregate: bool = True) -> "FilterState":
        return cls(view_mode="aggregated" if aggregate else "flat")

    def clear(self) -> None:
        # View mode is a display preference, not a filter.
        self.year = ALL
        self.source = ALL
        self.type = ALL
        self.sort_by = "relevance"

    @property
    def has_active_filters(self) -> bool:
        return (
            self.year != ALL
            or self.source != ALL
            or self.type != ALL
            or self.sort_by != "relevance"
        )
