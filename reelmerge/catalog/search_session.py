"""Search session: query lifecycle plus the filter / sort / group pipeline."""

from __future__ import annotations

import re
from typing import Iterable, Literal, Sequence, Union

from reelmerge import logger
from reelmerge.catalog.aggregator import ResultGroup, group_hits
from reelmerge.catalog.filters import apply_filters, available_filters
from reelmerge.catalog.moderation import DEFAULT_BLOCKLIST, apply_blocklist
from reelmerge.catalog.protocols import HistoryStore, SearchProvider
from reelmerge.catalog.ranker import sort_groups, sort_hits
from reelmerge.catalog.types import (
    ALL,
    SORT_MODES,
    VIEW_MODES,
    AvailableFilters,
    FilterState,
    RawHit,
    SortMode,
    ViewMode,
)
from reelmerge.config import ReelmergeConfig
from reelmerge.library.events import SEARCH_HISTORY_UPDATED

SessionState = Literal["idle", "loading", "results", "empty", "failed"]
EmptyReason = Literal["no_results", "no_matches"]
VisibleItem = Union[RawHit, ResultGroup]

_WHITESPACE_RUN = re.compile(r"\s+")
_TYPE_CHOICES = (ALL, "movie", "tv")


def _filter_value(value: str) -> str:
    value = value.strip()
    return ALL if not value or value.lower() == ALL else value


def normalize_submitted_query(raw: str) -> str:
    return _WHITESPACE_RUN.sub(" ", raw.strip())


class SearchSession:
    """
    Owns the raw hits of the latest query and every derived view of them.

    A query moves the session through idle -> loading -> results/empty/failed.
    Each query bumps ``generation``; a provider response that arrives after a
    newer query started is dropped. Filter, sort and view changes recompute the
    derived lists synchronously from the retained raw hits without calling the
    provider again.
    """

    def __init__(
        self,
        provider: SearchProvider,
        history: HistoryStore | None = None,
        *,
        aggregate: bool = True,
        blocklist: Iterable[str] = DEFAULT_BLOCKLIST,
        moderation_disabled: bool = False,
    ) -> None:
        self._provider = provider
        self._history_store = history
        self._blocklist = tuple(blocklist)
        self._moderation_disabled = moderation_disabled

        self.filters = FilterState.with_defaults(aggregate)
        self.state: SessionState = "idle"
        self.query = ""
        self.generation = 0
        self.raw_hits: list[RawHit] = []
        self.filtered_hits: list[RawHit] = []
        self.groups: list[ResultGroup] = []
        self.available_filters = AvailableFilters()

        self.history: list[str] = []
        self._unsubscribe_history = None
        if history is not None:
            self.history = list(history.get())
            self._unsubscribe_history = history.subscribe(SEARCH_HISTORY_UPDATED, self._on_history_updated)

    @classmethod
    def from_config(
        cls,
        config: ReelmergeConfig,
        provider: SearchProvider,
        history: HistoryStore | None = None,
    ) -> "SearchSession":
        return cls(
            provider,
            history,
            aggregate=config.defaults.aggregate,
            blocklist=config.moderation.blocklist,
            moderation_disabled=config.moderation.disabled,
        )

    def _on_history_updated(self, entries: Sequence[str]) -> None:
        self.history = list(entries)

    async def submit(self, raw_query: str) -> bool:
        """Form submission: trims and collapses internal whitespace runs."""
        return await self._run_query(normalize_submitted_query(raw_query))

    async def navigate(self, raw_query: str) -> bool:
        """Deep-linked query parameter: trimmed only."""
        return await self._run_query(raw_query.strip())

    async def _run_query(self, query: str) -> bool:
        """Return True when this call's response was applied to the session."""
        if not query:
            return False

        self.generation += 1
        generation = self.generation
        self.query = query
        self.state = "loading"
        if self._history_store is not None:
            self._history_store.add(query)

        try:
            payload = await self._provider.search(query)
            hits = list(payload.get("results") or [])
        except Exception as exc:
            if generation != self.generation:
                logger.debug(f"Discarded stale failure for '{query}' (generation {generation})")
                return False
            logger.warning(f"Search for '{query}' failed: {exc}")
            self.raw_hits = []
            self._recompute()
            self.state = "failed"
            return True

        if generation != self.generation:
            logger.debug(f"Discarded stale response for '{query}' (generation {generation})")
            return False

        kept = apply_blocklist(hits, self._blocklist, disabled=self._moderation_disabled)
        if len(kept) != len(hits):
            logger.debug(f"Moderation dropped {len(hits) - len(kept)} hit(s) for '{query}'")
        self.raw_hits = kept
        self._recompute()
        self.state = "results" if self.visible else "empty"
        logger.info(f"Results: {len(self.raw_hits)} hit(s), {len(self.groups)} title(s) for '{query}'")
        return True

    def _recompute(self) -> None:
        filtered = apply_filters(self.raw_hits, self.filters)
        self.filtered_hits = sort_hits(filtered, self.filters.sort_by, self.query)
        self.groups = sort_groups(group_hits(self.filtered_hits), self.filters.sort_by, self.query)
        self.available_filters = available_filters(self.raw_hits)
        if self.state in ("results", "empty"):
            self.state = "results" if self.visible else "empty"

    @property
    def visible(self) -> list[VisibleItem]:
        if self.filters.view_mode == "aggregated":
            return list(self.groups)
        return list(self.filtered_hits)

    @property
    def total_count(self) -> int:
        return len(self.raw_hits)

    @property
    def result_count(self) -> int:
        return len(self.filtered_hits)

    @property
    def empty_reason(self) -> EmptyReason | None:
        if self.state not in ("results", "empty", "failed"):
            return None
        if not self.raw_hits:
            return "no_results"
        if not self.filtered_hits:
            return "no_matches"
        return None

    def set_year(self, year: str) -> None:
        self.filters.year = _filter_value(year)
        self._recompute()

    def set_source(self, source: str) -> None:
        self.filters.source = _filter_value(source)
        self._recompute()

    def set_type(self, kind: str) -> None:
        value = kind.strip().lower() or ALL
        if value not in _TYPE_CHOICES:
            raise ValueError(f"Unknown content type '{kind}'")
        self.filters.type = value
        self._recompute()

    def set_sort(self, mode: SortMode) -> None:
        if mode not in SORT_MODES:
            raise ValueError(f"Unknown sort mode '{mode}'")
        self.filters.sort_by = mode
        self._recompute()

    def set_view_mode(self, mode: ViewMode) -> None:
        if mode not in VIEW_MODES:
            raise ValueError(f"Unknown view mode '{mode}'")
        self.filters.view_mode = mode
        self._recompute()

    def toggle_view_mode(self) -> ViewMode:
        self.set_view_mode("flat" if self.filters.view_mode == "aggregated" else "aggregated")
        return self.filters.view_mode

    def clear_filters(self) -> None:
        self.filters.clear()
        self._recompute()

    def reset(self) -> None:
        """Back to idle; a response still in flight will be discarded."""
        self.generation += 1
        self.state = "idle"
        self.query = ""
        self.raw_hits = []
        self._recompute()

    def close(self) -> None:
        if self._unsubscribe_history is not None:
            self._unsubscribe_history()
            self._unsubscribe_history = None
