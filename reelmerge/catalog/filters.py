"""Derive and apply year / source / type filters over raw hits."""

from __future__ import annotations

from typing import Iterable

from reelmerge.catalog.normalizer import inferred_kind
from reelmerge.catalog.types import ALL, UNKNOWN_YEAR, AvailableFilters, FilterState, RawHit


def _year_sort_key(year: str) -> tuple[int, int, str]:
    try:
        return (0, -int(year), year)
    except ValueError:
        return (1, 0, year)


def available_filters(hits: Iterable[RawHit]) -> AvailableFilters:
    """Distinct filter values: years newest first, sources and types ascending."""
    years: set[str] = set()
    sources: set[str] = set()
    types: set[str] = set()
    for hit in hits:
        if hit.year and hit.year != UNKNOWN_YEAR:
            years.add(hit.year)
        if hit.source_name:
            sources.add(hit.source_name)
        types.add(inferred_kind(hit))
    return AvailableFilters(
        years=sorted(years, key=_year_sort_key),
        sources=sorted(sources),
        types=sorted(types),
    )


def matches_filters(hit: RawHit, state: FilterState) -> bool:
    if state.year != ALL and hit.year != state.year:
        return False
    if state.source != ALL and hit.source_name != state.source:
        return False
    if state.type != ALL and inferred_kind(hit) != state.type:
        return False
    return True


def apply_filters(hits: Iterable[RawHit], state: FilterState) -> list[RawHit]:
    return [hit for hit in hits if matches_filters(hit, state)]
