"""Ordering for flat hits and aggregated groups."""

from __future__ import annotations

import unicodedata
from functools import cmp_to_key
from typing import Callable, Optional, Sequence

from reelmerge.catalog.aggregator import ResultGroup
from reelmerge.catalog.normalizer import normalize_title
from reelmerge.catalog.types import SORT_MODES, RawHit, SortMode


def collation_key(title: str) -> tuple[str, str]:
    decomposed = unicodedata.normalize("NFKD", title)
    base = "".join(c for c in decomposed if not unicodedata.combining(c))
    return (base.casefold(), title)


def compare_titles(a: str, b: str) -> int:
    key_a, key_b = collation_key(a), collation_key(b)
    if key_a == key_b:
        return 0
    return -1 if key_a < key_b else 1


def _numeric_year(year: str) -> Optional[int]:
    try:
        return int(year)
    except (TypeError, ValueError):
        return None


def compare_years(a: str, b: str) -> int:
    """Newest first; unknown or non-numeric years after every real year."""
    year_a, year_b = _numeric_year(a), _numeric_year(b)
    if year_a is None and year_b is None:
        return 0
    if year_a is None:
        return 1
    if year_b is None:
        return -1
    if year_a == year_b:
        return 0
    return -1 if year_a > year_b else 1


def _year_then_title(a: RawHit, b: RawHit) -> int:
    if a.year == b.year:
        return compare_titles(a.title, b.title)
    by_year = compare_years(a.year, b.year)
    if by_year != 0:
        return by_year
    # Distinct spellings of an unknown year still fall back to title order.
    return compare_titles(a.title, b.title)


def is_exact_match(hit: RawHit, query: str) -> bool:
    return hit.title == query.strip()


def contains_query(title: str, query: str) -> bool:
    return normalize_title(query.strip()) in normalize_title(title)


def _make_comparator(
    mode: SortMode,
    matcher: Callable[[RawHit], bool],
) -> Callable[[RawHit, RawHit], int]:
    if mode not in SORT_MODES:
        raise ValueError(f"Unknown sort mode '{mode}'")

    def _compare(a: RawHit, b: RawHit) -> int:
        if mode == "title":
            return compare_titles(a.title, b.title)
        if mode == "relevance":
            a_match, b_match = matcher(a), matcher(b)
            if a_match and not b_match:
                return -1
            if b_match and not a_match:
                return 1
        return _year_then_title(a, b)

    return _compare


def sort_hits(hits: Sequence[RawHit], mode: SortMode, query: str) -> list[RawHit]:
    """Stable sort for the flat view; exact match means title equals the trimmed query."""
    compare = _make_comparator(mode, lambda hit: is_exact_match(hit, query))
    return sorted(hits, key=cmp_to_key(compare))


def sort_groups(groups: Sequence[ResultGroup], mode: SortMode, query: str) -> list[ResultGroup]:
    """
    Stable sort for the aggregated view, comparing each group's first hit.

    Relevance here uses containment rather than equality: a group matches when
    its whitespace-stripped title contains the whitespace-stripped query.
    """
    compare = _make_comparator(mode, lambda hit: contains_query(hit.title, query))
    return sorted(groups, key=cmp_to_key(lambda a, b: compare(a.first, b.first)))
