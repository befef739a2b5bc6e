"""Identity keys for collapsing the same title across sources."""

from __future__ import annotations

import re

from reelmerge.catalog.types import UNKNOWN_YEAR, Kind, RawHit

_WHITESPACE = re.compile(r"\s+")


def normalize_title(title: str) -> str:
    """Strip every whitespace character, including internal runs."""
    return _WHITESPACE.sub("", title or "")


def normalize_year(year: str | None) -> str:
    if year is None:
        return UNKNOWN_YEAR
    value = str(year).strip()
    return value or UNKNOWN_YEAR


def inferred_kind(hit: RawHit) -> Kind:
    return "movie" if len(hit.episodes) == 1 else "tv"


def identity_key(hit: RawHit) -> str:
    return f"{normalize_title(hit.title)}-{normalize_year(hit.year)}-{inferred_kind(hit)}"
