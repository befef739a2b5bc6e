from __future__ import annotations

import pytest

from reelmerge.catalog.normalizer import identity_key, inferred_kind, normalize_title, normalize_year
from reelmerge.catalog.types import RawHit


def _hit(title: str = "Her", year: str = "2013", episodes: int = 1) -> RawHit:
    return RawHit(
        source="s1",
        id="1",
        title=title,
        year=year,
        poster="",
        episodes=tuple(f"ep{i}" for i in range(episodes)),
    )


@pytest.mark.parametrize(
    ("title", "expected"),
    [
        ("Her", "Her"),
        (" Her ", "Her"),
        ("The  Wandering\tEarth", "TheWanderingEarth"),
        ("流浪 地球", "流浪地球"),
        ("", ""),
    ],
)
def test_normalize_title_strips_all_whitespace(title: str, expected: str) -> None:
    assert normalize_title(title) == expected


def test_normalize_title_keeps_case_and_punctuation() -> None:
    assert normalize_title("Dune: Part Two") == "Dune:PartTwo"
    assert normalize_title("dune") != normalize_title("Dune")


@pytest.mark.parametrize(("year", "expected"), [(None, "unknown"), ("", "unknown"), ("  ", "unknown"), ("2013", "2013")])
def test_normalize_year_defaults_blank_to_unknown(year, expected: str) -> None:
    assert normalize_year(year) == expected


def test_inferred_kind_single_episode_is_movie() -> None:
    assert inferred_kind(_hit(episodes=1)) == "movie"
    assert inferred_kind(_hit(episodes=2)) == "tv"
    assert inferred_kind(_hit(episodes=0)) == "tv"


def test_identity_key_collapses_whitespace_variants() -> None:
    assert identity_key(_hit(title="Her")) == "Her-2013-movie"
    assert identity_key(_hit(title=" H er")) == identity_key(_hit(title="Her"))


def test_identity_key_separates_year_and_kind() -> None:
    base = identity_key(_hit())
    assert identity_key(_hit(year="2014")) != base
    assert identity_key(_hit(episodes=12)) != base
    assert identity_key(_hit(year="")) == "Her-unknown-movie"
