from __future__ import annotations

import pytest

from reelmerge.catalog.aggregator import ResultGroup, group_hits, majority_vote
from reelmerge.catalog.types import RawHit


def _hit(
    source: str,
    content_id: str,
    title: str = "Her",
    year: str = "2013",
    episodes: int = 1,
    douban_id=None,
) -> RawHit:
    return RawHit(
        source=source,
        id=content_id,
        title=title,
        year=year,
        poster=f"https://img.example/{source}/{content_id}.jpg",
        episodes=tuple(f"https://cdn.example/{source}/{content_id}/{i}.m3u8" for i in range(episodes)),
        source_name=source.upper(),
        douban_id=douban_id,
    )


def test_majority_vote_empty_returns_none() -> None:
    assert majority_vote([]) is None


def test_majority_vote_picks_most_frequent() -> None:
    assert majority_vote([3, 5, 5, 3, 5]) == 5


@pytest.mark.parametrize(
    ("values", "expected"),
    [
        (["A", "B", "A", "B"], "A"),
        (["B", "A", "A", "B"], "A"),
        (["C"], "C"),
    ],
)
def test_majority_vote_tie_goes_to_first_to_reach_max(values: list[str], expected: str) -> None:
    assert majority_vote(values) == expected


def test_majority_vote_first_seen_tie_break() -> None:
    assert majority_vote(["B", "A", "A", "B"], tie_break="first_seen") == "B"
    assert majority_vote(["A", "B", "A", "B"], tie_break="first_seen") == "A"


def test_majority_vote_rejects_unknown_rule() -> None:
    with pytest.raises(ValueError, match="Unknown tie-break"):
        majority_vote(["A"], tie_break="random")  # type: ignore[arg-type]


def test_group_hits_collapses_whitespace_title_variants() -> None:
    hits = [
        _hit("s1", "1", title="Her", douban_id=5),
        _hit("s2", "9", title=" H er", douban_id=5),
        _hit("s3", "4", title="Her", douban_id=7),
    ]

    groups = group_hits(hits)

    assert len(groups) == 1
    group = groups[0]
    assert group.key == "Her-2013-movie"
    assert group.title == "Her"
    assert group.source == "s1"
    assert group.douban_id == 5
    assert group.episode_count == 1
    assert group.member_keys == ["s1+1", "s2+9", "s3+4"]


def test_group_hits_keeps_first_seen_group_order() -> None:
    hits = [
        _hit("s1", "1", title="Alpha"),
        _hit("s1", "2", title="Beta"),
        _hit("s2", "3", title="Alpha"),
    ]

    groups = group_hits(hits)

    assert [group.title for group in groups] == ["Alpha", "Beta"]
    assert [hit.id for hit in groups[0].hits] == ["1", "3"]


def test_group_hits_separates_movie_from_series() -> None:
    hits = [_hit("s1", "1", episodes=1), _hit("s2", "2", episodes=10)]

    groups = group_hits(hits)

    assert [group.kind for group in groups] == ["movie", "tv"]


def test_group_hits_preserves_hit_count() -> None:
    hits = [
        _hit("s1", "1", title="Alpha"),
        _hit("s2", "2", title="Al pha"),
        _hit("s3", "3", title="Beta", year="2001"),
        _hit("s4", "4", title="Beta", year=""),
    ]

    groups = group_hits(hits)

    assert sum(len(group) for group in groups) == len(hits)


def test_group_hits_is_idempotent_on_regrouping() -> None:
    hits = [_hit("s1", "1"), _hit("s2", "2"), _hit("s3", "3", title="Other")]

    first = group_hits(hits)
    flattened = [hit for group in first for hit in group.hits]
    second = group_hits(flattened)

    assert [(group.key, group.hits) for group in second] == [(group.key, group.hits) for group in first]


def test_douban_id_ignores_missing_and_zero_values() -> None:
    group = ResultGroup(
        key="k",
        hits=[
            _hit("s1", "1", douban_id=None),
            _hit("s2", "2", douban_id=0),
            _hit("s3", "3", douban_id="0"),
            _hit("s4", "4", douban_id=""),
            _hit("s5", "5", douban_id=42),
        ],
    )

    assert group.douban_id == 42


def test_douban_id_is_none_without_any_usable_value() -> None:
    group = ResultGroup(key="k", hits=[_hit("s1", "1"), _hit("s2", "2", douban_id=0)])

    assert group.douban_id is None


def test_episode_count_uses_majority_and_ignores_empty_lists() -> None:
    group = ResultGroup(
        key="k",
        hits=[
            _hit("s1", "1", episodes=12),
            _hit("s2", "2", episodes=13),
            _hit("s3", "3", episodes=13),
            _hit("s4", "4", episodes=0),
        ],
    )

    assert group.episode_count == 13
    assert ResultGroup(key="k", hits=[_hit("s1", "1", episodes=0)]).episode_count == 0


def test_representative_values_honor_tie_break_choice() -> None:
    group = ResultGroup(
        key="k",
        hits=[
            _hit("s1", "1", douban_id=2),
            _hit("s2", "2", douban_id=1),
            _hit("s3", "3", douban_id=1),
            _hit("s4", "4", douban_id=2),
        ],
    )

    assert group.representative_douban_id() == 1
    assert group.representative_douban_id("first_seen") == 2
