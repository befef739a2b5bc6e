"""Group per-source hits into logical titles and pick representative metadata."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Hashable, Iterable, Literal, Optional, TypeVar

from reelmerge.catalog.normalizer import identity_key, inferred_kind
from reelmerge.catalog.types import DoubanId, Kind, RawHit

TieBreak = Literal["first_to_max", "first_seen"]

# Among values sharing the highest count, the one whose running count reached
# that count earliest in the scan wins.
MAJORITY_TIE_BREAK: TieBreak = "first_to_max"

_V = TypeVar("_V", bound=Hashable)


@dataclass
class _Tally:
    count: int = 0
    first_seen: int = 0
    last_increment: int = 0


def majority_vote(values: Iterable[_V], tie_break: TieBreak = MAJORITY_TIE_BREAK) -> Optional[_V]:
    """
    Return the most frequent value, or None for an empty input.

    Counts are folded into an insertion-ordered map and resolved with a single
    max scan. With ``first_to_max`` a tie goes to the value whose final count
    was reached first (A,B,A,B -> A; B,A,A,B -> A). With ``first_seen`` a tie
    goes to the value encountered first (B,A,A,B -> B).
    """
    if tie_break not in ("first_to_max", "first_seen"):
        raise ValueError(f"Unknown tie-break rule '{tie_break}'")

    tallies: dict[_V, _Tally] = {}
    for position, value in enumerate(values):
        tally = tallies.get(value)
        if tally is None:
            tally = _Tally(first_seen=position)
            tallies[value] = tally
        tally.count += 1
        tally.last_increment = position

    winner: Optional[_V] = None
    best: _Tally | None = None
    for value, tally in tallies.items():
        if best is None or tally.count > best.count:
            winner, best = value, tally
            continue
        if tally.count < best.count:
            continue
        if tie_break == "first_to_max" and tally.last_increment < best.last_increment:
            winner, best = value, tally
    return winner


def _has_douban_id(value: DoubanId | None) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        stripped = value.strip()
        return bool(stripped) and stripped != "0"
    return value != 0


@dataclass
class ResultGroup:
    """Hits from different sources that describe the same title."""

    key: str
    hits: list[RawHit] = field(default_factory=list)

    @property
    def first(self) -> RawHit:
        return self.hits[0]

    @property
    def title(self) -> str:
        return self.first.title

    @property
    def poster(self) -> str:
        return self.first.poster

    @property
    def source(self) -> str:
        return self.first.source

    @property
    def id(self) -> str:
        return self.first.id

    @property
    def year(self) -> str:
        return self.first.year

    @property
    def source_name(self) -> str:
        return self.first.source_name

    @property
    def kind(self) -> Kind:
        return inferred_kind(self.first)

    @property
    def storage_key(self) -> str:
        return self.first.storage_key

    @property
    def member_keys(self) -> list[str]:
        return [hit.storage_key for hit in self.hits]

    def representative_douban_id(self, tie_break: TieBreak = MAJORITY_TIE_BREAK) -> DoubanId | None:
        return majority_vote(
            (hit.douban_id for hit in self.hits if _has_douban_id(hit.douban_id)),
            tie_break,
        )

    def representative_episode_count(self, tie_break: TieBreak = MAJORITY_TIE_BREAK) -> int:
        counts = (len(hit.episodes) for hit in self.hits if hit.episodes)
        return majority_vote(counts, tie_break) or 0

    @property
    def douban_id(self) -> DoubanId | None:
        return self.representative_douban_id()

    @property
    def episode_count(self) -> int:
        return self.representative_episode_count()

    def __len__(self) -> int:
        return len(self.hits)


def group_hits(hits: Iterable[RawHit]) -> list[ResultGroup]:
    """Group hits by identity key, keeping first-seen group order and arrival order within groups."""
    groups: dict[str, ResultGroup] = {}
    for hit in hits:
        key = identity_key(hit)
        group = groups.get(key)
        if group is None:
            group = ResultGroup(key=key)
            groups[key] = group
        group.hits.append(hit)
    return list(groups.values())
