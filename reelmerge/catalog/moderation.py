"""Category blocklist applied to provider hits before aggregation."""

from __future__ import annotations

from typing import Iterable

from reelmerge.catalog.types import RawHit

DEFAULT_BLOCKLIST: tuple[str, ...] = (
    "伦理片",
    "福利",
    "里番动漫",
    "门事件",
    "萝莉少女",
    "制服诱惑",
    "国产传媒",
    "cosplay",
    "黑丝诱惑",
    "无码",
    "日本无码",
    "有码",
    "日本有码",
    "SWAG",
    "网红主播",
    "色情片",
    "同性片",
    "福利视频",
    "福利片",
)


def is_blocked(hit: RawHit, blocklist: Iterable[str]) -> bool:
    type_name = hit.type_name or ""
    return any(term and term in type_name for term in blocklist)


def apply_blocklist(
    hits: Iterable[RawHit],
    blocklist: Iterable[str] = DEFAULT_BLOCKLIST,
    disabled: bool = False,
) -> list[RawHit]:
    if disabled:
        return list(hits)
    terms = tuple(blocklist)
    return [hit for hit in hits if not is_blocked(hit, terms)]
