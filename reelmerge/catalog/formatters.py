from __future__ import annotations

from typing import Sequence, Union

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text
from yarl import URL

from reelmerge import logger
from reelmerge.catalog.aggregator import ResultGroup
from reelmerge.catalog.normalizer import inferred_kind
from reelmerge.catalog.types import KIND_LABELS, RawHit, FilterState

PLAY_PATH = "/play"


def emit(message: str, indent: int = 0) -> None:
    """Emit message to screen and log file via logger."""
    padding = " " * max(indent, 0)
    plain = Text.from_markup(message).plain
    logger.log(f"{padding}{plain}")


def display_query(item: Union[RawHit, ResultGroup], query: str) -> str:
    """The query worth carrying to the player: empty when it equals the title."""
    trimmed = query.strip()
    return trimmed if trimmed != item.title else ""


def play_url(item: Union[RawHit, ResultGroup], query: str = "") -> str:
    is_group = isinstance(item, ResultGroup)
    kind = item.kind if is_group else inferred_kind(item)
    params: dict[str, str] = {"source": item.source, "id": item.id, "title": item.title}
    if item.year:
        params["year"] = item.year
    if is_group:
        params["prefer"] = "true"
    search_title = display_query(item, query)
    if search_title:
        params["stitle"] = search_title
    params["stype"] = kind
    return str(URL(PLAY_PATH).with_query(params))


def format_hit(idx: int, hit: RawHit) -> str:
    kind = KIND_LABELS[inferred_kind(hit)]
    label = escape(f"{hit.title} {hit.type_name}".strip())
    source = escape(hit.source_name or hit.source)
    return f"[{idx}] {label} ({escape(hit.year)}) {kind}, {len(hit.episodes)} ep. @ {source}"


def format_group(idx: int, group: ResultGroup) -> str:
    douban = group.douban_id
    douban_text = f", douban {douban}" if douban is not None else ""
    return (
        f"[{idx}] {escape(group.title)} ({escape(group.year)}) {KIND_LABELS[group.kind]}, "
        f"{group.episode_count} ep., {len(group)} source(s){douban_text}"
    )


def describe_filters(state: FilterState) -> str:
    parts = []
    if state.year != "all":
        parts.append(f"year={state.year}")
    if state.source != "all":
        parts.append(f"source={state.source}")
    if state.type != "all":
        parts.append(f"type={state.type}")
    if state.sort_by != "relevance":
        parts.append(f"sort={state.sort_by}")
    return ", ".join(parts) if parts else "none"


def render_hits(out: Console, hits: Sequence[RawHit], favorited: set[str] | None = None) -> None:
    favorited = favorited or set()
    table = Table(title=f"Search results ({len(hits)} hit(s))")
    table.add_column("#", style="cyan", justify="right", no_wrap=True)
    table.add_column("Title", style="bold")
    table.add_column("Year", style="green", no_wrap=True)
    table.add_column("Type", no_wrap=True)
    table.add_column("Episodes", justify="right")
    table.add_column("Source", style="yellow")
    table.add_column("Fav", justify="center")
    for idx, hit in enumerate(hits, start=1):
        table.add_row(
            str(idx),
            Text(f"{hit.title} {hit.type_name}".strip()),
            Text(hit.year),
            KIND_LABELS[inferred_kind(hit)],
            str(len(hit.episodes)),
            Text(hit.source_name or hit.source),
            "♥" if hit.storage_key in favorited else "",
        )
    out.print(table)


def render_groups(out: Console, groups: Sequence[ResultGroup]) -> None:
    table = Table(title=f"Search results ({len(groups)} title(s))")
    table.add_column("#", style="cyan", justify="right", no_wrap=True)
    table.add_column("Title", style="bold")
    table.add_column("Year", style="green", no_wrap=True)
    table.add_column("Type", no_wrap=True)
    table.add_column("Episodes", justify="right")
    table.add_column("Sources", style="yellow")
    table.add_column("Douban", no_wrap=True)
    for idx, group in enumerate(groups, start=1):
        sources = ", ".join(dict.fromkeys(hit.source_name or hit.source for hit in group.hits))
        douban = group.douban_id
        table.add_row(
            str(idx),
            Text(group.title),
            Text(group.year),
            KIND_LABELS[group.kind],
            str(group.episode_count),
            Text(sources),
            str(douban) if douban is not None else "-",
        )
    out.print(table)
