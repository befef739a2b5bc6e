#!/usr/bin/env python3
"""
cli.py - Entry point for REELMERGE
"One search, every source"
"""

try:
    import asyncio
    import sys
    import argparse
    import time
    from dataclasses import dataclass
    from pathlib import Path
    from rich.console import Console
    from rich.markup import escape
    from rich.panel import Panel
    from rich.prompt import Prompt
    from rich.table import Table
    from rich.text import Text
    from typing import Optional, Sequence, cast
    import reelmerge as pkg
    from . import logger
    from .config import ReelmergeConfig, load_config
    from .catalog.formatters import (
        describe_filters,
        emit,
        format_group,
        format_hit,
        play_url,
        render_groups,
        render_hits,
    )
    from .catalog.provider_client import PerRequestSearchProvider
    from .catalog.search_session import SearchSession
    from .catalog.types import ALL, KIND_LABELS, SORT_MODES, RawHit, SortMode
    from .library import (
        FavoritesStore,
        PlayRecordStore,
        SearchHistoryStore,
        favorite_items,
        favorite_record_for,
    )
except ImportError as e:
    print(f"Error: Missing required dependency: {e}")
    print("Please install required dependencies: pip install -e .")
    sys.exit(1)

console = Console()
_CLI_SESSION_START_MONOTONIC = time.monotonic()
SORT_LABELS: dict[str, str] = {"relevance": "Relevance", "year": "Year", "title": "Title"}
MAIN_MENU_SECTIONS: tuple[tuple[str, tuple[tuple[str, str], ...]], ...] = (
    (
        "Search",
        (
            ("S", "New search"),
            ("H", "Search history"),
        ),
    ),
    (
        "Refine results",
        (
            ("Y", "Filter by year"),
            ("R", "Filter by source"),
            ("T", "Filter by type"),
            ("O", "Sort order"),
            ("A", "Toggle aggregation"),
            ("C", "Clear filters"),
        ),
    ),
    (
        "Library",
        (
            ("F", "Favorites"),
            ("L", "Favorite / unfavorite a result"),
            ("P", "Show play link for a result"),
        ),
    ),
    (
        "Reelmerge",
        (
            ("Q", "Quit"),
        ),
    ),
)


@dataclass
class CliContext:
    config: ReelmergeConfig
    session: SearchSession
    history: SearchHistoryStore
    favorites: FavoritesStore
    play_records: PlayRecordStore


def _ui_info(message: str) -> None:
    console.print(f"[cyan][INFO][/cyan] {message}")


def _ui_warn(message: str) -> None:
    console.print(f"[yellow][WARNING][/yellow] {message}")


def _ui_error(message: str) -> None:
    console.print(f"[red][ERROR][/red] {message}")


def _ui_prompt(label: str, default: str | None = None) -> str:
    if default is None:
        return Prompt.ask(label)
    return Prompt.ask(label, default=default)


def _ui_prompt_yesno(
    label: str,
    *,
    default_yes: bool,
    allow_cancel: bool = False,
) -> bool:
    suffix = ("[Y/n" if default_yes else "[y/N") + (", c=cancel]" if allow_cancel else "]")

    choice = _ui_prompt(f"{label} {suffix}", default="Y" if default_yes else "N").strip().lower()
    if not choice:
        return default_yes
    first = choice[0]
    if first == "y":
        return True
    if first == "n":
        return False
    if allow_cancel and first in {"c", "x"}:
        return False
    return default_yes


def _reset_cli_session_timer() -> None:
    global _CLI_SESSION_START_MONOTONIC
    _CLI_SESSION_START_MONOTONIC = time.monotonic()


def _format_elapsed_runtime(seconds: float) -> str:
    if seconds < 60:
        return f"{seconds:.1f}s"
    if seconds < 3_600:
        return f"{seconds / 60:.1f}m"
    if seconds < 86_400:
        return f"{seconds / 3_600:.1f}h"
    return f"{seconds / 86_400:.1f}d"


def _ui_goodbye_with_elapsed() -> None:
    elapsed = max(0.0, time.monotonic() - _CLI_SESSION_START_MONOTONIC)
    _ui_info(f"Goodbye! Elapsed {_format_elapsed_runtime(elapsed)}")


def build_context(config: ReelmergeConfig) -> CliContext:
    history = SearchHistoryStore(config.history.path, max_entries=config.history.max_entries)
    favorites = FavoritesStore(config.library.path)
    play_records = PlayRecordStore(config.library.path)
    session = SearchSession.from_config(config, PerRequestSearchProvider(config.provider), history)
    return CliContext(
        config=config,
        session=session,
        history=history,
        favorites=favorites,
        play_records=play_records,
    )


def main_menu(ctx: CliContext):
    """Main menu for Reelmerge"""
    while True:
        _render_main_menu(ctx)
        choice = Prompt.ask("Choice", default="S").upper()
        should_continue = _handle_main_menu_choice(ctx, choice)
        if not should_continue:
            return


def _render_main_menu(ctx: CliContext) -> None:
    console.clear()
    console.print(Panel("[bold blue]REELMERGE[/bold blue]\nOne search, every source"))
    console.print()
    _render_session(ctx)
    for section_idx, (section_title, items) in enumerate(MAIN_MENU_SECTIONS):
        console.print(section_title)
        for key, label in items:
            console.print(f"    [{key}] {label}")
        if section_idx < len(MAIN_MENU_SECTIONS) - 1:
            console.print()
    console.print()


def _render_session(ctx: CliContext) -> None:
    session = ctx.session
    if session.state == "idle":
        if session.history:
            console.print(f"Recent searches: {escape(' | '.join(session.history[:5]))}")
            console.print()
        return
    if session.state == "loading":
        _ui_info(f"Searching for '{escape(session.query)}'...")
        return

    view = "aggregated" if session.filters.view_mode == "aggregated" else "flat"
    filters = describe_filters(session.filters)
    console.print(
        f"Query: [bold]{escape(session.query)}[/bold]  View: {view}  Filters: {escape(filters)}  "
        f"Results: {session.result_count} of {session.total_count}"
    )
    if session.state == "failed":
        _ui_warn("Search failed; showing no results.")
    _render_results(ctx)
    console.print()


def _render_results(ctx: CliContext) -> None:
    session = ctx.session
    reason = session.empty_reason
    if reason == "no_results":
        console.print("No results found.")
        return
    if reason == "no_matches":
        console.print("No results match the current filters.")
        return
    if session.filters.view_mode == "aggregated":
        render_groups(console, session.groups)
    else:
        favorited = set(ctx.favorites.get_all())
        render_hits(console, session.filtered_hits, favorited)


def _handle_main_menu_choice(ctx: CliContext, choice: str) -> bool:
    if choice == "Q":
        _ui_goodbye_with_elapsed()
        return False

    handlers = {
        "S": lambda: _run_search_prompt(ctx),
        "H": lambda: _handle_history_action(ctx),
        "Y": lambda: _handle_year_filter(ctx),
        "R": lambda: _handle_source_filter(ctx),
        "T": lambda: _handle_type_filter(ctx),
        "O": lambda: _handle_sort_choice(ctx),
        "A": lambda: _handle_toggle_view(ctx),
        "C": lambda: _handle_clear_filters(ctx),
        "F": lambda: _handle_favorites_action(ctx),
        "L": lambda: _handle_toggle_favorite(ctx),
        "P": lambda: _handle_play_link(ctx),
    }
    handler = handlers.get(choice)
    if handler is None:
        _ui_warn("Unknown choice. Please select a listed option.")
        _ui_prompt("Press Enter to continue", default="")
        return True
    handler()
    return True


def _search(ctx: CliContext, query: str, *, submitted: bool) -> None:
    log = logger.get_logger()
    log.status(f"Searching for '{query.strip()}'...")
    run = ctx.session.submit if submitted else ctx.session.navigate
    asyncio.run(run(query))
    log.clear_status()


def _run_search_prompt(ctx: CliContext) -> None:
    raw_query = _ui_prompt("Search movies and series")
    if not raw_query.strip():
        _ui_warn("Search query is empty.")
        return
    _search(ctx, raw_query, submitted=True)


def _prompt_filter_choice(title: str, options: Sequence[str], labels: dict[str, str] | None = None) -> str | None:
    """Numbered choice among ``options`` plus [A] for all; None when the input is invalid."""
    labels = labels or {}
    console.print(f"\n{title}:")
    console.print("  [A] All")
    for idx, option in enumerate(options, start=1):
        console.print(f"  [{idx}] {escape(labels.get(option, option))}")

    choice = _ui_prompt(title, default="A").strip()
    if choice.lower() in {"a", "all"}:
        return ALL
    if choice.isdigit() and 1 <= int(choice) <= len(options):
        return options[int(choice) - 1]
    for option in options:
        if choice.lower() in {option.lower(), labels.get(option, option).lower()}:
            return option
    _ui_warn(f"Invalid {title.lower()} choice.")
    return None


def _ensure_results(ctx: CliContext) -> bool:
    if ctx.session.state in ("idle", "loading"):
        _ui_warn("Run a search first.")
        _ui_prompt("Press Enter to continue", default="")
        return False
    return True


def _handle_year_filter(ctx: CliContext) -> None:
    if not _ensure_results(ctx):
        return
    years = ctx.session.available_filters.years
    if not years:
        _ui_warn("No years available for this result set.")
        return
    selected = _prompt_filter_choice("Year", years)
    if selected is not None:
        ctx.session.set_year(selected)


def _handle_source_filter(ctx: CliContext) -> None:
    if not _ensure_results(ctx):
        return
    sources = ctx.session.available_filters.sources
    if not sources:
        _ui_warn("No sources available for this result set.")
        return
    selected = _prompt_filter_choice("Source", sources)
    if selected is not None:
        ctx.session.set_source(selected)


def _handle_type_filter(ctx: CliContext) -> None:
    if not _ensure_results(ctx):
        return
    types = list(ctx.session.available_filters.types)
    if not types:
        _ui_warn("No types available for this result set.")
        return
    selected = _prompt_filter_choice("Type", types, labels=dict(KIND_LABELS))
    if selected is not None:
        ctx.session.set_type(selected)


def _prompt_sort_choice(current: SortMode) -> SortMode | None:
    console.print("\nSort order:")
    for idx, mode in enumerate(SORT_MODES, start=1):
        marker = " (current)" if mode == current else ""
        console.print(f"  [{idx}] {SORT_LABELS[mode]}{marker}")
    choice = _ui_prompt("Sort order", default=str(SORT_MODES.index(current) + 1)).strip().lower()
    if choice.isdigit() and 1 <= int(choice) <= len(SORT_MODES):
        return SORT_MODES[int(choice) - 1]
    aliases = {mode: mode for mode in SORT_MODES}
    aliases.update({mode[0]: mode for mode in SORT_MODES})
    if choice in aliases:
        return cast(SortMode, aliases[choice])
    _ui_warn("Invalid sort order choice.")
    return None


def _handle_sort_choice(ctx: CliContext) -> None:
    selected = _prompt_sort_choice(ctx.session.filters.sort_by)
    if selected is not None:
        ctx.session.set_sort(selected)


def _handle_toggle_view(ctx: CliContext) -> None:
    mode = ctx.session.toggle_view_mode()
    _ui_info(f"View mode: {mode}")


def _handle_clear_filters(ctx: CliContext) -> None:
    if not ctx.session.filters.has_active_filters:
        _ui_info("No active filters.")
        return
    ctx.session.clear_filters()


def _handle_history_action(ctx: CliContext) -> None:
    entries = ctx.session.history
    if not entries:
        _ui_info("Search history is empty.")
        _ui_prompt("Press Enter to continue", default="")
        return

    console.print("\nSearch history:")
    for idx, entry in enumerate(entries, start=1):
        console.print(f"  [{idx}] {escape(entry)}")
    console.print("  [D<n>] Delete entry n   [X] Clear history   [Enter] Back")
    choice = _ui_prompt("History", default="").strip().lower()
    if not choice:
        return
    if choice == "x":
        if _ui_prompt_yesno("Clear all search history?", default_yes=False):
            ctx.history.clear()
        return
    if choice.startswith("d") and choice[1:].isdigit():
        idx = int(choice[1:])
        if 1 <= idx <= len(entries):
            ctx.history.delete(entries[idx - 1])
            return
    if choice.isdigit() and 1 <= int(choice) <= len(entries):
        _search(ctx, entries[int(choice) - 1], submitted=False)
        return
    _ui_warn("Invalid history choice.")


def _prompt_result_index(ctx: CliContext) -> int | None:
    visible = ctx.session.visible
    if not visible:
        _ui_warn("No results to choose from.")
        return None
    choice = _ui_prompt(f"Result number (1-{len(visible)})").strip()
    if choice.isdigit() and 1 <= int(choice) <= len(visible):
        return int(choice) - 1
    _ui_warn("Invalid result number.")
    return None


def _handle_toggle_favorite(ctx: CliContext) -> None:
    if not _ensure_results(ctx):
        return
    if ctx.session.filters.view_mode == "aggregated":
        _ui_warn("Favorites are per source; switch to the flat view (A) to pick one.")
        _ui_prompt("Press Enter to continue", default="")
        return
    idx = _prompt_result_index(ctx)
    if idx is None:
        return
    hit = cast(RawHit, ctx.session.visible[idx])
    if ctx.favorites.is_saved(hit.source, hit.id):
        ctx.favorites.delete(hit.source, hit.id)
        _ui_info(f"Removed '{escape(hit.title)}' from favorites.")
    else:
        ctx.favorites.save(hit.source, hit.id, favorite_record_for(hit, search_title=ctx.session.query))
        _ui_info(f"Added '{escape(hit.title)}' to favorites.")


def _handle_play_link(ctx: CliContext) -> None:
    if not _ensure_results(ctx):
        return
    idx = _prompt_result_index(ctx)
    if idx is None:
        return
    console.print(escape(play_url(ctx.session.visible[idx], ctx.session.query)))
    _ui_prompt("Press Enter to continue", default="")


def _handle_favorites_action(ctx: CliContext) -> None:
    items = favorite_items(ctx.favorites.get_all(), ctx.play_records.get_all())
    if not items:
        _ui_info("No favorites yet.")
        _ui_prompt("Press Enter to continue", default="")
        return
    table = Table(title=f"Favorites ({len(items)})")
    table.add_column("Title", style="bold")
    table.add_column("Year", style="green", no_wrap=True)
    table.add_column("Source", style="yellow")
    table.add_column("Episodes", justify="right")
    table.add_column("Watching", justify="right")
    for item in items:
        watching = str(item.current_episode + 1) if item.current_episode is not None else "-"
        table.add_row(Text(item.title), Text(item.year), Text(item.source_name), str(item.episodes), watching)
    console.print(table)
    _ui_prompt("Press Enter to continue", default="")


def run_one_shot(ctx: CliContext, query: str) -> bool:
    """Search once, print the current view, and report whether the provider call succeeded."""
    session = ctx.session
    _search(ctx, query, submitted=False)
    if session.state == "failed":
        _ui_error(f"Search for '{escape(session.query)}' failed.")
        return False
    reason = session.empty_reason
    if reason == "no_results":
        emit("No results found.")
        return True
    if reason == "no_matches":
        emit(f"No results match the current filters ({escape(describe_filters(session.filters))}).")
        return True
    for idx, item in enumerate(session.visible, start=1):
        if session.filters.view_mode == "aggregated":
            emit(format_group(idx, item))
        else:
            emit(format_hit(idx, item))
        emit(escape(play_url(item, session.query)), indent=4)
    return True


def show_help(parser: argparse.ArgumentParser) -> None:
    print(f"REELMERGE v{getattr(pkg, '__version__', '0.0.0')} - One search, every source")
    print()
    parser.print_help()


def resolve_config_path(args_config: Optional[str]) -> Path:
    if args_config:
        p = Path(args_config).expanduser()
        if p.is_dir():
            p = p / "config.toml"
        return p

    cwd_candidate = Path.cwd() / "config.toml"
    if cwd_candidate.exists():
        return cwd_candidate

    repo_root = Path(__file__).resolve().parent.parent
    root_candidate = repo_root / "config.toml"
    if root_candidate.exists() and (
        (repo_root / ".git").exists() or (repo_root / "pyproject.toml").exists()
    ):
        return root_candidate
    return cwd_candidate


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(add_help=False)
    for args, kwargs in (
        (("-h", "--help"), {"action": "store_true", "help": "Show help"}),
        (("-c", "--config"), {"metavar": "PATH", "help": "Path to config.toml (file or directory)"}),
        (("--log",), {"metavar": "FILE", "help": "Mirror output to a log file"}),
        (("-d", "--debug"), {"action": "store_true", "help": "Debug mode with API calls, JSON responses, timestamps"}),
        (("--aggregate",), {"action": "store_true", "help": "Group hits from different sources into titles"}),
        (("--flat",), {"action": "store_true", "help": "List every source hit separately"}),
        (("--sort",), {"choices": SORT_MODES, "default": "relevance", "help": "Sort order (default: relevance)"}),
        (("--year",), {"default": ALL, "help": "Only show this year"}),
        (("--source",), {"default": ALL, "help": "Only show this source name"}),
        (("--type",), {"choices": (ALL, "movie", "tv"), "default": ALL, "help": "Only show movies or series"}),
    ):
        parser.add_argument(*args, **kwargs)
    parser.add_argument('query', nargs='?', help='Search query (omit for the interactive menu)')
    return parser


def main():
    """Entry point"""
    _reset_cli_session_timer()
    parser = build_parser()

    try:
        args = parser.parse_args()
        if args.help:
            show_help(parser)
            sys.exit(0)
        if args.aggregate and args.flat:
            _ui_error("Cannot use both --aggregate and --flat")
            sys.exit(1)

        config = load_config(resolve_config_path(args.config))
        if args.aggregate or args.flat:
            config.defaults.aggregate = args.aggregate
        log_file = Path(args.log).expanduser() if args.log else None
        logger.set_logger(logger.ReelmergeLogger(log_file, debug=args.debug))

        ctx = build_context(config)
        try:
            ctx.session.set_sort(args.sort)
            ctx.session.set_year(args.year)
            ctx.session.set_source(args.source)
            ctx.session.set_type(args.type)

            if args.query:
                ok = run_one_shot(ctx, args.query)
                sys.exit(0 if ok else 1)
            main_menu(ctx)
            sys.exit(0)
        finally:
            ctx.session.close()
            logger.get_logger().close()
    except KeyboardInterrupt:
        _ui_goodbye_with_elapsed()
        sys.exit(0)
    except Exception as e:
        _ui_error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
