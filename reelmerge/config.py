"""
config.py - Configuration model for Reelmerge
"""

from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel, Field
from rich.console import Console
import sys

try:
    import tomllib
except ModuleNotFoundError:
    import tomli as tomllib

from reelmerge.catalog.moderation import DEFAULT_BLOCKLIST

console = Console()
DEFAULT_DATA_DIR = Path("~/.reelmerge")


class ProviderConfig(BaseModel):
    base_url: str = ""
    timeout: int = Field(default=10, description="Total request timeout in seconds")


class ModerationConfig(BaseModel):
    """Category blocklist applied to search hits before aggregation."""

    disabled: bool = Field(
        default=False,
        description="Turn the blocklist off for this deployment"
    )
    blocklist: List[str] = Field(
        default_factory=lambda: list(DEFAULT_BLOCKLIST),
        description="Substrings matched against each hit's type_name"
    )


class DefaultsConfig(BaseModel):
    aggregate: bool = Field(
        default=True,
        description="Start each search session in aggregated view"
    )


class HistoryConfig(BaseModel):
    path: Path = DEFAULT_DATA_DIR / "history.json"
    max_entries: int = Field(default=20, ge=1)


class LibraryConfig(BaseModel):
    path: Path = DEFAULT_DATA_DIR / "library.json"


class ReelmergeConfig(BaseModel):
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    moderation: ModerationConfig = Field(default_factory=ModerationConfig)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    library: LibraryConfig = Field(default_factory=LibraryConfig)
    config_path: Optional[Path] = None


def load_config(config_path: Path) -> ReelmergeConfig:
    """Load configuration from TOML file"""

    if not config_path.exists():
        console.print(f"[red][ERROR][/red] Configuration file not found: {config_path}")
        console.print("Please create config.toml with your provider settings")
        sys.exit(1)

    try:
        with open(config_path, "rb") as f:
            config_data = tomllib.load(f)

        return ReelmergeConfig(
            provider=ProviderConfig(**config_data.get("provider", {})),
            moderation=ModerationConfig(**config_data.get("moderation", {})),
            defaults=DefaultsConfig(**config_data.get("defaults", {})),
            history=HistoryConfig(**config_data.get("history", {})),
            library=LibraryConfig(**config_data.get("library", {})),
            config_path=config_path
        )

    except Exception as e:
        console.print(f"[red][ERROR][/red] Error loading configuration: {e}")
        sys.exit(1)
