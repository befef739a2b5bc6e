from __future__ import annotations

from pathlib import Path

import pytest

from reelmerge.catalog.moderation import DEFAULT_BLOCKLIST
from reelmerge.config import ReelmergeConfig, load_config


def test_load_config_reads_sections(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text(
        """
[provider]
base_url = "https://search.example"
timeout = 5

[moderation]
disabled = true

[defaults]
aggregate = false

[history]
path = "~/custom/history.json"
max_entries = 5
""",
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.provider.base_url == "https://search.example"
    assert config.provider.timeout == 5
    assert config.moderation.disabled is True
    assert config.moderation.blocklist == list(DEFAULT_BLOCKLIST)
    assert config.defaults.aggregate is False
    assert config.history.path == Path("~/custom/history.json")
    assert config.history.max_entries == 5
    assert config.library.path == Path("~/.reelmerge/library.json")
    assert config.config_path == path


def test_defaults_without_file() -> None:
    config = ReelmergeConfig()

    assert config.defaults.aggregate is True
    assert config.history.max_entries == 20
    assert config.moderation.disabled is False


def test_load_config_missing_file_exits(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        load_config(tmp_path / "missing.toml")

    assert excinfo.value.code == 1


def test_load_config_rejects_invalid_values(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("[history]\nmax_entries = 0\n", encoding="utf-8")

    with pytest.raises(SystemExit):
        load_config(path)
