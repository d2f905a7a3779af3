from __future__ import annotations

import logging

import pytest

from actiondb import config as actiondb_config
from actiondb.config import ActionDbConfig, ConfigError, decode_config, load_config
from slp.ids import Character


def test_missing_config_file_yields_defaults(tmp_path) -> None:
    cfg = load_config(tmp_path / "missing.toml")
    assert cfg == ActionDbConfig()
    assert cfg.workers == 8
    assert cfg.search_distance == 2.0
    assert cfg.compression_level == 3
    assert cfg.player() is Character.FOX
    assert cfg.opponent() is Character.FOX
    assert cfg.logging_level() == logging.WARNING


def test_config_file_overrides(tmp_path) -> None:
    path = tmp_path / "config.toml"
    path.write_text(
        'workers = 2\nplayer_character = "falco"\nopponent_character = "Captain Falcon"\nlog_level = "info"\n',
        encoding="utf-8",
    )
    cfg = load_config(path)
    assert cfg.workers == 2
    assert cfg.player() is Character.FALCO
    assert cfg.opponent() is Character.CAPTAIN_FALCON
    assert cfg.logging_level() == logging.INFO


@pytest.mark.parametrize(
    "text",
    [
        "workers = 0",
        "compression_level = 12",
        'player_character = "luigi2"',
        'log_level = "LOUD"',
        "search_distance = -1.0",
        "unknown_key = 1",
        "workers = [",
    ],
)
def test_invalid_config_raises(text: str) -> None:
    with pytest.raises(ConfigError):
        decode_config(text)


def test_default_config_path_uses_user_config_dir(monkeypatch, tmp_path) -> None:
    class _Dirs:
        user_config_path = tmp_path / "cfg"

    monkeypatch.setattr(actiondb_config, "_dirs", lambda: _Dirs())
    assert actiondb_config.default_config_path() == tmp_path / "cfg" / "config.toml"
    assert load_config() == ActionDbConfig()
