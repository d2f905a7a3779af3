from __future__ import annotations

import logging
from pathlib import Path
from typing import Final

import msgspec
from platformdirs import PlatformDirs

from slp.ids import Character, character_from_name
from slp.slpz import DEFAULT_COMPRESSION_LEVEL

from .search import SEARCH_DISTANCE

APP_NAME: Final[str] = "slp-action-db"
CONFIG_FILENAME: Final[str] = "config.toml"

_LOG_LEVELS: Final[frozenset[str]] = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class ConfigError(ValueError):
    pass


class ActionDbConfig(msgspec.Struct, forbid_unknown_fields=True):
    workers: int = 8
    player_character: str = "FOX"
    opponent_character: str = "FOX"
    search_distance: float = SEARCH_DISTANCE
    compression_level: int = DEFAULT_COMPRESSION_LEVEL
    log_level: str = "WARNING"

    def validate(self) -> ActionDbConfig:
        if self.workers < 1:
            raise ConfigError(f"workers must be at least 1, got {self.workers}")
        if not 0 <= self.compression_level <= 9:
            raise ConfigError(f"compression_level must be in 0..9, got {self.compression_level}")
        if self.search_distance < 0:
            raise ConfigError(f"search_distance must not be negative, got {self.search_distance}")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ConfigError(f"unknown log_level: {self.log_level!r}")
        self.player()
        self.opponent()
        return self

    def player(self) -> Character:
        return _character(self.player_character, "player_character")

    def opponent(self) -> Character:
        return _character(self.opponent_character, "opponent_character")

    def logging_level(self) -> int:
        return logging.getLevelName(self.log_level.upper())


def _character(name: str, field: str) -> Character:
    character = character_from_name(name)
    if character is None:
        raise ConfigError(f"{field}: unknown character {name!r}")
    return character


def _dirs() -> PlatformDirs:
    return PlatformDirs(appname=APP_NAME, appauthor=False)


def default_config_path() -> Path:
    return Path(_dirs().user_config_path) / CONFIG_FILENAME


def decode_config(blob: bytes | str) -> ActionDbConfig:
    try:
        config = msgspec.toml.decode(blob, type=ActionDbConfig)
    except msgspec.DecodeError as exc:
        raise ConfigError(f"invalid config: {exc}") from exc
    return config.validate()


def load_config(path: Path | None = None) -> ActionDbConfig:
    """Load the config file; a missing file yields defaults."""
    path = default_config_path() if path is None else Path(path)
    if not path.is_file():
        return ActionDbConfig().validate()
    try:
        blob = path.read_bytes()
    except OSError as exc:
        raise ConfigError(f"could not read config {path}: {exc}") from exc
    try:
        return decode_config(blob)
    except ConfigError as exc:
        raise ConfigError(f"{path}: {exc}") from exc


__all__ = [
    "APP_NAME",
    "ActionDbConfig",
    "ConfigError",
    "decode_config",
    "default_config_path",
    "load_config",
]
