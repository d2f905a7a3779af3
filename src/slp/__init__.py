from __future__ import annotations

from .container import EventSizeTable, EventSizes, RawHeader, parse_event_sizes, parse_raw_header
from .errors import (
    CompressionError,
    InvalidFileError,
    NotAnSlpFileError,
    OutdatedFileError,
    ParseLocation,
    SlpError,
    TooNewFileError,
)
from .frames import NULL_FRAME, Frame, FrameReconstructor, FrameStore, reconstruct_frames
from .game import Game, GameInfo, assemble_game, parse_game
from .game_start import GameStart, parse_game_start, read_game_start
from .ids import ActionState, Character, CharacterColour, EventCode, Stage, StandardActionState
from .slpz import SlpzCodec, parse_slpz_game, read_slpz_game_start

__all__ = [
    "NULL_FRAME",
    "ActionState",
    "Character",
    "CharacterColour",
    "CompressionError",
    "EventCode",
    "EventSizeTable",
    "EventSizes",
    "Frame",
    "FrameReconstructor",
    "FrameStore",
    "Game",
    "GameInfo",
    "GameStart",
    "InvalidFileError",
    "NotAnSlpFileError",
    "OutdatedFileError",
    "ParseLocation",
    "RawHeader",
    "SlpError",
    "SlpzCodec",
    "Stage",
    "StandardActionState",
    "TooNewFileError",
    "assemble_game",
    "parse_event_sizes",
    "parse_game",
    "parse_game_start",
    "parse_raw_header",
    "parse_slpz_game",
    "read_game_start",
    "read_slpz_game_start",
    "reconstruct_frames",
]
