from __future__ import annotations

from dataclasses import dataclass

from .container import parse_event_sizes, parse_raw_header
from .errors import InvalidFileError, ParseLocation
from .frames import Frame, reconstruct_frames
from .game_start import GameStart, PORT_COUNT, game_start_record, parse_game_start
from .ids import CharacterColour, EventCode, Stage


@dataclass(frozen=True, slots=True)
class GameInfo:
    stage: Stage
    ports_used: tuple[bool, ...]
    character_colours: tuple[CharacterColour | None, ...]
    timer: int
    names: tuple[bytes, ...]
    connect_codes: tuple[bytes, ...]
    version: tuple[int, int, int, int]

    @classmethod
    def from_game_start(cls, game_start: GameStart) -> GameInfo:
        return cls(
            stage=game_start.stage,
            ports_used=tuple(colour is not None for colour in game_start.character_colours),
            character_colours=game_start.character_colours,
            timer=game_start.timer,
            names=game_start.names,
            connect_codes=game_start.connect_codes,
            version=game_start.version,
        )

    def low_high_ports(self) -> tuple[int, int] | None:
        """The two occupied ports, lowest first, when exactly two players are present."""
        used = [port for port, flag in enumerate(self.ports_used) if flag]
        if len(used) != 2:
            return None
        return used[0], used[1]


@dataclass(frozen=True, slots=True)
class Game:
    frame_count: int
    frames: tuple[tuple[Frame, ...] | None, ...]
    follower_frames: tuple[tuple[Frame, ...] | None, ...]
    info: GameInfo

    def port_frames(self, port: int) -> tuple[Frame, ...]:
        frames = self.frames[int(port)]
        if frames is None:
            raise KeyError(f"port {port} is not in use")
        return frames


def assemble_game(slot_frames: dict[int, tuple[Frame, ...]], game_start: GameStart) -> Game:
    frames: list[tuple[Frame, ...] | None] = [None] * PORT_COUNT
    follower_frames: list[tuple[Frame, ...] | None] = [None] * PORT_COUNT
    for slot, sequence in slot_frames.items():
        if slot < PORT_COUNT:
            frames[slot] = sequence
        else:
            follower_frames[slot - PORT_COUNT] = sequence

    first = next((sequence for sequence in frames if sequence is not None), None)
    if first is None:
        raise InvalidFileError(ParseLocation.GAME, "no port has a frame sequence")

    return Game(
        frame_count=len(first),
        frames=tuple(frames),
        follower_frames=tuple(follower_frames),
        info=GameInfo.from_game_start(game_start),
    )


def parse_game(data: bytes) -> Game:
    """Parse a raw (uncompressed) replay into per-port frame timelines."""
    data = bytes(data)
    header = parse_raw_header(data)
    sizes = parse_event_sizes(data, header.event_sizes_offset)
    game_start_size = sizes.table.record_size(EventCode.GAME_START, location=ParseLocation.GAME_START)
    game_start = parse_game_start(game_start_record(data, sizes.game_start_offset, game_start_size))

    slot_frames = reconstruct_frames(
        data,
        sizes.table,
        game_start,
        start=sizes.game_start_offset + game_start_size,
        end=header.metadata_offset,
    )
    return assemble_game(slot_frames, game_start)


__all__ = [
    "Game",
    "GameInfo",
    "assemble_game",
    "parse_game",
]
