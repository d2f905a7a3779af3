from __future__ import annotations

from dataclasses import dataclass, field
from typing import BinaryIO, Final

from .container import parse_event_sizes, parse_raw_header
from .errors import InvalidFileError, OutdatedFileError, ParseLocation
from .fields import read_bytes, read_u8, read_u16, read_u32
from .ids import CharacterColour, EventCode, Stage, character_from_external, stage_from_u16

MIN_VERSION_MAJOR: Final[int] = 1
MIN_VERSION_MINOR: Final[int] = 0

PORT_COUNT: Final[int] = 4
PORT_TYPE_HUMAN: Final[int] = 0
PORT_TYPE_EMPTY: Final[int] = 3

NAME_SIZE: Final[int] = 31
CONNECT_CODE_SIZE: Final[int] = 10

# Offsets inside the game info block (record offset 5).
_GAME_INFO_OFFSET = 5
_STAGE_OFFSET = 0xE
_TIMER_OFFSET = 0x10
_PORT_BLOCK_OFFSET = 0x60
_PORT_BLOCK_STRIDE = 0x24

# Offsets from the start of the record.
_NAMES_OFFSET = 0x1A5
_CONNECT_CODES_OFFSET = 0x221

_FILE_INFO_READ_SIZE = 1024

_EMPTY_NAMES: Final[tuple[bytes, ...]] = (bytes(NAME_SIZE),) * PORT_COUNT
_EMPTY_CONNECT_CODES: Final[tuple[bytes, ...]] = (bytes(CONNECT_CODE_SIZE),) * PORT_COUNT


def _decode_display(raw: bytes) -> str:
    # In-game names are Shift-JIS, NUL padded.
    return raw.split(b"\x00", 1)[0].decode("shift_jis", errors="replace")


@dataclass(frozen=True, slots=True)
class GameStart:
    version: tuple[int, int, int, int]
    stage: Stage
    timer: int
    character_colours: tuple[CharacterColour | None, ...]
    port_types: tuple[int, ...] = (PORT_TYPE_EMPTY,) * PORT_COUNT
    names: tuple[bytes, ...] = field(default=_EMPTY_NAMES)
    connect_codes: tuple[bytes, ...] = field(default=_EMPTY_CONNECT_CODES)

    def display_name(self, port: int) -> str:
        return _decode_display(self.names[int(port)])

    def display_connect_code(self, port: int) -> str:
        return _decode_display(self.connect_codes[int(port)])

    @property
    def occupied_ports(self) -> tuple[int, ...]:
        return tuple(port for port, colour in enumerate(self.character_colours) if colour is not None)


def parse_game_start(record: bytes) -> GameStart:
    """Decode a game start record (command byte included)."""
    loc = ParseLocation.GAME_START
    if len(record) < 5:
        raise InvalidFileError(loc, f"record is {len(record)} bytes")
    if record[0] != EventCode.GAME_START:
        raise InvalidFileError(loc, f"expected 0x36 command, found 0x{record[0]:02x}")

    version = (int(record[1]), int(record[2]), int(record[3]), int(record[4]))
    major, minor = version[0], version[1]
    if major < MIN_VERSION_MAJOR or (major == MIN_VERSION_MAJOR and minor < MIN_VERSION_MINOR):
        raise OutdatedFileError(version)

    block = record[_GAME_INFO_OFFSET:]

    stage_code = read_u16(block, _STAGE_OFFSET, location=loc)
    stage = stage_from_u16(stage_code)
    if stage is None:
        raise InvalidFileError(loc, f"unknown stage id {stage_code}")

    timer = read_u32(block, _TIMER_OFFSET, location=loc)

    colours: list[CharacterColour | None] = [None] * PORT_COUNT
    port_types: list[int] = [PORT_TYPE_EMPTY] * PORT_COUNT
    names = list(_EMPTY_NAMES)
    connect_codes = list(_EMPTY_CONNECT_CODES)
    for port in range(PORT_COUNT):
        base = _PORT_BLOCK_OFFSET + _PORT_BLOCK_STRIDE * port
        port_type = read_u8(block, base + 1, location=loc)
        port_types[port] = port_type
        if port_type == PORT_TYPE_EMPTY:
            continue

        external_id = read_u8(block, base, location=loc)
        character = character_from_external(external_id)
        if character is None:
            raise InvalidFileError(loc, f"port {port}: unknown character id {external_id}")
        colour_id = read_u8(block, base + 3, location=loc)
        colour = CharacterColour.from_character_and_colour(character, colour_id)
        if colour is None:
            raise InvalidFileError(loc, f"port {port}: colour {colour_id} is invalid for {character.name}")
        colours[port] = colour

        name_offset = _NAMES_OFFSET + NAME_SIZE * port
        if len(record) >= name_offset + NAME_SIZE:
            names[port] = read_bytes(record, name_offset, NAME_SIZE, location=loc)
        code_offset = _CONNECT_CODES_OFFSET + CONNECT_CODE_SIZE * port
        if len(record) >= code_offset + CONNECT_CODE_SIZE:
            connect_codes[port] = read_bytes(record, code_offset, CONNECT_CODE_SIZE, location=loc)

    return GameStart(
        version=version,
        stage=stage,
        timer=int(timer),
        character_colours=tuple(colours),
        port_types=tuple(port_types),
        names=tuple(names),
        connect_codes=tuple(connect_codes),
    )


def game_start_record(data: bytes, game_start_offset: int, record_size: int) -> bytes:
    end = int(game_start_offset) + int(record_size)
    if end > len(data):
        raise InvalidFileError(ParseLocation.GAME_START, f"record ends at {end}, buffer is {len(data)} bytes")
    return bytes(data[int(game_start_offset) : end])


def read_game_start(stream: BinaryIO) -> GameStart:
    """Read only the game start of a raw replay, without touching the event stream."""
    buf = bytearray()
    while len(buf) < _FILE_INFO_READ_SIZE:
        chunk = stream.read(_FILE_INFO_READ_SIZE - len(buf))
        if not chunk:
            break
        buf += chunk
    data = bytes(buf)

    header = parse_raw_header(data)
    sizes = parse_event_sizes(data, header.event_sizes_offset)
    size = sizes.table.record_size(EventCode.GAME_START, location=ParseLocation.GAME_START)
    return parse_game_start(game_start_record(data, sizes.game_start_offset, size))


__all__ = [
    "CONNECT_CODE_SIZE",
    "MIN_VERSION_MAJOR",
    "MIN_VERSION_MINOR",
    "NAME_SIZE",
    "PORT_COUNT",
    "PORT_TYPE_EMPTY",
    "PORT_TYPE_HUMAN",
    "GameStart",
    "game_start_record",
    "parse_game_start",
    "read_game_start",
]
