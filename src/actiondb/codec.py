"""Fixed-width interaction database.

A database is an 8-byte header followed by 28-byte rows, all little-endian:

    header: version u32 | player character u8 | opponent character u8 | 2 pad
    row:    initiation (state u16, action u16, x f32, y f32)
            response   (state u16, action u16, x f32, y f32)
            score f32

Character bytes are internal character ids.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Final
import warnings

from construct import ConstructError, Float32l, Int8ul, Int16ul, Int32ul, Padding, Struct

from slp.ids import Character

from .situations import BroadState, HighLevelAction, Interaction, Situation, as_f32

VERSION: Final[int] = 0

_HEADER = Struct(
    "version" / Int32ul,
    "player_character" / Int8ul,
    "opponent_character" / Int8ul,
    Padding(2),
)

_SITUATION = Struct(
    "state" / Int16ul,
    "action" / Int16ul,
    "x" / Float32l,
    "y" / Float32l,
)

_ROW = Struct(
    "opponent_initiation" / _SITUATION,
    "player_response" / _SITUATION,
    "score" / Float32l,
)

HEADER_SIZE: Final[int] = _HEADER.sizeof()
ROW_SIZE: Final[int] = _ROW.sizeof()


class DatabaseError(ValueError):
    pass


class InvalidDatabaseError(DatabaseError):
    pass


class DatabaseVersionError(DatabaseError):
    def __init__(self, version: int) -> None:
        self.version = int(version)
        super().__init__(f"unsupported database version: {self.version} (expected {VERSION})")


class TruncatedDatabaseWarning(UserWarning):
    """A database ends with a partial row."""


@dataclass(frozen=True, slots=True)
class Header:
    version: int
    player_character: Character
    opponent_character: Character

    @classmethod
    def current(cls, player_character: Character, opponent_character: Character) -> Header:
        return cls(
            version=VERSION,
            player_character=Character(player_character),
            opponent_character=Character(opponent_character),
        )


@dataclass(frozen=True, slots=True)
class Row:
    player_response: Situation
    opponent_initiation: Situation
    score: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "score", as_f32(self.score))

    @classmethod
    def from_interaction(cls, interaction: Interaction) -> Row | None:
        """Collapse an interaction into a row, or None when it was never scored."""
        if interaction.score is None:
            return None
        player, opponent = interaction.score
        return cls(
            player_response=interaction.player_response,
            opponent_initiation=interaction.opponent_initiation,
            score=float(player.total - opponent.total),
        )


def write_header(header: Header) -> bytes:
    try:
        return _HEADER.build(
            {
                "version": int(header.version),
                "player_character": int(header.player_character),
                "opponent_character": int(header.opponent_character),
            }
        )
    except ConstructError as exc:
        raise InvalidDatabaseError(f"could not encode header: {exc}") from exc


def _situation_fields(situation: Situation) -> dict[str, object]:
    return {
        "state": situation.state.as_u16(),
        "action": situation.action.as_u16(),
        "x": float(situation.x),
        "y": float(situation.y),
    }


def write_row(row: Row) -> bytes:
    try:
        return _ROW.build(
            {
                "opponent_initiation": _situation_fields(row.opponent_initiation),
                "player_response": _situation_fields(row.player_response),
                "score": float(row.score),
            }
        )
    except (ConstructError, OverflowError) as exc:
        raise InvalidDatabaseError(f"could not encode row: {exc}") from exc


def _character(code: int, role: str) -> Character:
    try:
        return Character(int(code))
    except ValueError as exc:
        raise InvalidDatabaseError(f"unknown {role} character id: {code}") from exc


def read_header(data: bytes) -> Header:
    if len(data) < HEADER_SIZE:
        raise InvalidDatabaseError(f"database too short for header ({len(data)} bytes)")
    try:
        raw = _HEADER.parse(bytes(data[:HEADER_SIZE]))
    except ConstructError as exc:
        raise InvalidDatabaseError(f"could not decode header: {exc}") from exc
    return Header(
        version=int(raw.version),
        player_character=_character(raw.player_character, "player"),
        opponent_character=_character(raw.opponent_character, "opponent"),
    )


def _situation(raw, character: Character, role: str) -> Situation:
    state = BroadState.from_u16(character, raw.state)
    if state is None:
        raise InvalidDatabaseError(f"{role}: unknown broad state code {int(raw.state):#x} for {character.name}")
    action = HighLevelAction.from_u16(character, raw.action)
    if action is None:
        raise InvalidDatabaseError(f"{role}: unknown action code {int(raw.action):#x} for {character.name}")
    return Situation(state=state, action=action, x=float(raw.x), y=float(raw.y))


def read_row(data: bytes, header: Header) -> Row:
    if len(data) < ROW_SIZE:
        raise InvalidDatabaseError(f"row needs {ROW_SIZE} bytes, got {len(data)}")
    try:
        raw = _ROW.parse(bytes(data[:ROW_SIZE]))
    except ConstructError as exc:
        raise InvalidDatabaseError(f"could not decode row: {exc}") from exc
    return Row(
        player_response=_situation(raw.player_response, header.player_character, "player response"),
        opponent_initiation=_situation(raw.opponent_initiation, header.opponent_character, "opponent initiation"),
        score=float(raw.score),
    )


def read_file(data: bytes, *, strict: bool = False) -> tuple[Header, list[Row]]:
    """Decode a whole database.

    A trailing partial row is dropped with a `TruncatedDatabaseWarning`, or
    rejected when `strict` is set.
    """
    data = bytes(data)
    header = read_header(data)
    if header.version != VERSION:
        raise DatabaseVersionError(header.version)

    body = memoryview(data)[HEADER_SIZE:]
    count, remainder = divmod(len(body), ROW_SIZE)
    if remainder:
        if strict:
            raise InvalidDatabaseError(f"database ends with a partial row ({remainder} trailing bytes)")
        warnings.warn(
            f"Database ends with a partial row; ignoring {remainder} trailing bytes.",
            category=TruncatedDatabaseWarning,
            stacklevel=2,
        )

    rows: list[Row] = []
    for index in range(count):
        start = index * ROW_SIZE
        try:
            rows.append(read_row(body[start : start + ROW_SIZE], header))
        except InvalidDatabaseError as exc:
            raise InvalidDatabaseError(f"row {index}: {exc}") from exc
    return header, rows


def write_file(header: Header, rows: Iterable[Row]) -> bytes:
    out = bytearray(write_header(header))
    for row in rows:
        out += write_row(row)
    return bytes(out)


def load_database(path: Path, *, strict: bool = False) -> tuple[Header, list[Row]]:
    return read_file(Path(path).read_bytes(), strict=strict)


def dump_database(path: Path, header: Header, rows: Iterable[Row]) -> int:
    """Write a database file and return the number of rows written."""
    rows = list(rows)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(write_file(header, rows))
    return len(rows)


__all__ = [
    "HEADER_SIZE",
    "ROW_SIZE",
    "VERSION",
    "DatabaseError",
    "DatabaseVersionError",
    "Header",
    "InvalidDatabaseError",
    "Row",
    "TruncatedDatabaseWarning",
    "dump_database",
    "load_database",
    "read_file",
    "read_header",
    "read_row",
    "write_file",
    "write_header",
    "write_row",
]
