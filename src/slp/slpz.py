"""Compressed replay container (`.slpz`).

Layout (big-endian header, 24 bytes):

    version | event_sizes_offset | game_start_offset | raw_size | compressed_events_offset | reserved

The raw replay prefix (container header, event size table, game start) follows
the header verbatim so metadata can be read without inflating anything. The
rest of the raw replay is stored as one zlib stream.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import TracebackType
from typing import BinaryIO, Final
import zlib

from construct import ConstructError, Int32ub, Struct

from .container import parse_event_sizes, parse_raw_header
from .errors import CompressionError, InvalidFileError, ParseLocation, TooNewFileError
from .game import Game, parse_game
from .game_start import GameStart, game_start_record, parse_game_start
from .ids import EventCode

SLPZ_VERSION: Final[int] = 0
MAX_SUPPORTED_SLPZ_VERSION: Final[int] = 0
DEFAULT_COMPRESSION_LEVEL: Final[int] = 3

_SLPZ_HEADER = Struct(
    "version" / Int32ub,
    "event_sizes_offset" / Int32ub,
    "game_start_offset" / Int32ub,
    "raw_size" / Int32ub,
    "compressed_events_offset" / Int32ub,
    "reserved" / Int32ub,
)
SLPZ_HEADER_LEN: Final[int] = _SLPZ_HEADER.sizeof()


@dataclass(frozen=True, slots=True)
class SlpzHeader:
    version: int
    event_sizes_offset: int
    game_start_offset: int
    raw_size: int
    compressed_events_offset: int


def parse_slpz_header(data: bytes) -> SlpzHeader:
    loc = ParseLocation.SLPZ_HEADER
    if len(data) < SLPZ_HEADER_LEN:
        raise InvalidFileError(loc, f"buffer too short for slpz header ({len(data)} bytes)")
    try:
        raw = _SLPZ_HEADER.parse(data[:SLPZ_HEADER_LEN])
    except ConstructError as exc:
        raise InvalidFileError(loc, str(exc)) from exc

    if int(raw.version) > MAX_SUPPORTED_SLPZ_VERSION:
        raise TooNewFileError(int(raw.version))
    header = SlpzHeader(
        version=int(raw.version),
        event_sizes_offset=int(raw.event_sizes_offset),
        game_start_offset=int(raw.game_start_offset),
        raw_size=int(raw.raw_size),
        compressed_events_offset=int(raw.compressed_events_offset),
    )
    if not (
        SLPZ_HEADER_LEN <= header.event_sizes_offset < header.game_start_offset < header.compressed_events_offset
    ):
        raise InvalidFileError(loc, "slpz offsets are out of order")
    return header


def _raw_prefix_end(raw: bytes) -> tuple[int, int, int]:
    header = parse_raw_header(raw)
    sizes = parse_event_sizes(raw, header.event_sizes_offset)
    game_start_size = sizes.table.record_size(EventCode.GAME_START, location=ParseLocation.GAME_START)
    # Validates the record before it is stored uncompressed.
    game_start_record(raw, sizes.game_start_offset, game_start_size)
    return header.event_sizes_offset, sizes.game_start_offset, sizes.game_start_offset + game_start_size


class SlpzCodec:
    """Reusable slpz compressor/decompressor handle.

    Holds primed zlib objects that are copied per file. One handle belongs to
    one worker; it is not safe to share across threads.
    """

    def __init__(self, level: int = DEFAULT_COMPRESSION_LEVEL) -> None:
        self.level = int(level)
        try:
            self._compressor = zlib.compressobj(self.level)
        except (ValueError, zlib.error) as exc:
            raise CompressionError(f"could not initialise compressor: {exc}") from exc
        self._decompressor = zlib.decompressobj()
        self._closed = False

    def __enter__(self) -> SlpzCodec:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True

    def _check_open(self) -> None:
        if self._closed:
            raise CompressionError("slpz codec is closed")

    def compress(self, raw: bytes) -> bytes:
        self._check_open()
        raw = bytes(raw)
        event_sizes_offset, game_start_offset, prefix_end = _raw_prefix_end(raw)

        try:
            compressor = self._compressor.copy()
            payload = compressor.compress(raw[prefix_end:]) + compressor.flush()
        except zlib.error as exc:
            raise CompressionError(f"could not compress replay: {exc}") from exc

        header = _SLPZ_HEADER.build(
            {
                "version": SLPZ_VERSION,
                "event_sizes_offset": SLPZ_HEADER_LEN + event_sizes_offset,
                "game_start_offset": SLPZ_HEADER_LEN + game_start_offset,
                "raw_size": len(raw),
                "compressed_events_offset": SLPZ_HEADER_LEN + prefix_end,
                "reserved": 0,
            }
        )
        return header + raw[:prefix_end] + payload

    def decompress(self, data: bytes) -> bytes:
        self._check_open()
        data = bytes(data)
        header = parse_slpz_header(data)
        if header.compressed_events_offset > len(data):
            raise InvalidFileError(ParseLocation.SLPZ_HEADER, "compressed events offset exceeds file size")

        prefix = data[SLPZ_HEADER_LEN : header.compressed_events_offset]
        try:
            decompressor = self._decompressor.copy()
            events = decompressor.decompress(data[header.compressed_events_offset :]) + decompressor.flush()
        except zlib.error as exc:
            raise CompressionError(f"could not decompress replay: {exc}") from exc
        if not decompressor.eof:
            raise CompressionError("compressed event stream is truncated")

        raw = prefix + events
        if len(raw) != header.raw_size:
            raise CompressionError(f"decompressed {len(raw)} bytes, header declares {header.raw_size}")
        return raw


def compress(raw: bytes, *, level: int = DEFAULT_COMPRESSION_LEVEL) -> bytes:
    with SlpzCodec(level) as codec:
        return codec.compress(raw)


def decompress(data: bytes) -> bytes:
    with SlpzCodec() as codec:
        return codec.decompress(data)


def parse_slpz_game(data: bytes, codec: SlpzCodec | None = None) -> Game:
    if codec is None:
        return parse_game(decompress(data))
    return parse_game(codec.decompress(data))


def read_slpz_game_start(stream: BinaryIO) -> GameStart:
    """Read the game start stored in the uncompressed slpz prefix."""
    head = stream.read(SLPZ_HEADER_LEN)
    header = parse_slpz_header(head)

    buf = bytearray(head)
    while len(buf) < header.compressed_events_offset:
        chunk = stream.read(header.compressed_events_offset - len(buf))
        if not chunk:
            break
        buf += chunk
    data = bytes(buf)

    sizes = parse_event_sizes(data, header.event_sizes_offset)
    size = sizes.table.record_size(EventCode.GAME_START, location=ParseLocation.GAME_START)
    return parse_game_start(game_start_record(data, header.game_start_offset, size))


__all__ = [
    "DEFAULT_COMPRESSION_LEVEL",
    "MAX_SUPPORTED_SLPZ_VERSION",
    "SLPZ_HEADER_LEN",
    "SLPZ_VERSION",
    "SlpzCodec",
    "SlpzHeader",
    "compress",
    "decompress",
    "parse_slpz_game",
    "parse_slpz_header",
    "read_slpz_game_start",
]
