from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from construct import Array, Byte, Const, ConstError, ConstructError, Int16ub, Int32ub, Struct, this

from .errors import InvalidFileError, NotAnSlpFileError, ParseLocation
from .ids import EventCode

# UBJSON prefix: `{`, key "raw", typed byte array `[$U#l` with a big-endian i32 length.
RAW_MAGIC: Final[bytes] = b"{U\x03raw[$U#l"
RAW_HEADER_LEN: Final[int] = len(RAW_MAGIC) + 4
EVENT_CODE_COUNT: Final[int] = 256

_RAW_HEADER = Struct(
    "magic" / Const(RAW_MAGIC),
    "raw_len" / Int32ub,
)

_EVENT_SIZE_ENTRY = Struct(
    "code" / Byte,
    "size" / Int16ub,
)

_EVENT_PAYLOADS = Struct(
    "command" / Const(int(EventCode.EVENT_PAYLOADS), Byte),
    "info_size" / Byte,
    "entries" / Array((this.info_size - 1) // 3, _EVENT_SIZE_ENTRY),
)


@dataclass(frozen=True, slots=True)
class RawHeader:
    event_sizes_offset: int
    metadata_offset: int


@dataclass(frozen=True, slots=True)
class EventSizeTable:
    """Payload length per event code, as declared by one replay file.

    Undeclared codes read as 0 through indexing; `record_size` refuses them so
    the event stream cannot stall on an unknown command byte.
    """

    sizes: tuple[int | None, ...]

    def __post_init__(self) -> None:
        if len(self.sizes) != EVENT_CODE_COUNT:
            raise ValueError(f"event size table must have {EVENT_CODE_COUNT} entries, got {len(self.sizes)}")

    @classmethod
    def from_entries(cls, entries: dict[int, int]) -> EventSizeTable:
        sizes: list[int | None] = [None] * EVENT_CODE_COUNT
        for code, size in entries.items():
            sizes[int(code) & 0xFF] = int(size)
        return cls(sizes=tuple(sizes))

    def __getitem__(self, code: int) -> int:
        return int(self.sizes[int(code)] or 0)

    def declares(self, code: int) -> bool:
        return self.sizes[int(code)] is not None

    def record_size(self, code: int, *, location: ParseLocation = ParseLocation.EVENT_STREAM) -> int:
        size = self.sizes[int(code)]
        if size is None:
            raise InvalidFileError(location, f"event code 0x{int(code):02x} missing from event size table")
        return int(size) + 1


@dataclass(frozen=True, slots=True)
class EventSizes:
    table: EventSizeTable
    game_start_offset: int


def parse_raw_header(data: bytes) -> RawHeader:
    if len(data) < RAW_HEADER_LEN:
        raise NotAnSlpFileError(f"buffer too short for replay header ({len(data)} bytes)")
    try:
        parsed = _RAW_HEADER.parse(data[:RAW_HEADER_LEN])
    except ConstError as exc:
        raise NotAnSlpFileError() from exc
    except ConstructError as exc:
        raise NotAnSlpFileError(str(exc)) from exc

    raw_len = int(parsed.raw_len)
    # Recorders leave the length at zero until the match is finalised.
    if raw_len == 0:
        metadata_offset = len(data)
    else:
        metadata_offset = RAW_HEADER_LEN + raw_len
    return RawHeader(event_sizes_offset=RAW_HEADER_LEN, metadata_offset=metadata_offset)


def parse_event_sizes(data: bytes, event_sizes_offset: int) -> EventSizes:
    offset = int(event_sizes_offset)
    if len(data) < offset + 2:
        raise InvalidFileError(ParseLocation.EVENT_SIZES, "buffer too short for event size table")
    if data[offset] != EventCode.EVENT_PAYLOADS:
        raise InvalidFileError(ParseLocation.EVENT_SIZES, f"expected 0x35 marker, found 0x{data[offset]:02x}")

    info_size = int(data[offset + 1])
    if info_size < 1:
        raise InvalidFileError(ParseLocation.EVENT_SIZES, "event size table has zero length")
    if len(data) < offset + info_size + 1:
        raise InvalidFileError(
            ParseLocation.EVENT_SIZES,
            f"declared {info_size}-byte table exceeds {len(data) - offset}-byte buffer",
        )

    try:
        parsed = _EVENT_PAYLOADS.parse(data[offset : offset + info_size + 1])
    except ConstructError as exc:
        raise InvalidFileError(ParseLocation.EVENT_SIZES, str(exc)) from exc

    table = EventSizeTable.from_entries({int(entry.code): int(entry.size) for entry in parsed.entries})
    return EventSizes(table=table, game_start_offset=offset + info_size + 1)


def build_event_sizes(entries: dict[int, int]) -> bytes:
    """Encode an event size table record (the inverse of `parse_event_sizes`)."""
    items = [{"code": int(code), "size": int(size)} for code, size in entries.items()]
    return _EVENT_PAYLOADS.build({"info_size": len(items) * 3 + 1, "entries": items})


__all__ = [
    "EVENT_CODE_COUNT",
    "RAW_HEADER_LEN",
    "RAW_MAGIC",
    "EventSizeTable",
    "EventSizes",
    "RawHeader",
    "build_event_sizes",
    "parse_event_sizes",
    "parse_raw_header",
]
