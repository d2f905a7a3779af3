from __future__ import annotations

from typing import Any, Final

from construct import Bytes, Construct, ConstructError, Int8ub, Int16ub, Int32ub

from .errors import InvalidFileError, ParseLocation

# Replay payloads are big-endian throughout.
U8: Final[Construct] = Int8ub
U16: Final[Construct] = Int16ub
U32: Final[Construct] = Int32ub


def has_field(data: bytes, offset: int, field: Construct) -> bool:
    return 0 <= int(offset) and int(offset) + field.sizeof() <= len(data)


def read_field(data: bytes, offset: int, field: Construct, *, location: ParseLocation) -> Any:
    size = field.sizeof()
    offset = int(offset)
    if offset < 0 or offset + size > len(data):
        raise InvalidFileError(location, f"{size}-byte field at 0x{offset:x} exceeds {len(data)}-byte buffer")
    try:
        return field.parse(data[offset : offset + size])
    except ConstructError as exc:
        raise InvalidFileError(location, str(exc)) from exc


def read_u8(data: bytes, offset: int, *, location: ParseLocation) -> int:
    return int(read_field(data, offset, U8, location=location))


def read_u16(data: bytes, offset: int, *, location: ParseLocation) -> int:
    return int(read_field(data, offset, U16, location=location))


def read_u32(data: bytes, offset: int, *, location: ParseLocation) -> int:
    return int(read_field(data, offset, U32, location=location))


def read_bytes(data: bytes, offset: int, size: int, *, location: ParseLocation) -> bytes:
    return bytes(read_field(data, offset, Bytes(int(size)), location=location))


def parse_struct(struct: Construct, data: bytes, *, location: ParseLocation) -> Any:
    """Parse a fixed-size record struct, mapping short buffers to `InvalidFileError`."""
    size = struct.sizeof()
    if len(data) < size:
        raise InvalidFileError(location, f"record is {len(data)} bytes, expected at least {size}")
    try:
        return struct.parse(data[:size])
    except ConstructError as exc:
        raise InvalidFileError(location, str(exc)) from exc


__all__ = [
    "U16",
    "U32",
    "U8",
    "has_field",
    "parse_struct",
    "read_bytes",
    "read_field",
    "read_u16",
    "read_u32",
    "read_u8",
]
