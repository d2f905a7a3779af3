from __future__ import annotations

import struct

import pytest

from slp.container import RAW_HEADER_LEN, RAW_MAGIC, EventSizeTable, build_event_sizes, parse_event_sizes, parse_raw_header
from slp.errors import InvalidFileError, NotAnSlpFileError, ParseLocation
from slp.ids import EventCode

from replay_builder import two_port_replay


def test_raw_header_offsets() -> None:
    data = RAW_MAGIC + struct.pack(">I", 100) + bytes(120)
    header = parse_raw_header(data)
    assert header.event_sizes_offset == RAW_HEADER_LEN == 15
    assert header.metadata_offset == 15 + 100


def test_raw_header_zero_length_runs_to_end_of_buffer() -> None:
    data = RAW_MAGIC + struct.pack(">I", 0) + bytes(40)
    assert parse_raw_header(data).metadata_offset == len(data)


def test_raw_header_rejects_bad_magic() -> None:
    with pytest.raises(NotAnSlpFileError):
        parse_raw_header(b"{U\x03rax[$U#l" + bytes(8))


def test_raw_header_rejects_short_buffer() -> None:
    with pytest.raises(NotAnSlpFileError, match="too short"):
        parse_raw_header(RAW_MAGIC)


def test_event_size_table_roundtrip() -> None:
    blob = build_event_sizes({0x36: 0x1A0, 0x37: 0x32, 0x38: 0x25})
    assert blob[0] == EventCode.EVENT_PAYLOADS
    assert blob[1] == 3 * 3 + 1

    data = b"\xff" * 4 + blob + b"\x36"
    sizes = parse_event_sizes(data, 4)
    assert sizes.game_start_offset == 4 + len(blob)
    assert sizes.table[0x36] == 0x1A0
    assert sizes.table[0x37] == 0x32
    assert sizes.table[0x38] == 0x25
    assert sizes.table[0x99] == 0
    assert sizes.table.declares(0x38)
    assert not sizes.table.declares(0x99)


def test_event_size_table_rejects_missing_marker() -> None:
    with pytest.raises(InvalidFileError) as excinfo:
        parse_event_sizes(b"\x34\x04\x36\x00\x10", 0)
    assert excinfo.value.location is ParseLocation.EVENT_SIZES


def test_event_size_table_rejects_truncated_table() -> None:
    blob = build_event_sizes({0x36: 0x1A0, 0x37: 0x32})
    with pytest.raises(InvalidFileError, match="exceeds"):
        parse_event_sizes(blob[:-2], 0)


def test_record_size_counts_command_byte_and_refuses_unknown_codes() -> None:
    table = EventSizeTable.from_entries({0x37: 0x32})
    assert table.record_size(0x37) == 0x33
    with pytest.raises(InvalidFileError, match="0x99"):
        table.record_size(0x99)


def test_event_size_table_requires_full_width() -> None:
    with pytest.raises(ValueError):
        EventSizeTable(sizes=(None,) * 10)


def test_built_replay_declares_its_raw_length() -> None:
    data = two_port_replay(3)
    header = parse_raw_header(data)
    assert data[header.metadata_offset :].startswith(b"U\x08metadata")
