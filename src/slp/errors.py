from __future__ import annotations

from enum import Enum


class ParseLocation(str, Enum):
    """Parsing stage that rejected the input."""

    EVENT_SIZES = "event_sizes"
    GAME_START = "game_start"
    EVENT_STREAM = "event_stream"
    PRE_FRAME_UPDATE = "pre_frame_update"
    POST_FRAME_UPDATE = "post_frame_update"
    FRAME_BOOKEND = "frame_bookend"
    GAME = "game"
    SLPZ_HEADER = "slpz_header"


class SlpError(ValueError):
    pass


class NotAnSlpFileError(SlpError):
    def __init__(self, message: str = "not a slippi replay") -> None:
        super().__init__(message)


class InvalidFileError(SlpError):
    def __init__(self, location: ParseLocation, detail: str) -> None:
        self.location = location
        self.detail = detail
        super().__init__(f"invalid replay ({location.value}): {detail}")


class OutdatedFileError(SlpError):
    def __init__(self, version: tuple[int, ...]) -> None:
        self.version = tuple(version)
        super().__init__(f"replay version {'.'.join(str(v) for v in self.version)} is too old")


class TooNewFileError(SlpError):
    def __init__(self, version: int) -> None:
        self.version = int(version)
        super().__init__(f"unsupported slpz version: {self.version}")


class CompressionError(SlpError):
    pass


__all__ = [
    "CompressionError",
    "InvalidFileError",
    "NotAnSlpFileError",
    "OutdatedFileError",
    "ParseLocation",
    "SlpError",
    "TooNewFileError",
]
