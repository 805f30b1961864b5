"""Demo header parsing and parser error types."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from datetime import timedelta
from typing import BinaryIO

MAX_OS_PATH = 260

FILESTAMP_SOURCE1 = "HL2DEMO"
FILESTAMP_SOURCE2 = "PBDEMS2"

_MSG_QUEUE_MIN_SIZE = 50000
_MSG_QUEUE_MAX_SIZE = 500000

_NANOS_PER_SECOND = 1_000_000_000


class DemoParseError(Exception):
    """Base class for errors raised while parsing a demo."""


class ParsingCancelledError(DemoParseError):
    """Parsing was cancelled before it finished."""

    def __init__(self, message: str = "parsing was cancelled before it finished (ErrCancelled)") -> None:
        super().__init__(message)


class UnexpectedEndOfDemoError(DemoParseError):
    """The demo stream ended early; the demo is incomplete or corrupt."""

    def __init__(self, message: str = "demo stream ended unexpectedly (ErrUnexpectedEndOfDemo)") -> None:
        super().__init__(message)


class InvalidFileTypeError(DemoParseError):
    """The input is not a recognised demo file."""

    def __init__(
        self,
        message: str = "invalid File-Type; expecting HL2DEMO in the first 8 bytes (ErrInvalidFileType)",
    ) -> None:
        super().__init__(message)


def _to_nanoseconds(delta: timedelta) -> int:
    return delta // timedelta(microseconds=1) * 1000


def _from_nanoseconds(nanos: int) -> timedelta:
    return timedelta(microseconds=nanos / 1000)


@dataclass
class DemoHeader:
    """Metadata stored at the start of a demo."""

    filestamp: str = ""
    protocol: int = 0
    network_protocol: int = 0
    server_name: str = ""
    client_name: str = ""
    map_name: str = ""
    game_directory: str = ""
    playback_time: timedelta = field(default_factory=timedelta)
    playback_ticks: int = 0
    playback_frames: int = 0
    signon_length: int = 0

    @property
    def is_source2(self) -> bool:
        """Whether the demo uses the Source 2 format."""
        return self.filestamp == FILESTAMP_SOURCE2

    def legacy_tick_rate(self) -> float:
        """Ticks per second according to the header, 0 if unknown."""
        if self.playback_time == timedelta(0):
            return 0.0
        return self.playback_ticks / self.playback_time.total_seconds()

    def legacy_tick_time(self) -> timedelta:
        """Duration of one tick according to the header, 0 if unknown."""
        if self.playback_ticks == 0:
            return timedelta(0)
        nanos = _to_nanoseconds(self.playback_time)
        quotient = abs(nanos) // abs(self.playback_ticks)
        if (nanos < 0) != (self.playback_ticks < 0):
            quotient = -quotient
        return _from_nanoseconds(quotient)


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if data is None or len(data) < size:
        raise UnexpectedEndOfDemoError()
    return data


def _read_cstring(stream: BinaryIO, size: int) -> str:
    raw = _read_exact(stream, size)
    return raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def _read_int32(stream: BinaryIO) -> int:
    return struct.unpack("<i", _read_exact(stream, 4))[0]


def _read_float32(stream: BinaryIO) -> float:
    return struct.unpack("<f", _read_exact(stream, 4))[0]


def _float32(value: float) -> float:
    return struct.unpack("<f", struct.pack("<f", value))[0]


def read_header(stream: BinaryIO) -> DemoHeader:
    """Read the demo header from the start of ``stream``.

    Raises InvalidFileTypeError if the filestamp is unknown and
    UnexpectedEndOfDemoError if the stream is too short.
    """
    header = DemoHeader(filestamp=_read_cstring(stream, 8))

    if header.filestamp == FILESTAMP_SOURCE1:
        header.protocol = _read_int32(stream)
        header.network_protocol = _read_int32(stream)
        header.server_name = _read_cstring(stream, MAX_OS_PATH)
        header.client_name = _read_cstring(stream, MAX_OS_PATH)
        header.map_name = _read_cstring(stream, MAX_OS_PATH)
        header.game_directory = _read_cstring(stream, MAX_OS_PATH)
        seconds = _read_float32(stream)
        header.playback_time = _from_nanoseconds(int(_float32(seconds * _float32(_NANOS_PER_SECOND))))
        header.playback_ticks = _read_int32(stream)
        header.playback_frames = _read_int32(stream)
        header.signon_length = _read_int32(stream)
    elif header.filestamp == FILESTAMP_SOURCE2:
        _read_exact(stream, 8)
    else:
        raise InvalidFileTypeError()

    return header


def msg_queue_size(ticks: int) -> int:
    """Message queue size derived from the tick count, clamped to sane bounds."""
    return int(min(_MSG_QUEUE_MAX_SIZE, max(_MSG_QUEUE_MIN_SIZE, ticks)))