"""Frame-by-frame demo parser with event and net-message dispatching."""

from __future__ import annotations

import dataclasses
import io
import struct
import threading
from dataclasses import dataclass, field
from datetime import timedelta
from enum import IntEnum
from typing import Any, BinaryIO, Callable, Dict, Optional

from .dispatch import Dispatcher, HandlerIdentifier
from .events import FrameDone
from .game_state import GameState
from .header import (
    FILESTAMP_SOURCE1,
    FILESTAMP_SOURCE2,
    DemoHeader,
    DemoParseError,
    ParsingCancelledError,
    UnexpectedEndOfDemoError,
    read_header,
)

NetMessageCreator = Callable[[bytes], Any]

# 152 bytes of command info followed by two 4-byte sequence numbers.
_COMMAND_INFO_SIZE = 152 + 4 + 4

_S2_COMPRESSED_FLAG = 64
_S2_STOP = 0
_S2_PREGAME_TICK = 0xFFFFFFFF


class _DemoCommand(IntEnum):
    SIGNON = 1
    PACKET = 2
    SYNCTICK = 3
    CONSOLE_COMMAND = 4
    USER_COMMAND = 5
    DATA_TABLES = 6
    STOP = 7
    CUSTOM_DATA = 8
    STRING_TABLES = 9


@dataclass(frozen=True)
class _IngameTick:
    tick: int


class _FrameParsed:
    """Marks the end of a frame's queued messages."""


_FRAME_PARSED = _FrameParsed()


@dataclass
class ParserConfig:
    """Configuration for a :class:`Parser`.

    ``additional_net_message_creators`` maps net-message IDs to callables
    that turn a message's raw bytes into an object, which is then passed to
    the net-message handlers registered for its type.
    """

    additional_net_message_creators: Dict[int, NetMessageCreator] = field(default_factory=dict)


def _float32(value: float) -> float:
    return struct.unpack("<f", struct.pack("<f", value))[0]


def _int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value >= (1 << 31) else value


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    if size < 0:
        raise DemoParseError(f"invalid negative length {size}")
    chunks = []
    remaining = size
    while remaining > 0:
        data = stream.read(remaining)
        if not data:
            raise UnexpectedEndOfDemoError()
        chunks.append(data)
        remaining -= len(data)
    return b"".join(chunks)


def _read_varint32(stream: BinaryIO) -> int:
    result = 0
    for shift in range(0, 35, 7):
        byte = _read_exact(stream, 1)[0]
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            break
    return result & 0xFFFFFFFF


def _read_int32(stream: BinaryIO) -> int:
    return struct.unpack("<i", _read_exact(stream, 4))[0]


class Parser:
    """Parses a demo stream and dispatches what it finds to registered handlers.

    Call :meth:`parse_header` first (done automatically otherwise), then
    :meth:`parse_next_frame` or :meth:`parse_to_end`. Exceptions raised by
    handlers are recorded and re-raised by the parsing methods.
    """

    def __init__(self, stream: BinaryIO, config: Optional[ParserConfig] = None) -> None:
        self._stream = stream
        self._config = config or ParserConfig()
        self._header: Optional[DemoHeader] = None
        self._queue_initialised = False
        self._tick_interval = 0.0
        self._error: Optional[BaseException] = None
        self._error_lock = threading.Lock()
        self.current_frame = 0

        self._msg_dispatcher = Dispatcher(on_error=self._set_error)
        self._event_dispatcher = Dispatcher(on_error=self._set_error)
        self.game_state = GameState(is_source2=self._is_source2)

        self._msg_dispatcher.register_handler(
            _IngameTick, lambda message: self.game_state.handle_ingame_tick(message.tick)
        )
        self._msg_dispatcher.register_handler(_FrameParsed, self._handle_frame_parsed)

    def __enter__(self) -> "Parser":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def tick_interval(self) -> float:
        """Seconds between server ticks, 0 if not yet known."""
        return self._tick_interval

    @tick_interval.setter
    def tick_interval(self, value: float) -> None:
        self._tick_interval = _float32(value)

    def _is_source2(self) -> bool:
        return self._header is not None and self._header.is_source2

    def header(self) -> DemoHeader:
        """A copy of the demo header; raises if it has not been parsed yet."""
        if self._header is None:
            raise DemoParseError("the demo header has not been parsed yet")
        return dataclasses.replace(self._header)

    def current_time(self) -> timedelta:
        """Time elapsed since the start of the demo."""
        nanos = _float32(
            _float32(_float32(self.game_state.ingame_tick) * self._tick_interval) * _float32(1e9)
        )
        return timedelta(microseconds=int(nanos) / 1000)

    def tick_rate(self) -> float:
        """Server ticks per second, from the server info or the header; -1 if unknown."""
        if self._tick_interval != 0:
            return 1.0 / self._tick_interval
        if self._header is not None:
            return self._header.legacy_tick_rate()
        return -1.0

    def tick_time(self) -> Optional[timedelta]:
        """Duration of one tick, from the server info or the header; None if unknown."""
        if self._tick_interval != 0:
            nanos = int(_float32(_float32(1e9) * self._tick_interval))
            return timedelta(microseconds=nanos / 1000)
        if self._header is not None:
            return self._header.legacy_tick_time()
        return None

    def progress(self) -> float:
        """Parsing progress from 0 to 1, based on the frame count in the header."""
        if self._header is None or self._header.playback_frames == 0:
            return 0.0
        return self.current_frame / self._header.playback_frames

    def register_event_handler(self, event_type: type, handler: Callable[[Any], Any]) -> HandlerIdentifier:
        """Call ``handler`` for game events of ``event_type`` (``object`` for all)."""
        return self._event_dispatcher.register_handler(event_type, handler)

    def unregister_event_handler(self, identifier: HandlerIdentifier) -> None:
        """Remove a game event handler."""
        self._event_dispatcher.unregister_handler(identifier)

    def register_net_message_handler(
        self, message_type: type, handler: Callable[[Any], Any]
    ) -> HandlerIdentifier:
        """Call ``handler`` for net-messages of ``message_type``."""
        return self._msg_dispatcher.register_handler(message_type, handler)

    def unregister_net_message_handler(self, identifier: HandlerIdentifier) -> None:
        """Remove a net-message handler."""
        self._msg_dispatcher.unregister_handler(identifier)

    def close(self) -> None:
        """Drop queued messages; nothing further is delivered to net-message handlers."""
        self._msg_dispatcher.remove_all_queues()

    def cancel(self) -> None:
        """Abort parsing; no further events reach any handler."""
        self._set_error(ParsingCancelledError())
        self._event_dispatcher.unregister_all_handlers()
        self._msg_dispatcher.unregister_all_handlers()

    def _set_error(self, error: Optional[BaseException]) -> None:
        if error is None:
            return
        with self._error_lock:
            if self._error is None:
                self._error = error

    def _raise_pending_error(self) -> None:
        with self._error_lock:
            error = self._error
        if error is not None:
            raise error

    def parse_header(self) -> DemoHeader:
        """Parse and return the demo header.

        Raises InvalidFileTypeError if the stream is not a known demo format.
        """
        header = read_header(self._stream)
        if not self._queue_initialised:
            self._msg_dispatcher.open_queue()
            self._queue_initialised = True
        self._header = header
        return dataclasses.replace(header)

    def parse_next_frame(self) -> bool:
        """Parse one demo frame; False once the demo's stop command is reached."""
        if self._header is None:
            self.parse_header()
        more_frames = False
        try:
            more_frames = self._parse_frame()
        finally:
            self._msg_dispatcher.sync_all_queues()
            if not more_frames:
                self._msg_dispatcher.remove_all_queues()
        self._raise_pending_error()
        return more_frames

    def parse_to_end(self) -> None:
        """Parse the demo until its end.

        Raises ParsingCancelledError if :meth:`cancel` was called, and
        UnexpectedEndOfDemoError for a truncated demo.
        """
        try:
            if self._header is None:
                self.parse_header()
            while True:
                more_frames = self._parse_frame()
                self._msg_dispatcher.sync_all_queues()
                self._raise_pending_error()
                if not more_frames:
                    break
        finally:
            self._msg_dispatcher.sync_all_queues()
            self._msg_dispatcher.remove_all_queues()
        self._raise_pending_error()
        self._ensure_playback_values_are_set()

    def _parse_frame(self) -> bool:
        assert self._header is not None
        if self._header.filestamp == FILESTAMP_SOURCE1:
            return self._parse_frame_s1()
        if self._header.filestamp == FILESTAMP_SOURCE2:
            return self._parse_frame_s2()
        raise DemoParseError(f"unknown demo version: {self._header.filestamp}")

    def _parse_frame_s1(self) -> bool:
        stream = self._stream
        raw_command = _read_exact(stream, 1)[0]
        self._msg_dispatcher.enqueue(_IngameTick(_read_int32(stream)))
        _read_exact(stream, 1)  # player slot

        try:
            command = _DemoCommand(raw_command)
        except ValueError:
            raise DemoParseError(f"unknown demo command {raw_command}") from None

        if command is _DemoCommand.STOP:
            return False
        if command is _DemoCommand.CONSOLE_COMMAND:
            _read_exact(stream, _read_int32(stream))
        elif command in (_DemoCommand.DATA_TABLES, _DemoCommand.STRING_TABLES):
            self._msg_dispatcher.sync_all_queues()
            _read_exact(stream, _read_int32(stream))
        elif command is _DemoCommand.USER_COMMAND:
            _read_exact(stream, 4)
            _read_exact(stream, _read_int32(stream))
        elif command in (_DemoCommand.SIGNON, _DemoCommand.PACKET):
            self._parse_packet()
        elif command is _DemoCommand.CUSTOM_DATA:
            raise DemoParseError("found CustomData but not handled")

        self._msg_dispatcher.enqueue(_FRAME_PARSED)
        return True

    def _parse_packet(self) -> None:
        _read_exact(self._stream, _COMMAND_INFO_SIZE)
        chunk = _read_exact(self._stream, _read_int32(self._stream))
        reader = io.BytesIO(chunk)
        creators = self._config.additional_net_message_creators

        while reader.tell() < len(chunk):
            cmd = _read_varint32(reader)
            data = _read_exact(reader, _read_varint32(reader))
            creator = creators.get(cmd)
            if creator is None:
                continue
            try:
                message = creator(data)
            except Exception as exc:  # noqa: BLE001 - recorded as the parse error
                error = DemoParseError(f"failed to unmarshal cmd {cmd}: {exc}")
                error.__cause__ = exc
                self._set_error(error)
                return
            self._msg_dispatcher.enqueue(message)

    def _parse_frame_s2(self) -> bool:
        stream = self._stream
        command = _read_varint32(stream)
        message_type = command & ~_S2_COMPRESSED_FLAG

        tick = _read_varint32(stream)
        if tick == _S2_PREGAME_TICK:
            tick = 0
        self._msg_dispatcher.enqueue(_IngameTick(_int32(tick)))

        _read_exact(stream, _read_varint32(stream))

        self._msg_dispatcher.enqueue(_FRAME_PARSED)
        return message_type != _S2_STOP

    def _handle_frame_parsed(self, _token: _FrameParsed) -> None:
        self.current_frame += 1
        self._event_dispatcher.dispatch(FrameDone())

    def _ensure_playback_values_are_set(self) -> None:
        header = self._header
        if header is None or header.playback_ticks != 0:
            return
        header.playback_ticks = self.game_state.ingame_tick
        header.playback_frames = self.current_frame
        seconds = int(_float32(_float32(header.playback_ticks) * self._tick_interval))
        header.playback_time = timedelta(seconds=seconds)