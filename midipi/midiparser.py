"""Byte-stream parser for MIDI messages with running status and SysEx support."""

from __future__ import annotations

import enum
import logging
from typing import Callable, Iterable, Optional

logger = logging.getLogger(__name__)

ShortMessageHandler = Callable[[int], None]
SysExHandler = Callable[[bytes], None]


class _State(enum.Enum):
    STATUS_BYTE = enum.auto()
    DATA_BYTE = enum.auto()
    SYSEX_BYTE = enum.auto()


class MidiParser:
    """Turn a stream of raw MIDI bytes into complete messages.

    Short messages are delivered as an integer with the status byte in the
    lowest eight bits and the data bytes above it. SysEx messages are
    delivered as bytes including the leading 0xF0 and trailing 0xF7.

    Handlers may be passed to the constructor, or the ``on_*`` methods may be
    overridden in a subclass.
    """

    SYSEX_BUFFER_SIZE = 1000

    def __init__(
        self,
        on_short_message: Optional[ShortMessageHandler] = None,
        on_sysex_message: Optional[SysExHandler] = None,
    ) -> None:
        self._short_handler = on_short_message
        self._sysex_handler = on_sysex_message
        self._state = _State.STATUS_BYTE
        self._running_status = 0
        self._message = bytearray()

    def parse(self, data: Iterable[int], ignore_note_ons: bool = False) -> None:
        """Feed bytes into the parser, dispatching every message completed."""
        for byte in data:
            # System Real-Time: single byte, may appear anywhere in the stream
            if byte >= 0xF8:
                if byte not in (0xF9, 0xFD):
                    self.on_short_message(byte)
                continue

            if self._state is _State.STATUS_BYTE:
                self._parse_status_byte(byte)

            elif self._state is _State.DATA_BYTE:
                if byte & 0x80:
                    self.on_unexpected_status()
                    self._reset(clear_status=True)
                    self._parse_status_byte(byte)
                    continue
                self._append(byte)
                self._check_complete_short_message(ignore_note_ons)

            else:
                if byte & 0x80 and byte != 0xF7:
                    self.on_unexpected_status()
                    self._reset(clear_status=True)
                    self._parse_status_byte(byte)
                    continue

                if len(self._message) == self.SYSEX_BUFFER_SIZE:
                    self.on_sysex_overflow()
                    self._reset(clear_status=True)
                    self._parse_status_byte(byte)
                    continue

                self._append(byte)
                if byte == 0xF7:
                    self.on_sysex_message(bytes(self._message))
                    self._reset(clear_status=True)

    def on_short_message(self, message: int) -> None:
        """Handle a complete short message."""
        if self._short_handler is not None:
            self._short_handler(message)

    def on_sysex_message(self, data: bytes) -> None:
        """Handle a complete SysEx message."""
        if self._sysex_handler is not None:
            self._sysex_handler(data)

    def on_unexpected_status(self) -> None:
        """Called when a status byte arrives where data was expected."""
        if self._state is _State.SYSEX_BYTE:
            logger.warning("Received illegal status byte during SysEx message; SysEx ignored")
        else:
            logger.warning("Received illegal status byte when data expected")

    def on_sysex_overflow(self) -> None:
        """Called when a SysEx message exceeds the buffer size."""
        logger.warning("Buffer overrun when receiving SysEx message; SysEx ignored")

    def _append(self, byte: int) -> None:
        if not self._message:
            self._running_status = byte
        self._message.append(byte)

    def _parse_status_byte(self, byte: int) -> None:
        if byte & 0x80:
            if byte in (0xF4, 0xF5, 0xF7):
                # Stray End of SysEx or undefined System Common; clear running status
                self._running_status = 0
                return
            if byte == 0xF0:
                self._state = _State.SYSEX_BYTE
            elif byte == 0xF6:
                # Tune Request: single byte, handled immediately
                self.on_short_message(byte)
                self._running_status = 0
            else:
                self._state = _State.DATA_BYTE
            self._append(byte)

        elif self._running_status:
            self._message = bytearray((self._running_status, byte))
            if not self._check_complete_short_message():
                self._state = _State.DATA_BYTE

    def _check_complete_short_message(self, ignore_note_ons: bool = False) -> bool:
        status = self._message[0]
        length = len(self._message)
        two_byte = 0xC0 <= status <= 0xDF or status in (0xF1, 0xF3)

        if length == 3 or (length == 2 and two_byte):
            is_note_on = (status & 0xF0) == 0x90
            if not (is_note_on and ignore_note_ons):
                self.on_short_message(int.from_bytes(self._message, "little"))
            # System Common messages cancel running status
            self._reset(clear_status=0xF1 <= status <= 0xF7)
            return True

        return False

    def _reset(self, clear_status: bool) -> None:
        if clear_status:
            self._running_status = 0
        self._message.clear()
        self._state = _State.STATUS_BYTE