"""Tracks MIDI note and controller activity to estimate per-channel levels for meters."""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from .utility import clamp, ticks_to_millis

CHANNEL_COUNT = 16
NOTE_COUNT = 128

ATTACK_TIME_MILLIS = 20.0
DECAY_TIME_MILLIS = 100.0
SUSTAIN_LEVEL = 0.8
RELEASE_TIME_MILLIS = 150.0

PEAK_HOLD_TIME_MILLIS = 2000.0
PEAK_FALLOFF_TIME_MILLIS = 1000.0

DEFAULT_PERCUSSION_MASK = 1 << 9

_TICK_MASK = 0xFFFFFFFF


def _default_clock() -> int:
    return (time.monotonic_ns() // 1000) & _TICK_MASK


def _elapsed_millis(now: int, then: int) -> float:
    return float(ticks_to_millis((now - then) & _TICK_MASK))


class _Phase(enum.Enum):
    IDLE = enum.auto()
    NOTE_ON = enum.auto()
    NOTE_OFF = enum.auto()


@dataclass
class _Note:
    phase: _Phase = _Phase.IDLE
    on_time: int = 0
    off_time: int = 0
    velocity: int = 0
    damper: bool = False

    def release(self, ticks: int) -> None:
        self.phase = _Phase.NOTE_OFF
        self.off_time = ticks


@dataclass
class _Channel:
    volume: int = 100
    expression: int = 127
    pan: int = 64
    damper: int = 0
    notes: List[_Note] = field(default_factory=lambda: [_Note() for _ in range(NOTE_COUNT)])


class MidiMonitor:
    """Follow note-on/off and controller messages and report channel levels.

    ``clock`` returns the current time in ticks of a 1 MHz clock; it defaults
    to a monotonic clock wrapped to 32 bits.
    """

    def __init__(self, clock: Optional[Callable[[], int]] = None) -> None:
        self._clock = clock or _default_clock
        self._channels = [_Channel() for _ in range(CHANNEL_COUNT)]
        self._peak_levels = [0.0] * CHANNEL_COUNT
        self._peak_times = [0] * CHANNEL_COUNT
        self.reset_controllers(False)

    def on_short_message(self, message: int) -> None:
        """Update state from a packed short message (status in the low byte)."""
        status = message & 0xF0
        channel_state = self._channels[message & 0x0F]
        data1 = (message >> 8) & 0xFF
        data2 = (message >> 16) & 0xFF
        ticks = self._clock()

        if status in (0x80, 0x90):
            if data1 >= NOTE_COUNT:
                return
            note = channel_state.notes[data1]
            if status == 0x90 and data2:
                note.phase = _Phase.NOTE_ON
                note.on_time = ticks
                note.velocity = data2
                note.damper = bool(channel_state.damper)
            elif not note.damper:
                note.release(ticks)
        elif status == 0xB0:
            self._process_cc(channel_state, data1, data2, ticks)
        elif message & 0xFF == 0xFF:
            self.all_notes_off()
            self.reset_controllers(False)

    def channel_levels(
        self, ticks: int, percussion_mask: int = DEFAULT_PERCUSSION_MASK
    ) -> Tuple[List[float], List[float]]:
        """Return the current level and the held peak of every channel, each 0.0 to 1.0."""
        levels: List[float] = []
        peaks: List[float] = []

        for index, channel in enumerate(self._channels):
            percussion = bool(percussion_mask & (1 << index))
            envelope = self._percussion_envelope if percussion else self._envelope
            channel_volume = 0.0
            for note in channel.notes:
                note_volume = (
                    envelope(note)
                    * (note.velocity / 127.0)
                    * (channel.volume / 127.0)
                    * (channel.expression / 127.0)
                )
                channel_volume = max(channel_volume, note_volume)
            channel_volume = clamp(channel_volume, 0.0, 1.0)

            peak = self._peak_levels[index]
            since_peak = _elapsed_millis(ticks, self._peak_times[index])
            if since_peak >= PEAK_HOLD_TIME_MILLIS:
                fall = max(since_peak - PEAK_HOLD_TIME_MILLIS, 0.0)
                peak = clamp(peak - fall / PEAK_FALLOFF_TIME_MILLIS, 0.0, 1.0)

            if channel_volume >= peak:
                peak = channel_volume
                self._peak_levels[index] = channel_volume
                self._peak_times[index] = ticks

            levels.append(channel_volume)
            peaks.append(peak)

        return levels, peaks

    def all_notes_off(self) -> None:
        """Release every sounding note and clear damper flags."""
        ticks = self._clock()
        for channel in self._channels:
            for note in channel.notes:
                if note.phase is _Phase.NOTE_ON:
                    note.release(ticks)
                note.damper = False

    def reset_controllers(self, is_reset_all_controllers: bool) -> None:
        """Reset controllers; volume and pan survive a Reset All Controllers message."""
        for channel in self._channels:
            channel.expression = 127
            channel.damper = 0
            if not is_reset_all_controllers:
                channel.volume = 100
                channel.pan = 64

    def _process_cc(self, channel: _Channel, cc: int, value: int, ticks: int) -> None:
        if cc == 0x07:
            channel.volume = value
        elif cc == 0x0A:
            channel.pan = value
        elif cc == 0x0B:
            channel.expression = value
        elif cc == 0x40:
            channel.damper = value
            if not value:
                for note in channel.notes:
                    if note.damper:
                        note.release(ticks)
                        note.damper = False
        elif cc in (0x78, 0x7B, 0x7C, 0x7D, 0x7E, 0x7F):
            # Channel Mode messages all act as All Notes Off
            self.all_notes_off()
        elif cc == 0x79:
            self.reset_controllers(True)

    def _envelope(self, note: _Note) -> float:
        if note.phase is _Phase.NOTE_ON:
            held = _elapsed_millis(self._clock(), note.on_time)
            if held < ATTACK_TIME_MILLIS:
                return held / ATTACK_TIME_MILLIS
            if held < ATTACK_TIME_MILLIS + DECAY_TIME_MILLIS:
                decay = held - ATTACK_TIME_MILLIS
                return 1.0 - (decay / DECAY_TIME_MILLIS) * (1.0 - SUSTAIN_LEVEL)
            return SUSTAIN_LEVEL

        if note.phase is _Phase.NOTE_OFF:
            gate = _elapsed_millis(note.off_time, note.on_time)
            if gate < ATTACK_TIME_MILLIS:
                volume = gate / ATTACK_TIME_MILLIS
            elif gate < ATTACK_TIME_MILLIS + DECAY_TIME_MILLIS:
                volume = 1.0 - ((gate - ATTACK_TIME_MILLIS) / DECAY_TIME_MILLIS) * (1.0 - SUSTAIN_LEVEL)
            else:
                volume = SUSTAIN_LEVEL

            released = _elapsed_millis(self._clock(), note.off_time)
            if released > RELEASE_TIME_MILLIS:
                note.phase = _Phase.IDLE
                return 0.0
            return volume - released / RELEASE_TIME_MILLIS

        return 0.0

    def _percussion_envelope(self, note: _Note) -> float:
        if note.phase is _Phase.IDLE:
            return 0.0
        held = _elapsed_millis(self._clock(), note.on_time)
        if held > RELEASE_TIME_MILLIS:
            note.phase = _Phase.IDLE
            return 0.0
        return 1.0 - held / RELEASE_TIME_MILLIS