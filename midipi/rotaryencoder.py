"""Quadrature rotary encoder decoding with switch-bounce rejection and acceleration."""

from __future__ import annotations

import enum
import struct
import time
from typing import Callable, List, Optional, Tuple

from .utility import ticks_to_millis

_TICK_MASK = 0xFFFFFFFF

# Valid Gray-code transitions, two bits per 4-bit (previous, current) state code.
# A value of 1 counts one way, 2 the other, 0 is not a valid single step.
_TRANSITIONS = 0b00100100010000101000000100011000

ACCEL_THRESHOLD_MILLIS = 32
_ACCEL_MIN = 5
_ACCEL_MAX = 16


def _default_clock() -> int:
    return (time.monotonic_ns() // 1000) & _TICK_MASK


def _f32(value: float) -> float:
    return struct.unpack("f", struct.pack("f", value))[0]


def _build_accel_table(minimum: int, maximum: int, size: int) -> Tuple[int, ...]:
    # Single-precision arithmetic keeps the rounding of the curve's coefficients exact
    scale = _f32(_f32(float(maximum) - float(minimum)) / float((size - 1) * (size - 1)))
    return tuple(
        int(_f32(_f32(_f32(scale * i) * i) + minimum)) for i in range(size)
    )


ACCELERATION_TABLE = _build_accel_table(_ACCEL_MIN, _ACCEL_MAX, ACCEL_THRESHOLD_MILLIS)


def _to_s8(value: int) -> int:
    value &= 0xFF
    return value - 256 if value >= 128 else value


def _previous_transition(transition: int) -> int:
    """The valid transition that precedes ``transition`` in the same direction."""
    return ((transition >> 2) | (((transition ^ 3) & 3) << 2)) & 0x0F


class EncoderType(enum.Enum):
    """How many transitions an encoder produces between two detents."""

    FULL = "full"
    HALF = "half"
    QUARTER = "quarter"

    @property
    def transitions_per_detent(self) -> int:
        return _TRANSITIONS_PER_DETENT[self]


_TRANSITIONS_PER_DETENT = {
    EncoderType.FULL: 4,
    EncoderType.HALF: 2,
    EncoderType.QUARTER: 1,
}


class RotaryEncoder:
    """Accumulate detent movements from the encoder's CLK and DAT pin levels.

    ``update_pins`` is meant to be called at a steady poll rate; ``read``
    returns and clears the accumulated movement. ``clock`` returns the time in
    ticks of a 1 MHz clock and drives the acceleration curve.
    """

    def __init__(
        self,
        encoder_type: EncoderType = EncoderType.FULL,
        reversed: bool = False,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.encoder_type = encoder_type
        self.reversed = reversed
        self._clock = clock or _default_clock
        self._delta = 0
        self._state = 0
        self._previous_transitions: List[int] = [0, 0]
        self._last_read_time = 0

    def read(self) -> int:
        """Return the movement since the last read, with acceleration applied."""
        result = self._delta

        if result:
            ticks = self._clock()
            delta_millis = ticks_to_millis((ticks - self._last_read_time) & _TICK_MASK)
            if delta_millis < ACCEL_THRESHOLD_MILLIS:
                result = _to_s8(result * ACCELERATION_TABLE[delta_millis])
            self._last_read_time = ticks
            self._delta = 0

        return _to_s8(-result) if self.reversed else result

    def update_pins(self, clk: bool, dat: bool) -> None:
        """Feed the current levels of the CLK and DAT pins."""
        self._state = ((self._state << 2) | (int(bool(dat)) << 1) | int(bool(clk))) & 0x0F

        direction = (_TRANSITIONS >> (self._state << 1)) & 3
        if not direction:
            return

        # Transitions not following on from the previous step are switch bounce
        transition = self._previous_transitions[direction - 1]
        if not transition & (1 << _previous_transition(self._state)):
            transition = 0

        transition |= 1 << self._state

        not_enough = bin(transition).count("1") < self.encoder_type.transitions_per_detent
        off_detent = self.encoder_type is EncoderType.FULL and (self._state & 3) != 3
        if not_enough or off_detent:
            self._previous_transitions[direction - 1] = transition
            return

        self._previous_transitions = [0, 0]
        self._delta = _to_s8(self._delta + (1 if direction & 1 else -1))