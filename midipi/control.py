"""Button and encoder front panels: debouncing, auto-repeat and event generation."""

from __future__ import annotations

import abc
import time
from collections import deque
from typing import Callable, Deque, Mapping, MutableSequence, Optional

from .events import Button, ButtonEvent, EncoderEvent, Event
from .rotaryencoder import EncoderType, RotaryEncoder
from .utility import lerp

POLL_RATE_MICROS = 1000

BUTTON_STATE_HISTORY_LENGTH = 16

REPEAT_DELAY_MICROS = 500_000
REPEAT_ACCEL_TIME_MICROS = 3_000_000
MAX_REPEAT_PERIOD_MICROS = 100_000
MIN_REPEAT_PERIOD_MICROS = 20_000

_TICK_MASK = 0xFFFFFFFF

GpioReader = Callable[[], int]


def _default_clock() -> int:
    return (time.monotonic_ns() // 1000) & _TICK_MASK


def repeat_period(pressed_duration: int) -> int:
    """Microseconds between repeats after a button has been held this long past the delay."""
    period = lerp(
        pressed_duration,
        0,
        REPEAT_ACCEL_TIME_MICROS,
        MAX_REPEAT_PERIOD_MICROS,
        MIN_REPEAT_PERIOD_MICROS,
    )
    return max(0, int(period))


def _button_mask(pins: Mapping[Button, int]) -> int:
    mask = 0
    for button in pins:
        mask |= 1 << button
    return mask


def _gpio_button_state(gpio: int, pins: Mapping[Button, int]) -> int:
    state = 0
    for button, pin in pins.items():
        state |= ((gpio >> pin) & 1) << button
    return state


class Control(abc.ABC):
    """Base for front panels.

    ``poll`` samples the hardware and should be called every
    ``POLL_RATE_MICROS``; ``update`` turns the debounced state into events
    appended to ``event_queue``. ``read_gpio`` returns the level of all GPIO
    pins as one word, bit n being pin n.
    """

    def __init__(
        self,
        event_queue: MutableSequence[Event],
        read_gpio: GpioReader,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self._events = event_queue
        self._read_gpio = read_gpio
        self._clock = clock or _default_clock
        self._history: Deque[int] = deque([0] * BUTTON_STATE_HISTORY_LENGTH, maxlen=BUTTON_STATE_HISTORY_LENGTH)
        self._button_state = 0
        self._last_button_state = 0
        self._repeat_button: Optional[Button] = None
        self._pressed_time = 0
        self._repeat_time = 0

    @property
    def button_state(self) -> int:
        """Debounced button state; bit n set means button n is pressed."""
        return self._button_state

    def update(self) -> None:
        """Emit press, release and auto-repeat events."""
        if self._button_state != self._last_button_state:
            for button in Button:
                bit = 1 << button
                current = bool(self._button_state & bit)
                last = bool(self._last_button_state & bit)
                if current == last:
                    continue

                if current:
                    self._repeat_button = button
                    self._pressed_time = self._clock()
                    self._repeat_time = 0
                elif self._repeat_button is button:
                    self._repeat_button = None

                self._events.append(ButtonEvent(button, current, False))

            self._last_button_state = self._button_state

        if self._repeat_button is None:
            return

        ticks = self._clock()
        pressed_duration = (ticks - self._pressed_time) & _TICK_MASK
        if pressed_duration <= REPEAT_DELAY_MICROS:
            return

        if self._repeat_time == 0:
            self._repeat_time = ticks
        elif (ticks - self._repeat_time) & _TICK_MASK > repeat_period(
            pressed_duration - REPEAT_DELAY_MICROS
        ):
            self._events.append(ButtonEvent(self._repeat_button, True, True))
            self._repeat_time = ticks

    def debounce(self, state: int, mask: int) -> None:
        """Record a raw sample (bit clear = pressed) and recompute the debounced state."""
        self._history.append(state & 0xFF)
        debounced = 0xFF
        for sample in self._history:
            debounced &= sample
        self._button_state = ~debounced & mask & 0xFF

    @abc.abstractmethod
    def poll(self) -> None:
        """Sample the hardware once."""


class SimpleButtonsControl(Control):
    """Four push buttons wired to GPIO pins with pull-ups."""

    BUTTON_PINS: Mapping[Button, int] = {
        Button.BUTTON1: 17,
        Button.BUTTON2: 27,
        Button.BUTTON3: 22,
        Button.BUTTON4: 23,
    }

    def poll(self) -> None:
        """Sample the four buttons."""
        gpio = self._read_gpio()
        self.debounce(_gpio_button_state(gpio, self.BUTTON_PINS), _button_mask(self.BUTTON_PINS))


class SimpleEncoderControl(Control):
    """Two push buttons plus a rotary encoder with its own push button."""

    BUTTON_PINS: Mapping[Button, int] = {
        Button.BUTTON1: 17,
        Button.BUTTON2: 27,
        Button.ENCODER_BUTTON: 4,
    }
    ENCODER_CLK_PIN = 22
    ENCODER_DAT_PIN = 23

    def __init__(
        self,
        event_queue: MutableSequence[Event],
        read_gpio: GpioReader,
        encoder_type: EncoderType = EncoderType.FULL,
        encoder_reversed: bool = False,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        super().__init__(event_queue, read_gpio, clock)
        self.encoder = RotaryEncoder(encoder_type, encoder_reversed, self._clock)

    def update(self) -> None:
        """Emit button events and an encoder event when the encoder has moved."""
        super().update()
        delta = self.encoder.read()
        if delta:
            self._events.append(EncoderEvent(delta))

    def poll(self) -> None:
        """Sample the buttons and the encoder pins."""
        gpio = self._read_gpio()
        self.debounce(_gpio_button_state(gpio, self.BUTTON_PINS), _button_mask(self.BUTTON_PINS))
        self.encoder.update_pins(
            bool((gpio >> self.ENCODER_CLK_PIN) & 1),
            bool((gpio >> self.ENCODER_DAT_PIN) & 1),
        )