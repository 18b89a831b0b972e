"""Drivers for HD44780-compatible character displays in 4-bit mode, on GPIO pins or an I2C backpack."""

from __future__ import annotations

import abc
import enum
import time
from typing import Callable, Iterable, List, Protocol, Sequence, Union

from .ui import LCDType

Delay = Callable[[float], None]
PinWriter = Callable[[int, bool], None]

_SET_CGRAM_ADDRESS = 0x40
_SET_DDRAM_ADDRESS = 0x80
_CLEAR_DISPLAY = 0b0001
_RETURN_HOME = 0b0010
_ENTRY_MODE = 0b0110
_DISPLAY_OFF = 0b1000
_DISPLAY_ON = 0b1100
_FUNCTION_SET_4BIT_2LINE = 0b101000

_SUPPORTED_WIDTHS = (16, 20)
_SUPPORTED_HEIGHTS = (2, 4)
_CUSTOM_CHAR_COUNT = 8
_CUSTOM_CHAR_ROWS = 8


class WriteMode(enum.Enum):
    """Whether a byte goes to the instruction register or to display memory."""

    COMMAND = enum.auto()
    DATA = enum.auto()


class I2CWriter(Protocol):
    """The part of an I2C bus the I2C backpack driver needs."""

    def write(self, address: int, data: bytes) -> None: ...


def _millis(value: float) -> float:
    return value / 1000.0


def _micros(value: float) -> float:
    return value / 1_000_000.0


class HD44780Base(abc.ABC):
    """Common logic of HD44780 displays driven over a 4-bit interface.

    Subclasses supply ``write_nybble``. ``custom_chars`` holds up to eight
    glyphs of eight rows each, loaded into character memory by ``initialize``.
    ``delay`` waits the given number of seconds.
    """

    lcd_type = LCDType.CHARACTER

    def __init__(
        self,
        columns: int = 20,
        rows: int = 2,
        custom_chars: Sequence[Sequence[int]] = (),
        delay: Delay = time.sleep,
    ) -> None:
        if len(custom_chars) > _CUSTOM_CHAR_COUNT:
            raise ValueError(f"at most {_CUSTOM_CHAR_COUNT} custom characters are supported")
        self.width = columns
        self.height = rows
        self.backlight_enabled = True
        self._custom_chars = [tuple(glyph) for glyph in custom_chars]
        self._delay = delay
        self._row_offsets = (0x00, 0x40, columns & 0xFF, (0x40 + columns) & 0xFF)

    @abc.abstractmethod
    def write_nybble(self, nybble: int, mode: WriteMode) -> None:
        """Send the low four bits of ``nybble``."""

    def write_byte(self, value: int, mode: WriteMode) -> None:
        """Send a byte as two nybbles, high first."""
        self.write_nybble((value >> 4) & 0x0F, mode)
        self.write_nybble(value & 0x0F, mode)

    def write_command(self, value: int) -> None:
        """Send an instruction byte."""
        self.write_byte(value, WriteMode.COMMAND)

    def write_data(self, data: Union[int, Iterable[int]]) -> None:
        """Send one data byte, or each byte of an iterable."""
        values = (data,) if isinstance(data, int) else data
        for value in values:
            self.write_byte(value & 0xFF, WriteMode.DATA)

    def set_custom_char(self, index: int, char_data: Sequence[int]) -> None:
        """Define custom character ``index`` (0-7) from eight rows of pixel bits."""
        if not 0 <= index < _CUSTOM_CHAR_COUNT:
            raise ValueError(f"custom character index must be 0-7, got {index}")
        rows = list(char_data)
        if len(rows) != _CUSTOM_CHAR_ROWS:
            raise ValueError(f"custom character needs {_CUSTOM_CHAR_ROWS} rows, got {len(rows)}")
        self.write_command(_SET_CGRAM_ADDRESS | (index << 3))
        self.write_data(rows)

    def initialize(self) -> None:
        """Put the controller into 4-bit, two-line mode and switch it on.

        Only 16x2, 16x4, 20x2 and 20x4 displays are supported; other sizes
        raise ValueError.
        """
        if self.height not in _SUPPORTED_HEIGHTS or self.width not in _SUPPORTED_WIDTHS:
            raise ValueError(f"unsupported display size {self.width}x{self.height}")

        self._delay(_millis(50))

        # Brings the controller into a known mode whatever state it is in
        for _ in range(3):
            self.write_nybble(0b0011, WriteMode.COMMAND)
            self._delay(_millis(50))

        self.write_nybble(0b0010, WriteMode.COMMAND)
        self._delay(_millis(50))

        self.write_command(_DISPLAY_OFF)
        self.write_command(_CLEAR_DISPLAY)
        self._delay(_millis(50))
        self.write_command(_RETURN_HOME)
        self._delay(_millis(2))
        self.write_command(_FUNCTION_SET_4BIT_2LINE)
        self.write_command(_ENTRY_MODE)

        for index, glyph in enumerate(self._custom_chars):
            self.set_custom_char(index, glyph)

        self.write_command(_DISPLAY_ON)

    def print(self, text: str, x: int, y: int, clear_line: bool = False, immediate: bool = False) -> None:
        """Write ``text`` at column ``x`` of row ``y``, cut off at the right edge.

        With ``clear_line`` the rest of the row is blanked on both sides.
        """
        room = max(0, self.width - x)
        visible = [ord(char) & 0xFF for char in text[:room]]

        if clear_line:
            self.write_command(_SET_DDRAM_ADDRESS | self._row_offsets[y])
            self.write_data([ord(" ")] * x)
        else:
            self.write_command(_SET_DDRAM_ADDRESS | ((self._row_offsets[y] + x) & 0x7F))

        self.write_data(visible)

        if clear_line:
            self.write_data([ord(" ")] * (room - len(visible)))

    def clear(self, immediate: bool = False) -> None:
        """Clear the display; only takes effect when ``immediate``."""
        if not immediate:
            return
        self.write_command(_CLEAR_DISPLAY)
        self._delay(_millis(50))

    def flip(self) -> None:
        """Character displays draw directly; there is no buffer to present."""

    def set_backlight_state(self, enabled: bool) -> None:
        """Record the backlight state."""
        self.backlight_enabled = enabled


class HD44780FourBit(HD44780Base):
    """Display wired directly to GPIO pins; ``write_pin`` sets a pin's level."""

    PIN_RS = 10
    PIN_RW = 9
    PIN_EN = 11
    PIN_D4 = 0
    PIN_D5 = 5
    PIN_D6 = 6
    PIN_D7 = 13

    def __init__(
        self,
        write_pin: PinWriter,
        columns: int = 20,
        rows: int = 2,
        custom_chars: Sequence[Sequence[int]] = (),
        delay: Delay = time.sleep,
    ) -> None:
        super().__init__(columns, rows, custom_chars, delay)
        self._write_pin = write_pin
        for pin in self._all_pins():
            self._write_pin(pin, False)

    def _all_pins(self) -> List[int]:
        return [
            self.PIN_RS, self.PIN_RW, self.PIN_EN,
            self.PIN_D4, self.PIN_D5, self.PIN_D6, self.PIN_D7,
        ]

    def write_nybble(self, nybble: int, mode: WriteMode) -> None:
        """Place the nybble on D4-D7 and pulse the enable pin."""
        self._write_pin(self.PIN_RS, mode is WriteMode.DATA)
        for bit, pin in enumerate((self.PIN_D4, self.PIN_D5, self.PIN_D6, self.PIN_D7)):
            self._write_pin(pin, bool((nybble >> bit) & 1))

        self._write_pin(self.PIN_EN, True)
        self._delay(_micros(5))
        self._write_pin(self.PIN_EN, False)
        self._delay(_micros(100))


class HD44780I2C(HD44780Base):
    """Display behind a PCF8574-style I2C backpack."""

    DATA_BIT = 1 << 0
    ENABLE_BIT = 1 << 2
    BACKLIGHT_BIT = 1 << 3

    def __init__(
        self,
        bus: I2CWriter,
        address: int,
        columns: int = 20,
        rows: int = 2,
        custom_chars: Sequence[Sequence[int]] = (),
        delay: Delay = time.sleep,
    ) -> None:
        super().__init__(columns, rows, custom_chars, delay)
        self._bus = bus
        self.address = address

    def write_nybble(self, nybble: int, mode: WriteMode) -> None:
        """Send the nybble with the enable line pulsed high, then low."""
        value = ((nybble << 4) & 0xF0) | self.ENABLE_BIT
        if self.backlight_enabled:
            value |= self.BACKLIGHT_BIT
        if mode is WriteMode.DATA:
            value |= self.DATA_BIT

        self._bus.write(self.address, bytes((value,)))
        self._delay(_micros(5))

        value &= ~self.ENABLE_BIT & 0xFF
        self._bus.write(self.address, bytes((value,)))
        self._delay(_micros(100))

    def set_backlight_state(self, enabled: bool) -> None:
        """Switch the backlight; a clear is sent so the new state reaches the backpack."""
        self.backlight_enabled = enabled
        self.clear(True)