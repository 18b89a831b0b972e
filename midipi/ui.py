"""Display state machine: system messages, spinners, images, SysEx text and bitmaps, level meters."""

from __future__ import annotations

import enum
import time
from typing import Callable, List, Optional, Protocol, Sequence, Union

from .events import Image
from .utility import millis_to_ticks

_TICK_MASK = 0xFFFFFFFF

SCROLL_DELAY_MILLIS = 1500
SCROLL_RATE_MILLIS = 175
BAR_SPACING_PIXELS = 2
SPINNER_CHARS = "___-''^^``-___"

# Characters for a character LCD bar of 0 to 8 pixels: custom glyphs 0-6 and the full block
BAR_CHARS = (" ", "\x00", "\x01", "\x02", "\x03", "\x04", "\x05", "\x06", "\xff")

# Character width assumed for text on graphical displays
GRAPHICAL_CHAR_WIDTH = 20


def _default_clock() -> int:
    return (time.monotonic_ns() // 1000) & _TICK_MASK


class LCDType(enum.Enum):
    """Kind of display: fixed character cells or a pixel framebuffer."""

    CHARACTER = enum.auto()
    GRAPHICAL = enum.auto()


class SysExDisplayMessage(enum.Enum):
    """Vendor convention that a SysEx display message follows."""

    ROLAND = enum.auto()
    YAMAHA = enum.auto()


class LCD(Protocol):
    """The display operations the user interface relies on."""

    lcd_type: LCDType
    width: int
    height: int
    backlight_enabled: bool

    def set_backlight_state(self, enabled: bool) -> None: ...

    def clear(self, immediate: bool = False) -> None: ...

    def flip(self) -> None: ...

    def print(self, text: str, x: int, y: int, clear_line: bool = False, immediate: bool = False) -> None: ...

    def draw_filled_rect(self, x1: int, y1: int, x2: int, y2: int, immediate: bool = False) -> None: ...

    def draw_image(self, image: Image, immediate: bool = False) -> None: ...


SynthDrawer = Callable[[LCD, int], None]


class _State(enum.Enum):
    NONE = enum.auto()
    DISPLAYING_MESSAGE = enum.auto()
    DISPLAYING_SPINNER_MESSAGE = enum.auto()
    DISPLAYING_IMAGE = enum.auto()
    DISPLAYING_SYSEX_TEXT = enum.auto()
    DISPLAYING_SYSEX_BITMAP = enum.auto()
    ENTERING_POWER_SAVING_MODE = enum.auto()
    IN_POWER_SAVING_MODE = enum.auto()


def _char_width(lcd: LCD) -> int:
    return GRAPHICAL_CHAR_WIDTH if lcd.lcd_type is LCDType.GRAPHICAL else lcd.width


class UserInterface:
    """Decide what the display shows and draw it.

    ``clock`` returns the time in ticks of a 1 MHz clock; it stamps messages
    shown through the ``show_*`` methods. ``update`` is then given the current
    ticks and draws a frame.
    """

    SYSTEM_MESSAGE_DISPLAY_TIME_MILLIS = 3000
    SYSTEM_MESSAGE_SPINNER_TIME_MILLIS = 32
    SC55_DISPLAY_TIME_MILLIS = 2880
    SYSTEM_MESSAGE_TEXT_BUFFER_SIZE = 256
    SYSEX_TEXT_BUFFER_SIZE = 64
    SYSEX_PIXEL_BUFFER_SIZE = 64

    def __init__(self, clock: Optional[Callable[[], int]] = None) -> None:
        self._clock = clock or _default_clock
        self._state = _State.NONE
        self._state_time = 0
        self._is_scrolling = False
        self._scroll_offset = 0
        self._spinner_index = 0
        self._image = Image.NONE
        self._system_message = ""
        self._sysex_kind = SysExDisplayMessage.ROLAND
        self._sysex_text = ""
        self._sysex_pixels = bytearray(self.SYSEX_PIXEL_BUFFER_SIZE)

    def _update_scroll(self, lcd: LCD, ticks: int) -> bool:
        delta = (ticks - self._state_time) & _TICK_MASK

        if self._state is _State.DISPLAYING_MESSAGE:
            message = self._system_message
        elif self._state is _State.DISPLAYING_SYSEX_TEXT and self._sysex_kind is SysExDisplayMessage.ROLAND:
            message = self._sysex_text
        else:
            return False

        if len(message[self._scroll_offset:]) <= _char_width(lcd):
            return False

        delay = SCROLL_DELAY_MILLIS if self._scroll_offset == 0 else SCROLL_RATE_MILLIS
        if delta >= millis_to_ticks(delay):
            self._scroll_offset += 1
            self._state_time = ticks

        return True

    def update(self, lcd: LCD, draw_synth: SynthDrawer, ticks: int) -> None:
        """Advance timers and draw one frame; ``draw_synth`` draws when nothing else is shown."""
        self._is_scrolling = self._update_scroll(lcd, ticks)
        delta = (ticks - self._state_time) & _TICK_MASK
        state = self._state
        scrolling = self._is_scrolling

        if (
            state is _State.DISPLAYING_MESSAGE
            and not scrolling
            and delta >= millis_to_ticks(self.SYSTEM_MESSAGE_DISPLAY_TIME_MILLIS)
        ):
            self._state = _State.NONE
            self._state_time = ticks
        elif (
            state is _State.DISPLAYING_SPINNER_MESSAGE
            and not scrolling
            and delta >= millis_to_ticks(self.SYSTEM_MESSAGE_SPINNER_TIME_MILLIS)
        ):
            index = _char_width(lcd) - 2
            self._spinner_index = (self._spinner_index + 1) % len(SPINNER_CHARS)
            text = self._system_message.ljust(index + 1)
            self._system_message = text[:index] + SPINNER_CHARS[self._spinner_index] + text[index + 1:]
            self._state_time = ticks
        elif state is _State.DISPLAYING_IMAGE and delta >= millis_to_ticks(
            self.SYSTEM_MESSAGE_DISPLAY_TIME_MILLIS
        ):
            self._state = _State.NONE
            self._state_time = ticks
        elif (
            (state is _State.DISPLAYING_SYSEX_TEXT and not scrolling)
            or state is _State.DISPLAYING_SYSEX_BITMAP
        ) and delta >= millis_to_ticks(self.SC55_DISPLAY_TIME_MILLIS):
            self._state = _State.NONE
            self._state_time = ticks
        elif state is _State.ENTERING_POWER_SAVING_MODE and delta >= millis_to_ticks(
            self.SYSTEM_MESSAGE_DISPLAY_TIME_MILLIS
        ):
            lcd.set_backlight_state(False)
            self._state = _State.IN_POWER_SAVING_MODE
            self._state_time = ticks

        if self._state is not _State.IN_POWER_SAVING_MODE and not lcd.backlight_enabled:
            lcd.set_backlight_state(True)

        if self._state is _State.IN_POWER_SAVING_MODE:
            return

        lcd.clear(False)
        if not self._draw_system_state(lcd):
            draw_synth(lcd, ticks)
        lcd.flip()

    def show_system_message(self, message: str, spinner: bool = False) -> None:
        """Show a message, optionally followed by an animated spinner."""
        if spinner:
            width = self.SYSTEM_MESSAGE_TEXT_BUFFER_SIZE - 3
            self._system_message = f"{message[:width]:<{width}} {SPINNER_CHARS[0]}"
            self._state = _State.DISPLAYING_SPINNER_MESSAGE
            self._spinner_index = 0
        else:
            self._system_message = message[: self.SYSTEM_MESSAGE_TEXT_BUFFER_SIZE - 1]
            self._state = _State.DISPLAYING_MESSAGE
        self._scroll_offset = 0
        self._state_time = self._clock()

    def clear_spinner_message(self) -> None:
        """Remove a spinner message."""
        self._state = _State.NONE
        self._spinner_index = 0

    def display_image(self, image: Image) -> None:
        """Show an image for a while."""
        self._image = image
        self._state = _State.DISPLAYING_IMAGE
        self._state_time = self._clock()

    def show_sysex_text(
        self,
        kind: SysExDisplayMessage,
        message: Union[bytes, bytearray, str],
        offset: int = 0,
    ) -> None:
        """Show text received by SysEx, indented by ``offset`` spaces."""
        text = message.decode("latin-1") if isinstance(message, (bytes, bytearray)) else message
        size = min(len(text), max(0, self.SYSEX_TEXT_BUFFER_SIZE - 1 - offset))
        self._sysex_text = (" " * offset + text[:size]).split("\0", 1)[0]
        self._sysex_kind = kind
        self._state = _State.DISPLAYING_SYSEX_TEXT
        self._scroll_offset = 0
        self._state_time = self._clock()

    def show_sysex_bitmap(self, kind: SysExDisplayMessage, data: Union[bytes, bytearray]) -> None:
        """Show a 16x16 bitmap received by SysEx; empty data is ignored."""
        if not data:
            return
        limit = 64 if kind is SysExDisplayMessage.ROLAND else 48
        chunk = bytes(data[:limit])
        self._sysex_kind = kind
        self._sysex_pixels[: len(chunk)] = chunk
        self._state = _State.DISPLAYING_SYSEX_BITMAP
        self._state_time = self._clock()

    def enter_power_saving_mode(self) -> None:
        """Announce power saving, then turn the backlight off."""
        self._system_message = "Power saving mode"
        self._state = _State.ENTERING_POWER_SAVING_MODE
        self._state_time = self._clock()

    def exit_power_saving_mode(self) -> None:
        """Leave power saving; the backlight returns on the next update."""
        self._state = _State.NONE

    @staticmethod
    def center_message_offset(lcd: LCD, message: str) -> int:
        """Column at which ``message`` starts when centred."""
        width = _char_width(lcd)
        return 0 if len(message) >= width else (width - len(message)) // 2

    def draw_channel_levels(
        self,
        lcd: LCD,
        bar_height: int,
        levels: Sequence[float],
        peaks: Optional[Sequence[float]],
        channels: int,
        draw_bar_bases: bool = False,
    ) -> None:
        """Draw level meters; ``bar_height`` is in rows on character displays, pixels otherwise."""
        if lcd.lcd_type is LCDType.CHARACTER:
            spacing = lcd.width // channels // 2
            offset_x = (lcd.width - channels - channels * spacing) // 2
            self._draw_levels_character(lcd, bar_height, offset_x, 0, spacing, levels, channels, draw_bar_bases)
        else:
            total_spacing = (channels - 1) * BAR_SPACING_PIXELS
            bar_width = (lcd.width - total_spacing) // channels
            offset_x = (lcd.width - bar_width * channels - total_spacing) // 2
            self._draw_levels_graphical(
                lcd, offset_x, 0, bar_width, bar_height, BAR_SPACING_PIXELS,
                levels, peaks, channels, draw_bar_bases,
            )

    @staticmethod
    def _draw_levels_character(
        lcd: LCD,
        rows: int,
        offset_x: int,
        offset_y: int,
        spacing: int,
        levels: Sequence[float],
        channels: int,
        draw_bar_bases: bool,
    ) -> None:
        width = lcd.width
        lines: List[List[str]] = [[" "] * width for _ in range(rows)]
        bar_pixels = rows * 8

        for channel, level in enumerate(levels[:channels]):
            x = channel + channel * spacing + offset_x
            pixels = int(level * bar_pixels) & 0xFF
            if draw_bar_bases and pixels == 0:
                pixels = 1
            full_rows, remainder = divmod(pixels, 8)

            for row in range(min(full_rows, rows)):
                lines[rows - row - 1][x] = BAR_CHARS[8]
            for row in range(full_rows, rows):
                lines[rows - row - 1][x] = BAR_CHARS[0]
            if remainder and full_rows < rows:
                lines[rows - full_rows - 1][x] = BAR_CHARS[remainder]

        for row, line in enumerate(lines):
            lcd.print("".join(line), 0, offset_y + row, False, True)

    @staticmethod
    def _draw_levels_graphical(
        lcd: LCD,
        offset_x: int,
        offset_y: int,
        bar_width: int,
        bar_height: int,
        spacing: int,
        levels: Sequence[float],
        peaks: Optional[Sequence[float]],
        channels: int,
        draw_bar_bases: bool,
    ) -> None:
        max_y = bar_height - 1
        for channel in range(channels):
            pixels = int(levels[channel] * max_y) & 0xFF
            x1 = offset_x + channel * (bar_width + spacing)
            x2 = x1 + bar_width - 1

            if pixels > 0 or draw_bar_bases:
                y1 = offset_y + (max_y - pixels)
                lcd.draw_filled_rect(x1, y1, x2, y1 + pixels)

            if peaks is not None:
                peak_pixels = int(peaks[channel] * max_y) & 0xFF
                if peak_pixels:
                    y = offset_y + (max_y - peak_pixels)
                    lcd.draw_filled_rect(x1, y, x2, y)

    def _draw_system_state(self, lcd: LCD) -> bool:
        if self._state is _State.NONE:
            return False

        height = lcd.height
        visible = self._system_message[self._scroll_offset:]

        if lcd.lcd_type is LCDType.GRAPHICAL:
            row = 0 if height == 32 else 1
            if self._state is _State.DISPLAYING_IMAGE:
                lcd.draw_image(self._image)
            elif self._state is _State.DISPLAYING_SYSEX_BITMAP:
                self._draw_sysex_bitmap(lcd)
            elif self._state is _State.DISPLAYING_SYSEX_TEXT:
                self._draw_sysex_text(lcd, row)
            else:
                offset = self.center_message_offset(lcd, self._system_message)
                lcd.print(visible, offset, row, True, False)
            return True

        # Character displays cannot show graphics
        if self._state in (_State.DISPLAYING_IMAGE, _State.DISPLAYING_SYSEX_BITMAP):
            return False

        if self._state is _State.DISPLAYING_SYSEX_TEXT:
            self._draw_sysex_text(lcd, 0 if height == 2 else 1)
        else:
            offset = self.center_message_offset(lcd, self._system_message)
            if height == 2:
                lcd.print(visible, offset, 0, True)
                lcd.print("", 0, 1, True)
            elif height == 4:
                lcd.print("", 0, 0, True)
                lcd.print(visible, offset, 1, True)
                lcd.print("", 0, 2, True)
                lcd.print("", 0, 3, True)
        return True

    def _draw_sysex_text(self, lcd: LCD, first_row: int) -> None:
        text = self._sysex_text
        if self._sysex_kind is SysExDisplayMessage.ROLAND:
            # Roland text is a single line that may scroll
            offset = self.center_message_offset(lcd, text)
            lcd.print(text[self._scroll_offset:], offset, first_row, True, False)
            return

        # Yamaha text is up to two lines of 16 characters, centred and not scrolled
        offset = max(0, (_char_width(lcd) - 16) // 2)
        lcd.print(text[:16], offset, first_row, True, False)
        if len(text) > 16:
            lcd.print(text[16:], offset, first_row + 1, True, False)

    def _draw_sysex_bitmap(self, lcd: LCD) -> None:
        width, height = lcd.width, lcd.height
        scale_x = 8 if height == 64 else 4
        scale_y = 4 if height == 64 else 2
        offset_x = (width - 16 * scale_x) // 2
        offset_y = (height - 16 * scale_y) // 2

        if self._sysex_kind is SysExDisplayMessage.ROLAND:
            # 48 bytes of 5 pixel columns, then 16 bytes of 1
            head_length, head_pixels, tail_pixels = 48, 5, 1
        else:
            # 32 bytes of 7 pixel columns, then 16 bytes of 2
            head_length, head_pixels, tail_pixels = 32, 7, 2

        for index, byte in enumerate(self._sysex_pixels):
            count = head_pixels if index < head_length else tail_pixels
            for pixel in range(count):
                if not (byte >> (head_pixels - 1 - pixel)) & 1:
                    continue
                x = (offset_x + (index // 16 * head_pixels + pixel) * scale_x) & 0xFF
                y = (offset_y + (index % 16) * scale_y) & 0xFF
                lcd.draw_filled_rect(x, y, x + scale_x - 1, y + scale_y - 1)