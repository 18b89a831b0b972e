"""Buttons, synth identifiers, MiSTer status and the events passed through the event queue."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Union


class Button(enum.IntEnum):
    """Physical buttons; the value is the button's bit position in a state mask."""

    BUTTON1 = 0
    BUTTON2 = 1
    BUTTON3 = 2
    BUTTON4 = 3
    ENCODER_BUTTON = 4


BUTTON_COUNT = len(Button)


class Synth(enum.Enum):
    """Available synthesizer engines."""

    MT32 = enum.auto()
    SOUNDFONT = enum.auto()


class Image(enum.Enum):
    """Images that can be shown on a graphical display."""

    NONE = enum.auto()
    MT32_PI_LOGO = enum.auto()
    MISTER_LOGO = enum.auto()


class MisterSynth(enum.IntEnum):
    """Synth identifiers as exchanged with the MiSTer core."""

    MUTE = 0xA0
    MT32 = 0xA1
    SOUNDFONT = 0xA2
    UNKNOWN = 0xFF


@dataclass(frozen=True)
class MisterStatus:
    """The three-byte status record exchanged with the MiSTer core."""

    synth: MisterSynth
    mt32_rom_set: int
    soundfont_index: int

    SIZE = 3

    def to_bytes(self) -> bytes:
        """Encode the status as it is sent on the wire."""
        return bytes((int(self.synth), self.mt32_rom_set & 0xFF, self.soundfont_index & 0xFF))

    @classmethod
    def from_bytes(cls, data: bytes) -> "MisterStatus":
        """Decode a status record; unrecognised synth bytes become ``UNKNOWN``."""
        if len(data) != cls.SIZE:
            raise ValueError(f"MiSTer status must be {cls.SIZE} bytes, got {len(data)}")
        synth_byte, rom_set, soundfont_index = data
        try:
            synth = MisterSynth(synth_byte)
        except ValueError:
            synth = MisterSynth.UNKNOWN
        return cls(synth, rom_set, soundfont_index)

    @classmethod
    def unknown(cls) -> "MisterStatus":
        """The status used before anything is known about the MiSTer state."""
        return cls(MisterSynth.UNKNOWN, 0xFF, 0xFF)


@dataclass(frozen=True)
class ButtonEvent:
    button: Button
    pressed: bool
    repeat: bool = False


@dataclass(frozen=True)
class EncoderEvent:
    delta: int


@dataclass(frozen=True)
class SwitchSynthEvent:
    synth: Synth


@dataclass(frozen=True)
class SwitchMT32ROMSetEvent:
    rom_set: int


@dataclass(frozen=True)
class SwitchSoundFontEvent:
    index: int


@dataclass(frozen=True)
class DisplayImageEvent:
    image: Image


@dataclass(frozen=True)
class AllSoundOffEvent:
    pass


Event = Union[
    ButtonEvent,
    EncoderEvent,
    SwitchSynthEvent,
    SwitchMT32ROMSetEvent,
    SwitchSoundFontEvent,
    DisplayImageEvent,
    AllSoundOffEvent,
]