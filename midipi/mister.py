"""Keeps the synth configuration in step with a MiSTer FPGA core over I2C."""

from __future__ import annotations

import logging
from typing import MutableSequence, Protocol

from .events import (
    AllSoundOffEvent,
    DisplayImageEvent,
    Event,
    Image,
    MisterStatus,
    MisterSynth,
    Synth,
    SwitchMT32ROMSetEvent,
    SwitchSoundFontEvent,
    SwitchSynthEvent,
)

logger = logging.getLogger(__name__)

MISTER_I2C_ADDRESS = 0x45


class I2CBus(Protocol):
    """Minimal I2C interface; both methods raise OSError on failure."""

    def read(self, address: int, length: int) -> bytes: ...

    def write(self, address: int, data: bytes) -> None: ...


class MisterControl:
    """Exchange status with the MiSTer core and turn its changes into events."""

    def __init__(self, bus: I2CBus, event_queue: MutableSequence[Event]) -> None:
        self._bus = bus
        self._events = event_queue
        self.active = False
        self._last_system_status = MisterStatus.unknown()
        self._last_mister_status = MisterStatus.unknown()

    def update(self, system_status: MisterStatus) -> None:
        """Poll the MiSTer once, given the synth's current status."""
        try:
            mister_status = MisterStatus.from_bytes(
                self._bus.read(MISTER_I2C_ADDRESS, MisterStatus.SIZE)
            )
        except (OSError, ValueError):
            self._reset_state()
            return

        # Core reset or "Reset Hanging Notes" chosen from the OSD
        if mister_status.synth is MisterSynth.MUTE:
            logger.info("Stopping synth activity")
            self._events.append(AllSoundOffEvent())
            self._write(system_status)
            return

        if not self.active:
            self._apply(mister_status, system_status)
            if not self._write(mister_status):
                return
            self._events.append(DisplayImageEvent(Image.MISTER_LOGO))
            self._last_mister_status = mister_status
            self.active = True
            return

        if system_status != self._last_system_status:
            # Changed by user controls or SysEx; tell the MiSTer
            if not self._write(system_status):
                self._reset_state()
                return
            self._last_system_status = system_status
        elif mister_status != self._last_mister_status:
            # Changed by the MiSTer; apply it
            self._apply(mister_status, system_status)
            if not self._write(mister_status):
                self._reset_state()
                return
            self._last_mister_status = mister_status

    def _apply(self, new: MisterStatus, current: MisterStatus) -> None:
        if new.synth != current.synth:
            synth = Synth.MT32 if new.synth is MisterSynth.MT32 else Synth.SOUNDFONT
            self._events.append(SwitchSynthEvent(synth))
        if new.mt32_rom_set != current.mt32_rom_set:
            self._events.append(SwitchMT32ROMSetEvent(new.mt32_rom_set))
        if new.soundfont_index != current.soundfont_index:
            self._events.append(SwitchSoundFontEvent(new.soundfont_index))

    def _write(self, status: MisterStatus) -> bool:
        try:
            self._bus.write(MISTER_I2C_ADDRESS, status.to_bytes())
        except OSError:
            logger.error("MiSTer write failed")
            return False
        return True

    def _reset_state(self) -> None:
        if self.active:
            logger.info("MiSTer stopped responding; turning notes off")
            self._events.append(AllSoundOffEvent())
            self.active = False
            self._last_system_status = MisterStatus.unknown()
            self._last_mister_status = MisterStatus.unknown()