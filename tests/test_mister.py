import pytest

from midipi.events import (
    AllSoundOffEvent,
    DisplayImageEvent,
    Image,
    MisterStatus,
    MisterSynth,
    Synth,
    SwitchMT32ROMSetEvent,
    SwitchSoundFontEvent,
    SwitchSynthEvent,
)
from midipi.mister import MISTER_I2C_ADDRESS, MisterControl


class FakeBus:
    def __init__(self):
        self.reply = None
        self.fail_read = False
        self.fail_write = False
        self.writes = []

    def read(self, address, length):
        assert address == MISTER_I2C_ADDRESS
        if self.fail_read:
            raise OSError("no device")
        return self.reply[:length]

    def write(self, address, data):
        if self.fail_write:
            raise OSError("no device")
        self.writes.append((address, bytes(data)))


SYSTEM = MisterStatus(MisterSynth.SOUNDFONT, 0, 0)
MISTER = MisterStatus(MisterSynth.MT32, 1, 2)


@pytest.fixture
def bus():
    return FakeBus()


@pytest.fixture
def events():
    return []


@pytest.fixture
def control(bus, events):
    return MisterControl(bus, events)


def activate(control, bus, events):
    bus.reply = MISTER.to_bytes()
    control.update(SYSTEM)
    events.clear()
    bus.writes.clear()


def test_first_reply_applies_config(control, bus, events):
    bus.reply = MISTER.to_bytes()
    control.update(SYSTEM)
    assert events == [
        SwitchSynthEvent(Synth.MT32),
        SwitchMT32ROMSetEvent(1),
        SwitchSoundFontEvent(2),
        DisplayImageEvent(Image.MISTER_LOGO),
    ]
    assert bus.writes == [(0x45, b"\xa1\x01\x02")]
    assert control.active


def test_matching_fields_produce_no_switch(control, bus, events):
    bus.reply = MisterStatus(MisterSynth.SOUNDFONT, 0, 5).to_bytes()
    control.update(SYSTEM)
    assert events == [SwitchSoundFontEvent(5), DisplayImageEvent(Image.MISTER_LOGO)]


def test_mute_sends_all_sound_off(control, bus, events):
    bus.reply = MisterStatus(MisterSynth.MUTE, 0, 0).to_bytes()
    control.update(SYSTEM)
    assert events == [AllSoundOffEvent()]
    assert bus.writes == [(MISTER_I2C_ADDRESS, SYSTEM.to_bytes())]
    assert not control.active


def test_read_failure_when_inactive_does_nothing(control, bus, events):
    bus.fail_read = True
    control.update(SYSTEM)
    assert events == []
    assert not control.active


def test_read_failure_when_active_turns_sound_off(control, bus, events):
    activate(control, bus, events)
    bus.fail_read = True
    control.update(SYSTEM)
    assert events == [AllSoundOffEvent()]
    assert not control.active


def test_short_reply_counts_as_failure(control, bus, events):
    activate(control, bus, events)
    bus.reply = b"\xa1"
    control.update(SYSTEM)
    assert events == [AllSoundOffEvent()]


def test_system_change_is_written_back(control, bus, events):
    activate(control, bus, events)
    changed = MisterStatus(MisterSynth.MT32, 2, 3)
    control.update(changed)
    assert events == []
    assert bus.writes == [(MISTER_I2C_ADDRESS, changed.to_bytes())]
    bus.writes.clear()
    control.update(changed)
    assert bus.writes == []


def test_mister_change_is_applied(control, bus, events):
    activate(control, bus, events)
    control.update(SYSTEM)
    bus.writes.clear()
    events.clear()
    new = MisterStatus(MisterSynth.MT32, 1, 7)
    bus.reply = new.to_bytes()
    control.update(SYSTEM)
    assert SwitchSoundFontEvent(7) in events
    assert bus.writes == [(MISTER_I2C_ADDRESS, new.to_bytes())]


def test_unchanged_state_is_quiet(control, bus, events):
    activate(control, bus, events)
    control.update(SYSTEM)
    events.clear()
    bus.writes.clear()
    control.update(SYSTEM)
    assert events == []
    assert bus.writes == []
    assert control.active is True


def test_first_write_failure_keeps_inactive(control, bus, events):
    bus.reply = MISTER.to_bytes()
    bus.fail_write = True
    control.update(SYSTEM)
    assert DisplayImageEvent(Image.MISTER_LOGO) not in events
    assert not control.active
    bus.fail_write = False
    events.clear()
    control.update(SYSTEM)
    assert events[-1] == DisplayImageEvent(Image.MISTER_LOGO)
    assert control.active


def test_write_failure_when_active_resets(control, bus, events):
    activate(control, bus, events)
    bus.fail_write = True
    control.update(MisterStatus(MisterSynth.MT32, 2, 3))
    assert events == [AllSoundOffEvent()]
    assert not control.active