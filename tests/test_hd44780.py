import pytest

from midipi.hd44780 import HD44780FourBit, HD44780I2C, WriteMode
from midipi.ui import LCDType

ADDRESS = 0x27


class FakeBus:
    def __init__(self):
        self.writes = []

    def write(self, address, data):
        self.writes.append((address, bytes(data)))


def decode_i2c(writes):
    """Turn pairs of backpack writes back into (mode, byte) tuples."""
    nybbles = []
    for (_, first), (_, second) in zip(writes[0::2], writes[1::2]):
        assert first[0] & HD44780I2C.ENABLE_BIT
        assert second[0] == first[0] & ~HD44780I2C.ENABLE_BIT & 0xFF
        mode = WriteMode.DATA if first[0] & HD44780I2C.DATA_BIT else WriteMode.COMMAND
        nybbles.append((mode, first[0] >> 4))
    return [
        (high[0], (high[1] << 4) | low[1])
        for high, low in zip(nybbles[0::2], nybbles[1::2])
    ]


def make_i2c(columns=20, rows=2, custom_chars=()):
    bus = FakeBus()
    delays = []
    lcd = HD44780I2C(bus, ADDRESS, columns, rows, custom_chars, delay=delays.append)
    return lcd, bus, delays


def data_bytes(decoded):
    return bytes(value for mode, value in decoded if mode is WriteMode.DATA)


def commands(decoded):
    return [value for mode, value in decoded if mode is WriteMode.COMMAND]


def test_lcd_type_is_character():
    lcd, _, _ = make_i2c()
    assert lcd.lcd_type is LCDType.CHARACTER
    assert (lcd.width, lcd.height) == (20, 2)


def test_write_command_round_trips_through_backpack():
    lcd, bus, _ = make_i2c()
    lcd.write_command(0x8C)
    assert all(address == ADDRESS for address, _ in bus.writes)
    assert len(bus.writes) == 4
    assert decode_i2c(bus.writes) == [(WriteMode.COMMAND, 0x8C)]


def test_write_data_accepts_int_and_bytes():
    lcd, bus, _ = make_i2c()
    lcd.write_data(ord("A"))
    lcd.write_data(b"Hi")
    assert data_bytes(decode_i2c(bus.writes)) == b"AHi"


def test_backlight_bit_follows_state():
    lcd, bus, _ = make_i2c()
    lcd.write_data(b"x")
    assert all(data[0] & HD44780I2C.BACKLIGHT_BIT for _, data in bus.writes)
    bus.writes.clear()
    lcd.set_backlight_state(False)
    assert lcd.backlight_enabled is False
    assert bus.writes
    assert not any(data[0] & HD44780I2C.BACKLIGHT_BIT for _, data in bus.writes)
    assert commands(decode_i2c(bus.writes)) == [0b0001]


def test_clear_only_when_immediate():
    lcd, bus, delays = make_i2c()
    lcd.clear(False)
    assert bus.writes == []
    lcd.clear(True)
    assert commands(decode_i2c(bus.writes)) == [0b0001]
    assert 0.05 in delays


def test_print_without_clear_positions_cursor():
    lcd, bus, _ = make_i2c()
    lcd.print("abc", 3, 1)
    decoded = decode_i2c(bus.writes)
    assert commands(decoded) == [0x80 | (0x40 + 3)]
    assert data_bytes(decoded) == b"abc"


def test_print_with_clear_fills_whole_row():
    lcd, bus, _ = make_i2c()
    lcd.print("hello", 4, 0, True)
    decoded = decode_i2c(bus.writes)
    assert commands(decoded) == [0x80]
    text = data_bytes(decoded)
    assert len(text) == lcd.width
    assert text == b" " * 4 + b"hello" + b" " * (lcd.width - 9)


def test_print_truncates_at_right_edge():
    lcd, bus, _ = make_i2c(16, 2)
    lcd.print("0123456789ABCDEFGHIJ", 10, 0)
    assert data_bytes(decode_i2c(bus.writes)) == b"012345"


def test_print_rows_three_and_four_use_column_offsets():
    lcd, bus, _ = make_i2c(20, 4)
    lcd.print("", 0, 2)
    lcd.print("", 0, 3)
    assert commands(decode_i2c(bus.writes)) == [0x80 | 20, 0x80 | (0x40 + 20)]


@pytest.mark.parametrize("size", [(16, 3), (24, 2), (16, 1), (8, 4)])
def test_initialize_rejects_unsupported_sizes(size):
    lcd, bus, _ = make_i2c(*size)
    with pytest.raises(ValueError):
        lcd.initialize()
    assert bus.writes == []


def test_initialize_sequence_and_custom_chars():
    glyph = [0, 0, 0, 0, 0, 0, 0, 0x1F]
    lcd, bus, _ = make_i2c(16, 2, custom_chars=[glyph, glyph])
    lcd.initialize()

    raw_nybbles = [data[0] >> 4 for _, data in bus.writes[0::2]]
    assert raw_nybbles[:4] == [0b0011, 0b0011, 0b0011, 0b0010]

    decoded = decode_i2c(bus.writes[8:])
    cmds = commands(decoded)
    assert cmds[0] == 0b1000
    assert cmds[-1] == 0b1100
    assert 0x40 in cmds and (0x40 | (1 << 3)) in cmds
    assert data_bytes(decoded) == bytes(glyph) * 2


def test_set_custom_char_validates():
    lcd, _, _ = make_i2c()
    with pytest.raises(ValueError):
        lcd.set_custom_char(8, [0] * 8)
    with pytest.raises(ValueError):
        lcd.set_custom_char(0, [0] * 7)


def test_too_many_custom_chars_rejected():
    with pytest.raises(ValueError):
        HD44780I2C(FakeBus(), ADDRESS, custom_chars=[[0] * 8] * 9)


class PinRecorder:
    def __init__(self):
        self.levels = {}
        self.history = []
        self.latched = []

    def __call__(self, pin, level):
        self.history.append((pin, level))
        if pin == HD44780FourBit.PIN_EN and level:
            pins = (HD44780FourBit.PIN_D4, HD44780FourBit.PIN_D5, HD44780FourBit.PIN_D6, HD44780FourBit.PIN_D7)
            nybble = sum(int(self.levels.get(p, False)) << bit for bit, p in enumerate(pins))
            mode = WriteMode.DATA if self.levels.get(HD44780FourBit.PIN_RS) else WriteMode.COMMAND
            self.latched.append((mode, nybble))
        self.levels[pin] = level


def test_four_bit_constructor_drives_pins_low():
    recorder = PinRecorder()
    HD44780FourBit(recorder, delay=lambda _: None)
    assert len(recorder.history) == 7
    assert all(level is False for _, level in recorder.history)


def test_four_bit_latches_nybbles_on_enable():
    recorder = PinRecorder()
    lcd = HD44780FourBit(recorder, delay=lambda _: None)
    lcd.write_command(0xA5)
    lcd.write_data(b"Z")
    assert recorder.latched == [
        (WriteMode.COMMAND, 0xA),
        (WriteMode.COMMAND, 0x5),
        (WriteMode.DATA, ord("Z") >> 4),
        (WriteMode.DATA, ord("Z") & 0x0F),
    ]
    assert recorder.levels[HD44780FourBit.PIN_EN] is False


def test_four_bit_backlight_state_is_recorded():
    recorder = PinRecorder()
    lcd = HD44780FourBit(recorder, delay=lambda _: None)
    lcd.set_backlight_state(False)
    assert lcd.backlight_enabled is False
    assert recorder.latched == []