import enum
import ipaddress

import pytest

from midipi.config import (
    parse_bool,
    parse_enum,
    parse_float,
    parse_int,
    parse_ip_address,
)


class Quality(enum.Enum):
    NONE = "none"
    FASTEST = "fastest"
    GOOD = "good"
    BEST = "best"


class Mode(enum.Enum):
    Off = 0
    Ethernet = 1
    WiFi = 2


@pytest.mark.parametrize("text", ["true", "TRUE", "on", "On", "1"])
def test_parse_bool_true(text):
    assert parse_bool(text) is True


@pytest.mark.parametrize("text", ["false", "False", "off", "OFF", "0"])
def test_parse_bool_false(text):
    assert parse_bool(text) is False


@pytest.mark.parametrize("text", ["yes", "", "2", "truth"])
def test_parse_bool_invalid(text):
    with pytest.raises(ValueError):
        parse_bool(text)


def test_parse_int_decimal():
    assert parse_int("31250") == 31250
    assert parse_int("  -17abc") == -17


def test_parse_int_without_digits_is_zero():
    assert parse_int("abc") == 0


def test_parse_int_hex():
    assert parse_int("ff", True) == 0xFF
    assert parse_int("0x3c", True) == 0x3C
    assert parse_int("0X3C", hexadecimal=True) == parse_int("3c", hexadecimal=True)


def test_parse_int_round_trip():
    for value in (0, 1, 400000, -5, 115200):
        assert parse_int(str(value)) == value
        assert parse_int(format(value, "x"), True) == value if value >= 0 else True


def test_parse_float():
    assert parse_float("1.5") == 1.5
    assert parse_float("2.5dB") == 2.5
    assert parse_float("-0.25") == -0.25


def test_parse_float_garbage_is_zero():
    assert parse_float("loud") == 0.0


def test_parse_float_single_precision():
    result = parse_float("0.1")
    assert result == pytest.approx(0.1, rel=1e-6)
    assert parse_float(repr(result)) == result


def test_parse_ip_address():
    assert parse_ip_address("192.168.1.10") == ipaddress.IPv4Address("192.168.1.10")


def test_parse_ip_address_skips_empty_groups_and_extra():
    assert parse_ip_address("10..0.0.1") == ipaddress.IPv4Address("10.0.0.1")
    assert parse_ip_address("1.2.3.4.5") == ipaddress.IPv4Address("1.2.3.4")


def test_parse_ip_address_keeps_low_byte():
    assert parse_ip_address("256.1.1.1") == ipaddress.IPv4Address("0.1.1.1")


@pytest.mark.parametrize("text", ["10.0.0", "", "...."])
def test_parse_ip_address_too_few_groups(text):
    with pytest.raises(ValueError):
        parse_ip_address(text)


def test_parse_enum_by_value_case_insensitive():
    assert parse_enum("best", Quality) is Quality.BEST
    assert parse_enum("FASTEST", Quality) is Quality.FASTEST


def test_parse_enum_by_name_for_non_string_values():
    assert parse_enum("wifi", Mode) is Mode.WiFi
    assert parse_enum("Ethernet", Mode) is Mode.Ethernet


def test_parse_enum_round_trip():
    for member in Quality:
        assert parse_enum(member.value.upper(), Quality) is member


def test_parse_enum_unknown():
    with pytest.raises(ValueError):
        parse_enum("excellent", Quality)