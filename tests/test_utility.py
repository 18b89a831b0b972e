import pytest

from midipi.utility import (
    clamp,
    is_power_of_two,
    lerp,
    millis_to_ticks,
    roland_checksum,
    round_to_nearest_multiple,
    ticks_to_millis,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [(5, 5), (-1, 0), (11, 10), (0, 0), (10, 10)],
)
def test_clamp_int(value, expected):
    assert clamp(value, 0, 10) == expected


def test_clamp_float_stays_in_range():
    for value in (-2.5, 0.25, 0.75, 3.0):
        result = clamp(value, 0.0, 1.0)
        assert 0.0 <= result <= 1.0


def test_lerp_endpoints():
    assert lerp(0, 0, 10, 100, 200) == 100
    assert lerp(10, 0, 10, 100, 200) == 200


def test_lerp_midpoint():
    assert lerp(5, 0, 10, 100, 200) == pytest.approx(150)


def test_lerp_descending_target_range():
    start = lerp(0, 0, 3000000, 100000, 20000)
    end = lerp(3000000, 0, 3000000, 100000, 20000)
    assert start == pytest.approx(100000)
    assert end == pytest.approx(20000)


def test_is_power_of_two():
    assert all(is_power_of_two(1 << n) for n in range(32))
    assert not any(is_power_of_two((1 << n) + 1) for n in range(1, 32))
    assert is_power_of_two(0) is False


@pytest.mark.parametrize("multiple", [2, 5, 16, 100])
def test_round_to_nearest_multiple_invariants(multiple):
    for value in range(0, 1000, 7):
        result = round_to_nearest_multiple(value, multiple)
        assert result % multiple == 0
        assert abs(result - value) <= multiple // 2


def test_round_to_nearest_multiple_exact_value_unchanged():
    assert round_to_nearest_multiple(48000, 1000) == 48000


def test_ticks_round_trip():
    for millis in (0, 1, 20, 150, 2000):
        assert ticks_to_millis(millis_to_ticks(millis)) == millis


def test_ticks_to_millis_truncates_integers():
    assert ticks_to_millis(1999) == 1
    assert ticks_to_millis(999) == 0


def test_ticks_to_millis_float_keeps_fraction():
    assert ticks_to_millis(1500.0) == pytest.approx(1.5)


def test_roland_checksum_gs_reset():
    # GS reset: F0 41 10 42 12 40 00 7F 00 41 F7
    assert roland_checksum(bytes([0x40, 0x00, 0x7F, 0x00])) == 0x41


def test_roland_checksum_sums_to_multiple_of_128():
    payloads = [bytes([0x10, 0x00, 0x16, 0x01]), bytes([0x20, 0x00, 0x00, 0x41, 0x42]), bytes(range(1, 40))]
    for payload in payloads:
        checksum = roland_checksum(payload)
        assert (sum(payload) + checksum) % 128 == 0