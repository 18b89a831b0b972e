"""Small numeric helpers shared across the package."""

from __future__ import annotations

from typing import Iterable, TypeVar

T = TypeVar("T", int, float)

TICKS_PER_MILLISECOND = 1000


def clamp(value: T, minimum: T, maximum: T) -> T:
    """Limit ``value`` to the closed range ``[minimum, maximum]``."""
    if value < minimum:
        return minimum
    if value > maximum:
        return maximum
    return value


def lerp(value: float, min_a: float, max_a: float, min_b: float, max_b: float) -> float:
    """Map ``value`` linearly from the range ``[min_a, max_a]`` onto ``[min_b, max_b]``."""
    return min_b + (value - min_a) * ((max_b - min_b) / (max_a - min_a))


def is_power_of_two(value: int) -> bool:
    """Return whether ``value`` is a positive power of two."""
    return bool(value) and (value & (value - 1)) == 0


def round_to_nearest_multiple(value: int, multiple: int) -> int:
    """Round an integer to the nearest multiple of another integer."""
    return ((value + multiple // 2) // multiple) * multiple


def millis_to_ticks(millis: T) -> T:
    """Convert milliseconds to ticks of a 1 MHz clock."""
    return millis * TICKS_PER_MILLISECOND


def ticks_to_millis(ticks: T) -> T:
    """Convert ticks of a 1 MHz clock to milliseconds.

    Integer input gives a truncated integer result; float input stays a float.
    """
    if isinstance(ticks, int):
        return ticks // TICKS_PER_MILLISECOND
    return ticks / TICKS_PER_MILLISECOND


def roland_checksum(data: Iterable[int]) -> int:
    """Compute the Roland SysEx checksum of the address and data bytes."""
    total = 0
    for byte in data:
        total = (total + byte) & 0x7F
    return 128 - total