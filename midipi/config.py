"""Parsers for configuration option values."""

from __future__ import annotations

import enum
import ipaddress
import re
import struct
from typing import Type, TypeVar

E = TypeVar("E", bound=enum.Enum)

TRUE_STRINGS = ("true", "on", "1")
FALSE_STRINGS = ("false", "off", "0")

_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1

_DECIMAL_INT = re.compile(r"\s*([+-]?\d+)")
_HEX_INT = re.compile(r"\s*([+-]?)(?:0[xX](?=[0-9a-fA-F]))?([0-9a-fA-F]+)")
_HEX_FLOAT = re.compile(
    r"\s*([+-]?0[xX](?:[0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)(?:[pP][+-]?\d+)?)"
)
_DECIMAL_FLOAT = re.compile(
    r"\s*([+-]?(?:\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?|inf(?:inity)?|nan))",
    re.IGNORECASE,
)

_IP_ADDRESS_MAX_LENGTH = 16


def parse_bool(text: str) -> bool:
    """Parse a boolean option; raises ValueError for unrecognised text."""
    lowered = text.lower()
    if lowered in TRUE_STRINGS:
        return True
    if lowered in FALSE_STRINGS:
        return False
    raise ValueError(f"invalid boolean value: {text!r}")


def parse_int(text: str, hexadecimal: bool = False) -> int:
    """Parse the leading integer of ``text``; 0 when there is none.

    Trailing characters are ignored and the result saturates to a signed
    32-bit range.
    """
    if hexadecimal:
        match = _HEX_INT.match(text)
        if not match:
            return 0
        value = int(match.group(1) + match.group(2), 16)
    else:
        match = _DECIMAL_INT.match(text)
        if not match:
            return 0
        value = int(match.group(1))
    return max(_INT_MIN, min(_INT_MAX, value))


def _to_single_precision(value: float) -> float:
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        return float("inf") if value > 0 else float("-inf")


def parse_float(text: str) -> float:
    """Parse the leading single-precision float of ``text``; 0.0 when there is none."""
    match = _HEX_FLOAT.match(text)
    if match:
        return _to_single_precision(float.fromhex(match.group(1)))
    match = _DECIMAL_FLOAT.match(text)
    if match:
        return _to_single_precision(float(match.group(1)))
    return 0.0


def parse_ip_address(text: str) -> ipaddress.IPv4Address:
    """Parse a dotted IPv4 address.

    Empty groups are skipped, each group keeps only its low eight bits, and
    groups beyond the fourth are ignored. Raises ValueError when fewer than
    four groups are present.
    """
    groups = [group for group in text[:_IP_ADDRESS_MAX_LENGTH].split(".") if group]
    if len(groups) < 4:
        raise ValueError(f"invalid IP address: {text!r}")
    octets = bytes(parse_int(group) & 0xFF for group in groups[:4])
    return ipaddress.IPv4Address(octets)


def _enum_string(member: enum.Enum) -> str:
    return member.value if isinstance(member.value, str) else member.name


def parse_enum(text: str, enum_type: Type[E]) -> E:
    """Find the member of ``enum_type`` whose string matches ``text``, ignoring case.

    A member's string is its value when that is a string, otherwise its name.
    Raises ValueError when nothing matches.
    """
    lowered = text.lower()
    for member in enum_type:
        if _enum_string(member).lower() == lowered:
            return member
    raise ValueError(f"invalid {enum_type.__name__} value: {text!r}")