"""Kubernetes resource quantities and Go-style durations."""

import math
import re
from decimal import ROUND_CEILING, Decimal, InvalidOperation
from typing import Union

_QUANTITY_PATTERN = re.compile(r"^([+-]?[0-9.]+(?:[eE][+-]?[0-9]+)?)([a-zA-Z]*)$")

_BINARY_SUFFIXES = {
    "Ki": 1024,
    "Mi": 1024**2,
    "Gi": 1024**3,
    "Ti": 1024**4,
    "Pi": 1024**5,
    "Ei": 1024**6,
}

_DECIMAL_SUFFIXES = {
    "": 1,
    "m": Decimal("0.001"),
    "k": 1000,
    "M": 1000**2,
    "G": 1000**3,
    "T": 1000**4,
    "P": 1000**5,
    "E": 1000**6,
}

_DURATION_PATTERN = re.compile(r"([0-9]*\.?[0-9]+)(ms|h|m|s)")
_DURATION_UNITS = {"ms": 0.001, "s": 1, "m": 60, "h": 3600}


def parse_quantity(quantity: Union[str, int, float]) -> int:
    """Parse a Kubernetes quantity (e.g. "10Gi", "500M", "1e9") into bytes.

    Fractional byte counts are rounded up, matching how the API server
    rounds storage requests.

    Raises:
        ValueError: If the quantity is empty, malformed, or uses an unknown suffix.
    """
    if isinstance(quantity, bool):
        raise ValueError(f"Invalid quantity: {quantity!r}")
    if isinstance(quantity, (int, float)):
        return int(math.ceil(quantity))
    if quantity is None or not str(quantity).strip():
        raise ValueError("Quantity cannot be empty")

    match = _QUANTITY_PATTERN.match(str(quantity).strip())
    if not match:
        raise ValueError(f"Invalid quantity: {quantity}")

    try:
        number = Decimal(match.group(1))
    except InvalidOperation:
        raise ValueError(f"Invalid quantity: {quantity}")
    suffix = match.group(2)

    if suffix in _BINARY_SUFFIXES:
        value = number * _BINARY_SUFFIXES[suffix]
    elif suffix in _DECIMAL_SUFFIXES:
        value = number * _DECIMAL_SUFFIXES[suffix]
    else:
        raise ValueError(f"Unknown quantity suffix: {suffix}")

    return int(value.to_integral_value(rounding=ROUND_CEILING))


def format_quantity(num_bytes: int) -> str:
    """Render bytes as the largest binary-suffixed quantity that is exact.

    >>> format_quantity(12 * 1024**3)
    '12Gi'
    >>> format_quantity(1500)
    '1500'
    """
    num_bytes = int(num_bytes)
    if num_bytes == 0:
        return "0"
    for suffix, factor in sorted(
        _BINARY_SUFFIXES.items(), key=lambda item: item[1], reverse=True
    ):
        if num_bytes % factor == 0:
            return f"{num_bytes // factor}{suffix}"
    return str(num_bytes)


def parse_duration(duration: Union[str, int, float]) -> float:
    """Parse a duration like "60s", "5m" or "1h30m" into seconds.

    Bare numbers are taken as seconds.

    Raises:
        ValueError: If the duration is empty or malformed.
    """
    if isinstance(duration, bool):
        raise ValueError(f"Invalid duration: {duration!r}")
    if isinstance(duration, (int, float)):
        return float(duration)
    if duration is None or not str(duration).strip():
        raise ValueError("Duration cannot be empty")

    text = str(duration).strip()
    try:
        return float(text)
    except ValueError:
        pass

    total = 0.0
    position = 0
    for match in _DURATION_PATTERN.finditer(text):
        if match.start() != position:
            raise ValueError(f"Invalid duration: {duration}")
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()
    if position == 0 or position != len(text):
        raise ValueError(f"Invalid duration: {duration}")
    return total
