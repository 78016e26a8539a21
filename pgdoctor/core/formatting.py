"""
Human-readable rendering of byte counts and large integers.

Used by checks when building finding details and table cells.
"""

import math
from typing import Union

Number = Union[int, float]

BYTE_UNITS = ["B", "KiB", "MiB", "GiB", "TiB", "PiB", "EiB"]
NUMBER_UNITS = [(1_000_000_000, "B"), (1_000_000, "M"), (1_000, "K")]


def format_bytes(size: Number) -> str:
    """
    Render a byte count with 1024-based units and one decimal place.

    >>> format_bytes(0)
    '0B'
    >>> format_bytes(1610612736)
    '1.5GiB'
    """
    if isinstance(size, float) and not math.isfinite(size):
        return str(size)
    if size < 0:
        return "-" + format_bytes(-size)

    size = round(size)
    if size < 1024:
        return f"{size}B"

    scaled = float(size)
    unit = 0
    while unit < len(BYTE_UNITS) - 1 and scaled >= 1024:
        scaled /= 1024
        unit += 1

    # 1023.96 KiB would print as "1024.0KiB"
    if round(scaled, 1) >= 1024 and unit < len(BYTE_UNITS) - 1:
        scaled /= 1024
        unit += 1

    return f"{scaled:.1f}{BYTE_UNITS[unit]}"


def format_number(n: Number) -> str:
    """
    Render a count with K/M/B suffixes (1000-based, one decimal place).

    >>> format_number(999)
    '999'
    >>> format_number(1_200_000)
    '1.2M'
    """
    if isinstance(n, float) and not math.isfinite(n):
        return str(n)
    if n < 0:
        return "-" + format_number(-n)

    n = round(n)
    if n < 1_000:
        return str(n)

    for i, (divisor, suffix) in enumerate(NUMBER_UNITS):
        if n >= divisor:
            scaled = round(n / divisor, 1)
            # 999_950 would print as "1000.0K"
            if scaled >= 1_000 and i > 0:
                bigger_divisor, bigger_suffix = NUMBER_UNITS[i - 1]
                return f"{n / bigger_divisor:.1f}{bigger_suffix}"
            return f"{scaled:.1f}{suffix}"

    return str(n)
