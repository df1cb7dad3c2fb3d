# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Byte count formatting for log lines and listings.
"""

import math
from typing import Tuple

UNITS = ("B", "KB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB")


def humanize(num_bytes: int) -> Tuple[float, str]:
    """
    Convert a byte count to a (value, unit) pair using 1024 steps.

    The unit is capped at YB; larger counts are returned un-normalized.
    The value is not rounded, use format_size() for display.

    Args:
        num_bytes: Non-negative byte count

    Returns:
        Tuple of (value, unit)
    """
    if num_bytes < 0:
        raise ValueError(f"byte count must be >= 0, got {num_bytes}")

    # Pick the unit on the exact integer; floats round large counts up
    power = 0
    while power < len(UNITS) - 1 and num_bytes >= 1024 ** (power + 1):
        power += 1

    value = num_bytes / 1024 ** power
    if value >= 1024 and power < len(UNITS) - 1:
        # Just below the next unit, the quotient itself can round to 1024.0
        value = math.nextafter(1024.0, 0.0)

    return (value, UNITS[power])


def format_size(num_bytes: int) -> str:
    """Format a byte count for display, e.g. ``"10.00 KB"``."""
    value, unit = humanize(num_bytes)
    return f"{value:.2f} {unit}"
