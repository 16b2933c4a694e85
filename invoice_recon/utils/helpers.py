"""
Helper Utilities Module.

This module provides small utility functions used throughout the
reconciliation system. Functions here should be generic and reusable
across different modules.

Functions:
    - round_half_up: Round to the nearest integer, halves rounded up
    - generate_timestamp: Generate formatted timestamps
    - generate_placeholder_number: Build a fallback invoice number
"""

import math
import time
from datetime import datetime
from decimal import Decimal
from typing import Union


def round_half_up(value: Union[int, float, Decimal]) -> int:
    """
    Round a number to the nearest integer, with .5 rounding up.

    Python's built-in round() uses banker's rounding (round(0.5) == 0),
    which would move confidence values at exact halves. All confidence
    scores in the system go through this function instead.

    Args:
        value: Number to round.

    Returns:
        Rounded integer.

    Example:
        >>> round_half_up(62.5)
        63
        >>> round_half_up(Decimal("0.5"))
        1
    """
    half = Decimal("0.5") if isinstance(value, Decimal) else 0.5
    return int(math.floor(value + half))


def generate_timestamp(format_str: str = "%Y%m%d_%H%M%S") -> str:
    """
    Generate a formatted timestamp string.

    Args:
        format_str: strftime format string.

    Returns:
        Formatted timestamp string.

    Example:
        >>> generate_timestamp()
        "20260121_143022"
    """
    return datetime.now().strftime(format_str)


def generate_placeholder_number(prefix: str = "INV-") -> str:
    """
    Generate a placeholder invoice number from the current epoch milliseconds.

    Args:
        prefix: Text prepended to the millisecond counter.

    Returns:
        Placeholder such as "INV-1768999822123".
    """
    return f"{prefix}{int(time.time() * 1000)}"
