from __future__ import annotations

import math


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with ties away from zero on the positive side (2.25 -> 2.3)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def format_number(value: float) -> str:
    """Shortest text that reads back as ``value``; whole floats drop ``.0``."""
    text = repr(value)
    return text[:-2] if text.endswith(".0") else text
