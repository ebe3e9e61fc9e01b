"""Direction of change between the two most recent readings of a chemical."""

from __future__ import annotations

from typing import Iterable

from models.records import ChemicalField, ChemicalReading, Trend, TrendDirection
from services.numbers import round_half_up
from services.validation import is_finite_number

NOISE_THRESHOLD = 0.1


def compute_trend(readings: Iterable[ChemicalReading], chemical: ChemicalField) -> Trend:
    """Compare the latest reading of ``chemical`` with the one before it.

    Input order does not matter; readings are sorted newest first here.
    Readings without a usable value for ``chemical`` are ignored. Changes
    smaller than ``NOISE_THRESHOLD`` in the field's own unit report as stable.
    When the previous value is zero the relative change is undefined, so the
    direction is still reported but the percentage is 0.
    """
    chemical = ChemicalField(chemical)
    usable = [
        reading
        for reading in readings
        if is_finite_number(reading.value_of(chemical))
    ]
    if len(usable) < 2:
        return Trend()

    ordered = sorted(usable, key=lambda reading: reading.timestamp, reverse=True)
    latest = ordered[0].value_of(chemical)
    previous = ordered[1].value_of(chemical)

    change = latest - previous
    if abs(change) < NOISE_THRESHOLD:
        return Trend()

    direction = TrendDirection.up if change > 0 else TrendDirection.down
    if previous == 0:
        return Trend(direction=direction, percentage=0.0)

    percentage = abs(change / previous) * 100
    return Trend(direction=direction, percentage=round_half_up(percentage, 1))
