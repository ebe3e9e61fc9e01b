"""Corrective adjustment suggestions toward each chemical's ideal value."""

from __future__ import annotations

from typing import Dict

from models.records import (
    DEFAULT_RANGES,
    Adjustment,
    AdjustmentAction,
    Band,
    ChemicalField,
    ChemicalRanges,
)
from services.numbers import round_half_up
from services.validation import ReadingLike, classify, is_finite_number, present_fields

# Temperature is reported but never dosed, so it has no entry here.
ADJUSTABLE = {
    ChemicalField.chlorine: ("ppm", 1),
    ChemicalField.ph: ("pH units", 1),
    ChemicalField.alkalinity: ("ppm", 0),
}


def compute_adjustments(
    reading: ReadingLike, ranges: ChemicalRanges = DEFAULT_RANGES
) -> Dict[str, Adjustment]:
    """Return an adjustment for every adjustable chemical outside its band.

    Amounts are the distance to the ideal value rounded for display. They are
    not dosing quantities. Chemicals within their band are left out of the
    result entirely.
    """
    adjustments: Dict[str, Adjustment] = {}
    for chemical, value in present_fields(reading):
        if chemical not in ADJUSTABLE or not is_finite_number(value):
            continue

        tier = ranges.tier(chemical)
        band = classify(value, tier)
        if band is Band.ok:
            continue

        unit, digits = ADJUSTABLE[chemical]
        if band is Band.low:
            action, delta = AdjustmentAction.increase, tier.ideal - value
        else:
            action, delta = AdjustmentAction.decrease, value - tier.ideal

        amount = round_half_up(delta, digits)
        if digits == 0:
            amount = int(amount)
        adjustments[chemical.value] = Adjustment(action=action, amount=amount, unit=unit)

    return adjustments
