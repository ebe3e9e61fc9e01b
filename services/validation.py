"""Classification of chemical readings against physical limits and range tiers."""

from __future__ import annotations

import math
from numbers import Real
from typing import Any, List, Mapping, Tuple, Union

from models.records import (
    DEFAULT_RANGES,
    Band,
    ChemicalField,
    ChemicalRanges,
    ChemicalReading,
    RangeTier,
    ValidationResult,
)
from services.numbers import format_number

ReadingLike = Union[ChemicalReading, Mapping[str, Any]]

# Inclusive physical limits; None leaves that side unbounded.
PHYSICAL_LIMITS = {
    ChemicalField.chlorine: (0.0, None),
    ChemicalField.ph: (0.0, 14.0),
    ChemicalField.alkalinity: (0.0, None),
    ChemicalField.temperature: (32.0, 120.0),
}

_PHYSICAL_ERRORS = {
    ChemicalField.chlorine: "Chlorine level cannot be negative",
    ChemicalField.ph: "pH must be between 0 and 14",
    ChemicalField.alkalinity: "Alkalinity cannot be negative",
    ChemicalField.temperature: "Temperature must be between 32°F and 120°F",
}

_WARNING_SUBJECTS = {
    ChemicalField.chlorine: "Chlorine level",
    ChemicalField.ph: "pH level",
    ChemicalField.alkalinity: "Alkalinity",
    ChemicalField.temperature: "Temperature",
}


def classify(value: float, tier: RangeTier) -> Band:
    """Place ``value`` below, inside, or above the tier's acceptable band."""
    if value < tier.minimum:
        return Band.low
    if value > tier.maximum:
        return Band.high
    return Band.ok


def is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    return math.isfinite(value)


def present_fields(reading: ReadingLike) -> List[Tuple[ChemicalField, Any]]:
    """Return ``(field, raw value)`` pairs for every field the reading carries."""
    pairs: List[Tuple[ChemicalField, Any]] = []
    for chemical in ChemicalField:
        if isinstance(reading, ChemicalReading):
            value = reading.value_of(chemical)
        else:
            value = reading.get(chemical.value)
        if value is not None:
            pairs.append((chemical, value))
    return pairs


def within_physical_limits(chemical: ChemicalField, value: float) -> bool:
    lower, upper = PHYSICAL_LIMITS[chemical]
    if lower is not None and value < lower:
        return False
    if upper is not None and value > upper:
        return False
    return True


def _range_warning(chemical: ChemicalField, value: float, band: Band, tier: RangeTier) -> str:
    suffix = "°F" if chemical is ChemicalField.temperature else ""
    if band is Band.low:
        position, bound = "below recommended minimum", tier.minimum
    else:
        position, bound = "above recommended maximum", tier.maximum
    return (
        f"{_WARNING_SUBJECTS[chemical]} ({format_number(value)}{suffix}) is {position} "
        f"({format_number(bound)}{suffix})"
    )


def validate_reading(
    reading: ReadingLike, ranges: ChemicalRanges = DEFAULT_RANGES
) -> ValidationResult:
    """Check each present field independently and collect errors and warnings.

    A field that fails the type or physical-limit check produces an error and
    is not range checked. Fields that pass are compared against ``ranges`` and
    produce a warning when outside the acceptable band. Absent fields are
    skipped, so partially entered readings validate cleanly.
    """
    errors: List[str] = []
    warnings: List[str] = []

    for chemical, value in present_fields(reading):
        if not is_finite_number(value):
            errors.append(f"{chemical.label} must be a finite number")
            continue
        if not within_physical_limits(chemical, value):
            errors.append(_PHYSICAL_ERRORS[chemical])
            continue

        tier = ranges.tier(chemical)
        band = classify(value, tier)
        if band is not Band.ok:
            warnings.append(_range_warning(chemical, value, band, tier))

    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)
