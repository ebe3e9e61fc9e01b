"""Pool status derivation and value presentation helpers."""

from __future__ import annotations

from typing import List

from models.records import (
    DEFAULT_RANGES,
    Band,
    ChemicalField,
    ChemicalRanges,
    PoolStatusLevel,
    StatusReport,
)
from services.numbers import format_number, round_half_up
from services.validation import (
    ReadingLike,
    classify,
    present_fields,
    validate_reading,
)

_LEVEL_MESSAGES = {
    PoolStatusLevel.excellent: "All chemical levels are optimal",
    PoolStatusLevel.good: "Minor adjustment needed",
    PoolStatusLevel.caution: "Multiple chemical adjustments needed",
    PoolStatusLevel.critical: "Immediate attention required",
}

CRITICAL_ERROR_MESSAGE = "Critical chemical imbalance detected"


def describe_issue(chemical: ChemicalField, value: float) -> str:
    unit = chemical.unit
    if chemical is ChemicalField.temperature:
        return f"{chemical.label}: {format_number(value)}{unit}"
    if unit:
        return f"{chemical.label}: {format_number(value)} {unit}"
    return f"{chemical.label}: {format_number(value)}"


def level_for_count(out_of_range: int) -> PoolStatusLevel:
    if out_of_range == 0:
        return PoolStatusLevel.excellent
    if out_of_range == 1:
        return PoolStatusLevel.good
    if out_of_range == 2:
        return PoolStatusLevel.caution
    return PoolStatusLevel.critical


def derive_status(
    reading: ReadingLike, ranges: ChemicalRanges = DEFAULT_RANGES
) -> StatusReport:
    """Summarize a reading as one of four status levels.

    Hard validation errors always yield ``critical`` with the errors as
    issues. Otherwise the level depends only on how many fields fall outside
    their acceptable band.
    """
    validation = validate_reading(reading, ranges)
    if validation.errors:
        return StatusReport(
            level=PoolStatusLevel.critical,
            message=CRITICAL_ERROR_MESSAGE,
            issues=list(validation.errors),
        )

    issues: List[str] = []
    for chemical, value in present_fields(reading):
        if classify(value, ranges.tier(chemical)) is not Band.ok:
            issues.append(describe_issue(chemical, value))

    level = level_for_count(len(issues))
    return StatusReport(level=level, message=_LEVEL_MESSAGES[level], issues=issues)


def format_chemical_value(value: float, chemical: ChemicalField) -> str:
    """Render a value at the precision the field is normally read at."""
    chemical = ChemicalField(chemical)
    if chemical in (ChemicalField.chlorine, ChemicalField.ph):
        return f"{value:.1f}"
    return str(int(round_half_up(value)))


def chemical_status_color(
    value: float, chemical: ChemicalField, ranges: ChemicalRanges = DEFAULT_RANGES
) -> str:
    """``green`` in band, ``yellow`` within 10% of it, ``red`` otherwise."""
    tier = ranges.tier(chemical)
    band = classify(value, tier)
    if band is Band.ok:
        return "green"
    if band is Band.low and value >= tier.minimum * 0.9:
        return "yellow"
    if band is Band.high and value <= tier.maximum * 1.1:
        return "yellow"
    return "red"
