"""Unit tests for reading validation and band classification."""

from __future__ import annotations

import math

import pytest

from models.records import (
    DEFAULT_RANGES,
    Band,
    ChemicalRanges,
    ChemicalReading,
    RangeTier,
)
from services.validation import classify, validate_reading


def test_classify_places_value_relative_to_band() -> None:
    tier = RangeTier(minimum=1.0, maximum=3.0, ideal=2.0)

    assert classify(0.5, tier) is Band.low
    assert classify(1.0, tier) is Band.ok
    assert classify(3.0, tier) is Band.ok
    assert classify(3.5, tier) is Band.high


def test_in_range_reading_is_valid_without_warnings() -> None:
    reading = ChemicalReading(chlorine=2.0, ph=7.4, alkalinity=100, temperature=80)

    result = validate_reading(reading)

    assert result.is_valid is True
    assert result.errors == []
    assert result.warnings == []


def test_ph_outside_physical_scale_is_an_error_not_a_warning() -> None:
    result = validate_reading({"ph": 15})

    assert result.is_valid is False
    assert result.errors == ["pH must be between 0 and 14"]
    assert result.warnings == []


def test_physical_errors_for_each_field() -> None:
    result = validate_reading(
        {"chlorine": -0.1, "ph": -1, "alkalinity": -5, "temperature": 130}
    )

    assert result.errors == [
        "Chlorine level cannot be negative",
        "pH must be between 0 and 14",
        "Alkalinity cannot be negative",
        "Temperature must be between 32°F and 120°F",
    ]
    assert result.warnings == []


def test_out_of_band_values_produce_warnings_with_bound() -> None:
    result = validate_reading({"chlorine": 0.5, "alkalinity": 150, "temperature": 90})

    assert result.is_valid is True
    assert result.warnings == [
        "Chlorine level (0.5) is below recommended minimum (1)",
        "Alkalinity (150) is above recommended maximum (120)",
        "Temperature (90°F) is above recommended maximum (84°F)",
    ]


def test_partial_reading_skips_absent_fields() -> None:
    result = validate_reading({"ph": 7.3})

    assert result.is_valid is True
    assert result.errors == []
    assert result.warnings == []


def test_empty_reading_is_not_rejected() -> None:
    result = validate_reading(ChemicalReading())

    assert result.is_valid is True
    assert result.errors == []


@pytest.mark.parametrize("value", [math.nan, math.inf, "7.4", True])
def test_non_finite_or_non_numeric_values_are_errors(value) -> None:
    result = validate_reading({"ph": value})

    assert result.is_valid is False
    assert result.errors == ["pH must be a finite number"]


def test_custom_ranges_are_honored() -> None:
    strict = ChemicalRanges(
        chlorine=RangeTier(minimum=2.5, maximum=4.0, ideal=3.0),
        ph=DEFAULT_RANGES.ph,
        alkalinity=DEFAULT_RANGES.alkalinity,
        temperature=DEFAULT_RANGES.temperature,
    )

    assert validate_reading({"chlorine": 2.0}).warnings == []
    assert validate_reading({"chlorine": 2.0}, strict).warnings == [
        "Chlorine level (2) is below recommended minimum (2.5)"
    ]


def test_range_tier_rejects_inverted_bounds() -> None:
    with pytest.raises(ValueError):
        RangeTier(minimum=3.0, maximum=1.0, ideal=2.0)


def test_warnings_quote_the_observed_value_exactly() -> None:
    result = validate_reading({"alkalinity": 1234567.0, "chlorine": 0.123456789})

    assert "Chlorine level (0.123456789) is below recommended minimum (1)" in result.warnings
    assert "Alkalinity (1234567) is above recommended maximum (120)" in result.warnings
