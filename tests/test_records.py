"""Unit tests for the reading record model."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from models.records import ChemicalField, ChemicalReading, parse_timestamp


def test_timestamp_strings_normalize_to_utc() -> None:
    reading = ChemicalReading(timestamp="2024-06-01T10:00:00+02:00", ph=7.4)

    assert reading.timestamp == datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc)
    assert reading.timestamp.tzinfo is timezone.utc


def test_zulu_and_naive_timestamps_are_utc() -> None:
    assert parse_timestamp("2024-06-01T08:00:00Z") == datetime(2024, 6, 1, 8, tzinfo=timezone.utc)
    assert parse_timestamp(datetime(2024, 6, 1, 8)) == datetime(2024, 6, 1, 8, tzinfo=timezone.utc)


@pytest.mark.parametrize("value", ["", "not-a-date"])
def test_invalid_timestamp_strings_raise(value: str) -> None:
    with pytest.raises(ValueError):
        ChemicalReading(timestamp=value)


def test_defaults_assign_id_and_current_time() -> None:
    before = datetime.now(timezone.utc)
    first = ChemicalReading()
    second = ChemicalReading()

    assert first.id != second.id
    assert before - timedelta(seconds=1) <= first.timestamp <= datetime.now(timezone.utc)


def test_record_round_trip_omits_absent_fields() -> None:
    reading = ChemicalReading(
        id="r1", timestamp="2024-06-01T08:00:00Z", chlorine=2.0, temperature=81, notes="sunny"
    )

    record = reading.to_record()

    assert record == {
        "id": "r1",
        "timestamp": "2024-06-01T08:00:00+00:00",
        "chlorine": 2.0,
        "temperature": 81,
        "notes": "sunny",
    }
    assert ChemicalReading.from_record(record) == reading


def test_from_record_requires_id_and_timestamp() -> None:
    with pytest.raises(ValueError):
        ChemicalReading.from_record({"ph": 7.4})


def test_measurements_follow_field_order() -> None:
    reading = ChemicalReading(temperature=80, chlorine=2.0)

    assert list(reading.measurements()) == [ChemicalField.chlorine, ChemicalField.temperature]
    assert reading.value_of("ph") is None


def test_id_is_fixed_after_construction() -> None:
    reading = ChemicalReading(id="r1", ph=7.4)

    with pytest.raises(AttributeError):
        reading.id = "r2"

    reading.notes = "retested"
    assert reading.id == "r1"
    assert reading.notes == "retested"
