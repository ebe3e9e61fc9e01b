from __future__ import annotations

import pytest

from models.records import ChemicalField, ChemicalReading, RangeTier
from services.compliance import (
    CLOSURE_ACTION,
    STANDARDS,
    ComplianceLevel,
    ComplianceStandard,
    ComplianceStatus,
    Severity,
    check_chemical,
    generate_compliance_report,
    should_close_pool,
)


@pytest.mark.parametrize(
    "value, chemical, expected",
    [
        (0.5, ChemicalField.chlorine, ComplianceStatus.emergency),
        (5.0, ChemicalField.chlorine, ComplianceStatus.emergency),
        (0.8, ChemicalField.chlorine, ComplianceStatus.critical),
        (1.0, ChemicalField.chlorine, ComplianceStatus.warning),
        (2.0, ChemicalField.chlorine, ComplianceStatus.good),
        (6.8, ChemicalField.ph, ComplianceStatus.emergency),
        (7.7, ChemicalField.ph, ComplianceStatus.critical),
        (7.25, ChemicalField.ph, ComplianceStatus.warning),
        (70, ChemicalField.alkalinity, ComplianceStatus.critical),
        (115, ChemicalField.alkalinity, ComplianceStatus.warning),
        (91, ChemicalField.temperature, ComplianceStatus.emergency),
        (81, ChemicalField.temperature, ComplianceStatus.good),
    ],
)
def test_check_chemical_grades_each_tier(value, chemical, expected) -> None:
    assert check_chemical(value, chemical).status is expected


def test_check_messages_and_advice() -> None:
    critical = check_chemical(86, ChemicalField.temperature)
    assert critical.message == "CRITICAL: Water Temperature too high (86 °F)"
    assert critical.recommendation == STANDARDS[ChemicalField.temperature].lower_advice
    assert critical.severity is Severity.high
    assert critical.requires_action is True
    assert critical.requires_closure is False

    low = check_chemical(70, ChemicalField.alkalinity)
    assert low.message == "CRITICAL: Total Alkalinity too low (70 ppm)"
    assert low.recommendation == STANDARDS[ChemicalField.alkalinity].raise_advice

    good = check_chemical(7.4, ChemicalField.ph)
    assert good.message == "GOOD: pH Level within ideal range (7.4)"
    assert good.recommendation is None
    assert good.requires_action is False


def test_priority_weights_chemical_by_status() -> None:
    assert check_chemical(0.2, ChemicalField.chlorine).priority == 40
    assert check_chemical(81, ChemicalField.temperature).priority == 2


def test_report_rolls_up_to_worst_status() -> None:
    reading = ChemicalReading(chlorine=0.4, ph=7.8, alkalinity=115, temperature=81)

    report = generate_compliance_report(reading)

    assert report.overall is ComplianceLevel.emergency
    assert report.total_tests == 4
    assert [report.count(status) for status in ComplianceStatus] == [1, 1, 1, 1]
    assert report.required_actions == [
        CLOSURE_ACTION,
        "Immediate pool closure required. Contact facility manager.",
        STANDARDS[ChemicalField.ph].lower_advice,
    ]
    assert report.recommendations == [STANDARDS[ChemicalField.alkalinity].lower_advice]


@pytest.mark.parametrize(
    "values, expected",
    [
        ({}, ComplianceLevel.compliant),
        ({"chlorine": 2.0, "ph": 7.4}, ComplianceLevel.compliant),
        ({"chlorine": 2.0, "ph": 7.55}, ComplianceLevel.warning),
        ({"chlorine": 3.5, "ph": 7.55}, ComplianceLevel.non_compliant),
    ],
)
def test_overall_level(values, expected) -> None:
    assert generate_compliance_report(values).overall is expected


def test_warnings_become_recommendations_not_actions() -> None:
    report = generate_compliance_report({"chlorine": 1.2, "ph": 7.25})

    assert report.recommendations == [
        STANDARDS[ChemicalField.chlorine].raise_advice,
        STANDARDS[ChemicalField.ph].raise_advice,
    ]
    assert report.required_actions == []


def test_non_numeric_values_are_not_graded() -> None:
    report = generate_compliance_report({"chlorine": float("nan"), "ph": 7.4})

    assert report.total_tests == 1
    assert report.details[0].chemical is ChemicalField.ph


def test_should_close_pool_lists_each_emergency() -> None:
    decision = should_close_pool({"chlorine": 0.3, "ph": 8.2, "alkalinity": 100})

    assert decision.should_close is True
    assert decision.reasons == [
        "Free Available Chlorine: EMERGENCY: Free Available Chlorine critically out of range",
        "pH Level: EMERGENCY: pH Level critically out of range",
    ]
    assert should_close_pool({"chlorine": 0.8}).should_close is False


def test_standard_thresholds_must_nest() -> None:
    with pytest.raises(ValueError):
        ComplianceStandard(
            description="Broken",
            regulation="n/a",
            acceptable=RangeTier(minimum=1.0, maximum=3.0, ideal=2.0),
            ideal=RangeTier(minimum=0.5, maximum=2.5, ideal=2.0),
            critical_low=0.2,
            critical_high=5.0,
            raise_advice="",
            lower_advice="",
        )
