"""Tiered compliance checks with ideal sub-ranges and closure thresholds."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional

from models.records import DEFAULT_RANGES, Band, ChemicalField, RangeTier
from services.numbers import format_number
from services.validation import ReadingLike, classify, is_finite_number, present_fields


class ComplianceStatus(str, Enum):
    """Outcome of one chemical check, from best to worst."""

    good = "good"
    warning = "warning"
    critical = "critical"
    emergency = "emergency"


class Severity(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class ComplianceLevel(str, Enum):
    compliant = "compliant"
    warning = "warning"
    non_compliant = "non-compliant"
    emergency = "emergency"


_SEVERITY = {
    ComplianceStatus.good: Severity.low,
    ComplianceStatus.warning: Severity.medium,
    ComplianceStatus.critical: Severity.high,
    ComplianceStatus.emergency: Severity.critical,
}

CLOSURE_ACTION = "IMMEDIATE POOL CLOSURE REQUIRED"


@dataclass(frozen=True)
class ComplianceStandard:
    """Acceptable band, the ideal band inside it, and the closure thresholds.

    A value at or beyond ``critical_low``/``critical_high`` requires closing
    the pool.
    """

    description: str
    regulation: str
    acceptable: RangeTier
    ideal: RangeTier
    critical_low: float
    critical_high: float
    raise_advice: str
    lower_advice: str

    def __post_init__(self) -> None:
        if not (
            self.critical_low
            <= self.acceptable.minimum
            <= self.ideal.minimum
            <= self.ideal.maximum
            <= self.acceptable.maximum
            <= self.critical_high
        ):
            raise ValueError(
                f"{self.description}: thresholds must nest critical < acceptable < ideal."
            )

    def advice(self, band: Band) -> str:
        return self.raise_advice if band is Band.low else self.lower_advice


STANDARDS: Dict[ChemicalField, ComplianceStandard] = {
    ChemicalField.chlorine: ComplianceStandard(
        description="Free Available Chlorine",
        regulation="MAHC 5.7.3.1.1",
        acceptable=DEFAULT_RANGES.chlorine,
        ideal=RangeTier(minimum=1.5, maximum=2.5, ideal=2.0),
        critical_low=0.5,
        critical_high=5.0,
        raise_advice="Add liquid chlorine or granular chlorine. Check chlorine feeder operation.",
        lower_advice=(
            "Reduce chlorine addition. Allow natural dissipation or add sodium thiosulfate."
        ),
    ),
    ChemicalField.ph: ComplianceStandard(
        description="pH Level",
        regulation="MAHC 5.7.3.2",
        acceptable=DEFAULT_RANGES.ph,
        ideal=RangeTier(minimum=7.3, maximum=7.5, ideal=7.4),
        critical_low=6.8,
        critical_high=8.0,
        raise_advice="Add sodium carbonate (soda ash) to raise pH. Check alkalinity first.",
        lower_advice=(
            "Add muriatic acid or sodium bisulfate to lower pH. Test in small increments."
        ),
    ),
    ChemicalField.alkalinity: ComplianceStandard(
        description="Total Alkalinity",
        regulation="MAHC 5.7.3.3",
        acceptable=DEFAULT_RANGES.alkalinity,
        ideal=RangeTier(minimum=90, maximum=110, ideal=100),
        critical_low=60,
        critical_high=180,
        raise_advice="Add sodium bicarbonate (baking soda) to increase alkalinity.",
        lower_advice="Add muriatic acid to lower alkalinity. Monitor pH changes closely.",
    ),
    ChemicalField.temperature: ComplianceStandard(
        description="Water Temperature",
        regulation="MAHC 4.7.3.1",
        acceptable=DEFAULT_RANGES.temperature,
        ideal=RangeTier(minimum=80, maximum=82, ideal=81),
        critical_low=75,
        critical_high=90,
        raise_advice="Check heater operation. Adjust thermostat settings.",
        lower_advice=(
            "Check cooling system. Reduce heater temperature or increase circulation."
        ),
    ),
}

# Higher means more urgent when several chemicals need attention.
_BASE_PRIORITY = {
    ChemicalField.chlorine: 10,
    ChemicalField.ph: 9,
    ChemicalField.alkalinity: 6,
    ChemicalField.temperature: 2,
}

_STATUS_WEIGHT = {
    ComplianceStatus.good: 1,
    ComplianceStatus.warning: 2,
    ComplianceStatus.critical: 3,
    ComplianceStatus.emergency: 4,
}


@dataclass
class ChemicalCheck:
    chemical: ChemicalField
    value: float
    status: ComplianceStatus
    message: str
    recommendation: Optional[str] = None

    @property
    def severity(self) -> Severity:
        return _SEVERITY[self.status]

    @property
    def requires_action(self) -> bool:
        return self.status is not ComplianceStatus.good

    @property
    def requires_closure(self) -> bool:
        return self.status is ComplianceStatus.emergency

    @property
    def priority(self) -> int:
        return _BASE_PRIORITY[self.chemical] * _STATUS_WEIGHT[self.status]


@dataclass
class ComplianceReport:
    overall: ComplianceLevel = ComplianceLevel.compliant
    details: List[ChemicalCheck] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    required_actions: List[str] = field(default_factory=list)

    def count(self, status: ComplianceStatus) -> int:
        return sum(1 for check in self.details if check.status is status)

    @property
    def total_tests(self) -> int:
        return len(self.details)


@dataclass
class ClosureDecision:
    should_close: bool
    reasons: List[str] = field(default_factory=list)


def _quantity(value: float, chemical: ChemicalField) -> str:
    unit = chemical.unit
    return f"{format_number(value)} {unit}" if unit else format_number(value)


def check_chemical(
    value: float,
    chemical: ChemicalField,
    standards: Mapping[ChemicalField, ComplianceStandard] = STANDARDS,
) -> ChemicalCheck:
    """Grade one value: emergency, critical, warning or good, in that order."""
    chemical = ChemicalField(chemical)
    standard = standards[chemical]

    if value <= standard.critical_low or value >= standard.critical_high:
        return ChemicalCheck(
            chemical=chemical,
            value=value,
            status=ComplianceStatus.emergency,
            message=f"EMERGENCY: {standard.description} critically out of range",
            recommendation="Immediate pool closure required. Contact facility manager.",
        )

    band = classify(value, standard.acceptable)
    if band is not Band.ok:
        return ChemicalCheck(
            chemical=chemical,
            value=value,
            status=ComplianceStatus.critical,
            message=(
                f"CRITICAL: {standard.description} too {band.value} "
                f"({_quantity(value, chemical)})"
            ),
            recommendation=standard.advice(band),
        )

    band = classify(value, standard.ideal)
    if band is not Band.ok:
        return ChemicalCheck(
            chemical=chemical,
            value=value,
            status=ComplianceStatus.warning,
            message=(
                f"WARNING: {standard.description} outside ideal range "
                f"({_quantity(value, chemical)})"
            ),
            recommendation=standard.advice(band),
        )

    return ChemicalCheck(
        chemical=chemical,
        value=value,
        status=ComplianceStatus.good,
        message=(
            f"GOOD: {standard.description} within ideal range ({_quantity(value, chemical)})"
        ),
    )


def _checks(
    reading: ReadingLike, standards: Mapping[ChemicalField, ComplianceStandard]
) -> List[ChemicalCheck]:
    # Non-numeric values are validation errors and are not graded here.
    return [
        check_chemical(value, chemical, standards)
        for chemical, value in present_fields(reading)
        if is_finite_number(value)
    ]


def generate_compliance_report(
    reading: ReadingLike,
    standards: Mapping[ChemicalField, ComplianceStandard] = STANDARDS,
) -> ComplianceReport:
    """Grade every measured field and roll the results up into one verdict."""
    report = ComplianceReport(details=_checks(reading, standards))

    recommendations: Dict[str, None] = {}
    required: Dict[str, None] = {}
    for check in report.details:
        if check.status is ComplianceStatus.warning and check.recommendation:
            recommendations[check.recommendation] = None
        elif check.status is ComplianceStatus.critical and check.recommendation:
            required[check.recommendation] = None
        elif check.status is ComplianceStatus.emergency:
            required[CLOSURE_ACTION] = None
            if check.recommendation:
                required[check.recommendation] = None
    report.recommendations = list(recommendations)
    report.required_actions = list(required)

    if report.count(ComplianceStatus.emergency):
        report.overall = ComplianceLevel.emergency
    elif report.count(ComplianceStatus.critical):
        report.overall = ComplianceLevel.non_compliant
    elif report.count(ComplianceStatus.warning):
        report.overall = ComplianceLevel.warning
    return report


def should_close_pool(
    reading: ReadingLike,
    standards: Mapping[ChemicalField, ComplianceStandard] = STANDARDS,
) -> ClosureDecision:
    reasons = [
        f"{standards[check.chemical].description}: {check.message}"
        for check in _checks(reading, standards)
        if check.requires_closure
    ]
    return ClosureDecision(should_close=bool(reasons), reasons=reasons)
