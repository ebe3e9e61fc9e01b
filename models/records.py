"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union
from uuid import uuid4


class ChemicalField(str, Enum):
    """Measured fields, declared in the order issues and reports list them."""

    chlorine = "chlorine"
    ph = "ph"
    alkalinity = "alkalinity"
    temperature = "temperature"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def unit(self) -> str:
        return _UNITS[self]


_LABELS = {
    ChemicalField.chlorine: "Chlorine",
    ChemicalField.ph: "pH",
    ChemicalField.alkalinity: "Alkalinity",
    ChemicalField.temperature: "Temperature",
}

_UNITS = {
    ChemicalField.chlorine: "ppm",
    ChemicalField.ph: "",
    ChemicalField.alkalinity: "ppm",
    ChemicalField.temperature: "°F",
}


class Band(str, Enum):
    """Position of a value relative to an acceptable band."""

    low = "low"
    ok = "ok"
    high = "high"


class PoolStatusLevel(str, Enum):
    """Overall pool condition, from best to worst."""

    excellent = "excellent"
    good = "good"
    caution = "caution"
    critical = "critical"


class AdjustmentAction(str, Enum):
    increase = "increase"
    decrease = "decrease"


class TrendDirection(str, Enum):
    up = "up"
    down = "down"
    stable = "stable"


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """Normalize an ISO-8601 string or datetime to an aware UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif not isinstance(value, str):
        raise TypeError(f"Unsupported timestamp type: {type(value).__name__}")
    else:
        candidate = value.strip()
        if not candidate:
            raise ValueError("Timestamp is empty.")

        if candidate.endswith("Z"):
            candidate = candidate[:-1] + "+00:00"

        try:
            parsed = datetime.fromisoformat(candidate)
        except ValueError as exc:
            raise ValueError("Invalid timestamp format") from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed.astimezone(timezone.utc)


@dataclass(slots=True)
class ChemicalReading:
    """A single water-quality measurement event.

    Measurements are optional so partially entered readings can be validated.
    Values are stored as given; range and finiteness checks belong to
    :func:`services.validation.validate_reading`.
    """

    id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    chlorine: Optional[float] = None
    ph: Optional[float] = None
    alkalinity: Optional[float] = None
    temperature: Optional[float] = None
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        self.timestamp = parse_timestamp(self.timestamp)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "id" and hasattr(self, "id"):
            raise AttributeError("ChemicalReading.id cannot be reassigned.")
        object.__setattr__(self, name, value)

    def value_of(self, chemical: ChemicalField) -> Optional[float]:
        return getattr(self, ChemicalField(chemical).value)

    def measurements(self) -> Dict[ChemicalField, float]:
        """Present measurements keyed by field, in field order."""
        values = {}
        for chemical in ChemicalField:
            value = self.value_of(chemical)
            if value is not None:
                values[chemical] = value
        return values

    def to_record(self) -> Dict[str, Any]:
        """Serialize to the persisted JSON shape; absent fields are omitted."""
        record: Dict[str, Any] = {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
        }
        for chemical, value in self.measurements().items():
            record[chemical.value] = value
        if self.notes is not None:
            record["notes"] = self.notes
        return record

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ChemicalReading":
        if "id" not in record or "timestamp" not in record:
            raise ValueError("Reading record requires 'id' and 'timestamp'.")
        return cls(
            id=str(record["id"]),
            timestamp=record["timestamp"],
            chlorine=record.get("chlorine"),
            ph=record.get("ph"),
            alkalinity=record.get("alkalinity"),
            temperature=record.get("temperature"),
            notes=record.get("notes"),
        )


@dataclass(frozen=True)
class RangeTier:
    """Acceptable band for one chemical plus the target it is dosed toward."""

    minimum: float
    maximum: float
    ideal: float

    def __post_init__(self) -> None:
        if self.minimum > self.maximum:
            raise ValueError("RangeTier minimum must not exceed maximum.")
        if not self.minimum <= self.ideal <= self.maximum:
            raise ValueError("RangeTier ideal must lie within [minimum, maximum].")


@dataclass(frozen=True)
class ChemicalRanges:
    chlorine: RangeTier
    ph: RangeTier
    alkalinity: RangeTier
    temperature: RangeTier

    def tier(self, chemical: ChemicalField) -> RangeTier:
        return getattr(self, ChemicalField(chemical).value)


DEFAULT_RANGES = ChemicalRanges(
    chlorine=RangeTier(minimum=1.0, maximum=3.0, ideal=2.0),
    ph=RangeTier(minimum=7.2, maximum=7.6, ideal=7.4),
    alkalinity=RangeTier(minimum=80, maximum=120, ideal=100),
    temperature=RangeTier(minimum=78, maximum=84, ideal=80),
)


@dataclass
class ValidationResult:
    """Errors block acceptance of a reading; warnings never do."""

    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class StatusReport:
    level: PoolStatusLevel
    message: str
    issues: List[str] = field(default_factory=list)


@dataclass
class Adjustment:
    action: AdjustmentAction
    amount: float
    unit: str


@dataclass
class Trend:
    direction: TrendDirection = TrendDirection.stable
    percentage: float = 0.0
