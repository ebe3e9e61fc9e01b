"""Orchestration of reading validation, persistence and reporting."""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Optional

from datastore.readings import ReadingRepository
from models.records import (
    DEFAULT_RANGES,
    Adjustment,
    ChemicalField,
    ChemicalRanges,
    ChemicalReading,
    PoolStatusLevel,
    StatusReport,
    Trend,
    ValidationResult,
    parse_timestamp,
)
from services.adjustments import compute_adjustments
from services.compliance import (
    STANDARDS,
    ClosureDecision,
    ComplianceReport,
    ComplianceStandard,
    generate_compliance_report,
    should_close_pool,
)
from services.status import derive_status
from services.trends import compute_trend
from services.validation import ReadingLike, validate_reading
from settings import DEFAULT_CACHE_TTL_MS, get_settings
from storage.cache import TTLCache
from storage.kv_store import build_default_store
from storage.namespaced import NamespacedStore

logger = logging.getLogger(__name__)

SUMMARY_CACHE_KEY = "dashboard-summary"


class ReadingRejectedError(ValueError):
    """The reading has hard validation errors and was not stored."""

    def __init__(self, errors: List[str]) -> None:
        super().__init__("; ".join(errors) or "Reading rejected.")
        self.errors = list(errors)


class PersistenceError(RuntimeError):
    """The underlying store refused a write."""


@dataclass
class RecordedReading:
    reading: ChemicalReading
    validation: ValidationResult
    status: StatusReport
    adjustments: Dict[str, Adjustment]


@dataclass
class DashboardSummary:
    total_readings: int = 0
    latest: Optional[ChemicalReading] = None
    status: Optional[StatusReport] = None
    recent: List[ChemicalReading] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        status = None
        if self.status is not None:
            status = {
                "level": self.status.level.value,
                "message": self.status.message,
                "issues": list(self.status.issues),
            }
        return {
            "total_readings": self.total_readings,
            "latest": self.latest.to_record() if self.latest else None,
            "status": status,
            "recent": [reading.to_record() for reading in self.recent],
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "DashboardSummary":
        status = payload.get("status")
        latest = payload.get("latest")
        return cls(
            total_readings=int(payload.get("total_readings", 0)),
            latest=ChemicalReading.from_record(latest) if latest else None,
            status=StatusReport(
                level=PoolStatusLevel(status["level"]),
                message=status["message"],
                issues=list(status["issues"]),
            )
            if status
            else None,
            recent=[ChemicalReading.from_record(item) for item in payload.get("recent", [])],
        )


@dataclass
class RowError:
    row_number: int
    reason: str


@dataclass
class ImportReport:
    imported: List[str] = field(default_factory=list)
    errors: List[RowError] = field(default_factory=list)


class ReadingService:
    """Coordinates validation, storage, caching and reporting of readings."""

    def __init__(
        self,
        repository: ReadingRepository,
        cache: TTLCache,
        ranges: ChemicalRanges = DEFAULT_RANGES,
        summary_ttl_ms: int = DEFAULT_CACHE_TTL_MS,
        standards: Mapping[ChemicalField, ComplianceStandard] = STANDARDS,
    ) -> None:
        self.repository = repository
        self.cache = cache
        self.ranges = ranges
        self.standards = standards
        self.summary_ttl_ms = summary_ttl_ms

    def validate(self, reading: ReadingLike) -> ValidationResult:
        return validate_reading(reading, self.ranges)

    def record(self, reading: ChemicalReading) -> RecordedReading:
        """Validate and persist a reading, rejecting it on hard errors."""
        validation = self.validate(reading)
        if validation.errors:
            logger.info(
                "Rejected reading",
                extra={"reading_id": reading.id, "reason": validation.errors[0]},
            )
            raise ReadingRejectedError(validation.errors)

        if not self.repository.save(reading):
            raise PersistenceError(f"Reading {reading.id!r} could not be stored.")
        self.cache.remove(SUMMARY_CACHE_KEY)

        return RecordedReading(
            reading=reading,
            validation=validation,
            status=derive_status(reading, self.ranges),
            adjustments=compute_adjustments(reading, self.ranges),
        )

    def fetch(self, reading_id: str) -> ChemicalReading:
        reading = self.repository.get(reading_id)
        if reading is None:
            raise KeyError(f"Reading {reading_id!r} not found.")
        return reading

    def list(self) -> List[ChemicalReading]:
        return self.repository.list()

    def delete(self, reading_id: str) -> None:
        if not self.repository.delete(reading_id):
            raise KeyError(f"Reading {reading_id!r} not found.")
        self.cache.remove(SUMMARY_CACHE_KEY)

    def status(self, reading_id: str) -> StatusReport:
        return derive_status(self.fetch(reading_id), self.ranges)

    def adjustments(self, reading_id: str) -> Dict[str, Adjustment]:
        return compute_adjustments(self.fetch(reading_id), self.ranges)

    def compliance(self, reading_id: str) -> ComplianceReport:
        return generate_compliance_report(self.fetch(reading_id), self.standards)

    def closure(self, reading_id: str) -> ClosureDecision:
        return should_close_pool(self.fetch(reading_id), self.standards)

    def save_draft(self, draft: ChemicalReading) -> ValidationResult:
        """Keep a partly entered reading; errors are reported but do not block it."""
        if not self.repository.save_draft(draft):
            raise PersistenceError(f"Draft {draft.id!r} could not be stored.")
        return self.validate(draft)

    def drafts(self) -> List[ChemicalReading]:
        return self.repository.drafts()

    def discard_draft(self, draft_id: str) -> None:
        if not self.repository.remove_draft(draft_id):
            raise KeyError(f"Draft {draft_id!r} not found.")

    def submit_draft(self, draft_id: str) -> RecordedReading:
        """Record a draft as a reading; a stored reading replaces its draft."""
        draft = self.repository.get_draft(draft_id)
        if draft is None:
            raise KeyError(f"Draft {draft_id!r} not found.")
        return self.record(draft)

    def trend(self, chemical: ChemicalField) -> Trend:
        return compute_trend(self.repository.list(), chemical)

    def summary(self, recent_limit: int = 5) -> DashboardSummary:
        cached = self.cache.get(SUMMARY_CACHE_KEY)
        if cached is not None:
            try:
                return DashboardSummary.from_payload(cached)
            except (KeyError, TypeError, ValueError):
                self.cache.remove(SUMMARY_CACHE_KEY)

        readings = self.repository.list()
        latest = readings[0] if readings else None
        summary = DashboardSummary(
            total_readings=len(readings),
            latest=latest,
            status=derive_status(latest, self.ranges) if latest else None,
            recent=readings[:recent_limit],
        )
        self.cache.set(SUMMARY_CACHE_KEY, summary.to_payload(), ttl_ms=self.summary_ttl_ms)
        return summary

    def export_namespace(self) -> str:
        return self.repository.records.export_json()

    def import_namespace(self, data: str, merge: bool = False) -> bool:
        imported = self.repository.records.import_json(data, merge=merge)
        self.cache.remove(SUMMARY_CACHE_KEY)
        return imported

    def import_csv(self, text: str) -> ImportReport:
        """Record each CSV row as a reading, collecting per-row failures."""
        reader = csv.DictReader(io.StringIO(text))
        if not reader.fieldnames:
            raise ValueError("CSV file is missing a header row.")

        normalized = {name.lower().strip(): name for name in reader.fieldnames if name}
        if "timestamp" not in normalized:
            raise ValueError("CSV missing required columns: timestamp")
        measured = [chemical for chemical in ChemicalField if chemical.value in normalized]
        if not measured:
            raise ValueError(
                "CSV must contain at least one of: "
                + ", ".join(chemical.value for chemical in ChemicalField)
            )

        report = ImportReport()
        for row_number, row in enumerate(reader, start=2):
            reason = self._import_row(row, normalized, measured, report)
            if reason is not None:
                report.errors.append(RowError(row_number=row_number, reason=reason))
                logger.warning(
                    "Skipping row %d: %s",
                    row_number,
                    reason,
                    extra={"row_number": row_number, "reason": reason},
                )

        if report.imported:
            self.cache.remove(SUMMARY_CACHE_KEY)
        logger.info("CSV import finished", extra={"count": len(report.imported)})
        return report

    def _import_row(
        self,
        row: Mapping[str, Optional[str]],
        columns: Mapping[str, str],
        measured: List[ChemicalField],
        report: ImportReport,
    ) -> Optional[str]:
        timestamp_raw = (row.get(columns["timestamp"]) or "").strip()
        if not timestamp_raw:
            return "missing timestamp"
        try:
            timestamp = parse_timestamp(timestamp_raw)
        except ValueError:
            return "invalid timestamp"

        values: Dict[str, float] = {}
        for chemical in measured:
            raw = (row.get(columns[chemical.value]) or "").strip()
            if not raw:
                continue
            try:
                values[chemical.value] = float(raw)
            except ValueError:
                return "invalid numeric value"
        if not values:
            return "no measurements"

        extras: Dict[str, Any] = {}
        if "id" in columns:
            reading_id = (row.get(columns["id"]) or "").strip()
            if reading_id:
                if self.repository.records.has(reading_id):
                    return "duplicate id"
                extras["id"] = reading_id
        if "notes" in columns:
            notes = (row.get(columns["notes"]) or "").strip()
            if notes:
                extras["notes"] = notes

        reading = ChemicalReading(timestamp=timestamp, **values, **extras)
        try:
            self.record(reading)
        except ReadingRejectedError as exc:
            return f"rejected: {exc.errors[0]}"
        except PersistenceError:
            return "storage failure"
        report.imported.append(reading.id)
        return None


@lru_cache
def build_default_service() -> ReadingService:
    """Factory that wires the service to the configured store."""
    settings = get_settings()
    store = build_default_store()
    repository = ReadingRepository(
        NamespacedStore(store, settings.readings_namespace),
        drafts=NamespacedStore(store, settings.drafts_namespace),
    )
    cache = TTLCache(store, namespace=settings.cache_namespace)
    return ReadingService(
        repository=repository,
        cache=cache,
        summary_ttl_ms=settings.cache_ttl_ms,
    )
