"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from models.records import (
    AdjustmentAction,
    ChemicalReading,
    PoolStatusLevel,
    StatusReport,
    TrendDirection,
    ValidationResult,
)
from services.compliance import (
    ChemicalCheck,
    ClosureDecision,
    ComplianceLevel,
    ComplianceReport,
    ComplianceStatus,
    Severity,
)


class ReadingPayload(BaseModel):
    """Measurements submitted by a client; every field is optional."""

    timestamp: Optional[datetime] = Field(
        default=None, description="When the sample was taken; defaults to now."
    )
    chlorine: Optional[float] = Field(default=None, description="Free chlorine in ppm.")
    ph: Optional[float] = Field(default=None, description="pH on the 0-14 scale.")
    alkalinity: Optional[float] = Field(default=None, description="Total alkalinity in ppm.")
    temperature: Optional[float] = Field(default=None, description="Water temperature in °F.")
    notes: Optional[str] = None

    def to_reading(self) -> ChemicalReading:
        values = self.model_dump(exclude_none=True)
        return ChemicalReading(**values)


class ReadingResponse(BaseModel):
    id: str
    timestamp: datetime
    chlorine: Optional[float] = None
    ph: Optional[float] = None
    alkalinity: Optional[float] = None
    temperature: Optional[float] = None
    notes: Optional[str] = None

    @classmethod
    def from_reading(cls, reading: ChemicalReading) -> "ReadingResponse":
        return cls(**reading.to_record())


class ValidationResponse(BaseModel):
    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: ValidationResult) -> "ValidationResponse":
        return cls(is_valid=result.is_valid, errors=result.errors, warnings=result.warnings)


class StatusResponse(BaseModel):
    level: PoolStatusLevel
    message: str
    issues: List[str] = Field(default_factory=list)

    @classmethod
    def from_report(cls, report: StatusReport) -> "StatusResponse":
        return cls(level=report.level, message=report.message, issues=report.issues)


class AdjustmentResponse(BaseModel):
    action: AdjustmentAction
    amount: float
    unit: str


class RecordedReadingResponse(BaseModel):
    """Stored reading along with its evaluation."""

    reading: ReadingResponse
    validation: ValidationResponse
    status: StatusResponse
    adjustments: Dict[str, AdjustmentResponse] = Field(default_factory=dict)


class TrendResponse(BaseModel):
    chemical: str
    direction: TrendDirection
    percentage: float


class SummaryResponse(BaseModel):
    total_readings: int = Field(..., ge=0)
    latest: Optional[ReadingResponse] = None
    status: Optional[StatusResponse] = None
    recent: List[ReadingResponse] = Field(default_factory=list)


class RowErrorResponse(BaseModel):
    row_number: int = Field(..., ge=1)
    reason: str


class ImportResponse(BaseModel):
    imported: int = Field(..., ge=0)
    reading_ids: List[str] = Field(default_factory=list)
    errors: List[RowErrorResponse] = Field(default_factory=list)


class DraftPayload(ReadingPayload):
    """Partly entered reading; resend the returned id to update the draft."""

    id: Optional[str] = Field(default=None, min_length=1)


class DraftResponse(BaseModel):
    reading: ReadingResponse
    validation: ValidationResponse


class ChemicalCheckResponse(BaseModel):
    chemical: str
    value: float
    status: ComplianceStatus
    severity: Severity
    message: str
    recommendation: Optional[str] = None
    requires_action: bool
    requires_closure: bool
    priority: int

    @classmethod
    def from_check(cls, check: ChemicalCheck) -> "ChemicalCheckResponse":
        return cls(
            chemical=check.chemical.value,
            value=check.value,
            status=check.status,
            severity=check.severity,
            message=check.message,
            recommendation=check.recommendation,
            requires_action=check.requires_action,
            requires_closure=check.requires_closure,
            priority=check.priority,
        )


class ComplianceResponse(BaseModel):
    overall: ComplianceLevel
    total_tests: int = Field(..., ge=0)
    passed_tests: int = Field(..., ge=0)
    warning_tests: int = Field(..., ge=0)
    critical_tests: int = Field(..., ge=0)
    emergency_tests: int = Field(..., ge=0)
    details: List[ChemicalCheckResponse] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    required_actions: List[str] = Field(default_factory=list)
    should_close: bool
    closure_reasons: List[str] = Field(default_factory=list)

    @classmethod
    def from_results(
        cls, report: ComplianceReport, closure: ClosureDecision
    ) -> "ComplianceResponse":
        return cls(
            overall=report.overall,
            total_tests=report.total_tests,
            passed_tests=report.count(ComplianceStatus.good),
            warning_tests=report.count(ComplianceStatus.warning),
            critical_tests=report.count(ComplianceStatus.critical),
            emergency_tests=report.count(ComplianceStatus.emergency),
            details=[ChemicalCheckResponse.from_check(check) for check in report.details],
            recommendations=report.recommendations,
            required_actions=report.required_actions,
            should_close=closure.should_close,
            closure_reasons=closure.reasons,
        )
