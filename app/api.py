"""HTTP route definitions for the service."""

from __future__ import annotations

import json
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import PlainTextResponse, Response

from app.schemas import (
    AdjustmentResponse,
    ComplianceResponse,
    DraftPayload,
    DraftResponse,
    ImportResponse,
    ReadingPayload,
    ReadingResponse,
    RecordedReadingResponse,
    RowErrorResponse,
    StatusResponse,
    SummaryResponse,
    TrendResponse,
    ValidationResponse,
)
from models.records import Adjustment, ChemicalField
from services.readings import (
    PersistenceError,
    ReadingRejectedError,
    ReadingService,
    RecordedReading,
    build_default_service,
)

router = APIRouter()


def get_service() -> ReadingService:
    return build_default_service()


def _adjustments(adjustments: Dict[str, Adjustment]) -> Dict[str, AdjustmentResponse]:
    return {
        chemical: AdjustmentResponse(
            action=adjustment.action, amount=adjustment.amount, unit=adjustment.unit
        )
        for chemical, adjustment in adjustments.items()
    }


def _not_found(exc: KeyError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.args[0])


def _recorded(recorded: RecordedReading) -> RecordedReadingResponse:
    return RecordedReadingResponse(
        reading=ReadingResponse.from_reading(recorded.reading),
        validation=ValidationResponse.from_result(recorded.validation),
        status=StatusResponse.from_report(recorded.status),
        adjustments=_adjustments(recorded.adjustments),
    )


def _rejected(exc: ReadingRejectedError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"message": "Reading rejected.", "errors": exc.errors},
    )


def _storage_failure(exc: PersistenceError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_507_INSUFFICIENT_STORAGE, detail=str(exc))


@router.post(
    "/readings",
    status_code=status.HTTP_201_CREATED,
    response_model=RecordedReadingResponse,
    summary="Validate and store a chemical reading.",
)
async def create_reading(
    payload: ReadingPayload,
    service: ReadingService = Depends(get_service),
) -> RecordedReadingResponse:
    try:
        recorded = service.record(payload.to_reading())
    except ReadingRejectedError as exc:
        raise _rejected(exc) from exc
    except PersistenceError as exc:
        raise _storage_failure(exc) from exc
    return _recorded(recorded)


@router.get(
    "/readings",
    response_model=List[ReadingResponse],
    summary="List stored readings, newest first.",
)
async def list_readings(
    service: ReadingService = Depends(get_service),
) -> List[ReadingResponse]:
    return [ReadingResponse.from_reading(reading) for reading in service.list()]


@router.post(
    "/readings/validate",
    response_model=ValidationResponse,
    summary="Validate a partial reading without storing it.",
)
async def validate_reading(
    payload: ReadingPayload,
    service: ReadingService = Depends(get_service),
) -> ValidationResponse:
    result = service.validate(payload.model_dump(exclude_none=True))
    return ValidationResponse.from_result(result)


@router.post(
    "/readings/import",
    response_model=ImportResponse,
    summary="Import readings from a CSV file.",
)
async def import_readings(
    file: UploadFile = File(..., description="CSV with a timestamp column and measurements."),
    service: ReadingService = Depends(get_service),
) -> ImportResponse:
    contents = await file.read()
    if not contents:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty.",
        )
    try:
        report = service.import_csv(contents.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    finally:
        await file.close()
    return ImportResponse(
        imported=len(report.imported),
        reading_ids=report.imported,
        errors=[
            RowErrorResponse(row_number=error.row_number, reason=error.reason)
            for error in report.errors
        ],
    )


@router.get(
    "/readings/{reading_id}",
    response_model=ReadingResponse,
    summary="Fetch a stored reading.",
)
async def get_reading(
    reading_id: str,
    service: ReadingService = Depends(get_service),
) -> ReadingResponse:
    try:
        reading = service.fetch(reading_id)
    except KeyError as exc:
        raise _not_found(exc) from exc
    return ReadingResponse.from_reading(reading)


@router.delete(
    "/readings/{reading_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a stored reading.",
)
async def delete_reading(
    reading_id: str,
    service: ReadingService = Depends(get_service),
) -> Response:
    try:
        service.delete(reading_id)
    except KeyError as exc:
        raise _not_found(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/readings/{reading_id}/status",
    response_model=StatusResponse,
    summary="Overall pool status for a stored reading.",
)
async def get_reading_status(
    reading_id: str,
    service: ReadingService = Depends(get_service),
) -> StatusResponse:
    try:
        report = service.status(reading_id)
    except KeyError as exc:
        raise _not_found(exc) from exc
    return StatusResponse.from_report(report)


@router.get(
    "/readings/{reading_id}/adjustments",
    response_model=Dict[str, AdjustmentResponse],
    summary="Suggested adjustments toward each chemical's ideal value.",
)
async def get_reading_adjustments(
    reading_id: str,
    service: ReadingService = Depends(get_service),
) -> Dict[str, AdjustmentResponse]:
    try:
        adjustments = service.adjustments(reading_id)
    except KeyError as exc:
        raise _not_found(exc) from exc
    return _adjustments(adjustments)


@router.get(
    "/readings/{reading_id}/compliance",
    response_model=ComplianceResponse,
    summary="Tiered compliance report and closure decision for a stored reading.",
)
async def get_reading_compliance(
    reading_id: str,
    service: ReadingService = Depends(get_service),
) -> ComplianceResponse:
    try:
        report = service.compliance(reading_id)
        closure = service.closure(reading_id)
    except KeyError as exc:
        raise _not_found(exc) from exc
    return ComplianceResponse.from_results(report, closure)


@router.post(
    "/drafts",
    status_code=status.HTTP_201_CREATED,
    response_model=DraftResponse,
    summary="Save a partly entered reading without recording it.",
)
async def save_draft(
    payload: DraftPayload,
    service: ReadingService = Depends(get_service),
) -> DraftResponse:
    draft = payload.to_reading()
    try:
        validation = service.save_draft(draft)
    except PersistenceError as exc:
        raise _storage_failure(exc) from exc
    return DraftResponse(
        reading=ReadingResponse.from_reading(draft),
        validation=ValidationResponse.from_result(validation),
    )


@router.get(
    "/drafts",
    response_model=List[ReadingResponse],
    summary="List saved drafts, newest first.",
)
async def list_drafts(
    service: ReadingService = Depends(get_service),
) -> List[ReadingResponse]:
    return [ReadingResponse.from_reading(draft) for draft in service.drafts()]


@router.post(
    "/drafts/{draft_id}/submit",
    status_code=status.HTTP_201_CREATED,
    response_model=RecordedReadingResponse,
    summary="Record a draft as a reading.",
)
async def submit_draft(
    draft_id: str,
    service: ReadingService = Depends(get_service),
) -> RecordedReadingResponse:
    try:
        recorded = service.submit_draft(draft_id)
    except KeyError as exc:
        raise _not_found(exc) from exc
    except ReadingRejectedError as exc:
        raise _rejected(exc) from exc
    except PersistenceError as exc:
        raise _storage_failure(exc) from exc
    return _recorded(recorded)


@router.delete(
    "/drafts/{draft_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Discard a draft.",
)
async def discard_draft(
    draft_id: str,
    service: ReadingService = Depends(get_service),
) -> Response:
    try:
        service.discard_draft(draft_id)
    except KeyError as exc:
        raise _not_found(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/trends/{chemical}",
    response_model=TrendResponse,
    summary="Direction of change between the two most recent readings.",
)
async def get_trend(
    chemical: ChemicalField,
    service: ReadingService = Depends(get_service),
) -> TrendResponse:
    trend = service.trend(chemical)
    return TrendResponse(
        chemical=chemical.value,
        direction=trend.direction,
        percentage=trend.percentage,
    )


@router.get(
    "/summary",
    response_model=SummaryResponse,
    summary="Latest reading, its status, and recent history.",
)
async def get_summary(
    service: ReadingService = Depends(get_service),
) -> SummaryResponse:
    summary = service.summary()
    return SummaryResponse(
        total_readings=summary.total_readings,
        latest=ReadingResponse.from_reading(summary.latest) if summary.latest else None,
        status=StatusResponse.from_report(summary.status) if summary.status else None,
        recent=[ReadingResponse.from_reading(reading) for reading in summary.recent],
    )


@router.get(
    "/export",
    summary="Export every stored reading record as one JSON object.",
)
async def export_readings(
    service: ReadingService = Depends(get_service),
) -> Response:
    return Response(content=service.export_namespace(), media_type="application/json")


@router.post(
    "/import",
    summary="Load reading records exported by GET /export.",
)
async def import_records(
    records: Dict[str, Any] = Body(..., description="Object of reading id to record."),
    merge: bool = Query(False, description="Keep existing records not in the payload."),
    service: ReadingService = Depends(get_service),
) -> dict[str, Any]:
    if not service.import_namespace(json.dumps(records), merge=merge):
        raise HTTPException(
            status_code=status.HTTP_507_INSUFFICIENT_STORAGE,
            detail="Import did not complete.",
        )
    return {"imported": len(records), "merge": merge}


@router.get(
    "/export.csv",
    response_class=PlainTextResponse,
    summary="Export stored readings as CSV.",
)
async def export_readings_csv(
    service: ReadingService = Depends(get_service),
) -> PlainTextResponse:
    return PlainTextResponse(service.repository.export_csv(), media_type="text/csv")


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
