from __future__ import annotations

import csv
import io
import logging
from typing import Iterable, List, Optional

from models.records import ChemicalReading
from services.numbers import format_number
from storage.namespaced import NamespacedStore

logger = logging.getLogger(__name__)

CSV_HEADERS = (
    "ID",
    "Date",
    "Chlorine (ppm)",
    "pH",
    "Alkalinity (ppm)",
    "Temperature (°F)",
    "Notes",
)


class ReadingRepository:
    """Chemical readings kept one record per key, keyed by reading id.

    Drafts of partly entered readings live in a sibling namespace so they
    never show up in :meth:`list` or the exports.
    """

    def __init__(self, records: NamespacedStore, drafts: Optional[NamespacedStore] = None) -> None:
        self.records = records
        if drafts is None:
            drafts = NamespacedStore(records.store, f"{records.namespace}-drafts")
        self.draft_records = drafts

    def save(self, reading: ChemicalReading) -> bool:
        saved = self.records.set(reading.id, reading.to_record())
        if saved:
            logger.debug("Saved reading", extra={"reading_id": reading.id})
            if self.draft_records.has(reading.id):
                self.draft_records.remove(reading.id)
        return saved

    def get(self, reading_id: str) -> Optional[ChemicalReading]:
        record = self.records.get(reading_id)
        if record is None:
            return None
        return self._load(reading_id, record)

    def delete(self, reading_id: str) -> bool:
        if not self.records.has(reading_id):
            return False
        return self.records.remove(reading_id)

    def list(self) -> List[ChemicalReading]:
        """All stored readings, newest first."""
        return self._sorted(self.records)

    def _sorted(self, namespace: NamespacedStore) -> List[ChemicalReading]:
        readings: List[ChemicalReading] = []
        for reading_id, record in namespace.get_all().items():
            reading = self._load(reading_id, record)
            if reading is not None:
                readings.append(reading)
        return sorted(readings, key=lambda reading: reading.timestamp, reverse=True)

    def recent(self, limit: int = 5) -> List[ChemicalReading]:
        return self.list()[: max(limit, 0)]

    def save_draft(self, draft: ChemicalReading) -> bool:
        """Store a partly entered reading, replacing any draft with the same id."""
        saved = self.draft_records.set(draft.id, draft.to_record())
        if saved:
            logger.debug("Saved draft", extra={"reading_id": draft.id})
        return saved

    def get_draft(self, draft_id: str) -> Optional[ChemicalReading]:
        record = self.draft_records.get(draft_id)
        if record is None:
            return None
        return self._load(draft_id, record)

    def drafts(self) -> List[ChemicalReading]:
        """All saved drafts, newest first."""
        return self._sorted(self.draft_records)

    def remove_draft(self, draft_id: str) -> bool:
        if not self.draft_records.has(draft_id):
            return False
        return self.draft_records.remove(draft_id)

    def export_csv(self, readings: Optional[Iterable[ChemicalReading]] = None) -> str:
        rows = self.list() if readings is None else list(readings)
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(CSV_HEADERS)
        for reading in rows:
            writer.writerow(
                [
                    reading.id,
                    reading.timestamp.isoformat(),
                    _cell(reading.chlorine),
                    _cell(reading.ph),
                    _cell(reading.alkalinity),
                    _cell(reading.temperature),
                    reading.notes or "",
                ]
            )
        return buffer.getvalue()

    @staticmethod
    def _load(reading_id: str, record: object) -> Optional[ChemicalReading]:
        if not isinstance(record, dict):
            logger.warning(
                "Skipping corrupt reading record",
                extra={"reading_id": reading_id, "reason": "not an object"},
            )
            return None
        try:
            return ChemicalReading.from_record(record)
        except (TypeError, ValueError) as exc:
            logger.warning(
                "Skipping corrupt reading record",
                extra={"reading_id": reading_id, "reason": str(exc)},
            )
            return None


def _cell(value: Optional[float]) -> str:
    return "" if value is None else format_number(value)
