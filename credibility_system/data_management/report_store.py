"""Report storage with in-memory indexing and optional JSON persistence.

Follows the same patterns as ProfileStore:
- O(1) lookup by report id
- Async-safe operations with an asyncio lock
- Optional JSON persistence for local runs

Usage:
    from credibility_system.data_management.report_store import ReportStore

    store = ReportStore()
    report = await store.save_report(new_report)
    others = await store.query_reports_excluding(report.id)
"""

import asyncio
import json
import uuid
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from credibility_system.data_management.schemas import NewReport, Report
from credibility_system.utils.logging import get_structured_logger
from credibility_system.utils.time import as_utc


class ReportStore:
    """Storage for community reports.

    Data structure:
    {
        report_id: Report,
        ...
    }
    """

    def __init__(self, persistence_path: Optional[str] = None) -> None:
        """Initialize ReportStore.

        Args:
            persistence_path: Optional path to JSON file for persistence.
                            If None, storage is memory-only.
        """
        self._reports: dict[str, Report] = {}
        self._lock = asyncio.Lock()
        self._persistence_path = Path(persistence_path) if persistence_path else None
        self.load_error: Optional[str] = None
        self._logger = get_structured_logger(__name__, component="ReportStore")

        if self._persistence_path and self._persistence_path.exists():
            self._load_from_file()

    async def save_report(self, new_report: NewReport) -> Report:
        """Persist a new submission.

        Assigns a uuid4 id and a UTC creation timestamp.

        Args:
            new_report: Validated submission payload.

        Returns:
            The stored Report.
        """
        report = new_report.to_report(str(uuid.uuid4()))
        return await self.add_report(report)

    async def add_report(self, report: Report) -> Report:
        """Store a fully formed report, replacing any report with the same id."""
        async with self._lock:
            self._reports[report.id] = report
            self._logger.debug(
                "report_saved",
                report_id=report.id,
                user_id=report.user_id,
                has_coordinates=report.has_coordinates,
            )
            if self._persistence_path:
                self._save_to_file()
            return report

    async def get_report(self, report_id: str) -> Optional[Report]:
        """Get a report by id, or None."""
        async with self._lock:
            return self._reports.get(report_id)

    async def list_reports(self) -> list[Report]:
        """Get all reports, newest first."""
        async with self._lock:
            return sorted(
                self._reports.values(),
                key=lambda r: as_utc(r.created_at),
                reverse=True,
            )

    async def query_reports_excluding(self, report_id: str) -> list[Report]:
        """Get every report except the one with the given id.

        Returns an empty list when no other reports exist.
        """
        async with self._lock:
            return [r for rid, r in self._reports.items() if rid != report_id]

    async def count(self) -> int:
        async with self._lock:
            return len(self._reports)

    def _save_to_file(self) -> None:
        """Save to JSON file (synchronous)."""
        if not self._persistence_path:
            return
        try:
            self._persistence_path.parent.mkdir(parents=True, exist_ok=True)
            data: list[dict[str, Any]] = [
                report.model_dump(mode="json") for report in self._reports.values()
            ]
            with open(self._persistence_path, "w") as f:
                json.dump(data, f, indent=2, default=str)
        except Exception as e:
            self._logger.error("persistence_failed", error=str(e))

    def _load_from_file(self) -> None:
        """Load reports from JSON file. Accepts a list or an id-keyed mapping."""
        try:
            with open(self._persistence_path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            self.load_error = str(e)
            self._logger.error("load_failed", path=str(self._persistence_path), error=str(e))
            return

        if not isinstance(data, (list, dict)):
            self.load_error = f"expected a list or object, got {type(data).__name__}"
            self._logger.error("load_failed", path=str(self._persistence_path), error=self.load_error)
            return

        rows = data.values() if isinstance(data, dict) else data
        skipped = 0
        for index, row in enumerate(rows):
            try:
                report = Report.model_validate(row)
            except ValidationError as e:
                skipped += 1
                self._logger.warning("row_skipped", index=index, errors=e.error_count())
                continue
            self._reports[report.id] = report

        self._logger.info("reports_loaded", count=len(self._reports), skipped=skipped)
