"""Report submission pipeline with detached corroboration scoring.

Submitting a report persists it and returns immediately. Corroboration
scoring runs afterwards as a background asyncio task that the submission
never awaits; its outcome is only logged (or handed to an error sink).

Usage:
    from credibility_system.pipeline import ReportPipeline

    pipeline = ReportPipeline(report_store, profile_store)
    report = await pipeline.submit_report({"user_id": "u1", "problem": "Flood"})

    # On shutdown, or in tests:
    await pipeline.wait_for_scoring()
"""

import asyncio
from typing import Any, Callable, Iterable, Optional, Union

from pydantic import ValidationError

from credibility_system.config.corroboration import (
    DEFAULT_ADJACENCY_THRESHOLD_METERS,
    REPORT_TYPES,
)
from credibility_system.data_management.errors import ReportValidationError
from credibility_system.data_management.schemas import (
    CredibilitySummary,
    NewReport,
    Report,
)
from credibility_system.scoring.corroboration_scorer import CorroborationScorer
from credibility_system.utils.logging import (
    bind_report_context,
    get_correlation_id,
    get_structured_logger,
)
from credibility_system.utils.time import time_ago

ScoringErrorSink = Callable[[Report, BaseException], None]


class ReportPipeline:
    """Persists reports and launches corroboration scoring in the background.

    The stores are owned by the caller; the pipeline never opens its own
    connections. Scoring tasks are kept in a set until they finish so they
    are not garbage-collected mid-flight.
    """

    def __init__(
        self,
        report_store: Any,
        profile_store: Any,
        scorer: Optional[CorroborationScorer] = None,
        on_scoring_error: Optional[ScoringErrorSink] = None,
        threshold_meters: float = DEFAULT_ADJACENCY_THRESHOLD_METERS,
        atomic_increment: bool = False,
    ) -> None:
        """Initialize ReportPipeline.

        Args:
            report_store: Store providing save_report and list_reports.
            profile_store: Store providing the credibility contract.
            scorer: Pre-configured scorer. Built from the stores if None.
            on_scoring_error: Called with (report, exception) when a
                scoring task dies with an exception. Defaults to logging.
            threshold_meters: Adjacency radius for a scorer built here.
            atomic_increment: Atomic increment flag for a scorer built here.
        """
        self._report_store = report_store
        self._profile_store = profile_store
        self._scorer = scorer or CorroborationScorer(
            report_store,
            profile_store,
            threshold_meters=threshold_meters,
            atomic_increment=atomic_increment,
        )
        self._on_scoring_error = on_scoring_error or self._log_scoring_error
        self._tasks: set[asyncio.Task] = set()
        self._logger = get_structured_logger(__name__, component="ReportPipeline")

    @property
    def scorer(self) -> CorroborationScorer:
        return self._scorer

    @property
    def pending_tasks(self) -> int:
        """Number of scoring tasks still running."""
        return len(self._tasks)

    async def submit_report(self, payload: Union[NewReport, dict[str, Any]]) -> Report:
        """Validate, persist and schedule scoring for a new report.

        Args:
            payload: NewReport or a raw dict from the request body.

        Returns:
            The stored Report. Scoring may still be running.

        Raises:
            ReportValidationError: If the payload is invalid.
            StoreError: If the report could not be persisted.
        """
        new_report = self._validate(payload)
        if new_report.type is not None and new_report.type not in REPORT_TYPES:
            # Stored as-is; only exact type matches corroborate
            self._logger.warning(
                "unknown_report_type",
                type=new_report.type,
                known=list(REPORT_TYPES),
            )
        report = await self._report_store.save_report(new_report)

        correlation_id = get_correlation_id()
        log = bind_report_context(self._logger, report.id, report.user_id, correlation_id)
        log.info("report_submitted", has_coordinates=report.has_coordinates)

        self._schedule_scoring(report, correlation_id)
        return report

    async def wait_for_scoring(self) -> None:
        """Wait for every in-flight scoring task to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def list_reports(self) -> list[dict[str, Any]]:
        """All reports, newest first, with time_ago and reported_by added."""
        reports = await self._report_store.list_reports()
        listing = [
            {
                **report.model_dump(mode="json"),
                "time_ago": time_ago(report.created_at),
                "reported_by": report.user_id,
            }
            for report in reports
        ]
        self._logger.debug("reports_listed", count=len(listing))
        return listing

    async def get_credibility_batch(
        self,
        user_ids: Union[str, Iterable[str]],
    ) -> dict[str, CredibilitySummary]:
        """Credibility and display name for many users.

        Args:
            user_ids: Iterable of ids or a comma-separated string.
        """
        if isinstance(user_ids, str):
            user_ids = user_ids.split(",")
        return await self._profile_store.get_credibility_batch(user_ids)

    def _validate(self, payload: Union[NewReport, dict[str, Any]]) -> NewReport:
        if isinstance(payload, NewReport):
            return payload
        try:
            return NewReport.model_validate(payload)
        except ValidationError as e:
            fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
            raise ReportValidationError(
                f"Invalid report fields: {', '.join(fields)}",
                errors=e.errors(),
            ) from e

    def _schedule_scoring(self, report: Report, correlation_id: str) -> None:
        task = asyncio.create_task(
            self._scorer.evaluate(report),
            name=f"corroboration-{report.id}",
        )
        self._tasks.add(task)
        task.add_done_callback(
            lambda t: self._on_scoring_done(t, report, correlation_id)
        )

    def _on_scoring_done(self, task: asyncio.Task, report: Report, correlation_id: str) -> None:
        self._tasks.discard(task)
        log = bind_report_context(self._logger, report.id, correlation_id=correlation_id)
        if task.cancelled():
            log.warning("scoring_cancelled")
            return

        exc = task.exception()
        if exc is not None:
            try:
                self._on_scoring_error(report, exc)
            except Exception as sink_error:
                log.error("scoring_error_sink_failed", error=str(sink_error))
            return

        log.info("scoring_completed", awarded=task.result())

    def _log_scoring_error(self, report: Report, exc: BaseException) -> None:
        self._logger.error(
            "scoring_failed",
            report_id=report.id,
            error=repr(exc),
        )
