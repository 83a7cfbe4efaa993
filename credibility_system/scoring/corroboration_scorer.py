"""Proximity-based corroboration scoring for community reports.

When a new report is stored, other users' reports of the same issue nearby
corroborate it. If at least two distinct users are involved, each of them
earns one credibility point.

Steps:
1. Reports without coordinates are skipped outright
2. Every other report is fetched from the report store
3. Candidates are filtered by adjacency and same-issue predicates
4. Submitters are deduplicated; fewer than two distinct users means no award
5. One point per distinct user, awarded concurrently

Scoring is best-effort. Store failures reduce the number of awards and are
logged; they never propagate to the caller. Evaluating the same report
twice awards twice.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, List, Optional

from loguru import logger

from credibility_system.config.corroboration import (
    CREDIBILITY_INCREMENT,
    DEFAULT_ADJACENCY_THRESHOLD_METERS,
    MIN_DISTINCT_USERS,
)
from credibility_system.data_management.schemas import Report
from credibility_system.scoring.matching import is_corroborating


@dataclass
class CorroborationOutcome:
    """Result of evaluating one report.

    Attributes:
        report_id: The evaluated report
        matches: Other reports that corroborate it
        distinct_users: Submitter plus every matching report's user, deduplicated
        awarded_users: Users whose credibility was incremented
        failed_users: Users whose award failed
        skipped_reason: Why no award was attempted, if none was
    """

    report_id: str
    matches: List[Report] = field(default_factory=list)
    distinct_users: List[str] = field(default_factory=list)
    awarded_users: List[str] = field(default_factory=list)
    failed_users: List[str] = field(default_factory=list)
    skipped_reason: Optional[str] = None

    @property
    def awarded_count(self) -> int:
        return len(self.awarded_users)


class CorroborationScorer:
    """
    Awards credibility when reports from distinct users corroborate each other.

    Usage:
        scorer = CorroborationScorer(report_store, profile_store)
        awarded = await scorer.evaluate(report)

    Attributes:
        report_store: Provides query_reports_excluding(report_id)
        profile_store: Provides get_credibility(user_id) and
            upsert_credibility(user_id, value); optionally
            increment_credibility(user_id, amount)
        threshold_meters: Adjacency radius (inclusive)
        atomic_increment: Prefer the profile store's atomic increment
    """

    def __init__(
        self,
        report_store: Any,
        profile_store: Any,
        threshold_meters: float = DEFAULT_ADJACENCY_THRESHOLD_METERS,
        atomic_increment: bool = False,
    ):
        """
        Initialize scorer with its stores.

        Args:
            report_store: Report store (in-memory or REST adapter)
            profile_store: Profile store (in-memory or REST adapter)
            threshold_meters: Adjacency radius in metres
            atomic_increment: Use increment_credibility() when the store has it

        Raises:
            ValueError: If threshold_meters is not positive
        """
        if threshold_meters <= 0:
            raise ValueError("threshold_meters must be positive")

        self.report_store = report_store
        self.profile_store = profile_store
        self.threshold_meters = threshold_meters
        self.atomic_increment = atomic_increment
        self.logger = logger.bind(component="CorroborationScorer")

    async def evaluate(self, new_report: Report) -> int:
        """
        Score a newly stored report.

        Args:
            new_report: The report that was just persisted

        Returns:
            Number of users whose credibility was incremented
        """
        outcome = await self.evaluate_detailed(new_report)
        return outcome.awarded_count

    async def evaluate_detailed(self, new_report: Report) -> CorroborationOutcome:
        """
        Score a newly stored report and report what happened.

        Args:
            new_report: The report that was just persisted

        Returns:
            CorroborationOutcome with matches, users and award results
        """
        outcome = CorroborationOutcome(report_id=new_report.id)
        log = self.logger.bind(report_id=new_report.id)

        if not new_report.has_coordinates:
            outcome.skipped_reason = "no_coordinates"
            log.debug("Report has no coordinates, skipping")
            return outcome

        try:
            matches = await self._fetch_matches(new_report)
        except Exception as e:
            outcome.skipped_reason = "report_query_failed"
            log.error(f"Error fetching reports for credibility check: {e!r}")
            return outcome

        outcome.matches = matches
        if not matches:
            outcome.skipped_reason = "no_matches"
            return outcome

        users = {new_report.user_id: None}
        for report in matches:
            users.setdefault(report.user_id, None)
        outcome.distinct_users = list(users)

        if len(outcome.distinct_users) < MIN_DISTINCT_USERS:
            outcome.skipped_reason = "single_user"
            log.debug(
                f"Only {len(matches)} report(s) from the same submitter matched, no award"
            )
            return outcome

        results = await asyncio.gather(
            *(self.award_point(user_id) for user_id in outcome.distinct_users)
        )
        for user_id, success in zip(outcome.distinct_users, results):
            if success:
                outcome.awarded_users.append(user_id)
            else:
                outcome.failed_users.append(user_id)

        log.info(
            f"Credibility check: found {len(matches)} adjacent reports with same issue. "
            f"Awarded credibility to {outcome.awarded_count} out of "
            f"{len(outcome.distinct_users)} users.",
        )
        return outcome

    async def find_corroborating_reports(self, new_report: Report) -> List[Report]:
        """
        Find other reports that are adjacent and describe the same issue.

        Returns an empty list when the report has no coordinates or the
        report store fails.
        """
        if not new_report.has_coordinates:
            return []
        try:
            return await self._fetch_matches(new_report)
        except Exception as e:
            self.logger.error(f"Error in find_corroborating_reports: {e!r}")
            return []

    async def award_point(self, user_id: str) -> bool:
        """
        Increment one user's credibility by one point.

        Reads the current value (0 when no profile exists) and upserts
        value + 1, creating the profile if needed. With atomic_increment
        and a store that supports it, a single increment call is used.

        Args:
            user_id: User to reward

        Returns:
            True on success, False on any store failure
        """
        try:
            if self.atomic_increment and hasattr(self.profile_store, "increment_credibility"):
                new_value = await self.profile_store.increment_credibility(
                    user_id, CREDIBILITY_INCREMENT
                )
            else:
                current = await self.profile_store.get_credibility(user_id)
                new_value = (current or 0) + CREDIBILITY_INCREMENT
                await self.profile_store.upsert_credibility(user_id, new_value)
        except Exception as e:
            self.logger.bind(user_id=user_id).error(f"Error updating credibility: {e!r}")
            return False

        self.logger.info(
            f"Awarded credibility point to user {user_id}. New total: {new_value}"
        )
        return True

    async def _fetch_matches(self, new_report: Report) -> List[Report]:
        candidates = await self.report_store.query_reports_excluding(new_report.id)
        return [
            report
            for report in candidates or []
            if is_corroborating(new_report, report, self.threshold_meters)
        ]
