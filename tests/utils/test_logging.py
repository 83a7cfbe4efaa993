"""Tests for structured logging helpers."""

from structlog.testing import capture_logs

from credibility_system.utils.logging import (
    bind_report_context,
    get_correlation_id,
    get_structured_logger,
)


def test_component_and_extra_context_bound():
    with capture_logs() as logs:
        log = get_structured_logger("tests", component="ReportStore", region="north")
        log.info("report_saved", report_id="r1")

    assert logs[0]["component"] == "ReportStore"
    assert logs[0]["region"] == "north"
    assert logs[0]["report_id"] == "r1"


def test_bind_report_context():
    with capture_logs() as logs:
        base = get_structured_logger("tests")
        bind_report_context(base, "r1", "user-a", "cid-1").info("scoring_completed")
        bind_report_context(base, "r2").info("scoring_cancelled")

    assert logs[0]["report_id"] == "r1"
    assert logs[0]["user_id"] == "user-a"
    assert logs[0]["correlation_id"] == "cid-1"
    assert logs[1]["report_id"] == "r2"
    assert "user_id" not in logs[1]
    assert "correlation_id" not in logs[1]


def test_correlation_ids_unique():
    assert get_correlation_id() != get_correlation_id()
