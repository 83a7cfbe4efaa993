"""Tests for ReportStore.

Tests cover:
- Save assigns id and timestamp
- Exclusion query
- Newest-first listing
- JSON persistence round trip and list/dict file formats
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from credibility_system.data_management.report_store import ReportStore
from credibility_system.data_management.schemas import NewReport, Report


def _report(report_id: str, minutes_ago: int = 0, **kwargs) -> Report:
    created = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc) - timedelta(minutes=minutes_ago)
    return Report(
        id=report_id,
        user_id=kwargs.pop("user_id", "user-a"),
        problem=kwargs.pop("problem", "Flooded street"),
        created_at=created,
        **kwargs,
    )


class TestReportStoreSave:
    """Tests for saving reports."""

    @pytest.fixture
    def store(self):
        return ReportStore()

    @pytest.mark.asyncio
    async def test_save_assigns_id_and_timestamp(self, store):
        report = await store.save_report(
            NewReport(user_id="user-a", problem="Smog", type="pollution", lat=1.0, lng=2.0)
        )
        assert report.id
        assert report.created_at.tzinfo is not None
        assert report.type == "pollution"
        assert await store.get_report(report.id) == report

    @pytest.mark.asyncio
    async def test_save_generates_unique_ids(self, store):
        first = await store.save_report(NewReport(user_id="u", problem="a"))
        second = await store.save_report(NewReport(user_id="u", problem="a"))
        assert first.id != second.id
        assert await store.count() == 2

    @pytest.mark.asyncio
    async def test_get_missing_report(self, store):
        assert await store.get_report("nope") is None


class TestReportStoreQueries:
    """Tests for listing and exclusion queries."""

    @pytest.fixture
    def store(self):
        return ReportStore()

    @pytest.mark.asyncio
    async def test_query_excluding(self, store):
        for rid in ("r1", "r2", "r3"):
            await store.add_report(_report(rid))
        others = await store.query_reports_excluding("r2")
        assert sorted(r.id for r in others) == ["r1", "r3"]

    @pytest.mark.asyncio
    async def test_query_excluding_only_report(self, store):
        await store.add_report(_report("r1"))
        assert await store.query_reports_excluding("r1") == []

    @pytest.mark.asyncio
    async def test_query_excluding_empty_store(self, store):
        assert await store.query_reports_excluding("anything") == []

    @pytest.mark.asyncio
    async def test_list_newest_first(self, store):
        await store.add_report(_report("old", minutes_ago=120))
        await store.add_report(_report("new", minutes_ago=1))
        await store.add_report(_report("mid", minutes_ago=30))
        assert [r.id for r in await store.list_reports()] == ["new", "mid", "old"]


class TestReportStorePersistence:
    """Tests for JSON persistence."""

    @pytest.mark.asyncio
    async def test_save_and_reload(self, tmp_path):
        path = tmp_path / "reports.json"
        store = ReportStore(persistence_path=str(path))
        await store.add_report(_report("r1", type="flood", lat=21.0, lng=105.8))

        reloaded = ReportStore(persistence_path=str(path))
        report = await reloaded.get_report("r1")
        assert report is not None
        assert report.type == "flood"
        assert report.lat == 21.0

    @pytest.mark.asyncio
    async def test_load_list_file_ignores_extra_columns(self, tmp_path):
        path = tmp_path / "reports.json"
        path.write_text(json.dumps([
            {
                "id": "r1",
                "user_id": "user-a",
                "problem": "Smog",
                "created_at": "2025-06-01T08:00:00Z",
                "time_ago": "5 min ago",
            }
        ]))
        store = ReportStore(persistence_path=str(path))
        report = await store.get_report("r1")
        assert report.lat is None
        assert report.type is None

    @pytest.mark.asyncio
    async def test_corrupt_file_starts_empty(self, tmp_path):
        path = tmp_path / "reports.json"
        path.write_text("{not json")
        store = ReportStore(persistence_path=str(path))
        assert await store.count() == 0
        assert store.load_error is not None

    @pytest.mark.asyncio
    async def test_malformed_row_skipped(self, tmp_path):
        path = tmp_path / "reports.json"
        path.write_text(json.dumps([
            {"id": "r1", "user_id": "user-a", "problem": "Smog"},
            {"id": "r2", "user_id": "user-b"},
            {"id": "r3", "user_id": "user-c", "problem": "Flood", "lat": "north"},
        ]))
        store = ReportStore(persistence_path=str(path))

        assert store.load_error is None
        assert await store.count() == 1
        assert await store.get_report("r1") is not None

    @pytest.mark.asyncio
    async def test_scalar_json_is_load_error(self, tmp_path):
        path = tmp_path / "reports.json"
        path.write_text("42")
        store = ReportStore(persistence_path=str(path))
        assert store.load_error is not None
        assert await store.count() == 0
