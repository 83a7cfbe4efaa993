"""Tests for SupabaseStore against a mocked PostgREST API.

Tests cover:
- Request shape (filters, upsert conflict target, auth headers)
- Row decoding and defaults
- Error translation to StoreError / StoreUnavailableError
"""

import json

import httpx
import pytest

from credibility_system.data_management.errors import (
    RecordNotFoundError,
    StoreError,
    StoreUnavailableError,
)
from credibility_system.data_management.schemas import NewReport
from credibility_system.data_management.supabase_store import SupabaseStore

BASE_URL = "https://project.supabase.co"


def make_store(handler) -> tuple[SupabaseStore, list[httpx.Request]]:
    """Build a store whose client records requests and answers via handler."""
    seen: list[httpx.Request] = []

    def recording(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(recording))
    return SupabaseStore(BASE_URL, "service-key", client=client), seen


class TestConstruction:
    """Tests for adapter construction."""

    def test_requires_url_and_key(self):
        with pytest.raises(ValueError):
            SupabaseStore("", "key")
        with pytest.raises(ValueError):
            SupabaseStore(BASE_URL, "")

    def test_from_settings_prefers_service_role(self):
        class FakeSettings:
            supabase_url = BASE_URL + "/"
            supabase_anon_key = "anon"
            supabase_service_role_key = "service"
            reports_table = "report"
            profiles_table = "profiles"
            http_timeout_seconds = 5.0

        store = SupabaseStore.from_settings(FakeSettings())
        assert store.base_url == BASE_URL
        assert store._headers()["apikey"] == "service"
        assert store.timeout == 5.0


class TestReportQueries:
    """Tests for report endpoints."""

    @pytest.mark.asyncio
    async def test_query_reports_excluding(self):
        rows = [
            {"id": "r2", "user_id": "user-b", "problem": "Flood", "type": "flood",
             "lat": 21.03, "lng": 105.85, "created_at": "2025-06-01T08:00:00+00:00"},
        ]
        store, seen = make_store(lambda req: httpx.Response(200, json=rows))

        reports = await store.query_reports_excluding("r1")

        assert [r.id for r in reports] == ["r2"]
        request = seen[0]
        assert request.method == "GET"
        assert request.url.path == "/rest/v1/report"
        assert request.url.params["id"] == "neq.r1"
        assert request.headers["apikey"] == "service-key"
        assert request.headers["authorization"] == "Bearer service-key"

    @pytest.mark.asyncio
    async def test_query_returns_empty_list(self):
        store, _ = make_store(lambda req: httpx.Response(200, json=[]))
        assert await store.query_reports_excluding("r1") == []

    @pytest.mark.asyncio
    async def test_numeric_keys_read_as_strings(self):
        """bigint primary keys come back as JSON numbers."""
        rows = [
            {"id": 7, "user_id": 42, "problem": "Flood", "type": "flood",
             "lat": 21.03, "lng": 105.85, "created_at": "2025-06-01T08:00:00+00:00"},
        ]
        store, seen = make_store(lambda req: httpx.Response(200, json=rows))

        reports = await store.query_reports_excluding("8")

        assert reports[0].id == "7"
        assert reports[0].user_id == "42"
        assert seen[0].url.params["id"] == "neq.8"

    @pytest.mark.asyncio
    async def test_save_report_returns_representation(self):
        def handler(request):
            body = json.loads(request.content)
            assert "lat" not in body
            assert request.headers["prefer"] == "return=representation"
            return httpx.Response(
                201,
                json=[{**body, "id": "new-id", "created_at": "2025-06-01T08:00:00+00:00"}],
            )

        store, _ = make_store(handler)
        report = await store.save_report(NewReport(user_id="user-a", problem="Smog"))
        assert report.id == "new-id"
        assert report.problem == "Smog"

    @pytest.mark.asyncio
    async def test_list_reports_ordered(self):
        store, seen = make_store(lambda req: httpx.Response(200, json=[]))
        await store.list_reports()
        assert seen[0].url.params["order"] == "created_at.desc"


class TestCredibilityEndpoints:
    """Tests for profile credibility endpoints."""

    @pytest.mark.asyncio
    async def test_get_credibility_missing_profile(self):
        store, seen = make_store(lambda req: httpx.Response(200, json=[]))
        assert await store.get_credibility("user-a") is None
        assert seen[0].url.params["user_id"] == "eq.user-a"

    @pytest.mark.asyncio
    async def test_get_credibility_null_is_zero(self):
        store, _ = make_store(
            lambda req: httpx.Response(200, json=[{"user_id": "user-a", "credibility": None}])
        )
        assert await store.get_credibility("user-a") == 0

    @pytest.mark.asyncio
    async def test_upsert_credibility_request(self):
        store, seen = make_store(lambda req: httpx.Response(201))

        await store.upsert_credibility("user-a", 3)

        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/rest/v1/profiles"
        assert request.url.params["on_conflict"] == "user_id"
        assert "resolution=merge-duplicates" in request.headers["prefer"]
        assert json.loads(request.content) == {"user_id": "user-a", "credibility": 3}

    @pytest.mark.asyncio
    async def test_batch_defaults_and_string_credibility(self):
        rows = [
            {"user_id": "user-a", "credibility": "5", "full_name": "An"},
            {"user_id": "user-b", "credibility": "n/a", "full_name": None},
        ]
        store, seen = make_store(lambda req: httpx.Response(200, json=rows))

        result = await store.get_credibility_batch(["user-a", "user-b", "user-c"])

        assert result["user-a"].credibility == 5
        assert result["user-b"].credibility == 0
        assert result["user-c"].credibility == 0
        assert seen[0].url.params["user_id"] == 'in.("user-a","user-b","user-c")'

    @pytest.mark.asyncio
    async def test_batch_numeric_user_ids(self):
        rows = [{"user_id": 42, "credibility": 3, "full_name": "An"}]
        store, _ = make_store(lambda req: httpx.Response(200, json=rows))

        result = await store.get_credibility_batch(["42"])

        assert result["42"].credibility == 3
        assert result["42"].full_name == "An"

    @pytest.mark.asyncio
    async def test_batch_empty_makes_no_request(self):
        store, seen = make_store(lambda req: httpx.Response(200, json=[]))
        assert await store.get_credibility_batch([" ", ""]) == {}
        assert seen == []

    @pytest.mark.asyncio
    async def test_update_profile_missing(self):
        store, seen = make_store(lambda req: httpx.Response(200, json=[]))
        with pytest.raises(RecordNotFoundError):
            await store.update_profile("ghost", job="Nurse")
        assert seen[0].method == "PATCH"


class TestErrors:
    """Tests for error translation."""

    @pytest.mark.asyncio
    async def test_postgrest_error(self):
        body = {"code": "42P01", "message": 'relation "report" does not exist'}
        store, _ = make_store(lambda req: httpx.Response(404, json=body))

        with pytest.raises(StoreError) as exc_info:
            await store.query_reports_excluding("r1")

        assert exc_info.value.code == "42P01"
        assert "does not exist" in str(exc_info.value)
        assert not isinstance(exc_info.value, StoreUnavailableError)

    @pytest.mark.asyncio
    async def test_gateway_error_is_unavailable(self):
        store, _ = make_store(lambda req: httpx.Response(503, text="upstream down"))
        with pytest.raises(StoreUnavailableError):
            await store.get_credibility("user-a")

    @pytest.mark.asyncio
    async def test_transport_error_is_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        store, _ = make_store(handler)
        with pytest.raises(StoreUnavailableError):
            await store.upsert_credibility("user-a", 1)

    @pytest.mark.asyncio
    async def test_timeout_is_unavailable(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        store, _ = make_store(handler)
        with pytest.raises(StoreUnavailableError):
            await store.get_report("r1")


class TestLifecycle:
    """Tests for client ownership."""

    @pytest.mark.asyncio
    async def test_caller_owned_client_not_closed(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json=[])))
        async with SupabaseStore(BASE_URL, "key", client=client) as store:
            await store.list_reports()
        assert not client.is_closed
        await client.aclose()

    @pytest.mark.asyncio
    async def test_own_client_closed(self):
        store = SupabaseStore(BASE_URL, "key")
        async with store:
            client = store._client
        assert client.is_closed
