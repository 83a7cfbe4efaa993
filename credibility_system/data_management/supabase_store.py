"""Hosted Postgres (Supabase/PostgREST) adapter for reports and profiles.

Implements the same async contract as ReportStore and ProfileStore over the
PostgREST HTTP API, so the scorer and the submission pipeline can run
against either without changes.

The client is created once by the caller (or lazily on first use) and must
be closed with aclose() or by using the store as an async context manager:

    async with SupabaseStore.from_settings(settings) as store:
        others = await store.query_reports_excluding(report.id)

Failures surface as StoreError subclasses; there are no retries here.
"""

from typing import Any, Iterable, Optional

import httpx

from credibility_system.config.logging import get_logger
from credibility_system.data_management.errors import (
    RecordNotFoundError,
    StoreError,
    StoreUnavailableError,
)
from credibility_system.data_management.profile_store import clean_user_ids
from credibility_system.data_management.schemas import (
    EDITABLE_PROFILE_FIELDS,
    CredibilitySummary,
    NewReport,
    Profile,
    Report,
    coerce_credibility,
)


class SupabaseStore:
    """
    Async PostgREST client for the report and profile tables.

    Attributes:
        base_url: Project URL, e.g. https://xyz.supabase.co
        reports_table: Table holding reports
        profiles_table: Table holding profiles
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        client: Optional[httpx.AsyncClient] = None,
        reports_table: str = "report",
        profiles_table: str = "profiles",
        timeout: float = 10.0,
    ):
        """
        Initialize the adapter.

        Args:
            base_url: Project URL (without /rest/v1)
            api_key: Service role key when available, else the anon key
            client: Optional pre-built httpx.AsyncClient (owned by the caller)
            reports_table: Reports table name
            profiles_table: Profiles table name
            timeout: Request timeout used when the client is created here

        Raises:
            ValueError: If base_url or api_key is empty
        """
        if not base_url or not api_key:
            raise ValueError("Supabase URL and API key are required")

        self.base_url = base_url.rstrip("/")
        self.reports_table = reports_table
        self.profiles_table = profiles_table
        self.timeout = timeout
        self._api_key = api_key
        self._client = client
        self._owns_client = client is None

        self.logger = get_logger("data_management.supabase")

    @classmethod
    def from_settings(cls, settings, client: Optional[httpx.AsyncClient] = None) -> "SupabaseStore":
        """Build a store from Settings, preferring the service role key."""
        return cls(
            base_url=settings.supabase_url or "",
            api_key=settings.supabase_service_role_key or settings.supabase_anon_key or "",
            client=client,
            reports_table=settings.reports_table,
            profiles_table=settings.profiles_table,
            timeout=settings.http_timeout_seconds,
        )

    async def __aenter__(self) -> "SupabaseStore":
        await self._get_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this store created it."""
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self.logger.debug("HTTP client closed")

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
            self._owns_client = True
        return self._client

    def _headers(self, prefer: Optional[str] = None) -> dict[str, str]:
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _request(
        self,
        method: str,
        table: str,
        params: Optional[dict[str, str]] = None,
        json_body: Any = None,
        prefer: Optional[str] = None,
    ) -> Any:
        """
        Issue one PostgREST request and decode the JSON body.

        Raises:
            StoreUnavailableError: On timeouts and transport failures
            StoreError: On any non-2xx response
        """
        client = await self._get_client()
        url = f"{self.base_url}/rest/v1/{table}"
        try:
            response = await client.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=self._headers(prefer),
            )
        except httpx.TimeoutException as e:
            raise StoreUnavailableError(f"Timed out calling {table}: {e}") from e
        except httpx.TransportError as e:
            raise StoreUnavailableError(f"Could not reach backend for {table}: {e}") from e

        if response.is_error:
            raise _error_from_response(response, table)

        if not response.content:
            return None
        return response.json()

    # Report contract

    async def save_report(self, new_report: NewReport) -> Report:
        """Insert a report and return the stored row (id and created_at from the backend)."""
        rows = await self._request(
            "POST",
            self.reports_table,
            json_body=new_report.model_dump(exclude_none=True),
            prefer="return=representation",
        )
        if not rows:
            raise StoreError("Insert returned no representation", details={"table": self.reports_table})
        report = Report.model_validate(rows[0])
        self.logger.info(f"Report created: {report.id}")
        return report

    async def get_report(self, report_id: str) -> Optional[Report]:
        rows = await self._request(
            "GET",
            self.reports_table,
            params={"select": "*", "id": f"eq.{report_id}"},
        )
        return Report.model_validate(rows[0]) if rows else None

    async def list_reports(self) -> list[Report]:
        """Get all reports, newest first."""
        rows = await self._request(
            "GET",
            self.reports_table,
            params={"select": "*", "order": "created_at.desc"},
        )
        return [Report.model_validate(row) for row in rows or []]

    async def query_reports_excluding(self, report_id: str) -> list[Report]:
        """Get every report whose id differs from report_id."""
        rows = await self._request(
            "GET",
            self.reports_table,
            params={"select": "*", "id": f"neq.{report_id}"},
        )
        return [Report.model_validate(row) for row in rows or []]

    # Profile contract

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        rows = await self._request(
            "GET",
            self.profiles_table,
            params={"select": "*", "user_id": f"eq.{user_id}"},
        )
        return Profile.model_validate(rows[0]) if rows else None

    async def get_credibility(self, user_id: str) -> Optional[int]:
        """Get a user's credibility; None when the user has no profile row."""
        rows = await self._request(
            "GET",
            self.profiles_table,
            params={"select": "credibility,user_id", "user_id": f"eq.{user_id}"},
        )
        if not rows:
            return None
        return coerce_credibility(rows[0].get("credibility"))

    async def upsert_credibility(self, user_id: str, value: int) -> None:
        """Create or update the profile row's credibility, keyed by user_id."""
        await self._request(
            "POST",
            self.profiles_table,
            params={"on_conflict": "user_id"},
            json_body={"user_id": user_id, "credibility": value},
            prefer="resolution=merge-duplicates,return=minimal",
        )

    async def update_profile(self, user_id: str, **fields: Any) -> Profile:
        """
        Partially update editable profile fields.

        Raises:
            ValueError: On fields outside full_name, age, job, avatar_url
            RecordNotFoundError: If no profile row matched
        """
        unknown = set(fields) - set(EDITABLE_PROFILE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown profile fields: {sorted(unknown)}")

        rows = await self._request(
            "PATCH",
            self.profiles_table,
            params={"user_id": f"eq.{user_id}"},
            json_body=fields,
            prefer="return=representation",
        )
        if not rows:
            raise RecordNotFoundError(
                f"No profile exists for user {user_id}",
                code="PGRST116",
            )
        return Profile.model_validate(rows[0])

    async def get_credibility_batch(
        self,
        user_ids: Iterable[str],
    ) -> dict[str, CredibilitySummary]:
        """
        Look up credibility and display name for many users in one request.

        Every requested id appears in the result, defaulting to 0 and no name.
        """
        wanted = clean_user_ids(user_ids)
        if not wanted:
            return {}

        quoted = ",".join(f'"{uid}"' for uid in wanted)
        rows = await self._request(
            "GET",
            self.profiles_table,
            params={"select": "user_id,credibility,full_name", "user_id": f"in.({quoted})"},
        )

        result = {uid: CredibilitySummary(user_id=uid) for uid in wanted}
        for row in rows or []:
            uid = row.get("user_id")
            if uid is None or str(uid) not in result:
                continue
            uid = str(uid)
            result[uid] = CredibilitySummary(
                user_id=uid,
                credibility=coerce_credibility(row.get("credibility")),
                full_name=row.get("full_name"),
            )
        return result


def _error_from_response(response: httpx.Response, table: str) -> StoreError:
    """Translate a PostgREST error body into a StoreError."""
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {"details": body}

    message = body.get("message") or f"HTTP {response.status_code} from {table}"
    code = body.get("code")
    details = {
        "status_code": response.status_code,
        "details": body.get("details"),
        "hint": body.get("hint"),
    }
    if response.status_code in (502, 503, 504):
        return StoreUnavailableError(message, code=code, details=details)
    return StoreError(message, code=code, details=details)
