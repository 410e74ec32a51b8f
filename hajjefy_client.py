"""
Hajjefy API client with static bearer-token authentication.

Design:
  - GET only; every call is a fresh network request (no retries, no caching)
  - The token is held inside the httpx client headers and never logged
  - 401/403 become HajjefyAuthError regardless of endpoint
  - Every other non-2xx status is raised as HajjefyAPIError carrying the
    status code, so callers can tell "endpoint not found" from a hard failure
  - Response bodies are validated into the typed schemas in schemas.py

Usage:
    async with HajjefyClient(settings) as client:
        overview = await client.get_dashboard_overview(window)
"""
from __future__ import annotations

from typing import Any, TypeVar
from urllib.parse import quote

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from config import Settings
from query_validator import DateWindow
from schemas import (
    AccountsResponse,
    BillableAnalysis,
    CapacityResponse,
    DailyHoursResponse,
    DashboardOverview,
    HealthStatus,
    SalesforceAccount,
    SyncStatus,
    TamAnalysis,
    TeamWorkload,
    UserProfileResponse,
    WorkloadRankings,
    WorklogsResponse,
)

log = structlog.get_logger(__name__)

_ModelT = TypeVar("_ModelT", bound=BaseModel)

# Statuses that mean "the Salesforce integration is not configured here"
_SALESFORCE_ABSENT = frozenset({404, 500})


# ---------------------------------------------------------------------------
# Typed exceptions
# ---------------------------------------------------------------------------


class HajjefyError(Exception):
    """Base class for all Hajjefy client errors."""


class HajjefyAuthError(HajjefyError):
    """Raised on HTTP 401/403. Never retried."""


class HajjefyAPIError(HajjefyError):
    """Raised for error responses or transport failures talking to Hajjefy."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class HajjefyNotFoundError(HajjefyAPIError):
    """Raised on HTTP 404."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Hajjefy endpoint not found: {path}", status_code=404)
        self.path = path


class HajjefyPayloadError(HajjefyAPIError):
    """Raised when a response body is not JSON or does not match its schema."""


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class HajjefyClient:
    """
    Async, read-only HTTP client for the Hajjefy dashboard API.

    Intended to be used as an async context manager so the underlying
    httpx.AsyncClient is properly opened and closed. `transport` lets tests
    substitute an httpx.MockTransport.
    """

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._s = settings
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    async def __aenter__(self) -> "HajjefyClient":
        self._http = httpx.AsyncClient(
            base_url=self._s.hajjefy_base_url,
            timeout=httpx.Timeout(self._s.http_timeout),
            headers={
                "Authorization": f"Bearer {self._s.hajjefy_api_token.get_secret_value()}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            follow_redirects=False,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *_: object) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    # ------------------------------------------------------------------
    # Dashboard endpoints
    # ------------------------------------------------------------------

    async def get_dashboard_overview(self, window: DateWindow) -> DashboardOverview:
        data = await self._get("/api/dashboard/overview", window.as_params())
        return _parse(DashboardOverview, data, "overview")

    async def get_billable_analysis(self, window: DateWindow) -> BillableAnalysis:
        data = await self._get("/api/dashboard/billable-analysis", window.as_params())
        return _parse(BillableAnalysis, data, "billable-analysis")

    async def get_user_profile(
        self,
        username: str,
        days: int | None = None,
        window: DateWindow | None = None,
    ) -> UserProfileResponse:
        """
        Fetch one user's profile. With a window, only from/to are sent;
        otherwise the trailing `days` count is.
        """
        params: dict[str, Any] = {}
        if window is not None:
            params = {"from": window.start.isoformat(), "to": window.end.isoformat()}
        elif days is not None:
            params = {"days": days}
        path = f"/api/dashboard/user-profile/{quote(username, safe='')}"
        data = await self._get(path, params)
        return _parse(UserProfileResponse, data, "user-profile")

    async def get_team_workload(self, days: int) -> TeamWorkload:
        data = await self._get("/api/dashboard/team-workload-overview", {"days": days})
        return _parse(TeamWorkload, data, "team-workload-overview")

    async def get_capacity_analysis(self, days: int) -> CapacityResponse:
        data = await self._get("/api/dashboard/capacity-analysis", {"days": days})
        return _parse(CapacityResponse, data, "capacity-analysis")

    async def get_detailed_worklogs(
        self,
        window: DateWindow,
        limit: int | None = None,
        offset: int | None = None,
    ) -> WorklogsResponse:
        params = {**window.as_params(), "limit": limit, "offset": offset}
        data = await self._get("/api/dashboard/worklogs", params)
        return _parse(WorklogsResponse, data, "worklogs")

    async def get_daily_hours(self, window: DateWindow) -> DailyHoursResponse:
        data = await self._get("/api/dashboard/daily", window.as_params())
        return _parse(DailyHoursResponse, data, "daily")

    async def get_accounts_breakdown(self, window: DateWindow) -> AccountsResponse:
        data = await self._get("/api/dashboard/accounts", window.as_params())
        return _parse(AccountsResponse, data, "accounts")

    # ------------------------------------------------------------------
    # Operational endpoints
    # ------------------------------------------------------------------

    async def get_sync_status(self) -> SyncStatus:
        data = await self._get("/api/sync/status")
        return _parse(SyncStatus, data, "sync-status")

    async def get_health_status(self) -> HealthStatus:
        data = await self._get("/api/health")
        return _parse(HealthStatus, data, "health")

    # ------------------------------------------------------------------
    # Function endpoints
    # ------------------------------------------------------------------

    async def get_tam_analysis(
        self,
        window: DateWindow,
        customer: str | None = None,
    ) -> TamAnalysis:
        params = {**window.as_params(), "customer": customer}
        data = await self._get("/.netlify/functions/tam-analysis", params)
        return _parse(TamAnalysis, data, "tam-analysis")

    async def get_workload_rankings(self, window: DateWindow) -> WorkloadRankings:
        data = await self._get("/.netlify/functions/workload-rankings", window.as_params())
        return _parse(WorkloadRankings, data, "workload-rankings")

    async def get_salesforce_account(self, customer: str) -> SalesforceAccount | None:
        """
        Look up a customer's Salesforce account.

        Returns None when the integration is not configured or the account
        does not exist (HTTP 404 or 500).
        """
        try:
            data = await self._get(
                "/.netlify/functions/salesforce-account", {"customer": customer}
            )
        except HajjefyAPIError as exc:
            if exc.status_code in _SALESFORCE_ABSENT:
                log.info("hajjefy.salesforce.absent", status_code=exc.status_code)
                return None
            raise
        if not data:
            return None
        return _parse(SalesforceAccount, data, "salesforce-account")

    # ------------------------------------------------------------------
    # Internal: request execution
    # ------------------------------------------------------------------

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        assert self._http is not None, "Client must be used as an async context manager"

        query = {k: v for k, v in (params or {}).items() if v is not None}

        try:
            response = await self._http.get(path, params=query)
        except httpx.TimeoutException as exc:
            log.error("hajjefy.request.timeout", path=path)
            raise HajjefyAPIError(
                f"Hajjefy API did not respond within {self._s.http_timeout:g}s"
            ) from exc
        except httpx.RequestError as exc:
            log.error("hajjefy.request.network_error", path=path, error_type=type(exc).__name__)
            raise HajjefyAPIError("Network error contacting the Hajjefy API") from exc

        return self._handle_response(response, path)

    def _handle_response(self, response: httpx.Response, path: str) -> Any:
        """Return the parsed JSON body of a 2xx response or raise a typed exception."""
        status = response.status_code

        if 200 <= status < 300:
            try:
                return response.json()
            except ValueError:
                log.error("hajjefy.response.invalid_json", path=path, status_code=status)
                raise HajjefyPayloadError("Hajjefy API returned a non-JSON response", status)

        if status == 401:
            log.error("hajjefy.response.unauthorized", path=path)
            raise HajjefyAuthError(
                "Authentication failed. Please check your HAJJEFY_API_TOKEN."
            )

        if status == 403:
            log.error("hajjefy.response.forbidden", path=path)
            raise HajjefyAuthError("Access denied. Token may lack required permissions.")

        if status == 404:
            log.warning("hajjefy.response.not_found", path=path)
            raise HajjefyNotFoundError(path)

        log.error("hajjefy.response.error_status", path=path, status_code=status)
        raise HajjefyAPIError(
            f"Hajjefy API request failed with status code {status}", status_code=status
        )


def _parse(model: type[_ModelT], data: Any, endpoint: str) -> _ModelT:
    """Validate a JSON body against its schema."""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        log.error(
            "hajjefy.response.unexpected_shape",
            endpoint=endpoint,
            error_count=exc.error_count(),
        )
        raise HajjefyPayloadError(
            f"Unexpected response shape from the {endpoint} endpoint"
        ) from exc
