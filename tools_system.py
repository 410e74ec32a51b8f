"""
System tools — get_sync_status, get_hajjefy_overview.
"""
from __future__ import annotations

import structlog

from dispatcher import ToolName, dispatch, tool_handler
from hajjefy_client import HajjefyAPIError, HajjefyClient, HajjefyNotFoundError
from query_validator import NoArgsQuery
from schemas import HealthStatus, SyncStatus
from server_config import mcp
from shared_helpers import fmt_iso_day, gather_named, report_header, section
from tool_results import Success, ToolOutcome

log = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# get_sync_status
# ---------------------------------------------------------------------------


@mcp.tool()
async def get_sync_status() -> str:
    """
    Get the Tempo data sync status (last sync, next sync, records synced,
    errors) and the health of the Hajjefy backend.
    """
    return await dispatch(ToolName.GET_SYNC_STATUS.value, {})


async def _sync_or_error(client: HajjefyClient) -> SyncStatus | HajjefyAPIError:
    try:
        return await client.get_sync_status()
    except HajjefyAPIError as exc:
        log.warning("tool.get_sync_status.sync_unavailable", status_code=exc.status_code)
        return exc


@tool_handler(ToolName.GET_SYNC_STATUS, NoArgsQuery)
async def sync_status(client: HajjefyClient, query: NoArgsQuery) -> ToolOutcome:
    results = await gather_named({
        "sync": _sync_or_error(client),
        "health": client.get_health_status(),
    })
    sync: SyncStatus | HajjefyAPIError = results["sync"]
    health: HealthStatus = results["health"]

    lines = report_header("Hajjefy Sync Status")
    lines += section("Data Sync")
    if isinstance(sync, HajjefyNotFoundError):
        lines.append("  Sync status not available on this Hajjefy instance.")
    elif isinstance(sync, HajjefyAPIError):
        lines.append(f"  Sync status not available right now (status {sync.status_code or 'unknown'}).")
    else:
        lines += [
            f"  Status:                {sync.status}",
            f"  Last sync:             {_stamp(sync.last_sync)}",
            f"  Last successful sync:  {_stamp(sync.last_successful_sync)}",
            f"  Next sync:             {_stamp(sync.next_sync)}",
            f"  Records synced:        {sync.records_synced}",
        ]
        if sync.errors:
            lines.append(f"  Errors ({len(sync.errors)}):")
            lines += [f"    - {err}" for err in sync.errors]
        else:
            lines.append("  Errors:                none")

    lines += section("System Health")
    lines += [
        f"  API status:  {health.status}",
        f"  Database:    {health.database or 'unknown'}",
        f"  Checked at:  {_stamp(health.timestamp)}",
    ]
    return Success("\n".join(lines))


def _stamp(raw: str | None) -> str:
    """'2025-09-20 14:05' from an ISO timestamp, or '—'."""
    if not raw:
        return "—"
    if len(raw) <= 10:
        return fmt_iso_day(raw)
    return raw[:16].replace("T", " ")


# ---------------------------------------------------------------------------
# get_hajjefy_overview
# ---------------------------------------------------------------------------

_OVERVIEW = """\
Hajjefy: Time Tracking Analytics for Tempo.io
────────────────────────────────────────────────────────────

Ask about your team's time tracking data in plain language. Every answer
is built from live data in your Hajjefy workspace.

What I can do

  Time analytics
    - Day-by-day hours with billable vs non-billable split
    - Daily hours per individual user
    - Project/account allocation
    - Weekly patterns (most and least productive days)
    - Recent worklog timestamps and descriptions
    - JSON or CSV export

  Team and user insights
    - Per-user analytics and recent activity
    - Team workload distribution and rankings
    - Capacity and utilization (over-capacity, optimal, under-utilized)
    - How each user's time splits across customers

  Customers and TAM
    - Customer analysis across every account code of a customer
    - Salesforce account details when the integration is enabled
    - TAM expertise tiers, best resources and role recommendations

  Operations
    - Tempo sync status and backend health

Sample prompts

  - "Show me a time tracking summary for the last 30 days"
  - "What's our team's billable vs non-billable hours breakdown?"
  - "Give me daily hours for the past week with project breakdown"
  - "Get daily hours per individual user for the past week"
  - "Show me capacity analysis for users with 'john' in their name"
  - "Analyze Nadim Hajje's time tracking for the last month"
  - "How is Nadim Hajje's time split across customers?"
  - "Analyze RelateCare over the last 60 days"
  - "Who are our best TAM resources this quarter?"
  - "Export the last 60 days of data in CSV format"
  - "When did Tempo data last sync?"

Tips

  1. Include date ranges (from/to) or a number of days.
  2. Use exact display names for users; partial customer names work.
  3. Ask follow-ups: "break that down by user", "billable only".
"""


@mcp.tool()
async def get_hajjefy_overview() -> str:
    """
    Get an introduction to Hajjefy: what it can analyze and sample
    prompts to try.
    """
    return await dispatch(ToolName.GET_HAJJEFY_OVERVIEW.value, {})


@tool_handler(ToolName.GET_HAJJEFY_OVERVIEW, NoArgsQuery, remote=False)
async def hajjefy_overview(client: HajjefyClient | None, query: NoArgsQuery) -> ToolOutcome:
    return Success(_OVERVIEW)
