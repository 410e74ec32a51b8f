"""
Hajjefy MCP Server.

Exposes Hajjefy time tracking analytics (Tempo.io worklogs) to Claude
Desktop via the Model Context Protocol. Every tool returns one formatted
text report.

Tools exposed:
  get_time_summary              — totals, top accounts and recent days for a period
  get_user_analytics            — one user's hours, billable split and recent activity
  get_capacity_analysis         — utilization per user and team capacity gap
  get_team_overview             — team hours, project distribution and workload by member
  get_billable_analysis         — billable vs non-billable hours and monthly trend
  export_data                   — JSON or CSV export, optionally with worklogs
  get_hajjefy_overview          — what Hajjefy can do, with sample prompts
  get_daily_hours               — day-by-day hours, projects, weekly patterns, per-user days
  get_customer_analysis         — all account codes of one customer, summed
  get_user_customer_allocation  — how one user's time splits across customers
  get_tam_insights              — TAM expertise tiers, best resources, recommendations
  get_sync_status               — Tempo sync status and backend health

Run this script directly (stdio transport for Claude Desktop):
  python hajjefy_mcp_server.py

Or test the connection and token:
  python hajjefy_mcp_server.py --check
"""
from __future__ import annotations

import asyncio
import sys

import structlog

from hajjefy_client import HajjefyClient
from query_validator import DateWindowQuery
from server_config import mcp, settings

# Importing a tool module registers its MCP tools and dispatcher handlers
import tools_customers  # noqa: F401
import tools_daily  # noqa: F401
import tools_summary  # noqa: F401
import tools_system  # noqa: F401
import tools_tam  # noqa: F401
import tools_users  # noqa: F401

log = structlog.get_logger(__name__)


async def _check() -> None:
    log.info("startup.checking_connection")
    async with HajjefyClient(settings) as client:
        health = await client.get_health_status()
        # The overview requires a valid token; health does not
        await client.get_dashboard_overview(DateWindowQuery(days=1).window())
    print(f"Connection OK — Hajjefy API status: {health.status}.")
    print("You can now add this server to Claude Desktop.")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "--check":
        asyncio.run(_check())
    else:
        log.info("startup.starting_mcp_server")
        mcp.run(transport="stdio")
