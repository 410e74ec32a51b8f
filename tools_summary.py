"""
Summary tools — get_time_summary, get_team_overview, get_billable_analysis,
export_data.

All four are built on the dashboard overview; billable analysis falls back
to it when the dedicated endpoint is unavailable.
"""
from __future__ import annotations

import asyncio
import csv
import io
import json
from datetime import datetime, timezone

import structlog

from aggregators import percentage
from dispatcher import ToolName, dispatch, tool_handler
from hajjefy_client import HajjefyAPIError, HajjefyClient
from query_validator import DateWindowQuery, DaysQuery, ExportQuery
from schemas import DashboardOverview, WorklogsResponse
from server_config import mcp, settings
from shared_helpers import (
    account_label,
    fmt_hours,
    fmt_iso_day,
    fmt_pct,
    numbered,
    report_header,
    section,
)
from tool_results import Degraded, Success, ToolOutcome

log = structlog.get_logger(__name__)


def _top_account_lines(overview: DashboardOverview) -> list[str]:
    return numbered(
        f"{account_label(a.account)}: {fmt_hours(a.total_hours)} ({fmt_pct(a.percentage)})"
        for a in overview.top_accounts
    )


def _recent_day_lines(overview: DashboardOverview) -> list[str]:
    lines = [
        f"  {d.date[:10]}: {fmt_hours(d.total_hours)} ({d.entry_count} entries)"
        for d in overview.recent_days
    ]
    return lines or ["  (no recent activity)"]


# ---------------------------------------------------------------------------
# get_time_summary
# ---------------------------------------------------------------------------


@mcp.tool()
async def get_time_summary(days: int = 30, from_date: str = "", to_date: str = "") -> str:
    """
    Get a time tracking summary for a period: total hours, entries, active
    days, top accounts and the most recent days of activity.

    Args:
        days: Number of days to analyze, 1-365 (default 30).
        from_date: Start date YYYY-MM-DD (optional).
        to_date: End date YYYY-MM-DD (optional).
    """
    return await dispatch(
        ToolName.GET_TIME_SUMMARY.value,
        {"days": days, "from_date": from_date, "to_date": to_date},
    )


@tool_handler(ToolName.GET_TIME_SUMMARY, DateWindowQuery)
async def time_summary(client: HajjefyClient, query: DateWindowQuery) -> ToolOutcome:
    window = query.window()
    overview = await client.get_dashboard_overview(window)
    totals = overview.totals
    db = overview.database

    lines = report_header("Time Tracking Summary", window.label())
    lines += [
        f"Total hours:        {fmt_hours(totals.hours)}",
        f"Total entries:      {totals.entries} worklogs",
        f"Active days:        {totals.active_days}",
        f"Avg hours/day:      {fmt_hours(totals.avg_hours_per_day)}",
    ]
    lines += section("Top Accounts")
    lines += _top_account_lines(overview)
    lines += section("Recent Activity")
    lines += _recent_day_lines(overview)
    lines += section("Database Status")
    lines += [
        f"  Total worklogs:   {db.total_worklogs}",
        f"  Data range:       {fmt_iso_day(db.date_range.earliest)} – {fmt_iso_day(db.date_range.latest)}",
        f"  Unique users:     {db.unique_authors}",
        f"  Unique accounts:  {db.unique_accounts}",
    ]
    return Success("\n".join(lines))


# ---------------------------------------------------------------------------
# get_team_overview
# ---------------------------------------------------------------------------


@mcp.tool()
async def get_team_overview(days: int = 30) -> str:
    """
    Get team performance overview: team hours, contributors, project
    distribution, recent trend and workload rankings per member.

    Args:
        days: Number of days to analyze, 1-365 (default 30).
    """
    return await dispatch(ToolName.GET_TEAM_OVERVIEW.value, {"days": days})


@tool_handler(ToolName.GET_TEAM_OVERVIEW, DaysQuery)
async def team_overview(client: HajjefyClient, query: DaysQuery) -> ToolOutcome:
    window = DateWindowQuery(days=query.days).window()
    overview, workload = await asyncio.gather(
        client.get_dashboard_overview(window),
        client.get_team_workload(query.days),
    )
    totals = overview.totals

    lines = report_header(f"Team Performance Overview ({query.days} days)", window.label())
    lines += [
        f"Total team hours:     {fmt_hours(totals.hours)}",
        f"Daily average:        {fmt_hours(totals.avg_hours_per_day)}/day",
        f"Active contributors:  {overview.database.unique_authors} users",
        f"Total entries:        {totals.entries} worklogs",
    ]
    lines += section("Project Distribution")
    lines += _top_account_lines(overview)
    lines += section("Activity Trend")
    lines += _recent_day_lines(overview)

    members = sorted(workload.members, key=lambda m: m.total_hours, reverse=True)
    lines += section("Workload by Member")
    lines += numbered(
        f"{m.user_name}: {fmt_hours(m.total_hours)} "
        f"({fmt_hours(m.billable_hours)} billable, {m.active_days} active days)"
        for m in members[:15]
    )
    if workload.summary.total_members:
        lines.append(
            f"  Team of {workload.summary.total_members}, "
            f"{fmt_hours(workload.summary.avg_hours_per_member)} avg per member"
        )

    lines += section("Key Insights")
    if overview.top_accounts:
        top = overview.top_accounts[0]
        lines.append(
            f"  Most active project: {account_label(top.account)} ({fmt_pct(top.percentage)} of time)"
        )
    avg_entries = totals.entries / totals.active_days if totals.active_days else 0.0
    lines.append(f"  Average entries per day: {avg_entries:.1f}")
    lines.append(f"  Team spans {overview.database.unique_accounts} accounts/projects")
    return Success("\n".join(lines))


# ---------------------------------------------------------------------------
# get_billable_analysis
# ---------------------------------------------------------------------------


@mcp.tool()
async def get_billable_analysis(days: int = 30, from_date: str = "", to_date: str = "") -> str:
    """
    Get billable vs non-billable hours, top billable accounts and the
    monthly billable trend.

    Args:
        days: Number of days to analyze, 1-365 (default 30).
        from_date: Start date YYYY-MM-DD (optional).
        to_date: End date YYYY-MM-DD (optional).
    """
    return await dispatch(
        ToolName.GET_BILLABLE_ANALYSIS.value,
        {"days": days, "from_date": from_date, "to_date": to_date},
    )


@tool_handler(ToolName.GET_BILLABLE_ANALYSIS, DateWindowQuery)
async def billable_analysis(client: HajjefyClient, query: DateWindowQuery) -> ToolOutcome:
    window = query.window()
    try:
        data = await client.get_billable_analysis(window)
    except HajjefyAPIError as exc:
        log.warning("tool.get_billable_analysis.fallback", status_code=exc.status_code)
        overview = await client.get_dashboard_overview(window)
        return Degraded(
            _billable_fallback_report(overview, window.label()),
            "Billable analysis endpoint unavailable; showing the basic time overview.",
        )

    s = data.summary
    lines = report_header("Billable Hours Analysis", window.label())
    lines += [
        f"Billable hours:      {fmt_hours(s.billable_hours)}",
        f"Non-billable hours:  {fmt_hours(s.non_billable_hours)}",
        f"Billable share:      {fmt_pct(s.billable_percentage)}",
    ]
    lines += section("Top Billable Accounts")
    lines += numbered(
        (f"{account_label(a.account)}: {fmt_hours(a.billable_hours)}" for a in data.top_billable_accounts),
        empty="  No billable account data available",
    )
    lines += section("Monthly Trend")
    trend = [
        f"  {m.month}: {fmt_hours(m.billable_hours)} billable ({fmt_pct(m.billable_percentage)})"
        for m in data.monthly_trend
    ]
    lines += trend or ["  Monthly trend data not available"]
    return Success("\n".join(lines))


def _billable_fallback_report(overview: DashboardOverview, label: str) -> str:
    lines = report_header("Billable Analysis (basic overview)", label)
    lines += [
        f"Total hours:    {fmt_hours(overview.totals.hours)}",
        f"Total entries:  {overview.totals.entries} worklogs",
    ]
    lines += section("Account Breakdown")
    lines += _top_account_lines(overview)
    lines.append("")
    lines.append("For detailed billable analysis, check the Hajjefy dashboard directly.")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# export_data
# ---------------------------------------------------------------------------


@mcp.tool()
async def export_data(format: str = "json", days: int = 30, include_details: bool = False) -> str:
    """
    Export time tracking data as JSON or CSV.

    Args:
        format: "json" (default) or "csv".
        days: Number of days to export, 1-365 (default 30).
        include_details: Also export individual worklog entries (default false).
    """
    return await dispatch(
        ToolName.EXPORT_DATA.value,
        {"format": format, "days": days, "include_details": include_details},
    )


@tool_handler(ToolName.EXPORT_DATA, ExportQuery)
async def export(client: HajjefyClient, query: ExportQuery) -> ToolOutcome:
    window = DateWindowQuery(days=query.days).window()

    if query.include_details:
        overview, worklogs = await asyncio.gather(
            client.get_dashboard_overview(window),
            client.get_detailed_worklogs(window, limit=settings.worklog_fetch_limit),
        )
    else:
        overview = await client.get_dashboard_overview(window)
        worklogs = None

    exported_at = datetime.now(timezone.utc).isoformat(timespec="seconds")

    if query.format == "csv":
        return Success(_csv_export(overview, worklogs, window.label(), exported_at))

    payload = {
        "metadata": {
            "exported_at": exported_at,
            "date_range": {"from": window.start.isoformat(), "to": window.end.isoformat()},
            "format": query.format,
            "include_details": query.include_details,
        },
        "summary": overview.totals.model_dump(mode="json"),
        "accounts": [a.model_dump(mode="json") for a in overview.top_accounts],
        "recent_activity": [d.model_dump(mode="json") for d in overview.recent_days],
        "database_info": overview.database.model_dump(mode="json"),
    }
    if worklogs is not None:
        payload["worklogs"] = [w.model_dump(mode="json") for w in worklogs.worklogs]

    lines = report_header("Exported Data (JSON)", window.label())
    lines += ["```json", json.dumps(payload, indent=2), "```"]
    return Success("\n".join(lines))


def _csv_export(
    overview: DashboardOverview,
    worklogs: WorklogsResponse | None,
    label: str,
    exported_at: str,
) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(["Account", "Hours", "Percentage"])
    for a in overview.top_accounts:
        writer.writerow([a.account, a.total_hours, f"{a.percentage}%"])

    lines = report_header("Exported Data (CSV)", label)
    lines += ["```csv", buf.getvalue().rstrip("\n"), "```"]

    if worklogs is not None:
        buf = io.StringIO()
        writer = csv.writer(buf, lineterminator="\n")
        writer.writerow(["Date", "Author", "Account", "Category", "Hours", "Billable Hours", "Description"])
        for w in worklogs.worklogs:
            writer.writerow([
                w.start_date, w.author_display_name, w.account_name,
                w.account_category, w.time_spent_hours, w.billable_hours, w.description,
            ])
        lines += section("Worklog Details")
        lines += ["```csv", buf.getvalue().rstrip("\n"), "```"]

    total = overview.totals.hours
    top_share = percentage(sum(a.total_hours for a in overview.top_accounts), total)
    lines += section("Summary")
    lines += [
        f"  Total hours:      {fmt_hours(total)}",
        f"  Top accounts:     {fmt_pct(top_share)} of all hours",
        f"  Export date:      {exported_at}",
    ]
    return "\n".join(lines)
