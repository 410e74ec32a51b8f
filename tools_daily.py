"""
Daily hours tool — get_daily_hours.

Combines up to three sources fetched concurrently: the daily breakdown
(always), the account breakdown (include_projects) and detailed worklogs
(include_worklogs or include_per_user). Sources whose flag is off are
never requested.
"""
from __future__ import annotations

from typing import Any

import structlog

from aggregators import (
    TOP_USERS_DETAIL,
    build_user_daily_matrix,
    parse_day,
    peak_and_low_days,
    percentage,
    rank_users,
    recent_user_days,
    weekly_pattern,
)
from dispatcher import ToolName, dispatch, tool_handler
from hajjefy_client import HajjefyClient
from query_validator import DailyHoursQuery
from schemas import (
    INTERNAL_CATEGORIES,
    AccountsResponse,
    DailyHoursResponse,
    DailyRow,
    WorklogsResponse,
)
from server_config import mcp, settings
from shared_helpers import (
    account_label,
    fmt_day,
    fmt_hours,
    fmt_pct,
    fmt_short_day,
    gather_named,
    numbered,
    report_header,
    section,
)
from tool_results import Failed, FailureKind, Success, ToolOutcome

log = structlog.get_logger(__name__)

_TOP_BILLABLE_PROJECTS = 10
_TOP_INTERNAL_PROJECTS = 5
_RECENT_WORKLOGS = 20
_DESCRIPTION_CHARS = 60


@mcp.tool()
async def get_daily_hours(
    days: int = 30,
    from_date: str = "",
    to_date: str = "",
    include_projects: bool = True,
    include_worklogs: bool = False,
    include_trends: bool = True,
    include_per_user: bool = False,
) -> str:
    """
    Get a comprehensive daily hours breakdown with project allocation,
    worklog timestamps, weekly trends and billable analysis.

    Args:
        days: Number of days to analyze, 1-365 (default 30).
        from_date: Start date YYYY-MM-DD (optional).
        to_date: End date YYYY-MM-DD (optional).
        include_projects: Include project/account allocation (default true).
        include_worklogs: Include recent worklog timestamps and details (default false).
        include_trends: Include weekly patterns and trends (default true).
        include_per_user: Include daily hours per individual user (default false).
    """
    return await dispatch(
        ToolName.GET_DAILY_HOURS.value,
        {
            "days": days,
            "from_date": from_date,
            "to_date": to_date,
            "include_projects": include_projects,
            "include_worklogs": include_worklogs,
            "include_trends": include_trends,
            "include_per_user": include_per_user,
        },
    )


@tool_handler(ToolName.GET_DAILY_HOURS, DailyHoursQuery)
async def daily_hours(client: HajjefyClient, query: DailyHoursQuery) -> ToolOutcome:
    window = query.window()

    fetches: dict[str, Any] = {"daily": client.get_daily_hours(window)}
    if query.include_projects:
        fetches["accounts"] = client.get_accounts_breakdown(window)
    if query.include_worklogs or query.include_per_user:
        fetches["worklogs"] = client.get_detailed_worklogs(
            window, limit=settings.worklog_fetch_limit
        )
    results = await gather_named(fetches)

    daily_data: DailyHoursResponse = results["daily"]
    if not daily_data.success or not daily_data.daily:
        return Failed(
            FailureKind.NO_DATA,
            f"No daily hours data available for {window.label()}.",
        )

    lines = report_header("Daily Hours Analysis", window.label())
    lines += _summary_lines(daily_data)
    lines += _day_by_day_lines(daily_data.daily)
    lines += _peak_lines(daily_data.daily)
    lines += _billable_split_lines(daily_data)

    accounts: AccountsResponse | None = results.get("accounts")
    if accounts is not None:
        lines += _project_lines(accounts)

    if query.include_trends:
        lines += _trend_lines(daily_data.daily)

    worklogs: WorklogsResponse | None = results.get("worklogs")
    if worklogs is not None and query.include_worklogs:
        lines += _worklog_lines(worklogs)
    if worklogs is not None and query.include_per_user:
        lines += _per_user_lines(worklogs)

    return Success("\n".join(lines))


def _summary_lines(data: DailyHoursResponse) -> list[str]:
    s = data.summary
    return [
        f"Total days:          {s.total_days or len(data.daily)}",
        f"Total hours:         {fmt_hours(s.total_hours)}",
        f"Billable hours:      {fmt_hours(s.total_billable_hours)}",
        f"Total entries:       {s.total_entries} worklogs",
        f"Avg daily hours:     {fmt_hours(s.avg_daily_hours)}",
        f"Avg utilization:     {fmt_pct(s.avg_utilization)}",
    ]


def _day_by_day_lines(daily: list[DailyRow]) -> list[str]:
    lines = section("Day-by-Day Breakdown")
    for row in daily:
        day = parse_day(row.date)
        label = fmt_day(day) if day else row.date
        lines.append(
            f"  {label}: {fmt_hours(row.total_hours)} total | "
            f"{fmt_hours(row.billable_hours)} billable "
            f"({fmt_pct(percentage(row.billable_hours, row.total_hours))}) | "
            f"{row.unique_users} users | {row.entry_count} entries"
        )
    return lines


def _peak_lines(daily: list[DailyRow]) -> list[str]:
    peak_low = peak_and_low_days(daily)
    if peak_low is None:
        return []
    peak, low = peak_low
    return section("Peak Activity") + [
        f"  Highest day: {peak.date[:10]} — {fmt_hours(peak.total_hours)} ({peak.unique_users} users)",
        f"  Lowest day:  {low.date[:10]} — {fmt_hours(low.total_hours)} ({low.unique_users} users)",
    ]


def _billable_split_lines(data: DailyHoursResponse) -> list[str]:
    total = data.summary.total_hours
    billable = data.summary.total_billable_hours
    non_billable = total - billable
    return section("Billable vs Non-Billable") + [
        f"  Billable:      {fmt_hours(billable)} ({fmt_pct(percentage(billable, total))})",
        f"  Non-billable:  {fmt_hours(non_billable)} ({fmt_pct(percentage(non_billable, total))})",
    ]


def _project_lines(accounts: AccountsResponse) -> list[str]:
    ranked = sorted(accounts.accounts, key=lambda a: a.hours, reverse=True)
    billable = [a for a in ranked if a.is_billable]
    internal = [a for a in ranked if a.category in INTERNAL_CATEGORIES]

    def fmt(acc) -> str:
        return (
            f"{account_label(acc.account)}: {fmt_hours(acc.hours)} "
            f"({fmt_pct(acc.percentage)}) - {acc.entries} entries"
        )

    lines = section("Project/Account Allocation")
    lines.append("  Top billable projects:")
    lines += ["  " + line for line in numbered(map(fmt, billable[:_TOP_BILLABLE_PROJECTS]))]
    lines.append("  Top internal projects:")
    lines += ["  " + line for line in numbered(map(fmt, internal[:_TOP_INTERNAL_PROJECTS]))]
    return lines


def _trend_lines(daily: list[DailyRow]) -> list[str]:
    pattern = weekly_pattern(daily)
    if pattern is None:
        return []
    lines = section("Weekly Patterns")
    for w in pattern.weekdays:
        lines.append(
            f"  {w.day:<10} {fmt_hours(w.avg_hours)} avg "
            f"({fmt_hours(w.avg_billable)} billable) - {w.days_analyzed} days analyzed"
        )
    most, least = pattern.most_productive, pattern.least_productive
    lines.append(f"  Most productive day:  {most.day} ({fmt_hours(most.avg_hours)} average)")
    lines.append(f"  Least productive day: {least.day} ({fmt_hours(least.avg_hours)} average)")
    return lines


def _worklog_lines(worklogs: WorklogsResponse) -> list[str]:
    recent = worklogs.worklogs[:_RECENT_WORKLOGS]
    lines = section("Recent Worklogs")
    for wl in recent:
        stamp = wl.start_date[:16].replace("T", " ") if wl.start_date else "—"
        desc = wl.description[:_DESCRIPTION_CHARS]
        if len(wl.description) > _DESCRIPTION_CHARS:
            desc += "..."
        lines.append(
            f"  {stamp} | {wl.author_display_name} | {wl.account_name} "
            f"({wl.account_category or 'Uncategorized'}) | {fmt_hours(wl.time_spent_hours)} | \"{desc}\""
        )
    lines.append(f"  (Showing {len(recent)} most recent of {len(worklogs.worklogs)} entries)")
    return lines


def _per_user_lines(worklogs: WorklogsResponse) -> list[str]:
    matrix = build_user_daily_matrix(worklogs.worklogs)
    ranked = rank_users(matrix)

    lines = section(f"Daily Hours Per User (top {len(ranked)} active users)")
    lines += numbered(
        f"{u.user}: {fmt_hours(u.total_hours)} total | "
        f"{fmt_hours(u.avg_daily_hours)} avg/day | {u.active_days} active days"
        for u in ranked
    )

    for u in ranked[:TOP_USERS_DETAIL]:
        lines.append("")
        lines.append(f"  {u.user} ({fmt_hours(u.total_hours)} total):")
        for day, totals in recent_user_days(matrix, u.user):
            billable_pct = percentage(totals.billable_hours, totals.total_hours)
            lines.append(
                f"    {fmt_short_day(day)}: {fmt_hours(totals.total_hours)} "
                f"({billable_pct:.0f}% billable, {totals.entry_count} entries)"
            )
    if ranked:
        lines.append(
            f"\n(Detail shows the top {min(len(ranked), TOP_USERS_DETAIL)} users, "
            "most recent 7 days each)"
        )
    return lines
