"""
User tools — get_user_analytics, get_capacity_analysis,
get_user_customer_allocation.
"""
from __future__ import annotations

import structlog

from aggregators import (
    CapacityStatus,
    allocate_by_customer,
    capacity_gap,
    capacity_status,
    categorize_capacity,
    filter_capacity_users,
    parse_day,
    percentage,
    summarize_user_trends,
)
from dispatcher import ToolName, dispatch, tool_handler
from hajjefy_client import HajjefyAPIError, HajjefyClient, HajjefyNotFoundError
from query_validator import (
    CapacityQuery,
    DateWindowQuery,
    UserAllocationQuery,
    UserAnalyticsQuery,
)
from schemas import CapacityUser, UserProfile, UserProfileResponse
from shared_helpers import (
    fmt_day,
    fmt_hours,
    fmt_iso_day,
    fmt_pct,
    fmt_signed_hours,
    numbered,
    report_header,
    section,
)
from server_config import mcp
from tool_results import Degraded, Failed, FailureKind, Success, ToolOutcome

log = structlog.get_logger(__name__)

_CAPACITY_LIST_LIMIT = 15

_STATUS_MARKERS = {
    CapacityStatus.OVER_CAPACITY: "[OVER]",
    CapacityStatus.OPTIMAL: "[OK]",
    CapacityStatus.UNDER_UTILIZED: "[UNDER]",
}


def _user_not_found(username: str, days: int) -> Failed:
    return Failed(
        FailureKind.NOT_FOUND,
        "\n".join([
            *report_header(f"User Analytics: {username}"),
            "User not found or no data available.",
            "",
            "This could mean:",
            f'  - "{username}" does not exist in the system',
            f"  - No time entries were logged in the past {days} days",
            "  - The user is recorded under a different name format",
            "",
            "Tip: try the exact display name from Tempo, or a partial name.",
        ]),
    )


async def _fetch_profile(
    client: HajjefyClient,
    username: str,
    **kwargs,
) -> UserProfile | None:
    """The user's profile, or None when the user is unknown."""
    try:
        response: UserProfileResponse = await client.get_user_profile(username, **kwargs)
    except HajjefyNotFoundError:
        return None
    if not response.success or response.user_profile is None:
        return None
    return response.user_profile


# ---------------------------------------------------------------------------
# get_user_analytics
# ---------------------------------------------------------------------------


@mcp.tool()
async def get_user_analytics(username: str, days: int = 30) -> str:
    """
    Get detailed analytics for one user: total, billable and non-billable
    hours, entries, active days, last activity and recent daily activity.

    Args:
        username: User display name, e.g. "Nadim Hajje".
        days: Number of days to analyze, 1-365 (default 30).
    """
    return await dispatch(
        ToolName.GET_USER_ANALYTICS.value, {"username": username, "days": days}
    )


@tool_handler(ToolName.GET_USER_ANALYTICS, UserAnalyticsQuery)
async def user_analytics(client: HajjefyClient, query: UserAnalyticsQuery) -> ToolOutcome:
    profile = await _fetch_profile(client, query.username, days=query.days)
    if profile is None:
        return _user_not_found(query.username, query.days)

    window = DateWindowQuery(days=query.days).window()
    totals = summarize_user_trends(profile.daily_billable_trends, window)
    activity = profile.last_activity

    lines = report_header(f"User Analytics: {query.username}", window.label())
    lines += [
        f"Total hours:         {fmt_hours(totals.total_hours)}",
        f"Billable hours:      {fmt_hours(totals.billable_hours)} "
        f"({fmt_pct(percentage(totals.billable_hours, totals.total_hours))})",
        f"Non-billable hours:  {fmt_hours(totals.non_billable_hours)} "
        f"({fmt_pct(percentage(totals.non_billable_hours, totals.total_hours))})",
        f"Total entries:       {totals.entries} worklogs",
        f"Active days:         {totals.active_days}",
        f"Avg hours/day:       {fmt_hours(totals.avg_hours_per_day)}",
    ]

    lines += section("Activity")
    lines += [
        f"  Last worklog:               {fmt_iso_day(activity.last_worklog_date)}",
        f"  Days since last activity:   "
        f"{activity.days_since_last_activity if activity.days_since_last_activity is not None else 'N/A'}",
        f"  Total worklogs (all time):  "
        f"{activity.total_worklogs if activity.total_worklogs is not None else 'N/A'}",
    ]

    lines += section("Recent Daily Activity (last 7 days with data)")
    recent = []
    for t in totals.trends[-7:]:
        day = parse_day(t.date)
        billable_pct = t.billable_percentage if t.total_hours > 0 else 0
        recent.append(
            f"  {fmt_day(day)}: {fmt_hours(t.total_hours)} total "
            f"({fmt_hours(t.billable_hours)} billable, {billable_pct:g}%, {t.worklog_count} entries)"
        )
    lines += recent or ["  No activity in the specified period"]
    return Success("\n".join(lines))


# ---------------------------------------------------------------------------
# get_capacity_analysis
# ---------------------------------------------------------------------------


@mcp.tool()
async def get_capacity_analysis(days: int = 30, user_filter: str = "") -> str:
    """
    Get team capacity analysis: utilization per user (actual vs expected
    hours), over-capacity / optimal / under-utilized counts and the team
    capacity gap.

    Args:
        days: Number of days to analyze, 1-365 (default 30).
        user_filter: Only list users whose name contains this text (optional).
    """
    return await dispatch(
        ToolName.GET_CAPACITY_ANALYSIS.value, {"days": days, "user_filter": user_filter}
    )


@tool_handler(ToolName.GET_CAPACITY_ANALYSIS, CapacityQuery)
async def capacity_analysis(client: HajjefyClient, query: CapacityQuery) -> ToolOutcome:
    try:
        data = await client.get_capacity_analysis(query.days)
    except HajjefyAPIError as exc:
        log.warning("tool.get_capacity_analysis.fallback", status_code=exc.status_code)
        return await _capacity_fallback(client, query.days)

    summary = data.capacity.summary
    users = data.capacity.users
    breakdown = categorize_capacity(users)
    gap = capacity_gap(summary.team_total_actual_hours, summary.team_total_expected_hours)

    lines = report_header(f"Team Capacity Analysis ({query.days} days)")
    lines += [
        f"Total users:          {summary.total_users or len(users)}",
        f"Team actual hours:    {fmt_hours(summary.team_total_actual_hours)}",
        f"Team expected hours:  {fmt_hours(summary.team_total_expected_hours)}",
        f"Avg utilization:      {fmt_pct(summary.team_avg_utilization)}",
        f"Capacity gap:         {fmt_signed_hours(gap)}",
    ]
    lines += section("Capacity Categories")
    lines += [
        f"  Over-Capacity:   {len(breakdown.over_capacity)} users (>100% utilization)",
        f"  Optimal:         {len(breakdown.optimal)} users (90-100% utilization)",
        f"  Under-Utilized:  {len(breakdown.under_utilized)} users (<90% utilization)",
    ]

    selected = filter_capacity_users(users, query.user_filter)
    shown = selected if query.user_filter else selected[:_CAPACITY_LIST_LIMIT]
    heading = "Individual User Capacity"
    if query.user_filter:
        heading += f" (filtered: {query.user_filter})"
    lines += section(heading)
    if shown:
        for i, user in enumerate(shown, start=1):
            lines += _capacity_user_lines(i, user)
    else:
        lines.append("  No users matched.")
    if not query.user_filter and len(selected) > _CAPACITY_LIST_LIMIT:
        lines.append(
            f"\n(Showing top {_CAPACITY_LIST_LIMIT} of {len(selected)} users — "
            "use user_filter to see specific users)"
        )

    lines += section("Recommendations")
    if breakdown.over_capacity:
        lines.append(
            f"  - Redistribute workload or review expectations for "
            f"{len(breakdown.over_capacity)} users working >100%"
        )
    if breakdown.under_utilized:
        lines.append(
            f"  - {len(breakdown.under_utilized)} users have capacity for additional work"
        )
    if gap > 0:
        lines.append(f"  - Team is {fmt_hours(gap)} over capacity")
    else:
        lines.append(f"  - Team has {fmt_hours(abs(gap))} unused capacity")
    return Success("\n".join(lines))


def _capacity_user_lines(rank: int, user: CapacityUser) -> list[str]:
    status = capacity_status(user.utilization)
    return [
        f"  {rank}. {user.user_name} {_STATUS_MARKERS[status]} {status.value}",
        f"     Utilization:  {fmt_pct(user.utilization)}",
        f"     Hours:        {fmt_hours(user.total_actual_hours)} / "
        f"{fmt_hours(user.total_expected_hours)} expected "
        f"({fmt_signed_hours(user.over_under_total)})",
        f"     Time off:     {user.total_time_off_days:g} days ({fmt_hours(user.total_time_off_hours)})",
        f"     Workload:     {user.workload_scheme.scheme_name} "
        f"({fmt_hours(user.workload_scheme.hours_per_day)}/day)",
        f"     Holidays:     {user.holiday_scheme.scheme_name}",
        f"     Worked:       {user.total_days_worked} days, {user.total_worklogs} worklogs",
    ]


async def _capacity_fallback(client: HajjefyClient, days: int) -> ToolOutcome:
    window = DateWindowQuery(days=days).window()
    overview = await client.get_dashboard_overview(window)
    lines = report_header(f"Capacity Analysis ({days} days)", window.label())
    lines += [
        f"Total hours:     {fmt_hours(overview.totals.hours)}",
        f"Avg hours/day:   {fmt_hours(overview.totals.avg_hours_per_day)}",
        f"Active users:    {overview.database.unique_authors}",
        "",
        "For utilization rates, workload schemes and holiday tracking, "
        "visit the Hajjefy dashboard directly.",
    ]
    return Degraded(
        "\n".join(lines),
        "Detailed capacity analysis not available; showing the basic overview.",
    )


# ---------------------------------------------------------------------------
# get_user_customer_allocation
# ---------------------------------------------------------------------------


@mcp.tool()
async def get_user_customer_allocation(
    username: str,
    days: int = 30,
    from_date: str = "",
    to_date: str = "",
) -> str:
    """
    Show how one user's time is split across customers, grouping the
    user's account codes by customer name.

    Args:
        username: User display name, e.g. "Nadim Hajje".
        days: Number of days to analyze, 1-365 (default 30).
        from_date: Start date YYYY-MM-DD (optional).
        to_date: End date YYYY-MM-DD (optional).
    """
    return await dispatch(
        ToolName.GET_USER_CUSTOMER_ALLOCATION.value,
        {"username": username, "days": days, "from_date": from_date, "to_date": to_date},
    )


@tool_handler(ToolName.GET_USER_CUSTOMER_ALLOCATION, UserAllocationQuery)
async def user_customer_allocation(
    client: HajjefyClient,
    query: UserAllocationQuery,
) -> ToolOutcome:
    window = query.window()
    profile = await _fetch_profile(client, query.username, window=window)
    if profile is None:
        return _user_not_found(query.username, window.days)

    allocations = allocate_by_customer(profile.account_breakdown)
    total = sum(a.hours for a in allocations)
    billable = sum(a.billable_hours for a in allocations)

    lines = report_header(f"Customer Allocation: {query.username}", window.label())
    if not allocations:
        lines.append("No customer time recorded in this period.")
        return Success("\n".join(lines))

    lines += [
        f"Total hours:     {fmt_hours(total)}",
        f"Billable hours:  {fmt_hours(billable)} ({fmt_pct(percentage(billable, total))})",
        f"Customers:       {len(allocations)}",
    ]
    lines += section("By Customer")
    lines += numbered(
        f"{a.name}: {fmt_hours(a.hours)} ({fmt_pct(percentage(a.hours, total))}) | "
        f"{fmt_hours(a.billable_hours)} billable | {a.entries} entries | "
        f"accounts: {', '.join(a.accounts)}"
        for a in allocations
    )
    top = allocations[0]
    lines += section("Focus")
    lines.append(
        f"  Primary customer: {top.name} ({fmt_pct(percentage(top.hours, total))} of logged time)"
    )
    return Success("\n".join(lines))
