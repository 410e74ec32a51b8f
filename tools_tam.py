"""
TAM tool — get_tam_insights.

Joins each user's TAM (technical account management) hours with their
overall workload to show who carries TAM work, how much of their time it
takes, and which role fits them.
"""
from __future__ import annotations

import structlog

from aggregators import (
    EXPERIENCED_MIN_HOURS,
    EXPERT_MIN_HOURS,
    TamUserRecord,
    build_tam_records,
    tier_tam_users,
)
from dispatcher import ToolName, dispatch, tool_handler
from hajjefy_client import HajjefyClient
from query_validator import TamInsightsQuery
from schemas import TamAnalysis, WorkloadRankings
from server_config import mcp
from shared_helpers import (
    account_label,
    fmt_hours,
    fmt_pct,
    gather_named,
    numbered,
    report_header,
    section,
)
from tool_results import Success, ToolOutcome

log = structlog.get_logger(__name__)

_TOP_RESOURCES = 5
_TOP_TAM_ACCOUNTS = 10


@mcp.tool()
async def get_tam_insights(
    days: int = 90,
    from_date: str = "",
    to_date: str = "",
    min_hours: float = 5.0,
    customer: str = "",
) -> str:
    """
    Get TAM (technical account management) insights: who logs TAM hours,
    expertise tiers, TAM share of each person's workload, best resources
    and role recommendations.

    Args:
        days: Number of days to analyze, 1-365 (default 90).
        from_date: Start date YYYY-MM-DD (optional).
        to_date: End date YYYY-MM-DD (optional).
        min_hours: Minimum TAM hours for a user to be included (default 5).
        customer: Limit to one customer's TAM work (optional).
    """
    return await dispatch(
        ToolName.GET_TAM_INSIGHTS.value,
        {
            "days": days,
            "from_date": from_date,
            "to_date": to_date,
            "min_hours": min_hours,
            "customer": customer,
        },
    )


@tool_handler(ToolName.GET_TAM_INSIGHTS, TamInsightsQuery)
async def tam_insights(client: HajjefyClient, query: TamInsightsQuery) -> ToolOutcome:
    window = query.window()
    results = await gather_named({
        "tam": client.get_tam_analysis(window, customer=query.customer),
        "rankings": client.get_workload_rankings(window),
    })
    tam: TamAnalysis = results["tam"]
    rankings: WorkloadRankings = results["rankings"]

    records = build_tam_records(tam.users, rankings.rankings, query.min_hours)
    tiers = tier_tam_users(records)

    title = "TAM Insights"
    if query.customer:
        title += f": {query.customer}"
    lines = report_header(title, window.label())

    total_tam = tam.total_tam_hours or sum(u.tam_hours for u in tam.users)
    lines += [
        f"Total TAM hours:     {fmt_hours(total_tam)}",
        f"TAM contributors:    {len(records)} users with at least {query.min_hours:g}h",
        f"Expert:              {len(tiers.expert)} (≥{EXPERT_MIN_HOURS:g}h)",
        f"Experienced:         {len(tiers.experienced)} (≥{EXPERIENCED_MIN_HOURS:g}h)",
        f"Developing:          {len(tiers.developing)} (<{EXPERIENCED_MIN_HOURS:g}h)",
    ]

    if not records:
        lines.append("")
        lines.append(
            f"No users logged at least {query.min_hours:g} TAM hours in this period."
        )
        return Success("\n".join(lines))

    for heading, bucket in (
        ("Expert TAM Resources", tiers.expert),
        ("Experienced TAM Resources", tiers.experienced),
        ("Developing TAM Resources", tiers.developing),
    ):
        if bucket:
            lines += section(heading)
            lines += numbered(_record_line(r) for r in bucket)

    lines += section(f"Best TAM Resources (top {min(len(records), _TOP_RESOURCES)})")
    lines += numbered(
        f"{r.user_name}: {fmt_hours(r.tam_hours)} TAM, {r.tier.value}"
        for r in records[:_TOP_RESOURCES]
    )

    lines += section("Role Recommendations")
    lines += [f"  - {r.user_name}: {r.recommendation}" for r in records]

    if tam.accounts:
        accounts = sorted(tam.accounts, key=lambda a: a.hours, reverse=True)
        lines += section("TAM Hours by Account")
        lines += numbered(
            f"{account_label(a.account)}: {fmt_hours(a.hours)}"
            for a in accounts[:_TOP_TAM_ACCOUNTS]
        )
    return Success("\n".join(lines))


def _record_line(r: TamUserRecord) -> str:
    if r.total_hours:
        share = f"{fmt_pct(r.tam_percentage)} of {fmt_hours(r.total_hours)} total"
    else:
        share = "total hours unknown"
    return f"{r.user_name}: {fmt_hours(r.tam_hours)} TAM ({share}) | {r.worklog_count} worklogs"
