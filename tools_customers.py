"""
Customer tool — get_customer_analysis.

A customer usually spans several account codes (RELATECAREBILL,
RELATECARENONBILL, ...). Every account whose code or resolved name matches
the input is collected and summed into one customer view.
"""
from __future__ import annotations

import structlog

from aggregators import CustomerSummary, aggregate_customer, percentage
from customer_resolver import (
    find_account,
    find_customer_accounts,
    find_similar_customers,
    resolve_name,
)
from dispatcher import ToolName, dispatch, tool_handler
from hajjefy_client import HajjefyClient
from query_validator import CustomerAnalysisQuery
from schemas import AccountsResponse, SalesforceAccount
from server_config import mcp
from shared_helpers import (
    fmt_hours,
    fmt_pct,
    gather_named,
    numbered,
    report_header,
    section,
)
from tool_results import Failed, FailureKind, Success, ToolOutcome

log = structlog.get_logger(__name__)


@mcp.tool()
async def get_customer_analysis(
    customer: str,
    days: int = 90,
    from_date: str = "",
    to_date: str = "",
) -> str:
    """
    Analyze all time logged against one customer, summing every account
    code that belongs to it (billable, non-billable, CSM, ...), with the
    Salesforce account profile when the integration is available.

    Args:
        customer: Customer name or account code, e.g. "RelateCare".
        days: Number of days to analyze, 1-365 (default 90).
        from_date: Start date YYYY-MM-DD (optional).
        to_date: End date YYYY-MM-DD (optional).
    """
    return await dispatch(
        ToolName.GET_CUSTOMER_ANALYSIS.value,
        {"customer": customer, "days": days, "from_date": from_date, "to_date": to_date},
    )


@tool_handler(ToolName.GET_CUSTOMER_ANALYSIS, CustomerAnalysisQuery)
async def customer_analysis(client: HajjefyClient, query: CustomerAnalysisQuery) -> ToolOutcome:
    window = query.window()
    results = await gather_named({
        "accounts": client.get_accounts_breakdown(window),
        "salesforce": client.get_salesforce_account(query.customer),
    })
    breakdown: AccountsResponse = results["accounts"]
    salesforce: SalesforceAccount | None = results["salesforce"]

    matches = find_customer_accounts(breakdown.accounts, query.customer)
    if not matches:
        suggestions = find_similar_customers(breakdown.accounts, query.customer)
        log.info("tool.get_customer_analysis.no_match", suggestions=len(suggestions))
        return _customer_not_found(query.customer, window.label(), suggestions)

    best = find_account(matches, query.customer) or matches[0]
    summary = aggregate_customer(resolve_name(best.account), matches)

    lines = report_header(f"Customer Analysis: {summary.name}", window.label())
    lines += _summary_lines(summary)
    lines += section(f"Accounts ({len(summary.accounts)})")
    lines += numbered(
        f"{a.account} [{a.category.value}]: {fmt_hours(a.hours)} "
        f"({fmt_pct(percentage(a.hours, summary.total_hours))} of customer) | {a.entries} entries"
        for a in summary.accounts
    )
    lines += _salesforce_lines(salesforce)
    return Success("\n".join(lines))


def _summary_lines(summary: CustomerSummary) -> list[str]:
    primary = summary.primary_account
    return [
        f"Total hours:         {fmt_hours(summary.total_hours)}",
        f"Billable hours:      {fmt_hours(summary.billable_hours)} "
        f"({fmt_pct(summary.billable_percentage)})",
        f"Non-billable hours:  {fmt_hours(summary.non_billable_hours)}",
        f"Total entries:       {summary.entries} worklogs",
        f"Share of all time:   {fmt_pct(summary.percentage)}",
        f"Primary account:     {primary.account} ({fmt_hours(primary.hours)})",
    ]


def _salesforce_lines(account: SalesforceAccount | None) -> list[str]:
    lines = section("Salesforce")
    if account is None:
        lines.append("  No Salesforce account data available.")
        return lines
    lines.append(f"  Account:   {account.name or '—'}")
    if account.industry:
        lines.append(f"  Industry:  {account.industry}")
    if account.account_type:
        lines.append(f"  Type:      {account.account_type}")
    if account.owner:
        lines.append(f"  Owner:     {account.owner}")
    if account.annual_revenue is not None:
        lines.append(f"  Revenue:   ${account.annual_revenue:,.0f}")
    return lines


def _customer_not_found(customer: str, label: str, suggestions: list[str]) -> Failed:
    lines = report_header(f"Customer Analysis: {customer}", label)
    lines.append(f'No accounts found matching "{customer}".')
    if suggestions:
        lines += section("Did you mean")
        lines += [f"  - {name}" for name in suggestions]
    else:
        lines.append("")
        lines.append("Tip: try the account code (e.g. RELATECAREBILL) or a shorter name.")
    return Failed(FailureKind.NOT_FOUND, "\n".join(lines))
