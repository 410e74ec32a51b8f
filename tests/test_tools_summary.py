import json

import pytest

import hajjefy_mcp_server  # noqa: F401  (registers every tool)
from dispatcher import ToolName, dispatch
from hajjefy_client import HajjefyAPIError, HajjefyAuthError
from schemas import BillableAnalysis, DashboardOverview, TeamWorkload, WorklogsResponse
from tool_results import InternalToolError

from fake_client import FakeClient

OVERVIEW = DashboardOverview.model_validate(
    {
        "dateRange": {"from": "2025-08-22", "to": "2025-09-20"},
        "totals": {"hours": 1234.5, "entries": 812, "activeDays": 21, "avgHoursPerDay": 58.8},
        "topAccounts": [
            {"account": "RELATECAREBILL", "total_hours": 300.5, "percentage": 24.3},
            {"account": "INTERNAL", "total_hours": 120.0, "percentage": 9.7},
        ],
        "recentDays": [{"date": "2025-09-19", "total_hours": 61.5, "entry_count": 40}],
        "database": {
            "totalWorklogs": 52000,
            "dateRange": {"earliest": "2023-01-02T00:00:00Z", "latest": "2025-09-19T17:00:00Z"},
            "uniqueAuthors": 14,
            "uniqueAccounts": 87,
        },
    }
)


@pytest.mark.asyncio
async def test_time_summary_report():
    client = FakeClient(get_dashboard_overview=OVERVIEW)
    out = await dispatch(
        ToolName.GET_TIME_SUMMARY.value,
        {"from_date": "2025-09-01", "to_date": "2025-09-15"},
        client=client,
    )

    assert out.startswith("Time Tracking Summary  |  2025-09-01 to 2025-09-15")
    assert "1,234.5h" in out
    assert "812 worklogs" in out
    assert "1. RelateCare (RELATECAREBILL): 300.5h (24.3%)" in out
    assert "2. INTERNAL: 120.0h (9.7%)" in out
    assert "2025-09-19: 61.5h (40 entries)" in out
    assert "2023-01-02 – 2025-09-19" in out

    (window,) = client.calls[0][1]
    assert window.days == 15


@pytest.mark.asyncio
async def test_team_overview_combines_workload():
    workload = TeamWorkload.model_validate(
        {
            "summary": {"totalMembers": 2, "avgHoursPerMember": 80.0},
            "members": [
                {"userName": "Ben", "totalHours": 60.0, "billableHours": 30.0, "activeDays": 10},
                {"userName": "Ana", "totalHours": 100.0, "billableHours": 90.0, "activeDays": 12},
            ],
        }
    )
    client = FakeClient(get_dashboard_overview=OVERVIEW, get_team_workload=workload)
    out = await dispatch(ToolName.GET_TEAM_OVERVIEW.value, {"days": 14}, client=client)

    assert "Team Performance Overview (14 days)" in out
    assert out.index("1. Ana: 100.0h") < out.index("2. Ben: 60.0h")
    assert "Team of 2, 80.0h avg per member" in out
    assert "Most active project: RelateCare (RELATECAREBILL) (24.3% of time)" in out
    assert next(c for c in client.calls if c[0] == "get_team_workload")[1] == (14,)


@pytest.mark.asyncio
async def test_billable_analysis_report():
    data = BillableAnalysis.model_validate(
        {
            "summary": {"billableHours": 700.0, "nonBillableHours": 300.0, "billablePercentage": 70.0},
            "topBillableAccounts": [{"account": "CENTENEBILL", "billableHours": 250.0}],
            "monthlyTrend": [{"month": "2025-09", "billableHours": 400.0, "billablePercentage": 72.5}],
        }
    )
    client = FakeClient(get_billable_analysis=data)
    out = await dispatch(ToolName.GET_BILLABLE_ANALYSIS.value, {}, client=client)

    assert not out.startswith("Note:")
    assert "Billable share:      70.0%" in out
    assert "1. Centene (CENTENEBILL): 250.0h" in out
    assert "2025-09: 400.0h billable (72.5%)" in out
    assert not client.called("get_dashboard_overview")


@pytest.mark.asyncio
async def test_billable_analysis_degrades_to_overview():
    client = FakeClient(
        get_billable_analysis=HajjefyAPIError("Hajjefy endpoint not found", status_code=404),
        get_dashboard_overview=OVERVIEW,
    )
    out = await dispatch(ToolName.GET_BILLABLE_ANALYSIS.value, {"days": 30}, client=client)

    assert out.startswith("Note: Billable analysis endpoint unavailable")
    assert "Billable Analysis (basic overview)" in out
    assert "RelateCare (RELATECAREBILL)" in out


@pytest.mark.asyncio
async def test_billable_analysis_does_not_degrade_on_auth_failure():
    client = FakeClient(
        get_billable_analysis=HajjefyAuthError("Access denied. Token may lack required permissions."),
        get_dashboard_overview=OVERVIEW,
    )
    with pytest.raises(InternalToolError, match="Access denied"):
        await dispatch(ToolName.GET_BILLABLE_ANALYSIS.value, {}, client=client)
    assert not client.called("get_dashboard_overview")


def _json_block(out: str) -> dict:
    body = out.split("```json\n", 1)[1].split("\n```", 1)[0]
    return json.loads(body)


@pytest.mark.asyncio
async def test_export_json_skips_worklogs_by_default():
    client = FakeClient(get_dashboard_overview=OVERVIEW)
    out = await dispatch(ToolName.EXPORT_DATA.value, {"days": 7}, client=client)

    payload = _json_block(out)
    assert payload["summary"]["hours"] == 1234.5
    assert payload["metadata"]["include_details"] is False
    assert payload["accounts"][0]["account"] == "RELATECAREBILL"
    assert "worklogs" not in payload
    assert not client.called("get_detailed_worklogs")


@pytest.mark.asyncio
async def test_export_json_with_details_fetches_worklogs():
    worklogs = WorklogsResponse.model_validate(
        {"worklogs": [{"authorDisplayName": "Ana", "startDate": "2025-09-19T09:00:00Z", "timeSpentHours": 2.5}]}
    )
    client = FakeClient(get_dashboard_overview=OVERVIEW, get_detailed_worklogs=worklogs)
    out = await dispatch(
        ToolName.EXPORT_DATA.value, {"days": 7, "include_details": True}, client=client
    )

    payload = _json_block(out)
    assert payload["worklogs"][0]["author_display_name"] == "Ana"
    assert client.kwargs_of("get_detailed_worklogs") == {"limit": 1000}


@pytest.mark.asyncio
async def test_export_csv():
    client = FakeClient(get_dashboard_overview=OVERVIEW)
    out = await dispatch(ToolName.EXPORT_DATA.value, {"format": "csv"}, client=client)

    assert "```csv\nAccount,Hours,Percentage\nRELATECAREBILL,300.5,24.3%\nINTERNAL,120.0,9.7%\n```" in out
    assert "Top accounts:     34.1% of all hours" in out
