import pytest

import hajjefy_mcp_server  # noqa: F401  (registers every tool)
from dispatcher import ToolName, dispatch
from schemas import AccountsResponse, DailyHoursResponse, WorklogsResponse

from fake_client import FakeClient


def _daily(rows):
    total = sum(r["total_hours"] for r in rows)
    billable = sum(r["billable_hours"] for r in rows)
    return DailyHoursResponse.model_validate(
        {
            "success": True,
            "daily": rows,
            "summary": {
                "totalDays": len(rows),
                "totalHours": total,
                "totalBillableHours": billable,
                "totalEntries": sum(r["entry_count"] for r in rows),
                "avgDailyHours": total / len(rows),
            },
        }
    )


def _row(iso, hours, billable, users=3, entries=10):
    return {"date": iso, "total_hours": hours, "billable_hours": billable, "unique_users": users, "entry_count": entries}


# 2025-09-01 is a Monday
SEVEN_DAYS = [
    _row("2025-09-01", 40.0, 30.0),
    _row("2025-09-02", 36.0, 20.0),
    _row("2025-09-03", 32.0, 16.0),
    _row("2025-09-04", 30.0, 15.0),
    _row("2025-09-05", 24.0, 12.0),
    _row("2025-09-06", 4.0, 0.0, users=1, entries=2),
    _row("2025-09-07", 2.0, 0.0, users=1, entries=1),
]

ACCOUNTS = AccountsResponse.model_validate(
    {
        "accounts": [
            {"account": "INTERNAL", "category": "Internal", "hours": 40.0, "entries": 30, "percentage": 23.3},
            {"account": "RELATECAREBILL", "category": "Billable", "hours": 60.0, "entries": 40, "percentage": 35.0},
            {"account": "CENTENEBILL", "category": "Centene", "hours": 50.0, "entries": 25, "percentage": 29.1},
            {"account": "MISC", "category": "Something New", "hours": 5.0, "entries": 1, "percentage": 2.9},
        ]
    }
)

WORKLOGS = WorklogsResponse.model_validate(
    {
        "worklogs": [
            {
                "authorDisplayName": "Ana",
                "startDate": "2025-09-05T09:15:00Z",
                "accountName": "RELATECAREBILL",
                "accountCategory": "Billable",
                "timeSpentHours": 3.0,
                "billableHours": 3.0,
                "description": "Claims integration review with the RelateCare team and follow-up tasks",
            },
            {
                "authorDisplayName": "Ben",
                "startDate": "2025-09-05T13:00:00Z",
                "accountName": "INTERNAL",
                "timeSpentHours": 1.5,
                "description": "Standup",
            },
            {
                "authorDisplayName": "Ana",
                "startDate": "2025-09-04T10:00:00Z",
                "accountName": "CENTENEBILL",
                "accountCategory": "Centene",
                "timeSpentHours": 5.0,
                "billableHours": 5.0,
            },
        ]
    }
)


@pytest.mark.asyncio
async def test_daily_hours_default_flags():
    client = FakeClient(get_daily_hours=_daily(SEVEN_DAYS), get_accounts_breakdown=ACCOUNTS)
    out = await dispatch(
        ToolName.GET_DAILY_HOURS.value,
        {"from_date": "2025-09-01", "to_date": "2025-09-07"},
        client=client,
    )

    assert out.startswith("Daily Hours Analysis  |  2025-09-01 to 2025-09-07")
    assert "Total hours:         168.0h" in out
    assert "Mon Sep 1: 40.0h total | 30.0h billable (75.0%) | 3 users | 10 entries" in out
    assert "Highest day: 2025-09-01" in out
    assert "Lowest day:  2025-09-07" in out
    assert "Billable:      93.0h (55.4%)" in out

    # Billable and Centene projects are billable; largest first
    assert out.index("1. RelateCare (RELATECAREBILL): 60.0h") < out.index("2. Centene (CENTENEBILL): 50.0h")
    assert "1. INTERNAL: 40.0h (23.3%) - 30 entries" in out
    assert "MISC" not in out

    assert "Weekly Patterns" in out
    assert "Most productive day:  Monday (40.0h average)" in out
    assert "Least productive day: Sunday (2.0h average)" in out

    assert not client.called("get_detailed_worklogs")
    assert "Recent Worklogs" not in out
    assert "Daily Hours Per User" not in out


@pytest.mark.asyncio
async def test_daily_hours_trends_need_seven_rows():
    client = FakeClient(get_daily_hours=_daily(SEVEN_DAYS[:6]), get_accounts_breakdown=ACCOUNTS)
    out = await dispatch(ToolName.GET_DAILY_HOURS.value, {"days": 6}, client=client)
    assert "Weekly Patterns" not in out


@pytest.mark.asyncio
async def test_daily_hours_skips_disabled_sources():
    client = FakeClient(get_daily_hours=_daily(SEVEN_DAYS))
    out = await dispatch(
        ToolName.GET_DAILY_HOURS.value,
        {"include_projects": False, "include_trends": False},
        client=client,
    )
    assert [c[0] for c in client.calls] == ["get_daily_hours"]
    assert "Project/Account Allocation" not in out
    assert "Weekly Patterns" not in out


@pytest.mark.asyncio
async def test_daily_hours_worklogs_and_per_user():
    client = FakeClient(
        get_daily_hours=_daily(SEVEN_DAYS),
        get_detailed_worklogs=WORKLOGS,
    )
    out = await dispatch(
        ToolName.GET_DAILY_HOURS.value,
        {"include_projects": False, "include_worklogs": True, "include_per_user": True},
        client=client,
    )

    assert client.kwargs_of("get_detailed_worklogs") == {"limit": 1000}

    assert "2025-09-05 09:15 | Ana | RELATECAREBILL (Billable) | 3.0h" in out
    assert '"Claims integration review with the RelateCare team and follo..."' in out
    assert "2025-09-05 13:00 | Ben | INTERNAL (Uncategorized) | 1.5h" in out
    assert "(Showing 3 most recent of 3 entries)" in out

    assert "Daily Hours Per User (top 2 active users)" in out
    assert "1. Ana: 8.0h total | 4.0h avg/day | 2 active days" in out
    assert "2. Ben: 1.5h total | 1.5h avg/day | 1 active days" in out
    assert "Sep 4: 5.0h (100% billable, 1 entries)" in out
    assert "Sep 5: 1.5h (0% billable, 1 entries)" in out


@pytest.mark.asyncio
async def test_daily_hours_per_user_alone_fetches_worklogs_without_listing_them():
    client = FakeClient(get_daily_hours=_daily(SEVEN_DAYS), get_detailed_worklogs=WORKLOGS)
    out = await dispatch(
        ToolName.GET_DAILY_HOURS.value,
        {"include_projects": False, "include_per_user": True},
        client=client,
    )
    assert client.called("get_detailed_worklogs")
    assert "Recent Worklogs" not in out
    assert "Daily Hours Per User" in out


@pytest.mark.asyncio
async def test_daily_hours_without_rows_is_no_data():
    empty = DailyHoursResponse.model_validate({"success": True, "daily": []})
    client = FakeClient(get_daily_hours=empty, get_accounts_breakdown=ACCOUNTS)
    out = await dispatch(
        ToolName.GET_DAILY_HOURS.value,
        {"from_date": "2025-09-01", "to_date": "2025-09-07"},
        client=client,
    )
    assert out == "No daily hours data available for 2025-09-01 to 2025-09-07."
