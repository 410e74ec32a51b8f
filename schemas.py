"""
Typed response schemas for the Hajjefy API.

Every payload is validated here, at the client boundary, so aggregators
work on attributes instead of optional dict lookups. The API mixes
camelCase and snake_case keys; aliases map both onto snake_case fields.

Absent or null fields fall back to their declared defaults: zero for
hours and counts, empty string for labels, empty list for collections.
"""
from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class _Payload(BaseModel):
    """Base for every response schema: ignore unknown keys, default out nulls."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class AccountCategory(str, Enum):
    BILLABLE = "Billable"
    INTERNAL = "Internal"
    CENTENE = "Centene"
    NON_BILLABLE = "Non-Billable"
    UNCATEGORIZED = "Uncategorized"


BILLABLE_CATEGORIES = frozenset({AccountCategory.BILLABLE, AccountCategory.CENTENE})
INTERNAL_CATEGORIES = frozenset({AccountCategory.INTERNAL, AccountCategory.NON_BILLABLE})


def _coerce_category(value: Any) -> AccountCategory:
    try:
        return AccountCategory(str(value).strip())
    except ValueError:
        return AccountCategory.UNCATEGORIZED


# ---------------------------------------------------------------------------
# Shared pieces
# ---------------------------------------------------------------------------


class DateRangeInfo(_Payload):
    start: str = Field(default="", alias="from")
    end: str = Field(default="", alias="to")


class AccountRecord(_Payload):
    """One billing/project code and the time logged against it."""

    account: str = ""
    category: AccountCategory = AccountCategory.UNCATEGORIZED
    hours: float = 0.0
    entries: int = 0
    percentage: float = 0.0

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, v: Any) -> AccountCategory:
        return _coerce_category(v)

    @property
    def is_billable(self) -> bool:
        return self.category in BILLABLE_CATEGORIES


# ---------------------------------------------------------------------------
# /api/dashboard/overview
# ---------------------------------------------------------------------------


class OverviewTotals(_Payload):
    hours: float = 0.0
    entries: int = 0
    active_days: int = Field(default=0, alias="activeDays")
    avg_hours_per_day: float = Field(default=0.0, alias="avgHoursPerDay")


class TopAccount(_Payload):
    account: str = ""
    total_hours: float = 0.0
    percentage: float = 0.0


class RecentDay(_Payload):
    date: str = ""
    total_hours: float = 0.0
    entry_count: int = 0


class DatabaseDateRange(_Payload):
    earliest: str = ""
    latest: str = ""


class DatabaseInfo(_Payload):
    total_worklogs: int = Field(default=0, alias="totalWorklogs")
    date_range: DatabaseDateRange = Field(default_factory=DatabaseDateRange, alias="dateRange")
    unique_authors: int = Field(default=0, alias="uniqueAuthors")
    unique_accounts: int = Field(default=0, alias="uniqueAccounts")
    status: str = ""


class DashboardOverview(_Payload):
    date_range: DateRangeInfo = Field(default_factory=DateRangeInfo, alias="dateRange")
    totals: OverviewTotals = Field(default_factory=OverviewTotals)
    top_accounts: list[TopAccount] = Field(default_factory=list, alias="topAccounts")
    recent_days: list[RecentDay] = Field(default_factory=list, alias="recentDays")
    database: DatabaseInfo = Field(default_factory=DatabaseInfo)


# ---------------------------------------------------------------------------
# /api/dashboard/billable-analysis
# ---------------------------------------------------------------------------


class BillableSummary(_Payload):
    billable_hours: float = Field(default=0.0, alias="billableHours")
    non_billable_hours: float = Field(default=0.0, alias="nonBillableHours")
    billable_percentage: float = Field(default=0.0, alias="billablePercentage")


class BillableAccount(_Payload):
    account: str = ""
    billable_hours: float = Field(default=0.0, alias="billableHours")


class MonthlyBillable(_Payload):
    month: str = ""
    billable_hours: float = Field(default=0.0, alias="billableHours")
    billable_percentage: float = Field(default=0.0, alias="billablePercentage")


class BillableAnalysis(_Payload):
    summary: BillableSummary = Field(default_factory=BillableSummary)
    top_billable_accounts: list[BillableAccount] = Field(
        default_factory=list, alias="topBillableAccounts"
    )
    monthly_trend: list[MonthlyBillable] = Field(default_factory=list, alias="monthlyTrend")


# ---------------------------------------------------------------------------
# /api/dashboard/user-profile/{username}
# ---------------------------------------------------------------------------


class DailyBillableTrend(_Payload):
    date: str = ""
    total_hours: float = Field(default=0.0, alias="totalHours")
    billable_hours: float = Field(default=0.0, alias="billableHours")
    billable_percentage: float = Field(default=0.0, alias="billablePercentage")
    worklog_count: int = Field(default=0, alias="worklogCount")


class LastActivity(_Payload):
    last_worklog_date: str | None = Field(default=None, alias="lastWorklogDate")
    days_since_last_activity: int | None = Field(default=None, alias="daysSinceLastActivity")
    total_worklogs: int | None = Field(default=None, alias="totalWorklogs")


class UserProfile(_Payload):
    display_name: str = Field(default="", alias="displayName")
    daily_billable_trends: list[DailyBillableTrend] = Field(
        default_factory=list, alias="dailyBillableTrends"
    )
    last_activity: LastActivity = Field(default_factory=LastActivity, alias="lastActivity")
    account_breakdown: list[AccountRecord] = Field(default_factory=list, alias="accountBreakdown")


class UserProfileResponse(_Payload):
    success: bool = False
    user_profile: UserProfile | None = Field(default=None, alias="userProfile")


# ---------------------------------------------------------------------------
# /api/dashboard/team-workload-overview
# ---------------------------------------------------------------------------


class TeamMember(_Payload):
    user_name: str = Field(default="", alias="userName")
    total_hours: float = Field(default=0.0, alias="totalHours")
    billable_hours: float = Field(default=0.0, alias="billableHours")
    active_days: int = Field(default=0, alias="activeDays")
    workload_score: float = Field(default=0.0, alias="workloadScore")


class TeamWorkloadSummary(_Payload):
    total_members: int = Field(default=0, alias="totalMembers")
    avg_hours_per_member: float = Field(default=0.0, alias="avgHoursPerMember")


class TeamWorkload(_Payload):
    summary: TeamWorkloadSummary = Field(default_factory=TeamWorkloadSummary)
    members: list[TeamMember] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# /api/dashboard/capacity-analysis
# ---------------------------------------------------------------------------


class Scheme(_Payload):
    scheme_name: str = Field(default="Unknown", alias="schemeName")
    hours_per_day: float = Field(default=0.0, alias="hoursPerDay")


class CapacityUser(_Payload):
    user_name: str = Field(default="", alias="userName")
    avg_utilization: float = Field(default=0.0, alias="avgUtilization")
    total_actual_hours: float = Field(default=0.0, alias="totalActualHours")
    total_expected_hours: float = Field(default=0.0, alias="totalExpectedHours")
    over_under_total: float = Field(default=0.0, alias="overUnderTotal")
    total_time_off_days: float = Field(default=0.0, alias="totalTimeOffDays")
    total_time_off_hours: float = Field(default=0.0, alias="totalTimeOffHours")
    workload_scheme: Scheme = Field(default_factory=Scheme, alias="workloadScheme")
    holiday_scheme: Scheme = Field(default_factory=Scheme, alias="holidayScheme")
    total_days_worked: int = Field(default=0, alias="totalDaysWorked")
    total_worklogs: int = Field(default=0, alias="totalWorklogs")

    @property
    def utilization(self) -> float:
        """Actual over expected hours as a percentage; reported average when expected is 0."""
        if self.total_expected_hours > 0:
            return self.total_actual_hours / self.total_expected_hours * 100
        return self.avg_utilization


class CapacitySummary(_Payload):
    total_users: int = Field(default=0, alias="totalUsers")
    team_total_actual_hours: float = Field(default=0.0, alias="teamTotalActualHours")
    team_total_expected_hours: float = Field(default=0.0, alias="teamTotalExpectedHours")
    team_avg_utilization: float = Field(default=0.0, alias="teamAvgUtilization")


class CapacityData(_Payload):
    summary: CapacitySummary = Field(default_factory=CapacitySummary)
    users: list[CapacityUser] = Field(default_factory=list)


class CapacityResponse(_Payload):
    capacity: CapacityData = Field(default_factory=CapacityData)


# ---------------------------------------------------------------------------
# /api/dashboard/worklogs
# ---------------------------------------------------------------------------


class Worklog(_Payload):
    author_display_name: str = Field(default="Unknown", alias="authorDisplayName")
    start_date: str = Field(default="", alias="startDate")
    account_name: str = Field(default="", alias="accountName")
    account_category: str = Field(default="", alias="accountCategory")
    time_spent_hours: float = Field(default=0.0, alias="timeSpentHours")
    billable_hours: float = Field(default=0.0, alias="billableHours")
    description: str = ""


class WorklogsResponse(_Payload):
    worklogs: list[Worklog] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# /api/dashboard/daily
# ---------------------------------------------------------------------------


class DailyRow(_Payload):
    date: str = ""
    total_hours: float = 0.0
    billable_hours: float = 0.0
    unique_users: int = 0
    entry_count: int = 0


class DailySummary(_Payload):
    total_days: int = Field(default=0, alias="totalDays")
    total_hours: float = Field(default=0.0, alias="totalHours")
    total_billable_hours: float = Field(default=0.0, alias="totalBillableHours")
    total_entries: int = Field(default=0, alias="totalEntries")
    avg_daily_hours: float = Field(default=0.0, alias="avgDailyHours")
    avg_utilization: float = Field(default=0.0, alias="avgUtilization")


class DailyHoursResponse(_Payload):
    success: bool = False
    date_range: DateRangeInfo = Field(default_factory=DateRangeInfo, alias="dateRange")
    daily: list[DailyRow] = Field(default_factory=list)
    summary: DailySummary = Field(default_factory=DailySummary)


# ---------------------------------------------------------------------------
# /api/dashboard/accounts
# ---------------------------------------------------------------------------


class AccountsResponse(_Payload):
    accounts: list[AccountRecord] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# /api/sync/status, /api/health
# ---------------------------------------------------------------------------


class SyncStatus(_Payload):
    status: str = "unknown"
    last_sync: str | None = Field(default=None, alias="lastSync")
    last_successful_sync: str | None = Field(default=None, alias="lastSuccessfulSync")
    next_sync: str | None = Field(default=None, alias="nextSync")
    records_synced: int = Field(default=0, alias="recordsSynced")
    errors: list[str] = Field(default_factory=list)


class HealthStatus(_Payload):
    status: str = "unknown"
    database: str = ""
    timestamp: str = ""


# ---------------------------------------------------------------------------
# /.netlify/functions/*
# ---------------------------------------------------------------------------


class TamUser(_Payload):
    user_name: str = Field(default="", alias="userName")
    tam_hours: float = Field(default=0.0, alias="tamHours")
    worklog_count: int = Field(default=0, alias="worklogCount")


class TamAccount(_Payload):
    account: str = ""
    hours: float = 0.0


class TamAnalysis(_Payload):
    success: bool = True
    total_tam_hours: float = Field(default=0.0, alias="totalTamHours")
    users: list[TamUser] = Field(default_factory=list)
    accounts: list[TamAccount] = Field(default_factory=list)


class WorkloadRanking(_Payload):
    user_name: str = Field(default="", alias="userName")
    total_hours: float = Field(default=0.0, alias="totalHours")
    billable_hours: float = Field(default=0.0, alias="billableHours")


class WorkloadRankings(_Payload):
    rankings: list[WorkloadRanking] = Field(default_factory=list)


class SalesforceAccount(_Payload):
    name: str = ""
    industry: str = ""
    account_type: str = Field(default="", alias="type")
    owner: str = ""
    annual_revenue: float | None = Field(default=None, alias="annualRevenue")
