"""
Metric aggregators — pure functions from typed payloads to report data.

Nothing in this module performs I/O or formats text. Tool modules call
these and render the results.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum

from customer_resolver import resolve_name
from query_validator import DateWindow
from schemas import (
    AccountRecord,
    CapacityUser,
    DailyBillableTrend,
    DailyRow,
    TamUser,
    WorkloadRanking,
    Worklog,
)

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

MIN_DAYS_FOR_TRENDS = 7
TOP_USERS_SUMMARY = 15
TOP_USERS_DETAIL = 10
RECENT_DAYS_PER_USER = 7

OVER_CAPACITY_ABOVE = 100.0
OPTIMAL_FROM = 90.0

EXPERT_MIN_HOURS = 40.0
EXPERIENCED_MIN_HOURS = 20.0
DEFAULT_MIN_TAM_HOURS = 5.0


def percentage(part: float, whole: float) -> float:
    """part / whole × 100, or 0 when whole is 0."""
    return part / whole * 100 if whole else 0.0


def parse_day(raw: str) -> date | None:
    """
    Calendar date of an ISO date or timestamp string.

    Timestamps carrying an offset are converted to UTC first.
    """
    if not raw:
        return None
    try:
        if len(raw) == 10:
            return date.fromisoformat(raw)
        dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.date()


# ---------------------------------------------------------------------------
# Daily / weekly rollups
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WeekdayAverage:
    day: str
    avg_hours: float
    avg_billable: float
    days_analyzed: int


@dataclass(frozen=True)
class WeeklyPattern:
    weekdays: list[WeekdayAverage]

    @property
    def most_productive(self) -> WeekdayAverage:
        return self.weekdays[0]

    @property
    def least_productive(self) -> WeekdayAverage:
        last = self.weekdays[-1]
        if last.avg_hours == self.weekdays[0].avg_hours:
            return self.weekdays[0]
        return last


def weekly_pattern(daily: Sequence[DailyRow]) -> WeeklyPattern | None:
    """
    Average hours per weekday, busiest first.

    Returns None for fewer than MIN_DAYS_FOR_TRENDS rows — too little data
    for a pattern to mean anything.
    """
    if len(daily) < MIN_DAYS_FOR_TRENDS:
        return None

    totals: dict[str, list[float]] = {}
    for row in daily:
        day = parse_day(row.date)
        if day is None:
            continue
        bucket = totals.setdefault(WEEKDAYS[day.weekday()], [0.0, 0.0, 0])
        bucket[0] += row.total_hours
        bucket[1] += row.billable_hours
        bucket[2] += 1

    if not totals:
        return None

    averages = [
        WeekdayAverage(
            day=name,
            avg_hours=hours / count,
            avg_billable=billable / count,
            days_analyzed=int(count),
        )
        for name, (hours, billable, count) in totals.items()
    ]
    averages.sort(key=lambda w: w.avg_hours, reverse=True)
    return WeeklyPattern(weekdays=averages)


def peak_and_low_days(daily: Sequence[DailyRow]) -> tuple[DailyRow, DailyRow] | None:
    """Highest and lowest day by total hours; ties keep their original order."""
    if not daily:
        return None
    ranked = sorted(daily, key=lambda row: row.total_hours, reverse=True)
    return ranked[0], ranked[-1]


# ---------------------------------------------------------------------------
# Per-user daily matrix
# ---------------------------------------------------------------------------


@dataclass
class DayTotals:
    total_hours: float = 0.0
    billable_hours: float = 0.0
    entry_count: int = 0


@dataclass(frozen=True)
class UserSummary:
    user: str
    total_hours: float
    active_days: int

    @property
    def avg_daily_hours(self) -> float:
        return self.total_hours / self.active_days if self.active_days else 0.0


UserDailyMatrix = dict[str, dict[date, DayTotals]]


def build_user_daily_matrix(worklogs: Iterable[Worklog]) -> UserDailyMatrix:
    """Fold worklogs into {user: {day: totals}}. Undated worklogs are skipped."""
    matrix: UserDailyMatrix = {}
    for wl in worklogs:
        day = parse_day(wl.start_date)
        if day is None:
            continue
        totals = matrix.setdefault(wl.author_display_name, {}).setdefault(day, DayTotals())
        totals.total_hours += max(0.0, wl.time_spent_hours)
        totals.billable_hours += max(0.0, wl.billable_hours)
        totals.entry_count += 1
    return matrix


def rank_users(matrix: UserDailyMatrix, limit: int = TOP_USERS_SUMMARY) -> list[UserSummary]:
    """Users ordered by total hours, most active first."""
    summaries = [
        UserSummary(
            user=user,
            total_hours=sum(d.total_hours for d in days.values()),
            active_days=len(days),
        )
        for user, days in matrix.items()
    ]
    summaries.sort(key=lambda s: s.total_hours, reverse=True)
    return summaries[:limit]


def recent_user_days(
    matrix: UserDailyMatrix,
    user: str,
    count: int = RECENT_DAYS_PER_USER,
) -> list[tuple[date, DayTotals]]:
    """The user's last `count` dates, oldest first."""
    days = matrix.get(user, {})
    return [(day, days[day]) for day in sorted(days)[-count:]]


# ---------------------------------------------------------------------------
# Capacity
# ---------------------------------------------------------------------------


class CapacityStatus(str, Enum):
    OVER_CAPACITY = "Over-Capacity"
    OPTIMAL = "Optimal"
    UNDER_UTILIZED = "Under-Utilized"


def capacity_status(utilization: float) -> CapacityStatus:
    if utilization > OVER_CAPACITY_ABOVE:
        return CapacityStatus.OVER_CAPACITY
    if utilization >= OPTIMAL_FROM:
        return CapacityStatus.OPTIMAL
    return CapacityStatus.UNDER_UTILIZED


@dataclass
class CapacityBreakdown:
    over_capacity: list[CapacityUser] = field(default_factory=list)
    optimal: list[CapacityUser] = field(default_factory=list)
    under_utilized: list[CapacityUser] = field(default_factory=list)

    def bucket(self, status: CapacityStatus) -> list[CapacityUser]:
        return {
            CapacityStatus.OVER_CAPACITY: self.over_capacity,
            CapacityStatus.OPTIMAL: self.optimal,
            CapacityStatus.UNDER_UTILIZED: self.under_utilized,
        }[status]


def categorize_capacity(users: Iterable[CapacityUser]) -> CapacityBreakdown:
    """Partition users by capacity status. Every user lands in exactly one bucket."""
    breakdown = CapacityBreakdown()
    for user in users:
        breakdown.bucket(capacity_status(user.utilization)).append(user)
    return breakdown


def capacity_gap(actual_hours: float, expected_hours: float) -> float:
    """Positive: team is over capacity. Negative: unused capacity."""
    return actual_hours - expected_hours


def filter_capacity_users(
    users: Iterable[CapacityUser],
    user_filter: str | None = None,
) -> list[CapacityUser]:
    """Users whose name contains user_filter (case-insensitive), highest utilization first."""
    selected = list(users)
    if user_filter:
        needle = user_filter.lower()
        selected = [u for u in selected if needle in u.user_name.lower()]
    selected.sort(key=lambda u: u.utilization, reverse=True)
    return selected


# ---------------------------------------------------------------------------
# TAM tiering
# ---------------------------------------------------------------------------


class TamTier(str, Enum):
    EXPERT = "Expert"
    EXPERIENCED = "Experienced"
    DEVELOPING = "Developing"


def tam_tier(tam_hours: float) -> TamTier:
    if tam_hours >= EXPERT_MIN_HOURS:
        return TamTier.EXPERT
    if tam_hours >= EXPERIENCED_MIN_HOURS:
        return TamTier.EXPERIENCED
    return TamTier.DEVELOPING


def tam_recommendation(tam_hours: float, tam_percentage: float) -> str:
    # Order matters: first matching row wins
    if tam_hours >= 60 and tam_percentage >= 30:
        return "Strategic Account Lead"
    if tam_hours >= 40:
        return "Senior TAM Resource"
    if tam_hours >= 20 and tam_percentage >= 20:
        return "Active TAM Contributor"
    if tam_hours >= 20:
        return "TAM Support Role"
    return "Developing TAM Skills"


@dataclass(frozen=True)
class TamUserRecord:
    user_name: str
    tam_hours: float
    total_hours: float
    tam_percentage: float
    worklog_count: int

    @property
    def tier(self) -> TamTier:
        return tam_tier(self.tam_hours)

    @property
    def recommendation(self) -> str:
        return tam_recommendation(self.tam_hours, self.tam_percentage)


@dataclass
class TamTiers:
    expert: list[TamUserRecord] = field(default_factory=list)
    experienced: list[TamUserRecord] = field(default_factory=list)
    developing: list[TamUserRecord] = field(default_factory=list)

    def all(self) -> list[TamUserRecord]:
        return [*self.expert, *self.experienced, *self.developing]


def build_tam_records(
    tam_users: Iterable[TamUser],
    rankings: Iterable[WorkloadRanking],
    min_hours: float = DEFAULT_MIN_TAM_HOURS,
) -> list[TamUserRecord]:
    """
    Join TAM hours with overall workload and drop users below min_hours.

    Total hours come from the ranking with exactly the same user name;
    users absent from the rankings get 0 total hours and 0%.
    """
    total_by_user = {r.user_name: r.total_hours for r in rankings}
    records = []
    for tu in tam_users:
        if tu.tam_hours < min_hours:
            continue
        total = total_by_user.get(tu.user_name, 0.0)
        records.append(
            TamUserRecord(
                user_name=tu.user_name,
                tam_hours=tu.tam_hours,
                total_hours=total,
                tam_percentage=percentage(tu.tam_hours, total),
                worklog_count=tu.worklog_count,
            )
        )
    records.sort(key=lambda r: r.tam_hours, reverse=True)
    return records


def tier_tam_users(records: Iterable[TamUserRecord]) -> TamTiers:
    tiers = TamTiers()
    for rec in records:
        {
            TamTier.EXPERT: tiers.expert,
            TamTier.EXPERIENCED: tiers.experienced,
            TamTier.DEVELOPING: tiers.developing,
        }[rec.tier].append(rec)
    return tiers


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CustomerSummary:
    name: str
    accounts: list[AccountRecord]
    total_hours: float
    billable_hours: float
    entries: int
    percentage: float

    @property
    def primary_account(self) -> AccountRecord:
        return self.accounts[0]

    @property
    def non_billable_hours(self) -> float:
        return self.total_hours - self.billable_hours

    @property
    def billable_percentage(self) -> float:
        return percentage(self.billable_hours, self.total_hours)


def aggregate_customer(name: str, accounts: Sequence[AccountRecord]) -> CustomerSummary:
    """
    Sum a customer's accounts into one summary.

    Only Billable and Centene accounts count towards billable hours.
    Accounts are ordered largest first, so accounts[0] is the primary.
    """
    if not accounts:
        raise ValueError("aggregate_customer needs at least one account")
    ordered = sorted(accounts, key=lambda a: a.hours, reverse=True)
    return CustomerSummary(
        name=name,
        accounts=ordered,
        total_hours=sum(a.hours for a in ordered),
        billable_hours=sum(a.hours for a in ordered if a.is_billable),
        entries=sum(a.entries for a in ordered),
        percentage=sum(a.percentage for a in ordered),
    )


@dataclass
class CustomerAllocation:
    name: str
    hours: float = 0.0
    billable_hours: float = 0.0
    entries: int = 0
    accounts: list[str] = field(default_factory=list)


def allocate_by_customer(accounts: Iterable[AccountRecord]) -> list[CustomerAllocation]:
    """Group a user's accounts by resolved customer name, largest first."""
    by_name: dict[str, CustomerAllocation] = {}
    for acc in accounts:
        name = resolve_name(acc.account)
        alloc = by_name.setdefault(name, CustomerAllocation(name=name))
        alloc.hours += acc.hours
        if acc.is_billable:
            alloc.billable_hours += acc.hours
        alloc.entries += acc.entries
        alloc.accounts.append(acc.account)
    return sorted(by_name.values(), key=lambda a: a.hours, reverse=True)


# ---------------------------------------------------------------------------
# User period totals
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UserPeriodTotals:
    trends: list[DailyBillableTrend]
    total_hours: float
    billable_hours: float
    entries: int
    active_days: int

    @property
    def non_billable_hours(self) -> float:
        return self.total_hours - self.billable_hours

    @property
    def avg_hours_per_day(self) -> float:
        return self.total_hours / self.active_days if self.active_days else 0.0


def summarize_user_trends(
    trends: Iterable[DailyBillableTrend],
    window: DateWindow,
) -> UserPeriodTotals:
    """Totals over the daily trends that fall inside the window."""
    selected = [
        t for t in trends
        if (day := parse_day(t.date)) is not None and window.contains(day)
    ]
    selected.sort(key=lambda t: parse_day(t.date))
    return UserPeriodTotals(
        trends=selected,
        total_hours=sum(t.total_hours for t in selected),
        billable_hours=sum(t.billable_hours for t in selected),
        entries=sum(t.worklog_count for t in selected),
        active_days=sum(1 for t in selected if t.total_hours > 0),
    )
