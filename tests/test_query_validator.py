from datetime import date, timedelta

import pytest
from pydantic import ValidationError

from query_validator import (
    CapacityQuery,
    CustomerAnalysisQuery,
    DailyHoursQuery,
    DateWindow,
    DateWindowQuery,
    DaysQuery,
    ExportQuery,
    NoArgsQuery,
    TamInsightsQuery,
    UserAnalyticsQuery,
)

TODAY = date(2025, 9, 20)


def test_days_bounds():
    assert DaysQuery().days == 30
    assert DaysQuery(days=365).days == 365
    with pytest.raises(ValidationError):
        DaysQuery(days=0)
    with pytest.raises(ValidationError):
        DaysQuery(days=366)


def test_unknown_arguments_rejected():
    with pytest.raises(ValidationError):
        DaysQuery(days=7, weeks=1)
    with pytest.raises(ValidationError):
        NoArgsQuery.model_validate({"anything": 1})


def test_default_window_ends_today():
    window = DateWindowQuery(days=7).window(today=TODAY)
    assert window == DateWindow(start=date(2025, 9, 14), end=TODAY, days=7)
    assert window.label() == "2025-09-14 to 2025-09-20"


def test_explicit_window():
    window = DateWindowQuery(from_date="2025-09-01", to_date="2025-09-15").window(today=TODAY)
    assert (window.start, window.end, window.days) == (date(2025, 9, 1), date(2025, 9, 15), 15)
    assert window.as_params() == {"days": 15, "from": "2025-09-01", "to": "2025-09-15"}


def test_from_only_runs_through_today():
    today = date.today()
    start = today - timedelta(days=10)
    window = DateWindowQuery(from_date=start.isoformat()).window(today=today)
    assert (window.start, window.end, window.days) == (start, today, 11)


def test_from_in_future_is_single_day():
    start = date.today() + timedelta(days=10)
    window = DateWindowQuery(from_date=start.isoformat()).window(today=date.today())
    assert window.start == window.end == start
    assert window.days == 1


def test_explicit_range_longer_than_a_year_rejected():
    DateWindowQuery(from_date="2024-01-01", to_date="2024-12-30")  # 365 days
    with pytest.raises(ValidationError, match="at most 365 days"):
        DateWindowQuery(from_date="2023-01-01", to_date="2025-01-01")


def test_from_only_range_longer_than_a_year_rejected():
    with pytest.raises(ValidationError, match="at most 365 days"):
        DateWindowQuery(from_date="2023-01-01")
    start = date.today() - timedelta(days=364)
    assert DateWindowQuery(from_date=start.isoformat()).window().days == 365


def test_to_only_counts_back_days():
    window = DateWindowQuery(days=10, to_date="2025-09-10").window(today=TODAY)
    assert (window.start, window.end) == (date(2025, 9, 1), date(2025, 9, 10))


def test_blank_dates_count_as_omitted():
    query = DateWindowQuery.model_validate({"days": 5, "from_date": "", "to_date": "  "})
    assert query.from_date is None and query.to_date is None


def test_reversed_range_rejected():
    with pytest.raises(ValidationError, match="from_date must be on or before to_date"):
        DateWindowQuery(from_date="2025-09-15", to_date="2025-09-01")


def test_bad_date_format_rejected():
    with pytest.raises(ValidationError, match="YYYY-MM-DD"):
        DateWindowQuery(from_date="09/01/2025")


def test_window_rejects_reversed_bounds():
    with pytest.raises(ValueError):
        DateWindow(start=date(2025, 9, 2), end=date(2025, 9, 1), days=0)


def test_username_validation():
    assert UserAnalyticsQuery(username="  Nadim Hajje ").username == "Nadim Hajje"
    assert UserAnalyticsQuery(username="Mary-Jane O'Neil").username == "Mary-Jane O'Neil"
    with pytest.raises(ValidationError):
        UserAnalyticsQuery(username="")
    with pytest.raises(ValidationError):
        UserAnalyticsQuery(username="robert'); DROP TABLE")
    with pytest.raises(ValidationError):
        UserAnalyticsQuery()


def test_customer_required_for_customer_analysis():
    with pytest.raises(ValidationError):
        CustomerAnalysisQuery()
    query = CustomerAnalysisQuery(customer="RelateCare")
    assert query.days == 90


def test_tam_defaults():
    query = TamInsightsQuery.model_validate({"customer": ""})
    assert query.days == 90
    assert query.min_hours == 5.0
    assert query.customer is None
    with pytest.raises(ValidationError):
        TamInsightsQuery(min_hours=-1)


def test_export_format_restricted():
    assert ExportQuery(format="csv").format == "csv"
    with pytest.raises(ValidationError):
        ExportQuery(format="xml")


def test_daily_hours_flag_defaults():
    query = DailyHoursQuery()
    assert query.include_projects is True
    assert query.include_worklogs is False
    assert query.include_trends is True
    assert query.include_per_user is False


def test_capacity_filter_blank_is_none():
    assert CapacityQuery.model_validate({"user_filter": ""}).user_filter is None
    assert CapacityQuery(user_filter=" john ").user_filter == "john"
