"""
Input validation for MCP tool arguments.

All external input (from Claude or the user) passes through these models
before any API call is made. Invalid input raises ValidationError, which
the dispatcher turns into an invalid-params error — never a stack trace.

Rules enforced here:
  - days: 1–365
  - Date ranges: ISO YYYY-MM-DD, chronological order, at most 365 days
  - Names: letters, spaces, hyphens, apostrophes and periods only
  - Unknown argument names are rejected
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MAX_DAYS = 365
DEFAULT_DAYS = 30
DEFAULT_LONG_DAYS = 90
_NAME_PATTERN = re.compile(r"^[^\W\d_][\w\s.'\-]*$")
_CUSTOMER_PATTERN = re.compile(r"^[\w\s.&'\-]+$")


# ---------------------------------------------------------------------------
# Resolved date window
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DateWindow:
    """An inclusive start..end range plus the day count the API expects."""

    start: date
    end: date
    days: int

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError("start date must be on or before end date")

    def as_params(self) -> dict[str, Any]:
        return {
            "days": self.days,
            "from": self.start.isoformat(),
            "to": self.end.isoformat(),
        }

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def label(self) -> str:
        return f"{self.start.isoformat()} to {self.end.isoformat()}"


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class _ToolArgs(BaseModel):
    """Base for all tool argument models. Blank strings count as omitted."""

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="before")
    @classmethod
    def _blank_to_none(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                k: v for k, v in data.items()
                if not (v is None or (isinstance(v, str) and not v.strip()))
            }
        return data


class NoArgsQuery(_ToolArgs):
    """Tools that take no arguments."""


class DaysQuery(_ToolArgs):
    """A trailing window of N days ending today."""

    days: int = Field(default=DEFAULT_DAYS, ge=1, le=MAX_DAYS)


class DateWindowQuery(DaysQuery):
    """
    Validated date window.

    Date handling:
      - Neither from_date nor to_date → the last `days` days ending today
      - Only from_date → from_date through today
      - Only to_date → `days` days ending on to_date
      - Both → that range
    """

    from_date: date | None = Field(default=None)
    to_date: date | None = Field(default=None)

    @field_validator("from_date", "to_date", mode="before")
    @classmethod
    def _parse_date(cls, v: object) -> date | None:
        if v is None:
            return None
        if isinstance(v, date):
            return v
        try:
            return date.fromisoformat(str(v).strip())
        except ValueError:
            raise ValueError(f"Invalid date {v!r} — use YYYY-MM-DD format")

    @model_validator(mode="after")
    def _validate_range(self) -> "DateWindowQuery":
        if (
            self.from_date is not None
            and self.to_date is not None
            and self.from_date > self.to_date
        ):
            raise ValueError("from_date must be on or before to_date")
        if self.from_date is not None:
            end = self.to_date or max(self.from_date, date.today())
            if (end - self.from_date).days + 1 > MAX_DAYS:
                raise ValueError(f"date range must span at most {MAX_DAYS} days")
        return self

    def window(self, today: date | None = None) -> DateWindow:
        """Return the resolved window, applying defaults for missing dates."""
        today = today or date.today()
        span = timedelta(days=self.days - 1)

        if self.from_date is not None and self.to_date is not None:
            start, end = self.from_date, self.to_date
        elif self.from_date is not None:
            start, end = self.from_date, max(self.from_date, today)
        elif self.to_date is not None:
            start, end = self.to_date - span, self.to_date
        else:
            start, end = today - span, today

        return DateWindow(start=start, end=end, days=(end - start).days + 1)


class CapacityQuery(DaysQuery):
    user_filter: str | None = Field(default=None, max_length=100)

    @field_validator("user_filter")
    @classmethod
    def _strip(cls, v: str | None) -> str | None:
        return v.strip() if v else None


class UserAnalyticsQuery(DaysQuery):
    username: str = Field(..., min_length=1, max_length=100)

    @field_validator("username")
    @classmethod
    def _validate_name(cls, v: str) -> str:
        return _clean_name(v)


class UserAllocationQuery(DateWindowQuery):
    username: str = Field(..., min_length=1, max_length=100)

    @field_validator("username")
    @classmethod
    def _validate_name(cls, v: str) -> str:
        return _clean_name(v)


class ExportQuery(DaysQuery):
    format: Literal["json", "csv"] = "json"
    include_details: bool = False


class DailyHoursQuery(DateWindowQuery):
    include_projects: bool = True
    include_worklogs: bool = False
    include_trends: bool = True
    include_per_user: bool = False


class CustomerAnalysisQuery(DateWindowQuery):
    days: int = Field(default=DEFAULT_LONG_DAYS, ge=1, le=MAX_DAYS)
    customer: str = Field(..., min_length=1, max_length=100)

    @field_validator("customer")
    @classmethod
    def _validate_customer(cls, v: str) -> str:
        return _clean_customer(v)


class TamInsightsQuery(DateWindowQuery):
    days: int = Field(default=DEFAULT_LONG_DAYS, ge=1, le=MAX_DAYS)
    min_hours: float = Field(default=5.0, ge=0, le=1000)
    customer: str | None = Field(default=None, max_length=100)

    @field_validator("customer")
    @classmethod
    def _validate_customer(cls, v: str | None) -> str | None:
        return _clean_customer(v) if v else None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _clean_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Username cannot be empty")
    if not _NAME_PATTERN.match(v):
        raise ValueError(
            "Username may only contain letters, spaces, hyphens, apostrophes and periods"
        )
    return v


def _clean_customer(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Customer cannot be empty")
    if not _CUSTOMER_PATTERN.match(v):
        raise ValueError("Customer may only contain letters, digits, spaces and - _ . & '")
    return v
