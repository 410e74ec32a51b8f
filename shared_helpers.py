"""
Shared helpers for MCP tool modules.

Contains:
  - Number / date formatting utilities
  - Report section builders
  - Named concurrent fetches (gather_named)
  - User-facing error descriptions

All tool modules import from here. No tool-specific logic belongs in this file.
"""
from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Iterable, Mapping
from datetime import date
from typing import Any

from pydantic import ValidationError

from customer_resolver import resolve_name
from hajjefy_client import HajjefyAPIError, HajjefyAuthError, HajjefyNotFoundError

SEP = "─" * 60


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def fmt_hours(h: float) -> str:
    """Format hours with one decimal, e.g. '12.5h'."""
    return f"{h:,.1f}h"


def fmt_pct(p: float) -> str:
    return f"{p:.1f}%"


def fmt_signed_hours(h: float) -> str:
    sign = "+" if h > 0 else ""
    return f"{sign}{h:,.1f}h"


def fmt_day(day: date) -> str:
    """Short weekday label, e.g. 'Mon Sep 1'."""
    return f"{day.strftime('%a %b')} {day.day}"


def fmt_short_day(day: date) -> str:
    """Month and day only, e.g. 'Sep 1'."""
    return f"{day.strftime('%b')} {day.day}"


def fmt_iso_day(raw: str | None) -> str:
    """First ten characters of an ISO timestamp, or '—'."""
    return raw[:10] if raw else "—"


def account_label(code: str) -> str:
    """'RelateCare (RELATECAREBILL)', or just the code when it resolves to itself."""
    name = resolve_name(code)
    return code if name == code else f"{name} ({code})"


def report_header(title: str, subtitle: str = "") -> list[str]:
    """Title line (with optional '  |  subtitle') and separator."""
    heading = f"{title}  |  {subtitle}" if subtitle else title
    return [heading, SEP]


def section(title: str) -> list[str]:
    return ["", title]


def numbered(lines: Iterable[str], empty: str = "  (none)") -> list[str]:
    """Prefix lines with '  1. ', '  2. ' …; a placeholder when there are none."""
    out = [f"  {i}. {line}" for i, line in enumerate(lines, start=1)]
    return out or [empty]


# ---------------------------------------------------------------------------
# Concurrent fetches
# ---------------------------------------------------------------------------


async def gather_named(fetches: Mapping[str, Awaitable[Any]]) -> dict[str, Any]:
    """
    Await independent fetches concurrently and return results by name.

    The first failure propagates. Callers leave optional fetches out of the
    mapping entirely rather than scheduling and discarding them.
    """
    results = await asyncio.gather(*fetches.values())
    return dict(zip(fetches.keys(), results))


# ---------------------------------------------------------------------------
# Error formatting
# ---------------------------------------------------------------------------


def describe_error(exc: BaseException) -> str:
    """Message for an exception that ends a tool call. Auth messages pass through verbatim."""
    if isinstance(exc, HajjefyAuthError):
        return str(exc)
    if isinstance(exc, HajjefyNotFoundError):
        return f"{exc} (HTTP 404)"
    if isinstance(exc, HajjefyAPIError):
        return str(exc)
    if isinstance(exc, ValidationError):
        first = exc.errors()[0]
        return f"Invalid input: {first['msg']}"
    return str(exc) or type(exc).__name__


def describe_validation_error(exc: ValidationError) -> str:
    """One line per invalid field, e.g. 'days: Input should be less than or equal to 365'."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "arguments"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)
