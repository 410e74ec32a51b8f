"""
Customer name resolution for Tempo account codes.

Account codes look like "RELATECAREBILL" or "ACME-CSM": a customer stem
followed by an optional work-type suffix. resolve_name() strips the suffix
and maps the stem to a display name; the find_* helpers locate the account
(or every account) that belongs to a free-text customer name.

Nothing here raises on a miss — an empty result is a valid answer.
"""
from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from types import MappingProxyType

from schemas import AccountRecord

# First match wins; NONBILL must precede BILL
ACCOUNT_SUFFIXES: tuple[str, ...] = ("NONBILL", "BILL", "CSM", "TECH", "SALES")

CUSTOMER_NAMES: MappingProxyType[str, str] = MappingProxyType(
    {
        "RELATECARE": "RelateCare",
        "CENTENE": "Centene",
    }
)

_NAMES_BY_LOWER: MappingProxyType[str, str] = MappingProxyType(
    {name.lower(): name for name in CUSTOMER_NAMES.values()}
)

_NON_LETTERS = re.compile(r"[^a-z]")
_SEPARATORS = " -_"
_SIMILAR_PREFIX_LEN = 3


def resolve_name(account_code: str) -> str:
    """
    Map an account code to a human-readable customer name.

    A value that already is a known customer name resolves to itself.
    Unknown stems are returned verbatim (after suffix stripping).
    """
    code = account_code.strip()
    known = _NAMES_BY_LOWER.get(code.lower())
    if known is not None:
        return known

    stem = strip_suffix(code)
    return CUSTOMER_NAMES.get(stem.upper(), stem)


def strip_suffix(account_code: str) -> str:
    """Remove the first matching work-type suffix and any trailing separator."""
    upper = account_code.upper()
    for suffix in ACCOUNT_SUFFIXES:
        if upper.endswith(suffix) and len(upper) > len(suffix):
            return account_code[: -len(suffix)].rstrip(_SEPARATORS)
    return account_code


def normalize_code(text: str) -> str:
    """Lower-case and drop everything that is not a letter."""
    return _NON_LETTERS.sub("", text.lower())


def find_account(accounts: Sequence[AccountRecord], text: str) -> AccountRecord | None:
    """
    Locate a single account for free-text input.

    Tries, in order: exact code (case-insensitive), resolved name equal to
    or containing the input, and finally code containing the input.
    """
    needle = text.strip().lower()
    if not needle:
        return None

    for acc in accounts:
        if acc.account.lower() == needle:
            return acc

    for acc in accounts:
        name = resolve_name(acc.account).lower()
        if name == needle or needle in name:
            return acc

    for acc in accounts:
        if needle in acc.account.lower():
            return acc

    return None


def find_customer_accounts(
    accounts: Iterable[AccountRecord],
    text: str,
) -> list[AccountRecord]:
    """
    Collect every account that belongs to the customer named by `text`.

    An account matches when its normalized code contains the normalized
    input, or its resolved name contains the input (case-insensitive).
    """
    needle = text.strip().lower()
    normalized = normalize_code(needle)
    if not needle:
        return []

    matches: list[AccountRecord] = []
    for acc in accounts:
        if normalized and normalized in normalize_code(acc.account):
            matches.append(acc)
        elif needle in resolve_name(acc.account).lower():
            matches.append(acc)
    return matches


def find_similar_customers(
    accounts: Iterable[AccountRecord],
    text: str,
    limit: int = 5,
) -> list[str]:
    """
    Suggest customer names for a lookup that matched nothing.

    A name is similar when it contains the first three characters of the
    input. Results are distinct names ranked by their account hours.
    """
    prefix = text.strip().lower()[:_SIMILAR_PREFIX_LEN]
    if not prefix:
        return []

    hours_by_name: dict[str, float] = {}
    for acc in accounts:
        name = resolve_name(acc.account)
        if prefix in name.lower():
            hours_by_name[name] = hours_by_name.get(name, 0.0) + acc.hours

    ranked = sorted(hours_by_name.items(), key=lambda item: item[1], reverse=True)
    return [name for name, _ in ranked[:limit]]
