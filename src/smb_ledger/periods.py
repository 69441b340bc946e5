# SMB Ledger - Financial dashboard & reporting engine for small-business portals
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Period helpers for SMB Ledger.

This module defines a Period value object and the two ways the portal selects
one:

1. Named dashboard ranges
   -----------------------
   ``7d``, ``30d`` and ``90d`` cover the last N calendar days, today included:

       [now - (N-1) days at 00:00:00, now at 23:59:59.999]

   ``all`` covers everything from the Unix epoch up to the end of today.

   Each bounded range has a previous period of identical duration that ends
   one millisecond before the current one starts. ``all`` has no previous
   period (there is nothing before "all time").

2. Explicit report selections
   ---------------------------
   The report generator selects a month (``YYYY-MM``) or a year (``YYYY``)
   and keeps the transactions whose ISO date *starts with* that prefix. These
   selections have no previous-period comparison.

Transactions only carry a calendar day, so ``Period.contains`` compares days:
a transaction dated on the start or end day of a period is included.
"""

import calendar
import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional

from .ledger import InvalidInputError, Transaction

RANGE_DAYS: dict[str, int] = {"7d": 7, "30d": 30, "90d": 90}
ALL_TIME = "all"
RANGE_KEYS: tuple[str, ...] = ("7d", "30d", "90d", ALL_TIME)

RANGE_LABELS: dict[str, str] = {
    "7d": "Last 7 days",
    "30d": "Last 30 days",
    "90d": "Last 90 days",
    ALL_TIME: "All time",
}

EPOCH = datetime(1970, 1, 1)
END_OF_DAY = time(23, 59, 59, 999000)
ONE_MILLISECOND = timedelta(milliseconds=1)

_PREFIX_RE = re.compile(r"^\d{4}(-\d{2})?$")


@dataclass(frozen=True)
class Period:
    """Inclusive reporting window with a human-readable label."""

    start: datetime
    end: datetime
    label: str
    key: Optional[str] = None

    @property
    def span(self) -> timedelta:
        return self.end - self.start

    def contains(self, day: date) -> bool:
        """True if ``day`` falls within the window (day granularity)."""
        return self.start.date() <= day <= self.end.date()


def _end_of_day(now: datetime) -> datetime:
    return datetime.combine(now.date(), END_OF_DAY, tzinfo=now.tzinfo)


def _start_of_day(day: date, now: datetime) -> datetime:
    return datetime.combine(day, time.min, tzinfo=now.tzinfo)


def resolve_period(range_key: str, now: datetime) -> Period:
    """
    Resolve a named dashboard range relative to ``now``.

    Raises
    ------
    InvalidInputError
        If ``range_key`` is not one of 7d, 30d, 90d or all.
    """
    end = _end_of_day(now)

    if range_key == ALL_TIME:
        return Period(
            start=EPOCH.replace(tzinfo=now.tzinfo),
            end=end,
            label=RANGE_LABELS[ALL_TIME],
            key=ALL_TIME,
        )

    days = RANGE_DAYS.get(range_key)
    if days is None:
        raise InvalidInputError(
            f"Unknown range: {range_key!r}. Expected one of {', '.join(RANGE_KEYS)}."
        )

    start = _start_of_day(now.date() - timedelta(days=days - 1), now)
    return Period(start=start, end=end, label=RANGE_LABELS[range_key], key=range_key)


def resolve_previous_period(
    range_key: str, current_start: datetime, now: datetime
) -> Optional[Period]:
    """
    Return the window of identical duration immediately before the current one.

    prev_end   = current_start - 1 ms
    prev_start = prev_end - (now - current_start)

    Returns None for ``all``: there is no window before all time, and a
    negative-width range would be meaningless.
    """
    if range_key == ALL_TIME:
        return None
    if range_key not in RANGE_DAYS:
        raise InvalidInputError(
            f"Unknown range: {range_key!r}. Expected one of {', '.join(RANGE_KEYS)}."
        )

    prev_end = current_start - ONE_MILLISECOND
    prev_start = prev_end - (now - current_start)
    return Period(
        start=prev_start,
        end=prev_end,
        label=f"Previous {RANGE_LABELS[range_key].lower()}",
        key=range_key,
    )


def filter_transactions(
    transactions: Iterable[Transaction],
    period: Optional[Period],
    entrepreneur_id: Optional[str] = None,
) -> list[Transaction]:
    """
    Keep transactions within ``period`` (all of them when period is None),
    optionally restricted to one entrepreneur. Input order is preserved.
    """
    return [
        t
        for t in transactions
        if (period is None or period.contains(t.date))
        and (entrepreneur_id is None or t.entrepreneur_id == entrepreneur_id)
    ]


# ---------------------------------------------------------------------------
# Explicit month / year selections
# ---------------------------------------------------------------------------


def parse_period_prefix(value: str) -> str:
    """
    Validate an explicit report selection: ``YYYY-MM`` or ``YYYY``.

    Raises
    ------
    InvalidInputError
        If the value is not a valid month or year.
    """
    raw = (value or "").strip()
    if not _PREFIX_RE.match(raw):
        raise InvalidInputError(
            f"Invalid period: {value!r}. Expected YYYY-MM or YYYY."
        )
    if len(raw) == 7 and not 1 <= int(raw[5:7]) <= 12:
        raise InvalidInputError(f"Invalid period: {value!r}. Month out of range.")
    return raw


def filter_by_prefix(
    transactions: Iterable[Transaction],
    prefix: str,
    entrepreneur_id: Optional[str] = None,
) -> list[Transaction]:
    """Keep transactions whose ISO date starts with ``prefix``."""
    prefix = parse_period_prefix(prefix)
    return [
        t
        for t in transactions
        if t.date.isoformat().startswith(prefix)
        and (entrepreneur_id is None or t.entrepreneur_id == entrepreneur_id)
    ]


def prefix_label(prefix: str) -> str:
    """'2024-03' -> 'March 2024', '2024' -> 'Year 2024'."""
    prefix = parse_period_prefix(prefix)
    if len(prefix) == 4:
        return f"Year {prefix}"
    year, month = int(prefix[:4]), int(prefix[5:7])
    return f"{calendar.month_name[month]} {year}"


def period_from_prefix(prefix: str) -> Period:
    """Calendar Period equivalent to a month or year selection."""
    prefix = parse_period_prefix(prefix)
    year = int(prefix[:4])
    if len(prefix) == 4:
        start = date(year, 1, 1)
        end = date(year, 12, 31)
    else:
        month = int(prefix[5:7])
        start = date(year, month, 1)
        end = date(year, month, calendar.monthrange(year, month)[1])

    return Period(
        start=datetime.combine(start, time.min),
        end=datetime.combine(end, END_OF_DAY),
        label=prefix_label(prefix),
        key=prefix,
    )


def available_months(transactions: Iterable[Transaction]) -> list[str]:
    """Distinct ``YYYY-MM`` values present in the ledger, newest first."""
    return sorted({t.date.isoformat()[:7] for t in transactions}, reverse=True)


def available_years(transactions: Iterable[Transaction]) -> list[str]:
    """Distinct ``YYYY`` values present in the ledger, newest first."""
    return sorted({t.date.isoformat()[:4] for t in transactions}, reverse=True)
