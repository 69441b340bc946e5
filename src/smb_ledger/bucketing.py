# SMB Ledger - Financial dashboard & reporting engine for small-business portals
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Time-bucketed chart series for SMB Ledger.

Given a set of transactions and an inclusive window, ``bucket_transactions``
groups transactions by calendar day or calendar month and returns one Bucket
per key with its income, expense and net sums.

Granularity
-----------
The granularity depends only on the window span:

- span > 45 days   -> one bucket per month (key ``YYYY-MM``),
- otherwise        -> one bucket per day   (key ``YYYY-MM-DD``).

The 45-day threshold is a fixed design constant.

Sparse output
-------------
A bucket exists only when at least one transaction falls into it: empty days
or months are not zero-filled. Charts built on this series therefore skip
quiet periods instead of showing them as zero.

Keys are machine-sortable and buckets are emitted in ascending key order.
Display labels ("Jan 5", "Jan 2024") are provided alongside.
"""

import calendar
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Literal

import pandas as pd

from .ledger import Transaction, TransactionType, transactions_frame

Granularity = Literal["day", "month"]

MONTHLY_THRESHOLD = timedelta(days=45)

_KEY_FORMATS: dict[str, str] = {"day": "%Y-%m-%d", "month": "%Y-%m"}


@dataclass(frozen=True)
class Bucket:
    """One time slice of a chart series."""

    key: str
    label: str
    income: float
    expense: float
    net: float


def granularity_for(start: datetime, end: datetime) -> Granularity:
    """Monthly buckets when the window spans more than 45 days, daily otherwise."""
    return "month" if (end - start) > MONTHLY_THRESHOLD else "day"


def bucket_label(key: str, granularity: Granularity) -> str:
    """Short display label: 'Jan 5' for days, 'Jan 2024' for months."""
    year, month = int(key[:4]), int(key[5:7])
    abbr = calendar.month_abbr[month]
    if granularity == "month":
        return f"{abbr} {year}"
    return f"{abbr} {int(key[8:10])}"


def _bucket_frame(
    transactions: Iterable[Transaction], granularity: Granularity
) -> pd.DataFrame:
    """Group transactions by bucket key; columns income, expense (index: key)."""
    df = transactions_frame(transactions)
    if df.empty:
        return pd.DataFrame(columns=["income", "expense"], dtype=float)

    is_income = df["type"] == TransactionType.INCOME.value
    is_expense = df["type"] == TransactionType.EXPENSE.value
    d = df.assign(
        key=df["date"].dt.strftime(_KEY_FORMATS[granularity]),
        income=df["amount"].where(is_income, 0.0),
        expense=df["amount"].where(is_expense, 0.0),
    )
    return d.groupby("key", sort=True)[["income", "expense"]].sum()


def _to_buckets(grouped: pd.DataFrame, granularity: Granularity) -> list[Bucket]:
    buckets: list[Bucket] = []
    for key, row in grouped.iterrows():
        income = float(row["income"])
        expense = float(row["expense"])
        buckets.append(
            Bucket(
                key=str(key),
                label=bucket_label(str(key), granularity),
                income=income,
                expense=expense,
                net=income - expense,
            )
        )
    return buckets


def bucket_transactions(
    transactions: Iterable[Transaction], start: datetime, end: datetime
) -> list[Bucket]:
    """
    Bucket the transactions dated within [start, end] (inclusive, by day).

    Returns
    -------
    list[Bucket]
        Buckets in ascending key order; empty when no transaction is in range.
    """
    first_day: date = start.date()
    last_day: date = end.date()
    in_range = [t for t in transactions if first_day <= t.date <= last_day]

    granularity = granularity_for(start, end)
    return _to_buckets(_bucket_frame(in_range, granularity), granularity)


def monthly_series(
    transactions: Iterable[Transaction], limit: int = 12
) -> list[Bucket]:
    """
    Monthly buckets over the whole ledger, keeping the ``limit`` most recent
    months (entrepreneur overview chart).
    """
    buckets = _to_buckets(_bucket_frame(transactions, "month"), "month")
    if limit <= 0:
        return []
    return buckets[-limit:]
