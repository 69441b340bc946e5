# SMB Ledger - Financial dashboard & reporting engine for small-business portals
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Period aggregation engine for SMB Ledger.

This module is the single place where the portal's dashboard, entrepreneur
detail page and report generator get their figures from. Every function is
pure: it reads a snapshot of transactions (and optionally entrepreneurs) and
returns plain dataclasses.

1. Scalar totals
   --------------
   total income, total expenses, net income (= income - expenses), counts by
   type, and the number of entrepreneurs whose start date falls within the
   period.

2. Receivables
   ------------
   Outstanding receivables are the income transactions whose paid status is
   Pending or Partial. A Partial transaction counts for its *full* recorded
   amount: the ledger stores no "amount paid" field, so the unpaid remainder
   cannot be known. This is an intentional approximation.

       collection rate   = (total billed - outstanding) / total billed * 100
       full-payment rate = #income Full / #income * 100

   Both rates are 0 when their denominator is 0.

3. Breakdowns and rankings
   ------------------------
   Category breakdowns group by product/service category, with a literal
   "Uncategorized" bucket for blank categories. Customer rankings, on the
   other hand, skip transactions without a customer name (no synthetic
   "Unknown" customer). Rankings only look at income, sort descending by
   amount and keep the first-encountered order on ties.

4. Recent activity
   ----------------
   Transactions and newly joined entrepreneurs merged into one feed, newest
   first, ties kept in input order.

Empty inputs return zeros and empty lists, never NaN and never an error.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Literal, Optional

import pandas as pd

from .ledger import (
    Entrepreneur,
    PaidStatus,
    Transaction,
    TransactionType,
    entrepreneur_names,
    transactions_frame,
)
from .periods import Period, filter_by_prefix, filter_transactions, prefix_label

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"
DEFAULT_TOP_N = 5
DEFAULT_ACTIVITY_LIMIT = 7

OUTSTANDING_STATUSES = frozenset({PaidStatus.PENDING, PaidStatus.PARTIAL})

ActivityKind = Literal["transaction", "entrepreneur"]


@dataclass(frozen=True)
class Receivables:
    """Billing and collection figures for the income of a period."""

    total_billed: float
    outstanding: float
    outstanding_count: int
    collection_rate: float
    full_payment_rate: float


@dataclass(frozen=True)
class CategoryShare:
    category: str
    amount: float
    percentage: float
    transaction_count: int


@dataclass(frozen=True)
class CustomerRanking:
    name: str
    total_spent: float
    transaction_count: int
    last_purchase: date


@dataclass(frozen=True)
class EntrepreneurRanking:
    """
    Income ranking entry for one entrepreneur.

    ``name`` is None when the transactions reference an entrepreneur missing
    from the snapshot; views display it as "N/A".
    """

    entrepreneur_id: str
    name: Optional[str]
    income: float
    transaction_count: int


@dataclass(frozen=True)
class ActivityItem:
    """One entry of the recent-activity feed."""

    date: date
    kind: ActivityKind
    transaction: Optional[Transaction] = None
    entrepreneur: Optional[Entrepreneur] = None


@dataclass(frozen=True)
class Summary:
    """All scalar and list figures for one period."""

    total_income: float
    total_expenses: float
    net_income: float
    income_count: int
    expense_count: int
    new_entrepreneurs: int
    receivables: Receivables
    income_by_category: list[CategoryShare] = field(default_factory=list)
    expense_by_category: list[CategoryShare] = field(default_factory=list)
    top_customers: list[CustomerRanking] = field(default_factory=list)
    top_products: list[CategoryShare] = field(default_factory=list)
    top_entrepreneurs: list[EntrepreneurRanking] = field(default_factory=list)
    recent_activity: list[ActivityItem] = field(default_factory=list)

    @property
    def transaction_count(self) -> int:
        return self.income_count + self.expense_count


@dataclass(frozen=True)
class ReportData:
    """Figures behind a monthly or yearly entrepreneur report."""

    entrepreneur_id: str
    period: str
    period_label: str
    total_income: float
    total_expenses: float
    net_income: float
    receivables: Receivables
    income_count: int
    expense_count: int
    income_by_category: list[CategoryShare]
    expense_by_category: list[CategoryShare]
    top_selling_items: list[CategoryShare]


# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------


def _percentage(part: float, whole: float) -> float:
    """part / whole * 100, or 0 when whole is 0."""
    if whole == 0:
        return 0.0
    return part / whole * 100.0


def total_income(transactions: Iterable[Transaction]) -> float:
    return float(sum(t.amount for t in transactions if t.is_income))


def total_expenses(transactions: Iterable[Transaction]) -> float:
    return float(sum(t.amount for t in transactions if t.is_expense))


def net_income(transactions: Sequence[Transaction]) -> float:
    return total_income(transactions) - total_expenses(transactions)


def _joined(
    entrepreneurs: Iterable[Entrepreneur], period: Optional[Period]
) -> list[Entrepreneur]:
    return [e for e in entrepreneurs if period is None or period.contains(e.start_date)]


def count_new_entrepreneurs(
    entrepreneurs: Iterable[Entrepreneur], period: Optional[Period]
) -> int:
    """Entrepreneurs whose start date falls within ``period`` (all when None)."""
    return len(_joined(entrepreneurs, period))


def summarize_receivables(transactions: Iterable[Transaction]) -> Receivables:
    """
    Receivables and collection statistics over the income transactions.

    Expense transactions are ignored entirely, including any paid status they
    might carry.
    """
    income = [t for t in transactions if t.is_income]

    total_billed = float(sum(t.amount for t in income))
    outstanding_items = [t for t in income if t.paid_status in OUTSTANDING_STATUSES]
    outstanding = float(sum(t.amount for t in outstanding_items))
    fully_paid = sum(1 for t in income if t.paid_status is PaidStatus.FULL)

    return Receivables(
        total_billed=total_billed,
        outstanding=outstanding,
        outstanding_count=len(outstanding_items),
        collection_rate=_percentage(total_billed - outstanding, total_billed),
        full_payment_rate=_percentage(fully_paid, len(income)),
    )


# ---------------------------------------------------------------------------
# Breakdowns and rankings
# ---------------------------------------------------------------------------


def _category_key(value: Optional[str]) -> str:
    if not isinstance(value, str) or not value.strip():
        return UNCATEGORIZED
    return value.strip()


def _check_top_n(n: int) -> None:
    if n < 0:
        raise ValueError(f"Ranking size must be >= 0, got {n}.")


def category_breakdown(
    transactions: Iterable[Transaction], tx_type: TransactionType
) -> list[CategoryShare]:
    """
    Amount per product/service category for one transaction type.

    Blank categories fall into "Uncategorized". Percentages are relative to
    the total of that type. Sorted by amount descending; ties keep the order
    in which categories were first encountered.
    """
    df = transactions_frame(transactions)
    df = df.loc[df["type"] == tx_type.value]
    if df.empty:
        return []

    df = df.assign(category=df["category"].map(_category_key))
    grouped = (
        df.groupby("category", sort=False)
        .agg(amount=("amount", "sum"), transactions=("amount", "size"))
        .sort_values("amount", ascending=False, kind="stable")
    )
    total = float(df["amount"].sum())

    return [
        CategoryShare(
            category=str(item.Index),
            amount=float(item.amount),
            percentage=_percentage(float(item.amount), total),
            transaction_count=int(item.transactions),
        )
        for item in grouped.itertuples()
    ]


def top_customers(
    transactions: Iterable[Transaction], n: int = DEFAULT_TOP_N
) -> list[CustomerRanking]:
    """
    Customers ranked by total income.

    Transactions with a blank customer name are excluded. Names are compared
    after trimming surrounding whitespace. ``last_purchase`` is the latest
    transaction date of the customer.
    """
    _check_top_n(n)
    df = transactions_frame(transactions)
    df = df.loc[df["type"] == TransactionType.INCOME.value]
    names = df["customer_name"].map(lambda v: v.strip() if isinstance(v, str) else "")
    df = df.assign(customer_name=names).loc[names != ""]
    if df.empty:
        return []

    grouped = (
        df.groupby("customer_name", sort=False)
        .agg(
            total_spent=("amount", "sum"),
            transactions=("amount", "size"),
            last_purchase=("date", "max"),
        )
        .sort_values("total_spent", ascending=False, kind="stable")
        .head(n)
    )

    return [
        CustomerRanking(
            name=str(item.Index),
            total_spent=float(item.total_spent),
            transaction_count=int(item.transactions),
            last_purchase=pd.Timestamp(item.last_purchase).date(),
        )
        for item in grouped.itertuples()
    ]


def top_products(
    transactions: Iterable[Transaction], n: int = DEFAULT_TOP_N
) -> list[CategoryShare]:
    """Income categories ranked by revenue ("Uncategorized" included)."""
    _check_top_n(n)
    return category_breakdown(transactions, TransactionType.INCOME)[:n]


def top_entrepreneurs(
    transactions: Iterable[Transaction],
    entrepreneurs: Iterable[Entrepreneur],
    n: int = DEFAULT_TOP_N,
) -> list[EntrepreneurRanking]:
    """
    Entrepreneurs ranked by total income.

    Transactions referencing an unknown entrepreneur still form their own
    entry (with ``name=None``) so that no income disappears from the ranking.
    Entrepreneurs without any income are left out.
    """
    _check_top_n(n)
    names = entrepreneur_names(entrepreneurs)
    df = transactions_frame(transactions)
    df = df.loc[df["type"] == TransactionType.INCOME.value]
    if df.empty:
        return []

    grouped = (
        df.groupby("entrepreneur_id", sort=False)
        .agg(income=("amount", "sum"), transactions=("amount", "size"))
        .loc[lambda g: g["income"] > 0]
        .sort_values("income", ascending=False, kind="stable")
        .head(n)
    )

    dangling = [str(i) for i in grouped.index if str(i) not in names]
    if dangling:
        logger.debug("Income ranking includes unknown entrepreneurs: %s", dangling)

    return [
        EntrepreneurRanking(
            entrepreneur_id=str(item.Index),
            name=names.get(str(item.Index)),
            income=float(item.income),
            transaction_count=int(item.transactions),
        )
        for item in grouped.itertuples()
    ]


def merge_activity(
    items: Iterable[ActivityItem], limit: int = DEFAULT_ACTIVITY_LIMIT
) -> list[ActivityItem]:
    """Newest first, ties in input order, truncated to ``limit`` items."""
    _check_top_n(limit)
    return sorted(items, key=lambda item: item.date, reverse=True)[:limit]


def recent_activity(
    transactions: Iterable[Transaction],
    entrepreneurs: Iterable[Entrepreneur],
    limit: int = DEFAULT_ACTIVITY_LIMIT,
) -> list[ActivityItem]:
    """Merge transactions and entrepreneur sign-ups into one activity feed."""
    items = [
        ActivityItem(date=t.date, kind="transaction", transaction=t)
        for t in transactions
    ]
    items.extend(
        ActivityItem(date=e.start_date, kind="entrepreneur", entrepreneur=e)
        for e in entrepreneurs
    )
    return merge_activity(items, limit)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def aggregate(
    transactions: Iterable[Transaction],
    entrepreneurs: Iterable[Entrepreneur] = (),
    period: Optional[Period] = None,
    top_n: int = DEFAULT_TOP_N,
    activity_limit: int = DEFAULT_ACTIVITY_LIMIT,
) -> Summary:
    """
    Compute the full Summary of a period.

    Parameters
    ----------
    transactions:
        Ledger snapshot. Only transactions within ``period`` are used.
    entrepreneurs:
        Optional entrepreneur snapshot; needed for new-entrepreneur counts,
        entrepreneur names in rankings and sign-ups in the activity feed.
    period:
        Reporting window; None means no filtering.
    top_n, activity_limit:
        Sizes of the rankings and of the activity feed.

    Returns
    -------
    Summary
        All figures for the period. Calling this twice on the same snapshot
        returns equal summaries.
    """
    txs = filter_transactions(transactions, period)
    people = list(entrepreneurs)
    joined = _joined(people, period)

    income = total_income(txs)
    expenses = total_expenses(txs)

    summary = Summary(
        total_income=income,
        total_expenses=expenses,
        net_income=income - expenses,
        income_count=sum(1 for t in txs if t.is_income),
        expense_count=sum(1 for t in txs if t.is_expense),
        new_entrepreneurs=len(joined),
        receivables=summarize_receivables(txs),
        income_by_category=category_breakdown(txs, TransactionType.INCOME),
        expense_by_category=category_breakdown(txs, TransactionType.EXPENSE),
        top_customers=top_customers(txs, top_n),
        top_products=top_products(txs, top_n),
        top_entrepreneurs=top_entrepreneurs(txs, people, top_n),
        recent_activity=recent_activity(txs, joined, activity_limit),
    )
    logger.debug(
        "Aggregated %d transactions for %s",
        len(txs),
        period.label if period is not None else "all transactions",
    )
    return summary


def build_report_data(
    transactions: Iterable[Transaction],
    entrepreneur_id: str,
    period: str,
    top_n: int = DEFAULT_TOP_N,
) -> ReportData:
    """
    Figures for one entrepreneur over a month (``YYYY-MM``) or year (``YYYY``).

    Transactions are selected by ISO date prefix, as the report generator
    does.

    Raises
    ------
    InvalidInputError
        If ``period`` is not a valid month or year.
    """
    txs = filter_by_prefix(transactions, period, entrepreneur_id=entrepreneur_id)
    income_by_category = category_breakdown(txs, TransactionType.INCOME)
    income = total_income(txs)
    expenses = total_expenses(txs)

    return ReportData(
        entrepreneur_id=entrepreneur_id,
        period=period,
        period_label=prefix_label(period),
        total_income=income,
        total_expenses=expenses,
        net_income=income - expenses,
        receivables=summarize_receivables(txs),
        income_count=sum(1 for t in txs if t.is_income),
        expense_count=sum(1 for t in txs if t.is_expense),
        income_by_category=income_by_category,
        expense_by_category=category_breakdown(txs, TransactionType.EXPENSE),
        top_selling_items=income_by_category[:top_n],
    )
