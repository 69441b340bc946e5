# SMB Ledger - Financial dashboard & reporting engine for small-business portals
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Dashboard orchestration for SMB Ledger.

This module provides the high-level entry points used by the portal pages.
Each call takes one immutable LedgerSnapshot (as pushed by the store) and an
explicit ``now``, and recomputes everything from scratch. When the store
pushes a new snapshot, callers simply call these functions again.

Overview
--------
``compute_dashboard()`` builds the admin dashboard:

1. Resolves the named range (7d / 30d / 90d / all) and its previous window.
2. Aggregates the current window and, when it exists, the previous one.
3. Compares both summaries for the stat cards (trend arrows).
4. Buckets the current window for the income / expense chart.
5. Keeps the aggregated activity feed of the current window (transactions
   and sign-ups within the range).

``compute_entrepreneur_overview()`` builds the entrepreneur detail page:
lifetime totals, customers, a 12-month chart, the latest transactions and
goal progress.

Separation of concerns
----------------------
- ``aggregator.py`` remains the single source of truth for figures.
- ``periods.py`` / ``bucketing.py`` / ``trends.py`` / ``goals.py`` each own
  one derivation.
- ``dashboard.py`` only assembles them.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .aggregator import (
    DEFAULT_ACTIVITY_LIMIT,
    DEFAULT_TOP_N,
    ActivityItem,
    CustomerRanking,
    Summary,
    aggregate,
    top_customers,
    total_expenses,
    total_income,
)
from .bucketing import Bucket, bucket_transactions, monthly_series
from .goals import GoalProgress, evaluate_goals
from .ledger import Entrepreneur, LedgerSnapshot, Transaction
from .periods import Period, resolve_period, resolve_previous_period
from .trends import Trend, compare_summaries

logger = logging.getLogger(__name__)

OVERVIEW_RECENT_TRANSACTIONS = 5
OVERVIEW_MONTHS = 12


@dataclass(frozen=True)
class DashboardView:
    """
    Everything the admin dashboard displays for one range.

    ``previous_period`` and ``previous_summary`` are None for the ``all``
    range; trends then compare against zero.
    """

    period: Period
    previous_period: Optional[Period]
    summary: Summary
    previous_summary: Optional[Summary]
    trends: dict[str, Trend]
    buckets: list[Bucket]
    activity: list[ActivityItem] = field(default_factory=list)


@dataclass(frozen=True)
class EntrepreneurOverview:
    """Figures of the entrepreneur detail page (whole ledger, no period)."""

    entrepreneur: Entrepreneur
    total_income: float
    total_expenses: float
    net_income: float
    transaction_count: int
    customers: list[CustomerRanking]
    monthly: list[Bucket]
    recent_transactions: list[Transaction]
    goals: list[GoalProgress]


def compute_dashboard(
    snapshot: LedgerSnapshot,
    range_key: str,
    now: datetime,
    top_n: int = DEFAULT_TOP_N,
    activity_limit: int = DEFAULT_ACTIVITY_LIMIT,
) -> DashboardView:
    """
    Compute the admin dashboard for a named range.

    Parameters
    ----------
    snapshot:
        Current store snapshot.
    range_key:
        One of ``7d``, ``30d``, ``90d`` or ``all``.
    now:
        Reference instant; the current day is included in the range.
    top_n, activity_limit:
        Sizes of the rankings and of the activity feed.

    Returns
    -------
    DashboardView

    Raises
    ------
    InvalidInputError
        If ``range_key`` is unknown.
    """
    period = resolve_period(range_key, now)
    previous_period = resolve_previous_period(range_key, period.start, now)

    summary = aggregate(
        snapshot.transactions, snapshot.entrepreneurs, period, top_n, activity_limit
    )
    previous_summary = None
    if previous_period is not None:
        previous_summary = aggregate(
            snapshot.transactions,
            snapshot.entrepreneurs,
            previous_period,
            top_n,
            activity_limit,
        )

    view = DashboardView(
        period=period,
        previous_period=previous_period,
        summary=summary,
        previous_summary=previous_summary,
        trends=compare_summaries(summary, previous_summary),
        buckets=bucket_transactions(snapshot.transactions, period.start, period.end),
        activity=summary.recent_activity,
    )
    logger.info(
        "Dashboard computed for %s: %d transactions, %d buckets",
        period.label,
        summary.transaction_count,
        len(view.buckets),
    )
    return view


def compute_entrepreneur_overview(
    entrepreneur: Entrepreneur, snapshot: LedgerSnapshot, now: datetime
) -> EntrepreneurOverview:
    """
    Compute the detail page of one entrepreneur over their whole ledger.

    Customers are all customers with at least one named income transaction,
    ranked by total spent. Recent transactions are the five latest by date
    (ties keep ledger order).
    """
    own = snapshot.transactions_for(entrepreneur.id)
    income = total_income(own)
    expenses = total_expenses(own)
    latest = sorted(own, key=lambda t: t.date, reverse=True)

    return EntrepreneurOverview(
        entrepreneur=entrepreneur,
        total_income=income,
        total_expenses=expenses,
        net_income=income - expenses,
        transaction_count=len(own),
        customers=top_customers(own, len(own)),
        monthly=monthly_series(own, OVERVIEW_MONTHS),
        recent_transactions=latest[:OVERVIEW_RECENT_TRANSACTIONS],
        goals=evaluate_goals(entrepreneur, own, now),
    )
