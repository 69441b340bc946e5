# SMB Ledger - Financial dashboard & reporting engine for small-business portals
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
View utilities for SMB Ledger.

This module turns the engine's dataclasses into pandas DataFrames ready for
display or CSV export (CLI layer). It does not compute anything: amounts are
only rounded to the requested number of decimals.

The main views are:

- summary:       one row per headline metric (totals, counts, receivables),
- categories:    category breakdowns and top products,
- customers:     customer ranking,
- entrepreneurs: entrepreneur ranking,
- buckets:       chart series (one row per day or month),
- trends:        stat-card comparisons with the previous period,
- goals:         goal progress,
- activity:      recent-activity feed,
- transactions:  plain transaction listing.

Entrepreneurs referenced by a transaction but missing from the snapshot are
displayed as "N/A".
"""

from collections.abc import Iterable, Mapping
from typing import Optional

import pandas as pd

from .aggregator import (
    ActivityItem,
    CategoryShare,
    CustomerRanking,
    EntrepreneurRanking,
    Summary,
)
from .bucketing import Bucket
from .goals import GoalProgress
from .ledger import Entrepreneur, Transaction, entrepreneur_names
from .trends import Trend

MISSING_NAME = "N/A"

TREND_LABELS = {
    "total_income": "Total income",
    "total_expenses": "Total expenses",
    "net_income": "Net income",
    "transaction_count": "Transactions",
    "new_entrepreneurs": "New entrepreneurs",
}


def _display_name(name: Optional[str]) -> str:
    return name if name else MISSING_NAME


def summary_to_dataframe(summary: Summary, decimals: int) -> pd.DataFrame:
    """
    Convert a Summary into a two-column (metric, value) DataFrame.

    Amounts and rates are rounded to ``decimals``; counts stay integers.
    """
    r = summary.receivables
    rows = [
        ("Total income", round(summary.total_income, decimals)),
        ("Total expenses", round(summary.total_expenses, decimals)),
        ("Net income", round(summary.net_income, decimals)),
        ("Income transactions", summary.income_count),
        ("Expense transactions", summary.expense_count),
        ("New entrepreneurs", summary.new_entrepreneurs),
        ("Outstanding receivables", round(r.outstanding, decimals)),
        ("Outstanding transactions", r.outstanding_count),
        ("Collection rate (%)", round(r.collection_rate, decimals)),
        ("Full payment rate (%)", round(r.full_payment_rate, decimals)),
    ]
    return pd.DataFrame(rows, columns=["metric", "value"])


def categories_to_dataframe(
    shares: Iterable[CategoryShare], decimals: int
) -> pd.DataFrame:
    """Category breakdown in ranking order (amount descending)."""
    columns = ["category", "amount", "percentage", "transactions"]
    rows = [
        {
            "category": s.category,
            "amount": round(s.amount, decimals),
            "percentage": round(s.percentage, decimals),
            "transactions": s.transaction_count,
        }
        for s in shares
    ]
    return pd.DataFrame(rows, columns=columns)


def customers_to_dataframe(
    customers: Iterable[CustomerRanking], decimals: int
) -> pd.DataFrame:
    columns = ["rank", "customer", "total_spent", "transactions", "last_purchase"]
    rows = [
        {
            "rank": i,
            "customer": c.name,
            "total_spent": round(c.total_spent, decimals),
            "transactions": c.transaction_count,
            "last_purchase": c.last_purchase.isoformat(),
        }
        for i, c in enumerate(customers, start=1)
    ]
    return pd.DataFrame(rows, columns=columns)


def entrepreneurs_to_dataframe(
    rankings: Iterable[EntrepreneurRanking], decimals: int
) -> pd.DataFrame:
    columns = ["rank", "entrepreneur_id", "name", "income", "transactions"]
    rows = [
        {
            "rank": i,
            "entrepreneur_id": e.entrepreneur_id,
            "name": _display_name(e.name),
            "income": round(e.income, decimals),
            "transactions": e.transaction_count,
        }
        for i, e in enumerate(rankings, start=1)
    ]
    return pd.DataFrame(rows, columns=columns)


def buckets_to_dataframe(buckets: Iterable[Bucket], decimals: int) -> pd.DataFrame:
    """Chart series; the sortable key is kept next to the display label."""
    columns = ["key", "label", "income", "expense", "net"]
    rows = [
        {
            "key": b.key,
            "label": b.label,
            "income": round(b.income, decimals),
            "expense": round(b.expense, decimals),
            "net": round(b.net, decimals),
        }
        for b in buckets
    ]
    return pd.DataFrame(rows, columns=columns)


def trends_to_dataframe(trends: Mapping[str, Trend], decimals: int) -> pd.DataFrame:
    columns = ["metric", "current", "previous", "change_pct", "direction"]
    rows = [
        {
            "metric": TREND_LABELS.get(key, key),
            "current": round(t.current, decimals),
            "previous": round(t.previous, decimals),
            "change_pct": round(t.percent_change, decimals),
            "direction": t.direction.value,
        }
        for key, t in trends.items()
    ]
    return pd.DataFrame(rows, columns=columns)


def goals_to_dataframe(goals: Iterable[GoalProgress], decimals: int) -> pd.DataFrame:
    """
    Goal progress in display order.

    ``percent`` is NaN for custom milestones (no numeric progress).
    """
    columns = [
        "title",
        "type",
        "target_value",
        "target_date",
        "current_value",
        "percent",
        "status",
        "status_text",
    ]
    rows = [
        {
            "title": g.goal.title,
            "type": g.goal.type.value,
            "target_value": round(g.goal.target_value, decimals),
            "target_date": g.goal.target_date.isoformat(),
            "current_value": round(g.current_value, decimals),
            "percent": (
                float("nan") if g.percent is None else round(g.percent, decimals)
            ),
            "status": g.status.value,
            "status_text": g.status_text,
        }
        for g in goals
    ]
    return pd.DataFrame(rows, columns=columns)


def activity_to_dataframe(
    items: Iterable[ActivityItem],
    entrepreneurs: Iterable[Entrepreneur],
    decimals: int,
) -> pd.DataFrame:
    """Recent-activity feed; transactions show their entrepreneur's name."""
    names = entrepreneur_names(entrepreneurs)
    columns = ["date", "kind", "entrepreneur", "description", "amount"]
    rows = []
    for item in items:
        if item.transaction is not None:
            t = item.transaction
            rows.append(
                {
                    "date": item.date.isoformat(),
                    "kind": t.type.value,
                    "entrepreneur": _display_name(names.get(t.entrepreneur_id)),
                    "description": t.description,
                    "amount": round(t.amount, decimals),
                }
            )
        elif item.entrepreneur is not None:
            e = item.entrepreneur
            rows.append(
                {
                    "date": item.date.isoformat(),
                    "kind": "New entrepreneur",
                    "entrepreneur": _display_name(e.business_name or e.name),
                    "description": f"{e.name} joined",
                    "amount": float("nan"),
                }
            )
    return pd.DataFrame(rows, columns=columns)


def transactions_to_dataframe(
    transactions: Iterable[Transaction], decimals: int
) -> pd.DataFrame:
    columns = [
        "date",
        "type",
        "amount",
        "customer",
        "category",
        "paid_status",
        "description",
    ]
    rows = [
        {
            "date": t.date.isoformat(),
            "type": t.type.value,
            "amount": round(t.amount, decimals),
            "customer": t.customer_name or "",
            "category": t.product_service_category or "",
            "paid_status": t.paid_status.value if t.paid_status else "",
            "description": t.description,
        }
        for t in transactions
    ]
    return pd.DataFrame(rows, columns=columns)
