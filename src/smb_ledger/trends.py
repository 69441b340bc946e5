# SMB Ledger - Financial dashboard & reporting engine for small-business portals
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Period-over-period comparison for SMB Ledger.

    percent_change = (current - previous) / |previous| * 100

Zero baseline convention: when the previous value is 0, growth to a positive
value is reported as +100 % ("full growth from zero") rather than infinity,
and anything else as 0 %. Dashboards can then always display a finite
number.

Direction depends on the polarity of the metric: for income, net income and
counts an increase is an improvement; for expenses (lower is better) a
decrease is.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .aggregator import Summary
from .ledger import InvalidInputError

ZERO_BASELINE_GROWTH = 100.0


class Direction(str, Enum):
    IMPROVING = "improving"
    REGRESSING = "regressing"
    FLAT = "flat"


@dataclass(frozen=True)
class Trend:
    current: float
    previous: float
    percent_change: float
    direction: Direction


def _check_finite(value: float, name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"Invalid {name}: {value!r} is not numeric.") from exc
    if not math.isfinite(number):
        raise InvalidInputError(f"Invalid {name}: {value!r} is not finite.")
    return number


def percent_change(current: float, previous: float) -> float:
    """Signed percentage change, with the zero-baseline convention."""
    current = _check_finite(current, "current value")
    previous = _check_finite(previous, "previous value")

    if previous != 0:
        return (current - previous) / abs(previous) * 100.0
    if current > 0:
        return ZERO_BASELINE_GROWTH
    return 0.0


def trend(current: float, previous: float, lower_is_better: bool = False) -> Trend:
    """Compare a current-period value with the previous period's."""
    change = percent_change(current, previous)

    if change == 0:
        direction = Direction.FLAT
    elif (change > 0) != lower_is_better:
        direction = Direction.IMPROVING
    else:
        direction = Direction.REGRESSING

    return Trend(
        current=float(current),
        previous=float(previous),
        percent_change=change,
        direction=direction,
    )


def compare_summaries(
    current: Summary, previous: Optional[Summary]
) -> dict[str, Trend]:
    """
    Trends for the dashboard stat cards.

    Without a previous period (``all`` range) every metric is compared with
    zero.
    """

    def prev(attr: str) -> float:
        return float(getattr(previous, attr)) if previous is not None else 0.0

    return {
        "total_income": trend(current.total_income, prev("total_income")),
        "total_expenses": trend(
            current.total_expenses, prev("total_expenses"), lower_is_better=True
        ),
        "net_income": trend(current.net_income, prev("net_income")),
        "transaction_count": trend(
            current.transaction_count, prev("transaction_count")
        ),
        "new_entrepreneurs": trend(
            current.new_entrepreneurs, prev("new_entrepreneurs")
        ),
    }
