# SMB Ledger - Financial dashboard & reporting engine for small-business portals
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Goal progress evaluation for SMB Ledger.

Goals are monthly: a goal is evaluated against the transactions of the
calendar month containing its target date (its ``YYYY-MM`` prefix). Yearly
goals have no evaluation window in this model.

Current value by goal type:

- Revenue Target:     income of the month,
- Profit Target:      income - expenses of the month,
- Expense Reduction:  expenses of the month (lower is better),
- Custom Milestone:   no numeric progress (always 0, shown as a checklist).

Status, with ``days_remaining = ceil((target_date - now) / 1 day)``:

1. Completed  if the target is reached (>= target, or <= target for expense
              reduction); custom milestones never complete numerically,
2. Overdue    if days_remaining < 0,
3. DueSoon    if days_remaining <= 7,
4. OnTrack    otherwise.
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional

from .aggregator import total_expenses, total_income
from .ledger import Entrepreneur, Goal, GoalType, Transaction
from .periods import filter_by_prefix

DUE_SOON_DAYS = 7


class GoalStatus(str, Enum):
    COMPLETED = "Completed"
    OVERDUE = "Overdue"
    DUE_SOON = "DueSoon"
    ON_TRACK = "OnTrack"


@dataclass(frozen=True)
class GoalProgress:
    """
    Evaluated state of a goal.

    Attributes
    ----------
    current_value:
        Progress measure for the goal's month (0 for custom milestones).
    status:
        Completed, Overdue, DueSoon or OnTrack.
    days_remaining:
        Whole days until the target date (negative once it has passed).
    percent:
        Share of the target reached, clamped to [0, 100]. For expense
        reduction this is the share of the spending cap already used.
        None for custom milestones, which render as a checklist item.
    """

    goal: Goal
    current_value: float
    status: GoalStatus
    days_remaining: int
    percent: Optional[float]

    @property
    def status_text(self) -> str:
        if self.status is GoalStatus.COMPLETED:
            return "Completed!"
        if self.status is GoalStatus.OVERDUE:
            return f"Overdue by {abs(self.days_remaining)} days"
        if self.status is GoalStatus.DUE_SOON:
            return f"{self.days_remaining} days left"
        return f"{self.days_remaining} days remaining"


def goal_period(goal: Goal) -> str:
    """The ``YYYY-MM`` month a goal is evaluated against."""
    return goal.target_date.isoformat()[:7]


def goal_current_value(goal: Goal, transactions: Iterable[Transaction]) -> float:
    """Progress measure of ``goal`` over the transactions of its month."""
    if goal.type is GoalType.CUSTOM:
        return 0.0

    month = filter_by_prefix(transactions, goal_period(goal))
    if goal.type is GoalType.REVENUE_TARGET:
        return total_income(month)
    if goal.type is GoalType.PROFIT_TARGET:
        return total_income(month) - total_expenses(month)
    return total_expenses(month)


def days_remaining(target_date: date, now: datetime) -> int:
    """ceil((target_date at 00:00 - now) / 1 day), in ``now``'s timezone."""
    target = datetime.combine(target_date, time.min, tzinfo=now.tzinfo)
    return math.ceil((target - now) / timedelta(days=1))


def _target_reached(goal: Goal, current_value: float) -> bool:
    if goal.type is GoalType.CUSTOM:
        return False
    if goal.type is GoalType.EXPENSE_REDUCTION:
        return current_value <= goal.target_value
    return current_value >= goal.target_value


def _progress_percent(
    goal: Goal, current_value: float, reached: bool
) -> Optional[float]:
    if goal.type is GoalType.CUSTOM:
        return None
    if goal.target_value == 0:
        return 100.0 if reached else 0.0
    return min(max(current_value / goal.target_value * 100.0, 0.0), 100.0)


def evaluate_goal(
    goal: Goal, transactions: Iterable[Transaction], now: datetime
) -> GoalProgress:
    """
    Evaluate one goal against ``transactions`` at instant ``now``.

    A reached target is Completed regardless of the target date.
    """
    current = goal_current_value(goal, transactions)
    remaining = days_remaining(goal.target_date, now)
    reached = _target_reached(goal, current)

    if reached:
        status = GoalStatus.COMPLETED
    elif remaining < 0:
        status = GoalStatus.OVERDUE
    elif remaining <= DUE_SOON_DAYS:
        status = GoalStatus.DUE_SOON
    else:
        status = GoalStatus.ON_TRACK

    return GoalProgress(
        goal=goal,
        current_value=current,
        status=status,
        days_remaining=remaining,
        percent=_progress_percent(goal, current, reached),
    )


def evaluate_goals(
    entrepreneur: Entrepreneur, transactions: Iterable[Transaction], now: datetime
) -> list[GoalProgress]:
    """Evaluate an entrepreneur's goals, in display order, on their own ledger."""
    own = [t for t in transactions if t.entrepreneur_id == entrepreneur.id]
    return [evaluate_goal(goal, own, now) for goal in entrepreneur.goals]
