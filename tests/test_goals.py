from datetime import date, datetime

import pytest

from smb_ledger.goals import (
    GoalStatus,
    days_remaining,
    evaluate_goal,
    evaluate_goals,
    goal_current_value,
    goal_period,
)
from smb_ledger.ledger import Entrepreneur, Goal, GoalType, Transaction, TransactionType


def _goal(goal_type, target, target_date=date(2024, 3, 15), goal_id="g1"):
    return Goal(
        id=goal_id,
        title=f"{goal_type.value} goal",
        type=goal_type,
        target_value=target,
        target_date=target_date,
    )


def _tx(tx_id, amount, day, tx_type=TransactionType.INCOME, entrepreneur_id="e1"):
    return Transaction(
        id=tx_id,
        entrepreneur_id=entrepreneur_id,
        type=tx_type,
        date=day,
        amount=amount,
    )


MARCH = [
    _tx("i1", 700.0, date(2024, 3, 2)),
    _tx("i2", 500.0, date(2024, 3, 28)),
    _tx("x1", 400.0, date(2024, 3, 10), TransactionType.EXPENSE),
    _tx("feb", 5000.0, date(2024, 2, 28)),
    _tx("apr", 5000.0, date(2024, 4, 1)),
]


def test_revenue_goal_completed_with_march_income():
    """Target 1000 for 2024-03-15 with March income 1200 -> Completed."""
    goal = _goal(GoalType.REVENUE_TARGET, 1000.0)
    progress = evaluate_goal(goal, MARCH, datetime(2024, 3, 1, 9, 0))

    assert goal_period(goal) == "2024-03"
    assert progress.current_value == pytest.approx(1200.0)
    assert progress.status is GoalStatus.COMPLETED
    assert progress.percent == pytest.approx(100.0)
    assert progress.status_text == "Completed!"


def test_profit_goal_uses_income_minus_expenses():
    """Profit goals track the month's income minus expenses."""
    goal = _goal(GoalType.PROFIT_TARGET, 1000.0)

    assert goal_current_value(goal, MARCH) == pytest.approx(800.0)

    progress = evaluate_goal(goal, MARCH, datetime(2024, 3, 1, 0, 0))
    assert progress.status is GoalStatus.ON_TRACK
    assert progress.days_remaining == 14
    assert progress.percent == pytest.approx(80.0)
    assert progress.status_text == "14 days remaining"


def test_expense_reduction_completes_at_or_below_target():
    """Expense goals are met at or below the target."""
    within = evaluate_goal(
        _goal(GoalType.EXPENSE_REDUCTION, 400.0), MARCH, datetime(2024, 3, 1)
    )
    above = evaluate_goal(
        _goal(GoalType.EXPENSE_REDUCTION, 300.0), MARCH, datetime(2024, 3, 1)
    )

    assert within.current_value == pytest.approx(400.0)
    assert within.status is GoalStatus.COMPLETED
    assert above.status is GoalStatus.ON_TRACK
    assert above.percent == pytest.approx(100.0)


def test_custom_milestone_has_no_numeric_progress():
    """Custom milestones have no percentage."""
    progress = evaluate_goal(
        _goal(GoalType.CUSTOM, 0.0), MARCH, datetime(2024, 3, 1)
    )

    assert progress.current_value == 0.0
    assert progress.percent is None
    assert progress.status is GoalStatus.ON_TRACK


def test_days_remaining_rounds_up_partial_days():
    """Partial days count as a whole day remaining."""
    target = date(2024, 3, 15)

    assert days_remaining(target, datetime(2024, 3, 15, 0, 0)) == 0
    assert days_remaining(target, datetime(2024, 3, 14, 23, 0)) == 1
    assert days_remaining(target, datetime(2024, 3, 8, 12, 0)) == 7
    assert days_remaining(target, datetime(2024, 3, 15, 12, 0)) == 0
    assert days_remaining(target, datetime(2024, 3, 17, 12, 0)) == -2


def test_status_due_soon_and_overdue():
    """Due soon within 7 days, overdue after the target date."""
    goal = _goal(GoalType.REVENUE_TARGET, 10_000.0)

    due_soon = evaluate_goal(goal, MARCH, datetime(2024, 3, 8, 12, 0))
    assert due_soon.status is GoalStatus.DUE_SOON
    assert due_soon.status_text == "7 days left"

    not_yet = evaluate_goal(goal, MARCH, datetime(2024, 3, 7, 12, 0))
    assert not_yet.status is GoalStatus.ON_TRACK

    overdue = evaluate_goal(goal, MARCH, datetime(2024, 3, 17, 12, 0))
    assert overdue.status is GoalStatus.OVERDUE
    assert overdue.days_remaining == -2
    assert overdue.status_text == "Overdue by 2 days"


def test_zero_target_percent():
    """A zero target is reached at once."""
    goal = _goal(GoalType.REVENUE_TARGET, 0.0)
    reached = evaluate_goal(goal, [], datetime(2024, 3, 1))
    assert reached.status is GoalStatus.COMPLETED
    assert reached.percent == 100.0


def test_evaluate_goals_only_uses_own_transactions_in_goal_order():
    """Goals use only their entrepreneur's transactions."""
    entrepreneur = Entrepreneur(
        id="e1",
        name="Ama",
        business_name="Ama Foods",
        start_date=date(2023, 1, 1),
        goals=(
            _goal(GoalType.REVENUE_TARGET, 1000.0, goal_id="g-rev"),
            _goal(GoalType.CUSTOM, 0.0, goal_id="g-custom"),
        ),
    )
    others = [_tx("foreign", 9000.0, date(2024, 3, 3), entrepreneur_id="e2")]

    results = evaluate_goals(entrepreneur, MARCH + others, datetime(2024, 3, 1))

    assert [r.goal.id for r in results] == ["g-rev", "g-custom"]
    assert results[0].current_value == pytest.approx(1200.0)
