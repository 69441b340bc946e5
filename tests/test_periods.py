from datetime import date, datetime, time, timedelta, timezone

import pytest

import smb_ledger.periods as periods
from smb_ledger.ledger import InvalidInputError, Transaction, TransactionType

NOW = datetime(2024, 3, 15, 10, 30)


def _tx(tx_id, day, entrepreneur_id="e1"):
    return Transaction(
        id=tx_id,
        entrepreneur_id=entrepreneur_id,
        type=TransactionType.INCOME,
        date=day,
        amount=10.0,
    )


def test_resolve_period_last_7_days_includes_today():
    """7d covers today and the six previous days, whole days."""
    p = periods.resolve_period("7d", NOW)

    assert p.start == datetime(2024, 3, 9, 0, 0)
    assert p.end == datetime(2024, 3, 15, 23, 59, 59, 999000)
    assert p.label == "Last 7 days"
    assert p.key == "7d"


@pytest.mark.parametrize(
    "key, first_day",
    [("30d", date(2024, 2, 15)), ("90d", date(2023, 12, 17))],
)
def test_resolve_period_bounded_ranges(key, first_day):
    """Bounded ranges include today and start at midnight."""
    p = periods.resolve_period(key, NOW)

    assert p.start == datetime.combine(first_day, time.min)
    assert p.end.date() == NOW.date()


def test_resolve_period_all_starts_at_epoch():
    """The all-time range starts at the epoch."""
    p = periods.resolve_period("all", NOW)

    assert p.start == datetime(1970, 1, 1)
    assert p.end == datetime(2024, 3, 15, 23, 59, 59, 999000)
    assert p.label == "All time"


def test_resolve_period_keeps_timezone_of_now():
    """Period bounds keep the timezone of now."""
    now = datetime(2024, 3, 15, 10, 30, tzinfo=timezone.utc)
    p = periods.resolve_period("7d", now)

    assert p.start.tzinfo is timezone.utc
    assert p.end.tzinfo is timezone.utc


def test_resolve_period_rejects_unknown_key():
    """Unknown range keys are rejected."""
    with pytest.raises(InvalidInputError, match="Unknown range"):
        periods.resolve_period("14d", NOW)


def test_previous_period_has_same_duration_and_ends_before_current():
    """The previous window has the same length and ends just before."""
    current = periods.resolve_period("7d", NOW)
    prev = periods.resolve_previous_period("7d", current.start, NOW)

    assert prev is not None
    assert prev.end == current.start - timedelta(milliseconds=1)
    assert prev.end - prev.start == NOW - current.start
    # Day granularity: the previous window covers the 7 days before.
    assert prev.start.date() == date(2024, 3, 2)
    assert prev.end.date() == date(2024, 3, 8)


def test_previous_period_of_all_time_is_none():
    """The all-time range has no previous window."""
    current = periods.resolve_period("all", NOW)
    assert periods.resolve_previous_period("all", current.start, NOW) is None


def test_filter_transactions_inclusive_day_bounds():
    """Both boundary days are inside the period."""
    p = periods.resolve_period("7d", NOW)
    txs = [
        _tx("before", date(2024, 3, 8)),
        _tx("first", date(2024, 3, 9)),
        _tx("last", date(2024, 3, 15)),
        _tx("after", date(2024, 3, 16)),
        _tx("other", date(2024, 3, 10), entrepreneur_id="e2"),
    ]

    assert [t.id for t in periods.filter_transactions(txs, p)] == [
        "first",
        "last",
        "other",
    ]
    assert [t.id for t in periods.filter_transactions(txs, p, "e1")] == [
        "first",
        "last",
    ]
    assert len(periods.filter_transactions(txs, None)) == 5


def test_filter_by_prefix_month_and_year():
    """Month and year prefixes select by ISO date."""
    txs = [
        _tx("feb", date(2024, 2, 29)),
        _tx("mar", date(2024, 3, 1)),
        _tx("mar-e2", date(2024, 3, 2), entrepreneur_id="e2"),
        _tx("prev-year", date(2023, 3, 1)),
    ]

    assert [t.id for t in periods.filter_by_prefix(txs, "2024-03")] == ["mar", "mar-e2"]
    assert [t.id for t in periods.filter_by_prefix(txs, "2024-03", "e1")] == ["mar"]
    assert [t.id for t in periods.filter_by_prefix(txs, "2024")] == [
        "feb",
        "mar",
        "mar-e2",
    ]


@pytest.mark.parametrize("bad", ["2024-13", "24-03", "2024/03", "2024-3", ""])
def test_parse_period_prefix_rejects_invalid_values(bad):
    """Only YYYY-MM and YYYY prefixes are valid."""
    with pytest.raises(InvalidInputError):
        periods.parse_period_prefix(bad)


def test_prefix_labels_and_calendar_periods():
    """Prefixes get labels and calendar bounds."""
    assert periods.prefix_label("2024-03") == "March 2024"
    assert periods.prefix_label("2024") == "Year 2024"

    feb = periods.period_from_prefix("2024-02")
    assert feb.start == datetime(2024, 2, 1)
    assert feb.end.date() == date(2024, 2, 29)
    assert feb.label == "February 2024"

    year = periods.period_from_prefix("2023")
    assert year.start.date() == date(2023, 1, 1)
    assert year.end.date() == date(2023, 12, 31)


def test_available_months_and_years_newest_first():
    """Available periods are listed newest first."""
    txs = [
        _tx("a", date(2023, 12, 5)),
        _tx("b", date(2024, 2, 1)),
        _tx("c", date(2024, 2, 20)),
    ]

    assert periods.available_months(txs) == ["2024-02", "2023-12"]
    assert periods.available_years(txs) == ["2024", "2023"]
    assert periods.available_months([]) == []
