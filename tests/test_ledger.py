from datetime import date, datetime

import pytest

from smb_ledger.ledger import (
    Entrepreneur,
    GoalType,
    InvalidInputError,
    PaidStatus,
    PaymentMethod,
    TransactionType,
    entrepreneur_names,
    entrepreneur_to_record,
    parse_amount,
    parse_entrepreneur,
    parse_goal,
    parse_iso_date,
    parse_snapshot,
    parse_transaction,
    transaction_to_record,
    transactions_frame,
)


def _tx_record(**overrides):
    record = {
        "id": "t1",
        "entrepreneurId": "e1",
        "type": "Income",
        "date": "2024-03-05",
        "amount": 120.5,
        "paymentMethod": "MoMo",
        "description": "Haircut",
        "paidStatus": "Partial",
        "customerName": "Ama",
        "productServiceCategory": "Services",
    }
    record.update(overrides)
    return record


def test_parse_transaction_reads_camel_case_record():
    """A store record should map onto every Transaction field."""
    t = parse_transaction(_tx_record())

    assert t.id == "t1"
    assert t.entrepreneur_id == "e1"
    assert t.type is TransactionType.INCOME
    assert t.date == date(2024, 3, 5)
    assert t.amount == pytest.approx(120.5)
    assert t.payment_method is PaymentMethod.MOMO
    assert t.paid_status is PaidStatus.PARTIAL
    assert t.customer_name == "Ama"
    assert t.product_service_category == "Services"
    assert t.is_income and not t.is_expense


def test_parse_transaction_accepts_snake_case_and_numeric_strings():
    """snake_case keys and numeric strings are accepted."""
    t = parse_transaction(
        {
            "id": "t2",
            "entrepreneur_id": "e9",
            "type": "Expense",
            "date": "2024-01-31",
            "amount": "45",
            "category": "Rent",
        }
    )

    assert t.entrepreneur_id == "e9"
    assert t.amount == 45.0
    assert t.product_service_category == "Rent"


def test_paid_status_is_dropped_on_expenses():
    """Expenses never carry a paid status, even if the record has one."""
    t = parse_transaction(_tx_record(type="Expense", paidStatus="Pending"))

    assert t.is_expense
    assert t.paid_status is None


@pytest.mark.parametrize("bad_date", ["2024-3-5", "05/03/2024", "2024-02-30", ""])
def test_parse_transaction_rejects_malformed_dates(bad_date):
    """Dates must be strict YYYY-MM-DD."""
    with pytest.raises(InvalidInputError):
        parse_transaction(_tx_record(date=bad_date))


@pytest.mark.parametrize("bad_amount", ["abc", float("nan"), float("inf"), -1, True])
def test_parse_transaction_rejects_invalid_amounts(bad_amount):
    """Amounts must be finite, numeric and non-negative."""
    with pytest.raises(InvalidInputError):
        parse_transaction(_tx_record(amount=bad_amount))


def test_parse_transaction_rejects_unknown_type_and_missing_owner():
    """Unknown types and missing owners are rejected."""
    with pytest.raises(InvalidInputError, match="type"):
        parse_transaction(_tx_record(type="Transfer"))

    record = _tx_record()
    del record["entrepreneurId"]
    with pytest.raises(InvalidInputError, match="entrepreneurId"):
        parse_transaction(record)


def test_invalid_input_error_is_a_value_error():
    """InvalidInputError can be caught as ValueError."""
    with pytest.raises(ValueError):
        parse_amount("twelve")


def test_parse_iso_date_accepts_date_and_truncates_datetime():
    """Dates pass through; datetimes keep their day."""
    assert parse_iso_date(date(2024, 1, 2)) == date(2024, 1, 2)
    assert parse_iso_date(datetime(2024, 1, 2, 15, 30)) == date(2024, 1, 2)
    assert parse_iso_date(" 2024-01-02 ") == date(2024, 1, 2)


def test_parse_goal_custom_milestone_without_target():
    """Custom milestones may omit the target value."""
    g = parse_goal(
        {
            "id": "g1",
            "title": "Open a second stall",
            "type": "Custom Milestone",
            "targetDate": "2024-06-30",
        }
    )

    assert g.type is GoalType.CUSTOM
    assert g.target_value == 0.0
    assert g.target_date == date(2024, 6, 30)


def test_parse_goal_requires_target_for_numeric_goals():
    """Numeric goals need a target value."""
    with pytest.raises(InvalidInputError):
        parse_goal(
            {
                "id": "g1",
                "title": "Revenue",
                "type": "Revenue Target",
                "targetDate": "2024-06-30",
            }
        )


def test_parse_entrepreneur_accepts_goals_as_keyed_object():
    """Goals serialized as {index: goal} keep their order."""
    e = parse_entrepreneur(
        {
            "id": "e1",
            "name": "Kofi Mensah",
            "businessName": "Kofi Cuts",
            "startDate": "2023-11-01",
            "preferredPaymentType": "Cash",
            "goals": {
                "0": {
                    "id": "g1",
                    "title": "March revenue",
                    "type": "Revenue Target",
                    "targetValue": 1000,
                    "targetDate": "2024-03-15",
                },
                "1": {
                    "id": "g2",
                    "title": "Cut costs",
                    "type": "Expense Reduction",
                    "targetValue": 300,
                    "targetDate": "2024-04-30",
                },
            },
        }
    )

    assert e.business_name == "Kofi Cuts"
    assert e.start_date == date(2023, 11, 1)
    assert e.preferred_payment_type is PaymentMethod.CASH
    assert [g.id for g in e.goals] == ["g1", "g2"]


def test_parse_snapshot_accepts_lists_and_keyed_objects():
    """Snapshots accept lists and keyed objects, skipping nulls."""
    snapshot = parse_snapshot(
        {
            "entrepreneurs": [
                {
                    "id": "e1",
                    "name": "A",
                    "businessName": "A Ltd",
                    "startDate": "2024-01-01",
                }
            ],
            "transactions": {"t1": _tx_record(), "t2": None},
        }
    )

    assert [e.id for e in snapshot.entrepreneurs] == ["e1"]
    assert [t.id for t in snapshot.transactions] == ["t1"]
    assert snapshot.entrepreneur("missing") is None
    assert [t.id for t in snapshot.transactions_for("e1")] == ["t1"]


def test_records_written_back_parse_to_the_same_entities():
    """Serialized records parse back to equal entities."""
    t = parse_transaction(_tx_record())
    assert parse_transaction(transaction_to_record(t)) == t

    e = Entrepreneur(
        id="e1",
        name="Kofi",
        business_name="Kofi Cuts",
        start_date=date(2024, 1, 1),
        goals=(
            parse_goal(
                {
                    "id": "g1",
                    "title": "Revenue",
                    "type": "Revenue Target",
                    "targetValue": 500,
                    "targetDate": "2024-02-01",
                }
            ),
        ),
    )
    record = entrepreneur_to_record(e)
    assert record["businessName"] == "Kofi Cuts"
    assert "bio" not in record
    assert parse_entrepreneur(record) == e


def test_transactions_frame_empty_input_has_typed_columns():
    """An empty frame still has its columns."""
    df = transactions_frame([])

    assert df.empty
    assert list(df.columns) == [
        "id",
        "entrepreneur_id",
        "type",
        "date",
        "amount",
        "paid_status",
        "customer_name",
        "category",
    ]
    assert str(df["amount"].dtype) == "float64"


def test_transactions_frame_keeps_input_order():
    """The frame keeps ledger order."""
    txs = [
        parse_transaction(_tx_record(id="b", date="2024-03-02")),
        parse_transaction(_tx_record(id="a", date="2024-03-01")),
    ]
    df = transactions_frame(txs)

    assert list(df["id"]) == ["b", "a"]
    assert df["category"].iloc[0] == "Services"


def test_entrepreneur_names_falls_back_to_person_name():
    """Without a business name the person's name is used."""
    people = [
        Entrepreneur("e1", "Ama", "Ama Foods", date(2024, 1, 1)),
        Entrepreneur("e2", "Yaw", "", date(2024, 1, 1)),
    ]
    assert entrepreneur_names(people) == {"e1": "Ama Foods", "e2": "Yaw"}


@pytest.mark.parametrize(
    "data",
    [
        {"transactions": ["oops"]},
        {"transactions": "oops"},
        {"entrepreneurs": {"e1": 42}},
        {
            "entrepreneurs": [
                {
                    "id": "e1",
                    "businessName": "A Ltd",
                    "startDate": "2024-01-01",
                    "goals": ["not a goal"],
                }
            ]
        },
    ],
)
def test_parse_snapshot_rejects_records_that_are_not_objects(data):
    """Wrongly shaped collections or records fail with InvalidInputError."""
    with pytest.raises(InvalidInputError):
        parse_snapshot(data)
