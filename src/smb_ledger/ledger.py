# SMB Ledger - Financial dashboard & reporting engine for small-business portals
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Ledger types for SMB Ledger.

This module defines the entities every other module works on:

- Transaction:   one recorded income or expense (immutable fact),
- Goal:          a monthly target attached to an entrepreneur,
- Entrepreneur:  a business followed by the portal,
- LedgerSnapshot: one consistent view of both collections.

Records arrive from the ledger store as plain mappings using the portal's
camelCase keys (``entrepreneurId``, ``paidStatus``, ...). The ``parse_*``
helpers turn them into frozen dataclasses and fail fast on malformed data:
upstream form validation is assumed but not guaranteed, so a bad date or a
non-numeric amount raises ``InvalidInputError`` instead of being coerced.

The ``transactions_frame`` helper exposes a transaction list as a pandas
DataFrame, which is what the grouping code in ``bucketing`` and
``aggregator`` operates on.
"""

import math
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

import pandas as pd

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

TRANSACTION_COLUMNS: tuple[str, ...] = (
    "id",
    "entrepreneur_id",
    "type",
    "date",
    "amount",
    "paid_status",
    "customer_name",
    "category",
)


class InvalidInputError(ValueError):
    """Malformed ledger input (bad date, non-numeric amount, unknown enum)."""


class TransactionType(str, Enum):
    INCOME = "Income"
    EXPENSE = "Expense"


class PaymentMethod(str, Enum):
    CASH = "Cash"
    MOMO = "MoMo"
    BANK = "Bank Transfer"
    CREDIT = "Credit"


class PaidStatus(str, Enum):
    FULL = "Full"
    PARTIAL = "Partial"
    PENDING = "Pending"


class GoalType(str, Enum):
    REVENUE_TARGET = "Revenue Target"
    PROFIT_TARGET = "Profit Target"
    EXPENSE_REDUCTION = "Expense Reduction"
    CUSTOM = "Custom Milestone"


@dataclass(frozen=True)
class Transaction:
    """
    A recorded income or expense.

    Attributes
    ----------
    id:
        Opaque identifier assigned by the store.
    entrepreneur_id:
        Owner of the transaction. May reference an entrepreneur that has
        already been deleted; aggregations still count the amount.
    type:
        Income or Expense; drives the sign of the amount in all sums.
    date:
        Calendar day of the transaction. All filtering and bucketing work at
        day granularity.
    amount:
        Non-negative amount in the portal currency.
    paid_status:
        Only set for income transactions.
    customer_name, product_service_category:
        Optional free-text grouping labels.
    """

    id: str
    entrepreneur_id: str
    type: TransactionType
    date: date
    amount: float
    payment_method: Optional[PaymentMethod] = None
    description: str = ""
    paid_status: Optional[PaidStatus] = None
    customer_name: Optional[str] = None
    product_service_category: Optional[str] = None

    @property
    def is_income(self) -> bool:
        return self.type is TransactionType.INCOME

    @property
    def is_expense(self) -> bool:
        return self.type is TransactionType.EXPENSE


@dataclass(frozen=True)
class Goal:
    """Monthly goal; its evaluation period is the month of ``target_date``."""

    id: str
    title: str
    type: GoalType
    target_value: float
    target_date: date
    description: Optional[str] = None


@dataclass(frozen=True)
class Entrepreneur:
    """Business followed by the portal, with its goals in display order."""

    id: str
    name: str
    business_name: str
    start_date: date
    contact: str = ""
    preferred_payment_type: Optional[PaymentMethod] = None
    bio: Optional[str] = None
    goals: tuple[Goal, ...] = ()
    assigned_staff_id: Optional[str] = None


@dataclass(frozen=True)
class LedgerSnapshot:
    """One atomic view of the entrepreneurs and transactions collections."""

    entrepreneurs: tuple[Entrepreneur, ...] = ()
    transactions: tuple[Transaction, ...] = ()

    def entrepreneur(self, entrepreneur_id: str) -> Optional[Entrepreneur]:
        for e in self.entrepreneurs:
            if e.id == entrepreneur_id:
                return e
        return None

    def transactions_for(self, entrepreneur_id: str) -> list[Transaction]:
        return [t for t in self.transactions if t.entrepreneur_id == entrepreneur_id]


_TRANSACTION_KEYS = {
    "entrepreneur_id": ("entrepreneurId", "entrepreneur_id"),
    "payment_method": ("paymentMethod", "payment_method"),
    "paid_status": ("paidStatus", "paid_status"),
    "customer_name": ("customerName", "customer_name"),
    "product_service_category": (
        "productServiceCategory",
        "product_service_category",
        "category",
    ),
}

_ENTREPRENEUR_KEYS = {
    "business_name": ("businessName", "business_name"),
    "start_date": ("startDate", "start_date"),
    "preferred_payment_type": ("preferredPaymentType", "preferred_payment_type"),
    "assigned_staff_id": ("assignedStaffId", "assigned_staff_id"),
}

_GOAL_KEYS = {
    "target_value": ("targetValue", "target_value"),
    "target_date": ("targetDate", "target_date"),
}


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def _lookup(record: Mapping[str, Any], names: Sequence[str]) -> Any:
    """Return the first non-None value found under one of ``names``."""
    for name in names:
        value = record.get(name)
        if value is not None:
            return value
    return None


def _required(record: Mapping[str, Any], names: Sequence[str], what: str) -> Any:
    value = _lookup(record, names)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidInputError(f"Missing required field {names[0]!r} in {what}.")
    return value


def parse_iso_date(value: Any, field_name: str = "date") -> date:
    """
    Parse a calendar date in strict ISO ``YYYY-MM-DD`` form.

    ``date`` instances are accepted as-is and ``datetime`` values are
    truncated to their day.

    Raises
    ------
    InvalidInputError
        If the value is not a valid ISO date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _ISO_DATE_RE.match(value.strip()):
        raise InvalidInputError(
            f"Invalid {field_name}: {value!r}. Expected YYYY-MM-DD format."
        )
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise InvalidInputError(
            f"Invalid {field_name}: {value!r}. Expected YYYY-MM-DD format."
        ) from exc


def parse_amount(value: Any, field_name: str = "amount") -> float:
    """
    Parse a monetary amount.

    Numeric strings are accepted; booleans, NaN, infinities and negative
    values are rejected.
    """
    if isinstance(value, bool):
        raise InvalidInputError(f"Invalid {field_name}: {value!r} is not numeric.")
    try:
        amount = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(
            f"Invalid {field_name}: {value!r} is not numeric."
        ) from exc
    if not math.isfinite(amount):
        raise InvalidInputError(f"Invalid {field_name}: {value!r} is not finite.")
    if amount < 0:
        raise InvalidInputError(f"Invalid {field_name}: {value!r} is negative.")
    return amount


def _parse_enum(enum_cls: type[Enum], value: Any, field_name: str) -> Any:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as exc:
        allowed = ", ".join(repr(m.value) for m in enum_cls)
        raise InvalidInputError(
            f"Invalid {field_name}: {value!r}. Expected one of {allowed}."
        ) from exc


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def parse_transaction(record: Mapping[str, Any]) -> Transaction:
    """
    Build a Transaction from a store record.

    ``paidStatus`` is only kept for income transactions; on an expense it is
    dropped so that it can never leak into expense aggregations.

    Raises
    ------
    InvalidInputError
        On a missing id/entrepreneur/type/date/amount, an unknown enum value,
        an invalid date or a non-numeric amount.
    """
    what = "transaction"
    tx_id = str(_required(record, ("id",), what))
    tx_type = _parse_enum(TransactionType, _required(record, ("type",), what), "type")

    paid_status = None
    raw_status = _lookup(record, _TRANSACTION_KEYS["paid_status"])
    if tx_type is TransactionType.INCOME and raw_status not in (None, ""):
        paid_status = _parse_enum(PaidStatus, raw_status, "paidStatus")

    payment_method = None
    raw_method = _lookup(record, _TRANSACTION_KEYS["payment_method"])
    if raw_method not in (None, ""):
        payment_method = _parse_enum(PaymentMethod, raw_method, "paymentMethod")

    return Transaction(
        id=tx_id,
        entrepreneur_id=str(
            _required(record, _TRANSACTION_KEYS["entrepreneur_id"], what)
        ),
        type=tx_type,
        date=parse_iso_date(_required(record, ("date",), what)),
        amount=parse_amount(_required(record, ("amount",), what)),
        payment_method=payment_method,
        description=str(record.get("description") or ""),
        paid_status=paid_status,
        customer_name=_optional_text(
            _lookup(record, _TRANSACTION_KEYS["customer_name"])
        ),
        product_service_category=_optional_text(
            _lookup(record, _TRANSACTION_KEYS["product_service_category"])
        ),
    )


def parse_goal(record: Mapping[str, Any]) -> Goal:
    """Build a Goal from a store record (custom milestones may omit a target)."""
    what = "goal"
    goal_type = _parse_enum(GoalType, _required(record, ("type",), what), "goal type")

    raw_target = _lookup(record, _GOAL_KEYS["target_value"])
    if goal_type is GoalType.CUSTOM and raw_target in (None, ""):
        target_value = 0.0
    else:
        target_value = parse_amount(
            _required(record, _GOAL_KEYS["target_value"], what), "targetValue"
        )

    return Goal(
        id=str(_required(record, ("id",), what)),
        title=str(record.get("title") or ""),
        type=goal_type,
        target_value=target_value,
        target_date=parse_iso_date(
            _required(record, _GOAL_KEYS["target_date"], what), "targetDate"
        ),
        description=_optional_text(record.get("description")),
    )


def parse_entrepreneur(record: Mapping[str, Any]) -> Entrepreneur:
    """Build an Entrepreneur (and its goals) from a store record."""
    what = "entrepreneur"

    raw_goals = _records(record.get("goals") or None, "goals")

    preferred = None
    raw_preferred = _lookup(record, _ENTREPRENEUR_KEYS["preferred_payment_type"])
    if raw_preferred not in (None, ""):
        preferred = _parse_enum(PaymentMethod, raw_preferred, "preferredPaymentType")

    return Entrepreneur(
        id=str(_required(record, ("id",), what)),
        name=str(record.get("name") or ""),
        business_name=str(_lookup(record, _ENTREPRENEUR_KEYS["business_name"]) or ""),
        start_date=parse_iso_date(
            _required(record, _ENTREPRENEUR_KEYS["start_date"], what), "startDate"
        ),
        contact=str(record.get("contact") or ""),
        preferred_payment_type=preferred,
        bio=_optional_text(record.get("bio")),
        goals=tuple(parse_goal(g) for g in raw_goals),
        assigned_staff_id=_optional_text(
            _lookup(record, _ENTREPRENEUR_KEYS["assigned_staff_id"])
        ),
    )


def _records(raw: Any, name: str) -> list[Mapping[str, Any]]:
    """
    Normalize a pushed collection (list or {id: record} mapping).

    Raises
    ------
    InvalidInputError
        If the collection or one of its records has the wrong shape.
    """
    if raw is None:
        return []
    if isinstance(raw, Mapping):
        # Realtime stores may serialize arrays as {index: value} objects.
        raw = list(raw.values())
    elif not isinstance(raw, list):
        raise InvalidInputError(
            f"Invalid {name!r} collection: expected a list or an object."
        )

    records = []
    for index, record in enumerate(raw):
        if record is None:
            continue
        if not isinstance(record, Mapping):
            raise InvalidInputError(
                f"Invalid record #{index + 1} in {name!r}: expected an object."
            )
        records.append(record)
    return records


def parse_snapshot(data: Mapping[str, Any]) -> LedgerSnapshot:
    """Parse ``{"entrepreneurs": ..., "transactions": ...}`` into a snapshot."""
    entrepreneurs = _records(data.get("entrepreneurs"), "entrepreneurs")
    transactions = _records(data.get("transactions"), "transactions")
    return LedgerSnapshot(
        entrepreneurs=tuple(parse_entrepreneur(r) for r in entrepreneurs),
        transactions=tuple(parse_transaction(r) for r in transactions),
    )


# ---------------------------------------------------------------------------
# Serialization (back to store records)
# ---------------------------------------------------------------------------


def _drop_none(record: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in record.items() if v is not None}


def transaction_to_record(t: Transaction) -> dict[str, Any]:
    """Inverse of ``parse_transaction`` using the portal's camelCase keys."""
    return _drop_none(
        {
            "id": t.id,
            "entrepreneurId": t.entrepreneur_id,
            "type": t.type.value,
            "date": t.date.isoformat(),
            "description": t.description,
            "amount": t.amount,
            "paymentMethod": t.payment_method.value if t.payment_method else None,
            "paidStatus": t.paid_status.value if t.paid_status else None,
            "customerName": t.customer_name,
            "productServiceCategory": t.product_service_category,
        }
    )


def goal_to_record(g: Goal) -> dict[str, Any]:
    return _drop_none(
        {
            "id": g.id,
            "title": g.title,
            "type": g.type.value,
            "targetValue": g.target_value,
            "targetDate": g.target_date.isoformat(),
            "description": g.description,
        }
    )


def entrepreneur_to_record(e: Entrepreneur) -> dict[str, Any]:
    """Inverse of ``parse_entrepreneur`` using the portal's camelCase keys."""
    return _drop_none(
        {
            "id": e.id,
            "name": e.name,
            "contact": e.contact,
            "businessName": e.business_name,
            "startDate": e.start_date.isoformat(),
            "preferredPaymentType": (
                e.preferred_payment_type.value if e.preferred_payment_type else None
            ),
            "bio": e.bio,
            "goals": [goal_to_record(g) for g in e.goals],
            "assignedStaffId": e.assigned_staff_id,
        }
    )


# ---------------------------------------------------------------------------
# Tabular view
# ---------------------------------------------------------------------------


def transactions_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    """
    Return transactions as a DataFrame in input order.

    Columns
    -------
    - id, entrepreneur_id (str)
    - type (str): "Income" or "Expense"
    - date (datetime64[ns])
    - amount (float)
    - paid_status (str or None)
    - customer_name (str or None)
    - category (str or None): the product/service category

    An empty input yields an empty frame with the same columns and dtypes.
    """
    rows = [
        (
            t.id,
            t.entrepreneur_id,
            t.type.value,
            t.date,
            float(t.amount),
            t.paid_status.value if t.paid_status else None,
            t.customer_name,
            t.product_service_category,
        )
        for t in transactions
    ]
    df = pd.DataFrame(rows, columns=list(TRANSACTION_COLUMNS))
    df["date"] = pd.to_datetime(df["date"])
    df["amount"] = df["amount"].astype(float)
    return df


def entrepreneur_names(entrepreneurs: Iterable[Entrepreneur]) -> dict[str, str]:
    """Map entrepreneur id -> business name (falls back to the person's name)."""
    return {e.id: (e.business_name or e.name) for e in entrepreneurs}
