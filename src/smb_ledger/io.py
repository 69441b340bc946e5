# SMB Ledger - Financial dashboard & reporting engine for small-business portals
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
I/O module for SMB Ledger.

This module reads ledger data from files and turns it into the immutable
types used by the engine.

Supported inputs
----------------

1) Store export (JSON)
   --------------------
       {"entrepreneurs": [...], "transactions": [...]}

   Each collection may be a list of records or an ``{id: record}`` object
   (the way realtime stores serialize keyed collections). Records use the
   portal's camelCase keys; snake_case keys are accepted too.

2) Transactions (CSV)
   -------------------
       date, entrepreneur_id, type, amount
       [, id, payment_method, paid_status, customer_name, category, description]

   Column names are case-insensitive; the camelCase store names
   (``entrepreneurId``, ``paidStatus``, ...) are accepted as aliases. Rows
   without an ``id`` get a generated ``csv-<row>`` id.

Any malformed structure, date, amount or enum value raises InvalidInputError
naming the offending row. Nothing is partially imported.
"""

import json
import logging
import os
from typing import Any, Union

import pandas as pd

from .ledger import (
    InvalidInputError,
    LedgerSnapshot,
    Transaction,
    parse_snapshot,
    parse_transaction,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]

REQUIRED_CSV_COLUMNS = {"date", "entrepreneur_id", "type", "amount"}

_CSV_ALIASES = {
    "entrepreneurid": "entrepreneur_id",
    "paymentmethod": "payment_method",
    "paidstatus": "paid_status",
    "customername": "customer_name",
    "productservicecategory": "category",
    "product_service_category": "category",
}


def read_snapshot_json(path: PathLike) -> LedgerSnapshot:
    """
    Read a store export into a LedgerSnapshot.

    Raises
    ------
    InvalidInputError
        If the file is not valid JSON, is not an object, or contains an
        invalid record.
    """
    with open(path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise InvalidInputError(f"Invalid JSON in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise InvalidInputError(
            f"Invalid snapshot in {path}: expected an object with "
            "'entrepreneurs' and 'transactions'."
        )

    snapshot = parse_snapshot(data)
    logger.info(
        "Loaded %d entrepreneurs and %d transactions from %s",
        len(snapshot.entrepreneurs),
        len(snapshot.transactions),
        path,
    )
    return snapshot


def _row_record(row: dict[str, Any], index: int) -> dict[str, Any]:
    record = {k: (v if v != "" else None) for k, v in row.items()}
    if record.get("id") is None:
        record["id"] = f"csv-{index + 1}"
    return record


def read_transactions_csv(path: PathLike) -> list[Transaction]:
    """
    Read transactions from a CSV file.

    Parameters
    ----------
    path:
        Path to the CSV file.

    Returns
    -------
    list[Transaction]
        Transactions in file order.

    Raises
    ------
    InvalidInputError
        If required columns are missing or a row has an invalid value.
    """
    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError as exc:
        raise InvalidInputError(f"CSV file {path} is empty.") from exc
    except pd.errors.ParserError as exc:
        raise InvalidInputError(f"Malformed CSV file {path}: {exc}") from exc

    # Normalize column names to lowercase (case-insensitive headers)
    df.columns = [c.lower().strip() for c in df.columns]
    df = df.rename(columns=_CSV_ALIASES)

    missing = REQUIRED_CSV_COLUMNS.difference(df.columns)
    if missing:
        cols = ", ".join(sorted(missing))
        raise InvalidInputError(f"CSV is missing required column(s): {cols}")

    transactions: list[Transaction] = []
    for index, row in enumerate(df.to_dict(orient="records")):
        try:
            transactions.append(parse_transaction(_row_record(row, index)))
        except InvalidInputError as exc:
            # Header is line 1, first data row is line 2.
            raise InvalidInputError(f"Line {index + 2}: {exc}") from exc

    logger.info("Read %d transactions from %s", len(transactions), path)
    return transactions
