# SMB Ledger - Financial dashboard & reporting engine for small-business portals
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-Line Interface (CLI) for SMB Ledger.

This module wires together the main building blocks of SMB Ledger:

- global configuration (database, dashboard defaults, display options),
- ledger store access and optional imports,
- aggregation engine (dashboard, reports, goals, entrepreneur overview),
- view helpers (tabular rendering).

The CLI is intentionally thin: it does not implement any financial logic
itself. It loads one snapshot of the store, calls the engine with an explicit
``now`` and renders the resulting dataclasses.


Commands
--------

``dashboard`` (default when no command is given)
    Admin dashboard for a named range:

        python -m smb_ledger.cli dashboard --range 30d

    Renders the summary, the trends against the previous period, the chart
    buckets, category breakdowns, rankings and recent activity.

``report``
    Figures behind a monthly or yearly entrepreneur report:

        python -m smb_ledger.cli report --entrepreneur e1 --period 2024-03

    Without ``--period``, lists the months and years available for that
    entrepreneur.
    With a period, also tells whether narrative drafting is available, i.e.
    whether the variable named by ``[drafting] api_key_env`` is set.

``goals``
    Goal progress of one entrepreneur:

        python -m smb_ledger.cli goals --entrepreneur e1

``entrepreneur``
    Entrepreneur detail page (lifetime totals, customers, 12-month series,
    latest transactions, goals):

        python -m smb_ledger.cli entrepreneur --id e1

``--now YYYY-MM-DD[THH:MM:SS]`` fixes the reference instant of the
computation (defaults to the current local time).


Imports
-------

``--import PATH`` feeds the store before running the command:

- a ``.json`` file is a store export and replaces both collections,
- any other file is read as a transactions CSV and its rows are added to
  the transactions collection.


Display modes and output
------------------------

- ``table``: print tables to stdout (pandas.DataFrame.to_string),
- ``csv``:   write CSV files only,
- ``both``:  do both.

CSV files are written to ``--output DIR`` (``data/output`` by default) with
a timestamp-based name, e.g. ``dashboard_summary_YYYY-MM-DD-HH-MM-SS.csv``.
"""

import argparse
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from . import __version__
from .config import DISPLAY_MODES, AppConfig, load_app_config
from .dashboard import compute_dashboard, compute_entrepreneur_overview
from .db import ENTREPRENEURS, TRANSACTIONS, LedgerStore
from .drafting import build_report_request, credentials_available
from .goals import evaluate_goals
from .io import read_snapshot_json, read_transactions_csv
from .ledger import InvalidInputError, LedgerSnapshot
from .logging_config import setup_logging
from .periods import RANGE_KEYS, available_months, available_years
from .views import (
    activity_to_dataframe,
    buckets_to_dataframe,
    categories_to_dataframe,
    customers_to_dataframe,
    entrepreneurs_to_dataframe,
    goals_to_dataframe,
    summary_to_dataframe,
    transactions_to_dataframe,
    trends_to_dataframe,
)

logger = logging.getLogger(__name__)

# (file stem, title, DataFrame)
Table = tuple[str, str, pd.DataFrame]


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="python -m smb_ledger.cli",
        description=(
            "SMB Ledger - Financial dashboard & reporting engine for "
            "small-business portals. Aggregates entrepreneur transactions "
            "into dashboards, reports and goal progress."
        ),
    )

    # Generic options
    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of smb_ledger and exit.",
    )
    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the main TOML configuration file. "
            "If omitted, 'smb_ledger_config.toml' in the current directory is used."
        ),
    )
    ap.add_argument(
        "--import",
        dest="import_path",
        metavar="PATH",
        help=(
            "Import a store export (.json) or a transactions CSV into the "
            "store before running the command."
        ),
    )

    # Display options
    ap.add_argument(
        "--display-mode",
        dest="display_mode",
        choices=list(DISPLAY_MODES),
        help=(
            "Override the display.mode setting from the configuration file. "
            "'table' prints results to stdout, "
            "'csv' writes CSV files only, "
            "'both' does both."
        ),
    )
    ap.add_argument(
        "--output",
        dest="output_dir",
        help=(
            "Output directory where CSV files will be written when display "
            "mode includes 'csv'. If omitted, 'data/output' is used."
        ),
    )

    subparsers = ap.add_subparsers(dest="command", metavar="command")

    dashboard = subparsers.add_parser(
        "dashboard", help="Admin dashboard for a named range (default command)."
    )
    dashboard.add_argument(
        "--range",
        dest="range_key",
        choices=list(RANGE_KEYS),
        help="Dashboard range. If omitted, dashboard.default_range is used.",
    )
    dashboard.add_argument("--now", help="Reference instant (YYYY-MM-DD[THH:MM:SS]).")

    report = subparsers.add_parser(
        "report", help="Monthly or yearly report figures for one entrepreneur."
    )
    report.add_argument("--entrepreneur", dest="entrepreneur_id", required=True)
    report.add_argument(
        "--period",
        help=(
            "Month (YYYY-MM) or year (YYYY). "
            "If omitted, available periods are listed."
        ),
    )

    goals = subparsers.add_parser("goals", help="Goal progress of one entrepreneur.")
    goals.add_argument("--entrepreneur", dest="entrepreneur_id", required=True)
    goals.add_argument("--now", help="Reference instant (YYYY-MM-DD[THH:MM:SS]).")

    overview = subparsers.add_parser(
        "entrepreneur", help="Entrepreneur detail page (lifetime figures)."
    )
    overview.add_argument("--id", dest="entrepreneur_id", required=True)
    overview.add_argument("--now", help="Reference instant (YYYY-MM-DD[THH:MM:SS]).")

    return ap


def _parse_now(value: Optional[str]) -> datetime:
    """
    Parse the optional --now argument.

    Raises
    ------
    SystemExit
        If the value is not an ISO date or datetime.
    """
    if value is None:
        return datetime.now()

    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        msg = f"Invalid --now value: {value!r}. Expected YYYY-MM-DD[THH:MM:SS]."
        raise SystemExit(msg) from exc


def _import_into_store(store: LedgerStore, path: Path) -> None:
    if path.suffix.lower() == ".json":
        snapshot = read_snapshot_json(path)
        store.overwrite(ENTREPRENEURS, snapshot.entrepreneurs)
        store.overwrite(TRANSACTIONS, snapshot.transactions)
        print(
            f"Imported {len(snapshot.entrepreneurs)} entrepreneurs and "
            f"{len(snapshot.transactions)} transactions from {path}."
        )
        return

    transactions = read_transactions_csv(path)
    store.update({f"{TRANSACTIONS}/{t.id}": t for t in transactions})
    print(f"Imported {len(transactions)} transactions from {path}.")


def _require_entrepreneur(snapshot: LedgerSnapshot, entrepreneur_id: str):
    entrepreneur = snapshot.entrepreneur(entrepreneur_id)
    if entrepreneur is None:
        raise SystemExit(f"Unknown entrepreneur: {entrepreneur_id!r}.")
    return entrepreneur


# ---------------------------------------------------------------------------
# Command handlers: each returns the tables to render
# ---------------------------------------------------------------------------


def _handle_dashboard(
    args: argparse.Namespace, config: AppConfig, snapshot: LedgerSnapshot
) -> list[Table]:
    range_key = args.range_key or config.dashboard.default_range
    view = compute_dashboard(
        snapshot,
        range_key,
        _parse_now(args.now),
        top_n=config.dashboard.top_n,
        activity_limit=config.dashboard.activity_limit,
    )
    d = config.display.decimals
    s = view.summary

    print(
        f"Applied range: {view.period.label} "
        f"({view.period.start.date().isoformat()} → "
        f"{view.period.end.date().isoformat()})"
    )
    if view.previous_period is None:
        print("No previous period for this range: trends compare against zero.")

    currency = config.display.currency
    return [
        ("dashboard_summary", f"Summary ({currency})", summary_to_dataframe(s, d)),
        ("dashboard_trends", "Trends", trends_to_dataframe(view.trends, d)),
        ("dashboard_chart", "Chart", buckets_to_dataframe(view.buckets, d)),
        (
            "dashboard_income_categories",
            "Income by category",
            categories_to_dataframe(s.income_by_category, d),
        ),
        (
            "dashboard_expense_categories",
            "Expenses by category",
            categories_to_dataframe(s.expense_by_category, d),
        ),
        (
            "dashboard_top_customers",
            "Top customers",
            customers_to_dataframe(s.top_customers, d),
        ),
        (
            "dashboard_top_products",
            "Top products / services",
            categories_to_dataframe(s.top_products, d),
        ),
        (
            "dashboard_top_entrepreneurs",
            "Top entrepreneurs",
            entrepreneurs_to_dataframe(s.top_entrepreneurs, d),
        ),
        (
            "dashboard_activity",
            "Recent activity",
            activity_to_dataframe(view.activity, snapshot.entrepreneurs, d),
        ),
    ]


def _handle_report(
    args: argparse.Namespace, config: AppConfig, snapshot: LedgerSnapshot
) -> list[Table]:
    entrepreneur = _require_entrepreneur(snapshot, args.entrepreneur_id)
    d = config.display.decimals

    if not args.period:
        own = snapshot.transactions_for(entrepreneur.id)
        months = available_months(own)
        years = available_years(own)
        if not months:
            print(f"No transactions recorded for {entrepreneur.business_name}.")
            return []
        print(f"Available months: {', '.join(months)}")
        print(f"Available years:  {', '.join(years)}")
        return []

    try:
        request = build_report_request(snapshot, entrepreneur.id, args.period)
    except InvalidInputError as exc:
        raise SystemExit(str(exc)) from exc

    data = request.report_data
    print(
        f"Report for {entrepreneur.business_name} - {data.period_label} "
        f"({len(request.transactions)} transactions)"
    )
    if credentials_available(config.api_key_env):
        print("Narrative drafting: available.")
    else:
        print(
            f"Narrative drafting: unavailable (set {config.api_key_env} "
            "to enable it)."
        )
    summary = pd.DataFrame(
        [
            ("Total income", round(data.total_income, d)),
            ("Total expenses", round(data.total_expenses, d)),
            ("Net income", round(data.net_income, d)),
            ("Income transactions", data.income_count),
            ("Expense transactions", data.expense_count),
            ("Outstanding receivables", round(data.receivables.outstanding, d)),
            ("Collection rate (%)", round(data.receivables.collection_rate, d)),
            ("Full payment rate (%)", round(data.receivables.full_payment_rate, d)),
        ],
        columns=["metric", "value"],
    )
    stem = f"report_{entrepreneur.id}_{data.period}"
    return [
        (f"{stem}_summary", f"Summary ({config.display.currency})", summary),
        (
            f"{stem}_income_categories",
            "Income by category",
            categories_to_dataframe(data.income_by_category, d),
        ),
        (
            f"{stem}_expense_categories",
            "Expenses by category",
            categories_to_dataframe(data.expense_by_category, d),
        ),
        (
            f"{stem}_top_items",
            "Top selling items",
            categories_to_dataframe(data.top_selling_items, d),
        ),
    ]


def _handle_goals(
    args: argparse.Namespace, config: AppConfig, snapshot: LedgerSnapshot
) -> list[Table]:
    entrepreneur = _require_entrepreneur(snapshot, args.entrepreneur_id)
    progress = evaluate_goals(entrepreneur, snapshot.transactions, _parse_now(args.now))
    if not progress:
        print(f"No goals defined for {entrepreneur.business_name}.")
        return []
    return [
        (
            f"goals_{entrepreneur.id}",
            f"Goals of {entrepreneur.business_name}",
            goals_to_dataframe(progress, config.display.decimals),
        )
    ]


def _handle_entrepreneur(
    args: argparse.Namespace, config: AppConfig, snapshot: LedgerSnapshot
) -> list[Table]:
    entrepreneur = _require_entrepreneur(snapshot, args.entrepreneur_id)
    overview = compute_entrepreneur_overview(
        entrepreneur, snapshot, _parse_now(args.now)
    )
    d = config.display.decimals

    print(f"{entrepreneur.business_name} ({entrepreneur.name})")
    print(
        f"Total income: {overview.total_income:.{d}f} | "
        f"Total expenses: {overview.total_expenses:.{d}f} | "
        f"Net income: {overview.net_income:.{d}f} | "
        f"Transactions: {overview.transaction_count}"
    )

    stem = f"entrepreneur_{entrepreneur.id}"
    return [
        (f"{stem}_monthly", "Monthly", buckets_to_dataframe(overview.monthly, d)),
        (
            f"{stem}_customers",
            "Customers",
            customers_to_dataframe(overview.customers, d),
        ),
        (
            f"{stem}_recent",
            "Recent transactions",
            transactions_to_dataframe(overview.recent_transactions, d),
        ),
        (f"{stem}_goals", "Goals", goals_to_dataframe(overview.goals, d)),
    ]


_HANDLERS = {
    "dashboard": _handle_dashboard,
    "report": _handle_report,
    "goals": _handle_goals,
    "entrepreneur": _handle_entrepreneur,
}


def _render(tables: list[Table], mode: str, output_dir: Optional[str]) -> None:
    """Print tables and/or write them as timestamped CSV files."""
    if mode in {"table", "both"}:
        for _, title, df in tables:
            print()
            print(title)
            if df.empty:
                print("(no data)")
            else:
                print(df.to_string(index=False))

    if mode in {"csv", "both"} and tables:
        out = Path(output_dir) if output_dir else Path("data/output")
        out.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
        for stem, _, df in tables:
            path = out / f"{stem}_{timestamp}.csv"
            df.to_csv(path, index=False)
            print(f"Wrote {path} ({len(df)} rows)")


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the SMB Ledger CLI.

    This function parses command-line arguments, loads the application
    configuration, configures logging, opens the ledger store (creating it if
    needed), optionally imports a file into it, loads one snapshot and runs
    the requested command, rendering the result as console tables and/or CSV
    files.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    # --version: short-circuit and exit early.
    if args.version:
        print(f"smb_ledger version {__version__}")
        return

    # 1) Configuration and logging
    try:
        config = load_app_config(args.config_path)
    except (FileNotFoundError, ValueError) as exc:
        raise SystemExit(f"Configuration error: {exc}") from exc
    setup_logging(config.log_level)

    # 2) Store (file and schema created if needed)
    store = LedgerStore(config.database)

    # 3) Optional import
    if args.import_path:
        import_path = Path(args.import_path)
        if not import_path.is_file():
            parser.error(f"File for --import not found: {import_path}")
        try:
            _import_into_store(store, import_path)
        except InvalidInputError as exc:
            raise SystemExit(f"Import failed: {exc}") from exc

    snapshot = store.snapshot()
    if not snapshot.transactions and not snapshot.entrepreneurs:
        print("Warning: the ledger is empty - use --import to load data.")

    # 4) Command
    command = args.command or "dashboard"
    if args.command is None:
        args.range_key = None
        args.now = None
    tables = _HANDLERS[command](args, config, snapshot)

    # 5) Rendering
    _render(tables, args.display_mode or config.display.mode, args.output_dir)


if __name__ == "__main__":
    main()
