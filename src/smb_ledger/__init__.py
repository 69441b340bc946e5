# SMB Ledger - Financial dashboard & reporting engine for small-business portals
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
SMB Ledger
----------

The aggregation and derivation engine behind a small-business administration
portal. Entrepreneurs and staff record income and expense transactions; this
package turns a snapshot of that ledger into the period-scoped views the
portal renders.

Main capabilities:
- ledger types and strict parsing of store records (ledger),
- named and explicit reporting periods (periods),
- day / month chart series (bucketing),
- totals, receivables, category breakdowns and top-N rankings (aggregator),
- goal progress and status (goals),
- period-over-period trends (trends),
- dashboard and entrepreneur overview orchestration (dashboard),
- a SQLite ledger store with change subscriptions (db),
- the boundary towards the report-drafting service (drafting).

Every computation is a pure function of an immutable snapshot and an explicit
"now", which keeps the engine deterministic and easy to test.


Version: 0.2.0

Usage:
    python -m smb_ledger.cli --help
"""

__all__ = [
    "ledger",
    "periods",
    "bucketing",
    "aggregator",
    "goals",
    "trends",
    "dashboard",
    "db",
    "drafting",
]

__version__ = "0.2.0"
