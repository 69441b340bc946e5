# SMB Ledger - Financial dashboard & reporting engine for small-business portals
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Report-drafting boundary for SMB Ledger.

Narrative reports are drafted by an external text-generation service. This
module only defines what is sent to that service and what is expected back;
the service itself is injected as a ``ReportDrafter``.

Request
-------
A ReportRequest carries the entrepreneur profile, the transactions of the
selected month or year, its label, the entrepreneur's goals and the
pre-computed ReportData figures.

Response
--------
The drafter returns a JSON-like mapping. It must contain at least the
sections listed in ``REQUIRED_SECTIONS``; other sections are passed through.

Failures
--------
Missing credentials, drafter exceptions and incomplete responses all raise
ReportDraftingError with a user-facing message. There is no retry: the error
is logged and surfaced to the user, who can try again.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from .aggregator import ReportData, build_report_data
from .ledger import Entrepreneur, Goal, InvalidInputError, LedgerSnapshot, Transaction
from .periods import filter_by_prefix, parse_period_prefix, prefix_label

logger = logging.getLogger(__name__)

DEFAULT_API_KEY_ENV = "SMB_LEDGER_API_KEY"

REQUIRED_SECTIONS: tuple[str, ...] = (
    "reportTitle",
    "executiveSummary",
    "keyMetrics",
    "detailedAnalysis",
    "actionableRecommendations",
)


class ReportDraftingError(RuntimeError):
    """The narrative report could not be produced."""


@dataclass(frozen=True)
class ReportRequest:
    entrepreneur: Entrepreneur
    transactions: list[Transaction]
    period: str
    period_label: str
    goals: tuple[Goal, ...]
    report_data: ReportData


class ReportDrafter(Protocol):
    def draft(self, request: ReportRequest) -> Mapping[str, Any]:
        ...


def credentials_available(env_var: str = DEFAULT_API_KEY_ENV) -> bool:
    """True if the drafting service API key is set in the environment."""
    return bool(os.environ.get(env_var, "").strip())


def build_report_request(
    snapshot: LedgerSnapshot, entrepreneur_id: str, prefix: str
) -> ReportRequest:
    """
    Assemble the drafting request for one entrepreneur and one month or year.

    Raises
    ------
    InvalidInputError
        If the entrepreneur is unknown or the period is not YYYY-MM / YYYY.
    """
    entrepreneur = snapshot.entrepreneur(entrepreneur_id)
    if entrepreneur is None:
        raise InvalidInputError(f"Unknown entrepreneur: {entrepreneur_id!r}.")

    prefix = parse_period_prefix(prefix)
    return ReportRequest(
        entrepreneur=entrepreneur,
        transactions=filter_by_prefix(
            snapshot.transactions, prefix, entrepreneur_id=entrepreneur_id
        ),
        period=prefix,
        period_label=prefix_label(prefix),
        goals=entrepreneur.goals,
        report_data=build_report_data(snapshot.transactions, entrepreneur_id, prefix),
    )


def request_report(
    drafter: ReportDrafter, request: ReportRequest, credentials_present: bool
) -> dict[str, Any]:
    """
    Ask ``drafter`` for a narrative report and validate the response.

    Returns
    -------
    dict
        The drafted report sections.

    Raises
    ------
    ReportDraftingError
        If credentials are missing, the drafter fails, or required sections
        are absent from the response.
    """
    if not credentials_present:
        logger.error("Report drafting requested without API credentials")
        raise ReportDraftingError(
            "Drafting service API key not configured. Cannot generate report."
        )

    try:
        response = drafter.draft(request)
    except Exception as exc:
        logger.exception(
            "Report drafting failed for %s (%s)",
            request.entrepreneur.id,
            request.period,
        )
        raise ReportDraftingError(f"Failed to generate report. Error: {exc}") from exc

    if not isinstance(response, Mapping):
        raise ReportDraftingError(
            "Failed to generate report. Error: response is not an object."
        )

    missing = [key for key in REQUIRED_SECTIONS if key not in response]
    if missing:
        logger.error("Drafted report is missing sections: %s", ", ".join(missing))
        raise ReportDraftingError(
            f"Failed to generate report. Missing sections: {', '.join(missing)}."
        )

    logger.info(
        "Report drafted for %s (%s)", request.entrepreneur.id, request.period_label
    )
    return dict(response)
