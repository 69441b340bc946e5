# SMB Ledger - Financial dashboard & reporting engine for small-business portals
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging(log_level: str = "WARNING") -> None:
    """
    Configure the root logger to write to stderr.

    Logs go to stderr so that tables and CSV written to stdout stay clean.
    """
    logging.basicConfig(
        stream=sys.stderr,
        level=log_level.upper(),
        format=LOG_FORMAT,
        force=True,
    )
