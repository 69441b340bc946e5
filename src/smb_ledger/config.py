# SMB Ledger - Financial dashboard & reporting engine for small-business portals
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for SMB Ledger.

This module is responsible for:
- loading the application configuration from a TOML file,
- validating dashboard, display, drafting and logging options,
- exposing typed dataclasses used by the rest of the application.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:  # pragma: no cover - fallback for older Python
    import tomli as tomllib  # type: ignore[import]

from .db import DatabaseConfig
from .drafting import DEFAULT_API_KEY_ENV
from .periods import RANGE_KEYS

DEFAULT_CONFIG_FILE = "smb_ledger_config.toml"
DISPLAY_MODES = ("table", "csv", "both")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class DashboardConfig:
    """Defaults of the dashboard command."""

    default_range: str
    top_n: int
    activity_limit: int


@dataclass(frozen=True)
class DisplayConfig:
    """Display options for tables and CSV exports."""

    currency: str
    mode: str
    decimals: int


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for SMB Ledger.

    This aggregates:
    - the database configuration (where the ledger is stored),
    - dashboard defaults (range, ranking sizes),
    - display options,
    - the environment variable holding the drafting service API key,
    - the log level.
    """

    database: DatabaseConfig
    dashboard: DashboardConfig
    display: DisplayConfig
    api_key_env: str
    log_level: str


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed or is not a table.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Invalid TOML root type in {path}, expected a table.")

    return data


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = raw.get(name) or {}
    if not isinstance(section, Mapping):
        raise ValueError(f"Config section [{name}] must be a table.")
    return section


def _positive_int(section: Mapping[str, Any], key: str, default: int, name: str) -> int:
    raw_value = section.get(key, default)
    if isinstance(raw_value, bool):
        raise ValueError(f"Invalid value for '{name}.{key}': expected an integer.")
    try:
        value = int(raw_value)
    except (TypeError, ValueError) as exc:
        raise ValueError(
            f"Invalid value for '{name}.{key}' in the configuration. "
            "Expected an integer."
        ) from exc
    if value < 0:
        raise ValueError(f"Invalid value for '{name}.{key}': must be >= 0.")
    return value


def _parse_dashboard(raw: Mapping[str, Any]) -> DashboardConfig:
    section = _section(raw, "dashboard")

    default_range = str(section.get("default_range", "30d"))
    if default_range not in RANGE_KEYS:
        raise ValueError(
            f"Invalid dashboard.default_range: {default_range!r}. "
            f"Expected one of {', '.join(RANGE_KEYS)}."
        )

    return DashboardConfig(
        default_range=default_range,
        top_n=_positive_int(section, "top_n", 5, "dashboard"),
        activity_limit=_positive_int(section, "activity_limit", 7, "dashboard"),
    )


def _parse_display(raw: Mapping[str, Any]) -> DisplayConfig:
    section = _section(raw, "display")

    mode = str(section.get("mode", "table"))
    if mode not in DISPLAY_MODES:
        raise ValueError(
            f"Invalid display.mode: {mode!r}. Expected one of "
            f"{', '.join(DISPLAY_MODES)}."
        )

    return DisplayConfig(
        currency=str(section.get("currency") or "GHS"),
        mode=mode,
        decimals=_positive_int(section, "decimals", 2, "display"),
    )


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the SMB Ledger application configuration from a TOML file.

    Expected top-level sections in the TOML file
    --------------------------------------------
    [database]
        engine (only "sqlite") and path of the ledger store.

    [dashboard]
        default_range (7d, 30d, 90d or all), top_n, activity_limit.

    [display]
        currency, mode (table, csv or both), decimals.

    [drafting]
        api_key_env: environment variable holding the drafting API key.

    [logging]
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL.

    Every section is optional; missing keys take their defaults.
    All file paths in the TOML are resolved relative to the directory of the
    TOML file itself.

    Parameters
    ----------
    config_path : str, optional
        Path to the TOML file. Defaults to ``smb_ledger_config.toml`` in the
        current directory.

    Returns
    -------
    AppConfig
        Parsed and validated application configuration.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist.
    ValueError
        If the file is not valid TOML or contains invalid values.
    """
    if config_path is None:
        config_file = Path(DEFAULT_CONFIG_FILE).resolve()
    else:
        config_file = Path(config_path).resolve()

    raw = _load_toml(config_file)
    base_dir = config_file.parent

    # 1) Database section
    database_section = _section(raw, "database")
    db_engine = str(database_section.get("engine") or "sqlite")
    db_path_raw = database_section.get("path") or "data/db/smb_ledger.sqlite"
    db_path = (base_dir / str(db_path_raw)).resolve()

    # 2) Drafting section
    drafting_section = _section(raw, "drafting")
    api_key_env = str(drafting_section.get("api_key_env") or DEFAULT_API_KEY_ENV)

    # 3) Logging section
    logging_section = _section(raw, "logging")
    log_level = str(logging_section.get("level", "WARNING")).upper()
    if log_level not in LOG_LEVELS:
        raise ValueError(
            f"Invalid logging.level: {log_level!r}. Expected one of "
            f"{', '.join(LOG_LEVELS)}."
        )

    return AppConfig(
        database=DatabaseConfig(engine=db_engine, path=db_path),
        dashboard=_parse_dashboard(raw),
        display=_parse_display(raw),
        api_key_env=api_key_env,
        log_level=log_level,
    )
