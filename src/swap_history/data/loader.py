"""Settings and account file loader."""

import os
from datetime import UTC, tzinfo
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import TypeAdapter, ValidationError

from swap_history.core.exceptions import ConfigurationError
from swap_history.core.models import Account

SETTINGS_ENV_VAR = "SWAP_HISTORY_SETTINGS"

_ACCOUNTS_ADAPTER = TypeAdapter(list[Account])


def _read_yaml(path: Path) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f)
    except OSError as e:
        msg = f"Cannot read {path}: {e}"
        raise ConfigurationError(msg) from e
    except yaml.YAMLError as e:
        msg = f"Invalid YAML in {path}: {e}"
        raise ConfigurationError(msg) from e


def get_settings_path() -> Path:
    """
    Get the settings file in use.

    Returns
    -------
    Path
        ``$SWAP_HISTORY_SETTINGS`` if set, otherwise the bundled settings.yaml

    """
    override = os.environ.get(SETTINGS_ENV_VAR)
    if override:
        return Path(override)
    return Path(__file__).parent / "settings.yaml"


def load_settings() -> dict[str, Any]:
    """
    Load settings from the settings file.

    Returns
    -------
    dict[str, Any]
        Settings with ``polling``, ``history``, ``statuses`` and ``export``
        sections

    Raises
    ------
    ConfigurationError
        If the file cannot be read or is not a mapping

    """
    settings = _read_yaml(get_settings_path())
    if not isinstance(settings, dict):
        msg = f"Settings file {get_settings_path()} must contain a mapping"
        raise ConfigurationError(msg)
    return settings


def get_poll_interval() -> float:
    """Seconds between status poll ticks."""
    return float(load_settings()["polling"]["interval_seconds"])


def get_max_workers() -> int:
    """Upper bound on concurrent per-account refresh requests."""
    return int(load_settings()["polling"]["max_workers"])


def get_pending_statuses() -> frozenset[str]:
    """Statuses that count as non-terminal."""
    return frozenset(load_settings()["statuses"]["pending"])


def get_terminal_statuses() -> frozenset[str]:
    """Statuses that end a swap's lifecycle."""
    return frozenset(load_settings()["statuses"]["terminal"])


def get_export_settings() -> dict[str, str]:
    """Export ``delimiter`` and ``filename_prefix``."""
    return dict(load_settings()["export"])


def parse_timezone(name: str) -> tzinfo | None:
    """
    Resolve a day-boundary timezone name.

    Parameters
    ----------
    name : str
        ``utc``, ``local``, or an IANA zone name

    Returns
    -------
    tzinfo | None
        Timezone, or None for the local zone of the process

    Raises
    ------
    ConfigurationError
        If the zone name is unknown

    """
    lowered = name.strip().lower()
    if lowered == "utc":
        return UTC
    if lowered == "local":
        return None
    try:
        return ZoneInfo(name.strip())
    except (ZoneInfoNotFoundError, ValueError) as e:
        msg = f"Unknown day boundary timezone: {name}"
        raise ConfigurationError(msg) from e


def get_day_boundary_tz() -> tzinfo | None:
    """Timezone used to cut swaps into calendar days (None = process local zone)."""
    return parse_timezone(str(load_settings()["history"]["day_boundary"]))


def load_accounts(path: Path | str) -> list[Account]:
    """
    Load account snapshots from a YAML or JSON file.

    The file holds either a list of accounts or a mapping with an
    ``accounts`` key.

    Parameters
    ----------
    path : Path | str
        Accounts file

    Returns
    -------
    list[Account]
        Parsed accounts, in file order

    Raises
    ------
    ConfigurationError
        If the file cannot be read or does not describe valid accounts

    """
    path = Path(path)
    data = _read_yaml(path)
    if data is None:
        return []
    if isinstance(data, dict):
        data = data.get("accounts", [])

    try:
        return _ACCOUNTS_ADAPTER.validate_python(data)
    except ValidationError as e:
        msg = f"Invalid accounts in {path}: {e}"
        raise ConfigurationError(msg) from e
