"""Settings and account file loading."""

from swap_history.data.loader import (
    SETTINGS_ENV_VAR,
    get_day_boundary_tz,
    get_export_settings,
    get_max_workers,
    get_pending_statuses,
    get_poll_interval,
    get_settings_path,
    get_terminal_statuses,
    load_accounts,
    load_settings,
    parse_timezone,
)

__all__ = [
    "SETTINGS_ENV_VAR",
    "get_day_boundary_tz",
    "get_export_settings",
    "get_max_workers",
    "get_pending_statuses",
    "get_poll_interval",
    "get_settings_path",
    "get_terminal_statuses",
    "load_accounts",
    "load_settings",
    "parse_timezone",
]
