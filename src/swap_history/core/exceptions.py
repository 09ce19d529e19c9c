"""Exceptions raised by the swap history core and its collaborators."""

from pathlib import Path


class SwapHistoryError(Exception):
    """Base class for swap history errors."""


class ConfigurationError(SwapHistoryError):
    """Exception raised for unreadable or invalid settings and account files."""


class RefreshFailed(SwapHistoryError):
    """
    Status refresh failed for one account.

    Recoverable: the account keeps its last known snapshot and is retried on
    the next poll tick.

    Parameters
    ----------
    account_id : str
        Account whose refresh failed
    cause : BaseException
        Underlying error

    """

    def __init__(self, account_id: str, cause: BaseException) -> None:
        self.account_id = account_id
        self.cause = cause
        super().__init__(f"Status refresh failed for account {account_id}: {cause}")


class ExportSerializationFailed(SwapHistoryError):
    """Exception raised when history cannot be formatted as delimited text."""


class ExportWriteFailed(SwapHistoryError):
    """
    Writing an export to its destination failed.

    Parameters
    ----------
    path : Path
        Destination path
    cause : BaseException
        Underlying error

    """

    def __init__(self, path: Path, cause: BaseException) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to write export to {path}: {cause}")
