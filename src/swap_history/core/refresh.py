"""Account refreshers used by the status poller."""

import logging
import threading
from collections.abc import Callable, Iterable
from pathlib import Path

from swap_history.core.models import Account, SwapOperation

logger = logging.getLogger(__name__)

StatusLookup = Callable[[SwapOperation], str | None]


class StatusLookupRefresher:
    """
    Refresh an account by looking up the status of each pending swap.

    Only operations with a pending status are looked up. Lookup errors are
    not caught here: the poller records them as a failed refresh for the
    whole account.

    Parameters
    ----------
    lookup : StatusLookup
        Returns the provider's current status for an operation, or None if
        the provider has no answer
    pending_statuses : Iterable[str] | None
        Statuses that still need polling (default: pending statuses from the
        settings file)

    """

    def __init__(self, lookup: StatusLookup, pending_statuses: Iterable[str] | None = None) -> None:
        if pending_statuses is None:
            from swap_history.data.loader import get_pending_statuses

            pending_statuses = get_pending_statuses()

        self.lookup = lookup
        self.pending_statuses = frozenset(pending_statuses)

    def __call__(self, account: Account) -> Account | None:
        """
        Refresh one account.

        Parameters
        ----------
        account : Account
            Current account snapshot

        Returns
        -------
        Account | None
            New snapshot if any status changed, None otherwise

        """
        updated: list[SwapOperation] = []
        for flat in account.flatten():
            for operation in flat.swap_history:
                if operation.status not in self.pending_statuses:
                    continue
                status = self.lookup(operation)
                if status and status != operation.status:
                    logger.debug("Swap %s: %s -> %s", operation.swap_id, operation.status, status)
                    updated.append(operation.with_status(status))

        if not updated:
            return None
        return account.merge_operations(updated)


class FileAccountRefresher:
    """
    Refresh accounts by re-reading an accounts file.

    The file is parsed at most once per modification time, so refreshing
    many accounts in one tick reads it once.

    Parameters
    ----------
    path : Path | str
        YAML or JSON accounts file
    loader : Callable[[Path], list[Account]] | None
        File parser (default: ``swap_history.data.load_accounts``)

    """

    def __init__(self, path: Path | str, loader: Callable[[Path], list[Account]] | None = None) -> None:
        if loader is None:
            from swap_history.data.loader import load_accounts

            loader = load_accounts

        self.path = Path(path)
        self.loader = loader
        self._lock = threading.Lock()
        self._mtime: float | None = None
        self._accounts: dict[str, Account] = {}

    def _current_accounts(self) -> dict[str, Account]:
        with self._lock:
            mtime = self.path.stat().st_mtime
            if mtime != self._mtime:
                self._accounts = {account.id: account for account in self.loader(self.path)}
                self._mtime = mtime
            return self._accounts

    def __call__(self, account: Account) -> Account | None:
        latest = self._current_accounts().get(account.id)
        if latest is None or latest == account:
            return None
        return latest
