"""Copy-on-write store of account snapshots."""

import logging
import threading
from collections.abc import Callable, Iterable, Mapping, Sequence

from swap_history.core.models import Account

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[tuple[Account, ...]], None]
AccountUpdater = Callable[[Account], Account]


class OperationStore:
    """
    Thread-safe holder of the current account snapshot.

    The snapshot is an immutable tuple of accounts. Updates never mutate it:
    they build a new tuple and install it under a single lock, so readers
    always iterate a consistent set of accounts.

    Parameters
    ----------
    accounts : Iterable[Account]
        Initial accounts, in display order

    """

    def __init__(self, accounts: Iterable[Account] = ()) -> None:
        self._lock = threading.Lock()
        self._accounts: tuple[Account, ...] = tuple(accounts)
        self._listeners: list[SnapshotListener] = []

    def get(self) -> tuple[Account, ...]:
        """
        Get the current snapshot.

        Returns
        -------
        tuple[Account, ...]
            All accounts at this instant

        """
        with self._lock:
            return self._accounts

    def get_account(self, account_id: str) -> Account | None:
        """Get one account by id, or None if the store does not hold it."""
        for account in self.get():
            if account.id == account_id:
                return account
        return None

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """
        Register a listener called with every newly installed snapshot.

        Parameters
        ----------
        listener : SnapshotListener
            Callback receiving the new snapshot

        Returns
        -------
        Callable[[], None]
            Function that removes the listener again

        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, snapshot: tuple[Account, ...]) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(snapshot)

    def set(self, accounts: Sequence[Account]) -> None:
        """Replace the whole account set (e.g. when the account provider changes it)."""
        with self._lock:
            self._accounts = tuple(accounts)
            snapshot = self._accounts
        self._notify(snapshot)

    def replace(self, account_id: str, account: Account) -> None:
        """
        Replace a single account by identity.

        Parameters
        ----------
        account_id : str
            Id of the account to replace
        account : Account
            New snapshot of that account

        """
        self.replace_many({account_id: account})

    def replace_many(self, updates: Mapping[str, Account]) -> int:
        """
        Replace several accounts in one atomic snapshot swap.

        Ids that the store does not hold are ignored: the account provider
        owns which accounts exist.

        Parameters
        ----------
        updates : Mapping[str, Account]
            New snapshots keyed by account id

        Returns
        -------
        int
            Number of accounts replaced

        """
        return self.update_many({account_id: (lambda _, new=account: new) for account_id, account in updates.items()})

    def update_many(self, updaters: Mapping[str, AccountUpdater]) -> int:
        """
        Apply per-account update functions in one atomic snapshot swap.

        Each updater receives the account currently held under its id and
        returns the value to install, so updates are computed against the
        latest snapshot rather than a stale copy.

        Parameters
        ----------
        updaters : Mapping[str, AccountUpdater]
            Update functions keyed by account id

        Returns
        -------
        int
            Number of accounts that changed

        """
        if not updaters:
            return 0

        with self._lock:
            held_ids = {account.id for account in self._accounts}
            accounts = []
            changed = 0
            for account in self._accounts:
                updater = updaters.get(account.id)
                new = account if updater is None else updater(account)
                if new is not account:
                    changed += 1
                accounts.append(new)
            if changed:
                self._accounts = tuple(accounts)
            snapshot = self._accounts

        unknown = set(updaters) - held_ids
        if unknown:
            logger.debug("Ignoring updates for unknown accounts: %s", ", ".join(sorted(unknown)))
        if changed:
            self._notify(snapshot)
        return changed

    def __len__(self) -> int:
        return len(self.get())
