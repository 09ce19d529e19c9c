"""History aggregator for grouping swap operations of all accounts by day."""

import logging
import threading
from collections.abc import Callable, Iterable
from datetime import UTC, date, tzinfo

from swap_history.core.models import Account, AggregatedHistory, Section, SwapOperation
from swap_history.core.store import OperationStore

logger = logging.getLogger(__name__)

HistoryListener = Callable[[AggregatedHistory], None]


def flatten_accounts(accounts: Iterable[Account]) -> list[Account]:
    """
    Flatten accounts and their sub-accounts into a single list.

    Parameters
    ----------
    accounts : Iterable[Account]
        Top-level accounts

    Returns
    -------
    list[Account]
        Each account followed by its sub-accounts

    """
    return [flat for account in accounts for flat in account.flatten()]


def operation_day(operation: SwapOperation, tz: tzinfo | None = UTC) -> date:
    """
    Calendar day of an operation.

    Parameters
    ----------
    operation : SwapOperation
        Operation to bucket
    tz : tzinfo | None
        Day-boundary timezone; None uses the local zone of the process

    Returns
    -------
    date
        Day of ``operation.timestamp`` in ``tz``

    """
    return operation.timestamp.astimezone(tz).date()


def aggregate(accounts: Iterable[Account], tz: tzinfo | None = UTC) -> AggregatedHistory:
    """
    Group the swap operations of all accounts into day sections.

    Sections are ordered most recent day first. Inside a section operations
    are ordered by timestamp descending, ties broken by ``swap_id``
    ascending. If two accounts report the same ``swap_id`` the one that comes
    later in ``accounts`` wins.

    Parameters
    ----------
    accounts : Iterable[Account]
        Account snapshots (sub-accounts are included automatically)
    tz : tzinfo | None
        Day-boundary timezone; None uses the local zone of the process

    Returns
    -------
    AggregatedHistory
        A fresh history; empty when there are no operations

    """
    by_id: dict[str, SwapOperation] = {}
    for account in flatten_accounts(accounts):
        for operation in account.swap_history:
            by_id[operation.swap_id] = operation

    buckets: dict[date, list[SwapOperation]] = {}
    for operation in by_id.values():
        buckets.setdefault(operation_day(operation, tz), []).append(operation)

    sections = []
    for day in sorted(buckets, reverse=True):
        operations = sorted(buckets[day], key=lambda op: op.swap_id)
        operations.sort(key=lambda op: op.timestamp, reverse=True)
        sections.append(Section(day=day, data=tuple(operations)))

    return AggregatedHistory(sections=tuple(sections))


class HistoryAggregator:
    """
    Keeps an aggregated history in sync with an operation store.

    The history is rebuilt from scratch on every ``rebuild()`` and published
    as a single immutable value. Subscribed listeners receive each new value.
    Every snapshot the store installs triggers a rebuild, so accounts added or
    replaced by the account provider reach the history and the poller.

    Parameters
    ----------
    store : OperationStore
        Source of account snapshots
    tz : tzinfo | None
        Day-boundary timezone (default: UTC; None uses the process local zone)

    """

    def __init__(self, store: OperationStore, tz: tzinfo | None = UTC) -> None:
        self.store = store
        self.tz = tz
        self._lock = threading.Lock()
        self._history: AggregatedHistory | None = None
        self._listeners: list[HistoryListener] = []
        self._unsubscribe_store = store.subscribe(self._on_store_change)

    def _on_store_change(self, _accounts: tuple[Account, ...]) -> None:
        self.rebuild()

    def close(self) -> None:
        """Stop following store changes."""
        self._unsubscribe_store()

    @property
    def history(self) -> AggregatedHistory | None:
        """Latest published history, or None before the first rebuild."""
        return self._history

    def rebuild(self) -> AggregatedHistory:
        """
        Aggregate the current store snapshot and publish the result.

        Returns
        -------
        AggregatedHistory
            The newly published history

        """
        with self._lock:
            history = aggregate(self.store.get(), self.tz)
            self._history = history
            listeners = list(self._listeners)

        logger.debug(
            "Rebuilt swap history: %d operations in %d sections",
            history.operation_count,
            len(history.sections),
        )
        for listener in listeners:
            listener(history)
        return history

    def subscribe(self, listener: HistoryListener) -> Callable[[], None]:
        """
        Register a listener called with every rebuilt history.

        Parameters
        ----------
        listener : HistoryListener
            Callback receiving the new history

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
