"""Periodic status poller that refreshes accounts while swaps are pending."""

import logging
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from enum import StrEnum
from typing import Protocol

from pydantic import BaseModel, Field

from swap_history.core.aggregator import HistoryAggregator
from swap_history.core.exceptions import RefreshFailed
from swap_history.core.models import Account
from swap_history.core.pending import PendingDetector
from swap_history.core.store import OperationStore

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 10.0
DEFAULT_MAX_WORKERS = 4

AccountRefresher = Callable[[Account], Account | None]


class PollerState(StrEnum):
    """Lifecycle state of a StatusPoller."""

    IDLE = "idle"
    SCHEDULED = "scheduled"
    REFRESHING = "refreshing"


class TickOutcome(StrEnum):
    """What a single poll tick did."""

    SKIPPED = "skipped"
    IDLE = "idle"
    REFRESHED = "refreshed"
    DISCARDED = "discarded"


class TickResult(BaseModel):
    """
    Summary of one poll tick.

    Attributes
    ----------
    outcome : TickOutcome
        SKIPPED if the poller was not scheduled or still refreshing, IDLE if
        nothing was pending, REFRESHED if results were applied, DISCARDED if
        the poller was stopped before results could be applied
    applied : list[str]
        Accounts whose new snapshot was installed
    unchanged : list[str]
        Accounts the refresher reported as unchanged
    failed : list[str]
        Accounts whose refresh raised

    """

    outcome: TickOutcome
    applied: list[str] = Field(default_factory=list)
    unchanged: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)


class IntervalTimer(Protocol):
    """Repeating timer driving the poller."""

    def start(self, interval: float, callback: Callable[[], object]) -> None:
        """Call ``callback`` every ``interval`` seconds until cancelled."""
        ...

    def cancel(self) -> None:
        """Stop calling the callback."""
        ...


class ThreadingIntervalTimer:
    """
    IntervalTimer backed by a daemon thread.

    The callback runs on the timer thread, so a slow callback delays the
    next tick instead of overlapping with it.

    """

    def __init__(self, name: str = "swap-status-poller") -> None:
        self.name = name
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self, interval: float, callback: Callable[[], object]) -> None:
        if self._thread is not None and self._thread.is_alive():
            msg = "Timer already running"
            raise RuntimeError(msg)

        self._stop_event = threading.Event()
        stop_event = self._stop_event

        def run() -> None:
            while not stop_event.wait(interval):
                try:
                    callback()
                except Exception:
                    logger.exception("Poll tick raised; timer keeps running")

        self._thread = threading.Thread(target=run, name=self.name, daemon=True)
        self._thread.start()

    def cancel(self) -> None:
        self._stop_event.set()
        thread = self._thread
        self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=5.0)


class StatusPoller:
    """
    Refreshes swap statuses on a fixed interval while any swap is pending.

    Each tick checks the current aggregated history. If nothing is pending
    the tick does nothing. Otherwise every account is refreshed concurrently
    on a bounded thread pool, all results are awaited, and the non-empty
    ones are installed in the store in one step. Each result is rebased onto
    the account as it is at apply time, so changes the account provider made
    during the refresh survive. The store change rebuilds the history. Ticks
    that fire while a refresh is still running are dropped, including after a
    stop and restart.

    ``stop()`` cancels the timer and invalidates refreshes in flight: their
    results are discarded instead of applied.

    Parameters
    ----------
    store : OperationStore
        Account snapshots to refresh
    aggregator : HistoryAggregator
        Aggregator following the store; its history decides whether to refresh
    refresher : AccountRefresher
        Returns an updated account, or None when nothing changed
    interval : float
        Seconds between ticks
    pending : PendingDetector | None
        Pending check (default: pending statuses from the settings file)
    max_workers : int
        Upper bound on concurrent refresh requests
    timer : IntervalTimer | None
        Timer implementation (default: ThreadingIntervalTimer)

    """

    def __init__(
        self,
        store: OperationStore,
        aggregator: HistoryAggregator,
        refresher: AccountRefresher,
        *,
        interval: float = DEFAULT_POLL_INTERVAL,
        pending: PendingDetector | None = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        timer: IntervalTimer | None = None,
    ) -> None:
        if interval <= 0:
            msg = f"Poll interval must be positive, got {interval}"
            raise ValueError(msg)
        if max_workers < 1:
            msg = f"max_workers must be at least 1, got {max_workers}"
            raise ValueError(msg)

        self.store = store
        self.aggregator = aggregator
        self.refresher = refresher
        self.interval = interval
        if pending is None:
            from swap_history.data.loader import get_pending_statuses

            pending = PendingDetector(get_pending_statuses())

        self.pending = pending
        self.max_workers = max_workers
        self.timer = timer or ThreadingIntervalTimer()

        self._lock = threading.RLock()
        self._state = PollerState.IDLE
        self._generation = 0
        self._refreshing = False

    @property
    def state(self) -> PollerState:
        return self._state

    def start(self) -> None:
        """Arm the repeating timer. Does nothing if already started."""
        with self._lock:
            if self._state is not PollerState.IDLE:
                return
            if self.aggregator.history is None:
                self.aggregator.rebuild()
            self._state = PollerState.SCHEDULED
            self.timer.start(self.interval, self.tick)

        logger.debug("Status poller started (interval %.1fs)", self.interval)

    def stop(self) -> None:
        """Cancel the timer and discard the results of any refresh in flight."""
        with self._lock:
            if self._state is PollerState.IDLE:
                return
            self._generation += 1
            self._state = PollerState.IDLE

        self.timer.cancel()
        logger.debug("Status poller stopped")

    def tick(self) -> TickResult:
        """
        Run one poll cycle.

        Returns
        -------
        TickResult
            What the tick did

        """
        with self._lock:
            if self._state is not PollerState.SCHEDULED or self._refreshing:
                logger.debug("Dropping poll tick (state %s, refresh in flight: %s)", self._state, self._refreshing)
                return TickResult(outcome=TickOutcome.SKIPPED)

            if not self.pending(self.aggregator.history):
                logger.debug("No pending swaps, skipping refresh")
                return TickResult(outcome=TickOutcome.IDLE)

            self._state = PollerState.REFRESHING
            self._refreshing = True
            generation = self._generation

        try:
            accounts = self.store.get()
            updates, result = self._refresh_accounts(accounts)

            with self._lock:
                if generation != self._generation:
                    logger.debug("Poller stopped during refresh, discarding %d results", len(updates))
                    result.outcome = TickOutcome.DISCARDED
                    result.applied = []
                    return result

                bases = {account.id: account for account in accounts}
                changed = self.store.update_many(
                    {account_id: _rebase(bases[account_id], refreshed) for account_id, refreshed in updates.items()}
                )

            if changed:
                logger.info("Applied refreshed swap statuses for %d accounts", changed)
            return result
        finally:
            with self._lock:
                self._refreshing = False
                if generation == self._generation and self._state is PollerState.REFRESHING:
                    self._state = PollerState.SCHEDULED

    def _refresh_accounts(self, accounts: tuple[Account, ...]) -> tuple[dict[str, Account], TickResult]:
        """
        Refresh all accounts concurrently and collect the results.

        Parameters
        ----------
        accounts : tuple[Account, ...]
            Snapshot of the accounts to refresh

        Returns
        -------
        tuple[dict[str, Account], TickResult]
            Updated snapshots keyed by account id, and the tick summary

        """
        updates: dict[str, Account] = {}
        result = TickResult(outcome=TickOutcome.REFRESHED)
        if not accounts:
            return updates, result

        with ThreadPoolExecutor(max_workers=min(len(accounts), self.max_workers)) as executor:
            future_to_account = {executor.submit(self.refresher, account): account for account in accounts}

            for future in as_completed(future_to_account):
                account = future_to_account[future]
                try:
                    refreshed = future.result()
                except Exception as e:
                    # Keep the last known snapshot; the next tick retries
                    failure = RefreshFailed(account.id, e)
                    logger.warning("%s", failure)
                    result.failed.append(account.id)
                    continue

                if refreshed is None:
                    result.unchanged.append(account.id)
                else:
                    updates[account.id] = refreshed
                    result.applied.append(account.id)

        result.applied.sort()
        result.unchanged.sort()
        result.failed.sort()
        return updates, result

    def __enter__(self) -> "StatusPoller":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()


def _rebase(base: Account, refreshed: Account) -> Callable[[Account], Account]:
    """
    Build a store updater that installs a refresh result.

    If the account is still the snapshot the refresh started from, the result
    is installed as is. Otherwise only the operations the refresh changed are
    merged into the current account.
    """

    def apply(current: Account) -> Account:
        if current is base:
            return refreshed
        return current.merge_operations(refreshed.changed_operations(base))

    return apply
