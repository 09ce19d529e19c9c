"""Detection of swap operations that have not reached a terminal status."""

from collections.abc import Iterable

from swap_history.core.models import AggregatedHistory, SwapStatus

DEFAULT_PENDING_STATUSES = frozenset(
    status.value
    for status in (
        SwapStatus.NEW,
        SwapStatus.WAITING,
        SwapStatus.CONFIRMING,
        SwapStatus.EXCHANGING,
        SwapStatus.SENDING,
        SwapStatus.PENDING,
        SwapStatus.HOLD,
        SwapStatus.ONHOLD,
    )
)


def has_pending(history: AggregatedHistory | None, pending_statuses: Iterable[str] = DEFAULT_PENDING_STATUSES) -> bool:
    """
    Check whether any operation in the history is still pending.

    Stops at the first pending operation.

    Parameters
    ----------
    history : AggregatedHistory | None
        Aggregated history; None means no history has been built yet
    pending_statuses : Iterable[str]
        Statuses that count as non-terminal

    Returns
    -------
    bool
        True if at least one operation has a pending status

    """
    if history is None:
        return False
    statuses = pending_statuses if isinstance(pending_statuses, frozenset) else frozenset(pending_statuses)
    return any(operation.status in statuses for operation in history.operations())


class PendingDetector:
    """
    Callable pending check bound to a status taxonomy.

    Parameters
    ----------
    pending_statuses : Iterable[str]
        Statuses that count as non-terminal

    """

    def __init__(self, pending_statuses: Iterable[str] = DEFAULT_PENDING_STATUSES) -> None:
        self.pending_statuses = frozenset(pending_statuses)

    def is_pending(self, status: str) -> bool:
        return status in self.pending_statuses

    def __call__(self, history: AggregatedHistory | None) -> bool:
        return has_pending(history, self.pending_statuses)
