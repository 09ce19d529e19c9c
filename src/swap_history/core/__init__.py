"""Core functionality including models, store, aggregator, pending detection, and poller."""

from swap_history.core.aggregator import HistoryAggregator, aggregate, flatten_accounts
from swap_history.core.exceptions import (
    ConfigurationError,
    ExportSerializationFailed,
    ExportWriteFailed,
    RefreshFailed,
    SwapHistoryError,
)
from swap_history.core.models import (
    Account,
    AggregatedHistory,
    Section,
    SwapOperation,
    SwapStatus,
)
from swap_history.core.pending import DEFAULT_PENDING_STATUSES, PendingDetector, has_pending
from swap_history.core.poller import (
    PollerState,
    StatusPoller,
    ThreadingIntervalTimer,
    TickOutcome,
    TickResult,
)
from swap_history.core.refresh import FileAccountRefresher, StatusLookupRefresher
from swap_history.core.store import OperationStore

__all__ = [
    "DEFAULT_PENDING_STATUSES",
    "Account",
    "AggregatedHistory",
    "ConfigurationError",
    "ExportSerializationFailed",
    "ExportWriteFailed",
    "FileAccountRefresher",
    "HistoryAggregator",
    "OperationStore",
    "PendingDetector",
    "PollerState",
    "RefreshFailed",
    "Section",
    "StatusLookupRefresher",
    "StatusPoller",
    "SwapHistoryError",
    "SwapOperation",
    "SwapStatus",
    "ThreadingIntervalTimer",
    "TickOutcome",
    "TickResult",
    "aggregate",
    "flatten_accounts",
    "has_pending",
]
