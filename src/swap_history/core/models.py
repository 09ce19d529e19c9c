"""Data models for swap operations, accounts, and day-grouped history sections."""

from collections.abc import Iterable, Iterator
from datetime import date
from decimal import Decimal
from enum import StrEnum

from pydantic import AwareDatetime, BaseModel, ConfigDict


class SwapStatus(StrEnum):
    """Statuses reported by the swap provider."""

    NEW = "new"
    WAITING = "waiting"
    CONFIRMING = "confirming"
    EXCHANGING = "exchanging"
    SENDING = "sending"
    PENDING = "pending"
    HOLD = "hold"
    ONHOLD = "onhold"
    FINISHED = "finished"
    REFUNDED = "refunded"
    FAILED = "failed"
    EXPIRED = "expired"


class SwapOperation(BaseModel):
    """
    One currency-exchange transaction with its lifecycle status.

    Operations are immutable. A status update produces a new operation with
    the same ``swap_id`` that replaces the old one.

    Attributes
    ----------
    swap_id : str
        Provider swap identifier, unique across all accounts
    status : str
        Provider status (see SwapStatus for the known values)
    timestamp : datetime
        Timezone-aware time of the swap
    from_currency : str
        Ticker of the currency sent
    to_currency : str
        Ticker of the currency received
    from_amount : Decimal
        Amount sent
    to_amount : Decimal
        Amount received
    account_id : str
        Id of the account the swap was sent from
    provider : str | None
        Swap provider name
    to_account_id : str | None
        Id of the receiving account, if known
    operation_id : str | None
        Id of the on-chain operation that funded the swap

    """

    model_config = ConfigDict(frozen=True)

    swap_id: str
    status: str
    timestamp: AwareDatetime
    from_currency: str
    to_currency: str
    from_amount: Decimal
    to_amount: Decimal
    account_id: str
    provider: str | None = None
    to_account_id: str | None = None
    operation_id: str | None = None

    def with_status(self, status: str) -> "SwapOperation":
        """Return a copy of this operation carrying a new status."""
        return self.model_copy(update={"status": status})


class Account(BaseModel):
    """
    Immutable snapshot of an account and its swap history.

    Attributes
    ----------
    id : str
        Account identifier
    name : str | None
        Display name
    currency : str | None
        Currency ticker of the account
    swap_history : tuple[SwapOperation, ...]
        Swaps sent from this account, in no particular order
    sub_accounts : tuple[Account, ...]
        Token accounts nested under this account

    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str | None = None
    currency: str | None = None
    swap_history: tuple[SwapOperation, ...] = ()
    sub_accounts: tuple["Account", ...] = ()

    def flatten(self) -> Iterator["Account"]:
        """Yield this account followed by all of its sub-accounts, depth first."""
        yield self
        for sub_account in self.sub_accounts:
            yield from sub_account.flatten()

    def operation_ids(self) -> set[str]:
        """Return the swap ids owned by this account or any sub-account."""
        return {op.swap_id for account in self.flatten() for op in account.swap_history}

    def merge_operations(self, updated: Iterable[SwapOperation]) -> "Account":
        """
        Merge updated operations into a new account snapshot.

        Operations whose ``swap_id`` already exists replace the old value at
        the same position. Operations owned by a sub-account (by id, or by
        ``account_id`` for new ones) are routed to that sub-account. Anything
        left is appended to this account's history.

        Parameters
        ----------
        updated : Iterable[SwapOperation]
            New operation values

        Returns
        -------
        Account
            The merged snapshot, or ``self`` when there is nothing to merge

        """
        pending = {op.swap_id: op for op in updated}
        if not pending:
            return self

        own_ids = {op.swap_id for op in self.swap_history}
        history = [pending.pop(op.swap_id, op) for op in self.swap_history]

        sub_accounts = []
        for sub_account in self.sub_accounts:
            owned_ids = sub_account.operation_ids()
            routed = [
                op
                for swap_id, op in pending.items()
                if swap_id not in own_ids and (swap_id in owned_ids or op.account_id == sub_account.id)
            ]
            for op in routed:
                del pending[op.swap_id]
            sub_accounts.append(sub_account.merge_operations(routed))

        history.extend(pending.values())
        return self.model_copy(update={"swap_history": tuple(history), "sub_accounts": tuple(sub_accounts)})

    def changed_operations(self, base: "Account") -> list[SwapOperation]:
        """
        Operations of this snapshot that are new or differ from ``base``.

        Parameters
        ----------
        base : Account
            Earlier snapshot of the same account

        Returns
        -------
        list[SwapOperation]
            Changed operations in traversal order

        """
        before = {op.swap_id: op for account in base.flatten() for op in account.swap_history}
        return [
            op
            for account in self.flatten()
            for op in account.swap_history
            if before.get(op.swap_id) != op
        ]


class Section(BaseModel):
    """
    Swap operations of one calendar day, newest first.

    Attributes
    ----------
    day : date
        Calendar day in the configured day-boundary timezone
    data : tuple[SwapOperation, ...]
        Operations of that day

    """

    model_config = ConfigDict(frozen=True)

    day: date
    data: tuple[SwapOperation, ...]


class AggregatedHistory(BaseModel):
    """
    Day-grouped swap history across all accounts, most recent day first.

    Attributes
    ----------
    sections : tuple[Section, ...]
        One section per calendar day that has at least one swap

    """

    model_config = ConfigDict(frozen=True)

    sections: tuple[Section, ...] = ()

    def operations(self) -> Iterator[SwapOperation]:
        """Yield every operation in display order."""
        for section in self.sections:
            yield from section.data

    @property
    def operation_count(self) -> int:
        return sum(len(section.data) for section in self.sections)

    def is_empty(self) -> bool:
        return not self.sections
