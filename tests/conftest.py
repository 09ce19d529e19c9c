"""Pytest configuration and shared fixtures for swap-history tests."""

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from swap_history.core.models import Account, SwapOperation
from swap_history.data import SETTINGS_ENV_VAR

DAY1 = datetime(2024, 3, 1, 10, 0, tzinfo=UTC)
DAY2 = datetime(2024, 3, 2, 9, 30, tzinfo=UTC)


class ManualTimer:
    """IntervalTimer that only fires when the test says so."""

    def __init__(self):
        self.interval = None
        self.callback = None
        self.started = 0
        self.cancelled = False

    def start(self, interval, callback):
        self.interval = interval
        self.callback = callback
        self.started += 1
        self.cancelled = False

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if self.callback is None or self.cancelled:
            return None
        return self.callback()


@pytest.fixture(autouse=True)
def default_settings(monkeypatch):
    """Use the bundled settings unless a test overrides them."""
    monkeypatch.delenv(SETTINGS_ENV_VAR, raising=False)


@pytest.fixture
def make_operation():
    """Factory for swap operations with sensible defaults."""

    def _make(swap_id, status="finished", timestamp=DAY1, account_id="a1", **kwargs):
        values = {
            "from_currency": "BTC",
            "to_currency": "ETH",
            "from_amount": Decimal("0.5"),
            "to_amount": Decimal("8.25"),
        }
        values.update(kwargs)
        return SwapOperation(
            swap_id=swap_id,
            status=status,
            timestamp=timestamp,
            account_id=account_id,
            **values,
        )

    return _make


@pytest.fixture
def make_account(make_operation):
    """Factory for accounts holding operations built from (swap_id, status) pairs."""

    def _make(account_id, *ops, sub_accounts=()):
        history = tuple(
            op if isinstance(op, SwapOperation) else make_operation(op[0], op[1], account_id=account_id)
            for op in ops
        )
        return Account(id=account_id, swap_history=history, sub_accounts=tuple(sub_accounts))

    return _make


@pytest.fixture
def manual_timer():
    return ManualTimer()


@pytest.fixture
def queued_settings(tmp_path, monkeypatch):
    """Settings file whose only pending status is "queued"."""
    path = tmp_path / "settings.yaml"
    path.write_text(
        "polling: {interval_seconds: 10, max_workers: 4}\n"
        "history: {day_boundary: utc}\n"
        "statuses: {pending: [queued], terminal: [done]}\n"
        "export: {delimiter: ',', filename_prefix: swaps}\n",
        encoding="utf-8",
    )
    monkeypatch.setenv(SETTINGS_ENV_VAR, str(path))
    return path
