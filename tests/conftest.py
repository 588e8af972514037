"""
Shared fixtures for the trade journal tests.

Dates are pinned (no wall clock) so equity series and benchmark months
are deterministic: the portfolio starts 2024-01-01 with 1000 and the
"current" moment defaults to 2024-01-10.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable

import pytest

from tradejournal.journal import TradeJournal
from tradejournal.ledger.models import PortfolioSettings, QuantityType, Trade
from tradejournal.ledger.store import TradeLedger

START = datetime(2024, 1, 1)
NOW = datetime(2024, 1, 10)


@pytest.fixture
def settings() -> PortfolioSettings:
    return PortfolioSettings(start_date=START, initial_balance=1000.0)


@pytest.fixture
def make_trade() -> Callable[..., Trade]:
    """Factory: a 10-coin long BTC position at 100 with a stop at 90."""
    counter = {"n": 0}

    def _make(**overrides: Any) -> Trade:
        counter["n"] += 1
        data: dict[str, Any] = {
            "id": f"t{counter['n']}",
            "asset": "BTC",
            "entry_price": 100.0,
            "quantity": 10.0,
            "quantity_type": QuantityType.COINS,
            "stop_loss": 90.0,
            "entry_date": START,
            "fees": 0.0,
        }
        data.update(overrides)
        return Trade(**data)

    return _make


@pytest.fixture
def ledger() -> TradeLedger:
    return TradeLedger()


@pytest.fixture
def journal(settings: PortfolioSettings) -> TradeJournal:
    return TradeJournal(settings=settings)


@pytest.fixture
def trade_payload() -> dict[str, Any]:
    """Wire-format (camelCase) trade as a form or an import would send it."""
    return {
        "cryptocurrency": "BTC",
        "coinId": "bitcoin",
        "entryPrice": 100,
        "quantity": 10,
        "quantityType": "coins",
        "stopLoss": 90,
        "entryDate": "2024-01-01T00:00:00.000Z",
        "fees": 0,
        "feesType": "percentage",
    }
