"""Win/loss statistics over closed trades."""

from __future__ import annotations

import math
from typing import Iterable

import numpy as np

from tradejournal.ledger.models import Trade, TradeStats
from tradejournal.valuation.engine import realized_legs


def get_trade_stats(trades: Iterable[Trade]) -> TradeStats:
    closed = [t for t in trades if not t.is_active and t.exit_price is not None]
    if not closed:
        return TradeStats()

    pnls = np.array([sum(leg.net for leg in realized_legs(t)) for t in closed], dtype=float)
    wins = pnls[pnls > 0]
    losses = pnls[pnls <= 0]

    total_wins = float(wins.sum())
    total_losses = abs(float(losses.sum()))

    if total_losses > 0:
        profit_factor = total_wins / total_losses
    else:
        profit_factor = math.inf if total_wins > 0 else 0.0

    return TradeStats(
        total_trades=len(closed),
        winning_trades=int(wins.size),
        losing_trades=int(losses.size),
        win_rate=wins.size / len(closed) * 100,
        total_profit=float(pnls.sum()),
        average_profit=total_wins / wins.size if wins.size else 0.0,
        average_loss=total_losses / losses.size if losses.size else 0.0,
        profit_factor=profit_factor,
    )
