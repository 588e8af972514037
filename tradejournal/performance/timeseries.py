"""
Performance Time-Series Builder
===============================

Turns the sparse ledger into one snapshot per calendar day:

  1. seed a point at the portfolio start date (initial balance, 0, 0)
  2. collect events from qualifying trades, oldest entry first:
       entry        -> trade_count + 1 on the entry date
       partial exit -> profit - fee on the exit date
       final close  -> profit - fee on the close date (open quantity only)
  3. merge events by date and accumulate
  4. forward-fill every missing day up to today (no interpolation)

portfolio_value == initial_balance + cumulative_profit on every point.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional, Tuple

import pandas as pd

from tradejournal.ledger.models import (
    PerformancePoint,
    PortfolioSettings,
    TimePeriod,
    Trade,
    utcnow,
)
from tradejournal.performance.periods import period_cutoff
from tradejournal.utils.logger import get_logger
from tradejournal.valuation.engine import realized_legs

logger = get_logger(__name__)

_COLUMNS = ["date", "profit", "count"]


def qualifying_trades(
    trades: Iterable[Trade],
    settings: PortfolioSettings,
    period: TimePeriod,
    now: datetime,
) -> List[Trade]:
    cutoff = period_cutoff(period, now)
    selected = [
        t for t in trades
        if t.entry_date >= settings.start_date and (cutoff is None or t.entry_date >= cutoff)
    ]
    return sorted(selected, key=lambda t: t.entry_date)


def _collect_events(trades: List[Trade], settings: PortfolioSettings) -> List[tuple]:
    seed_day = settings.start_date.date()
    events: List[tuple] = [(seed_day, 0.0, 0)]
    for trade in trades:
        events.append((trade.entry_date.date(), 0.0, 1))
        for leg in realized_legs(trade):
            # A leg stamped before the portfolio start folds into the seed day.
            events.append((max(leg.date.date(), seed_day), leg.net, 0))
    return events


def build_portfolio_performance(
    trades: Iterable[Trade],
    settings: PortfolioSettings,
    period: TimePeriod = TimePeriod.ALL,
    today: Optional[datetime] = None,
) -> Tuple[PerformancePoint, ...]:
    now = today or utcnow()
    selected = qualifying_trades(trades, settings, period, now)
    events = _collect_events(selected, settings)

    frame = pd.DataFrame(events, columns=_COLUMNS)
    frame["date"] = pd.to_datetime(frame["date"])
    daily = frame.groupby("date").sum().sort_index()
    daily["cumulative_profit"] = daily["profit"].cumsum()
    daily["trade_count"] = daily["count"].cumsum()

    first = daily.index.min()
    last = max(daily.index.max(), pd.Timestamp(now.date()))
    calendar_days = pd.date_range(first, last, freq="D")
    filled = daily[["cumulative_profit", "trade_count"]].reindex(calendar_days).ffill()

    initial = settings.initial_balance
    points = tuple(
        PerformancePoint(
            date=ts.date(),
            portfolio_value=initial + float(row.cumulative_profit),
            cumulative_profit=float(row.cumulative_profit),
            trade_count=int(row.trade_count),
        )
        for ts, row in zip(filled.index, filled.itertuples(index=False))
    )
    logger.debug("performance_series_built", period=TimePeriod(period).value,
                 trades=len(selected), points=len(points))
    return points
