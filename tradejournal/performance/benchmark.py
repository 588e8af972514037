"""
Benchmark Comparator
====================

Realized trading profit for a period against a synthetic "just hold it"
benchmark that compounds at a fixed monthly rate from a baseline balance.
The baseline balance is read off the full ("all") performance series.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from tradejournal.ledger.models import (
    BenchmarkComparison,
    PerformancePoint,
    PortfolioSettings,
    TimePeriod,
    Trade,
    utcnow,
)
from tradejournal.performance.periods import baseline_date, months_between, period_cutoff
from tradejournal.performance.timeseries import build_portfolio_performance
from tradejournal.utils.logger import get_logger
from tradejournal.valuation.engine import realized_legs

logger = get_logger(__name__)

DEFAULT_MONTHLY_GROWTH = 0.10


def find_baseline_point(
    series: Sequence[PerformancePoint], baseline: date
) -> Optional[PerformancePoint]:
    """Exact date match, else first point on/after it, else the earliest point."""
    if not series:
        return None
    for point in series:
        if point.date == baseline:
            return point
    for point in series:
        if point.date >= baseline:
            return point
    return min(series, key=lambda p: p.date)


def compare_to_benchmark(
    trades: Iterable[Trade],
    settings: PortfolioSettings,
    period: TimePeriod = TimePeriod.ALL,
    now: Optional[datetime] = None,
    monthly_growth: float = DEFAULT_MONTHLY_GROWTH,
) -> BenchmarkComparison:
    period = TimePeriod(period)
    now = now or utcnow()
    trades = list(trades)

    cutoff = period_cutoff(period, now)
    in_period = [t for t in trades if cutoff is None or t.entry_date >= cutoff]
    legs = [leg for t in in_period for leg in realized_legs(t)]
    trading_profit = sum(leg.net for leg in legs)

    baseline = baseline_date(period, now, settings)
    series = build_portfolio_performance(trades, settings, TimePeriod.ALL, today=now)
    point = find_baseline_point(series, baseline)
    if point is None:
        start_balance, actual_start = settings.initial_balance, baseline
    else:
        start_balance, actual_start = point.portfolio_value, point.date

    months = months_between(actual_start, now)
    holding_profit = start_balance * ((1 + monthly_growth) ** months - 1)

    any_closed = any(not t.is_active for t in in_period)
    if not any_closed:
        trading_profit = 0.0
    difference = trading_profit - holding_profit

    if not any_closed:
        percentage_difference = -100.0
    elif holding_profit != 0:
        percentage_difference = difference / abs(holding_profit) * 100
    elif difference > 0:
        percentage_difference = 100.0
    elif difference < 0:
        percentage_difference = -100.0
    else:
        percentage_difference = 0.0

    logger.debug("benchmark_compared", period=period.value, baseline=baseline.isoformat(),
                 actual_start=actual_start.isoformat(), months=round(months, 4))

    return BenchmarkComparison(
        trading_profit=trading_profit,
        holding_profit=holding_profit,
        difference=difference,
        percentage_difference=percentage_difference,
        period=period,
        start_balance=start_balance,
        is_full_period=actual_start == baseline,
        actual_start_date=actual_start,
        year_start_balance=start_balance if period == TimePeriod.YEAR else None,
    )
