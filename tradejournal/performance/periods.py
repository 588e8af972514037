"""Reporting-period boundaries shared by the time series and the benchmark."""

from __future__ import annotations

import calendar
from datetime import date, datetime
from typing import Optional

import pandas as pd

from tradejournal.ledger.models import PortfolioSettings, TimePeriod

MIN_MONTHS_PASSED = 0.1


def period_cutoff(period: TimePeriod, now: datetime) -> Optional[datetime]:
    """Earliest entry date a trade may have to count towards `period`."""
    period = TimePeriod(period)
    midnight = datetime(now.year, now.month, now.day)
    if period == TimePeriod.MONTH:
        return (pd.Timestamp(midnight) - pd.DateOffset(months=1)).to_pydatetime()
    if period == TimePeriod.QUARTER:
        return (pd.Timestamp(midnight) - pd.DateOffset(months=3)).to_pydatetime()
    if period == TimePeriod.YEAR:
        return datetime(now.year, 1, 1)
    return None


def baseline_date(period: TimePeriod, now: datetime, settings: PortfolioSettings) -> date:
    """Calendar start of the current month / quarter / year, or the portfolio start."""
    period = TimePeriod(period)
    if period == TimePeriod.MONTH:
        return date(now.year, now.month, 1)
    if period == TimePeriod.QUARTER:
        return date(now.year, 3 * ((now.month - 1) // 3) + 1, 1)
    if period == TimePeriod.YEAR:
        return date(now.year, 1, 1)
    return settings.start_date.date()


def months_between(start: date, now: datetime) -> float:
    """Whole months since `start` plus the fraction of the month in progress.

    Floored at MIN_MONTHS_PASSED so growth never degenerates to zero.
    """
    today = now.date()
    whole = (today.year - start.year) * 12 + today.month - start.month
    if today.day < start.day:
        whole -= 1
    if whole < 0:
        return MIN_MONTHS_PASSED

    anchor = (pd.Timestamp(start) + pd.DateOffset(months=whole)).date()
    days_in_month = calendar.monthrange(anchor.year, anchor.month)[1]
    fraction = (today - anchor).days / days_in_month
    return max(whole + fraction, MIN_MONTHS_PASSED)
