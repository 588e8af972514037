"""
Performance Layer
=================

  periods.py     — period cutoffs, baseline dates, fractional months
  timeseries.py  — daily forward-filled equity series from the ledger
  benchmark.py   — realized profit vs. a fixed-growth holding benchmark
"""

from tradejournal.performance.benchmark import compare_to_benchmark
from tradejournal.performance.timeseries import build_portfolio_performance

__all__ = ["build_portfolio_performance", "compare_to_benchmark"]
