from tradejournal.ledger.models import (
    BenchmarkComparison,
    Direction,
    FeeType,
    PartialExit,
    PerformancePoint,
    PortfolioSettings,
    QuantityType,
    TimePeriod,
    Trade,
    TradeStats,
    TrailingType,
)
from tradejournal.ledger.store import TradeLedger

__all__ = [
    "BenchmarkComparison", "Direction", "FeeType", "PartialExit",
    "PerformancePoint", "PortfolioSettings", "QuantityType", "TimePeriod",
    "Trade", "TradeStats", "TrailingType",
    "TradeLedger",
]
