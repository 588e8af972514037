"""
TradeJournal — the ledger plus portfolio settings, with every derived view
==========================================================================

Holds one TradeLedger and the PortfolioSettings anchor. Equity, the daily
performance series, the benchmark comparison and trade stats are computed
fresh from the current ledger snapshot on every call.

When a JournalRepository is attached, each ledger change is saved
fire-and-forget: a failed save is logged and the in-memory state stands.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from tradejournal.ledger.models import (
    BenchmarkComparison,
    FeeType,
    PerformancePoint,
    PortfolioSettings,
    TimePeriod,
    Trade,
    TradeStats,
    TrailingType,
)
from tradejournal.ledger.store import TradeLedger
from tradejournal.performance.benchmark import compare_to_benchmark
from tradejournal.performance.timeseries import build_portfolio_performance
from tradejournal.storage.repository import JournalRepository
from tradejournal.utils.config import get_settings
from tradejournal.utils.exceptions import JournalError
from tradejournal.utils.logger import get_logger
from tradejournal.valuation.engine import calculate_current_portfolio_value
from tradejournal.valuation.stats import get_trade_stats

logger = get_logger(__name__)


class TradeJournal:
    def __init__(
        self,
        trades: Optional[Iterable[Trade]] = None,
        settings: Optional[PortfolioSettings] = None,
        repository: Optional[JournalRepository] = None,
        app_settings: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.ledger = TradeLedger(trades)
        self._settings = settings or PortfolioSettings.default(
            get_settings().default_initial_balance
        )
        self._repository = repository
        self.app_settings: Dict[str, Any] = dict(app_settings or {})
        if repository is not None:
            self.ledger.subscribe(self._persist_trades)

    @classmethod
    def load(cls, repository: JournalRepository) -> "TradeJournal":
        journal = cls(
            trades=repository.load_trades(),
            settings=repository.load_settings(),
            repository=repository,
            app_settings=repository.load_app_settings(),
        )
        logger.info("journal_loaded", trades=len(journal.ledger),
                    initial_balance=journal.portfolio_settings.initial_balance)
        return journal

    # ─── PERSISTENCE ────────────────────────────────────────────

    def _persist_trades(self, trades: Tuple[Trade, ...]) -> None:
        if self._repository is None:
            return
        try:
            self._repository.save_trades(list(trades))
            self._repository.save_portfolio_value(self.calculate_current_portfolio_value())
        except JournalError as e:
            logger.error("journal_save_failed", error=str(e))

    def _persist_settings(self) -> None:
        if self._repository is None:
            return
        try:
            self._repository.save_settings(self._settings)
            self._repository.save_portfolio_value(self.calculate_current_portfolio_value())
        except JournalError as e:
            logger.error("journal_save_failed", error=str(e))

    def save_app_settings(self, app_settings: Dict[str, Any]) -> None:
        self.app_settings = dict(app_settings)
        if self._repository is None:
            return
        try:
            self._repository.save_app_settings(self.app_settings)
        except JournalError as e:
            logger.error("journal_save_failed", error=str(e))

    # ─── SETTINGS ───────────────────────────────────────────────

    @property
    def portfolio_settings(self) -> PortfolioSettings:
        return self._settings

    def set_portfolio_settings(self, settings: PortfolioSettings) -> None:
        self._settings = settings
        logger.info("portfolio_settings_updated", start_date=settings.start_date.isoformat(),
                    initial_balance=settings.initial_balance)
        self._persist_settings()

    @property
    def trades(self) -> Tuple[Trade, ...]:
        return self.ledger.trades

    # ─── LEDGER MUTATIONS ───────────────────────────────────────

    def add_trade(self, data: Union[Trade, Dict[str, Any]]) -> Trade:
        return self.ledger.add_trade(data)

    def update_trade(self, trade: Trade) -> Optional[Trade]:
        return self.ledger.update_trade(trade)

    def update_stop_loss(self, trade_id: str, stop_loss: float) -> Optional[Trade]:
        return self.ledger.update_stop_loss(trade_id, stop_loss)

    def set_trailing_stop(self, trade_id: str, amount: float,
                          trailing_type: TrailingType = TrailingType.PERCENTAGE) -> Optional[Trade]:
        return self.ledger.set_trailing_stop(trade_id, amount, trailing_type)

    def close_trade(self, trade_id: str, exit_price: float,
                    exit_date: Optional[datetime] = None,
                    fees: Optional[float] = None,
                    fees_type: Optional[FeeType] = None,
                    screenshots: Optional[List[dict]] = None) -> Optional[Trade]:
        return self.ledger.close_trade(trade_id, exit_price, exit_date, fees, fees_type, screenshots)

    def close_partial_trade(self, trade_id: str, exit_price: float, exit_quantity: float,
                            notes: Optional[str] = None,
                            exit_date: Optional[datetime] = None,
                            fees: Optional[float] = None,
                            fees_type: Optional[FeeType] = None) -> Optional[Trade]:
        return self.ledger.close_partial_trade(trade_id, exit_price, exit_quantity, notes,
                                               exit_date, fees, fees_type)

    def delete_trade(self, trade_id: str) -> bool:
        return self.ledger.delete_trade(trade_id)

    def import_trades(self, trades: Iterable[Union[Trade, Dict[str, Any]]]) -> int:
        return self.ledger.import_trades(trades)

    # ─── DERIVED VIEWS ──────────────────────────────────────────

    def calculate_current_portfolio_value(self) -> float:
        return calculate_current_portfolio_value(self.ledger.trades, self._settings)

    def get_portfolio_performance(
        self, period: TimePeriod = TimePeriod.ALL, today: Optional[datetime] = None
    ) -> Tuple[PerformancePoint, ...]:
        return build_portfolio_performance(self.ledger.trades, self._settings, period, today)

    def get_bitcoin_comparison(
        self, period: TimePeriod = TimePeriod.ALL, now: Optional[datetime] = None
    ) -> BenchmarkComparison:
        return compare_to_benchmark(
            self.ledger.trades, self._settings, period, now,
            monthly_growth=get_settings().benchmark_monthly_growth,
        )

    def get_trade_stats(self) -> TradeStats:
        return get_trade_stats(self.ledger.trades)
