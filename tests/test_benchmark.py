"""
Benchmark comparison: realized trading profit vs. a 10%/month holding curve.
"""

from __future__ import annotations

from datetime import date, datetime

from tradejournal.ledger.models import PartialExit, PortfolioSettings, TimePeriod
from tradejournal.performance.benchmark import compare_to_benchmark, find_baseline_point
from tradejournal.performance.timeseries import build_portfolio_performance


class TestBaselinePoint:

    def test_exact_then_after_then_earliest(self, settings):
        series = build_portfolio_performance([], settings, today=datetime(2024, 1, 10))
        assert find_baseline_point(series, date(2024, 1, 4)).date == date(2024, 1, 4)
        assert find_baseline_point(series, date(2023, 6, 1)).date == date(2024, 1, 1)
        assert find_baseline_point(series, date(2024, 2, 1)).date == date(2024, 1, 1)
        assert find_baseline_point((), date(2024, 1, 1)) is None


class TestCompareToBenchmark:

    def test_no_closed_trades(self):
        settings = PortfolioSettings(start_date=datetime(2024, 1, 1), initial_balance=10_000.0)
        result = compare_to_benchmark([], settings, TimePeriod.ALL, now=datetime(2024, 4, 1))
        assert result.trading_profit == 0.0
        assert abs(result.holding_profit - 3310.0) < 1e-6
        assert abs(result.difference + 3310.0) < 1e-6
        assert result.percentage_difference == -100.0
        assert result.is_full_period is True
        assert result.actual_start_date == date(2024, 1, 1)
        assert result.year_start_balance is None

    def test_open_trades_with_partials_count_as_no_closed_trades(self, settings, make_trade):
        trade = make_trade(
            partial_exits=[PartialExit(exit_date=datetime(2024, 1, 3), exit_price=110.0,
                                       exit_quantity=4.0)],
            remaining_quantity=6.0, original_quantity=10.0,
        )
        result = compare_to_benchmark([trade], settings, now=datetime(2024, 1, 10))
        assert result.trading_profit == 0.0
        assert result.percentage_difference == -100.0

    def test_closed_trade_against_holding(self, settings, make_trade):
        trade = make_trade(is_active=False, exit_price=110.0, exit_date=datetime(2024, 1, 5))
        result = compare_to_benchmark([trade], settings, now=datetime(2024, 1, 10))
        holding = 1000.0 * (1.1 ** (9 / 31) - 1)
        assert abs(result.trading_profit - 100.0) < 1e-9
        assert abs(result.holding_profit - holding) < 1e-9
        assert abs(result.difference - (100.0 - holding)) < 1e-9
        assert abs(result.percentage_difference - (100.0 - holding) / holding * 100) < 1e-6
        assert result.start_balance == 1000.0

    def test_year_period_started_mid_year(self, make_trade):
        settings = PortfolioSettings(start_date=datetime(2024, 3, 10), initial_balance=5000.0)
        trade = make_trade(entry_date=datetime(2024, 3, 12), is_active=False,
                           exit_price=90.0, exit_date=datetime(2024, 3, 20))
        result = compare_to_benchmark([trade], settings, TimePeriod.YEAR, now=datetime(2024, 4, 1))
        assert result.is_full_period is False
        assert result.actual_start_date == date(2024, 3, 10)
        assert result.start_balance == 5000.0
        assert result.year_start_balance == 5000.0
        assert abs(result.trading_profit + 100.0) < 1e-9
        assert abs(result.holding_profit - 5000.0 * (1.1 ** (22 / 31) - 1)) < 1e-9

    def test_month_baseline_reads_balance_from_full_series(self, settings, make_trade):
        # January profit lifts the balance the March holding curve starts from
        jan = make_trade(entry_date=datetime(2024, 1, 2), is_active=False,
                         exit_price=120.0, exit_date=datetime(2024, 1, 15))
        mar = make_trade(entry_date=datetime(2024, 3, 2), is_active=False,
                         exit_price=101.0, exit_date=datetime(2024, 3, 5))
        result = compare_to_benchmark([jan, mar], settings, TimePeriod.MONTH,
                                      now=datetime(2024, 3, 11))
        assert result.actual_start_date == date(2024, 3, 1)
        assert result.start_balance == 1200.0
        assert abs(result.trading_profit - 10.0) < 1e-9
        assert abs(result.holding_profit - 1200.0 * (1.1 ** (10 / 31) - 1)) < 1e-9

    def test_wire_format(self, settings):
        d = compare_to_benchmark([], settings, TimePeriod.QUARTER,
                                 now=datetime(2024, 1, 10)).to_dict()
        assert d["period"] == "quarter"
        assert d["actual_start_date"] == "2024-01-01"
