"""
Risk solver tests: position sizing, stop placement, forward risk %,
and the inverse relation between the three calculators.
"""

from __future__ import annotations

import pytest

from tradejournal.ledger.models import FeeType, QuantityType
from tradejournal.risk.solver import (
    SizingInputs,
    SolveFor,
    calculate_position_from_dollar_risk,
    calculate_position_from_risk,
    calculate_risk,
    calculate_stop_loss_from_risk,
    solve,
)

COINS = QuantityType.COINS
DOLLARS = QuantityType.DOLLARS
PV = 10_000.0


# ═══════════════════════════════════════════════════════════
# 1. POSITION SIZE
# ═══════════════════════════════════════════════════════════

class TestPositionFromRisk:

    def test_plain_long(self):
        assert abs(calculate_position_from_risk(100, 90, 2, PV, COINS, False) - 20.0) < 1e-9

    def test_percentage_fee_shrinks_position(self):
        size = calculate_position_from_risk(100, 90, 2, PV, COINS, False, fee=1.0)
        assert abs(size - 200 / 11) < 1e-9
        assert size < 20.0

    def test_dollar_denominated(self):
        assert abs(calculate_position_from_risk(100, 90, 2, PV, DOLLARS, False) - 2000.0) < 1e-6

    def test_fixed_fee_comes_off_budget(self):
        size = calculate_position_from_risk(100, 90, 2, PV, COINS, False,
                                            fee=5.0, fee_type=FeeType.FIXED)
        assert abs(size - 19.5) < 1e-9

    def test_fixed_fee_larger_than_budget(self):
        size = calculate_position_from_risk(100, 90, 2, PV, COINS, False,
                                            fee=500.0, fee_type=FeeType.FIXED)
        assert size == 0.0

    def test_short(self):
        assert abs(calculate_position_from_risk(100, 110, 2, PV, COINS, True) - 20.0) < 1e-9

    @pytest.mark.parametrize("entry, stop, is_short", [
        (100, 100, False),   # no distance
        (100, 110, False),   # long stop above entry
        (100, 90, True),     # short stop below entry
        (0, 90, False),      # no entry
    ])
    def test_invalid_inputs_return_zero(self, entry, stop, is_short):
        assert calculate_position_from_risk(entry, stop, 2, PV, COINS, is_short) == 0.0

    def test_non_positive_risk_returns_zero(self):
        assert calculate_position_from_risk(100, 90, 0, PV, COINS, False) == 0.0
        assert calculate_position_from_risk(100, 90, 2, 0, COINS, False) == 0.0

    def test_dollar_risk_matches_percent_risk(self):
        by_pct = calculate_position_from_risk(100, 90, 2, PV, COINS, False, fee=0.1)
        by_dollars = calculate_position_from_dollar_risk(100, 90, 200, COINS, False, fee=0.1)
        assert abs(by_pct - by_dollars) < 1e-9


# ═══════════════════════════════════════════════════════════
# 2. STOP PRICE
# ═══════════════════════════════════════════════════════════

class TestStopFromRisk:

    def test_long_and_short(self):
        assert abs(calculate_stop_loss_from_risk(100, 20, 2, PV, COINS, False) - 90.0) < 1e-9
        assert abs(calculate_stop_loss_from_risk(100, 20, 2, PV, COINS, True) - 110.0) < 1e-9

    def test_distance_capped_at_half_entry(self):
        assert abs(calculate_stop_loss_from_risk(100, 2, 2, PV, COINS, False) - 50.0) < 1e-9
        assert abs(calculate_stop_loss_from_risk(100, 2, 2, PV, COINS, True) - 150.0) < 1e-9

    def test_minimum_one_percent_gap(self):
        # 200 risk over 400 coins = 0.5 distance, pushed out to 1%
        assert abs(calculate_stop_loss_from_risk(100, 400, 2, PV, COINS, False) - 99.0) < 1e-9
        assert abs(calculate_stop_loss_from_risk(100, 400, 2, PV, COINS, True) - 101.0) < 1e-9

    def test_defaults_on_bad_input(self):
        assert abs(calculate_stop_loss_from_risk(100, 20, 0, PV, COINS, False) - 90.0) < 1e-9
        assert abs(calculate_stop_loss_from_risk(100, 0, 2, PV, COINS, True) - 110.0) < 1e-9

    def test_fee_eats_budget(self):
        # notional 2000 * 1% = 20 fee, 180 left over 20 coins = 9
        stop = calculate_stop_loss_from_risk(100, 20, 2, PV, COINS, False, fee=1.0)
        assert abs(stop - 91.0) < 1e-9

    def test_fee_exceeding_budget_falls_back_to_default(self):
        stop = calculate_stop_loss_from_risk(100, 20, 2, PV, COINS, False,
                                             fee=300.0, fee_type=FeeType.FIXED)
        assert abs(stop - 90.0) < 1e-9

    def test_dollar_quantity(self):
        # $2000 at 100 = 20 coins
        assert abs(calculate_stop_loss_from_risk(100, 2000, 2, PV, DOLLARS, False) - 90.0) < 1e-9


# ═══════════════════════════════════════════════════════════
# 3. FORWARD RISK + INVERSE RELATION
# ═══════════════════════════════════════════════════════════

class TestForwardRisk:

    def test_risk_percent(self):
        assert abs(calculate_risk(100, 90, 20, COINS, PV) - 2.0) < 1e-9

    def test_risk_percent_with_fee(self):
        # 200 move + 1% of 2000 = 220
        assert abs(calculate_risk(100, 90, 20, COINS, PV, fee=1.0) - 2.2) < 1e-9

    def test_zero_portfolio(self):
        assert calculate_risk(100, 90, 20, COINS, 0) == 0.0

    def test_solve_risk_amount_directly(self):
        dollars = solve(SolveFor.RISK_AMOUNT,
                        SizingInputs(entry=100, stop=90, quantity=1000, quantity_type=DOLLARS))
        assert abs(dollars - 100.0) < 1e-9

    @pytest.mark.parametrize("quantity_type", [COINS, DOLLARS])
    @pytest.mark.parametrize("fee, fee_type", [
        (0.0, FeeType.PERCENTAGE),
        (0.25, FeeType.PERCENTAGE),
        (4.0, FeeType.FIXED),
    ])
    @pytest.mark.parametrize("stop, is_short", [(92.5, False), (104.0, True)])
    def test_position_then_forward_risk_recovers_budget(self, quantity_type, fee, fee_type,
                                                        stop, is_short):
        risk_pct = 1.5
        size = calculate_position_from_risk(100, stop, risk_pct, PV, quantity_type, is_short,
                                            fee=fee, fee_type=fee_type)
        assert size > 0
        back = calculate_risk(100, stop, size, quantity_type, PV, is_short=is_short,
                              fee=fee, fee_type=fee_type)
        assert abs(back - risk_pct) < 1e-6


# ═══════════════════════════════════════════════════════════
# 4. SENTINELS ON DEGENERATE INPUT
# ═══════════════════════════════════════════════════════════

NAN = float("nan")
INF = float("inf")


class TestSentinels:

    def test_negative_fee_denominator_returns_zero(self):
        # 10 + 100 * -20% = -10
        assert calculate_position_from_risk(100, 90, 2, PV, COINS, False, fee=-20) == 0.0
        # 10/100 - 20% = -0.1
        assert calculate_position_from_risk(100, 90, 2, PV, DOLLARS, False, fee=-20) == 0.0

    @pytest.mark.parametrize("bad", [NAN, INF, -INF])
    def test_position_from_risk_non_finite(self, bad):
        assert calculate_position_from_risk(bad, 90, 2, PV, COINS, False) == 0.0
        assert calculate_position_from_risk(100, bad, 2, PV, COINS, False) == 0.0
        assert calculate_position_from_risk(100, 90, bad, PV, COINS, False) == 0.0
        assert calculate_position_from_risk(100, 90, 2, bad, COINS, False) == 0.0
        assert calculate_position_from_risk(100, 90, 2, PV, COINS, False, fee=bad) == 0.0

    @pytest.mark.parametrize("bad", [NAN, INF])
    def test_position_from_dollar_risk_non_finite(self, bad):
        assert calculate_position_from_dollar_risk(100, bad, 200, COINS, False) == 0.0
        assert calculate_position_from_dollar_risk(100, 90, bad, COINS, False) == 0.0
        assert calculate_position_from_dollar_risk(bad, 90, 200, DOLLARS, False) == 0.0

    @pytest.mark.parametrize("bad", [NAN, INF])
    def test_stop_from_risk_non_finite_falls_back_to_default(self, bad):
        assert abs(calculate_stop_loss_from_risk(100, 20, bad, PV, COINS, False) - 90.0) < 1e-9
        assert abs(calculate_stop_loss_from_risk(100, bad, 2, PV, COINS, True) - 110.0) < 1e-9
        assert abs(calculate_stop_loss_from_risk(100, 20, 2, bad, COINS, False) - 90.0) < 1e-9
        assert abs(calculate_stop_loss_from_risk(100, 20, 2, PV, COINS, False,
                                                 fee=bad) - 90.0) < 1e-9

    def test_stop_from_risk_non_finite_entry(self):
        assert calculate_stop_loss_from_risk(NAN, 20, 2, PV, COINS, False) == 0.0

    def test_forward_risk_non_finite(self):
        assert calculate_risk(100, NAN, 20, COINS, PV) == 0.0
        assert calculate_risk(100, 90, 20, COINS, NAN) == 0.0
        assert calculate_risk(100, 90, 20, COINS, INF) == 0.0
