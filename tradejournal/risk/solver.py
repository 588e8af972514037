"""
Risk Solver — one algebraic core, three inverse calculators
===========================================================

Every calculator is a rearrangement of the same equation:

    risk_dollars = |entry - stop| * coin_qty + fee_amount

with fee_amount = notional * fee / 100 (percentage) or fee (fixed), and
notional = coin_qty * entry. `solve()` takes the unknown (position size,
stop price or the risk amount itself) plus the known inputs. The public
calculators are thin adapters around it.

Nothing here raises. Bad inputs produce sentinels: 0 for sizes, and a stop
10% away from entry on the safe side for stop prices.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from tradejournal.ledger.models import FeeType, QuantityType
from tradejournal.utils.logger import get_logger

logger = get_logger(__name__)

# Largest stop distance accepted, as a fraction of entry.
MAX_STOP_DISTANCE_PCT = 0.5
MIN_STOP_PRICE = 1e-8
DEFAULT_STOP_PCT = 0.10


class SolveFor(str, Enum):
    POSITION_SIZE = "position_size"
    STOP_PRICE = "stop_price"
    RISK_AMOUNT = "risk_amount"


@dataclass(frozen=True)
class SizingInputs:
    """Known side of the risk equation. Leave the unknown as None."""
    entry: float
    quantity_type: QuantityType = QuantityType.COINS
    is_short: bool = False
    fee: float = 0.0
    fee_type: FeeType = FeeType.PERCENTAGE
    stop: Optional[float] = None
    quantity: Optional[float] = None
    risk_dollars: Optional[float] = None

    @property
    def in_dollars(self) -> bool:
        return QuantityType(self.quantity_type) == QuantityType.DOLLARS

    @property
    def fixed_fee(self) -> bool:
        return FeeType(self.fee_type) == FeeType.FIXED


def _all_finite(p: SizingInputs) -> bool:
    values = (p.entry, p.stop, p.quantity, p.risk_dollars, p.fee)
    return all(v is None or math.isfinite(v) for v in values)


def solve(unknown: SolveFor, inputs: SizingInputs) -> float:
    if not _all_finite(inputs):
        logger.debug("solver_non_finite_input", unknown=unknown.value, entry=inputs.entry,
                     stop=inputs.stop, quantity=inputs.quantity,
                     risk=inputs.risk_dollars, fee=inputs.fee)
        if unknown == SolveFor.STOP_PRICE:
            return default_stop(inputs.entry, inputs.is_short)
        return 0.0
    if unknown == SolveFor.POSITION_SIZE:
        return _solve_position(inputs)
    if unknown == SolveFor.STOP_PRICE:
        return _solve_stop(inputs)
    return _solve_risk(inputs)


# ─── POSITION SIZE ──────────────────────────────────────────

def _stop_on_wrong_side(entry: float, stop: float, is_short: bool) -> bool:
    return stop <= entry if is_short else stop >= entry


def _solve_position(p: SizingInputs) -> float:
    entry, stop, risk = p.entry, p.stop, p.risk_dollars
    if stop is None or risk is None:
        return 0.0
    if entry <= 0 or entry == stop or _stop_on_wrong_side(entry, stop, p.is_short):
        logger.debug("position_size_invalid_input", entry=entry, stop=stop, is_short=p.is_short)
        return 0.0
    if risk <= 0:
        return 0.0

    distance = abs(entry - stop)
    fee = p.fee or 0.0

    if p.fixed_fee:
        budget = max(0.0, risk - fee)
        size = budget * entry / distance if p.in_dollars else budget / distance
        return max(size, 0.0)

    if p.in_dollars:
        denominator = distance / entry + fee / 100
    else:
        denominator = distance + entry * fee / 100
    if denominator <= 0:
        logger.debug("position_size_non_positive_denominator", denominator=denominator)
        return 0.0
    return max(risk / denominator, 0.0)


# ─── STOP PRICE ─────────────────────────────────────────────

def default_stop(entry: float, is_short: bool) -> float:
    if not math.isfinite(entry):
        return 0.0
    return entry * (1 + DEFAULT_STOP_PCT) if is_short else entry * (1 - DEFAULT_STOP_PCT)


def _solve_stop(p: SizingInputs) -> float:
    entry, qty, risk = p.entry, p.quantity, p.risk_dollars
    if entry <= 0 or not qty or qty <= 0 or risk is None or risk <= 0:
        logger.debug("stop_price_invalid_input", entry=entry, quantity=qty, risk=risk)
        return default_stop(entry, p.is_short)

    coins = qty / entry if p.in_dollars else qty
    notional = qty if p.in_dollars else qty * entry
    fee = p.fee or 0.0
    budget = risk - (fee if p.fixed_fee else notional * fee / 100)
    if budget <= 0 or coins <= 0:
        logger.debug("stop_price_budget_exhausted", budget=budget)
        return default_stop(entry, p.is_short)

    distance = min(budget / coins, entry * MAX_STOP_DISTANCE_PCT)
    if p.is_short:
        return max(entry + distance, entry * 1.01)
    return min(max(entry - distance, MIN_STOP_PRICE), entry * 0.99)


# ─── RISK AMOUNT ────────────────────────────────────────────

def _solve_risk(p: SizingInputs) -> float:
    if p.stop is None or p.quantity is None or p.entry <= 0:
        return 0.0
    coins = p.quantity / p.entry if p.in_dollars else p.quantity
    fee = p.fee or 0.0
    fee_dollars = fee if p.fixed_fee else coins * p.entry * fee / 100
    return abs(p.entry - p.stop) * coins + fee_dollars


# ─── CALCULATORS ────────────────────────────────────────────

def calculate_risk(
    entry_price: float,
    stop_loss: float,
    quantity: float,
    quantity_type: QuantityType,
    portfolio_value: float,
    is_short: bool = False,
    fee: float = 0.0,
    fee_type: FeeType = FeeType.PERCENTAGE,
) -> float:
    """Risk of a position as % of the portfolio, fees included."""
    if not math.isfinite(portfolio_value) or portfolio_value <= 0:
        logger.debug("risk_pct_non_positive_portfolio", portfolio_value=portfolio_value)
        return 0.0
    dollars = solve(SolveFor.RISK_AMOUNT, SizingInputs(
        entry=entry_price, stop=stop_loss, quantity=quantity, quantity_type=quantity_type,
        is_short=is_short, fee=fee, fee_type=fee_type,
    ))
    return dollars / portfolio_value * 100


def calculate_position_from_risk(
    entry_price: float,
    stop_loss: float,
    risk_pct: float,
    portfolio_value: float,
    quantity_type: QuantityType,
    is_short: bool,
    fee: float = 0.0,
    fee_type: FeeType = FeeType.PERCENTAGE,
) -> float:
    if portfolio_value <= 0:
        logger.debug("position_size_non_positive_portfolio", portfolio_value=portfolio_value)
        return 0.0
    return solve(SolveFor.POSITION_SIZE, SizingInputs(
        entry=entry_price, stop=stop_loss, risk_dollars=risk_pct / 100 * portfolio_value,
        quantity_type=quantity_type, is_short=is_short, fee=fee, fee_type=fee_type,
    ))


def calculate_stop_loss_from_risk(
    entry_price: float,
    quantity: float,
    risk_pct: float,
    portfolio_value: float,
    quantity_type: QuantityType,
    is_short: bool,
    fee: float = 0.0,
    fee_type: FeeType = FeeType.PERCENTAGE,
) -> float:
    if portfolio_value <= 0 or risk_pct <= 0:
        logger.debug("stop_price_invalid_input", portfolio_value=portfolio_value, risk_pct=risk_pct)
        return default_stop(entry_price, is_short)
    return solve(SolveFor.STOP_PRICE, SizingInputs(
        entry=entry_price, quantity=quantity, risk_dollars=risk_pct / 100 * portfolio_value,
        quantity_type=quantity_type, is_short=is_short, fee=fee, fee_type=fee_type,
    ))


def calculate_position_from_dollar_risk(
    entry_price: float,
    stop_loss: float,
    dollar_risk: float,
    quantity_type: QuantityType,
    is_short: bool,
    fee: float = 0.0,
    fee_type: FeeType = FeeType.PERCENTAGE,
) -> float:
    return solve(SolveFor.POSITION_SIZE, SizingInputs(
        entry=entry_price, stop=stop_loss, risk_dollars=dollar_risk,
        quantity_type=quantity_type, is_short=is_short, fee=fee, fee_type=fee_type,
    ))
