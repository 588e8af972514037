"""
Valuation Engine — realized P&L and current equity from the ledger
==================================================================

A trade realizes profit in legs:
  - one leg per partial exit (priced at the exit, sized by exit_quantity)
  - one final leg when the trade is closed (sized by what is still open)

Per-leg profit:  (exit_price - entry_price) * coin_qty * (-1 if short else +1)
Per-leg fee:     percentage -> notional * fee / 100,  fixed -> fee

Fee notional differs by leg kind and is kept that way:
  final leg    -> open quantity at the ENTRY price
  partial exit -> exit quantity at the EXIT price

Everything here is a pure function of the trades passed in, so aggregates
are order independent and always recomputed from the full ledger.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Iterator, Optional, Tuple

from tradejournal.ledger.models import (
    FeeType,
    PartialExit,
    PortfolioSettings,
    QuantityType,
    Trade,
)
from tradejournal.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RealizedLeg:
    trade_id: str
    kind: str                 # "partial" | "final"
    date: datetime
    profit: float
    fee: float

    @property
    def net(self) -> float:
        return self.profit - self.fee


# ─── LEG ARITHMETIC ─────────────────────────────────────────

def coin_quantity(trade: Trade, leg_quantity: float) -> float:
    """Units of the asset behind a leg; dollar-sized legs convert at entry."""
    if trade.quantity_type == QuantityType.DOLLARS:
        if trade.entry_price <= 0:
            logger.debug("coin_quantity_zero_entry", trade_id=trade.id)
            return 0.0
        return leg_quantity / trade.entry_price
    return leg_quantity


def leg_profit(trade: Trade, exit_price: float, leg_quantity: float) -> float:
    sign = -1 if trade.is_short else 1
    return (exit_price - trade.entry_price) * coin_quantity(trade, leg_quantity) * sign


def fee_amount(notional: float, fee: Optional[float], fee_type: FeeType) -> float:
    if not fee:
        return 0.0
    if FeeType(fee_type) == FeeType.FIXED:
        return fee
    return notional * fee / 100


def final_leg_notional(trade: Trade, leg_quantity: float) -> float:
    if trade.quantity_type == QuantityType.DOLLARS:
        return leg_quantity
    return leg_quantity * trade.entry_price


def partial_exit_notional(trade: Trade, partial: PartialExit) -> float:
    return coin_quantity(trade, partial.exit_quantity) * partial.exit_price


# ─── LEGS ───────────────────────────────────────────────────

def partial_exit_leg(trade: Trade, partial: PartialExit) -> RealizedLeg:
    fee = partial.fees if partial.fees is not None else trade.fees
    fee_type = partial.fees_type if partial.fees_type is not None else trade.fees_type
    return RealizedLeg(
        trade_id=trade.id,
        kind="partial",
        date=partial.exit_date,
        profit=leg_profit(trade, partial.exit_price, partial.exit_quantity),
        fee=fee_amount(partial_exit_notional(trade, partial), fee, fee_type),
    )


def final_leg(trade: Trade) -> Optional[RealizedLeg]:
    """The closing leg of a closed trade, sized by the quantity still open."""
    if trade.is_active or trade.exit_price is None:
        return None
    qty = trade.open_quantity
    if qty <= 0:
        # Fully closed through partial exits; nothing left to realize.
        return None
    return RealizedLeg(
        trade_id=trade.id,
        kind="final",
        date=trade.exit_date or trade.entry_date,
        profit=leg_profit(trade, trade.exit_price, qty),
        fee=fee_amount(final_leg_notional(trade, qty), trade.fees, trade.fees_type),
    )


def realized_legs(trade: Trade) -> Iterator[RealizedLeg]:
    for partial in trade.partial_exits:
        yield partial_exit_leg(trade, partial)
    leg = final_leg(trade)
    if leg is not None:
        yield leg


def realized_profit(trades: Iterable[Trade]) -> float:
    """Σ(profit - fee) over every realized leg of every trade."""
    return sum(leg.net for trade in trades for leg in realized_legs(trade))


def calculate_current_portfolio_value(
    trades: Iterable[Trade], settings: PortfolioSettings
) -> float:
    return settings.initial_balance + realized_profit(trades)


# ─── PER-TRADE VIEWS ────────────────────────────────────────

def trade_profit_loss(trade: Trade) -> Optional[Tuple[float, float]]:
    """(net P&L, price move %) for a closed trade; None while it is open."""
    if trade.is_active or trade.exit_price is None:
        return None
    value = sum(leg.net for leg in realized_legs(trade))
    if trade.entry_price <= 0:
        return value, 0.0
    sign = -1 if trade.is_short else 1
    pct = (trade.exit_price - trade.entry_price) / trade.entry_price * 100 * sign
    return value, pct


def initial_risk(trade: Trade) -> float:
    """Dollar distance originally risked between entry and stop."""
    qty = trade.original_quantity if trade.original_quantity is not None else trade.quantity
    return abs(trade.entry_price - trade.stop_loss) * coin_quantity(trade, qty)


def r_multiple(trade: Trade) -> Optional[float]:
    legs = list(realized_legs(trade))
    if not legs:
        return None
    risk = initial_risk(trade)
    if risk <= 0:
        logger.debug("r_multiple_no_risk", trade_id=trade.id)
        return None
    return sum(leg.net for leg in legs) / risk
