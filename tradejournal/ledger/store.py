"""
Trade Ledger — single-writer in-memory store of Trade entities
==============================================================

Owns the trade collection and its lifecycle transitions:
  open → (partial exits)* → closed, stop edits, trailing stops, delete.

Every mutation builds a new tuple and swaps it in, so readers only ever
see a complete snapshot. Derived aggregates are never patched here; the
valuation and performance layers recompute from the full ledger.
Change listeners fire after each swap (used for fire-and-forget saves).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Iterable, List, Optional, Tuple, Union

from tradejournal.ledger.models import (
    FeeType,
    PartialExit,
    Trade,
    TrailingType,
    new_id,
    to_naive_utc,
    utcnow,
)
from tradejournal.utils.logger import get_logger

logger = get_logger(__name__)

ChangeListener = Callable[[Tuple[Trade, ...]], None]

# Float dust left after partial exits still counts as fully closed.
_QTY_EPSILON = 1e-9


class TradeLedger:
    def __init__(self, trades: Optional[Iterable[Trade]] = None) -> None:
        self._trades: Tuple[Trade, ...] = tuple(trades or ())
        self._listeners: List[ChangeListener] = []

    # ─── READS ──────────────────────────────────────────────────

    @property
    def trades(self) -> Tuple[Trade, ...]:
        return self._trades

    def get_trade(self, trade_id: str) -> Optional[Trade]:
        for trade in self._trades:
            if trade.id == trade_id:
                return trade
        return None

    def __len__(self) -> int:
        return len(self._trades)

    def __iter__(self):
        return iter(self._trades)

    # ─── LISTENERS ──────────────────────────────────────────────

    def subscribe(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def _commit(self, trades: Iterable[Trade]) -> None:
        self._trades = tuple(trades)
        for listener in self._listeners:
            try:
                listener(self._trades)
            except Exception as e:
                logger.error("ledger_listener_failed", error=str(e))

    def _replace(self, trade_id: str, mutate: Callable[[Trade], Trade]) -> Optional[Trade]:
        updated: Optional[Trade] = None
        new_trades = []
        for trade in self._trades:
            if trade.id == trade_id:
                updated = mutate(trade)
                new_trades.append(updated)
            else:
                new_trades.append(trade)
        if updated is None:
            logger.warning("trade_not_found", trade_id=trade_id)
            return None
        self._commit(new_trades)
        return updated

    # ─── MUTATIONS ──────────────────────────────────────────────

    def add_trade(self, data: Union[Trade, dict[str, Any]]) -> Trade:
        """Open a new trade. Values are not range-checked; that is the caller's job."""
        if isinstance(data, Trade):
            payload = data.model_dump(exclude={"id", "is_active", "partial_exits",
                                               "remaining_quantity", "original_quantity"})
        else:
            payload = {k: v for k, v in data.items() if k not in ("id", "isActive", "is_active")}
        trade = Trade.model_validate({**payload, "id": new_id(), "is_active": True})
        trade = trade.model_copy(update={
            "partial_exits": [],
            "remaining_quantity": None,
            "original_quantity": None,
        })
        self._commit(self._trades + (trade,))
        logger.info("trade_added", trade_id=trade.id, asset=trade.asset,
                    entry_price=trade.entry_price, quantity=trade.quantity)
        return trade

    def update_trade(self, trade: Trade) -> Optional[Trade]:
        return self._replace(trade.id, lambda _old: trade)

    def update_stop_loss(self, trade_id: str, stop_loss: float) -> Optional[Trade]:
        return self._replace(trade_id, lambda t: t.model_copy(update={"stop_loss": stop_loss}))

    def set_trailing_stop(
        self,
        trade_id: str,
        amount: float,
        trailing_type: TrailingType = TrailingType.PERCENTAGE,
    ) -> Optional[Trade]:
        trailing_type = TrailingType(trailing_type)

        def mutate(t: Trade) -> Trade:
            # No live price feed: the reference falls back to the entry price.
            if t.is_short:
                reference = t.lowest_price if t.lowest_price is not None else t.entry_price
                if trailing_type == TrailingType.PERCENTAGE:
                    stop = reference * (1 + amount / 100)
                else:
                    stop = reference + amount
                extremes = {"lowest_price": reference}
            else:
                reference = t.highest_price if t.highest_price is not None else t.entry_price
                if trailing_type == TrailingType.PERCENTAGE:
                    stop = reference * (1 - amount / 100)
                else:
                    stop = reference - amount
                extremes = {"highest_price": reference}
            return t.model_copy(update={
                "is_trailing_stop": True,
                "trailing_amount": amount,
                "trailing_type": trailing_type,
                "stop_loss": stop,
                **extremes,
            })

        return self._replace(trade_id, mutate)

    def close_trade(
        self,
        trade_id: str,
        exit_price: float,
        exit_date: Optional[datetime] = None,
        fees: Optional[float] = None,
        fees_type: Optional[FeeType] = None,
        screenshots: Optional[List[dict]] = None,
    ) -> Optional[Trade]:
        def mutate(t: Trade) -> Trade:
            update: dict[str, Any] = {
                "is_active": False,
                "exit_price": exit_price,
                "exit_date": to_naive_utc(exit_date) or utcnow(),
            }
            if fees is not None:
                update["fees"] = fees
            if fees_type is not None:
                update["fees_type"] = FeeType(fees_type)
            if screenshots:
                update["screenshots"] = [*t.screenshots, *screenshots]
            return t.model_copy(update=update)

        closed = self._replace(trade_id, mutate)
        if closed is not None:
            logger.info("trade_closed", trade_id=trade_id, exit_price=exit_price)
        return closed

    def close_partial_trade(
        self,
        trade_id: str,
        exit_price: float,
        exit_quantity: float,
        notes: Optional[str] = None,
        exit_date: Optional[datetime] = None,
        fees: Optional[float] = None,
        fees_type: Optional[FeeType] = None,
    ) -> Optional[Trade]:
        trade = self.get_trade(trade_id)
        if trade is None:
            logger.warning("trade_not_found", trade_id=trade_id)
            return None

        if not trade.is_active:
            logger.warning("partial_exit_on_closed_trade", trade_id=trade_id)
            return trade

        remaining = trade.open_quantity
        qty = min(exit_quantity, remaining)
        if qty <= 0:
            logger.warning("partial_exit_skipped", trade_id=trade_id,
                           requested=exit_quantity, remaining=remaining)
            return trade

        when = to_naive_utc(exit_date) or utcnow()
        partial = PartialExit(
            exit_date=when,
            exit_price=exit_price,
            exit_quantity=qty,
            notes=notes,
            fees=fees,
            fees_type=FeeType(fees_type) if fees_type is not None else None,
        )
        left = remaining - qty
        update: dict[str, Any] = {
            "partial_exits": [*trade.partial_exits, partial],
            "remaining_quantity": left,
            "original_quantity": (
                trade.original_quantity if trade.original_quantity is not None else trade.quantity
            ),
        }
        if left <= _QTY_EPSILON:
            update.update(remaining_quantity=0.0, is_active=False,
                          exit_price=exit_price, exit_date=when)

        updated = self._replace(trade_id, lambda t: t.model_copy(update=update))
        logger.info("partial_exit_recorded", trade_id=trade_id, exit_price=exit_price,
                    exit_quantity=qty, remaining=update["remaining_quantity"])
        return updated

    def delete_trade(self, trade_id: str) -> bool:
        kept = [t for t in self._trades if t.id != trade_id]
        if len(kept) == len(self._trades):
            return False
        self._commit(kept)
        logger.info("trade_deleted", trade_id=trade_id)
        return True

    def import_trades(self, new_trades: Iterable[Union[Trade, dict[str, Any]]]) -> int:
        """Merge by identity. Existing entries win; rows without an id get a fresh one."""
        existing = {t.id for t in self._trades}
        added: List[Trade] = []
        for item in new_trades:
            trade = item if isinstance(item, Trade) else Trade.model_validate(item)
            if not trade.id:
                trade = trade.model_copy(update={"id": new_id()})
                logger.debug("imported_trade_assigned_id", trade_id=trade.id)
            if trade.id in existing:
                continue
            existing.add(trade.id)
            added.append(trade)
        if added:
            self._commit(self._trades + tuple(added))
        logger.info("trades_imported", added=len(added))
        return len(added)
