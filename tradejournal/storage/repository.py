"""Typed load/save of journal state on top of a KeyValueStore."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from tradejournal.ledger.models import PortfolioSettings, Trade
from tradejournal.storage.kv_store import KeyValueStore
from tradejournal.utils.exceptions import StorageError

logger = logging.getLogger("journal_repository")

TRADES_KEY = "trades"
SETTINGS_KEY = "portfolioSettings"
VALUE_KEY = "portfolioValue"
APP_SETTINGS_KEY = "appSettings"


class JournalRepository:
    def __init__(self, store: KeyValueStore):
        self._store = store

    def _read_json(self, key: str) -> Any:
        raw = self._store.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt JSON under {key!r}: {e}") from e

    def _write_json(self, key: str, value: Any) -> None:
        self._store.set(key, json.dumps(value, default=str))

    # ─── TRADES ─────────────────────────────────────────────────

    def load_trades(self) -> List[Trade]:
        rows = self._read_json(TRADES_KEY) or []
        trades = []
        for row in rows:
            try:
                trades.append(Trade.model_validate(row))
            except ValidationError as e:
                raise StorageError(f"Stored trade failed validation: {e}") from e
        logger.info("Loaded %d trades", len(trades))
        return trades

    def save_trades(self, trades: List[Trade]) -> None:
        self._write_json(TRADES_KEY, [t.to_dict() for t in trades])

    # ─── SETTINGS / EQUITY ─────────────────────────────────────

    def load_settings(self) -> Optional[PortfolioSettings]:
        data = self._read_json(SETTINGS_KEY)
        if data is None:
            return None
        try:
            return PortfolioSettings.model_validate(data)
        except ValidationError as e:
            raise StorageError(f"Stored portfolio settings failed validation: {e}") from e

    def save_settings(self, settings: PortfolioSettings) -> None:
        self._write_json(SETTINGS_KEY, settings.to_dict())

    def load_portfolio_value(self) -> Optional[float]:
        value = self._read_json(VALUE_KEY)
        return float(value) if value is not None else None

    def save_portfolio_value(self, value: float) -> None:
        self._write_json(VALUE_KEY, value)

    def load_app_settings(self) -> Dict[str, Any]:
        return self._read_json(APP_SETTINGS_KEY) or {}

    def save_app_settings(self, app_settings: Dict[str, Any]) -> None:
        self._write_json(APP_SETTINGS_KEY, app_settings)
