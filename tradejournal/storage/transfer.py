"""
Bulk import / export value tree
===============================

Shape: {trades, portfolioSettings, portfolioValue, appSettings, exportDate}.
Container formats (zip, flat file) and screenshot blobs belong to callers;
they only have to carry this tree through unchanged. A bare list of
trades (older exports) is accepted as {trades: [...]}.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import Field, ValidationError, field_validator

from tradejournal.journal import TradeJournal
from tradejournal.ledger.models import PortfolioSettings, Trade, WireModel, to_naive_utc, utcnow
from tradejournal.utils.exceptions import DataError
from tradejournal.utils.logger import get_logger

logger = get_logger(__name__)


class ExportBundle(WireModel):
    trades: List[Trade] = Field(default_factory=list)
    portfolio_settings: Optional[PortfolioSettings] = None
    portfolio_value: Optional[float] = None
    app_settings: Dict[str, Any] = Field(default_factory=dict)
    export_date: datetime = Field(default_factory=utcnow)

    @field_validator("export_date", mode="before")
    @classmethod
    def _normalize_date(cls, v: Any) -> Any:
        return to_naive_utc(v) or utcnow()


def export_bundle(journal: TradeJournal) -> ExportBundle:
    return ExportBundle(
        trades=list(journal.trades),
        portfolio_settings=journal.portfolio_settings,
        portfolio_value=journal.calculate_current_portfolio_value(),
        app_settings=journal.app_settings,
    )


def bundle_to_json(bundle: ExportBundle, indent: Optional[int] = 2) -> str:
    return bundle.model_dump_json(by_alias=True, exclude_none=True, indent=indent)


def load_bundle(payload: Union[str, bytes, Dict[str, Any], List[Any]]) -> ExportBundle:
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise DataError(f"Import payload is not valid JSON: {e}") from e
    if isinstance(payload, list):
        payload = {"trades": payload}
    try:
        return ExportBundle.model_validate(payload)
    except ValidationError as e:
        raise DataError(f"Import payload has an unexpected shape: {e}") from e


def import_bundle(journal: TradeJournal, bundle: ExportBundle) -> int:
    """Merge trades by id and adopt the bundle's settings when it carries them."""
    added = journal.import_trades(bundle.trades)
    if bundle.portfolio_settings is not None:
        journal.set_portfolio_settings(bundle.portfolio_settings)
    if bundle.app_settings:
        journal.save_app_settings(bundle.app_settings)
    logger.info("bundle_imported", added=added, total=len(bundle.trades),
                export_date=bundle.export_date.isoformat())
    return added
