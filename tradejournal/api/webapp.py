from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from tradejournal.api.prices import PriceClient
from tradejournal.journal import TradeJournal
from tradejournal.ledger.models import (
    FeeType,
    PortfolioSettings,
    QuantityType,
    TimePeriod,
    Trade,
    TrailingType,
    to_naive_utc,
)
from tradejournal.risk.solver import (
    calculate_position_from_dollar_risk,
    calculate_position_from_risk,
    calculate_risk,
    calculate_stop_loss_from_risk,
)
from tradejournal.storage.kv_store import SQLiteKeyValueStore
from tradejournal.storage.repository import JournalRepository
from tradejournal.storage.transfer import bundle_to_json, export_bundle, import_bundle, load_bundle
from tradejournal.utils.config import get_settings
from tradejournal.utils.exceptions import DataError, JournalError, TradeNotFoundError
from tradejournal.utils.logger import get_logger
from tradejournal.valuation.engine import r_multiple, trade_profit_loss

logger = get_logger(__name__)

app = FastAPI(title="Trade Journal", version="1.0")

_journal: Optional[TradeJournal] = None


def get_journal() -> TradeJournal:
    global _journal
    if _journal is None:
        store = SQLiteKeyValueStore(get_settings().db_path)
        _journal = TradeJournal.load(JournalRepository(store))
    return _journal


def set_journal(journal: Optional[TradeJournal]) -> None:
    global _journal
    _journal = journal


@app.exception_handler(JournalError)
async def journal_error_handler(request: Request, exc: JournalError) -> JSONResponse:
    logger.warning("request_failed", path=request.url.path, error=str(exc))
    return JSONResponse({"error": exc.message, "category": exc.category.value},
                        status_code=exc.status_code or 400)


def _period(value: str) -> TimePeriod:
    try:
        return TimePeriod(value)
    except ValueError:
        raise HTTPException(400, f"Unknown period: {value}")


def _require_trade(journal: TradeJournal, trade_id: str) -> Trade:
    trade = journal.ledger.get_trade(trade_id)
    if trade is None:
        raise TradeNotFoundError(trade_id)
    return trade


def _finite(value: float) -> Optional[float]:
    return value if math.isfinite(value) else None


_REQUIRED = object()


async def _json_body(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(400, "Request body must be JSON")
    if not isinstance(body, dict):
        raise HTTPException(400, "Request body must be a JSON object")
    return body


def _number(body: dict[str, Any], key: str, default: Any = _REQUIRED) -> Optional[float]:
    value = body.get(key)
    if value is None:
        if default is _REQUIRED:
            raise HTTPException(400, f"{key} is required")
        return default
    if isinstance(value, bool):
        raise HTTPException(400, f"{key} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise HTTPException(400, f"{key} must be a number")
    if not math.isfinite(number):
        raise HTTPException(400, f"{key} must be a finite number")
    return number


def _date(body: dict[str, Any], key: str) -> Optional[datetime]:
    value = body.get(key)
    if value is not None and not isinstance(value, str):
        raise HTTPException(400, f"{key} must be an ISO-8601 date")
    try:
        return to_naive_utc(value)
    except ValueError:
        raise HTTPException(400, f"{key} must be an ISO-8601 date")


def _choice(enum_cls: Any, body: dict[str, Any], key: str, default: Any = None) -> Any:
    value = body.get(key)
    if value is None or value == "":
        return default
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise HTTPException(400, f"{key} must be one of: {allowed}")


def _trade_view(trade: Trade) -> dict[str, Any]:
    d = trade.to_dict()
    pnl = trade_profit_loss(trade)
    if pnl is not None:
        d["profitLoss"] = {"value": pnl[0], "percentage": pnl[1]}
    d["rMultiple"] = r_multiple(trade)
    return d


# ─── TRADES ─────────────────────────────────────────────────

@app.get("/api/trades")
async def list_trades() -> list[dict[str, Any]]:
    return [_trade_view(t) for t in get_journal().trades]


@app.post("/api/trades")
async def add_trade(request: Request) -> dict[str, Any]:
    body = await _json_body(request)
    try:
        trade = get_journal().add_trade(body)
    except ValidationError as e:
        raise HTTPException(422, str(e))
    return _trade_view(trade)


@app.get("/api/trades/{trade_id}")
async def get_trade(trade_id: str) -> dict[str, Any]:
    return _trade_view(_require_trade(get_journal(), trade_id))


@app.delete("/api/trades/{trade_id}")
async def delete_trade(trade_id: str) -> dict[str, Any]:
    if not get_journal().delete_trade(trade_id):
        raise TradeNotFoundError(trade_id)
    return {"success": True}


@app.post("/api/trades/{trade_id}/close")
async def close_trade(trade_id: str, request: Request) -> dict[str, Any]:
    journal = get_journal()
    _require_trade(journal, trade_id)
    body = await _json_body(request)
    trade = journal.close_trade(
        trade_id,
        _number(body, "exitPrice"),
        exit_date=_date(body, "exitDate"),
        fees=_number(body, "fees", None),
        fees_type=_choice(FeeType, body, "feesType"),
        screenshots=body.get("screenshots"),
    )
    return _trade_view(trade)


@app.post("/api/trades/{trade_id}/partial")
async def close_partial(trade_id: str, request: Request) -> dict[str, Any]:
    journal = get_journal()
    _require_trade(journal, trade_id)
    body = await _json_body(request)
    trade = journal.close_partial_trade(
        trade_id,
        _number(body, "exitPrice"),
        _number(body, "exitQuantity"),
        notes=body.get("notes"),
        exit_date=_date(body, "exitDate"),
        fees=_number(body, "fees", None),
        fees_type=_choice(FeeType, body, "feesType"),
    )
    return _trade_view(trade)


@app.post("/api/trades/{trade_id}/stop")
async def update_stop(trade_id: str, request: Request) -> dict[str, Any]:
    journal = get_journal()
    _require_trade(journal, trade_id)
    body = await _json_body(request)
    return _trade_view(journal.update_stop_loss(trade_id, _number(body, "stopLoss")))


@app.post("/api/trades/{trade_id}/trailing")
async def trailing_stop(trade_id: str, request: Request) -> dict[str, Any]:
    journal = get_journal()
    _require_trade(journal, trade_id)
    body = await _json_body(request)
    trade = journal.set_trailing_stop(
        trade_id,
        _number(body, "amount"),
        _choice(TrailingType, body, "type", TrailingType.PERCENTAGE),
    )
    return _trade_view(trade)


# ─── PORTFOLIO ──────────────────────────────────────────────

@app.get("/api/portfolio/value")
async def portfolio_value() -> dict[str, Any]:
    return {"portfolioValue": get_journal().calculate_current_portfolio_value()}


@app.get("/api/portfolio/settings")
async def get_portfolio_settings() -> dict[str, Any]:
    return get_journal().portfolio_settings.to_dict()


@app.post("/api/portfolio/settings")
async def set_portfolio_settings(request: Request) -> dict[str, Any]:
    body = await _json_body(request)
    try:
        settings = PortfolioSettings.model_validate(body)
    except ValidationError as e:
        raise HTTPException(422, str(e))
    get_journal().set_portfolio_settings(settings)
    return settings.to_dict()


@app.get("/api/portfolio/performance")
async def performance(period: str = "all") -> list[dict[str, Any]]:
    return [p.to_dict() for p in get_journal().get_portfolio_performance(_period(period))]


@app.get("/api/portfolio/comparison")
async def comparison(period: str = "all") -> dict[str, Any]:
    return get_journal().get_bitcoin_comparison(_period(period)).to_dict()


@app.get("/api/stats")
async def stats() -> dict[str, Any]:
    d = get_journal().get_trade_stats().to_dict()
    d["profit_factor"] = _finite(d["profit_factor"])
    return d


# ─── RISK CALCULATORS ───────────────────────────────────────

def _sizing_common(body: dict[str, Any]) -> dict[str, Any]:
    return {
        "quantity_type": _choice(QuantityType, body, "quantityType", QuantityType.COINS),
        "is_short": bool(body.get("isShort", False)),
        "fee": _number(body, "fee", 0.0),
        "fee_type": _choice(FeeType, body, "feeType", FeeType.PERCENTAGE),
    }


def _portfolio_value(body: dict[str, Any]) -> float:
    value = _number(body, "portfolioValue", None)
    if value is not None:
        return value
    return get_journal().calculate_current_portfolio_value()


@app.post("/api/risk/percent")
async def risk_percent(request: Request) -> dict[str, Any]:
    body = await _json_body(request)
    value = calculate_risk(
        _number(body, "entryPrice"), _number(body, "stopLoss"), _number(body, "quantity"),
        portfolio_value=_portfolio_value(body), **_sizing_common(body),
    )
    return {"riskPercent": value}


@app.post("/api/risk/position")
async def position_from_risk(request: Request) -> dict[str, Any]:
    body = await _json_body(request)
    size = calculate_position_from_risk(
        _number(body, "entryPrice"), _number(body, "stopLoss"), _number(body, "riskPercent"),
        _portfolio_value(body), **_sizing_common(body),
    )
    return {"positionSize": size}


@app.post("/api/risk/stop-loss")
async def stop_from_risk(request: Request) -> dict[str, Any]:
    body = await _json_body(request)
    stop = calculate_stop_loss_from_risk(
        _number(body, "entryPrice"), _number(body, "quantity"), _number(body, "riskPercent"),
        _portfolio_value(body), **_sizing_common(body),
    )
    return {"stopLoss": stop}


@app.post("/api/risk/dollar-position")
async def position_from_dollar_risk(request: Request) -> dict[str, Any]:
    body = await _json_body(request)
    size = calculate_position_from_dollar_risk(
        _number(body, "entryPrice"), _number(body, "stopLoss"), _number(body, "dollarRisk"),
        **_sizing_common(body),
    )
    return {"positionSize": size}


# ─── IMPORT / EXPORT / PRICES ───────────────────────────────

@app.get("/api/export")
async def export_data() -> Response:
    bundle = export_bundle(get_journal())
    return Response(content=bundle_to_json(bundle, indent=None), media_type="application/json")


@app.post("/api/import")
async def import_data(request: Request) -> dict[str, Any]:
    raw = await request.body()
    try:
        bundle = load_bundle(raw)
    except DataError as e:
        raise HTTPException(422, e.message)
    added = import_bundle(get_journal(), bundle)
    return {"success": True, "added": added, "total": len(bundle.trades)}


@app.get("/api/prices/{asset_id}")
async def price(asset_id: str) -> dict[str, Any]:
    async with PriceClient() as client:
        value = await client.get_price(asset_id)
    return {"id": asset_id, "price": value}


@app.get("/api/search")
async def search_assets(query: str) -> list[dict[str, Any]]:
    async with PriceClient() as client:
        return await client.search(query)
