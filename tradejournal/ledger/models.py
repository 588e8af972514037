"""
Ledger Data Models
==================

Trade / PartialExit / PortfolioSettings are pydantic models so that the
plain value tree produced by exports (camelCase keys, ISO-8601 strings)
validates straight into them. Derived read models (PerformancePoint,
TradeStats, BenchmarkComparison) are frozen dataclasses with to_dict().

All datetimes are stored as naive UTC.
"""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# ── Enums ────────────────────────────────────────────────────

class Direction(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"


class QuantityType(str, Enum):
    COINS = "coins"
    DOLLARS = "dollars"


class FeeType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class TrailingType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class TimePeriod(str, Enum):
    ALL = "all"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Any) -> Any:
    """Coerce ISO strings, dates and aware datetimes to naive UTC datetimes."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        value = datetime.fromisoformat(text)
    if isinstance(value, date) and not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if isinstance(value, datetime) and value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ── Ledger entities ──────────────────────────────────────────

class PartialExit(WireModel):
    id: str = Field(default_factory=new_id)
    exit_date: datetime
    exit_price: float
    exit_quantity: float
    notes: Optional[str] = None
    fees: Optional[float] = None
    fees_type: Optional[FeeType] = None

    @field_validator("exit_date", mode="before")
    @classmethod
    def _normalize_date(cls, v: Any) -> Any:
        return to_naive_utc(v)


class Trade(WireModel):
    id: str = ""
    asset: str = Field(
        default="",
        validation_alias=AliasChoices("asset", "cryptocurrency"),
        serialization_alias="cryptocurrency",
    )
    coin_id: str = ""
    direction: Optional[Direction] = None
    entry_price: float
    quantity: float
    quantity_type: QuantityType = QuantityType.COINS
    stop_loss: float
    entry_date: datetime
    exit_date: Optional[datetime] = None
    exit_price: Optional[float] = None
    is_active: bool = True
    fees: float = 0.0
    fees_type: FeeType = FeeType.PERCENTAGE
    notes: Optional[str] = None

    partial_exits: List[PartialExit] = Field(default_factory=list)
    remaining_quantity: Optional[float] = None
    original_quantity: Optional[float] = None

    is_trailing_stop: bool = False
    trailing_amount: Optional[float] = None
    trailing_type: Optional[TrailingType] = None
    highest_price: Optional[float] = None
    lowest_price: Optional[float] = None

    screenshots: List[dict] = Field(default_factory=list)

    @field_validator("entry_date", "exit_date", mode="before")
    @classmethod
    def _normalize_dates(cls, v: Any) -> Any:
        return to_naive_utc(v)

    @field_validator("fees", mode="before")
    @classmethod
    def _fees_default(cls, v: Any) -> Any:
        return 0.0 if v is None else v

    @property
    def is_short(self) -> bool:
        """Explicit direction wins; legacy rows fall back to the label check."""
        if self.direction is not None:
            return self.direction == Direction.SHORT
        return "short" in self.asset.lower()

    @property
    def open_quantity(self) -> float:
        """Quantity not yet realized through partial exits."""
        if self.remaining_quantity is not None:
            return self.remaining_quantity
        return self.quantity


class PortfolioSettings(WireModel):
    start_date: datetime
    initial_balance: float

    @field_validator("start_date", mode="before")
    @classmethod
    def _normalize_date(cls, v: Any) -> Any:
        return to_naive_utc(v)

    @classmethod
    def default(cls, initial_balance: float = 10000.0) -> "PortfolioSettings":
        today = utcnow().date()
        return cls(start_date=datetime(today.year, 1, 1), initial_balance=initial_balance)


# ── Derived read models ──────────────────────────────────────

@dataclass(frozen=True)
class PerformancePoint:
    date: date
    portfolio_value: float
    cumulative_profit: float
    trade_count: int

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "portfolioValue": self.portfolio_value,
            "cumulativeProfit": self.cumulative_profit,
            "tradeCount": self.trade_count,
        }


@dataclass(frozen=True)
class TradeStats:
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0
    total_profit: float = 0.0
    average_profit: float = 0.0
    average_loss: float = 0.0
    profit_factor: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class BenchmarkComparison:
    trading_profit: float
    holding_profit: float
    difference: float
    percentage_difference: float
    period: TimePeriod
    start_balance: float
    is_full_period: bool
    actual_start_date: date
    year_start_balance: Optional[float] = None

    def to_dict(self) -> dict:
        d = asdict(self)
        d["period"] = self.period.value
        d["actual_start_date"] = self.actual_start_date.isoformat()
        return d
