from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorCategory(str, Enum):
    DATA = "data"
    STORAGE = "storage"
    NOT_FOUND = "not_found"
    PRICE_LOOKUP = "price_lookup"
    SYSTEM = "system"


class JournalError(Exception):
    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        status_code: Optional[int] = None,
    ) -> None:
        self.message = message
        self.category = category
        self.status_code = status_code
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [f"[{self.category.value}] {self.message}"]
        if self.status_code:
            parts.append(f"(HTTP {self.status_code})")
        return " | ".join(parts)


class DataError(JournalError):
    def __init__(self, message: str) -> None:
        super().__init__(message, ErrorCategory.DATA)


class StorageError(JournalError):
    def __init__(self, message: str) -> None:
        super().__init__(message, ErrorCategory.STORAGE)


class TradeNotFoundError(JournalError):
    def __init__(self, trade_id: str) -> None:
        self.trade_id = trade_id
        super().__init__(f"Trade {trade_id} not found", ErrorCategory.NOT_FOUND, 404)


class PriceLookupError(JournalError):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message, ErrorCategory.PRICE_LOOKUP, status_code)
