from __future__ import annotations

import asyncio
from typing import Any, Optional

import aiohttp
from aiolimiter import AsyncLimiter

from tradejournal.utils.config import get_settings
from tradejournal.utils.exceptions import PriceLookupError
from tradejournal.utils.logger import get_logger

logger = get_logger(__name__)


class PriceClient:
    """CoinGecko-style price lookup, used only to pre-fill entry prices.

    Lookups never raise to the caller: failures come back as None / [].
    """

    def __init__(self, base_url: Optional[str] = None) -> None:
        self._settings = get_settings()
        self._base_url = (base_url or self._settings.price_api_base_url).rstrip("/")
        self._session: Optional[aiohttp.ClientSession] = None
        self._limiter = AsyncLimiter(self._settings.price_requests_per_minute, 60)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._settings.price_timeout),
            )
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "PriceClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def _get_json(self, endpoint: str, params: Optional[dict[str, Any]] = None) -> Any:
        settings = self._settings
        url = f"{self._base_url}{endpoint}"

        last_error: Optional[Exception] = None
        for attempt in range(settings.max_retries):
            try:
                async with self._limiter:
                    session = await self._get_session()
                    async with session.get(url, params=params) as response:
                        if response.status == 429:
                            wait_time = settings.retry_delay * (2 ** attempt)
                            logger.warning("price_rate_limited", endpoint=endpoint, wait=wait_time)
                            await asyncio.sleep(wait_time)
                            continue
                        if response.status != 200:
                            raise PriceLookupError(
                                f"Price lookup failed for {endpoint}", response.status
                            )
                        return await response.json()

            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_error = e
                logger.warning("price_request_retry", endpoint=endpoint,
                               attempt=attempt + 1, error=str(e))
                if attempt < settings.max_retries - 1:
                    await asyncio.sleep(settings.retry_delay * (2 ** attempt))

        raise PriceLookupError(
            f"Price lookup failed after {settings.max_retries} attempts: {last_error}"
        )

    async def get_price(self, asset_id: str) -> Optional[float]:
        if not asset_id:
            return None
        try:
            data = await self._get_json(
                "/simple/price", params={"ids": asset_id, "vs_currencies": "usd"}
            )
        except PriceLookupError as e:
            logger.error("price_lookup_failed", asset_id=asset_id, error=str(e))
            return None
        price = (data or {}).get(asset_id, {}).get("usd")
        return float(price) if price else None

    async def search(self, query: str) -> list[dict[str, Any]]:
        try:
            data = await self._get_json("/search", params={"query": query})
        except PriceLookupError as e:
            logger.error("asset_search_failed", query=query, error=str(e))
            return []
        return [
            {
                "id": coin.get("id"),
                "symbol": coin.get("symbol"),
                "name": coin.get("name"),
                "image": coin.get("large") or coin.get("thumb"),
            }
            for coin in (data or {}).get("coins", [])
        ]
