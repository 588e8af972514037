"""
Price lookup client: response parsing, failure fallbacks, 429 backoff.
"""

from __future__ import annotations

from typing import Any, List
from unittest.mock import AsyncMock, patch

import pytest

from tradejournal.api.prices import PriceClient
from tradejournal.utils.exceptions import PriceLookupError


class _FakeResponse:
    def __init__(self, status: int, payload: Any = None):
        self.status = status
        self._payload = payload

    async def json(self) -> Any:
        return self._payload

    async def __aenter__(self) -> "_FakeResponse":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None


class _FakeSession:
    def __init__(self, responses: List[_FakeResponse]):
        self._responses = list(responses)
        self.calls: List[dict] = []
        self.closed = False

    def get(self, url: str, params: Any = None) -> _FakeResponse:
        self.calls.append({"url": url, "params": params})
        return self._responses.pop(0)

    async def close(self) -> None:
        self.closed = True


class TestPriceParsing:

    @pytest.mark.asyncio
    async def test_get_price(self):
        client = PriceClient(base_url="http://prices.test")
        client._get_json = AsyncMock(return_value={"bitcoin": {"usd": 43250.5}})
        assert await client.get_price("bitcoin") == 43250.5
        client._get_json.assert_awaited_once_with(
            "/simple/price", params={"ids": "bitcoin", "vs_currencies": "usd"}
        )

    @pytest.mark.asyncio
    async def test_unknown_asset_is_none(self):
        client = PriceClient(base_url="http://prices.test")
        client._get_json = AsyncMock(return_value={})
        assert await client.get_price("nope") is None
        assert await client.get_price("") is None

    @pytest.mark.asyncio
    async def test_lookup_failure_is_swallowed(self):
        client = PriceClient(base_url="http://prices.test")
        client._get_json = AsyncMock(side_effect=PriceLookupError("boom", 500))
        assert await client.get_price("bitcoin") is None
        assert await client.search("btc") == []

    @pytest.mark.asyncio
    async def test_search_results(self):
        client = PriceClient(base_url="http://prices.test")
        client._get_json = AsyncMock(return_value={"coins": [
            {"id": "bitcoin", "symbol": "BTC", "name": "Bitcoin", "large": "big.png"},
            {"id": "ethereum", "symbol": "ETH", "name": "Ethereum", "thumb": "t.png"},
        ]})
        results = await client.search("b")
        assert [r["id"] for r in results] == ["bitcoin", "ethereum"]
        assert results[1]["image"] == "t.png"


class TestRetries:

    @pytest.mark.asyncio
    async def test_rate_limit_then_success(self):
        client = PriceClient(base_url="http://prices.test/")
        session = _FakeSession([
            _FakeResponse(429),
            _FakeResponse(200, {"bitcoin": {"usd": 1.0}}),
        ])
        client._get_session = AsyncMock(return_value=session)
        with patch("tradejournal.api.prices.asyncio.sleep", new=AsyncMock()) as sleep:
            assert await client.get_price("bitcoin") == 1.0
        sleep.assert_awaited_once()
        assert session.calls[0]["url"] == "http://prices.test/simple/price"

    @pytest.mark.asyncio
    async def test_http_error_becomes_none(self):
        client = PriceClient(base_url="http://prices.test")
        client._get_session = AsyncMock(return_value=_FakeSession([_FakeResponse(503)]))
        assert await client.get_price("bitcoin") is None

    @pytest.mark.asyncio
    async def test_get_json_raises_after_exhausting_retries(self):
        client = PriceClient(base_url="http://prices.test")
        client._get_session = AsyncMock(
            return_value=_FakeSession([_FakeResponse(429) for _ in range(10)])
        )
        with patch("tradejournal.api.prices.asyncio.sleep", new=AsyncMock()):
            with pytest.raises(PriceLookupError):
                await client._get_json("/simple/price")
