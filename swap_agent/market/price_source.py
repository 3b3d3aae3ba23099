from __future__ import annotations

import asyncio
import math
import logging
import random
from typing import Any, Callable

import aiohttp

from swap_agent.common import log_event

FALLBACK_BASE_PRICE = 2000.0
FALLBACK_SPREAD = 50.0


class PriceFeedError(RuntimeError):
    pass


def parse_price(payload: Any, *, asset_id: str, currency: str) -> float:
    try:
        raw = payload[asset_id][currency]
    except (KeyError, TypeError) as error:
        raise PriceFeedError(f"price payload is missing {asset_id}.{currency}") from error
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise PriceFeedError(f"price payload value is not numeric: {raw!r}")
    price = float(raw)
    if not (math.isfinite(price) and price > 0):
        raise PriceFeedError(f"price payload value is not a positive finite number: {price}")
    return price


class CoinGeckoPriceSource:
    def __init__(
        self,
        *,
        logger: logging.Logger,
        api_url: str = "https://api.coingecko.com/api/v3/simple/price",
        asset_id: str = "ethereum",
        currency: str = "usd",
        timeout_seconds: float = 5.0,
        session: aiohttp.ClientSession | None = None,
        rng: Callable[[float, float], float] = random.uniform,
    ) -> None:
        self._logger = logger
        self._api_url = api_url
        self.asset_id = asset_id
        self.currency = currency
        self._timeout_seconds = timeout_seconds
        self._session = session
        self._owns_session = session is None
        self._rng = rng

    async def connect(self) -> None:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self._timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    def fallback_price(self) -> float:
        return FALLBACK_BASE_PRICE + self._rng(-FALLBACK_SPREAD, FALLBACK_SPREAD)

    async def _fetch_live_price(self) -> float:
        await self.connect()
        if self._session is None:
            raise RuntimeError("Price HTTP session is not initialized.")

        params = {"ids": self.asset_id, "vs_currencies": self.currency}
        async with self._session.get(
            self._api_url,
            params=params,
            timeout=aiohttp.ClientTimeout(total=self._timeout_seconds),
        ) as response:
            if response.status >= 400:
                raise PriceFeedError(f"price API returned status {response.status}")
            payload = await response.json(content_type=None)
        return parse_price(payload, asset_id=self.asset_id, currency=self.currency)

    async def get_price(self) -> float:
        try:
            price = await self._fetch_live_price()
        except asyncio.CancelledError:
            raise
        except Exception as error:
            price = self.fallback_price()
            log_event(
                self._logger,
                level="warning",
                event="price_fallback_used",
                message="Price API unavailable, using synthetic fallback price",
                error=str(error) or type(error).__name__,
                price=round(price, 4),
                source="fallback",
            )
            return price

        log_event(
            self._logger,
            level="info",
            event="price_fetched",
            message="Live price fetched",
            asset_id=self.asset_id,
            currency=self.currency,
            price=round(price, 4),
            source="live",
        )
        return price
