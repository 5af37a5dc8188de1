"""Token-to-USD price lookups used to turn a crypto stake into a USD gross amount."""

from __future__ import annotations

import time
from collections.abc import Mapping
from decimal import Decimal
from typing import Protocol

import httpx
from loguru import logger

from poolbet.core.config import Settings, get_settings
from poolbet.domain import to_money
from poolbet.errors import InvalidAmount

COINGECKO_IDS: dict[str, str] = {
    "ETH": "ethereum",
    "SOL": "solana",
    "USDT": "tether",
    "USDC": "usd-coin",
    "RAY": "raydium",
    "JUP": "jupiter-exchange-solana",
}


class PriceOracle(Protocol):
    def get_price(self, symbol: str) -> Decimal:
        """Return the USD price of one unit of ``symbol``."""
        ...


class StaticPriceOracle:
    def __init__(self, prices: Mapping[str, Decimal | float | str]) -> None:
        self._prices = {symbol.upper(): Decimal(str(price)) for symbol, price in prices.items()}

    def get_price(self, symbol: str) -> Decimal:
        return self._prices.get(symbol.upper(), Decimal("0"))


class CoinGeckoPriceOracle:
    """Thin cached wrapper around the CoinGecko simple price endpoint."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        transport: httpx.BaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.settings = settings or get_settings()
        self.cache_seconds = self.settings.price_oracle_cache_seconds
        self.fallback_prices = {
            symbol.upper(): Decimal(str(price))
            for symbol, price in self.settings.price_oracle_fallback_prices.items()
        }
        self.client = httpx.Client(
            base_url=str(self.settings.price_oracle_base_url),
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )
        self._cached: dict[str, Decimal] | None = None
        self._fetched_at = 0.0

    def fetch_prices(self) -> dict[str, Decimal]:
        params = {"ids": ",".join(COINGECKO_IDS.values()), "vs_currencies": "usd"}
        logger.info("CoinGecko GET /simple/price ids={}", params["ids"])
        response = self.client.get("/simple/price", params=params)
        response.raise_for_status()
        payload = response.json()

        prices: dict[str, Decimal] = {}
        for symbol, coin_id in COINGECKO_IDS.items():
            entry = payload.get(coin_id) if isinstance(payload, dict) else None
            usd = entry.get("usd") if isinstance(entry, dict) else None
            if usd is not None:
                prices[symbol] = Decimal(str(usd))
            elif symbol in self.fallback_prices:
                prices[symbol] = self.fallback_prices[symbol]
        return prices

    def prices(self) -> dict[str, Decimal]:
        now = time.monotonic()
        if self._cached is not None and now - self._fetched_at < self.cache_seconds:
            return self._cached
        try:
            self._cached = self.fetch_prices()
        except httpx.HTTPError as exc:
            logger.warning("Token price lookup failed ({}); using fallback prices", exc)
            return dict(self.fallback_prices)
        self._fetched_at = now
        return self._cached

    def get_price(self, symbol: str) -> Decimal:
        return self.prices().get(symbol.upper(), Decimal("0"))

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "CoinGeckoPriceOracle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def to_usd(oracle: PriceOracle, symbol: str, amount: Decimal | float | str) -> Decimal:
    """Convert ``amount`` units of ``symbol`` into a USD stake rounded to cents."""

    price = oracle.get_price(symbol)
    if price <= 0:
        raise InvalidAmount(f"no USD price available for {symbol}")
    return to_money(Decimal(str(amount)) * price)


__all__ = [
    "COINGECKO_IDS",
    "CoinGeckoPriceOracle",
    "PriceOracle",
    "StaticPriceOracle",
    "to_usd",
]
