"""Market creation and listing."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Sequence

from loguru import logger
from sqlalchemy.orm import Session

from poolbet.core.config import Settings, get_settings
from poolbet.domain import FeeConfig, market_prices
from poolbet.domain.models import POOL_STEP
from poolbet.errors import InvalidAmount, MarketInactive, MarketNotFound
from poolbet.models import Market, MarketStatus, utcnow
from poolbet.repositories import MarketRepository

from .bet_service import as_utc


@dataclass(slots=True)
class MarketQuery:
    status: str | None = MarketStatus.ACTIVE.value
    creator_id: str | None = None
    search: str | None = None
    order: str = "desc"
    limit: int = 50
    offset: int = 0

    def to_repository_kwargs(self) -> dict[str, Any]:
        """Serialize the query so repository functions receive consistent kwargs."""

        return {
            "status": self.status,
            "creator_id": self.creator_id,
            "search": self.search,
            "order": self.order,
            "limit": self.limit,
            "offset": self.offset,
        }


@dataclass(slots=True)
class MarketQueryResult:
    total: int
    markets: Sequence[Market]


class MarketService:
    def __init__(
        self,
        session: Session,
        *,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session = session
        self._settings = settings or get_settings()
        self._clock = clock
        self._market_repo = MarketRepository(session)

    def create_market(
        self,
        *,
        title: str,
        end_date: datetime,
        description: str | None = None,
        creator_id: str | None = None,
        yes_liquidity: Decimal | None = None,
        no_liquidity: Decimal | None = None,
        platform_fee_rate: Decimal | None = None,
        creator_fee_rate: Decimal | None = None,
    ) -> Market:
        """Create a market whose pools are seeded so prices are always defined."""

        seed = self._settings.seed_liquidity
        yes_pool = Decimal(str(seed if yes_liquidity is None else yes_liquidity)).quantize(POOL_STEP)
        no_pool = Decimal(str(seed if no_liquidity is None else no_liquidity)).quantize(POOL_STEP)
        if yes_pool <= 0 or no_pool <= 0:
            raise InvalidAmount("Seed liquidity must be greater than zero on both sides")
        if as_utc(end_date) <= as_utc(self._clock()):
            raise MarketInactive("Market end date must be in the future")
        if platform_fee_rate is not None or creator_fee_rate is not None:
            FeeConfig(
                platform_fee_rate=self._settings.platform_fee_rate
                if platform_fee_rate is None
                else platform_fee_rate,
                creator_fee_rate=self._settings.creator_fee_rate
                if creator_fee_rate is None
                else creator_fee_rate,
            )

        yes_price, no_price = market_prices(yes_pool, no_pool)
        try:
            market = self._market_repo.add_market(
                title=title,
                description=description,
                creator_id=creator_id,
                end_date=as_utc(end_date),
                yes_pool=yes_pool,
                no_pool=no_pool,
                yes_price=yes_price,
                no_price=no_price,
                platform_fee_rate=platform_fee_rate,
                creator_fee_rate=creator_fee_rate,
            )
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise
        logger.info("Created market {} ({}) with pools {}/{}", market.id, title, yes_pool, no_pool)
        return market

    def get_market(self, market_id: int) -> Market:
        market = self._market_repo.get_market(market_id)
        if market is None:
            raise MarketNotFound(f"Market {market_id} not found")
        return market

    def list_markets(self, query: MarketQuery) -> MarketQueryResult:
        markets, total = self._market_repo.list_markets(**query.to_repository_kwargs())
        return MarketQueryResult(total=total, markets=markets)


__all__ = ["MarketQuery", "MarketQueryResult", "MarketService"]
