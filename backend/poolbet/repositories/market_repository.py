"""Market-focused data access helpers."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import asc, desc, func, select
from sqlalchemy.orm import Session

from poolbet.models import Market, MarketStatus


class MarketRepository:
    """Encapsulate market persistence concerns."""

    def __init__(self, session: Session) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Mutations

    def add_market(
        self,
        *,
        title: str,
        description: str | None,
        creator_id: str | None,
        end_date: datetime,
        yes_pool: Decimal,
        no_pool: Decimal,
        yes_price: Decimal,
        no_price: Decimal,
        platform_fee_rate: Decimal | None = None,
        creator_fee_rate: Decimal | None = None,
    ) -> Market:
        market = Market(
            title=title,
            description=description,
            creator_id=creator_id,
            end_date=end_date,
            yes_pool=yes_pool,
            no_pool=no_pool,
            yes_price=yes_price,
            no_price=no_price,
            total_volume=Decimal("0.00"),
            participant_count=0,
            resolved=False,
            outcome=None,
            platform_fee_rate=platform_fee_rate,
            creator_fee_rate=creator_fee_rate,
        )
        self._session.add(market)
        self._session.flush()
        return market

    def apply_bet(
        self,
        market: Market,
        *,
        yes_pool: Decimal,
        no_pool: Decimal,
        yes_price: Decimal,
        no_price: Decimal,
        net_contribution: Decimal,
    ) -> None:
        """Stage the pool/price/volume update caused by one bet.

        The row is written on the next flush as a versioned UPDATE, so a market
        that changed since it was loaded raises ``StaleDataError``.
        """

        market.yes_pool = yes_pool
        market.no_pool = no_pool
        market.yes_price = yes_price
        market.no_price = no_price
        market.total_volume = (market.total_volume or Decimal("0.00")) + net_contribution
        market.participant_count = (market.participant_count or 0) + 1

    def mark_resolved(self, market: Market, *, outcome: bool, resolved_at: datetime) -> None:
        market.resolved = True
        market.outcome = outcome
        market.resolved_at = resolved_at

    # ------------------------------------------------------------------
    # Queries

    def get_market(self, market_id: int) -> Market | None:
        return self._session.get(Market, market_id)

    def list_markets(
        self,
        *,
        status: str | None = MarketStatus.ACTIVE.value,
        creator_id: str | None = None,
        search: str | None = None,
        order: str = "desc",
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Market], int]:
        filters: list[Any] = []
        if status == MarketStatus.ACTIVE.value:
            filters.append(Market.resolved.is_(False))
        elif status == MarketStatus.RESOLVED.value:
            filters.append(Market.resolved.is_(True))
        if creator_id:
            filters.append(Market.creator_id == creator_id)
        if search:
            filters.append(Market.title.ilike(f"%{search}%"))

        sort_direction = asc if order.lower() != "desc" else desc
        query = (
            select(Market)
            .where(*filters)
            .order_by(sort_direction(Market.created_at), sort_direction(Market.id))
            .limit(limit)
            .offset(offset)
        )
        total_query = select(func.count(Market.id)).where(*filters)

        markets = list(self._session.execute(query).scalars().all())
        total = self._session.execute(total_query).scalar_one()
        return markets, total


__all__ = ["MarketRepository"]
