"""Bet ledger data access helpers."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from poolbet.models import Bet

from .types import UserBetRecord


class BetRepository:
    """Encapsulate bet row persistence and the conditional claim transition."""

    def __init__(self, session: Session) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Mutations

    def add_bet(
        self,
        *,
        market_id: int,
        user_id: str,
        side: bool,
        gross_amount: Decimal,
        platform_fee: Decimal,
        creator_fee: Decimal,
        net_contribution: Decimal,
        price: Decimal,
        transfer_reference: str | None = None,
    ) -> Bet:
        bet = Bet(
            market_id=market_id,
            user_id=user_id,
            side=side,
            gross_amount=gross_amount,
            platform_fee=platform_fee,
            creator_fee=creator_fee,
            net_contribution=net_contribution,
            price=price,
            resolved=False,
            payout=None,
            claimed=False,
            transfer_reference=transfer_reference,
        )
        self._session.add(bet)
        return bet

    def mark_claimed(self, bet_id: int) -> bool:
        """Flip ``claimed`` from false to true; return False if another writer got there first."""

        result = self._session.execute(
            update(Bet)
            .where(Bet.id == bet_id, Bet.claimed.is_(False))
            .values(claimed=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    # ------------------------------------------------------------------
    # Queries

    def get_bet(self, bet_id: int) -> Bet | None:
        return self._session.get(Bet, bet_id)

    def list_for_market(self, market_id: int) -> list[Bet]:
        query = select(Bet).where(Bet.market_id == market_id).order_by(Bet.id.asc())
        return list(self._session.execute(query).scalars().all())

    def list_for_user(self, user_id: str) -> list[UserBetRecord]:
        query = (
            select(Bet)
            .options(selectinload(Bet.market))
            .where(Bet.user_id == user_id)
            .order_by(Bet.created_at.desc(), Bet.id.desc())
        )
        bets = self._session.execute(query).scalars().all()
        return [UserBetRecord(bet=bet, market=bet.market) for bet in bets]

    def list_unclaimed_for_user(self, user_id: str) -> list[UserBetRecord]:
        query = (
            select(Bet)
            .options(selectinload(Bet.market))
            .where(
                Bet.user_id == user_id,
                Bet.resolved.is_(True),
                Bet.claimed.is_(False),
                Bet.payout > 0,
            )
            .order_by(Bet.created_at.desc(), Bet.id.desc())
        )
        bets = self._session.execute(query).scalars().all()
        return [UserBetRecord(bet=bet, market=bet.market) for bet in bets]


__all__ = ["BetRepository"]
