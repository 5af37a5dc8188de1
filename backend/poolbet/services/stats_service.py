"""Aggregate platform and per-user betting statistics."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from poolbet.domain import to_money
from poolbet.errors import UserNotFound
from poolbet.models import Bet, Market, utcnow
from poolbet.repositories import UserRepository
from poolbet.schemas import PlatformStats, UserStats

ACTIVE_USER_WINDOW = timedelta(days=30)


class StatsService:
    """Calculate aggregate metrics for dashboard views."""

    def __init__(self, session: Session, *, clock: Callable[[], datetime] = utcnow) -> None:
        self._session = session
        self._clock = clock
        self._users = UserRepository(session)

    def platform_stats(self) -> PlatformStats:
        now = self._clock()
        total_volume = self._decimal(select(func.sum(Market.total_volume)))
        total_markets = self._scalar(select(func.count(Market.id)))
        resolved_markets = self._scalar(
            select(func.count(Market.id)).where(Market.resolved.is_(True))
        )
        active_users = self._scalar(
            select(func.count(func.distinct(Bet.user_id))).where(
                Bet.created_at >= now - ACTIVE_USER_WINDOW
            )
        )
        return PlatformStats(
            generated_at=now,
            total_volume=float(total_volume),
            active_users=active_users,
            total_markets=total_markets,
            resolved_markets=resolved_markets,
        )

    def user_stats(self, user_id: str) -> UserStats:
        balance = self._users.get_balance(user_id)
        if balance is None:
            raise UserNotFound(f"User {user_id} not found")

        won = Bet.resolved.is_(True) & (Bet.payout > 0)
        row = self._session.execute(
            select(
                func.count(Bet.id),
                func.sum(case((won, Bet.payout), else_=0)),
                func.sum(case((won, 1), else_=0)),
                func.sum(case((Bet.resolved.is_(True), 1), else_=0)),
                func.sum(case((Bet.resolved.is_(False), Bet.gross_amount), else_=0)),
            ).where(Bet.user_id == user_id)
        ).one()
        total_bets, total_winnings, winning_bets, resolved_bets, open_stake = row

        resolved_bets = int(resolved_bets or 0)
        win_rate = (int(winning_bets or 0) / resolved_bets) * 100 if resolved_bets else 0.0
        portfolio_value = to_money(Decimal(str(balance)) + Decimal(str(open_stake or 0)))

        return UserStats(
            user_id=user_id,
            total_bets=int(total_bets or 0),
            total_winnings=float(to_money(Decimal(str(total_winnings or 0)))),
            win_rate=round(win_rate, 2),
            portfolio_value=float(portfolio_value),
        )

    def _scalar(self, statement) -> int:
        return int(self._session.execute(statement).scalar_one() or 0)

    def _decimal(self, statement) -> Decimal:
        value = self._session.execute(statement).scalar_one()
        return to_money(Decimal(str(value or 0)))


__all__ = ["StatsService"]
