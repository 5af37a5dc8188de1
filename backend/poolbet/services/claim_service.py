"""Move resolved payouts into user balances exactly once."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from loguru import logger
from sqlalchemy.orm import Session

from poolbet.core.config import Settings, get_settings
from poolbet.errors import (
    AlreadyClaimedError,
    AuthorizationError,
    BetNotFound,
    NoWinningsError,
    NotResolvedError,
    UserNotFound,
)
from poolbet.repositories import BetRepository, UserBetRecord, UserRepository

from .transactions import run_in_transaction


@dataclass(slots=True)
class UnclaimedWinnings:
    total_amount: Decimal = Decimal("0.00")
    bets: list[UserBetRecord] = field(default_factory=list)


class ClaimService:
    def __init__(self, session: Session, *, settings: Settings | None = None) -> None:
        self._session = session
        self._settings = settings or get_settings()
        self._bets = BetRepository(session)
        self._users = UserRepository(session)

    def claim_winnings(self, user_id: str, bet_id: int) -> Decimal:
        """Credit a winning bet's payout to its owner and return the new balance."""

        def _claim() -> tuple[Decimal, Decimal]:
            bet = self._bets.get_bet(bet_id)
            if bet is None:
                raise BetNotFound(f"Bet {bet_id} not found")
            if bet.user_id != user_id:
                raise AuthorizationError("Bet doesn't belong to user")
            if not bet.resolved:
                raise NotResolvedError("Bet is not yet resolved")
            if bet.claimed:
                raise AlreadyClaimedError("Winnings already claimed")
            payout = bet.payout if bet.payout is not None else Decimal("0.00")
            if payout <= 0:
                raise NoWinningsError("No winnings to claim")

            # A concurrent claim may have committed after the read above.
            if not self._bets.mark_claimed(bet_id):
                raise AlreadyClaimedError("Winnings already claimed")
            if not self._users.credit(user_id, payout):
                raise UserNotFound(f"User {user_id} not found")
            new_balance = self._users.get_balance(user_id)
            return payout, new_balance

        payout, new_balance = run_in_transaction(
            self._session,
            _claim,
            settings=self._settings,
            description=f"Claim of bet {bet_id}",
        )
        logger.info("User {} claimed {} from bet {}; balance now {}", user_id, payout, bet_id, new_balance)
        return new_balance

    def get_unclaimed_winnings(self, user_id: str) -> UnclaimedWinnings:
        records = self._bets.list_unclaimed_for_user(user_id)
        total = sum((record.bet.payout for record in records), Decimal("0.00"))
        return UnclaimedWinnings(total_amount=total, bets=records)


__all__ = ["ClaimService", "UnclaimedWinnings"]
