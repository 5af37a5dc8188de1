from __future__ import annotations

from decimal import Decimal

from sqlalchemy.orm import Session

from poolbet.domain import FeeConfig
from poolbet.models import Bet
from poolbet.services.bet_service import BetService
from poolbet.services.claim_service import ClaimService, UnclaimedWinnings
from poolbet.services.settlement_service import SettlementService, SettlementSummary
from poolbet.services.wallet import WalletService


def place_bet(
    session: Session,
    user_id: str,
    market_id: int,
    side: bool,
    gross_amount: Decimal | int | float | str,
    fee_config: FeeConfig | None = None,
    *,
    wallet: WalletService | None = None,
) -> Bet:
    return BetService(session, wallet=wallet).place_bet(
        user_id, market_id, side, gross_amount, fee_config
    )


def resolve_market(session: Session, market_id: int, outcome: bool) -> SettlementSummary:
    return SettlementService(session).resolve_market(market_id, outcome)


def resolve_bets(session: Session, market_id: int, outcome: bool) -> SettlementSummary:
    return SettlementService(session).resolve_bets(market_id, outcome)


def claim_winnings(session: Session, user_id: str, bet_id: int) -> Decimal:
    return ClaimService(session).claim_winnings(user_id, bet_id)


def get_unclaimed_winnings(session: Session, user_id: str) -> UnclaimedWinnings:
    return ClaimService(session).get_unclaimed_winnings(user_id)
