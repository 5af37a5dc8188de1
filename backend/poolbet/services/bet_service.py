"""Bet placement: fee split, pool pricing, and the versioned market update."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from decimal import Decimal

from loguru import logger
from sqlalchemy.orm import Session

from poolbet.core.config import Settings, get_settings
from poolbet.domain import FeeConfig, quote_bet, split_fees
from poolbet.errors import MarketInactive, MarketNotFound, TransferFailed, UserNotFound
from poolbet.models import Bet, Market, utcnow
from poolbet.repositories import BetRepository, MarketRepository, UserBetRecord, UserRepository

from .transactions import run_in_transaction
from .wallet import BalanceWallet, WalletService


def as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def resolve_fee_config(
    market: Market, settings: Settings, fee_config: FeeConfig | None = None
) -> FeeConfig:
    """Explicit config wins, then the market's overrides, then configured defaults."""

    if fee_config is not None:
        return fee_config
    platform = market.platform_fee_rate
    creator = market.creator_fee_rate
    return FeeConfig(
        platform_fee_rate=settings.platform_fee_rate if platform is None else platform,
        creator_fee_rate=settings.creator_fee_rate if creator is None else creator,
    )


def is_market_open(market: Market, now: datetime) -> bool:
    return not market.resolved and as_utc(now) < as_utc(market.end_date)


class BetService:
    """Place bets against a market's current pools, one serialized write at a time."""

    def __init__(
        self,
        session: Session,
        *,
        settings: Settings | None = None,
        wallet: WalletService | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session = session
        self._settings = settings or get_settings()
        self._wallet = wallet if wallet is not None else BalanceWallet(session)
        self._clock = clock
        self._markets = MarketRepository(session)
        self._bets = BetRepository(session)
        self._users = UserRepository(session)

    def place_bet(
        self,
        user_id: str,
        market_id: int,
        side: bool,
        gross_amount: Decimal | int | float | str,
        fee_config: FeeConfig | None = None,
    ) -> Bet:
        def _place() -> Bet:
            market = self._markets.get_market(market_id)
            if market is None:
                raise MarketNotFound(f"Market {market_id} not found")
            if not is_market_open(market, self._clock()):
                raise MarketInactive(f"Market {market_id} is not active")

            split = split_fees(gross_amount, resolve_fee_config(market, self._settings, fee_config))

            if self._users.get_user(user_id) is None:
                raise UserNotFound(f"User {user_id} not found")
            receipt = self._wallet.transfer(user_id, split.gross_amount)
            if not receipt.success:
                raise TransferFailed(receipt.message or "Wallet transfer validation failed")

            quote = quote_bet(market.yes_pool, market.no_pool, side, split.net_contribution)
            bet = self._bets.add_bet(
                market_id=market.id,
                user_id=user_id,
                side=side,
                gross_amount=split.gross_amount,
                platform_fee=split.platform_fee,
                creator_fee=split.creator_fee,
                net_contribution=split.net_contribution,
                price=quote.price,
                transfer_reference=receipt.reference,
            )
            self._markets.apply_bet(
                market,
                yes_pool=quote.new_yes_pool,
                no_pool=quote.new_no_pool,
                yes_price=quote.new_yes_price,
                no_price=quote.new_no_price,
                net_contribution=split.net_contribution,
            )
            self._session.flush()
            return bet

        bet = run_in_transaction(
            self._session,
            _place,
            settings=self._settings,
            description=f"Bet on market {market_id}",
        )
        logger.info(
            "Placed bet {} on market {}: user={} side={} gross={} net={} price={}",
            bet.id,
            market_id,
            user_id,
            "YES" if side else "NO",
            bet.gross_amount,
            bet.net_contribution,
            bet.price,
        )
        return bet

    def list_user_bets(self, user_id: str) -> list[UserBetRecord]:
        return self._bets.list_for_user(user_id)

    def list_market_bets(self, market_id: int) -> list[Bet]:
        if self._markets.get_market(market_id) is None:
            raise MarketNotFound(f"Market {market_id} not found")
        return self._bets.list_for_market(market_id)


__all__ = ["BetService", "as_utc", "is_market_open", "resolve_fee_config"]
