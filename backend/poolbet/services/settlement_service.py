"""Market resolution and proportional bet settlement."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from loguru import logger
from sqlalchemy.orm import Session

from poolbet.core.config import Settings, get_settings
from poolbet.domain import StakeRecord, allocate_payouts
from poolbet.errors import AlreadyResolved, AuthorizationError, MarketNotFound, NotResolvedError
from poolbet.models import utcnow
from poolbet.repositories import BetRepository, MarketRepository

from .transactions import run_in_transaction


@dataclass(slots=True)
class SettlementSummary:
    market_id: int
    outcome: bool
    winning_bets: int = 0
    losing_bets: int = 0
    total_winning_pool: Decimal = Decimal("0.00")
    total_losing_pool: Decimal = Decimal("0.00")
    distributed: Decimal = Decimal("0.00")
    undistributed: Decimal = Decimal("0.00")

    def to_dict(self) -> dict[str, Any]:
        return {
            "market_id": self.market_id,
            "outcome": "YES" if self.outcome else "NO",
            "winning_bets": self.winning_bets,
            "losing_bets": self.losing_bets,
            "total_winning_pool": str(self.total_winning_pool),
            "total_losing_pool": str(self.total_losing_pool),
            "distributed": str(self.distributed),
            "undistributed": str(self.undistributed),
        }


class SettlementService:
    """Resolve a market once and fix every bet's payout in the same transaction."""

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
        self._markets = MarketRepository(session)
        self._bets = BetRepository(session)

    def resolve_market(
        self, market_id: int, outcome: bool, *, resolver_id: str | None = None
    ) -> SettlementSummary:
        def _resolve() -> SettlementSummary:
            market = self._markets.get_market(market_id)
            if market is None:
                raise MarketNotFound(f"Market {market_id} not found")
            if resolver_id is not None and market.creator_id and market.creator_id != resolver_id:
                raise AuthorizationError("Only the market creator can resolve this market")
            if market.resolved:
                raise AlreadyResolved(f"Market {market_id} is already resolved")

            self._markets.mark_resolved(market, outcome=outcome, resolved_at=self._clock())
            # Versioned UPDATE: a concurrent resolver or bettor that read the
            # same version fails its own flush and retries.
            self._session.flush()
            return self.resolve_bets(market_id, outcome)

        summary = run_in_transaction(
            self._session,
            _resolve,
            settings=self._settings,
            description=f"Resolution of market {market_id}",
        )
        logger.info(
            "Market {} resolved {}: winners={} losers={} distributed={} undistributed={}",
            market_id,
            "YES" if outcome else "NO",
            summary.winning_bets,
            summary.losing_bets,
            summary.distributed,
            summary.undistributed,
        )
        return summary

    def resolve_bets(self, market_id: int, outcome: bool) -> SettlementSummary:
        """Write payouts for every bet of an already-resolved market.

        Runs inside the caller's transaction and does not commit. Bets that
        already carry a settlement are left untouched.
        """

        market = self._markets.get_market(market_id)
        if market is None:
            raise MarketNotFound(f"Market {market_id} not found")
        if not market.resolved or market.outcome != outcome:
            raise NotResolvedError(
                f"Market {market_id} must be resolved {'YES' if outcome else 'NO'} before settling bets"
            )

        bets = self._bets.list_for_market(market_id)
        plan = allocate_payouts(
            (StakeRecord(bet_id=bet.id, side=bet.side, net_contribution=bet.net_contribution) for bet in bets),
            outcome,
        )

        for bet in bets:
            if bet.resolved:
                continue
            payout = plan.payouts.get(bet.id)
            bet.resolved = True
            if payout is not None:
                bet.payout = payout
                bet.claimed = False
            else:
                # Nothing to retrieve, so the bet is closed out immediately.
                bet.payout = Decimal("0.00")
                bet.claimed = True
        self._session.flush()

        if bets and plan.total_winning_pool <= 0:
            logger.warning(
                "Market {} has no stake on the winning side; {} left undistributed",
                market_id,
                plan.undistributed,
            )

        return SettlementSummary(
            market_id=market_id,
            outcome=outcome,
            winning_bets=len(plan.payouts),
            losing_bets=len(plan.losing_bet_ids),
            total_winning_pool=plan.total_winning_pool,
            total_losing_pool=plan.total_losing_pool,
            distributed=plan.distributed,
            undistributed=plan.undistributed,
        )


__all__ = ["SettlementService", "SettlementSummary"]
