from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from . import schemas
from .core.config import settings
from .db import get_db, init_db
from .errors import PoolbetError
from .repositories import UserBetRecord
from .services.bet_service import BetService
from .services.claim_service import ClaimService
from .services.market_service import MarketQuery, MarketService
from .services.price_oracle import CoinGeckoPriceOracle, PriceOracle, to_usd
from .services.settlement_service import SettlementService
from .services.stats_service import StatsService

app = FastAPI(title="Poolbet API", version="0.1.0", debug=settings.debug)


@app.on_event("startup")
def on_startup() -> None:
    """Initialize database tables when the API boots."""

    init_db()


@app.exception_handler(PoolbetError)
def _poolbet_error_handler(request: Request, exc: PoolbetError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/healthz", tags=["system"])
def healthcheck() -> dict[str, str]:
    """Basic readiness probe consumed by infrastructure monitors."""

    return {"status": "ok"}


def _current_user(x_user_id: Annotated[str, Header(description="Authenticated user id")]) -> str:
    """Identity is established upstream; the gateway forwards it in X-User-Id."""

    return x_user_id


def _market_query(
    *,
    status: Annotated[
        str,
        Query(description="Market status filter", pattern="^(active|resolved|all)$"),
    ] = "active",
    creator_id: Annotated[str | None, Query(description="Only markets created by this user")] = None,
    search: Annotated[
        str | None, Query(description="Case-insensitive match on the market title")
    ] = None,
    order: Annotated[
        str,
        Query(description="Sort order by creation time (asc|desc)", pattern="^(asc|desc)$"),
    ] = "desc",
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> MarketQuery:
    """Normalize shared market listing query parameters."""

    return MarketQuery(
        status=status,
        creator_id=creator_id,
        search=search,
        order=order,
        limit=limit,
        offset=offset,
    )


def _market_service(db: Session = Depends(get_db)) -> MarketService:
    return MarketService(db)


def _bet_service(db: Session = Depends(get_db)) -> BetService:
    return BetService(db)


def _settlement_service(db: Session = Depends(get_db)) -> SettlementService:
    return SettlementService(db)


def _claim_service(db: Session = Depends(get_db)) -> ClaimService:
    return ClaimService(db)


def _stats_service(db: Session = Depends(get_db)) -> StatsService:
    return StatsService(db)


@lru_cache
def _price_oracle() -> PriceOracle:
    return CoinGeckoPriceOracle(settings=settings)


def _user_bet(record: UserBetRecord) -> schemas.UserBet:
    payload = schemas.Bet.model_validate(record.bet)
    return schemas.UserBet(**payload.model_dump(), market_title=record.market.title)


@app.post("/markets", response_model=schemas.Market, status_code=201, tags=["markets"])
def create_market(
    payload: schemas.MarketCreate,
    user_id: str = Depends(_current_user),
    service: MarketService = Depends(_market_service),
):
    """Open a new market with seeded YES/NO liquidity."""

    market = service.create_market(
        title=payload.title,
        description=payload.description,
        end_date=payload.end_date,
        creator_id=user_id,
        yes_liquidity=payload.yes_liquidity,
        no_liquidity=payload.no_liquidity,
        platform_fee_rate=payload.platform_fee_rate,
        creator_fee_rate=payload.creator_fee_rate,
    )
    return schemas.Market.model_validate(market)


@app.get("/markets", response_model=schemas.MarketList, tags=["markets"])
def list_markets(
    *,
    query: MarketQuery = Depends(_market_query),
    service: MarketService = Depends(_market_service),
):
    """List markets with optional pagination and filtering controls."""

    result = service.list_markets(query)
    return schemas.MarketList(
        total=result.total,
        items=[schemas.Market.model_validate(market) for market in result.markets],
    )


@app.get("/markets/{market_id}", response_model=schemas.Market, tags=["markets"])
def get_market(market_id: int, service: MarketService = Depends(_market_service)):
    return schemas.Market.model_validate(service.get_market(market_id))


@app.get("/markets/{market_id}/bets", response_model=list[schemas.Bet], tags=["bets"])
def list_market_bets(market_id: int, service: BetService = Depends(_bet_service)):
    return [schemas.Bet.model_validate(bet) for bet in service.list_market_bets(market_id)]


@app.post(
    "/markets/{market_id}/resolve", response_model=schemas.SettlementResult, tags=["markets"]
)
def resolve_market(
    market_id: int,
    payload: schemas.ResolveRequest,
    user_id: str = Depends(_current_user),
    service: SettlementService = Depends(_settlement_service),
):
    """Resolve a market and fix every bet's payout; only the creator may resolve."""

    summary = service.resolve_market(market_id, payload.outcome, resolver_id=user_id)
    return schemas.SettlementResult.model_validate(summary)


@app.post("/bets", response_model=schemas.Bet, status_code=201, tags=["bets"])
def place_bet(
    payload: schemas.BetCreate,
    user_id: str = Depends(_current_user),
    service: BetService = Depends(_bet_service),
    oracle: PriceOracle = Depends(_price_oracle),
):
    """Stake on one side of a market at the current pool-implied price."""

    amount = payload.amount
    if amount is None:
        amount = to_usd(oracle, payload.token_symbol, payload.token_amount)
    fee_config = payload.fee_config.to_domain() if payload.fee_config else None
    bet = service.place_bet(user_id, payload.market_id, payload.side, amount, fee_config)
    return schemas.Bet.model_validate(bet)


@app.post("/bets/{bet_id}/claim", response_model=schemas.ClaimResult, tags=["bets"])
def claim_winnings(
    bet_id: int,
    user_id: str = Depends(_current_user),
    service: ClaimService = Depends(_claim_service),
):
    """Move a winning bet's payout into the caller's balance."""

    balance = service.claim_winnings(user_id, bet_id)
    return schemas.ClaimResult(bet_id=bet_id, balance=float(balance))


@app.get("/users/me/bets", response_model=list[schemas.UserBet], tags=["users"])
def list_user_bets(
    user_id: str = Depends(_current_user),
    service: BetService = Depends(_bet_service),
):
    return [_user_bet(record) for record in service.list_user_bets(user_id)]


@app.get("/users/me/winnings", response_model=schemas.UnclaimedWinnings, tags=["users"])
def get_unclaimed_winnings(
    user_id: str = Depends(_current_user),
    service: ClaimService = Depends(_claim_service),
):
    winnings = service.get_unclaimed_winnings(user_id)
    return schemas.UnclaimedWinnings(
        total_amount=float(winnings.total_amount),
        bets=[_user_bet(record) for record in winnings.bets],
    )


@app.get("/users/me/stats", response_model=schemas.UserStats, tags=["users"])
def user_stats(
    user_id: str = Depends(_current_user),
    service: StatsService = Depends(_stats_service),
):
    return service.user_stats(user_id)


@app.get("/stats", response_model=schemas.PlatformStats, tags=["system"])
def platform_stats(service: StatsService = Depends(_stats_service)):
    return service.platform_stats()
