from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from poolbet.domain import FeeConfig


def _to_float(value: Any) -> float | None:
    if value is None:
        return None
    return float(value)


class MarketCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str | None = None
    end_date: datetime
    yes_liquidity: Decimal | None = Field(default=None, gt=0)
    no_liquidity: Decimal | None = Field(default=None, gt=0)
    platform_fee_rate: Decimal | None = Field(default=None, ge=0, lt=1)
    creator_fee_rate: Decimal | None = Field(default=None, ge=0, lt=1)


class MarketBase(BaseModel):
    id: int
    title: str
    description: str | None = None
    creator_id: str | None = None
    end_date: datetime
    yes_pool: float
    no_pool: float
    yes_price: float
    no_price: float
    total_volume: float
    participant_count: int
    resolved: bool
    outcome: bool | None = None
    resolved_at: datetime | None = None
    created_at: datetime

    @field_validator("yes_pool", "no_pool", "yes_price", "no_price", "total_volume", mode="before")
    @classmethod
    def _coerce_numeric(cls, value: Any) -> float | None:
        return _to_float(value)


class Market(MarketBase):
    platform_fee_rate: float | None = None
    creator_fee_rate: float | None = None

    model_config = {"from_attributes": True}

    @field_validator("platform_fee_rate", "creator_fee_rate", mode="before")
    @classmethod
    def _coerce_rate(cls, value: Any) -> float | None:
        return _to_float(value)


class MarketList(BaseModel):
    total: int
    items: list[Market]


class FeeConfigIn(BaseModel):
    platform_fee_rate: Decimal = Field(ge=0, lt=1)
    creator_fee_rate: Decimal = Field(ge=0, lt=1)

    def to_domain(self) -> FeeConfig:
        return FeeConfig(
            platform_fee_rate=self.platform_fee_rate,
            creator_fee_rate=self.creator_fee_rate,
        )


class BetCreate(BaseModel):
    market_id: int
    side: bool = Field(description="True backs YES, False backs NO")
    amount: Decimal | None = Field(default=None, description="Gross stake in USD")
    token_symbol: str | None = Field(default=None, description="Token used to pay, priced in USD")
    token_amount: Decimal | None = None
    fee_config: FeeConfigIn | None = None

    @model_validator(mode="after")
    def _require_amount(self) -> "BetCreate":
        if self.amount is None and (self.token_symbol is None or self.token_amount is None):
            raise ValueError("either amount or token_symbol with token_amount is required")
        return self


class Bet(BaseModel):
    id: int
    market_id: int
    user_id: str
    side: bool
    gross_amount: float
    platform_fee: float
    creator_fee: float
    net_contribution: float
    price: float
    resolved: bool
    payout: float | None = None
    claimed: bool
    created_at: datetime

    model_config = {"from_attributes": True}

    @field_validator(
        "gross_amount",
        "platform_fee",
        "creator_fee",
        "net_contribution",
        "price",
        "payout",
        mode="before",
    )
    @classmethod
    def _coerce_decimal(cls, value: Any) -> float | None:
        return _to_float(value)


class UserBet(Bet):
    market_title: str


class ResolveRequest(BaseModel):
    outcome: bool


class SettlementResult(BaseModel):
    market_id: int
    outcome: bool
    winning_bets: int
    losing_bets: int
    total_winning_pool: float
    total_losing_pool: float
    distributed: float
    undistributed: float

    model_config = {"from_attributes": True}

    @field_validator(
        "total_winning_pool", "total_losing_pool", "distributed", "undistributed", mode="before"
    )
    @classmethod
    def _coerce_decimal(cls, value: Any) -> float | None:
        return _to_float(value)


class UnclaimedWinnings(BaseModel):
    total_amount: float
    bets: list[UserBet] = Field(default_factory=list)


class ClaimResult(BaseModel):
    bet_id: int
    balance: float


class PlatformStats(BaseModel):
    generated_at: datetime
    total_volume: float
    active_users: int
    total_markets: int
    resolved_markets: int


class UserStats(BaseModel):
    user_id: str
    total_bets: int
    total_winnings: float
    win_rate: float
    portfolio_value: float
