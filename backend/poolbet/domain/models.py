"""Typed value objects shared by fee splitting, pricing, and settlement."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from poolbet.errors import InvalidFeeConfig

CENT = Decimal("0.01")
# Largest amount a Numeric(18, 2) column can hold.
MAX_MONEY = Decimal("9999999999999999.99")
PROBABILITY_STEP = Decimal("0.0001")
POOL_STEP = Decimal("0.0001")


@dataclass(frozen=True, slots=True)
class FeeConfig:
    """Fee rates applied to a gross stake, expressed as fractions (0.10 == 10%)."""

    platform_fee_rate: Decimal
    creator_fee_rate: Decimal

    def __post_init__(self) -> None:
        platform = Decimal(str(self.platform_fee_rate))
        creator = Decimal(str(self.creator_fee_rate))
        for rate in (platform, creator):
            if rate < 0 or rate >= 1:
                raise InvalidFeeConfig(f"fee rate {rate} is outside [0, 1)")
        if platform + creator >= 1:
            raise InvalidFeeConfig("combined fee rates must be below 1")
        object.__setattr__(self, "platform_fee_rate", platform)
        object.__setattr__(self, "creator_fee_rate", creator)


@dataclass(frozen=True, slots=True)
class FeeSplit:
    platform_fee: Decimal
    creator_fee: Decimal
    net_contribution: Decimal

    @property
    def gross_amount(self) -> Decimal:
        return self.platform_fee + self.creator_fee + self.net_contribution


@dataclass(frozen=True, slots=True)
class PriceQuote:
    """Outcome of pricing one bet against a pool snapshot."""

    implied_odds: Decimal
    price: Decimal
    new_yes_pool: Decimal
    new_no_pool: Decimal
    new_yes_price: Decimal
    new_no_price: Decimal


@dataclass(frozen=True, slots=True)
class StakeRecord:
    """Minimal view of a bet needed to compute its settlement."""

    bet_id: int
    side: bool
    net_contribution: Decimal


@dataclass(slots=True)
class PayoutPlan:
    outcome: bool
    total_winning_pool: Decimal
    total_losing_pool: Decimal
    payouts: dict[int, Decimal] = field(default_factory=dict)
    losing_bet_ids: list[int] = field(default_factory=list)

    @property
    def total_pool(self) -> Decimal:
        return self.total_winning_pool + self.total_losing_pool

    @property
    def distributed(self) -> Decimal:
        return sum(self.payouts.values(), Decimal("0.00"))

    @property
    def undistributed(self) -> Decimal:
        return self.total_pool - self.distributed
