"""Pure fee, pricing, and settlement math for pool-based binary markets."""

from .fees import split_fees, to_money
from .models import MAX_MONEY, FeeConfig, FeeSplit, PayoutPlan, PriceQuote, StakeRecord
from .pricing import market_prices, quote_bet
from .settlement import allocate_payouts

__all__ = [
    "MAX_MONEY",
    "FeeConfig",
    "FeeSplit",
    "PayoutPlan",
    "PriceQuote",
    "StakeRecord",
    "allocate_payouts",
    "market_prices",
    "quote_bet",
    "split_fees",
    "to_money",
]
