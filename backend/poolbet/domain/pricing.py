"""Pool-ratio pricing for binary markets.

The implied probability of a side is its share of the combined pools.  A bet
is priced against the pools as they stood before it, then only the backed
side's pool grows by the bet's net contribution.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, localcontext

from .models import POOL_STEP, PROBABILITY_STEP, PriceQuote

MIN_PRICE = PROBABILITY_STEP
MAX_PRICE = Decimal("1") - PROBABILITY_STEP
_PRECISION = 28


def _to_probability(value: Decimal) -> Decimal:
    rounded = value.quantize(PROBABILITY_STEP, rounding=ROUND_HALF_UP)
    return min(max(rounded, MIN_PRICE), MAX_PRICE)


def market_prices(yes_pool: Decimal, no_pool: Decimal) -> tuple[Decimal, Decimal]:
    """Return ``(yes_price, no_price)`` for the given pools, summing to exactly 1."""

    with localcontext() as ctx:
        ctx.prec = _PRECISION
        yes = Decimal(yes_pool)
        no = Decimal(no_pool)
        yes_price = _to_probability(yes / (yes + no))
        return yes_price, Decimal("1") - yes_price


def quote_bet(
    yes_pool: Decimal,
    no_pool: Decimal,
    side: bool,
    net_contribution: Decimal,
) -> PriceQuote:
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        yes = Decimal(yes_pool)
        no = Decimal(no_pool)
        side_pool = yes if side else no
        implied_odds = (yes + no) / side_pool
        price = _to_probability(1 / implied_odds)

        if side:
            yes = yes + net_contribution
        else:
            no = no + net_contribution

        new_yes_price, new_no_price = market_prices(yes, no)
        return PriceQuote(
            implied_odds=implied_odds,
            price=price,
            new_yes_pool=yes.quantize(POOL_STEP),
            new_no_pool=no.quantize(POOL_STEP),
            new_yes_price=new_yes_price,
            new_no_price=new_no_price,
        )


__all__ = ["MAX_PRICE", "MIN_PRICE", "market_prices", "quote_bet"]
