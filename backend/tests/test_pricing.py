from __future__ import annotations

from decimal import Decimal

import pytest

from poolbet.domain import market_prices, quote_bet
from poolbet.domain.pricing import MAX_PRICE, MIN_PRICE


def test_quote_bet_prices_against_pools_before_the_bet():
    """Verify a YES bet on balanced pools is priced at 0.5 and moves only the YES pool."""
    quote = quote_bet(Decimal("1000.00"), Decimal("1000.00"), True, Decimal("80.00"))

    assert quote.implied_odds == Decimal("2")
    assert quote.price == Decimal("0.5000")
    assert quote.new_yes_pool == Decimal("1080.0000")
    assert quote.new_no_pool == Decimal("1000.0000")
    assert quote.new_yes_price == Decimal("0.5192")
    assert quote.new_no_price == Decimal("0.4808")


def test_quote_bet_on_no_side_uses_no_pool_share():
    """Verify a NO bet is priced from the NO pool's share of the total."""
    quote = quote_bet(Decimal("1500"), Decimal("500"), False, Decimal("100"))

    assert quote.implied_odds == Decimal("4")
    assert quote.price == Decimal("0.2500")
    assert quote.new_yes_pool == Decimal("1500.0000")
    assert quote.new_no_pool == Decimal("600.0000")
    assert quote.new_yes_price + quote.new_no_price == Decimal("1")


@pytest.mark.parametrize(
    ("yes_pool", "no_pool"),
    [("1000", "1000"), ("1", "2"), ("333.3333", "666.6667"), ("0.01", "5000000")],
)
def test_market_prices_always_sum_to_one(yes_pool, no_pool):
    """Verify YES and NO prices are complementary after rounding."""
    yes_price, no_price = market_prices(Decimal(yes_pool), Decimal(no_pool))

    assert yes_price + no_price == Decimal("1")
    assert MIN_PRICE <= yes_price <= MAX_PRICE
    assert MIN_PRICE <= no_price <= MAX_PRICE


def test_market_prices_clamp_lopsided_pools():
    """Verify a pool too small to register still leaves both prices inside (0, 1)."""
    yes_price, no_price = market_prices(Decimal("5000000"), Decimal("0.01"))

    assert yes_price == MAX_PRICE
    assert no_price == MIN_PRICE


def test_quote_bet_price_is_clamped_for_dominant_side():
    """Verify backing an overwhelming favourite never records a price of 1."""
    quote = quote_bet(Decimal("5000000"), Decimal("0.01"), True, Decimal("10"))

    assert quote.price == MAX_PRICE
