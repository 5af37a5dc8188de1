from __future__ import annotations

from decimal import Decimal

import pytest

from poolbet.domain import MAX_MONEY, FeeConfig, split_fees, to_money
from poolbet.errors import InvalidAmount, InvalidFeeConfig

TEN_AND_TEN = FeeConfig(platform_fee_rate=Decimal("0.10"), creator_fee_rate=Decimal("0.10"))


def test_split_fees_flat_ten_percent_each():
    """Verify a 100.00 stake leaves 80.00 for the pool after 10% + 10% fees."""
    split = split_fees(Decimal("100.00"), TEN_AND_TEN)

    assert split.platform_fee == Decimal("10.00")
    assert split.creator_fee == Decimal("10.00")
    assert split.net_contribution == Decimal("80.00")
    assert split.gross_amount == Decimal("100.00")


def test_split_fees_rounds_half_up_and_conserves_gross():
    """Verify fees round to the cent and the net absorbs the rounding."""
    split = split_fees("0.05", TEN_AND_TEN)

    assert split.platform_fee == Decimal("0.01")
    assert split.creator_fee == Decimal("0.01")
    assert split.net_contribution == Decimal("0.03")
    assert split.platform_fee + split.creator_fee + split.net_contribution == Decimal("0.05")


@pytest.mark.parametrize("gross", ["12.34", "999.99", "0.01", 7, 3.3])
def test_split_fees_components_sum_to_gross(gross):
    """Verify platform fee, creator fee, and net always add back to the gross stake."""
    split = split_fees(gross, FeeConfig(Decimal("0.025"), Decimal("0.01")))

    assert split.gross_amount == Decimal(str(gross)).quantize(Decimal("0.01"))
    assert split.net_contribution > 0


def test_split_fees_with_zero_rates_keeps_full_stake():
    """Verify a zero fee schedule sends the whole stake to the pool."""
    split = split_fees("42.00", FeeConfig(Decimal("0"), Decimal("0")))

    assert split.platform_fee == Decimal("0.00")
    assert split.creator_fee == Decimal("0.00")
    assert split.net_contribution == Decimal("42.00")


@pytest.mark.parametrize("gross", [0, "-5", "abc", "NaN", "Infinity", "0.001"])
def test_split_fees_rejects_invalid_amounts(gross):
    """Verify non-positive, non-numeric, and sub-cent amounts raise InvalidAmount."""
    with pytest.raises(InvalidAmount):
        split_fees(gross, TEN_AND_TEN)


def test_split_fees_rejects_stake_consumed_by_fees():
    """Verify a stake whose fees round up to the whole amount is rejected."""
    with pytest.raises(InvalidAmount):
        split_fees("0.01", FeeConfig(Decimal("0.99"), Decimal("0")))


def test_invalid_amount_is_a_value_error():
    """Verify callers catching ValueError also catch InvalidAmount."""
    with pytest.raises(ValueError):
        split_fees("-1", TEN_AND_TEN)


@pytest.mark.parametrize(
    ("platform", "creator"),
    [("-0.01", "0.10"), ("1", "0"), ("0.6", "0.5"), ("0.5", "0.5")],
)
def test_fee_config_rejects_out_of_range_rates(platform, creator):
    """Verify fee rates outside [0, 1) or summing to 1 or more are rejected."""
    with pytest.raises(InvalidFeeConfig):
        FeeConfig(platform_fee_rate=Decimal(platform), creator_fee_rate=Decimal(creator))


def test_fee_config_coerces_rates_to_decimal():
    """Verify float and string rates are stored as Decimals."""
    config = FeeConfig(platform_fee_rate=0.025, creator_fee_rate="0.01")

    assert config.platform_fee_rate == Decimal("0.025")
    assert config.creator_fee_rate == Decimal("0.01")


@pytest.mark.parametrize("gross", ["1e30", "10000000000000000.00", Decimal("1E+40")])
def test_split_fees_rejects_stakes_above_column_capacity(gross):
    """Verify stakes too large for a cents column raise InvalidAmount, not InvalidOperation."""
    with pytest.raises(InvalidAmount):
        split_fees(gross, TEN_AND_TEN)


def test_split_fees_accepts_maximum_stake():
    """Verify the largest storable stake still splits and conserves the gross."""
    split = split_fees(MAX_MONEY, TEN_AND_TEN)

    assert split.gross_amount == MAX_MONEY
    assert split.net_contribution > 0


def test_to_money_rejects_amounts_beyond_decimal_precision():
    """Verify quantize overflow surfaces as InvalidAmount."""
    with pytest.raises(InvalidAmount):
        to_money("1e40")
