"""Split a gross stake into platform fee, creator fee, and pool contribution."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from poolbet.errors import InvalidAmount

from .models import CENT, MAX_MONEY, FeeConfig, FeeSplit


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Coerce ``value`` to a Decimal rounded half-up to cents."""

    try:
        return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise InvalidAmount(f"amount {value!r} cannot be expressed in cents") from exc


def split_fees(gross_amount: Decimal | int | float | str, fee_config: FeeConfig) -> FeeSplit:
    try:
        gross = Decimal(str(gross_amount))
    except InvalidOperation as exc:
        raise InvalidAmount(f"gross amount {gross_amount!r} is not a number") from exc
    if not gross.is_finite() or gross <= 0:
        raise InvalidAmount(f"gross amount must be greater than zero, got {gross_amount}")
    if gross > MAX_MONEY:
        raise InvalidAmount(f"gross amount {gross_amount} exceeds the maximum stake {MAX_MONEY}")
    gross = to_money(gross)
    if gross <= 0:
        raise InvalidAmount(f"gross amount {gross_amount} rounds to zero")

    platform_fee = to_money(gross * fee_config.platform_fee_rate)
    creator_fee = to_money(gross * fee_config.creator_fee_rate)
    net_contribution = gross - platform_fee - creator_fee
    if net_contribution <= 0:
        raise InvalidAmount(f"gross amount {gross} leaves nothing for the pool after fees")

    return FeeSplit(
        platform_fee=platform_fee,
        creator_fee=creator_fee,
        net_contribution=net_contribution,
    )


__all__ = ["split_fees", "to_money"]
