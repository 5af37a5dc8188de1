"""Proportional payout allocation for a resolved binary market."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_FLOOR, Decimal, localcontext

from .models import CENT, PayoutPlan, StakeRecord


def allocate_payouts(stakes: Iterable[StakeRecord], outcome: bool) -> PayoutPlan:
    """Split the whole pool among winners in proportion to their net contribution.

    Each payout is floored to the cent and the leftover cents are handed to the
    largest fractional remainders (ties broken by bet id), so the payouts add
    up to the total pool exactly and never exceed it.

    When nobody backed the winning side the plan distributes nothing: every bet
    lands in ``losing_bet_ids`` and the full pool is reported as undistributed.
    """

    winners: list[StakeRecord] = []
    losers: list[StakeRecord] = []
    for stake in stakes:
        (winners if stake.side == outcome else losers).append(stake)

    total_winning = sum((stake.net_contribution for stake in winners), Decimal("0.00"))
    total_losing = sum((stake.net_contribution for stake in losers), Decimal("0.00"))
    plan = PayoutPlan(
        outcome=outcome,
        total_winning_pool=total_winning,
        total_losing_pool=total_losing,
    )

    if total_winning <= 0:
        plan.losing_bet_ids = sorted(stake.bet_id for stake in (*winners, *losers))
        return plan

    total_pool = plan.total_pool
    remainders: list[tuple[Decimal, int]] = []
    with localcontext() as ctx:
        ctx.prec = 28
        for stake in winners:
            exact = stake.net_contribution * total_pool / total_winning
            floored = exact.quantize(CENT, rounding=ROUND_FLOOR)
            plan.payouts[stake.bet_id] = floored
            remainders.append((exact - floored, stake.bet_id))

    leftover_cents = int((total_pool - plan.distributed) / CENT)
    remainders.sort(key=lambda item: (-item[0], item[1]))
    for _, bet_id in remainders[:leftover_cents]:
        plan.payouts[bet_id] += CENT

    plan.losing_bet_ids = sorted(stake.bet_id for stake in losers)
    return plan


__all__ = ["allocate_payouts"]
