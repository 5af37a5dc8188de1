from __future__ import annotations

from decimal import Decimal

from poolbet.domain import StakeRecord, allocate_payouts


def _stake(bet_id: int, side: bool, amount: str) -> StakeRecord:
    return StakeRecord(bet_id=bet_id, side=side, net_contribution=Decimal(amount))


def test_allocate_payouts_proportional_to_net_contribution():
    """Verify winners split the whole pool pro rata and the cents add up exactly."""
    stakes = [
        _stake(1, True, "80.00"),
        _stake(2, True, "40.00"),
        _stake(3, False, "120.00"),
        _stake(4, False, "80.00"),
    ]

    plan = allocate_payouts(stakes, True)

    assert plan.total_winning_pool == Decimal("120.00")
    assert plan.total_losing_pool == Decimal("200.00")
    assert plan.payouts == {1: Decimal("213.33"), 2: Decimal("106.67")}
    assert plan.losing_bet_ids == [3, 4]
    assert plan.distributed == Decimal("320.00")
    assert plan.undistributed == Decimal("0.00")


def test_allocate_payouts_with_no_winning_stake_distributes_nothing():
    """Verify nobody is paid when the winning side has no stake."""
    stakes = [_stake(5, False, "80.00"), _stake(2, False, "20.00")]

    plan = allocate_payouts(stakes, True)

    assert plan.payouts == {}
    assert plan.losing_bet_ids == [2, 5]
    assert plan.distributed == Decimal("0.00")
    assert plan.undistributed == Decimal("100.00")


def test_allocate_payouts_breaks_remainder_ties_by_bet_id():
    """Verify a leftover cent among equal remainders goes to the lowest bet id."""
    stakes = [
        _stake(3, True, "1.00"),
        _stake(1, True, "1.00"),
        _stake(2, True, "1.00"),
        _stake(4, False, "0.01"),
    ]

    plan = allocate_payouts(stakes, True)

    assert plan.payouts == {1: Decimal("1.01"), 2: Decimal("1.00"), 3: Decimal("1.00")}
    assert plan.distributed == plan.total_pool


def test_allocate_payouts_conserves_pool_for_awkward_splits():
    """Verify payouts never exceed the pool and always exhaust it."""
    stakes = [_stake(i, i % 3 != 0, f"{i * 7 % 13 + 1}.{i % 10}7") for i in range(1, 40)]

    plan = allocate_payouts(stakes, True)

    assert plan.distributed == plan.total_pool
    assert all(payout >= 0 for payout in plan.payouts.values())
    assert set(plan.payouts) | set(plan.losing_bet_ids) == {stake.bet_id for stake in stakes}


def test_allocate_payouts_single_winner_takes_everything():
    """Verify a lone winner receives the full pool."""
    plan = allocate_payouts([_stake(1, False, "10.00"), _stake(2, True, "0.01")], True)

    assert plan.payouts == {2: Decimal("10.01")}


def test_allocate_payouts_without_bets_is_empty():
    """Verify a market nobody bet on settles to an empty plan."""
    plan = allocate_payouts([], False)

    assert plan.payouts == {}
    assert plan.losing_bet_ids == []
    assert plan.total_pool == Decimal("0.00")
