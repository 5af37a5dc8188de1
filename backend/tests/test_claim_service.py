from __future__ import annotations

from decimal import Decimal

import pytest

from poolbet.errors import (
    AlreadyClaimedError,
    AuthorizationError,
    BetNotFound,
    NoWinningsError,
    NotResolvedError,
)
from poolbet.models import Bet
from poolbet.repositories import UserRepository
from poolbet.services.bet_service import BetService
from poolbet.services.claim_service import ClaimService
from poolbet.services.settlement_service import SettlementService


@pytest.fixture
def winning_bet(session, test_settings, make_user, make_market):
    """Alice stakes her whole balance on YES and wins 213.33 once YES resolves."""

    market = make_market(title="Claimable market")
    make_user("alice", "100.00")
    make_user("bob", "1000.00")
    make_user("carol", "1000.00")
    bets = BetService(session, settings=test_settings)
    alice_bet = bets.place_bet("alice", market.id, True, "100.00")
    bets.place_bet("bob", market.id, True, "50.00")
    carol_bet = bets.place_bet("carol", market.id, False, "250.00")
    alice_bet_id, carol_bet_id = alice_bet.id, carol_bet.id
    SettlementService(session, settings=test_settings).resolve_market(market.id, True)
    return alice_bet_id, carol_bet_id


def test_claim_winnings_credits_balance_once(session, test_settings, winning_bet):
    """Verify a claim credits the payout and a second claim is refused."""
    bet_id, _ = winning_bet
    users = UserRepository(session)
    assert users.get_balance("alice") == Decimal("0.00")
    service = ClaimService(session, settings=test_settings)

    new_balance = service.claim_winnings("alice", bet_id)

    assert new_balance == Decimal("213.33")
    assert session.get(Bet, bet_id).claimed is True

    with pytest.raises(AlreadyClaimedError):
        service.claim_winnings("alice", bet_id)
    assert users.get_balance("alice") == Decimal("213.33")


def test_claim_race_credits_only_one_claimant(session_factory, session, test_settings, winning_bet):
    """Verify a claim working from a stale read cannot credit the payout a second time."""
    bet_id, _ = winning_bet

    stale_session = session_factory()
    try:
        stale_bet = stale_session.get(Bet, bet_id)
        assert stale_bet.claimed is False

        ClaimService(session, settings=test_settings).claim_winnings("alice", bet_id)

        with pytest.raises(AlreadyClaimedError):
            ClaimService(stale_session, settings=test_settings).claim_winnings("alice", bet_id)
    finally:
        stale_session.close()

    assert UserRepository(session).get_balance("alice") == Decimal("213.33")


def test_claim_losing_bet_is_already_closed(session, test_settings, winning_bet):
    """Verify a losing bet is settled as claimed and cannot be claimed."""
    _, losing_bet_id = winning_bet

    with pytest.raises(AlreadyClaimedError):
        ClaimService(session, settings=test_settings).claim_winnings("carol", losing_bet_id)


def test_claim_someone_elses_bet(session, test_settings, winning_bet):
    """Verify users cannot claim bets they do not own."""
    bet_id, _ = winning_bet

    with pytest.raises(AuthorizationError):
        ClaimService(session, settings=test_settings).claim_winnings("bob", bet_id)
    assert session.get(Bet, bet_id).claimed is False


def test_claim_unknown_bet(session, test_settings):
    """Verify claiming a missing bet raises BetNotFound."""
    with pytest.raises(BetNotFound):
        ClaimService(session, settings=test_settings).claim_winnings("alice", 777)


def test_claim_unresolved_bet(session, test_settings, make_user, make_market):
    """Verify an open bet cannot be claimed."""
    market = make_market()
    make_user("alice")
    bet = BetService(session, settings=test_settings).place_bet("alice", market.id, True, "10")

    with pytest.raises(NotResolvedError):
        ClaimService(session, settings=test_settings).claim_winnings("alice", bet.id)


def test_claim_resolved_bet_without_payout(session, test_settings, make_user, make_market):
    """Verify a resolved, unclaimed bet with a zero payout raises NoWinningsError."""
    market = make_market()
    make_user("alice")
    bet = BetService(session, settings=test_settings).place_bet("alice", market.id, True, "10")
    bet.resolved = True
    bet.payout = Decimal("0.00")
    session.commit()

    with pytest.raises(NoWinningsError):
        ClaimService(session, settings=test_settings).claim_winnings("alice", bet.id)


def test_get_unclaimed_winnings(session, test_settings, winning_bet):
    """Verify unclaimed winnings list only resolved, unclaimed, positive payouts."""
    bet_id, _ = winning_bet
    service = ClaimService(session, settings=test_settings)

    winnings = service.get_unclaimed_winnings("alice")
    assert winnings.total_amount == Decimal("213.33")
    assert [record.bet.id for record in winnings.bets] == [bet_id]
    assert winnings.bets[0].market.title == "Claimable market"

    assert service.get_unclaimed_winnings("carol").total_amount == Decimal("0.00")

    service.claim_winnings("alice", bet_id)
    after = service.get_unclaimed_winnings("alice")
    assert after.total_amount == Decimal("0.00")
    assert after.bets == []
