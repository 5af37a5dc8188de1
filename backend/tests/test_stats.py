from __future__ import annotations

import pytest

from poolbet.errors import UserNotFound
from poolbet.services.bet_service import BetService
from poolbet.services.settlement_service import SettlementService
from poolbet.services.stats_service import StatsService


@pytest.fixture
def populated(session, test_settings, make_user, make_market):
    first = make_market(title="First")
    second = make_market(title="Second")
    for user_id in ("alice", "bob", "carol"):
        make_user(user_id, "1000.00")
    bets = BetService(session, settings=test_settings)
    bets.place_bet("alice", first.id, True, "100.00")
    bets.place_bet("bob", first.id, True, "50.00")
    bets.place_bet("carol", first.id, False, "250.00")
    bets.place_bet("alice", second.id, False, "10.00")
    SettlementService(session, settings=test_settings).resolve_market(first.id, True)


def test_platform_stats(session, populated):
    """Verify platform totals cover every market and recent bettor."""
    stats = StatsService(session).platform_stats()

    assert stats.total_markets == 2
    assert stats.resolved_markets == 1
    assert stats.total_volume == 328.0
    assert stats.active_users == 3


def test_user_stats_for_winner(session, populated):
    """Verify a winner's stats count open stake toward portfolio value."""
    stats = StatsService(session).user_stats("alice")

    assert stats.total_bets == 2
    assert stats.total_winnings == 213.33
    assert stats.win_rate == 100.0
    assert stats.portfolio_value == 900.0


def test_user_stats_for_loser(session, populated):
    """Verify a loser has no winnings and a zero win rate."""
    stats = StatsService(session).user_stats("carol")

    assert stats.total_bets == 1
    assert stats.total_winnings == 0.0
    assert stats.win_rate == 0.0
    assert stats.portfolio_value == 750.0


def test_user_stats_unknown_user(session):
    """Verify stats for a missing user raise UserNotFound."""
    with pytest.raises(UserNotFound):
        StatsService(session).user_stats("ghost")


def test_platform_stats_empty(session):
    """Verify an empty platform reports zeros."""
    stats = StatsService(session).platform_stats()

    assert stats.total_markets == 0
    assert stats.total_volume == 0.0
    assert stats.active_users == 0
