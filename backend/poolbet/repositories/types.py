"""Shared repository result types."""

from __future__ import annotations

from dataclasses import dataclass

from poolbet.models import Bet, Market


@dataclass(slots=True)
class UserBetRecord:
    """Bundle a bet with the market it was placed on for listing operations."""

    bet: Bet
    market: Market


__all__ = ["UserBetRecord"]
