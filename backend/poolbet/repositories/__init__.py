"""Repository abstractions for database interactions."""

from .bet_repository import BetRepository
from .market_repository import MarketRepository
from .types import UserBetRecord
from .user_repository import UserRepository

__all__ = [
    "BetRepository",
    "MarketRepository",
    "UserBetRecord",
    "UserRepository",
]
