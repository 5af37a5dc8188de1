"""Error taxonomy shared by the ledger services and the HTTP layer."""

from __future__ import annotations


class PoolbetError(Exception):
    """Base class for failures surfaced to API callers."""

    status_code: int = 400

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.__class__.__doc__ or self.__class__.__name__)

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else self.__class__.__name__


class InvalidAmount(PoolbetError, ValueError):
    """Amount must be greater than zero."""


class InvalidFeeConfig(PoolbetError, ValueError):
    """Fee rates must each be in [0, 1) and sum to less than 1."""


class MarketNotFound(PoolbetError):
    """Market not found."""

    status_code = 404


class MarketInactive(PoolbetError):
    """Market is not active."""


class AlreadyResolved(PoolbetError):
    """Market has already been resolved."""

    status_code = 409


class BetNotFound(PoolbetError):
    """Bet not found."""

    status_code = 404


class UserNotFound(PoolbetError):
    """User not found."""

    status_code = 404


class AuthorizationError(PoolbetError):
    """Caller is not allowed to act on this resource."""

    status_code = 403


class NotResolvedError(PoolbetError):
    """Bet is not yet resolved."""


class AlreadyClaimedError(PoolbetError):
    """Winnings already claimed."""

    status_code = 409


class NoWinningsError(PoolbetError):
    """No winnings to claim."""


class TransferFailed(PoolbetError):
    """Wallet transfer failed."""

    status_code = 402


class ConcurrencyConflict(PoolbetError):
    """Concurrent update detected; retry budget exhausted."""

    status_code = 409


__all__ = [
    "AlreadyClaimedError",
    "AlreadyResolved",
    "AuthorizationError",
    "BetNotFound",
    "ConcurrencyConflict",
    "InvalidAmount",
    "InvalidFeeConfig",
    "MarketInactive",
    "MarketNotFound",
    "NoWinningsError",
    "NotResolvedError",
    "PoolbetError",
    "TransferFailed",
    "UserNotFound",
]
