"""Custody transfer collaborators consulted before a bet enters the ledger."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol
from uuid import uuid4

from loguru import logger
from sqlalchemy.orm import Session

from poolbet.repositories import UserRepository


@dataclass(frozen=True, slots=True)
class TransferReceipt:
    success: bool
    reference: str | None = None
    message: str | None = None


class WalletService(Protocol):
    """Move ``amount_usd`` out of a user's custody for a bet."""

    def transfer(self, user_id: str, amount_usd: Decimal) -> TransferReceipt:
        ...


class BalanceWallet:
    """Pay for bets out of the user's platform balance.

    The debit runs on the caller's session, so it commits or rolls back
    together with the bet it pays for.
    """

    def __init__(self, session: Session) -> None:
        self._users = UserRepository(session)

    def transfer(self, user_id: str, amount_usd: Decimal) -> TransferReceipt:
        if self._users.get_balance(user_id) is None:
            return TransferReceipt(success=False, message=f"user {user_id} has no wallet")
        if not self._users.debit(user_id, amount_usd):
            logger.info("Balance transfer of {} declined for user {}", amount_usd, user_id)
            return TransferReceipt(success=False, message="insufficient balance")
        return TransferReceipt(success=True, reference=f"balance:{uuid4().hex}")


class ApprovingWallet:
    """Accept every transfer; for deployments where custody is handled upstream."""

    def transfer(self, user_id: str, amount_usd: Decimal) -> TransferReceipt:
        return TransferReceipt(success=True, reference=None)


__all__ = ["ApprovingWallet", "BalanceWallet", "TransferReceipt", "WalletService"]
