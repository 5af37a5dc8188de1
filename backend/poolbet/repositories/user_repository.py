"""User balance data access helpers."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from poolbet.models import User, utcnow


class UserRepository:
    """Balance changes are single SQL expressions so concurrent writers never lose updates."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_user(self, user_id: str) -> User | None:
        return self._session.get(User, user_id)

    def upsert_user(self, user_id: str, *, username: str | None = None) -> User:
        existing = self._session.get(User, user_id)
        if existing is None:
            existing = User(id=user_id, balance=Decimal("0.00"))
            self._session.add(existing)
        if username is not None:
            existing.username = username
        self._session.flush()
        return existing

    def get_balance(self, user_id: str) -> Decimal | None:
        return self._session.execute(
            select(User.balance).where(User.id == user_id)
        ).scalar_one_or_none()

    def credit(self, user_id: str, amount: Decimal) -> bool:
        result = self._session.execute(
            update(User)
            .where(User.id == user_id)
            .values(balance=User.balance + amount, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def debit(self, user_id: str, amount: Decimal) -> bool:
        """Debit ``amount`` only if the balance covers it."""

        result = self._session.execute(
            update(User)
            .where(User.id == user_id, User.balance >= amount)
            .values(balance=User.balance - amount, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


__all__ = ["UserRepository"]
