from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


class MarketStatus(str, Enum):
    ACTIVE = "active"
    RESOLVED = "resolved"
    ALL = "all"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    username: Mapped[str | None] = mapped_column(String, nullable=True)
    balance: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=Decimal("0.00"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    bets: Mapped[list["Bet"]] = relationship("Bet", back_populates="user")


class Market(Base):
    __tablename__ = "markets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    creator_id: Mapped[str | None] = mapped_column(String, ForeignKey("users.id"), nullable=True)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    yes_pool: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False)
    no_pool: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False)
    yes_price: Mapped[Decimal] = mapped_column(Numeric(10, 4), nullable=False, default=Decimal("0.5000"))
    no_price: Mapped[Decimal] = mapped_column(Numeric(10, 4), nullable=False, default=Decimal("0.5000"))
    total_volume: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=Decimal("0.00"))
    participant_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    resolved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    outcome: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Per-market overrides; NULL falls back to the configured defaults.
    platform_fee_rate: Mapped[Decimal | None] = mapped_column(Numeric(6, 4), nullable=True)
    creator_fee_rate: Mapped[Decimal | None] = mapped_column(Numeric(6, 4), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    bets: Mapped[list["Bet"]] = relationship(
        "Bet", back_populates="market", cascade="all, delete-orphan"
    )

    # Every UPDATE of a market row is conditional on the version it was read at.
    __mapper_args__ = {"version_id_col": version}


class Bet(Base):
    __tablename__ = "bets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    market_id: Mapped[int] = mapped_column(Integer, ForeignKey("markets.id"), nullable=False)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)
    side: Mapped[bool] = mapped_column(Boolean, nullable=False)
    gross_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    platform_fee: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=Decimal("0.00"))
    creator_fee: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=Decimal("0.00"))
    net_contribution: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 4), nullable=False)
    resolved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    payout: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    claimed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    transfer_reference: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    market: Mapped[Market] = relationship("Market", back_populates="bets")
    user: Mapped[User] = relationship("User", back_populates="bets")

    __table_args__ = (
        Index("ix_bets_market_id", "market_id"),
        Index("ix_bets_user_unclaimed", "user_id", "resolved", "claimed"),
    )
