from __future__ import annotations

import sys
from datetime import timedelta
from decimal import Decimal
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pytest

from poolbet.core.config import Settings
from poolbet.db import build_db_components, init_db
from poolbet.models import Market, utcnow
from poolbet.repositories import UserRepository
from poolbet.services.market_service import MarketService


@pytest.fixture
def test_settings(tmp_path, monkeypatch) -> Settings:
    settings = Settings(
        database_url=f"sqlite:///{tmp_path/'poolbet.db'}",
        bet_retry_backoff_seconds="0",
        bet_retry_jitter_seconds=0,
        platform_fee_rate=Decimal("0.10"),
        creator_fee_rate=Decimal("0.10"),
        seed_liquidity=Decimal("1000.00"),
    )
    monkeypatch.setattr("poolbet.core.config.get_settings", lambda: settings)
    monkeypatch.setattr("poolbet.core.config.settings", settings)
    return settings


@pytest.fixture
def session_factory(test_settings):
    engine, factory = build_db_components(test_settings.resolved_database_url)
    init_db(bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_user(session):
    def _make(user_id: str = "alice", balance: str = "1000.00") -> str:
        user = UserRepository(session).upsert_user(user_id, username=user_id)
        user.balance = Decimal(balance)
        session.commit()
        return user_id

    return _make


@pytest.fixture
def make_market(session, test_settings, make_user):
    def _make(*, creator_id: str = "creator", **overrides) -> Market:
        make_user(creator_id, "0.00")
        params = {
            "title": "Will it rain tomorrow?",
            "end_date": utcnow() + timedelta(days=7),
        }
        params.update(overrides)
        service = MarketService(session, settings=test_settings)
        return service.create_market(creator_id=creator_id, **params)

    return _make
