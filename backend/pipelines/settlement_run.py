"""Standalone job that resolves a market and settles every bet placed on it."""

from __future__ import annotations

import argparse
import json
from collections.abc import Sequence
from pathlib import Path

from loguru import logger
from sqlalchemy.orm import Session, sessionmaker

from poolbet.core.config import Settings, get_settings
from poolbet.db import SessionLocal, init_db
from poolbet.services.settlement_service import SettlementService, SettlementSummary


def _parse_outcome(value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in {"yes", "true", "1"}:
        return True
    if normalized in {"no", "false", "0"}:
        return False
    raise argparse.ArgumentTypeError(f"outcome must be yes or no, got {value!r}")


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Resolve a market outside the API and fix the payout of every bet",
    )
    parser.add_argument("--market-id", type=int, required=True, help="Market to resolve")
    parser.add_argument(
        "--outcome",
        type=_parse_outcome,
        required=True,
        help="Winning side: yes or no",
    )
    parser.add_argument(
        "--resolver-id",
        default=None,
        help="Resolve on behalf of this user; must match the market creator when given",
    )
    parser.add_argument(
        "--summary-path",
        type=Path,
        default=None,
        help="Optional path where a JSON summary report will be written",
    )
    return parser.parse_args(argv)


def run_settlement(
    market_id: int,
    outcome: bool,
    *,
    resolver_id: str | None = None,
    settings: Settings | None = None,
    session_factory: sessionmaker[Session] = SessionLocal,
) -> SettlementSummary:
    settings = settings or get_settings()
    init_db(bind=session_factory.kw.get("bind"))

    logger.info("Settling market {} with outcome {}", market_id, "YES" if outcome else "NO")
    session = session_factory()
    try:
        service = SettlementService(session, settings=settings)
        return service.resolve_market(market_id, outcome, resolver_id=resolver_id)
    finally:
        session.close()


def _write_summary(summary: SettlementSummary, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(summary.to_dict(), default=str, indent=2))
    logger.info("Settlement summary written to {}", path)


def main(argv: Sequence[str] | None = None) -> SettlementSummary:
    args = _parse_args(argv)
    try:
        summary = run_settlement(
            args.market_id,
            args.outcome,
            resolver_id=args.resolver_id,
        )
    except Exception:
        logger.exception("Settlement of market {} failed", args.market_id)
        raise

    if args.summary_path:
        _write_summary(summary, args.summary_path)
    return summary


if __name__ == "__main__":
    main()
