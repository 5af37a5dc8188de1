"""Run a unit of work in its own transaction, retrying lost optimistic-concurrency races."""

from __future__ import annotations

import random
import time
from collections.abc import Callable
from typing import TypeVar

from loguru import logger
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from poolbet.core.config import Settings
from poolbet.errors import ConcurrencyConflict

T = TypeVar("T")


def run_in_transaction(
    session: Session,
    work: Callable[[], T],
    *,
    settings: Settings,
    description: str,
    sleep: Callable[[float], None] = time.sleep,
    jitter: Callable[[float, float], float] = random.uniform,
) -> T:
    """Call ``work`` and commit; on a version conflict roll back and call it again.

    ``work`` must re-read everything it depends on, because a rollback expires
    every object in the session. Any other exception rolls back and propagates.
    """

    attempts = settings.bet_retry_attempts
    schedule = settings.bet_retry_backoff_schedule
    for attempt in range(1, attempts + 1):
        try:
            result = work()
            session.commit()
            return result
        except StaleDataError as exc:
            session.rollback()
            if attempt >= attempts:
                logger.error(
                    "{} lost {} concurrent update races; giving up",
                    description,
                    attempts,
                )
                raise ConcurrencyConflict(
                    f"{description} conflicted with concurrent updates {attempts} times"
                ) from exc
            delay = schedule[min(attempt - 1, len(schedule) - 1)]
            if settings.bet_retry_jitter_seconds > 0:
                delay += jitter(0.0, settings.bet_retry_jitter_seconds)
            logger.warning(
                "{} hit a concurrent update (attempt {}/{}); retrying in {}s",
                description,
                attempt,
                attempts,
                delay,
            )
            if delay > 0:
                sleep(delay)
        except Exception:
            session.rollback()
            raise
    raise ConcurrencyConflict(f"{description} was never attempted")  # pragma: no cover


__all__ = ["run_in_transaction"]
