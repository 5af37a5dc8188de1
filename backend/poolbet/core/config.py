from decimal import Decimal
from functools import lru_cache
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from pydantic import AnyUrl, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _ensure_sqlalchemy_postgres_scheme(value: str) -> str:
    if not value.lower().startswith("postgres"):
        return value

    parsed = urlparse(value)
    scheme = parsed.scheme.lower()

    if scheme == "postgres":
        scheme = "postgresql"

    if scheme == "postgresql":
        scheme = "postgresql+psycopg"

    if scheme not in {"postgresql+psycopg", "postgresql+asyncpg"}:
        scheme = "postgresql+psycopg"

    query_params = dict(parse_qsl(parsed.query, keep_blank_values=True))
    query_params.setdefault("sslmode", "require")
    query_params.setdefault("target_session_attrs", "read-write")
    new_query = urlencode(query_params, doseq=True)

    normalized = urlunparse(
        parsed._replace(
            scheme=scheme,
            query=new_query,
        )
    )
    return normalized


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="POOLBET_", extra="ignore"
    )

    debug: bool = Field(False, description="Enable FastAPI debug mode")
    environment: str = Field(
        default="development",
        description="Runtime environment (development|staging|production)",
    )
    database_url: AnyUrl | str = Field(
        default="sqlite:///../data/poolbet.db",
        description="SQLAlchemy compatible database URL",
    )
    production_database_url: AnyUrl | str | None = Field(
        default=None,
        description="Postgres connection string used when ENVIRONMENT=production",
    )
    platform_fee_rate: Decimal = Field(
        default=Decimal("0.10"),
        description="Default share of each gross stake paid to the platform",
    )
    creator_fee_rate: Decimal = Field(
        default=Decimal("0.10"),
        description="Default share of each gross stake paid to the market creator",
    )
    seed_liquidity: Decimal = Field(
        default=Decimal("1000.00"),
        description="Baseline liquidity seeded into each side of a new market",
        gt=0,
    )
    bet_retry_attempts: int = Field(
        default=3,
        description="Number of attempts for a market write that loses an optimistic-concurrency race",
        ge=1,
    )
    bet_retry_backoff_seconds: list[float] | tuple[float, ...] | str = Field(
        default_factory=lambda: [0.05, 0.1, 0.2],
        description="Comma-separated list or array of delays (seconds) between conflict retries",
    )
    bet_retry_jitter_seconds: float = Field(
        default=0.05,
        description="Upper bound of the random delay (seconds) added to each conflict retry",
        ge=0,
    )
    price_oracle_base_url: AnyUrl = Field(
        default="https://api.coingecko.com/api/v3",
        description="Base URL for the CoinGecko-compatible token price API",
    )
    price_oracle_cache_seconds: float = Field(
        default=300.0,
        description="How long fetched token prices are reused before refreshing",
        ge=0,
    )
    price_oracle_fallback_prices: dict[str, Decimal] = Field(
        default_factory=lambda: {
            "ETH": Decimal("3500"),
            "SOL": Decimal("140"),
            "USDT": Decimal("1"),
            "USDC": Decimal("1"),
        },
        description="Prices used when the upstream price API is unavailable",
    )

    @field_validator("platform_fee_rate", "creator_fee_rate")
    @classmethod
    def _validate_fee_rate(cls, value: Decimal) -> Decimal:
        if value < 0 or value >= 1:
            raise ValueError("fee rates must be in the range [0, 1)")
        return value

    @model_validator(mode="after")
    def _validate_total_fee(self) -> "Settings":
        if self.platform_fee_rate + self.creator_fee_rate >= 1:
            raise ValueError("platform_fee_rate + creator_fee_rate must be below 1")
        return self

    @field_validator("database_url", "production_database_url", mode="before")
    @classmethod
    def _normalize_postgres_urls(cls, value: Any) -> Any:
        if value is None or not isinstance(value, str):
            return value

        if value.startswith("postgresql+psycopg://") or value.startswith(
            "postgresql+asyncpg://"
        ):
            return value

        normalized = value
        if normalized.startswith("postgres://"):
            normalized = "postgresql://" + normalized[len("postgres://") :]

        return normalized

    @field_validator("bet_retry_backoff_seconds", mode="before")
    @classmethod
    def _parse_retry_backoff(cls, value: Any) -> list[float]:
        if value in (None, "", []):
            return [0.05, 0.1, 0.2]
        if isinstance(value, str):
            tokens = [token.strip() for token in value.split(",") if token.strip()]
            if not tokens:
                raise ValueError("BET_RETRY_BACKOFF_SECONDS must contain at least one value")
            value = tokens
        if isinstance(value, (list, tuple)):
            backoff: list[float] = []
            for item in value:
                try:
                    delay = float(item)
                except (TypeError, ValueError) as exc:
                    raise ValueError("BET_RETRY_BACKOFF_SECONDS entries must be numeric") from exc
                if delay < 0:
                    raise ValueError("BET_RETRY_BACKOFF_SECONDS entries must not be negative")
                backoff.append(delay)
            if not backoff:
                raise ValueError("BET_RETRY_BACKOFF_SECONDS must contain at least one value")
            return backoff
        raise ValueError(
            "BET_RETRY_BACKOFF_SECONDS must be provided as a comma-separated string or list of numbers"
        )

    @property
    def resolved_database_url(self) -> str:
        environment = self.environment.lower()
        if environment == "production":
            if not self.production_database_url:
                raise ValueError(
                    "POOLBET_PRODUCTION_DATABASE_URL must be set when ENVIRONMENT=production"
                )
            return _ensure_sqlalchemy_postgres_scheme(str(self.production_database_url))
        return _ensure_sqlalchemy_postgres_scheme(str(self.database_url))

    @property
    def bet_retry_backoff_schedule(self) -> tuple[float, ...]:
        sequence = tuple(float(value) for value in self.bet_retry_backoff_seconds)
        if not sequence:
            return (0.0,)
        return sequence


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
