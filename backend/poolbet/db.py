from collections.abc import Generator
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .core.config import settings


def _psycopg_supports_cache_flag(version_str: str) -> bool:
    """Return True if psycopg accepts the prepared_statement_cache_size option."""

    parts: list[int] = []
    for token in version_str.split("."):
        digits = ""
        for char in token:
            if char.isdigit():
                digits += char
            else:
                break
        if not digits:
            break
        parts.append(int(digits))
        if len(parts) >= 3:
            break
    if not parts:
        return False
    return tuple(parts) < (3, 2)


def _ensure_sqlite_path(url: str) -> None:
    if not url.startswith("sqlite"):
        return

    parsed = make_url(url)
    database = parsed.database
    if not database or database == ":memory:":
        return

    path = Path(database)
    path.parent.mkdir(parents=True, exist_ok=True)


def _create_engine(url: str, *, echo: bool = False) -> Engine:
    connect_args: dict[str, object] = {}
    engine_kwargs: dict[str, object] = {
        "echo": echo,
        "future": True,
        "pool_pre_ping": True,
    }

    parsed = make_url(url)
    backend = parsed.get_backend_name()
    driver = parsed.get_driver_name()

    if backend == "sqlite":
        connect_args["check_same_thread"] = False
        _ensure_sqlite_path(url)
    else:
        engine_kwargs["pool_recycle"] = 300

        if backend.startswith("postgresql"):
            connect_args.setdefault("keepalives", 1)
            connect_args.setdefault("keepalives_idle", 120)
            connect_args.setdefault("keepalives_interval", 30)
            connect_args.setdefault("keepalives_count", 5)
            # Transaction-mode poolers reject PREPARE, so keep psycopg from
            # creating server-side prepared statements.
            if driver == "psycopg":
                connect_args.setdefault("prepare_threshold", None)

                try:  # psycopg<3.2 accepted prepared_statement_cache_size
                    import psycopg  # type: ignore[import]
                except ImportError:  # pragma: no cover - psycopg always available in prod
                    pass
                else:
                    if _psycopg_supports_cache_flag(psycopg.__version__):
                        connect_args.setdefault("prepared_statement_cache_size", 0)

    if connect_args:
        engine_kwargs["connect_args"] = connect_args

    return create_engine(url, **engine_kwargs)


def _create_session_factory(engine: Engine) -> sessionmaker[Session]:
    # expire_on_commit keeps market rows fresh between retries; services always
    # re-read pools after a commit or rollback.
    return sessionmaker(
        bind=engine, autoflush=True, autocommit=False, expire_on_commit=True, future=True
    )


def build_db_components(url: str, *, echo: bool = False) -> tuple[Engine, sessionmaker[Session]]:
    engine = _create_engine(url, echo=echo)
    session_factory = _create_session_factory(engine)
    return engine, session_factory


engine, SessionLocal = build_db_components(settings.resolved_database_url, echo=settings.debug)
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def init_db(bind: Engine | None = None) -> None:
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
