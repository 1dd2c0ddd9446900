from datetime import datetime, timezone

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool


Base = declarative_base()


def utcnow() -> datetime:
    # Stored naive so SQLite and PostgreSQL compare the same way.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _is_memory_sqlite(database_url: str) -> bool:
    return database_url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in database_url


def build_engine(database_url: str, pool_size: int = 10) -> Engine:
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if _is_memory_sqlite(database_url):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(database_url, future=True, **kwargs)

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    # Requests queue on the pool once every connection is checked out.
    return create_engine(
        database_url,
        future=True,
        pool_size=pool_size,
        max_overflow=0,
        pool_timeout=30,
        pool_pre_ping=True,
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True)


def check_connection(engine: Engine) -> None:
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))


def init_db(engine: Engine) -> None:
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
