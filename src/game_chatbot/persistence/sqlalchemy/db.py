from __future__ import annotations

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .base import Base

_DIALECT_ALIASES = {
    "sqlite": "sqlite",
    "mysql": "mysql",
    "mariadb": "mysql",
    "postgresql": "postgresql",
    "postgres": "postgresql",
}


def normalize_dialect(kind: str | None) -> str | None:
    return _DIALECT_ALIASES.get(str(kind or "sqlite").strip().lower())


def database_url(
    kind: str | None,
    *,
    path: str = "chatbot.db",
    host: str = "localhost",
    port: int | None = None,
    name: str = "chatbot",
    user: str = "",
    password: str = "",
) -> str:
    dialect = normalize_dialect(kind) or "sqlite"
    if dialect == "sqlite":
        return f"sqlite+pysqlite:///{path}"
    auth = user
    if password:
        auth = f"{user}:{password}"
    if auth:
        auth += "@"
    if dialect == "mysql":
        return f"mysql+pymysql://{auth}{host}:{port or 3306}/{name}"
    return f"postgresql+psycopg://{auth}{host}:{port or 5432}/{name}"


def build_engine(url: str) -> Engine:
    if url.startswith("sqlite") and ":memory:" in url:
        engine = create_engine(
            url,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    elif url.startswith("sqlite"):
        engine = create_engine(url, future=True, connect_args={"check_same_thread": False})
    else:
        engine = create_engine(url, future=True, pool_pre_ping=True)

    if url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, _connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA busy_timeout=5000")
            cursor.close()

    return engine


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
        future=True,
    )


def create_schema(engine: Engine) -> None:
    Base.metadata.create_all(engine)
