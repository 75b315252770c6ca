"""
Database engine, session management, and base model.

Every model inherits from Base. HTTP reads get a session from
get_db(); the poster gets the session factory from
get_session_factory() because it opens a fresh session for
every transaction attempt.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from ledger_poster.config import get_settings

settings = get_settings()


def build_engine(database_url: str) -> Engine:
    """
    Create an engine whose transactions are serializable.

    PostgreSQL gets SERIALIZABLE isolation, so a read-then-write
    race between two postings fails one of them with a
    serialization error that the poster retries.

    pysqlite defers BEGIN until the first write, which would let
    reads run outside the transaction. The listeners below make
    SQLite open the transaction explicitly, so reads and writes
    share one snapshot and a competing writer gets "database is
    locked" instead of silently interleaving.
    """
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": 30},
        )

        @event.listens_for(engine, "connect")
        def _disable_pysqlite_transactions(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _emit_begin(conn):
            conn.exec_driver_sql("BEGIN")

        return engine

    return create_engine(
        database_url,
        pool_pre_ping=True,
        isolation_level="SERIALIZABLE",
    )


# --- Engine ---
engine = build_engine(settings.DATABASE_URL)

# --- Session Factory ---
# autocommit=False: the poster decides when a posting commits.
# autoflush=False: SQL is only sent on explicit flush or commit.
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    pass


# --- Dependencies for FastAPI ---
def get_db():
    """
    Provide a database session for a single request.

    The try/finally pattern ensures the session is always
    closed, preventing connection leaks.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> sessionmaker:
    """Provide the session factory used by the transactional poster."""
    return SessionLocal
