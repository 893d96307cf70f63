from contextlib import contextmanager
import logging

from sqlalchemy import event
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

from .config import settings

logger = logging.getLogger(__name__)


def build_engine(db_url: str, echo: bool = False):
    """Create an engine with options matching the database scheme.

    SQLite has no row locks, so every transaction is opened with
    BEGIN IMMEDIATE: writers are serialised at the database level, which is
    what the slot capacity check and the version-checked updates rely on.
    """
    engine_kwargs = {}

    if db_url.startswith("sqlite"):
        # SQLite specific connect args
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        if db_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise each checkout sees an empty database
            engine_kwargs["poolclass"] = StaticPool
    else:
        # Better resiliency for managed Postgres
        engine_kwargs.update({
            "pool_pre_ping": True,
            "pool_recycle": 300,
            "pool_size": 5,
            "max_overflow": 10,
        })

    engine = create_engine(db_url, echo=echo, **engine_kwargs)

    if db_url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def _disable_pysqlite_begin(dbapi_connection, connection_record):
            # let SQLAlchemy emit BEGIN itself
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)


def create_db_and_tables(bind=None):
    # Import models so they register on SQLModel.metadata
    from .db import models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)
    logger.info("Database tables ensured")


def get_session():
    with Session(engine) as session:
        yield session


@contextmanager
def transaction(session: Session):
    """Commit on success, roll back everything on any error."""
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
