import logging
import os
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()

DB_FILE = "portfolio.db"


def resolve_database_url(database_url: Optional[str] = None) -> str:
    """Use the configured URL, otherwise fall back to a SQLite file."""
    if database_url:
        return database_url

    # Containers usually only have /tmp writable
    if os.path.isdir("/tmp") and os.access("/tmp", os.W_OK):
        return f"sqlite:////tmp/{DB_FILE}"
    return f"sqlite:///./{DB_FILE}"


def build_engine(database_url: str) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}

    # Lazy connection: nothing is opened until first use
    return create_engine(
        database_url,
        connect_args=connect_args,
        pool_pre_ping=True,  # Verify connections before using
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine) -> bool:
    """Create tables; the app still starts if the database is unreachable."""
    # Register the models on Base.metadata
    import models  # noqa: F401

    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as exc:
        logger.warning("Database initialization error: %s", exc)
        return False
    logger.info("Database tables created/verified")
    return True


def check_connection(engine: Engine) -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError:
        return False
    return True


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
