import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.core.config import settings

logger = logging.getLogger(__name__)

# -----------------------
# Database URL
# -----------------------
DATABASE_URL = settings.sqlalchemy_url


def configure_engine(target: Engine) -> Engine:
    """Attach per-connection setup for the dialect in use."""

    if target.dialect.name == "sqlite":

        @event.listens_for(target, "connect")
        def enable_foreign_keys(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    elif target.dialect.name == "postgresql":

        @event.listens_for(target, "connect")
        def set_timezone(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute(f"SET timezone='{settings.timezone}'")
            cursor.close()

    return target


# -----------------------
# SQLAlchemy engine
# -----------------------
if DATABASE_URL.startswith("sqlite"):
    engine = create_engine(
        DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
    )
else:
    engine = create_engine(
        DATABASE_URL,
        echo=False,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,
        connect_args={"connect_timeout": 5},
    )
configure_engine(engine)

# -----------------------
# Session and Base
# -----------------------
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def check_connection() -> None:
    """Fail fast at startup when the database is unreachable."""
    if engine.url.password:
        safe_db_url = DATABASE_URL.replace(engine.url.password, "****")
    else:
        safe_db_url = DATABASE_URL
    logger.info(f"Connecting to database: {safe_db_url}")
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database connection successful ✅")
    except Exception as e:
        logger.error(f"Failed to connect to database ❌: {str(e)}")
        raise


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """
    Unit of work around a session.

    Everything written inside the block is committed together on exit, or
    rolled back together if the block raises.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


# -----------------------
# Dependency for FastAPI
# -----------------------
def get_db():
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error(f"Database error occurred: {str(e)}")
        db.rollback()
        raise
    finally:
        db.close()
