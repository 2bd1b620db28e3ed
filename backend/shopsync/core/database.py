"""
Conexión a base de datos

- SQLAlchemy ORM (engine, SessionLocal, Base) for the ingestion store
- psycopg2 direct connections with retry, used by the health probe

Author: TM3
Updated: 2025-11-04
"""
import time
import logging

import psycopg2
from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import settings

logger = logging.getLogger(__name__)


# ============================================================================
# SQLAlchemy Configuration
# ============================================================================

def _create_engine_args(database_url: str) -> dict:
    """
    Build engine kwargs for the configured backend.
    Pool sizing only applies to PostgreSQL; SQLite does not pool.
    """
    args = {"echo": settings.API_DEBUG}

    if database_url.startswith("postgresql"):
        args.update({
            "pool_pre_ping": True,  # Verificar conexión antes de usar
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
        })

    return args


engine = create_engine(settings.DATABASE_URL, **_create_engine_args(settings.DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

Base = declarative_base()


def init_db(bind=None) -> None:
    """Create every table known to the ORM metadata (no-op for existing tables)"""
    # Models register themselves on Base when imported
    from shopsync import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


# ============================================================================
# Database Connection with Retry Logic
# ============================================================================

def _psycopg2_dsn(database_url: str) -> str:
    """Strip the SQLAlchemy driver suffix so psycopg2 accepts the URL"""
    url = make_url(database_url).set(drivername="postgresql")
    return url.render_as_string(hide_password=False)


def get_db_connection_with_retry(max_retries=3, retry_delay=1.0):
    """
    Get a psycopg2 connection with automatic retry on connection failures

    Retries failed connections up to max_retries times with exponential
    backoff between attempts.

    Args:
        max_retries: Maximum number of connection attempts (default: 3)
        retry_delay: Initial delay between retries in seconds (default: 1.0)

    Returns:
        psycopg2 connection object

    Raises:
        psycopg2.OperationalError: If all retry attempts fail
    """
    database_url = settings.DATABASE_URL
    if not database_url:
        raise RuntimeError("DATABASE_URL not configured")

    dsn = _psycopg2_dsn(database_url)
    last_error = None

    for attempt in range(1, max_retries + 1):
        try:
            logger.debug(f"Database connection attempt {attempt}/{max_retries}")
            conn = psycopg2.connect(dsn)

            cursor = conn.cursor()
            cursor.execute("SELECT 1")
            cursor.close()

            logger.debug(f"Database connection successful on attempt {attempt}")
            return conn

        except psycopg2.OperationalError as e:
            last_error = e
            logger.warning(f"Connection error on attempt {attempt}/{max_retries}: {e}")

            if attempt < max_retries:
                delay = retry_delay * (2 ** (attempt - 1))
                logger.info(f"Retrying in {delay:.2f} seconds...")
                time.sleep(delay)

    logger.error(f"All {max_retries} connection attempts failed")
    raise last_error


def check_database() -> float:
    """
    Run SELECT 1 against the store and return the latency in milliseconds.

    PostgreSQL goes through the psycopg2 retry helper; other backends use
    the SQLAlchemy engine directly.
    """
    start = time.time()

    if engine.dialect.name == "postgresql":
        conn = get_db_connection_with_retry(max_retries=1, retry_delay=0.5)
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT 1")
            cursor.fetchone()
            cursor.close()
        finally:
            conn.close()
    else:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    return round((time.time() - start) * 1000, 2)
