"""
Storage - Database.

============================================================
RESPONSIBILITY
============================================================
Manages the database engine and sessions for the town store.

- Builds the engine from DATABASE_URL
- Provides a session factory and transaction scope
- Creates the town_snapshots table on startup

============================================================
DATABASE REQUIREMENTS
============================================================
- Any SQLAlchemy-supported backend (PostgreSQL in production,
  SQLite for local runs and tests)
- SQLAlchemy 2.x ORM

============================================================
"""

import logging
import os
from contextlib import contextmanager
from typing import Generator, Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from storage.models import Base


DEFAULT_DATABASE_URL = "sqlite:///townwatch.db"
REQUIRED_TABLES = ["town_snapshots"]

logger = logging.getLogger("storage.database")


# =============================================================
# CUSTOM EXCEPTIONS
# =============================================================

class DatabaseError(Exception):
    """Raised when the database layer cannot be set up."""
    pass


class DatabaseConnectionError(DatabaseError):
    """Raised when database connection fails."""
    pass


class DatabaseInitializationError(DatabaseError):
    """Raised when database initialization fails."""
    pass


# =============================================================
# DATABASE ENGINE
# =============================================================

def get_database_url() -> str:
    """Get database URL from environment."""
    load_dotenv()
    url = os.getenv("DATABASE_URL")
    if url and url.startswith("postgresql+asyncpg"):
        # Sessions here are synchronous
        url = url.replace("postgresql+asyncpg", "postgresql")

    if not url:
        url = DEFAULT_DATABASE_URL
        logger.warning(f"DATABASE_URL not set, using default: {url}")

    return url


def create_database_engine(
    database_url: Optional[str] = None,
    pool_size: int = 5,
    max_overflow: int = 10,
    pool_recycle: int = 1800,
    echo: bool = False,
) -> Engine:
    """
    Create a SQLAlchemy engine.

    Args:
        database_url: Connection URL (defaults to DATABASE_URL)
        pool_size: Connections kept in the pool (server databases only)
        max_overflow: Extra connections beyond pool_size
        pool_recycle: Recycle connections after N seconds
        echo: Log SQL statements

    Returns:
        SQLAlchemy Engine
    """
    url = database_url or get_database_url()
    logger.info(f"Creating database engine for: {url.split('@')[-1]}")

    if url.startswith("sqlite"):
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection so every session sees the same in-memory db
            return create_engine(
                url,
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        return create_engine(url, echo=echo)

    return create_engine(
        url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_recycle=pool_recycle,
        pool_pre_ping=True,
        echo=echo,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to engine."""
    return sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )


# =============================================================
# SESSION MANAGEMENT
# =============================================================

@contextmanager
def transaction_scope(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """
    Context manager for explicit transaction boundaries.

    Commits only if no exception occurs. Rolls back and re-raises
    on any exception.

    Usage:
        with transaction_scope(factory) as session:
            session.merge(row)
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# =============================================================
# DATABASE INITIALIZATION
# =============================================================

def verify_database_connection(engine: Engine) -> bool:
    """
    Verify database connection is working.

    Raises:
        DatabaseConnectionError: If connection fails
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except OperationalError as e:
        logger.error(f"Database connection failed: {e}")
        raise DatabaseConnectionError(f"Cannot connect to database: {e}") from e

    logger.info("Database connection verified successfully")
    return True


def create_all_tables(engine: Engine) -> None:
    """
    Create all tables defined in ORM models.

    Raises:
        DatabaseInitializationError: If table creation fails
    """
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        logger.error(f"Failed to create database tables: {e}")
        raise DatabaseInitializationError(f"Table creation failed: {e}") from e

    existing = set(inspect(engine).get_table_names())
    for table in REQUIRED_TABLES:
        if table in existing:
            logger.info(f"  [OK] Table verified: {table}")
        else:
            raise DatabaseInitializationError(f"Table missing after create: {table}")


def initialize_database(database_url: Optional[str] = None, echo: bool = False) -> sessionmaker:
    """
    Full database initialization sequence.

    1. Create engine
    2. Verify connection
    3. Create tables if not exist

    Returns:
        Session factory for repositories
    """
    engine = create_database_engine(database_url, echo=echo)
    verify_database_connection(engine)
    create_all_tables(engine)
    return create_session_factory(engine)
