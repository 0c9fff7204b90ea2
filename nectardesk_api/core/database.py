"""
Engine, session factory and declarative base
"""
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base, Session
from sqlalchemy.pool import StaticPool
import logging
from contextlib import contextmanager
from typing import Generator, Optional

from .config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()

# Bound to the engine the first time a session is opened
SessionLocal = sessionmaker(autocommit=False, autoflush=False)

_engine: Optional[Engine] = None


def _build_engine() -> Engine:
    options = {"echo": settings.database_echo}
    if settings.is_sqlite:
        # One shared connection keeps an in-memory database alive between sessions
        options.update(connect_args={"check_same_thread": False}, poolclass=StaticPool)
    else:
        options.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,
        )
    return create_engine(settings.database_url, **options)


def get_db_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = _build_engine()
        logger.info(f"Database engine created ({_engine.dialect.name})")
    return _engine


def _open_session() -> Session:
    SessionLocal.configure(bind=get_db_engine())
    return SessionLocal()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a request-scoped session"""
    session = _open_session()
    try:
        yield session
    finally:
        session.close()


@contextmanager
def get_db_context():
    """Session for background work: commits on success, rolls back on error"""
    session = _open_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db():
    """Create any missing tables (development and tests; production uses migrations)"""
    from .. import models  # noqa: F401  registers every table on Base.metadata

    try:
        Base.metadata.create_all(bind=get_db_engine())
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise
    logger.info(f"Database tables ready: {', '.join(sorted(Base.metadata.tables))}")


def check_connection() -> bool:
    try:
        with get_db_engine().connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False
