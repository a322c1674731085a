"""
Database session management with connection pooling.

Provides the process-wide engine, the untenanted session factory used for
global lookups (users, sessions, organizations, memberships), and the
FastAPI dependency that hands one such session to each request.

Tenant data is never read through these sessions; use
greenfleet.database.tenant_scope.get_session_for_tenant instead.

Usage:
    from greenfleet.database.session import get_db_session

    @router.get("/organizations")
    async def list_organizations(db: Session = Depends(get_db_session)):
        ...
"""

import logging
from typing import Generator, Optional

from fastapi import HTTPException, status
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from greenfleet.config.settings import get_database_url

logger = logging.getLogger(__name__)

# Module-level engine singleton
_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


def get_engine() -> Engine:
    """
    Get or create the process engine.

    Tenant-scoped sessions bind to the same engine, so swapping it must go
    through set_engine().
    """
    global _engine
    if _engine is None:
        try:
            database_url = get_database_url()
            _engine = create_engine(
                database_url,
                poolclass=QueuePool,
                pool_size=5,
                max_overflow=10,
                pool_pre_ping=True,
                pool_recycle=1800,
            )
            logger.info("Database engine created with connection pooling")
        except ValueError as e:
            logger.error("Failed to create database engine", extra={"error": str(e)})
            raise
    return _engine


def set_engine(engine: Optional[Engine]) -> None:
    """
    Replace the process engine (tests, scripts with their own engine).

    Resets the global session factory and every cached tenant session
    factory so nothing stays bound to the previous engine.
    """
    global _engine, _SessionLocal
    _engine = engine
    _SessionLocal = None

    from greenfleet.database.tenant_scope import reset_tenant_session_factories
    reset_tenant_session_factories()


def get_session_factory() -> sessionmaker:
    """Get or create the session factory singleton."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=get_engine(),
        )
    return _SessionLocal


def get_db_session() -> Generator[Session, None, None]:
    """
    FastAPI dependency for untenanted database sessions.

    Creates a new session for each request and ensures proper cleanup.
    Raises HTTP 503 if database is not configured.
    """
    try:
        SessionLocal = get_session_factory()
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not configured",
        )

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
