"""
Engine, session factory and declarative ``Base`` for the booking store.

Postgres gets a pooled engine; sqlite (local runs and tests) gets a
single-threaded-safe one without pool sizing.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
from typing import Any, Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import UnboundExecutionError
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker

from probook.core.config import settings

logger = logging.getLogger(__name__)


def engine_options(url: str) -> dict[str, Any]:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": settings.database_pool_size,
        "max_overflow": settings.database_max_overflow,
        "pool_pre_ping": True,
        "pool_recycle": 300,
    }


engine: Engine = create_engine(settings.database_url, **engine_options(settings.database_url))

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Unit of work for code running outside a request (workers, scripts)."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        logger.debug("Rolling back session after error")
        session.rollback()
        raise
    finally:
        session.close()


def get_dialect_name(session: Session, default: str = "sqlite") -> str:
    """Dialect of the session's bind; ``default`` when the session is unbound."""
    try:
        bind = session.get_bind()
    except UnboundExecutionError:
        return default
    return getattr(getattr(bind, "dialect", None), "name", None) or default
