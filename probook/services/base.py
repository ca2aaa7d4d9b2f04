# probook/services/base.py
"""
Service layer base class.

Services own the transaction boundary: repositories flush, services commit.
``measure_operation`` times public operations into Prometheus and flags slow
ones in the log.
"""

from contextlib import contextmanager
from functools import wraps
import logging
import time
from typing import Any, Callable, Iterator, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import ServiceException
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

SLOW_OPERATION_SECONDS = 1.0


class BaseService:
    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Commit on clean exit, roll back on any error.

        Database errors surface as ``ServiceException``; domain errors raised
        inside the block are re-raised unchanged after the rollback.
        """
        try:
            yield self.db
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            self.logger.error("Transaction rolled back after database error: %s", exc)
            raise ServiceException(f"Database operation failed: {exc}") from exc
        except Exception:
            self.db.rollback()
            raise

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """Record duration and outcome of the wrapped method under ``operation_name``."""

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self: "BaseService", *args: Any, **kwargs: Any) -> Any:
                started = time.perf_counter()
                error_type = None
                try:
                    return func(self, *args, **kwargs)
                except Exception as exc:
                    error_type = type(exc).__name__
                    raise
                finally:
                    elapsed = time.perf_counter() - started
                    if elapsed > SLOW_OPERATION_SECONDS:
                        self.logger.warning("Slow operation %s: %.2fs", operation_name, elapsed)
                    prometheus_metrics.record_service_operation(
                        service=type(self).__name__,
                        operation=operation_name,
                        duration=elapsed,
                        status="error" if error_type else "success",
                        error_type=error_type,
                    )

            return cast(F, wrapper)

        return decorator

    def log_operation(self, operation: str, **context: Any) -> None:
        """Structured info line; ``context`` lands in the record's extras."""
        self.logger.info("Operation: %s", operation, extra={"operation": operation, **context})
