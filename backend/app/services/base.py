# backend/app/services/base.py
"""
Base Service Pattern for the resort platform.

Every service gets:
- the request's database session and a per-class logger
- ``transaction()``: commit on success, roll back on any exception
- ``measure_operation``: timing and outcome counters exported to Prometheus

Operation outcomes are ``success``, ``rejected`` when a DomainException
refused the request (no seats left, resort closed, bad window), or
``error`` for ServiceException and anything unexpected.
"""

from contextlib import contextmanager
from functools import wraps
import logging
import time
from typing import Any, Callable, Iterator, Optional, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import DomainException, ServiceException
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

SLOW_OPERATION_SECONDS = 1.0


class BaseService:
    """
    Base class for all service layer components.
    """

    def __init__(self, db: Session):
        """
        Initialize base service.

        Args:
            db: Database session
        """
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Unit of work around repository calls.

        Usage:
            with self.transaction():
                booking = self.repository.create(...)
                if not self.session_repository.reserve_seats(...):
                    raise CapacityConflictException(...)  # rolled back

        Raises:
            ServiceException: When the database itself fails
        """
        try:
            yield self.db
            self.db.commit()
            self.logger.debug("Transaction committed successfully")
        except SQLAlchemyError as e:
            self.logger.error(f"Transaction failed: {str(e)}")
            self.db.rollback()
            raise ServiceException(f"Database operation failed: {str(e)}")
        except Exception:
            self.db.rollback()
            raise

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Decorator to measure operation performance.

        Usage:
            @BaseService.measure_operation("create_booking")
            def create_booking(self, data):
                ...

        Args:
            operation_name: Name of the operation for metrics
        """

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self, *args, **kwargs):
                start_time = time.perf_counter()
                outcome = "error"
                error_type: Optional[str] = None
                try:
                    result = func(self, *args, **kwargs)
                    outcome = "success"
                    return result
                except DomainException as e:
                    outcome = "error" if isinstance(e, ServiceException) else "rejected"
                    error_type = e.code
                    raise
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    _finish_measurement(
                        self, operation_name, time.perf_counter() - start_time, outcome, error_type
                    )

            return cast(F, wrapper)

        return decorator

    def log_operation(self, operation: str, **context: Any) -> None:
        """
        Log an operation with context.

        Context keys must not collide with LogRecord attributes
        (``created``, ``name``, ``message`` ...).
        """
        self.logger.info(f"Operation: {operation}", extra={"operation": operation, **context})


def _finish_measurement(
    service: Any,
    operation_name: str,
    elapsed: float,
    outcome: str,
    error_type: Optional[str],
) -> None:
    if elapsed > SLOW_OPERATION_SECONDS:
        service.logger.warning(f"Slow operation detected: {operation_name} took {elapsed:.2f}s")

    try:
        prometheus_metrics.record_service_operation(
            service=service.__class__.__name__,
            operation=operation_name,
            duration=elapsed,
            status=outcome,
            error_type=error_type,
        )
    except Exception:
        # Metrics must never fail the operation
        logger.debug("Failed to record service metrics", exc_info=True)
