"""Translation of transient database failures into StoreUnavailableError."""

from collections.abc import Generator
from contextlib import contextmanager

import structlog
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.orm import Session

from padhlo.exceptions import StoreUnavailableError

logger = structlog.get_logger(__name__)


@contextmanager
def translate_store_errors(db: Session, operation: str) -> Generator[None, None, None]:
    """
    Roll back and raise StoreUnavailableError on connection-level failures.

    Integrity and programming errors are left to propagate unchanged.
    """
    try:
        yield
    except (OperationalError, InterfaceError) as e:
        db.rollback()
        logger.error("store_operation_failed", operation=operation, error=str(e.orig))
        raise StoreUnavailableError() from e
