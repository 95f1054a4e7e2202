import threading
from collections.abc import Callable
from typing import TypeVar

from dependency_injector.providers import Provider
from sqlalchemy.orm import Session

from padhlo.core import container
from padhlo.database import DatabaseSession

T = TypeVar("T")

# container.db is process-global; sync dependencies run in FastAPI's threadpool
_override_lock = threading.Lock()


def build_with_session(provider: Provider[T], db: Session) -> T:
    """Build ``provider`` with every repository bound to ``db``."""
    with _override_lock:
        container.db.override(db)
        try:
            return provider()
        finally:
            container.db.reset_last_overriding()


def inject_use_case(provider: Provider[T]) -> Callable[[DatabaseSession], T]:
    """
    Create a FastAPI dependency for a container provider.

    Overrides container.db with the request-scoped database session.
    """

    def dependency(db: DatabaseSession) -> T:
        return build_with_session(provider, db)

    return dependency
