"""Custom exception hierarchy for the Padhlo entitlement service."""

from starlette import status


class PadhloError(Exception):
    """Base exception for all Padhlo application errors."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        """Initialize exception with message and optional status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class ServiceError(PadhloError):
    """Service layer error."""


class StoreUnavailableError(ServiceError):
    """Backing store could not be reached or rejected the operation transiently.

    Safe to retry with backoff.
    """

    def __init__(self, message: str = "Entitlement store is temporarily unavailable") -> None:
        super().__init__(message, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)


class TransitionConflictError(StoreUnavailableError):
    """Concurrent writers kept winning the compare-and-swap race."""

    def __init__(self, user_id: str, transition: str, attempts: int) -> None:
        self.user_id = user_id
        self.transition = transition
        self.attempts = attempts
        super().__init__(
            f"Could not apply {transition} for user {user_id} after {attempts} attempts"
        )
