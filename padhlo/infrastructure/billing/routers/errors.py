"""Translation of use case failures into HTTP errors."""

from typing import NoReturn, TypeVar

from fastapi import HTTPException, status

from padhlo.application.billing.dtos import ErrorReason, OperationError
from padhlo.application.common.result import Result
from padhlo.infrastructure.billing.schemas import ErrorResponse

T = TypeVar("T")

_STATUS_BY_REASON: dict[ErrorReason, int] = {
    ErrorReason.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorReason.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorReason.TRIAL_ALREADY_USED: status.HTTP_409_CONFLICT,
    ErrorReason.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorReason.STORE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def raise_for_error(error: OperationError) -> NoReturn:
    headers = {"Retry-After": "1"} if error.retryable else None
    raise HTTPException(
        status_code=_STATUS_BY_REASON[error.reason],
        detail=ErrorResponse(
            reason=error.reason.value, message=error.message, retryable=error.retryable
        ).model_dump(),
        headers=headers,
    )


def unwrap_or_raise(result: Result[T, OperationError]) -> T:
    """Return the success value or raise the matching HTTPException."""
    if result.is_failure:
        raise_for_error(result.unwrap_error())
    return result.unwrap()
