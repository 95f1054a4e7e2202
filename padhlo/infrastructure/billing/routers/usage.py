"""API routes for daily quotas and feature gating."""

from fastapi import APIRouter, Depends, Response, status

from padhlo.application.billing.use_cases import SubscriptionUseCase
from padhlo.core import container
from padhlo.infrastructure.billing.routers.errors import unwrap_or_raise
from padhlo.infrastructure.billing.schemas import (
    FeatureCheckResponse,
    QuotaConsumeResponse,
    RemainingUsageResponse,
)
from padhlo.infrastructure.common.di import inject_use_case

router = APIRouter(prefix="/users/{user_id}", tags=["usage"])

_use_case = inject_use_case(container.subscription_use_case)


@router.post("/usage/{action_type}/consume", response_model=QuotaConsumeResponse)
def consume_quota(
    user_id: str,
    action_type: str,
    response: Response,
    use_case: SubscriptionUseCase = Depends(_use_case),
) -> QuotaConsumeResponse:
    """
    Consume one unit of a rate-limited action.

    Active trial, lite and pro plans are never counted. Free users and users
    whose plan has lapsed get a fixed number of sessions per day.

    Args:
        user_id: ID of the user
        action_type: Action being started (practice or exam)
        response: Outgoing response, used to set 429 on denial
        use_case: SubscriptionUseCase injected via dependency container

    Returns:
        The quota decision. A denial is returned with status 429.
    """
    decision = unwrap_or_raise(use_case.consume_quota(user_id, action_type))
    if not decision.allowed:
        response.status_code = status.HTTP_429_TOO_MANY_REQUESTS
    return QuotaConsumeResponse(
        success=decision.allowed,
        allowed=decision.allowed,
        action_type=decision.action_type,
        tier=decision.tier,
        unlimited=decision.unlimited,
        remaining=decision.remaining,
        limit=decision.limit,
        day_key=decision.day_key,
        reason=decision.reason.value if decision.reason else None,
    )


@router.get("/usage/remaining", response_model=RemainingUsageResponse)
def get_remaining_usage(
    user_id: str,
    use_case: SubscriptionUseCase = Depends(_use_case),
) -> RemainingUsageResponse:
    """Report today's remaining sessions per action without consuming any."""
    usage = unwrap_or_raise(use_case.get_remaining(user_id))
    return RemainingUsageResponse(
        success=True,
        tier=usage.tier,
        day_key=usage.day_key,
        remaining=usage.remaining,
    )


@router.get("/features/{feature}", response_model=FeatureCheckResponse)
def check_feature(
    user_id: str,
    feature: str,
    response: Response,
    use_case: SubscriptionUseCase = Depends(_use_case),
) -> FeatureCheckResponse:
    """Check whether the user's current plan unlocks a feature. A denial is returned with 403."""
    decision = unwrap_or_raise(use_case.check_feature(user_id, feature))
    if not decision.allowed:
        response.status_code = status.HTTP_403_FORBIDDEN
    return FeatureCheckResponse(
        success=decision.allowed,
        allowed=decision.allowed,
        feature=decision.feature,
        current_tier=decision.current_tier,
        active=decision.active,
        unlocked_by=sorted(decision.unlocked_by),
        reason=decision.reason.value if decision.reason else None,
    )
