"""API routes for subscription status and plan transitions."""

import logging

from fastapi import APIRouter, Depends, status

from padhlo.application.billing.dtos import PlanStatus, TransitionOutcome
from padhlo.application.billing.use_cases import SubscriptionUseCase
from padhlo.core import container
from padhlo.infrastructure.billing.routers.errors import unwrap_or_raise
from padhlo.infrastructure.billing.schemas import (
    ExpireTrialRequest,
    SubscribeRequest,
    SubscriptionStatus,
    SubscriptionStatusResponse,
    TransitionResponse,
)
from padhlo.infrastructure.common.di import inject_use_case

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users/{user_id}/subscription", tags=["subscription"])

_use_case = inject_use_case(container.subscription_use_case)


def _status_schema(user_id: str, use_case: SubscriptionUseCase) -> SubscriptionStatus:
    plan: PlanStatus = unwrap_or_raise(use_case.get_status(user_id))
    return SubscriptionStatus(
        user_id=plan.user_id,
        tier=plan.tier,
        active=plan.active,
        started_at=plan.started_at,
        expires_at=plan.expires_at,
        has_used_trial=plan.has_used_trial,
    )


def _transition_response(
    user_id: str, outcome: TransitionOutcome, message: str, use_case: SubscriptionUseCase
) -> TransitionResponse:
    return TransitionResponse(
        success=True,
        message=message if outcome.changed else "Nothing to change",
        changed=outcome.changed,
        data=_status_schema(user_id, use_case),
    )


@router.get("/status", response_model=SubscriptionStatusResponse)
def get_subscription_status(
    user_id: str,
    use_case: SubscriptionUseCase = Depends(_use_case),
) -> SubscriptionStatusResponse:
    """
    Get the user's current plan.

    Args:
        user_id: ID of the user
        use_case: SubscriptionUseCase injected via dependency container

    Returns:
        Stored tier with derived activity and period bounds
    """
    return SubscriptionStatusResponse(success=True, data=_status_schema(user_id, use_case))


@router.post("", response_model=SubscriptionStatusResponse, status_code=status.HTTP_201_CREATED)
def provision_subscription(
    user_id: str,
    use_case: SubscriptionUseCase = Depends(_use_case),
) -> SubscriptionStatusResponse:
    """Create the free plan record for a newly registered user."""
    unwrap_or_raise(use_case.provision(user_id))
    logger.info("Provisioned entitlement for user %s", user_id)
    return SubscriptionStatusResponse(success=True, data=_status_schema(user_id, use_case))


@router.post("/trial", response_model=TransitionResponse)
def start_trial(
    user_id: str,
    use_case: SubscriptionUseCase = Depends(_use_case),
) -> TransitionResponse:
    """Start the free trial."""
    outcome = unwrap_or_raise(use_case.start_trial(user_id))
    return _transition_response(user_id, outcome, "Trial started successfully", use_case)


@router.post("/subscribe", response_model=TransitionResponse)
def subscribe(
    user_id: str,
    request: SubscribeRequest,
    use_case: SubscriptionUseCase = Depends(_use_case),
) -> TransitionResponse:
    """
    Subscribe to Lite or Pro, replacing whatever plan the user had.

    Args:
        user_id: ID of the user
        request: Request containing the tier to subscribe to
        use_case: SubscriptionUseCase injected via dependency container

    Returns:
        Transition result with the new plan

    Raises:
        HTTPException: 400 for a tier that cannot be subscribed to, 404 for unknown users
    """
    outcome = unwrap_or_raise(use_case.subscribe(user_id, request.tier))
    return _transition_response(
        user_id, outcome, f"{request.tier.value.capitalize()} plan activated", use_case
    )


@router.post("/renew", response_model=TransitionResponse)
def renew_subscription(
    user_id: str,
    use_case: SubscriptionUseCase = Depends(_use_case),
) -> TransitionResponse:
    """Extend the current Lite or Pro plan by one period."""
    outcome = unwrap_or_raise(use_case.renew(user_id))
    return _transition_response(user_id, outcome, "Subscription renewed successfully", use_case)


@router.post("/cancel", response_model=TransitionResponse)
def cancel_subscription(
    user_id: str,
    use_case: SubscriptionUseCase = Depends(_use_case),
) -> TransitionResponse:
    """Drop back to the free plan."""
    outcome = unwrap_or_raise(use_case.cancel(user_id))
    return _transition_response(user_id, outcome, "Subscription cancelled successfully", use_case)


@router.post("/trial/expire", response_model=TransitionResponse)
def expire_trial(
    user_id: str,
    request: ExpireTrialRequest,
    use_case: SubscriptionUseCase = Depends(_use_case),
) -> TransitionResponse:
    """Close out an ended trial, converting to Pro or dropping to free."""
    outcome = unwrap_or_raise(use_case.expire_trial(user_id, request.auto_pay_to_pro))
    message = (
        f"Trial expired. Switched to {outcome.record.tier.value} plan"
        if outcome.changed
        else "Trial not expired or user not on trial"
    )
    return TransitionResponse(
        success=True,
        message=message,
        changed=outcome.changed,
        data=_status_schema(user_id, use_case),
    )
