from .subscription_schemas import (
    ErrorResponse,
    ExpireTrialRequest,
    FeatureCheckResponse,
    QuotaConsumeResponse,
    RemainingUsageResponse,
    SubscribeRequest,
    SubscriptionStatus,
    SubscriptionStatusResponse,
    TransitionResponse,
)

__all__ = [
    "ErrorResponse",
    "ExpireTrialRequest",
    "FeatureCheckResponse",
    "QuotaConsumeResponse",
    "RemainingUsageResponse",
    "SubscribeRequest",
    "SubscriptionStatus",
    "SubscriptionStatusResponse",
    "TransitionResponse",
]
