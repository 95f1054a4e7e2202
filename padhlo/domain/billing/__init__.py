"""Billing domain: subscription tiers, entitlement records and usage quotas."""

from .entities.entitlement_record import EntitlementRecord
from .exceptions import (
    EntitlementNotFoundError,
    InvalidTransitionError,
    TrialAlreadyUsedError,
)
from .features import FEATURE_ALLOWED_TIERS, Feature
from .quota_policy import ActionType, QuotaPolicy
from .tier import PAID_TIERS, Tier

__all__ = [
    "FEATURE_ALLOWED_TIERS",
    "PAID_TIERS",
    "ActionType",
    "EntitlementNotFoundError",
    "EntitlementRecord",
    "Feature",
    "InvalidTransitionError",
    "QuotaPolicy",
    "Tier",
    "TrialAlreadyUsedError",
]
