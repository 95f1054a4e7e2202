"""Outcome types returned by the billing application services."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum

from padhlo.domain.billing.entities.entitlement_record import EntitlementRecord
from padhlo.domain.billing.features import Feature
from padhlo.domain.billing.quota_policy import ActionType
from padhlo.domain.billing.tier import Tier


class DenialReason(StrEnum):
    QUOTA_EXCEEDED = "quota_exceeded"
    FEATURE_NOT_IN_PLAN = "feature_not_in_plan"
    PLAN_EXPIRED = "plan_expired"


@dataclass(frozen=True)
class QuotaDecision:
    """Outcome of consuming one unit of a rate-limited action.

    ``remaining`` and ``limit`` are None when the plan is unlimited.
    """

    allowed: bool
    action_type: ActionType
    tier: Tier
    remaining: int | None
    limit: int | None
    day_key: date | None = None
    reason: DenialReason | None = None

    @property
    def unlimited(self) -> bool:
        return self.limit is None


@dataclass(frozen=True)
class RemainingUsage:
    """Today's remaining allowance per action; None means unlimited."""

    tier: Tier
    day_key: date
    remaining: dict[ActionType, int | None]


@dataclass(frozen=True)
class FeatureDecision:
    """Outcome of a feature gate check."""

    allowed: bool
    feature: Feature
    current_tier: Tier
    active: bool
    unlocked_by: frozenset[Tier]
    reason: DenialReason | None = None


@dataclass(frozen=True)
class TransitionOutcome:
    """Record after a transition; ``changed`` is False for no-ops."""

    transition: str
    record: EntitlementRecord
    changed: bool


@dataclass(frozen=True)
class PlanStatus:
    user_id: str
    tier: Tier
    active: bool
    started_at: datetime | None
    expires_at: datetime | None
    has_used_trial: bool


@dataclass(frozen=True)
class TrialSweepSummary:
    checked: int
    expired: int
    failed: int


class ErrorReason(StrEnum):
    NOT_FOUND = "not_found"
    INVALID_TRANSITION = "invalid_transition"
    TRIAL_ALREADY_USED = "trial_already_used"
    VALIDATION_ERROR = "validation_error"
    STORE_UNAVAILABLE = "store_unavailable"


@dataclass(frozen=True)
class OperationError:
    """Machine-readable failure returned instead of raising."""

    reason: ErrorReason
    message: str
    retryable: bool = False
