"""
Entitlement record: a user's stored tier and billing period.
"""

from dataclasses import dataclass, replace
from datetime import datetime

from padhlo.domain.billing.tier import Tier
from padhlo.domain.common.exceptions import ValidationError
from padhlo.domain.common.value_objects import UserId


@dataclass(frozen=True)
class EntitlementRecord:
    """
    Durable per-user subscription state.

    Business Rules:
    - A free record has no period bounds; any other tier has both
    - For non-free tiers the period ends strictly after it starts
    - Period bounds are timezone-aware
    - Activity is never stored, it is derived by EntitlementResolver

    Records are immutable. Transitions build a new record and the store
    swaps it in only if ``version`` still matches what was read.
    """

    user_id: UserId
    tier: Tier
    period_start: datetime | None = None
    period_end: datetime | None = None
    has_used_trial: bool = False
    version: int = 0

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.tier == Tier.FREE:
            if self.period_start is not None or self.period_end is not None:
                raise ValidationError("Free plan cannot carry a billing period", field="tier")
            return
        if self.period_start is None or self.period_end is None:
            raise ValidationError(
                f"{self.tier.value} plan requires a billing period", field="period_end"
            )
        if self.period_start.tzinfo is None or self.period_end.tzinfo is None:
            raise ValidationError("Billing period must be timezone-aware", field="period_start")
        if self.period_end <= self.period_start:
            raise ValidationError(
                "Billing period must end after it starts",
                field="period_end",
                value=self.period_end.isoformat(),
            )

    @classmethod
    def free(
        cls, user_id: UserId, *, has_used_trial: bool = False, version: int = 0
    ) -> "EntitlementRecord":
        """Create the implicit record every new user starts with."""
        return cls(user_id=user_id, tier=Tier.FREE, has_used_trial=has_used_trial, version=version)

    def with_period(self, tier: Tier, start: datetime, end: datetime) -> "EntitlementRecord":
        """Copy with a new tier and billing period."""
        return replace(self, tier=tier, period_start=start, period_end=end)

    def reset_to_free(self) -> "EntitlementRecord":
        """Copy on the free tier, keeping the trial history."""
        return replace(self, tier=Tier.FREE, period_start=None, period_end=None)

    def is_free(self) -> bool:
        return self.tier == Tier.FREE
