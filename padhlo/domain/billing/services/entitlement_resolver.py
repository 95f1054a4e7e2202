"""Domain service computing the effective plan of a stored entitlement."""

from dataclasses import dataclass
from datetime import datetime

from padhlo.domain.billing.entities.entitlement_record import EntitlementRecord
from padhlo.domain.billing.tier import Tier


@dataclass(frozen=True)
class EffectivePlan:
    """Stored tier plus whether it is in force at a given instant."""

    tier: Tier
    active: bool
    expires_at: datetime | None

    @property
    def expired(self) -> bool:
        """A non-free tier whose period has ended."""
        return self.tier != Tier.FREE and not self.active


class EntitlementResolver:
    """Resolves whether a stored tier is in force.

    Pure: an expired tier is reported inactive but the record is left alone.
    Only PlanTransitionManager moves a user back to free, so the stored
    tier and the effective plan can disagree until a transition runs.
    """

    def resolve(self, record: EntitlementRecord, now: datetime) -> EffectivePlan:
        if record.tier == Tier.FREE or record.period_end is None:
            return EffectivePlan(tier=record.tier, active=False, expires_at=None)
        return EffectivePlan(
            tier=record.tier,
            active=now < record.period_end,
            expires_at=record.period_end,
        )
