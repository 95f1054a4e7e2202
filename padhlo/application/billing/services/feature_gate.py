"""Binary feature gating by plan."""

import structlog

from padhlo.application.billing.dtos import DenialReason, FeatureDecision
from padhlo.application.billing.protocols import ClockProtocol, EntitlementStoreProtocol
from padhlo.domain.billing.exceptions import EntitlementNotFoundError
from padhlo.domain.billing.features import Feature, tiers_unlocking
from padhlo.domain.billing.services.entitlement_resolver import EntitlementResolver
from padhlo.domain.common.value_objects import UserId

logger = structlog.get_logger(__name__)


class FeatureGate:
    """Decides whether a user's current plan unlocks a feature.

    A tier satisfies a feature only if it is in the feature's allow-set and
    its period is still running. A lapsed tier unlocks nothing.
    """

    def __init__(
        self,
        entitlement_store: EntitlementStoreProtocol,
        resolver: EntitlementResolver,
        clock: ClockProtocol,
    ) -> None:
        self.entitlement_store = entitlement_store
        self.resolver = resolver
        self.clock = clock

    def check(self, user_id: UserId, feature: Feature) -> FeatureDecision:
        """
        Check ``feature`` for the user.

        Raises:
            EntitlementNotFoundError: If the user has no entitlement record
        """
        record = self.entitlement_store.get(user_id)
        if record is None:
            raise EntitlementNotFoundError(user_id.value)

        plan = self.resolver.resolve(record, self.clock.now())
        unlocked_by = tiers_unlocking(feature)

        reason: DenialReason | None = None
        if plan.expired:
            reason = DenialReason.PLAN_EXPIRED
        elif not plan.active or plan.tier not in unlocked_by:
            reason = DenialReason.FEATURE_NOT_IN_PLAN

        if reason is not None:
            logger.info(
                "feature_denied",
                user_id=user_id.value,
                feature=feature.value,
                tier=plan.tier.value,
                reason=reason.value,
            )

        return FeatureDecision(
            allowed=reason is None,
            feature=feature,
            current_tier=plan.tier,
            active=plan.active,
            unlocked_by=unlocked_by,
            reason=reason,
        )
