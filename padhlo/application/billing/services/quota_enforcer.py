"""Daily quota enforcement for rate-limited actions."""

import structlog

from padhlo.application.billing.dtos import DenialReason, QuotaDecision, RemainingUsage
from padhlo.application.billing.protocols import (
    ClockProtocol,
    EntitlementStoreProtocol,
    UsageStoreProtocol,
)
from padhlo.domain.billing.exceptions import EntitlementNotFoundError
from padhlo.domain.billing.quota_policy import ActionType, QuotaPolicy
from padhlo.domain.billing.services.entitlement_resolver import EntitlementResolver
from padhlo.domain.common.value_objects import UserId

logger = structlog.get_logger(__name__)


class QuotaEnforcer:
    """Checks and consumes daily quota for users without an active plan.

    Active trial, lite and pro users are never counted. Everyone else,
    including users whose paid tier has lapsed, is limited per action type
    and per day key. The cap is enforced by the usage store's conditional
    increment, never by reading the count first.
    """

    def __init__(
        self,
        entitlement_store: EntitlementStoreProtocol,
        usage_store: UsageStoreProtocol,
        resolver: EntitlementResolver,
        policy: QuotaPolicy,
        clock: ClockProtocol,
    ) -> None:
        self.entitlement_store = entitlement_store
        self.usage_store = usage_store
        self.resolver = resolver
        self.policy = policy
        self.clock = clock

    def consume(self, user_id: UserId, action_type: ActionType) -> QuotaDecision:
        """
        Consume one unit of ``action_type`` for the user.

        Returns:
            QuotaDecision; ``allowed`` is False once today's cap is reached

        Raises:
            EntitlementNotFoundError: If the user has no entitlement record
            StoreUnavailableError: On transient store failure
        """
        record = self.entitlement_store.get(user_id)
        if record is None:
            raise EntitlementNotFoundError(user_id.value)

        now = self.clock.now()
        plan = self.resolver.resolve(record, now)
        if plan.active:
            return QuotaDecision(
                allowed=True,
                action_type=action_type,
                tier=plan.tier,
                remaining=None,
                limit=None,
            )

        limit = self.policy.limit_for(action_type)
        day_key = self.policy.day_key(now)
        count = (
            self.usage_store.increment_if_below(user_id, action_type, day_key, limit)
            if limit > 0
            else None
        )

        if count is None:
            logger.info(
                "quota_exceeded",
                user_id=user_id.value,
                action_type=action_type.value,
                day_key=day_key.isoformat(),
                limit=limit,
            )
            return QuotaDecision(
                allowed=False,
                action_type=action_type,
                tier=plan.tier,
                remaining=0,
                limit=limit,
                day_key=day_key,
                reason=DenialReason.QUOTA_EXCEEDED,
            )

        logger.debug(
            "quota_consumed",
            user_id=user_id.value,
            action_type=action_type.value,
            day_key=day_key.isoformat(),
            count=count,
        )
        return QuotaDecision(
            allowed=True,
            action_type=action_type,
            tier=plan.tier,
            remaining=max(0, limit - count),
            limit=limit,
            day_key=day_key,
        )

    def remaining(self, user_id: UserId) -> RemainingUsage:
        """Report today's allowance per action without consuming anything."""
        record = self.entitlement_store.get(user_id)
        if record is None:
            raise EntitlementNotFoundError(user_id.value)

        now = self.clock.now()
        plan = self.resolver.resolve(record, now)
        day_key = self.policy.day_key(now)
        if plan.active:
            return RemainingUsage(
                tier=plan.tier,
                day_key=day_key,
                remaining=dict.fromkeys(ActionType),
            )

        remaining: dict[ActionType, int | None] = {}
        for action_type in ActionType:
            used = self.usage_store.get_count(user_id, action_type, day_key)
            remaining[action_type] = max(0, self.policy.limit_for(action_type) - used)
        return RemainingUsage(tier=plan.tier, day_key=day_key, remaining=remaining)
