"""Billing domain exceptions."""

from padhlo.domain.billing.tier import Tier
from padhlo.domain.common.exceptions import BusinessRuleViolationError, EntityNotFoundError


class EntitlementNotFoundError(EntityNotFoundError):
    """Raised when no entitlement record exists for a user."""

    def __init__(self, user_id: str) -> None:
        super().__init__("Entitlement", user_id)
        self.user_id = user_id


class InvalidTransitionError(BusinessRuleViolationError):
    """Raised when a plan transition is not allowed from the current tier."""

    def __init__(self, transition: str, tier: Tier, message: str | None = None) -> None:
        super().__init__(
            f"{transition}_from_{tier.value}",
            message or f"Cannot {transition.replace('_', ' ')} while on the {tier.value} plan",
        )
        self.transition = transition
        self.tier = tier


class TrialAlreadyUsedError(InvalidTransitionError):
    """Raised when a user who already had a trial asks for another one."""

    def __init__(self) -> None:
        super().__init__("start_trial", Tier.FREE, "The free trial has already been used")
