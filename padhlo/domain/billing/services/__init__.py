from .entitlement_resolver import EffectivePlan, EntitlementResolver
from .plan_state_machine import PlanStateMachine

__all__ = ["EffectivePlan", "EntitlementResolver", "PlanStateMachine"]
