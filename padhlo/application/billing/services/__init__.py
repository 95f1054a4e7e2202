from .feature_gate import FeatureGate
from .plan_transition_manager import PlanTransitionManager
from .quota_enforcer import QuotaEnforcer

__all__ = ["FeatureGate", "PlanTransitionManager", "QuotaEnforcer"]
