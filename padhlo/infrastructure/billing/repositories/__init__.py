from .entitlement_repository import EntitlementRepository
from .usage_counter_repository import UsageCounterRepository

__all__ = ["EntitlementRepository", "UsageCounterRepository"]
