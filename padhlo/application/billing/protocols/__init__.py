from .clock import ClockProtocol
from .entitlement_store import EntitlementStoreProtocol
from .usage_store import UsageStoreProtocol

__all__ = ["ClockProtocol", "EntitlementStoreProtocol", "UsageStoreProtocol"]
