from .entitlement_record import EntitlementRecord

__all__ = ["EntitlementRecord"]
