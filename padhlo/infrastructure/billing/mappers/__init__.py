from .entitlement_mapper import EntitlementMapper, as_utc

__all__ = ["EntitlementMapper", "as_utc"]
