"""Mapper for UserEntitlement ORM to and from EntitlementRecord conversion."""

from datetime import UTC, datetime

from padhlo.domain.billing.entities.entitlement_record import EntitlementRecord
from padhlo.domain.billing.tier import Tier
from padhlo.domain.common.value_objects import UserId
from padhlo.models import UserEntitlement as UserEntitlementORM


def as_utc(value: datetime | None) -> datetime | None:
    """Normalize to UTC; naive values (SQLite round-trips) are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class EntitlementMapper:
    """Mapper for UserEntitlement ORM to and from EntitlementRecord conversion."""

    def to_domain(self, orm_model: UserEntitlementORM) -> EntitlementRecord:
        """Convert ORM model to domain record."""
        return EntitlementRecord(
            user_id=UserId(orm_model.user_id),
            tier=Tier(orm_model.tier),
            period_start=as_utc(orm_model.period_start),
            period_end=as_utc(orm_model.period_end),
            has_used_trial=orm_model.has_used_trial,
            version=orm_model.version,
        )

    def to_values(self, record: EntitlementRecord) -> dict[str, object]:
        """Column values written by a compare-and-swap update (version excluded)."""
        return {
            "tier": record.tier.value,
            "period_start": as_utc(record.period_start),
            "period_end": as_utc(record.period_end),
            "has_used_trial": record.has_used_trial,
        }
