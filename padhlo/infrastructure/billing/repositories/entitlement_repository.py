"""Repository for entitlement records."""

from datetime import datetime

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from padhlo.domain.billing.entities.entitlement_record import EntitlementRecord
from padhlo.domain.billing.tier import Tier
from padhlo.domain.common.value_objects import UserId
from padhlo.infrastructure.billing.mappers.entitlement_mapper import EntitlementMapper, as_utc
from padhlo.infrastructure.common.store_errors import translate_store_errors
from padhlo.models import UserEntitlement as UserEntitlementORM

logger = structlog.get_logger(__name__)


class EntitlementRepository:
    """SQL-backed entitlement store.

    ``version`` is the compare-and-swap token: a write only lands if the
    row still carries the version that was read, and bumps it.
    """

    def __init__(self, db: Session) -> None:
        self.db = db
        self.mapper = EntitlementMapper()

    def get(self, user_id: UserId) -> EntitlementRecord | None:
        """
        Read the current record, bypassing the session identity map.

        Args:
            user_id: The user ID

        Returns:
            EntitlementRecord if provisioned, None otherwise
        """
        stmt = (
            select(UserEntitlementORM)
            .where(UserEntitlementORM.user_id == user_id.value)
            .execution_options(populate_existing=True)
        )
        with translate_store_errors(self.db, "get_entitlement"):
            orm_model = self.db.execute(stmt).scalar_one_or_none()
        return self.mapper.to_domain(orm_model) if orm_model else None

    def create(self, user_id: UserId) -> EntitlementRecord:
        """
        Provision the free record for a user.

        Returns:
            The new record, or the existing one if the user was already provisioned
        """
        existing = self.get(user_id)
        if existing is not None:
            return existing

        orm_model = UserEntitlementORM(
            user_id=user_id.value,
            tier=Tier.FREE.value,
            has_used_trial=False,
            version=1,
        )
        with translate_store_errors(self.db, "create_entitlement"):
            self.db.add(orm_model)
            try:
                self.db.commit()
            except IntegrityError:
                # Another request provisioned the same user first
                self.db.rollback()
                existing = self.get(user_id)
                if existing is None:
                    raise
                return existing
            self.db.refresh(orm_model)

        logger.info("entitlement_provisioned", user_id=user_id.value)
        return self.mapper.to_domain(orm_model)

    def compare_and_set(
        self, user_id: UserId, expected: EntitlementRecord, new: EntitlementRecord
    ) -> bool:
        """
        Write ``new`` if the stored version still equals ``expected.version``.

        Returns:
            True if the row was updated, False on a lost race
        """
        stmt = (
            update(UserEntitlementORM)
            .where(
                UserEntitlementORM.user_id == user_id.value,
                UserEntitlementORM.version == expected.version,
            )
            .values(**self.mapper.to_values(new), version=UserEntitlementORM.version + 1)
            .execution_options(synchronize_session=False)
        )
        with translate_store_errors(self.db, "compare_and_set_entitlement"):
            result = self.db.execute(stmt)
            self.db.commit()
        return result.rowcount == 1

    def find_expired_trials(self, now: datetime, limit: int) -> list[UserId]:
        """
        List users still stored on trial whose period ended at or before ``now``.

        Args:
            now: Reference instant
            limit: Maximum number of users to return, oldest expiry first

        Returns:
            List of user IDs
        """
        stmt = (
            select(UserEntitlementORM.user_id)
            .where(
                UserEntitlementORM.tier == Tier.TRIAL.value,
                UserEntitlementORM.period_end <= as_utc(now),
            )
            .order_by(UserEntitlementORM.period_end)
            .limit(limit)
        )
        with translate_store_errors(self.db, "find_expired_trials"):
            user_ids = self.db.execute(stmt).scalars().all()
        return [UserId(user_id) for user_id in user_ids]
