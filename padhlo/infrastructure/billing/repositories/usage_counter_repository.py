"""Repository for daily usage counters."""

from datetime import date

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from padhlo.domain.billing.quota_policy import ActionType
from padhlo.domain.common.value_objects import UserId
from padhlo.exceptions import ServiceError
from padhlo.infrastructure.common.store_errors import translate_store_errors
from padhlo.models import UsageCounter as UsageCounterORM

_UPSERT_INSERTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


class UsageCounterRepository:
    """SQL-backed usage store.

    The capped increment is one ``INSERT ... ON CONFLICT DO UPDATE ... WHERE
    count < cap RETURNING count`` statement. The database evaluates the cap
    while holding the row lock, so concurrent callers cannot overshoot it,
    and a refused increment leaves the counter untouched.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def increment_if_below(
        self, user_id: UserId, action_type: ActionType, day_key: date, cap: int
    ) -> int | None:
        """
        Add one to today's counter unless it already reached ``cap``.

        Returns:
            The new count, or None if the cap was already reached
        """
        if cap <= 0:
            return None

        insert = self._dialect_insert()
        stmt = (
            insert(UsageCounterORM)
            .values(
                user_id=user_id.value,
                action_type=action_type.value,
                day_key=day_key,
                count=1,
            )
            .on_conflict_do_update(
                index_elements=["user_id", "action_type", "day_key"],
                set_={"count": UsageCounterORM.count + 1},
                where=UsageCounterORM.count < cap,
            )
            .returning(UsageCounterORM.count)
        )
        with translate_store_errors(self.db, "increment_usage"):
            new_count = self.db.execute(stmt).scalar_one_or_none()
            self.db.commit()
        return new_count

    def get_count(self, user_id: UserId, action_type: ActionType, day_key: date) -> int:
        """Current count for the day key (0 if nothing consumed yet)."""
        stmt = select(UsageCounterORM.count).where(
            UsageCounterORM.user_id == user_id.value,
            UsageCounterORM.action_type == action_type.value,
            UsageCounterORM.day_key == day_key,
        )
        with translate_store_errors(self.db, "get_usage_count"):
            return self.db.execute(stmt).scalar() or 0

    def _dialect_insert(self):  # noqa: ANN202
        dialect = self.db.get_bind().dialect.name
        try:
            return _UPSERT_INSERTS[dialect]
        except KeyError:
            msg = f"Usage counters need an upsert-capable database, got {dialect}"
            raise ServiceError(msg) from None
