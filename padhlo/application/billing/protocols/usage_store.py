"""Protocol for per-user, per-action, per-day usage counters."""

from datetime import date
from typing import Protocol

from padhlo.domain.billing.quota_policy import ActionType
from padhlo.domain.common.value_objects import UserId


class UsageStoreProtocol(Protocol):
    def increment_if_below(
        self, user_id: UserId, action_type: ActionType, day_key: date, cap: int
    ) -> int | None:
        """
        Atomically add one to the counter unless it already reached ``cap``.

        The check and the write must be a single atomic step so that
        concurrent callers can never push the counter past ``cap``.

        Returns:
            The new count, or None if the counter was already at ``cap``
        """
        ...

    def get_count(self, user_id: UserId, action_type: ActionType, day_key: date) -> int:
        """Current count for the day key (0 if never consumed)."""
        ...
