"""Protocol for the durable per-user entitlement store."""

from datetime import datetime
from typing import Protocol

from padhlo.domain.billing.entities.entitlement_record import EntitlementRecord
from padhlo.domain.common.value_objects import UserId


class EntitlementStoreProtocol(Protocol):
    """Protocol for entitlement record storage.

    Implementations must make ``compare_and_set`` atomic across processes:
    there is no shared in-process memory between service instances.
    """

    def get(self, user_id: UserId) -> EntitlementRecord | None:
        """
        Read the current record.

        Returns:
            The record, or None if the user was never provisioned

        Raises:
            StoreUnavailableError: On transient store failure
        """
        ...

    def create(self, user_id: UserId) -> EntitlementRecord:
        """
        Provision the free record for a new user.

        Returns:
            The created record, or the existing one if already provisioned
        """
        ...

    def compare_and_set(
        self, user_id: UserId, expected: EntitlementRecord, new: EntitlementRecord
    ) -> bool:
        """
        Replace ``expected`` with ``new`` only if the stored record is unchanged.

        On success the stored version becomes ``expected.version + 1``.

        Returns:
            True on success, False if another writer got there first
        """
        ...

    def find_expired_trials(self, now: datetime, limit: int) -> list[UserId]:
        """
        List users whose stored tier is trial and whose period ended at or before ``now``.
        """
        ...
