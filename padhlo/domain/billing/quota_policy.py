"""Daily usage quotas for rate-limited actions on the free plan."""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from enum import StrEnum

from padhlo.domain.common.exceptions import ValidationError


class ActionType(StrEnum):
    PRACTICE = "practice"
    EXAM = "exam"


@dataclass(frozen=True, eq=False)
class QuotaPolicy:
    """
    Per-action daily caps and the calendar used to bucket them.

    Attributes:
        limits: Maximum consumptions per day key, for every action type
        timezone: Reference timezone whose midnight starts a new day key
    """

    limits: Mapping[ActionType, int]
    timezone: tzinfo

    def __post_init__(self) -> None:
        missing = [action.value for action in ActionType if action not in self.limits]
        if missing:
            raise ValidationError("Missing daily limit", field="limits", value=missing)
        for action, limit in self.limits.items():
            if limit < 0:
                raise ValidationError("Daily limit cannot be negative", field=action.value)

    def limit_for(self, action_type: ActionType) -> int:
        return self.limits[action_type]

    def day_key(self, now: datetime) -> date:
        """Bucket ``now`` into a calendar day in the reference timezone."""
        if now.tzinfo is None:
            raise ValidationError("Timestamp must be timezone-aware", field="now")
        return now.astimezone(self.timezone).date()
