"""Subscription tiers."""

from enum import StrEnum
from typing import Final


class Tier(StrEnum):
    FREE = "free"
    TRIAL = "trial"
    LITE = "lite"
    PRO = "pro"


# Tiers a user can subscribe to and renew.
PAID_TIERS: Final[frozenset[Tier]] = frozenset({Tier.LITE, Tier.PRO})
