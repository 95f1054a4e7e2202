"""
Gated features and the tiers that unlock them.

Tiers are not ordered by feature set: Lite costs more than nothing yet
leaves out the social and AI features that Trial and Pro include, so each
feature lists its tiers explicitly instead of naming a minimum tier.
"""

from enum import StrEnum
from types import MappingProxyType
from typing import Final

from padhlo.domain.billing.tier import Tier


class Feature(StrEnum):
    COMMUNITY = "community"
    LEADERBOARD = "leaderboard"
    AI_INSIGHTS = "ai_insights"
    NOTES = "notes"


_TRIAL_AND_PRO = frozenset({Tier.TRIAL, Tier.PRO})

FEATURE_ALLOWED_TIERS: Final[MappingProxyType[Feature, frozenset[Tier]]] = MappingProxyType(
    {
        Feature.COMMUNITY: _TRIAL_AND_PRO,
        Feature.LEADERBOARD: _TRIAL_AND_PRO,
        Feature.AI_INSIGHTS: _TRIAL_AND_PRO,
        Feature.NOTES: frozenset({Tier.TRIAL, Tier.LITE, Tier.PRO}),
    }
)


def tiers_unlocking(feature: Feature) -> frozenset[Tier]:
    """Return the set of tiers whose active plans may use ``feature``."""
    return FEATURE_ALLOWED_TIERS[feature]
