"""Tests for FeatureGate."""

from datetime import datetime, timedelta

import pytest

from padhlo.application.billing.dtos import DenialReason
from padhlo.domain.billing.entities.entitlement_record import EntitlementRecord
from padhlo.domain.billing.exceptions import EntitlementNotFoundError
from padhlo.domain.billing.features import Feature
from padhlo.domain.billing.tier import Tier
from padhlo.domain.common.value_objects import UserId

USER = UserId("student-1")


def _on(tier: Tier, start: datetime, end: datetime) -> EntitlementRecord:
    return EntitlementRecord(user_id=USER, tier=tier, period_start=start, period_end=end)


class TestFeatureGate:
    def test_free_user_denied_community(self, feature_gate, entitlement_store) -> None:
        entitlement_store.create(USER)

        decision = feature_gate.check(USER, Feature.COMMUNITY)

        assert decision.allowed is False
        assert decision.reason == DenialReason.FEATURE_NOT_IN_PLAN
        assert decision.unlocked_by == frozenset({Tier.TRIAL, Tier.PRO})

    def test_lite_denied_community(self, feature_gate, entitlement_store, clock) -> None:
        now = clock.now()
        entitlement_store.put(_on(Tier.LITE, now, now + timedelta(days=30)))

        decision = feature_gate.check(USER, Feature.COMMUNITY)

        assert decision.allowed is False
        assert decision.current_tier == Tier.LITE
        assert decision.active is True
        assert decision.reason == DenialReason.FEATURE_NOT_IN_PLAN

    def test_lite_allowed_notes(self, feature_gate, entitlement_store, clock) -> None:
        now = clock.now()
        entitlement_store.put(_on(Tier.LITE, now, now + timedelta(days=30)))
        assert feature_gate.check(USER, Feature.NOTES).allowed is True

    @pytest.mark.parametrize("tier", [Tier.TRIAL, Tier.PRO])
    def test_trial_and_pro_allowed_community(
        self, tier, feature_gate, entitlement_store, clock
    ) -> None:
        now = clock.now()
        entitlement_store.put(_on(tier, now, now + timedelta(days=3)))

        decision = feature_gate.check(USER, Feature.COMMUNITY)

        assert decision.allowed is True
        assert decision.reason is None

    def test_expired_pro_denied(self, feature_gate, entitlement_store, clock) -> None:
        now = clock.now()
        entitlement_store.put(_on(Tier.PRO, now - timedelta(days=30), now))

        decision = feature_gate.check(USER, Feature.COMMUNITY)

        assert decision.allowed is False
        assert decision.current_tier == Tier.PRO
        assert decision.reason == DenialReason.PLAN_EXPIRED

    def test_unknown_user_raises(self, feature_gate) -> None:
        with pytest.raises(EntitlementNotFoundError):
            feature_gate.check(UserId("ghost"), Feature.COMMUNITY)
