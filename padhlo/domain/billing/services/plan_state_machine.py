"""
Plan state machine.

Computes the record that follows a transition from the current one. It never
touches storage: PlanTransitionManager reads the current record, asks this
class for the next one and writes it back with compare-and-swap.

States and transitions::

    Free  --start_trial-->  Trial
    any   --subscribe(t)--> Lite | Pro
    Lite | Pro --renew-->   same tier, period extended
    any   --cancel-->       Free
    Trial (ended) --expire_trial--> Pro (auto-pay) | Free

A ``None`` result means the transition has nothing to do, which makes retried
requests and overlapping background sweeps harmless.
"""

from dataclasses import replace
from datetime import datetime, timedelta

from padhlo.domain.billing.entities.entitlement_record import EntitlementRecord
from padhlo.domain.billing.exceptions import InvalidTransitionError, TrialAlreadyUsedError
from padhlo.domain.billing.tier import PAID_TIERS, Tier
from padhlo.domain.common.exceptions import ValidationError


class PlanStateMachine:
    """Pure transition rules between Free, Trial, Lite and Pro."""

    def __init__(
        self,
        trial_period: timedelta,
        subscription_period: timedelta,
        *,
        single_trial_per_user: bool = True,
    ) -> None:
        if trial_period <= timedelta(0) or subscription_period <= timedelta(0):
            raise ValidationError("Plan periods must be positive")
        self.trial_period = trial_period
        self.subscription_period = subscription_period
        self.single_trial_per_user = single_trial_per_user

    def start_trial(self, record: EntitlementRecord, now: datetime) -> EntitlementRecord | None:
        """
        Start the free trial.

        A trial that has ended but not yet been swept counts as the free plan.

        Raises:
            TrialAlreadyUsedError: If the user already had a trial
            InvalidTransitionError: If the user is on Lite or Pro
        """
        if record.tier == Tier.TRIAL and record.period_end is not None and now < record.period_end:
            # Same request retried after the trial began.
            return None
        if record.tier not in (Tier.FREE, Tier.TRIAL):
            raise InvalidTransitionError("start_trial", record.tier)
        if self.single_trial_per_user and record.has_used_trial:
            raise TrialAlreadyUsedError()
        trial = record.with_period(Tier.TRIAL, now, now + self.trial_period)
        return replace(trial, has_used_trial=True)

    def subscribe(
        self, record: EntitlementRecord, tier: Tier, now: datetime
    ) -> EntitlementRecord:
        """
        Overwrite the plan with a fresh period of ``tier``. Valid from any state.

        Raises:
            ValidationError: If ``tier`` is not a paid tier
        """
        if tier not in PAID_TIERS:
            raise ValidationError(
                "Only lite or pro can be subscribed to", field="tier", value=tier.value
            )
        return record.with_period(tier, now, now + self.subscription_period)

    def renew(self, record: EntitlementRecord, now: datetime) -> EntitlementRecord:
        """
        Extend a paid plan by one period.

        Renewing early stacks onto the current end; renewing a lapsed plan
        restarts from ``now``.

        Raises:
            InvalidTransitionError: If the user is not on lite or pro
        """
        if record.tier not in PAID_TIERS or record.period_start is None:
            raise InvalidTransitionError(
                "renew",
                record.tier,
                "Cannot renew. Please subscribe to Pro or Lite plan first.",
            )
        base = max(record.period_end or now, now)
        return record.with_period(record.tier, record.period_start, base + self.subscription_period)

    def cancel(self, record: EntitlementRecord) -> EntitlementRecord | None:
        """Drop back to free from any state."""
        if record.is_free():
            return None
        return record.reset_to_free()

    def expire_trial(
        self, record: EntitlementRecord, now: datetime, *, auto_pay_to_pro: bool
    ) -> EntitlementRecord | None:
        """
        Close out a trial whose period has ended.

        Returns ``None`` when the user is not on a trial or the trial is
        still running, so a second sweep over the same user is a no-op.
        """
        if record.tier != Tier.TRIAL or record.period_end is None or now < record.period_end:
            return None
        if auto_pay_to_pro:
            return self.subscribe(record, Tier.PRO, now)
        return record.reset_to_free()
