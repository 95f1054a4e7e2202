"""Applies plan transitions to the entitlement store with compare-and-swap."""

from collections.abc import Callable
from dataclasses import replace
from datetime import datetime

import structlog

from padhlo.application.billing.dtos import TransitionOutcome
from padhlo.application.billing.protocols import ClockProtocol, EntitlementStoreProtocol
from padhlo.domain.billing.entities.entitlement_record import EntitlementRecord
from padhlo.domain.billing.exceptions import EntitlementNotFoundError
from padhlo.domain.billing.services.plan_state_machine import PlanStateMachine
from padhlo.domain.billing.tier import Tier
from padhlo.domain.common.value_objects import UserId
from padhlo.exceptions import TransitionConflictError

logger = structlog.get_logger(__name__)

# Computes the next record from the current one, or None for a no-op.
Step = Callable[[EntitlementRecord, datetime], EntitlementRecord | None]


class PlanTransitionManager:
    """Sole writer of entitlement records.

    Every transition is a read-compute-write cycle: read the record, ask the
    state machine for the next one, then write it only if nobody changed the
    record in between. A lost race re-reads and recomputes, up to
    ``max_attempts`` times, after which TransitionConflictError is raised.
    Recomputing on every attempt is what keeps ``renew`` from extending the
    period twice when two requests race.
    """

    def __init__(
        self,
        entitlement_store: EntitlementStoreProtocol,
        state_machine: PlanStateMachine,
        clock: ClockProtocol,
        max_attempts: int = 3,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.entitlement_store = entitlement_store
        self.state_machine = state_machine
        self.clock = clock
        self.max_attempts = max_attempts

    def start_trial(self, user_id: UserId) -> TransitionOutcome:
        return self._apply(user_id, "start_trial", self.state_machine.start_trial)

    def subscribe(self, user_id: UserId, tier: Tier) -> TransitionOutcome:
        return self._apply(
            user_id,
            "subscribe",
            lambda record, now: self.state_machine.subscribe(record, tier, now),
        )

    def renew(self, user_id: UserId) -> TransitionOutcome:
        return self._apply(user_id, "renew", self.state_machine.renew)

    def cancel(self, user_id: UserId) -> TransitionOutcome:
        return self._apply(
            user_id, "cancel", lambda record, _now: self.state_machine.cancel(record)
        )

    def expire_trial(self, user_id: UserId, *, auto_pay_to_pro: bool) -> TransitionOutcome:
        return self._apply(
            user_id,
            "expire_trial",
            lambda record, now: self.state_machine.expire_trial(
                record, now, auto_pay_to_pro=auto_pay_to_pro
            ),
        )

    def _apply(self, user_id: UserId, transition: str, step: Step) -> TransitionOutcome:
        """
        Run ``step`` under compare-and-swap.

        Raises:
            EntitlementNotFoundError: If the user has no entitlement record
            InvalidTransitionError: If the state machine rejects the transition
            TransitionConflictError: If every attempt lost the race
            StoreUnavailableError: On transient store failure
        """
        for attempt in range(1, self.max_attempts + 1):
            current = self.entitlement_store.get(user_id)
            if current is None:
                raise EntitlementNotFoundError(user_id.value)

            new = step(current, self.clock.now())
            if new is None:
                logger.info(
                    "plan_transition_noop",
                    user_id=user_id.value,
                    transition=transition,
                    tier=current.tier.value,
                )
                return TransitionOutcome(transition=transition, record=current, changed=False)

            if self.entitlement_store.compare_and_set(user_id, current, new):
                logger.info(
                    "plan_transition_applied",
                    user_id=user_id.value,
                    transition=transition,
                    from_tier=current.tier.value,
                    to_tier=new.tier.value,
                    period_end=new.period_end.isoformat() if new.period_end else None,
                    attempt=attempt,
                )
                # The store bumps the version by one on every successful swap
                written = replace(new, version=current.version + 1)
                return TransitionOutcome(transition=transition, record=written, changed=True)

            logger.warning(
                "plan_transition_conflict",
                user_id=user_id.value,
                transition=transition,
                attempt=attempt,
            )

        logger.error(
            "plan_transition_conflict_exhausted",
            user_id=user_id.value,
            transition=transition,
            attempts=self.max_attempts,
        )
        raise TransitionConflictError(user_id.value, transition, self.max_attempts)
