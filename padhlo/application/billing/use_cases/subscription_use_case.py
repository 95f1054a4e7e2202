"""Use case exposing subscription, quota and feature operations to callers."""

from collections.abc import Callable
from typing import TypeVar

import structlog

from padhlo.application.billing.dtos import (
    ErrorReason,
    FeatureDecision,
    OperationError,
    PlanStatus,
    QuotaDecision,
    RemainingUsage,
    TransitionOutcome,
    TrialSweepSummary,
)
from padhlo.application.billing.protocols import ClockProtocol, EntitlementStoreProtocol
from padhlo.application.billing.services import FeatureGate, PlanTransitionManager, QuotaEnforcer
from padhlo.application.common.result import Failure, Result, Success
from padhlo.domain.billing.entities.entitlement_record import EntitlementRecord
from padhlo.domain.billing.exceptions import (
    EntitlementNotFoundError,
    InvalidTransitionError,
    TrialAlreadyUsedError,
)
from padhlo.domain.billing.features import Feature
from padhlo.domain.billing.quota_policy import ActionType
from padhlo.domain.billing.services.entitlement_resolver import EntitlementResolver
from padhlo.domain.billing.tier import Tier
from padhlo.domain.common.exceptions import ValidationError
from padhlo.domain.common.value_objects import UserId
from padhlo.exceptions import StoreUnavailableError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class SubscriptionUseCase:
    """Entry point for the API layer and background jobs.

    Every method returns a Result. Quota and feature denials are ordinary
    Success values whose decision has ``allowed=False``; Failure is kept for
    unknown users, rejected transitions, bad input and store outages.
    """

    def __init__(
        self,
        entitlement_store: EntitlementStoreProtocol,
        resolver: EntitlementResolver,
        transition_manager: PlanTransitionManager,
        quota_enforcer: QuotaEnforcer,
        feature_gate: FeatureGate,
        clock: ClockProtocol,
        trial_auto_pay_to_pro: bool = False,
        trial_expiry_batch_size: int = 500,
    ) -> None:
        """Initialize use case with its collaborators."""
        self.entitlement_store = entitlement_store
        self.resolver = resolver
        self.transition_manager = transition_manager
        self.quota_enforcer = quota_enforcer
        self.feature_gate = feature_gate
        self.clock = clock
        self.trial_auto_pay_to_pro = trial_auto_pay_to_pro
        self.trial_expiry_batch_size = trial_expiry_batch_size

    def provision(self, user_id: str) -> Result[EntitlementRecord, OperationError]:
        """Create the free record for a new user (idempotent)."""
        return self._run("provision", lambda: self.entitlement_store.create(UserId(user_id)))

    def get_status(self, user_id: str) -> Result[PlanStatus, OperationError]:
        """Stored tier together with whether it is currently in force."""

        def status() -> PlanStatus:
            record = self.entitlement_store.get(UserId(user_id))
            if record is None:
                raise EntitlementNotFoundError(user_id)
            plan = self.resolver.resolve(record, self.clock.now())
            return PlanStatus(
                user_id=user_id,
                tier=plan.tier,
                active=plan.active,
                started_at=record.period_start,
                expires_at=plan.expires_at,
                has_used_trial=record.has_used_trial,
            )

        return self._run("get_status", status)

    def start_trial(self, user_id: str) -> Result[TransitionOutcome, OperationError]:
        return self._run(
            "start_trial", lambda: self.transition_manager.start_trial(UserId(user_id))
        )

    def subscribe(
        self, user_id: str, tier: Tier | str
    ) -> Result[TransitionOutcome, OperationError]:
        return self._run(
            "subscribe",
            lambda: self.transition_manager.subscribe(UserId(user_id), _parse(Tier, tier, "tier")),
        )

    def renew(self, user_id: str) -> Result[TransitionOutcome, OperationError]:
        return self._run("renew", lambda: self.transition_manager.renew(UserId(user_id)))

    def cancel(self, user_id: str) -> Result[TransitionOutcome, OperationError]:
        return self._run("cancel", lambda: self.transition_manager.cancel(UserId(user_id)))

    def expire_trial(
        self, user_id: str, auto_pay_to_pro: bool = False
    ) -> Result[TransitionOutcome, OperationError]:
        return self._run(
            "expire_trial",
            lambda: self.transition_manager.expire_trial(
                UserId(user_id), auto_pay_to_pro=auto_pay_to_pro
            ),
        )

    def consume_quota(
        self, user_id: str, action_type: ActionType | str
    ) -> Result[QuotaDecision, OperationError]:
        return self._run(
            "consume_quota",
            lambda: self.quota_enforcer.consume(
                UserId(user_id), _parse(ActionType, action_type, "action_type")
            ),
        )

    def get_remaining(self, user_id: str) -> Result[RemainingUsage, OperationError]:
        return self._run("get_remaining", lambda: self.quota_enforcer.remaining(UserId(user_id)))

    def check_feature(
        self, user_id: str, feature: Feature | str
    ) -> Result[FeatureDecision, OperationError]:
        return self._run(
            "check_feature",
            lambda: self.feature_gate.check(UserId(user_id), _parse(Feature, feature, "feature")),
        )

    def expire_trials(self) -> Result[TrialSweepSummary, OperationError]:
        """
        Close out every trial that has ended, up to one batch.

        A failure for one user is logged and counted; the sweep carries on
        with the rest. Safe to run from overlapping schedulers.
        """

        def sweep() -> TrialSweepSummary:
            user_ids = self.entitlement_store.find_expired_trials(
                self.clock.now(), self.trial_expiry_batch_size
            )
            expired = failed = 0
            for user_id in user_ids:
                result = self.expire_trial(user_id.value, self.trial_auto_pay_to_pro)
                if result.is_failure:
                    failed += 1
                elif result.unwrap().changed:
                    expired += 1
            summary = TrialSweepSummary(checked=len(user_ids), expired=expired, failed=failed)
            logger.info(
                "trial_sweep_completed",
                checked=summary.checked,
                expired=summary.expired,
                failed=summary.failed,
            )
            return summary

        return self._run("expire_trials", sweep)

    def _run(self, operation: str, fn: Callable[[], T]) -> Result[T, OperationError]:
        try:
            return Success(fn())
        except EntitlementNotFoundError as e:
            return Failure(OperationError(ErrorReason.NOT_FOUND, e.message))
        except TrialAlreadyUsedError as e:
            return Failure(OperationError(ErrorReason.TRIAL_ALREADY_USED, e.message))
        except InvalidTransitionError as e:
            return Failure(OperationError(ErrorReason.INVALID_TRANSITION, e.message))
        except ValidationError as e:
            return Failure(OperationError(ErrorReason.VALIDATION_ERROR, e.message))
        except StoreUnavailableError as e:
            logger.warning("store_unavailable", operation=operation, error=e.message)
            return Failure(
                OperationError(ErrorReason.STORE_UNAVAILABLE, e.message, retryable=True)
            )


E = TypeVar("E", Tier, ActionType, Feature)


def _parse(enum_type: type[E], value: E | str, field: str) -> E:
    try:
        return enum_type(value)
    except ValueError:
        raise ValidationError(f"Unknown {field} '{value}'", field=field, value=value) from None
