from datetime import timedelta
from zoneinfo import ZoneInfo

from dependency_injector import containers, providers
from sqlalchemy.orm import Session

from padhlo.application.billing.services import FeatureGate, PlanTransitionManager, QuotaEnforcer
from padhlo.application.billing.use_cases import SubscriptionUseCase
from padhlo.config import Settings, get_settings
from padhlo.domain.billing.quota_policy import ActionType, QuotaPolicy
from padhlo.domain.billing.services import EntitlementResolver, PlanStateMachine
from padhlo.infrastructure.billing.repositories import (
    EntitlementRepository,
    UsageCounterRepository,
)
from padhlo.infrastructure.common.clock import SystemClock


def build_quota_policy(settings: Settings) -> QuotaPolicy:
    return QuotaPolicy(
        limits={
            ActionType.PRACTICE: settings.PRACTICE_SESSIONS_PER_DAY,
            ActionType.EXAM: settings.EXAM_SESSIONS_PER_DAY,
        },
        timezone=ZoneInfo(settings.QUOTA_TIMEZONE),
    )


def build_plan_state_machine(settings: Settings) -> PlanStateMachine:
    return PlanStateMachine(
        trial_period=timedelta(days=settings.TRIAL_PERIOD_DAYS),
        subscription_period=timedelta(days=settings.SUBSCRIPTION_PERIOD_DAYS),
        single_trial_per_user=settings.SINGLE_TRIAL_PER_USER,
    )


class Container(containers.DeclarativeContainer):
    """Dependency injection container."""

    # Declare db as a dependency that will be provided at runtime
    db = providers.Dependency(instance_of=Session)

    settings = providers.Singleton(get_settings)
    clock = providers.Singleton(SystemClock)

    # Repositories
    entitlement_repository = providers.Factory(EntitlementRepository, db=db)
    usage_counter_repository = providers.Factory(UsageCounterRepository, db=db)

    # Domain services (pure domain logic, no db)
    entitlement_resolver = providers.Singleton(EntitlementResolver)
    quota_policy = providers.Singleton(build_quota_policy, settings)
    plan_state_machine = providers.Singleton(build_plan_state_machine, settings)

    # Billing module, application services
    quota_enforcer = providers.Factory(
        QuotaEnforcer,
        entitlement_store=entitlement_repository,
        usage_store=usage_counter_repository,
        resolver=entitlement_resolver,
        policy=quota_policy,
        clock=clock,
    )
    plan_transition_manager = providers.Factory(
        PlanTransitionManager,
        entitlement_store=entitlement_repository,
        state_machine=plan_state_machine,
        clock=clock,
        max_attempts=settings.provided.TRANSITION_MAX_ATTEMPTS,
    )
    feature_gate = providers.Factory(
        FeatureGate,
        entitlement_store=entitlement_repository,
        resolver=entitlement_resolver,
        clock=clock,
    )

    # Billing module, application use cases
    subscription_use_case = providers.Factory(
        SubscriptionUseCase,
        entitlement_store=entitlement_repository,
        resolver=entitlement_resolver,
        transition_manager=plan_transition_manager,
        quota_enforcer=quota_enforcer,
        feature_gate=feature_gate,
        clock=clock,
        trial_auto_pay_to_pro=settings.provided.TRIAL_AUTO_PAY_TO_PRO,
        trial_expiry_batch_size=settings.provided.TRIAL_EXPIRY_BATCH_SIZE,
    )


container = Container()
