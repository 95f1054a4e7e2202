"""Pytest configuration and fixtures."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

import threading  # noqa: E402
from collections.abc import Callable, Generator  # noqa: E402
from dataclasses import replace  # noqa: E402
from datetime import UTC, date, datetime, timedelta  # noqa: E402
from typing import Any  # noqa: E402
from zoneinfo import ZoneInfo  # noqa: E402

import pytest  # noqa: E402
from dependency_injector import providers  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from padhlo import models  # noqa: E402, F401
from padhlo.application.billing.services import (  # noqa: E402
    FeatureGate,
    PlanTransitionManager,
    QuotaEnforcer,
)
from padhlo.application.billing.use_cases import SubscriptionUseCase  # noqa: E402
from padhlo.core import container  # noqa: E402
from padhlo.database import Base, get_db  # noqa: E402
from padhlo.domain.billing.entities.entitlement_record import EntitlementRecord  # noqa: E402
from padhlo.domain.billing.quota_policy import ActionType, QuotaPolicy  # noqa: E402
from padhlo.domain.billing.services import (  # noqa: E402
    EntitlementResolver,
    PlanStateMachine,
)
from padhlo.domain.billing.tier import Tier  # noqa: E402
from padhlo.domain.common.value_objects import UserId  # noqa: E402
from padhlo.exceptions import StoreUnavailableError  # noqa: E402
from padhlo.main import app  # noqa: E402

IST = ZoneInfo("Asia/Kolkata")

# 09:00 on 10 March 2026 in India
START = datetime(2026, 3, 10, 9, 0, tzinfo=IST).astimezone(UTC)

# Test database URL (in-memory SQLite shared across threads)
TEST_DATABASE_URL = "sqlite:///:memory:"

test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self._now = now

    def now(self) -> datetime:
        return self._now

    def set(self, now: datetime) -> None:
        self._now = now

    def advance(self, delta: timedelta) -> None:
        self._now += delta


class InMemoryEntitlementStore:
    """Thread-safe entitlement store with hooks for simulating races and outages."""

    def __init__(self) -> None:
        self._records: dict[str, EntitlementRecord] = {}
        self._lock = threading.Lock()
        self.unavailable = False
        self.conflicts_to_inject = 0
        self.before_cas: Callable[[], None] | None = None
        self.cas_calls = 0

    def put(self, record: EntitlementRecord) -> EntitlementRecord:
        with self._lock:
            stored = replace(record, version=record.version or 1)
            self._records[record.user_id.value] = stored
            return stored

    def get(self, user_id: UserId) -> EntitlementRecord | None:
        self._check_available()
        with self._lock:
            return self._records.get(user_id.value)

    def create(self, user_id: UserId) -> EntitlementRecord:
        self._check_available()
        with self._lock:
            return self._records.setdefault(
                user_id.value, EntitlementRecord.free(user_id, version=1)
            )

    def compare_and_set(
        self, user_id: UserId, expected: EntitlementRecord, new: EntitlementRecord
    ) -> bool:
        self._check_available()
        hook, self.before_cas = self.before_cas, None
        if hook is not None:
            hook()
        with self._lock:
            self.cas_calls += 1
            current = self._records.get(user_id.value)
            if self.conflicts_to_inject > 0 and current is not None:
                # Someone else wrote in between
                self.conflicts_to_inject -= 1
                self._records[user_id.value] = replace(current, version=current.version + 1)
                return False
            if current is None or current.version != expected.version:
                return False
            self._records[user_id.value] = replace(new, version=current.version + 1)
            return True

    def find_expired_trials(self, now: datetime, limit: int) -> list[UserId]:
        self._check_available()
        with self._lock:
            expired = sorted(
                (
                    record
                    for record in self._records.values()
                    if record.tier == Tier.TRIAL
                    and record.period_end is not None
                    and record.period_end <= now
                ),
                key=lambda record: record.period_end or now,
            )
        return [record.user_id for record in expired[:limit]]

    def _check_available(self) -> None:
        if self.unavailable:
            raise StoreUnavailableError()


class InMemoryUsageStore:
    """Thread-safe usage counters with an atomic capped increment."""

    def __init__(self) -> None:
        self._counts: dict[tuple[str, str, date], int] = {}
        self._lock = threading.Lock()
        self.increment_calls = 0

    def increment_if_below(
        self, user_id: UserId, action_type: ActionType, day_key: date, cap: int
    ) -> int | None:
        key = (user_id.value, action_type.value, day_key)
        with self._lock:
            self.increment_calls += 1
            count = self._counts.get(key, 0)
            if count >= cap:
                return None
            self._counts[key] = count + 1
            return count + 1

    def get_count(self, user_id: UserId, action_type: ActionType, day_key: date) -> int:
        with self._lock:
            return self._counts.get((user_id.value, action_type.value, day_key), 0)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(START)


@pytest.fixture
def entitlement_store() -> InMemoryEntitlementStore:
    return InMemoryEntitlementStore()


@pytest.fixture
def usage_store() -> InMemoryUsageStore:
    return InMemoryUsageStore()


@pytest.fixture
def resolver() -> EntitlementResolver:
    return EntitlementResolver()


@pytest.fixture
def quota_policy() -> QuotaPolicy:
    return QuotaPolicy(limits={ActionType.PRACTICE: 3, ActionType.EXAM: 3}, timezone=IST)


@pytest.fixture
def state_machine() -> PlanStateMachine:
    return PlanStateMachine(trial_period=timedelta(days=3), subscription_period=timedelta(days=30))


@pytest.fixture
def quota_enforcer(
    entitlement_store: InMemoryEntitlementStore,
    usage_store: InMemoryUsageStore,
    resolver: EntitlementResolver,
    quota_policy: QuotaPolicy,
    clock: FixedClock,
) -> QuotaEnforcer:
    return QuotaEnforcer(entitlement_store, usage_store, resolver, quota_policy, clock)


@pytest.fixture
def transition_manager(
    entitlement_store: InMemoryEntitlementStore,
    state_machine: PlanStateMachine,
    clock: FixedClock,
) -> PlanTransitionManager:
    return PlanTransitionManager(entitlement_store, state_machine, clock, max_attempts=3)


@pytest.fixture
def feature_gate(
    entitlement_store: InMemoryEntitlementStore,
    resolver: EntitlementResolver,
    clock: FixedClock,
) -> FeatureGate:
    return FeatureGate(entitlement_store, resolver, clock)


@pytest.fixture
def use_case(
    entitlement_store: InMemoryEntitlementStore,
    resolver: EntitlementResolver,
    transition_manager: PlanTransitionManager,
    quota_enforcer: QuotaEnforcer,
    feature_gate: FeatureGate,
    clock: FixedClock,
) -> SubscriptionUseCase:
    return SubscriptionUseCase(
        entitlement_store=entitlement_store,
        resolver=resolver,
        transition_manager=transition_manager,
        quota_enforcer=quota_enforcer,
        feature_gate=feature_gate,
        clock=clock,
    )


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    Base.metadata.create_all(bind=test_engine)

    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(db_session: Session, clock: FixedClock) -> Generator[TestClient, Any, None]:
    """Create a test client with database session and a fixed clock."""

    def override_get_db() -> Generator[Session, None, None]:
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    container.clock.override(providers.Object(clock))

    with TestClient(app) as test_client:
        yield test_client

    container.clock.reset_override()
    app.dependency_overrides.clear()


@pytest.fixture
def concurrent_session_factory(tmp_path) -> Generator[sessionmaker[Session], None, None]:
    """
    Session factory for a database that several threads write to at once.

    Runs against PostgreSQL when PADHLO_TEST_POSTGRES_URL is set, otherwise
    against a SQLite file so every session gets its own connection.
    """
    url = os.environ.get("PADHLO_TEST_POSTGRES_URL")
    if url:
        engine = create_engine(url, pool_size=25, max_overflow=0)
    else:
        engine = create_engine(
            f"sqlite:///{tmp_path / 'padhlo.db'}",
            connect_args={"check_same_thread": False, "timeout": 30},
        )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def threaded_client(
    concurrent_session_factory: sessionmaker[Session], clock: FixedClock
) -> Generator[TestClient, Any, None]:
    """Test client that opens a separate database session for every request."""

    def override_get_db() -> Generator[Session, None, None]:
        db = concurrent_session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    container.clock.override(providers.Object(clock))

    with TestClient(app) as test_client:
        yield test_client

    container.clock.reset_override()
    app.dependency_overrides.clear()
