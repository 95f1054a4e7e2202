"""Tests for the SQL stores under real concurrent writers, one session per thread."""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta

from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from padhlo.application.billing.services import PlanTransitionManager
from padhlo.domain.billing.quota_policy import ActionType
from padhlo.domain.billing.tier import Tier
from padhlo.domain.common.value_objects import UserId
from padhlo.infrastructure.billing.repositories import (
    EntitlementRepository,
    UsageCounterRepository,
)

USER = UserId("student-1")
DAY = date(2026, 3, 10)
PREFIX = "/api/v1/users"


class TestUsageCounterRaces:
    def test_parallel_increments_stop_at_cap(
        self, concurrent_session_factory: sessionmaker[Session]
    ) -> None:
        def increment(_: int) -> int | None:
            with concurrent_session_factory() as session:
                return UsageCounterRepository(session).increment_if_below(
                    USER, ActionType.PRACTICE, DAY, cap=3
                )

        with ThreadPoolExecutor(max_workers=10) as pool:
            results = list(pool.map(increment, range(20)))

        assert sorted(r for r in results if r is not None) == [1, 2, 3]
        assert results.count(None) == 17
        with concurrent_session_factory() as session:
            assert UsageCounterRepository(session).get_count(USER, ActionType.PRACTICE, DAY) == 3

    def test_parallel_increments_keep_actions_apart(
        self, concurrent_session_factory: sessionmaker[Session]
    ) -> None:
        def increment(i: int) -> int | None:
            action = ActionType.PRACTICE if i % 2 else ActionType.EXAM
            with concurrent_session_factory() as session:
                return UsageCounterRepository(session).increment_if_below(
                    USER, action, DAY, cap=3
                )

        with ThreadPoolExecutor(max_workers=10) as pool:
            results = list(pool.map(increment, range(16)))

        assert sum(r is not None for r in results) == 6
        with concurrent_session_factory() as session:
            repo = UsageCounterRepository(session)
            assert repo.get_count(USER, ActionType.PRACTICE, DAY) == 3
            assert repo.get_count(USER, ActionType.EXAM, DAY) == 3


class TestEntitlementRaces:
    def test_parallel_provisioning_creates_one_record(
        self, concurrent_session_factory: sessionmaker[Session]
    ) -> None:
        def provision(_: int) -> int:
            with concurrent_session_factory() as session:
                return EntitlementRepository(session).create(USER).version

        with ThreadPoolExecutor(max_workers=8) as pool:
            versions = list(pool.map(provision, range(8)))

        assert versions == [1] * 8

    def test_same_version_swap_has_one_winner(
        self, concurrent_session_factory: sessionmaker[Session], clock
    ) -> None:
        with concurrent_session_factory() as session:
            EntitlementRepository(session).create(USER)
        both_read = threading.Barrier(2)

        def swap(tier: Tier) -> bool:
            with concurrent_session_factory() as session:
                repo = EntitlementRepository(session)
                current = repo.get(USER)
                both_read.wait(timeout=10)
                now = clock.now()
                new = current.with_period(tier, now, now + timedelta(days=30))
                return repo.compare_and_set(USER, current, new)

        with ThreadPoolExecutor(max_workers=2) as pool:
            results = list(pool.map(swap, [Tier.LITE, Tier.PRO]))

        assert sorted(results) == [False, True]
        with concurrent_session_factory() as session:
            stored = EntitlementRepository(session).get(USER)
        assert stored.version == 2
        assert stored.tier == (Tier.LITE if results[0] else Tier.PRO)

    def test_racing_renewals_all_apply(
        self, concurrent_session_factory: sessionmaker[Session], state_machine, clock
    ) -> None:
        now = clock.now()
        end = now + timedelta(days=5)
        with concurrent_session_factory() as session:
            repo = EntitlementRepository(session)
            current = repo.create(USER)
            repo.compare_and_set(
                USER, current, current.with_period(Tier.PRO, now - timedelta(days=25), end)
            )
        ready = threading.Barrier(5)

        def renew(_: int) -> bool:
            with concurrent_session_factory() as session:
                manager = PlanTransitionManager(
                    EntitlementRepository(session), state_machine, clock, max_attempts=10
                )
                ready.wait(timeout=10)
                return manager.renew(USER).changed

        with ThreadPoolExecutor(max_workers=5) as pool:
            changed = list(pool.map(renew, range(5)))

        assert changed == [True] * 5
        with concurrent_session_factory() as session:
            stored = EntitlementRepository(session).get(USER)
        assert stored.period_end == end + timedelta(days=150)
        assert stored.version == 7


class TestConcurrentRequests:
    def test_parallel_consume_requests_allow_exactly_three(
        self, threaded_client: TestClient
    ) -> None:
        provisioned = threaded_client.post(f"{PREFIX}/student-1/subscription")
        assert provisioned.status_code == status.HTTP_201_CREATED

        def consume(_: int) -> int:
            return threaded_client.post(
                f"{PREFIX}/student-1/usage/practice/consume"
            ).status_code

        with ThreadPoolExecutor(max_workers=10) as pool:
            codes = list(pool.map(consume, range(20)))

        assert codes.count(status.HTTP_200_OK) == 3
        assert codes.count(status.HTTP_429_TOO_MANY_REQUESTS) == 17

    def test_mixed_parallel_requests_never_fault(self, threaded_client: TestClient) -> None:
        for user_id in ("student-1", "student-2"):
            threaded_client.post(f"{PREFIX}/{user_id}/subscription")

        def call(i: int) -> tuple[str, int]:
            user_id = f"student-{i % 2 + 1}"
            if i % 3 == 0:
                response = threaded_client.get(f"{PREFIX}/{user_id}/subscription/status")
                return "status", response.status_code
            response = threaded_client.post(f"{PREFIX}/{user_id}/usage/exam/consume")
            return "consume", response.status_code

        with ThreadPoolExecutor(max_workers=10) as pool:
            calls = list(pool.map(call, range(30)))

        assert all(code == status.HTTP_200_OK for kind, code in calls if kind == "status")
        consumed = [code for kind, code in calls if kind == "consume"]
        assert consumed.count(status.HTTP_200_OK) == 6
        assert set(consumed) <= {status.HTTP_200_OK, status.HTTP_429_TOO_MANY_REQUESTS}
