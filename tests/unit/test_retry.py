"""Tests for the optimistic-concurrency update loop."""
from __future__ import annotations

import threading
from typing import Callable
from unittest.mock import patch

import pytest

from kapprover.certificates.models import (
    CertificateSigningRequest,
    Condition,
    ConditionType,
)
from kapprover.store.client import NotFoundError, StoreError
from kapprover.store.memory import InMemoryCsrStore
from kapprover.store.retry import (
    RetryCancelledError,
    RetryExhaustedError,
    RetryPolicy,
    append_if_undecided,
    update_with_retry,
)

RequestFactory = Callable[..., CertificateSigningRequest]

APPROVED = Condition(type=ConditionType.APPROVED, reason="Test", message="approved")
DENIED = Condition(type=ConditionType.DENIED, reason="Other", message="denied elsewhere")
NO_WAIT = RetryPolicy(max_attempts=5, base_backoff_seconds=0.0, jitter=False)


# ---------------------------------------------------------------------------
# RetryPolicy
# ---------------------------------------------------------------------------


class TestRetryPolicy:
    def test_defaults(self) -> None:
        policy = RetryPolicy()
        assert policy.max_attempts == 5
        assert policy.jitter is True

    def test_delay_doubles(self) -> None:
        policy = RetryPolicy(base_backoff_seconds=0.5, max_backoff_seconds=100, jitter=False)
        assert [policy.delay(n) for n in (1, 2, 3)] == [0.5, 1.0, 2.0]

    def test_delay_is_capped(self) -> None:
        policy = RetryPolicy(base_backoff_seconds=1.0, max_backoff_seconds=3.0, jitter=False)
        assert policy.delay(10) == 3.0

    def test_delay_for_very_late_attempt_stays_capped(self) -> None:
        policy = RetryPolicy(max_attempts=5000, max_backoff_seconds=3.0, jitter=False)
        assert policy.delay(5000) == 3.0

    def test_jitter_stays_within_bounds(self) -> None:
        policy = RetryPolicy(base_backoff_seconds=1.0, max_backoff_seconds=10.0, jitter=True)
        for _ in range(50):
            assert 0.8 <= policy.delay(1) <= 1.2

    def test_zero_attempts_rejected(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)

    def test_negative_backoff_rejected(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(base_backoff_seconds=-1)


# ---------------------------------------------------------------------------
# update_with_retry
# ---------------------------------------------------------------------------


class TestUpdateWithRetry:
    def test_success_on_first_attempt(
        self, store: InMemoryCsrStore, scripted_store: Callable, make_request: RequestFactory
    ) -> None:
        request = store.add(make_request())
        scripted = scripted_store()
        stored = update_with_retry(scripted, request, append_if_undecided(APPROVED), NO_WAIT)
        assert stored is not None
        assert stored.conditions == [APPROVED]
        assert scripted.get_calls == 0
        assert scripted.successful_updates == 1

    def test_caller_object_not_mutated(
        self, store: InMemoryCsrStore, make_request: RequestFactory
    ) -> None:
        request = store.add(make_request())
        update_with_retry(store, request, append_if_undecided(APPROVED), NO_WAIT)
        assert request.conditions == []

    def test_one_conflict_refetches_once(
        self, store: InMemoryCsrStore, scripted_store: Callable, make_request: RequestFactory
    ) -> None:
        request = store.add(make_request())
        scripted = scripted_store(conflicts=1)
        stored = update_with_retry(scripted, request, append_if_undecided(APPROVED), NO_WAIT)
        assert stored is not None
        assert scripted.get_calls == 1
        assert scripted.update_calls == 2
        assert scripted.successful_updates == 1
        assert store.get(request.name).conditions == [APPROVED]

    def test_precondition_rechecked_after_conflict(
        self, store: InMemoryCsrStore, scripted_store: Callable, make_request: RequestFactory
    ) -> None:
        request = store.add(make_request())

        def third_party_denies(candidate: CertificateSigningRequest) -> None:
            current = store.get(candidate.name)
            current.conditions.append(DENIED)
            store.update_approval(current)

        scripted = scripted_store(conflicts=1, on_conflict=third_party_denies)
        stored = update_with_retry(scripted, request, append_if_undecided(APPROVED), NO_WAIT)
        assert stored is None
        assert store.get(request.name).conditions == [DENIED]
        assert scripted.successful_updates == 0

    def test_real_version_conflict_is_retried(
        self, store: InMemoryCsrStore, make_request: RequestFactory
    ) -> None:
        request = store.add(make_request())
        # Another writer bumps the version without deciding.
        store.update_approval(store.get(request.name))
        stored = update_with_retry(store, request, append_if_undecided(APPROVED), NO_WAIT)
        assert stored is not None
        assert stored.conditions == [APPROVED]

    def test_exhaustion_after_max_attempts(
        self, store: InMemoryCsrStore, scripted_store: Callable, make_request: RequestFactory
    ) -> None:
        request = store.add(make_request())
        scripted = scripted_store(conflicts=100)
        policy = RetryPolicy(max_attempts=3, base_backoff_seconds=0.0, jitter=False)
        with pytest.raises(RetryExhaustedError) as exc_info:
            update_with_retry(scripted, request, append_if_undecided(APPROVED), policy)
        assert exc_info.value.attempts == 3
        assert scripted.update_calls == 3
        assert scripted.get_calls == 2
        assert store.get(request.name).conditions == []

    def test_non_conflict_error_propagates_without_retry(
        self, store: InMemoryCsrStore, scripted_store: Callable, make_request: RequestFactory
    ) -> None:
        request = store.add(make_request())
        error = StoreError("connection refused")
        scripted = scripted_store(error=error)
        with pytest.raises(StoreError) as exc_info:
            update_with_retry(scripted, request, append_if_undecided(APPROVED), NO_WAIT)
        assert exc_info.value is error
        assert scripted.update_calls == 1
        assert scripted.get_calls == 0

    def test_refetch_error_propagates(
        self, store: InMemoryCsrStore, scripted_store: Callable, make_request: RequestFactory
    ) -> None:
        request = store.add(make_request())
        scripted = scripted_store(conflicts=1)
        with patch.object(scripted, "get", side_effect=NotFoundError(request.name)):
            with pytest.raises(NotFoundError):
                update_with_retry(scripted, request, append_if_undecided(APPROVED), NO_WAIT)

    def test_abstaining_mutation_writes_nothing(
        self, store: InMemoryCsrStore, scripted_store: Callable, make_request: RequestFactory
    ) -> None:
        request = store.add(make_request(conditions=[DENIED]))
        scripted = scripted_store()
        assert update_with_retry(scripted, request, append_if_undecided(APPROVED), NO_WAIT) is None
        assert scripted.update_calls == 0

    def test_cancel_event_aborts_retry(
        self, store: InMemoryCsrStore, scripted_store: Callable, make_request: RequestFactory
    ) -> None:
        request = store.add(make_request())
        scripted = scripted_store(conflicts=100)
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(RetryCancelledError):
            update_with_retry(
                scripted, request, append_if_undecided(APPROVED), NO_WAIT, cancel_event=cancel
            )
        assert scripted.update_calls == 1
        assert scripted.get_calls == 0

    def test_backoff_sleeps_between_attempts(
        self, store: InMemoryCsrStore, scripted_store: Callable, make_request: RequestFactory
    ) -> None:
        request = store.add(make_request())
        scripted = scripted_store(conflicts=2)
        policy = RetryPolicy(max_attempts=5, base_backoff_seconds=0.25, jitter=False)
        with patch("kapprover.store.retry.time.sleep") as sleep:
            update_with_retry(scripted, request, append_if_undecided(APPROVED), policy)
        assert [c.args[0] for c in sleep.call_args_list] == [0.25, 0.5]
