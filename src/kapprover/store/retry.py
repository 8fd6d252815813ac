"""Optimistic-concurrency update loop.

:func:`update_with_retry` commits a decision to the store while tolerating
concurrent writers.  The intended change is expressed as a ``mutate``
callable so it can be re-derived against every freshly fetched copy: the
callable re-checks its preconditions and returns ``False`` when they no
longer hold (for example because another actor already decided the request).

Conflicts are retried with bounded exponential backoff.  Any other store
error propagates unchanged.  The caller's object is never mutated.

Example
-------
>>> def approve(request):
...     if request.is_decided:
...         return False
...     request.conditions.append(condition)
...     return True
>>> stored = update_with_retry(store, request, approve, RetryPolicy(max_attempts=3))
"""
from __future__ import annotations

import copy
import logging
import random
import threading
import time
from dataclasses import dataclass
from typing import Callable

from kapprover.certificates.models import CertificateSigningRequest, Condition
from kapprover.store.client import ConflictError, CsrStore

logger = logging.getLogger(__name__)

Mutation = Callable[[CertificateSigningRequest], bool]

_MAX_BACKOFF_EXPONENT = 32


class RetryExhaustedError(Exception):
    """Raised after ``max_attempts`` consecutive conflicting updates.

    Attributes
    ----------
    name:
        Identity of the request that could not be updated.
    attempts:
        Number of update attempts made.
    """

    def __init__(self, name: str, attempts: int) -> None:
        self.name = name
        self.attempts = attempts
        super().__init__(
            f"Gave up updating certificate signing request '{name}' "
            f"after {attempts} conflicting attempts."
        )


class RetryCancelledError(Exception):
    """Raised when the cancellation event is set while waiting to retry."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Update of certificate signing request '{name}' was cancelled.")


@dataclass(frozen=True)
class RetryPolicy:
    """Bounds and pacing of the conflict retry loop.

    Attributes
    ----------
    max_attempts:
        Total number of update attempts before giving up.
    base_backoff_seconds:
        Delay before the first retry; doubled for each further retry.
    max_backoff_seconds:
        Upper bound for a single delay.
    jitter:
        Scale each delay by a random factor between 0.8 and 1.2.
    """

    max_attempts: int = 5
    base_backoff_seconds: float = 0.1
    max_backoff_seconds: float = 5.0
    jitter: bool = True

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        if self.base_backoff_seconds < 0 or self.max_backoff_seconds < 0:
            raise ValueError("Backoff durations must not be negative.")

    def delay(self, attempt: int) -> float:
        """Return the wait before retrying after the given (1-based) attempt."""
        exponent = min(attempt - 1, _MAX_BACKOFF_EXPONENT)
        delay = min(self.max_backoff_seconds, self.base_backoff_seconds * (2**exponent))
        if self.jitter:
            delay *= 0.8 + random.random() * 0.4
        return delay


DEFAULT_RETRY_POLICY = RetryPolicy()


def update_with_retry(
    store: CsrStore,
    request: CertificateSigningRequest,
    mutate: Mutation,
    policy: RetryPolicy | None = None,
    cancel_event: threading.Event | None = None,
) -> CertificateSigningRequest | None:
    """Apply ``mutate`` to a copy of ``request`` and persist it.

    Parameters
    ----------
    store:
        The store client.
    request:
        The last known version of the request.  Left untouched.
    mutate:
        Applies the intended change in place.  Returns ``False`` to abstain.
    policy:
        Retry bounds.  Defaults to :data:`DEFAULT_RETRY_POLICY`.
    cancel_event:
        When set during a backoff wait, the loop stops.

    Returns
    -------
    CertificateSigningRequest | None
        The stored object, or ``None`` when ``mutate`` abstained.

    Raises
    ------
    RetryExhaustedError:
        After ``policy.max_attempts`` conflicting updates.
    RetryCancelledError:
        When ``cancel_event`` is set before a retry.
    StoreError:
        Any non-conflict failure of ``store``, unchanged.
    """
    policy = policy or DEFAULT_RETRY_POLICY
    base = request

    for attempt in range(1, policy.max_attempts + 1):
        candidate = copy.deepcopy(base)
        if not mutate(candidate):
            return None

        try:
            return store.update_approval(candidate)
        except ConflictError as exc:
            if attempt >= policy.max_attempts:
                raise RetryExhaustedError(request.name, attempt) from exc
            delay = policy.delay(attempt)
            logger.warning(
                "Conflict updating '%s' (attempt %d/%d); retrying in %.2f s.",
                request.name,
                attempt,
                policy.max_attempts,
                delay,
            )
            if cancel_event is not None:
                if cancel_event.wait(delay):
                    raise RetryCancelledError(request.name) from exc
            elif delay > 0:
                time.sleep(delay)

        base = store.get(request.name)

    # Unreachable: the final attempt either returns or raises.
    raise RetryExhaustedError(request.name, policy.max_attempts)


def append_if_undecided(condition: Condition) -> Mutation:
    """Return a mutation that records ``condition`` on an undecided request."""

    def mutate(request: CertificateSigningRequest) -> bool:
        if request.is_decided:
            return False
        request.conditions.append(condition)
        return True

    return mutate
