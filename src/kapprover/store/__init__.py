"""Store client boundary, the in-memory reference store and the conflict retry loop."""
from __future__ import annotations

from kapprover.store.client import ConflictError, CsrStore, NotFoundError, StoreError
from kapprover.store.memory import InMemoryCsrStore
from kapprover.store.retry import (
    DEFAULT_RETRY_POLICY,
    RetryCancelledError,
    RetryExhaustedError,
    RetryPolicy,
    append_if_undecided,
    update_with_retry,
)

__all__ = [
    "DEFAULT_RETRY_POLICY",
    "ConflictError",
    "CsrStore",
    "InMemoryCsrStore",
    "NotFoundError",
    "RetryCancelledError",
    "RetryExhaustedError",
    "RetryPolicy",
    "StoreError",
    "append_if_undecided",
    "update_with_retry",
]
