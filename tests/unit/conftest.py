"""Shared fixtures for the kapprover unit tests."""
from __future__ import annotations

from typing import Callable

import pytest

from kapprover.certificates.models import CertificateSigningRequest
from kapprover.store.client import ConflictError, CsrStore, StoreError
from kapprover.store.memory import InMemoryCsrStore

RequestFactory = Callable[..., CertificateSigningRequest]


class ScriptedStore(CsrStore):
    """Wraps an in-memory store and injects failures into ``update_approval``.

    Parameters
    ----------
    inner:
        The store holding the objects.
    conflicts:
        Number of leading ``update_approval`` calls that raise ConflictError.
    on_conflict:
        Called before each injected conflict, e.g. to simulate a third party.
    error:
        When set, every ``update_approval`` call raises it instead.
    """

    def __init__(
        self,
        inner: InMemoryCsrStore,
        conflicts: int = 0,
        on_conflict: Callable[[CertificateSigningRequest], None] | None = None,
        error: StoreError | None = None,
    ) -> None:
        self.inner = inner
        self.conflicts_left = conflicts
        self.on_conflict = on_conflict
        self.error = error
        self.get_calls = 0
        self.update_calls = 0
        self.successful_updates = 0

    def get(self, name: str) -> CertificateSigningRequest:
        self.get_calls += 1
        return self.inner.get(name)

    def update_approval(self, request: CertificateSigningRequest) -> CertificateSigningRequest:
        self.update_calls += 1
        if self.error is not None:
            raise self.error
        if self.conflicts_left > 0:
            self.conflicts_left -= 1
            if self.on_conflict is not None:
                self.on_conflict(request)
            raise ConflictError(request.name)
        stored = self.inner.update_approval(request)
        self.successful_updates += 1
        return stored

    def list(self) -> list[CertificateSigningRequest]:
        return self.inner.list()


@pytest.fixture()
def store() -> InMemoryCsrStore:
    return InMemoryCsrStore()


@pytest.fixture()
def make_request() -> RequestFactory:
    """Factory for kubelet bootstrap requests; keyword arguments override fields."""

    def factory(**overrides: object) -> CertificateSigningRequest:
        fields: dict[str, object] = {
            "name": "node-csr-1",
            "username": "kubelet-bootstrap",
            "groups": ["system:kubelet-bootstrap", "system:authenticated"],
            "usages": ["digital signature", "key encipherment", "client auth"],
        }
        fields.update(overrides)
        return CertificateSigningRequest(**fields)  # type: ignore[arg-type]

    return factory


@pytest.fixture()
def scripted_store(store: InMemoryCsrStore) -> Callable[..., ScriptedStore]:
    """Factory wrapping the ``store`` fixture in a :class:`ScriptedStore`."""

    def factory(**kwargs: object) -> ScriptedStore:
        return ScriptedStore(store, **kwargs)  # type: ignore[arg-type]

    return factory
