"""Persistence boundary for certificate signing requests.

The decision core only ever talks to the backing store through
:class:`CsrStore`.  Implementations must signal a stale write with
:class:`ConflictError` so that callers can branch on the error type instead
of matching error text.
"""
from __future__ import annotations

from abc import ABC, abstractmethod

from kapprover.certificates.models import CertificateSigningRequest


class StoreError(Exception):
    """Base class for failures reported by a :class:`CsrStore`."""


class ConflictError(StoreError):
    """Raised when an update targets an out-of-date version of an object.

    Attributes
    ----------
    name:
        Identity of the object that was modified concurrently.
    """

    def __init__(self, name: str, message: str | None = None) -> None:
        self.name = name
        super().__init__(
            message
            or f"Operation cannot be fulfilled on certificate signing request '{name}': "
            "the object has been modified; please apply your changes to the latest version."
        )


class NotFoundError(StoreError, KeyError):
    """Raised when no object with the requested identity exists."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"Certificate signing request '{self.name}' not found."


class CsrStore(ABC):
    """Abstract store client used by approvers, inspectors and the evaluator."""

    @abstractmethod
    def get(self, name: str) -> CertificateSigningRequest:
        """Fetch the current version of a request.

        Raises
        ------
        NotFoundError:
            When the request does not exist.
        """

    @abstractmethod
    def update_approval(self, request: CertificateSigningRequest) -> CertificateSigningRequest:
        """Persist the decision state (conditions) of ``request``.

        Returns
        -------
        CertificateSigningRequest
            The stored object, carrying its new ``resource_version``.

        Raises
        ------
        ConflictError:
            When ``request.resource_version`` is not the current version.
        NotFoundError:
            When the request no longer exists.
        """

    @abstractmethod
    def list(self) -> list[CertificateSigningRequest]:
        """Return every request currently held by the store."""
