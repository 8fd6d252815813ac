"""Approver capability."""
from __future__ import annotations

import threading
from abc import abstractmethod

from kapprover.certificates.models import CertificateSigningRequest
from kapprover.plugins.base import Plugin
from kapprover.store.client import CsrStore
from kapprover.store.retry import RetryPolicy


class Approver(Plugin):
    """A rule that may approve a request, or abstain.

    Approvers never deny.  An approver that decides to approve persists the
    decision itself, through :func:`~kapprover.store.retry.update_with_retry`.
    """

    @abstractmethod
    def approve(
        self,
        store: CsrStore,
        request: CertificateSigningRequest,
        *,
        retry_policy: RetryPolicy | None = None,
        cancel_event: threading.Event | None = None,
    ) -> CertificateSigningRequest | None:
        """Approve ``request`` if this rule applies.

        Returns
        -------
        CertificateSigningRequest | None
            The persisted request when it was approved, ``None`` when the
            approver abstained.
        """
