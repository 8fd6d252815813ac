"""Automatic approval of kubelet TLS bootstrap requests.

:class:`AlwaysApprover` approves any request submitted by a kubelet during
its TLS bootstrapping, without any validation besides checking that the
request has not been approved or denied already.  Requests from any other
identity are silently left alone.
"""
from __future__ import annotations

import logging
import threading

from kapprover.approvers.base import Approver
from kapprover.certificates.models import CertificateSigningRequest, Condition, ConditionType
from kapprover.plugins.base import ConfigurationError
from kapprover.store.client import CsrStore
from kapprover.store.retry import RetryPolicy, update_with_retry

logger = logging.getLogger(__name__)

KUBELET_BOOTSTRAP_USERNAME = "kubelet-bootstrap"
KUBELET_BOOTSTRAP_GROUP = "system:kubelet-bootstrap"

AUTO_APPROVED_CONDITION = Condition(
    type=ConditionType.APPROVED,
    reason="AutoApproved",
    message="Auto approving of all kubelet CSRs is enabled on bootkube",
)


def is_kubelet_bootstrap(request: CertificateSigningRequest) -> bool:
    """``True`` when the submitter is exactly the kubelet bootstrap identity."""
    return request.username == KUBELET_BOOTSTRAP_USERNAME and request.in_group(
        KUBELET_BOOTSTRAP_GROUP
    )


class AlwaysApprover(Approver):
    """Approves every undecided kubelet bootstrap request."""

    def configure(self, config: str) -> AlwaysApprover:
        raise ConfigurationError(f"always: takes no configuration, got {config!r}.")

    def approve(
        self,
        store: CsrStore,
        request: CertificateSigningRequest,
        *,
        retry_policy: RetryPolicy | None = None,
        cancel_event: threading.Event | None = None,
    ) -> CertificateSigningRequest | None:
        if not self._applies(request):
            logger.debug("always: abstaining on '%s'.", request.name)
            return None

        stored = update_with_retry(
            store,
            request,
            self._mutate,
            policy=retry_policy,
            cancel_event=cancel_event,
        )
        if stored is not None:
            logger.info("always: approved '%s'.", request.name)
        return stored

    def __eq__(self, other: object) -> bool:
        return isinstance(other, AlwaysApprover)

    def __hash__(self) -> int:
        return hash(AlwaysApprover)

    # The preconditions are re-checked against every re-fetched copy.
    @staticmethod
    def _applies(request: CertificateSigningRequest) -> bool:
        return not request.is_decided and is_kubelet_bootstrap(request)

    @classmethod
    def _mutate(cls, request: CertificateSigningRequest) -> bool:
        if not cls._applies(request):
            return False
        request.conditions.append(AUTO_APPROVED_CONDITION)
        return True
