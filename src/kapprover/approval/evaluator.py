"""Per-request decision evaluation.

:class:`DecisionEvaluator` runs the inspector pipeline against a request,
in order, and then hands undenied requests to the approver:

1. A request that already carries a condition is skipped.
2. The first inspector that raises defers the request: an
   :class:`InspectionError` propagates and nothing is written.
3. The first inspector that returns a message denies the request.
4. When every inspector passes, the approver (if any) may approve.

Remaining inspectors are never called once one of them denied or raised,
and at most one condition is persisted per request per run.

Example
-------
>>> evaluator = DecisionEvaluator(store, pipeline, approver=AlwaysApprover())
>>> decision = evaluator.evaluate(store.get("node-csr-abc"))
>>> decision.verdict
<Verdict.APPROVED: 'approved'>
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum

from kapprover.approvers.base import Approver
from kapprover.certificates.models import CertificateSigningRequest, Condition, ConditionType
from kapprover.inspectors.pipeline import InspectorPipeline
from kapprover.store.client import CsrStore
from kapprover.store.retry import RetryPolicy, append_if_undecided, update_with_retry

logger = logging.getLogger(__name__)

DENIED_REASON = "PolicyViolation"


class Verdict(str, Enum):
    """Outcome of evaluating one request."""

    APPROVED = "approved"
    DENIED = "denied"
    NO_ACTION = "no_action"
    SKIPPED = "skipped"
    DEFERRED = "deferred"


class InspectionError(Exception):
    """Raised when an inspector cannot reach a verdict.

    The original exception is available as ``__cause__``.

    Attributes
    ----------
    inspector:
        Name of the inspector that failed.
    request_name:
        Identity of the request being inspected.
    """

    def __init__(self, inspector: str, request_name: str, reason: str) -> None:
        self.inspector = inspector
        self.request_name = request_name
        super().__init__(
            f"Inspector '{inspector}' could not evaluate '{request_name}': {reason}"
        )


@dataclass
class Decision:
    """Result of :meth:`DecisionEvaluator.evaluate`.

    Attributes
    ----------
    request_name:
        Identity of the evaluated request.
    verdict:
        What happened to the request.
    inspector:
        Name of the denying inspector, for DENIED verdicts.
    message:
        Denial message, or the deferral reason for DEFERRED verdicts.
    request:
        The request as persisted, when a condition was written.
    """

    request_name: str
    verdict: Verdict
    inspector: str | None = None
    message: str = ""
    request: CertificateSigningRequest | None = None


class DecisionEvaluator:
    """Evaluates requests against an inspector pipeline and an approver.

    Parameters
    ----------
    store:
        Store client used by inspectors and for persisting decisions.
    pipeline:
        Ordered inspectors to run.
    approver:
        Optional rule consulted once every inspector passed.
    retry_policy:
        Bounds for the conflict retry loop.
    cancel_event:
        Set it to abort in-flight retry sequences, e.g. on shutdown.
    """

    def __init__(
        self,
        store: CsrStore,
        pipeline: InspectorPipeline,
        approver: Approver | None = None,
        retry_policy: RetryPolicy | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self._store = store
        self._pipeline = pipeline
        self._approver = approver
        self._retry_policy = retry_policy
        self._cancel_event = cancel_event

    @property
    def pipeline(self) -> InspectorPipeline:
        return self._pipeline

    def evaluate(self, request: CertificateSigningRequest) -> Decision:
        """Decide on a single request.

        Raises
        ------
        InspectionError:
            When an inspector raised; the request is left untouched.
        RetryExhaustedError:
            When the decision could not be persisted because of conflicts.
        StoreError:
            Any non-conflict persistence failure.
        """
        if request.is_decided:
            logger.debug("Skipping '%s': already decided.", request.name)
            return Decision(request_name=request.name, verdict=Verdict.SKIPPED)

        for named in self._pipeline:
            try:
                message = named.plugin.inspect(self._store, request)
            except Exception as exc:
                raise InspectionError(named.name, request.name, str(exc)) from exc
            if message:
                return self._deny(request, named.name, message)

        if self._approver is None:
            return Decision(request_name=request.name, verdict=Verdict.NO_ACTION)

        stored = self._approver.approve(
            self._store,
            request,
            retry_policy=self._retry_policy,
            cancel_event=self._cancel_event,
        )
        if stored is None:
            return Decision(request_name=request.name, verdict=Verdict.NO_ACTION)
        return Decision(request_name=request.name, verdict=Verdict.APPROVED, request=stored)

    def evaluate_all(self, requests: list[CertificateSigningRequest]) -> list[Decision]:
        """Evaluate several requests once each.

        Inspection failures are reported as DEFERRED decisions instead of
        propagating, so one undecidable request does not stop the batch.
        """
        decisions: list[Decision] = []
        for request in requests:
            try:
                decisions.append(self.evaluate(request))
            except InspectionError as exc:
                logger.warning("Deferring '%s': %s", request.name, exc)
                decisions.append(
                    Decision(
                        request_name=request.name,
                        verdict=Verdict.DEFERRED,
                        inspector=exc.inspector,
                        message=str(exc),
                    )
                )
        return decisions

    def _deny(
        self,
        request: CertificateSigningRequest,
        inspector: str,
        message: str,
    ) -> Decision:
        condition = Condition(type=ConditionType.DENIED, reason=DENIED_REASON, message=message)
        stored = update_with_retry(
            self._store,
            request,
            append_if_undecided(condition),
            policy=self._retry_policy,
            cancel_event=self._cancel_event,
        )
        if stored is None:
            logger.info("'%s' was decided concurrently; not denying.", request.name)
            return Decision(request_name=request.name, verdict=Verdict.SKIPPED)

        logger.info("Denied '%s' (inspector '%s'): %s", request.name, inspector, message)
        return Decision(
            request_name=request.name,
            verdict=Verdict.DENIED,
            inspector=inspector,
            message=message,
            request=stored,
        )
