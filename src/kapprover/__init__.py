"""kapprover: policy-driven approval of certificate signing requests.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import kapprover
>>> store = kapprover.InMemoryCsrStore()
>>> _ = store.add(kapprover.CertificateSigningRequest(
...     name="node-csr-abc",
...     username="kubelet-bootstrap",
...     groups=["system:kubelet-bootstrap"],
... ))
>>> pipeline = kapprover.PipelineBuilder(kapprover.default_inspector_registry()).build("")
>>> evaluator = kapprover.DecisionEvaluator(store, pipeline, approver=kapprover.AlwaysApprover())
>>> evaluator.evaluate(store.get("node-csr-abc")).verdict
<Verdict.APPROVED: 'approved'>
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------
from kapprover.certificates.models import (
    CertificateSigningRequest,
    Condition,
    ConditionType,
)

# ---------------------------------------------------------------------------
# Plugins
# ---------------------------------------------------------------------------
from kapprover.plugins.base import ConfigurationError, Plugin
from kapprover.plugins.registry import (
    PluginAlreadyRegisteredError,
    PluginNotFoundError,
    PluginRegistry,
)

# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------
from kapprover.store.client import ConflictError, CsrStore, NotFoundError, StoreError
from kapprover.store.memory import InMemoryCsrStore
from kapprover.store.retry import (
    RetryCancelledError,
    RetryExhaustedError,
    RetryPolicy,
    update_with_retry,
)

# ---------------------------------------------------------------------------
# Inspectors
# ---------------------------------------------------------------------------
from kapprover.inspectors.base import Inspector
from kapprover.inspectors.builtin import (
    GroupInspector,
    UsernameInspector,
    default_inspector_registry,
)
from kapprover.inspectors.pipeline import (
    InspectorPipeline,
    NamedPlugin,
    PipelineBuilder,
)

# ---------------------------------------------------------------------------
# Approvers
# ---------------------------------------------------------------------------
from kapprover.approvers.always import AlwaysApprover
from kapprover.approvers.base import Approver
from kapprover.approvers.builtin import default_approver_registry

# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------
from kapprover.approval.evaluator import (
    Decision,
    DecisionEvaluator,
    InspectionError,
    Verdict,
)
from kapprover.config import ConfigLoader, ControllerConfig, RetryConfig

__all__ = [
    "__version__",
    # Data model
    "CertificateSigningRequest",
    "Condition",
    "ConditionType",
    # Plugins
    "ConfigurationError",
    "Plugin",
    "PluginAlreadyRegisteredError",
    "PluginNotFoundError",
    "PluginRegistry",
    # Store
    "ConflictError",
    "CsrStore",
    "InMemoryCsrStore",
    "NotFoundError",
    "RetryCancelledError",
    "RetryExhaustedError",
    "RetryPolicy",
    "StoreError",
    "update_with_retry",
    # Inspectors
    "GroupInspector",
    "Inspector",
    "InspectorPipeline",
    "NamedPlugin",
    "PipelineBuilder",
    "UsernameInspector",
    "default_inspector_registry",
    # Approvers
    "AlwaysApprover",
    "Approver",
    "default_approver_registry",
    # Evaluation
    "Decision",
    "DecisionEvaluator",
    "InspectionError",
    "Verdict",
    # Configuration
    "ConfigLoader",
    "ControllerConfig",
    "RetryConfig",
]
