"""Approvers: rules that may approve a request after every inspector passed."""
from __future__ import annotations

from kapprover.approvers.always import (
    AUTO_APPROVED_CONDITION,
    KUBELET_BOOTSTRAP_GROUP,
    KUBELET_BOOTSTRAP_USERNAME,
    AlwaysApprover,
    is_kubelet_bootstrap,
)
from kapprover.approvers.base import Approver
from kapprover.approvers.builtin import APPROVER_ENTRYPOINT_GROUP, default_approver_registry

__all__ = [
    "APPROVER_ENTRYPOINT_GROUP",
    "AUTO_APPROVED_CONDITION",
    "KUBELET_BOOTSTRAP_GROUP",
    "KUBELET_BOOTSTRAP_USERNAME",
    "AlwaysApprover",
    "Approver",
    "default_approver_registry",
    "is_kubelet_bootstrap",
]
