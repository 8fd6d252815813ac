"""Registry of the approvers shipped with kapprover."""
from __future__ import annotations

from kapprover.approvers.always import AlwaysApprover
from kapprover.approvers.base import Approver
from kapprover.plugins.registry import PluginRegistry

APPROVER_ENTRYPOINT_GROUP = "kapprover.approvers"


def default_approver_registry(load_entrypoints: bool = True) -> PluginRegistry[Approver]:
    """Return a new registry holding the built-in approvers.

    Parameters
    ----------
    load_entrypoints:
        Also register approvers advertised by installed distributions.
    """
    registry: PluginRegistry[Approver] = PluginRegistry(Approver, "approvers")
    registry.register("always", AlwaysApprover())
    if load_entrypoints:
        registry.load_entrypoints(APPROVER_ENTRYPOINT_GROUP)
    return registry
