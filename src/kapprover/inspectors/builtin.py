"""Identity-based inspectors shipped with kapprover.

- ``group``    -- deny unless the submitter belongs to a group.
- ``username`` -- deny unless the submitter's username matches a pattern.

Both check only the submitter identity recorded on the request.
"""
from __future__ import annotations

import re
from dataclasses import dataclass

from kapprover.certificates.models import CertificateSigningRequest
from kapprover.inspectors.base import Inspector
from kapprover.plugins.base import ConfigurationError
from kapprover.plugins.registry import PluginRegistry
from kapprover.store.client import CsrStore

INSPECTOR_ENTRYPOINT_GROUP = "kapprover.inspectors"


@dataclass(frozen=True)
class GroupInspector(Inspector):
    """Requires membership of ``group`` (exact match)."""

    group: str = "system:nodes"

    def configure(self, config: str) -> GroupInspector:
        group = config.strip()
        if not group:
            raise ConfigurationError("group: a group name is required.")
        return GroupInspector(group=group)

    def inspect(self, store: CsrStore, request: CertificateSigningRequest) -> str:
        if request.in_group(self.group):
            return ""
        return f"Requester '{request.username}' is not a member of group '{self.group}'."


@dataclass(frozen=True)
class UsernameInspector(Inspector):
    """Requires the username to fully match the ``pattern`` regular expression."""

    pattern: str = r"system:node:.+"

    def configure(self, config: str) -> UsernameInspector:
        try:
            re.compile(config)
        except re.error as exc:
            raise ConfigurationError(f"username: invalid pattern {config!r}: {exc}") from exc
        return UsernameInspector(pattern=config)

    def inspect(self, store: CsrStore, request: CertificateSigningRequest) -> str:
        if re.fullmatch(self.pattern, request.username):
            return ""
        return f"Username '{request.username}' does not match '{self.pattern}'."


def default_inspector_registry(load_entrypoints: bool = True) -> PluginRegistry[Inspector]:
    """Return a new registry holding the built-in inspectors.

    Parameters
    ----------
    load_entrypoints:
        Also register inspectors advertised by installed distributions.
    """
    registry: PluginRegistry[Inspector] = PluginRegistry(Inspector, "inspectors")
    registry.register("group", GroupInspector())
    registry.register("username", UsernameInspector())
    if load_entrypoints:
        registry.load_entrypoints(INSPECTOR_ENTRYPOINT_GROUP)
    return registry
