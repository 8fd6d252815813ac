"""Certificate signing request records.

A :class:`CertificateSigningRequest` is owned by the backing store.  The
decision core reads its identity fields and appends at most one
:class:`Condition` to record a verdict.  Once a request carries a condition
it is terminal and is never inspected or mutated again.

Example
-------
>>> csr = CertificateSigningRequest(
...     name="node-csr-abc",
...     username="kubelet-bootstrap",
...     groups=["system:kubelet-bootstrap", "system:authenticated"],
... )
>>> csr.is_decided
False
>>> csr.in_group("system:kubelet-bootstrap")
True
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ConditionType(str, Enum):
    """Terminal decision recorded on a request."""

    APPROVED = "Approved"
    DENIED = "Denied"


@dataclass(frozen=True)
class Condition:
    """An immutable approve/deny record.

    Attributes
    ----------
    type:
        Whether the request was approved or denied.
    reason:
        Short machine-readable reason (e.g. ``AutoApproved``).
    message:
        Human-readable explanation.
    """

    type: ConditionType
    reason: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type.value, "reason": self.reason, "message": self.message}

    @classmethod
    def from_dict(cls, raw: dict[str, object]) -> Condition:
        if "type" not in raw:
            raise ValueError("A condition requires a 'type'.")
        return cls(
            type=ConditionType(str(raw["type"])),
            reason=str(raw.get("reason", "")),
            message=str(raw.get("message", "")),
        )


@dataclass
class CertificateSigningRequest:
    """A certificate signing request as seen by the decision core.

    Attributes
    ----------
    name:
        Identity of the object in the store.
    username:
        Username of the submitter.
    groups:
        Group memberships of the submitter.
    usages:
        Requested key usages.
    request:
        PEM-encoded PKCS#10 request.  Opaque to the core.
    conditions:
        Decision state.  Empty while the request is pending.
    resource_version:
        Opaque version token used by the store to detect concurrent writes.
    """

    name: str
    username: str = ""
    groups: list[str] = field(default_factory=list)
    usages: list[str] = field(default_factory=list)
    request: str = ""
    conditions: list[Condition] = field(default_factory=list)
    resource_version: str = ""

    @property
    def is_decided(self) -> bool:
        """``True`` once any condition has been recorded."""
        return len(self.conditions) > 0

    @property
    def is_approved(self) -> bool:
        return any(c.type == ConditionType.APPROVED for c in self.conditions)

    @property
    def is_denied(self) -> bool:
        return any(c.type == ConditionType.DENIED for c in self.conditions)

    def in_group(self, group: str) -> bool:
        """Exact, case-sensitive group membership test."""
        return any(g == group for g in self.groups)

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "username": self.username,
            "groups": list(self.groups),
            "usages": list(self.usages),
            "request": self.request,
            "conditions": [c.to_dict() for c in self.conditions],
            "resource_version": self.resource_version,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, object]) -> CertificateSigningRequest:
        """Build a request from a plain mapping (e.g. a YAML fixture).

        Raises
        ------
        ValueError:
            When ``name`` is missing or empty.
        """
        name = str(raw.get("name") or "")
        if not name:
            raise ValueError("A certificate signing request requires a non-empty 'name'.")
        return cls(
            name=name,
            username=str(raw.get("username") or ""),
            groups=[str(g) for g in raw.get("groups") or []],  # type: ignore[union-attr]
            usages=[str(u) for u in raw.get("usages") or []],  # type: ignore[union-attr]
            request=str(raw.get("request") or ""),
            conditions=[
                Condition.from_dict(c)
                for c in raw.get("conditions") or []  # type: ignore[union-attr]
            ],
            resource_version=str(raw.get("resource_version") or ""),
        )
