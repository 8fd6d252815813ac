"""Certificate signing request data model."""
from __future__ import annotations

from kapprover.certificates.models import (
    CertificateSigningRequest,
    Condition,
    ConditionType,
)

__all__ = ["CertificateSigningRequest", "Condition", "ConditionType"]
