"""Inspector capability."""
from __future__ import annotations

from abc import abstractmethod

from kapprover.certificates.models import CertificateSigningRequest
from kapprover.plugins.base import Plugin
from kapprover.store.client import CsrStore


class Inspector(Plugin):
    """Anything capable of performing a policy check on a request.

    :meth:`inspect` returns an empty string to take no action, or a
    human-readable message to deny the request.  Raising signals that no
    verdict can be reached right now; the request is left for a later run.
    """

    @abstractmethod
    def inspect(self, store: CsrStore, request: CertificateSigningRequest) -> str:
        """Check ``request`` against this inspector's policy."""
