"""Thread-safe in-memory implementation of :class:`CsrStore`.

Objects are handed out as deep copies so that callers can mutate them
freely; only :meth:`InMemoryCsrStore.update_approval` changes stored state.
Every write bumps an integer ``resource_version`` and writes against a stale
version are rejected with :class:`ConflictError`.

Requests can be seeded from a YAML document of the form::

    requests:
      - name: node-csr-abc
        username: kubelet-bootstrap
        groups: [system:kubelet-bootstrap, system:authenticated]
        usages: [digital signature, key encipherment, client auth]

Example
-------
>>> store = InMemoryCsrStore()
>>> stored = store.add(CertificateSigningRequest(name="csr-1"))
>>> stored.resource_version
'1'
"""
from __future__ import annotations

import copy
import logging
import threading
from pathlib import Path

import yaml

from kapprover.certificates.models import CertificateSigningRequest
from kapprover.store.client import ConflictError, CsrStore, NotFoundError, StoreError

logger = logging.getLogger(__name__)


class InMemoryCsrStore(CsrStore):
    """Reference store with optimistic concurrency control."""

    def __init__(self) -> None:
        self._objects: dict[str, CertificateSigningRequest] = {}
        self._lock = threading.Lock()
        self._version = 0

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    def add(self, request: CertificateSigningRequest) -> CertificateSigningRequest:
        """Create a new object.

        Raises
        ------
        StoreError:
            When an object with the same name already exists.
        """
        with self._lock:
            if request.name in self._objects:
                raise StoreError(f"Certificate signing request '{request.name}' already exists.")
            stored = copy.deepcopy(request)
            stored.resource_version = self._next_version()
            self._objects[stored.name] = stored
            return copy.deepcopy(stored)

    def load_yaml(self, path: str | Path) -> int:
        """Seed the store from a YAML fixture file.

        Returns
        -------
        int
            Number of requests added.

        Raises
        ------
        FileNotFoundError:
            When the file does not exist.
        ValueError:
            When the document is not a mapping with a 'requests' list.
        StoreError:
            When a name is duplicated; nothing is added in that case.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Request fixture not found: {path}")
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}
        count = self._load_dict(raw)
        logger.info("Loaded %d certificate signing requests from %s", count, path)
        return count

    @classmethod
    def from_yaml_string(cls, yaml_content: str) -> InMemoryCsrStore:
        """Build a store seeded from YAML text (useful for testing)."""
        store = cls()
        store._load_dict(yaml.safe_load(yaml_content) or {})
        return store

    # ------------------------------------------------------------------
    # CsrStore API
    # ------------------------------------------------------------------

    def get(self, name: str) -> CertificateSigningRequest:
        with self._lock:
            if name not in self._objects:
                raise NotFoundError(name)
            return copy.deepcopy(self._objects[name])

    def update_approval(self, request: CertificateSigningRequest) -> CertificateSigningRequest:
        with self._lock:
            current = self._objects.get(request.name)
            if current is None:
                raise NotFoundError(request.name)
            if request.resource_version != current.resource_version:
                raise ConflictError(request.name)
            if (
                request.username != current.username
                or request.groups != current.groups
                or request.usages != current.usages
                or request.request != current.request
            ):
                raise StoreError(
                    f"Approval updates to '{request.name}' may only change its conditions."
                )
            stored = copy.deepcopy(request)
            stored.resource_version = self._next_version()
            self._objects[stored.name] = stored
            return copy.deepcopy(stored)

    def list(self) -> list[CertificateSigningRequest]:
        with self._lock:
            return [copy.deepcopy(r) for r in self._objects.values()]

    def __len__(self) -> int:
        with self._lock:
            return len(self._objects)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _next_version(self) -> str:
        self._version += 1
        return str(self._version)

    def _load_dict(self, raw: object) -> int:
        if not isinstance(raw, dict):
            raise ValueError("A request fixture must be a mapping with a 'requests' list.")
        raw_requests = raw.get("requests", [])
        if not isinstance(raw_requests, list):
            raise ValueError("'requests' must be a list.")
        requests: list[CertificateSigningRequest] = []
        for raw_request in raw_requests:
            if not isinstance(raw_request, dict):
                raise ValueError(f"Request entries must be mappings, got {raw_request!r}.")
            requests.append(CertificateSigningRequest.from_dict(raw_request))

        # Nothing is added unless every entry can be.
        with self._lock:
            seen: set[str] = set(self._objects)
            for request in requests:
                if request.name in seen:
                    raise StoreError(
                        f"Certificate signing request '{request.name}' already exists."
                    )
                seen.add(request.name)
            for request in requests:
                stored = copy.deepcopy(request)
                stored.resource_version = self._next_version()
                self._objects[stored.name] = stored
        return len(requests)
