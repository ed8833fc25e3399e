# app/repositories/memory_store.py
from __future__ import annotations
import copy
import threading
from typing import Any, Optional


class MemoryStore:
    """
    In-process TenantStore for local development and tests.

    A single lock makes create / compare_and_set atomic, matching the
    guarantees PostgresStore gets from the database.
    """

    def __init__(self):
        self._docs: dict[tuple[str, str, str], dict] = {}
        self._lock = threading.RLock()

    def get(self, kind: str, tenant_slug: str, doc_id: str) -> Optional[dict]:
        with self._lock:
            doc = self._docs.get((kind, tenant_slug, doc_id))
            return copy.deepcopy(doc) if doc is not None else None

    def set(self, kind: str, tenant_slug: str, doc_id: str, data: dict) -> None:
        with self._lock:
            self._docs[(kind, tenant_slug, doc_id)] = copy.deepcopy(data)

    def create(self, kind: str, tenant_slug: str, doc_id: str, data: dict) -> bool:
        key = (kind, tenant_slug, doc_id)
        with self._lock:
            if key in self._docs:
                return False
            self._docs[key] = copy.deepcopy(data)
            return True

    def update(self, kind: str, tenant_slug: str, doc_id: str, changes: dict) -> bool:
        key = (kind, tenant_slug, doc_id)
        with self._lock:
            if key not in self._docs:
                return False
            self._docs[key].update(copy.deepcopy(changes))
            return True

    def compare_and_set(self, kind, tenant_slug, doc_id, field, expected, changes) -> bool:
        key = (kind, tenant_slug, doc_id)
        with self._lock:
            doc = self._docs.get(key)
            if doc is None or doc.get(field) != expected:
                return False
            doc.update(copy.deepcopy(changes))
            return True

    def delete(self, kind: str, tenant_slug: str, doc_id: str) -> bool:
        with self._lock:
            return self._docs.pop((kind, tenant_slug, doc_id), None) is not None

    def _select(self, kind: str, pred) -> list[dict]:
        with self._lock:
            hits = [(k, d) for k, d in self._docs.items() if k[0] == kind and pred(k, d)]
            hits.sort(key=lambda kd: (kd[0][1], kd[0][2]))
            return [copy.deepcopy(d) for _, d in hits]

    def query(self, kind: str, tenant_slug: str, field: str, value: Any) -> list[dict]:
        return self._select(kind, lambda k, d: k[1] == tenant_slug and d.get(field) == value)

    def query_all(self, kind: str, field: str, value: Any) -> list[dict]:
        return self._select(kind, lambda k, d: d.get(field) == value)

    def list_all(self, kind: str) -> list[dict]:
        return self._select(kind, lambda k, d: True)
