"""
Query cache

In-process store for dashboard and listing results. Keys are
(namespace, entity_type, entity_id) so that a write to one employee, program
or report drops every cached view of that entity and nothing else.
"""

import logging
import threading
import time

logger = logging.getLogger(__name__)

EMPLOYEE = "employee"
PROGRAM = "program"
REPORT = "report"
COMPANY = "company"  # whole-organization dashboards use entity_id None


class QueryCache:
    def __init__(self, ttl=300, max_entries=500):
        self.ttl = ttl
        self.max_entries = max_entries
        self._entries = {}  # {key: {"value": obj, "ts": float}}
        self._lock = threading.Lock()

    @staticmethod
    def key(namespace, entity_type, entity_id=None):
        return (namespace, entity_type, entity_id)

    def get(self, namespace, entity_type, entity_id=None):
        k = self.key(namespace, entity_type, entity_id)
        with self._lock:
            entry = self._entries.get(k)
            if entry is None:
                return None
            if self.ttl and time.time() - entry["ts"] >= self.ttl:
                del self._entries[k]
                return None
            return entry["value"]

    def set(self, namespace, entity_type, entity_id, value):
        k = self.key(namespace, entity_type, entity_id)
        with self._lock:
            self._entries[k] = {"value": value, "ts": time.time()}
            if len(self._entries) > self.max_entries:
                oldest = min(self._entries, key=lambda e: self._entries[e]["ts"])
                del self._entries[oldest]

    def get_or_compute(self, namespace, entity_type, entity_id, compute):
        value = self.get(namespace, entity_type, entity_id)
        if value is not None:
            logger.debug(f"Cache hit {namespace}/{entity_type}/{entity_id}")
            return value
        value = compute()
        if value is not None:
            self.set(namespace, entity_type, entity_id, value)
        return value

    def invalidate(self, entity_type, entity_id=None):
        """Drop every namespace cached for one entity. Returns the count removed."""
        with self._lock:
            stale = [k for k in self._entries if k[1] == entity_type and k[2] == entity_id]
            for k in stale:
                del self._entries[k]
        if stale:
            logger.info(f"Invalidated {len(stale)} cache entries for {entity_type}={entity_id}")
        return len(stale)

    def invalidate_namespace(self, namespace):
        with self._lock:
            stale = [k for k in self._entries if k[0] == namespace]
            for k in stale:
                del self._entries[k]
        return len(stale)

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __len__(self):
        return len(self._entries)

    def __contains__(self, key):
        return self.get(*key) is not None
