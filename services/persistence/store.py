"""
Keyed JSON persistence.

The core only needs get/put on whole JSON documents, one conditional write
used for optimistic concurrency on submission records and an atomic list
append for the submission registry.

A document without a "version" key is treated as version 0.
"""

from __future__ import annotations

import json
import threading
from typing import Any, Protocol

from core.config import settings


class KeyValueStore(Protocol):
    def get(self, key: str) -> Any | None: ...

    def put(self, key: str, value: Any) -> None: ...

    def replace(self, key: str, value: dict[str, Any], expected_version: int) -> bool:
        """Write only if the stored document's "version" equals expected_version."""
        ...

    def append(self, key: str, item: Any) -> None:
        """Append item to the list stored under key, creating it if absent."""
        ...

    def delete(self, key: str) -> None: ...


class InMemoryKeyValueStore:
    """Process-local store; values are JSON round-tripped like a real backend."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    def put(self, key: str, value: Any) -> None:
        raw = json.dumps(value)
        with self._lock:
            self._data[key] = raw

    def replace(self, key: str, value: dict[str, Any], expected_version: int) -> bool:
        raw = json.dumps(value)
        with self._lock:
            current = self._data.get(key)
            if current is None:
                return False
            stored = json.loads(current)
            if not isinstance(stored, dict) or stored.get("version", 0) != expected_version:
                return False
            self._data[key] = raw
            return True

    def append(self, key: str, item: Any) -> None:
        with self._lock:
            current = self._data.get(key)
            items = json.loads(current) if current is not None else []
            if not isinstance(items, list):
                items = []
            items.append(item)
            self._data[key] = json.dumps(items)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._data)


def build_store(backend: str | None = None) -> KeyValueStore:
    backend = (backend or settings.STORE_BACKEND).lower()
    if backend == "memory":
        return InMemoryKeyValueStore()
    if backend == "mongo":
        from services.persistence.mongo import MongoKeyValueStore

        return MongoKeyValueStore()
    if backend == "postgres":
        from services.persistence.postgres import PostgresKeyValueStore

        return PostgresKeyValueStore()
    raise ValueError(f"unknown STORE_BACKEND: {backend}")
