"""
Document store for project documents: Firestore and an in-memory double.
"""

from __future__ import annotations

import copy
import json
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, Protocol, Sequence

from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as google_auth_exceptions

from shared.firebase_constants import PROJECTS_COLLECTION
from tracker.errors import UpstreamStoreError


class DocumentStore(Protocol):
    """Operations the API needs from the projects collection."""

    def get(self, doc_id: str) -> Optional[dict]:
        ...

    def add(self, data: dict) -> str:
        ...

    def update(self, doc_id: str, fields: dict) -> None:
        ...

    def set(self, doc_id: str, data: dict, *, merge: bool = False) -> None:
        ...

    def delete(self, doc_id: str) -> None:
        ...

    def batch_update(self, updates: Sequence[tuple[str, dict]]) -> None:
        ...


def _deep_merge(target: dict, source: dict) -> dict:
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _deep_merge(target[key], value)
        else:
            target[key] = value
    return target


class InMemoryDocumentStore:
    """
    Dict-backed collection. Documents are JSON round-tripped on write so
    callers never share mutable state with the store.
    """

    def __init__(self):
        self.docs: Dict[str, dict] = {}
        self.writes = 0

    def reset(self) -> None:
        self.docs.clear()
        self.writes = 0

    @staticmethod
    def _snapshot(data: dict) -> dict:
        return json.loads(json.dumps(data, default=str))

    def get(self, doc_id: str) -> Optional[dict]:
        doc = self.docs.get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    def add(self, data: dict) -> str:
        doc_id = uuid.uuid4().hex[:20]
        self.docs[doc_id] = self._snapshot(data)
        self.writes += 1
        return doc_id

    def update(self, doc_id: str, fields: dict) -> None:
        if doc_id not in self.docs:
            raise UpstreamStoreError(f"No document to update: {doc_id}")
        self.docs[doc_id].update(self._snapshot(fields))
        self.writes += 1

    def set(self, doc_id: str, data: dict, *, merge: bool = False) -> None:
        snapshot = self._snapshot(data)
        if merge and doc_id in self.docs:
            _deep_merge(self.docs[doc_id], snapshot)
        else:
            self.docs[doc_id] = snapshot
        self.writes += 1

    def delete(self, doc_id: str) -> None:
        self.docs.pop(doc_id, None)
        self.writes += 1

    def batch_update(self, updates: Sequence[tuple[str, dict]]) -> None:
        missing = [doc_id for doc_id, _ in updates if doc_id not in self.docs]
        if missing:
            raise UpstreamStoreError(f"No document to update: {missing[0]}")
        for doc_id, fields in updates:
            self.docs[doc_id].update(self._snapshot(fields))
        self.writes += 1


class FirestoreDocumentStore:
    """
    Firestore collection accessed through the firebase_admin client.
    """

    def __init__(self, client: Any, collection: str = PROJECTS_COLLECTION):
        self._client = client
        self._collection = client.collection(collection)

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        try:
            yield
        except (
            google_exceptions.GoogleAPIError,
            google_auth_exceptions.GoogleAuthError,
        ) as exc:
            raise UpstreamStoreError(f"Firestore {action} failed: {exc}") from exc

    def get(self, doc_id: str) -> Optional[dict]:
        with self._guard("get"):
            snapshot = self._collection.document(doc_id).get()
        if not snapshot.exists:
            return None
        return snapshot.to_dict() or {}

    def add(self, data: dict) -> str:
        with self._guard("add"):
            _, doc_ref = self._collection.add(data)
        return doc_ref.id

    def update(self, doc_id: str, fields: dict) -> None:
        with self._guard("update"):
            self._collection.document(doc_id).update(fields)

    def set(self, doc_id: str, data: dict, *, merge: bool = False) -> None:
        with self._guard("set"):
            self._collection.document(doc_id).set(data, merge=merge)

    def delete(self, doc_id: str) -> None:
        with self._guard("delete"):
            self._collection.document(doc_id).delete()

    def batch_update(self, updates: Sequence[tuple[str, dict]]) -> None:
        batch = self._client.batch()
        for doc_id, fields in updates:
            batch.update(self._collection.document(doc_id), fields)
        with self._guard("batch commit"):
            batch.commit()
