"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging
from typing import Optional

import firebase_admin
from fastapi import Header
from firebase_admin import credentials, firestore, storage

from tracker.config import Settings, get_settings
from tracker.documents import DocumentStore, FirestoreDocumentStore, InMemoryDocumentStore
from tracker.errors import ValidationError
from tracker.identity import IdentityStore, InMemoryIdentityStore, SqlIdentityStore
from tracker.storage import BlobStore, CosBlobStore, FirebaseBlobStore, InMemoryBlobStore

logger = logging.getLogger(__name__)

_identity_store: IdentityStore | None = None
_document_store: DocumentStore | None = None
_blob_store: BlobStore | None = None


def _firebase_app(settings: Settings) -> firebase_admin.App:
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass
    credential = None
    if settings.firebase_credentials_path:
        credential = credentials.Certificate(settings.firebase_credentials_path)
    options = {}
    if settings.firebase_project_id:
        options["projectId"] = settings.firebase_project_id
    if settings.firebase_storage_bucket:
        options["storageBucket"] = settings.firebase_storage_bucket
    return firebase_admin.initialize_app(credential, options)


def get_identity_store() -> IdentityStore:
    """
    Return a singleton identity store so the engine pool is shared across requests.
    """
    global _identity_store
    if _identity_store:
        return _identity_store

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        _identity_store = InMemoryIdentityStore()
    else:
        _identity_store = SqlIdentityStore(settings.database_url, create_tables=False)
    logger.info("Identity store: %s", _identity_store.__class__.__name__)
    return _identity_store


def get_document_store() -> DocumentStore:
    global _document_store
    if _document_store:
        return _document_store

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.firebase_project_id:
        _document_store = InMemoryDocumentStore()
    else:
        client = firestore.client(_firebase_app(settings))
        _document_store = FirestoreDocumentStore(
            client, collection=settings.projects_collection
        )
    logger.info("Document store: %s", _document_store.__class__.__name__)
    return _document_store


def get_blob_store() -> BlobStore:
    global _blob_store
    if _blob_store:
        return _blob_store

    settings = get_settings()
    if settings.use_in_memory_backends:
        _blob_store = InMemoryBlobStore()
    elif settings.firebase_storage_bucket:
        bucket = storage.bucket(
            settings.firebase_storage_bucket, app=_firebase_app(settings)
        )
        _blob_store = FirebaseBlobStore(bucket)
    elif settings.cos_bucket:
        _blob_store = CosBlobStore(
            bucket=settings.cos_bucket,
            region=settings.cos_region or "",
            endpoint=settings.cos_endpoint or "",
            access_key_id=settings.aws_access_key_id or "",
            secret_access_key=settings.aws_secret_access_key or "",
        )
    else:
        _blob_store = InMemoryBlobStore()
    logger.info("Blob store: %s", _blob_store.__class__.__name__)
    return _blob_store


def get_acting_user_id(x_user_id: Optional[int] = Header(default=None)) -> int:
    """
    Id of the authenticated user, forwarded by the auth layer in front of
    this service as the `X-User-Id` header.
    """
    if x_user_id is None:
        raise ValidationError("Acting user is required")
    return x_user_id
