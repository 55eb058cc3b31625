"""
Project services behind the HTTP routes.

Every function receives the stores it talks to, performs one
read/transform/write cycle and returns the JSON-ready response payload.
Store failures surface as UpstreamStoreError; nothing here retries.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Optional, Sequence

from shared.firebase_constants import PROJECT_IMAGES_PREFIX, RATINGS_DOCUMENT
from shared.types import UserNameLookup
from tracker import history
from tracker.documents import DocumentStore
from tracker.errors import NotFoundError, UpstreamStoreError, ValidationError
from tracker.identity import IdentityStore
from tracker.storage import BlobStore

logger = logging.getLogger(__name__)

PROJECT_FIELDS = (
    "nombreProyecto",
    "descripcion",
    "estatus",
    "EP",
    "HU",
    "RF",
    "RNF",
    "fechaCreacion",
    "imageUrl",
)

LINKED_MESSAGE = "¡Usuario vinculado al proyecto exitosamente!"
UNLINKED_MESSAGE = "¡Usuario desvinculado del proyecto exitosamente!"
REQUIREMENTS_UPDATED_MESSAGE = "Requerimientos actualizados correctamente"
RATINGS_UPDATED_MESSAGE = "Valoraciones actualizadas correctamente"


def _load_project(documents: DocumentStore, project_id: str) -> dict:
    project = documents.get(project_id)
    if project is None:
        raise NotFoundError()
    return project


def _requirement_section(project: dict, requirement_type: Optional[str]) -> list:
    section = project.get(requirement_type) if requirement_type else None
    if not isinstance(section, list):
        raise ValidationError("Invalid requirementType")
    return section


# Retrieval


def get_projects(
    identity: IdentityStore, documents: DocumentStore, user_id: Optional[int]
) -> list[dict]:
    if not user_id:
        raise ValidationError("UserId is required")

    project_ids = identity.list_project_ids(user_id)
    logger.info("User %s linked to projects %s", user_id, project_ids)
    if not project_ids:
        return []

    projects = []
    for project_id in project_ids:
        data = documents.get(project_id)
        if data is None:
            continue
        projects.append({"id": project_id, **data})
    return projects


def get_project(documents: DocumentStore, project_id: str) -> dict:
    """
    Fixed-shape projection of a project. Fields the document lacks are left
    out; the history defaults to an empty list.
    """
    data = documents.get(project_id)
    if data is None:
        # Reported as a store failure, not a 404.
        raise UpstreamStoreError(f"Project document missing: {project_id}")
    projection: dict[str, Any] = {"id": project_id}
    for name in PROJECT_FIELDS:
        if name in data:
            projection[name] = data[name]
    projection[history.HISTORY_FIELD] = data.get(history.HISTORY_FIELD) or []
    return projection


# Create / update / delete


def post_project(documents: DocumentStore, fields: dict) -> dict:
    project_id = documents.add(fields)
    logger.info("Project %s created", project_id)
    return {
        "project_added": True,
        "id": project_id,
        "descripcion": fields.get("descripcion"),
        "estatus": fields.get("estatus"),
    }


def lookup_user_name(identity: IdentityStore, user_id: Any) -> UserNameLookup:
    """
    Best-effort display name for the history entry. Falls back to empty
    name fields when the user is unknown or the store fails.
    """
    try:
        found = identity.get_user_name(user_id)
    except UpstreamStoreError as exc:
        logger.warning(
            "Error fetching user %s for modification history: %s", user_id, exc
        )
        return UserNameLookup(ok=False, error=str(exc))
    if found is None:
        return UserNameLookup(ok=True)
    user_name, user_lastname = found
    return UserNameLookup(ok=True, user_name=user_name, user_lastname=user_lastname)


def put_project(
    identity: IdentityStore,
    documents: DocumentStore,
    project_id: str,
    updates: dict,
    acting_user_id: Any,
    *,
    now: Optional[datetime] = None,
) -> dict:
    current = _load_project(documents, project_id)
    user = lookup_user_name(identity, acting_user_id)

    modification = history.build_modification(
        current,
        updates,
        user_id=acting_user_id,
        user_name=user.user_name,
        user_lastname=user.user_lastname,
        now=now,
    )
    payload = history.merge_history(current, updates, modification)
    if payload:
        documents.update(project_id, payload)
    logger.info(
        "Project %s updated by %s (%d changed fields)",
        project_id,
        acting_user_id,
        len(modification.changes),
    )
    return {
        "project_updated": True,
        "id": project_id,
        "modification": modification.as_dict(),
    }


def delete_project(documents: DocumentStore, project_id: str) -> dict:
    documents.delete(project_id)
    logger.info("Project %s deleted", project_id)
    return {"project_deleted": True}


# Team linkage


def link_user_to_project(
    identity: IdentityStore, user_id: Optional[int], project_id: Optional[str]
) -> dict:
    if not user_id or not project_id:
        raise ValidationError("UserID and ProjectID are required")
    identity.link_user(user_id, project_id)
    return {"success": True, "message": LINKED_MESSAGE}


def unlink_user_from_project(
    identity: IdentityStore, user_id: Optional[int], project_id: Optional[str]
) -> dict:
    if not user_id or not project_id:
        raise ValidationError("UserID and ProjectID are required")
    identity.unlink_user(user_id, project_id)
    return {"success": True, "message": UNLINKED_MESSAGE}


def get_project_team_members(identity: IdentityStore, project_id: Optional[str]) -> dict:
    if not project_id:
        raise ValidationError("ProjectID is required")
    members = identity.list_team_members(project_id)
    return {"success": True, "teamMembers": [member.as_dict() for member in members]}


# Requirements, ratings and tasks


def update_requirements(documents: DocumentStore, requirements: Sequence[dict]) -> dict:
    """
    Apply description/status to each requirement document in one batch.
    A single unknown id fails the batch and nothing is written.
    """
    updates = [
        (
            requirement.get("id"),
            {
                "descripcion": requirement.get("descripcion"),
                "estatus": requirement.get("estatus"),
            },
        )
        for requirement in requirements
    ]
    documents.batch_update(updates)
    return {"message": REQUIREMENTS_UPDATED_MESSAGE}


def update_ratings(
    documents: DocumentStore, ratings: Any, *, ratings_document: str = RATINGS_DOCUMENT
) -> dict:
    documents.set(ratings_document, {"ratings": ratings}, merge=True)
    return {"message": RATINGS_UPDATED_MESSAGE}


def update_tasks(
    documents: DocumentStore,
    project_id: str,
    requirement_type: Optional[str],
    element_id: Any,
    tasks: Any,
) -> dict:
    """
    Replace the tasks of one requirement item. The whole section is written
    back even when no item matches `element_id`.
    """
    project = _load_project(documents, project_id)
    section = _requirement_section(project, requirement_type)
    updated_section = [
        {**item, "tasks": tasks}
        if isinstance(item, dict) and item.get("id") == element_id
        else item
        for item in section
    ]
    documents.update(project_id, {requirement_type: updated_section})
    return {"success": True}


def get_tasks(
    documents: DocumentStore,
    project_id: str,
    requirement_type: Optional[str],
    element_id: Any,
) -> dict:
    project = _load_project(documents, project_id)
    section = _requirement_section(project, requirement_type)
    item = next(
        (
            entry
            for entry in section
            if isinstance(entry, dict) and entry.get("id") == element_id
        ),
        None,
    )
    tasks = (item or {}).get("tasks") or []
    return {"tasks": tasks}


# Images


def image_path(project_id: str, filename: str) -> str:
    return f"{PROJECT_IMAGES_PREFIX}/{project_id}/{uuid.uuid4()}_{filename}"


def upload_project_image(
    documents: DocumentStore,
    blobs: BlobStore,
    project_id: Optional[str],
    filename: Optional[str],
    content: Optional[bytes],
    content_type: Optional[str],
    *,
    expires_at: datetime,
) -> dict:
    if not filename or content is None or not project_id:
        raise ValidationError("File and projectId are required")

    path = image_path(project_id, filename)
    blobs.upload_bytes(path, content, content_type)
    url = blobs.download_url(path, expires_at)
    documents.update(project_id, {"imageUrl": url})
    logger.info("Image for project %s stored at %s", project_id, path)
    return {"success": True, "imageUrl": url}
