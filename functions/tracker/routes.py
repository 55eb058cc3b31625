"""
HTTP routes for the project tracker API.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.concurrency import run_in_threadpool

from tracker import projects
from tracker.config import Settings, get_settings
from tracker.dependencies import (
    get_acting_user_id,
    get_blob_store,
    get_document_store,
    get_identity_store,
)
from tracker.documents import DocumentStore
from tracker.identity import IdentityStore
from tracker.schemas import (
    ImageUploadResponse,
    LinkRequest,
    MessageResponse,
    ProjectAddedResponse,
    ProjectDeletedResponse,
    ProjectPayload,
    ProjectResponse,
    ProjectUpdatedResponse,
    RatingsRequest,
    RequirementsRequest,
    SuccessResponse,
    TasksRequest,
    TasksResponse,
    TeamMembersResponse,
)
from tracker.storage import BlobStore

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("", response_model=list[dict])
def list_projects(
    userId: Optional[int] = Query(None),
    identity: IdentityStore = Depends(get_identity_store),
    documents: DocumentStore = Depends(get_document_store),
):
    """Projects linked to a user, one document read per linked id."""
    return projects.get_projects(identity, documents, userId)


@router.post("", response_model=ProjectAddedResponse)
def create_project(
    payload: ProjectPayload,
    documents: DocumentStore = Depends(get_document_store),
):
    return projects.post_project(documents, payload.to_document())


@router.post("/link", response_model=SuccessResponse)
def link_user(
    payload: LinkRequest, identity: IdentityStore = Depends(get_identity_store)
):
    return projects.link_user_to_project(identity, payload.userId, payload.projectId)


@router.post("/unlink", response_model=SuccessResponse)
def unlink_user(
    payload: LinkRequest, identity: IdentityStore = Depends(get_identity_store)
):
    return projects.unlink_user_from_project(
        identity, payload.userId, payload.projectId
    )


# Declared before /{project_id} so the literal path is matched first.
@router.put("/ratings", response_model=MessageResponse)
def update_ratings(
    payload: RatingsRequest,
    documents: DocumentStore = Depends(get_document_store),
    settings: Settings = Depends(get_settings),
):
    return projects.update_ratings(
        documents, payload.ratings, ratings_document=settings.ratings_document_id
    )


@router.get(
    "/{project_id}",
    response_model=ProjectResponse,
    response_model_exclude_unset=True,
)
def get_project(
    project_id: str, documents: DocumentStore = Depends(get_document_store)
):
    return projects.get_project(documents, project_id)


@router.put("/{project_id}", response_model=ProjectUpdatedResponse)
def update_project(
    project_id: str,
    payload: ProjectPayload,
    acting_user_id: int = Depends(get_acting_user_id),
    identity: IdentityStore = Depends(get_identity_store),
    documents: DocumentStore = Depends(get_document_store),
):
    """
    Partial update; the response carries the modification recorded in the
    project's history (empty `changes` when nothing differed).
    """
    return projects.put_project(
        identity, documents, project_id, payload.to_document(), acting_user_id
    )


@router.delete("/{project_id}", response_model=ProjectDeletedResponse)
def delete_project(
    project_id: str, documents: DocumentStore = Depends(get_document_store)
):
    return projects.delete_project(documents, project_id)


@router.get("/{project_id}/team", response_model=TeamMembersResponse)
def get_team_members(
    project_id: str, identity: IdentityStore = Depends(get_identity_store)
):
    return projects.get_project_team_members(identity, project_id)


@router.put("/{project_id}/requirements", response_model=MessageResponse)
def update_requirements(
    project_id: str,
    payload: RequirementsRequest,
    documents: DocumentStore = Depends(get_document_store),
):
    requirements = [requirement.model_dump() for requirement in payload.requirements]
    return projects.update_requirements(documents, requirements)


@router.post("/{project_id}/image", response_model=ImageUploadResponse)
async def upload_image(
    project_id: str,
    file: Optional[UploadFile] = File(None),
    projectId: Optional[str] = Form(None),
    documents: DocumentStore = Depends(get_document_store),
    blobs: BlobStore = Depends(get_blob_store),
    settings: Settings = Depends(get_settings),
):
    content = await file.read() if file is not None else None
    # Store calls block; keep them off the event loop.
    return await run_in_threadpool(
        projects.upload_project_image,
        documents,
        blobs,
        projectId or project_id,
        file.filename if file is not None else None,
        content,
        file.content_type if file is not None else None,
        expires_at=settings.image_url_expires_at,
    )


@router.put(
    "/{project_id}/tasks",
    response_model=SuccessResponse,
    response_model_exclude_unset=True,
)
def update_tasks(
    project_id: str,
    payload: TasksRequest,
    documents: DocumentStore = Depends(get_document_store),
):
    return projects.update_tasks(
        documents, project_id, payload.requirementType, payload.elementId, payload.tasks
    )


@router.get("/{project_id}/tasks", response_model=TasksResponse)
def get_tasks(
    project_id: str,
    requirementType: Optional[str] = Query(None),
    elementId: Optional[str] = Query(None),
    documents: DocumentStore = Depends(get_document_store),
):
    return projects.get_tasks(documents, project_id, requirementType, elementId)
