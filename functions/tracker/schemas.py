"""
Pydantic schemas for the project tracker API.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProjectPayload(BaseModel):
    """
    Project fields sent by the client. Unknown fields are kept and stored
    as-is; only the fields actually sent are written.
    """

    model_config = ConfigDict(extra="allow")

    nombreProyecto: Optional[str] = None
    descripcion: Optional[str] = None
    estatus: Optional[str] = None
    EP: Optional[list[dict]] = None
    HU: Optional[list[dict]] = None
    RF: Optional[list[dict]] = None
    RNF: Optional[list[dict]] = None
    fechaCreacion: Optional[Any] = None
    imageUrl: Optional[str] = None

    def to_document(self) -> dict:
        return self.model_dump(exclude_unset=True)


class ProjectResponse(BaseModel):
    id: str
    nombreProyecto: Optional[str] = None
    descripcion: Optional[str] = None
    estatus: Optional[str] = None
    EP: Optional[list] = None
    HU: Optional[list] = None
    RF: Optional[list] = None
    RNF: Optional[list] = None
    fechaCreacion: Optional[Any] = None
    imageUrl: Optional[str] = None
    modificationHistory: list = Field(default_factory=list)


class ProjectAddedResponse(BaseModel):
    project_added: bool
    id: str
    descripcion: Optional[str] = None
    estatus: Optional[str] = None


class ProjectUpdatedResponse(BaseModel):
    project_updated: bool
    id: str
    modification: dict


class ProjectDeletedResponse(BaseModel):
    project_deleted: bool


class LinkRequest(BaseModel):
    userId: Optional[int] = None
    projectId: Optional[str] = None


class SuccessResponse(BaseModel):
    success: Literal[True]
    message: Optional[str] = None


class TeamMember(BaseModel):
    UserID: int
    username: Optional[str] = None
    lastname: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None


class TeamMembersResponse(BaseModel):
    success: Literal[True]
    teamMembers: list[TeamMember]


class RequirementUpdate(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    descripcion: Optional[str] = None
    estatus: Optional[str] = None


class RequirementsRequest(BaseModel):
    requirements: list[RequirementUpdate] = Field(default_factory=list)


class RatingsRequest(BaseModel):
    ratings: Any = None


class MessageResponse(BaseModel):
    message: str


class TasksRequest(BaseModel):
    requirementType: Optional[str] = None
    elementId: Optional[Any] = None
    tasks: list = Field(default_factory=list)


class TasksResponse(BaseModel):
    tasks: list


class ImageUploadResponse(BaseModel):
    success: Literal[True]
    imageUrl: str
