from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from studenthub.types import (
    CollaborationDecision,
    CollaborationStatus,
    DocumentStatus,
    PrivacySettings,
    ProficiencyLevel,
    ProfileRole,
    ProvisioningClaims,
    Role,
)


class ProvisionRequest(BaseModel):
    claims: ProvisioningClaims


class ProfileResponse(BaseModel):
    id: int
    role: ProfileRole
    full_name: str
    email: str
    department: str
    college: str
    year_of_study: int | None
    bio: str
    privacy: PrivacySettings


class PlacementOfficerResponse(BaseModel):
    id: int
    full_name: str
    email: str
    organization: str


class MeResponse(BaseModel):
    principal_id: str
    role: Role
    profile: ProfileResponse | None = None
    placement_officer: PlacementOfficerResponse | None = None


class SkillCreateRequest(BaseModel):
    name: str
    category: str = ""


class SkillResponse(BaseModel):
    id: int
    name: str
    category: str


class StudentSkillRequest(BaseModel):
    skill_id: int
    proficiency_level: ProficiencyLevel = "beginner"


class StudentSkillResponse(BaseModel):
    skill_id: int
    name: str
    category: str
    proficiency_level: ProficiencyLevel


class DocumentResponse(BaseModel):
    id: int
    student_id: int
    title: str
    description: str
    file_url: str
    file_type: str
    file_size: int
    status: DocumentStatus
    uploaded_at: datetime | None
    approved_by: int | None
    approved_at: datetime | None
    rejection_reason: str | None
    points_awarded: int


class ApproveRequest(BaseModel):
    points: int | None = None


class RejectRequest(BaseModel):
    reason: str = ""


class DeleteDocumentResponse(BaseModel):
    document_id: int
    deleted: bool = True
    storage_cleaned: bool
    warning: str | None = None


class CollaborationCreateRequest(BaseModel):
    requested_id: int
    project_title: str
    project_description: str = ""
    skills_needed: list[str] = Field(default_factory=list)


class CollaborationRespondRequest(BaseModel):
    decision: CollaborationDecision


class CollaborationResponse(BaseModel):
    id: int
    requester_id: int
    requested_id: int
    project_title: str
    project_description: str
    skills_needed: list[str]
    status: CollaborationStatus
    created_at: datetime | None
    updated_at: datetime | None
