from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, field_validator

Role = Literal["student", "faculty", "placement_officer"]
ProfileRole = Literal["student", "faculty"]
DocumentStatus = Literal["pending", "approved", "rejected"]
CollaborationStatus = Literal["pending", "accepted", "declined"]
CollaborationDecision = Literal["accept", "decline"]
CollaborationDirection = Literal["all", "sent", "received"]
ProficiencyLevel = Literal["beginner", "intermediate", "advanced"]
Level = Literal["Newcomer", "Beginner", "Intermediate", "Advanced", "Expert"]

ROLES: tuple[str, ...] = ("student", "faculty", "placement_officer")
MIN_POINTS = 0
MAX_POINTS = 100


class Principal(BaseModel):
    """Authenticated caller as issued by the identity provider."""

    id: str
    role: Role
    email: str = ""
    name: str = ""

    @field_validator("id")
    @classmethod
    def validate_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("principal id must not be blank")
        return value


class PrivacySettings(BaseModel):
    profile_visible: bool = True
    skills_visible: bool = True
    contact_visible: bool = False


class StudentClaims(BaseModel):
    role: Literal["student"] = "student"
    full_name: str = ""
    email: str
    college: str = ""
    department: str = ""
    year_of_study: int | None = None


class FacultyClaims(BaseModel):
    role: Literal["faculty"] = "faculty"
    full_name: str = ""
    email: str
    college: str = ""
    department: str = ""


class PlacementOfficerClaims(BaseModel):
    role: Literal["placement_officer"] = "placement_officer"
    full_name: str = ""
    email: str
    organization: str = ""


ProvisioningClaims = Annotated[
    Union[StudentClaims, FacultyClaims, PlacementOfficerClaims],
    Field(discriminator="role"),
]


class ProfileUpdate(BaseModel):
    full_name: str | None = None
    department: str | None = None
    college: str | None = None
    year_of_study: int | None = None
    bio: str | None = None

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            raise ValueError("full_name must not be blank")
        return value

    @field_validator("year_of_study")
    @classmethod
    def validate_year(cls, value: int | None) -> int | None:
        if value is not None and not 1 <= value <= 10:
            raise ValueError("year_of_study must be between 1 and 10")
        return value


class PlacementOfficerUpdate(BaseModel):
    full_name: str | None = None
    organization: str | None = None


class SearchFilters(BaseModel):
    text: str = ""
    department: str | None = None
    college: str | None = None
    skill: str | None = None


class VisibleSkill(BaseModel):
    skill_id: int
    name: str
    category: str = ""
    proficiency_level: ProficiencyLevel


class ProfileView(BaseModel):
    id: int
    role: ProfileRole
    full_name: str
    email: str | None = None
    department: str = ""
    college: str = ""
    year_of_study: int | None = None
    bio: str = ""


class StudentSearchResult(BaseModel):
    profile: ProfileView
    skills: list[VisibleSkill] = Field(default_factory=list)
    total_score: int = 0


class ScoreSummary(BaseModel):
    student_id: int
    total_score: int
    level: Level
    progress: float
    next_level_at: int | None = None


class DocumentStats(BaseModel):
    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0


class Achievement(BaseModel):
    document_id: int
    title: str
    description: str = ""
    file_type: str = ""
    points_awarded: int
    approved_at: datetime | None = None


class AchievementSummary(BaseModel):
    score: ScoreSummary
    stats: DocumentStats
    achievements: list[Achievement] = Field(default_factory=list)
