from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from studenthub.core.policy import Viewer, require, skills_readable
from studenthub.db.models import PlacementOfficer, Profile, Skill, StudentSkill
from studenthub.db.repositories import Repository
from studenthub.errors import NotFound, Unauthorized, ValidationError
from studenthub.types import (
    FacultyClaims,
    PlacementOfficerClaims,
    PlacementOfficerUpdate,
    Principal,
    PrivacySettings,
    ProfileUpdate,
    ProvisioningClaims,
    StudentClaims,
)

logger = logging.getLogger(__name__)


def display_name(full_name: str, email: str) -> str:
    if full_name.strip():
        return full_name.strip()
    local_part = email.split("@", 1)[0].strip()
    return local_part or "New User"


def resolve_viewer(session: Session, principal: Principal) -> Viewer:
    profile = Repository(session).get_profile_by_principal(principal.id)
    return Viewer(
        principal_id=principal.id,
        role=principal.role,
        profile_id=profile.id if profile else None,
    )


class ProfileService:
    """Provisioning, profile edits, privacy and the skill catalog."""

    def __init__(self, session: Session):
        self.session = session
        self.repo = Repository(session)

    def provision(self, principal: Principal, claims: ProvisioningClaims) -> Profile | PlacementOfficer:
        if claims.role != principal.role:
            raise Unauthorized("claims role does not match the authenticated role")

        if isinstance(claims, PlacementOfficerClaims):
            existing_officer = self.repo.get_placement_officer_by_principal(principal.id)
            if existing_officer:
                return existing_officer
            officer = self.repo.create_placement_officer(
                principal_id=principal.id,
                full_name=display_name(claims.full_name, claims.email),
                email=claims.email,
                organization=claims.organization,
            )
            logger.info("Provisioned placement officer principal=%s", principal.id)
            return officer

        existing = self.repo.get_profile_by_principal(principal.id)
        if existing:
            return existing
        profile = self.repo.create_profile(
            principal_id=principal.id,
            role=claims.role,
            full_name=display_name(claims.full_name, claims.email),
            email=claims.email,
            department=claims.department,
            college=claims.college,
            year_of_study=claims.year_of_study if isinstance(claims, StudentClaims) else None,
        )
        logger.info("Provisioned %s profile principal=%s profile_id=%s", profile.role, principal.id, profile.id)
        return profile

    def ensure_provisioned(self, principal: Principal) -> Viewer:
        """Create the principal's record on first activity when the gateway sent an email.

        A concurrent first request may insert the same principal first; the
        loser rolls back and resolves the winner's record.
        """
        viewer = resolve_viewer(self.session, principal)
        if principal.role == "placement_officer":
            if principal.email and not self.repo.get_placement_officer_by_principal(principal.id):
                self._provision_once(
                    principal,
                    PlacementOfficerClaims(full_name=principal.name, email=principal.email),
                )
            return viewer
        if viewer.profile_id is None and principal.email:
            claims_type = StudentClaims if principal.role == "student" else FacultyClaims
            self._provision_once(principal, claims_type(full_name=principal.name, email=principal.email))
            viewer = resolve_viewer(self.session, principal)
        return viewer

    def _provision_once(self, principal: Principal, claims: ProvisioningClaims) -> None:
        try:
            self.provision(principal, claims)
        except IntegrityError:
            self.session.rollback()
            logger.info("Principal provisioned concurrently principal=%s", principal.id)

    def get_profile(self, viewer: Viewer, profile_id: int) -> Profile:
        profile = self.repo.get_profile(profile_id)
        if profile is None:
            raise NotFound("profile not found")
        require(viewer, profile, "read")
        return profile

    def own_profile(self, viewer: Viewer) -> Profile:
        if viewer.profile_id is None:
            raise NotFound("profile not provisioned")
        return self.get_profile(viewer, viewer.profile_id)

    def update_profile(self, viewer: Viewer, changes: ProfileUpdate) -> Profile:
        profile = self.own_profile(viewer)
        require(viewer, profile, "update")
        values = changes.model_dump(exclude_unset=True)
        if values.get("full_name") is None:
            values.pop("full_name", None)
        else:
            values["full_name"] = values["full_name"].strip()
        for key in ("department", "college", "bio"):
            if key in values and values[key] is None:
                values[key] = ""
        return self.repo.update_profile(profile.id, values)

    def update_privacy(self, viewer: Viewer, privacy: PrivacySettings) -> Profile:
        profile = self.own_profile(viewer)
        require(viewer, profile, "update")
        return self.repo.update_profile(profile.id, privacy.model_dump())

    def list_skills(self) -> list[Skill]:
        return self.repo.list_skills()

    def create_skill(self, viewer: Viewer, name: str, category: str = "") -> Skill:
        name = name.strip()
        require(viewer, Skill(name=name), "create")
        if not name:
            raise ValidationError("skill name is required")
        if self.repo.get_skill_by_name(name):
            raise ValidationError(f"skill '{name}' already exists")
        try:
            skill = self.repo.create_skill(name=name, category=category.strip())
        except IntegrityError as exc:
            self.session.rollback()
            raise ValidationError(f"skill '{name}' already exists") from exc
        logger.info("Skill created skill_id=%s name=%s", skill.id, skill.name)
        return skill

    def list_student_skills(self, viewer: Viewer, student_id: int) -> list[StudentSkill]:
        profile = self.get_profile(viewer, student_id)
        if not skills_readable(viewer, profile):
            return []
        return self.repo.list_student_skills([student_id]).get(student_id, [])

    def add_student_skill(self, viewer: Viewer, skill_id: int, proficiency_level: str) -> StudentSkill:
        require(viewer, StudentSkill(student_id=viewer.profile_id, skill_id=skill_id), "create")
        if proficiency_level not in {"beginner", "intermediate", "advanced"}:
            raise ValidationError("proficiency_level must be beginner, intermediate or advanced")
        if self.repo.get_skill(skill_id) is None:
            raise NotFound("skill not found")
        return self.repo.upsert_student_skill(viewer.profile_id, skill_id, proficiency_level)

    def remove_student_skill(self, viewer: Viewer, skill_id: int) -> None:
        if viewer.profile_id is None:
            raise NotFound("student_skill not found")
        item = self.repo.get_student_skill(viewer.profile_id, skill_id)
        if item is None:
            raise NotFound("student_skill not found")
        require(viewer, item, "delete")
        self.repo.delete_student_skill(item)

    def own_placement_officer(self, viewer: Viewer) -> PlacementOfficer:
        officer = self.repo.get_placement_officer_by_principal(viewer.principal_id)
        if officer is None:
            raise NotFound("placement_officer not found")
        require(viewer, officer, "read")
        return officer

    def update_placement_officer(self, viewer: Viewer, changes: PlacementOfficerUpdate) -> PlacementOfficer:
        officer = self.own_placement_officer(viewer)
        require(viewer, officer, "update")
        values = {key: value for key, value in changes.model_dump(exclude_unset=True).items() if value is not None}
        return self.repo.update_placement_officer(officer.id, values)
