from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.orm import Session

from studenthub.db.models import (
    CollaborationRequest,
    Document,
    PlacementOfficer,
    Profile,
    Skill,
    StudentSkill,
)


def utcnow() -> datetime:
    return datetime.now(UTC)


class Repository:
    def __init__(self, session: Session):
        self.session = session

    def create_profile(
        self,
        *,
        principal_id: str,
        role: str,
        full_name: str,
        email: str,
        department: str = "",
        college: str = "",
        year_of_study: int | None = None,
    ) -> Profile:
        profile = Profile(
            principal_id=principal_id,
            role=role,
            full_name=full_name,
            email=email,
            department=department,
            college=college,
            year_of_study=year_of_study,
        )
        self.session.add(profile)
        self.session.commit()
        self.session.refresh(profile)
        return profile

    def get_profile(self, profile_id: int) -> Profile | None:
        return self.session.get(Profile, profile_id)

    def get_profile_by_principal(self, principal_id: str) -> Profile | None:
        return self.session.scalar(select(Profile).where(Profile.principal_id == principal_id))

    def list_student_profiles(self) -> list[Profile]:
        statement = select(Profile).where(Profile.role == "student").order_by(Profile.id.asc())
        return list(self.session.scalars(statement).all())

    def update_profile(self, profile_id: int, values: dict[str, Any]) -> Profile:
        profile = self.session.get(Profile, profile_id)
        if not profile:
            raise ValueError(f"profile {profile_id} not found")
        for key, value in values.items():
            setattr(profile, key, value)
        self.session.commit()
        self.session.refresh(profile)
        return profile

    def create_placement_officer(
        self,
        *,
        principal_id: str,
        full_name: str,
        email: str,
        organization: str = "",
    ) -> PlacementOfficer:
        officer = PlacementOfficer(
            principal_id=principal_id,
            full_name=full_name,
            email=email,
            organization=organization,
        )
        self.session.add(officer)
        self.session.commit()
        self.session.refresh(officer)
        return officer

    def get_placement_officer_by_principal(self, principal_id: str) -> PlacementOfficer | None:
        return self.session.scalar(
            select(PlacementOfficer).where(PlacementOfficer.principal_id == principal_id)
        )

    def update_placement_officer(self, officer_id: int, values: dict[str, Any]) -> PlacementOfficer:
        officer = self.session.get(PlacementOfficer, officer_id)
        if not officer:
            raise ValueError(f"placement officer {officer_id} not found")
        for key, value in values.items():
            setattr(officer, key, value)
        self.session.commit()
        self.session.refresh(officer)
        return officer

    def create_skill(self, name: str, category: str = "") -> Skill:
        skill = Skill(name=name, category=category)
        self.session.add(skill)
        self.session.commit()
        self.session.refresh(skill)
        return skill

    def get_skill(self, skill_id: int) -> Skill | None:
        return self.session.get(Skill, skill_id)

    def get_skill_by_name(self, name: str) -> Skill | None:
        return self.session.scalar(select(Skill).where(func.lower(Skill.name) == name.strip().lower()))

    def list_skills(self) -> list[Skill]:
        return list(self.session.scalars(select(Skill).order_by(Skill.name.asc())).all())

    def get_student_skill(self, student_id: int, skill_id: int) -> StudentSkill | None:
        return self.session.scalar(
            select(StudentSkill).where(
                and_(StudentSkill.student_id == student_id, StudentSkill.skill_id == skill_id)
            )
        )

    def upsert_student_skill(self, student_id: int, skill_id: int, proficiency_level: str) -> StudentSkill:
        existing = self.get_student_skill(student_id, skill_id)
        if existing:
            existing.proficiency_level = proficiency_level
            obj = existing
        else:
            obj = StudentSkill(
                student_id=student_id,
                skill_id=skill_id,
                proficiency_level=proficiency_level,
            )
            self.session.add(obj)

        self.session.commit()
        self.session.refresh(obj)
        return obj

    def delete_student_skill(self, student_skill: StudentSkill) -> None:
        self.session.delete(student_skill)
        self.session.commit()

    def list_student_skills(self, student_ids: Iterable[int]) -> dict[int, list[StudentSkill]]:
        ids = list(student_ids)
        grouped: dict[int, list[StudentSkill]] = defaultdict(list)
        if not ids:
            return grouped
        statement = (
            select(StudentSkill)
            .join(Skill, Skill.id == StudentSkill.skill_id)
            .where(StudentSkill.student_id.in_(ids))
            .order_by(Skill.name.asc())
        )
        for row in self.session.scalars(statement).all():
            grouped[row.student_id].append(row)
        return grouped

    def create_document(
        self,
        *,
        student_id: int,
        title: str,
        description: str,
        file_ref: str,
        file_type: str,
        file_size: int,
    ) -> Document:
        document = Document(
            student_id=student_id,
            title=title,
            description=description,
            file_ref=file_ref,
            file_type=file_type,
            file_size=file_size,
            status="pending",
            uploaded_at=utcnow(),
            points_awarded=0,
        )
        self.session.add(document)
        self.session.commit()
        self.session.refresh(document)
        return document

    def get_document(self, document_id: int) -> Document | None:
        return self.session.get(Document, document_id)

    def get_document_by_file_ref(self, file_ref: str) -> Document | None:
        return self.session.scalar(select(Document).where(Document.file_ref == file_ref))

    def list_documents_for_student(self, student_id: int) -> list[Document]:
        statement = (
            select(Document)
            .where(Document.student_id == student_id)
            .order_by(Document.uploaded_at.desc(), Document.id.desc())
        )
        return list(self.session.scalars(statement).all())

    def list_pending_documents(self) -> list[Document]:
        statement = (
            select(Document)
            .where(Document.status == "pending")
            .order_by(Document.uploaded_at.asc(), Document.id.asc())
        )
        return list(self.session.scalars(statement).all())

    def list_scoring_documents(self, student_id: int) -> list[Document]:
        statement = (
            select(Document)
            .where(
                and_(
                    Document.student_id == student_id,
                    Document.status == "approved",
                    Document.points_awarded > 0,
                )
            )
            .order_by(Document.approved_at.desc(), Document.id.desc())
        )
        return list(self.session.scalars(statement).all())

    def transition_document(
        self,
        document_id: int,
        *,
        values: dict[str, Any],
        expected_status: str = "pending",
    ) -> bool:
        """Apply ``values`` only if the row still has ``expected_status``.

        Returns False when another writer got there first.
        """
        result = self.session.execute(
            update(Document)
            .where(and_(Document.id == document_id, Document.status == expected_status))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        return result.rowcount == 1

    def delete_document(self, document: Document) -> None:
        self.session.delete(document)
        self.session.commit()

    def count_documents_by_status(self, student_id: int) -> dict[str, int]:
        statement = (
            select(Document.status, func.count(Document.id))
            .where(Document.student_id == student_id)
            .group_by(Document.status)
        )
        return {status: count for status, count in self.session.execute(statement).all()}

    def sum_approved_points(self, student_ids: Iterable[int]) -> dict[int, int]:
        ids = list(student_ids)
        if not ids:
            return {}
        statement = (
            select(Document.student_id, func.coalesce(func.sum(Document.points_awarded), 0))
            .where(
                and_(
                    Document.student_id.in_(ids),
                    Document.status == "approved",
                    Document.points_awarded > 0,
                )
            )
            .group_by(Document.student_id)
        )
        totals = {student_id: 0 for student_id in ids}
        for student_id, total in self.session.execute(statement).all():
            totals[student_id] = int(total)
        return totals

    def create_collaboration_request(
        self,
        *,
        requester_id: int,
        requested_id: int,
        project_title: str,
        project_description: str = "",
        skills_needed: list[str] | None = None,
    ) -> CollaborationRequest:
        item = CollaborationRequest(
            requester_id=requester_id,
            requested_id=requested_id,
            project_title=project_title,
            project_description=project_description,
            skills_needed_json=list(skills_needed or []),
            status="pending",
        )
        self.session.add(item)
        self.session.commit()
        self.session.refresh(item)
        return item

    def get_collaboration_request(self, request_id: int) -> CollaborationRequest | None:
        return self.session.get(CollaborationRequest, request_id)

    def list_collaboration_requests(self, profile_id: int, direction: str = "all") -> list[CollaborationRequest]:
        if direction == "sent":
            condition = CollaborationRequest.requester_id == profile_id
        elif direction == "received":
            condition = CollaborationRequest.requested_id == profile_id
        elif direction == "all":
            condition = or_(
                CollaborationRequest.requester_id == profile_id,
                CollaborationRequest.requested_id == profile_id,
            )
        else:
            raise ValueError(f"unsupported direction '{direction}'")

        statement = (
            select(CollaborationRequest)
            .where(condition)
            .order_by(CollaborationRequest.created_at.desc(), CollaborationRequest.id.desc())
        )
        return list(self.session.scalars(statement).all())

    def transition_collaboration_request(
        self,
        request_id: int,
        *,
        status: str,
        expected_status: str = "pending",
    ) -> bool:
        result = self.session.execute(
            update(CollaborationRequest)
            .where(
                and_(
                    CollaborationRequest.id == request_id,
                    CollaborationRequest.status == expected_status,
                )
            )
            .values(status=status)
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        return result.rowcount == 1
