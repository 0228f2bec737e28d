from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from studenthub.api.deps import get_db, get_principal, get_viewer
from studenthub.api.schemas import (
    ApproveRequest,
    CollaborationCreateRequest,
    CollaborationRespondRequest,
    CollaborationResponse,
    DeleteDocumentResponse,
    DocumentResponse,
    MeResponse,
    PlacementOfficerResponse,
    ProfileResponse,
    ProvisionRequest,
    RejectRequest,
    SkillCreateRequest,
    SkillResponse,
    StudentSkillRequest,
    StudentSkillResponse,
)
from studenthub.core.collaboration import CollaborationWorkflow
from studenthub.core.discovery import StudentDiscovery
from studenthub.core.documents import DocumentReviewEngine
from studenthub.core.policy import Viewer, contact_readable
from studenthub.core.profiles import ProfileService, resolve_viewer
from studenthub.core.scoring import ScoreAggregator
from studenthub.core.storage import LocalFileStorage
from studenthub.db.models import CollaborationRequest, Document, PlacementOfficer, Profile, StudentSkill
from studenthub.errors import NotFound
from studenthub.types import (
    AchievementSummary,
    CollaborationDirection,
    PlacementOfficerUpdate,
    Principal,
    PrivacySettings,
    ProfileUpdate,
    ScoreSummary,
    SearchFilters,
    StudentSearchResult,
)

router = APIRouter(prefix="/api", tags=["api"])


def _profile_response(profile: Profile) -> ProfileResponse:
    return ProfileResponse(
        id=profile.id,
        role=profile.role,
        full_name=profile.full_name,
        email=profile.email,
        department=profile.department,
        college=profile.college,
        year_of_study=profile.year_of_study,
        bio=profile.bio,
        privacy=PrivacySettings(
            profile_visible=profile.profile_visible,
            skills_visible=profile.skills_visible,
            contact_visible=profile.contact_visible,
        ),
    )


def _officer_response(officer: PlacementOfficer) -> PlacementOfficerResponse:
    return PlacementOfficerResponse(
        id=officer.id,
        full_name=officer.full_name,
        email=officer.email,
        organization=officer.organization,
    )


def _document_response(engine: DocumentReviewEngine, document: Document) -> DocumentResponse:
    return DocumentResponse(
        id=document.id,
        student_id=document.student_id,
        title=document.title,
        description=document.description,
        file_url=engine.file_url(document),
        file_type=document.file_type,
        file_size=document.file_size,
        status=document.status,
        uploaded_at=document.uploaded_at,
        approved_by=document.approved_by,
        approved_at=document.approved_at,
        rejection_reason=document.rejection_reason,
        points_awarded=document.points_awarded,
    )


def _student_skill_response(item: StudentSkill) -> StudentSkillResponse:
    return StudentSkillResponse(
        skill_id=item.skill_id,
        name=item.skill.name,
        category=item.skill.category,
        proficiency_level=item.proficiency_level,
    )


def _collaboration_response(item: CollaborationRequest) -> CollaborationResponse:
    return CollaborationResponse(
        id=item.id,
        requester_id=item.requester_id,
        requested_id=item.requested_id,
        project_title=item.project_title,
        project_description=item.project_description,
        skills_needed=list(item.skills_needed_json or []),
        status=item.status,
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


def _me_response(db: Session, viewer: Viewer) -> MeResponse:
    service = ProfileService(db)
    response = MeResponse(principal_id=viewer.principal_id, role=viewer.role)
    if viewer.profile_id is not None:
        response.profile = _profile_response(service.own_profile(viewer))
    elif viewer.role == "placement_officer":
        officer = service.repo.get_placement_officer_by_principal(viewer.principal_id)
        if officer:
            response.placement_officer = _officer_response(officer)
    return response


@router.post("/me", response_model=MeResponse)
def provision_me(
    payload: ProvisionRequest,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> MeResponse:
    ProfileService(db).provision(principal, payload.claims)
    return _me_response(db, resolve_viewer(db, principal))


@router.get("/me", response_model=MeResponse)
def get_me(viewer: Viewer = Depends(get_viewer), db: Session = Depends(get_db)) -> MeResponse:
    return _me_response(db, viewer)


@router.patch("/me/profile", response_model=ProfileResponse)
def update_my_profile(
    payload: ProfileUpdate,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
) -> ProfileResponse:
    return _profile_response(ProfileService(db).update_profile(viewer, payload))


@router.put("/me/privacy", response_model=ProfileResponse)
def update_my_privacy(
    payload: PrivacySettings,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
) -> ProfileResponse:
    return _profile_response(ProfileService(db).update_privacy(viewer, payload))


@router.get("/me/achievements", response_model=AchievementSummary)
def my_achievements(viewer: Viewer = Depends(get_viewer), db: Session = Depends(get_db)) -> AchievementSummary:
    if viewer.profile_id is None:
        raise NotFound("profile not provisioned")
    return ScoreAggregator(db).achievement_summary(viewer, viewer.profile_id)


@router.get("/profiles/{profile_id}", response_model=ProfileResponse)
def get_profile(
    profile_id: int,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
) -> ProfileResponse:
    profile = ProfileService(db).get_profile(viewer, profile_id)
    response = _profile_response(profile)
    if not contact_readable(viewer, profile):
        response.email = ""
    return response


@router.get("/profiles/{profile_id}/skills", response_model=list[StudentSkillResponse])
def list_profile_skills(
    profile_id: int,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
) -> list[StudentSkillResponse]:
    rows = ProfileService(db).list_student_skills(viewer, profile_id)
    return [_student_skill_response(row) for row in rows]


@router.get("/profiles/{profile_id}/score", response_model=ScoreSummary)
def get_total_score(
    profile_id: int,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
) -> ScoreSummary:
    return ScoreAggregator(db).score_summary(viewer, profile_id)


@router.get("/skills", response_model=list[SkillResponse])
def list_skills(viewer: Viewer = Depends(get_viewer), db: Session = Depends(get_db)) -> list[SkillResponse]:
    return [
        SkillResponse(id=row.id, name=row.name, category=row.category)
        for row in ProfileService(db).list_skills()
    ]


@router.post("/skills", response_model=SkillResponse, status_code=201)
def create_skill(
    payload: SkillCreateRequest,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
) -> SkillResponse:
    skill = ProfileService(db).create_skill(viewer, payload.name, payload.category)
    return SkillResponse(id=skill.id, name=skill.name, category=skill.category)


@router.post("/me/skills", response_model=StudentSkillResponse)
def add_my_skill(
    payload: StudentSkillRequest,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
) -> StudentSkillResponse:
    row = ProfileService(db).add_student_skill(viewer, payload.skill_id, payload.proficiency_level)
    return _student_skill_response(row)


@router.delete("/me/skills/{skill_id}", status_code=204)
def remove_my_skill(
    skill_id: int,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
) -> None:
    ProfileService(db).remove_student_skill(viewer, skill_id)


@router.post("/documents", response_model=DocumentResponse, status_code=201)
def create_document(
    title: str = Form(...),
    description: str = Form(""),
    file: UploadFile = File(...),
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
) -> DocumentResponse:
    engine = DocumentReviewEngine(db)
    document = engine.create(
        viewer,
        title=title,
        description=description,
        filename=file.filename or "",
        content=file.file.read(),
        file_type=file.content_type or "",
    )
    return _document_response(engine, document)


@router.get("/documents", response_model=list[DocumentResponse])
def list_own_documents(viewer: Viewer = Depends(get_viewer), db: Session = Depends(get_db)) -> list[DocumentResponse]:
    engine = DocumentReviewEngine(db)
    return [_document_response(engine, row) for row in engine.list_own(viewer)]


@router.get("/documents/pending", response_model=list[DocumentResponse])
def list_pending_documents(
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
) -> list[DocumentResponse]:
    engine = DocumentReviewEngine(db)
    return [_document_response(engine, row) for row in engine.list_pending(viewer)]


@router.get("/documents/{document_id}", response_model=DocumentResponse)
def get_document(
    document_id: int,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
) -> DocumentResponse:
    engine = DocumentReviewEngine(db)
    return _document_response(engine, engine.get(viewer, document_id))


@router.post("/documents/{document_id}/approve", response_model=DocumentResponse)
def approve_document(
    document_id: int,
    payload: ApproveRequest,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
) -> DocumentResponse:
    engine = DocumentReviewEngine(db)
    return _document_response(engine, engine.approve(viewer, document_id, payload.points))


@router.post("/documents/{document_id}/reject", response_model=DocumentResponse)
def reject_document(
    document_id: int,
    payload: RejectRequest,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
) -> DocumentResponse:
    engine = DocumentReviewEngine(db)
    return _document_response(engine, engine.reject(viewer, document_id, payload.reason))


@router.delete("/documents/{document_id}", response_model=DeleteDocumentResponse)
def delete_document(
    document_id: int,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
) -> DeleteDocumentResponse:
    result = DocumentReviewEngine(db).delete(viewer, document_id)
    return DeleteDocumentResponse(
        document_id=result.document_id,
        storage_cleaned=result.storage_cleaned,
        warning=result.cleanup_error.message if result.cleanup_error else None,
    )


@router.get("/files/{locator:path}")
def download_file(
    locator: str,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
) -> FileResponse:
    engine = DocumentReviewEngine(db)
    document = engine.get_by_locator(viewer, locator)
    if not isinstance(engine.storage, LocalFileStorage):
        raise NotFound("file not found")
    path = engine.storage.resolve(locator)
    if not path.is_file():
        raise NotFound("file not found")
    return FileResponse(path, media_type=document.file_type or None)


@router.get("/students/search", response_model=list[StudentSearchResult])
def search_students(
    q: str = "",
    department: str | None = None,
    college: str | None = None,
    skill: str | None = None,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
) -> list[StudentSearchResult]:
    filters = SearchFilters(text=q, department=department, college=college, skill=skill)
    return StudentDiscovery(db).search(viewer, filters)


@router.post("/collaborations", response_model=CollaborationResponse, status_code=201)
def create_collaboration_request(
    payload: CollaborationCreateRequest,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
) -> CollaborationResponse:
    item = CollaborationWorkflow(db).create(
        viewer,
        requested_id=payload.requested_id,
        project_title=payload.project_title,
        project_description=payload.project_description,
        skills_needed=payload.skills_needed,
    )
    return _collaboration_response(item)


@router.get("/collaborations", response_model=list[CollaborationResponse])
def list_collaboration_requests(
    direction: CollaborationDirection = "all",
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
) -> list[CollaborationResponse]:
    return [_collaboration_response(row) for row in CollaborationWorkflow(db).list(viewer, direction)]


@router.post("/collaborations/{request_id}/respond", response_model=CollaborationResponse)
def respond_to_collaboration_request(
    request_id: int,
    payload: CollaborationRespondRequest,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
) -> CollaborationResponse:
    item = CollaborationWorkflow(db).respond(viewer, request_id, payload.decision)
    return _collaboration_response(item)


@router.get("/placement-officers/me", response_model=PlacementOfficerResponse)
def get_my_placement_officer(
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
) -> PlacementOfficerResponse:
    return _officer_response(ProfileService(db).own_placement_officer(viewer))


@router.patch("/placement-officers/me", response_model=PlacementOfficerResponse)
def update_my_placement_officer(
    payload: PlacementOfficerUpdate,
    viewer: Viewer = Depends(get_viewer),
    db: Session = Depends(get_db),
) -> PlacementOfficerResponse:
    return _officer_response(ProfileService(db).update_placement_officer(viewer, payload))
