from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from studenthub.config import Settings, get_settings
from studenthub.core.policy import Viewer, require, require_role
from studenthub.core.storage import StorageBackend, get_storage
from studenthub.db.models import Document
from studenthub.db.repositories import Repository, utcnow
from studenthub.errors import (
    InvalidTransition,
    NotFound,
    StorageCleanupFailed,
    Unauthorized,
    ValidationError,
)
from studenthub.types import MAX_POINTS, MIN_POINTS

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DeletionResult:
    document_id: int
    cleanup_error: StorageCleanupFailed | None = None

    @property
    def storage_cleaned(self) -> bool:
        return self.cleanup_error is None


def validate_points(points: int | None) -> int:
    if points is None:
        return 0
    if isinstance(points, bool) or not isinstance(points, int):
        raise ValidationError("points must be an integer")
    if not MIN_POINTS <= points <= MAX_POINTS:
        raise ValidationError(f"points must be between {MIN_POINTS} and {MAX_POINTS}")
    return points


class DocumentReviewEngine:
    """Upload, review and removal of achievement documents.

    ``pending`` is the only state with outgoing transitions. Approve and
    reject are conditional updates on ``status = 'pending'`` so two racing
    reviewers cannot both win.
    """

    def __init__(
        self,
        session: Session,
        *,
        settings: Settings | None = None,
        storage: StorageBackend | None = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.repo = Repository(session)
        self.storage = storage or get_storage(self.settings)

    def create(
        self,
        viewer: Viewer,
        *,
        title: str,
        filename: str,
        content: bytes,
        description: str = "",
        file_type: str = "",
    ) -> Document:
        require(viewer, Document(student_id=viewer.profile_id), "create")

        title = title.strip()
        if not title:
            raise ValidationError("title is required")
        extension = Path(filename).suffix.lower().lstrip(".")
        if extension not in self.settings.upload_extension_set:
            raise ValidationError(f"file type '.{extension}' is not allowed")
        if not content:
            raise ValidationError("file is empty")
        if len(content) > self.settings.max_upload_bytes:
            raise ValidationError(f"file exceeds {self.settings.max_upload_bytes} bytes")

        file_type = file_type or mimetypes.guess_type(filename)[0] or "application/octet-stream"
        locator = self.storage.put(content, viewer.principal_id, filename)
        try:
            document = self.repo.create_document(
                student_id=viewer.profile_id,
                title=title,
                description=description.strip(),
                file_ref=locator,
                file_type=file_type,
                file_size=len(content),
            )
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception("Document insert failed, removing stored file locator=%s", locator)
            self._cleanup(locator)
            raise

        logger.info("Document uploaded document_id=%s student_id=%s", document.id, document.student_id)
        return document

    def get(self, viewer: Viewer, document_id: int) -> Document:
        document = self.repo.get_document(document_id)
        if document is None:
            raise NotFound("document not found")
        require(viewer, document, "read")
        return document

    def get_by_locator(self, viewer: Viewer, locator: str) -> Document:
        document = self.repo.get_document_by_file_ref(locator)
        if document is None:
            raise NotFound("file not found")
        require(viewer, document, "read")
        return document

    def list_own(self, viewer: Viewer) -> list[Document]:
        require_role(viewer, "student")
        if viewer.profile_id is None:
            return []
        return self.repo.list_documents_for_student(viewer.profile_id)

    def list_pending(self, viewer: Viewer) -> list[Document]:
        require_role(viewer, "faculty")
        return self.repo.list_pending_documents()

    def approve(self, viewer: Viewer, document_id: int, points: int | None = None) -> Document:
        document = self._load_for_review(viewer, document_id)
        awarded = validate_points(points)
        self._transition(
            document,
            viewer,
            {
                "status": "approved",
                "approved_by": viewer.profile_id,
                "approved_at": utcnow(),
                "points_awarded": awarded,
            },
        )
        logger.info(
            "Document approved document_id=%s reviewer_id=%s points=%s",
            document_id,
            viewer.profile_id,
            awarded,
        )
        return self.repo.get_document(document_id)

    def reject(self, viewer: Viewer, document_id: int, reason: str) -> Document:
        document = self._load_for_review(viewer, document_id)
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("a rejection reason is required")
        self._transition(
            document,
            viewer,
            {
                "status": "rejected",
                "approved_by": viewer.profile_id,
                "approved_at": utcnow(),
                "rejection_reason": reason,
                "points_awarded": 0,
            },
        )
        logger.info("Document rejected document_id=%s reviewer_id=%s", document_id, viewer.profile_id)
        return self.repo.get_document(document_id)

    def delete(self, viewer: Viewer, document_id: int) -> DeletionResult:
        document = self.repo.get_document(document_id)
        if document is None:
            raise NotFound("document not found")
        require(viewer, document, "delete")

        locator = document.file_ref
        self.repo.delete_document(document)
        logger.info("Document deleted document_id=%s", document_id)
        return DeletionResult(document_id=document_id, cleanup_error=self._cleanup(locator))

    def file_url(self, document: Document) -> str:
        return self.storage.get_url(document.file_ref)

    def _load_for_review(self, viewer: Viewer, document_id: int) -> Document:
        document = self.repo.get_document(document_id)
        if document is None:
            raise NotFound("document not found")
        require(viewer, document, "review")
        if viewer.profile_id is None:
            raise Unauthorized("reviewer has no faculty profile")
        return document

    def _transition(self, document: Document, viewer: Viewer, values: dict) -> None:
        if document.status != "pending":
            raise InvalidTransition(f"document {document.id} is already {document.status}")
        if not self.repo.transition_document(document.id, values=values, expected_status="pending"):
            logger.warning(
                "Lost review race document_id=%s reviewer_id=%s target=%s",
                document.id,
                viewer.profile_id,
                values["status"],
            )
            raise InvalidTransition(f"document {document.id} was already reviewed")

    def _cleanup(self, locator: str) -> StorageCleanupFailed | None:
        try:
            self.storage.delete(locator)
        except StorageCleanupFailed as exc:
            logger.warning("Storage cleanup failed locator=%s reason=%s", locator, exc.reason)
            return exc
        return None
