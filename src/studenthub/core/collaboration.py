from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy.orm import Session

from studenthub.core.policy import Viewer, require
from studenthub.db.models import CollaborationRequest
from studenthub.db.repositories import Repository
from studenthub.errors import InvalidTransition, NotFound, Unauthorized, ValidationError

logger = logging.getLogger(__name__)

DECISION_STATUS = {"accept": "accepted", "decline": "declined"}
DIRECTIONS = ("all", "sent", "received")


class CollaborationWorkflow:
    def __init__(self, session: Session):
        self.session = session
        self.repo = Repository(session)

    def create(
        self,
        viewer: Viewer,
        *,
        requested_id: int,
        project_title: str,
        project_description: str = "",
        skills_needed: Sequence[str] = (),
    ) -> CollaborationRequest:
        if viewer.profile_id is None:
            raise Unauthorized("a profile is required to send collaboration requests")
        require(
            viewer,
            CollaborationRequest(requester_id=viewer.profile_id, requested_id=requested_id),
            "create",
        )
        if requested_id == viewer.profile_id:
            raise ValidationError("cannot request collaboration with yourself")

        requested = self.repo.get_profile(requested_id)
        if requested is None:
            raise NotFound("profile not found")
        require(viewer, requested, "read")

        project_title = project_title.strip()
        if not project_title:
            raise ValidationError("project title is required")

        skills = [name.strip() for name in skills_needed if name and name.strip()]
        item = self.repo.create_collaboration_request(
            requester_id=viewer.profile_id,
            requested_id=requested_id,
            project_title=project_title,
            project_description=project_description.strip(),
            skills_needed=skills,
        )
        logger.info(
            "Collaboration requested request_id=%s requester_id=%s requested_id=%s",
            item.id,
            item.requester_id,
            item.requested_id,
        )
        return item

    def get(self, viewer: Viewer, request_id: int) -> CollaborationRequest:
        item = self.repo.get_collaboration_request(request_id)
        if item is None:
            raise NotFound("collaboration_request not found")
        require(viewer, item, "read")
        return item

    def respond(self, viewer: Viewer, request_id: int, decision: str) -> CollaborationRequest:
        item = self.repo.get_collaboration_request(request_id)
        if item is None:
            raise NotFound("collaboration_request not found")
        require(viewer, item, "respond")

        status = DECISION_STATUS.get(decision)
        if status is None:
            raise ValidationError(f"decision must be one of {sorted(DECISION_STATUS)}")
        if item.status != "pending":
            raise InvalidTransition(f"collaboration request {request_id} is already {item.status}")
        if not self.repo.transition_collaboration_request(request_id, status=status):
            logger.warning("Lost collaboration response race request_id=%s", request_id)
            raise InvalidTransition(f"collaboration request {request_id} was already answered")

        logger.info("Collaboration request %s request_id=%s", status, request_id)
        return self.repo.get_collaboration_request(request_id)

    def list(self, viewer: Viewer, direction: str = "all") -> list[CollaborationRequest]:
        if direction not in DIRECTIONS:
            raise ValidationError(f"direction must be one of {list(DIRECTIONS)}")
        if viewer.profile_id is None:
            return []
        return self.repo.list_collaboration_requests(viewer.profile_id, direction)
