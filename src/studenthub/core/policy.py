"""Authorization policy.

Every read and write in the services goes through :func:`can_read`,
:func:`can_write` or :func:`require`. Decisions are pure functions of the
viewer and the record as loaded in the current request; nothing is cached.

Rules live in ``RULES``, keyed by (resource kind, action). A missing key means
the action is never allowed.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal

from studenthub.db.models import (
    CollaborationRequest,
    Document,
    PlacementOfficer,
    Profile,
    Skill,
    StudentSkill,
)
from studenthub.errors import NotFound, Unauthorized

Action = Literal["read", "create", "update", "delete", "review", "respond"]


@dataclass(slots=True, frozen=True)
class Viewer:
    """A principal resolved against the store for the current request."""

    principal_id: str
    role: str
    profile_id: int | None = None

    @property
    def is_student(self) -> bool:
        return self.role == "student" and self.profile_id is not None

    @property
    def is_faculty(self) -> bool:
        return self.role == "faculty"

    def owns(self, profile_id: int | None) -> bool:
        return self.profile_id is not None and profile_id == self.profile_id


RESOURCE_KINDS: dict[type, str] = {
    Profile: "profile",
    Skill: "skill",
    StudentSkill: "student_skill",
    Document: "document",
    CollaborationRequest: "collaboration_request",
    PlacementOfficer: "placement_officer",
}


def profile_readable(viewer: Viewer, profile: Profile) -> bool:
    return viewer.owns(profile.id) or bool(profile.profile_visible)


def skills_readable(viewer: Viewer, profile: Profile) -> bool:
    return viewer.owns(profile.id) or bool(profile.skills_visible)


def contact_readable(viewer: Viewer, profile: Profile) -> bool:
    return viewer.owns(profile.id) or (bool(profile.profile_visible) and bool(profile.contact_visible))


def score_readable(viewer: Viewer, profile: Profile) -> bool:
    # faculty already read every document the score is derived from
    return viewer.is_faculty or profile_readable(viewer, profile)


def _student_skill_readable(viewer: Viewer, item: StudentSkill) -> bool:
    if viewer.owns(item.student_id):
        return True
    return item.student is not None and bool(item.student.skills_visible)


def _participant(viewer: Viewer, item: CollaborationRequest) -> bool:
    return viewer.owns(item.requester_id) or viewer.owns(item.requested_id)


Rule = Callable[[Viewer, Any], bool]

RULES: dict[tuple[str, str], Rule] = {
    ("profile", "read"): profile_readable,
    ("profile", "update"): lambda viewer, profile: viewer.owns(profile.id),
    ("skill", "read"): lambda viewer, skill: True,
    ("skill", "create"): lambda viewer, skill: viewer.is_faculty,
    ("student_skill", "read"): _student_skill_readable,
    ("student_skill", "create"): lambda viewer, item: viewer.is_student and viewer.owns(item.student_id),
    ("student_skill", "delete"): lambda viewer, item: viewer.is_student and viewer.owns(item.student_id),
    ("document", "read"): lambda viewer, doc: viewer.owns(doc.student_id) or viewer.is_faculty,
    ("document", "create"): lambda viewer, doc: viewer.is_student and viewer.owns(doc.student_id),
    ("document", "review"): lambda viewer, doc: viewer.is_faculty,
    ("document", "delete"): lambda viewer, doc: viewer.owns(doc.student_id),
    ("collaboration_request", "read"): _participant,
    ("collaboration_request", "create"): lambda viewer, item: viewer.owns(item.requester_id),
    ("collaboration_request", "respond"): lambda viewer, item: viewer.owns(item.requested_id),
    ("placement_officer", "read"): lambda viewer, officer: viewer.principal_id == officer.principal_id,
    ("placement_officer", "update"): lambda viewer, officer: viewer.principal_id == officer.principal_id,
}


def resource_kind(resource: Any) -> str:
    kind = RESOURCE_KINDS.get(type(resource))
    if kind is None:
        raise TypeError(f"no authorization rules for {type(resource).__name__}")
    return kind


def can_write(viewer: Viewer | None, resource: Any, action: Action) -> bool:
    if viewer is None:
        return False
    rule = RULES.get((resource_kind(resource), action))
    if rule is None:
        return False
    return bool(rule(viewer, resource))


def can_read(viewer: Viewer | None, resource: Any) -> bool:
    return can_write(viewer, resource, "read")


def require(viewer: Viewer | None, resource: Any, action: Action) -> None:
    """Raise unless ``viewer`` may perform ``action`` on ``resource``.

    Callers that cannot see the record get NotFound so its existence is not
    revealed; callers that can see it but may not act get Unauthorized.
    Creation never leaks anything, so it always fails with Unauthorized.
    """
    if can_write(viewer, resource, action):
        return

    kind = resource_kind(resource)
    if action == "create":
        raise Unauthorized(f"not allowed to create {kind}")
    if action != "read" and can_read(viewer, resource):
        raise Unauthorized(f"not allowed to {action} {kind}")
    raise NotFound(f"{kind} not found")


def require_role(viewer: Viewer | None, *roles: str) -> None:
    if viewer is None or viewer.role not in roles:
        raise Unauthorized(f"requires role {' or '.join(roles)}")
