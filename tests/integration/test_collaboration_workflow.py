import pytest

from studenthub.core.collaboration import CollaborationWorkflow
from studenthub.core.policy import Viewer
from studenthub.db.repositories import Repository
from studenthub.db.session import SessionLocal
from studenthub.errors import InvalidTransition, NotFound, Unauthorized, ValidationError


def _student(db, principal_id: str, name: str, **kwargs) -> Viewer:
    profile = Repository(db).create_profile(
        principal_id=principal_id,
        role="student",
        full_name=name,
        email=f"{principal_id}@uni.edu",
        **kwargs,
    )
    return Viewer(principal_id=principal_id, role="student", profile_id=profile.id)


def test_only_requested_party_can_respond_and_terminal_states_stick() -> None:
    with SessionLocal() as db:
        dana = _student(db, "dana", "Dana")
        eli = _student(db, "eli", "Eli")
        workflow = CollaborationWorkflow(db)

        request = workflow.create(
            dana,
            requested_id=eli.profile_id,
            project_title="Campus energy dashboard",
            skills_needed=["Python", " ", "Data Analysis"],
        )
        assert request.status == "pending"
        assert request.skills_needed_json == ["Python", "Data Analysis"]

        with pytest.raises(Unauthorized):
            workflow.respond(dana, request.id, "accept")

        declined = workflow.respond(eli, request.id, "decline")
        assert declined.status == "declined"

        with pytest.raises(InvalidTransition):
            workflow.respond(eli, request.id, "accept")
        assert workflow.get(dana, request.id).status == "declined"


def test_accept_and_direction_listing() -> None:
    with SessionLocal() as db:
        dana = _student(db, "dana", "Dana")
        eli = _student(db, "eli", "Eli")
        fay = _student(db, "fay", "Fay")
        workflow = CollaborationWorkflow(db)

        sent = workflow.create(dana, requested_id=eli.profile_id, project_title="Robotics")
        received = workflow.create(fay, requested_id=dana.profile_id, project_title="Hackathon team")

        assert workflow.respond(eli, sent.id, "accept").status == "accepted"
        assert [item.id for item in workflow.list(dana, "sent")] == [sent.id]
        assert [item.id for item in workflow.list(dana, "received")] == [received.id]
        assert {item.id for item in workflow.list(dana, "all")} == {sent.id, received.id}
        assert workflow.list(eli, "sent") == []


def test_third_party_cannot_see_request() -> None:
    with SessionLocal() as db:
        dana = _student(db, "dana", "Dana")
        eli = _student(db, "eli", "Eli")
        fay = _student(db, "fay", "Fay")
        workflow = CollaborationWorkflow(db)
        request = workflow.create(dana, requested_id=eli.profile_id, project_title="Robotics")

        with pytest.raises(NotFound):
            workflow.get(fay, request.id)
        with pytest.raises(NotFound):
            workflow.respond(fay, request.id, "accept")


def test_create_validation() -> None:
    with SessionLocal() as db:
        dana = _student(db, "dana", "Dana")
        eli = _student(db, "eli", "Eli")
        hidden = _student(db, "gus", "Gus")
        Repository(db).update_profile(hidden.profile_id, {"profile_visible": False})
        workflow = CollaborationWorkflow(db)

        with pytest.raises(ValidationError):
            workflow.create(dana, requested_id=dana.profile_id, project_title="Solo")
        with pytest.raises(ValidationError):
            workflow.create(dana, requested_id=eli.profile_id, project_title="  ")
        with pytest.raises(NotFound):
            workflow.create(dana, requested_id=9999, project_title="Ghost")
        with pytest.raises(NotFound):
            workflow.create(dana, requested_id=hidden.profile_id, project_title="Hidden")
        with pytest.raises(Unauthorized):
            workflow.create(
                Viewer(principal_id="officer", role="placement_officer"),
                requested_id=eli.profile_id,
                project_title="Internship",
            )


def test_invalid_decision_and_direction() -> None:
    with SessionLocal() as db:
        dana = _student(db, "dana", "Dana")
        eli = _student(db, "eli", "Eli")
        workflow = CollaborationWorkflow(db)
        request = workflow.create(dana, requested_id=eli.profile_id, project_title="Robotics")

        with pytest.raises(ValidationError):
            workflow.respond(eli, request.id, "maybe")
        assert workflow.get(eli, request.id).status == "pending"
        with pytest.raises(ValidationError):
            workflow.list(dana, "everything")
