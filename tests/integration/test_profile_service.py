import pytest

from studenthub.core.profiles import ProfileService, resolve_viewer
from studenthub.db.models import PlacementOfficer, Profile
from studenthub.db.repositories import Repository
from studenthub.db.session import SessionLocal
from studenthub.errors import NotFound, Unauthorized, ValidationError
from studenthub.types import (
    FacultyClaims,
    PlacementOfficerClaims,
    PlacementOfficerUpdate,
    Principal,
    PrivacySettings,
    ProfileUpdate,
    StudentClaims,
)


def test_provisioning_is_idempotent_and_role_checked() -> None:
    with SessionLocal() as db:
        service = ProfileService(db)
        principal = Principal(id="stu-1", role="student")
        claims = StudentClaims(email="ria@uni.edu", college="North", year_of_study=2)

        first = service.provision(principal, claims)
        second = service.provision(principal, claims)
        assert isinstance(first, Profile)
        assert first.id == second.id
        assert first.full_name == "ria"
        assert first.year_of_study == 2
        assert first.profile_visible and first.skills_visible and not first.contact_visible

        with pytest.raises(Unauthorized):
            service.provision(principal, FacultyClaims(email="ria@uni.edu"))


def test_placement_officer_gets_officer_record_not_profile() -> None:
    with SessionLocal() as db:
        service = ProfileService(db)
        principal = Principal(id="po-1", role="placement_officer")
        officer = service.provision(
            principal, PlacementOfficerClaims(full_name="Olu", email="olu@corp.com", organization="Acme")
        )
        assert isinstance(officer, PlacementOfficer)

        viewer = resolve_viewer(db, principal)
        assert viewer.profile_id is None
        updated = service.update_placement_officer(viewer, PlacementOfficerUpdate(organization="Acme Labs"))
        assert updated.organization == "Acme Labs"
        assert updated.full_name == "Olu"


def test_ensure_provisioned_needs_email() -> None:
    with SessionLocal() as db:
        service = ProfileService(db)
        anonymous = service.ensure_provisioned(Principal(id="fac-1", role="faculty"))
        assert anonymous.profile_id is None

        viewer = service.ensure_provisioned(Principal(id="fac-1", role="faculty", email="k@uni.edu", name="Kim"))
        assert viewer.profile_id is not None
        assert service.own_profile(viewer).full_name == "Kim"


def test_profile_updates_and_privacy() -> None:
    with SessionLocal() as db:
        service = ProfileService(db)
        owner = service.ensure_provisioned(Principal(id="stu-1", role="student", email="a@uni.edu"))
        other = service.ensure_provisioned(Principal(id="stu-2", role="student", email="b@uni.edu"))

        profile = service.update_profile(owner, ProfileUpdate(full_name=" Asha ", department="ME", bio="Robots"))
        assert profile.full_name == "Asha"
        assert profile.department == "ME"

        service.update_privacy(owner, PrivacySettings(profile_visible=False))
        with pytest.raises(NotFound):
            service.get_profile(other, owner.profile_id)
        assert service.get_profile(owner, owner.profile_id).profile_visible is False


def test_skill_catalog_and_student_skills() -> None:
    with SessionLocal() as db:
        service = ProfileService(db)
        faculty = service.ensure_provisioned(Principal(id="fac-1", role="faculty", email="f@uni.edu"))
        student = service.ensure_provisioned(Principal(id="stu-1", role="student", email="s@uni.edu"))
        peer = service.ensure_provisioned(Principal(id="stu-2", role="student", email="p@uni.edu"))

        assert len(service.list_skills()) == 10
        rust = service.create_skill(faculty, "Rust", "Programming")
        with pytest.raises(ValidationError):
            service.create_skill(faculty, "rust")
        with pytest.raises(Unauthorized):
            service.create_skill(student, "Go")

        service.add_student_skill(student, rust.id, "beginner")
        row = service.add_student_skill(student, rust.id, "advanced")
        assert row.proficiency_level == "advanced"
        assert [item.skill.name for item in service.list_student_skills(peer, student.profile_id)] == ["Rust"]

        with pytest.raises(Unauthorized):
            service.add_student_skill(faculty, rust.id, "beginner")
        with pytest.raises(NotFound):
            service.add_student_skill(student, 9999, "beginner")

        service.update_privacy(student, PrivacySettings(skills_visible=False))
        assert service.list_student_skills(peer, student.profile_id) == []

        service.remove_student_skill(student, rust.id)
        assert service.list_student_skills(student, student.profile_id) == []
        with pytest.raises(NotFound):
            service.remove_student_skill(student, rust.id)


def test_null_full_name_in_update_keeps_existing_name() -> None:
    with SessionLocal() as db:
        service = ProfileService(db)
        owner = service.ensure_provisioned(Principal(id="stu-1", role="student", email="a@uni.edu", name="Asha"))

        profile = service.update_profile(owner, ProfileUpdate(full_name=None, bio=None, year_of_study=None))
        assert profile.full_name == "Asha"
        assert profile.bio == ""
        assert profile.year_of_study is None


def test_concurrent_first_activity_resolves_to_single_profile(monkeypatch) -> None:
    original_lookup = Repository.get_profile_by_principal
    calls = {"count": 0}

    def lookup_racing_with_other_request(self, principal_id):
        calls["count"] += 1
        if calls["count"] == 1:
            with SessionLocal() as other:
                Repository(other).create_profile(
                    principal_id=principal_id, role="student", full_name="Asha", email="a@uni.edu"
                )
            return None
        if calls["count"] == 2:
            return None
        return original_lookup(self, principal_id)

    monkeypatch.setattr(Repository, "get_profile_by_principal", lookup_racing_with_other_request)

    with SessionLocal() as db:
        viewer = ProfileService(db).ensure_provisioned(Principal(id="stu-1", role="student", email="a@uni.edu"))
        assert viewer.profile_id is not None
        assert [p.principal_id for p in Repository(db).list_student_profiles()] == ["stu-1"]
