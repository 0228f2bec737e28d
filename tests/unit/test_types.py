import pytest
from pydantic import TypeAdapter, ValidationError

from studenthub.core.documents import validate_points
from studenthub.core.profiles import display_name
from studenthub.errors import ValidationError as StudentHubValidationError
from studenthub.types import (
    FacultyClaims,
    PlacementOfficerClaims,
    Principal,
    ProfileUpdate,
    ProvisioningClaims,
    StudentClaims,
)

claims_adapter = TypeAdapter(ProvisioningClaims)


def test_claims_are_discriminated_by_role() -> None:
    student = claims_adapter.validate_python({"role": "student", "email": "a@x.edu", "year_of_study": 2})
    faculty = claims_adapter.validate_python({"role": "faculty", "email": "f@x.edu"})
    officer = claims_adapter.validate_python(
        {"role": "placement_officer", "email": "o@corp.com", "organization": "Acme"}
    )
    assert isinstance(student, StudentClaims)
    assert student.year_of_study == 2
    assert isinstance(faculty, FacultyClaims)
    assert isinstance(officer, PlacementOfficerClaims)
    assert officer.organization == "Acme"


def test_unknown_claims_role_is_rejected() -> None:
    with pytest.raises(ValidationError):
        claims_adapter.validate_python({"role": "admin", "email": "a@x.edu"})


def test_principal_id_must_not_be_blank() -> None:
    with pytest.raises(ValidationError):
        Principal(id="   ", role="student")
    with pytest.raises(ValidationError):
        Principal(id="abc", role="admin")


def test_profile_update_validation() -> None:
    assert ProfileUpdate(year_of_study=3).year_of_study == 3
    with pytest.raises(ValidationError):
        ProfileUpdate(full_name="  ")
    with pytest.raises(ValidationError):
        ProfileUpdate(year_of_study=0)


def test_points_bounds() -> None:
    assert validate_points(None) == 0
    assert validate_points(0) == 0
    assert validate_points(100) == 100
    for bad in (-1, 101, True):
        with pytest.raises(StudentHubValidationError):
            validate_points(bad)


def test_display_name_falls_back_to_email() -> None:
    assert display_name("  Ada Lovelace ", "ada@x.edu") == "Ada Lovelace"
    assert display_name("", "ada@x.edu") == "ada"
    assert display_name("", "") == "New User"
