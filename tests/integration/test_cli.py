import json

from typer.testing import CliRunner

from studenthub.cli.app import app
from studenthub.core.documents import DocumentReviewEngine
from studenthub.core.policy import Viewer
from studenthub.db.repositories import Repository
from studenthub.db.session import SessionLocal

runner = CliRunner()


def _seed_pending_document() -> int:
    with SessionLocal() as db:
        repo = Repository(db)
        student = repo.create_profile(principal_id="stu-1", role="student", full_name="Asha", email="a@uni.edu")
        repo.create_profile(principal_id="fac-1", role="faculty", full_name="Kim", email="k@uni.edu")
        viewer = Viewer(principal_id="stu-1", role="student", profile_id=student.id)
        document = DocumentReviewEngine(db).create(viewer, title="Award", filename="award.pdf", content=b"pdf")
        return document.id


def test_cli_review_and_score() -> None:
    document_id = _seed_pending_document()
    faculty = ["--principal-id", "fac-1", "--role", "faculty"]

    pending = runner.invoke(app, ["documents", "pending", *faculty])
    assert pending.exit_code == 0
    assert [item["id"] for item in json.loads(pending.stdout)] == [document_id]

    approved = runner.invoke(app, ["documents", "approve", "--document-id", str(document_id), "--points", "60", *faculty])
    assert approved.exit_code == 0
    payload = json.loads(approved.stdout)
    assert payload["status"] == "approved"

    score = runner.invoke(app, ["score", "show", "--student-id", str(payload["student_id"]), *faculty])
    assert json.loads(score.stdout)["level"] == "Beginner"


def test_cli_reports_domain_errors() -> None:
    document_id = _seed_pending_document()
    result = runner.invoke(
        app,
        ["documents", "approve", "--document-id", str(document_id), "--principal-id", "stu-1", "--role", "student"],
    )
    assert result.exit_code == 1
    assert "unauthorized" in result.output


def test_cli_skills_list_includes_seeded_catalog() -> None:
    result = runner.invoke(app, ["skills", "list"])
    assert result.exit_code == 0
    names = {item["name"] for item in json.loads(result.stdout)}
    assert {"Python", "Leadership"} <= names
