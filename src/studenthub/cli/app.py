from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager

import typer
import uvicorn
from sqlalchemy.orm import Session

from studenthub.api.app import create_app
from studenthub.config import get_settings
from studenthub.core.discovery import StudentDiscovery
from studenthub.core.documents import DocumentReviewEngine
from studenthub.core.policy import Viewer
from studenthub.core.profiles import ProfileService, resolve_viewer
from studenthub.core.scoring import ScoreAggregator
from studenthub.db.init import init_database
from studenthub.db.models import Document
from studenthub.db.session import SessionLocal
from studenthub.errors import StudentHubError
from studenthub.logging_config import configure_logging
from studenthub.types import Principal, SearchFilters

app = typer.Typer(help="StudentHub CLI")
skills_app = typer.Typer(help="Skill catalog commands")
documents_app = typer.Typer(help="Document review commands")
score_app = typer.Typer(help="Score commands")
students_app = typer.Typer(help="Student discovery commands")

app.add_typer(skills_app, name="skills")
app.add_typer(documents_app, name="documents")
app.add_typer(score_app, name="score")
app.add_typer(students_app, name="students")

_INITIALIZED = False

PrincipalIdOption = typer.Option(..., "--principal-id", help="Identity to act as")
RoleOption = typer.Option(..., "--role", help="student, faculty or placement_officer")


def ensure_initialized() -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return
    init_database()
    _INITIALIZED = True


@contextmanager
def acting_as(principal_id: str, role: str) -> Iterator[tuple[Session, Viewer]]:
    configure_logging()
    ensure_initialized()
    try:
        principal = Principal(id=principal_id, role=role)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    with SessionLocal() as db:
        try:
            yield db, resolve_viewer(db, principal)
        except StudentHubError as exc:
            typer.echo(json.dumps({"ok": False, "code": exc.code, "detail": exc.message}, indent=2), err=True)
            raise typer.Exit(code=1) from exc


def _document_payload(document: Document) -> dict:
    return {
        "id": document.id,
        "student_id": document.student_id,
        "title": document.title,
        "status": document.status,
        "points_awarded": document.points_awarded,
        "rejection_reason": document.rejection_reason,
        "uploaded_at": document.uploaded_at.isoformat() if document.uploaded_at else None,
    }


@app.command("init")
def init_cmd() -> None:
    """Initialize database, directories, and the skill catalog."""
    configure_logging()
    result = init_database()
    typer.echo(json.dumps({"ok": True, **result}, indent=2))


@skills_app.command("list")
def skills_list() -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        skills = ProfileService(db).list_skills()
        typer.echo(
            json.dumps(
                [{"id": skill.id, "name": skill.name, "category": skill.category} for skill in skills],
                indent=2,
            )
        )


@skills_app.command("add")
def skills_add(
    name: str = typer.Option(..., "--name"),
    category: str = typer.Option("", "--category"),
    principal_id: str = PrincipalIdOption,
    role: str = RoleOption,
) -> None:
    with acting_as(principal_id, role) as (db, viewer):
        skill = ProfileService(db).create_skill(viewer, name, category)
        typer.echo(json.dumps({"id": skill.id, "name": skill.name, "category": skill.category}, indent=2))


@documents_app.command("pending")
def documents_pending(principal_id: str = PrincipalIdOption, role: str = RoleOption) -> None:
    with acting_as(principal_id, role) as (db, viewer):
        documents = DocumentReviewEngine(db).list_pending(viewer)
        typer.echo(json.dumps([_document_payload(doc) for doc in documents], indent=2))


@documents_app.command("approve")
def documents_approve(
    document_id: int = typer.Option(..., "--document-id"),
    points: int = typer.Option(0, "--points"),
    principal_id: str = PrincipalIdOption,
    role: str = RoleOption,
) -> None:
    with acting_as(principal_id, role) as (db, viewer):
        document = DocumentReviewEngine(db).approve(viewer, document_id, points)
        typer.echo(json.dumps(_document_payload(document), indent=2))


@documents_app.command("reject")
def documents_reject(
    document_id: int = typer.Option(..., "--document-id"),
    reason: str = typer.Option(..., "--reason"),
    principal_id: str = PrincipalIdOption,
    role: str = RoleOption,
) -> None:
    with acting_as(principal_id, role) as (db, viewer):
        document = DocumentReviewEngine(db).reject(viewer, document_id, reason)
        typer.echo(json.dumps(_document_payload(document), indent=2))


@score_app.command("show")
def score_show(
    student_id: int = typer.Option(..., "--student-id"),
    principal_id: str = PrincipalIdOption,
    role: str = RoleOption,
) -> None:
    with acting_as(principal_id, role) as (db, viewer):
        summary = ScoreAggregator(db).score_summary(viewer, student_id)
        typer.echo(json.dumps(summary.model_dump(), indent=2))


@students_app.command("search")
def students_search(
    text: str = typer.Option("", "--text"),
    department: str | None = typer.Option(None, "--department"),
    college: str | None = typer.Option(None, "--college"),
    skill: str | None = typer.Option(None, "--skill"),
    principal_id: str = PrincipalIdOption,
    role: str = RoleOption,
) -> None:
    with acting_as(principal_id, role) as (db, viewer):
        filters = SearchFilters(text=text, department=department, college=college, skill=skill)
        results = StudentDiscovery(db).search(viewer, filters)
        typer.echo(json.dumps([item.model_dump() for item in results], indent=2))


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
) -> None:
    configure_logging()
    ensure_initialized()
    settings = get_settings()
    app_instance = create_app()
    uvicorn.run(app_instance, host=host or settings.app_host, port=port or settings.app_port)
