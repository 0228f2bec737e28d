from fastapi.testclient import TestClient

from studenthub.api.app import create_app
from studenthub.db.repositories import Repository
from studenthub.db.session import SessionLocal

STUDENT = {
    "X-Principal-Id": "auth0|asha",
    "X-Principal-Role": "student",
    "X-Principal-Email": "asha@uni.edu",
    "X-Principal-Name": "Asha Rao",
}
FACULTY = {
    "X-Principal-Id": "auth0|kim",
    "X-Principal-Role": "faculty",
    "X-Principal-Email": "kim@uni.edu",
}
RECRUITER = {
    "X-Principal-Id": "auth0|olu",
    "X-Principal-Role": "placement_officer",
    "X-Principal-Email": "olu@acme.com",
    "X-Principal-Name": "Olu",
}


def _upload(client: TestClient, title: str) -> int:
    resp = client.post(
        "/api/documents",
        headers=STUDENT,
        data={"title": title},
        files={"file": (f"{title}.pdf", b"%PDF-1.4", "application/pdf")},
    )
    assert resp.status_code == 201
    return resp.json()["id"]


def test_student_climbs_from_newcomer_to_beginner() -> None:
    with TestClient(create_app()) as client:
        me = client.get("/api/me", headers=STUDENT).json()
        student_id = me["profile"]["id"]
        assert me["profile"]["full_name"] == "Asha Rao"

        client.patch(
            "/api/me/profile",
            headers=STUDENT,
            json={"department": "CSE", "college": "North Campus", "year_of_study": 3},
        )
        python = next(item for item in client.get("/api/skills", headers=STUDENT).json() if item["name"] == "Python")
        client.post("/api/me/skills", headers=STUDENT, json={"skill_id": python["id"], "proficiency_level": "advanced"})

        first = _upload(client, "Hackathon")
        second = _upload(client, "Paper")
        third = _upload(client, "Volunteering")

        client.post(f"/api/documents/{first}/approve", headers=FACULTY, json={"points": 30})
        score = client.get(f"/api/profiles/{student_id}/score", headers=STUDENT).json()
        assert score["total_score"] == 30
        assert score["level"] == "Newcomer"
        assert score["progress"] == 60.0

        client.post(f"/api/documents/{second}/approve", headers=FACULTY, json={"points": 25})
        client.post(f"/api/documents/{third}/reject", headers=FACULTY, json={"reason": "No proof attached"})
        score = client.get(f"/api/profiles/{student_id}/score", headers=STUDENT).json()
        assert score["total_score"] == 55
        assert score["level"] == "Beginner"
        assert score["next_level_at"] == 200

        results = client.get(
            "/api/students/search",
            headers=RECRUITER,
            params={"skill": "Python", "department": "CSE"},
        ).json()
        assert len(results) == 1
        assert results[0]["total_score"] == 55
        assert results[0]["profile"]["email"] is None

        officer = client.get("/api/placement-officers/me", headers=RECRUITER).json()
        assert officer["full_name"] == "Olu"

        summary = client.get("/api/me/achievements", headers=STUDENT).json()
        assert summary["stats"] == {"total": 3, "pending": 0, "approved": 2, "rejected": 1}
        assert {item["title"] for item in summary["achievements"]} == {"Hackathon", "Paper"}

    with SessionLocal() as db:
        rejected = Repository(db).get_document(third)
        assert rejected.rejection_reason == "No proof attached"
        assert rejected.approved_by is not None
