from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from studenthub.db.models import Skill

DEFAULT_SKILLS: list[dict[str, str]] = [
    {"name": "JavaScript", "category": "Programming"},
    {"name": "Python", "category": "Programming"},
    {"name": "React", "category": "Web Development"},
    {"name": "Node.js", "category": "Backend"},
    {"name": "Machine Learning", "category": "AI/ML"},
    {"name": "Data Analysis", "category": "Data Science"},
    {"name": "UI/UX Design", "category": "Design"},
    {"name": "Project Management", "category": "Management"},
    {"name": "Communication", "category": "Soft Skills"},
    {"name": "Leadership", "category": "Soft Skills"},
]


def seed_skill_catalog(session: Session) -> int:
    existing = set(session.scalars(select(Skill.name)).all())
    inserted = 0
    for item in DEFAULT_SKILLS:
        if item["name"] in existing:
            continue
        session.add(Skill(name=item["name"], category=item["category"]))
        inserted += 1
    session.commit()
    return inserted
