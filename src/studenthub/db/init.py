from __future__ import annotations

from pathlib import Path

from studenthub.config import get_settings
from studenthub.db.base import Base
from studenthub.db.session import SessionLocal, engine
from studenthub.db import models  # noqa: F401
from studenthub.db.seed import seed_skill_catalog


def ensure_data_directories() -> None:
    settings = get_settings()
    paths: list[Path] = [settings.data_dir, settings.upload_dir]
    for path in paths:
        path.mkdir(parents=True, exist_ok=True)


def init_database() -> dict[str, int]:
    ensure_data_directories()
    Base.metadata.create_all(bind=engine)

    if not get_settings().seed_skills:
        return {"seeded_skills": 0}
    with SessionLocal() as session:
        inserted = seed_skill_catalog(session)
    return {"seeded_skills": inserted}
