from __future__ import annotations

import os
import tempfile
from pathlib import Path

_TEST_ROOT = Path(tempfile.mkdtemp(prefix="studenthub-tests-"))
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_ROOT / 'studenthub.db'}"
os.environ["DATA_DIR"] = str(_TEST_ROOT)
os.environ["UPLOAD_DIR"] = str(_TEST_ROOT / "uploads")

import pytest  # noqa: E402

from studenthub.db.base import Base  # noqa: E402
from studenthub.db.init import ensure_data_directories  # noqa: E402
from studenthub.db.seed import seed_skill_catalog  # noqa: E402
from studenthub.db.session import SessionLocal, engine  # noqa: E402


@pytest.fixture(autouse=True)
def reset_db() -> None:
    ensure_data_directories()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as session:
        seed_skill_catalog(session)
    yield
