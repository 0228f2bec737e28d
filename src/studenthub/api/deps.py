from __future__ import annotations

from collections.abc import Generator

from fastapi import Depends, HTTPException, Request
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from studenthub.config import get_settings
from studenthub.core.policy import Viewer
from studenthub.core.profiles import ProfileService
from studenthub.db.session import get_db_session
from studenthub.types import ROLES, Principal


def get_db() -> Generator[Session, None, None]:
    yield from get_db_session()


def get_principal(request: Request) -> Principal:
    """Read the identity forwarded by the authenticating gateway.

    Anything missing or malformed is treated as unauthenticated.
    """
    settings = get_settings()
    principal_id = request.headers.get(settings.principal_id_header, "")
    role = request.headers.get(settings.principal_role_header, "").strip().lower()
    if not principal_id.strip() or role not in ROLES:
        raise HTTPException(status_code=401, detail="Authentication required")
    try:
        return Principal(
            id=principal_id,
            role=role,
            email=request.headers.get(settings.principal_email_header, "").strip(),
            name=request.headers.get(settings.principal_name_header, "").strip(),
        )
    except PydanticValidationError as exc:
        raise HTTPException(status_code=401, detail="Authentication required") from exc


def get_viewer(
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> Viewer:
    return ProfileService(db).ensure_provisioned(principal)
