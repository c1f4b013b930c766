"""Staff accounts and bearer-token lookup."""

from __future__ import annotations

import logging
import secrets
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from roomledger.models import StaffMember
from roomledger.models.staff import ROLES
from roomledger.services.errors import ActorRequired, LedgerValidationError, StoreError

logger = logging.getLogger(__name__)


class InvalidRole(LedgerValidationError):
    code = "invalid_role"
    default_message = "invalid staff role"


class TokenInUse(LedgerValidationError):
    code = "token_in_use"
    default_message = "api token already assigned to another account"


def create_staff(
    session: Session, display_name: str, role: str, *, api_token: Optional[str] = None
) -> StaffMember:
    name = (display_name or "").strip()
    if not name:
        raise ActorRequired("display name required")
    role = (role or "").strip().lower()
    if role not in ROLES:
        raise InvalidRole(f"Role must be one of {', '.join(ROLES)}")
    member = StaffMember(
        display_name=name,
        role=role,
        api_token=api_token or secrets.token_urlsafe(32),
    )
    session.add(member)
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise TokenInUse() from exc
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("failed to create staff account")
        raise StoreError("failed to create staff account") from exc
    session.refresh(member)
    logger.info("Created %s account for %s", role, name)
    return member


def authenticate(session: Session, token: Optional[str]) -> Optional[StaffMember]:
    if not token:
        return None
    return session.scalar(
        select(StaffMember).where(StaffMember.api_token == token, StaffMember.active.is_(True))
    )
