from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from roomledger.db.session import get_db
from roomledger.models import StaffMember
from roomledger.services import staff as staff_service

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_staff(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> StaffMember:
    """Resolve the bearer token to an active staff account."""
    token = credentials.credentials if credentials else None
    member = staff_service.authenticate(db, token)
    if not member:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing staff token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return member


def require_roles(*roles: str):
    def dependency(member: StaffMember = Depends(get_current_staff)) -> StaffMember:
        if member.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{member.role}' may not perform this action",
            )
        return member

    return dependency
