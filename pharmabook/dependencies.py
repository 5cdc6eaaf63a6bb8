# pharmabook/dependencies.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from pharmabook.core.security import InvalidTokenError, decode_token, is_access_token
from pharmabook.db.sql import get_session
from pharmabook.modules.pharmacies.models import Pharmacist
from pharmabook.modules.pharmacies.repository import get_pharmacist

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_staff(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
) -> Pharmacist:
    """
    Resolve the portal user from the bearer token. The returned pharmacist's
    pharmacy_id is the tenant for every portal query.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="missing_token",
        )
    try:
        payload = decode_token(credentials.credentials)
    except InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid_token",
        )

    if not is_access_token(payload):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid_token_type",
        )

    try:
        staff_id = UUID(str(payload.get("sub")))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid_claims",
        )

    staff = await get_pharmacist(session, staff_id)
    if not staff:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="user_not_found",
        )
    if not staff.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="user_inactive",
        )
    if staff.pharmacy_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="no_pharmacy",
        )
    return staff


def require_roles(*roles: str):
    """
    Role guard factory. Example: Depends(require_roles("pharmacy_owner", "super_admin"))
    """
    async def _guard(staff: Pharmacist = Depends(get_current_staff)) -> Pharmacist:
        if staff.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="insufficient_role",
            )
        return staff

    return _guard
