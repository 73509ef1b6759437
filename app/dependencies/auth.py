"""
Authentication dependencies for FastAPI routes.

Reader identity arrives in the X-User-Id / X-User-Email / X-User-Name headers
set by the auth provider in front of this API.  The admin router is guarded
by HTTP Basic credentials from ADMIN_USERNAME / ADMIN_PASSWORD.
"""
from __future__ import annotations

import logging
import secrets
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.models.database_models import User

logger = logging.getLogger(__name__)

_basic = HTTPBasic(auto_error=False)


async def get_current_user_id(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> str:
    """Extract the authenticated user ID from the request header. Raises 401 if missing."""
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header.",
        )
    return x_user_id


async def get_optional_user_id(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> Optional[str]:
    """Extract user ID if present, None for anonymous readers."""
    return x_user_id or None


async def get_or_create_user(
    user_id: str = Depends(get_current_user_id),
    x_user_email: Optional[str] = Header(None, alias="X-User-Email"),
    x_user_name: Optional[str] = Header(None, alias="X-User-Name"),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Ensure the user exists in the local users table. Creates if needed."""
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None:
        user = User(
            id=user_id,
            email=x_user_email or f"{user_id}@book.local",
            name=x_user_name,
        )
        db.add(user)
        await db.flush()
        logger.info("Created new user: id=%s email=%s", user_id, user.email)

    return user


async def require_admin(
    credentials: Optional[HTTPBasicCredentials] = Depends(_basic),
) -> str:
    """
    Check HTTP Basic credentials against the configured admin account.
    Denies every request when no admin account is configured.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Authorization header.",
            headers={"WWW-Authenticate": "Basic"},
        )

    expected_user = settings.ADMIN_USERNAME
    expected_pass = settings.ADMIN_PASSWORD
    if not expected_user or not expected_pass:
        logger.warning("Admin request rejected: ADMIN_USERNAME/ADMIN_PASSWORD not configured")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials.",
            headers={"WWW-Authenticate": "Basic"},
        )

    user_ok = secrets.compare_digest(
        credentials.username.encode("utf-8"), expected_user.encode("utf-8")
    )
    pass_ok = secrets.compare_digest(
        credentials.password.encode("utf-8"), expected_pass.encode("utf-8")
    )
    if not (user_ok and pass_ok):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials.",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username
