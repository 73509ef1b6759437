"""
Reader onboarding preferences and profile updates.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.database_models import User, UserPreferences

logger = logging.getLogger(__name__)


async def get_preferences(db: AsyncSession, user_id: str) -> Optional[UserPreferences]:
    result = await db.execute(select(UserPreferences).where(UserPreferences.user_id == user_id))
    return result.scalar_one_or_none()


async def is_personalization_complete(db: AsyncSession, user_id: str) -> bool:
    """True once the reader has answered both onboarding questions."""
    prefs = await get_preferences(db, user_id)
    return bool(prefs and prefs.ai_experience and prefs.coding_experience)


async def upsert_preferences(
    db: AsyncSession,
    user_id: str,
    ai_experience: Optional[str],
    coding_experience: Optional[str],
) -> bool:
    """Create or update the reader's preferences. Returns True when a row was created."""
    now = datetime.now(timezone.utc)
    prefs = await get_preferences(db, user_id)
    created = prefs is None

    if created:
        prefs = UserPreferences(user_id=user_id, created_at=now)
        db.add(prefs)

    prefs.ai_experience = ai_experience
    prefs.coding_experience = coding_experience
    prefs.updated_at = now
    await db.flush()

    logger.info(
        "Preferences saved for user %s: %s", user_id, "created new" if created else "updated existing"
    )
    return created


async def update_profile(
    db: AsyncSession,
    user_id: str,
    name: Optional[str],
    image: Optional[str],
) -> bool:
    """Update name and image. Returns False when the user row does not exist."""
    user = (await db.execute(select(User).where(User.id == user_id))).scalar_one_or_none()
    if user is None:
        return False

    user.name = name
    user.image = image
    user.updated_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("Profile updated for user %s", user_id)
    return True


async def list_users(db: AsyncSession) -> List[Dict[str, Any]]:
    """All users with their onboarding answers, oldest first."""
    result = await db.execute(
        select(User, UserPreferences)
        .outerjoin(UserPreferences, UserPreferences.user_id == User.id)
        .order_by(User.created_at, User.id)
    )
    users: List[Dict[str, Any]] = []
    for user, prefs in result.all():
        users.append(
            {
                "id": user.id,
                "name": user.name,
                "email": user.email,
                "image": user.image,
                "aiExperience": prefs.ai_experience if prefs else None,
                "codingExperience": prefs.coding_experience if prefs else None,
                "createdAt": user.created_at,
            }
        )
    return users
