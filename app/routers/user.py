"""
Reader onboarding and profile endpoints.

Routes
------
GET  /api/user/check-personalization  - both onboarding answers saved?  → {completed}
POST /api/user/preferences            - create or update answers        → {success, created}
POST /api/user/update-profile         - change display name / avatar    → {success}
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies.auth import get_current_user_id, get_optional_user_id, get_or_create_user
from app.models.database_models import User
from app.models.schemas import (
    PersonalizationStatusResponse,
    PreferencesRequest,
    PreferencesResponse,
    ProfileUpdateRequest,
    SuccessResponse,
)
from app.services import user_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/check-personalization", response_model=PersonalizationStatusResponse)
async def check_personalization(
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Anonymous readers and lookup failures both report ``completed: false``."""
    if user_id is None:
        return PersonalizationStatusResponse(completed=False)

    try:
        completed = await user_service.is_personalization_complete(db, user_id)
    except Exception as exc:
        logger.error("check_personalization error for %s: %s", user_id, exc)
        await db.rollback()
        completed = False

    logger.info("Personalization check for %s: %s", user_id, completed)
    return PersonalizationStatusResponse(completed=completed)


@router.post("/preferences", response_model=PreferencesResponse, status_code=status.HTTP_200_OK)
async def save_preferences(
    request: PreferencesRequest,
    user: User = Depends(get_or_create_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        created = await user_service.upsert_preferences(
            db, user.id, request.ai_experience, request.coding_experience
        )
    except Exception as exc:
        logger.error("save_preferences error for %s: %s", user.id, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to save preferences", "message": str(exc)},
        )
    return PreferencesResponse(success=True, created=created)


@router.post("/update-profile", response_model=SuccessResponse, status_code=status.HTTP_200_OK)
async def update_profile(
    request: ProfileUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    updated = await user_service.update_profile(db, user_id, request.name, request.image)
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    return SuccessResponse(success=True)
