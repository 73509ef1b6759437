"""
Admin endpoints (HTTP Basic).

Routes
------
GET /api/admin/users  - every reader with onboarding answers → List[AdminUserResponse]
"""
import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies.auth import require_admin
from app.models.schemas import AdminUserResponse
from app.services import user_service

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/users", response_model=List[AdminUserResponse])
async def list_users(db: AsyncSession = Depends(get_db)):
    users = await user_service.list_users(db)
    logger.info("Admin listed %d users", len(users))
    return users
