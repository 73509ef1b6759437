"""
Personalised explanation endpoint.

Routes
------
POST /api/explanation/generate  - HTML explanation tuned to the reader's levels → ExplanationResponse
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies.auth import get_or_create_user
from app.dependencies.services import get_explanation_service
from app.models.database_models import User
from app.models.schemas import ExplanationRequest, ExplanationResponse
from app.services.explanation_service import ExplanationService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/generate", response_model=ExplanationResponse, status_code=status.HTTP_200_OK)
async def generate_explanation(
    request: ExplanationRequest,
    user: User = Depends(get_or_create_user),
    db: AsyncSession = Depends(get_db),
    service: ExplanationService = Depends(get_explanation_service),
):
    try:
        html, cached = await service.get_or_generate(
            db, user.id, request.page_path, request.page_title
        )
    except Exception as exc:
        logger.error("generate_explanation error: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to generate explanation", "message": str(exc)},
        )
    return ExplanationResponse(explanation=html, cached=cached)
