"""
Page summary endpoints.

Routes
------
POST /api/summary/check     - cached summary lookup, never calls the model → SummaryCheckResponse
POST /api/summary/generate  - cached or freshly generated summary          → SummaryGenerateResponse
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.dependencies.services import get_summary_service
from app.models.schemas import (
    SummaryCheckRequest,
    SummaryCheckResponse,
    SummaryGenerateRequest,
    SummaryGenerateResponse,
)
from app.services.exceptions import ContentValidationError, SummarySourceNotFound
from app.services.summary_service import SummaryService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/check", response_model=SummaryCheckResponse, status_code=status.HTTP_200_OK)
async def check_summary(
    request: SummaryCheckRequest,
    service: SummaryService = Depends(get_summary_service),
):
    summary = await service.get_summary(request.page_path, request.size)
    return SummaryCheckResponse(exists=summary is not None, summary=summary)


@router.post("/generate", response_model=SummaryGenerateResponse, status_code=status.HTTP_200_OK)
async def generate_summary(
    request: SummaryGenerateRequest,
    service: SummaryService = Depends(get_summary_service),
):
    """
    Return the stored summary for (pagePath, size), generating and storing
    it first when none exists.  Summaries are never regenerated.
    """
    try:
        summary = await service.generate_summary(
            request.page_path, request.page_title or "", request.size
        )
    except ContentValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except SummarySourceNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except Exception as exc:
        logger.error("generate_summary error: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to generate summary", "message": str(exc)},
        )

    return SummaryGenerateResponse(summary=summary, size=request.size, page_path=request.page_path)
