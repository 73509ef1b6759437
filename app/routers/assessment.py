"""
Assessment endpoints.

Routes
------
POST /api/assessment/generate        - multiple-choice quiz      → AssessmentResponse
POST /api/assessment/extract-topics  - main topics of a page     → TopicExtractionResponse
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.dependencies.services import get_assessment_service
from app.models.schemas import (
    AssessmentGenerateRequest,
    AssessmentResponse,
    TopicExtractionRequest,
    TopicExtractionResponse,
)
from app.services.assessment_service import AssessmentRequest, AssessmentService
from app.services.exceptions import ContentValidationError

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# POST /generate
# ---------------------------------------------------------------------------

@router.post("/generate", response_model=AssessmentResponse, status_code=status.HTTP_200_OK)
async def generate_assessment(
    request: AssessmentGenerateRequest,
    service: AssessmentService = Depends(get_assessment_service),
):
    """
    Generate ``questionCount`` four-option questions, grounded in
    ``pageContent`` when it is supplied.
    """
    logger.info(
        "Generating assessment: count=%s with_page_content=%s length=%d",
        request.question_count,
        bool(request.page_content),
        len(request.page_content or ""),
    )
    try:
        return await service.generate_assessment(
            AssessmentRequest(
                question_count=request.question_count,
                difficulty=request.difficulty.lower(),
                topic=request.topic,
                exam_type=request.exam_type,
                page_content=request.page_content,
            )
        )
    except Exception as exc:
        logger.error("generate_assessment error: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to generate assessment", "message": str(exc)},
        )


# ---------------------------------------------------------------------------
# POST /extract-topics
# ---------------------------------------------------------------------------

@router.post(
    "/extract-topics", response_model=TopicExtractionResponse, status_code=status.HTTP_200_OK
)
async def extract_topics(
    request: TopicExtractionRequest,
    service: AssessmentService = Depends(get_assessment_service),
):
    """Extract up to ten topic names from a page's text."""
    try:
        return await service.extract_topics(request.content)
    except ContentValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except Exception as exc:
        logger.error("extract_topics error: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to extract topics", "message": str(exc)},
        )
