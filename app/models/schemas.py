"""
Pydantic schemas for request/response validation.

Field names on the wire are camelCase (the Docusaurus front-end's
convention); Python attributes stay snake_case via aliases.
"""
from pydantic import BaseModel, Field, ConfigDict, StrictStr
from typing import Optional, List, Dict, Any, Literal
from datetime import datetime

from app.config import settings


SummarySize = Literal["bulleted", "short", "long"]


class CamelModel(BaseModel):
    """Base for wire models: accepts either the alias or the attribute name."""

    model_config = ConfigDict(populate_by_name=True)


# Chat Schemas
class ChatRequest(CamelModel):
    """Schema for a chat message from the reader."""

    message: StrictStr = Field(..., min_length=1)
    conversation_history: List[Dict[str, Any]] = Field(
        default_factory=list, alias="conversationHistory"
    )


class ChatResponse(CamelModel):
    """Schema for the assistant's reply."""

    message: str
    is_in_tone: bool = Field(..., alias="isInTone")
    confidence: float = Field(..., ge=0.0, le=1.0)
    sources: List[str] = []
    metadata: Dict[str, Any] = {}


# Assessment Schemas
class AssessmentGenerateRequest(CamelModel):
    """Schema for generating a multiple-choice quiz."""

    question_count: float = Field(
        5,
        gt=0,
        le=settings.ASSESSMENT_MAX_QUESTIONS,
        allow_inf_nan=False,
        alias="questionCount",
    )
    difficulty: str = "medium"
    topic: Optional[str] = None
    exam_type: Optional[str] = Field(None, alias="examType")
    page_content: Optional[str] = Field(None, alias="pageContent")


class AssessmentQuestion(CamelModel):
    """A single four-option question."""

    id: str
    question: str
    options: List[str] = Field(..., min_length=4, max_length=4)
    answer_index: int = Field(..., ge=0, lt=4, alias="answerIndex")
    explanation: str


class AssessmentResponse(CamelModel):
    """Schema for a generated quiz."""

    questions: List[AssessmentQuestion]
    meta: Dict[str, Any]


class TopicExtractionRequest(CamelModel):
    """Schema for extracting topics from page content."""

    content: StrictStr


class TopicExtractionResponse(CamelModel):
    """Schema for extracted topics."""

    topics: List[str]
    meta: Dict[str, Any]


# Summary Schemas
class SummaryCheckRequest(CamelModel):
    """Schema for checking whether a cached summary exists."""

    page_path: StrictStr = Field(..., min_length=1, alias="pagePath")
    size: SummarySize = "short"


class SummaryCheckResponse(CamelModel):
    exists: bool
    summary: Optional[str] = None


class SummaryGenerateRequest(CamelModel):
    """Schema for generating (or fetching) a page summary."""

    page_path: StrictStr = Field(..., min_length=1, alias="pagePath")
    page_title: Optional[str] = Field(None, alias="pageTitle")
    size: SummarySize = "short"


class SummaryGenerateResponse(CamelModel):
    summary: str
    size: str
    page_path: str = Field(..., alias="pagePath")


# User Schemas
class PersonalizationStatusResponse(CamelModel):
    completed: bool


class PreferencesRequest(CamelModel):
    """Schema for saving onboarding answers."""

    ai_experience: Optional[str] = Field(None, max_length=100, alias="aiExperience")
    coding_experience: Optional[str] = Field(None, max_length=100, alias="codingExperience")


class PreferencesResponse(CamelModel):
    success: bool
    created: bool


class ProfileUpdateRequest(CamelModel):
    """Schema for updating the reader's display name and avatar."""

    name: Optional[str] = Field(None, max_length=255)
    image: Optional[str] = Field(None, max_length=1024)


class SuccessResponse(CamelModel):
    success: bool


# Explanation Schemas
class ExplanationRequest(CamelModel):
    """Schema for requesting a personalised page explanation."""

    page_title: StrictStr = Field(..., min_length=1, alias="pageTitle")
    page_path: StrictStr = Field(..., min_length=1, alias="pagePath")


class ExplanationResponse(CamelModel):
    explanation: str
    cached: bool


# Admin Schemas
class AdminUserResponse(CamelModel):
    """Schema for one row of the admin user listing."""

    id: str
    name: Optional[str] = None
    email: str
    image: Optional[str] = None
    ai_experience: Optional[str] = Field(None, alias="aiExperience")
    coding_experience: Optional[str] = Field(None, alias="codingExperience")
    created_at: Optional[datetime] = Field(None, alias="createdAt")


# Health Check Schema
class HealthCheckResponse(BaseModel):
    """Schema for health check response."""

    status: str
    database: str
    llm: str
    timestamp: datetime
