"""Database and schema models for the Book Companion backend."""
from app.models.database_models import (
    User,
    UserPreferences,
    Explanation,
)
from app.models.schemas import (
    ChatRequest,
    ChatResponse,
    AssessmentGenerateRequest,
    AssessmentResponse,
    TopicExtractionRequest,
    TopicExtractionResponse,
    SummaryCheckRequest,
    SummaryGenerateRequest,
    PreferencesRequest,
    ExplanationRequest,
    AdminUserResponse,
    HealthCheckResponse,
)

__all__ = [
    # Database models
    "User",
    "UserPreferences",
    "Explanation",
    # Pydantic schemas
    "ChatRequest",
    "ChatResponse",
    "AssessmentGenerateRequest",
    "AssessmentResponse",
    "TopicExtractionRequest",
    "TopicExtractionResponse",
    "SummaryCheckRequest",
    "SummaryGenerateRequest",
    "PreferencesRequest",
    "ExplanationRequest",
    "AdminUserResponse",
    "HealthCheckResponse",
]
