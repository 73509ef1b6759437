"""
Service dependencies for FastAPI routes.

The shared service instances are built once in the application lifespan and
stored on ``app.state``; routes receive them through these providers so tests
can swap any of them with ``app.dependency_overrides``.
"""
from __future__ import annotations

from fastapi import Request

from app.services.assessment_service import AssessmentService
from app.services.chat_service import ChatService
from app.services.explanation_service import ExplanationService
from app.services.llm_client import GeminiClient
from app.services.summary_service import SummaryService


def get_llm_client(request: Request) -> GeminiClient:
    return request.app.state.llm


def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


def get_assessment_service(request: Request) -> AssessmentService:
    return request.app.state.assessment_service


def get_summary_service(request: Request) -> SummaryService:
    return request.app.state.summary_service


def get_explanation_service(request: Request) -> ExplanationService:
    return request.app.state.explanation_service
