"""
Main FastAPI application for the Book Companion backend.
Handles CORS, request logging middleware, lifespan events, and router registration.
"""
import logging
import os
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.database import close_db, init_db
from app.routers import admin, assessment, chat, explanation, health, summary, user
from app.services.answer_agent import AnswerAgent
from app.services.assessment_service import AssessmentService
from app.services.browser_search import BrowserSearch
from app.services.chat_service import ChatService
from app.services.context_indexer import ContextIndexCache, ProjectContextIndexer
from app.services.explanation_service import ExplanationService
from app.services.llm_client import GeminiClient, TextGenerator
from app.services.query_structurer import QueryStructurer
from app.services.summary_service import SummaryCache, SummaryService
from app.services.tone_classifier import ToneClassifier

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Startup / shutdown helpers
# ---------------------------------------------------------------------------

async def _check_database() -> bool:
    """Initialise DB tables and verify the connection.  Returns True on success."""
    try:
        await init_db()
        logger.info("✓ Database connection OK")
        return True
    except Exception as exc:
        logger.error("✗ Database connection failed: %s", exc)
        raise


def build_services(app: FastAPI, llm: TextGenerator) -> None:
    """Wire the shared service graph onto ``app.state``."""
    indexer = ProjectContextIndexer.from_settings(
        ContextIndexCache(ttl_seconds=settings.CONTEXT_CACHE_TTL_SECONDS)
    )
    app.state.llm = llm
    app.state.chat_service = ChatService(
        indexer=indexer,
        tone=ToneClassifier(llm),
        structurer=QueryStructurer(llm),
        answer_agent=AnswerAgent(llm, BrowserSearch(llm)),
    )
    app.state.assessment_service = AssessmentService(llm)
    app.state.summary_service = SummaryService(
        llm, SummaryCache(settings.SUMMARY_DIR), settings.PROJECT_ROOT
    )
    app.state.explanation_service = ExplanationService(llm)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown event handler."""
    logger.info("=" * 60)
    logger.info("  Starting Book Companion backend …")
    logger.info("=" * 60)

    # 1 - Gemini credentials (required; LLMConfigurationError aborts startup)
    llm = GeminiClient()
    logger.info("✓ Gemini model: %s", llm.model)

    # 2 - Database (required; raises on failure)
    await _check_database()

    # 3 - Summary directory
    os.makedirs(settings.SUMMARY_DIR, exist_ok=True)
    logger.info("✓ Summary directory: %s", os.path.abspath(settings.SUMMARY_DIR))

    # 4 - Services
    build_services(app, llm)
    logger.info(
        "✓ Context roots under %s: %s",
        os.path.abspath(settings.PROJECT_ROOT),
        ", ".join(path for path, _ in settings.get_context_roots()),
    )

    logger.info("=" * 60)
    logger.info("  Book Companion backend ready on http://%s:%d", settings.HOST, settings.PORT)
    logger.info("  Swagger UI : http://%s:%d/docs", settings.HOST, settings.PORT)
    logger.info("  Health     : http://%s:%d/api/health", settings.HOST, settings.PORT)
    logger.info("=" * 60)

    yield  # ← server is running

    logger.info("Shutting down Book Companion backend …")
    await close_db()
    logger.info("✓ Shutdown complete.")


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Book Companion API",
    description=(
        "AI companion for the *AI Native Software Development* book.\n\n"
        "Key endpoints:\n"
        "- `POST /api/chat/message` - project-aware chat assistant\n"
        "- `POST /api/assessment/generate` - multiple-choice quiz for a page\n"
        "- `POST /api/assessment/extract-topics` - main topics of a page\n"
        "- `POST /api/summary/generate` - cached Markdown page summary\n"
        "- `POST /api/explanation/generate` - explanation tuned to the reader\n"
    ),
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Request / response logging middleware
# ---------------------------------------------------------------------------

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Log every request with method, path, status code, and elapsed time.
    Attaches an ``X-Process-Time`` header (milliseconds) to every response.
    """
    t0 = time.monotonic()
    response = await call_next(request)
    elapsed_ms = round((time.monotonic() - t0) * 1000, 2)

    # Skip noisy health-check polling from the frontend
    if request.url.path not in ("/api/health", "/api/health/", "/"):
        logger.info(
            "%s %s → %d  (%.2f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )

    response.headers["X-Process-Time"] = f"{elapsed_ms}ms"
    return response


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are client errors: 400 with the field messages."""
    errors = exc.errors()
    message = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()) if p != 'body')}: {err.get('msg')}"
        for err in errors
    )
    logger.info("Rejected %s %s: %s", request.method, request.url.path, message)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": message or "Invalid request body"},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Return a structured JSON error for any unhandled exception."""
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "error": str(exc),
            "path": str(request.url.path),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(health.router,      prefix="/api/health",      tags=["Health"])
app.include_router(chat.router,        prefix="/api/chat",        tags=["Chat"])
app.include_router(assessment.router,  prefix="/api/assessment",  tags=["Assessment"])
app.include_router(summary.router,     prefix="/api/summary",     tags=["Summary"])
app.include_router(user.router,        prefix="/api/user",        tags=["User"])
app.include_router(explanation.router, prefix="/api/explanation", tags=["Explanation"])
app.include_router(admin.router,       prefix="/api/admin",       tags=["Admin"])


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------

@app.get("/", tags=["Root"], include_in_schema=False)
async def root():
    """API root - returns basic service info."""
    return {
        "name": "Book Companion API",
        "version": "1.0.0",
        "description": "AI Native Software Development book backend",
        "docs": "/docs",
        "health": "/api/health",
        "endpoints": {
            "chat": "/api/chat/message",
            "assessment": "/api/assessment",
            "summary": "/api/summary",
            "user": "/api/user",
            "explanation": "/api/explanation/generate",
            "admin": "/api/admin/users",
        },
    }


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=True,
        log_level="info",
    )
