"""
Shared fixtures for Book Companion backend tests.

Uses a throwaway SQLite database (aiosqlite) per test and a scripted
``FakeLLM`` in place of Gemini, so no network or external database is needed.
ASGITransport does not run the lifespan, so the ``client`` fixture wires the
service graph onto ``app.state`` itself.
"""
from __future__ import annotations

import os
import tempfile
from typing import AsyncGenerator, Callable, List, Optional, Union

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

# Override settings *before* any app module is imported, so that the global
# engine points at a scratch database and the Gemini client can be built.
_SCRATCH_DIR = tempfile.mkdtemp(prefix="book-companion-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_SCRATCH_DIR, 'app.db')}"
os.environ.setdefault("GEMINI_API_KEY", "test-key")

from app.config import settings  # noqa: E402
from app.database import Base, get_db  # noqa: E402
from app.main import app, build_services  # noqa: E402
from app.services.llm_client import LLMError  # noqa: E402

Response = Union[str, Exception, Callable[[str], str]]


class FakeLLM:
    """
    Scripted stand-in for GeminiClient.

    Replays ``responses`` in order (strings are returned, exceptions raised,
    callables called with the prompt); once exhausted every call returns
    ``default``.  Every prompt is recorded.
    """

    def __init__(self, responses: Optional[List[Response]] = None, default: str = "") -> None:
        self.responses: List[Response] = list(responses or [])
        self.default = default
        self.prompts: List[str] = []
        self.temperatures: List[Optional[float]] = []
        self.healthy = True

    async def generate(self, prompt, *, max_tokens=None, temperature=None) -> str:
        self.prompts.append(prompt)
        self.temperatures.append(temperature)
        if not self.responses:
            return self.default
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(prompt)
        return response

    async def check_health(self) -> bool:
        return self.healthy

    @property
    def calls(self) -> int:
        return len(self.prompts)


def failing_llm(message: str = "upstream unavailable") -> FakeLLM:
    """A FakeLLM whose every call raises LLMError."""
    llm = FakeLLM()

    async def _raise(prompt, *, max_tokens=None, temperature=None):
        llm.prompts.append(prompt)
        raise LLMError(message)

    llm.generate = _raise
    return llm


# ---------------------------------------------------------------------------
# Per-test fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def book_root(tmp_path):
    """A minimal book checkout: two docs pages and one source file."""
    root = tmp_path / "book"
    (root / "docs" / "01-intro").mkdir(parents=True)
    (root / "docs" / "02-agents").mkdir(parents=True)
    (root / "src" / "components").mkdir(parents=True)

    (root / "docs" / "01-intro" / "readme.md").write_text(
        "---\ntitle: Introduction to AI Native Development\n---\n\n"
        "# Welcome\n\nThis book teaches spec-driven development with Python "
        "and TypeScript, pairing every chapter with an AI agent exercise.\n",
        encoding="utf-8",
    )
    (root / "docs" / "02-agents" / "tools.md").write_text(
        "# Agent Tools\n\nAgents call tools through the Model Context Protocol. "
        "A tool has a name, a JSON schema and a handler.\n",
        encoding="utf-8",
    )
    (root / "src" / "components" / "Chat.tsx").write_text(
        "export function Chat() { return null; }\n", encoding="utf-8"
    )
    return root


@pytest_asyncio.fixture
async def db_session(tmp_path) -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a DB session on a fresh SQLite file for each test.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False, poolclass=NullPool
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    await engine.dispose()


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession, fake_llm: FakeLLM, book_root, tmp_path, monkeypatch
) -> AsyncGenerator[AsyncClient, None]:
    """
    httpx AsyncClient wired to the FastAPI app with the DB dependency
    overridden and every service built on ``fake_llm``.
    """
    monkeypatch.setattr(settings, "PROJECT_ROOT", str(book_root))
    monkeypatch.setattr(settings, "SUMMARY_DIR", str(tmp_path / "summary"))
    build_services(app, fake_llm)

    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

AUTH_HEADERS = {
    "X-User-Id": "reader-1",
    "X-User-Email": "reader1@example.com",
    "X-User-Name": "Reader One",
}

AUTH_HEADERS_USER2 = {
    "X-User-Id": "reader-2",
    "X-User-Email": "reader2@example.com",
    "X-User-Name": "Reader Two",
}
