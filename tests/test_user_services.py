"""Tests for preference, profile and explanation services against SQLite."""
import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.database_models import Explanation, User, UserPreferences
from app.services import user_service
from app.services.explanation_service import ExplanationService, clean_html_explanation
from app.services.llm_client import LLMError
from tests.conftest import FakeLLM


async def add_user(db: AsyncSession, user_id: str = "reader-1") -> User:
    user = User(id=user_id, email=f"{user_id}@example.com", name="Reader")
    db.add(user)
    await db.flush()
    return user


# ---------------------------------------------------------------------------
# Preferences / profile
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_upsert_preferences_creates_then_updates(db_session: AsyncSession):
    assert await user_service.upsert_preferences(db_session, "reader-1", "Beginner", None) is True
    assert await user_service.is_personalization_complete(db_session, "reader-1") is False

    assert await user_service.upsert_preferences(
        db_session, "reader-1", "Intermediate", "Expert"
    ) is False
    assert await user_service.is_personalization_complete(db_session, "reader-1") is True

    count = (await db_session.execute(select(func.count()).select_from(UserPreferences))).scalar()
    assert count == 1
    prefs = await user_service.get_preferences(db_session, "reader-1")
    assert prefs.ai_experience == "Intermediate"
    assert prefs.coding_experience == "Expert"


@pytest.mark.asyncio
async def test_personalization_incomplete_without_row(db_session: AsyncSession):
    assert await user_service.is_personalization_complete(db_session, "nobody") is False


@pytest.mark.asyncio
async def test_update_profile(db_session: AsyncSession):
    assert await user_service.update_profile(db_session, "ghost", "Name", None) is False

    user = await add_user(db_session)
    assert await user_service.update_profile(db_session, user.id, "New Name", "https://img/x.png")
    assert user.name == "New Name"
    assert user.image == "https://img/x.png"


@pytest.mark.asyncio
async def test_list_users_joins_preferences(db_session: AsyncSession):
    await add_user(db_session, "reader-1")
    await add_user(db_session, "reader-2")
    await user_service.upsert_preferences(db_session, "reader-2", "Expert", "Beginner")

    users = {u["id"]: u for u in await user_service.list_users(db_session)}
    assert set(users) == {"reader-1", "reader-2"}
    assert users["reader-1"]["aiExperience"] is None
    assert users["reader-2"]["aiExperience"] == "Expert"
    assert users["reader-2"]["codingExperience"] == "Beginner"
    assert users["reader-2"]["email"] == "reader-2@example.com"


# ---------------------------------------------------------------------------
# Explanations
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "raw,expected",
    [
        ("<h3>Intro</h3>", "<h3>Intro</h3>"),
        ("html\n<h3>Intro</h3>", "<h3>Intro</h3>"),
        ("```html\n<p>x</p>\n```", "<p>x</p>"),
        ("HTML ```html\n<p>x</p>```  ", "<p>x</p>"),
    ],
)
def test_clean_html_explanation(raw, expected):
    assert clean_html_explanation(raw) == expected


@pytest.mark.asyncio
async def test_explanation_defaults_to_beginner_and_caches(db_session: AsyncSession):
    llm = FakeLLM(["```html\n<h3>Agents</h3>\n```"])
    service = ExplanationService(llm)

    html, cached = await service.get_or_generate(db_session, "reader-1", "docs/a.md", "Agents")
    assert (html, cached) == ("<h3>Agents</h3>", False)
    assert "Beginner AI experience and Beginner coding experience" in llm.prompts[0]

    html, cached = await service.get_or_generate(db_session, "reader-1", "docs/a.md", "Agents")
    assert (html, cached) == ("<h3>Agents</h3>", True)
    assert llm.calls == 1

    row = (await db_session.execute(select(Explanation))).scalar_one()
    assert row.ai_level == "Beginner"
    assert row.coding_level == "Beginner"


@pytest.mark.asyncio
async def test_explanation_uses_reader_levels(db_session: AsyncSession):
    await user_service.upsert_preferences(db_session, "reader-1", "Expert", "Intermediate")
    llm = FakeLLM(["<p>deep dive</p>"])
    await ExplanationService(llm).get_or_generate(db_session, "reader-1", "docs/a.md", "Agents")
    assert "Expert AI experience and Intermediate coding experience" in llm.prompts[0]


@pytest.mark.asyncio
async def test_explanations_are_per_reader(db_session: AsyncSession):
    llm = FakeLLM(["<p>one</p>", "<p>two</p>"])
    service = ExplanationService(llm)
    await service.get_or_generate(db_session, "reader-1", "docs/a.md", "Agents")
    html, cached = await service.get_or_generate(db_session, "reader-2", "docs/a.md", "Agents")
    assert (html, cached) == ("<p>two</p>", False)


@pytest.mark.asyncio
async def test_explanation_failure_stores_nothing(db_session: AsyncSession):
    with pytest.raises(LLMError):
        await ExplanationService(FakeLLM([LLMError("down")])).get_or_generate(
            db_session, "reader-1", "docs/a.md", "Agents"
        )
    assert (await db_session.execute(select(Explanation))).scalar_one_or_none() is None
