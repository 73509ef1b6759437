"""
Personalised page explanations.

Public API
----------
ExplanationService.get_or_generate(db, user_id, page_path, page_title) -> (html, cached)

Explanations are stored once per (user, page path, page title) and never
regenerated; the reader's onboarding levels at first generation are kept
alongside the HTML.
"""
from __future__ import annotations

import logging
import re
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.database_models import Explanation, UserPreferences
from app.services.llm_client import TextGenerator

logger = logging.getLogger(__name__)


DEFAULT_LEVEL = "Beginner"

_EXPLANATION_PROMPT = """\
You are an expert educator. Create a personalized explanation of "{title}" for \
a student with {ai_level} AI experience and {coding_level} coding experience.

CRITICAL RULES:
1. OUTPUT ONLY THE HTML CONTENT - NO meta-text like "html" or "Here is..."
2. Start directly with the content (e.g., <h3>...)
3. Use ONLY these HTML tags:
   - <h3> for main headings
   - <h4> for sub-headings
   - <ul> and <li> for bullet points
   - <p> for paragraphs
   - <strong> for emphasis
   - <code> for technical terms
   - <br> for line breaks if needed

4. STRUCTURE:
   - Begin with a brief introduction paragraph
   - Use 2-4 main sections with <h3> headings
   - Include bullet points for key concepts
   - Add examples relevant to their experience level
   - End with practical takeaways

5. TONE & DEPTH:
   - For beginners: use simple language, more examples
   - For experts: be concise, focus on advanced concepts

6. WHAT TO AVOID:
   - NO code block markers (```)
   - NO markdown syntax (#, **, etc.)
   - NO meta-commentary about the content

OUTPUT (start directly with HTML):"""

_LEADING_HTML_WORD = re.compile(r"^html\s*", re.IGNORECASE)
_LEADING_HTML_FENCE = re.compile(r"^```html\s*", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"```\s*$")


def clean_html_explanation(text: str) -> str:
    """Strip a leading ``html`` word, a ```html fence and a trailing fence."""
    text = text.strip()
    text = _LEADING_HTML_WORD.sub("", text)
    text = _LEADING_HTML_FENCE.sub("", text)
    text = _TRAILING_FENCE.sub("", text)
    return text.strip()


class ExplanationService:
    def __init__(self, llm: TextGenerator) -> None:
        self._llm = llm

    async def get_or_generate(
        self,
        db: AsyncSession,
        user_id: str,
        page_path: str,
        page_title: str,
    ) -> Tuple[str, bool]:
        existing = await self._find(db, user_id, page_path, page_title)
        if existing is not None:
            logger.info("Returning cached explanation for %r (user=%s)", page_title, user_id)
            return existing.content, True

        prefs = (
            await db.execute(select(UserPreferences).where(UserPreferences.user_id == user_id))
        ).scalar_one_or_none()
        ai_level = (prefs.ai_experience if prefs else None) or DEFAULT_LEVEL
        coding_level = (prefs.coding_experience if prefs else None) or DEFAULT_LEVEL

        raw = await self._llm.generate(
            _EXPLANATION_PROMPT.format(
                title=page_title, ai_level=ai_level, coding_level=coding_level
            )
        )
        html = clean_html_explanation(raw)

        db.add(
            Explanation(
                user_id=user_id,
                page_path=page_path,
                page_title=page_title,
                content=html,
                ai_level=ai_level,
                coding_level=coding_level,
            )
        )
        await db.flush()
        logger.info(
            "Generated explanation for %r (user=%s ai=%s coding=%s)",
            page_title,
            user_id,
            ai_level,
            coding_level,
        )
        return html, False

    @staticmethod
    async def _find(
        db: AsyncSession, user_id: str, page_path: str, page_title: str
    ) -> Optional[Explanation]:
        result = await db.execute(
            select(Explanation).where(
                Explanation.user_id == user_id,
                Explanation.page_path == page_path,
                Explanation.page_title == page_title,
            )
        )
        return result.scalar_one_or_none()
