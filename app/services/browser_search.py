"""
Simulated external search for out-of-domain chat queries.

There is no real web search behind this: the model is asked to synthesise
what it knows about the topic and bridge it back to the book's domain.
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence

from app.services.llm_client import LLMError, TextGenerator
from app.services.tone_classifier import DOMAIN_NAME

logger = logging.getLogger(__name__)

DEFAULT_TOPICS = ("AI", "Python", "TypeScript", "Agentic AI")

_SEARCH_PROMPT = """\
You are a web search synthesizer. The user asked: "{query}"

This query is somewhat outside the immediate project context, but we want to \
provide helpful information while relating it back to "{domain}" when possible.

Project Domain: {domain}
Project Topics: {topics}

Based on your knowledge, provide:
1. Relevant information about the query topic
2. How it might relate to or be useful in the context of {domain}
3. Key points that would be helpful

Format as a concise summary (2-3 paragraphs) that bridges the external topic \
with the project domain.\
"""


class BrowserSearch:
    def __init__(self, llm: TextGenerator) -> None:
        self._llm = llm

    async def search(
        self,
        query: str,
        project_domain: Optional[str] = None,
        project_topics: Optional[Sequence[str]] = None,
    ) -> str:
        domain = project_domain or DOMAIN_NAME
        prompt = _SEARCH_PROMPT.format(
            query=query,
            domain=domain,
            topics=", ".join(project_topics or DEFAULT_TOPICS),
        )
        try:
            return await self._llm.generate(prompt)
        except LLMError as exc:
            logger.warning("Browser search synthesis failed: %s", exc)
            return (
                f'I found some information about "{query}". While this is outside the '
                f"immediate project scope, it's an interesting topic. In the context of "
                f"{domain}, similar concepts might apply when building intelligent systems."
            )
