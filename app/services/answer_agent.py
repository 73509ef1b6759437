"""
Final answer generation for the chat pipeline.

Receives everything the earlier stages produced (tone, structured query,
retrieved context, history) and makes one generation call.  Clearly
out-of-domain questions are first enriched with a simulated browser search.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Any, Dict, List, Optional, Sequence

from app.services.browser_search import BrowserSearch
from app.services.context_indexer import RelevantContext
from app.services.llm_client import TextGenerator
from app.services.query_structurer import StructuredQuery
from app.services.tone_classifier import DOMAIN_NAME, DOMAIN_TOPICS, ToneResult

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class AnswerRequest:
    query: str
    structured_query: StructuredQuery
    tone: ToneResult
    project_context: RelevantContext
    conversation_history: Sequence[Dict[str, Any]] = ()
    is_summary: bool = False


@dataclasses.dataclass
class Answer:
    text: str
    sources: List[str] = dataclasses.field(default_factory=list)
    used_browser_search: bool = False


_ANSWER_PROMPT = """\
You are the learning assistant for the book "{domain}". Answer the reader's \
message clearly and accurately. Use Markdown. Prefer the project context \
below; say so when it does not cover the question.

## Reader Message
{query}

## Query Analysis
- Intent: {intent}
- Topics: {topics}
- Keywords: {keywords}
- Complexity: {complexity}
- Expected response type: {response_type}
- In project domain: {in_tone} (confidence {confidence:.2f})

## Project Context
{context}
{external}
## Recent Conversation
{history}

{mode_instruction}

Answer:"""

_SUMMARY_INSTRUCTION = (
    "The reader supplied text to summarise. Summarise exactly that text, keep "
    "its terminology, and do not add outside material."
)
_ANSWER_INSTRUCTION = (
    "Match the depth to the complexity. Include a short code example when the "
    "expected response type is code or example."
)


class AnswerAgent:
    """Builds the answer prompt and calls the model once (plus an optional search)."""

    HISTORY_TURNS: int = 6
    BROWSER_SEARCH_CONFIDENCE: float = 0.5

    def __init__(self, llm: TextGenerator, browser_search: Optional[BrowserSearch] = None) -> None:
        self._llm = llm
        self._search = browser_search or BrowserSearch(llm)

    def needs_browser_search(self, request: AnswerRequest) -> bool:
        return (
            not request.is_summary
            and not request.tone.is_in_tone
            and request.tone.confidence < self.BROWSER_SEARCH_CONFIDENCE
        )

    async def generate_answer(self, request: AnswerRequest) -> Answer:
        external = ""
        used_search = self.needs_browser_search(request)
        if used_search:
            logger.info("Query looks out of domain, running browser search")
            findings = await self._search.search(
                request.query, project_domain=DOMAIN_NAME, project_topics=DOMAIN_TOPICS
            )
            external = f"\n## External Findings\n{findings}\n"

        sq = request.structured_query
        prompt = _ANSWER_PROMPT.format(
            domain=DOMAIN_NAME,
            query=request.query,
            intent=sq.intent,
            topics=", ".join(sq.topics) or "none",
            keywords=", ".join(sq.keywords) or "none",
            complexity=sq.complexity,
            response_type=sq.expected_response_type,
            in_tone=request.tone.is_in_tone,
            confidence=request.tone.confidence,
            context=request.project_context.summary,
            external=external,
            history=self.format_history(request.conversation_history),
            mode_instruction=_SUMMARY_INSTRUCTION if request.is_summary else _ANSWER_INSTRUCTION,
        )

        text = await self._llm.generate(prompt)
        return Answer(
            text=text.strip(),
            sources=[f.path for f in request.project_context.files],
            used_browser_search=used_search,
        )

    @classmethod
    def format_history(cls, history: Sequence[Dict[str, Any]]) -> str:
        """Render the last few turns as ``Reader:`` / ``Assistant:`` lines."""
        lines: List[str] = []
        for turn in list(history or [])[-cls.HISTORY_TURNS:]:
            if not isinstance(turn, dict):
                continue
            text = turn.get("text") or turn.get("content") or ""
            if not isinstance(text, str) or not text.strip():
                continue
            is_bot = bool(turn.get("isBot")) or turn.get("role") in ("assistant", "bot", "model")
            lines.append(f"{'Assistant' if is_bot else 'Reader'}: {text.strip()}")
        return "\n".join(lines) or "(no previous messages)"
