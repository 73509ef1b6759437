"""
Chat orchestration.

Per message:
  small talk?  → canned reply, done
  else         → context lookup ‖ quick tone check   (concurrently)
               → full tone check when quick confidence < 0.7 (not for summaries)
               → structure the query
               → answer agent
Errors from any stage propagate to the caller.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
import random
from typing import Any, Dict, List, Optional, Sequence

from app.services.answer_agent import AnswerAgent, AnswerRequest
from app.services.context_indexer import ProjectContextIndexer
from app.services.message_router import MessageKind, route_message, small_talk_reply
from app.services.query_structurer import QueryStructurer, StructuringContext
from app.services.tone_classifier import ToneClassifier, ToneResult

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class ChatReply:
    message: str
    is_in_tone: bool
    confidence: float
    sources: List[str]
    metadata: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "isInTone": self.is_in_tone,
            "confidence": self.confidence,
            "sources": list(self.sources),
            "metadata": dict(self.metadata),
        }


class ChatService:
    FULL_TONE_CHECK_BELOW: float = 0.7

    def __init__(
        self,
        indexer: ProjectContextIndexer,
        tone: ToneClassifier,
        structurer: QueryStructurer,
        answer_agent: AnswerAgent,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._indexer = indexer
        self._tone = tone
        self._structurer = structurer
        self._answer_agent = answer_agent
        self._rng = rng

    async def process_message(
        self,
        message: str,
        conversation_history: Optional[Sequence[Dict[str, Any]]] = None,
    ) -> ChatReply:
        trimmed = message.strip() if isinstance(message, str) else ""
        history = list(conversation_history or [])

        routed = route_message(trimmed)
        if routed.kind is MessageKind.SMALL_TALK:
            return ChatReply(
                message=small_talk_reply(routed.category, self._rng),
                is_in_tone=True,
                confidence=1.0,
                sources=[],
                metadata={"structuredQuery": None, "handledBy": "chat_service.small_talk"},
            )

        is_summary = routed.kind is MessageKind.SUMMARY_REQUEST

        project_context, quick_tone = await asyncio.gather(
            self._indexer.get_relevant_context(trimmed),
            self._quick_tone(trimmed),
        )

        tone = quick_tone
        if quick_tone.confidence < self.FULL_TONE_CHECK_BELOW and not is_summary:
            tone = await self._tone.classify(trimmed, project_context.summary)

        structured = await self._structurer.structure(
            trimmed,
            StructuringContext(
                is_in_tone=tone.is_in_tone,
                confidence=tone.confidence,
                project_context=project_context.summary,
                is_summary=is_summary,
            ),
        )

        answer = await self._answer_agent.generate_answer(
            AnswerRequest(
                query=trimmed,
                structured_query=structured,
                tone=tone,
                project_context=project_context,
                conversation_history=history,
                is_summary=is_summary,
            )
        )

        logger.info(
            "Chat reply: in_tone=%s confidence=%.2f sources=%d browser_search=%s",
            tone.is_in_tone,
            tone.confidence,
            len(answer.sources),
            answer.used_browser_search,
        )
        return ChatReply(
            message=answer.text,
            is_in_tone=tone.is_in_tone,
            confidence=tone.confidence,
            sources=answer.sources,
            metadata={
                "structuredQuery": structured.to_dict(),
                "usedBrowserSearch": answer.used_browser_search,
            },
        )

    async def _quick_tone(self, message: str) -> ToneResult:
        return self._tone.quick_check(message)
