"""
Tone classification: is a query inside the book's subject domain?

A cheap keyword/topic scorer answers confident cases on its own; uncertain
cases get one LLM call whose failure falls back to the keyword result.

Public API
----------
ToneClassifier.quick_check(query)                     -> ToneResult
ToneClassifier.classify(query, context_summary="")    -> ToneResult
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Any, Dict, List, Optional

from app.services.llm_client import LLMError, TextGenerator
from app.utils.llm_json import clamp, parse_fenced_json

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Domain vocabulary
# ---------------------------------------------------------------------------

DOMAIN_KEYWORDS: List[str] = [
    "AI", "artificial intelligence", "agent", "agentic", "python", "typescript",
    "spec-driven", "specification", "development", "programming", "code",
    "gemini", "claude", "openai", "MCP", "model context protocol",
    "docusaurus", "documentation", "book", "chapter", "tutorial",
    "API", "backend", "frontend", "react", "node", "express",
    "docker", "kubernetes", "deployment", "architecture",
    "prompt", "context", "engineering", "co-learning", "colearning",
]

DOMAIN_TOPICS: List[str] = [
    "AI-Driven Development",
    "AI-Native Development",
    "Python Programming",
    "TypeScript Programming",
    "Spec-Driven Development",
    "Agentic AI Systems",
    "OpenAI Agents SDK",
    "Google Gemini",
    "MCP Protocol",
    "Realtime Agents",
    "Voice Agents",
    "Containerization",
    "Event-Driven Architecture",
]

DOMAIN_NAME = "AI Native Software Development"


# ---------------------------------------------------------------------------
# Result dataclass
# ---------------------------------------------------------------------------

@dataclasses.dataclass
class ToneResult:
    is_in_tone: bool
    confidence: float
    reasoning: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isInTone": self.is_in_tone,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
        }


# ---------------------------------------------------------------------------
# Prompt template
# ---------------------------------------------------------------------------

_TONE_PROMPT = """\
You are a Tone Detection Agent. Determine if a user query is "in-tone" \
(related to the project context) or "out-of-tone" (unrelated).

PROJECT DOMAIN: {domain}
- A book and platform about AI-driven development, Python, TypeScript, agentic AI systems
- Topics include: {topics}
- Keywords: {keywords}

QUICK KEYWORD CHECK: {quick_reasoning} (confidence {quick_confidence:.2f})

PROJECT CONTEXT AVAILABLE:
{context}

USER QUERY: "{query}"

Analyze if this query is:
1. IN-TONE: Directly related to the project, its codebase, documentation, or domain topics
2. OUT-OF-TONE: Unrelated or only tangentially related to the project

Return a JSON object with this exact structure:
{{
  "isInTone": boolean,
  "confidence": number (0.0 to 1.0),
  "reasoning": "brief explanation"
}}

Return ONLY valid JSON, no additional text.\
"""


class ToneClassifier:
    """Keyword scorer with an optional single LLM refinement."""

    KEYWORD_POINTS: int = 2
    TOPIC_POINTS: int = 4
    NORMALIZATION_FACTOR: float = 0.3
    IN_TONE_THRESHOLD: float = 0.3
    CONFIDENCE_FLOOR: float = 0.1
    SHORT_CIRCUIT_CONFIDENCE: float = 0.8

    def __init__(
        self,
        llm: TextGenerator,
        keywords: Optional[List[str]] = None,
        topics: Optional[List[str]] = None,
    ) -> None:
        self._llm = llm
        self.keywords = list(keywords if keywords is not None else DOMAIN_KEYWORDS)
        self.topics = list(topics if topics is not None else DOMAIN_TOPICS)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def quick_check(self, query: str) -> ToneResult:
        """
        Score *query* against the domain vocabulary.

        Keywords add 2 points and topics 4; the total is normalised by
        ``len(keywords) * 0.3`` and capped at 1.  The query is in tone when
        that raw score exceeds 0.3; the reported confidence never drops
        below 0.1.
        """
        lower = (query or "").lower()
        keyword_hits = sum(1 for k in self.keywords if k.lower() in lower)
        topic_hits = sum(1 for t in self.topics if t.lower() in lower)
        score = keyword_hits * self.KEYWORD_POINTS + topic_hits * self.TOPIC_POINTS

        denominator = len(self.keywords) * self.NORMALIZATION_FACTOR
        raw = min(1.0, score / denominator) if denominator else 0.0

        return ToneResult(
            is_in_tone=raw > self.IN_TONE_THRESHOLD,
            confidence=max(self.CONFIDENCE_FLOOR, min(1.0, raw)),
            reasoning=(
                f"Quick check: {keyword_hits} keyword and {topic_hits} topic "
                f"matches (score {score})"
            ),
        )

    async def classify(self, query: str, context_summary: str = "") -> ToneResult:
        """Quick check first; ask the LLM only when the quick score is below 0.8."""
        quick = self.quick_check(query)
        if quick.confidence >= self.SHORT_CIRCUIT_CONFIDENCE:
            return quick

        prompt = _TONE_PROMPT.format(
            domain=DOMAIN_NAME,
            topics=", ".join(self.topics),
            keywords=", ".join(self.keywords),
            quick_reasoning=quick.reasoning,
            quick_confidence=quick.confidence,
            context=context_summary or "Limited context available",
            query=query,
        )

        try:
            text = await self._llm.generate(prompt, temperature=0.1)
        except LLMError as exc:
            logger.warning("Tone LLM check failed, using quick check: %s", exc)
            return quick

        payload = parse_fenced_json(text).as_dict()
        if payload is None:
            logger.warning("Tone LLM check returned unparsable output, using quick check")
            return quick

        is_in_tone = payload.get("isInTone")
        return ToneResult(
            is_in_tone=is_in_tone if isinstance(is_in_tone, bool) else True,
            confidence=(
                clamp(payload["confidence"], default=0.7)
                if payload.get("confidence") is not None
                else 0.7
            ),
            reasoning=str(payload.get("reasoning") or "Analyzed using AI model"),
        )
