"""
Converts a free-text chat query into a fixed-schema ``StructuredQuery``.

All six fields are always present: missing or invalid model output is
replaced field-by-field, and a failed call or unparsable reply yields the
default structure with keywords taken from the query itself.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Any, Dict, List, Optional

from app.services.llm_client import LLMError, TextGenerator
from app.utils.llm_json import parse_fenced_json

logger = logging.getLogger(__name__)


VALID_INTENTS = frozenset({"question", "command", "clarification", "general"})
VALID_COMPLEXITIES = frozenset({"simple", "medium", "complex"})
VALID_RESPONSE_TYPES = frozenset({"explanation", "code", "example", "reference", "search"})

DEFAULT_PROJECT_CONTEXT = (
    "AI Native Software Development - A book about AI-driven development, "
    "Python, TypeScript, and agentic AI systems"
)


@dataclasses.dataclass
class StructuredQuery:
    intent: str = "question"
    topics: List[str] = dataclasses.field(default_factory=list)
    keywords: List[str] = dataclasses.field(default_factory=list)
    requires_context: bool = True
    complexity: str = "medium"
    expected_response_type: str = "explanation"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent": self.intent,
            "topics": list(self.topics),
            "keywords": list(self.keywords),
            "requiresContext": self.requires_context,
            "complexity": self.complexity,
            "expectedResponseType": self.expected_response_type,
        }


@dataclasses.dataclass
class StructuringContext:
    is_in_tone: bool
    confidence: float
    project_context: Optional[str] = None
    is_summary: bool = False


_STRUCTURE_PROMPT = """\
You are a JSON Conversion Agent. Your role is to structure user queries into \
a standardized JSON format for processing.

Context:
- Is In Tone: {is_in_tone}
- Confidence: {confidence}
- Is Summary Request: {is_summary}
- Project Context: {project_context}

User Query: "{query}"

Convert this query into a structured JSON object with the following schema:
{{
  "intent": "string (one of: question, command, clarification, general)",
  "topics": ["array of relevant topics"],
  "keywords": ["array of important keywords"],
  "requiresContext": boolean,
  "complexity": "string (simple, medium, complex)",
  "expectedResponseType": "string (explanation, code, example, reference, search)"
}}

Return ONLY valid JSON, no additional text.\
"""


def fallback_keywords(query: str) -> List[str]:
    """Words of *query* longer than three characters."""
    return [w for w in (query or "").split() if len(w) > 3]


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if isinstance(v, str) and v.strip()]


def _choice(value: Any, valid: frozenset, default: str) -> str:
    normalized = str(value).strip().lower() if isinstance(value, str) else ""
    return normalized if normalized in valid else default


class QueryStructurer:
    """LLM-backed query → StructuredQuery conversion."""

    def __init__(self, llm: TextGenerator) -> None:
        self._llm = llm

    async def structure(self, query: str, context: StructuringContext) -> StructuredQuery:
        prompt = _STRUCTURE_PROMPT.format(
            is_in_tone=context.is_in_tone,
            confidence=context.confidence,
            is_summary=context.is_summary,
            project_context=context.project_context or DEFAULT_PROJECT_CONTEXT,
            query=query,
        )

        try:
            text = await self._llm.generate(prompt, temperature=0.1)
        except LLMError as exc:
            logger.warning("Query structuring failed, using defaults: %s", exc)
            return StructuredQuery(keywords=fallback_keywords(query))

        payload = parse_fenced_json(text).as_dict()
        if payload is None:
            logger.warning("Query structuring returned unparsable output, using defaults")
            return StructuredQuery(keywords=fallback_keywords(query))

        return self.normalize(payload)

    @staticmethod
    def normalize(payload: Dict[str, Any]) -> StructuredQuery:
        """Coerce a parsed model reply into a complete StructuredQuery."""
        requires_context = payload.get("requiresContext")
        return StructuredQuery(
            intent=_choice(payload.get("intent"), VALID_INTENTS, "question"),
            topics=_string_list(payload.get("topics")),
            keywords=_string_list(payload.get("keywords")),
            requires_context=requires_context if isinstance(requires_context, bool) else True,
            complexity=_choice(payload.get("complexity"), VALID_COMPLEXITIES, "medium"),
            expected_response_type=_choice(
                payload.get("expectedResponseType"), VALID_RESPONSE_TYPES, "explanation"
            ),
        )
