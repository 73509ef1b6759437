"""
Quiz and topic generation from book pages.

Public API
----------
AssessmentService.generate_assessment(request) -> {"questions": [...], "meta": {...}}
AssessmentService.extract_topics(content)      -> {"topics": [...], "meta": {...}}

Every returned question has exactly four options and an ``answerIndex`` in
[0, 4); ``generate_assessment`` always returns the requested number of
questions once the model has produced at least one.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Any, Dict, List, Optional

from app.config import settings
from app.services.exceptions import ContentValidationError
from app.services.llm_client import LLMError, TextGenerator
from app.utils.llm_json import parse_first_object

logger = logging.getLogger(__name__)


DEFAULT_TOPIC = "AI Native Software Development"
DEFAULT_EXAM_TYPE = "General Assessment"
DEFAULT_QUESTION_COUNT = 5
DEFAULT_EXPLANATION = "Review the associated chapter to reinforce the concept."
OPTION_COUNT = 4
# Page content shorter than this is not embedded in the prompt
MIN_PAGE_CONTENT_CHARS = 100


@dataclasses.dataclass
class AssessmentRequest:
    question_count: Any = DEFAULT_QUESTION_COUNT
    difficulty: str = "medium"
    topic: Optional[str] = None
    exam_type: Optional[str] = None
    page_content: Optional[str] = None


# ---------------------------------------------------------------------------
# Prompt templates
# ---------------------------------------------------------------------------

_ASSESSMENT_HEADER = """\
You are an assessment generator for an AI engineering course.
Create exactly {count} multiple-choice questions for the "{exam_type}" exam.

Parameters:
- Topic: {topic}
- Difficulty: {difficulty}
"""

_ASSESSMENT_SOURCE = """
SOURCE CONTENT (PRIORITIZE THIS):
The questions MUST be based on the following lesson content. Do not use general \
knowledge - only create questions from concepts, examples, and information \
explicitly covered in this content:

{content}

---
"""

_ASSESSMENT_FOOTER = """
Output strict JSON with this shape (NO prose, markdown, or code fences):
{{
  "questions": [
    {{
      "question": "Question text",
      "options": ["Option A", "Option B", "Option C", "Option D"],
      "answerIndex": 0,
      "explanation": "Why the answer is correct"
    }}
  ]
}}

Rules:
- Return exactly {count} questions.
- Always provide exactly 4 unique options per question.
- {source_rule}
- Use advanced vocabulary only if difficulty is "professional".
- Keep explanations concise (1-2 sentences).
- Ensure all options are plausible to someone who hasn't studied the content.\
"""

_TOPICS_PROMPT = """\
You are a topic extraction expert for educational content.
Analyze the following page content and extract the main topics discussed.

Content:
{content}

Output strict JSON with this shape (NO prose, markdown, or code fences):
{{
  "topics": [
    "Topic 1 Name",
    "Topic 2 Name",
    "Topic 3 Name"
  ]
}}

Rules:
- Extract 3-8 distinct topics that represent the main concepts discussed
- Use concise, clear topic names (3-6 words each)
- Focus on educational concepts, not just section titles
- Order topics by importance/prominence in the content
- Avoid generic terms like "Introduction" or "Overview"\
"""


def option_label(position: int) -> str:
    return f"Option {chr(65 + position)}"


def normalize_question(raw: Any, index: int) -> Dict[str, Any]:
    """Coerce one model question into the fixed four-option shape."""
    item = raw if isinstance(raw, dict) else {}

    options_raw = item.get("options")
    options: List[str] = (
        [str(o) for o in options_raw[:OPTION_COUNT]] if isinstance(options_raw, list) else []
    )
    while len(options) < OPTION_COUNT:
        options.append(option_label(len(options)))

    answer = item.get("answerIndex")
    if isinstance(answer, float) and answer.is_integer():
        answer = int(answer)
    if not isinstance(answer, int) or isinstance(answer, bool) or not 0 <= answer < OPTION_COUNT:
        answer = 0

    question = item.get("question")
    explanation = item.get("explanation")
    return {
        "id": f"q-{index}",
        "question": (question.strip() if isinstance(question, str) else "") or f"Question {index + 1}",
        "options": options,
        "answerIndex": answer,
        "explanation": (
            (explanation.strip() if isinstance(explanation, str) else "") or DEFAULT_EXPLANATION
        ),
    }


def coerce_question_count(value: Any) -> int:
    """
    ``max(1, int(value))`` capped at ASSESSMENT_MAX_QUESTIONS, with
    non-numeric, non-finite or zero values meaning the default.
    """
    try:
        count = int(float(value))
    except (TypeError, ValueError, OverflowError):
        count = 0
    return min(max(1, count or DEFAULT_QUESTION_COUNT), settings.ASSESSMENT_MAX_QUESTIONS)


class AssessmentService:
    def __init__(self, llm: TextGenerator) -> None:
        self._llm = llm

    # ------------------------------------------------------------------
    # Quiz generation
    # ------------------------------------------------------------------

    async def generate_assessment(self, request: AssessmentRequest) -> Dict[str, Any]:
        topic = (request.topic or "").strip() or DEFAULT_TOPIC
        exam_type = (request.exam_type or "").strip() or DEFAULT_EXAM_TYPE
        count = coerce_question_count(request.question_count)
        page_content = request.page_content if isinstance(request.page_content, str) else None

        prompt = _ASSESSMENT_HEADER.format(
            count=count, exam_type=exam_type, topic=topic, difficulty=request.difficulty
        )
        uses_source = bool(page_content and len(page_content.strip()) > MIN_PAGE_CONTENT_CHARS)
        if uses_source:
            prompt += _ASSESSMENT_SOURCE.format(
                content=page_content[: settings.ASSESSMENT_MAX_CONTENT_CHARS]
            )
        prompt += _ASSESSMENT_FOOTER.format(
            count=count,
            source_rule=(
                "Generate questions ONLY from the provided source content above. Reference "
                "specific concepts, examples, or terminology from the content."
                if uses_source
                else "Use course-appropriate content."
            ),
        )

        text = await self._llm.generate(prompt, temperature=0.7)
        payload = self._parse(text)

        raw_questions = payload.get("questions")
        questions = (
            [normalize_question(q, i) for i, q in enumerate(raw_questions[:count])]
            if isinstance(raw_questions, list)
            else []
        )
        if not questions:
            raise LLMError("The AI did not return any questions. Please try again.")

        if len(questions) < count:
            logger.warning(
                "generate_assessment: model returned %d of %d questions, padding",
                len(questions),
                count,
            )
            questions.extend(normalize_question({}, i) for i in range(len(questions), count))

        return {
            "questions": questions,
            "meta": {
                "questionCount": len(questions),
                "difficulty": request.difficulty,
                "topic": topic,
                "examType": exam_type,
                "basedOnPageContent": bool(page_content),
            },
        }

    # ------------------------------------------------------------------
    # Topic extraction
    # ------------------------------------------------------------------

    async def extract_topics(self, content: Optional[str]) -> Dict[str, Any]:
        sanitized = content.strip() if isinstance(content, str) else ""
        if len(sanitized) < settings.TOPIC_MIN_CONTENT_CHARS:
            raise ContentValidationError("Content is too short to extract meaningful topics")

        prompt = _TOPICS_PROMPT.format(content=sanitized[: settings.TOPIC_MAX_CONTENT_CHARS])
        text = await self._llm.generate(prompt, temperature=0.3)
        payload = self._parse(text)

        raw_topics = payload.get("topics")
        topics = (
            [t.strip() for t in raw_topics if isinstance(t, str) and t.strip()]
            if isinstance(raw_topics, list)
            else []
        )
        if not topics:
            raise LLMError("The AI could not extract any topics from the content")

        return {
            "topics": topics[: settings.TOPIC_MAX_RESULTS],
            "meta": {
                "totalTopics": len(topics),
                "contentLength": len(sanitized),
            },
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _parse(text: str) -> Dict[str, Any]:
        result = parse_first_object(text)
        payload = result.as_dict()
        if payload is None:
            logger.error("Failed to parse assessment JSON (%s): %s", result.error, text[:400])
            raise LLMError("Could not parse AI response. Please try again.")
        return payload
