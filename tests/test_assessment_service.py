"""Tests for quiz generation and topic extraction."""
import json

import pytest

from app.services.assessment_service import (
    DEFAULT_EXPLANATION,
    AssessmentRequest,
    AssessmentService,
    coerce_question_count,
    normalize_question,
)
from app.services.exceptions import ContentValidationError
from app.services.llm_client import LLMError
from tests.conftest import FakeLLM

PAGE_CONTENT = (
    "Agents call tools through the Model Context Protocol. Each tool declares a "
    "name, a JSON schema for its input, and a handler. The agent loop picks a "
    "tool, validates arguments, runs the handler and feeds the result back."
)


def questions_payload(n: int) -> str:
    return json.dumps({
        "questions": [
            {
                "question": f"Question {i}?",
                "options": ["a", "b", "c", "d"],
                "answerIndex": i % 4,
                "explanation": "Because.",
            }
            for i in range(n)
        ]
    })


def test_normalize_question_pads_and_clamps():
    q = normalize_question({"question": "Q?", "options": ["x", "y"], "answerIndex": 7}, 2)
    assert q == {
        "id": "q-2",
        "question": "Q?",
        "options": ["x", "y", "Option C", "Option D"],
        "answerIndex": 0,
        "explanation": DEFAULT_EXPLANATION,
    }


def test_normalize_question_truncates_options():
    q = normalize_question({"options": list("abcdef"), "answerIndex": 3.0}, 0)
    assert q["options"] == ["a", "b", "c", "d"]
    assert q["answerIndex"] == 3


@pytest.mark.parametrize("raw", [None, "text", {"answerIndex": True}, {"answerIndex": -1}])
def test_normalize_question_always_valid(raw):
    q = normalize_question(raw, 0)
    assert len(q["options"]) == 4
    assert 0 <= q["answerIndex"] < 4


@pytest.mark.parametrize(
    "value,expected",
    [(5, 5), ("3", 3), (2.9, 2), (None, 5), ("x", 5), (float("inf"), 5), (10**9, 50)],
)
def test_coerce_question_count(value, expected):
    assert coerce_question_count(value) == expected


@pytest.mark.asyncio
async def test_generate_assessment_with_page_content():
    llm = FakeLLM(["Here you go:\n" + questions_payload(5)])
    result = await AssessmentService(llm).generate_assessment(
        AssessmentRequest(question_count=5, topic="MCP", page_content=PAGE_CONTENT)
    )
    assert len(result["questions"]) == 5
    assert [q["id"] for q in result["questions"]] == [f"q-{i}" for i in range(5)]
    assert result["meta"] == {
        "questionCount": 5,
        "difficulty": "medium",
        "topic": "MCP",
        "examType": "General Assessment",
        "basedOnPageContent": True,
    }
    assert "SOURCE CONTENT (PRIORITIZE THIS)" in llm.prompts[0]
    assert PAGE_CONTENT in llm.prompts[0]


@pytest.mark.asyncio
async def test_generate_assessment_truncates_page_content():
    llm = FakeLLM([questions_payload(1)])
    await AssessmentService(llm).generate_assessment(
        AssessmentRequest(question_count=1, page_content="a" * 6000 + "b" * 500)
    )
    assert "a" * 6000 in llm.prompts[0]
    assert "a" * 6000 + "b" not in llm.prompts[0]
    assert "bbb" not in llm.prompts[0]


@pytest.mark.asyncio
async def test_short_page_content_is_not_embedded():
    llm = FakeLLM([questions_payload(2)])
    result = await AssessmentService(llm).generate_assessment(
        AssessmentRequest(question_count=2, page_content="tiny")
    )
    assert "SOURCE CONTENT" not in llm.prompts[0]
    assert result["meta"]["topic"] == "AI Native Software Development"


@pytest.mark.asyncio
async def test_generate_assessment_returns_exact_count():
    too_many = await AssessmentService(FakeLLM([questions_payload(8)])).generate_assessment(
        AssessmentRequest(question_count=3)
    )
    assert len(too_many["questions"]) == 3

    too_few = await AssessmentService(FakeLLM([questions_payload(2)])).generate_assessment(
        AssessmentRequest(question_count=4)
    )
    assert len(too_few["questions"]) == 4
    for q in too_few["questions"]:
        assert len(q["options"]) == 4
        assert 0 <= q["answerIndex"] < 4


@pytest.mark.asyncio
async def test_generate_assessment_no_questions():
    with pytest.raises(LLMError):
        await AssessmentService(FakeLLM(['{"questions": []}'])).generate_assessment(
            AssessmentRequest()
        )


@pytest.mark.asyncio
async def test_generate_assessment_unparsable():
    with pytest.raises(LLMError, match="Could not parse AI response"):
        await AssessmentService(FakeLLM(["no json here"])).generate_assessment(
            AssessmentRequest()
        )


@pytest.mark.asyncio
async def test_extract_topics_rejects_short_content():
    llm = FakeLLM()
    with pytest.raises(ContentValidationError):
        await AssessmentService(llm).extract_topics("   too short   ")
    assert llm.calls == 0


@pytest.mark.asyncio
async def test_extract_topics_filters_and_caps():
    topics = ["", 3, "  Tool Schemas  "] + [f"Topic {i}" for i in range(12)]
    llm = FakeLLM([json.dumps({"topics": topics})])
    result = await AssessmentService(llm).extract_topics(PAGE_CONTENT)
    assert result["topics"][0] == "Tool Schemas"
    assert 1 <= len(result["topics"]) <= 10
    assert all(t for t in result["topics"])
    assert result["meta"] == {"totalTopics": 13, "contentLength": len(PAGE_CONTENT)}


@pytest.mark.asyncio
async def test_extract_topics_none_found():
    with pytest.raises(LLMError):
        await AssessmentService(FakeLLM(['{"topics": ["", "  "]}'])).extract_topics(PAGE_CONTENT)


@pytest.mark.asyncio
async def test_generate_assessment_padding_is_capped():
    llm = FakeLLM([questions_payload(1)])
    result = await AssessmentService(llm).generate_assessment(
        AssessmentRequest(question_count=200000)
    )
    assert len(result["questions"]) == 50
    assert result["meta"]["questionCount"] == 50
