"""Tests for query → StructuredQuery conversion."""
import pytest

from app.services.llm_client import LLMError
from app.services.query_structurer import (
    QueryStructurer,
    StructuredQuery,
    StructuringContext,
    fallback_keywords,
)
from tests.conftest import FakeLLM

CONTEXT = StructuringContext(is_in_tone=True, confidence=0.9, project_context="File: docs/a.md")


@pytest.mark.asyncio
async def test_structure_full_reply():
    llm = FakeLLM([
        '```json\n{"intent": "command", "topics": ["MCP"], "keywords": ["tool", "schema"], '
        '"requiresContext": false, "complexity": "complex", "expectedResponseType": "code"}\n```'
    ])
    result = await QueryStructurer(llm).structure("Write an MCP tool", CONTEXT)
    assert result == StructuredQuery(
        intent="command",
        topics=["MCP"],
        keywords=["tool", "schema"],
        requires_context=False,
        complexity="complex",
        expected_response_type="code",
    )
    assert "Write an MCP tool" in llm.prompts[0]
    assert "File: docs/a.md" in llm.prompts[0]


@pytest.mark.asyncio
async def test_structure_substitutes_invalid_fields():
    llm = FakeLLM(['{"intent": "rant", "topics": "agents", "keywords": [1, "  ", "loop"], '
                   '"requiresContext": "yes", "complexity": 3}'])
    result = await QueryStructurer(llm).structure("Explain the agent loop", CONTEXT)
    assert result.intent == "question"
    assert result.topics == []
    assert result.keywords == ["loop"]
    assert result.requires_context is True
    assert result.complexity == "medium"
    assert result.expected_response_type == "explanation"


@pytest.mark.asyncio
async def test_structure_llm_error_uses_query_words():
    result = await QueryStructurer(FakeLLM([LLMError("down")])).structure(
        "How do agents call MCP tools", CONTEXT
    )
    assert result.intent == "question"
    assert result.keywords == ["agents", "call", "tools"]
    assert result.topics == []


@pytest.mark.asyncio
async def test_structure_unparsable_reply_uses_query_words():
    result = await QueryStructurer(FakeLLM(["sorry, no JSON today"])).structure(
        "Explain prompts", CONTEXT
    )
    assert result.keywords == ["Explain", "prompts"]


def test_to_dict_has_all_six_fields():
    assert set(StructuredQuery().to_dict()) == {
        "intent",
        "topics",
        "keywords",
        "requiresContext",
        "complexity",
        "expectedResponseType",
    }


def test_fallback_keywords():
    assert fallback_keywords("a to the four fives") == ["four", "fives"]
    assert fallback_keywords("") == []
