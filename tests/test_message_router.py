"""Tests for small-talk and summary-request routing."""
import random

import pytest

from app.services.message_router import (
    SMALL_TALK_REPLIES,
    MessageKind,
    SmallTalkCategory,
    detect_small_talk,
    is_summary_request,
    route_message,
    small_talk_reply,
)


@pytest.mark.parametrize(
    "message,category",
    [
        ("hi", SmallTalkCategory.GREETING),
        ("Hello there!", SmallTalkCategory.GREETING),
        ("  Good Morning ", SmallTalkCategory.GREETING),
        ("hey team", SmallTalkCategory.GREETING),
        ("How are you?", SmallTalkCategory.WELLBEING),
        ("how's it going", SmallTalkCategory.WELLBEING),
        ("what's up", SmallTalkCategory.CASUAL),
        ("sup", SmallTalkCategory.CASUAL),
    ],
)
def test_detect_small_talk(message, category):
    assert detect_small_talk(message) == category


@pytest.mark.parametrize(
    "message",
    [
        "",
        "hi, how do I write an MCP server?",
        "hello https://example.com",
        "hi " * 40,
        "What is an agent?",
        "!!!",
    ],
)
def test_not_small_talk(message):
    assert detect_small_talk(message) is None


def test_summary_request_patterns():
    assert is_summary_request("Provide a concise, 3-bullet summary of this section")
    assert is_summary_request("Context: chapter 2\nSelected Text: agents call tools")
    assert is_summary_request("Please summarize the following paragraph")
    assert not is_summary_request("What is a summary statistic?")


def test_route_message_order():
    assert route_message("hello").kind is MessageKind.SMALL_TALK
    assert route_message("hello").category is SmallTalkCategory.GREETING
    assert route_message("Summarize the following: agents").kind is MessageKind.SUMMARY_REQUEST
    assert route_message("How do agents use tools?").kind is MessageKind.QUESTION


@pytest.mark.parametrize("category", list(SmallTalkCategory))
def test_small_talk_reply_comes_from_pool(category):
    rng = random.Random(7)
    for _ in range(10):
        assert small_talk_reply(category, rng) in SMALL_TALK_REPLIES[category]
