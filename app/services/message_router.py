"""
Declarative routing of incoming chat messages.

Small-talk and summary-request detection are plain tables of compiled
patterns evaluated in order; the first match decides the message kind.
"""
from __future__ import annotations

import dataclasses
import enum
import random
import re
from typing import Dict, List, Optional, Pattern, Tuple


class MessageKind(str, enum.Enum):
    SMALL_TALK = "small_talk"
    SUMMARY_REQUEST = "summary_request"
    QUESTION = "question"


class SmallTalkCategory(str, enum.Enum):
    GREETING = "greeting"
    WELLBEING = "wellbeing"
    CASUAL = "casual"


@dataclasses.dataclass(frozen=True)
class RoutedMessage:
    kind: MessageKind
    category: Optional[SmallTalkCategory] = None


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

# Matched against the sanitised message (lowercase letters, spaces, apostrophes)
SMALL_TALK_RULES: List[Tuple[Pattern[str], SmallTalkCategory]] = [
    (re.compile(r"^hi( there)?$"), SmallTalkCategory.GREETING),
    (re.compile(r"^hello( there)?$"), SmallTalkCategory.GREETING),
    (re.compile(r"^hey( there| team)?$"), SmallTalkCategory.GREETING),
    (re.compile(r"^howdy$"), SmallTalkCategory.GREETING),
    (re.compile(r"^hiya$"), SmallTalkCategory.GREETING),
    (re.compile(r"^heya$"), SmallTalkCategory.GREETING),
    (re.compile(r"^yo$"), SmallTalkCategory.GREETING),
    (re.compile(r"^sup$"), SmallTalkCategory.CASUAL),
    (re.compile(r"^what'?s up$"), SmallTalkCategory.CASUAL),
    (re.compile(r"^good (morning|afternoon|evening)$"), SmallTalkCategory.GREETING),
    (re.compile(r"^morning$"), SmallTalkCategory.GREETING),
    (re.compile(r"^afternoon$"), SmallTalkCategory.GREETING),
    (re.compile(r"^evening$"), SmallTalkCategory.GREETING),
    (re.compile(r"^how are you$"), SmallTalkCategory.WELLBEING),
    (re.compile(r"^how are you doing$"), SmallTalkCategory.WELLBEING),
    (re.compile(r"^how'?s it going$"), SmallTalkCategory.WELLBEING),
    (re.compile(r"^how are things$"), SmallTalkCategory.WELLBEING),
    (re.compile(r"^how is everything$"), SmallTalkCategory.WELLBEING),
    (re.compile(r"^how do you do$"), SmallTalkCategory.WELLBEING),
]

SMALL_TALK_REPLIES: Dict[SmallTalkCategory, List[str]] = {
    SmallTalkCategory.GREETING: [
        "Hi there! 👋",
        "Hello! Ready when you are.",
        "Hey! What should we dive into?",
    ],
    SmallTalkCategory.WELLBEING: [
        "I'm doing well, thanks! How can I help you?",
        "Feeling great, ready to jump in whenever you are.",
        "All good here! What can I walk you through?",
    ],
    SmallTalkCategory.CASUAL: [
        "All set on my end. What's next?",
        "Still here and ready. What can I help with?",
        "Everything's running smoothly. Need anything?",
    ],
}

# Matched against the raw (trimmed) message
SUMMARY_REQUEST_PATTERNS: List[Pattern[str]] = [
    re.compile(r"Provide a concise.*summary", re.IGNORECASE),
    re.compile(r"Provide a comprehensive.*summary", re.IGNORECASE),
    re.compile(r"Provide a detailed summary", re.IGNORECASE),
    re.compile(r"Context:.*Selected Text:", re.DOTALL),
    re.compile(r"summarize the following", re.IGNORECASE),
    re.compile(r"summary of.*text", re.IGNORECASE),
]

MAX_SMALL_TALK_LENGTH = 80

_URL = re.compile(r"https?://")
_NON_WORDISH = re.compile(r"[^a-z\s']")
_WHITESPACE = re.compile(r"\s+")


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------

def detect_small_talk(message: str) -> Optional[SmallTalkCategory]:
    """Return the small-talk category of *message*, or None."""
    if not message:
        return None

    normalized = message.lower().strip()
    if not normalized or len(normalized) > MAX_SMALL_TALK_LENGTH:
        return None
    if _URL.search(normalized):
        return None

    sanitized = _WHITESPACE.sub(" ", _NON_WORDISH.sub(" ", normalized)).strip()
    if not sanitized:
        return None

    for pattern, category in SMALL_TALK_RULES:
        if pattern.search(sanitized):
            return category
    return None


def is_summary_request(message: str) -> bool:
    """True when *message* asks to summarise supplied text."""
    return any(pattern.search(message or "") for pattern in SUMMARY_REQUEST_PATTERNS)


def route_message(message: str) -> RoutedMessage:
    """Classify *message*; small talk wins over summary requests."""
    category = detect_small_talk(message)
    if category is not None:
        return RoutedMessage(kind=MessageKind.SMALL_TALK, category=category)
    if is_summary_request(message):
        return RoutedMessage(kind=MessageKind.SUMMARY_REQUEST)
    return RoutedMessage(kind=MessageKind.QUESTION)


def small_talk_reply(category: SmallTalkCategory, rng: Optional[random.Random] = None) -> str:
    """Pick a canned reply from the category's pool."""
    pool = SMALL_TALK_REPLIES.get(category) or SMALL_TALK_REPLIES[SmallTalkCategory.GREETING]
    return (rng or random).choice(pool)
