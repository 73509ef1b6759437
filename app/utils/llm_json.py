"""
Typed JSON extraction from free-form LLM output.

Parsers in this module never raise: they return a ``ParseResult`` so callers
can branch on ``result.ok`` and fall back to deterministic defaults.

Public API
----------
strip_code_fences(text)   -> str
parse_fenced_json(text)   -> ParseResult   (fence-stripped, whole-text parse)
parse_first_object(text)  -> ParseResult   (greedy {...} match, then whole text)
clamp(value, lo, hi, default) -> float
"""
from __future__ import annotations

import dataclasses
import json
import re
from typing import Any, Dict, Optional

_FIRST_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


@dataclasses.dataclass(frozen=True)
class ParseResult:
    """Outcome of a JSON extraction attempt."""

    ok: bool
    value: Any = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: Any) -> "ParseResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "ParseResult":
        return cls(ok=False, error=error)

    def as_dict(self) -> Optional[Dict[str, Any]]:
        """Return the parsed value when it is a JSON object, else None."""
        if self.ok and isinstance(self.value, dict):
            return self.value
        return None


def strip_code_fences(text: str) -> str:
    """
    Return the payload of the first Markdown code fence in *text*.

    A ```json fence is preferred over a bare ``` fence.  Only the first
    fenced block is considered; text without fences is returned trimmed.
    """
    if not text:
        return ""
    text = text.strip()
    if "```json" in text:
        return text.split("```json", 1)[1].split("```", 1)[0].strip()
    if "```" in text:
        return text.split("```", 2)[1].strip()
    return text


def _loads(text: str) -> ParseResult:
    try:
        return ParseResult.success(json.loads(text))
    except (json.JSONDecodeError, ValueError) as exc:
        return ParseResult.failure(f"invalid JSON: {exc}")


def parse_fenced_json(text: str) -> ParseResult:
    """Strip Markdown fences and parse what remains as JSON."""
    if not text or not text.strip():
        return ParseResult.failure("empty response")
    return _loads(strip_code_fences(text))


def parse_first_object(text: str) -> ParseResult:
    """
    Parse the outermost ``{...}`` span of *text* (greedy, multi-line).

    Falls back to parsing the whole text when no braces are present.
    """
    if not text or not text.strip():
        return ParseResult.failure("empty response")
    match = _FIRST_OBJECT.search(text)
    if match:
        return _loads(match.group(0))
    return _loads(text.strip())


def clamp(value: Any, lo: float = 0.0, hi: float = 1.0, default: Optional[float] = None) -> float:
    """Parse *value* as float clamped to [lo, hi]; returns *default* (or midpoint) on error."""
    if isinstance(value, bool):
        return default if default is not None else (lo + hi) / 2.0
    try:
        return max(lo, min(hi, float(value)))
    except (TypeError, ValueError):
        return default if default is not None else (lo + hi) / 2.0
