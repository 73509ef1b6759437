"""
Per-page Markdown summaries fronted by a flat JSON file cache.

One file per (page, size) under SUMMARY_DIR, e.g.
``docs/01-intro/readme.md`` + ``short`` → ``01-intro__readme__short.json``.
Cached summaries are never regenerated; delete the file to force a refresh.
Concurrent generations of the same uncached page may both call the model,
and the last write wins.

Public API
----------
summary_file_name(page_path, size)                        -> str
SummaryCache.get(page_path, size)                         -> Optional[str]
SummaryCache.save(page_path, summary, size)               -> SummaryRecord
SummaryService.get_summary(page_path, size)               -> Optional[str]
SummaryService.generate_summary(page_path, title, size)   -> str
"""
from __future__ import annotations

import dataclasses
import json
import logging
import os
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import aiofiles

from app.config import settings
from app.services.exceptions import ContentValidationError, SummarySourceNotFound
from app.services.llm_client import TextGenerator

logger = logging.getLogger(__name__)


DEFAULT_SIZE = "short"


@dataclasses.dataclass(frozen=True)
class SizeConfig:
    instruction: str
    word_limit: Optional[int]


SIZE_CONFIGS: Dict[str, SizeConfig] = {
    "bulleted": SizeConfig(
        instruction=(
            "Create a comprehensive summary using proper Markdown formatting. Include "
            "multiple sections with headings (##), bullet points (-), and clear structure. "
            "The longer the original content, the more detailed the summary should be."
        ),
        word_limit=None,
    ),
    "short": SizeConfig(
        instruction=(
            "Create a detailed summary using proper Markdown formatting. Include headings "
            "(##), bullet points (-), and structured sections. Aim for 300-500 words with "
            "clear organization."
        ),
        word_limit=500,
    ),
    "long": SizeConfig(
        instruction=(
            "Create a comprehensive, detailed summary using proper Markdown formatting. "
            "Include multiple sections with headings (##), sub-headings (###), bullet points "
            "(-), and thorough explanations. The summary should be proportional to the "
            "original content length. Aim for 600-1000 words with excellent structure "
            "and clarity."
        ),
        word_limit=1000,
    ),
}

_SUMMARY_PROMPT = """\
You are an expert technical summarizer. Create a comprehensive, well-structured \
summary of the following content from the page "{title}".

===== CRITICAL FORMATTING RULES =====

1. USE PROPER MARKDOWN:
   - Use ## for main section headings
   - Use ### for sub-sections
   - Use - for bullet points
   - Use **bold** for emphasis on key terms
   - Use `code` for technical terms and code references

2. STRUCTURE REQUIREMENTS:
   - Start with a brief overview paragraph
   - Organize content into logical sections with headings
   - Use bullet points for lists of features, concepts, or steps
   - Include concrete examples where relevant
   - End with key takeaways or implications

3. CONTENT DEPTH:
   - {instruction}
   - Scale detail based on source content length
   - Maintain technical accuracy

4. WHAT TO AVOID:
   - No meta-commentary ("This document discusses...")
   - No introductory phrases ("In summary...")
   - No repetition

===== CONTENT TO SUMMARIZE =====
{content}

===== YOUR TASK =====
Create a detailed, well-structured Markdown summary following all rules above.

OUTPUT (Markdown format):"""

_FENCE_OPEN = re.compile(r"```\w*\n")
_EXCESS_BLANK_LINES = re.compile(r"\n{3,}")
_SIZE_NAME = re.compile(r"[A-Za-z0-9_-]+")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def summary_file_name(page_path: str, size: str) -> str:
    """Deterministic cache file name for (page_path, size)."""
    name = re.sub(r"^docs/", "", page_path)
    name = name.replace("\\", "__").replace("/", "__")
    name = re.sub(r"\.md$", "", name)
    return f"{name}__{size}.json"


def clean_markdown_summary(text: str) -> str:
    """Drop code-fence markers (keeping their content) and collapse 3+ newlines to 2."""
    text = _FENCE_OPEN.sub("", text)
    text = text.replace("```", "")
    text = _EXCESS_BLANK_LINES.sub("\n\n", text)
    return text.strip()


def count_words(text: str) -> int:
    return len(text.split())


@dataclasses.dataclass
class SummaryRecord:
    page_path: str
    summary: str
    size: str
    generated_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pagePath": self.page_path,
            "summary": self.summary,
            "size": self.size,
            "generatedAt": self.generated_at,
        }


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------

class SummaryCache:
    """Flat-file store; read problems are misses, write problems propagate."""

    def __init__(self, directory: str = settings.SUMMARY_DIR) -> None:
        self.directory = directory

    def path_for(self, page_path: str, size: str) -> str:
        return os.path.join(self.directory, summary_file_name(page_path, size))

    async def get(self, page_path: str, size: str) -> Optional[str]:
        file_path = self.path_for(page_path, size)
        try:
            async with aiofiles.open(file_path, "r", encoding="utf-8") as fh:
                raw = await fh.read()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Summary cache read failed for %s: %s", file_path, exc)
            return None

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Summary cache file %s is corrupt: %s", file_path, exc)
            return None

        summary = data.get("summary") if isinstance(data, dict) else None
        return summary if isinstance(summary, str) else None

    async def save(self, page_path: str, summary: str, size: str) -> SummaryRecord:
        os.makedirs(self.directory, exist_ok=True)
        record = SummaryRecord(
            page_path=page_path,
            summary=summary,
            size=size,
            generated_at=datetime.now(timezone.utc).isoformat(),
        )
        async with aiofiles.open(self.path_for(page_path, size), "w", encoding="utf-8") as fh:
            await fh.write(json.dumps(record.to_dict(), indent=2, ensure_ascii=False))
        return record


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class SummaryService:
    def __init__(
        self,
        llm: TextGenerator,
        cache: SummaryCache,
        project_root: str = settings.PROJECT_ROOT,
    ) -> None:
        self._llm = llm
        self.cache = cache
        self.project_root = os.path.abspath(project_root)

    async def get_summary(self, page_path: str, size: str = DEFAULT_SIZE) -> Optional[str]:
        if not _SIZE_NAME.fullmatch(size):
            return None
        return await self.cache.get(page_path, size)

    async def generate_summary(
        self,
        page_path: str,
        page_title: str = "",
        size: str = DEFAULT_SIZE,
    ) -> str:
        """
        Return the cached summary for (page_path, size) or generate, store
        and return a new one.  Unknown sizes use the "short" tier but keep
        their own cache key, which must be letters, digits, "_" or "-".
        """
        if not _SIZE_NAME.fullmatch(size):
            raise ContentValidationError(f"Invalid summary size: {size!r}")
        config = SIZE_CONFIGS.get(size) or SIZE_CONFIGS[DEFAULT_SIZE]

        cached = await self.cache.get(page_path, size)
        if cached:
            logger.info("Summary cache hit for %s (%s)", page_path, size)
            return cached

        content = await self._read_page(page_path)
        prompt = _SUMMARY_PROMPT.format(
            title=page_title or page_path,
            instruction=config.instruction,
            content=content,
        )

        raw = await self._llm.generate(prompt)
        summary = clean_markdown_summary(raw)

        await self.cache.save(page_path, summary, size)
        logger.info(
            "Generated %s summary for %s (%d words, target %s)",
            size,
            page_path,
            count_words(summary),
            config.word_limit or "proportional",
        )
        return summary

    async def _read_page(self, page_path: str) -> str:
        full_path = os.path.abspath(os.path.join(self.project_root, page_path))
        if os.path.commonpath([full_path, self.project_root]) != self.project_root:
            raise ContentValidationError(f"Page path escapes the project root: {page_path}")

        try:
            async with aiofiles.open(full_path, "r", encoding="utf-8") as fh:
                return await fh.read()
        except FileNotFoundError as exc:
            raise SummarySourceNotFound(f"Page not found: {page_path}") from exc
