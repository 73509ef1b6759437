"""
In-memory index of the book's documentation and source files.

The index is a snapshot of (path, title, content prefix) records built by
walking a fixed set of project directories.  It lives in an explicit
``ContextIndexCache`` with a wall-clock TTL; the cache object is created once
at startup and injected, so staleness can be driven from tests.

Public API
----------
ContextIndexCache(ttl_seconds, clock).get() / put(index) / invalidate()
ProjectContextIndexer.build_index()               -> ProjectContextIndex
ProjectContextIndexer.get_index()                 -> ProjectContextIndex
ProjectContextIndexer.get_relevant_context(query) -> RelevantContext
"""
from __future__ import annotations

import dataclasses
import logging
import os
import re
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from app.config import settings

logger = logging.getLogger(__name__)


SKIPPED_DIRS = frozenset({"node_modules", "build", "__pycache__", ".docusaurus"})

NO_CONTEXT_SUMMARY = "No specific context found. General project knowledge available."
ERROR_CONTEXT_SUMMARY = "Error loading project context. Using general knowledge."

_FRONT_MATTER = re.compile(r"^---\s*\n(.*?)\n---", re.DOTALL)
_TITLE_FIELD = re.compile(r"title:\s*(.+)")
_HEADING = re.compile(r"^#+\s+(.+)$", re.MULTILINE)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class ContextRoot:
    """A directory (relative to the project root) and the extensions indexed in it."""

    path: str
    extensions: Sequence[str]


@dataclasses.dataclass
class IndexedFile:
    path: str        # relative to the project root, forward slashes
    title: str
    content: str     # first CONTEXT_MAX_FILE_CHARS characters
    extension: str


@dataclasses.dataclass
class ProjectContextIndex:
    files: List[IndexedFile]
    last_updated: str  # ISO-8601


@dataclasses.dataclass
class ScoredFile:
    path: str
    title: str
    score: int

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "title": self.title, "score": self.score}


@dataclasses.dataclass
class RelevantContext:
    summary: str
    content: str
    files: List[ScoredFile]
    total_files: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary,
            "content": self.content,
            "files": [f.to_dict() for f in self.files],
            "totalFiles": self.total_files,
        }


# ---------------------------------------------------------------------------
# TTL cache
# ---------------------------------------------------------------------------

class ContextIndexCache:
    """
    Holds at most one index snapshot and reports it stale after *ttl_seconds*.

    Not locked: two concurrent misses may both rebuild, and the last
    ``put`` wins.
    """

    def __init__(
        self,
        ttl_seconds: float = settings.CONTEXT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._index: Optional[ProjectContextIndex] = None
        self._stored_at: Optional[float] = None

    def get(self) -> Optional[ProjectContextIndex]:
        """Return the cached index if it is younger than the TTL, else None."""
        age = self.age()
        if age is None or age >= self.ttl_seconds:
            return None
        return self._index

    def put(self, index: ProjectContextIndex) -> None:
        self._index = index
        self._stored_at = self._clock()

    def invalidate(self) -> None:
        self._index = None
        self._stored_at = None

    def age(self) -> Optional[float]:
        if self._index is None or self._stored_at is None:
            return None
        return self._clock() - self._stored_at


# ---------------------------------------------------------------------------
# Indexer
# ---------------------------------------------------------------------------

def extract_title(content: str, filename: str) -> str:
    """Front-matter ``title:``, else the first Markdown heading, else the file stem."""
    front_matter = _FRONT_MATTER.match(content)
    if front_matter:
        title = _TITLE_FIELD.search(front_matter.group(1))
        if title:
            return title.group(1).strip().replace('"', "").replace("'", "")

    heading = _HEADING.search(content)
    if heading:
        return heading.group(1).strip()

    return Path(filename).stem


class ProjectContextIndexer:
    """Walks the project roots and ranks files by naive keyword overlap."""

    def __init__(
        self,
        project_root: str,
        roots: Sequence[ContextRoot],
        cache: ContextIndexCache,
        max_file_chars: int = settings.CONTEXT_MAX_FILE_CHARS,
        top_k: int = settings.CONTEXT_TOP_K,
        preview_chars: int = settings.CONTEXT_PREVIEW_CHARS,
    ) -> None:
        self.project_root = os.path.abspath(project_root)
        self.roots = list(roots)
        self.cache = cache
        self.max_file_chars = max_file_chars
        self.top_k = top_k
        self.preview_chars = preview_chars

    @classmethod
    def from_settings(cls, cache: Optional[ContextIndexCache] = None) -> "ProjectContextIndexer":
        roots = [ContextRoot(path, exts) for path, exts in settings.get_context_roots()]
        return cls(settings.PROJECT_ROOT, roots, cache or ContextIndexCache())

    # ------------------------------------------------------------------
    # Index lifecycle
    # ------------------------------------------------------------------

    def get_index(self) -> ProjectContextIndex:
        """Return the cached index, rebuilding synchronously when stale."""
        index = self.cache.get()
        if index is not None:
            return index

        index = self.build_index()
        self.cache.put(index)
        logger.info("Indexed %d project files", len(index.files))
        return index

    def build_index(self) -> ProjectContextIndex:
        files: List[IndexedFile] = []
        for root in self.roots:
            root_path = os.path.join(self.project_root, root.path)
            if not os.path.isdir(root_path):
                continue
            self._index_directory(root_path, set(root.extensions), files)
        return ProjectContextIndex(
            files=files,
            last_updated=datetime.now(timezone.utc).isoformat(),
        )

    def _index_directory(self, dir_path: str, extensions: set, files: List[IndexedFile]) -> None:
        try:
            entries = sorted(os.scandir(dir_path), key=lambda e: e.name)
        except OSError as exc:
            logger.warning("Could not index directory %s: %s", dir_path, exc)
            return

        for entry in entries:
            if entry.name.startswith(".") or entry.name in SKIPPED_DIRS:
                continue

            if entry.is_dir(follow_symlinks=False):
                self._index_directory(entry.path, extensions, files)
                continue

            ext = os.path.splitext(entry.name)[1]
            if not entry.is_file() or ext not in extensions:
                continue

            try:
                with open(entry.path, "r", encoding="utf-8") as fh:
                    content = fh.read()
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Could not read file %s: %s", entry.path, exc)
                continue

            files.append(
                IndexedFile(
                    path=os.path.relpath(entry.path, self.project_root).replace(os.sep, "/"),
                    title=extract_title(content, entry.name),
                    content=content[: self.max_file_chars],
                    extension=ext,
                )
            )

    # ------------------------------------------------------------------
    # Ranking
    # ------------------------------------------------------------------

    def rank(self, query: str, index: ProjectContextIndex) -> List[ScoredFile]:
        """
        Score each file: +2 per query word (> 2 chars) in its content and
        +3 per word in its path.  Zero scores are dropped; the rest are
        sorted by score (stable) and cut to ``top_k``.
        """
        words = [w for w in (query or "").lower().split() if len(w) > 2]
        scored: List[tuple] = []
        for f in index.files:
            content_lower = f.content.lower()
            path_lower = f.path.lower()
            score = 0
            for word in words:
                if word in content_lower:
                    score += 2
                if word in path_lower:
                    score += 3
            if score > 0:
                scored.append((score, f))

        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [ScoredFile(f.path, f.title, score) for score, f in scored[: self.top_k]]

    async def get_relevant_context(self, query: str) -> RelevantContext:
        """Top files for *query* plus a path + preview summary for prompts."""
        try:
            index = self.get_index()
            top = self.rank(query, index)
            by_path = {f.path: f for f in index.files}

            summary = "\n\n---\n\n".join(
                f"File: {s.path}\nContent preview: "
                f"{by_path[s.path].content[: self.preview_chars]}..."
                for s in top
            )
            return RelevantContext(
                summary=summary or NO_CONTEXT_SUMMARY,
                content=summary,
                files=top,
                total_files=len(index.files),
            )
        except Exception as exc:
            logger.error("get_relevant_context failed: %s", exc, exc_info=True)
            return RelevantContext(
                summary=ERROR_CONTEXT_SUMMARY,
                content="",
                files=[],
                total_files=0,
            )
