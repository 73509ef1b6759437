"""Tests for the project context index and its TTL cache."""
import pytest

from app.services.context_indexer import (
    ERROR_CONTEXT_SUMMARY,
    NO_CONTEXT_SUMMARY,
    ContextIndexCache,
    ContextRoot,
    ProjectContextIndex,
    ProjectContextIndexer,
    extract_title,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def make_indexer(root, cache=None, **kwargs) -> ProjectContextIndexer:
    return ProjectContextIndexer(
        str(root),
        [ContextRoot("docs", [".md", ".mdx"]), ContextRoot("src", [".tsx"])],
        cache or ContextIndexCache(ttl_seconds=300),
        **kwargs,
    )


def test_extract_title_sources():
    assert extract_title("---\ntitle: 'Front Matter'\n---\n# Heading", "x.md") == "Front Matter"
    assert extract_title("intro\n## Second Level\n", "x.md") == "Second Level"
    assert extract_title("no heading", "chapter-3.mdx") == "chapter-3"


def test_build_index_walks_roots(book_root):
    (book_root / "docs" / "node_modules").mkdir()
    (book_root / "docs" / "node_modules" / "skip.md").write_text("# skip", encoding="utf-8")
    (book_root / "docs" / ".hidden.md").write_text("# hidden", encoding="utf-8")
    (book_root / "docs" / "notes.txt").write_text("wrong extension", encoding="utf-8")

    index = make_indexer(book_root).build_index()
    paths = [f.path for f in index.files]
    assert paths == [
        "docs/01-intro/readme.md",
        "docs/02-agents/tools.md",
        "src/components/Chat.tsx",
    ]
    assert index.files[0].title == "Introduction to AI Native Development"
    assert index.files[1].title == "Agent Tools"
    assert index.files[2].title == "Chat"


def test_build_index_truncates_content(book_root):
    (book_root / "docs" / "long.md").write_text("x" * 100, encoding="utf-8")
    index = make_indexer(book_root, max_file_chars=10).build_index()
    long_file = next(f for f in index.files if f.path == "docs/long.md")
    assert long_file.content == "x" * 10


def test_missing_roots_are_skipped(tmp_path):
    assert make_indexer(tmp_path).build_index().files == []


def test_cache_ttl_with_fake_clock():
    clock = FakeClock()
    cache = ContextIndexCache(ttl_seconds=300, clock=clock)
    index = ProjectContextIndex(files=[], last_updated="now")

    assert cache.get() is None
    cache.put(index)
    clock.now += 299
    assert cache.get() is index
    clock.now += 1
    assert cache.get() is None

    cache.put(index)
    cache.invalidate()
    assert cache.get() is None


def test_get_index_rebuilds_only_when_stale(book_root):
    clock = FakeClock()
    indexer = make_indexer(book_root, ContextIndexCache(ttl_seconds=300, clock=clock))

    first = indexer.get_index()
    (book_root / "docs" / "new.md").write_text("# New page", encoding="utf-8")
    assert indexer.get_index() is first

    clock.now += 301
    second = indexer.get_index()
    assert second is not first
    assert "docs/new.md" in [f.path for f in second.files]


def test_rank_scores_content_and_path(book_root):
    indexer = make_indexer(book_root)
    ranked = indexer.rank("agents tools", indexer.build_index())
    assert ranked[0].path == "docs/02-agents/tools.md"
    # "agents" in content and path (2 + 3), "tools" in content and path (2 + 3)
    assert ranked[0].score == 10
    assert all(s.score > 0 for s in ranked)


def test_rank_respects_top_k(book_root):
    indexer = make_indexer(book_root, top_k=1)
    assert len(indexer.rank("the book agents", indexer.build_index())) == 1


@pytest.mark.asyncio
async def test_relevant_context_summary(book_root):
    indexer = make_indexer(book_root, preview_chars=20)
    context = await indexer.get_relevant_context("How do agents use tools?")
    assert context.total_files == 3
    assert context.files[0].path == "docs/02-agents/tools.md"
    assert context.summary.startswith("File: docs/02-agents/tools.md\nContent preview: # Agent Tools")
    assert context.to_dict()["totalFiles"] == 3


@pytest.mark.asyncio
async def test_relevant_context_no_match(book_root):
    context = await make_indexer(book_root).get_relevant_context("zz qq")
    assert context.summary == NO_CONTEXT_SUMMARY
    assert context.files == []


@pytest.mark.asyncio
async def test_relevant_context_error_is_not_fatal(book_root, monkeypatch):
    indexer = make_indexer(book_root)

    def _boom():
        raise OSError("disk gone")

    monkeypatch.setattr(indexer, "build_index", _boom)
    context = await indexer.get_relevant_context("agents")
    assert context.summary == ERROR_CONTEXT_SUMMARY
    assert context.total_files == 0
