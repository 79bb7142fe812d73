"""Tests for pipeline orchestration."""

from unittest.mock import patch

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError

from curation import db_engine
from curation.config import PipelineConfig
from curation.database import get_items_for_source, get_source, init_db, insert_source
from curation.errors import FetchError
from curation.http_fetch import FetchResult
from curation.models import ContentItem, OutcomeMethod, Source, SourceKind
from curation.pipeline import ContentPipeline

NOW = 1_700_000_000

ARTICLE_BODY = (
    "The software company announced a new machine learning platform for hospitals. "
    "According to officials, the platform reduced diagnosis time by 40% in a pilot study. "
    "The key finding is that doctors spent more time with each patient. "
    "A spokesperson said in a statement that the rollout starts next year. "
    "Analysts believe the market for clinical software will keep growing. "
    "The company reported revenue growth for the third straight quarter."
)

FEED = f"""<?xml version="1.0"?>
<rss version="2.0"><channel><title>Health Tech News</title>
  <item>
    <title>New platform for hospitals</title>
    <link>https://example.com/news/platform</link>
    <description>{ARTICLE_BODY}</description>
  </item>
  <item>
    <title>Link only</title>
    <link>https://example.com/news/link-only</link>
  </item>
</channel></rss>
"""


def serve(body):
    def fake_fetch(url, timeout=10):
        return FetchResult(url=url, body=body)
    return fake_fetch


def failing_fetch(url, timeout=10):
    raise FetchError(url, "connection refused")


@pytest.fixture
def temp_db(tmp_path):
    """Create a temporary SQLite database for testing."""
    test_engine = create_engine(f"sqlite:///{tmp_path / 'test_pipeline.db'}")
    db_engine.set_engine(test_engine)
    init_db()
    yield test_engine
    db_engine.reset_engine()


@pytest.fixture
def feed_source(temp_db):
    source = Source(url="https://example.com/feed.xml", kind=SourceKind.FEED, name="Health Tech")
    source.id = insert_source(source)
    return source


@pytest.fixture
def pipeline():
    return ContentPipeline(config=PipelineConfig(max_workers=2, max_sources_in_flight=2), fetcher=serve(FEED))


class TestRunOnce:
    """Tests for ContentPipeline.run_once."""

    def test_full_pass(self, feed_source, pipeline):
        """Test that a pass discovers, summarizes and analyzes new items."""
        stats = pipeline.run_once(now=NOW)

        assert stats.sources_checked == 1
        assert stats.sources_failed == 0
        assert stats.items_discovered == 2
        assert stats.items_summarized == 1
        assert stats.items_analyzed == 1

        items = {item.url: item for item in get_items_for_source(feed_source.id)}
        article = items["https://example.com/news/platform"]
        assert article.processed
        assert article.summary
        assert article.metadata["summary_method"] == "extractive"
        assert "Technology" in article.categories
        assert article.insights
        assert article.metadata["news"]["is_news"]
        assert "academic" in article.metadata
        assert 0.0 < article.relevance_score <= 1.0

    def test_item_without_text_marked_processed(self, feed_source, pipeline):
        """Test that items with no text are processed with empty derived fields."""
        stats = pipeline.run_once(now=NOW)

        items = {item.url: item for item in get_items_for_source(feed_source.id)}
        empty = items["https://example.com/news/link-only"]
        assert empty.processed
        assert empty.summary is None
        assert empty.categories == []
        assert empty.insights == []
        assert any(o.error == "No text content to analyze" for o in stats.outcomes)

    def test_second_pass_is_noop(self, feed_source, pipeline):
        """Test that re-running over fully processed storage does nothing."""
        pipeline.run_once(now=NOW)
        before = get_items_for_source(feed_source.id)

        stats = pipeline.run_once(now=NOW + 60)

        assert stats.sources_checked == 0
        assert stats.items_summarized == 0
        assert stats.items_analyzed == 0
        assert stats.outcomes == []
        assert get_items_for_source(feed_source.id) == before

    def test_source_due_again_finds_nothing_new(self, feed_source, pipeline):
        """Test that probing the same feed after its cadence stores no duplicates."""
        pipeline.run_once(now=NOW)
        stats = pipeline.run_once(now=NOW + 3600)

        assert stats.sources_checked == 1
        assert stats.items_discovered == 0
        assert len(get_items_for_source(feed_source.id)) == 2

    def test_failing_source_counted(self, feed_source):
        """Test that a failing source is reported without aborting the pass."""
        pipeline = ContentPipeline(fetcher=failing_fetch)
        stats = pipeline.run_once(now=NOW)

        assert stats.sources_checked == 1
        assert stats.sources_failed == 1
        assert stats.failures == 1
        assert get_source(feed_source.id).error_count == 1

    def test_outcome_methods_without_ai(self, feed_source, pipeline):
        """Test that every successful outcome records the rule-based path."""
        stats = pipeline.run_once(now=NOW)

        analysis = [o for o in stats.outcomes if o.stage in ("categorize", "extract_insights")]
        assert len(analysis) == 2
        assert all(o.method == OutcomeMethod.RULE_BASED for o in analysis)


class TestSummarizeItem:
    """Tests for ContentPipeline.summarize_item."""

    @pytest.fixture
    def item(self):
        return ContentItem(source_id=1, url="https://example.com/news/a", title="A", id=7, raw_text=ARTICLE_BODY)

    def test_storage_error_propagates(self, item):
        """Test that a lost database connection aborts instead of being logged per item."""
        pipeline = ContentPipeline(fetcher=failing_fetch)
        with patch("curation.pipeline.update_item_summary") as mock_update:
            mock_update.side_effect = OperationalError("UPDATE content_items", {}, Exception("connection lost"))
            with pytest.raises(OperationalError):
                pipeline.summarize_item(item)

    def test_summarizer_error_is_an_outcome(self, item):
        """Test that a summarization failure is reported as a failed outcome."""
        pipeline = ContentPipeline(fetcher=failing_fetch)
        with patch.object(pipeline.summarizer, "summarize", side_effect=RuntimeError("boom")):
            outcome = pipeline.summarize_item(item)

        assert not outcome.success
        assert outcome.error == "boom"
        assert outcome.stage == "summarize"
