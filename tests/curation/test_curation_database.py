"""Tests for content curation database operations."""

import time

import pytest
from sqlalchemy import create_engine, text

from curation import db_engine
from curation.database import (
    backoff_interval,
    count_items_for_source,
    get_due_sources,
    get_item,
    get_items_by_ids,
    get_items_missing_summary,
    get_source,
    get_source_by_url,
    get_source_health,
    get_unprocessed_items,
    init_db,
    insert_item,
    insert_source,
    is_source_due,
    item_exists,
    record_probe_failure,
    record_probe_success,
    update_item_analysis,
    update_item_summary,
    update_source_fingerprint,
)
from curation.models import ContentItem, ContentKind, Source, SourceKind


@pytest.fixture
def temp_db(tmp_path):
    """Create a temporary SQLite database for testing."""
    test_engine = create_engine(f"sqlite:///{tmp_path / 'test_curation.db'}")
    db_engine.set_engine(test_engine)
    init_db()
    yield test_engine
    db_engine.reset_engine()


@pytest.fixture
def sample_source():
    return Source(
        url="https://example.com/feed.xml",
        kind=SourceKind.FEED,
        name="Example Feed",
        owner_id=7,
        check_interval_seconds=3600,
    )


def _item(source_id, url, **kwargs):
    defaults = dict(
        source_id=source_id,
        url=url,
        title=f"Title for {url}",
        kind=ContentKind.ARTICLE,
        discovered_at=int(time.time()),
        raw_text="Some body text.",
    )
    defaults.update(kwargs)
    return ContentItem(**defaults)


class TestInitDb:
    """Tests for database initialization."""

    def test_creates_tables(self, temp_db):
        """Test that init_db creates the sources and content_items tables."""
        with temp_db.connect() as conn:
            result = conn.execute(text("SELECT name FROM sqlite_master WHERE type='table'"))
            tables = {row[0] for row in result.fetchall()}

        assert "sources" in tables
        assert "content_items" in tables


class TestSources:
    """Tests for source storage and scheduling."""

    def test_insert_and_get(self, temp_db, sample_source):
        """Test that a stored source round-trips."""
        source_id = insert_source(sample_source)
        stored = get_source(source_id)

        assert stored.id == source_id
        assert stored.url == sample_source.url
        assert stored.kind == SourceKind.FEED
        assert stored.active
        assert stored.error_count == 0

    def test_get_scoped_to_owner(self, temp_db, sample_source):
        """Test that another owner cannot see the source."""
        source_id = insert_source(sample_source)
        assert get_source(source_id, owner_id=7) is not None
        assert get_source(source_id, owner_id=8) is None

    def test_get_missing(self, temp_db):
        """Test that an unknown id returns None."""
        assert get_source(999) is None

    def test_get_by_url(self, temp_db, sample_source):
        """Test lookup by URL."""
        source_id = insert_source(sample_source)
        assert get_source_by_url(sample_source.url).id == source_id
        assert get_source_by_url("https://nowhere.example.com") is None

    def test_never_checked_source_is_due(self, temp_db, sample_source):
        """Test that a never-checked active source is due."""
        insert_source(sample_source)
        assert len(get_due_sources(now=1000)) == 1

    def test_recently_checked_source_not_due(self, temp_db, sample_source):
        """Test that a source checked within its cadence is not due."""
        sample_source.last_checked = 10_000
        insert_source(sample_source)
        assert get_due_sources(now=10_000 + 3599) == []
        assert len(get_due_sources(now=10_000 + 3600)) == 1

    def test_inactive_source_never_due(self, temp_db, sample_source):
        """Test that inactive sources are never due."""
        sample_source.active = False
        insert_source(sample_source)
        assert get_due_sources(now=10**10) == []

    def test_backoff_stretches_cadence(self, sample_source):
        """Test that consecutive errors double the cadence, up to a cap."""
        sample_source.error_count = 2
        assert backoff_interval(sample_source) == 3600 * 4
        sample_source.error_count = 50
        assert backoff_interval(sample_source) == 3600 * 32

    def test_failing_source_backs_off(self, sample_source):
        """Test that a failing source is not due at its normal cadence."""
        sample_source.last_checked = 0
        sample_source.error_count = 1
        assert not is_source_due(sample_source, 3600)
        assert is_source_due(sample_source, 7200)

    def test_record_failure_then_success(self, temp_db, sample_source):
        """Test that failure increments the error count and success resets it."""
        source_id = insert_source(sample_source)

        record_probe_failure(source_id, 100, "boom")
        record_probe_failure(source_id, 200, "boom again")
        failed = get_source(source_id)
        assert failed.error_count == 2
        assert failed.last_error == "boom again"
        assert failed.last_checked == 200
        assert failed.last_updated is None

        record_probe_success(source_id, 300, found_count=0)
        recovered = get_source(source_id)
        assert recovered.error_count == 0
        assert recovered.last_error is None
        assert recovered.last_checked == 300
        assert recovered.last_updated is None

        record_probe_success(source_id, 400, found_count=2)
        assert get_source(source_id).last_updated == 400

    def test_update_fingerprint(self, temp_db, sample_source):
        """Test that the page fingerprint is stored."""
        source_id = insert_source(sample_source)
        update_source_fingerprint(source_id, "abc123")
        assert get_source(source_id).fingerprint == "abc123"

    def test_source_health(self, temp_db, sample_source):
        """Test aggregate source health counts."""
        first = insert_source(sample_source)
        insert_source(Source(url="https://b.example.com", kind=SourceKind.WEBSITE, owner_id=7, active=False))
        record_probe_failure(first, 100, "boom")

        assert get_source_health(owner_id=7) == {"total": 2, "active": 1, "with_errors": 1}
        assert get_source_health(owner_id=99) == {"total": 0, "active": 0, "with_errors": 0}


class TestItems:
    """Tests for content item storage."""

    def test_insert_and_exists(self, temp_db, sample_source):
        """Test that an inserted item is reported as existing."""
        source_id = insert_source(sample_source)
        assert not item_exists(source_id, "https://example.com/a")

        item_id = insert_item(_item(source_id, "https://example.com/a"))
        assert item_id is not None
        assert item_exists(source_id, "https://example.com/a")
        assert not item_exists(source_id + 1, "https://example.com/a")

    def test_duplicate_insert_returns_none(self, temp_db, sample_source):
        """Test that (source_id, url) is unique."""
        source_id = insert_source(sample_source)
        assert insert_item(_item(source_id, "https://example.com/a")) is not None
        assert insert_item(_item(source_id, "https://example.com/a")) is None

        total, _ = count_items_for_source(source_id)
        assert total == 1

    def test_same_url_different_source(self, temp_db, sample_source):
        """Test that the same URL may be stored once per source."""
        first = insert_source(sample_source)
        second = insert_source(Source(url="https://other.example.com", kind=SourceKind.FEED))
        assert insert_item(_item(first, "https://example.com/a")) is not None
        assert insert_item(_item(second, "https://example.com/a")) is not None

    def test_get_item_round_trip(self, temp_db, sample_source):
        """Test that item fields round-trip through storage."""
        source_id = insert_source(sample_source)
        item = _item(
            source_id,
            "https://example.com/a",
            author="Alice",
            published_at=12345,
            categories=["Science", "Technology", "Science"],
            metadata={"feed": "x"},
        )
        item_id = insert_item(item)

        stored = get_item(item_id)
        assert stored.author == "Alice"
        assert stored.published_at == 12345
        assert stored.categories == ["Science", "Technology"]
        assert stored.metadata == {"feed": "x"}
        assert not stored.processed

    def test_get_items_by_ids_scoped_to_owner(self, temp_db, sample_source):
        """Test that batch reads only return the owner's items."""
        mine = insert_source(sample_source)
        theirs = insert_source(Source(url="https://other.example.com", kind=SourceKind.FEED, owner_id=8))
        a = insert_item(_item(mine, "https://example.com/a"))
        b = insert_item(_item(theirs, "https://example.com/b"))

        assert [i.id for i in get_items_by_ids([a, b])] == [a, b]
        assert [i.id for i in get_items_by_ids([a, b], owner_id=7)] == [a]
        assert get_item(b, owner_id=7) is None
        assert get_items_by_ids([]) == []

    def test_missing_summary_and_unprocessed(self, temp_db, sample_source):
        """Test the work queues used by the pipeline."""
        source_id = insert_source(sample_source)
        a = insert_item(_item(source_id, "https://example.com/a"))
        b = insert_item(_item(source_id, "https://example.com/b", raw_text=None))

        assert [i.id for i in get_items_missing_summary()] == [a]
        assert [i.id for i in get_unprocessed_items()] == [a, b]

        update_item_summary(a, "A summary.", "extractive")
        assert get_items_missing_summary() == []
        assert get_item(a).metadata["summary_method"] == "extractive"

        update_item_analysis(b, categories=[], insights=[], processed=True)
        assert [i.id for i in get_unprocessed_items()] == [a]

    def test_update_analysis_merges_metadata(self, temp_db, sample_source):
        """Test that analysis metadata is merged and None fields are untouched."""
        source_id = insert_source(sample_source)
        item_id = insert_item(_item(source_id, "https://example.com/a", metadata={"keep": 1}))

        update_item_analysis(item_id, categories=["Technology"], metadata={"news": {"is_news": False}})
        update_item_analysis(item_id, relevance_score=0.75, processed=True)

        stored = get_item(item_id)
        assert stored.categories == ["Technology"]
        assert stored.metadata == {"keep": 1, "news": {"is_news": False}}
        assert stored.relevance_score == 0.75
        assert stored.processed

    def test_count_items_for_source(self, temp_db, sample_source):
        """Test total and processed item counts."""
        source_id = insert_source(sample_source)
        a = insert_item(_item(source_id, "https://example.com/a"))
        insert_item(_item(source_id, "https://example.com/b"))
        update_item_analysis(a, processed=True)

        assert count_items_for_source(source_id) == (2, 1)
