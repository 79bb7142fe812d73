"""Tests for relevance scoring."""

import math

import pytest

from curation.models import ContentItem, NewsResult
from curation.relevance import SECONDS_PER_DAY, quality_score, recency_score, relevance_score

NOW = 1_700_000_000


class TestRecencyScore:
    """Tests for recency_score function."""

    def test_fresh_item(self):
        """Test that an item published now scores 1."""
        assert recency_score(NOW, NOW) == 1.0

    def test_decays_by_day(self):
        """Test exponential decay of 0.05 per day."""
        assert recency_score(NOW - 10 * SECONDS_PER_DAY, NOW) == pytest.approx(math.exp(-0.5))

    def test_unknown_or_future_date_is_fresh(self):
        """Test that missing and future dates count as fresh."""
        assert recency_score(None, NOW) == 1.0
        assert recency_score(NOW + 1000, NOW) == 1.0


class TestQualityScore:
    """Tests for quality_score function."""

    def test_word_count_capped(self):
        """Test that long texts cap at 1."""
        assert quality_score("word " * 2000) == 1.0
        assert quality_score("word " * 250) == 0.25

    def test_averaged_with_news_credibility(self):
        """Test that news credibility is averaged in."""
        news = NewsResult(is_news=True, credibility_score=0.75)
        assert quality_score("word " * 250, news) == 0.5

    def test_non_news_ignored(self):
        """Test that a non-news assessment does not change the score."""
        news = NewsResult(is_news=False, credibility_score=0.0)
        assert quality_score("word " * 250, news) == 0.25


class TestRelevanceScore:
    """Tests for relevance_score function."""

    def test_weighted_blend(self):
        """Test the 0.4 / 0.3 / 0.3 weighting."""
        item = ContentItem(source_id=1, url="u", title="t", published_at=NOW, raw_text="word " * 500)
        assert relevance_score(item, ["Science"], NOW) == pytest.approx(0.4 + 0.15 + 0.3)

    def test_uncategorized_loses_topic_weight(self):
        """Test that uncategorized items get no topic score."""
        item = ContentItem(source_id=1, url="u", title="t", published_at=NOW, raw_text="word " * 500)
        assert relevance_score(item, [], NOW) == pytest.approx(0.55)

    def test_bounded(self):
        """Test that the score stays in [0, 1]."""
        item = ContentItem(source_id=1, url="u", title="t", published_at=0, raw_text="")
        assert 0.0 <= relevance_score(item, [], NOW) <= 1.0
