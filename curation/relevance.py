"""
Relevance scoring for analyzed content items.
"""

import math
from typing import Optional

from curation.constants import RECENCY_DECAY_PER_DAY, RELEVANCE_WEIGHTS
from curation.models import ContentItem, NewsResult

SECONDS_PER_DAY = 24 * 60 * 60
QUALITY_WORD_TARGET = 1000


def recency_score(published_at: Optional[int], now: int) -> float:
    """Exponential decay by age in days. Unknown or future dates count as fresh."""
    if published_at is None:
        return 1.0
    age_days = max(now - published_at, 0) / SECONDS_PER_DAY
    return math.exp(-RECENCY_DECAY_PER_DAY * age_days)


def quality_score(text: str, news: Optional[NewsResult] = None) -> float:
    length_score = min(len(text.split()) / QUALITY_WORD_TARGET, 1.0)
    if news is not None and news.success and news.is_news:
        return (length_score + news.credibility_score) / 2
    return length_score


def relevance_score(item: ContentItem, categories, now: int, news: Optional[NewsResult] = None) -> float:
    """Weighted blend of recency, quality and topic match, clamped to [0, 1]."""
    score = (
        RELEVANCE_WEIGHTS["recency"] * recency_score(item.published_at, now)
        + RELEVANCE_WEIGHTS["quality"] * quality_score(item.text, news)
        + RELEVANCE_WEIGHTS["topic"] * (1.0 if categories else 0.0)
    )
    return round(max(0.0, min(1.0, score)), 4)
