"""
Database operations for the content curation system.

Uses SQLAlchemy ORM for database access. The public API uses dataclass models
from models.py, with conversion to/from ORM models handled internally.
"""

import time
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import exists, func, select
from sqlalchemy.exc import IntegrityError

from curation.constants import MAX_BACKOFF_EXPONENT
from curation.db_engine import get_engine, get_session
from curation.models import ContentItem, Source
from curation.orm_models import (
    Base,
    ContentItemORM,
    SourceORM,
    item_dataclass_to_orm,
    item_orm_to_dataclass,
    source_dataclass_to_orm,
    source_orm_to_dataclass,
)
from util.logging_util import setup_logger

logger = setup_logger(__name__)


def init_db():
    """Initialize the database schema."""
    engine = get_engine()
    Base.metadata.create_all(engine)


# Sources


def insert_source(source: Source) -> int:
    """Insert a new source. Returns the source id."""
    orm = source_dataclass_to_orm(source)
    with get_session() as session:
        session.add(orm)
        session.flush()
        return orm.id


def get_source(source_id: int, owner_id: Optional[int] = None) -> Optional[Source]:
    """Get a source by id, optionally scoped to an owner."""
    with get_session() as session:
        orm = session.get(SourceORM, source_id)
        if orm is None:
            return None
        if owner_id is not None and orm.owner_id != owner_id:
            return None
        return source_orm_to_dataclass(orm)


def get_source_by_url(url: str) -> Optional[Source]:
    with get_session() as session:
        orm = session.execute(select(SourceORM).where(SourceORM.url == url)).scalars().first()
        return source_orm_to_dataclass(orm) if orm is not None else None


def backoff_interval(source: Source) -> int:
    """The check cadence stretched by the source's consecutive error count."""
    exponent = min(source.error_count, MAX_BACKOFF_EXPONENT)
    return source.check_interval_seconds * (2 ** exponent)


def is_source_due(source: Source, now: int) -> bool:
    if not source.active:
        return False
    if source.last_checked is None:
        return True
    return source.last_checked + backoff_interval(source) <= now


def get_due_sources(now: Optional[int] = None) -> List[Source]:
    """Get all active sources whose next check time has passed."""
    if now is None:
        now = int(time.time())
    with get_session() as session:
        stmt = (
            select(SourceORM)
            .where(SourceORM.active.is_(True))
            .order_by(SourceORM.id.asc())
        )
        sources = [source_orm_to_dataclass(orm) for orm in session.execute(stmt).scalars().all()]
    return [s for s in sources if is_source_due(s, now)]


def update_source_fingerprint(source_id: int, fingerprint: str):
    """Store the latest page fingerprint for a website source."""
    with get_session() as session:
        orm = session.get(SourceORM, source_id)
        if orm is not None:
            orm.fingerprint = fingerprint


def record_probe_success(source_id: int, checked_at: int, found_count: int):
    """Mark a probe as successful, resetting the error counter."""
    with get_session() as session:
        orm = session.get(SourceORM, source_id)
        if orm is None:
            return
        orm.last_checked = checked_at
        if found_count > 0:
            orm.last_updated = checked_at
        orm.error_count = 0
        orm.last_error = None


def record_probe_failure(source_id: int, checked_at: int, message: str):
    """Record a whole-probe failure on the source."""
    with get_session() as session:
        orm = session.get(SourceORM, source_id)
        if orm is None:
            return
        orm.last_checked = checked_at
        orm.error_count = orm.error_count + 1
        orm.last_error = message


# Content items


def item_exists(source_id: int, url: str) -> bool:
    """Check if an item with this (source_id, url) is already stored."""
    with get_session() as session:
        stmt = select(
            exists().where(
                ContentItemORM.source_id == source_id,
                ContentItemORM.url == url,
            )
        )
        return session.execute(stmt).scalar()


def insert_item(item: ContentItem) -> Optional[int]:
    """Insert a new content item.

    Returns the item id, or None if (source_id, url) is already stored.
    """
    discovered_at = item.discovered_at or int(time.time())
    orm = item_dataclass_to_orm(item, discovered_at)

    try:
        with get_session() as session:
            session.add(orm)
            session.flush()
            return orm.id
    except IntegrityError:
        logger.debug(f"Item already stored for source {item.source_id}: {item.url}")
        return None


def get_item(item_id: int, owner_id: Optional[int] = None) -> Optional[ContentItem]:
    """Get a content item by id, optionally scoped to the owner of its source."""
    items = get_items_by_ids([item_id], owner_id)
    return items[0] if items else None


def get_items_by_ids(item_ids: Sequence[int], owner_id: Optional[int] = None) -> List[ContentItem]:
    """Batch-read content items, keeping only those the owner can access."""
    if not item_ids:
        return []
    with get_session() as session:
        stmt = select(ContentItemORM).where(ContentItemORM.id.in_(list(item_ids)))
        if owner_id is not None:
            stmt = stmt.join(SourceORM, SourceORM.id == ContentItemORM.source_id).where(
                SourceORM.owner_id == owner_id
            )
        stmt = stmt.order_by(ContentItemORM.id.asc())
        orms = session.execute(stmt).scalars().all()
        return [item_orm_to_dataclass(orm) for orm in orms]


def get_items_for_source(source_id: int) -> List[ContentItem]:
    with get_session() as session:
        stmt = (
            select(ContentItemORM)
            .where(ContentItemORM.source_id == source_id)
            .order_by(ContentItemORM.id.asc())
        )
        orms = session.execute(stmt).scalars().all()
        return [item_orm_to_dataclass(orm) for orm in orms]


def get_items_missing_summary(limit: Optional[int] = None) -> List[ContentItem]:
    """Get items that have text but no summary yet."""
    with get_session() as session:
        stmt = (
            select(ContentItemORM)
            .where(
                ContentItemORM.summary.is_(None),
                ContentItemORM.raw_text.is_not(None),
            )
            .order_by(ContentItemORM.discovered_at.asc(), ContentItemORM.id.asc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        orms = session.execute(stmt).scalars().all()
        return [item_orm_to_dataclass(orm) for orm in orms]


def get_unprocessed_items(limit: Optional[int] = None) -> List[ContentItem]:
    """Get items that have not been analyzed yet."""
    with get_session() as session:
        stmt = (
            select(ContentItemORM)
            .where(ContentItemORM.processed.is_(False))
            .order_by(ContentItemORM.discovered_at.asc(), ContentItemORM.id.asc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        orms = session.execute(stmt).scalars().all()
        return [item_orm_to_dataclass(orm) for orm in orms]


def update_item_summary(item_id: int, summary: str, method: Optional[str] = None):
    """Persist a summary for an item."""
    with get_session() as session:
        orm = session.get(ContentItemORM, item_id)
        if orm is None:
            return
        orm.summary = summary
        if method is not None:
            metadata = dict(orm.metadata_ or {})
            metadata["summary_method"] = method
            orm.metadata_ = metadata


def update_item_analysis(
    item_id: int,
    categories: Optional[List[str]] = None,
    insights: Optional[List[str]] = None,
    metadata: Optional[dict] = None,
    relevance_score: Optional[float] = None,
    processed: Optional[bool] = None,
):
    """Persist derived analysis fields. Fields left as None are untouched."""
    with get_session() as session:
        orm = session.get(ContentItemORM, item_id)
        if orm is None:
            return
        if categories is not None:
            orm.categories = sorted(set(categories))
        if insights is not None:
            orm.insights = list(insights)
        if metadata:
            merged = dict(orm.metadata_ or {})
            merged.update(metadata)
            orm.metadata_ = merged
        if relevance_score is not None:
            orm.relevance_score = relevance_score
        if processed is not None:
            orm.processed = processed


def count_items_for_source(source_id: int) -> Tuple[int, int]:
    """Returns (total, processed) item counts for a source."""
    with get_session() as session:
        total = session.execute(
            select(func.count(ContentItemORM.id)).where(ContentItemORM.source_id == source_id)
        ).scalar()
        processed = session.execute(
            select(func.count(ContentItemORM.id)).where(
                ContentItemORM.source_id == source_id,
                ContentItemORM.processed.is_(True),
            )
        ).scalar()
        return total or 0, processed or 0


def get_source_health(owner_id: Optional[int] = None) -> Dict[str, int]:
    """Aggregate source counts: total, active and with_errors."""
    with get_session() as session:
        stmt = select(SourceORM)
        if owner_id is not None:
            stmt = stmt.where(SourceORM.owner_id == owner_id)
        orms = session.execute(stmt).scalars().all()
        return {
            "total": len(orms),
            "active": sum(1 for orm in orms if orm.active),
            "with_errors": sum(1 for orm in orms if orm.error_count > 0),
        }
