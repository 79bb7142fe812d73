"""
SQLAlchemy ORM models for the content curation system.

These models are internal to the database layer. The public interface
uses the dataclass models from models.py.
"""

import json
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    Float,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from curation.models import ContentItem, ContentKind, Source, SourceKind


class JSONEncodedList(TypeDecorator):
    """Represents a list as a JSON-encoded string."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Optional[List], dialect) -> Optional[str]:
        if value is None or value == []:
            return None
        return json.dumps(value)

    def process_result_value(self, value: Optional[str], dialect) -> List:
        if value is None:
            return []
        return json.loads(value)


class JSONEncodedDict(TypeDecorator):
    """Represents a dict as a JSON-encoded string."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Optional[dict], dialect) -> Optional[str]:
        if value is None or value == {}:
            return None
        return json.dumps(value)

    def process_result_value(self, value: Optional[str], dialect) -> dict:
        if value is None:
            return {}
        return json.loads(value)


class Base(DeclarativeBase):
    pass


class SourceORM(Base):
    """SQLAlchemy model for sources table."""

    __tablename__ = "sources"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    kind: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    owner_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    check_interval_seconds: Mapped[int] = mapped_column(Integer, nullable=False)
    last_checked: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    last_updated: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    fingerprint: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    error_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("idx_sources_active", "active"),
        Index("idx_sources_owner", "owner_id"),
    )


class ContentItemORM(Base):
    """SQLAlchemy model for content_items table."""

    __tablename__ = "content_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    source_id: Mapped[int] = mapped_column(ForeignKey("sources.id"), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    author: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    published_at: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    discovered_at: Mapped[int] = mapped_column(Integer, nullable=False)
    kind: Mapped[str] = mapped_column(Text, nullable=False)
    raw_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    categories: Mapped[List[str]] = mapped_column(JSONEncodedList, nullable=True)
    insights: Mapped[List[str]] = mapped_column(JSONEncodedList, nullable=True)
    processed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    outdated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    relevance_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    # 'metadata' is reserved in SQLAlchemy, so we use 'metadata_' as the Python attribute
    metadata_: Mapped[dict] = mapped_column(
        "metadata", JSONEncodedDict, nullable=True
    )

    __table_args__ = (
        UniqueConstraint("source_id", "url", name="uq_source_url"),
        Index("idx_content_items_processed", "processed"),
        Index("idx_content_items_discovered_at", "discovered_at"),
    )


# Conversion functions between ORM models and dataclasses


def source_orm_to_dataclass(orm: SourceORM) -> Source:
    """Convert a SourceORM instance to a Source dataclass."""
    return Source(
        id=orm.id,
        url=orm.url,
        kind=SourceKind(orm.kind),
        name=orm.name,
        owner_id=orm.owner_id,
        active=bool(orm.active),
        check_interval_seconds=orm.check_interval_seconds,
        last_checked=orm.last_checked,
        last_updated=orm.last_updated,
        fingerprint=orm.fingerprint,
        error_count=orm.error_count,
        last_error=orm.last_error,
    )


def source_dataclass_to_orm(source: Source) -> SourceORM:
    """Convert a Source dataclass to a SourceORM instance."""
    return SourceORM(
        url=source.url,
        kind=source.kind.value,
        name=source.name,
        owner_id=source.owner_id,
        active=source.active,
        check_interval_seconds=source.check_interval_seconds,
        last_checked=source.last_checked,
        last_updated=source.last_updated,
        fingerprint=source.fingerprint,
        error_count=source.error_count,
        last_error=source.last_error,
    )


def item_orm_to_dataclass(orm: ContentItemORM) -> ContentItem:
    """Convert a ContentItemORM instance to a ContentItem dataclass."""
    return ContentItem(
        id=orm.id,
        source_id=orm.source_id,
        url=orm.url,
        title=orm.title,
        author=orm.author,
        published_at=orm.published_at,
        discovered_at=orm.discovered_at,
        kind=ContentKind(orm.kind),
        raw_text=orm.raw_text,
        summary=orm.summary,
        categories=orm.categories or [],
        insights=orm.insights or [],
        processed=bool(orm.processed),
        outdated=bool(orm.outdated),
        relevance_score=orm.relevance_score,
        metadata=orm.metadata_ or {},
    )


def item_dataclass_to_orm(item: ContentItem, discovered_at: int) -> ContentItemORM:
    """Convert a ContentItem dataclass to a ContentItemORM instance."""
    return ContentItemORM(
        source_id=item.source_id,
        url=item.url,
        title=item.title,
        author=item.author,
        published_at=item.published_at,
        discovered_at=discovered_at,
        kind=item.kind.value,
        raw_text=item.raw_text,
        summary=item.summary,
        categories=sorted(set(item.categories)) if item.categories else None,
        insights=item.insights if item.insights else None,
        processed=item.processed,
        outdated=item.outdated,
        relevance_score=item.relevance_score,
        metadata_=item.metadata if item.metadata else None,
    )
