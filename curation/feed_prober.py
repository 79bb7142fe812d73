"""
Feed fetching and parsing for feed and podcast sources.
"""

import calendar
import time
from typing import List, Optional, Union

import feedparser  # type: ignore
from html2text import html2text

from curation.constants import FETCH_TIMEOUT_SECONDS
from curation.errors import FeedParseError
from curation.http_fetch import Fetcher, fetch
from curation.models import ContentItem, ContentKind, Source, SourceKind
from util.logging_util import setup_logger

logger = setup_logger(__name__)


def _extract_authors(entry: dict) -> List[str]:
    """Extract author names from a feed entry.

    Handles various formats:
    - String with semicolon/comma separated names
    - List of dicts with 'name' key
    - Single 'author' string
    """
    if "authors" in entry:
        authors = entry["authors"]
        if isinstance(authors, str):
            authors = authors.replace(";", ",")
            return [a.strip() for a in authors.split(",") if a.strip()]
        elif isinstance(authors, list):
            result = []
            for author in authors:
                if isinstance(author, dict):
                    name = author.get("name", "") or ""
                    result.append(name.replace("\n", ", ").strip())
                elif isinstance(author, str):
                    result.append(author.strip())
            return [a for a in result if a]
    if "author" in entry:
        author = entry["author"]
        if isinstance(author, str):
            return [author.strip()] if author.strip() else []
    return []


def _extract_text(entry: dict) -> str:
    """Full entry text, preferring encoded content over summary/description."""
    html = ""
    content = entry.get("content")
    if isinstance(content, list):
        html = "\n".join(part.get("value", "") for part in content if isinstance(part, dict))
    if not html:
        html = entry.get("summary", "") or entry.get("description", "")
    if not html:
        return ""
    # Convert HTML to plain text, without hard line wrapping
    return html2text(html, bodywidth=0).strip()


def _media_types(entry: dict) -> List[str]:
    types = []
    for key in ("enclosures", "media_content"):
        for media in entry.get(key) or []:
            if isinstance(media, dict):
                types.append((media.get("type") or "").lower())
    for link in entry.get("links") or []:
        if isinstance(link, dict) and link.get("rel") == "enclosure":
            types.append((link.get("type") or "").lower())
    return types


def determine_content_kind(entry: dict, source_kind: SourceKind) -> ContentKind:
    """Infer the item kind from the source kind and any enclosure MIME types."""
    if source_kind == SourceKind.PODCAST:
        return ContentKind.PODCAST
    for media_type in _media_types(entry):
        if media_type.startswith("audio/"):
            return ContentKind.PODCAST
        if media_type.startswith("video/"):
            return ContentKind.VIDEO
    return ContentKind.ARTICLE


def _published_epoch(entry: dict) -> Optional[int]:
    for key in ("published_parsed", "updated_parsed"):
        parsed = entry.get(key)
        if parsed is not None:
            return calendar.timegm(parsed)
    return None


def parse_feed(body: Union[bytes, str], url: str = "") -> dict:
    """Parse a feed document.

    Raises:
        FeedParseError: if the document is malformed and yields no entries.
    """
    parsed = feedparser.parse(body)
    entries = parsed.get("entries", [])
    if parsed.get("bozo") and not entries:
        reason = parsed.get("bozo_exception", "unrecognized feed format")
        raise FeedParseError(f"Could not parse feed {url}: {reason}")
    return parsed


def fetch_feed_items(
    source: Source,
    fetcher: Fetcher = fetch,
    timeout: float = FETCH_TIMEOUT_SECONDS,
) -> List[ContentItem]:
    """
    Fetch and parse a feed source into candidate items.

    Entries repeated within the document are collapsed; entries without a link
    are skipped. Items are not checked against storage here.

    Raises:
        FetchError: if the feed cannot be fetched.
        FeedParseError: if the feed cannot be parsed.
    """
    result = fetcher(source.url, timeout=timeout)
    parsed = parse_feed(result.markup, source.url)
    feed_title = (parsed.get("feed") or {}).get("title", "")

    seen_links = set()
    items = []
    discovered_at = int(time.time())

    for entry in parsed.get("entries", []):
        link = (entry.get("link") or "").strip()
        if not link:
            logger.warning(f"Skipping entry without link in feed {source.url}: {entry.get('title', '')[:50]}")
            continue
        if link in seen_links:
            continue
        seen_links.add(link)

        authors = _extract_authors(entry)
        item = ContentItem(
            source_id=source.id,
            url=link,
            title=(entry.get("title") or "").strip() or "Untitled",
            author=", ".join(authors) if authors else (feed_title or None),
            published_at=_published_epoch(entry) or discovered_at,
            discovered_at=discovered_at,
            kind=determine_content_kind(entry, source.kind),
            raw_text=_extract_text(entry) or None,
        )
        items.append(item)

    logger.info(f"Parsed {len(items)} entries from feed {source.url}")
    return items
