"""
Website probing: detect page changes, find candidate article links and
extract their main text.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import List, Optional, Union

from bs4 import BeautifulSoup

from curation.change_detector import detect_change
from curation.constants import FETCH_TIMEOUT_SECONDS, MAX_WEBSITE_CANDIDATES
from curation.database import item_exists, update_source_fingerprint
from curation.http_fetch import Fetcher, fetch
from curation.link_classifier import classify_links
from curation.models import ContentItem, ContentKind, Source
from curation.text_normalizer import collapse_whitespace
from util.logging_util import setup_logger

logger = setup_logger(__name__)

# Tried in order; the first container with text wins
CONTENT_SELECTORS = [
    "article",
    ".post-content",
    ".entry-content",
    ".content",
    ".article-content",
    ".post",
    "main",
    "#content",
    "#main",
]

CONTAINER_NOISE = "script, style, nav, header, footer, .comments, .sidebar"
BODY_NOISE = "script, style, noscript, nav, header, footer, aside, form, .comments, .sidebar"


def extract_links(html: Union[bytes, str]) -> List[str]:
    """All hrefs on a page, in document order."""
    soup = BeautifulSoup(html, "html.parser")
    return [a["href"] for a in soup.find_all("a", href=True)]


def extract_main_text(soup: BeautifulSoup) -> str:
    """Main article text via the selector list, falling back to the stripped body."""
    for selector in CONTENT_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        for noise in element.select(CONTAINER_NOISE):
            noise.decompose()
        text = collapse_whitespace(element.get_text(" "))
        if text:
            return text

    body = soup.body or soup
    for noise in body.select(BODY_NOISE):
        noise.decompose()
    return collapse_whitespace(body.get_text(" "))


def _extract_title(soup: BeautifulSoup) -> str:
    if soup.title and soup.title.get_text(strip=True):
        return soup.title.get_text(strip=True)
    h1 = soup.find("h1")
    if h1 and h1.get_text(strip=True):
        return h1.get_text(strip=True)
    return "Untitled"


def _extract_author(soup: BeautifulSoup) -> Optional[str]:
    meta = soup.find("meta", attrs={"name": "author"})
    if meta and meta.get("content"):
        return meta["content"].strip()
    for selector in (".author", "[rel=author]"):
        element = soup.select_one(selector)
        if element and element.get_text(strip=True):
            return element.get_text(strip=True)
    return None


def _parse_timestamp(value: str) -> Optional[int]:
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


def _extract_published(soup: BeautifulSoup) -> Optional[int]:
    meta = soup.find("meta", attrs={"property": "article:published_time"})
    if meta and meta.get("content"):
        published = _parse_timestamp(meta["content"])
        if published is not None:
            return published
    time_tag = soup.find("time", attrs={"datetime": True})
    if time_tag:
        return _parse_timestamp(time_tag["datetime"])
    return None


def extract_article(url: str, html: Union[bytes, str], source_id: int, discovered_at: int) -> ContentItem:
    """Build a content item from a fetched article page."""
    soup = BeautifulSoup(html, "html.parser")
    title = _extract_title(soup)
    author = _extract_author(soup)
    published_at = _extract_published(soup)
    text = extract_main_text(soup)

    return ContentItem(
        source_id=source_id,
        url=url,
        title=title,
        author=author,
        published_at=published_at or discovered_at,
        discovered_at=discovered_at,
        kind=ContentKind.ARTICLE,
        raw_text=text or None,
    )


def _fetch_candidate(url: str, source_id: int, fetcher: Fetcher, timeout: float, discovered_at: int) -> Optional[ContentItem]:
    try:
        result = fetcher(url, timeout=timeout)
        return extract_article(url, result.markup, source_id, discovered_at)
    except Exception as e:
        logger.error(f"Error fetching content from {url}: {e}")
        return None


def probe_website(
    source: Source,
    fetcher: Fetcher = fetch,
    timeout: float = FETCH_TIMEOUT_SECONDS,
    max_candidates: int = MAX_WEBSITE_CANDIDATES,
) -> List[ContentItem]:
    """
    Probe a website source for new articles.

    Returns an empty list without classifying links when the root page is
    unchanged since the last probe. Candidate fetch failures are skipped.

    Raises:
        FetchError: if the root page cannot be fetched.
    """
    root = fetcher(source.url, timeout=timeout)

    changed, new_fingerprint = detect_change(root.markup, source.fingerprint)
    if not changed:
        logger.info(f"No changes detected for website {source.id}")
        return []

    update_source_fingerprint(source.id, new_fingerprint)
    source.fingerprint = new_fingerprint

    candidates = classify_links(extract_links(root.markup), source.url, limit=max_candidates)
    new_candidates = [url for url in candidates if not item_exists(source.id, url)]
    logger.info(f"Website {source.id}: {len(candidates)} candidate links, {len(new_candidates)} not yet stored")

    if not new_candidates:
        return []

    discovered_at = int(time.time())
    with ThreadPoolExecutor(max_workers=min(max_candidates, len(new_candidates))) as pool:
        results = pool.map(
            lambda url: _fetch_candidate(url, source.id, fetcher, timeout, discovered_at),
            new_candidates,
        )
        return [item for item in results if item is not None]
