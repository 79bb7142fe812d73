"""
Heuristic classification of candidate links found on a website.

The pattern tables are approximate: a link is treated as content when its
URL looks like an article and not like site furniture.
"""

import re
from typing import Iterable, List, Optional
from urllib.parse import urldefrag, urljoin, urlparse

CONTENT_PATTERNS = [
    re.compile(r"/\d{4}/\d{2}/\d{2}/"),
    re.compile(r"/article/", re.IGNORECASE),
    re.compile(r"/post/", re.IGNORECASE),
    re.compile(r"/blog/", re.IGNORECASE),
    re.compile(r"/news/", re.IGNORECASE),
]

CONTENT_SUFFIXES = re.compile(r"\.(html|php)$", re.IGNORECASE)

NON_CONTENT_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"/tag/",
        r"/category/",
        r"/author/",
        r"/search/",
        r"/page/",
        r"/wp-content/",
        r"/wp-includes/",
        r"/wp-admin/",
        r"/feed/",
        r"/rss/",
        r"/comments/",
        r"/login/",
        r"/register/",
        r"/about/",
        r"/contact/",
        r"/privacy/",
        r"/terms/",
    )
]

_IGNORED_PREFIXES = ("#", "javascript:", "mailto:", "tel:", "data:")


def normalize_url(href: str, base_url: str) -> Optional[str]:
    """Resolve a possibly relative href against the base URL, dropping any fragment."""
    try:
        absolute = urljoin(base_url, href.strip())
    except ValueError:
        return None
    url, _ = urldefrag(absolute)
    return url


def _same_host(url: str, base_url: str) -> bool:
    try:
        host = urlparse(url).hostname
        base_host = urlparse(base_url).hostname
    except ValueError:
        return False
    return host is not None and host == base_host


def is_likely_content_link(href: str, base_url: str) -> bool:
    """True if the link points at likely content on the same host as the base URL."""
    if not href or href.strip().lower().startswith(_IGNORED_PREFIXES):
        return False

    url = normalize_url(href, base_url)
    if url is None or not _same_host(url, base_url):
        return False

    path = urlparse(url).path
    is_content = any(p.search(url) for p in CONTENT_PATTERNS) or CONTENT_SUFFIXES.search(path) is not None
    is_non_content = any(p.search(url) for p in NON_CONTENT_PATTERNS)
    return is_content and not is_non_content


def classify_links(hrefs: Iterable[str], base_url: str, limit: Optional[int] = None) -> List[str]:
    """Normalized, de-duplicated content links in page order, capped at ``limit``."""
    seen = set()
    links = []
    for href in hrefs:
        if not is_likely_content_link(href, base_url):
            continue
        url = normalize_url(href, base_url)
        if url in seen:
            continue
        seen.add(url)
        links.append(url)
        if limit is not None and len(links) >= limit:
            break
    return links
