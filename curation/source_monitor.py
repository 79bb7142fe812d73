"""
Source probing: dispatch by source kind, persist new items and keep the
source's monitoring fields up to date.
"""

import time
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from curation.constants import FETCH_TIMEOUT_SECONDS, MAX_WEBSITE_CANDIDATES
from curation.database import (
    insert_item,
    item_exists,
    record_probe_failure,
    record_probe_success,
)
from curation.errors import ProbeError
from curation.feed_prober import fetch_feed_items
from curation.http_fetch import Fetcher, fetch
from curation.models import ContentItem, ProbeResult, Source, SourceKind
from curation.website_prober import probe_website
from util.logging_util import log_probe, setup_logger

logger = setup_logger(__name__)


def store_new_items(items: List[ContentItem]) -> List[ContentItem]:
    """
    Insert items whose (source_id, url) is not yet stored.

    Already-stored items are dropped silently. Returns the stored items with
    their ids set.
    """
    stored = []
    for item in items:
        if item_exists(item.source_id, item.url):
            logger.debug(f"Item already exists: {item.url}")
            continue

        item_id = insert_item(item)
        if item_id is None:
            continue
        item.id = item_id
        stored.append(item)
        logger.info(f"Created new content: {item.title[:60]} ({item_id})")
    return stored


def _collect_candidates(source: Source, fetcher: Fetcher, timeout: float, max_candidates: int) -> List[ContentItem]:
    if source.kind in (SourceKind.FEED, SourceKind.PODCAST):
        return fetch_feed_items(source, fetcher=fetcher, timeout=timeout)
    if source.kind == SourceKind.WEBSITE:
        return probe_website(source, fetcher=fetcher, timeout=timeout, max_candidates=max_candidates)
    raise ProbeError(f"Unsupported source kind: {source.kind}")


def probe_source(
    source: Source,
    fetcher: Fetcher = fetch,
    timeout: float = FETCH_TIMEOUT_SECONDS,
    max_candidates: int = MAX_WEBSITE_CANDIDATES,
    now: Optional[int] = None,
) -> ProbeResult:
    """
    Probe one source for new content.

    On success the error counter resets and last_checked is set (and
    last_updated when items were found). On a whole-probe failure the error
    counter is incremented and the failure is reported in the result.
    """
    start_time = time.time()
    checked_at = now if now is not None else int(start_time)

    try:
        candidates = _collect_candidates(source, fetcher, timeout, max_candidates)
        found = store_new_items(candidates)
    except SQLAlchemyError:
        # Storage connectivity loss is fatal to the call
        raise
    except Exception as e:
        message = str(e) or e.__class__.__name__
        record_probe_failure(source.id, checked_at, message)
        source.error_count += 1
        source.last_error = message
        source.last_checked = checked_at
        log_probe(logger, source.id, source.kind.value, 0, error=message,
                  duration_ms=(time.time() - start_time) * 1000)
        return ProbeResult(found=[], error=message)

    record_probe_success(source.id, checked_at, len(found))
    source.last_checked = checked_at
    if found:
        source.last_updated = checked_at
    source.error_count = 0
    source.last_error = None
    log_probe(logger, source.id, source.kind.value, len(found),
              duration_ms=(time.time() - start_time) * 1000)
    return ProbeResult(found=found, error=None)
