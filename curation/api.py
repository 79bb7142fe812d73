"""
On-demand operations: discover a single source, summarize text or a stored
item, and run an analysis over a batch of stored items.

Validation happens before any storage access or network work. Degraded AI
never raises here; only validation, not-found and storage errors propagate.
"""

from typing import List, Optional

from curation.analyzer import AnalysisEngine, academic_metadata, news_metadata, validate_action
from curation.constants import (
    ANALYSIS_ACTIONS,
    DETAIL_OPTIONS,
    FETCH_TIMEOUT_SECONDS,
    LENGTH_OPTIONS,
    MAX_ANALYZE_BATCH,
    MAX_SUMMARIZE_CHARS,
    MAX_TOKENS_BY_LENGTH,
    MAX_WEBSITE_CANDIDATES,
    MIN_WORDS_TO_SUMMARIZE,
    SENTENCES_BY_LENGTH,
)
from curation.database import (
    count_items_for_source,
    get_item,
    get_items_by_ids,
    get_source,
    get_source_health,
    update_item_analysis,
    update_item_summary,
)
from curation.errors import NotFoundError, ValidationError
from curation.http_fetch import Fetcher, fetch
from curation.models import (
    AcademicResult,
    AnalysisReport,
    AnalysisResult,
    CategorizeResult,
    DiscoveryReport,
    InsightsResult,
    NewsResult,
    SummaryResult,
)
from curation.source_monitor import probe_source
from curation.summarizer import SummarizationEngine
from llm.llm_util import CompletionClient
from util.logging_util import setup_logger

logger = setup_logger(__name__)


def discover_source(
    source_id: int,
    owner_id: Optional[int] = None,
    fetcher: Fetcher = fetch,
) -> DiscoveryReport:
    """
    Probe one source now, regardless of its schedule.

    Raises:
        NotFoundError: if the source does not exist or belongs to another owner.
        ValidationError: if the source is inactive.
    """
    source = get_source(source_id, owner_id)
    if source is None:
        raise NotFoundError(f"Source {source_id} not found or access denied")
    if not source.active:
        raise ValidationError(f"Source {source_id} is not active")

    logger.info(f"Discovering content for source {source_id}: {source.url}")
    result = probe_source(source, fetcher=fetcher)
    return DiscoveryReport(
        source_id=source_id,
        found=len(result.found),
        items=result.found,
        error=result.error,
    )


def _validate_summarize_options(options: dict):
    length = options.get("length", "medium")
    detail = options.get("detail", "balanced")
    if length not in LENGTH_OPTIONS:
        raise ValidationError(f"Invalid length '{length}'. Expected one of: {', '.join(LENGTH_OPTIONS)}")
    if detail not in DETAIL_OPTIONS:
        raise ValidationError(f"Invalid detail '{detail}'. Expected one of: {', '.join(DETAIL_OPTIONS)}")


def summarize(
    text: Optional[str] = None,
    content_id: Optional[int] = None,
    options: Optional[dict] = None,
    owner_id: Optional[int] = None,
    client: Optional[CompletionClient] = None,
) -> SummaryResult:
    """
    Summarize raw text, or a stored item by id.

    When summarizing a stored item the summary is persisted on it.

    Raises:
        ValidationError: for missing or oversized input and unknown options.
        NotFoundError: if content_id does not resolve to an accessible item.
    """
    options = options or {}
    _validate_summarize_options(options)
    if text is not None and not isinstance(text, str):
        raise ValidationError("Invalid text input")
    if text is not None and not text.strip():
        text = None
    if text is None and content_id is None:
        raise ValidationError("Either text or content_id is required")
    if text is not None and len(text) > MAX_SUMMARIZE_CHARS:
        raise ValidationError(f"Text too long. Maximum {MAX_SUMMARIZE_CHARS} characters allowed.")

    item = None
    if text is None:
        item = get_item(content_id, owner_id)
        if item is None:
            raise NotFoundError(f"Content {content_id} not found or access denied")
        text = item.text
        if not text:
            raise ValidationError(f"Content {content_id} has no text to summarize")
        text = text[:MAX_SUMMARIZE_CHARS]

    engine = SummarizationEngine(client)
    result = engine.summarize(
        text,
        length=options.get("length", "medium"),
        detail=options.get("detail", "balanced"),
    )

    if item is not None:
        update_item_summary(item.id, result.summary, result.method.value)
        logger.info(f"Stored {result.method.value} summary for content {item.id}")
    return result


def _persist_analysis(result: AnalysisResult):
    if not result.success:
        return
    if isinstance(result, CategorizeResult):
        update_item_analysis(result.item_id, categories=result.categories)
    elif isinstance(result, InsightsResult):
        update_item_analysis(result.item_id, insights=result.insights)
    elif isinstance(result, AcademicResult):
        update_item_analysis(result.item_id, metadata={"academic": academic_metadata(result)})
    elif isinstance(result, NewsResult):
        update_item_analysis(result.item_id, metadata={"news": news_metadata(result)})


def analyze(
    action: str,
    content_ids: List[int],
    options: Optional[dict] = None,
    owner_id: Optional[int] = None,
    client: Optional[CompletionClient] = None,
) -> AnalysisReport:
    """
    Run one analysis action over a batch of stored items.

    Each successful result is persisted on its item unless options has
    ``persist: False``. Per-item failures are reported on that item's result
    and do not abort the batch.

    Raises:
        ValidationError: for an unknown action, an empty batch or more than 20 ids.
        NotFoundError: if none of the ids resolve to accessible items.
    """
    validate_action(action)
    if not isinstance(content_ids, (list, tuple)) or not content_ids:
        raise ValidationError("content_ids must be a non-empty list")
    if len(content_ids) > MAX_ANALYZE_BATCH:
        raise ValidationError(f"Maximum {MAX_ANALYZE_BATCH} content items allowed per batch")

    items = get_items_by_ids(content_ids, owner_id)
    if not items:
        raise NotFoundError("No accessible content found")

    engine = AnalysisEngine(client)
    results = engine.analyze_batch(action, items)
    if (options or {}).get("persist", True):
        for result in results:
            _persist_analysis(result)

    report = AnalysisReport(results=results)
    logger.info(f"{action}: {report.successful} of {report.processed} items analyzed")
    return report


def discovery_status(source_id: Optional[int] = None, owner_id: Optional[int] = None) -> dict:
    """
    Monitoring status for one source, or source health across all sources.

    Raises:
        NotFoundError: if source_id is given and not accessible.
    """
    if source_id is None:
        return {"health": get_source_health(owner_id)}

    source = get_source(source_id, owner_id)
    if source is None:
        raise NotFoundError(f"Source {source_id} not found or access denied")

    total, processed = count_items_for_source(source_id)
    return {
        "source": {
            "id": source.id,
            "name": source.name,
            "url": source.url,
            "kind": source.kind.value,
            "active": source.active,
            "last_checked": source.last_checked,
            "last_updated": source.last_updated,
            "error_count": source.error_count,
            "last_error": source.last_error,
        },
        "content": {
            "total": total,
            "processed": processed,
            "pending": total - processed,
        },
    }


def summarization_settings() -> dict:
    """The option tables and limits accepted by summarize and analyze."""
    return {
        "length_options": list(LENGTH_OPTIONS),
        "detail_options": list(DETAIL_OPTIONS),
        "max_tokens_by_length": dict(MAX_TOKENS_BY_LENGTH),
        "sentences_by_length": dict(SENTENCES_BY_LENGTH),
        "min_words_to_summarize": MIN_WORDS_TO_SUMMARIZE,
        "max_text_length": MAX_SUMMARIZE_CHARS,
        "analysis_actions": list(ANALYSIS_ACTIONS),
        "max_analyze_batch": MAX_ANALYZE_BATCH,
        "fetch_timeout_seconds": FETCH_TIMEOUT_SECONDS,
        "max_website_candidates": MAX_WEBSITE_CANDIDATES,
    }
