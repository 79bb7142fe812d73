"""
Pipeline orchestration: probe due sources, summarize new items and analyze
everything not yet processed.

Each stage works item by item, and each unit commits before the next, so an
interrupted pass resumes where it left off on the next run.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from curation.analyzer import AnalysisEngine, academic_metadata, news_metadata
from curation.config import PipelineConfig
from curation.database import (
    get_due_sources,
    get_items_missing_summary,
    get_unprocessed_items,
    update_item_analysis,
    update_item_summary,
)
from curation.http_fetch import Fetcher, fetch
from curation.models import (
    AcademicResult,
    AnalysisResult,
    CategorizeResult,
    ContentItem,
    InsightsResult,
    NewsResult,
    OutcomeMethod,
    PipelineStats,
    ProcessingOutcome,
    ProbeResult,
    Source,
    SummaryMethod,
)
from curation.relevance import relevance_score
from curation.source_monitor import probe_source
from curation.summarizer import SummarizationEngine
from llm.llm_util import CompletionClient
from util.logging_util import setup_logger

logger = setup_logger(__name__)

SUMMARY_OUTCOME_METHODS = {
    SummaryMethod.AI_BASED: OutcomeMethod.AI,
    SummaryMethod.EXTRACTIVE: OutcomeMethod.RULE_BASED,
    SummaryMethod.NO_SUMMARIZATION_NEEDED: OutcomeMethod.NONE,
}


def _outcome(result: AnalysisResult) -> ProcessingOutcome:
    return ProcessingOutcome(
        item_id=result.item_id,
        stage=result.action,
        success=result.success,
        method=result.method,
        confidence=result.confidence,
        error=result.error,
    )


class ContentPipeline:
    """Runs one discovery, summarization and analysis pass over storage."""

    def __init__(
        self,
        client: Optional[CompletionClient] = None,
        config: Optional[PipelineConfig] = None,
        fetcher: Fetcher = fetch,
    ):
        self.config = config or PipelineConfig()
        self.summarizer = SummarizationEngine(client)
        self.analyzer = AnalysisEngine(client)
        self.fetcher = fetcher

    def _probe(self, source: Source, now: int) -> ProbeResult:
        return probe_source(
            source,
            fetcher=self.fetcher,
            timeout=self.config.fetch_timeout_seconds,
            max_candidates=self.config.max_website_candidates,
            now=now,
        )

    def discover(self, stats: PipelineStats, now: int):
        sources = get_due_sources(now)
        logger.info(f"{len(sources)} sources due for checking")
        if not sources:
            return

        with ThreadPoolExecutor(max_workers=self.config.max_sources_in_flight) as pool:
            results = list(pool.map(lambda s: self._probe(s, now), sources))

        for source, result in zip(sources, results):
            stats.sources_checked += 1
            stats.items_discovered += len(result.found)
            if result.error is not None:
                stats.sources_failed += 1
            stats.outcomes.append(ProcessingOutcome(
                item_id=None,
                stage="discover",
                success=result.error is None,
                error=result.error,
            ))

    def summarize_item(self, item: ContentItem) -> ProcessingOutcome:
        try:
            result = self.summarizer.summarize(
                item.text,
                length=self.config.summary_length,
                detail=self.config.summary_detail,
            )
            update_item_summary(item.id, result.summary, result.method.value)
        except SQLAlchemyError:
            raise
        except Exception as e:
            logger.error(f"Error summarizing item {item.id}: {e}")
            return ProcessingOutcome(item_id=item.id, stage="summarize", success=False, error=str(e))

        return ProcessingOutcome(
            item_id=item.id,
            stage="summarize",
            success=True,
            method=SUMMARY_OUTCOME_METHODS[result.method],
            confidence=result.confidence,
        )

    def analyze_item(self, item: ContentItem, now: int) -> List[ProcessingOutcome]:
        """Run every analysis on one item, persist what succeeded and mark it processed."""
        if not item.text.strip():
            logger.warning(f"Item {item.id} has no text, marking processed without analysis")
            update_item_analysis(item.id, categories=[], insights=[], processed=True)
            return [ProcessingOutcome(
                item_id=item.id,
                stage="analyze",
                success=False,
                error="No text content to analyze",
            )]

        categorized = self.analyzer.analyze_item("categorize", item)
        insights = self.analyzer.analyze_item("extract_insights", item)
        academic = self.analyzer.analyze_item("analyze_academic", item)
        news = self.analyzer.analyze_item("analyze_news", item)

        categories = categorized.categories if isinstance(categorized, CategorizeResult) else []
        metadata = {}
        if isinstance(academic, AcademicResult):
            metadata["academic"] = academic_metadata(academic)
        if isinstance(news, NewsResult):
            metadata["news"] = news_metadata(news)

        update_item_analysis(
            item.id,
            categories=categories,
            insights=insights.insights if isinstance(insights, InsightsResult) else [],
            metadata=metadata,
            relevance_score=relevance_score(
                item, categories, now, news if isinstance(news, NewsResult) else None
            ),
            processed=True,
        )
        return [_outcome(result) for result in (categorized, insights, academic, news)]

    def run_once(self, now: Optional[int] = None) -> PipelineStats:
        """
        Run a single pass. Re-running on fully processed storage is a no-op.
        """
        if now is None:
            now = int(time.time())
        stats = PipelineStats()

        self.discover(stats, now)

        to_summarize = get_items_missing_summary()
        logger.info(f"Summarizing {len(to_summarize)} items")
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
            summary_outcomes = list(pool.map(self.summarize_item, to_summarize))
        stats.items_summarized = sum(1 for o in summary_outcomes if o.success)
        stats.outcomes.extend(summary_outcomes)

        to_analyze = get_unprocessed_items()
        logger.info(f"Analyzing {len(to_analyze)} items")
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
            analysis_outcomes = list(pool.map(lambda item: self.analyze_item(item, now), to_analyze))
        for item_outcomes in analysis_outcomes:
            if any(o.stage != "analyze" for o in item_outcomes):
                stats.items_analyzed += 1
            stats.outcomes.extend(item_outcomes)

        logger.info(
            f"Pipeline pass complete: {stats.sources_checked} sources checked "
            f"({stats.sources_failed} failed), {stats.items_discovered} discovered, "
            f"{stats.items_summarized} summarized, {stats.items_analyzed} analyzed"
        )
        return stats
