"""
Data models for the content curation system.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class SourceKind(Enum):
    FEED = "feed"
    WEBSITE = "website"
    PODCAST = "podcast"


class ContentKind(Enum):
    ARTICLE = "article"
    PODCAST = "podcast"
    VIDEO = "video"


class SummaryMethod(Enum):
    AI_BASED = "ai_based"
    EXTRACTIVE = "extractive"
    NO_SUMMARIZATION_NEEDED = "no_summarization_needed"


class OutcomeMethod(Enum):
    AI = "ai"
    RULE_BASED = "rule-based"
    NONE = "none"


@dataclass
class Source:
    """A monitored origin that is periodically probed for new content."""
    url: str
    kind: SourceKind
    id: Optional[int] = None
    name: str = ""
    owner_id: Optional[int] = None
    active: bool = True
    check_interval_seconds: int = 3600
    last_checked: Optional[int] = None
    last_updated: Optional[int] = None
    fingerprint: Optional[str] = None
    error_count: int = 0
    last_error: Optional[str] = None


@dataclass
class ContentItem:
    """One unit of discovered content. (source_id, url) is unique."""
    source_id: int
    url: str
    title: str
    kind: ContentKind = ContentKind.ARTICLE
    id: Optional[int] = None
    author: Optional[str] = None
    published_at: Optional[int] = None
    discovered_at: int = 0
    raw_text: Optional[str] = None
    summary: Optional[str] = None
    categories: List[str] = field(default_factory=list)
    insights: List[str] = field(default_factory=list)
    processed: bool = False
    outdated: bool = False
    relevance_score: float = 0.0
    metadata: dict = field(default_factory=dict)

    @property
    def text(self) -> str:
        """The best available text for summarization and analysis."""
        return self.raw_text or self.summary or ""


@dataclass
class ProcessingOutcome:
    """Ephemeral record of one processing step on one item."""
    item_id: Optional[int]
    stage: str
    success: bool
    method: OutcomeMethod = OutcomeMethod.NONE
    confidence: float = 0.0
    error: Optional[str] = None


@dataclass
class ProbeResult:
    """Result of probing a single source."""
    found: List[ContentItem] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class SummaryResult:
    summary: str
    original_length: int
    summary_length: int
    compression_ratio: float
    method: SummaryMethod
    confidence: float


@dataclass
class AnalysisResult:
    """Common envelope for every analysis action."""
    item_id: Optional[int] = None
    title: Optional[str] = None
    error: Optional[str] = None
    method: OutcomeMethod = OutcomeMethod.NONE
    confidence: float = 0.0

    action = "analysis"

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class CategorizeResult(AnalysisResult):
    categories: List[str] = field(default_factory=list)

    action = "categorize"


@dataclass
class InsightsResult(AnalysisResult):
    insights: List[str] = field(default_factory=list)

    action = "extract_insights"


@dataclass
class AcademicResult(AnalysisResult):
    is_academic: bool = False
    sections: Dict[str, str] = field(default_factory=dict)
    details: dict = field(default_factory=dict)

    action = "analyze_academic"


@dataclass
class NewsResult(AnalysisResult):
    is_news: bool = False
    credibility_score: float = 0.5
    bias_level: str = "medium"
    fact_opinion_ratio: float = 0.5
    details: dict = field(default_factory=dict)

    action = "analyze_news"


@dataclass
class DiscoveryReport:
    """Outcome of an on-demand source discovery."""
    source_id: int
    found: int
    items: List[ContentItem] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class AnalysisReport:
    results: List[AnalysisResult]

    @property
    def processed(self) -> int:
        return len(self.results)

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)


@dataclass
class PipelineStats:
    """Counts folded from the outcomes of one pipeline pass."""
    sources_checked: int = 0
    sources_failed: int = 0
    items_discovered: int = 0
    items_summarized: int = 0
    items_analyzed: int = 0
    outcomes: List[ProcessingOutcome] = field(default_factory=list)

    @property
    def failures(self) -> int:
        return sum(1 for o in self.outcomes if not o.success)
