"""
Constants for the content curation system.
"""

from pathlib import Path

MODULE_ROOT = Path(__file__).parent

PROMPTS_DIR = MODULE_ROOT / "prompts"

CONFIG_PATH = MODULE_ROOT / "data" / "pipeline.yaml"

DB_NAME = "curation.db"

USER_AGENT = "ContentCuration/1.0"

# Network
FETCH_TIMEOUT_SECONDS = 10
MAX_WEBSITE_CANDIDATES = 10

# Worker pools
MAX_SOURCES_IN_FLIGHT = 4
MAX_WORKERS = 4

# Upward surface limits
MAX_ANALYZE_BATCH = 20
MAX_SUMMARIZE_CHARS = 50_000

# Source scheduling
DEFAULT_CHECK_INTERVAL_SECONDS = 60 * 60  # 1 hour
MAX_BACKOFF_EXPONENT = 5

# Summarization
MIN_WORDS_TO_SUMMARIZE = 50
MIN_SENTENCE_CHARS = 20
AI_TEMPERATURE = 0.3

LENGTH_OPTIONS = ("brief", "short", "medium", "long", "detailed")
DETAIL_OPTIONS = ("brief", "balanced", "detailed")

MAX_TOKENS_BY_LENGTH = {
    "brief": 100,
    "short": 150,
    "medium": 250,
    "long": 400,
    "detailed": 600,
}

SENTENCES_BY_LENGTH = {
    "brief": 2,
    "short": 3,
    "medium": 5,
    "long": 8,
    "detailed": 12,
}

DETAIL_INSTRUCTIONS = {
    "brief": "Create a very concise summary focusing only on the main point.",
    "balanced": "Create a balanced summary that captures key points and important details.",
    "detailed": "Create a comprehensive summary that includes main points, key details, and important context.",
}

# Analysis
ANALYSIS_ACTIONS = ("categorize", "extract_insights", "analyze_academic", "analyze_news")

CATEGORY_KEYWORDS = {
    "Technology": ["ai", "artificial intelligence", "machine learning", "software", "programming", "tech", "digital"],
    "Science": ["research", "study", "experiment", "scientific", "discovery", "analysis", "data"],
    "Business": ["market", "company", "revenue", "profit", "investment", "startup", "economy"],
    "Health": ["medical", "health", "disease", "treatment", "patient", "doctor", "medicine"],
    "Education": ["learning", "student", "university", "school", "education", "teaching", "academic"],
    "Politics": ["government", "policy", "election", "political", "law", "regulation", "congress"],
    "Environment": ["climate", "environment", "sustainability", "green", "renewable", "carbon", "pollution"],
    "Finance": ["financial", "banking", "investment", "stock", "cryptocurrency", "money", "trading"],
}

MIN_CATEGORY_KEYWORD_HITS = 2

INSIGHT_INDICATORS = [
    "key finding",
    "found that",
    "shows that",
    "reveals",
    "demonstrates",
    "indicates",
    "suggests",
    "concludes",
    "result",
    "important",
    "significant",
]

MAX_INSIGHTS = 5
MIN_INSIGHT_CHARS = 10

ACADEMIC_INDICATORS = [
    "abstract",
    "methodology",
    "results",
    "conclusion",
    "references",
    "doi:",
    "arxiv:",
    "journal",
    "conference",
    "proceedings",
]

ACADEMIC_THRESHOLD = 0.4

ACADEMIC_SECTIONS = ["abstract", "introduction", "methodology", "methods", "results", "discussion", "conclusion"]

SECTION_PREVIEW_CHARS = 500

NEWS_INDICATORS = [
    "breaking",
    "reported",
    "according to",
    "officials",
    "spokesperson",
    "statement",
    "announced",
]

NEWS_THRESHOLD = 0.3

FACT_INDICATORS = ["data shows", "study found", "research indicates", "statistics", "according to"]
OPINION_INDICATORS = ["believe", "think", "feel", "opinion", "should", "must", "probably"]

EMOTIONAL_WORDS = ["outrageous", "shocking", "devastating", "amazing", "terrible", "fantastic"]
ABSOLUTE_QUANTIFIERS = ["always", "never", "all"]
SENSATIONAL_WORDS = ["shocking", "unbelievable"]

# Relevance weights
RECENCY_DECAY_PER_DAY = 0.05
RELEVANCE_WEIGHTS = {"recency": 0.4, "quality": 0.3, "topic": 0.3}
