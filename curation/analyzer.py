"""
Content analysis: categorization, insight extraction and academic / news
assessment.

Every analysis tries the completion client first and falls back to the
keyword heuristics below when it is unavailable or returns nothing usable.
The keyword tables are approximate by nature.
"""

import json
import re
from typing import Dict, List, Optional, Sequence

from curation.constants import (
    ABSOLUTE_QUANTIFIERS,
    ACADEMIC_INDICATORS,
    ACADEMIC_SECTIONS,
    ACADEMIC_THRESHOLD,
    AI_TEMPERATURE,
    ANALYSIS_ACTIONS,
    CATEGORY_KEYWORDS,
    EMOTIONAL_WORDS,
    FACT_INDICATORS,
    INSIGHT_INDICATORS,
    MAX_ANALYZE_BATCH,
    MAX_INSIGHTS,
    MIN_CATEGORY_KEYWORD_HITS,
    MIN_INSIGHT_CHARS,
    MIN_SENTENCE_CHARS,
    NEWS_INDICATORS,
    NEWS_THRESHOLD,
    OPINION_INDICATORS,
    PROMPTS_DIR,
    SECTION_PREVIEW_CHARS,
    SENSATIONAL_WORDS,
)
from curation.errors import ValidationError
from curation.models import (
    AcademicResult,
    AnalysisResult,
    CategorizeResult,
    ContentItem,
    InsightsResult,
    NewsResult,
    OutcomeMethod,
)
from curation.text_normalizer import collapse_whitespace, contains_phrase, split_sentences
from llm.llm_util import CompletionClient, CompletionOk, NullClient, render_prompt
from util.logging_util import setup_logger

logger = setup_logger(__name__)

CATEGORIZE_TEMPLATE = PROMPTS_DIR / "categorize.jinja2"
INSIGHTS_TEMPLATE = PROMPTS_DIR / "insights.jinja2"
ACADEMIC_TEMPLATE = PROMPTS_DIR / "academic.jinja2"
NEWS_TEMPLATE = PROMPTS_DIR / "news.jinja2"

CATEGORIZE_SYSTEM_PROMPT = "You are an expert content categorizer. Analyze text and assign appropriate categories."
INSIGHTS_SYSTEM_PROMPT = "You are an expert at extracting key insights from technical and business content."
ASSESSMENT_SYSTEM_PROMPT = "You are an expert analyst of academic papers and news articles. You respond with JSON only."

CATEGORIZE_MAX_TOKENS = 100
INSIGHTS_MAX_TOKENS = 300
ASSESSMENT_MAX_TOKENS = 200

FOUND_CONFIDENCE = 0.8
EMPTY_CONFIDENCE = 0.3

BIAS_LEVELS = ("low", "medium", "high")

_LIST_MARKER = re.compile(r"^\s*(?:\d+[.)]|[-*•])\s*")
_PERCENTAGE = re.compile(r"\d+(?:\.\d+)?\s?%")
_EXCESS_PUNCTUATION = re.compile(r"[!?]{3,}")
_QUOTE = re.compile(r"[\"“].+?[\"”]")
_DIGITS = re.compile(r"\d+")
_CLAUSE_BOUNDARY = re.compile(r"[.!?]+")


# Rule-based heuristics


def rule_based_categories(text: str) -> List[str]:
    """Categories with at least two distinct whole-word keyword hits."""
    lower_text = text.lower()
    matched = []
    for category, keywords in CATEGORY_KEYWORDS.items():
        hits = [keyword for keyword in keywords if contains_phrase(lower_text, keyword)]
        if len(hits) >= MIN_CATEGORY_KEYWORD_HITS:
            matched.append(category)
    return matched


def rule_based_insights(text: str) -> List[str]:
    """Sentences containing an insight indicator, in document order."""
    insights = []
    for sentence in split_sentences(text, min_chars=MIN_SENTENCE_CHARS):
        lower_sentence = sentence.lower()
        if any(indicator in lower_sentence for indicator in INSIGHT_INDICATORS):
            insights.append(sentence)
            if len(insights) >= MAX_INSIGHTS:
                break
    return insights


def indicator_fraction(text: str, indicators: Sequence[str]) -> float:
    lower_text = text.lower()
    matches = [indicator for indicator in indicators if indicator in lower_text]
    return min(len(matches) / len(indicators), 1.0)


def extract_academic_sections(text: str) -> Dict[str, str]:
    """Header-to-next-header spans for known section names, truncated to a preview."""
    sections = {}
    alternation = "|".join(ACADEMIC_SECTIONS)
    for header in ACADEMIC_SECTIONS:
        pattern = re.compile(rf"\b{header}\b[\s\S]*?(?=\b(?:{alternation})\b|$)", re.IGNORECASE)
        match = pattern.search(text)
        if match:
            span = match.group(0).strip()
            if len(span) > SECTION_PREVIEW_CHARS:
                span = span[:SECTION_PREVIEW_CHARS] + "..."
            sections[header] = span
    return sections


def fact_opinion_ratio(text: str) -> float:
    """Share of fact-flavoured sentences among fact and opinion sentences; 0.5 if neither."""
    fact_count = 0
    opinion_count = 0
    for sentence in _CLAUSE_BOUNDARY.split(text):
        if len(sentence.strip()) <= 10:
            continue
        lower_sentence = sentence.lower()
        if any(indicator in lower_sentence for indicator in FACT_INDICATORS):
            fact_count += 1
        elif any(indicator in lower_sentence for indicator in OPINION_INDICATORS):
            opinion_count += 1

    total = fact_count + opinion_count
    return fact_count / total if total > 0 else 0.5


def estimate_credibility(text: str) -> float:
    lower_text = text.lower()
    score = 0.5

    # Positive signals
    if "study" in lower_text or "research" in lower_text:
        score += 0.1
    if "data" in lower_text or "statistics" in lower_text:
        score += 0.1
    if "expert" in lower_text or "professor" in lower_text:
        score += 0.1
    if _PERCENTAGE.search(text):
        score += 0.1

    # Negative signals
    if "rumor" in lower_text or "allegedly" in lower_text:
        score -= 0.1
    if any(word in lower_text for word in SENSATIONAL_WORDS):
        score -= 0.1
    if _EXCESS_PUNCTUATION.search(text):
        score -= 0.1

    return round(max(0.0, min(1.0, score)), 2)


def estimate_bias_level(text: str) -> str:
    lower_text = text.lower()
    bias_score = 0.1 * sum(1 for word in EMOTIONAL_WORDS if word in lower_text)
    if any(contains_phrase(lower_text, word) for word in ABSOLUTE_QUANTIFIERS):
        bias_score += 0.1

    bias_score = round(bias_score, 2)
    if bias_score < 0.3:
        return "low"
    if bias_score < 0.6:
        return "medium"
    return "high"


# AI response parsing


def parse_numbered_list(response: str) -> List[str]:
    """List entries with their markers stripped, dropping entries under 10 characters."""
    entries = []
    for line in response.splitlines():
        if not _LIST_MARKER.match(line):
            continue
        entry = _LIST_MARKER.sub("", line, count=1).strip()
        if len(entry) >= MIN_INSIGHT_CHARS:
            entries.append(entry)
    return entries[:MAX_INSIGHTS]


def parse_category_list(response: str) -> List[str]:
    """Known category names from a comma-separated answer, in vocabulary order."""
    by_lower = {name.lower(): name for name in CATEGORY_KEYWORDS}
    answered = {part.strip().strip(".").lower() for part in response.replace("\n", ",").split(",")}
    return [by_lower[name] for name in by_lower if name in answered]


def parse_json_response(response: str) -> Optional[dict]:
    """Parse a JSON object from a model response, tolerating markdown code fences."""
    response = response.strip()
    if response.startswith("```"):
        # Remove markdown code block
        lines = response.split("\n")
        response = "\n".join(lines[1:-1])
    try:
        result = json.loads(response)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse LLM response as JSON: {e}")
        logger.error(f"Response was: {response}")
        return None
    return result if isinstance(result, dict) else None


def _unit_float(value) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not 0.0 <= value <= 1.0:
        return None
    return float(value)


class AnalysisEngine:
    """Runs the four content analyses, each AI-primary with a rule-based fallback."""

    def __init__(self, client: Optional[CompletionClient] = None):
        self.client = client or NullClient()

    def _complete(self, template, params: dict, system_prompt: str, max_tokens: int) -> Optional[str]:
        if not self.client.available():
            return None
        user_prompt = render_prompt(template, params)
        completion = self.client.complete(system_prompt, user_prompt, max_tokens, AI_TEMPERATURE)
        if isinstance(completion, CompletionOk):
            return completion.text
        logger.warning(f"AI analysis unavailable ({completion.reason}), using rule-based fallback")
        return None

    def categorize(self, text: str) -> CategorizeResult:
        text = collapse_whitespace(text)
        response = self._complete(
            CATEGORIZE_TEMPLATE,
            {"text": text[:2000], "categories": ", ".join(CATEGORY_KEYWORDS)},
            CATEGORIZE_SYSTEM_PROMPT,
            CATEGORIZE_MAX_TOKENS,
        )
        categories = parse_category_list(response) if response else []
        method = OutcomeMethod.AI
        if not categories:
            categories = rule_based_categories(text)
            method = OutcomeMethod.RULE_BASED

        return CategorizeResult(
            categories=categories,
            method=method,
            confidence=FOUND_CONFIDENCE if categories else EMPTY_CONFIDENCE,
        )

    def extract_insights(self, text: str) -> InsightsResult:
        text = collapse_whitespace(text)
        response = self._complete(
            INSIGHTS_TEMPLATE,
            {"text": text[:3000]},
            INSIGHTS_SYSTEM_PROMPT,
            INSIGHTS_MAX_TOKENS,
        )
        insights = parse_numbered_list(response) if response else []
        method = OutcomeMethod.AI
        if not insights:
            insights = rule_based_insights(text)
            method = OutcomeMethod.RULE_BASED

        return InsightsResult(
            insights=insights,
            method=method,
            confidence=FOUND_CONFIDENCE if insights else EMPTY_CONFIDENCE,
        )

    def analyze_academic(self, text: str) -> AcademicResult:
        text = collapse_whitespace(text)
        lower_text = text.lower()
        confidence = indicator_fraction(text, ACADEMIC_INDICATORS)
        is_academic = confidence > ACADEMIC_THRESHOLD
        method = OutcomeMethod.RULE_BASED

        response = self._complete(ACADEMIC_TEMPLATE, {"text": text[:3000]}, ASSESSMENT_SYSTEM_PROMPT, ASSESSMENT_MAX_TOKENS)
        verdict = parse_json_response(response) if response else None
        if verdict is not None and isinstance(verdict.get("is_academic"), bool):
            is_academic = verdict["is_academic"]
            ai_confidence = _unit_float(verdict.get("confidence"))
            if ai_confidence is not None:
                confidence = ai_confidence
            method = OutcomeMethod.AI

        result = AcademicResult(is_academic=is_academic, method=method, confidence=round(confidence, 2))
        if is_academic:
            result.sections = extract_academic_sections(text)
            result.details = {
                "has_abstract": "abstract" in lower_text,
                "has_methodology": "methodology" in lower_text or "methods" in lower_text,
                "has_results": "results" in lower_text,
                "has_conclusion": "conclusion" in lower_text,
                "has_references": "references" in lower_text or "bibliography" in lower_text,
            }
        return result

    def analyze_news(self, text: str) -> NewsResult:
        text = collapse_whitespace(text)
        lower_text = text.lower()
        confidence = indicator_fraction(text, NEWS_INDICATORS)

        response = self._complete(NEWS_TEMPLATE, {"text": text[:3000]}, ASSESSMENT_SYSTEM_PROMPT, ASSESSMENT_MAX_TOKENS)
        verdict = parse_json_response(response) if response else None
        result = self._news_from_verdict(verdict) if verdict is not None else None

        if result is None:
            result = NewsResult(
                is_news=confidence > NEWS_THRESHOLD,
                method=OutcomeMethod.RULE_BASED,
                confidence=round(confidence, 2),
            )
            if result.is_news:
                result.fact_opinion_ratio = fact_opinion_ratio(text)
                result.credibility_score = estimate_credibility(text)
                result.bias_level = estimate_bias_level(text)

        if result.is_news:
            result.details = {
                "has_quotes": _QUOTE.search(text) is not None,
                "has_sources": "source" in lower_text or "according to" in lower_text,
                "has_numbers": _DIGITS.search(text) is not None,
                "word_count": len(text.split()),
            }
        return result

    @staticmethod
    def _news_from_verdict(verdict: dict) -> Optional[NewsResult]:
        is_news = verdict.get("is_news")
        if not isinstance(is_news, bool):
            return None
        if not is_news:
            return NewsResult(is_news=False, method=OutcomeMethod.AI, confidence=FOUND_CONFIDENCE)

        credibility = _unit_float(verdict.get("credibility_score"))
        ratio = _unit_float(verdict.get("fact_opinion_ratio"))
        bias = str(verdict.get("bias_level", "")).lower()
        if credibility is None or ratio is None or bias not in BIAS_LEVELS:
            return None

        return NewsResult(
            is_news=True,
            credibility_score=credibility,
            bias_level=bias,
            fact_opinion_ratio=ratio,
            method=OutcomeMethod.AI,
            confidence=FOUND_CONFIDENCE,
        )

    def analyze_item(self, action: str, item: ContentItem) -> AnalysisResult:
        """Run one action on one item. Failures are reported on the result, never raised."""
        text = item.text
        if not text.strip():
            return AnalysisResult(item_id=item.id, title=item.title, error="No text content to analyze")

        handlers = {
            "categorize": self.categorize,
            "extract_insights": self.extract_insights,
            "analyze_academic": self.analyze_academic,
            "analyze_news": self.analyze_news,
        }
        try:
            result = handlers[action](text)
        except Exception as e:
            logger.error(f"Error running {action} on item {item.id}: {e}")
            return AnalysisResult(item_id=item.id, title=item.title, error=str(e))

        result.item_id = item.id
        result.title = item.title
        return result

    def analyze_batch(self, action: str, items: Sequence[ContentItem]) -> List[AnalysisResult]:
        """
        Run one action over a batch of items, isolating per-item failures.

        Raises:
            ValidationError: for an unknown action or a batch over the size cap.
        """
        validate_action(action)
        if len(items) > MAX_ANALYZE_BATCH:
            raise ValidationError(f"Maximum {MAX_ANALYZE_BATCH} content items allowed per batch")
        return [self.analyze_item(action, item) for item in items]


def validate_action(action: str):
    if action not in ANALYSIS_ACTIONS:
        raise ValidationError(
            f"Invalid action '{action}'. Expected one of: {', '.join(ANALYSIS_ACTIONS)}"
        )


def academic_metadata(result: AcademicResult) -> dict:
    """Stored form of an academic assessment."""
    return {
        "is_academic": result.is_academic,
        "confidence": result.confidence,
        "method": result.method.value,
        "sections": result.sections,
    }


def news_metadata(result: NewsResult) -> dict:
    """Stored form of a news assessment."""
    return {
        "is_news": result.is_news,
        "credibility_score": result.credibility_score,
        "bias_level": result.bias_level,
        "fact_opinion_ratio": result.fact_opinion_ratio,
        "confidence": result.confidence,
        "method": result.method.value,
    }
