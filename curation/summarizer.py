"""
Text summarization: AI-primary with a deterministic extractive fallback.
"""

from typing import Optional

from curation.constants import (
    AI_TEMPERATURE,
    DETAIL_INSTRUCTIONS,
    MAX_TOKENS_BY_LENGTH,
    MIN_SENTENCE_CHARS,
    MIN_WORDS_TO_SUMMARIZE,
    PROMPTS_DIR,
    SENTENCES_BY_LENGTH,
)
from curation.errors import ValidationError
from curation.models import SummaryMethod, SummaryResult
from curation.sentence_scorer import SentenceScorer
from curation.text_normalizer import normalize, split_sentences, word_count
from llm.llm_util import CompletionClient, CompletionOk, NullClient, render_prompt
from util.logging_util import setup_logger

logger = setup_logger(__name__)

SUMMARIZE_TEMPLATE = PROMPTS_DIR / "summarize.jinja2"

SYSTEM_PROMPT = (
    "You are an expert at creating concise, accurate summaries of technical content, "
    "particularly in AI/ML and technology domains."
)

AI_CONFIDENCE = 0.9
EXTRACTIVE_CONFIDENCE = 0.7


class SummarizationEngine:
    """Summarizes text, preferring the completion client when it is available."""

    def __init__(self, client: Optional[CompletionClient] = None):
        self.client = client or NullClient()

    def summarize(self, text: str, length: str = "medium", detail: str = "balanced") -> SummaryResult:
        """
        Summarize a text.

        Texts under 50 words are returned normalized but otherwise unchanged.
        AI failures never surface; they fall through to extractive summarization.

        Raises:
            ValidationError: if text is not a string.
        """
        if not isinstance(text, str):
            raise ValidationError("Invalid text input")

        if length not in MAX_TOKENS_BY_LENGTH:
            length = "medium"
        if detail not in DETAIL_INSTRUCTIONS:
            detail = "balanced"

        cleaned = normalize(text)
        original_length = word_count(cleaned)

        if original_length < MIN_WORDS_TO_SUMMARIZE:
            return SummaryResult(
                summary=cleaned,
                original_length=original_length,
                summary_length=original_length,
                compression_ratio=1.0,
                method=SummaryMethod.NO_SUMMARIZATION_NEEDED,
                confidence=1.0,
            )

        summary = self._ai_summarize(cleaned, length, detail, original_length)
        if summary is not None:
            method, confidence = SummaryMethod.AI_BASED, AI_CONFIDENCE
        else:
            summary = self.extractive_summarize(cleaned, length)
            method, confidence = SummaryMethod.EXTRACTIVE, EXTRACTIVE_CONFIDENCE

        summary_length = word_count(summary)
        return SummaryResult(
            summary=summary,
            original_length=original_length,
            summary_length=summary_length,
            compression_ratio=summary_length / original_length,
            method=method,
            confidence=confidence,
        )

    def _ai_summarize(self, text: str, length: str, detail: str, original_length: int) -> Optional[str]:
        if not self.client.available():
            return None

        max_tokens = MAX_TOKENS_BY_LENGTH[length]
        user_prompt = render_prompt(
            SUMMARIZE_TEMPLATE,
            {
                "text": text,
                "length": length,
                "detail_instruction": DETAIL_INSTRUCTIONS[detail],
                "max_words": int(max_tokens * 0.75),
            },
        )
        completion = self.client.complete(SYSTEM_PROMPT, user_prompt, max_tokens, AI_TEMPERATURE)
        if not isinstance(completion, CompletionOk):
            logger.warning(f"AI summarization unavailable ({completion.reason}), using extractive summary")
            return None

        summary = normalize(completion.text)
        if not summary or word_count(summary) > original_length:
            logger.warning("AI summary was empty or longer than the original, using extractive summary")
            return None
        return summary

    @staticmethod
    def extractive_summarize(text: str, length: str = "medium") -> str:
        """Top-scoring sentences joined in their original order."""
        sentences = split_sentences(text, min_chars=MIN_SENTENCE_CHARS)
        if not sentences:
            sentences = split_sentences(text)

        scorer = SentenceScorer(text)
        count = SENTENCES_BY_LENGTH.get(length, SENTENCES_BY_LENGTH["medium"])
        return " ".join(scorer.top_sentences(sentences, count))
