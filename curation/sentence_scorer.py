"""
Term-frequency sentence salience scoring.
"""

import re
from collections import Counter
from typing import List, Tuple

from nltk.stem import PorterStemmer

from curation.stopwords import STOPWORDS
from curation.text_normalizer import tokenize

_stemmer = PorterStemmer()

DIGIT_BOOST = 1.2
KEY_PHRASE_BOOST = 1.1

KEY_PHRASE_MARKERS = re.compile(
    r"\b(?:important|significant|key|main|conclusions?|results?)\b",
    re.IGNORECASE,
)
_DIGIT = re.compile(r"\d")


def stem(token: str) -> str:
    return _stemmer.stem(token)


class SentenceScorer:
    """Scores sentences against a stemmed term-frequency table of a document."""

    def __init__(self, document: str):
        self.frequencies = Counter(
            stem(token)
            for token in tokenize(document)
            if token not in STOPWORDS and len(token) > 2
        )

    def score(self, sentence: str) -> float:
        tokens = tokenize(sentence)
        if not tokens:
            return 0.0

        score = sum(self.frequencies.get(stem(token), 0) for token in tokens) / len(tokens)

        if _DIGIT.search(sentence):
            score *= DIGIT_BOOST

        for _ in KEY_PHRASE_MARKERS.finditer(sentence):
            score *= KEY_PHRASE_BOOST

        return score

    def top_sentences(self, sentences: List[str], count: int) -> List[str]:
        """The ``count`` highest-scoring sentences, returned in document order."""
        scored: List[Tuple[float, int, str]] = [
            (self.score(sentence), position, sentence)
            for position, sentence in enumerate(sentences)
        ]
        # Ties keep earlier sentences first
        ranked = sorted(scored, key=lambda s: (-s[0], s[1]))[:count]
        return [sentence for _, _, sentence in sorted(ranked, key=lambda s: s[1])]
