"""
Text canonicalization shared by summarization and analysis.
"""

import re
from typing import List

_DISALLOWED_CHARS = re.compile(r"[^\w\s.,!?;:()\-]")
_WHITESPACE = re.compile(r"\s+")
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")
_WORD = re.compile(r"\w+")


def normalize(text: str) -> str:
    """Strip special characters and collapse whitespace."""
    text = _DISALLOWED_CHARS.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace in extracted page text."""
    return _WHITESPACE.sub(" ", text).strip()


def word_count(text: str) -> int:
    return len(text.split())


def split_sentences(text: str, min_chars: int = 0) -> List[str]:
    """Split text into sentences on terminal punctuation followed by whitespace.

    Sentences shorter than ``min_chars`` are discarded.
    """
    sentences = []
    for chunk in _SENTENCE_BOUNDARY.split(collapse_whitespace(text)):
        chunk = chunk.strip()
        if chunk and len(chunk) >= min_chars:
            sentences.append(chunk)
    return sentences


def tokenize(text: str) -> List[str]:
    """Lowercased word tokens."""
    return _WORD.findall(text.lower())


def contains_phrase(text_lower: str, phrase: str) -> bool:
    """Whole-word match of a (possibly multi-word) phrase in lowercased text."""
    start = r"\b" if _WORD.match(phrase[0]) else ""
    end = r"\b" if _WORD.match(phrase[-1]) else ""
    return re.search(f"{start}{re.escape(phrase)}{end}", text_lower) is not None
