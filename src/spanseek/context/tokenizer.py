"""
Tokenizer - Normalizes code and query text into word tokens.

Splits identifier compounds (camelCase, snake_case, kebab-case), drops
short tokens and stop words, and optionally applies Porter stemming.
"""
from __future__ import annotations

import re
from functools import lru_cache
from typing import List

from nltk.stem import PorterStemmer

# Articles, prepositions, interrogatives, auxiliaries and quantifiers
STOP_WORDS = frozenset({
    "and", "or", "the", "a", "an", "in", "to", "of", "for", "with", "on", "at",
    "by", "from", "is", "it", "this", "that", "how", "where", "what", "does",
    "are", "which", "when", "why", "do", "can", "will", "be", "has", "have",
    "been", "being", "was", "were", "would", "could", "should", "may", "might",
    "must", "shall", "into", "through", "during", "before", "after", "above",
    "below", "between", "under", "over", "out", "off", "down", "up", "all",
    "each", "every", "both", "few", "more", "most", "other", "some", "such",
    "only", "own", "same", "than", "too", "very", "just", "also", "any",
})

MIN_TOKEN_LENGTH = 3

_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_DELIMITERS = re.compile(r"[_\-]")
_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]+")

_stemmer = PorterStemmer(mode=PorterStemmer.ORIGINAL_ALGORITHM)


@lru_cache(maxsize=65536)
def stem(word: str) -> str:
    """Reduce a word to its Porter stem. Words under 3 chars are unchanged."""
    if len(word) < MIN_TOKEN_LENGTH:
        return word
    return _stemmer.stem(word)


def tokenize(text: str, apply_stem: bool = True) -> List[str]:
    """
    Tokenize text for scoring.

    Args:
        text: Source code or query text
        apply_stem: Return stemmed tokens when True, raw tokens otherwise

    Returns:
        Ordered list of tokens (empty for empty input)
    """
    text = _CAMEL_BOUNDARY.sub(r"\1 \2", text)
    text = _DELIMITERS.sub(" ", text)
    text = _NON_ALNUM.sub(" ", text)

    tokens = [
        t for t in text.lower().split()
        if len(t) >= MIN_TOKEN_LENGTH and t not in STOP_WORDS
    ]

    if apply_stem:
        return [stem(t) for t in tokens]
    return tokens


def ngrams(tokens: List[str], n: int) -> List[str]:
    """Adjacent-token phrases joined with underscores."""
    if len(tokens) < n:
        return []
    return ["_".join(tokens[i:i + n]) for i in range(len(tokens) - n + 1)]
