"""
Relevance Scorer - Multi-signal ranking of candidate spans.

Combines BM25 term statistics, synonym matches, partial and fuzzy token
matches, phrase overlap and declared-name matches, then scales by query
coverage and by the structural kind of the span.
"""
from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from rapidfuzz.distance import JaroWinkler

from ..models import DEFAULT_WEIGHTS, CandidateSpan, ScoringWeights, SpanKind
from .synonyms import ParsedQuery
from .tokenizer import ngrams, tokenize

# Preceding lines searched for comments attached to a span
COMMENT_LOOKBACK = 3

# Partial and fuzzy matching ignore shorter tokens
MIN_FUZZY_LENGTH = 4


@dataclass(frozen=True)
class DocumentStats:
    """Corpus statistics for one source text."""
    term_freq: Dict[str, int]
    total_lines: int
    avg_doc_len: float

    @classmethod
    def from_source(cls, source: str) -> "DocumentStats":
        tokens = tokenize(source, apply_stem=True)
        total_lines = len(source.split("\n"))
        # Documents are approximated as 20-line blocks
        avg_doc_len = len(tokens) / max(1.0, total_lines / 20)
        return cls(term_freq=dict(Counter(tokens)), total_lines=total_lines, avg_doc_len=avg_doc_len)

    def idf(self, token: str) -> float:
        df = self.term_freq.get(token, 0)
        return math.log((self.total_lines - df + 0.5) / (df + 0.5) + 1)


@dataclass
class SpanText:
    """Tokenized text of a span plus its leading comments."""
    tokens: List[str]
    raw_tokens: List[str]
    term_freq: Counter
    bigrams: Set[str]
    trigrams: Set[str]

    @property
    def length(self) -> int:
        return len(self.tokens)


def similarity(a: str, b: str) -> float:
    """Jaro-Winkler similarity, 0 for words under 3 chars."""
    if len(a) < 3 or len(b) < 3:
        return 0.0
    return JaroWinkler.similarity(a, b)


class RelevanceScorer:
    """
    Scores candidate spans against a parsed query.

    The weight profile is fixed at construction so differently tuned
    scorers can run side by side.
    """

    def __init__(self, weights: ScoringWeights = DEFAULT_WEIGHTS):
        self.weights = weights
        self._structural = {
            SpanKind.FUNCTION: weights.function_mult,
            SpanKind.CLASS: weights.class_mult,
            SpanKind.STATEMENT: weights.toplevel_mult,
            SpanKind.PROPERTY: weights.property_mult,
            SpanKind.FALLBACK_LINE: 1.0,
        }

    def score_all(
        self,
        candidates: List[CandidateSpan],
        lines: List[str],
        query: ParsedQuery,
        stats: DocumentStats,
    ) -> List[CandidateSpan]:
        """
        Score every candidate and keep the positive ones.

        Args:
            candidates: Spans from the extractor (scores are overwritten)
            lines: Source lines
            query: Parsed query
            stats: Whole-source statistics

        Returns:
            Candidates with score > 0, in extraction order
        """
        scored = []
        for cand in candidates:
            cand.score = self.score(cand, lines, query, stats)
            if cand.score > 0:
                scored.append(cand)
        return scored

    def score(
        self,
        cand: CandidateSpan,
        lines: List[str],
        query: ParsedQuery,
        stats: DocumentStats,
    ) -> float:
        """Composite score for a single span."""
        if query.is_empty:
            return 0.0

        text = self.span_text(cand, lines)
        matched: Set[str] = set()

        score = self._direct_score(text, query, stats, matched)
        score += self._synonym_score(text, query, stats, matched)
        score += self._partial_score(text, query, matched)
        score += self._phrase_score(text, query)
        score += self._name_score(cand.name, query)

        score *= 1 + self._coverage(query, matched) * self.weights.coverage_mult
        score *= self._structural[cand.kind]
        return score

    def span_text(self, cand: CandidateSpan, lines: List[str]) -> SpanText:
        """Tokenize span lines plus up to 3 preceding comment lines."""
        body = " ".join(lines[cand.start - 1:cand.end])
        comments = [
            line for line in lines[max(0, cand.start - 1 - COMMENT_LOOKBACK):cand.start - 1]
            if "//" in line or "/*" in line or "*" in line
        ]
        full = body + " " + " ".join(comments)

        tokens = tokenize(full, apply_stem=True)
        raw_tokens = tokenize(full, apply_stem=False)
        return SpanText(
            tokens=tokens,
            raw_tokens=raw_tokens,
            term_freq=Counter(tokens),
            bigrams=set(ngrams(raw_tokens, 2)),
            trigrams=set(ngrams(raw_tokens, 3)),
        )

    def bm25(self, tf: int, doc_len: int, idf: float, stats: DocumentStats) -> float:
        k1 = self.weights.bm25_k1
        b = self.weights.bm25_b
        avg = stats.avg_doc_len or 1.0
        return idf * (tf * (k1 + 1)) / (tf + k1 * (1 - b + b * doc_len / avg))

    # ------------------------------------------------------------------
    # Signals
    # ------------------------------------------------------------------

    def _direct_score(self, text: SpanText, query: ParsedQuery, stats: DocumentStats, matched: Set[str]) -> float:
        score = 0.0
        for token in sorted(query.token_set):
            tf = text.term_freq.get(token, 0)
            if tf > 0:
                score += self.bm25(tf, text.length, stats.idf(token), stats) * self.weights.direct_match
                matched.add(token)
        return score

    def _synonym_score(self, text: SpanText, query: ParsedQuery, stats: DocumentStats, matched: Set[str]) -> float:
        score = 0.0
        for token in sorted(query.synonym_tokens):
            tf = text.term_freq.get(token, 0)
            if tf > 0:
                score += self.bm25(tf, text.length, stats.idf(token), stats) * self.weights.synonym_match
                matched.add(token)
        return score

    def _partial_score(self, text: SpanText, query: ParsedQuery, matched: Set[str]) -> float:
        """Substring containment first, Jaro-Winkler similarity second."""
        score = 0.0
        span_tokens = sorted({t for t in text.tokens if len(t) >= MIN_FUZZY_LENGTH})
        pending = [t for t in query.token_set if t not in matched and len(t) >= MIN_FUZZY_LENGTH]

        for qt in sorted(pending):
            hits = [st for st in span_tokens if qt in st or st in qt]
            if hits:
                score += self.weights.partial_match * len(hits)
                matched.add(qt)
                continue

            for st in span_tokens:
                sim = similarity(qt, st)
                if sim >= self.weights.fuzzy_threshold:
                    score += self.weights.fuzzy_match * sim
                    matched.add(qt)
                    break
        return score

    def _phrase_score(self, text: SpanText, query: ParsedQuery) -> float:
        score = sum(self.weights.bigram_match for bg in query.bigrams if bg in text.bigrams)
        score += sum(self.weights.trigram_match for tg in query.trigrams if tg in text.trigrams)
        return score

    def _name_score(self, name: Optional[str], query: ParsedQuery) -> float:
        """Bonus for tokens of the span's declared name."""
        if not name:
            return 0.0

        w = self.weights
        score = 0.0
        name_tokens = tokenize(name, apply_stem=True)
        name_raw = tokenize(name, apply_stem=False)

        for nt, raw in zip(name_tokens, name_raw):
            if nt in query.token_set:
                score += w.name_exact
                if raw in query.raw_token_set:
                    score += w.name_exact * 0.5
            elif nt in query.expanded_tokens:
                score += w.name_partial
            elif len(nt) >= MIN_FUZZY_LENGTH:
                score += self._name_near_match(nt, query)
        return score

    def _name_near_match(self, name_token: str, query: ParsedQuery) -> float:
        w = self.weights
        best = 0.0
        for qt in sorted(query.token_set):
            if len(qt) < MIN_FUZZY_LENGTH:
                continue
            if qt in name_token or name_token in qt:
                best = max(best, w.name_partial * 0.5)
                continue
            sim = similarity(qt, name_token)
            if sim >= w.fuzzy_threshold:
                best = max(best, w.name_fuzzy * sim)
        return best

    @staticmethod
    def _coverage(query: ParsedQuery, matched: Set[str]) -> float:
        """Share of distinct query tokens hit directly or through their synonyms."""
        distinct = query.token_set
        if not distinct:
            return 0.0
        covered = sum(
            1 for token in distinct
            if token in matched or query.expansions.get(token, frozenset()) & matched
        )
        return covered / len(distinct)
