"""Tests for multi-signal relevance scoring."""

import math
from dataclasses import replace

import pytest

from spanseek.context.chunker import Chunker
from spanseek.context.scorer import DocumentStats, RelevanceScorer, similarity
from spanseek.context.synonyms import QueryExpander
from spanseek.models import DEFAULT_WEIGHTS, CandidateSpan, SpanKind

CACHE_LINES = [
    "// read-through cache with expiry",     # 1
    "let cache = new Map();",                 # 2
    "let expiry = 60000;",                    # 3
    "cache.set(key, value);",                 # 4
    "let stamp = now();",                     # 5
    "cache.get(key);",                        # 6
    "if (stamp > expiry) cache.delete(key);", # 7
    "return value;",                          # 8
    "",                                       # 9
    "let hits = 0;",                          # 10
    "cache.lookup(key);",                     # 11
    "hits = hits + 1;",                       # 12
    "count(hits);",                           # 13
    "cache.lookup(other);",                   # 14
    "hits = hits + 2;",                       # 15
    "count(hits);",                           # 16
    "return hits;",                           # 17
]


def _stats(lines):
    return DocumentStats.from_source("\n".join(lines))


def _score(scorer, span, lines, query_text):
    query = QueryExpander().parse(query_text)
    return scorer.score(span, lines, query, _stats(lines))


class TestDocumentStats:
    def test_counts_and_average(self):
        stats = DocumentStats.from_source("cache cache\nexpiry")

        assert stats.term_freq == {"cach": 2, "expiri": 1}
        assert stats.total_lines == 2
        assert stats.avg_doc_len == 3.0

    def test_idf_formula(self):
        stats = DocumentStats.from_source("cache cache\nexpiry\nother\nthing")

        assert stats.idf("cach") == pytest.approx(math.log((4 - 2 + 0.5) / 2.5 + 1))
        assert stats.idf("missing") > stats.idf("cach")


class TestSignals:
    def test_no_match_scores_zero(self):
        scorer = RelevanceScorer()
        span = CandidateSpan(10, 17, SpanKind.STATEMENT)

        assert _score(scorer, span, CACHE_LINES, "database migration") == 0

    def test_coverage_rewards_spans_with_both_concepts(self):
        both = CandidateSpan(2, 8, SpanKind.STATEMENT)
        one = CandidateSpan(10, 17, SpanKind.STATEMENT)
        with_cov = RelevanceScorer()
        without_cov = RelevanceScorer(replace(DEFAULT_WEIGHTS, coverage_mult=0.0))

        both_score = _score(with_cov, both, CACHE_LINES, "cache expiry")
        one_score = _score(with_cov, one, CACHE_LINES, "cache expiry")
        ratio_without = (
            _score(without_cov, both, CACHE_LINES, "cache expiry")
            / _score(without_cov, one, CACHE_LINES, "cache expiry")
        )

        assert both_score > one_score > 0
        assert both_score / one_score > ratio_without

    def test_structural_multiplier_order(self):
        scorer = RelevanceScorer()
        scores = {
            kind: _score(scorer, CandidateSpan(2, 8, kind), CACHE_LINES, "cache expiry")
            for kind in (SpanKind.FUNCTION, SpanKind.CLASS, SpanKind.STATEMENT, SpanKind.PROPERTY)
        }

        assert scores[SpanKind.FUNCTION] > scores[SpanKind.CLASS] > scores[SpanKind.STATEMENT] > scores[SpanKind.PROPERTY]

    def test_leading_comment_counts(self):
        scorer = RelevanceScorer()
        lines = ["// rotate the logs nightly", "run();"]

        assert _score(scorer, CandidateSpan(2, 2, SpanKind.STATEMENT), lines, "rotate logs") > 0

    def test_phrase_bonus(self):
        scorer = RelevanceScorer()
        lines = ["let cache expiry = 1;", "let expiry = 2; let cache = 3;"]

        phrase = _score(scorer, CandidateSpan(1, 1, SpanKind.STATEMENT), lines, "cache expiry")
        scattered = _score(scorer, CandidateSpan(2, 2, SpanKind.STATEMENT), lines, "cache expiry")

        assert phrase > scattered

    def test_partial_match(self):
        lines = ["renderWidgetTree();"]
        span = CandidateSpan(1, 1, SpanKind.STATEMENT)
        no_partial = RelevanceScorer(replace(DEFAULT_WEIGHTS, partial_match=0.0, fuzzy_match=0.0))

        # "widg" is contained in "widget"
        assert _score(RelevanceScorer(), span, lines, "widg") > 0
        assert _score(no_partial, span, lines, "widg") == 0

    def test_fuzzy_match(self):
        lines = ["receiveMessage(msg);"]
        span = CandidateSpan(1, 1, SpanKind.STATEMENT)
        no_fuzzy = RelevanceScorer(replace(DEFAULT_WEIGHTS, fuzzy_match=0.0))

        assert similarity("reciev", "receiv") >= DEFAULT_WEIGHTS.fuzzy_threshold
        assert _score(RelevanceScorer(), span, lines, "recieve") > 0
        assert _score(no_fuzzy, span, lines, "recieve") == 0

    def test_synonym_match_weaker_than_direct(self):
        scorer = RelevanceScorer()
        lines = ["fetchUser(id);", "readUser(id);"]

        synonym = _score(scorer, CandidateSpan(1, 1, SpanKind.STATEMENT), lines, "read")
        direct = _score(scorer, CandidateSpan(2, 2, SpanKind.STATEMENT), lines, "read")

        assert direct > synonym > 0


class TestNameBonus:
    def test_exact_name_beats_synonym_name(self, retry_source):
        lines = retry_source.split("\n")
        extraction = Chunker().extract(retry_source)
        functions = {c.name: c for c in extraction.candidates if c.kind is SpanKind.FUNCTION and c.name}
        scorer = RelevanceScorer()

        exact = _score(scorer, functions["retryWithBackoff"], lines, "retryWithBackoff")
        synonym_only = _score(scorer, functions["attemptAgain"], lines, "retryWithBackoff")

        assert exact > synonym_only

    def test_name_tokens_matched(self):
        scorer = RelevanceScorer()
        lines = ["x();"]
        named = CandidateSpan(1, 1, SpanKind.FUNCTION, name="createSession")
        unnamed = CandidateSpan(1, 1, SpanKind.FUNCTION)

        assert _score(scorer, named, lines, "create session") > 0
        assert _score(scorer, unnamed, lines, "create session") == 0


def test_score_all_drops_non_positive(session_source):
    lines = session_source.split("\n")
    extraction = Chunker().extract(session_source)
    query = QueryExpander().parse("sessions created")

    scored = RelevanceScorer().score_all(extraction.candidates, lines, query, DocumentStats.from_source(session_source))

    assert scored
    assert all(c.score > 0 for c in scored)
    assert len(scored) < len(extraction.candidates)
