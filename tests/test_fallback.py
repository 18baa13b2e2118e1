"""Tests for the line-scanning fallback."""

import pytest

from spanseek.context.fallback import SCORE_SCALE, FallbackScanner
from spanseek.context.synonyms import QueryExpander
from spanseek.models import SearchConfig


@pytest.fixture
def lines():
    lines = ["let x = 1;"] * 40
    lines[4] = "const cacheExpiry = cache.expiry;"  # line 5
    lines[29] = "cache.clear();"                     # line 30
    return lines


@pytest.fixture
def query():
    return QueryExpander().parse("cache expiry")


class TestScoreLines:
    def test_best_line_first(self, lines, query):
        scores = FallbackScanner(SearchConfig()).score_lines(lines, query)

        assert [s.line for s in scores] == [5, 30]
        assert scores[0].score > scores[1].score

    def test_neutral_lines_score_nothing(self, query):
        scanner = FallbackScanner(SearchConfig())
        assert scanner.score_lines(["let x = 1;", "return y;"], query) == []


class TestSearch:
    def test_windows_around_best_lines(self, lines, query):
        config = SearchConfig(min_lines=4, max_lines=20, top_k=3)
        results = FallbackScanner(config).search(lines, query)

        assert [(r.start, r.end) for r in results] == [(3, 7), (28, 32), (1, 4)]
        assert results[0].kind == "fallback_line"
        assert (results[0].original_start, results[0].original_end) == (5, 5)
        assert results[0].score % SCORE_SCALE == 0
        assert results[0].score > results[1].score > 0
        assert results[2].is_placeholder

    def test_overlapping_windows_skipped(self, query):
        lines = ["let x = 1;"] * 40
        lines[4] = "cache.expiry = 10;"
        lines[5] = "cache.clear();"
        config = SearchConfig(min_lines=4, max_lines=20, top_k=2)

        results = FallbackScanner(config).search(lines, query)

        assert results[0].original_start == 5
        assert results[1].is_placeholder

    def test_no_hits(self, query):
        config = SearchConfig(top_k=2)
        results = FallbackScanner(config).search(["let x = 1;"] * 5, query)
        assert len(results) == 2
        assert all(r.is_placeholder for r in results)
