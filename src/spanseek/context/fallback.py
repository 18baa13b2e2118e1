"""
Fallback Line Scanner - Line-level scoring when parsing fails.

Scores each line on its own, then reports fixed-radius windows around
the best lines.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List

from ..models import ScoredResult, SearchConfig, SpanKind
from .selector import IntervalSet, clamp_range, pad_results
from .synonyms import ParsedQuery
from .tokenizer import stem

TOKEN_HIT = 10      # Query token is a word on the line
SUBSTRING_HIT = 3   # Query token appears inside the line text
SCORE_SCALE = 10

_WORD_SPLIT = re.compile(r"\W+")


@dataclass
class LineScore:
    line: int
    score: int


class FallbackScanner:
    """Per-line literal and token matching."""

    def __init__(self, config: SearchConfig):
        self.config = config

    def score_lines(self, lines: List[str], query: ParsedQuery) -> List[LineScore]:
        """Lines with a positive score, best first (ties by line number)."""
        terms = sorted(query.expanded_tokens)
        scores = []
        for idx, line in enumerate(lines):
            lower = line.lower()
            words = {stem(w) for w in _WORD_SPLIT.split(lower) if len(w) > 2}
            score = 0
            for term in terms:
                if term in words:
                    score += TOKEN_HIT
                elif term in lower:
                    score += SUBSTRING_HIT
            if score > 0:
                scores.append(LineScore(line=idx + 1, score=score))

        scores.sort(key=lambda s: -s.score)
        return scores

    def search(self, lines: List[str], query: ParsedQuery) -> List[ScoredResult]:
        """
        Windows around the top-scoring lines, padded to top_k.

        Args:
            lines: Source lines
            query: Parsed query

        Returns:
            Exactly top_k results
        """
        cfg = self.config
        total = len(lines)
        radius = cfg.min_lines // 2
        accepted = IntervalSet()
        results: List[ScoredResult] = []

        for hit in self.score_lines(lines, query)[:cfg.top_k * 3]:
            if len(results) >= cfg.top_k:
                break
            start, end = clamp_range(
                max(1, hit.line - radius), min(total, hit.line + radius),
                cfg.min_lines, cfg.max_lines, total,
            )
            if accepted.overlaps(start, end):
                continue

            accepted.add(start, end)
            results.append(
                ScoredResult(
                    rank=len(results) + 1,
                    start=start,
                    end=end,
                    score=float(hit.score * SCORE_SCALE),
                    original_start=hit.line,
                    original_end=hit.line,
                    kind=SpanKind.FALLBACK_LINE.value,
                )
            )

        return pad_results(results, cfg, total)
