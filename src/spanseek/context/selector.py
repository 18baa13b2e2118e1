"""
Span Selector - Non-overlapping top-K selection with boundary adjustment.

Picks the best candidates greedily, keeps reported ranges disjoint,
optionally widens each pick to its enclosing function or class
("smart expansion"), and clamps sizes to the configured bounds.
"""
from __future__ import annotations

import bisect
import logging
import math
from typing import List, Optional, Tuple

from ..models import CandidateSpan, ScoredResult, SearchConfig
from .chunker import ExtractionResult

logger = logging.getLogger(__name__)

# How far smart expansion looks back for a readable start line
BOUNDARY_LOOKBACK = 10


class IntervalSet:
    """Sorted list of disjoint, inclusive line intervals."""

    def __init__(self):
        self._starts: List[int] = []
        self._ends: List[int] = []

    def __len__(self) -> int:
        return len(self._starts)

    def __iter__(self):
        return iter(zip(self._starts, self._ends))

    def overlaps(self, start: int, end: int) -> bool:
        """True if [start, end] intersects any stored interval."""
        # Last interval starting at or before `end`
        i = bisect.bisect_right(self._starts, end) - 1
        return i >= 0 and self._ends[i] >= start

    def add(self, start: int, end: int) -> None:
        """Insert an interval. Callers must check overlaps() first."""
        i = bisect.bisect_left(self._starts, start)
        self._starts.insert(i, start)
        self._ends.insert(i, end)

    def free_gap(self, line: int, total_lines: int) -> Optional[Tuple[int, int]]:
        """Largest free range [lo, hi] around `line`, or None if covered."""
        i = bisect.bisect_right(self._starts, line) - 1
        if i >= 0 and self._ends[i] >= line:
            return None
        lo = self._ends[i] + 1 if i >= 0 else 1
        hi = self._starts[i + 1] - 1 if i + 1 < len(self._starts) else total_lines
        return lo, hi


def clamp_range(start: int, end: int, min_lines: int, max_lines: int, total_lines: int) -> Tuple[int, int]:
    """
    Pad to min_lines, truncate to max_lines, clamp to the file.

    Padding is split evenly (extra line before) and spills to the other
    side at a file edge. Truncation keeps the start line.
    """
    size = end - start + 1
    if size < min_lines:
        need = min_lines - size
        before = math.ceil(need / 2)
        start -= before
        end += need - before
        if start < 1:
            end += 1 - start
            start = 1
        if end > total_lines:
            start -= end - total_lines
            end = total_lines

    if end - start + 1 > max_lines:
        end = start + max_lines - 1

    start = min(max(1, start), total_lines)
    end = max(start, min(end, total_lines))
    return start, end


def fit_into_gap(start: int, end: int, lo: int, hi: int) -> Tuple[int, int]:
    """Shift [start, end] inside [lo, hi], truncating if it cannot fit."""
    if end - start > hi - lo:
        return lo, hi
    if start < lo:
        end += lo - start
        start = lo
    if end > hi:
        start -= end - hi
        end = hi
    return start, end


def placeholder_results(count: int, first_rank: int, config: SearchConfig, total_lines: int) -> List[ScoredResult]:
    """Zero-score entries meaning "no answer"."""
    start, end = clamp_range(1, 1, config.min_lines, config.max_lines, total_lines)
    return [
        ScoredResult(
            rank=first_rank + i,
            start=start,
            end=end,
            score=0.0,
            original_start=start,
            original_end=end,
        )
        for i in range(max(0, count))
    ]


def pad_results(results: List[ScoredResult], config: SearchConfig, total_lines: int) -> List[ScoredResult]:
    """Pad with placeholders up to exactly top_k entries."""
    missing = config.top_k - len(results)
    if missing <= 0:
        return results[:max(0, config.top_k)]
    return results + placeholder_results(missing, len(results) + 1, config, total_lines)


class SpanSelector:
    """
    Greedy non-overlapping selection over scored candidates.

    Args:
        config: Search options
        lines: Source lines (for readable-boundary lookups)
        extraction: Enclosing blocks used by smart expansion
    """

    def __init__(self, config: SearchConfig, lines: List[str], extraction: Optional[ExtractionResult] = None):
        self.config = config
        self.lines = lines
        self.total_lines = len(lines)
        self.extraction = extraction or ExtractionResult()

    def select(self, candidates: List[CandidateSpan]) -> List[ScoredResult]:
        """
        Pick up to top_k disjoint spans, padded to exactly top_k.

        Args:
            candidates: Scored candidates (any order, may overlap)

        Returns:
            Ranked results; trailing zero-score entries are placeholders
        """
        cfg = self.config
        ranked = sorted(candidates, key=lambda c: -c.score)
        accepted = IntervalSet()
        results: List[ScoredResult] = []

        for cand in ranked:
            if len(results) >= cfg.top_k:
                break
            if accepted.overlaps(cand.start, cand.end):
                continue

            start, end = self.adjust(cand)

            gap = accepted.free_gap(cand.start, self.total_lines)
            lo, hi = gap if gap else (cand.start, cand.end)
            if hi - lo + 1 < cfg.min_lines <= self.total_lines:
                logger.debug(f"Skipping {cand.start}-{cand.end}: free gap {lo}-{hi} too small")
                continue
            start, end = fit_into_gap(start, end, lo, hi)

            accepted.add(start, end)
            results.append(
                ScoredResult(
                    rank=len(results) + 1,
                    start=start,
                    end=end,
                    score=round(cand.score, 2),
                    original_start=cand.start,
                    original_end=cand.end,
                    name=cand.declared_name,
                    kind=cand.kind.value,
                )
            )

        return pad_results(results, cfg, self.total_lines)

    def adjust(self, cand: CandidateSpan) -> Tuple[int, int]:
        """Reported bounds for a candidate before gap fitting."""
        start, end = cand.start, cand.end
        if self.config.smart_expand:
            start, end = self.smart_expand(start, end)
        return clamp_range(start, end, self.config.min_lines, self.config.max_lines, self.total_lines)

    def smart_expand(self, start: int, end: int) -> Tuple[int, int]:
        """
        Align a range with its enclosing function or class.

        Small enclosing blocks are returned whole. Large ones yield a
        max_lines window centered on the range, with the start pulled
        back to a blank line or opening brace when one is close.
        """
        block = self.extraction.smallest_enclosing(start, end)
        if block is None:
            return start, end

        max_lines = self.config.max_lines
        if block.size <= max_lines:
            return block.start, block.end

        mid = (start + end) // 2
        half = max_lines // 2
        new_start = max(block.start, mid - half)
        new_end = min(block.end, mid + half)

        for i in range(new_start, max(1, new_start - BOUNDARY_LOOKBACK), -1):
            line = self.lines[i - 1].strip()
            if line == "" or line.endswith("{"):
                new_start = i
                break

        return new_start, new_end
