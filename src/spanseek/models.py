"""
Data models for SpanSeek.

Provides:
- SearchConfig: per-call search options (pydantic)
- ScoringWeights: immutable weight profile injected into the scorer
- CandidateSpan / ScoredResult: spans before and after selection
- SearchReport: serializable summary of one search call

Usage:
    from spanseek.models import SearchConfig, ScoredResult
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class SearchConfig(BaseModel):
    """Options for a single search call.

    Ranges are not validated: a config with max_lines < min_lines or
    top_k <= 0 produces degenerate output rather than an error.
    """
    model_config = ConfigDict(frozen=True)

    min_lines: int = 10
    max_lines: int = 100
    top_k: int = 5
    smart_expand: bool = False


DEFAULT_CONFIG = SearchConfig()


@dataclass(frozen=True)
class ScoringWeights:
    """Weight profile for the relevance scorer."""
    bm25_k1: float = 1.2
    bm25_b: float = 0.3
    direct_match: float = 35.0
    synonym_match: float = 18.0
    partial_match: float = 12.0
    fuzzy_match: float = 25.0
    bigram_match: float = 60.0
    trigram_match: float = 80.0
    name_exact: float = 250.0
    name_partial: float = 100.0
    name_fuzzy: float = 70.0
    coverage_mult: float = 3.0
    function_mult: float = 4.0
    class_mult: float = 3.5
    toplevel_mult: float = 2.5
    property_mult: float = 2.2
    fuzzy_threshold: float = 0.80


DEFAULT_WEIGHTS = ScoringWeights()


class SpanKind(Enum):
    """Structural kind of a candidate span."""
    FUNCTION = "function"
    CLASS = "class"
    STATEMENT = "statement"          # Top-level statement or route registration
    PROPERTY = "property"            # Multi-line object field
    FALLBACK_LINE = "fallback_line"  # Window from the line scanner


@dataclass
class CandidateSpan:
    """A line range proposed as a possible answer."""
    start: int                      # 1-based, inclusive
    end: int                        # 1-based, inclusive
    kind: SpanKind
    name: Optional[str] = None      # Identifier as written in source
    score: float = 0.0

    @property
    def declared_name(self) -> Optional[str]:
        """Lowercase-normalized name."""
        return self.name.lower() if self.name else None

    @property
    def size(self) -> int:
        return self.end - self.start + 1

    def contains(self, start: int, end: int) -> bool:
        return self.start <= start and self.end >= end


@dataclass(frozen=True)
class ScoredResult:
    """A selected span as reported to callers.

    A zero score marks a placeholder, meaning "no answer".
    """
    rank: int
    start: int
    end: int
    score: float
    original_start: int
    original_end: int
    name: Optional[str] = None
    kind: Optional[str] = None

    @property
    def lines(self) -> int:
        return self.end - self.start + 1

    @property
    def is_placeholder(self) -> bool:
        return self.score == 0

    def snippet(self, source_lines: List[str]) -> str:
        """Slice the reported range out of the source lines."""
        return "\n".join(source_lines[self.start - 1:self.end])

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "rank": self.rank,
            "start": self.start,
            "end": self.end,
            "original_start": self.original_start,
            "original_end": self.original_end,
            "lines": self.lines,
            "score": self.score,
            "name": self.name,
            "kind": self.kind,
        }


class SearchReport(BaseModel):
    """Summary of one search call, written by the CLI as JSON."""
    query: str
    config: SearchConfig
    source: str = "(inline code)"
    total_results: int = 0
    results: List[Dict[str, Any]] = []

    @classmethod
    def from_results(
        cls,
        query: str,
        config: SearchConfig,
        results: List[ScoredResult],
        source: Optional[str] = None,
    ) -> "SearchReport":
        """Build a report; placeholders are listed but not counted."""
        return cls(
            query=query,
            config=config,
            source=source or "(inline code)",
            total_results=sum(1 for r in results if not r.is_placeholder),
            results=[r.to_dict() for r in results],
        )
