"""
Search Engine - Answers "where/how does X happen" questions about a file.

Workflow:
1. Parse and expand the query
2. Extract candidate spans from the syntax tree
3. Score candidates against the query
4. Select non-overlapping top-K spans
Falls back to line scanning when the source cannot be parsed or when no
candidate in the tree matches the query.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Mapping, Optional, Tuple

from ..models import (
    DEFAULT_CONFIG,
    DEFAULT_WEIGHTS,
    ScoredResult,
    ScoringWeights,
    SearchConfig,
    SearchReport,
)
from .chunker import Chunker
from .fallback import FallbackScanner
from .scorer import DocumentStats, RelevanceScorer
from .selector import SpanSelector, placeholder_results
from .synonyms import DEFAULT_SYNONYMS, QueryExpander

logger = logging.getLogger(__name__)

# Inputs at least this long (or multi-line) are always treated as source text
INLINE_SOURCE_LENGTH = 500


def resolve_source(code_or_path: str) -> Tuple[str, Optional[str]]:
    """
    Disambiguate inline source from a file path.

    Returns:
        Tuple of (source text, path or None when the input was inline)
    """
    if "\n" in code_or_path or len(code_or_path) > INLINE_SOURCE_LENGTH:
        return code_or_path, None

    path = Path(code_or_path)
    try:
        if path.is_file():
            return path.read_text(encoding="utf-8", errors="replace"), code_or_path
    except OSError as e:
        logger.warning(f"Could not read {code_or_path}, treating it as source text: {e}")

    return code_or_path, None


class SearchEngine:
    """
    Relevance-ranking engine for a single source file.

    Holds only immutable settings (weights, synonym table); every call
    recomputes its own statistics, so one engine can serve concurrent
    searches.
    """

    def __init__(
        self,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
        synonyms: Mapping[str, Tuple[str, ...]] = DEFAULT_SYNONYMS,
    ):
        self.scorer = RelevanceScorer(weights)
        self.expander = QueryExpander(synonyms)

    def search(self, source: str, query: str, config: Optional[SearchConfig] = None) -> List[ScoredResult]:
        """
        Find the line ranges most relevant to a query.

        Args:
            source: Source text, or a path to a source file
            query: Free-text question
            config: Search options (defaults apply when omitted)

        Returns:
            Exactly config.top_k results; zero-score entries mean "no answer"
        """
        code, _ = resolve_source(source)
        return self.search_code(code, query, config)

    def search_code(self, code: str, query: str, config: Optional[SearchConfig] = None) -> List[ScoredResult]:
        """Search source text that is already loaded (never read as a path)."""
        cfg = config or DEFAULT_CONFIG
        lines = code.split("\n")

        parsed = self.expander.parse(query)
        if parsed.is_empty:
            logger.debug("Query has no searchable tokens")
            return placeholder_results(cfg.top_k, 1, cfg, len(lines))

        extraction = Chunker().extract(code)
        if extraction is None:
            logger.debug("Falling back to line scanning")
            return FallbackScanner(cfg).search(lines, parsed)

        stats = DocumentStats.from_source(code)
        scored = self.scorer.score_all(extraction.candidates, lines, parsed, stats)
        logger.debug(f"{len(scored)}/{len(extraction.candidates)} candidates scored above zero")
        if not scored:
            logger.debug("No candidate matched, falling back to line scanning")
            return FallbackScanner(cfg).search(lines, parsed)

        return SpanSelector(cfg, lines, extraction).select(scored)

    def report(self, source: str, query: str, config: Optional[SearchConfig] = None) -> SearchReport:
        """Run a search and wrap the results in a serializable report."""
        cfg = config or DEFAULT_CONFIG
        code, path = resolve_source(source)
        results = self.search_code(code, query, cfg)
        return SearchReport.from_results(query, cfg, results, source=path)


_default_engine: Optional[SearchEngine] = None


def get_engine() -> SearchEngine:
    """Shared engine with the default weight profile."""
    global _default_engine
    if _default_engine is None:
        _default_engine = SearchEngine()
    return _default_engine


def search(source: str, query: str, config: Optional[SearchConfig] = None) -> List[ScoredResult]:
    """Search with the default engine. See SearchEngine.search."""
    return get_engine().search(source, query, config)
