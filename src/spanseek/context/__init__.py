"""
SpanSeek Context - Relevance ranking of line ranges within one source file.

Provides:
- Tokenizer and synonym-based query expansion
- AST-based candidate extraction (tree-sitter)
- BM25-style multi-signal scoring
- Non-overlapping top-K selection with smart expansion
- Line-scanning fallback for unparseable source
"""

from spanseek.context.tokenizer import tokenize, stem, STOP_WORDS
from spanseek.context.synonyms import DEFAULT_SYNONYMS, ParsedQuery, QueryExpander
from spanseek.context.chunker import Chunker, ExtractionResult, NodeCategory
from spanseek.context.scorer import DocumentStats, RelevanceScorer
from spanseek.context.selector import IntervalSet, SpanSelector, clamp_range
from spanseek.context.fallback import FallbackScanner
from spanseek.context.engine import SearchEngine, resolve_source, search

__all__ = [
    # Tokenizer
    "tokenize",
    "stem",
    "STOP_WORDS",
    # Query expansion
    "DEFAULT_SYNONYMS",
    "ParsedQuery",
    "QueryExpander",
    # Extraction
    "Chunker",
    "ExtractionResult",
    "NodeCategory",
    # Scoring
    "DocumentStats",
    "RelevanceScorer",
    # Selection
    "IntervalSet",
    "SpanSelector",
    "clamp_range",
    "FallbackScanner",
    # Engine
    "SearchEngine",
    "resolve_source",
    "search",
]
