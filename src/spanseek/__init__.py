"""
SpanSeek - Find the lines of a source file that answer a question.

Given JavaScript/TypeScript source and a free-text question such as
"where are sessions created", returns the most relevant non-overlapping
line ranges, ready to be sliced out and handed to an AI assistant as
context.

Usage:
    spanseek search server.js "where are sessions created"
    spanseek search app.ts "retry logic" --top-k 3 --smart-expand
    spanseek config --show

    from spanseek import search
    results = search(source_text, "cache expiry")
"""

__version__ = "1.0.0"
__author__ = "SpanSeek Team"

from spanseek.context.engine import SearchEngine, search
from spanseek.models import ScoredResult, ScoringWeights, SearchConfig

__all__ = ["search", "SearchEngine", "SearchConfig", "ScoredResult", "ScoringWeights"]
