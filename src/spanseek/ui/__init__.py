"""SpanSeek CLI UI - Rich terminal interface."""

from spanseek.ui.console import SpanSeekConsole

__all__ = ["SpanSeekConsole"]
