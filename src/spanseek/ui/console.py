"""Rich console UI for SpanSeek CLI."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from spanseek.models import ScoredResult, SearchConfig

# Lines of each snippet shown in the terminal
PREVIEW_LINES = 12


class SpanSeekConsole:
    """Rich console for rendering search results."""

    def __init__(self, verbose: bool = False, console: Optional[Console] = None):
        self.console = console or Console()
        self.verbose = verbose

    def print_search_header(self, query: str, source: str, config: SearchConfig):
        """Print the query and active configuration."""
        info_text = (
            f"[bold]{query}[/] │ [dim]{source}[/] │ "
            f"min={config.min_lines} max={config.max_lines} topK={config.top_k}"
        )
        if config.smart_expand:
            info_text += " │ [yellow]smart expand[/]"
        self.console.print(Panel(info_text, style="blue", padding=(0, 1)))

    def print_results(self, results: List[ScoredResult], source_lines: List[str], show_code: bool = True):
        """Print a summary table, then each matching snippet."""
        table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
        table.add_column("#", style="dim", justify="right")
        table.add_column("Lines")
        if self.verbose:
            table.add_column("Matched", style="dim")
        table.add_column("Score", justify="right")
        table.add_column("Kind", style="cyan")
        table.add_column("Name", style="green")

        for r in results:
            if r.is_placeholder:
                row = [str(r.rank), "[dim]-[/]", "[dim]0[/]", "", "[dim]no match[/]"]
            else:
                row = [str(r.rank), f"{r.start}-{r.end} ({r.lines})", f"{r.score:,.2f}", r.kind or "", r.name or ""]
            if self.verbose:
                # Range the candidate had before padding and expansion
                row.insert(2, "" if r.is_placeholder else f"{r.original_start}-{r.original_end}")
            table.add_row(*row)
        self.console.print(table)

        if not show_code:
            return

        for r in results:
            if r.is_placeholder:
                continue
            self._print_snippet(r, source_lines)

    def _print_snippet(self, result: ScoredResult, source_lines: List[str]):
        """Print a result's code with line numbers."""
        end = min(result.end, result.start + PREVIEW_LINES - 1)
        code = "\n".join(source_lines[result.start - 1:end])
        syntax = Syntax(
            code,
            "javascript",
            theme="monokai",
            line_numbers=True,
            start_line=result.start,
        )
        title = f"#{result.rank} lines {result.start}-{result.end}"
        if result.name:
            title += f" · {result.name}"
        self.console.print(Panel(syntax, title=title, title_align="left", border_style="dim"))
        if end < result.end:
            self.console.print(f"[dim]  ... {result.end - end} more lines[/dim]")

    def print_config(self, config: Dict[str, Any], path: str):
        """Print stored configuration."""
        self.console.print(f"\n[bold]SpanSeek Configuration[/] ({path})")
        self.console.print("─" * 50)
        if not config:
            self.console.print("[dim]No settings stored, defaults apply.[/dim]")
        for key, value in sorted(config.items()):
            self.console.print(f"{key + ':':<15}{value}")
        self.console.print()

    def print_error(self, error: str, recoverable: bool = True):
        """Print an error message."""
        style = "yellow" if recoverable else "red"
        icon = "⚠" if recoverable else "✗"
        self.console.print(f"[{style}]{icon} {error}[/{style}]")

    def print_success(self, message: str):
        """Print a success message."""
        self.console.print(f"[green]✓ {message}[/green]")

    def print_info(self, message: str):
        """Print an info message."""
        self.console.print(f"[blue]ℹ {message}[/blue]")
