"""
SpanSeek CLI - Find the lines of a source file that answer a question.

Usage:
    spanseek search server.js "where are sessions created"
    spanseek search app.ts "retry logic" --top-k 3 --smart-expand
    spanseek search app.js "cache expiry" --json --output picked.json
    spanseek config --set top_k=3 --project
"""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

import click
from pydantic import ValidationError
from rich.logging import RichHandler

from spanseek import __version__
from spanseek.context.engine import get_engine
from spanseek.core.config import (
    get_config_path,
    get_project_config_path,
    get_search_config,
    load_config,
    save_config,
)
from spanseek.models import SearchConfig, SearchReport
from spanseek.ui import SpanSeekConsole


# Global console instance
console: Optional[SpanSeekConsole] = None


def get_console(verbose: bool = False) -> SpanSeekConsole:
    """Get or create console instance."""
    global console
    if console is None:
        console = SpanSeekConsole(verbose=verbose)
    return console


def setup_logging(verbose: bool):
    """Route engine logs through rich; debug output only with --verbose."""
    logger = logging.getLogger("spanseek")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = RichHandler(show_time=False, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


@click.group()
@click.version_option(version=__version__, prog_name="SpanSeek")
def cli():
    """
    SpanSeek - relevant line ranges for questions about code.

    Quick start:
        spanseek search server.js "where are sessions created"
    """


@cli.command()
@click.argument("file", type=click.Path(dir_okay=False))
@click.argument("query")
@click.option("--min", "min_lines", type=int, help="Minimum lines per result")
@click.option("--max", "max_lines", type=int, help="Maximum lines per result")
@click.option("--top-k", "-k", type=int, help="Number of results")
@click.option("--smart-expand/--no-smart-expand", default=None, help="Expand results to enclosing function/class")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write JSON report to file")
@click.option("--no-code", is_flag=True, help="Only show the summary table")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def search(
    file: str,
    query: str,
    min_lines: Optional[int],
    max_lines: Optional[int],
    top_k: Optional[int],
    smart_expand: Optional[bool],
    as_json: bool,
    output: Optional[str],
    no_code: bool,
    verbose: bool,
):
    """
    Search FILE for the code that answers QUERY.

    Examples:
        spanseek search server.js "where is retry logic"
        spanseek search server.js "cache implementation" --min 20 --max 80 -k 3
    """
    ui = get_console(verbose)
    setup_logging(verbose)

    path = Path(file)
    if not path.is_file():
        ui.print_error(f"File not found: {file}", recoverable=False)
        sys.exit(1)

    try:
        source = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        ui.print_error(f"Could not read {file}: {e}", recoverable=False)
        sys.exit(1)

    try:
        config = get_search_config(
            min_lines=min_lines,
            max_lines=max_lines,
            top_k=top_k,
            smart_expand=smart_expand,
        )
    except (ValidationError, ValueError) as e:
        ui.print_error(f"Invalid configuration: {e}", recoverable=False)
        sys.exit(1)

    results = get_engine().search_code(source, query, config)
    report = SearchReport.from_results(query, config, results, source=file)

    if output:
        Path(output).write_text(report.model_dump_json(indent=2), encoding="utf-8")
        if not as_json:
            ui.print_success(f"Saved to: {output}")

    if as_json:
        click.echo(report.model_dump_json(indent=2))
        return

    ui.print_search_header(query, file, config)
    ui.print_results(results, source.split("\n"), show_code=not no_code)


@cli.command()
@click.option("--show", is_flag=True, help="Show current configuration")
@click.option("--set", "settings", multiple=True, metavar="KEY=VALUE", help="Store a default search option")
@click.option("--project", is_flag=True, help="Write to .spanseek/project.json instead of the global config")
def config(show: bool, settings: Tuple[str, ...], project: bool):
    """
    Configure default search options.

    Store defaults:
        spanseek config --set min_lines=20 --set top_k=3

    View current config:
        spanseek config --show
    """
    ui = get_console()

    if settings:
        path = get_project_config_path() if project else get_config_path()
        stored = {}
        if path is not None and path.exists():
            stored = _read_json(path)

        for item in settings:
            key, sep, value = item.partition("=")
            key = key.strip()
            if not sep or key not in SearchConfig.model_fields:
                ui.print_error(
                    f"Unknown setting '{item}'. Use one of: {', '.join(SearchConfig.model_fields)}",
                    recoverable=False,
                )
                sys.exit(1)
            stored[key] = _parse_value(value.strip())

        try:
            SearchConfig(**stored)
        except ValidationError as e:
            ui.print_error(f"Invalid configuration: {e}", recoverable=False)
            sys.exit(1)

        save_config(stored, project_level=project)
        ui.print_success("Configuration saved.")

    if show:
        ui.print_config(load_config(), str(get_config_path()))
        return

    if not settings:
        ui.print_info("No configuration changes made. Use --help to see options.")


def _read_json(path: Path) -> dict:
    with open(path) as f:
        return json.load(f)


def _parse_value(value: str):
    """Interpret a --set value as bool, int or string."""
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    try:
        return int(value)
    except ValueError:
        return value


def main():
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
