"""Typer CLI entry point for cosme-feed."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated, Any

import structlog
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from cosme_feed import __version__
from cosme_feed.config import Settings, format_validation_error
from cosme_feed.exceptions import ConfigError, OutputError
from cosme_feed.logging import configure_logging, generate_run_id
from cosme_feed.output import write_items
from cosme_feed.pipeline import build_items, feed_endpoints
from cosme_feed.sources import load_sources

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="cosme-feed",
    help="Build the brand campaign feed from RSS, Atom, and YouTube sources.",
    no_args_is_help=True,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_settings(
    config_path: Path | None = None,
    **overrides: Any,
) -> Settings:
    """Load settings with error handling and user-friendly messages."""
    from pydantic import ValidationError

    try:
        return Settings.load(config_path=config_path, **overrides)
    except ValidationError as exc:
        _fatal(format_validation_error(exc), title="Configuration Error")
        raise typer.Exit(code=1) from exc


def _fatal(message: str, title: str = "Fatal") -> None:
    err_console.print(Panel(message, title=title, border_style="red"))


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]cosme-feed[/bold] {__version__}")
        raise typer.Exit


@app.callback()
def common(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """cosme-feed global options."""


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def build(
    brands: Annotated[
        Path | None,
        typer.Option("--brands", "-b", help="Brand sources document (JSON/YAML)."),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Where to write the campaigns JSON."),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to config YAML file."),
    ] = None,
    log_format: Annotated[
        str | None,
        typer.Option("--log-format", help="Log output format: console or json."),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Run the pipeline without writing output."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging."),
    ] = False,
) -> None:
    """Fetch every brand feed and write the ordered campaign items."""
    overrides: dict[str, Any] = {}
    paths: dict[str, Path] = {}
    if brands is not None:
        paths["brands"] = brands
    if output is not None:
        paths["output"] = output
    if paths:
        overrides["paths"] = paths
    logging_overrides: dict[str, str] = {}
    if verbose:
        logging_overrides["level"] = "DEBUG"
    if log_format is not None:
        logging_overrides["format"] = log_format
    if logging_overrides:
        overrides["logging"] = logging_overrides

    settings = _load_settings(config, **overrides)
    configure_logging(
        level=settings.logging.level,
        fmt=settings.logging.format,
        log_file=settings.logging.file,
        run_id=generate_run_id(),
    )

    try:
        sources = load_sources(settings.paths.brands)
        items, result = asyncio.run(
            build_items(
                sources,
                fetch_settings=settings.fetch,
                window=settings.window,
            )
        )
        if not dry_run:
            write_items(settings.paths.output, items)
    except (ConfigError, OutputError) as exc:
        _fatal(str(exc), title=type(exc).__name__)
        raise typer.Exit(code=1) from exc
    except Exception as exc:
        logger.exception("build_failed")
        _fatal(f"{type(exc).__name__}: {exc}")
        raise typer.Exit(code=1) from exc

    feeds = f"{result.feeds_ok}/{result.feeds_total}"
    logger.info("build_finished", items=len(items), feeds=feeds, dry_run=dry_run)
    target = "(dry run)" if dry_run else str(settings.paths.output)
    console.print(
        f"[green]Build finished:[/green] {len(items)} items | feeds: {feeds} "
        f"-> {target}"
    )


@app.command()
def endpoints(
    brands: Annotated[
        Path | None,
        typer.Option("--brands", "-b", help="Brand sources document (JSON/YAML)."),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to config YAML file."),
    ] = None,
) -> None:
    """List the feed endpoints each brand resolves to, without fetching."""
    overrides: dict[str, Any] = {}
    if brands is not None:
        overrides["paths"] = {"brands": brands}
    settings = _load_settings(config, **overrides)

    try:
        sources = load_sources(settings.paths.brands)
    except ConfigError as exc:
        _fatal(str(exc), title="ConfigError")
        raise typer.Exit(code=1) from exc

    table = Table(title="Feed endpoints")
    table.add_column("Brand", style="cyan")
    table.add_column("#", justify="right")
    table.add_column("Endpoint", overflow="fold")
    for source in sources:
        urls = feed_endpoints(source)
        if not urls:
            table.add_row(source.brand, "-", "[dim](none)[/dim]")
        for index, url in enumerate(urls, start=1):
            table.add_row(source.brand, str(index), url)
    console.print(table)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
