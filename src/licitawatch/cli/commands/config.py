"""
Configuration commands: inspect feeds, relays and keywords.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="Inspect and validate configuration",
    no_args_is_help=True,
)


def _load(config_path: Optional[Path]):
    from licitawatch.core.config.loader import ConfigError, load_app_config
    
    try:
        return load_app_config(config_path)
    except ConfigError as e:
        err_console.print(f"[red]Error loading configuration:[/red] {e}")
        raise typer.Exit(1)


@app.command("feeds")
def show_feeds(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to app.yaml"),
) -> None:
    """List configured feeds and the relay chain."""
    from licitawatch.core.fetch.relays import wrap_url
    
    config = _load(config_path)
    
    table = Table(title="Feeds", show_header=True, header_style="bold magenta")
    table.add_column("Source", style="cyan")
    table.add_column("Enabled", justify="center")
    table.add_column("URL")
    
    for feed in config.feeds:
        enabled = "[green]yes[/green]" if feed.enabled else "[red]no[/red]"
        table.add_row(feed.source_type.value, enabled, feed.url)
    
    console.print(table)
    console.print()
    
    relays = Table(title="Relays (tried in order)", show_header=True, header_style="bold magenta")
    relays.add_column("#", justify="right")
    relays.add_column("Name", style="cyan")
    relays.add_column("Example")
    
    example = config.feeds[0].url if config.feeds else "https://example.org/feed.atom"
    
    if config.fetch.try_direct_first:
        relays.add_row("0", "direct", example)
    for index, relay in enumerate(config.relays, start=1):
        relays.add_row(str(index), relay.name, wrap_url(relay, example))
    
    console.print(relays)
    console.print(
        f"[dim]Timeout per attempt: {config.fetch.timeout_seconds:g}s, "
        f"attempts per relay: {config.fetch.max_attempts}[/dim]"
    )


@app.command("keywords")
def show_keywords(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to app.yaml"),
) -> None:
    """Show keyword categories and the flattened keyword list."""
    config = _load(config_path)
    
    table = Table(title="Keyword categories", show_header=True, header_style="bold magenta")
    table.add_column("Category", style="cyan")
    table.add_column("Keywords")
    
    for category in config.keywords:
        table.add_row(category.name, ", ".join(category.keywords) or "[dim]-[/dim]")
    
    console.print(table)
    
    flat = config.flat_keywords
    console.print(f"\n[bold]{len(flat)}[/bold] distinct keywords used for tagging")


@app.command("validate")
def validate(
    path: Path = typer.Argument(Path("configs/app.yaml"), help="Configuration file to check"),
) -> None:
    """Validate a configuration file."""
    from licitawatch.core.config.loader import validate_app_config_file
    
    errors = validate_app_config_file(path)
    
    if errors:
        err_console.print(f"[red]{path} has {len(errors)} error(s):[/red]")
        for error in errors:
            err_console.print(f"  - {error}")
        raise typer.Exit(1)
    
    console.print(f"[green]OK[/green] - {path} is valid")
