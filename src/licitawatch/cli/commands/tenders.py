"""
Tender commands: run an ingestion cycle and browse the result.
"""

from __future__ import annotations

import asyncio
import csv
import sys
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from licitawatch.core.browse import (
    SortOrder,
    filter_tenders,
    is_new,
    newest_timestamp,
    paginate,
    sort_tenders,
)
from licitawatch.core.config.models import SourceType
from licitawatch.core.logging import json_dumps

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="Fetch and browse tenders",
    no_args_is_help=True,
)


class OutputFormat(str, Enum):
    """How records are printed."""
    
    TABLE = "table"
    JSON = "json"
    CSV = "csv"


CONTRACT_TYPE_STYLES = {
    "Servicios": "cyan",
    "Suministros": "magenta",
    "Obras": "yellow",
    "Otros": "dim",
}

CSV_COLUMNS = [
    "id",
    "updated",
    "sourceType",
    "contractType",
    "title",
    "organism",
    "amount",
    "keywordsFound",
    "link",
]


def _load_config(config_path: Optional[Path]):
    """Load app config, exiting with a message on error."""
    from licitawatch.core.config.loader import ConfigError, load_app_config
    
    try:
        return load_app_config(config_path)
    except ConfigError as e:
        err_console.print(f"[red]Error loading configuration:[/red] {e}")
        raise typer.Exit(1)


def _resolve_source(source: Optional[str]) -> SourceType | None:
    """Match a --source value against feed labels (case-insensitive, prefix ok)."""
    if not source:
        return None
    
    wanted = source.lower()
    for source_type in SourceType:
        label = source_type.value.lower()
        if label == wanted or label.startswith(wanted) or source_type.name.lower() == wanted:
            return source_type
    
    labels = ", ".join(s.value for s in SourceType)
    err_console.print(f"[red]Unknown source:[/red] {source}")
    err_console.print(f"[dim]Available: {labels}[/dim]")
    raise typer.Exit(1)


def _truncate(text: str | None, width: int) -> str:
    if not text:
        return "[dim]-[/dim]"
    return (text[: width - 3] + "...") if len(text) > width else text


def _print_table(records, page, watermark: Optional[str]) -> None:
    """Render a page of records as a rich table."""
    table = Table(
        title=f"Licitaciones (page {page.page}/{page.total_pages}, {page.total} results)",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("", no_wrap=True)
    table.add_column("Updated", style="dim", no_wrap=True)
    table.add_column("Title", max_width=50)
    table.add_column("Organism", max_width=30)
    table.add_column("Type", justify="center")
    table.add_column("Amount", justify="right")
    table.add_column("Keywords", max_width=25)
    
    for record in records:
        marker = "[green bold]NEW[/green bold]" if watermark and is_new(record, watermark) else ""
        style = CONTRACT_TYPE_STYLES.get(record.contract_type.value, "default")
        
        table.add_row(
            marker,
            record.updated[:16].replace("T", " "),
            _truncate(record.title, 50),
            _truncate(record.organism, 30),
            f"[{style}]{record.contract_type.value}[/{style}]",
            record.amount or "[dim]-[/dim]",
            ", ".join(record.keywords_found) or "[dim]-[/dim]",
        )
    
    console.print(table)


def _print_csv(records) -> None:
    writer = csv.DictWriter(sys.stdout, fieldnames=CSV_COLUMNS, extrasaction="ignore")
    writer.writeheader()
    for record in records:
        row = record.to_dict()
        row["keywordsFound"] = "; ".join(row["keywordsFound"])
        writer.writerow(row)


def _show(
    records,
    *,
    source: Optional[str],
    search: Optional[str],
    relevant: bool,
    sort: SortOrder,
    page: int,
    per_page: int,
    since: Optional[str],
    output: OutputFormat,
) -> None:
    """Filter, sort, paginate and print records."""
    selected = filter_tenders(
        records,
        search=search,
        source_type=_resolve_source(source),
        only_relevant=relevant,
    )
    selected = sort_tenders(selected, sort)
    
    if since:
        selected = [record for record in selected if is_new(record, since)]
    
    if output == OutputFormat.JSON:
        sys.stdout.write(json_dumps([record.to_dict() for record in selected]) + "\n")
        return
    
    if output == OutputFormat.CSV:
        _print_csv(selected)
        return
    
    if not selected:
        console.print("[dim]No tenders found matching criteria.[/dim]")
        return
    
    current = paginate(selected, page=page, per_page=per_page)
    _print_table(current.items, current, since)
    
    newest = newest_timestamp(sort_tenders(records))
    if newest:
        console.print(f"[dim]Newest entry: {newest} (use --since to see only later ones)[/dim]")


@app.command("fetch")
def fetch(
    source: Optional[str] = typer.Option(
        None,
        "--source",
        "-s",
        help="Only show one feed (e.g. 'Contratos Menores' or 'contratos')",
    ),
    search: Optional[str] = typer.Option(
        None,
        "--search",
        "-q",
        help="Search title, summary and matched keywords",
    ),
    relevant: bool = typer.Option(
        False,
        "--relevant",
        "-r",
        help="Only show tenders matching at least one keyword",
    ),
    sort: SortOrder = typer.Option(
        SortOrder.NEWEST,
        "--sort",
        help="Sort order",
    ),
    page: int = typer.Option(1, "--page", "-p", help="Page to show", min=1),
    per_page: int = typer.Option(20, "--per-page", "-n", help="Results per page", min=1),
    since: Optional[str] = typer.Option(
        None,
        "--since",
        help="Watermark: only show tenders updated after this timestamp",
    ),
    output: OutputFormat = typer.Option(
        OutputFormat.TABLE,
        "--format",
        "-f",
        help="Output format (table, json, csv)",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to app.yaml",
    ),
) -> None:
    """Fetch all feeds and list the tenders.
    
    Examples:
        licitawatch tenders fetch --relevant
        licitawatch tenders fetch --source menores --sort highest_budget
        licitawatch tenders fetch --since 2024-05-01T00:00:00Z --format json
    """
    from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
    from licitawatch.core.orchestrator import FeedAggregator
    
    config = _load_config(config_path)
    aggregator = FeedAggregator(config)
    
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=err_console,
        transient=True,
    ) as progress:
        progress.add_task(
            f"[cyan]Fetching {len(config.enabled_feeds)} feeds...[/cyan]",
            total=None,
        )
        records = asyncio.run(aggregator.ingest_all())
    
    stats = aggregator.last_stats
    if stats and stats.failed_feeds:
        failed = ", ".join(s.value for s in stats.failed_feeds)
        err_console.print(f"[yellow]Unavailable feeds:[/yellow] {failed}")
    
    _show(
        records,
        source=source,
        search=search,
        relevant=relevant,
        sort=sort,
        page=page,
        per_page=per_page,
        since=since,
        output=output,
    )


@app.command("parse")
def parse(
    path: Path = typer.Argument(..., help="Atom file to parse", exists=True, dir_okay=False),
    source: str = typer.Option(
        SourceType.PERFILES_CONTRATANTE.value,
        "--source",
        "-s",
        help="Feed label to attach to the records",
    ),
    relevant: bool = typer.Option(False, "--relevant", "-r", help="Only tenders with keywords"),
    search: Optional[str] = typer.Option(None, "--search", "-q", help="Search term"),
    output: OutputFormat = typer.Option(OutputFormat.TABLE, "--format", "-f", help="Output format"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to app.yaml"),
) -> None:
    """Parse a saved Atom document without touching the network."""
    from licitawatch.core.feeds import parse_feed
    from licitawatch.core.orchestrator import sort_newest_first
    
    config = _load_config(config_path)
    source_type = _resolve_source(source) or SourceType.PERFILES_CONTRATANTE
    
    document = path.read_text(encoding="utf-8", errors="replace")
    records = sort_newest_first(parse_feed(document, source_type, config.flat_keywords))
    
    if not records and output == OutputFormat.TABLE:
        err_console.print(f"[yellow]No entries found in {path}[/yellow]")
        raise typer.Exit(1)
    
    _show(
        records,
        source=None,
        search=search,
        relevant=relevant,
        sort=SortOrder.NEWEST,
        page=1,
        per_page=max(1, len(records)),
        since=None,
        output=output,
    )
