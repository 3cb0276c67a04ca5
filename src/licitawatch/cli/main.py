"""
LicitaWatch CLI - Main entry point.

A terminal-first reader for the tender feeds of the Plataforma de
Contratación del Sector Público.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.traceback import install as install_rich_traceback

from licitawatch import __app_name__, __version__

# Load environment variables from .env (if present)
load_dotenv()

# Install rich traceback for better error display
install_rich_traceback(show_locals=False, width=120)

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name=__app_name__,
    help="Terminal-first aggregator for Spanish public tender feeds",
    rich_markup_mode="rich",
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold cyan]{__app_name__}[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Override the configured log level",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Path to app.yaml used for logging settings",
    ),
) -> None:
    """LicitaWatch - Spanish public tender feed aggregator."""
    from licitawatch.core.config.loader import ConfigError, load_app_config
    from licitawatch.core.config.models import LoggingConfig
    from licitawatch.core.logging import setup_logging
    
    # Commands report config errors themselves; logging falls back to defaults
    try:
        logging_config = load_app_config(config_path).logging
    except ConfigError:
        logging_config = LoggingConfig()
    
    setup_logging(
        level=log_level or logging_config.level,
        log_file=logging_config.file,
        json_format=logging_config.json_format,
        rich_console=logging_config.rich_console,
    )


# =============================================================================
# Import and register subcommand modules
# =============================================================================

from .commands import config, tenders  # noqa: E402

app.add_typer(tenders.app, name="tenders", help="Fetch and browse tenders")
app.add_typer(config.app, name="config", help="Inspect and validate configuration")


# =============================================================================
# Init Command
# =============================================================================


DEFAULT_APP_CONFIG = """\
# LicitaWatch Configuration
# Values may reference environment variables: ${VAR} or ${VAR:-default}

feeds:
  - source_type: Perfiles Contratante
    url: https://contrataciondelsectorpublico.gob.es/sindicacion/sindicacion_643/licitacionesPerfilesContratanteCompleto3.atom
  - source_type: Plataformas Agregadas
    url: https://contrataciondelsectorpublico.gob.es/sindicacion/sindicacion_1044/PlataformasAgregadasSinMenores.atom
  - source_type: Contratos Menores
    url: https://contrataciondelsectorpublico.gob.es/sindicacion/sindicacion_1143/contratosMenoresPerfilesContratantes.atom

# Relays are tried in order; {url} receives the encoded feed URL
relays:
  - name: corsproxy
    url_template: https://corsproxy.io/?{url}
  - name: allorigins
    url_template: https://api.allorigins.win/raw?url={url}
  - name: codetabs
    url_template: https://api.codetabs.com/v1/proxy?quest={url}

fetch:
  timeout_seconds: ${LICITAWATCH_TIMEOUT:-10}
  max_attempts: 1
  try_direct_first: false

keywords:
  - name: Formación
    keywords: [formación, curso, capacitación, docencia]
  - name: Tecnología
    keywords: [software, desarrollo, plataforma digital, ciberseguridad]
  - name: Comunicación
    keywords: [comunicación, divulgación, campaña, eventos]

logging:
  level: INFO
  file: logs/licitawatch.log
  json_format: true
  rich_console: true
"""


@app.command()
def init(
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing configuration",
    ),
) -> None:
    """Write a default configs/app.yaml."""
    app_config_path = Path("configs/app.yaml")
    
    if app_config_path.exists() and not force:
        err_console.print(f"[yellow]{app_config_path} already exists[/yellow] (use --force to overwrite)")
        raise typer.Exit(1)
    
    app_config_path.parent.mkdir(parents=True, exist_ok=True)
    app_config_path.write_text(DEFAULT_APP_CONFIG, encoding="utf-8")
    
    console.print()
    console.print(Panel.fit(
        "[bold green]OK - LicitaWatch initialized[/bold green]\n\n"
        "Created:\n"
        "  - [cyan]configs/app.yaml[/cyan] - Feeds, relays, keywords and logging\n\n"
        "Next steps:\n"
        "  1. Edit your keywords: [yellow]licitawatch config keywords[/yellow]\n"
        "  2. Fetch tenders: [yellow]licitawatch tenders fetch --relevant[/yellow]",
        title="[bold]Initialization Complete[/bold]",
        border_style="green",
    ))


# =============================================================================
# Entry Point
# =============================================================================


def run() -> None:
    """Run the CLI application."""
    app()


if __name__ == "__main__":
    run()
