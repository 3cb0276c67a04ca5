"""
Logging infrastructure for LicitaWatch.

Provides:
- Structured JSON logging for file output
- Rich console output for terminal
- Contextual logging with feed/relay context
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

import orjson

if TYPE_CHECKING:
    from rich.console import Console


CONTEXT_FIELDS = ("feed", "relay", "url", "records")


def json_dumps(obj: Any) -> str:
    return orjson.dumps(obj, default=str).decode("utf-8")


# =============================================================================
# JSON Formatter for File Logging
# =============================================================================


class JSONFormatter(logging.Formatter):
    """Format log records as JSON lines."""
    
    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        
        for key in CONTEXT_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)
        
        return json_dumps(log_data)


# =============================================================================
# Rich Console Handler
# =============================================================================


class RichConsoleHandler(logging.Handler):
    """Handler that outputs to Rich console with formatting."""
    
    def __init__(self, console: "Console | None" = None, level: int = logging.INFO):
        super().__init__(level)
        if console is None:
            from rich.console import Console
            console = Console(stderr=True)
        self.console = console
    
    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            
            style = {
                logging.DEBUG: "dim",
                logging.INFO: "default",
                logging.WARNING: "yellow",
                logging.ERROR: "red",
                logging.CRITICAL: "bold red",
            }.get(record.levelno, "default")
            
            prefix = ""
            if hasattr(record, "feed"):
                prefix = f"[cyan]\\[{record.feed}][/cyan] "
            if hasattr(record, "relay"):
                prefix += f"[magenta]\\[{record.relay}][/magenta] "
            
            self.console.print(f"{prefix}[{style}]{message}[/{style}]", markup=True, highlight=False)
            
            if record.exc_info:
                self.console.print_exception()
                
        except Exception:
            self.handleError(record)


# =============================================================================
# Logger Configuration
# =============================================================================


def setup_logging(
    level: str = "INFO",
    log_file: Path | str | None = None,
    json_format: bool = True,
    rich_console: bool = True,
) -> logging.Logger:
    """Set up logging for LicitaWatch.
    
    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Path to log file (optional)
        json_format: Use JSON format for file logs
        rich_console: Use Rich for console output
        
    Returns:
        Root logger for licitawatch
    """
    logger = logging.getLogger("licitawatch")
    logger.setLevel(getattr(logging, level.upper()))
    
    logger.handlers.clear()
    
    if rich_console:
        console_handler: logging.Handler = RichConsoleHandler()
        console_handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
    console_handler.setLevel(getattr(logging, level.upper()))
    logger.addHandler(console_handler)
    
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)  # Capture all levels to file
        
        if json_format:
            file_handler.setFormatter(JSONFormatter())
        else:
            file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )
        
        logger.addHandler(file_handler)
    
    return logger


# =============================================================================
# Contextual Logging Adapter
# =============================================================================


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter that adds feed/relay context to log records."""
    
    def __init__(
        self,
        logger: logging.Logger,
        feed: str | None = None,
        relay: str | None = None,
    ):
        super().__init__(logger, {})
        self.feed = feed
        self.relay = relay
    
    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = kwargs.get("extra", {})
        
        if self.feed:
            extra["feed"] = self.feed
        if self.relay:
            extra["relay"] = self.relay
        
        kwargs["extra"] = extra
        return msg, kwargs
    
    def with_context(
        self,
        feed: str | None = None,
        relay: str | None = None,
    ) -> "ContextualLogger":
        """Create a new logger with additional context."""
        return ContextualLogger(
            self.logger,
            feed=feed or self.feed,
            relay=relay or self.relay,
        )
