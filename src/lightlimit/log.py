"""Console and structured logging for lightlimit.

Console messages for CLI commands go through Rich. Structured events go
through structlog into a rotating JSON Lines file, so nothing is written to
the terminal while the monitor owns it.
"""

from __future__ import annotations

import logging
import logging.handlers
from typing import TYPE_CHECKING

import structlog
from rich.console import Console

if TYPE_CHECKING:
    from lightlimit.config import Config

_console = Console(highlight=False)
_err_console = Console(highlight=False, stderr=True)

_LEVEL_STYLES = {
    "info": "[bright_blue]\\[info][/]",
    "warn": "[yellow]\\[warn][/]",
    "error": "[bold red]\\[err][/] ",
}


def log(level: str, msg: str) -> None:
    """Print a console message with a level tag.

    Warnings and errors go to stderr.
    """
    lvl = _LEVEL_STYLES.get(level, f"[{level}]")
    console = _console if level == "info" else _err_console
    console.print(f"{lvl} {msg}")


def info(msg: str) -> None:
    """Log an info message."""
    log("info", msg)


def warn(msg: str) -> None:
    """Log a warning message."""
    log("warn", msg)


def error(msg: str) -> None:
    """Log an error message."""
    log("error", msg)


def configure(config: Config) -> None:
    """Route structlog events to a rotating JSON file.

    Args:
        config: Application config with log paths and rotation limits
    """
    config.state_dir.mkdir(parents=True, exist_ok=True)

    file_handler = logging.handlers.RotatingFileHandler(
        config.log_path,
        maxBytes=config.system.log_max_bytes,
        backupCount=config.system.log_backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=[
                structlog.processors.TimeStamper(fmt="iso", utc=False, key="ts"),
                structlog.processors.add_log_level,
                structlog.processors.format_exc_info,
            ],
        )
    )

    stdlib_root = logging.getLogger()
    stdlib_root.setLevel(logging.INFO)
    stdlib_root.handlers.clear()
    stdlib_root.addHandler(file_handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso", utc=False, key="ts"),
            structlog.processors.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger for structured file output."""
    return structlog.get_logger(name)
