"""Logging configuration for zen-sync.

Operator-facing progress lines go through a rich :class:`Console` bound to
stderr. Diagnostics go through the standard ``logging`` module; this module
routes them to a :class:`RichHandler` on the same stream and, optionally, to a
log file.

Example:
    ```python
    from zensync.core.logging import setup_logging

    setup_logging(debug=True, log_file="~/logs/zen-sync.log")

    import logging
    logger = logging.getLogger(__name__)
    logger.debug("Scratch directory: %s", path)
    ```
"""

import logging
import sys
from pathlib import Path
from types import TracebackType
from typing import Optional, Type

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

# Shared error-stream console for progress output
console = Console(stderr=True)


def setup_logging(
    debug: bool = False,
    log_file: Optional[str] = None,
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
) -> None:
    """Set up logging configuration.

    Console output uses rich formatting. File output, when requested, uses a
    plain format and always records debug messages.

    Args:
        debug: Whether to enable debug logging on the console (default: False).
        log_file: Optional path to a log file. ``~`` is expanded and parent
                 directories are created.
        log_format: Format string for the log file.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    root_logger.handlers.clear()

    console_handler = RichHandler(
        console=console,
        show_path=debug,
        enable_link_path=debug,
        markup=True,
        rich_tracebacks=True,
        tracebacks_show_locals=debug,
    )
    console_handler.setLevel(logging.DEBUG if debug else logging.WARNING)
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(log_format))
        root_logger.addHandler(file_handler)
        # The file always gets debug records
        root_logger.setLevel(logging.DEBUG)

    logger = logging.getLogger(__name__)
    logger.debug("Logging initialized (debug=%s)", debug)
    if log_file:
        logger.debug("Log file: %s", log_file)

    def handle_exception(
        exc_type: Type[BaseException],
        exc_value: BaseException,
        exc_traceback: Optional[TracebackType],
    ) -> None:
        """Log uncaught exceptions instead of printing a bare traceback."""
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return

        logger.critical(
            "Uncaught exception",
            exc_info=(exc_type, exc_value, exc_traceback),
        )

    sys.excepthook = handle_exception


def info(message: str, out: Optional[Console] = None) -> None:
    """Print an informational progress line."""
    (out or console).print(f"[blue]INF[/blue] {escape(message)}", highlight=False)


def success(message: str, out: Optional[Console] = None) -> None:
    """Print a success line."""
    (out or console).print(f"[green]SUC {escape(message)}[/green]", highlight=False)


def warn(message: str, out: Optional[Console] = None) -> None:
    """Print a warning line."""
    (out or console).print(f"[yellow]WRN {escape(message)}[/yellow]", highlight=False)


def error(message: str, out: Optional[Console] = None) -> None:
    """Print an error line."""
    (out or console).print(f"[red]ERR {escape(message)}[/red]", highlight=False)


def header(message: str, out: Optional[Console] = None) -> None:
    """Print a section header."""
    (out or console).print(f"[bold blue]{escape(message)}[/bold blue]", highlight=False)
