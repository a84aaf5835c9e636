"""
Logging configuration for tune-resolver.

This module sets up the logging system with multiple outputs:
    - Console: colored, tqdm-compatible output
    - log_full_<ts>.log: Complete log of all events (DEBUG and above)
    - log_errors_<ts>.log: Only ERROR and CRITICAL level messages
    - resolution_failures_<ts>.log: Queries that could not be resolved
      (e.g. Spotify tracks with no YouTube match)

File logs are only written when a log directory is configured; without
one, the console handler is the only output.

Usage:
    from tune_resolver.core.logger import setup_logging, get_logger

    setup_logging(config.log_directory)  # Call once at startup
    logger = get_logger(__name__)  # Get logger for each module

    logger.info("Resolving query")
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

from tqdm import tqdm


# Log file name prefixes (created in the log directory)
LOG_FULL_PREFIX = "log_full"
LOG_ERRORS_PREFIX = "log_errors"
RESOLUTION_FAILURES_PREFIX = "resolution_failures"

# Log format for file output (detailed with timestamp)
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers of chatty third-party libraries, capped at WARNING on the console
NOISY_LOGGERS = ("aiohttp", "urllib3", "spotipy", "asyncio")


class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    BOLD = "\033[1m"


class ColoredConsoleFormatter(logging.Formatter):
    """
    Formatter that prefixes the colored level name.

    Colors:
        - DEBUG: Blue
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Bold Red
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.BLUE,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        colored_levelname = f"{color}{record.levelname}{Colors.RESET}"
        message = f"{colored_levelname}: {record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


class TqdmLoggingHandler(logging.Handler):
    """
    Logging handler that writes through tqdm.write().

    Keeps log lines from corrupting an active progress bar (the CLI shows
    one while a Spotify album fans out into YouTube searches).

    Attributes:
        stream: The output stream (defaults to sys.stderr).
    """

    def __init__(self, stream: TextIO = sys.stderr) -> None:
        super().__init__()
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            tqdm.write(msg, file=self.stream)
        except Exception:
            self.handleError(record)


class ResolutionFailureHandler(logging.Handler):
    """
    Handler that captures unresolved queries for the failures report.

    Only records carrying the 'resolution_failed_query' extra field are
    written, in a simple human-readable format:

        "Song Title" "Artist Name"
        spotify:album:xxxxx - No video found.

    Extra fields looked up on the record:
        - 'resolution_failed_query': The query that could not be resolved
        - 'resolution_failed_source': Originating URL or playlist (optional)
        - 'resolution_failed_reason': Why the lookup failed

    Attributes:
        report_path: Path to the resolution_failures log.
        report_file: Open file handle, set by open().
    """

    def __init__(self, report_path: Path) -> None:
        super().__init__()
        self.report_path = report_path
        self.report_file: TextIO | None = None

    def open(self) -> None:
        """Open the report file for writing (overwrites existing content)."""
        self.report_file = open(self.report_path, "w", encoding="utf-8")

    def emit(self, record: logging.LogRecord) -> None:
        if not hasattr(record, "resolution_failed_query"):
            return

        if self.report_file is None:
            return

        try:
            query = getattr(record, "resolution_failed_query", "")
            source = getattr(record, "resolution_failed_source", None) or "-"
            reason = getattr(record, "resolution_failed_reason", "Unknown reason")

            self.report_file.write(f"{query}\n")
            self.report_file.write(f"{source} - {reason}\n\n")
            self.report_file.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        """Close the report file handle. Safe to call multiple times."""
        if self.report_file is not None:
            try:
                self.report_file.close()
            except OSError:
                pass
            self.report_file = None
        super().close()


class ErrorOnlyFilter(logging.Filter):
    """Filter that only allows ERROR and CRITICAL level records."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


def setup_logging(log_dir: Path | None = None, verbose: bool = False) -> None:
    """
    Configure the logging system for the application.

    This function should be called ONCE at application startup, after
    the configuration is loaded but before any clients are created.

    Args:
        log_dir: Directory where log files will be created, or None to
                 log to the console only.
        verbose: If True, the console shows DEBUG records as well.

    Behavior:
        1. Configure root logger level to DEBUG and drop existing handlers
        2. Add the colored tqdm-compatible console handler (INFO, or DEBUG
           when verbose)
        3. Cap noisy third-party loggers at WARNING
        4. If log_dir is given, create it and add the full log, the
           error-only log and the resolution failures report, each named
           with this run's timestamp
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = TqdmLoggingHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(ColoredConsoleFormatter())
    root_logger.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if log_dir is None:
        return

    log_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")

    # Full log file handler
    full_handler = logging.FileHandler(
        log_dir / f"{LOG_FULL_PREFIX}_{timestamp}.log", mode="w", encoding="utf-8"
    )
    full_handler.setLevel(logging.DEBUG)
    full_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    root_logger.addHandler(full_handler)

    # Error-only log file handler
    error_handler = logging.FileHandler(
        log_dir / f"{LOG_ERRORS_PREFIX}_{timestamp}.log", mode="w", encoding="utf-8"
    )
    error_handler.setLevel(logging.DEBUG)  # Filter handles the level restriction
    error_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    error_handler.addFilter(ErrorOnlyFilter())
    root_logger.addHandler(error_handler)

    failures_handler = ResolutionFailureHandler(
        log_dir / f"{RESOLUTION_FAILURES_PREFIX}_{timestamp}.log"
    )
    failures_handler.open()
    root_logger.addHandler(failures_handler)


def shutdown_logging() -> None:
    """Flush and close every handler attached to the root logger."""
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        handler.flush()
        handler.close()
        root_logger.removeHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The logger name, typically __name__ of the calling module.
              This creates a hierarchy like 'tune_resolver.youtube.client'.

    Returns:
        logging.Logger: A logger instance configured by setup_logging().
    """
    return logging.getLogger(name)


def log_resolution_failure(
    logger: logging.Logger,
    query: str,
    reason: str,
    source: str | None = None
) -> None:
    """
    Log a query that could not be resolved.

    Logs a WARNING and attaches the extra fields ResolutionFailureHandler
    uses to write the failures report.

    Args:
        logger: The logger to use for the message.
        query: The query that failed, e.g. '"Song" "Artist"'.
        reason: Description of why the lookup failed.
        source: The originating URL (Spotify album, playlist...), if any.

    Example:
        log_resolution_failure(
            logger,
            query='"Song Title" "Artist Name"',
            reason="No video found.",
            source="https://open.spotify.com/album/xxx"
        )
    """
    logger.warning(
        f"Could not resolve {query}: {reason}",
        extra={
            "resolution_failed_query": query,
            "resolution_failed_reason": reason,
            "resolution_failed_source": source,
        }
    )


def format_resolved_message(count: int, not_found: int, total: int) -> str:
    """
    Format a summary of a resolution with colors.

    Args:
        count: Number of descriptors produced.
        not_found: Number of requested items that were not found.
        total: Number of items requested.

    Returns:
        Colored message string, e.g. "Resolved 12 tracks (12 of 15 found)".
    """
    message = f"{Colors.GREEN}Resolved{Colors.RESET} {count} track{'s' if count != 1 else ''}"
    if not_found:
        message += (
            f" ({Colors.YELLOW}{total - not_found} of {total}{Colors.RESET} found)"
        )
    return message
