"""Logging configuration for Cultural Footprint.

Provides centralized logging setup with Rich console formatting, an
optional log file under the configured log directory, and redaction of
anything that looks like a Gemini API key on every handler.

Example:
    >>> from footprint.utils.logging import configure_logging, get_logger, LogContext
    >>> configure_logging(get_config(), verbose=True)
    >>> logger = get_logger(__name__)
    >>> logger.info("Loading entries")
    >>> with LogContext("Analyzing entry"):
    ...     # do work
    ... # Logs: "Analyzing entry completed in 1.8s"
"""

from __future__ import annotations

import logging
import re
import time
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

from footprint.config import AppConfig


# =============================================================================
# Constants
# =============================================================================

# Package logger name
PACKAGE_NAME = "footprint"

# Written under PathsConfig.log_dir in verbose/debug mode
LOG_FILE_NAME = "footprint.log"

# Loggers of the Gemini SDK, its HTTP stack and Pillow
NOISY_LOGGERS = [
    "google",
    "google.auth",
    "google.genai",
    "urllib3",
    "httpx",
    "httpcore",
    "PIL",
    "asyncio",
]

# Log format for file handler
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Console for Rich handler
_console = Console(stderr=True)


# =============================================================================
# Secure Logging Filter
# =============================================================================


class RedactingFilter(logging.Filter):
    """Logging filter that redacts anything resembling a credential.

    Example:
        >>> handler.addFilter(RedactingFilter())
        >>> logger.info("Using api_key=AIzaSy123456789...")
        # Output: "Using api_key=[REDACTED]"
    """

    KEY_VALUE_PATTERNS = [
        re.compile(r'(api_key\s*[=:]\s*)["\']?([a-zA-Z0-9_\-]{20,})["\']?', re.IGNORECASE),
        re.compile(r'(key\s*[=:]\s*)["\']?([a-zA-Z0-9_\-]{20,})["\']?', re.IGNORECASE),
        re.compile(r'(token\s*[=:]\s*)["\']?([a-zA-Z0-9_\-]{20,})["\']?', re.IGNORECASE),
        re.compile(r"(bearer\s+)([a-zA-Z0-9_\-]{20,})", re.IGNORECASE),
    ]
    # Gemini keys start with AIza
    STANDALONE_PATTERNS = [
        re.compile(r"\bAIza[a-zA-Z0-9_\-]{30,}\b"),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self._redact(record.msg)
        if record.args:
            record.args = tuple(
                self._redact(arg) if isinstance(arg, str) else arg for arg in record.args
            )
        return True

    def _redact(self, text: str) -> str:
        for pattern in self.KEY_VALUE_PATTERNS:
            text = pattern.sub(r"\1[REDACTED]", text)
        for pattern in self.STANDALONE_PATTERNS:
            text = pattern.sub("[REDACTED]", text)
        return text


# =============================================================================
# Setup Functions
# =============================================================================


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Configure logging for the footprint package.

    Sets up a Rich console handler and optionally a file handler. Both
    carry a RedactingFilter so that no handler ever writes an API key.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to log file.
        quiet_third_party: If True, suppress noisy third-party loggers.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger(PACKAGE_NAME)
    root_logger.setLevel(numeric_level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers:
        handler.close()
    root_logger.handlers = []

    redactor = RedactingFilter()

    console_handler = RichHandler(
        console=_console,
        show_time=False,
        show_path=False,
        rich_tracebacks=True,
        tracebacks_show_locals=False,
        markup=False,
    )
    console_handler.setLevel(numeric_level)
    console_handler.addFilter(redactor)
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATE_FORMAT))
        file_handler.addFilter(redactor)
        root_logger.addHandler(file_handler)

    if quiet_third_party:
        for logger_name in NOISY_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    root_logger.propagate = False

    root_logger.debug(f"Logging configured: level={level}, file={log_file}")


def configure_logging(config: AppConfig, verbose: bool = False) -> Path | None:
    """Apply the application's logging policy.

    Quiet runs show warnings and errors on the console only. Verbose runs
    (``--verbose`` or ``debug: true``) log at DEBUG and also write
    ``footprint.log`` under the configured log directory.

    Returns:
        The log file in use, or None for console-only logging.
    """
    if not (verbose or config.debug):
        setup_logging(level="WARNING")
        return None

    config.paths.ensure_dirs_exist()
    log_file = config.paths.log_dir / LOG_FILE_NAME
    setup_logging(level="DEBUG", log_file=log_file)
    return log_file


def get_logger(name: str) -> logging.Logger:
    """Get a logger namespaced under the package logger.

    Args:
        name: Logger name, typically __name__ of the calling module.

    Returns:
        Configured logger instance.
    """
    if not name.startswith(PACKAGE_NAME):
        name = f"{PACKAGE_NAME}.{name}"
    return logging.getLogger(name)


# =============================================================================
# Log Context Manager
# =============================================================================


class LogContext:
    """Context manager for timing and logging operations.

    Logs the start and completion of an operation with elapsed time.
    Failures are logged at ERROR level and the exception propagates.

    Attributes:
        message: Description of the operation.
        level: Log level for messages.
        logger: Logger instance to use.
        elapsed: Elapsed time in seconds (after exit).

    Example:
        >>> with LogContext("Analyzing entry") as ctx:
        ...     pass
        # Logs: "Analyzing entry..."
        # Logs: "Analyzing entry completed in 0.00s"
    """

    def __init__(
        self,
        message: str,
        level: int = logging.INFO,
        logger: logging.Logger | None = None,
    ) -> None:
        self.message = message
        self.level = level
        self.logger = logger or get_logger(PACKAGE_NAME)
        self.elapsed: float = 0.0
        self._start_time: float = 0.0

    def __enter__(self) -> "LogContext":
        self._start_time = time.perf_counter()
        self.logger.log(self.level, f"{self.message}...")
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        self.elapsed = time.perf_counter() - self._start_time

        if exc_type is not None:
            self.logger.error(f"{self.message} failed after {self.elapsed:.2f}s: {exc_val}")
        else:
            self.logger.log(self.level, f"{self.message} completed in {self.elapsed:.2f}s")
