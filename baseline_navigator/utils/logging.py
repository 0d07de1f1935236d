"""
Logging setup for Baseline Navigator.

Console logs go to stderr so that reports printed on stdout stay
pipeable. Text output is colored on a terminal; JSON output (and any
log file) is one object per line for CI log collection.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from baseline_navigator.utils.errors import ConfigurationError

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _record_context(record: logging.LogRecord) -> Dict[str, Any]:
    return getattr(record, "context", None) or {}


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Context attached through create_logger_with_context() is emitted
    under the "context" key.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        context = _record_context(record)
        if context:
            entry["context"] = context

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Plain text lines with any run context appended as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _record_context(record)
        if context:
            pairs = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
            line = f"{line} [{pairs}]"
        return line


class ColoredFormatter(TextFormatter):
    """Text formatter that colors the level name for terminals."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        color = self.COLORS.get(levelname, "")
        record.levelname = f"{color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # Other handlers share the record
            record.levelname = levelname


def _console_formatter(log_format: str, colored: bool) -> logging.Formatter:
    if log_format == "json":
        return JSONFormatter()
    if colored:
        return ColoredFormatter(TEXT_FORMAT, DATE_FORMAT)
    return TextFormatter(TEXT_FORMAT, DATE_FORMAT)


def _file_handler(log_file: str, max_bytes: int, backup_count: int) -> logging.Handler:
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
    handler.setFormatter(JSONFormatter())
    return handler


def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    log_file: Optional[str] = None,
    max_bytes: int = 10485760,
    backup_count: int = 5,
    console_enabled: bool = True,
    colored: bool = True,
) -> None:
    """
    Configure the root logger, replacing any handlers it already has.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Console format, "text" or "json"
        log_file: Optional path of a rotating JSON log file
        max_bytes: Size at which the log file rotates
        backup_count: Rotated files to keep
        console_enabled: Whether to log to stderr
        colored: Color the level names of text console output

    Raises:
        ConfigurationError: If the level name is not recognised
    """
    level_name = str(level).upper()
    if level_name not in LOG_LEVELS:
        raise ConfigurationError(
            f"Invalid log level '{level}'. Expected one of: {', '.join(LOG_LEVELS)}",
            config_key="logging.level",
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level_name))
    root_logger.handlers = []

    if console_enabled:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(_console_formatter(log_format, colored))
        root_logger.addHandler(console_handler)

    if log_file:
        root_logger.addHandler(_file_handler(log_file, max_bytes, backup_count))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LoggerAdapter(logging.LoggerAdapter):
    """
    Merges a fixed context dict into the "context" extra of every record.

    Context passed with an individual call is kept; the adapter's own
    keys win on conflict.
    """

    def process(
        self, msg: str, kwargs: Dict[str, Any]
    ) -> tuple[str, Dict[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        context = dict(extra.get("context") or {})
        context.update(self.extra)
        extra["context"] = context
        kwargs["extra"] = extra
        return msg, kwargs


def create_logger_with_context(
    name: str, context: Dict[str, Any]
) -> LoggerAdapter:
    """
    Create a logger that tags every message with the given context.

    Example:
        logger = create_logger_with_context(
            "project_analyzer",
            {"workspace": "analysis_/home/me/site"}
        )
        logger.info("Analysis complete")
        # text: ... | Analysis complete [workspace=analysis_/home/me/site]
    """
    return LoggerAdapter(get_logger(name), context)
