"""
Logging for candlelens.

Console records go to stderr so command output on stdout stays clean
(``--json`` output in particular). An optional rotating file handler
receives the same records without colour codes. Records emitted through
an :class:`AnalysisLoggerAdapter` carry the symbol and timeframe being
analysed, and both formatters render that context as a prefix.
"""

import copy
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, TextIO

from .config import LoggingConfig
from .utils import parse_size

ROOT_LOGGER = "candlelens"

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ContextFormatter(logging.Formatter):
    """Prefixes messages with ``[SYMBOL timeframe]`` when the record carries them.

    Formatting works on a copy of the record, so handlers sharing a record
    never see each other's changes.
    """

    def format(self, record: logging.LogRecord) -> str:
        return super().format(self.prepare(record))

    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        record = copy.copy(record)
        context = " ".join(
            str(value) for value in (getattr(record, "symbol", None), getattr(record, "timeframe", None))
            if value
        )
        if context:
            record.msg = f"[{context}] {record.getMessage()}"
            record.args = None
        return record


class ColoredFormatter(ContextFormatter):
    """Context formatter with ANSI colour on the level name."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        record = super().prepare(record)
        color = self.COLORS.get(record.levelname)
        if color:
            record.levelname = f"{color}{record.levelname}{self.RESET}"
        return record


def _reset_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def setup_logger(
    name: str,
    level: str = "INFO",
    log_file: Optional[str] = None,
    max_size: str = "10MB",
    backup_count: int = 5,
    console_output: bool = True,
    stream: Optional[TextIO] = None
) -> logging.Logger:
    """
    Configure a named logger, replacing any handlers it already has.

    Args:
        name: Logger name
        level: Level name; unknown names fall back to INFO
        log_file: Rotating log file path (optional)
        max_size: Rotation size such as '10MB'
        backup_count: Rotated files to keep
        console_output: Attach a coloured console handler
        stream: Console stream, stderr when omitted

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    _reset_handlers(logger)

    log_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(log_level)

    if console_output:
        console_handler = logging.StreamHandler(stream or sys.stderr)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(ColoredFormatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=parse_size(max_size),
            backupCount=backup_count,
            encoding="utf-8"
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(ContextFormatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(file_handler)

    logger.propagate = False

    return logger


def configure_logging(
    settings: LoggingConfig,
    name: str = ROOT_LOGGER,
    stream: Optional[TextIO] = None
) -> logging.Logger:
    """Configure the package logger from a LoggingConfig section."""
    return setup_logger(
        name=name,
        level=settings.level,
        log_file=settings.file_path,
        max_size=settings.max_size,
        backup_count=settings.backup_count,
        stream=stream,
    )


def get_logger(name: str, level: str = "INFO") -> logging.Logger:
    """Console-only logger at the given level."""
    return setup_logger(name=name, level=level)


class AnalysisLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that tags records with the instrument being analysed."""

    def process(self, msg: str, kwargs: dict) -> tuple:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_analysis_adapter(
    logger: logging.Logger,
    symbol: Optional[str] = None,
    timeframe: Optional[str] = None
) -> AnalysisLoggerAdapter:
    """Wrap a logger so its records carry symbol and timeframe context."""
    extra = {key: value for key, value in (("symbol", symbol), ("timeframe", timeframe)) if value}
    return AnalysisLoggerAdapter(logger, extra)
