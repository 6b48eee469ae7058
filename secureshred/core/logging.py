"""
Shredder Logging Module
=======================

Provides logging that does not undo the work of the shredder.

Features:
- Optional redaction of file paths (names of destroyed files
  would otherwise survive in the log)
- Rotating log files with size limits
- Structured JSON logging support
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final, Optional

if TYPE_CHECKING:
    from secureshred.core.config import LoggingConfig


_CONSOLE_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_FILE_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"
_PATH_TOKEN_LENGTH: Final[int] = 12


def path_token(path: os.PathLike[str] | str) -> str:
    """Stable, non-reversible stand-in for a path in logs and audit records."""
    digest = hashlib.sha256(os.fsencode(path)).hexdigest()
    return f"path#{digest[:_PATH_TOKEN_LENGTH]}"


class PathRedactionFilter(logging.Filter):
    """
    Log filter that replaces path arguments with hashed tokens.

    The engine always passes paths as ``os.PathLike`` arguments, so
    only those are rewritten; message text is left alone. The same
    path always maps to the same token, which keeps log lines for
    one file correlatable.
    """

    def __init__(self, name: str = "", enabled: bool = True) -> None:
        super().__init__(name)
        self._enabled = enabled

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Redact path arguments on the record.

        Returns:
            Always True (record is always kept, just sanitized)
        """
        if not self._enabled or not record.args:
            return True

        if isinstance(record.args, dict):
            record.args = {k: self._redact(v) for k, v in record.args.items()}
        elif isinstance(record.args, tuple):
            record.args = tuple(self._redact(arg) for arg in record.args)

        return True

    @staticmethod
    def _redact(value: Any) -> Any:
        if isinstance(value, os.PathLike):
            return path_token(value)
        return value


class StructuredLogFormatter(logging.Formatter):
    """Formatter that outputs logs in JSON format for easy parsing."""

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as JSON."""
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class SecureRotatingFileHandler(RotatingFileHandler):
    """Rotating file handler that creates its directory with owner-only permissions."""

    def __init__(
        self,
        filename: str | Path,
        mode: str = "a",
        maxBytes: int = 10 * 1024 * 1024,
        backupCount: int = 5,
        encoding: str = "utf-8",
    ) -> None:
        log_path = Path(filename).resolve()
        log_path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

        super().__init__(
            str(log_path),
            mode=mode,
            maxBytes=maxBytes,
            backupCount=backupCount,
            encoding=encoding,
        )


def _build_handlers(
    log_dir: Optional[Path],
    file_name: str,
    enable_console: bool,
    enable_file: bool,
    enable_json: bool,
    redact_paths: bool,
    max_file_size: int,
    backup_count: int,
) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    redaction = PathRedactionFilter(enabled=redact_paths)

    if enable_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT, datefmt="%H:%M:%S"))
        console_handler.addFilter(redaction)
        handlers.append(console_handler)

    if enable_file and log_dir:
        file_handler = SecureRotatingFileHandler(
            filename=log_dir / file_name,
            maxBytes=max_file_size,
            backupCount=backup_count,
        )
        file_handler.setLevel(logging.DEBUG)
        if enable_json:
            file_handler.setFormatter(StructuredLogFormatter())
        else:
            file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        file_handler.addFilter(redaction)
        handlers.append(file_handler)

    return handlers


def get_shred_logger(
    name: str,
    log_dir: Optional[Path] = None,
    level: str = "INFO",
    enable_console: bool = True,
    enable_file: bool = True,
    enable_json: bool = False,
    redact_paths: bool = True,
    max_file_size: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Create a logger with optional path redaction.

    Args:
        name: Logger name (typically __name__)
        log_dir: Directory for log files (no file output if omitted)
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_console: Whether to output to stderr
        enable_file: Whether to output to file
        enable_json: Whether to use JSON format for file output
        redact_paths: Whether to replace path arguments with hashed tokens
        max_file_size: Maximum log file size before rotation
        backup_count: Number of backup files to keep

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, level.upper()))

    for handler in _build_handlers(
        log_dir,
        f"{name.replace('.', '_')}.log",
        enable_console,
        enable_file,
        enable_json,
        redact_paths,
        max_file_size,
        backup_count,
    ):
        logger.addHandler(handler)

    logger.propagate = False
    return logger


def configure_logging(config: LoggingConfig, log_dir: Optional[Path] = None) -> logging.Logger:
    """
    Configure the ``secureshred`` logger hierarchy from a LoggingConfig.

    Call once at application startup; every module logger below
    ``secureshred`` (including the engine) inherits these handlers.
    Existing handlers are replaced so repeated calls do not duplicate
    output.

    Args:
        config: Logging settings
        log_dir: Directory for log files

    Returns:
        The package root logger
    """
    root = logging.getLogger("secureshred")
    root.setLevel(getattr(logging, config.level.upper()))

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    for handler in _build_handlers(
        log_dir,
        "secureshred.log",
        config.enable_console,
        config.enable_file,
        config.json_format,
        config.redact_paths,
        config.max_file_size_bytes,
        config.backup_count,
    ):
        root.addHandler(handler)

    root.propagate = False
    return root
