"""Logging configuration for the Plugstore backend.

Log file management:
- Each process startup archives the previous log file with a timestamp suffix.
- ManagedFileHandler writes to a fresh file and rolls it over at UTC midnight
  on the first record emitted after the date changes.
- Archives older than the retention window are pruned at startup and on every
  rollover.

Services receive a logger at construction time; only the process entry point
calls setup_logging() and shutdown_logging().
"""

import json
import logging
import os
import socket
import sys
import threading
import traceback
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import ClassVar

from .config import get_settings_instance

# Guard against double configuration when setup_logging() runs both from a
# script entry point and again during lifespan startup
_LOGGING_CONFIGURED = False

_RESERVED_RECORD_KEYS = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "getMessage",
    }
)


class ColoredFormatter(logging.Formatter):
    """Colored formatter for human-readable logs."""

    COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",
    }

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors and trailing key=value extras."""
        level_color = self.COLORS.get(record.levelname, "") if self.use_colors else ""
        reset_color = self.COLORS["RESET"] if self.use_colors else ""

        timestamp = datetime.fromtimestamp(record.created, UTC).strftime("%Y-%m-%d %H:%M:%S")
        message = record.getMessage()

        extra_fields = []
        for key, value in record.__dict__.items():
            if key in _RESERVED_RECORD_KEYS or value is None:
                continue
            if isinstance(value, (str, int, float, bool)) and len(str(value)) < 100:
                extra_fields.append(f"{key}={value}")
            elif isinstance(value, (list, tuple)) and len(str(value)) < 200:
                extra_fields.append(f"{key}={list(value)}")

        log_line = f"{timestamp} - {level_color}{record.levelname}{reset_color} - {record.name} - {message}"
        if extra_fields:
            log_line += f" | {' '.join(extra_fields)}"

        if record.exc_info:
            log_line += f"\n{level_color}Exception:{reset_color}\n" + "".join(
                traceback.format_exception(*record.exc_info)
            )

        return log_line


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging (production/monitoring)."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            exc_type = record.exc_info[0]
            log_data["exception"] = {
                "type": exc_type.__name__ if exc_type is not None else "Unknown",
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info),
            }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def _log_file_prefix(hostname: str) -> str:
    return f"plugstore_{hostname}.log"


def _cleanup_old_log_archives(log_dir: Path, hostname: str, retention_days: int) -> None:
    """Remove archived log files older than the retention window.

    Handles both date-suffixed files (plugstore_host.log.2026-02-10) and
    startup-archived files (plugstore_host.log.2026-02-10_14-30-00).
    """
    prefix = _log_file_prefix(hostname) + "."
    cutoff = datetime.now(UTC) - timedelta(days=retention_days)
    try:
        for entry in os.scandir(log_dir):
            if not entry.name.startswith(prefix) or not entry.is_file():
                continue
            date_part = entry.name[len(prefix) :][:10]
            try:
                file_date = datetime.strptime(date_part, "%Y-%m-%d").replace(tzinfo=UTC)
            except ValueError:
                continue  # not a date-suffixed file we manage
            if file_date < cutoff:
                os.unlink(entry.path)
    except OSError:
        pass  # directory listing failed; not worth crashing over


class ManagedFileHandler(logging.FileHandler):
    """FileHandler that archives itself at UTC midnight and prunes old archives."""

    def __init__(self, filename: str, hostname: str, retention_days: int) -> None:
        super().__init__(filename, mode="a", encoding="utf-8")
        self._hostname = hostname
        self._retention_days = retention_days
        self._log_dir = Path(filename).parent
        self._current_date = datetime.now(UTC).date()
        self._lock_rotate = threading.Lock()

    def emit(self, record: logging.LogRecord) -> None:
        self.rotate_if_needed()
        super().emit(record)

    def rotate_if_needed(self) -> None:
        """Roll the file over if the UTC date changed since it was opened."""
        today = datetime.now(UTC).date()
        if today == self._current_date:
            return
        with self._lock_rotate:
            if today != self._current_date:
                self._do_midnight_rotate()
                self._current_date = today
                _cleanup_old_log_archives(self._log_dir, self._hostname, self._retention_days)

    def _do_midnight_rotate(self) -> None:
        archive_path = f"{self.baseFilename}.{self._current_date.strftime('%Y-%m-%d')}"
        try:
            if self.stream:
                self.stream.close()
            base_path = Path(self.baseFilename)
            if base_path.exists() and base_path.stat().st_size > 0:
                if os.path.exists(archive_path):
                    archive_path = f"{archive_path}_midnight"
                base_path.rename(archive_path)
            self.stream = self._open()
        except OSError as e:
            # Re-open even on failure so logging doesn't break
            self.stream = self._open()
            logging.getLogger(__name__).warning("Midnight log rotation failed: %s", e)


def setup_logging() -> None:
    """Configure root, plugstore, uvicorn and SQLAlchemy loggers."""
    global _LOGGING_CONFIGURED  # noqa: PLW0603
    if _LOGGING_CONFIGURED:
        return

    settings = get_settings_instance()
    level = getattr(logging, settings.log_level)

    use_colors = settings.environment == "development" and sys.stdout.isatty()
    formatter = JSONFormatter() if settings.log_format == "json" else ColoredFormatter(use_colors=use_colors)

    handlers: list[logging.Handler] = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    if settings.log_to_file:
        log_dir = Path(settings.log_dir)
        os.makedirs(log_dir, exist_ok=True)

        # Hostname in the file name keeps replicas from clobbering each other
        hostname = socket.gethostname()
        log_path = log_dir / _log_file_prefix(hostname)

        # Archive the previous run's log so each process cycle starts fresh
        if log_path.exists() and log_path.stat().st_size > 0:
            ts = datetime.now(UTC).strftime("%Y-%m-%d_%H-%M-%S")
            try:
                log_path.rename(f"{log_path}.{ts}")
            except OSError:
                pass  # worst case we append

        file_handler = ManagedFileHandler(
            str(log_path),
            hostname=hostname,
            retention_days=settings.log_retention_days,
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)
        _cleanup_old_log_archives(log_dir, hostname, settings.log_retention_days)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)
    for handler in handlers:
        root_logger.addHandler(handler)

    # SQLAlchemy logs every statement at INFO; keep it at ERROR unless asked
    for logger_name in ("sqlalchemy", "sqlalchemy.engine", "sqlalchemy.pool", "sqlalchemy.orm"):
        logging.getLogger(logger_name).setLevel(logging.ERROR)

    for logger_name in ("httpx", "httpcore"):
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    # Route uvicorn output through our handlers
    for logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        uvicorn_log = logging.getLogger(logger_name)
        uvicorn_log.handlers.clear()
        uvicorn_log.setLevel(level)
        for handler in handlers:
            uvicorn_log.addHandler(handler)
        uvicorn_log.propagate = False

    logging.getLogger("plugstore").setLevel(level)
    _LOGGING_CONFIGURED = True

    get_logger(__name__).info(
        "Logging configured",
        extra={
            "log_level": settings.log_level,
            "log_format": settings.log_format,
            "log_to_file": settings.log_to_file,
            "environment": settings.environment,
        },
    )


def shutdown_logging() -> None:
    """Flush and close every handler installed by setup_logging()."""
    global _LOGGING_CONFIGURED  # noqa: PLW0603
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        handler.flush()
        handler.close()
        root_logger.removeHandler(handler)
    for logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        logging.getLogger(logger_name).handlers.clear()
    _LOGGING_CONFIGURED = False


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the plugstore namespace."""
    if name.startswith("plugstore"):
        return logging.getLogger(name)
    return logging.getLogger(f"plugstore.{name}")
