"""
Logging for igvcrawler, with the RFC 5424 NOTICE severity level.

One process-wide logger writes to the console (INFO and above) and,
optionally, to a dated log file that records the origin of every message.
"""

import logging
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

from igvcrawler.utils.format import printable_text


# ============================================================================
# RFC 5424 Syslog Severity Levels
# ============================================================================

# 5=Notice, between WARNING and INFO
NOTICE = 25

logging.addLevelName(NOTICE, "NOTICE")


# ============================================================================
# Formatters
# ============================================================================


class DetailedFormatter(logging.Formatter):
    """File formatter that adds a module:function:line location to each record."""

    def format(self, record: logging.LogRecord) -> str:
        record.location = f"{record.module}:{record.funcName}:{record.lineno}"
        return printable_text(super().format(record))


class SimpleFormatter(logging.Formatter):
    """Console formatter: the message only."""

    def format(self, record: logging.LogRecord) -> str:
        # paths may carry undecodable file name bytes
        return printable_text(super().format(record))


# ============================================================================
# Singleton Logger
# ============================================================================


class CrawlerLogger:
    """
    Thread-safe singleton logger.

    Features:
    - RFC 5424 NOTICE severity level
    - Console output (INFO+) and file output (configured level)
    - Location tracking in file logs
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if getattr(self, "_initialized", False):
            return

        self._initialized = True
        self._logger = logging.getLogger("igvcrawler")
        self._logger.setLevel(logging.DEBUG)
        self._logger.propagate = False

        self._console_handler: Optional[logging.Handler] = None
        self._file_handler: Optional[logging.Handler] = None
        self._log_dir: Optional[Path] = None

        self._remove_handlers()

    def configure(
        self,
        log_level: str = "INFO",
        log_dir: str = "logs",
        enable_console: bool = True,
        enable_file: bool = True,
    ) -> None:
        """
        Configure handlers. Calling it again replaces the previous handlers.

        Args:
            log_level: Logging level (DEBUG, INFO, NOTICE, WARNING, ERROR)
            log_dir: Directory for log files
            enable_console: Enable console output
            enable_file: Enable file output
        """
        self._remove_handlers()
        self._console_handler = None
        self._file_handler = None
        self._log_dir = None

        level = logging.getLevelName(log_level.upper())
        if not isinstance(level, int):
            level = logging.INFO
        self._logger.setLevel(level)

        if enable_console:
            self._console_handler = logging.StreamHandler(sys.stdout)
            self._console_handler.setLevel(max(level, logging.INFO))
            self._console_handler.setFormatter(SimpleFormatter(fmt="%(message)s"))
            self._logger.addHandler(self._console_handler)

        if enable_file:
            log_path = Path(log_dir)
            log_path.mkdir(parents=True, exist_ok=True)
            self._log_dir = log_path
            log_file = log_path / f"igvcrawler_{datetime.now().strftime('%Y%m%d')}.log"

            self._file_handler = logging.FileHandler(log_file, encoding="utf-8", delay=True)
            self._file_handler.setLevel(level)
            self._file_handler.setFormatter(
                DetailedFormatter(
                    fmt="%(asctime)s [%(levelname)s] [%(location)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
                )
            )
            self._logger.addHandler(self._file_handler)

    def get_logger(self) -> logging.Logger:
        """Get the underlying logging.Logger."""
        return self._logger

    def _remove_handlers(self) -> None:
        for handler in list(self._logger.handlers):
            try:
                handler.close()
            except OSError:
                pass
            self._logger.removeHandler(handler)

    # Convenience methods for RFC 5424 severity levels

    def error(self, msg: str, *args, **kwargs) -> None:
        self._logger.error(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs) -> None:
        self._logger.warning(msg, *args, **kwargs)

    def notice(self, msg: str, *args, **kwargs) -> None:
        """Severity 5: normal but significant condition."""
        self._logger.log(NOTICE, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs) -> None:
        self._logger.info(msg, *args, **kwargs)

    def debug(self, msg: str, *args, **kwargs) -> None:
        self._logger.debug(msg, *args, **kwargs)


# ============================================================================
# Global Logger Instance
# ============================================================================


def get_logger() -> CrawlerLogger:
    """
    Get the global CrawlerLogger instance.

    Returns:
        Singleton CrawlerLogger instance
    """
    return CrawlerLogger()
