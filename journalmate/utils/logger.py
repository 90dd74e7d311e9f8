"""
Centralized logging for the enrichment service.

`LoggerManager` hands out one configured `logging.Logger` per name, with a
colored console handler and a file handler (plain text or JSON). The
`JsonLogFormatter` produces structured records for log ingestion.
"""

import os
import sys
import logging
import json
from typing import Optional

from colorlog import ColoredFormatter


LOG_DIR_ENV = "JOURNALMATE_LOG_DIR"


class LoggerManager:
    """
    A factory for creating and caching `logging.Logger` instances.

    For any unique logger name (optionally suffixed with a `run_id`) the same
    logger instance is returned, so handlers are attached only once.

    Configured loggers have:
    - **Dual Output**: a console (stdout) handler and a file handler.
    - **Formatting**: colored console output via `colorlog`; file output as
      plain text or JSON (`JsonLogFormatter`).
    - **Path Handling**: an explicit `log_file`, or `<log_dir>/<name>.log`
      where `log_dir` comes from `JOURNALMATE_LOG_DIR` (default: `logs`).
    - **No Propagation**: `propagate = False`, so records are not handled a
      second time by ancestor loggers.
    """

    _loggers = {}
    _default_log_dir = "logs"

    @classmethod
    def get_logger(
        cls,
        name: str,
        log_file: Optional[str] = None,
        level: str = "INFO",
        use_json: bool = False,
        use_color: bool = True,
        run_id: Optional[str] = None,
    ) -> logging.Logger:
        """
        Retrieve or create a logger configured for console and file output.

        Args:
            name (str): A unique identifier (typically the module name).
            log_file (Optional[str]): Full path to a log file.
            level (str): Logging level threshold ("DEBUG", "INFO", etc.).
            use_json (bool): If True, format file logs as JSON.
            use_color (bool): If True, enable colored console output.
            run_id (Optional[str]): Optional run identifier for per-run logs.

        Returns:
            logging.Logger: A fully configured logger instance.
        """
        logger_key = f"{name}-{run_id}" if run_id else name
        if logger_key in cls._loggers:
            return cls._loggers[logger_key]

        logger = logging.getLogger(logger_key)
        logger.setLevel(level.upper())
        logger.propagate = False  # Prevent duplicate logs

        log_dir = (
            os.path.dirname(log_file)
            if log_file
            else os.getenv(LOG_DIR_ENV, cls._default_log_dir)
        )
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        if not log_file:
            log_file = os.path.join(log_dir, f"{logger_key}.log")

        logger.addHandler(cls._setup_file_handler(log_file, level, use_json))
        logger.addHandler(cls._setup_console_handler(level, use_color))

        cls._loggers[logger_key] = logger
        return logger

    @classmethod
    def set_level(cls, level: str) -> None:
        """Apply a new level to every logger created so far."""
        for logger in cls._loggers.values():
            logger.setLevel(level.upper())
            for handler in logger.handlers:
                handler.setLevel(level.upper())

    @staticmethod
    def _setup_file_handler(
        filepath: str, level: str, use_json: bool
    ) -> logging.Handler:
        handler = logging.FileHandler(filepath, encoding="utf-8")
        handler.setLevel(level.upper())
        handler.setFormatter(LoggerManager._get_formatter(use_json=use_json, color=False))
        return handler

    @staticmethod
    def _setup_console_handler(level: str, use_color: bool) -> logging.Handler:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level.upper())
        handler.setFormatter(LoggerManager._get_formatter(use_json=False, color=use_color))
        return handler

    @staticmethod
    def _get_formatter(
        use_json: bool = False, color: bool = False
    ) -> logging.Formatter:
        """
        Returns a log formatter object based on configuration.

        Args:
            use_json (bool): If True, returns a JSON formatter.
            color (bool): If True, returns a colored formatter.

        Returns:
            logging.Formatter: A formatter instance.
        """
        if use_json:
            return JsonLogFormatter()

        fmt = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        datefmt = "%Y-%m-%d %H:%M:%S"

        if color:
            return ColoredFormatter(
                fmt="%(log_color)s" + fmt,
                datefmt=datefmt,
                log_colors={
                    'DEBUG': 'cyan',
                    'INFO': 'green',
                    'WARNING': 'yellow',
                    'ERROR': 'red',
                    'CRITICAL': 'bold_red',
                },
            )
        return logging.Formatter(fmt, datefmt)


class JsonLogFormatter(logging.Formatter):
    """
    Outputs log records as single-line JSON objects.

    Example Output:
        {
            "timestamp": "2026-05-07 13:12:01",
            "level": "INFO",
            "logger": "journalmate.enrichment.service",
            "message": "batch.complete",
            "succeeded": 4
        }

    Supports extra data via `extra={"extra_data": {...}}` in logging calls.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": self.formatTime(record, "%Y-%m-%d %H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if hasattr(record, "extra_data"):
            log_record.update(record.extra_data)
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record)
