"""
Structured logging for the lost & found matcher.

Wraps the standard logging module with key/value context and a small
set of counters describing matching activity (ranking calls, candidates
scored, tagging fallbacks).
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json


class StructuredLogger:
    """
    Logger with console and optional file output.
    Tracks match metrics for a running process.
    """

    def __init__(
        self,
        name: str = "lostfound",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()

        self.metrics = self._empty_metrics()

        if enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_handler.setFormatter(logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            ))
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"lostfound_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            ))
            self.logger.addHandler(file_handler)

    @staticmethod
    def _empty_metrics() -> dict:
        return {
            "rank_calls": 0,
            "candidates_scored": 0,
            "matches_returned": 0,
            "items_tagged": 0,
            "tagging_fallbacks": 0,
            "errors_by_type": {},
        }

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str, sort_keys=True)}"
        self.logger.log(level, message)

    # Metric tracking

    def record_rank(self, candidates: int, returned: int):
        """Record one ranking call and its fan-out."""
        self.metrics["rank_calls"] += 1
        self.metrics["candidates_scored"] += candidates
        self.metrics["matches_returned"] += returned

    def record_tagging(self, fallback: bool = False):
        self.metrics["items_tagged"] += 1
        if fallback:
            self.metrics["tagging_fallbacks"] += 1

    def record_error(self, error_type: str):
        errors = self.metrics["errors_by_type"]
        errors[error_type] = errors.get(error_type, 0) + 1

    def get_metrics(self) -> dict:
        """Return a copy of current metrics with derived averages."""
        metrics_copy = dict(self.metrics)
        metrics_copy["errors_by_type"] = dict(self.metrics["errors_by_type"])
        calls = metrics_copy["rank_calls"]
        metrics_copy["avg_matches_per_call"] = (
            round(metrics_copy["matches_returned"] / calls, 2) if calls else 0.0
        )
        return metrics_copy

    def reset_metrics(self):
        self.metrics = self._empty_metrics()

    def log_metrics_summary(self):
        metrics = self.get_metrics()

        self.info("=== Matching Session Metrics ===")
        self.info(f"Rank calls: {metrics['rank_calls']}")
        self.info(
            f"Candidates scored: {metrics['candidates_scored']}, "
            f"matches returned: {metrics['matches_returned']} "
            f"({metrics['avg_matches_per_call']} per call)"
        )
        self.info(
            f"Items tagged: {metrics['items_tagged']} "
            f"({metrics['tagging_fallbacks']} fell back to generic tags)"
        )

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "lostfound",
    level: str = "INFO",
    log_dir: Optional[Path] = None,
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    File output is only enabled when a log directory is given, so library
    callers and tests do not leave log files behind.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for dated log files
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        kwargs.setdefault("enable_file", log_dir is not None)
        _global_logger = StructuredLogger(name=name, level=level, log_dir=log_dir, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
