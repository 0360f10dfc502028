"""
Logging configuration and utilities for the settlement engine.

Provides structured logging with JSON format for production environments
and human-readable format for development. Only the settlement service and
its collaborators log; the arithmetic core stays silent.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from uuid import UUID


_EXTRA_FIELDS = (
    "settlement_id",
    "left_order_id",
    "right_order_id",
    "taker",
    "asset",
    "attempt",
    "reason",
    "execution_time_ms",
    "correlation_id",
)


class JSONFormatter(logging.Formatter):
    """
    Custom JSON formatter for structured logging.

    Converts log records to JSON format with additional context fields.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON string."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for name in _EXTRA_FIELDS:
            value = getattr(record, name, None)
            if value is None:
                continue
            log_data[name] = str(value) if isinstance(value, UUID) else value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class SettlementLogger:
    """
    Centralized logger for the settlement engine.

    Provides structured logging with settlement and order identifiers.
    Supports both JSON (production) and console (development) formats.
    """

    def __init__(
        self,
        name: str = "SettlementEngine",
        log_level: str = "INFO",
        log_dir: Optional[Path] = None,
        use_json: bool = False,
    ):
        """
        Initialize the settlement logger.

        Args:
            name: Logger name
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (None for console only)
            use_json: Use JSON formatting (for production)
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, log_level.upper()))
        self.logger.handlers.clear()

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(self._formatter(use_json))
        self.logger.addHandler(console_handler)

        if log_dir:
            log_dir = Path(log_dir)
            log_dir.mkdir(parents=True, exist_ok=True)

            self.logger.addHandler(
                self._create_file_handler(log_dir / "application.log", use_json)
            )

            self.settlement_logger = logging.getLogger(f"{name}.settlements")
            self.settlement_logger.setLevel(logging.INFO)
            self.settlement_logger.handlers.clear()
            self.settlement_logger.addHandler(
                self._create_file_handler(log_dir / "settlements.log", use_json)
            )

            error_handler = self._create_file_handler(log_dir / "errors.log", use_json)
            error_handler.setLevel(logging.ERROR)
            self.logger.addHandler(error_handler)
        else:
            self.settlement_logger = self.logger

    @staticmethod
    def _formatter(use_json: bool) -> logging.Formatter:
        if use_json:
            return JSONFormatter()
        return logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    def _create_file_handler(self, filepath: Path, use_json: bool) -> logging.FileHandler:
        """Create a file handler with appropriate formatter."""
        handler = logging.FileHandler(filepath)
        handler.setFormatter(self._formatter(use_json))
        return handler

    def log_match_attempt(
        self,
        left_order_id: UUID,
        right_order_id: UUID,
        taker: str,
        fill_amount: int,
    ):
        """Log the start of a match attempt."""
        extra = {
            "left_order_id": left_order_id,
            "right_order_id": right_order_id,
            "taker": taker,
            "correlation_id": f"{left_order_id}:{right_order_id}",
        }
        self.logger.debug(
            f"Matching {left_order_id} against {right_order_id} "
            f"(taker: {taker}, left fill: {fill_amount})",
            extra=extra,
        )

    def log_settlement(
        self,
        settlement_id: UUID,
        left_order_id: UUID,
        right_order_id: UUID,
        transfer_count: int,
        spread: int,
        attempts: int,
        execution_time_ms: Optional[float] = None,
    ):
        """Log an applied settlement."""
        extra = {
            "settlement_id": settlement_id,
            "left_order_id": left_order_id,
            "right_order_id": right_order_id,
            "attempt": attempts,
            "execution_time_ms": execution_time_ms,
        }
        self.settlement_logger.info(
            f"Settlement applied: {transfer_count} transfers, spread {spread} "
            f"(left: {left_order_id}, right: {right_order_id}, attempts: {attempts})",
            extra=extra,
        )

    def log_rejection(
        self,
        left_order_id: UUID,
        right_order_id: UUID,
        reason: str,
    ):
        """Log a pairing rejected before any computation."""
        extra = {
            "left_order_id": left_order_id,
            "right_order_id": right_order_id,
            "reason": reason,
        }
        self.logger.info(
            f"Match rejected: {left_order_id} vs {right_order_id} ({reason})",
            extra=extra,
        )

    def log_retry(self, attempt: int, reason: str, **kwargs):
        """Log a ledger retry."""
        self.logger.warning(
            f"Ledger apply attempt {attempt} failed, retrying ({reason})",
            extra={"attempt": attempt, "reason": reason, **kwargs},
        )

    def log_error(
        self,
        message: str,
        exception: Optional[Exception] = None,
        **kwargs
    ):
        """Log error with optional exception."""
        if exception:
            self.logger.error(message, exc_info=exception, extra=kwargs)
        else:
            self.logger.error(message, extra=kwargs)

    def debug(self, message: str, **kwargs):
        """Log debug message."""
        self.logger.debug(message, extra=kwargs)

    def info(self, message: str, **kwargs):
        """Log info message."""
        self.logger.info(message, extra=kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message."""
        self.logger.warning(message, extra=kwargs)

    def error(self, message: str, **kwargs):
        """Log error message."""
        self.logger.error(message, extra=kwargs)


# Global logger instance
_logger: Optional[SettlementLogger] = None


def get_logger(
    name: str = "SettlementEngine",
    log_level: str = "INFO",
    log_dir: Optional[Path] = None,
    use_json: bool = False,
) -> SettlementLogger:
    """
    Get or create the global logger instance.

    Args:
        name: Logger name
        log_level: Logging level
        log_dir: Directory for log files
        use_json: Use JSON formatting

    Returns:
        SettlementLogger instance
    """
    global _logger

    if _logger is None:
        _logger = SettlementLogger(name, log_level, log_dir, use_json)

    return _logger
